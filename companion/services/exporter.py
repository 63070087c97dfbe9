"""Conversation history export to JSON or PDF, base64 encoded."""

import base64
import io
import json
import logging
from collections.abc import Sequence
from typing import Any, Literal
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from companion.db.models import ConversationLog

logger = logging.getLogger(__name__)


ExportFormat = Literal["json", "pdf"]


def record_to_dict(row: ConversationLog) -> dict[str, Any]:
    return {
        "id": row.id,
        "timestamp": row.created_at.isoformat() if row.created_at else None,
        "userInput": row.user_input,
        "reply": row.reply,
        "sentiment": row.sentiment,
        "userEmotion": row.user_emotion,
        "lang": row.lang,
        "provider": row.provider,
    }


class ChatExporter:
    def __init__(self, title: str = "Bella Chat History", persona: str = "Bella"):
        self.title = title
        self.persona = persona

    def export(self, rows: Sequence[ConversationLog], format: ExportFormat = "json") -> str:
        """Render ``rows`` (newest first) and return the base64 payload."""
        if format == "pdf":
            payload = self.render_pdf(rows)
        else:
            payload = self.render_json(rows)
        logger.info(f"Exported {len(rows)} record(s) as {format}")
        return base64.b64encode(payload).decode("ascii")

    def render_json(self, rows: Sequence[ConversationLog]) -> bytes:
        records = [record_to_dict(row) for row in rows]
        return json.dumps(records, indent=2, ensure_ascii=False).encode("utf-8")

    def render_pdf(self, rows: Sequence[ConversationLog]) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, title=self.title)
        styles = getSampleStyleSheet()

        story = [Paragraph(escape(self.title), styles["Title"]), Spacer(1, 12)]
        for row in rows:
            timestamp = row.created_at.isoformat() if row.created_at else ""
            story.append(
                Paragraph(
                    f"[{escape(timestamp)}] You ({escape(row.lang)}): {escape(row.user_input)}",
                    styles["Normal"],
                )
            )
            story.append(Paragraph(f"{escape(self.persona)}: {escape(row.reply)}", styles["Normal"]))
            story.append(Spacer(1, 8))

        doc.build(story)
        return buffer.getvalue()
