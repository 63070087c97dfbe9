import json
import threading
import time
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from companion.core.config import TraceConfig, settings


# Keys whose values may hold user or prompt text
_PROMPT_KEYS = {"prompt"}


class TraceLogger:
    """Appends per-turn stage events as JSON lines.

    Disabled unless ``TRACE_ENABLED`` is set. Long strings and lists are
    truncated; prompts are dropped unless ``TRACE_LOG_PROMPT`` is set.
    """

    def __init__(
        self,
        config: TraceConfig | None = None,
        max_str_len: int = 2000,
        max_list_len: int = 50,
        max_depth: int = 4,
    ):
        self._config = config or settings.trace
        self._file_path = Path(self._config.file_path)
        self._lock = threading.Lock()
        self._max_str_len = max_str_len
        self._max_list_len = max_list_len
        self._max_depth = max_depth

    def enabled(self) -> bool:
        return bool(self._config.enabled)

    def _should_log(self, level: str) -> bool:
        if not self.enabled():
            return False
        configured = self._config.level
        if configured == "debug":
            return True
        if configured == "info":
            return level in {"info", "error"}
        return level == "error"

    def log_stage(self, session_id: str, stage: str, level: str = "info", **fields: Any) -> None:
        """Record one orchestration stage for a session."""
        if not self._should_log(level):
            return

        event: dict[str, Any] = {
            "ts": time.time(),
            "level": level,
            "session_id": session_id,
            "stage": stage,
        }
        for key, value in fields.items():
            if key in _PROMPT_KEYS and not self._config.log_prompt:
                continue
            event[key] = self._safe(value, depth=0)

        line = json.dumps(event, ensure_ascii=False, default=str)
        with self._lock:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with self._file_path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")

    def _safe(self, value: Any, depth: int) -> Any:
        if depth >= self._max_depth:
            return "<max_depth>"
        if value is None or isinstance(value, (bool, int, float)):
            return value
        if isinstance(value, str):
            if len(value) > self._max_str_len:
                return value[: self._max_str_len] + "...<truncated>"
            return value
        if isinstance(value, BaseModel):
            return self._safe(value.model_dump(mode="json"), depth + 1)
        if isinstance(value, dict):
            return {str(k): self._safe(v, depth + 1) for k, v in value.items()}
        if isinstance(value, (list, tuple, set)):
            items = list(value)
            out = [self._safe(v, depth + 1) for v in items[: self._max_list_len]]
            if len(items) > self._max_list_len:
                out.append(f"<truncated {len(items) - self._max_list_len} more items>")
            return out
        return str(value)


trace_logger = TraceLogger()
