"""
Request logging middleware and structured log formatting.
"""

import json
import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


logger = logging.getLogger(__name__)


# LogRecord attributes copied into JSON output when present
STRUCTURED_FIELDS = (
    "request_id",
    "session_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_host",
    "provider",
    "attempts",
    "detected_language",
    "fallback",
    "translation_degraded",
    "error",
    "error_type",
    "error_code",
    "details",
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each HTTP request with its id, session, status and duration.

    The request id comes from ``X-Request-ID`` when the client sends one
    and is echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or f"req-{uuid.uuid4().hex[:12]}"
        session_id = request.headers.get("X-Session-ID")
        start_time = time.time()

        logger.info(
            f"{request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "session_id": session_id,
                "method": request.method,
                "path": request.url.path,
                "client_host": request.client.host if request.client else None,
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "Request failed",
                extra={
                    "request_id": request_id,
                    "session_id": session_id,
                    "path": request.url.path,
                    "duration_ms": round(duration_ms, 2),
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Request completed",
            extra={
                "request_id": request_id,
                "session_id": session_id,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        response.headers["X-Request-ID"] = request_id
        return response


class StructuredLogFormatter(logging.Formatter):
    """Formats log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in STRUCTURED_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_structured_logging(level: int | str = logging.INFO, use_json: bool = False) -> None:
    """
    Configure the root logger with one console handler.

    Args:
        level: Logging level name or number.
        use_json: Emit JSON lines instead of plain text.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    if use_json:
        console_handler.setFormatter(StructuredLogFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)

    logger.info(f"Logging configured: level={logging.getLevelName(level)}, json={use_json}")
