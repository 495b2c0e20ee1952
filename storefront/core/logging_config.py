"""Structured JSON logging with a per-request id."""

import contextvars
import logging
import uuid

from pythonjsonlogger.json import JsonFormatter

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"

# Loggers that are too chatty at INFO for request logs
QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio")

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")


class RequestIdFilter(logging.Filter):
    """Stamp each record with the id of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("")  # type: ignore[attr-defined]
        return True


def setup_logging(*, debug: bool = False) -> None:
    """Send every log line to stderr as one JSON object.

    Extra fields passed through ``extra=`` (for example ``search_event``)
    become top-level JSON keys.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(
        JsonFormatter(
            fmt=LOG_FORMAT,
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    )
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def generate_request_id() -> str:
    """Short random id for requests that arrive without X-Request-ID."""
    return uuid.uuid4().hex[:16]
