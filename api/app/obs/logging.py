import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from ..middlewares.request_id import request_id_ctx

BEARER_RE = re.compile(r"(?i)(bearer\s+)[\w.-]+")
TOKEN_PARAM_RE = re.compile(r"(?i)(token=)[\w.-]+")

# Attributes every LogRecord has; anything else was passed through ``extra``.
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "req_id"}


def _redact_secrets(text: str) -> str:
    """Replace bearer tokens and ``token=`` query values with ***."""
    text = BEARER_RE.sub(lambda m: m.group(1) + "***", text)
    return TOKEN_PARAM_RE.sub(lambda m: m.group(1) + "***", text)


class RequestIdFilter(logging.Filter):
    """Attach request id from context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        record.req_id = request_id_ctx.get(None)
        return True


class JsonFormatter(logging.Formatter):
    """Render logs as a single JSON object.

    Values passed through ``extra`` (``tenant``, ``order_id`` and friends)
    are copied into the object next to the fixed keys.
    """

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "req_id": getattr(record, "req_id", None),
            "tenant": getattr(record, "tenant", None),
            "msg": _redact_secrets(record.getMessage()),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and key not in data:
                data[key] = value
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure root logger with JSON formatting."""

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
