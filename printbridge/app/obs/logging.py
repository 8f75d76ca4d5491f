"""Log setup for the bridge.

Records carry the id of the socket connection they were emitted for. Invoice
bodies pass through :func:`redact` before they are logged so buyer details
never reach the log sink.
"""

import json
import logging
import re
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

# Set by the server for the lifetime of one client connection
conn_id_ctx: ContextVar[str | None] = ContextVar("conn_id", default=None)

EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+", re.I)
PHONE_RE = re.compile(r"\b\d{3}[- ]?\d{3,4}[- ]?\d{3,4}\b")
MASK = "***"

# Invoice keys that identify the buyer, compared lowercased
PII_KEYS = frozenset(
    {
        "customername",
        "customertin",
        "customercontact",
        "customeraddress",
        "customer_name",
        "customer_tin",
        "customer_contact",
        "customer_address",
    }
)

# Optional attributes passed with ``extra=`` that end up in JSON lines
EXTRA_FIELDS = ("conn_id", "peer", "status")

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(conn_id)s] %(message)s"


def mask_contacts(text: str) -> str:
    """Mask e-mail addresses and phone numbers inside free text."""
    return PHONE_RE.sub(MASK, EMAIL_RE.sub(MASK, text))


def redact(obj: Any) -> Any:
    """Return a copy of ``obj`` with customer fields masked."""
    if isinstance(obj, dict):
        return {
            key: MASK if str(key).lower() in PII_KEYS else redact(value)
            for key, value in obj.items()
        }
    if isinstance(obj, list):
        return [redact(item) for item in obj]
    if isinstance(obj, str):
        return mask_contacts(obj)
    return obj


class ConnectionIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.conn_id = conn_id_ctx.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, timezone.utc)
        data: dict[str, Any] = {
            "ts": stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
        }
        for name in EXTRA_FIELDS:
            data[name] = getattr(record, name, None)
        data["msg"] = mask_contacts(record.getMessage())
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def configure_logging(level: int | str = logging.INFO, json_lines: bool = False) -> None:
    """Replace the root handlers with a single stderr handler."""

    handler = logging.StreamHandler()
    handler.addFilter(ConnectionIdFilter())
    handler.setFormatter(JsonFormatter() if json_lines else logging.Formatter(PLAIN_FORMAT))
    logging.basicConfig(level=level, handlers=[handler], force=True)
