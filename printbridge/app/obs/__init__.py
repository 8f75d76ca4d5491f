"""Observability helpers."""

from .logging import configure_logging, conn_id_ctx, redact  # re-export

__all__ = ["configure_logging", "conn_id_ctx", "redact"]
