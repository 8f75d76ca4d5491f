# config.py

"""Bridge configuration.

Values may come from a JSON file (``PRINT_BRIDGE_CONFIG``, default
``config.json`` in the working directory) and are overridden by
``PRINT_BRIDGE_*`` environment variables. :func:`get_settings` merges both and
caches the result.
"""

from __future__ import annotations

import codecs
import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

ENV_PREFIX = "PRINT_BRIDGE_"
DEFAULT_WIDTH = 48
MIN_WIDTH = 8
MAX_WIDTH = 255

logger = logging.getLogger("printbridge.config")


def is_single_byte(encoding: str) -> bool:
    """Return ``True`` when ``encoding`` maps every character to at most one byte."""
    try:
        codecs.lookup(encoding)
    except LookupError:
        return False
    if "A\x1b\x1d".encode(encoding, errors="replace") != b"A\x1b\x1d":
        return False
    return all(
        len(chr(cp).encode(encoding, errors="replace")) <= 1 for cp in range(256)
    )


class Settings(BaseSettings):
    """Bridge settings merged from JSON and environment variables."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX, env_file=".env", extra="ignore"
    )

    host: str = "0.0.0.0"
    port: int = 4000
    printer_url: str | None = None
    printer_width: int = Field(default=DEFAULT_WIDTH, ge=MIN_WIDTH, le=MAX_WIDTH)
    encoding: str = "latin-1"
    delivery_timeout: float = Field(default=5.0, gt=0)
    auto_connect: bool = True
    max_request_bytes: int = Field(default=1024 * 1024, gt=0)
    read_timeout: float = Field(default=2.0, gt=0)
    qr_size: int = 7
    cut_paper: bool = False
    show_exchange_rate: bool = False
    fiscal_codes: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["IIC", "FIC", "EIC"]
    )
    metrics_port: int | None = None
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("encoding")
    @classmethod
    def _single_byte_encoding(cls, v: str) -> str:
        if not is_single_byte(v):
            raise ValueError(f"{v!r} is not a single-byte printer encoding")
        return v

    @field_validator("fiscal_codes", mode="before")
    @classmethod
    def _parse_codes(cls, v):
        # accept "IIC,FIC" from the environment as well as a JSON list
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("["):
                return json.loads(s)
            return [p.strip() for p in s.split(",") if p.strip()]
        return v

    @field_validator("fiscal_codes")
    @classmethod
    def _known_codes(cls, v: list[str]) -> list[str]:
        codes = [c.upper() for c in v]
        unknown = set(codes) - {"IIC", "FIC", "EIC"}
        if unknown:
            raise ValueError("unknown fiscal codes: " + ", ".join(sorted(unknown)))
        return codes


def _config_path() -> Path:
    return Path(os.getenv(ENV_PREFIX + "CONFIG", "config.json"))


# Cached singleton to avoid repeated file reads
@lru_cache
def get_settings() -> Settings:
    """Return merged settings with environment variable precedence.

    Keyword arguments win over the environment in pydantic-settings, so the
    environment is folded over the JSON data by hand before construction.
    """

    path = _config_path()
    data: dict = {}
    if path.exists():
        data = json.loads(path.read_text(encoding="utf-8"))
        logger.info("loaded settings from %s", path)
    env_override = {}
    for key, value in os.environ.items():
        if not key.upper().startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX):].lower()
        if name in Settings.model_fields:
            env_override[name] = value
    merged = {**data, **env_override}
    return Settings(**merged)
