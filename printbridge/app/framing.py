"""Minimal HTTP-like request framing for the print socket.

This is not an HTTP implementation: a request is a request line, optional
header lines and a body after the first blank line (CRLF CRLF). Responses are
a status line, a fixed set of permissive CORS headers and a body whose length
always matches ``Content-Length``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

HEADER_END = b"\r\n\r\n"
CRLF = b"\r\n"

REASONS = {
    200: "OK",
    204: "No Content",
    400: "Bad Request",
    403: "Forbidden",
    500: "Internal Server Error",
}

Headers = Tuple[Tuple[str, str], ...]

PREFLIGHT_HEADERS: Headers = (
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Methods", "GET, POST, OPTIONS"),
    ("Access-Control-Allow-Headers", "Content-Type, authorization"),
)
PRINT_HEADERS: Headers = (
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Headers", "Content-Type"),
    ("Content-Type", "text/plain"),
)
CONTROL_HEADERS: Headers = (
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Headers", "Content-Type, authorization"),
    ("Content-Type", "text/plain"),
)
FORBIDDEN_HEADERS: Headers = (
    ("Access-Control-Allow-Origin", "*"),
    ("Content-Type", "text/plain"),
)


@dataclass(frozen=True)
class Request:
    method: str
    target: str
    headers: Dict[str, str] = field(default_factory=dict)
    # None when the header/body delimiter never arrived
    body: Optional[bytes] = None

    @property
    def path(self) -> str:
        return self.target.split("?", 1)[0]


@dataclass(frozen=True)
class Response:
    status: int
    body: bytes = b""
    headers: Headers = PRINT_HEADERS

    def to_bytes(self) -> bytes:
        reason = REASONS.get(self.status, "Unknown")
        lines = [f"HTTP/1.1 {self.status} {reason}"]
        lines.extend(f"{name}: {value}" for name, value in self.headers)
        lines.append(f"Content-Length: {len(self.body)}")
        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("latin-1") + self.body


def parse_request(data: bytes) -> Request:
    """Split raw bytes into request line, headers and body.

    Never raises: missing pieces come back empty and the body is ``None``
    when there is no CRLF CRLF delimiter. The body is stripped of
    surrounding whitespace.
    """
    head, sep, rest = data.lstrip().partition(HEADER_END)
    lines = head.split(CRLF)
    parts = lines[0].decode("latin-1").split()
    method = parts[0].upper() if parts else ""
    target = parts[1] if len(parts) > 1 else ""
    headers: Dict[str, str] = {}
    for raw in lines[1:]:
        name, colon, value = raw.partition(b":")
        if colon:
            headers[name.strip().decode("latin-1").lower()] = value.strip().decode("latin-1")
    return Request(method, target, headers, rest.strip() if sep else None)


def pending_body_bytes(data: bytes) -> Optional[int]:
    """How many more body bytes ``Content-Length`` promises.

    ``None`` while the header block is still incomplete, ``0`` when the
    request is complete or carries no usable ``Content-Length``.
    """
    data = data.lstrip()
    idx = data.find(HEADER_END)
    if idx < 0:
        return None
    for raw in data[:idx].split(CRLF)[1:]:
        name, colon, value = raw.partition(b":")
        if colon and name.strip().lower() == b"content-length":
            try:
                expected = int(value.strip())
            except ValueError:
                return 0
            received = len(data) - idx - len(HEADER_END)
            return max(expected - received, 0)
    return 0
