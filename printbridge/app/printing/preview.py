"""Readable previews of a command stream, for the CLI and for debugging."""

from __future__ import annotations

import io
from typing import List, Optional

from PIL import Image, ImageDraw, ImageFont

ESC = 0x1B
GS = 0x1D

# Commands that take exactly one parameter byte after the command byte.
_ONE_ARG = {ord("E"), ord("a"), ord("!"), ord("V")}

PREVIEW_FONT = "DejaVuSansMono.ttf"
MARGIN = 8


def strip_commands(stream: bytes, encoding: str = "latin-1") -> str:
    """Drop control sequences from ``stream`` and return the printable text.

    Line feeds (ESC d n) become ``n`` newlines and a printed QR symbol shows
    up as ``[QR:<data>]``.
    """
    parts: List[str] = []
    qr_data = b""
    i = 0
    n = len(stream)
    while i < n:
        b = stream[i]
        if b == ESC or b == GS:
            cmd = stream[i + 1] if i + 1 < n else None
            if b == ESC and cmd == ord("d") and i + 2 < n:
                parts.append("\n" * stream[i + 2])
                i += 3
            elif b == GS and cmd == ord("(") and i + 4 < n:
                length = stream[i + 3] | (stream[i + 4] << 8)
                body = stream[i + 5 : i + 5 + length]
                if body[1:2] == b"P":
                    qr_data = body[3:]
                elif body[1:2] == b"Q":
                    parts.append(f"[QR:{qr_data.decode(encoding, errors='replace')}]\n")
                i += 5 + length
            elif cmd in _ONE_ARG:
                i += 3
            else:
                i += 2
            continue
        end = i
        while end < n and stream[end] not in (ESC, GS):
            end += 1
        parts.append(stream[i:end].decode(encoding, errors="replace"))
        i = end
    return "".join(parts)


def _font():
    try:
        return ImageFont.truetype(PREVIEW_FONT, 14)
    except OSError:
        return ImageFont.load_default()


def render_preview_png(text: str, columns: Optional[int] = None) -> bytes:
    """Draw ``text`` on a paper strip ``columns`` character cells wide.

    Without ``columns`` the strip is as wide as the longest line. Rows keep
    the grid of the receipt, so trailing feeds show up as blank paper.
    """
    font = _font()
    cell_w = max(int(round(font.getlength("M"))), 1)
    top, bottom = font.getbbox("Mg")[1::2]
    cell_h = bottom - top + 4

    rows = text.split("\n")
    cols = columns or max(max(len(row) for row in rows), 1)
    size = (cols * cell_w + 2 * MARGIN, len(rows) * cell_h + 2 * MARGIN)

    paper = Image.new("L", size, 255)
    pen = ImageDraw.Draw(paper)
    for index, row in enumerate(rows):
        pen.text((MARGIN, MARGIN + index * cell_h), row, font=font, fill=0)

    out = io.BytesIO()
    paper.save(out, format="PNG")
    return out.getvalue()
