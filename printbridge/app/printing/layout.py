"""Fixed-grid text layout for monospaced receipt fonts.

Wrapping is a hard split every ``width`` characters, not a word wrap: the
column arithmetic in :func:`left_right` relies on lines breaking at exactly
that position. Embedded newlines start a new paragraph. ``None`` is treated as
an empty string everywhere.
"""

from __future__ import annotations

from typing import Any, List


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def wrap(text: Any, width: int) -> List[str]:
    """Split ``text`` into physical lines of at most ``width`` characters."""
    text = _text(text)
    if width < 1:
        return text.split("\n")
    lines: List[str] = []
    for paragraph in text.split("\n"):
        while len(paragraph) > width:
            lines.append(paragraph[:width])
            paragraph = paragraph[width:]
        lines.append(paragraph)
    return lines


def wrap_text(text: Any, width: int) -> str:
    return "\n".join(wrap(text, width))


def center_wrap(text: Any, width: int) -> str:
    """Wrap ``text`` and left-pad each line so it sits in the middle.

    Odd remainders round down, so centring leans left. No trailing padding.
    """
    return "\n".join(
        " " * ((width - len(line)) // 2) + line for line in wrap(text, width)
    )


def left_right(left: Any, right: Any, width: int) -> str:
    """Put ``left`` flush left and ``right`` flush right on one line.

    When both do not fit, ``left`` is wrapped to the room left over by
    ``right`` and only its first line carries ``right``. If ``right`` alone
    fills the line the two are simply concatenated.
    """
    left, right = _text(left), _text(right)
    left_width = width - len(right)
    if left_width <= 0:
        return left + right
    lines = wrap(left, left_width)
    first = lines[0].ljust(left_width) + right
    return "\n".join([first, *lines[1:]])
