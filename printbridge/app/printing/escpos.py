"""ESC/POS command fragments.

Every helper returns a self-contained piece of the output stream; a ticket is
the plain concatenation of fragments in emission order. Nothing here keeps
state and nothing raises: numeric parameters outside what the printer accepts
are clamped.
"""

from __future__ import annotations

ESC = b"\x1b"
GS = b"\x1d"

# GS ! n presets keyed by size level; anything else prints normal size.
TEXT_SIZES = {
    1: b"\x11",  # double width and height
    2: b"\x22",  # triple width and height
}
NORMAL_SIZE = b"\x00"

QR_MIN_MODULE = 1
QR_MAX_MODULE = 8
QR_ERROR_CORRECTION = 51  # '3', level H
# pL/pH of the store command count the 3 bytes "1 P 0" that precede the data.
QR_STORE_OVERHEAD = 3
QR_MAX_PAYLOAD = 0xFFFF - QR_STORE_OVERHEAD

MAX_FEED = 255


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(int(value), high))


def reset() -> bytes:
    """Initialise the printer (ESC @).

    Clears alignment, bold and text size set by any earlier command.
    """
    return ESC + b"@"


def set_text_size(level: int) -> bytes:
    """Select a text size preset (GS ! n)."""
    return GS + b"!" + TEXT_SIZES.get(level, NORMAL_SIZE)


def bold_text() -> bytes:
    """Turn emphasis on (ESC E 1). Only :func:`reset` turns it off again."""
    return ESC + b"E\x01"


def center_text() -> bytes:
    return ESC + b"a\x01"


def right_align_text() -> bytes:
    return ESC + b"a\x02"


def left_align_text() -> bytes:
    return ESC + b"a\x00"


def add_breaks(n: int) -> bytes:
    """Feed ``n`` lines (ESC d n), ``n`` clamped to 0..255."""
    return ESC + b"d" + bytes([_clamp(n, 0, MAX_FEED)])


def cut() -> bytes:
    """Full paper cut (GS V 0)."""
    return GS + b"V\x00"


def dotted_line(width: int = 48, char: str = ".") -> str:
    """Return ``width`` copies of ``char`` and a newline.

    This is printable text, not a command, so it is returned as ``str`` and
    encoded together with the rest of the ticket text.
    """
    return char * max(width, 0) + "\n"


def straight_line(width: int = 48, char: str = "-") -> str:
    return dotted_line(width, char)


def print_qr_code(data: bytes, module_size: int = 4) -> bytes:
    """Store ``data`` in the printer's QR buffer and print it centred.

    ``data`` must already be encoded with the ticket encoding so the length
    prefix matches what the printer receives. The sequence turns centring on
    before and back to left after; it does not restore whatever alignment
    was active before the call.
    """
    size = _clamp(module_size, QR_MIN_MODULE, QR_MAX_MODULE)
    payload = data[:QR_MAX_PAYLOAD]

    model = GS + b"(k\x04\x00\x31\x41\x32\x00"
    module = GS + b"(k\x03\x00\x31\x43" + bytes([size])
    correction = GS + b"(k\x03\x00\x31\x45" + bytes([QR_ERROR_CORRECTION])
    store_len = len(payload) + QR_STORE_OVERHEAD
    store = (
        GS
        + b"(k"
        + bytes([store_len & 0xFF, (store_len >> 8) & 0xFF])
        + b"\x31\x50\x30"
        + payload
    )
    trigger = GS + b"(k\x03\x00\x31\x51\x30"

    return center_text() + model + module + correction + store + trigger + left_align_text()


def print_qr_code_with_level(data: bytes, level: int = 3) -> bytes:
    """Print a QR code sized by heading level (1 largest, 4 smallest)."""
    module_size = {1: 16, 2: 6, 3: 4}.get(level, 2)
    return print_qr_code(data, module_size)
