"""Error taxonomy for the print bridge.

Framing and decode errors stop at the dispatch boundary and become a status
line. Delivery errors are the only ones a caller of the render+deliver path
sees, so it can tell "printer gone" apart from "bad request".
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for all bridge errors."""

    status = 500
    reason = "bridge error"


class MalformedRequest(BridgeError):
    """Request framing is broken or the route is not recognised."""

    status = 400
    reason = "malformed request"

    def __init__(self, message: str = "", status: int | None = None) -> None:
        super().__init__(message or self.reason)
        if status is not None:
            self.status = status


class DecodeFailure(BridgeError):
    """Body is not UTF-8 JSON."""

    status = 400
    reason = "invalid invoice body"


class DeliveryFailure(BridgeError):
    """The printer transport did not confirm the write."""

    status = 500
    reason = "printer delivery failed"
    metric_reason = "io"


class DeliveryTimeout(DeliveryFailure):
    metric_reason = "timeout"


class PrinterNotConnected(DeliveryFailure):
    """No printer link is available and none could be opened."""

    reason = "printer not connected"
    metric_reason = "not_connected"


class RenderFailure(BridgeError):
    """The renderer produced no output, so nothing was sent to the printer."""

    status = 500
    reason = "invoice could not be rendered"
