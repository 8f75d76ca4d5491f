"""Route framed requests to the renderer and the printer session."""

from __future__ import annotations

import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from .errors import (
    BridgeError,
    DecodeFailure,
    DeliveryFailure,
    MalformedRequest,
    RenderFailure,
)
from .framing import (
    CONTROL_HEADERS,
    FORBIDDEN_HEADERS,
    PREFLIGHT_HEADERS,
    PRINT_HEADERS,
    Request,
    Response,
    parse_request,
)
from .metrics import invoice_render_seconds, print_requests_total
from .obs.logging import redact
from .printing.renderer import InvoiceRenderer
from .transport import PrinterSession

logger = logging.getLogger("printbridge.dispatch")

PRINT_PATH = "/print"
RETURN_PATH = "/returntoapp"

Callback = Callable[..., Union[None, Awaitable[None]]]


async def _call(callback: Optional[Callback], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


def decode_body(request: Request) -> Any:
    """Return the JSON document carried by ``request``.

    A ``{"invoice": {...}}`` envelope is unwrapped.
    """
    if request.body is None:
        raise MalformedRequest("missing header-body delimiter")
    if not request.body:
        raise MalformedRequest("empty request body")
    try:
        payload = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise DecodeFailure(str(exc)) from exc
    if isinstance(payload, dict) and set(payload) == {"invoice"}:
        payload = payload["invoice"]
    return payload


class PrintDispatcher:
    """One dispatch cycle per received request.

    ``on_return_to_app`` runs for ``POST /returnToApp``; ``on_delivery_failure``
    receives the :class:`DeliveryFailure` so an application can prompt for a
    reconnect. Both may be plain or async callables.
    """

    def __init__(
        self,
        session: PrinterSession,
        renderer: Optional[InvoiceRenderer] = None,
        *,
        default_width: Optional[int] = None,
        on_return_to_app: Optional[Callback] = None,
        on_delivery_failure: Optional[Callback] = None,
    ) -> None:
        self.session = session
        self.renderer = renderer or InvoiceRenderer()
        self.default_width = default_width
        self.on_return_to_app = on_return_to_app
        self.on_delivery_failure = on_delivery_failure

    async def handle(self, data: bytes) -> Response:
        request = parse_request(data)
        if request.method == "OPTIONS":
            route, response = "options", Response(204, headers=PREFLIGHT_HEADERS)
        elif request.method == "POST" and request.path == PRINT_PATH:
            route, response = "print", await self._print(request)
        elif request.method == "POST" and request.path.lower() == RETURN_PATH:
            route, response = "return", await self._return_to_app()
        else:
            logger.warning("forbidden: %s %s", request.method or "-", request.target or "-")
            route, response = "other", Response(403, headers=FORBIDDEN_HEADERS)
        print_requests_total.labels(route=route, status=str(response.status)).inc()
        return response

    async def print_invoice(self, payload: Any) -> int:
        """Render ``payload`` and hand the whole ticket to the printer.

        Returns the number of bytes delivered. Raises :class:`RenderFailure`
        when nothing could be rendered and :class:`DeliveryFailure` when the
        printer did not take the ticket.
        """
        with invoice_render_seconds.time():
            stream = self.renderer.render(payload, self.default_width)
        if not stream:
            raise RenderFailure()
        await self.session.deliver(stream)
        return len(stream)

    async def _print(self, request: Request) -> Response:
        try:
            payload = decode_body(request)
            logger.debug("invoice received: %s", redact(payload))
            size = await self.print_invoice(payload)
        except DeliveryFailure as exc:
            logger.warning("printing invoice failed: %s", exc)
            await _call(self.on_delivery_failure, exc)
            return self._error(exc)
        except BridgeError as exc:
            logger.warning("print request rejected: %s", exc)
            return self._error(exc)
        logger.info("printed invoice (%d bytes)", size)
        return Response(200, headers=PRINT_HEADERS)

    async def _return_to_app(self) -> Response:
        await _call(self.on_return_to_app)
        return Response(200, headers=CONTROL_HEADERS)

    @staticmethod
    def _error(exc: BridgeError) -> Response:
        return Response(exc.status, exc.reason.encode("ascii"), PRINT_HEADERS)
