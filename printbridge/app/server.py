"""asyncio TCP server for the print socket.

Each connection is served in arrival order: a chunk of bytes is read, topped
up until ``Content-Length`` is satisfied, dispatched, and answered with one
response. The connection then stays open for further requests.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import uuid

from .config import Settings, get_settings
from .dispatch import PrintDispatcher
from .framing import PRINT_HEADERS, Response, pending_body_bytes
from .metrics import serve_metrics
from .obs.logging import configure_logging, conn_id_ctx
from .printing.renderer import InvoiceRenderer, RenderOptions
from .transport import PrinterSession

logger = logging.getLogger("printbridge.server")

CHUNK_SIZE = 64 * 1024


async def read_request(
    reader: asyncio.StreamReader, first: bytes, max_bytes: int, timeout: float
) -> bytes:
    """Keep reading after ``first`` until the request looks complete.

    Gives up after ``timeout`` seconds of silence or once ``max_bytes`` is
    exceeded, returning whatever arrived.
    """
    data = first
    while len(data) <= max_bytes:
        pending = pending_body_bytes(data)
        if pending == 0:
            break
        try:
            more = await asyncio.wait_for(reader.read(pending or CHUNK_SIZE), timeout)
        except asyncio.TimeoutError:
            break
        if not more:
            break
        data += more
    return data


async def handle_connection(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    *,
    dispatcher: PrintDispatcher,
    max_request_bytes: int,
    read_timeout: float,
) -> None:
    token = conn_id_ctx.set(uuid.uuid4().hex[:8])
    peer = writer.get_extra_info("peername")
    logger.info("connection from %s", peer, extra={"peer": str(peer)})
    try:
        while True:
            chunk = await reader.read(CHUNK_SIZE)
            if not chunk:
                break
            data = await read_request(reader, chunk, max_request_bytes, read_timeout)
            if len(data) > max_request_bytes:
                logger.warning("request too large (%d bytes)", len(data))
                response = Response(400, b"request too large", PRINT_HEADERS)
            else:
                response = await dispatcher.handle(data)
            writer.write(response.to_bytes())
            await writer.drain()
    except ConnectionError as exc:
        logger.warning("socket error: %s", exc)
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except ConnectionError as exc:
            logger.debug("close: %s", exc)
        logger.info("socket closed")
        conn_id_ctx.reset(token)


def build_dispatcher(settings: Settings) -> PrintDispatcher:
    session = PrinterSession.from_url(
        settings.printer_url,
        timeout=settings.delivery_timeout,
        auto_connect=settings.auto_connect,
    )
    renderer = InvoiceRenderer(RenderOptions.from_settings(settings))
    return PrintDispatcher(session, renderer, default_width=settings.printer_width)


async def start_server(
    dispatcher: PrintDispatcher,
    host: str,
    port: int,
    *,
    max_request_bytes: int = 1024 * 1024,
    read_timeout: float = 2.0,
) -> asyncio.AbstractServer:
    handler = functools.partial(
        handle_connection,
        dispatcher=dispatcher,
        max_request_bytes=max_request_bytes,
        read_timeout=read_timeout,
    )
    return await asyncio.start_server(handler, host, port)


async def serve(settings: Settings) -> None:
    dispatcher = build_dispatcher(settings)
    server = await start_server(
        dispatcher,
        settings.host,
        settings.port,
        max_request_bytes=settings.max_request_bytes,
        read_timeout=settings.read_timeout,
    )
    addrs = ", ".join(str(s.getsockname()) for s in server.sockets)
    logger.info("TCP server listening on %s", addrs)
    try:
        async with server:
            await server.serve_forever()
    finally:
        await dispatcher.session.disconnect()
        logger.info("TCP server closed")


def run(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    configure_logging(settings.log_level.upper(), settings.log_json)
    serve_metrics(settings.metrics_port)
    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("interrupted")
