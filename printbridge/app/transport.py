"""Printer links and the session handle that owns them.

The session is passed explicitly to whoever needs to print; there is no
module-level "current printer". A write either completes within the session
timeout or raises :class:`~printbridge.app.errors.DeliveryFailure`, after which
the link is closed. Failed jobs are never retried here.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Callable, Optional, Protocol
from urllib.parse import urlparse

from .errors import DeliveryFailure, DeliveryTimeout, PrinterNotConnected
from .metrics import print_delivery_failures_total, printer_connected

logger = logging.getLogger("printbridge.transport")

RAW_PRINT_PORT = 9100
CLOSE_TIMEOUT = 1.0


class PrinterTransport(Protocol):
    name: str

    async def open(self) -> None: ...

    async def write(self, data: bytes) -> None: ...

    async def close(self) -> None: ...


class TcpPrinterTransport:
    """Network printer on its raw print port (JetDirect style, 9100)."""

    def __init__(self, host: str, port: int = RAW_PRINT_PORT) -> None:
        self.host = host
        self.port = port
        self.name = f"tcp://{host}:{port}"
        self._writer: Optional[asyncio.StreamWriter] = None

    async def open(self) -> None:
        _, self._writer = await asyncio.open_connection(self.host, self.port)

    async def write(self, data: bytes) -> None:
        if self._writer is None:
            raise ConnectionError(f"{self.name} is not open")
        self._writer.write(data)
        await self._writer.drain()

    async def close(self) -> None:
        writer, self._writer = self._writer, None
        if writer is None:
            return
        writer.close()
        try:
            # unsent data keeps the socket open while the printer is stalled
            await asyncio.wait_for(writer.wait_closed(), CLOSE_TIMEOUT)
        except asyncio.TimeoutError:
            logger.debug("close %s timed out, aborting", self.name)
            writer.transport.abort()
        except OSError as exc:
            logger.debug("close %s: %s", self.name, exc)


class FilePrinterTransport:
    """Printer exposed as a device file, e.g. ``/dev/usb/lp0``.

    Writes poll the non-blocking descriptor on the event loop; a stalled
    device (paper out, offline) leaves the write pending until the session
    timeout cancels it.
    """

    poll_interval = 0.02

    def __init__(self, path: str) -> None:
        self.path = path
        self.name = f"file://{path}"
        self._fd: Optional[int] = None

    async def open(self) -> None:
        flags = os.O_WRONLY | os.O_CREAT | os.O_APPEND | os.O_NONBLOCK
        self._fd = os.open(self.path, flags, 0o644)

    async def write(self, data: bytes) -> None:
        view = memoryview(data)
        while view:
            if self._fd is None:
                raise ConnectionError(f"{self.name} is not open")
            try:
                sent = os.write(self._fd, view)
            except BlockingIOError:
                await asyncio.sleep(self.poll_interval)
                continue
            view = view[sent:]

    async def close(self) -> None:
        fd, self._fd = self._fd, None
        if fd is not None:
            os.close(fd)


def transport_from_url(url: str) -> PrinterTransport:
    """Build a transport from ``tcp://host[:port]`` or ``file:///path``."""
    parsed = urlparse(url)
    if parsed.scheme == "tcp" and parsed.hostname:
        return TcpPrinterTransport(parsed.hostname, parsed.port or RAW_PRINT_PORT)
    if parsed.scheme == "file" and parsed.path:
        return FilePrinterTransport(parsed.path)
    raise ValueError(f"unsupported printer url: {url!r}")


class PrinterSession:
    """Explicit handle to the printer link.

    ``factory`` creates a fresh transport each time a link is opened; ``None``
    means no printer is configured and every delivery fails with
    :class:`PrinterNotConnected`. Writes from concurrent connections are
    serialised so tickets never interleave.
    """

    def __init__(
        self,
        factory: Optional[Callable[[], PrinterTransport]] = None,
        *,
        timeout: float = 5.0,
        auto_connect: bool = True,
    ) -> None:
        self.factory = factory
        self.timeout = timeout
        self.auto_connect = auto_connect
        self._transport: Optional[PrinterTransport] = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_url(cls, url: Optional[str], **kwargs) -> "PrinterSession":
        if not url:
            return cls(None, **kwargs)
        transport_from_url(url)  # fail fast on a bad url
        return cls(lambda: transport_from_url(url), **kwargs)

    @property
    def connected(self) -> bool:
        return self._transport is not None

    async def connect(self) -> None:
        if self.connected:
            return
        if self.factory is None:
            raise PrinterNotConnected("no printer configured")
        transport = self.factory()
        try:
            await asyncio.wait_for(transport.open(), self.timeout)
        except (OSError, asyncio.TimeoutError) as exc:
            raise PrinterNotConnected(f"cannot open {transport.name}: {exc!r}") from exc
        self._transport = transport
        printer_connected.set(1)
        logger.info("printer connected: %s", transport.name)

    async def disconnect(self) -> None:
        transport, self._transport = self._transport, None
        printer_connected.set(0)
        if transport is None:
            return
        try:
            await transport.close()
        except OSError as exc:
            logger.warning("error closing %s: %s", transport.name, exc)
        logger.info("printer disconnected: %s", transport.name)

    async def deliver(self, data: bytes) -> None:
        """Write one fully rendered ticket to the printer."""
        async with self._lock:
            try:
                await self._deliver(data)
            except DeliveryFailure as exc:
                print_delivery_failures_total.labels(reason=exc.metric_reason).inc()
                raise

    async def _deliver(self, data: bytes) -> None:
        if not self.connected:
            if not self.auto_connect:
                raise PrinterNotConnected("printer link is down")
            await self.connect()
        transport = self._transport
        try:
            await asyncio.wait_for(transport.write(data), self.timeout)
        except asyncio.TimeoutError as exc:
            await self.disconnect()
            raise DeliveryTimeout(f"print timeout after {self.timeout}s") from exc
        except OSError as exc:
            await self.disconnect()
            raise DeliveryFailure(f"write to {transport.name} failed: {exc!r}") from exc
        except asyncio.CancelledError:
            await self.disconnect()
            raise
        logger.info("delivered %d bytes to %s", len(data), transport.name)
