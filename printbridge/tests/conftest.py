import asyncio
import os

import pytest

from printbridge.app.config import get_settings
from printbridge.app.transport import PrinterSession

# Keep tests independent of a local config.json
os.environ.setdefault("PRINT_BRIDGE_CONFIG", "tests-no-config.json")


class FakeTransport:
    """In-memory printer link recording every ticket."""

    def __init__(self, fail: Exception | None = None, delay: float = 0.0) -> None:
        self.name = "fake://printer"
        self.fail = fail
        self.delay = delay
        self.opened = 0
        self.closed = 0
        self.written: list[bytes] = []

    async def open(self) -> None:
        self.opened += 1

    async def write(self, data: bytes) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail is not None:
            raise self.fail
        self.written.append(data)

    async def close(self) -> None:
        self.closed += 1


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def printer() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def session(printer: FakeTransport) -> PrinterSession:
    return PrinterSession(lambda: printer, timeout=0.5)


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield get_settings
    get_settings.cache_clear()


@pytest.fixture
def sample_invoice() -> dict:
    return {
        "invNumber": 15,
        "lines": [
            {
                "productName": "milk",
                "quantity": 1,
                "price": 2.5,
                "fullPrice": 2.5,
                "uom": "pc",
            }
        ],
        "totalPrice": 2.5,
        "qrCode": "https://x",
        "footer": "Thanks",
    }
