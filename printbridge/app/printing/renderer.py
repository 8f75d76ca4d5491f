"""Turn an :class:`~printbridge.app.models.Invoice` into an ESC/POS ticket.

Sections are emitted in a fixed order and each one is skipped when its fields
are missing. The renderer keeps no state between calls: the same invoice and
width always produce the same bytes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..config import DEFAULT_WIDTH, Settings
from ..models import Invoice, LineItem, format_number
from . import escpos
from .layout import center_wrap, left_right, wrap_text

logger = logging.getLogger("printbridge.render")


@dataclass(frozen=True)
class Labels:
    """Receipt captions. Defaults are the Albanian fiscal receipt wording."""

    invoice_number: str = "Nr. Fatures: "
    business_unit: str = "Njesia e Biznesit: "
    operator: str = "Kodi Operatorit: "
    date: str = "Data: "
    fiscal_date_range: str = "Periudha e faturimit: "
    tax_point_date: str = "Tax point date: "
    total_no_vat: str = "SHUMA PA TVSH"
    total_discount: str = "ZBRITJA TOTALE"
    vat_prefix: str = "TVSH "
    exchange_rate: str = "Kursi i kembimit"
    total: str = "SHUMA Leke"
    currency: str = "L"


@dataclass(frozen=True)
class RenderOptions:
    width: int = DEFAULT_WIDTH
    encoding: str = "latin-1"
    labels: Labels = field(default_factory=Labels)
    fiscal_codes: Tuple[str, ...] = ("IIC", "FIC", "EIC")
    show_exchange_rate: bool = False
    qr_size: int = 7
    cut_paper: bool = False
    trailer_lines: int = 4

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "RenderOptions":
        values = dict(
            width=settings.printer_width,
            encoding=settings.encoding,
            fiscal_codes=tuple(settings.fiscal_codes),
            show_exchange_rate=settings.show_exchange_rate,
            qr_size=settings.qr_size,
            cut_paper=settings.cut_paper,
        )
        values.update(overrides)
        return cls(**values)


class _Ticket:
    """Byte buffer for one render call; text is encoded as it is added."""

    def __init__(self, encoding: str) -> None:
        self.encoding = encoding
        self._parts: List[bytes] = []

    def command(self, data: bytes) -> None:
        self._parts.append(data)

    def text(self, text: str) -> None:
        self._parts.append(text.encode(self.encoding, errors="replace"))

    def line(self, text: str) -> None:
        self.text(text + "\n")

    def encode(self, text: str) -> bytes:
        return text.encode(self.encoding, errors="replace")

    def to_bytes(self) -> bytes:
        return b"".join(self._parts)


class InvoiceRenderer:
    """Compose the full command stream for an invoice.

    :meth:`render` never raises. Anything that is not an invoice document is
    logged and yields ``b""`` so nothing reaches the printer.
    """

    def __init__(self, options: Optional[RenderOptions] = None) -> None:
        self.options = options or RenderOptions()

    def render(self, invoice: Any, width: Optional[int] = None) -> bytes:
        try:
            doc = self._coerce(invoice)
            if doc is None:
                return b""
            return self._render(doc, self._width(doc, width))
        except Exception:
            logger.exception("invoice render failed")
            return b""

    def _coerce(self, invoice: Any) -> Optional[Invoice]:
        if isinstance(invoice, Invoice):
            return invoice
        if isinstance(invoice, Mapping):
            try:
                return Invoice.model_validate(dict(invoice))
            except ValidationError as exc:
                logger.error("invoice rejected: %s", exc.errors()[:1])
                return None
        logger.error("invalid invoice data received: %s", type(invoice).__name__)
        return None

    def _width(self, doc: Invoice, width: Optional[int]) -> int:
        return doc.printer_width or width or self.options.width or DEFAULT_WIDTH

    def _render(self, doc: Invoice, width: int) -> bytes:
        t = _Ticket(self.options.encoding)
        self._header(t, doc, width)
        self._invoice_type(t, doc)
        t.command(escpos.reset())
        self._metadata(t, doc, width)
        t.text(escpos.dotted_line(width))
        self._lines(t, doc, width)
        self._totals(t, doc, width)
        t.command(escpos.reset())
        self._customer(t, doc, width)
        t.command(escpos.add_breaks(1))
        self._qr(t, doc)
        self._fiscal_codes(t, doc, width)
        if doc.footer:
            t.line(center_wrap(doc.footer, width))
        t.command(escpos.add_breaks(self.options.trailer_lines))
        if self.options.cut_paper:
            t.command(escpos.cut())
        return t.to_bytes()

    def _header(self, t: _Ticket, doc: Invoice, width: int) -> None:
        t.command(escpos.center_text())
        for value in (doc.header, doc.tin, doc.address):
            if value:
                t.line(wrap_text(value, width))

    def _invoice_type(self, t: _Ticket, doc: Invoice) -> None:
        if not doc.invoice_type:
            return
        t.command(escpos.bold_text())
        t.command(escpos.set_text_size(1))
        t.line(doc.invoice_type)
        t.command(escpos.reset())

    def _metadata(self, t: _Ticket, doc: Invoice, width: int) -> None:
        labels = self.options.labels
        rows = (
            (labels.invoice_number, doc.inv_number),
            ("", doc.fisc_string),
            (labels.business_unit, doc.bu_code),
            (labels.operator, doc.op_code),
            (labels.date, doc.date),
            (labels.fiscal_date_range, doc.fiscal_date_range),
            (labels.tax_point_date, doc.tax_point_date),
        )
        for label, value in rows:
            if value is not None:
                t.line(wrap_text(label + value, width))

    def _lines(self, t: _Ticket, doc: Invoice, width: int) -> None:
        printed = [line for line in doc.lines if line.printable]
        for line in printed:
            self._line_item(t, line, width)
        if printed:
            t.text(escpos.dotted_line(width))

    def _line_item(self, t: _Ticket, line: LineItem, width: int) -> None:
        cur = self.options.labels.currency
        left = f"{format_number(line.quantity)}  {line.uom or ''}  x {line.price:.2f}{cur}"
        if line.full_price is not None:
            t.line(left_right(left, f"{line.full_price:.2f}{cur}", width))
        else:
            t.line(wrap_text(left, width))

        name = line.product_name or ""
        if line.discount_amount is not None:
            # not clamped: a discount above the line price prints as is
            after = (line.full_price or 0) - line.discount_amount
            right = f" -{format_number(line.discount_amount)}{cur} {format_number(after)}{cur}"
            t.line(left_right(name, right, width))
        else:
            t.line(left_right(name, "", width))

    def _money(self, value: float) -> str:
        return format_number(value) + self.options.labels.currency

    def _totals(self, t: _Ticket, doc: Invoice, width: int) -> None:
        labels = self.options.labels
        if doc.total_price_no_vat is not None:
            t.line(left_right(labels.total_no_vat, self._money(doc.total_price_no_vat), width))
        if doc.total_discount is not None:
            t.line(left_right(labels.total_discount, self._money(doc.total_discount), width))
        for vat in doc.vat:
            if vat.printable:
                t.line(left_right(labels.vat_prefix + vat.vat_type, self._money(vat.amount), width))
        if self.options.show_exchange_rate and doc.exchange_rate is not None:
            t.line(left_right(labels.exchange_rate, format_number(doc.exchange_rate), width))
        if doc.total_price is not None:
            t.command(escpos.bold_text())
            t.line(left_right(labels.total, self._money(doc.total_price), width))
            t.command(escpos.reset())

    def _customer(self, t: _Ticket, doc: Invoice, width: int) -> None:
        fields = doc.customer_fields
        if fields:
            t.line(center_wrap("\n".join(fields), width))

    def _qr(self, t: _Ticket, doc: Invoice) -> None:
        if not doc.qr_code:
            return
        size = doc.qr_size if doc.qr_size is not None else self.options.qr_size
        t.command(escpos.print_qr_code(t.encode(doc.qr_code), size))

    def _fiscal_codes(self, t: _Ticket, doc: Invoice, width: int) -> None:
        for code in self.options.fiscal_codes:
            value = getattr(doc, code.lower(), None)
            if value:
                t.line(center_wrap(f"{code}:{value}", width))


def render_invoice(
    invoice: Any, width: Optional[int] = None, options: Optional[RenderOptions] = None
) -> bytes:
    """Render ``invoice`` with a throwaway :class:`InvoiceRenderer`."""
    return InvoiceRenderer(options).render(invoice, width)
