"""Wire schema for print requests.

Every field is optional. Values of the wrong type are normalised to ``None``
instead of failing validation, so a garbled invoice still prints whatever is
usable. Both the camelCase names and the capitalised keys sent by older
clients (``Date``, ``Exrate``, ``CustomerName`` ...) are accepted.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .config import MAX_WIDTH, MIN_WIDTH


def _alias(*names: str) -> Any:
    return Field(default=None, validation_alias=AliasChoices(*names))


def as_number(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` when it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", "."))
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def format_number(value: float) -> str:
    """Natural textual form of a number: ``6.0`` prints as ``6``, ``2.5`` as ``2.5``."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def as_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        # keep large identifiers exact
        return str(value)
    if isinstance(value, float):
        number = as_number(value)
        return None if number is None else format_number(number)
    return None


def _as_width(value: Any) -> Optional[int]:
    """Column count within the printer range, otherwise ``None``."""
    number = as_number(value)
    if number is None or not MIN_WIDTH <= number <= MAX_WIDTH:
        return None
    return int(number)


def _as_records(value: Any) -> list:
    if not isinstance(value, (list, tuple)):
        return []
    return [v for v in value if isinstance(v, dict)]


class _Schema(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class LineItem(_Schema):
    """One product line. Printed only when ``quantity`` and ``price`` are set."""

    product_name: Optional[str] = _alias("productName", "product_name")
    uom: Optional[str] = None
    quantity: Optional[float] = None
    price: Optional[float] = None
    full_price: Optional[float] = _alias("fullPrice", "full_price")
    discount_amount: Optional[float] = _alias("discountAmount", "discount_amount")

    @field_validator("product_name", "uom", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Optional[str]:
        return as_text(v)

    @field_validator("quantity", "price", "full_price", "discount_amount", mode="before")
    @classmethod
    def _number(cls, v: Any) -> Optional[float]:
        return as_number(v)

    @property
    def printable(self) -> bool:
        return self.quantity is not None and self.price is not None


class VatLine(_Schema):
    vat_type: Optional[str] = _alias("vatType", "vat_type")
    amount: Optional[float] = None

    @field_validator("vat_type", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Optional[str]:
        return as_text(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _number(cls, v: Any) -> Optional[float]:
        return as_number(v)

    @property
    def printable(self) -> bool:
        return self.vat_type is not None and self.amount is not None


TEXT_FIELDS = (
    "header",
    "invoice_type",
    "inv_number",
    "tin",
    "address",
    "fisc_string",
    "op_code",
    "bu_code",
    "date",
    "fiscal_date_range",
    "tax_point_date",
    "customer_name",
    "customer_tin",
    "customer_contact",
    "customer_address",
    "iic",
    "fic",
    "eic",
    "qr_code",
    "footer",
)

MONEY_FIELDS = ("total_price_no_vat", "total_discount", "total_price", "exchange_rate")


class Invoice(_Schema):
    """Invoice document as submitted to ``POST /print``."""

    header: Optional[str] = None
    invoice_type: Optional[str] = _alias("invoiceType", "invoice_type")
    inv_number: Optional[str] = _alias("invNumber", "inv_number")
    tin: Optional[str] = None
    address: Optional[str] = None
    fisc_string: Optional[str] = _alias("fiscString", "fisc_string")
    op_code: Optional[str] = _alias("opCode", "op_code")
    bu_code: Optional[str] = _alias("buCode", "bu_code")

    date: Optional[str] = _alias("date", "Date")
    fiscal_date_range: Optional[str] = _alias(
        "fiscalDateRange", "FiscDateRange", "fiscal_date_range"
    )
    tax_point_date: Optional[str] = _alias(
        "taxPointDate", "TaxPointDate", "tax_point_date"
    )

    lines: Tuple[LineItem, ...] = ()

    total_price_no_vat: Optional[float] = _alias("totalPriceNoVat", "total_price_no_vat")
    total_discount: Optional[float] = _alias("totalDiscount", "total_discount")
    total_price: Optional[float] = _alias("totalPrice", "total_price")
    exchange_rate: Optional[float] = _alias("exchangeRate", "Exrate", "exchange_rate")
    vat: Tuple[VatLine, ...] = ()

    customer_name: Optional[str] = _alias("customerName", "CustomerName", "customer_name")
    customer_tin: Optional[str] = _alias("customerTin", "CustomerTin", "customer_tin")
    customer_contact: Optional[str] = _alias(
        "customerContact", "CustomerContact", "customer_contact"
    )
    customer_address: Optional[str] = _alias(
        "customerAddress", "CustomerAddress", "customer_address"
    )

    iic: Optional[str] = _alias("IIC", "iic")
    fic: Optional[str] = _alias("FIC", "fic")
    eic: Optional[str] = _alias("EIC", "eic")

    qr_code: Optional[str] = _alias("qrCode", "qr_code")
    qr_size: Optional[int] = _alias("qrSize", "qr_size")
    footer: Optional[str] = _alias("footer", "Footer")
    printer_width: Optional[int] = _alias("printerWidth", "printer_width")

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def _text(cls, v: Any) -> Optional[str]:
        return as_text(v)

    @field_validator(*MONEY_FIELDS, mode="before")
    @classmethod
    def _number(cls, v: Any) -> Optional[float]:
        return as_number(v)

    @field_validator("qr_size", mode="before")
    @classmethod
    def _qr_size(cls, v: Any) -> Optional[int]:
        number = as_number(v)
        return None if number is None else int(number)

    @field_validator("printer_width", mode="before")
    @classmethod
    def _width(cls, v: Any) -> Optional[int]:
        return _as_width(v)

    @field_validator("lines", "vat", mode="before")
    @classmethod
    def _records(cls, v: Any) -> list:
        return _as_records(v)

    @property
    def customer_fields(self) -> list[str]:
        """Present customer fields in print order."""
        values = (
            self.customer_name,
            self.customer_tin,
            self.customer_contact,
            self.customer_address,
        )
        return [v for v in values if v]
