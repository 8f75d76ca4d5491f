import pytest
from pydantic import ValidationError

from printbridge.app.models import Invoice, LineItem, VatLine, as_number, format_number


def test_camel_case_fields():
    inv = Invoice.model_validate(
        {
            "invoiceType": "Fature",
            "invNumber": "A-1",
            "totalPriceNoVat": 5.5,
            "qrCode": "https://x",
            "lines": [{"productName": "milk", "quantity": 1, "price": 2.5}],
            "vat": [{"vatType": "Standard", "amount": 1.1}],
        }
    )
    assert inv.invoice_type == "Fature"
    assert inv.inv_number == "A-1"
    assert inv.total_price_no_vat == 5.5
    assert inv.lines == (LineItem(product_name="milk", quantity=1, price=2.5),)
    assert inv.vat == (VatLine(vat_type="Standard", amount=1.1),)


def test_legacy_capitalised_keys():
    inv = Invoice.model_validate(
        {
            "Date": "2023-09-25",
            "FiscDateRange": "09/2023",
            "TaxPointDate": "2023-09-30",
            "Exrate": 1.5,
            "CustomerName": "John",
            "CustomerTin": "987",
            "Footer": "Bye",
        }
    )
    assert inv.date == "2023-09-25"
    assert inv.fiscal_date_range == "09/2023"
    assert inv.tax_point_date == "2023-09-30"
    assert inv.exchange_rate == 1.5
    assert inv.customer_fields == ["John", "987"]
    assert inv.footer == "Bye"


def test_ill_typed_values_become_none():
    inv = Invoice.model_validate(
        {
            "header": {"a": 1},
            "totalPrice": "abc",
            "totalDiscount": float("nan"),
            "lines": "nope",
            "vat": [1, {"vatType": "A", "amount": "2,5"}],
            "qrSize": [],
        }
    )
    assert inv.header is None
    assert inv.total_price is None
    assert inv.total_discount is None
    assert inv.lines == ()
    assert inv.vat == (VatLine(vat_type="A", amount=2.5),)
    assert inv.qr_size is None


def test_numbers_as_text():
    assert Invoice.model_validate({"invNumber": 15}).inv_number == "15"
    assert Invoice.model_validate({"invNumber": 15.0}).inv_number == "15"
    assert Invoice.model_validate({"tin": True}).tin is None


def test_large_integer_identifiers_stay_exact():
    inv = Invoice.model_validate(
        {"invNumber": 12345678901234567891, "customerTin": 98765432109876543210}
    )
    assert inv.inv_number == "12345678901234567891"
    assert inv.customer_tin == "98765432109876543210"


@pytest.mark.parametrize("value,expected", [("32", 32), (8, 8), (255, 255), (80.0, 80)])
def test_printer_width_in_range(value, expected):
    assert Invoice.model_validate({"printerWidth": value}).printer_width == expected


@pytest.mark.parametrize("value", [0, -3, 7, 256, 300000000, "huge", True])
def test_printer_width_out_of_range_is_ignored(value):
    assert Invoice.model_validate({"printerWidth": value}).printer_width is None


def test_line_printable_needs_quantity_and_price():
    assert LineItem.model_validate({"quantity": 1, "price": 0}).printable
    assert not LineItem.model_validate({"quantity": True, "price": 1}).printable
    assert not LineItem.model_validate({"productName": "x"}).printable
    assert not VatLine.model_validate({"vatType": "A"}).printable


def test_unknown_fields_ignored_and_model_frozen():
    inv = Invoice.model_validate({"header": "H", "somethingElse": 1})
    assert inv.header == "H"
    with pytest.raises(ValidationError):
        inv.header = "other"


@pytest.mark.parametrize(
    "value,expected",
    [(6.0, "6"), (7, "7"), (2.5, "2.5"), (1.1, "1.1"), (-3.0, "-3"), (0.0, "0")],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_as_number():
    assert as_number("2,5") == 2.5
    assert as_number(" 3 ") == 3.0
    assert as_number(False) is None
    assert as_number(float("inf")) is None
    assert as_number("x") is None
