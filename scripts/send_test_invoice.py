#!/usr/bin/env python3
"""Post a sample invoice to a running print bridge.

Usage::

    python scripts/send_test_invoice.py --url http://127.0.0.1:4000 --width 32

Exits non-zero when the bridge does not answer ``200``.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any

import httpx

SAMPLE_INVOICE: dict[str, Any] = {
    "invoiceType": "Fature Shitje",
    "header": "Invoice Header",
    "invNumber": 15,
    "tin": "123456789",
    "address": "123 Main Street",
    "fiscString": "Fiscal Info",
    "opCode": "OP01",
    "buCode": "BU01",
    "date": "2023-09-25",
    "lines": [
        {"productName": "qumesht", "quantity": 1, "price": 2.5, "fullPrice": 2.5,
         "discountAmount": 0, "uom": "Cope"},
        {"productName": "vaj", "quantity": 2, "price": 1.5, "fullPrice": 3.0,
         "discountAmount": 0, "uom": "Litra"},
    ],
    "totalPriceNoVat": 5.5,
    "vat": [{"vatType": "Standard", "amount": 1.1}],
    "totalDiscount": 0,
    "totalPrice": 6.6,
    "exchangeRate": 1,
    "customerName": "John Doe",
    "customerTin": "987654321",
    "customerContact": "555-1234",
    "customerAddress": "456 Other St",
    "qrCode": "https://example.com/invoice/123",
    "qrSize": 8,
    "IIC": "IICDATA",
    "FIC": "FICDATA",
    "footer": "Thank you for your purchase!",
}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--url", default="http://127.0.0.1:4000")
    parser.add_argument("--width", type=int, help="override printerWidth")
    parser.add_argument("--timeout", type=float, default=10.0)
    args = parser.parse_args(argv)

    invoice = dict(SAMPLE_INVOICE)
    if args.width:
        invoice["printerWidth"] = args.width
    try:
        resp = httpx.post(args.url.rstrip("/") + "/print", json=invoice, timeout=args.timeout)
    except httpx.HTTPError as exc:
        print(f"bridge unreachable: {exc}", file=sys.stderr)
        return 2
    print(f"{resp.status_code} {resp.text}".strip())
    return 0 if resp.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
