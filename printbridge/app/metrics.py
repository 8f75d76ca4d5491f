# metrics.py

"""Prometheus metrics for the print bridge."""

from __future__ import annotations

import logging

from prometheus_client import Counter, Gauge, Histogram, start_http_server

logger = logging.getLogger("printbridge.metrics")

print_requests_total = Counter(
    "print_requests_total", "Total framed requests handled", ["route", "status"]
)

invoice_render_seconds = Histogram(
    "invoice_render_seconds", "Time spent rendering one invoice"
)

print_delivery_failures_total = Counter(
    "print_delivery_failures_total", "Printer writes that failed", ["reason"]
)
for _reason in ("timeout", "io", "not_connected"):
    print_delivery_failures_total.labels(reason=_reason).inc(0)

printer_connected = Gauge("printer_connected", "1 while a printer link is open")
printer_connected.set(0)


def serve_metrics(port: int | None) -> None:
    """Expose ``/metrics`` on ``port`` in a background thread, if configured."""
    if not port:
        return
    start_http_server(port)
    logger.info("metrics listening on :%d", port)
