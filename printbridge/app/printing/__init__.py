"""ESC/POS ticket composition."""

from .layout import center_wrap, left_right, wrap, wrap_text  # re-export
from .renderer import InvoiceRenderer, Labels, RenderOptions, render_invoice

__all__ = [
    "InvoiceRenderer",
    "Labels",
    "RenderOptions",
    "center_wrap",
    "left_right",
    "render_invoice",
    "wrap",
    "wrap_text",
]
