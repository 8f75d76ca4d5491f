# start_bridge.py
"""Run the print bridge, or render an invoice file without a printer."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from printbridge.app.config import ENV_PREFIX, get_settings
from printbridge.app.obs.logging import configure_logging
from printbridge.app.printing.preview import render_preview_png, strip_commands
from printbridge.app.printing.renderer import InvoiceRenderer, RenderOptions
from printbridge.app.server import run


def _serve(args: argparse.Namespace) -> int:
    overrides = {
        "HOST": args.host,
        "PORT": args.port,
        "PRINTER_URL": args.printer,
        "PRINTER_WIDTH": args.width,
    }
    for name, value in overrides.items():
        if value is not None:
            os.environ[ENV_PREFIX + name] = str(value)
    get_settings.cache_clear()
    run(get_settings())
    return 0


def _render(args: argparse.Namespace) -> int:
    settings = get_settings()
    configure_logging(settings.log_level.upper(), settings.log_json)
    try:
        payload = json.loads(Path(args.invoice).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        print(f"cannot read invoice: {exc}", file=sys.stderr)
        return 1

    renderer = InvoiceRenderer(RenderOptions.from_settings(settings))
    stream = renderer.render(payload, args.width)
    if not stream:
        print("invoice could not be rendered", file=sys.stderr)
        return 1

    text = strip_commands(stream, settings.encoding)
    if args.preview:
        Path(args.preview).write_bytes(render_preview_png(text))
    if args.out:
        Path(args.out).write_bytes(stream)
    elif args.text:
        sys.stdout.write(text)
    elif not args.preview:
        sys.stdout.buffer.write(stream)
        sys.stdout.buffer.flush()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Load ``.env``, then serve (default) or render one invoice."""

    parser = argparse.ArgumentParser(description="ESC/POS invoice print bridge")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="listen for print requests (default)")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.add_argument("--printer", help="tcp://host:9100 or file:///dev/usb/lp0")
    serve.add_argument("--width", type=int, help="default columns per line")
    serve.set_defaults(func=_serve)

    render = sub.add_parser("render", help="render an invoice JSON file")
    render.add_argument("invoice", help="path to the invoice JSON")
    render.add_argument("--width", type=int)
    render.add_argument("--out", help="write raw printer bytes to this file")
    render.add_argument("--text", action="store_true", help="print a text preview")
    render.add_argument("--preview", help="write a PNG preview to this file")
    render.set_defaults(func=_render)

    load_dotenv()  # load environment variables from a .env file

    args = parser.parse_args(argv)
    if args.command is None:
        args = parser.parse_args(["serve", *(argv or [])])
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
