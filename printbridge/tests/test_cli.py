import json

import pytest

import start_bridge
from printbridge.app.printing.renderer import render_invoice


@pytest.fixture(autouse=True)
def quiet(monkeypatch, fresh_settings):
    monkeypatch.setattr(start_bridge, "configure_logging", lambda *a, **k: None)
    monkeypatch.setattr(start_bridge, "load_dotenv", lambda: None)


@pytest.fixture
def invoice_file(tmp_path, sample_invoice):
    path = tmp_path / "invoice.json"
    path.write_text(json.dumps(sample_invoice), encoding="utf-8")
    return path


def test_render_text(invoice_file, capsys):
    assert start_bridge.main(["render", str(invoice_file), "--text"]) == 0
    out = capsys.readouterr().out
    assert "Nr. Fatures: 15" in out
    assert "[QR:https://x]" in out


def test_render_raw_bytes_to_file(invoice_file, tmp_path, sample_invoice):
    out = tmp_path / "ticket.bin"
    assert start_bridge.main(["render", str(invoice_file), "--width", "32", "--out", str(out)]) == 0
    assert out.read_bytes() == render_invoice(sample_invoice, 32)


def test_render_png_preview(invoice_file, tmp_path):
    png = tmp_path / "ticket.png"
    assert start_bridge.main(["render", str(invoice_file), "--preview", str(png)]) == 0
    assert png.read_bytes().startswith(b"\x89PNG")


def test_render_errors(tmp_path, capsys):
    assert start_bridge.main(["render", str(tmp_path / "missing.json")]) == 1
    assert "cannot read invoice" in capsys.readouterr().err

    not_invoice = tmp_path / "list.json"
    not_invoice.write_text("[1, 2]")
    assert start_bridge.main(["render", str(not_invoice)]) == 1
    assert "invoice could not be rendered" in capsys.readouterr().err


def test_serve_applies_overrides(monkeypatch):
    for name in ("HOST", "PORT", "PRINTER_URL", "PRINTER_WIDTH"):
        monkeypatch.delenv("PRINT_BRIDGE_" + name, raising=False)
    started = []
    monkeypatch.setattr(start_bridge, "run", started.append)

    assert start_bridge.main(["serve", "--port", "4555", "--printer", "tcp://10.0.0.2"]) == 0
    settings = started[0]
    assert settings.port == 4555
    assert settings.printer_url == "tcp://10.0.0.2"


def test_serve_is_the_default_command(monkeypatch):
    started = []
    monkeypatch.setattr(start_bridge, "run", started.append)
    assert start_bridge.main([]) == 0
    assert len(started) == 1
