import json

import pytest
from pydantic import ValidationError

from printbridge.app.config import Settings, is_single_byte
from printbridge.app.printing.renderer import RenderOptions


def test_defaults(fresh_settings):
    settings = fresh_settings()
    assert settings.port == 4000
    assert settings.printer_width == 48
    assert settings.encoding == "latin-1"
    assert settings.fiscal_codes == ["IIC", "FIC", "EIC"]
    assert settings.printer_url is None


def test_settings_are_cached(fresh_settings):
    assert fresh_settings() is fresh_settings()


def test_environment_overrides(monkeypatch, fresh_settings):
    monkeypatch.setenv("PRINT_BRIDGE_PORT", "5000")
    monkeypatch.setenv("PRINT_BRIDGE_PRINTER_URL", "tcp://10.0.0.9")
    monkeypatch.setenv("PRINT_BRIDGE_FISCAL_CODES", "iic, EIC")
    settings = fresh_settings()
    assert settings.port == 5000
    assert settings.printer_url == "tcp://10.0.0.9"
    assert settings.fiscal_codes == ["IIC", "EIC"]


def test_json_file_merged_under_environment(tmp_path, monkeypatch, fresh_settings):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"printer_width": 32, "port": 4100, "cut_paper": True}))
    monkeypatch.setenv("PRINT_BRIDGE_CONFIG", str(path))
    monkeypatch.setenv("PRINT_BRIDGE_PORT", "4200")
    settings = fresh_settings()
    assert settings.printer_width == 32
    assert settings.cut_paper is True
    assert settings.port == 4200


def test_fiscal_codes_as_json_list(monkeypatch, fresh_settings):
    monkeypatch.setenv("PRINT_BRIDGE_FISCAL_CODES", '["FIC"]')
    assert fresh_settings().fiscal_codes == ["FIC"]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"encoding": "utf-8"},
        {"encoding": "no-such-codec"},
        {"printer_width": 4},
        {"fiscal_codes": ["IIC", "XYZ"]},
        {"delivery_timeout": 0},
    ],
)
def test_invalid_settings_rejected(kwargs):
    with pytest.raises(ValidationError):
        Settings(**kwargs)


def test_is_single_byte():
    assert is_single_byte("latin-1")
    assert is_single_byte("cp437")
    assert is_single_byte("cp1252")
    assert not is_single_byte("utf-8")
    assert not is_single_byte("utf-16")
    assert not is_single_byte("nope")


def test_render_options_from_settings():
    settings = Settings(
        printer_width=40, encoding="cp1252", fiscal_codes=["IIC"], show_exchange_rate=True
    )
    options = RenderOptions.from_settings(settings, trailer_lines=6)
    assert options.width == 40
    assert options.encoding == "cp1252"
    assert options.fiscal_codes == ("IIC",)
    assert options.show_exchange_rate is True
    assert options.trailer_lines == 6
