"""
Tests for the command line entry point.
"""

import json
import logging
from pathlib import Path

import pytest

from geoprice.main import main, parse_args


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch) -> Path:
    """Config pointing at a settings file with a CA override on product 42."""
    monkeypatch.delenv("IPINFO_API_KEY", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)

    settings_file = tmp_path / "pricing_settings.json"
    settings_file.write_text(
        json.dumps(
            {
                "exchange_rates": '{"CA": 1.3}',
                "currency_map": '{"CA": "CAD"}',
                "country_css": "{}",
                "price_overrides": {"42": {"_price_CA": "10"}},
            }
        )
    )

    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"paths:\n  settings_file: {settings_file}\n")
    return config_path


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    saved = (root.level, list(root.handlers))
    yield
    root.handlers[:] = saved[1]
    root.setLevel(saved[0])


class TestParseArgs:
    def test_quote_arguments(self) -> None:
        args = parse_args(["quote", "-p", "42", "-b", "8", "--country", "CA"])

        assert args.command == "quote"
        assert args.product == "42"
        assert args.base_price == "8"
        assert args.country == "CA"
        assert args.ip == ""

    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            parse_args([])


class TestQuote:
    def test_quote_with_selected_country(self, config_file: Path, capsys) -> None:
        code = main(["--config", str(config_file), "quote", "-p", "42", "-b", "8", "--country", "ca"])

        out = capsys.readouterr().out
        assert code == 0
        assert "Country:          CA" in out
        assert "13.0 CAD" in out

    def test_quote_without_country_uses_base_price(self, config_file: Path, capsys) -> None:
        code = main(["--config", str(config_file), "quote", "-p", "42", "-b", "8"])

        out = capsys.readouterr().out
        assert code == 0
        assert "(unresolved)" in out
        assert "8 USD" in out

    def test_invalid_base_price(self, config_file: Path, capsys) -> None:
        code = main(["--config", str(config_file), "quote", "-p", "42", "-b", "eight"])

        assert code == 1
        assert "invalid base price" in capsys.readouterr().out
