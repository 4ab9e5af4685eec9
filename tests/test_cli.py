"""Tests for the command-line interface."""

import json

import pytest

from storefront.api import app
from storefront.cli import main


@pytest.fixture(autouse=True)
def quiet_env(monkeypatch):
    monkeypatch.setenv("STOREFRONT_LOG_LEVEL", "WARNING")
    monkeypatch.delenv("STOREFRONT_SEED", raising=False)


class TestCLI:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_markets(self, capsys):
        assert main(["markets"]) == 0
        out = capsys.readouterr().out
        assert "market-a: Market A" in out

    def test_markets_json(self, capsys):
        assert main(["markets", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [m["id"] for m in data] == ["market-a", "market-b", "market-c"]

    def test_products(self, capsys):
        assert main(["products", "market-a"]) == 0
        out = capsys.readouterr().out
        assert "Market A" in out
        assert "Rice" in out

    def test_products_search_json(self, capsys):
        assert main(["products", "market-b", "--query", "dairy", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data
        assert all(p["category"] == "Dairy" for p in data)
        assert all("final_price" in p for p in data)

    def test_unknown_market_fails(self, capsys):
        assert main(["products", "market-z"]) == 1
        assert "Market not found: market-z" in capsys.readouterr().err

    def test_invalid_setting_fails(self, monkeypatch, capsys):
        monkeypatch.setenv("STOREFRONT_RESERVATION_ATTEMPTS", "zero")
        assert main(["markets"]) == 1
        assert "STOREFRONT_RESERVATION_ATTEMPTS" in capsys.readouterr().err

    def test_unseeded_database_has_no_markets(self, monkeypatch, capsys):
        monkeypatch.setenv("STOREFRONT_SEED", "0")
        assert main(["markets"]) == 0
        assert "No markets." in capsys.readouterr().out

    def test_report_is_served_by_the_api_only(self, capsys):
        with pytest.raises(SystemExit):
            main(["report", "market-a"])
        assert "invalid choice" in capsys.readouterr().err

    def test_serve_runs_the_api_app(self, monkeypatch, capsys):
        calls = []
        monkeypatch.setattr("uvicorn.run", lambda target, **kwargs: calls.append((target, kwargs)))

        assert main(["serve", "--port", "9001"]) == 0

        assert calls == [(app, {"host": "127.0.0.1", "port": 9001, "reload": False, "workers": 1})]
