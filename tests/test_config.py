import logging

import pytest

from amsa_pos import config_db, format_rupiah
from amsa_pos.time_utils import format_period_id, is_valid_period, parse_period_param


def test_sheet_url_falls_back_to_default(monkeypatch):
    monkeypatch.delenv("SHEET_API_URL", raising=False)
    monkeypatch.setattr(config_db, "_DOTENV_VALUES", {})
    assert config_db.resolve_sheet_api_url() == config_db.DEFAULT_SCRIPT_URL

    # ditulis tapi kosong: tanpa endpoint, jadi Mode Demo
    monkeypatch.setenv("SHEET_API_URL", "   ")
    assert config_db.resolve_sheet_api_url() == ""

    monkeypatch.setenv("SHEET_API_URL", " https://script.google.com/macros/s/x/exec ")
    assert config_db.resolve_sheet_api_url() == "https://script.google.com/macros/s/x/exec"


@pytest.mark.parametrize("raw, expected", [("1", True), ("true", True), ("ON", True), ("0", False), ("", False)])
def test_demo_mode_flag(monkeypatch, raw, expected):
    monkeypatch.setenv("SHEET_DEMO_MODE", raw)
    assert config_db.resolve_demo_mode() is expected


@pytest.mark.parametrize("raw, expected", [("12", 12.0), ("abc", 30.0), ("-1", 30.0)])
def test_request_timeout(monkeypatch, raw, expected):
    monkeypatch.setenv("SHEET_TIMEOUT", raw)
    assert config_db.resolve_request_timeout() == expected


def test_log_level(monkeypatch):
    monkeypatch.setenv("APP_LOG_LEVEL", "debug")
    assert config_db.resolve_log_level() == logging.DEBUG
    monkeypatch.setenv("APP_LOG_LEVEL", "cerewet")
    assert config_db.resolve_log_level() == logging.INFO


def test_postgres_scheme_is_normalized(monkeypatch):
    monkeypatch.setenv("SQLALCHEMY_DATABASE_URI", "postgres://u:p@db/pos")
    assert config_db.resolve_database_uri() == "postgresql://u:p@db/pos"


def test_format_rupiah():
    assert format_rupiah(1500000) == "Rp 1.500.000"
    assert format_rupiah(-2500) == "-Rp 2.500"
    assert format_rupiah(None) == "Rp 0"


def test_period_helpers():
    assert is_valid_period("2025-01")
    assert not is_valid_period("2025-13")
    assert not is_valid_period("Jan 2025")
    assert parse_period_param("2025-02") == "2025-02"
    assert parse_period_param("xx", default="2025-03") == "2025-03"
    assert format_period_id("2025-01") == "Januari 2025"
    assert format_period_id(None) == "Semua Periode"
