"""Tests for rsiradar.config — environment variable loading and validation."""

import pytest

from rsiradar.config import SYMBOL_CLASS_FUTURES, SYMBOL_CLASS_SPOT, load_config

_VARS = [
    "MARKET",
    "BINANCE_FUTURES_URL",
    "BINANCE_SPOT_URL",
    "PROXY_URL",
    "REQUEST_TIMEOUT_SECONDS",
    "MAX_RETRIES",
    "SCAN_CONCURRENCY",
    "SCAN_INTERVAL_MINUTES",
    "MAX_SYMBOLS",
    "LOG_LEVEL",
    "API_PORT",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Ensure RsiRadar env vars are cleared between tests."""
    for var in _VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def no_dotenv(tmp_path):
    """Path to a non-existent .env so load_dotenv can't re-populate vars."""
    return str(tmp_path / "nonexistent.env")


class TestLoadConfig:
    def test_defaults(self, no_dotenv):
        cfg = load_config(env_path=no_dotenv)
        assert cfg.market == "futures"
        assert cfg.proxy_url == ""
        assert cfg.request_timeout_seconds == 20.0
        assert cfg.max_retries == 0
        assert cfg.scan_concurrency == 15
        assert cfg.scan_interval_minutes == 60
        assert cfg.max_symbols == 0
        assert cfg.log_level == "INFO"
        assert cfg.api_port == 8080

    def test_futures_base_url(self, no_dotenv):
        cfg = load_config(env_path=no_dotenv)
        assert cfg.base_url == "https://fapi.binance.com/fapi/v1"
        assert cfg.symbol_class == SYMBOL_CLASS_FUTURES

    def test_spot_market(self, monkeypatch, no_dotenv):
        monkeypatch.setenv("MARKET", "SPOT")
        cfg = load_config(env_path=no_dotenv)
        assert cfg.market == "spot"
        assert cfg.base_url == "https://api.binance.com/api/v3"
        assert cfg.symbol_class == SYMBOL_CLASS_SPOT

    def test_overrides(self, monkeypatch, no_dotenv):
        monkeypatch.setenv("SCAN_CONCURRENCY", "5")
        monkeypatch.setenv("MAX_RETRIES", "2")
        monkeypatch.setenv("PROXY_URL", "https://cors.example.org/")
        cfg = load_config(env_path=no_dotenv)
        assert cfg.scan_concurrency == 5
        assert cfg.max_retries == 2
        assert cfg.proxy_url == "https://cors.example.org/"

    def test_reads_dotenv_file(self, monkeypatch, tmp_path):
        # Registers MAX_SYMBOLS with monkeypatch so teardown removes it again
        monkeypatch.setenv("MAX_SYMBOLS", "0")
        monkeypatch.delenv("MAX_SYMBOLS")
        env_file = tmp_path / ".env"
        env_file.write_text("MAX_SYMBOLS=25\n")
        cfg = load_config(env_path=str(env_file))
        assert cfg.max_symbols == 25

    def test_invalid_market(self, monkeypatch, no_dotenv):
        monkeypatch.setenv("MARKET", "options")
        with pytest.raises(ValueError, match="MARKET"):
            load_config(env_path=no_dotenv)

    def test_invalid_number_names_variable(self, monkeypatch, no_dotenv):
        monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "soon")
        with pytest.raises(ValueError, match="REQUEST_TIMEOUT_SECONDS"):
            load_config(env_path=no_dotenv)

    def test_zero_concurrency_rejected(self, monkeypatch, no_dotenv):
        monkeypatch.setenv("SCAN_CONCURRENCY", "0")
        with pytest.raises(ValueError, match="SCAN_CONCURRENCY"):
            load_config(env_path=no_dotenv)
