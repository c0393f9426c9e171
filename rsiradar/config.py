"""RsiRadar — application configuration.

Loads .env variables into a typed config object.
Every variable has a default; malformed values are rejected on startup.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


_MARKETS = ("futures", "spot")

SYMBOL_CLASS_FUTURES = "FUTURES"
SYMBOL_CLASS_SPOT = "SPOT"


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    market: str  # "futures" or "spot"
    futures_base_url: str
    spot_base_url: str
    proxy_url: str
    request_timeout_seconds: float
    max_retries: int
    scan_concurrency: int
    scan_interval_minutes: int
    max_symbols: int  # 0 = scan every listed symbol
    log_level: str
    api_port: int

    @property
    def base_url(self) -> str:
        """Return the Binance REST base URL for the configured market."""
        if self.market == "spot":
            return self.spot_base_url
        return self.futures_base_url

    @property
    def symbol_class(self) -> str:
        """Return the label attached to every symbol scanned on this market."""
        return SYMBOL_CLASS_SPOT if self.market == "spot" else SYMBOL_CLASS_FUTURES


def _env_number(name: str, default: str, cast):
    raw = os.environ.get(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from None


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` naming the offending variable when a value cannot
    be parsed or ``MARKET`` is not one of ``futures`` / ``spot``.
    """
    load_dotenv(dotenv_path=env_path)

    market = os.environ.get("MARKET", "futures").strip().lower()
    if market not in _MARKETS:
        raise ValueError(
            f"Invalid value for MARKET: {market!r} "
            f"(expected one of: {', '.join(_MARKETS)})"
        )

    concurrency = _env_number("SCAN_CONCURRENCY", "15", int)
    if concurrency < 1:
        raise ValueError(f"Invalid value for SCAN_CONCURRENCY: {concurrency!r}")

    return Config(
        market=market,
        futures_base_url=os.environ.get(
            "BINANCE_FUTURES_URL", "https://fapi.binance.com/fapi/v1"
        ),
        spot_base_url=os.environ.get(
            "BINANCE_SPOT_URL", "https://api.binance.com/api/v3"
        ),
        proxy_url=os.environ.get("PROXY_URL", ""),
        request_timeout_seconds=_env_number("REQUEST_TIMEOUT_SECONDS", "20", float),
        max_retries=_env_number("MAX_RETRIES", "0", int),
        scan_concurrency=concurrency,
        scan_interval_minutes=_env_number("SCAN_INTERVAL_MINUTES", "60", int),
        max_symbols=_env_number("MAX_SYMBOLS", "0", int),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        api_port=_env_number("API_PORT", "8080", int),
    )
