"""Binance REST API async client.

Handles symbol listing and kline fetching for USDⓈ-M futures or spot,
optionally through a URL-prefix proxy.
"""

import asyncio
import logging
from typing import Any, Optional

import httpx

from rsiradar.config import SYMBOL_CLASS_SPOT, Config
from rsiradar.errors import MarketDataError
from rsiradar.market.models import Candle

logger = logging.getLogger("rsiradar.binance")

# Retry settings (only used when Config.max_retries > 0)
_RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt
_RETRYABLE_STATUS_CODES = {502, 503, 504, 429}

_INVALID_SYMBOL_CODE = -1121
_LEVERAGED_TOKEN_MARKERS = ("UP", "DOWN", "BEAR", "BULL")


class BinanceClient:
    """Async client wrapping the public Binance market-data endpoints.

    Satisfies the ``MarketDataSource`` protocol consumed by
    ``MarketScanner``.
    """

    def __init__(self, config: Config) -> None:
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._proxy_url = config.proxy_url
        self._timeout = config.request_timeout_seconds
        self._max_retries = max(config.max_retries, 0)
        self._headers = {"X-Requested-With": "XMLHttpRequest"}
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def symbol_class(self) -> str:
        """``"FUTURES"`` or ``"SPOT"``, depending on the configured market."""
        return self._config.symbol_class

    def _build_url(self, path: str, params: Optional[dict] = None) -> str:
        target = httpx.URL(f"{self._base_url}{path}", params=params)
        if self._proxy_url:
            return f"{self._proxy_url}{target}"
        return str(target)

    def _http(self) -> httpx.AsyncClient:
        # Reused by every request until aclose()
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        """Close the pooled HTTP connections.  The next request reopens them."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ── Request helper ───────────────────────────────────────────────────

    async def _get_json(self, url: str) -> Optional[Any]:
        """GET *url* and return the decoded JSON body.

        Returns ``None`` for a Binance business error payload
        (``{"code": <negative>, "msg": ...}``).  Raises ``MarketDataError``
        on timeouts, transport failures and other HTTP errors.  Transient
        failures are retried with exponential backoff only when
        ``max_retries`` is configured.
        """
        attempts = self._max_retries + 1
        last_exc: Optional[Exception] = None

        for attempt in range(attempts):
            retries_left = attempt < attempts - 1
            try:
                resp = await self._http().get(
                    url,
                    headers=self._headers,
                    timeout=self._timeout,
                )
            except httpx.TransportError as exc:
                last_exc = exc
                if not retries_left:
                    break
                delay = _RETRY_BASE_DELAY * (2 ** attempt)
                logger.warning(
                    "Binance GET %s transport error (%s) — retry %d/%d in %.1fs",
                    url, exc, attempt + 1, self._max_retries, delay,
                )
                await asyncio.sleep(delay)
                continue

            if resp.status_code in _RETRYABLE_STATUS_CODES and retries_left:
                delay = _RETRY_BASE_DELAY * (2 ** attempt)
                logger.warning(
                    "Binance GET %s returned %d — retry %d/%d in %.1fs",
                    url, resp.status_code, attempt + 1, self._max_retries, delay,
                )
                await asyncio.sleep(delay)
                continue

            data = _decode(resp)
            if resp.status_code not in _RETRYABLE_STATUS_CODES and _is_business_error(data):
                if data["code"] != _INVALID_SYMBOL_CODE:
                    logger.warning(
                        "Binance API error for %s: %s", url[:100], data.get("msg")
                    )
                return None

            try:
                resp.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise MarketDataError(
                    f"Data fetch failed with status {resp.status_code} for {url[:100]}"
                ) from exc
            if data is None:
                raise MarketDataError(f"Malformed JSON response from {url[:100]}")
            return data

        if isinstance(last_exc, httpx.TimeoutException):
            raise MarketDataError(
                f"Request timed out after {self._timeout:.0f}s: {url[:100]}"
            ) from last_exc
        raise MarketDataError(f"Transport error for {url[:100]}: {last_exc}") from last_exc

    # ── Symbols ──────────────────────────────────────────────────────────

    async def list_symbols(self) -> list[str]:
        """Return every actively-trading USDT symbol, in exchange order.

        Raises ``MarketDataError`` when the exchange info is unreachable,
        empty or malformed.
        """
        data = await self._get_json(self._build_url("/exchangeInfo"))
        if not data or not data.get("symbols"):
            raise MarketDataError(
                f"Could not retrieve market symbols from Binance "
                f"{self.symbol_class.title()}. The response was empty or invalid."
            )

        symbols: list[str] = []
        for entry in data["symbols"]:
            name = entry.get("symbol", "")
            if not name.endswith("USDT") or entry.get("status") != "TRADING":
                continue
            if self.symbol_class == SYMBOL_CLASS_SPOT and any(
                marker in name for marker in _LEVERAGED_TOKEN_MARKERS
            ):
                continue
            symbols.append(name)
        return symbols

    # ── Candle data ──────────────────────────────────────────────────────

    async def get_candles(
        self,
        symbol: str,
        interval: str,
        limit: int = 100,
    ) -> Optional[list[Candle]]:
        """Fetch kline data from Binance.

        Args:
            symbol: e.g. ``"BTCUSDT"``
            interval: e.g. ``"15m"``, ``"4h"``, ``"1d"``
            limit: number of candles to request (max 1500)

        Returns:
            List of ``Candle`` objects ordered oldest-first, or ``None`` when
            Binance answered with a business error (unknown/delisted symbol).
        """
        url = self._build_url(
            "/klines",
            {"symbol": symbol, "interval": interval, "limit": limit},
        )
        data = await self._get_json(url)
        if data is None:
            return None
        return [Candle.from_kline(row) for row in data]


# ── Helpers ──────────────────────────────────────────────────────────────


def _decode(resp: httpx.Response) -> Optional[Any]:
    try:
        return resp.json()
    except ValueError:
        return None


def _is_business_error(data: Any) -> bool:
    return (
        isinstance(data, dict)
        and isinstance(data.get("code"), int)
        and data["code"] < 0
    )
