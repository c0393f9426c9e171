"""Market data source protocol.

Defines the interface the scanner needs from a market-data provider.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from rsiradar.market.models import Candle


@runtime_checkable
class MarketDataSource(Protocol):
    """Interface that every market-data provider must satisfy.

    A provider that pools connections may also define ``async aclose()``;
    the scanner calls it once at the end of every scan.
    """

    symbol_class: str

    async def list_symbols(self) -> list[str]:
        """Return the tradable symbols to scan; raise if unreachable."""
        ...

    async def get_candles(
        self, symbol: str, interval: str, limit: int
    ) -> Optional[list[Candle]]:
        """Return candles oldest-first, or None for an unknown symbol."""
        ...
