"""Market data models — typed representations of Binance REST objects."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Candle:
    """A single kline (candlestick) bar."""

    open_time: int  # epoch milliseconds
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: int
    quote_volume: float = 0.0
    trades: int = 0

    @classmethod
    def from_kline(cls, row: list) -> "Candle":
        """Build a candle from one row of Binance's ``/klines`` array.

        Binance encodes prices and volumes as strings:
        ``[openTime, open, high, low, close, volume, closeTime,
        quoteVolume, trades, ...]``.
        """
        return cls(
            open_time=int(row[0]),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(row[5]),
            close_time=int(row[6]),
            quote_volume=float(row[7]) if len(row) > 7 else 0.0,
            trades=int(row[8]) if len(row) > 8 else 0,
        )


@dataclass(frozen=True)
class Timeframe:
    """A kline interval and the number of candles fetched for it."""

    interval: str  # Binance interval code, e.g. "15m", "4h"
    limit: int


# Frequency timeframes, processed in this order for every symbol.
FREQUENCY_TIMEFRAMES: tuple[Timeframe, ...] = (
    Timeframe("15m", 100),
    Timeframe("1h", 100),
    Timeframe("4h", 100),
    Timeframe("8h", 100),
    Timeframe("12h", 100),
    Timeframe("1d", 100),
)

TIMEFRAME_NAMES: tuple[str, ...] = tuple(tf.interval for tf in FREQUENCY_TIMEFRAMES)
