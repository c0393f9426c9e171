"""Technical indicators — RSI, percent change, volume multiplier. Pure functions, no I/O."""

from typing import Optional, Sequence


def calculate_rsi(prices: Sequence[float], period: int = 14) -> Optional[float]:
    """Calculate Wilder's Relative Strength Index of the latest price.

    Algorithm (Wilder-smoothed):
        1. delta = price[i] - price[i-1]
        2. Seed: sum the gains and |losses| of the first *period* deltas
           and divide each sum by *period*.
        3. Subsequent: avg = (prev_avg × (period-1) + current) / period,
           where the side that did not move decays by (period-1) / period.
        4. RS = avg_gain / avg_loss
        5. RSI = 100 - 100 / (1 + RS)

    Returns ``None`` when fewer than *period* prices are given, and
    ``100.0`` when the smoothed average loss is zero.
    """
    if len(prices) < period:
        return None

    gain = 0.0
    loss = 0.0
    for i in range(1, min(period, len(prices) - 1) + 1):
        delta = prices[i] - prices[i - 1]
        if delta > 0:
            gain += delta
        else:
            loss -= delta

    avg_gain = gain / period
    avg_loss = loss / period

    for i in range(period + 1, len(prices)):
        delta = prices[i] - prices[i - 1]
        if delta > 0:
            avg_gain = (avg_gain * (period - 1) + delta) / period
            avg_loss = (avg_loss * (period - 1)) / period
        else:
            avg_loss = (avg_loss * (period - 1) - delta) / period
            avg_gain = (avg_gain * (period - 1)) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def percent_change(previous: float, current: float) -> float:
    """Percentage move from *previous* to *current*; 0.0 if *previous* <= 0."""
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100.0


def volume_multiplier(volumes: Sequence[float]) -> float:
    """Latest volume relative to the mean of all preceding volumes.

    Requires at least two samples.  Returns 0.0 when the trailing average
    is not positive.
    """
    if len(volumes) < 2:
        raise ValueError(
            f"Need at least 2 volumes for a multiplier, got {len(volumes)}"
        )
    trailing = volumes[:-1]
    avg_volume = sum(trailing) / len(trailing)
    if avg_volume <= 0:
        return 0.0
    return volumes[-1] / avg_volume
