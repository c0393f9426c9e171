"""Breakout hunter — gate and score symbols on short-term recovery momentum.

Pure functions; the raw metrics are gathered by ``MarketScanner``.
"""

from typing import Mapping

from rsiradar.analysis.models import BreakoutMetrics, Opportunity, round_half_up

MAX_OPPORTUNITIES = 10

# Gate
RSI_4H_MIN = 35.0
RSI_4H_MAX = 65.0
MIN_PRICE_CHANGE_4H = 1.0
MIN_VOLUME_MULTIPLIER = 0.5

# Tiers (applied to the rounded score)
STRONG_SCORE = 100
MEDIUM_SCORE = 75

_TIERS = (
    (STRONG_SCORE, "🔥 STRONG", "🚀 ENTER ON FIRST PULLBACK"),
    (MEDIUM_SCORE, "⚡ MEDIUM", "⚡ WATCH CLOSELY"),
)
_LOW_TAG = "⚖️ LOW"
_LOW_RECOMMENDATION = "⚠️ MONITOR"


def passes_gate(metrics: BreakoutMetrics) -> bool:
    """Dip position on 4h, strong 4h momentum, and confirming volume."""
    if not metrics.complete:
        return False
    return (
        RSI_4H_MIN <= metrics.rsi_4h <= RSI_4H_MAX
        and metrics.price_change_4h > MIN_PRICE_CHANGE_4H
        and metrics.volume_multiplier >= MIN_VOLUME_MULTIPLIER
    )


def breakout_score(metrics: BreakoutMetrics) -> float:
    """Composite score: base 50 plus momentum, dip, volume and bonus terms."""
    score = 50.0
    score += min(metrics.price_change_4h * 8, 40)
    score += max(0.0, 50 - metrics.rsi_4h) * 1.5
    score += min(metrics.volume_multiplier * 5, 20)
    if metrics.price_change_12h < 0:
        score += 10
    if metrics.rsi_1h >= 65:
        score += 10
    return score


def classify_score(score: float) -> tuple[str, str]:
    """Return ``(tag, recommendation)`` for a score."""
    rounded = round_half_up(score)
    for threshold, tag, recommendation in _TIERS:
        if rounded >= threshold:
            return tag, recommendation
    return _LOW_TAG, _LOW_RECOMMENDATION


def score_breakouts(
    metrics: Mapping[str, BreakoutMetrics],
    current_prices: Mapping[str, float],
    limit: int = MAX_OPPORTUNITIES,
) -> list[Opportunity]:
    """Gate, score and rank every symbol's breakout metrics.

    Symbols without a current price are skipped.  The result is ordered by
    score descending; equal scores keep the iteration order of *metrics*.
    """
    opportunities: list[Opportunity] = []
    for symbol, m in metrics.items():
        price = current_prices.get(symbol)
        if price is None or not passes_gate(m):
            continue
        score = breakout_score(m)
        tag, recommendation = classify_score(score)
        opportunities.append(
            Opportunity(
                symbol=symbol,
                score=score,
                price=price,
                rsi_1h=m.rsi_1h,
                rsi_4h=m.rsi_4h,
                price_change_4h=m.price_change_4h,
                price_change_12h=m.price_change_12h,
                volume_multiplier=m.volume_multiplier,
                tag=tag,
                recommendation=recommendation,
            )
        )

    opportunities.sort(key=lambda o: o.score, reverse=True)
    return opportunities[:limit]
