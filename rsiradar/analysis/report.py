"""RSI frequency report — ranks symbols by extreme-zone appearances.

Turns the scan's ``ZoneTracker`` plus the previous scan's ``RankSnapshot``
into a ranked, annotated ``RsiReport`` and returns the new snapshot for the
caller to hand into the next scan.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from rsiradar.analysis.indicators import percent_change
from rsiradar.analysis.models import (
    LeaderAnalysis,
    MarketCommentary,
    OtherNotable,
    RankSnapshot,
    ReportEntity,
    ReportStats,
    RsiReport,
)
from rsiradar.analysis.zones import EXTREME_ZONES, OVERBOUGHT, OVERSOLD, SymbolZoneState, ZoneTracker
from rsiradar.config import SYMBOL_CLASS_FUTURES

TOP_N = 20
OTHER_NOTABLES = 3

STRONG_ENTRIES = 3
REPEAT_ENTRIES = 2

VERY_ACTIVE_THRESHOLD = 50
MODERATE_THRESHOLD = 20


# ── Zone-specific wording ────────────────────────────────────────────────

_NEW_ENTRY = ("🆕", "✨ NEW ENTRY")
_STABLE = ("➡️", "⚖️ STABLE")

_RANK_UP_WARNING = {
    OVERBOUGHT: "🚨 APPROACHING PEAK",
    OVERSOLD: "📈 RECOVERING",
}
_RANK_DOWN_WARNING = {
    OVERBOUGHT: "⚠️ LOSING STRENGTH",
    OVERSOLD: "💎 APPROACHING BOTTOM",
}
_RANK_UP_ARROW = {OVERBOUGHT: "⬆️", OVERSOLD: "⬇️"}
_RANK_DOWN_ARROW = {OVERBOUGHT: "⬇️", OVERSOLD: "⬆️"}

# (strong, repeat) badge symbols per zone
_BADGES = {
    OVERBOUGHT: ("🔥", "⚡"),
    OVERSOLD: ("💎", "🔹"),
}
_WATCH_BADGE = "👀"

_LEADER_TEXT = {
    OVERBOUGHT: {
        "strong": ("{badge} {n}× TRENDING ENTRIES!", "Very strong SHORT opportunity. Time to take profit."),
        "repeat": ("{badge} {n}× trending entries", "Strong SHORT signal. Momentum break is near."),
        "first": ("", "First trending entry. Consider a short if it spreads to more timeframes."),
    },
    OVERSOLD: {
        "strong": ("{badge} {n}× TRENDING ENTRIES!", "Very strong LONG opportunity. Accumulation from the bottom possible."),
        "repeat": ("{badge} {n}× trending entries", "Strong LONG signal. Recovery is near."),
        "first": ("", "First trending entry. Consider a long if it spreads to more timeframes."),
    },
}


# ── Public API ───────────────────────────────────────────────────────────


def generate_report(
    tracker: ZoneTracker,
    previous_ranks: Optional[Mapping[str, Mapping[str, int]]] = None,
    now: Optional[datetime] = None,
) -> tuple[RsiReport, RankSnapshot]:
    """Build the RSI frequency report for one scan.

    Args:
        tracker: The scan's zone state.
        previous_ranks: Snapshot returned by the previous scan (may be
                        empty or ``None`` on the first run).
        now: Report timestamp.  Defaults to ``datetime.now(UTC)``.

    Returns:
        ``(report, snapshot)`` where *snapshot* holds this scan's ranks.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    previous_ranks = previous_ranks or {}

    snapshot: RankSnapshot = {zone: {} for zone in EXTREME_ZONES}
    ranked = {zone: rank_zone(tracker, zone) for zone in EXTREME_ZONES}

    entities: dict[str, list[ReportEntity]] = {}
    for zone in EXTREME_ZONES:
        previous = previous_ranks.get(zone, {})
        rows = []
        for index, state in enumerate(ranked[zone][:TOP_N]):
            rank = index + 1
            snapshot[zone][state.symbol] = rank
            rows.append(_format_entity(state, rank, zone, previous.get(state.symbol)))
        entities[zone] = rows

    total_extreme = len(ranked[OVERBOUGHT]) + len(ranked[OVERSOLD])

    report = RsiReport(
        overbought=entities[OVERBOUGHT],
        oversold=entities[OVERSOLD],
        stats=ReportStats(total_tracked=len(tracker), total_extreme=total_extreme),
        market_commentary=market_commentary(total_extreme),
        overbought_leader=_leader_analysis(ranked[OVERBOUGHT], OVERBOUGHT),
        oversold_leader=_leader_analysis(ranked[OVERSOLD], OVERSOLD),
        last_updated=now.isoformat(),
        next_update=_next_update(now),
        current_positions=snapshot,
    )
    return report, snapshot


def rank_zone(tracker: ZoneTracker, zone: str) -> list[SymbolZoneState]:
    """Symbols seen in *zone*, most appearances first (ties keep input order)."""
    seen = [s for s in tracker.states() if s.appearance_total(zone) > 0]
    return sorted(seen, key=lambda s: s.appearance_total(zone), reverse=True)


def position_change(zone: str, previous_rank: Optional[int], rank: int) -> tuple[str, str]:
    """Return ``(movement marker, warning label)`` for a rank movement."""
    if previous_rank is None:
        return _NEW_ENTRY
    delta = previous_rank - rank
    if delta > 0:
        return f"{_RANK_UP_ARROW[zone]}+{delta}", _RANK_UP_WARNING[zone]
    if delta < 0:
        return f"{_RANK_DOWN_ARROW[zone]}{delta}", _RANK_DOWN_WARNING[zone]
    return _STABLE


def entry_badge(zone: str, entries: int) -> str:
    """Badge such as ``🔥×3`` for repeated zone entries; empty below two."""
    strong, repeat = _BADGES[zone]
    if entries >= STRONG_ENTRIES:
        return f"{strong}×{entries}"
    if entries >= REPEAT_ENTRIES:
        return f"{repeat}×{entries}"
    return ""


def price_change_since_first_seen(state: SymbolZoneState, zone: str) -> Optional[str]:
    change = _price_change_pct(state, zone)
    if change is None:
        return None
    first = state.first_price[zone]
    arrow = "📈" if change >= 0 else "📉"
    return f"{first:.6f} → {state.current_price:.6f} {arrow} {change:.2f}%"


def market_commentary(total_extreme: int) -> MarketCommentary:
    if total_extreme > VERY_ACTIVE_THRESHOLD:
        return MarketCommentary(
            level="VERY ACTIVE!",
            details=(
                "High volatility. Plenty of opportunities but the risk is "
                f"high too! ({total_extreme} coins)"
            ),
        )
    if total_extreme > MODERATE_THRESHOLD:
        return MarketCommentary(
            level="MODERATE",
            details=(
                "Check the direction of BTC and ETH before acting on "
                f"opportunities. ({total_extreme} coins)"
            ),
        )
    return MarketCommentary(
        level="CALM",
        details=f"Low volatility. Wait-and-see may be appropriate. ({total_extreme} coins)",
    )


# ── Helpers ──────────────────────────────────────────────────────────────


def _format_entity(
    state: SymbolZoneState,
    rank: int,
    zone: str,
    previous_rank: Optional[int],
) -> ReportEntity:
    marker, warning = position_change(zone, previous_rank, rank)
    breakdown = " | ".join(
        f"{tf}({count})" for tf, count in state.appearances[zone].items() if count > 0
    )
    return ReportEntity(
        rank=rank,
        symbol=state.symbol,
        indicator="F" if state.symbol_class == SYMBOL_CLASS_FUTURES else "",
        badge=entry_badge(zone, state.zone_entries[zone]),
        position_change=marker,
        warning=warning,
        timeframe_breakdown=breakdown,
        count=state.appearance_total(zone),
        price_change=price_change_since_first_seen(state, zone),
    )


def _leader_analysis(ranked: list[SymbolZoneState], zone: str) -> Optional[LeaderAnalysis]:
    if not ranked:
        return None

    leader = ranked[0]
    entries = leader.zone_entries[zone]
    strong, repeat = _BADGES[zone]
    if entries >= STRONG_ENTRIES:
        template, comment = _LEADER_TEXT[zone]["strong"]
        entry_text = template.format(badge=strong, n=entries)
    elif entries >= REPEAT_ENTRIES:
        template, comment = _LEADER_TEXT[zone]["repeat"]
        entry_text = template.format(badge=repeat, n=entries)
    else:
        entry_text, comment = _LEADER_TEXT[zone]["first"]

    others = [
        OtherNotable(
            badge=_light_badge(zone, s.zone_entries[zone]),
            symbol=s.symbol,
            count=s.appearance_total(zone),
        )
        for s in ranked[1:1 + OTHER_NOTABLES]
    ]

    return LeaderAnalysis(
        symbol=leader.symbol,
        count=leader.appearance_total(zone),
        entry_text=entry_text,
        comment=comment,
        price_comment=_leader_price_comment(leader, zone),
        others=others,
    )


def _leader_price_comment(state: SymbolZoneState, zone: str) -> str:
    change = _price_change_pct(state, zone)
    if change is None:
        return ""
    if zone == OVERBOUGHT:
        if change > 0:
            return f"Up +{change:.2f}% since first detection - peak is near!"
        return f"Price is falling ({change:.2f}%) - momentum is breaking."
    if change < 0:
        return f"Down {abs(change):.2f}% since first detection - bottom is near!"
    return f"Price is rising (+{change:.2f}%) - recovery has started."


def _light_badge(zone: str, entries: int) -> str:
    strong, repeat = _BADGES[zone]
    if entries >= STRONG_ENTRIES:
        return strong
    if entries >= REPEAT_ENTRIES:
        return repeat
    return _WATCH_BADGE


def _price_change_pct(state: SymbolZoneState, zone: str) -> Optional[float]:
    first = state.first_price[zone]
    current = state.current_price
    if not first or not current:
        return None
    return percent_change(first, current)


def _next_update(now: datetime) -> str:
    """``HH:MM`` (UTC) of the 59th minute of the next hour."""
    next_run = (now + timedelta(hours=1)).replace(minute=59, second=0, microsecond=0)
    return next_run.astimezone(timezone.utc).strftime("%H:%M")
