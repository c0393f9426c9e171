"""Zone tracking — per-scan aggregate of RSI extreme-zone appearances.

A ``ZoneTracker`` is created fresh for every scan and keyed by symbol.
Each symbol owns a ``SymbolZoneState`` that counts how often the symbol
landed in an extreme zone per timeframe, latches the price at which it was
first seen there, and counts zone *entries* with a small state machine fed
by the timeframes in processing order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from rsiradar.config import SYMBOL_CLASS_FUTURES
from rsiradar.market.models import TIMEFRAME_NAMES

NORMAL = "normal"
OVERBOUGHT = "overbought"
OVERSOLD = "oversold"

EXTREME_ZONES: tuple[str, str] = (OVERBOUGHT, OVERSOLD)

OVERBOUGHT_THRESHOLD = 70.0
OVERSOLD_THRESHOLD = 30.0


def classify_rsi(value: float) -> str:
    """Map an RSI value to ``overbought`` (≥70), ``oversold`` (≤30) or ``normal``."""
    if value >= OVERBOUGHT_THRESHOLD:
        return OVERBOUGHT
    if value <= OVERSOLD_THRESHOLD:
        return OVERSOLD
    return NORMAL


class ZoneStateMachine:
    """Three-state machine over ``{normal, overbought, oversold}``.

    Starts in ``normal``.  :meth:`advance` moves to the given zone and
    reports an *entry* whenever the new zone is extreme and differs from the
    current one (normal → extreme, or one extreme → the opposite extreme).
    """

    def __init__(self) -> None:
        self._state = NORMAL

    @property
    def state(self) -> str:
        return self._state

    def advance(self, zone: str) -> Optional[str]:
        """Transition to *zone*; return the zone entered, if any."""
        if zone not in (NORMAL, *EXTREME_ZONES):
            raise ValueError(f"Unknown zone '{zone}'")
        entered = zone if zone != self._state and zone != NORMAL else None
        self._state = zone
        return entered


@dataclass
class SymbolZoneState:
    """Zone statistics for one symbol during one scan."""

    symbol: str
    symbol_class: str = SYMBOL_CLASS_FUTURES
    appearances: dict[str, dict[str, int]] = field(
        default_factory=lambda: {
            zone: {tf: 0 for tf in TIMEFRAME_NAMES} for zone in EXTREME_ZONES
        }
    )
    first_price: dict[str, Optional[float]] = field(
        default_factory=lambda: {zone: None for zone in EXTREME_ZONES}
    )
    current_price: Optional[float] = None
    # Latest zone per timeframe, kept for inspection; entry counting uses _transitions
    last_zone_state: dict[str, str] = field(default_factory=dict)
    zone_entries: dict[str, int] = field(
        default_factory=lambda: {zone: 0 for zone in EXTREME_ZONES}
    )
    _transitions: ZoneStateMachine = field(
        default_factory=ZoneStateMachine, repr=False
    )

    def appearance_total(self, zone: str) -> int:
        """Number of timeframes in which the symbol landed in *zone*."""
        return sum(self.appearances[zone].values())

    def record(self, timeframe: str, rsi: float, price: float) -> str:
        """Classify one RSI reading and fold it into the counters.

        Readings must arrive in timeframe processing order: the entry
        counter compares each reading with the zone of the previous one.
        Returns the zone the reading was classified into.
        """
        zone = classify_rsi(rsi)
        self.current_price = price

        entered = self._transitions.advance(zone)
        if entered is not None:
            self.zone_entries[entered] += 1

        if zone != NORMAL:
            per_tf = self.appearances[zone]
            per_tf[timeframe] = per_tf.get(timeframe, 0) + 1
            if self.first_price[zone] is None:
                self.first_price[zone] = price

        self.last_zone_state[timeframe] = zone
        return zone


class ZoneTracker:
    """Per-scan aggregate of ``SymbolZoneState`` keyed by symbol.

    Args:
        symbols: The scan's input symbols.  Their order is kept so reports
                 can break ties by it regardless of task completion order.
        symbol_class: Label stored on every state (``"FUTURES"``/``"SPOT"``).
    """

    def __init__(self, symbols: Iterable[str] = (), symbol_class: str = SYMBOL_CLASS_FUTURES) -> None:
        self._symbol_class = symbol_class
        self._order: dict[str, int] = {}
        for symbol in symbols:
            self._order.setdefault(symbol, len(self._order))
        self._states: dict[str, SymbolZoneState] = {}

    def record(self, symbol: str, timeframe: str, rsi: float, price: float) -> str:
        """Record one RSI reading for *symbol* on *timeframe*."""
        state = self._states.get(symbol)
        if state is None:
            self._order.setdefault(symbol, len(self._order))
            state = SymbolZoneState(symbol=symbol, symbol_class=self._symbol_class)
            self._states[symbol] = state
        return state.record(timeframe, rsi, price)

    def get(self, symbol: str) -> Optional[SymbolZoneState]:
        return self._states.get(symbol)

    def states(self) -> list[SymbolZoneState]:
        """Every tracked symbol's state, in input symbol order."""
        return sorted(self._states.values(), key=lambda s: self._order[s.symbol])

    def current_prices(self) -> dict[str, float]:
        return {
            s.symbol: s.current_price
            for s in self.states()
            if s.current_price is not None
        }

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[SymbolZoneState]:
        return iter(self.states())

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._states
