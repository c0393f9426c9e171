"""Analysis data models — typed representations for scan outputs."""

import math
from dataclasses import dataclass, field
from typing import Optional

# zone → symbol → rank.  Produced by one scan, consumed by the next.
RankSnapshot = dict[str, dict[str, int]]


@dataclass
class BreakoutMetrics:
    """Raw breakout inputs gathered for one symbol during one scan.

    Every field stays ``None`` until the matching candle series was fetched
    with enough samples; a ``None`` excludes the symbol from scoring.
    """

    rsi_1h: Optional[float] = None
    rsi_4h: Optional[float] = None
    price_change_4h: Optional[float] = None
    price_change_12h: Optional[float] = None
    volume_multiplier: Optional[float] = None

    @property
    def complete(self) -> bool:
        return None not in (
            self.rsi_1h,
            self.rsi_4h,
            self.price_change_4h,
            self.price_change_12h,
            self.volume_multiplier,
        )


@dataclass(frozen=True)
class Opportunity:
    """A symbol that passed the breakout gate, with its composite score."""

    symbol: str
    score: float  # full precision; use display_score for output
    price: float
    rsi_1h: float
    rsi_4h: float
    price_change_4h: float
    price_change_12h: float
    volume_multiplier: float
    tag: str
    recommendation: str

    @property
    def display_score(self) -> int:
        return round_half_up(self.score)


@dataclass(frozen=True)
class ReportEntity:
    """One ranked row of the overbought / oversold frequency report."""

    rank: int
    symbol: str
    indicator: str  # "F" for futures symbols, "" otherwise
    badge: str
    position_change: str
    warning: str
    timeframe_breakdown: str  # e.g. "15m(1) | 4h(1)"
    count: int
    price_change: Optional[str] = None


@dataclass(frozen=True)
class OtherNotable:
    """A runner-up symbol mentioned next to a zone leader."""

    badge: str
    symbol: str
    count: int


@dataclass(frozen=True)
class LeaderAnalysis:
    """Narrative commentary about the rank-1 symbol of a zone."""

    symbol: str
    count: int
    entry_text: str
    comment: str
    price_comment: str
    others: list[OtherNotable] = field(default_factory=list)


@dataclass(frozen=True)
class MarketCommentary:
    level: str
    details: str


@dataclass(frozen=True)
class ReportStats:
    total_tracked: int
    total_extreme: int


@dataclass(frozen=True)
class RsiReport:
    """The ranked RSI frequency report of one scan."""

    overbought: list[ReportEntity]
    oversold: list[ReportEntity]
    stats: ReportStats
    market_commentary: MarketCommentary
    overbought_leader: Optional[LeaderAnalysis]
    oversold_leader: Optional[LeaderAnalysis]
    last_updated: str
    next_update: str
    current_positions: RankSnapshot


@dataclass(frozen=True)
class AnalysisResult:
    """Everything one scan produces."""

    report: RsiReport
    opportunities: list[Opportunity]

    @property
    def rank_snapshot(self) -> RankSnapshot:
        """Ranks to hand into the next scan."""
        return self.report.current_positions


@dataclass(frozen=True)
class ProgressUpdate:
    message: str
    percentage: float


def round_half_up(value: float) -> int:
    """Round to the nearest integer; halves round up (toward +∞), like JavaScript ``Math.round``."""
    return math.floor(value + 0.5)
