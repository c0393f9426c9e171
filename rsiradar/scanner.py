"""RsiRadar — market scanner (orchestration of one scan).

Lists symbols, fans per-symbol data collection out through the
``FetchScheduler``, then scores breakouts and builds the frequency report.
Progress is published through an optional callback.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Mapping, Optional

from rsiradar.analysis.breakout import score_breakouts
from rsiradar.analysis.indicators import calculate_rsi, percent_change, volume_multiplier
from rsiradar.analysis.models import AnalysisResult, BreakoutMetrics, ProgressUpdate
from rsiradar.analysis.report import generate_report
from rsiradar.analysis.scheduler import FetchScheduler
from rsiradar.analysis.zones import ZoneTracker
from rsiradar.config import Config
from rsiradar.errors import ScanAbortedError
from rsiradar.market.base import MarketDataSource
from rsiradar.market.models import FREQUENCY_TIMEFRAMES

logger = logging.getLogger("rsiradar")

ProgressCallback = Callable[[ProgressUpdate], None]

RSI_PERIOD = 14
BREAKOUT_LIMIT = 24  # candles fetched per breakout series


@dataclass
class ScanContext:
    """Mutable aggregates of a single scan.

    Built at the start of every run and discarded afterwards.  Each
    symbol's slice is written only by that symbol's task.
    """

    tracker: ZoneTracker
    breakout: dict[str, BreakoutMetrics] = field(default_factory=dict)

    @classmethod
    def for_symbols(cls, symbols: list[str], symbol_class: str) -> "ScanContext":
        return cls(
            tracker=ZoneTracker(symbols, symbol_class=symbol_class),
            breakout={symbol: BreakoutMetrics() for symbol in symbols},
        )


class MarketScanner:
    """Runs one full market scan per :meth:`run` call.

    Args:
        config: Application configuration.
        source: A ``MarketDataSource`` (``BinanceClient`` or a test double).
    """

    def __init__(self, config: Config, source: MarketDataSource) -> None:
        self._config = config
        self._source = source
        self._scheduler = FetchScheduler(config.scan_concurrency)

    async def run(
        self,
        previous_ranks: Optional[Mapping[str, Mapping[str, int]]] = None,
        on_progress: Optional[ProgressCallback] = None,
        now: Optional[datetime] = None,
    ) -> AnalysisResult:
        """Scan the market once.

        Args:
            previous_ranks: Rank snapshot returned by the previous scan.
            on_progress: Called synchronously at each progress milestone.
            now: Report timestamp; defaults to the current UTC time.

        Raises:
            ScanAbortedError: when no symbols could be listed.
        """
        self._notify(on_progress, "Initializing...", 0)
        try:
            return await self._scan(previous_ranks, on_progress, now)
        finally:
            # Pooled connections are not carried across scans
            aclose = getattr(self._source, "aclose", None)
            if aclose is not None:
                await aclose()

    # ── Steps ────────────────────────────────────────────────────────────

    async def _scan(
        self,
        previous_ranks: Optional[Mapping[str, Mapping[str, int]]],
        on_progress: Optional[ProgressCallback],
        now: Optional[datetime],
    ) -> AnalysisResult:
        symbols = await self._list_symbols()
        total = len(symbols)
        self._notify(on_progress, f"Found {total} symbols. Starting scan...", 5)

        ctx = ScanContext.for_symbols(symbols, self._source.symbol_class)
        completed = 0

        def _make_task(symbol: str):
            async def _task() -> None:
                nonlocal completed
                try:
                    await self._scan_symbol(ctx, symbol)
                finally:
                    completed += 1
                    self._notify(
                        on_progress,
                        f"Scanning... {symbol}",
                        10 + 80 * completed / total,
                    )
            return _task

        outcome = await self._scheduler.run_all([_make_task(s) for s in symbols])
        logger.info(
            "Scanned %d symbols (%d failed), %d with RSI data.",
            outcome.total, outcome.failed, len(ctx.tracker),
        )

        self._notify(on_progress, "Analyzing data...", 90)
        opportunities = score_breakouts(ctx.breakout, ctx.tracker.current_prices())

        self._notify(on_progress, "Generating reports...", 95)
        report, _snapshot = generate_report(ctx.tracker, previous_ranks, now=now)

        self._notify(on_progress, "Analysis complete", 100)
        return AnalysisResult(report=report, opportunities=opportunities)

    async def _list_symbols(self) -> list[str]:
        try:
            symbols = await self._source.list_symbols()
        except Exception as exc:
            raise ScanAbortedError(
                f"Could not fetch symbols: {exc}. Analysis cannot continue."
            ) from exc
        if not symbols:
            raise ScanAbortedError(
                "Symbol list is empty. Analysis cannot continue."
            )
        if self._config.max_symbols > 0:
            symbols = symbols[: self._config.max_symbols]
        return list(symbols)

    async def _scan_symbol(self, ctx: ScanContext, symbol: str) -> None:
        """Collect frequency and breakout data for one symbol."""
        # 1 ── RSI frequency, timeframes in declared order
        for tf in FREQUENCY_TIMEFRAMES:
            candles = await self._source.get_candles(symbol, tf.interval, tf.limit)
            if not candles or len(candles) <= RSI_PERIOD:
                continue
            closes = [c.close for c in candles]
            rsi = calculate_rsi(closes, RSI_PERIOD)
            if rsi is not None:
                ctx.tracker.record(symbol, tf.interval, rsi, closes[-1])

        # 2 ── Breakout hunter metrics
        try:
            await self._collect_breakout(ctx.breakout[symbol], symbol)
        except Exception as exc:
            logger.warning("Could not process breakout data for %s: %s", symbol, exc)

    async def _collect_breakout(self, metrics: BreakoutMetrics, symbol: str) -> None:
        candles_1h = await self._source.get_candles(symbol, "1h", BREAKOUT_LIMIT)
        if candles_1h and len(candles_1h) >= RSI_PERIOD:
            metrics.rsi_1h = calculate_rsi([c.close for c in candles_1h], RSI_PERIOD)
            if len(candles_1h) >= BREAKOUT_LIMIT:
                metrics.volume_multiplier = volume_multiplier(
                    [c.volume for c in candles_1h]
                )

        candles_4h = await self._source.get_candles(symbol, "4h", BREAKOUT_LIMIT)
        if candles_4h and len(candles_4h) >= 2:
            closes = [c.close for c in candles_4h]
            if len(closes) >= RSI_PERIOD:
                metrics.rsi_4h = calculate_rsi(closes, RSI_PERIOD)
            metrics.price_change_4h = percent_change(closes[-2], closes[-1])

        candles_12h = await self._source.get_candles(symbol, "12h", BREAKOUT_LIMIT)
        if candles_12h and len(candles_12h) >= 2:
            metrics.price_change_12h = percent_change(
                candles_12h[-2].close, candles_12h[-1].close
            )

    # ── Progress ─────────────────────────────────────────────────────────

    @staticmethod
    def _notify(callback: Optional[ProgressCallback], message: str, percentage: float) -> None:
        if callback is None:
            return
        try:
            callback(ProgressUpdate(message=message, percentage=percentage))
        except Exception as exc:
            logger.warning("Progress callback failed: %s", exc)
