"""ScanManager — runs the market scanner periodically and hands ranks across scans.

The scanner itself keeps no state between runs.  The manager holds the
latest ``AnalysisResult`` and the rank snapshot it produced (in memory
only), passes that snapshot into the next scan, and exposes progress and
status for the API.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from rsiradar.analysis.models import AnalysisResult, ProgressUpdate, RankSnapshot
from rsiradar.errors import ScanAbortedError
from rsiradar.scanner import MarketScanner

logger = logging.getLogger("rsiradar.scan_manager")


class ScanManager:
    """Lifecycle manager for periodic market scans.

    Args:
        scanner: The ``MarketScanner`` to drive.
        interval_seconds: Seconds between scans in :meth:`run`.
        previous_ranks: Optional snapshot to seed the first scan with.
    """

    def __init__(
        self,
        scanner: MarketScanner,
        interval_seconds: int = 3600,
        previous_ranks: Optional[RankSnapshot] = None,
    ) -> None:
        self._scanner = scanner
        self._interval = interval_seconds
        self._ranks: RankSnapshot = previous_ranks or {}
        self._latest: Optional[AnalysisResult] = None
        self._progress = ProgressUpdate(message="Ready to start", percentage=0)
        self._lock = asyncio.Lock()
        self._wake = asyncio.Event()
        self._running: bool = False
        self._scanning: bool = False
        self._scan_count: int = 0
        self._last_error: Optional[str] = None
        self._last_started_at: Optional[str] = None
        self._last_finished_at: Optional[str] = None

    # ── Public API ───────────────────────────────────────────────────────

    @property
    def latest(self) -> Optional[AnalysisResult]:
        """Result of the most recent successful scan."""
        return self._latest

    @property
    def rank_snapshot(self) -> RankSnapshot:
        """Ranks that will be handed into the next scan."""
        return self._ranks

    @property
    def progress(self) -> ProgressUpdate:
        return self._progress

    @property
    def scanning(self) -> bool:
        return self._scanning

    async def run_once(self) -> Optional[AnalysisResult]:
        """Run a single scan, waiting for any scan already in progress.

        A ``ScanAbortedError`` is logged and recorded; the previous result
        and rank snapshot are kept in that case and ``None`` is returned.
        """
        async with self._lock:
            self._scanning = True
            self._last_error = None
            self._last_started_at = datetime.now(timezone.utc).isoformat()
            try:
                result = await self._scanner.run(
                    previous_ranks=self._ranks,
                    on_progress=self._on_progress,
                )
            except ScanAbortedError as exc:
                logger.error("Scan aborted: %s", exc)
                self._last_error = str(exc)
                self._progress = ProgressUpdate(message=f"Scan failed: {exc}", percentage=100)
                return None
            finally:
                self._scanning = False
                self._last_finished_at = datetime.now(timezone.utc).isoformat()

            self._latest = result
            self._ranks = result.rank_snapshot
            self._scan_count += 1
            logger.info(
                "Scan %d complete: %d overbought, %d oversold, %d breakout(s).",
                self._scan_count,
                len(result.report.overbought),
                len(result.report.oversold),
                len(result.opportunities),
            )
            return result

    async def run(
        self,
        interval_seconds: int | None = None,
        max_cycles: int = 0,
    ) -> list[Optional[AnalysisResult]]:
        """Scan repeatedly until stopped.

        Args:
            interval_seconds: Seconds between scans.  Defaults to the value
                              given at construction.
            max_cycles: Stop after this many scans (0 = unlimited).

        A scan that raises is logged and recorded as ``last_error``; the
        loop keeps going.

        Returns:
            Per-cycle results (``None`` for aborted or failed scans).
        """
        if interval_seconds is None:
            interval_seconds = self._interval
        self._running = True
        results: list[Optional[AnalysisResult]] = []
        cycle = 0

        try:
            while self._running:
                cycle += 1
                self._wake.clear()
                try:
                    results.append(await self.run_once())
                except Exception as exc:
                    logger.error("Scan cycle %d error: %s", cycle, exc)
                    self._last_error = str(exc)
                    self._progress = ProgressUpdate(message=f"Scan failed: {exc}", percentage=100)
                    results.append(None)

                if max_cycles > 0 and cycle >= max_cycles:
                    break

                # Interruptible sleep — ends early on stop() or request_scan()
                try:
                    await asyncio.wait_for(self._wake.wait(), timeout=interval_seconds)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
        return results

    def stop(self) -> None:
        """Signal the loop to stop after the current scan."""
        self._running = False
        self._wake.set()
        logger.info("Stop signal sent to scan loop.")

    def request_scan(self) -> None:
        """Wake the loop so the next scan starts immediately."""
        self._wake.set()

    def get_status(self) -> dict:
        """Return scan-loop metadata for the status endpoint."""
        return {
            "running": self._running,
            "scanning": self._scanning,
            "scan_count": self._scan_count,
            "progress": {
                "message": self._progress.message,
                "percentage": round(self._progress.percentage, 1),
            },
            "last_error": self._last_error,
            "last_started_at": self._last_started_at,
            "last_finished_at": self._last_finished_at,
            "has_report": self._latest is not None,
        }

    # ── Helpers ──────────────────────────────────────────────────────────

    def _on_progress(self, update: ProgressUpdate) -> None:
        self._progress = update
        logger.debug("%.0f%% %s", update.percentage, update.message)
