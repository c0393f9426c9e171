"""Internal API routers — /status, /report, /opportunities, /control endpoints.

No business logic. Delegates to the ScanManager set during startup.
"""

import asyncio
import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, HTTPException

logger = logging.getLogger("rsiradar")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_scan_manager = None  # Set via configure_routers()
_background_scans: set = set()


def configure_routers(scan_manager=None) -> None:
    """Inject dependencies from the application startup.

    Args:
        scan_manager: A ``ScanManager`` instance (or duck-type for tests).
    """
    global _scan_manager  # noqa: PLW0603
    _scan_manager = scan_manager


def _require_manager():
    if _scan_manager is None:
        raise HTTPException(status_code=503, detail="Scanner not configured")
    return _scan_manager


def _latest_or_404():
    latest = _require_manager().latest
    if latest is None:
        raise HTTPException(status_code=404, detail="No scan has completed yet")
    return latest


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get("/status")
async def get_status():
    """Scan-loop state and the progress of the current (or last) scan."""
    if _scan_manager is None:
        return {"running": False, "scanning": False, "scan_count": 0, "has_report": False}
    return _scan_manager.get_status()


@router.get("/report")
async def get_report():
    """The latest RSI frequency report."""
    return asdict(_latest_or_404().report)


@router.get("/opportunities")
async def get_opportunities(limit: Optional[int] = None):
    """The latest breakout opportunities, best first."""
    opportunities = _latest_or_404().opportunities
    if limit is not None:
        opportunities = opportunities[: max(limit, 0)]
    return {
        "opportunities": [
            {**asdict(o), "display_score": o.display_score} for o in opportunities
        ]
    }


@router.post("/control/scan")
async def trigger_scan():
    """Start a scan now (or wake the periodic loop)."""
    manager = _require_manager()
    if manager.scanning:
        return {"status": "already_scanning"}

    if manager.get_status().get("running"):
        manager.request_scan()
    else:
        task = asyncio.create_task(manager.run_once())
        _background_scans.add(task)
        task.add_done_callback(_background_scans.discard)
    logger.info("Scan requested via API.")
    return {"status": "scan_requested"}
