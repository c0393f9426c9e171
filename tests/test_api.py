"""Tests for the internal API — /health, /status, /report, /opportunities, /control/scan."""

from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from rsiradar.analysis.breakout import score_breakouts
from rsiradar.analysis.models import AnalysisResult, BreakoutMetrics
from rsiradar.analysis.report import generate_report
from rsiradar.analysis.zones import ZoneTracker
from rsiradar.api.routers import configure_routers
from rsiradar.main import app

client = TestClient(app)


# ── Helpers ──────────────────────────────────────────────────────────────


def _result() -> AnalysisResult:
    tracker = ZoneTracker(["AAAUSDT", "BBBUSDT"])
    tracker.record("AAAUSDT", "15m", 80.0, 2.0)
    tracker.record("BBBUSDT", "15m", 20.0, 5.0)
    report, _ = generate_report(tracker, {})
    metrics = {
        "AAAUSDT": BreakoutMetrics(60.0, 50.0, 2.0, -1.0, 1.0),
        "BBBUSDT": BreakoutMetrics(60.0, 40.0, 5.0, 1.0, 3.0),
    }
    opportunities = score_breakouts(metrics, {"AAAUSDT": 2.0, "BBBUSDT": 5.0})
    return AnalysisResult(report=report, opportunities=opportunities)


def _make_manager(latest=None, scanning=False, running=False) -> MagicMock:
    manager = MagicMock()
    manager.latest = latest
    manager.scanning = scanning
    manager.get_status.return_value = {
        "running": running,
        "scanning": scanning,
        "scan_count": 1 if latest else 0,
        "progress": {"message": "Analysis complete", "percentage": 100},
        "last_error": None,
        "has_report": latest is not None,
    }
    manager.run_once = AsyncMock(return_value=latest)
    return manager


# ── Tests ────────────────────────────────────────────────────────────────


class TestHealth:
    def test_health(self):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestStatus:
    def test_status_unconfigured(self):
        configure_routers(scan_manager=None)
        resp = client.get("/status")
        assert resp.status_code == 200
        assert resp.json()["has_report"] is False

    def test_status_from_manager(self):
        configure_routers(scan_manager=_make_manager(latest=_result(), running=True))
        data = client.get("/status").json()
        assert data["running"] is True
        assert data["progress"]["percentage"] == 100


class TestReport:
    def test_report_404_before_first_scan(self):
        configure_routers(scan_manager=_make_manager(latest=None))
        assert client.get("/report").status_code == 404

    def test_report_503_unconfigured(self):
        configure_routers(scan_manager=None)
        assert client.get("/report").status_code == 503

    def test_report_schema(self):
        configure_routers(scan_manager=_make_manager(latest=_result()))
        resp = client.get("/report")
        assert resp.status_code == 200
        data = resp.json()
        assert data["overbought"][0]["symbol"] == "AAAUSDT"
        assert data["overbought"][0]["position_change"] == "🆕"
        assert data["oversold"][0]["symbol"] == "BBBUSDT"
        assert data["stats"] == {"total_tracked": 2, "total_extreme": 2}
        assert data["current_positions"]["overbought"] == {"AAAUSDT": 1}
        assert data["overbought_leader"]["symbol"] == "AAAUSDT"


class TestOpportunities:
    def test_opportunities_sorted_with_display_score(self):
        configure_routers(scan_manager=_make_manager(latest=_result()))
        data = client.get("/opportunities").json()
        symbols = [o["symbol"] for o in data["opportunities"]]
        assert symbols == ["BBBUSDT", "AAAUSDT"]
        assert data["opportunities"][1]["display_score"] == 81

    def test_limit(self):
        configure_routers(scan_manager=_make_manager(latest=_result()))
        data = client.get("/opportunities", params={"limit": 1}).json()
        assert len(data["opportunities"]) == 1


class TestControl:
    def test_trigger_wakes_running_loop(self):
        manager = _make_manager(latest=_result(), running=True)
        configure_routers(scan_manager=manager)
        resp = client.post("/control/scan")
        assert resp.json() == {"status": "scan_requested"}
        manager.request_scan.assert_called_once()
        manager.run_once.assert_not_called()

    def test_trigger_starts_single_scan_when_idle(self):
        manager = _make_manager(latest=None, running=False)
        configure_routers(scan_manager=manager)
        resp = client.post("/control/scan")
        assert resp.json() == {"status": "scan_requested"}
        manager.request_scan.assert_not_called()
        manager.run_once.assert_called_once()

    def test_trigger_while_scanning(self):
        manager = _make_manager(latest=_result(), scanning=True)
        configure_routers(scan_manager=manager)
        assert client.post("/control/scan").json() == {"status": "already_scanning"}
