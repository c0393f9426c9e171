"""Tests for rsiradar.analysis.zones — classification, entry counting, tracker."""

import pytest

from rsiradar.analysis.zones import (
    NORMAL,
    OVERBOUGHT,
    OVERSOLD,
    SymbolZoneState,
    ZoneStateMachine,
    ZoneTracker,
    classify_rsi,
)
from rsiradar.market.models import TIMEFRAME_NAMES

# Representative RSI readings per zone
_RSI = {NORMAL: 50.0, OVERBOUGHT: 75.0, OVERSOLD: 25.0}


def _feed(state: SymbolZoneState, zones: list[str], price: float = 1.0) -> None:
    for tf, zone in zip(TIMEFRAME_NAMES, zones):
        state.record(tf, _RSI[zone], price)


class TestClassifyRsi:
    @pytest.mark.parametrize(
        "value, zone",
        [
            (70.0, OVERBOUGHT),
            (99.9, OVERBOUGHT),
            (69.99, NORMAL),
            (30.01, NORMAL),
            (30.0, OVERSOLD),
            (0.0, OVERSOLD),
        ],
    )
    def test_thresholds(self, value, zone):
        assert classify_rsi(value) == zone


class TestZoneStateMachine:
    def test_starts_normal(self):
        assert ZoneStateMachine().state == NORMAL

    def test_entry_only_on_change_into_extreme(self):
        sm = ZoneStateMachine()
        assert sm.advance(OVERBOUGHT) == OVERBOUGHT
        assert sm.advance(OVERBOUGHT) is None
        assert sm.advance(NORMAL) is None
        assert sm.state == NORMAL

    def test_opposite_extreme_counts_as_entry(self):
        sm = ZoneStateMachine()
        sm.advance(OVERSOLD)
        assert sm.advance(OVERBOUGHT) == OVERBOUGHT

    def test_unknown_zone_rejected(self):
        with pytest.raises(ValueError):
            ZoneStateMachine().advance("sideways")


class TestSymbolZoneState:
    def test_entry_count_follows_processing_order(self):
        state = SymbolZoneState(symbol="BTCUSDT")
        _feed(state, [NORMAL, OVERBOUGHT, OVERBOUGHT, NORMAL, OVERBOUGHT, NORMAL])
        assert state.zone_entries[OVERBOUGHT] == 2
        assert state.zone_entries[OVERSOLD] == 0
        assert state.appearance_total(OVERBOUGHT) == 3

    def test_appearances_per_timeframe(self):
        state = SymbolZoneState(symbol="ETHUSDT")
        _feed(state, [OVERSOLD, NORMAL, OVERSOLD, NORMAL, NORMAL, NORMAL])
        assert state.appearances[OVERSOLD]["15m"] == 1
        assert state.appearances[OVERSOLD]["1h"] == 0
        assert state.appearances[OVERSOLD]["4h"] == 1
        assert state.appearance_total(OVERBOUGHT) == 0

    def test_last_zone_state_updated_for_every_timeframe(self):
        state = SymbolZoneState(symbol="ETHUSDT")
        _feed(state, [OVERSOLD, NORMAL, OVERBOUGHT])
        assert state.last_zone_state == {"15m": OVERSOLD, "1h": NORMAL, "4h": OVERBOUGHT}

    def test_first_price_latched_once(self):
        state = SymbolZoneState(symbol="SOLUSDT")
        state.record("15m", 80.0, 10.0)
        state.record("1h", 50.0, 11.0)
        state.record("4h", 85.0, 12.0)
        assert state.first_price[OVERBOUGHT] == 10.0
        assert state.first_price[OVERSOLD] is None
        assert state.current_price == 12.0

    def test_counters_never_decrease(self):
        state = SymbolZoneState(symbol="XRPUSDT")
        previous = 0
        for tf, zone in zip(TIMEFRAME_NAMES, [OVERBOUGHT, NORMAL, OVERBOUGHT, OVERSOLD, NORMAL, OVERBOUGHT]):
            state.record(tf, _RSI[zone], 1.0)
            total = state.zone_entries[OVERBOUGHT] + state.zone_entries[OVERSOLD]
            assert total >= previous
            previous = total
        assert state.zone_entries == {OVERBOUGHT: 3, OVERSOLD: 1}


class TestZoneTracker:
    def test_states_follow_input_order(self):
        tracker = ZoneTracker(["AAAUSDT", "BBBUSDT", "CCCUSDT"])
        tracker.record("CCCUSDT", "15m", 75.0, 1.0)
        tracker.record("AAAUSDT", "15m", 75.0, 1.0)
        assert [s.symbol for s in tracker.states()] == ["AAAUSDT", "CCCUSDT"]
        assert len(tracker) == 2
        assert "BBBUSDT" not in tracker

    def test_symbol_class_propagates(self):
        tracker = ZoneTracker(["AAAUSDT"], symbol_class="SPOT")
        tracker.record("AAAUSDT", "1h", 50.0, 2.0)
        assert tracker.get("AAAUSDT").symbol_class == "SPOT"

    def test_current_prices(self):
        tracker = ZoneTracker(["AAAUSDT", "BBBUSDT"])
        tracker.record("AAAUSDT", "15m", 50.0, 1.5)
        tracker.record("AAAUSDT", "1h", 50.0, 1.6)
        assert tracker.current_prices() == {"AAAUSDT": 1.6}

    def test_fresh_tracker_has_no_history(self):
        first = ZoneTracker(["AAAUSDT"])
        first.record("AAAUSDT", "15m", 80.0, 1.0)
        second = ZoneTracker(["AAAUSDT"])
        assert second.get("AAAUSDT") is None
        assert len(second) == 0
