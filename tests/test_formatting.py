"""Tests for formatting module."""
from tapengine.combat import ensure_boss
from tapengine.element import MachineState
from tapengine.formatting import format_duration, format_number, format_status_report
from tapengine.offline import OfflineEarnings
from tapengine.state import GameState, PlayerProgress


def test_format_number():
    assert format_number(0) == "0"
    assert format_number(999) == "999"
    assert format_number(1500) == "1.50K"
    assert format_number(2_500_000) == "2.50M"
    assert format_number(3 * 10**9) == "3.00B"
    assert format_number(10**16) == "10.00Q"
    assert format_number(0.5) == "0.50"


def test_format_duration():
    assert format_duration(2700) == "45m"
    assert format_duration(7500) == "2h 5m"
    assert format_duration(59) == "0m"


def test_status_report():
    state = GameState(
        progress=PlayerProgress(current_stage=4, highest_stage=7, scrap=1500),
        username="eve",
    )
    state.machines["scrap_collector"] = MachineState("scrap_collector", 2)
    state.pending_offline = OfflineEarnings(7200, 0, 0, 9000, 7200, True)
    ensure_boss(state)
    report = format_status_report(state)
    assert "eve" in report
    assert "Stage: 4 (highest 7)" in report
    assert "Scrap: 1.50K" in report
    assert "scrap_collector" in report
    assert "Offline storage: 2h 0m" in report
    assert "Unclaimed: 7.20K scrap" in report
