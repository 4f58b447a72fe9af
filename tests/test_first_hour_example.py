"""Integration test with the scripted example playthrough."""
import asyncio
import os
import sys

# Ensure examples can be imported
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from examples.first_hour import play
from tapengine.formatting import format_status_report


def test_scripted_play_progresses_and_persists():
    session = asyncio.run(play(seconds=300))
    state = session.state
    assert state.progress.highest_stage >= 5
    assert state.upgrade_level("tap_power") >= 1

    acct = session.transport.server.ledger.find_by_username("example")
    assert acct.progress.current_stage == state.progress.current_stage
    assert acct.progress.total_taps == state.progress.total_taps
    assert acct.upgrades["tap_power"].level == state.upgrade_level("tap_power")

    report = format_status_report(state)
    assert "example" in report
