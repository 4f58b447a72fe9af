"""Tests for offline module."""
from tapengine.element import MachineState, UpgradeState
from tapengine.offline import OfflineEarnings, compute_offline_earnings, offline_cap_for
from tapengine.state import PlayerProgress, PlayerRecord

HOUR_MS = 3600 * 1000


def _make_record(collector_level: int = 1, **progress) -> PlayerRecord:
    record = PlayerRecord(progress=PlayerProgress(**progress))
    if collector_level:
        record.machines["scrap_collector"] = MachineState("scrap_collector", collector_level)
    return record


def test_offline_cap_for_includes_permanent_boost():
    record = _make_record(offline_cap_level=2)
    assert offline_cap_for(record) == 3 * 3600
    record.upgrades["perm_storage_boost"] = UpgradeState("perm_storage_boost", 1, True)
    assert offline_cap_for(record) == 4 * 3600


def test_earnings_within_cap():
    earned = compute_offline_earnings(_make_record(), 0, HOUR_MS)
    assert earned.scrap == 3600
    assert earned.data == 0
    assert earned.time_away == 3600
    assert earned.capped_at == 3600
    assert not earned.was_capped


def test_earnings_clamped_to_cap():
    earned = compute_offline_earnings(_make_record(), 0, 3 * HOUR_MS)
    assert earned.scrap == 7200
    assert earned.time_away == 3 * 3600
    assert earned.capped_at == 7200
    assert earned.was_capped


def test_cap_override():
    earned = compute_offline_earnings(_make_record(), 0, HOUR_MS, cap_seconds=600)
    assert earned.scrap == 600
    assert earned.was_capped


def test_turret_damage_accrues():
    record = _make_record(collector_level=0)
    record.machines["auto_turret"] = MachineState("auto_turret", 2)
    earned = compute_offline_earnings(record, 0, 100_000)
    assert earned.damage == 200
    assert earned.scrap == 0


def test_clock_going_backwards_earns_nothing():
    earned = compute_offline_earnings(_make_record(), HOUR_MS, 0)
    assert earned.is_empty
    assert earned.time_away == 0


def test_merge_and_dict():
    a = OfflineEarnings(10, 1, 0, 100, 100, False)
    b = OfflineEarnings(5, 0, 3, 50, 20, True)
    merged = a.merge(b)
    assert merged == OfflineEarnings(15, 1, 3, 150, 120, True)
    assert OfflineEarnings.from_dict(merged.to_dict()) == merged
