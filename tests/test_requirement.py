"""Tests for requirement module."""
from tapengine.currency import Currency
from tapengine.element import MachineState
from tapengine.requirement import Req
from tapengine.state import PlayerProgress, PlayerRecord, PrestigeStats


def _make_record(**progress) -> PlayerRecord:
    return PlayerRecord(progress=PlayerProgress(**progress))


def test_stage():
    r = _make_record(highest_stage=12)
    assert Req.stage(">=", 10).evaluate(r)
    assert not Req.stage(">=", 13).evaluate(r)


def test_resource():
    r = _make_record(scrap=500, data_points=20)
    assert Req.resource(Currency.SCRAP, ">=", 500).evaluate(r)
    assert not Req.resource(Currency.DATA, ">", 20).evaluate(r)


def test_bosses_killed_counts_lifetime_and_run():
    r = PlayerRecord(
        progress=PlayerProgress(run_bosses_killed=3),
        prestige_stats=PrestigeStats(lifetime_bosses_killed=97),
    )
    assert Req.bosses_killed(">=", 100).evaluate(r)


def test_taps():
    r = PlayerRecord(
        progress=PlayerProgress(total_taps=10),
        prestige_stats=PrestigeStats(lifetime_taps=5),
    )
    assert Req.taps("==", 15).evaluate(r)


def test_machine_levels():
    r = _make_record()
    r.machines = {
        "scrap_collector": MachineState("scrap_collector", 6),
        "auto_turret": MachineState("auto_turret", 4),
    }
    assert Req.machine_levels(">=", 10).evaluate(r)
    assert not Req.machine_levels(">", 10).evaluate(r)


def test_and_or_operators():
    r = _make_record(highest_stage=5, scrap=10)
    high = Req.stage(">=", 5)
    rich = Req.resource(Currency.SCRAP, ">=", 1000)
    assert not (high & rich).evaluate(r)
    assert (high | rich).evaluate(r)


def test_all_any():
    r = _make_record(highest_stage=5)
    assert Req.all(Req.stage(">=", 1), Req.stage("<", 6)).evaluate(r)
    assert Req.any(Req.stage(">=", 99), Req.stage("==", 5)).evaluate(r)
    assert not Req.any(Req.stage(">=", 99)).evaluate(r)


def test_custom():
    req = Req.custom(lambda r: r.progress.core_fragments > 0)
    assert not req.evaluate(_make_record())
    assert req.evaluate(_make_record(core_fragments=1))
