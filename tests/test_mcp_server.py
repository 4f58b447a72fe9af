"""Tests for MCP server tool functions."""
import asyncio

import pytest

from tapengine.config import EngineConfig
from tapengine.content import define_game
from tapengine.mcp.server import (
    _GameHolder,
    _MAX_TAPS,
    _MAX_WAIT,
    _new_holder,
    _tool_buy_item,
    _tool_buy_machine,
    _tool_buy_upgrade,
    _tool_collect_offline,
    _tool_equip,
    _tool_get_game_info,
    _tool_get_game_state,
    _tool_get_shop,
    _tool_go_offline,
    _tool_login,
    _tool_new_game,
    _tool_prestige,
    _tool_tap,
    _tool_upgrade_storage,
    _tool_upgrade_weapon,
    _tool_use_skill,
    _tool_wait,
    create_server,
)


def _run(coro):
    return asyncio.run(coro)


def _make_holder() -> _GameHolder:
    return _new_holder(define_game(), EngineConfig())


def _logged_in(scrap: int = 0, data: int = 0) -> _GameHolder:
    holder = _make_holder()
    assert _run(_tool_login(holder, "tester"))["success"]
    if scrap or data:
        acct = holder.server.ledger.find_by_username("tester")
        acct.progress.scrap = scrap
        acct.progress.data_points = data
        assert _run(holder.session.reload())
    return holder


class TestGameInfo:
    def test_info(self):
        info = _tool_get_game_info(_make_holder())
        assert info["name"] == "Scrapyard Reboot"
        assert [m["type"] for m in info["machines"]][0] == "scrap_collector"
        assert {s["id"] for s in info["skills"]} == {"overclock", "emp_burst", "data_surge"}
        assert info["prestige_min_stage"] == 50

    def test_state_requires_login(self):
        assert "error" in _tool_get_game_state(_make_holder())

    def test_state(self):
        state = _tool_get_game_state(_logged_in())
        assert state["username"] == "tester"
        assert state["stage"] == 1
        assert state["boss"]["hp"] == 100
        assert state["balances"] == {"scrap": 0, "data_points": 0, "core_fragments": 0}
        assert "pending_offline" not in state

    def test_shop(self):
        shop = _run(_tool_get_shop(_logged_in()))
        assert any(i["id"] == 302 for i in shop["items"])
        machines = {m["type"]: m for m in shop["machines"]}
        assert machines["scrap_collector"]["next_cost"] == 1000
        assert not machines["data_miner"]["unlocked"]


class TestLogin:
    def test_bad_username(self):
        result = _run(_tool_login(_make_holder(), "?"))
        assert not result["success"]

    def test_login_returns_state(self):
        result = _run(_tool_login(_make_holder(), "tester"))
        assert result["state"]["stage"] == 1


class TestTap:
    def test_tap(self):
        holder = _logged_in()
        result = _run(_tool_tap(holder, 5))
        assert result["taps"] == 5
        assert result["damage"] >= 5
        assert result["boss_hp"] == 100 - result["damage"]

    def test_tap_limits(self):
        holder = _logged_in()
        assert "error" in _run(_tool_tap(holder, 0))
        assert "error" in _run(_tool_tap(holder, _MAX_TAPS + 1))

    def test_tap_through_boss(self):
        holder = _logged_in()
        result = _run(_tool_tap(holder, 100))
        assert result["stage"] == 2
        assert result["bosses_defeated"][0]["stage"] == 1

    def test_tap_requires_login(self):
        assert "error" in _run(_tool_tap(_make_holder(), 1))


class TestSpending:
    def test_buy_machine(self):
        holder = _logged_in(scrap=1000)
        result = _run(_tool_buy_machine(holder, "scrap_collector"))
        assert result["success"]
        assert result["balances"]["scrap"] == 0

    def test_buy_machine_insufficient(self):
        result = _run(_tool_buy_machine(_logged_in(), "scrap_collector"))
        assert not result["success"]

    def test_buy_equip_and_upgrade_weapon(self):
        holder = _logged_in(scrap=550)
        assert _run(_tool_buy_item(holder, 1))["success"]
        inv_id = holder.session.state.inventory[0].inventory_id
        assert _run(_tool_equip(holder, inv_id))["success"]
        assert _run(_tool_upgrade_weapon(holder, inv_id))["success"]
        state = _tool_get_game_state(holder)
        assert state["inventory"][0]["is_equipped"]
        assert state["inventory"][0]["upgrade_level"] == 1

    def test_buy_consumable_shows_effect(self):
        holder = _logged_in(data=100)
        assert _run(_tool_buy_item(holder, 301))["success"]
        effects = _tool_get_game_state(holder)["active_effects"]
        assert effects[0]["type"] == "damage_boost"
        assert effects[0]["remaining"] == pytest.approx(30.0)

    def test_buy_upgrade(self):
        holder = _logged_in(scrap=100)
        assert _run(_tool_buy_upgrade(holder, "tap_power"))["success"]
        assert _tool_get_game_state(holder)["upgrades"] == {"tap_power": 1}

    def test_upgrade_storage(self):
        holder = _logged_in(scrap=10_000)
        assert _run(_tool_upgrade_storage(holder))["success"]


class TestSkills:
    def test_unknown_skill(self):
        assert "error" in _run(_tool_use_skill(_logged_in(), "nuke"))

    def test_cooldown(self):
        holder = _logged_in()
        assert _run(_tool_use_skill(holder, "overclock"))["success"]
        result = _run(_tool_use_skill(holder, "overclock"))
        assert not result["success"]
        assert "cooldown" in result["reason"]


class TestWait:
    def test_wait_limits(self):
        holder = _logged_in()
        assert "error" in _run(_tool_wait(holder, 0))
        assert "error" in _run(_tool_wait(holder, _MAX_WAIT + 1))

    def test_wait_produces_and_saves(self):
        holder = _logged_in(scrap=1000)
        _run(_tool_buy_machine(holder, "scrap_collector"))
        result = _run(_tool_wait(holder, 10))
        assert result["earned"]["scrap"] == 10
        assert result["saved"]
        acct = holder.server.ledger.find_by_username("tester")
        assert acct.progress.scrap == 10

    def test_wait_fractional_seconds(self):
        holder = _logged_in(scrap=1000)
        _run(_tool_buy_machine(holder, "scrap_collector"))
        assert _run(_tool_wait(holder, 2.5))["earned"]["scrap"] == 2


class TestOffline:
    def test_go_offline_and_collect(self):
        holder = _logged_in(scrap=1000)
        _run(_tool_buy_machine(holder, "scrap_collector"))
        result = _run(_tool_go_offline(holder, 3600))
        assert result["success"]
        assert result["pending_offline"]["scrap"] == "3.60K"
        assert "pending_offline" in _tool_get_game_state(holder)

        assert _run(_tool_collect_offline(holder))["success"]
        assert _tool_get_game_state(holder)["balances"]["scrap"] == 3600

    def test_go_offline_without_machines(self):
        result = _run(_tool_go_offline(_logged_in(), 3600))
        assert result["pending_offline"] is None

    def test_collect_nothing(self):
        assert not _run(_tool_collect_offline(_logged_in()))["success"]


class TestPrestige:
    def test_prestige_too_early(self):
        result = _run(_tool_prestige(_logged_in()))
        assert not result["success"]
        assert "50" in result["reason"]

    def test_prestige(self):
        holder = _logged_in()
        acct = holder.server.ledger.find_by_username("tester")
        acct.progress.current_stage = 100
        acct.progress.highest_stage = 100
        _run(holder.session.reload())
        result = _run(_tool_prestige(holder))
        assert result["success"]
        assert result["core_fragments_earned"] == 3


class TestNewGame:
    def test_new_game_resets_world(self):
        holder = _logged_in()
        _run(_tool_tap(holder, 3))
        assert _run(_tool_new_game(holder))["success"]
        assert "error" in _tool_get_game_state(holder)
        assert len(holder.server.ledger) == 0


def test_create_server():
    server = create_server(define_game())
    assert "Scrapyard Reboot" in server.name
