"""MCP server wrapping a GameSession and an in-process server for AI playtesting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from mcp.server.fastmcp import FastMCP

from tapengine._types import ManualClock
from tapengine.authority import GameServer
from tapengine.config import EngineConfig
from tapengine.definition import GameDefinition
from tapengine.formatting import format_duration, format_number
from tapengine.formulas import machine_cost, upgrade_cost
from tapengine.session import GameSession
from tapengine.transport import InProcessTransport

# Maximum seconds per wait() call (24 hours)
_MAX_WAIT = 86400
# Maximum taps per tap() call
_MAX_TAPS = 1000
# Playtest clock start: 2024-01-01T00:00:00Z
_EPOCH_MS = 1_704_067_200_000


@dataclass
class _GameHolder:
    """Holds the server, the client session and the shared manual clock."""

    definition: GameDefinition
    config: EngineConfig
    clock: ManualClock
    server: GameServer
    session: GameSession


def _new_holder(definition: GameDefinition, config: EngineConfig | None = None) -> _GameHolder:
    config = config or EngineConfig()
    clock = ManualClock(_EPOCH_MS)
    server = GameServer(definition, clock=clock, config=config)
    session = GameSession(
        InProcessTransport(server),
        definition=definition,
        config=config,
        clock=clock,
        run_timers=False,
    )
    return _GameHolder(definition, config, clock, server, session)


def _need_login(holder: _GameHolder) -> dict[str, Any] | None:
    if not holder.session.state.is_authenticated:
        return {"error": "Not logged in. Call login(username) first."}
    return None


def _balances(holder: _GameHolder) -> dict[str, int]:
    progress = holder.session.state.progress
    return {
        "scrap": progress.scrap,
        "data_points": progress.data_points,
        "core_fragments": progress.core_fragments,
    }


# ── Tool logic functions (testable without MCP protocol) ────────────


def _tool_get_game_info(holder: _GameHolder) -> dict[str, Any]:
    defn = holder.definition
    return {
        "name": defn.config.name,
        "machines": [
            {"type": m.type, "name": m.name, "unlock_stage": m.unlock_stage,
             "currency": m.cost_currency.value}
            for m in defn.machines
        ],
        "upgrades": [
            {"type": u.type, "name": u.name, "max_level": u.max_level,
             "is_permanent": u.is_permanent}
            for u in defn.upgrades
        ],
        "skills": [
            {"id": s.id, "name": s.name, "description": s.description, "cooldown": s.cooldown}
            for s in defn.skills
        ],
        "prestige_min_stage": holder.config.prestige_min_stage,
    }


def _tool_get_game_state(holder: _GameHolder) -> dict[str, Any]:
    denied = _need_login(holder)
    if denied:
        return denied
    state = holder.session.state
    now = holder.clock()
    boss = state.boss
    rates = holder.session.runtime.idle_rates()
    result: dict[str, Any] = {
        "username": state.username,
        "stage": state.progress.current_stage,
        "highest_stage": state.progress.highest_stage,
        "balances": _balances(holder),
        "boss": {
            "name": boss.name,
            "flavor": boss.flavor,
            "hp": boss.hp,
            "max_hp": boss.max_hp,
        } if boss else None,
        "idle_rates": {
            "scrap": round(rates.scrap, 4),
            "data": round(rates.data, 4),
            "dps": round(rates.dps, 4),
        },
        "machines": state.machine_levels(),
        "upgrades": state.upgrade_levels(),
        "inventory": [
            {"inventory_id": i.inventory_id, "name": i.item.name, "type": i.type.value,
             "upgrade_level": i.upgrade_level, "is_equipped": i.is_equipped}
            for i in state.inventory
        ],
        "active_effects": [
            {"type": e.type.value, "value": e.value,
             "remaining": round((e.ends_at - now) / 1000, 1)}
            for e in state.effects.effects if e.is_active(now)
        ],
        "achievements": sorted(state.achievements),
    }
    if state.pending_offline is not None:
        pending = state.pending_offline
        result["pending_offline"] = {
            "scrap": pending.scrap,
            "data": pending.data,
            "away": format_duration(pending.time_away),
            "was_capped": pending.was_capped,
        }
    return result


async def _tool_get_shop(holder: _GameHolder) -> dict[str, Any]:
    denied = _need_login(holder)
    if denied:
        return denied
    session = holder.session
    response = await session.transport.request("GET", "shop/items", None, session.token)
    if not response.ok:
        return {"error": response.json().get("error", "Shop unavailable")}
    state = session.state
    machines = []
    for mdef in holder.definition.machines:
        level = state.machine_level(mdef.type)
        machines.append({
            "type": mdef.type,
            "level": level,
            "next_cost": machine_cost(mdef, level),
            "currency": mdef.cost_currency.value,
            "unlocked": state.progress.highest_stage >= mdef.unlock_stage,
        })
    upgrades = []
    for udef in holder.definition.upgrades:
        level = state.upgrade_level(udef.type)
        maxed = udef.max_level is not None and level >= udef.max_level
        upgrades.append({
            "type": udef.type,
            "level": level,
            "next_cost": None if maxed else upgrade_cost(udef, level),
            "currency": udef.cost_currency.value,
        })
    return {"items": response.json()["items"], "machines": machines, "upgrades": upgrades}


async def _tool_login(holder: _GameHolder, username: str) -> dict[str, Any]:
    ok = await holder.session.login(username)
    if not ok:
        return {"success": False, "reason": "Login rejected (3-20 letters, digits, underscores)"}
    return {"success": True, "state": _tool_get_game_state(holder)}


async def _tool_tap(holder: _GameHolder, count: int = 1) -> dict[str, Any]:
    denied = _need_login(holder)
    if denied:
        return denied
    if count < 1:
        return {"error": "Count must be at least 1"}
    if count > _MAX_TAPS:
        return {"error": f"Count cannot exceed {_MAX_TAPS}"}

    session = holder.session
    total = 0
    crits = 0
    for _ in range(count):
        number = await session.tap()
        total += number.amount
        crits += number.is_critical
    _, drops = session.observations()
    return {
        "taps": count,
        "damage": total,
        "crits": crits,
        "bosses_defeated": [
            {"stage": d.stage, "scrap": d.scrap, "data": d.data} for d in drops
        ],
        "stage": session.state.progress.current_stage,
        "boss_hp": session.boss.hp if session.boss else None,
    }


async def _spend(holder: _GameHolder, coro) -> dict[str, Any]:
    ok = await coro
    if ok:
        return {"success": True, "balances": _balances(holder)}
    return {"success": False, "reason": "Rejected by server (see get_game_state)"}


async def _tool_buy_item(holder: _GameHolder, item_id: int, quantity: int = 1) -> dict[str, Any]:
    return _need_login(holder) or await _spend(holder, holder.session.buy_item(item_id, quantity))


async def _tool_buy_machine(holder: _GameHolder, machine_type: str, levels: int = 1) -> dict[str, Any]:
    return _need_login(holder) or await _spend(
        holder, holder.session.buy_machine(machine_type, levels)
    )


async def _tool_buy_upgrade(holder: _GameHolder, upgrade_type: str) -> dict[str, Any]:
    return _need_login(holder) or await _spend(holder, holder.session.buy_upgrade(upgrade_type))


async def _tool_equip(holder: _GameHolder, inventory_id: int, unequip: bool = False) -> dict[str, Any]:
    return _need_login(holder) or await _spend(
        holder, holder.session.equip(inventory_id, unequip)
    )


async def _tool_upgrade_weapon(holder: _GameHolder, inventory_id: int) -> dict[str, Any]:
    return _need_login(holder) or await _spend(holder, holder.session.upgrade_weapon(inventory_id))


async def _tool_upgrade_storage(holder: _GameHolder) -> dict[str, Any]:
    return _need_login(holder) or await _spend(holder, holder.session.upgrade_storage())


async def _tool_use_skill(holder: _GameHolder, skill_id: str) -> dict[str, Any]:
    denied = _need_login(holder)
    if denied:
        return denied
    if holder.definition.get_skill(skill_id) is None:
        return {"error": f"Unknown skill: {skill_id!r}"}
    if await holder.session.use_skill(skill_id):
        return {"success": True}
    remaining = holder.session.runtime.skill_cooldown(skill_id, holder.clock())
    return {"success": False, "reason": f"On cooldown for {remaining:.1f}s"}


async def _tool_wait(holder: _GameHolder, seconds: float) -> dict[str, Any]:
    denied = _need_login(holder)
    if denied:
        return denied
    if seconds <= 0:
        return {"error": "Seconds must be positive"}
    if seconds > _MAX_WAIT:
        return {"error": f"Cannot wait more than {_MAX_WAIT} seconds (24h) per call"}

    session = holder.session
    before = _balances(holder)
    # Subdivide into 1-second ticks
    remaining = seconds
    while remaining > 0:
        dt = min(1.0, remaining)
        holder.clock.advance(dt)
        await session.pulse(dt)
        remaining -= dt
    saved = await session.save()
    _, drops = session.observations()

    after = _balances(holder)
    return {
        "waited": seconds,
        "earned": {k: after[k] - before[k] for k in after},
        "bosses_defeated": len(drops),
        "stage": session.state.progress.current_stage,
        "saved": saved,
    }


async def _tool_go_offline(holder: _GameHolder, seconds: float) -> dict[str, Any]:
    """Save, let time pass with the client closed, then log back in."""
    denied = _need_login(holder)
    if denied:
        return denied
    if seconds <= 0 or seconds > 7 * _MAX_WAIT:
        return {"error": "Seconds must be between 0 and 7 days"}
    session = holder.session
    session.save_on_unload()
    holder.clock.advance(seconds)
    if not await session.reload():
        return {"success": False, "reason": "Reload failed"}
    pending = session.state.pending_offline
    if pending is None:
        return {"success": True, "pending_offline": None}
    return {
        "success": True,
        "pending_offline": {
            "scrap": format_number(pending.scrap),
            "data": format_number(pending.data),
            "credited": format_duration(pending.capped_at),
            "was_capped": pending.was_capped,
        },
    }


async def _tool_collect_offline(holder: _GameHolder) -> dict[str, Any]:
    return _need_login(holder) or await _spend(holder, holder.session.collect_offline())


async def _tool_prestige(holder: _GameHolder) -> dict[str, Any]:
    denied = _need_login(holder)
    if denied:
        return denied
    before = holder.session.state.progress.core_fragments
    if not await holder.session.prestige():
        return {
            "success": False,
            "reason": f"Reach stage {holder.config.prestige_min_stage} to reboot",
        }
    after = holder.session.state.progress.core_fragments
    return {"success": True, "core_fragments_earned": after - before, "core_fragments": after}


async def _tool_new_game(holder: _GameHolder) -> dict[str, Any]:
    await holder.session.close()
    fresh = _new_holder(holder.definition, holder.config)
    holder.clock = fresh.clock
    holder.server = fresh.server
    holder.session = fresh.session
    return {"success": True, "message": "Server and client reset; log in again"}


# ── Server factory ──────────────────────────────────────────────────


def create_server(definition: GameDefinition, config: EngineConfig | None = None) -> FastMCP:
    """Create an MCP server wrapping a GameSession for the given definition."""
    holder = _new_holder(definition, config)

    mcp = FastMCP(
        name=f"tapengine: {definition.config.name}",
    )

    @mcp.tool()
    def get_game_info() -> dict[str, Any]:
        """Get static game overview: machines, upgrades, skills, reboot threshold."""
        return _tool_get_game_info(holder)

    @mcp.tool()
    def get_game_state() -> dict[str, Any]:
        """Get current snapshot: stage, boss, balances, idle rates, gear, buffs."""
        return _tool_get_game_state(holder)

    @mcp.tool()
    async def get_shop() -> dict[str, Any]:
        """List shop items, machine and upgrade prices."""
        return await _tool_get_shop(holder)

    @mcp.tool()
    async def login(username: str) -> dict[str, Any]:
        """Log in (or create) a player."""
        return await _tool_login(holder, username)

    @mcp.tool()
    async def tap(count: int = 1) -> dict[str, Any]:
        """Tap the boss N times (max 1000)."""
        return await _tool_tap(holder, count)

    @mcp.tool()
    async def buy_item(item_id: int, quantity: int = 1) -> dict[str, Any]:
        """Buy a shop item by catalog id."""
        return await _tool_buy_item(holder, item_id, quantity)

    @mcp.tool()
    async def buy_machine(machine_type: str, levels: int = 1) -> dict[str, Any]:
        """Buy one or more machine levels."""
        return await _tool_buy_machine(holder, machine_type, levels)

    @mcp.tool()
    async def buy_upgrade(upgrade_type: str) -> dict[str, Any]:
        """Buy one upgrade level."""
        return await _tool_buy_upgrade(holder, upgrade_type)

    @mcp.tool()
    async def equip(inventory_id: int, unequip: bool = False) -> dict[str, Any]:
        """Equip or unequip an owned item."""
        return await _tool_equip(holder, inventory_id, unequip)

    @mcp.tool()
    async def upgrade_weapon(inventory_id: int) -> dict[str, Any]:
        """Level up an owned weapon."""
        return await _tool_upgrade_weapon(holder, inventory_id)

    @mcp.tool()
    async def upgrade_storage() -> dict[str, Any]:
        """Raise the offline storage cap one tier."""
        return await _tool_upgrade_storage(holder)

    @mcp.tool()
    async def use_skill(skill_id: str) -> dict[str, Any]:
        """Activate a skill: overclock, emp_burst or data_surge."""
        return await _tool_use_skill(holder, skill_id)

    @mcp.tool()
    async def wait(seconds: float) -> dict[str, Any]:
        """Advance time while online (max 86400). Time is subdivided into 1s ticks."""
        return await _tool_wait(holder, seconds)

    @mcp.tool()
    async def go_offline(seconds: float) -> dict[str, Any]:
        """Close the client for the given seconds, then reconnect."""
        return await _tool_go_offline(holder, seconds)

    @mcp.tool()
    async def collect_offline() -> dict[str, Any]:
        """Claim pending offline earnings."""
        return await _tool_collect_offline(holder)

    @mcp.tool()
    async def prestige() -> dict[str, Any]:
        """Reboot for core fragments."""
        return await _tool_prestige(holder)

    @mcp.tool()
    async def new_game() -> dict[str, Any]:
        """Reset server and client to an empty world."""
        return await _tool_new_game(holder)

    return mcp
