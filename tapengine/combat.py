from __future__ import annotations

import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from tapengine import constants as C
from tapengine.effect import EffectType
from tapengine.element import ItemType
from tapengine.formulas import boss_info, tap_damage, weapon_damage_at_level
from tapengine.state import DamageNumber, LootDrop

if TYPE_CHECKING:
    from tapengine.state import GameState, PlayerRecord


class CombatPhase(Enum):
    AWAITING_INPUT = "awaiting_input"
    RESOLVING_HIT = "resolving_hit"
    BOSS_ALIVE = "boss_alive"
    BOSS_DEFEATED = "boss_defeated"
    STAGE_ADVANCING = "stage_advancing"


@dataclass(frozen=True)
class Loadout:
    """Combined bonuses of the equipped weapon, armor and accessory."""

    weapon_damage: int = 0
    crit_chance_bonus: float = 0.0  # fraction
    scrap_mult: float = 1.0
    data_mult: float = 1.0


def loadout(record: PlayerRecord) -> Loadout:
    weapon = record.equipped(ItemType.WEAPON)
    armor = record.equipped(ItemType.ARMOR)
    accessory = record.equipped(ItemType.ACCESSORY)

    damage = 0
    if weapon is not None:
        damage = weapon_damage_at_level(weapon.item.damage_bonus, weapon.upgrade_level)
    crit = 0.0
    scrap_pct = 0.0
    data_pct = 0.0
    for gear in (armor, accessory):
        if gear is None:
            continue
        damage += gear.item.damage_bonus
        crit += gear.item.crit_chance_bonus
        scrap_pct += gear.item.scrap_bonus
        data_pct += gear.item.data_bonus
    return Loadout(
        weapon_damage=damage,
        crit_chance_bonus=crit / 100,
        scrap_mult=1 + scrap_pct / 100,
        data_mult=1 + data_pct / 100,
    )


def ensure_boss(state: GameState) -> None:
    """Regenerate the boss from the persisted stage and health."""
    progress = state.progress
    hp = progress.current_boss_hp if progress.current_boss_max_hp > 0 else None
    state.boss = boss_info(progress.current_stage, hp)
    progress.current_boss_hp = state.boss.hp
    progress.current_boss_max_hp = state.boss.max_hp


def deal_damage(state: GameState, amount: int, counted: bool = True) -> int:
    """Subtract *amount* from the boss, floored at zero. Returns damage dealt.

    Machine fire passes ``counted=False``: only hits the player made count
    toward ``total_damage_dealt``.
    """
    if state.boss is None:
        ensure_boss(state)
    boss = state.boss
    amount = max(0, amount)
    boss.hp = max(0, boss.hp - amount)
    state.progress.current_boss_hp = boss.hp
    if counted:
        state.progress.total_damage_dealt += amount
    return amount


def phase(state: GameState) -> CombatPhase:
    if state.boss is None:
        return CombatPhase.STAGE_ADVANCING
    if state.boss.is_defeated and state.progress.current_stage > state.last_defeated_stage:
        return CombatPhase.BOSS_DEFEATED
    return CombatPhase.AWAITING_INPUT


def resolve_tap(
    state: GameState, now: int, rng: random.Random | None = None
) -> DamageNumber:
    """Apply one manual tap to the current boss."""
    gear = loadout(state)
    result = tap_damage(
        gear.weapon_damage,
        state.upgrade_levels(),
        damage_boost=state.effects.aggregate(EffectType.DAMAGE_BOOST, now),
        equipment_crit_bonus=gear.crit_chance_bonus,
        force_crit=state.effects.is_active(EffectType.CRIT_BOOST, now),
        rng=rng,
    )
    deal_damage(state, result.damage)
    state.progress.total_taps += 1
    stats = state.prestige_stats
    stats.highest_damage_hit = max(stats.highest_damage_hit, result.damage)

    number = DamageNumber(
        id=_next_damage_id(state),
        amount=result.damage,
        is_critical=result.is_critical,
        created_at=now,
    )
    state.damage_numbers = [*state.damage_numbers, number]
    return number


def defeat_boss(state: GameState, now: int) -> LootDrop | None:
    """Pay out the dead boss and advance one stage.

    Runs at most once per stage: a second call for a stage that was
    already cleared returns None and changes nothing.
    """
    boss = state.boss
    progress = state.progress
    if boss is None or not boss.is_defeated:
        return None
    if progress.current_stage <= state.last_defeated_stage:
        return None

    gear = loadout(state)
    drop_mult = 1 + C.DROP_RATE_PER_LEVEL * state.upgrade_level("drop_rate")
    effects = state.effects
    reward_boost = effects.aggregate(EffectType.REWARD_BOOST, now)
    scrap_gain = math.floor(
        boss.scrap_reward * drop_mult * gear.scrap_mult * reward_boost
        * effects.aggregate(EffectType.SCRAP_BOOST, now)
    )
    data_gain = math.floor(
        boss.data_reward * drop_mult * gear.data_mult * reward_boost
        * effects.aggregate(EffectType.DATA_BOOST, now)
    )

    cleared = progress.current_stage
    state.last_defeated_stage = cleared
    progress.scrap += scrap_gain
    progress.data_points += data_gain
    progress.run_scrap_earned += scrap_gain
    progress.run_data_earned += data_gain
    progress.run_bosses_killed += 1

    progress.current_stage = cleared + 1
    progress.highest_stage = max(progress.highest_stage, progress.current_stage)
    state.boss = boss_info(progress.current_stage)
    progress.current_boss_hp = state.boss.hp
    progress.current_boss_max_hp = state.boss.max_hp

    effects.consume(EffectType.REWARD_BOOST, now)

    drop = LootDrop(stage=cleared, scrap=scrap_gain, data=data_gain)
    state.loot_drops = [*state.loot_drops, drop]
    return drop


def apply_instant_damage(state: GameState, fraction: float) -> int:
    """Remove a fraction of the boss's max HP at once."""
    if state.boss is None:
        ensure_boss(state)
    return deal_damage(state, math.floor(state.boss.max_hp * fraction))


def _next_damage_id(state: GameState) -> int:
    if not state.damage_numbers:
        return state.progress.total_taps
    return max(state.progress.total_taps, state.damage_numbers[-1].id + 1)
