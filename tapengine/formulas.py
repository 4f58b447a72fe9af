"""Economy curves. Pure functions; every value handed to a balance is floored."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Mapping

from tapengine import constants as C
from tapengine.content import MACHINES, NAMED_BOSSES, REGULAR_BOSS_NAMES, UPGRADES
from tapengine.cost_scaling import CostScaling
from tapengine.element import MachineDef, UpgradeDef

# ── Bosses ───────────────────────────────────────────────────────────


@dataclass
class Boss:
    """The current encounter. Derived from the stage; only ``hp`` changes."""

    name: str
    flavor: str
    hp: int
    max_hp: int
    stage: int
    scrap_reward: int
    data_reward: int
    is_mini: bool = False
    is_named: bool = False
    is_major: bool = False

    @property
    def is_defeated(self) -> bool:
        return self.hp <= 0


def boss_multiplier(stage: int) -> float:
    if stage % 100 == 0:
        return 10.0  # major
    if stage % 50 == 0:
        return 5.0  # named
    if stage % 10 == 0:
        return 2.0  # mini
    return 1.0


def boss_hp(stage: int) -> int:
    scaled = C.BASE_BOSS_HP * C.HP_SCALE_PER_STAGE ** (stage - 1)
    return math.floor(scaled * boss_multiplier(stage))


def scrap_reward(stage: int) -> int:
    scaled = C.BASE_SCRAP_REWARD * C.REWARD_SCALE_PER_STAGE ** (stage - 1)
    return math.floor(scaled * boss_multiplier(stage))


def data_reward(stage: int) -> int:
    """Data drops start at stage 10."""
    if stage < C.DATA_REWARD_MIN_STAGE:
        return 0
    scaled = C.BASE_DATA_REWARD * C.DATA_SCALE_PER_STAGE ** (stage - C.DATA_REWARD_MIN_STAGE)
    return math.floor(scaled * boss_multiplier(stage) * C.DATA_REWARD_BONUS)


def boss_info(stage: int, hp: int | None = None) -> Boss:
    """Build the boss for *stage*. *hp* restores a persisted health value."""
    if stage < 1:
        raise ValueError(f"Stage must be >= 1, got {stage}")
    is_major = stage % 100 == 0
    is_named = stage % 50 == 0
    is_mini = stage % 10 == 0 and not is_named and not is_major

    if stage in NAMED_BOSSES:
        name, flavor = NAMED_BOSSES[stage]
    elif is_major:
        name, flavor = f"ADMIN-{stage // 100}", "THE ADMINISTRATOR is watching..."
    elif is_mini:
        name, flavor = REGULAR_BOSS_NAMES[(stage // 10) % len(REGULAR_BOSS_NAMES)]
    else:
        name, flavor = REGULAR_BOSS_NAMES[stage % len(REGULAR_BOSS_NAMES)]

    max_hp = boss_hp(stage)
    if hp is None or hp > max_hp:
        hp = max_hp
    return Boss(
        name=name,
        flavor=flavor,
        hp=max(0, hp),
        max_hp=max_hp,
        stage=stage,
        scrap_reward=scrap_reward(stage),
        data_reward=data_reward(stage),
        is_mini=is_mini,
        is_named=is_named,
        is_major=is_major,
    )


# ── Damage ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TapResult:
    damage: int
    is_critical: bool


def base_tap_damage(
    weapon_damage: float,
    upgrades: Mapping[str, int],
    damage_boost: float = 1.0,
) -> float:
    """Unfloored, non-critical damage of one tap."""
    tap_mult = 1 + C.TAP_POWER_PER_LEVEL * upgrades.get("tap_power", 0)
    perm_mult = 1 + C.PERM_DAMAGE_PER_LEVEL * upgrades.get("perm_starting_damage", 0)
    return (C.BASE_DAMAGE + weapon_damage) * tap_mult * perm_mult * damage_boost


def crit_chance(upgrades: Mapping[str, int], equipment_crit_bonus: float = 0.0) -> float:
    return (
        C.BASE_CRIT_CHANCE
        + C.CRIT_CHANCE_PER_LEVEL * upgrades.get("crit_chance", 0)
        + equipment_crit_bonus
    )


def crit_multiplier(upgrades: Mapping[str, int]) -> float:
    return C.BASE_CRIT_MULTIPLIER + C.CRIT_DAMAGE_PER_LEVEL * upgrades.get("crit_damage", 0)


def tap_damage(
    weapon_damage: float,
    upgrades: Mapping[str, int],
    damage_boost: float = 1.0,
    equipment_crit_bonus: float = 0.0,
    force_crit: bool = False,
    rng: random.Random | None = None,
) -> TapResult:
    """Resolve one tap.

    *upgrades* maps upgrade type to level. *equipment_crit_bonus* is a
    fraction (catalog percent / 100). The result is floored and never
    below 1.
    """
    chance = 1.0 if force_crit else crit_chance(upgrades, equipment_crit_bonus)
    roll = (rng or random).random()
    is_critical = roll < chance
    mult = crit_multiplier(upgrades) if is_critical else 1.0
    damage = math.floor(base_tap_damage(weapon_damage, upgrades, damage_boost) * mult)
    return TapResult(damage=max(1, damage), is_critical=is_critical)


def weapon_damage_at_level(base_damage: int, level: int) -> int:
    return math.floor(base_damage * (1 + C.WEAPON_DAMAGE_PER_LEVEL * level))


def weapon_upgrade_cost(tier: int, level: int) -> int:
    scaling = CostScaling.tiered(tier, C.WEAPON_UPGRADE_COST_SCALE)
    return scaling.compute(C.WEAPON_UPGRADE_BASE_COST, level)


# ── Machines and upgrades ────────────────────────────────────────────


def _machine(machine: MachineDef | str) -> MachineDef:
    if isinstance(machine, MachineDef):
        return machine
    try:
        return MACHINES[machine]
    except KeyError:
        raise ValueError(f"Unknown machine type: {machine!r}") from None


def _upgrade(upgrade: UpgradeDef | str) -> UpgradeDef:
    if isinstance(upgrade, UpgradeDef):
        return upgrade
    try:
        return UPGRADES[upgrade]
    except KeyError:
        raise ValueError(f"Unknown upgrade type: {upgrade!r}") from None


def machine_production(machine: MachineDef | str, level: int) -> float:
    """Output per second. Doubles with every level; zero when unowned."""
    if level <= 0:
        return 0.0
    return _machine(machine).base_production * 2 ** (level - 1)


def machine_cost(machine: MachineDef | str, level: int, levels: int = 1) -> int:
    """Price of *levels* consecutive levels bought from *level*."""
    mdef = _machine(machine)
    return mdef.cost_scaling.total(mdef.base_cost, level, levels)


def upgrade_cost(upgrade: UpgradeDef | str, level: int) -> int:
    udef = _upgrade(upgrade)
    return udef.cost_scaling.compute(udef.base_cost, level)


def upgrade_effect(upgrade: UpgradeDef | str, level: int) -> float:
    return _upgrade(upgrade).effect * level


# ── Offline and prestige ─────────────────────────────────────────────


def offline_cap_seconds(storage_level: int, permanent_bonus_level: int = 0) -> int:
    index = min(max(storage_level, 1), len(C.OFFLINE_CAP_HOURS)) - 1
    hours = C.OFFLINE_CAP_HOURS[index] + C.OFFLINE_CAP_PER_PERM_LEVEL_HOURS * permanent_bonus_level
    return hours * 3600


def storage_upgrade_cost(storage_level: int) -> int | None:
    """Scrap price of the next offline storage tier, or None at the top tier."""
    if storage_level >= len(C.OFFLINE_CAP_COSTS):
        return None
    return C.OFFLINE_CAP_COSTS[storage_level]


def prestige_core_fragments(highest_stage: int, bonus_level: int = 0) -> int:
    if highest_stage < C.PRESTIGE_FRAGMENT_MIN_STAGE:
        return 0
    base = math.floor(math.sqrt(highest_stage / 10))
    return math.floor(base * (1 + C.PRESTIGE_BONUS_PER_LEVEL * bonus_level))
