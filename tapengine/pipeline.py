from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping

from tapengine import constants as C
from tapengine.combat import loadout
from tapengine.effect import EffectType
from tapengine.formulas import base_tap_damage, machine_production

if TYPE_CHECKING:
    from tapengine.state import GameState

# What each producing machine type contributes to.
MACHINE_OUTPUTS: dict[str, str] = {
    "scrap_collector": "scrap",
    "data_miner": "data",
    "auto_turret": "dps",
}


@dataclass(frozen=True)
class IdleProduction:
    """Per-second idle rates. Unfloored."""

    scrap: float = 0.0
    data: float = 0.0
    dps: float = 0.0

    @property
    def is_idle(self) -> bool:
        return self.scrap == 0 and self.data == 0 and self.dps == 0


def idle_multiplier(upgrades: Mapping[str, int]) -> float:
    return (
        1
        + C.IDLE_POWER_PER_LEVEL * upgrades.get("idle_power", 0)
        + C.PERM_IDLE_PER_LEVEL * upgrades.get("perm_idle_efficiency", 0)
    )


def compute_idle_production(
    machines: Mapping[str, int], upgrades: Mapping[str, int]
) -> IdleProduction:
    """Aggregate machine output from machine levels and upgrade levels.

    The efficiency bot produces no resource itself; its output is a
    fractional bonus applied to everything else.
    """
    totals = {"scrap": 0.0, "data": 0.0, "dps": 0.0}
    for machine_type, level in machines.items():
        output = MACHINE_OUTPUTS.get(machine_type)
        if output is not None:
            totals[output] += machine_production(machine_type, level)

    mult = idle_multiplier(upgrades)
    mult *= 1 + machine_production("efficiency_bot", machines.get("efficiency_bot", 0))
    return IdleProduction(
        scrap=totals["scrap"] * mult,
        data=totals["data"] * mult,
        dps=totals["dps"] * mult,
    )


def auto_tap_damage(state: GameState, now: int) -> tuple[int, int]:
    """Damage and tap count from the strongest active auto-tap effect.

    Uses the non-critical tap formula without timed damage boosts.
    Returns ``(0, 0)`` when no auto-tap effect is running.
    """
    effect = state.effects.strongest(EffectType.AUTO_TAP, now)
    if effect is None:
        return 0, 0
    base = base_tap_damage(loadout(state).weapon_damage, state.upgrade_levels())
    return math.floor(base * effect.value), math.floor(effect.value)
