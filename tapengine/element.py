from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from tapengine.cost_scaling import CostScaling
from tapengine.currency import Currency
from tapengine.effect import EffectSpec


class ItemType(Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    ACCESSORY = "accessory"
    CONSUMABLE = "consumable"

    @property
    def equippable(self) -> bool:
        return self is not ItemType.CONSUMABLE


@dataclass(frozen=True)
class ItemDef:
    """Shop catalog entry. ``name`` is cosmetic; ``id`` is the stable key."""

    id: int
    name: str
    type: ItemType
    description: str = ""
    damage_bonus: int = 0
    crit_chance_bonus: float = 0.0  # percent points
    scrap_bonus: float = 0.0  # percent
    data_bonus: float = 0.0  # percent
    unlock_stage: int = 1
    cost_scrap: int = 0
    cost_data: int = 0
    tier: int = 1
    effect: EffectSpec | None = None

    def cost(self, quantity: int = 1) -> dict[Currency, int]:
        return {
            Currency.SCRAP: self.cost_scrap * quantity,
            Currency.DATA: self.cost_data * quantity,
        }


@dataclass(frozen=True)
class MachineDef:
    """Passive producer. ``base_production`` is per second (or DPS, or a
    fractional bonus for the efficiency bot)."""

    type: str
    name: str
    description: str = ""
    base_production: float = 0.0
    base_cost: int = 0
    cost_currency: Currency = Currency.SCRAP
    cost_scaling: CostScaling = field(default_factory=CostScaling.fixed)
    unlock_stage: int = 1


@dataclass(frozen=True)
class UpgradeDef:
    type: str
    name: str
    description: str = ""
    effect: float = 0.0
    base_cost: int = 0
    cost_currency: Currency = Currency.SCRAP
    cost_scaling: CostScaling = field(default_factory=CostScaling.fixed)
    max_level: int | None = None
    is_permanent: bool = False


@dataclass(frozen=True)
class SkillDef:
    """Active ability with a cooldown. Costs nothing and never hits the server."""

    id: str
    name: str
    description: str
    cooldown: float  # seconds
    effect: EffectSpec


# ── Owned rows ───────────────────────────────────────────────────────


@dataclass
class InventoryItem:
    """An owned, non-consumable catalog item."""

    inventory_id: int
    item: ItemDef
    quantity: int = 1
    upgrade_level: int = 0
    is_equipped: bool = False

    @property
    def item_id(self) -> int:
        return self.item.id

    @property
    def type(self) -> ItemType:
        return self.item.type


@dataclass
class MachineState:
    machine_type: str
    level: int = 0


@dataclass
class UpgradeState:
    upgrade_type: str
    level: int = 0
    is_permanent: bool = False
