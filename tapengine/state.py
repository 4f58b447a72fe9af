from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tapengine.effect import EffectManager
from tapengine.element import InventoryItem, ItemType, MachineState, UpgradeState

if TYPE_CHECKING:
    from tapengine.formulas import Boss
    from tapengine.offline import OfflineEarnings


@dataclass
class PlayerProgress:
    """Run progress and balances. Currencies are whole numbers."""

    current_stage: int = 1
    highest_stage: int = 1
    scrap: int = 0
    data_points: int = 0
    core_fragments: int = 0
    offline_cap_level: int = 1
    current_boss_hp: int = 0
    current_boss_max_hp: int = 0
    total_taps: int = 0
    total_damage_dealt: int = 0
    equipped_weapon_id: int | None = None
    equipped_armor_id: int | None = None
    equipped_accessory_id: int | None = None
    run_scrap_earned: int = 0
    run_data_earned: int = 0
    run_bosses_killed: int = 0

    def equipped_id(self, slot: ItemType) -> int | None:
        return getattr(self, _SLOT_FIELDS[slot])

    def set_equipped(self, slot: ItemType, inventory_id: int | None) -> None:
        setattr(self, _SLOT_FIELDS[slot], inventory_id)


_SLOT_FIELDS = {
    ItemType.WEAPON: "equipped_weapon_id",
    ItemType.ARMOR: "equipped_armor_id",
    ItemType.ACCESSORY: "equipped_accessory_id",
}


@dataclass
class PrestigeStats:
    """Lifetime aggregates. Only ever increase."""

    total_prestiges: int = 0
    lifetime_scrap: int = 0
    lifetime_data: int = 0
    lifetime_core_fragments: int = 0
    lifetime_bosses_killed: int = 0
    lifetime_taps: int = 0
    highest_damage_hit: int = 0
    best_stage: int = 1


@dataclass(frozen=True)
class DamageNumber:
    """Observation for the presentation layer: one resolved hit."""

    id: int
    amount: int
    is_critical: bool
    created_at: int


@dataclass(frozen=True)
class LootDrop:
    """Observation for the presentation layer: rewards from a defeated boss."""

    stage: int
    scrap: int
    data: int


@dataclass
class PlayerRecord:
    """Everything persisted for one player, shared by client and server views."""

    progress: PlayerProgress = field(default_factory=PlayerProgress)
    inventory: list[InventoryItem] = field(default_factory=list)
    machines: dict[str, MachineState] = field(default_factory=dict)
    upgrades: dict[str, UpgradeState] = field(default_factory=dict)
    prestige_stats: PrestigeStats = field(default_factory=PrestigeStats)
    achievements: dict[str, int] = field(default_factory=dict)  # key -> unlocked_at

    def upgrade_level(self, upgrade_type: str) -> int:
        us = self.upgrades.get(upgrade_type)
        return us.level if us else 0

    def upgrade_levels(self) -> dict[str, int]:
        return {k: u.level for k, u in self.upgrades.items()}

    def machine_level(self, machine_type: str) -> int:
        ms = self.machines.get(machine_type)
        return ms.level if ms else 0

    def machine_levels(self) -> dict[str, int]:
        return {k: m.level for k, m in self.machines.items()}

    def total_machine_levels(self) -> int:
        return sum(m.level for m in self.machines.values())

    def find_inventory(self, inventory_id: int | None) -> InventoryItem | None:
        if inventory_id is None:
            return None
        for inv in self.inventory:
            if inv.inventory_id == inventory_id:
                return inv
        return None

    def owns_item(self, item_id: int) -> InventoryItem | None:
        for inv in self.inventory:
            if inv.item_id == item_id:
                return inv
        return None

    def equipped(self, slot: ItemType) -> InventoryItem | None:
        """The equipped item for *slot*, only if it really is of that type."""
        inv = self.find_inventory(self.progress.equipped_id(slot))
        if inv is None or inv.type is not slot:
            return None
        return inv

    def bosses_killed(self) -> int:
        return self.prestige_stats.lifetime_bosses_killed + self.progress.run_bosses_killed

    def taps(self) -> int:
        return self.prestige_stats.lifetime_taps + self.progress.total_taps


@dataclass
class GameState(PlayerRecord):
    """Client-side predicted state. Mutated only by GameRuntime.dispatch."""

    user_id: int | None = None
    username: str | None = None
    is_authenticated: bool = False
    revision: int = 0
    boss: Boss | None = None
    effects: EffectManager = field(default_factory=EffectManager)
    skill_ready_at: dict[str, int] = field(default_factory=dict)
    damage_numbers: list[DamageNumber] = field(default_factory=list)
    loot_drops: list[LootDrop] = field(default_factory=list)
    pending_offline: OfflineEarnings | None = None
    last_defeated_stage: int = 0
    scrap_carry: float = 0.0
    data_carry: float = 0.0
