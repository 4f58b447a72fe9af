from __future__ import annotations

from dataclasses import dataclass, field

from tapengine.achievement import AchievementDef
from tapengine.currency import Currency
from tapengine.element import ItemDef, ItemType, MachineDef, SkillDef, UpgradeDef


@dataclass
class GameConfig:
    """Top-level game configuration."""

    name: str = "Untitled"


@dataclass
class GameDefinition:
    """Complete static content of the game: shop, machines, upgrades, skills."""

    config: GameConfig = field(default_factory=GameConfig)
    items: list[ItemDef] = field(default_factory=list)
    machines: list[MachineDef] = field(default_factory=list)
    upgrades: list[UpgradeDef] = field(default_factory=list)
    skills: list[SkillDef] = field(default_factory=list)
    achievements: list[AchievementDef] = field(default_factory=list)

    # Lookup dicts built in __post_init__
    _items_by_id: dict[int, ItemDef] = field(default_factory=dict, init=False, repr=False)
    _machines_by_type: dict[str, MachineDef] = field(
        default_factory=dict, init=False, repr=False
    )
    _upgrades_by_type: dict[str, UpgradeDef] = field(
        default_factory=dict, init=False, repr=False
    )
    _skills_by_id: dict[str, SkillDef] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self._items_by_id = {i.id: i for i in self.items}
        self._machines_by_type = {m.type: m for m in self.machines}
        self._upgrades_by_type = {u.type: u for u in self.upgrades}
        self._skills_by_id = {s.id: s for s in self.skills}

    def get_item(self, id: int) -> ItemDef | None:
        return self._items_by_id.get(id)

    def get_machine(self, type: str) -> MachineDef | None:
        return self._machines_by_type.get(type)

    def get_upgrade(self, type: str) -> UpgradeDef | None:
        return self._upgrades_by_type.get(type)

    def get_skill(self, id: str) -> SkillDef | None:
        return self._skills_by_id.get(id)

    def permanent_upgrades(self) -> list[UpgradeDef]:
        return [u for u in self.upgrades if u.is_permanent]

    def validate(self) -> list[str]:
        """Check for common definition errors. Returns list of error messages."""
        errors: list[str] = []

        # Check for duplicate IDs
        for label, keys in (
            ("item", [i.id for i in self.items]),
            ("machine", [m.type for m in self.machines]),
            ("upgrade", [u.type for u in self.upgrades]),
            ("skill", [s.id for s in self.skills]),
            ("achievement", [a.key for a in self.achievements]),
        ):
            seen: set = set()
            for k in keys:
                if k in seen:
                    errors.append(f"Duplicate {label} ID: {k!r}")
                seen.add(k)

        for item in self.items:
            if item.type is ItemType.CONSUMABLE and item.effect is None:
                errors.append(f"Consumable {item.id!r} ({item.name}) has no effect")
            if item.type is not ItemType.CONSUMABLE and item.effect is not None:
                errors.append(f"Item {item.id!r} ({item.name}) is equippable but has an effect")
            if item.tier < 1:
                errors.append(f"Item {item.id!r} has tier {item.tier}; tiers start at 1")

        for m in self.machines:
            if m.cost_currency is Currency.CORE_FRAGMENTS:
                errors.append(f"Machine {m.type!r} cannot cost core fragments")

        for u in self.upgrades:
            if u.is_permanent != (u.cost_currency is Currency.CORE_FRAGMENTS):
                errors.append(
                    f"Upgrade {u.type!r}: permanent upgrades, and only those, cost core fragments"
                )

        for s in self.skills:
            if s.cooldown <= 0:
                errors.append(f"Skill {s.id!r} needs a positive cooldown")

        return errors
