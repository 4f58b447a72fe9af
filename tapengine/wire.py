"""JSON shapes shared by the server handlers and the client reconciler."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import TYPE_CHECKING, Any

from tapengine.effect import ActiveEffect, EffectSpec, EffectType
from tapengine.element import InventoryItem, MachineState, UpgradeState
from tapengine.offline import OfflineEarnings
from tapengine.state import PlayerProgress, PlayerRecord, PrestigeStats

if TYPE_CHECKING:
    from tapengine.definition import GameDefinition

# Progress fields a client save may overwrite. Meta currency, storage tier
# and equipment only change through their own transactions.
SAVABLE_FIELDS = (
    "current_stage",
    "highest_stage",
    "scrap",
    "data_points",
    "current_boss_hp",
    "current_boss_max_hp",
    "total_taps",
    "total_damage_dealt",
    "run_scrap_earned",
    "run_data_earned",
    "run_bosses_killed",
)


@dataclass
class Snapshot:
    """A full server read of one player, as the client sees it."""

    user_id: int
    username: str
    revision: int
    record: PlayerRecord
    pending_offline: OfflineEarnings | None = None


# ── Encoding ─────────────────────────────────────────────────────────


def inventory_to_dict(inv: InventoryItem) -> dict[str, Any]:
    return {
        "inventory_id": inv.inventory_id,
        "item_id": inv.item_id,
        "name": inv.item.name,
        "type": inv.type.value,
        "quantity": inv.quantity,
        "upgrade_level": inv.upgrade_level,
        "is_equipped": inv.is_equipped,
    }


def machine_to_dict(ms: MachineState) -> dict[str, Any]:
    return {"machine_type": ms.machine_type, "level": ms.level}


def upgrade_to_dict(us: UpgradeState) -> dict[str, Any]:
    return {"upgrade_type": us.upgrade_type, "level": us.level, "is_permanent": us.is_permanent}


def effect_to_dict(effect: ActiveEffect) -> dict[str, Any]:
    return {"type": effect.type.value, "value": effect.value, "ends_at": effect.ends_at}


def spec_to_dict(spec: EffectSpec) -> dict[str, Any]:
    return {"type": spec.type.value, "value": spec.value, "duration_ms": spec.duration_ms}


def record_to_dict(record: PlayerRecord) -> dict[str, Any]:
    return {
        "game_state": asdict(record.progress),
        "inventory": [inventory_to_dict(i) for i in record.inventory],
        "machines": [machine_to_dict(m) for m in record.machines.values()],
        "upgrades": [upgrade_to_dict(u) for u in record.upgrades.values()],
        "prestige_stats": asdict(record.prestige_stats),
        "achievements": dict(record.achievements),
    }


def save_payload(record: PlayerRecord, base_revision: int) -> dict[str, Any]:
    progress = record.progress
    return {
        "game_state": {name: getattr(progress, name) for name in SAVABLE_FIELDS},
        "highest_damage_hit": record.prestige_stats.highest_damage_hit,
        "base_revision": base_revision,
    }


# ── Decoding ─────────────────────────────────────────────────────────


def _known(cls, data: dict[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def inventory_from_dict(data: dict[str, Any], definition: GameDefinition) -> InventoryItem:
    item = definition.get_item(int(data["item_id"]))
    if item is None:
        raise ValueError(f"Unknown catalog item: {data['item_id']!r}")
    return InventoryItem(
        inventory_id=int(data["inventory_id"]),
        item=item,
        quantity=int(data.get("quantity", 1)),
        upgrade_level=int(data.get("upgrade_level", 0)),
        is_equipped=bool(data.get("is_equipped", False)),
    )


def machine_from_dict(data: dict[str, Any]) -> MachineState:
    return MachineState(machine_type=str(data["machine_type"]), level=int(data["level"]))


def upgrade_from_dict(data: dict[str, Any]) -> UpgradeState:
    return UpgradeState(
        upgrade_type=str(data["upgrade_type"]),
        level=int(data["level"]),
        is_permanent=bool(data.get("is_permanent", False)),
    )


def effect_from_dict(data: dict[str, Any]) -> ActiveEffect:
    return ActiveEffect(
        type=EffectType(data["type"]), value=float(data["value"]), ends_at=int(data["ends_at"])
    )


def record_from_dict(data: dict[str, Any], definition: GameDefinition) -> PlayerRecord:
    machines = [machine_from_dict(m) for m in data.get("machines", [])]
    upgrades = [upgrade_from_dict(u) for u in data.get("upgrades", [])]
    return PlayerRecord(
        progress=PlayerProgress(**_known(PlayerProgress, data["game_state"])),
        inventory=[inventory_from_dict(i, definition) for i in data.get("inventory", [])],
        machines={m.machine_type: m for m in machines},
        upgrades={u.upgrade_type: u for u in upgrades},
        prestige_stats=PrestigeStats(**_known(PrestigeStats, data.get("prestige_stats", {}))),
        achievements={str(k): int(v) for k, v in data.get("achievements", {}).items()},
    )


def snapshot_from_dict(data: dict[str, Any], definition: GameDefinition) -> Snapshot:
    user = data["user"]
    pending = data.get("offline_earnings")
    return Snapshot(
        user_id=int(user["id"]),
        username=str(user["username"]),
        revision=int(data["revision"]),
        record=record_from_dict(data, definition),
        pending_offline=OfflineEarnings.from_dict(pending) if pending else None,
    )


@dataclass
class MutationDelta:
    """Server-confirmed result of one spend. Absent entities are unchanged."""

    scrap: int
    data_points: int
    core_fragments: int
    revision: int
    inventory: InventoryItem | None = None
    machine: MachineState | None = None
    upgrade: UpgradeState | None = None
    effect: ActiveEffect | None = None
    equipped: dict[str, int | None] | None = None
    offline_cap_level: int | None = None
    collected: OfflineEarnings | None = None
    extra: dict[str, Any] = field(default_factory=dict)


def delta_from_dict(data: dict[str, Any], definition: GameDefinition) -> MutationDelta:
    balances = data["balances"]
    delta = MutationDelta(
        scrap=int(balances["scrap"]),
        data_points=int(balances["data_points"]),
        core_fragments=int(balances["core_fragments"]),
        revision=int(data["revision"]),
    )
    if data.get("inventory") is not None:
        delta.inventory = inventory_from_dict(data["inventory"], definition)
    if data.get("machine") is not None:
        delta.machine = machine_from_dict(data["machine"])
    if data.get("upgrade") is not None:
        delta.upgrade = upgrade_from_dict(data["upgrade"])
    if data.get("effect") is not None:
        delta.effect = effect_from_dict(data["effect"])
    if data.get("equipped") is not None:
        delta.equipped = {k: (None if v is None else int(v)) for k, v in data["equipped"].items()}
    if data.get("offline_cap_level") is not None:
        delta.offline_cap_level = int(data["offline_cap_level"])
    if data.get("collected") is not None:
        delta.collected = OfflineEarnings.from_dict(data["collected"])
    for key in ("new_damage", "next_cost", "item"):
        if key in data:
            delta.extra[key] = data[key]
    return delta
