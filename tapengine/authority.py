"""Authoritative server side of the spend protocol.

Every endpoint re-reads the account inside one ledger transaction,
recomputes costs itself and either commits or raises a GameError, which
:meth:`GameServer.handle` turns into a status code. Clients only ever
send ids, never amounts.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable

from tapengine import constants as C
from tapengine._types import Clock, system_clock
from tapengine.achievement import unlock_achievements
from tapengine.config import EngineConfig
from tapengine.content import define_game
from tapengine.currency import Balances, Currency, debit
from tapengine.definition import GameDefinition
from tapengine.effect import ActiveEffect
from tapengine.element import InventoryItem, ItemType, MachineState, UpgradeState
from tapengine.errors import GameError, NotFound, StaleSnapshot, ValidationError
from tapengine.formulas import (
    boss_hp,
    machine_cost,
    storage_upgrade_cost,
    upgrade_cost,
    weapon_damage_at_level,
    weapon_upgrade_cost,
)
from tapengine.ledger import Account, Ledger
from tapengine.offline import compute_offline_earnings, offline_cap_for
from tapengine.prestige import apply_prestige
from tapengine.transport import Response
from tapengine.wire import (
    SAVABLE_FIELDS,
    effect_to_dict,
    inventory_to_dict,
    machine_to_dict,
    record_to_dict,
    spec_to_dict,
    upgrade_to_dict,
)

logger = logging.getLogger(__name__)

_USERNAME = re.compile(
    rf"^[A-Za-z0-9_]{{{C.USERNAME_MIN_LENGTH},{C.USERNAME_MAX_LENGTH}}}$"
)
_MAX_LEVELS_PER_PURCHASE = 100

Handler = Callable[[dict, Any], dict]


class GameServer:
    """In-process stand-in for the game's HTTP API."""

    def __init__(
        self,
        definition: GameDefinition | None = None,
        ledger: Ledger | None = None,
        clock: Clock = system_clock,
        config: EngineConfig | None = None,
    ) -> None:
        self.definition = definition or define_game()
        self.ledger = ledger or Ledger()
        self.clock = clock
        self.config = config or EngineConfig()
        self._routes: dict[tuple[str, str], Handler] = {
            ("POST", "auth/login"): self.login,
            ("GET", "game/state"): self.get_state,
            ("POST", "game/save"): self.save,
            ("POST", "game/collect-offline"): self.collect_offline,
            ("GET", "shop/items"): self.list_items,
            ("POST", "shop/buy"): self.buy_item,
            ("POST", "machines/buy"): self.buy_machine,
            ("POST", "upgrades/buy"): self.buy_upgrade,
            ("POST", "game/equip"): self.equip,
            ("POST", "shop/upgrade-weapon"): self.upgrade_weapon,
            ("POST", "storage/upgrade"): self.upgrade_storage,
            ("POST", "prestige/reboot"): self.prestige,
        }

    # ── Routing ──────────────────────────────────────────────────────

    def handle(
        self,
        method: str,
        path: str,
        body: dict | str | None = None,
        token: str | None = None,
    ) -> Response:
        handler = self._routes.get((method.upper(), path.strip("/")))
        if handler is None:
            return Response.of(404, {"error": f"No route for {method} {path}", "code": "not_found"})
        try:
            payload = _parse_body(body)
            return Response.of(200, handler(payload, token))
        except GameError as exc:
            logger.warning("%s %s rejected (%d): %s", method, path, exc.status, exc.message)
            return Response.of(exc.status, {"error": exc.message, "code": exc.code})
        except Exception:
            logger.exception("%s %s failed", method, path)
            return Response.of(500, {"error": "Internal server error", "code": "server_error"})

    # ── Session and state ────────────────────────────────────────────

    def login(self, body: dict, token: str | None = None) -> dict:
        username = body.get("username")
        if not isinstance(username, str) or not _USERNAME.match(username):
            raise ValidationError(
                f"Username must be {C.USERNAME_MIN_LENGTH}-{C.USERNAME_MAX_LENGTH} "
                "characters, letters, digits and underscores only"
            )
        account = self.ledger.find_by_username(username)
        if account is None:
            account = self.ledger.create(username, self.clock())
            self._seed_new_account(account)
        session = self.ledger.issue_token(account.user_id)
        logger.info("login %s", username)
        return {"token": session, **self.get_state({}, session)}

    def get_state(self, body: dict, token: str | None) -> dict:
        now = self.clock()
        with self.ledger.transaction(token) as acct:
            self._accrue_offline(acct, now)
            unlock_achievements(self.definition, acct, now)
        return self._snapshot(acct)

    def save(self, body: dict, token: str | None) -> dict:
        game_state = body.get("game_state")
        if not isinstance(game_state, dict):
            raise ValidationError("Missing game_state")
        base_revision = _int_field(body, "base_revision")
        values = {name: _int_field(game_state, name) for name in SAVABLE_FIELDS}
        _check_saved_values(values)
        highest_hit = _int_field(body, "highest_damage_hit", default=0)

        now = self.clock()
        with self.ledger.transaction(token) as acct:
            if base_revision < acct.revision:
                raise StaleSnapshot(
                    f"Save is based on revision {base_revision}, server is at {acct.revision}"
                )
            for name, value in values.items():
                setattr(acct.progress, name, value)
            stats = acct.prestige_stats
            stats.highest_damage_hit = max(stats.highest_damage_hit, highest_hit)
            acct.last_checkpoint_at = now
            unlock_achievements(self.definition, acct, now)
        return {"success": True, "saved_at": now, "revision": acct.revision}

    def collect_offline(self, body: dict, token: str | None) -> dict:
        with self.ledger.transaction(token) as acct:
            earnings = acct.pending_offline
            if earnings is None:
                raise NotFound("No offline earnings to collect")
            progress = acct.progress
            progress.scrap += earnings.scrap
            progress.data_points += earnings.data
            progress.run_scrap_earned += earnings.scrap
            progress.run_data_earned += earnings.data
            dealt = min(earnings.damage, progress.current_boss_hp)
            progress.current_boss_hp -= dealt
            acct.pending_offline = None
        logger.info("%s collected %d scrap, %d data offline", acct.username,
                    earnings.scrap, earnings.data)
        return {**self._balances(acct), "collected": earnings.to_dict()}

    # ── Shop ─────────────────────────────────────────────────────────

    def list_items(self, body: dict, token: str | None) -> dict:
        account = self.ledger.read(token)
        highest = account.progress.highest_stage
        items = []
        for item in self.definition.items:
            entry = {
                "id": item.id,
                "name": item.name,
                "type": item.type.value,
                "description": item.description,
                "damage_bonus": item.damage_bonus,
                "crit_chance_bonus": item.crit_chance_bonus,
                "scrap_bonus": item.scrap_bonus,
                "data_bonus": item.data_bonus,
                "unlock_stage": item.unlock_stage,
                "cost_scrap": item.cost_scrap,
                "cost_data": item.cost_data,
                "tier": item.tier,
                "is_unlocked": item.unlock_stage <= highest,
                "is_owned": account.owns_item(item.id) is not None,
            }
            if item.effect is not None:
                entry["effect"] = spec_to_dict(item.effect)
            items.append(entry)
        return {"items": items}

    def buy_item(self, body: dict, token: str | None) -> dict:
        item_id = _int_field(body, "item_id")
        quantity = _int_field(body, "quantity", default=1)
        item = self.definition.get_item(item_id)
        if item is None:
            raise NotFound("Item not found")

        now = self.clock()
        with self.ledger.transaction(token) as acct:
            if item.unlock_stage > acct.progress.highest_stage:
                raise ValidationError(f"{item.name} unlocks at stage {item.unlock_stage}")
            if quantity < 1 or (item.type is not ItemType.CONSUMABLE and quantity != 1):
                raise ValidationError("Invalid quantity")
            if item.type is not ItemType.CONSUMABLE and acct.owns_item(item.id):
                raise ValidationError("Item already owned")
            debit(acct.progress, item.cost(quantity))

            result: dict[str, Any] = {"item": {"id": item.id, "name": item.name}}
            if item.effect is not None:
                # Buying several of a consumable extends one effect.
                effect = ActiveEffect(
                    type=item.effect.type,
                    value=item.effect.value,
                    ends_at=now + item.effect.duration_ms * quantity,
                )
                result["effect"] = effect_to_dict(effect)
            else:
                inv = InventoryItem(inventory_id=acct.allocate_inventory_id(), item=item)
                acct.inventory.append(inv)
                result["inventory"] = inventory_to_dict(inv)
        logger.info("%s bought %s x%d", acct.username, item.name, quantity)
        return {**self._balances(acct), **result}

    def equip(self, body: dict, token: str | None) -> dict:
        inventory_id = _int_field(body, "inventory_id")
        unequip = bool(body.get("unequip", False))
        with self.ledger.transaction(token) as acct:
            inv = acct.find_inventory(inventory_id)
            if inv is None:
                raise NotFound("Item not in inventory")
            if not inv.type.equippable:
                raise ValidationError("Item cannot be equipped")
            slot = inv.type
            if unequip:
                if acct.progress.equipped_id(slot) == inv.inventory_id:
                    acct.progress.set_equipped(slot, None)
                inv.is_equipped = False
            else:
                for other in acct.inventory:
                    if other.type is slot:
                        other.is_equipped = False
                inv.is_equipped = True
                acct.progress.set_equipped(slot, inv.inventory_id)
        return {
            **self._balances(acct),
            "equipped": _equipped_slots(acct),
            "inventory": inventory_to_dict(inv),
        }

    def upgrade_weapon(self, body: dict, token: str | None) -> dict:
        inventory_id = _int_field(body, "inventory_id")
        with self.ledger.transaction(token) as acct:
            inv = acct.find_inventory(inventory_id)
            if inv is None:
                raise NotFound("Item not in inventory")
            if inv.type is not ItemType.WEAPON:
                raise ValidationError("Only weapons can be upgraded")
            cost = weapon_upgrade_cost(inv.item.tier, inv.upgrade_level)
            debit(acct.progress, {Currency.SCRAP: cost})
            inv.upgrade_level += 1
        logger.info("%s upgraded %s to +%d", acct.username, inv.item.name, inv.upgrade_level)
        return {
            **self._balances(acct),
            "inventory": inventory_to_dict(inv),
            "new_damage": weapon_damage_at_level(inv.item.damage_bonus, inv.upgrade_level),
            "next_cost": weapon_upgrade_cost(inv.item.tier, inv.upgrade_level),
        }

    # ── Machines, upgrades, storage ──────────────────────────────────

    def buy_machine(self, body: dict, token: str | None) -> dict:
        machine_type = body.get("machine_type")
        levels = _int_field(body, "levels", default=1)
        mdef = self.definition.get_machine(machine_type) if isinstance(machine_type, str) else None
        if mdef is None:
            raise ValidationError("Invalid machine type")
        if not 1 <= levels <= _MAX_LEVELS_PER_PURCHASE:
            raise ValidationError("Invalid number of levels")

        with self.ledger.transaction(token) as acct:
            if acct.progress.highest_stage < mdef.unlock_stage:
                raise ValidationError(f"{mdef.name} unlocks at stage {mdef.unlock_stage}")
            current = acct.machine_level(mdef.type)
            debit(acct.progress, {mdef.cost_currency: machine_cost(mdef, current, levels)})
            machine = acct.machines.setdefault(mdef.type, MachineState(mdef.type))
            machine.level = current + levels
        logger.info("%s bought %s level %d", acct.username, mdef.type, machine.level)
        return {**self._balances(acct), "machine": machine_to_dict(machine)}

    def buy_upgrade(self, body: dict, token: str | None) -> dict:
        upgrade_type = body.get("upgrade_type")
        udef = self.definition.get_upgrade(upgrade_type) if isinstance(upgrade_type, str) else None
        if udef is None:
            raise ValidationError("Invalid upgrade type")

        with self.ledger.transaction(token) as acct:
            current = acct.upgrade_level(udef.type)
            if udef.max_level is not None and current >= udef.max_level:
                raise ValidationError(f"{udef.name} is at max level")
            debit(acct.progress, {udef.cost_currency: upgrade_cost(udef, current)})
            upgrade = acct.upgrades.setdefault(
                udef.type, UpgradeState(udef.type, is_permanent=udef.is_permanent)
            )
            upgrade.level = current + 1
        logger.info("%s bought %s level %d", acct.username, udef.type, upgrade.level)
        return {**self._balances(acct), "upgrade": upgrade_to_dict(upgrade)}

    def upgrade_storage(self, body: dict, token: str | None) -> dict:
        with self.ledger.transaction(token) as acct:
            level = acct.progress.offline_cap_level
            cost = storage_upgrade_cost(level)
            if cost is None:
                raise ValidationError("Offline storage is at max level")
            debit(acct.progress, {Currency.SCRAP: cost})
            acct.progress.offline_cap_level = level + 1
        return {
            **self._balances(acct),
            "offline_cap_level": acct.progress.offline_cap_level,
            "offline_cap_seconds": offline_cap_for(acct),
        }

    # ── Prestige ─────────────────────────────────────────────────────

    def prestige(self, body: dict, token: str | None) -> dict:
        now = self.clock()
        with self.ledger.transaction(token) as acct:
            result = apply_prestige(acct, self.config.prestige_min_stage)
            if not result.success:
                raise ValidationError(result.reason)
            acct.pending_offline = None
            acct.last_checkpoint_at = now
        logger.info(
            "%s rebooted for %d core fragments (total %d)",
            acct.username, result.core_fragments_earned, result.total_core_fragments,
        )
        return {
            **self._snapshot(acct),
            "success": True,
            "core_fragments_earned": result.core_fragments_earned,
            "total_core_fragments": result.total_core_fragments,
            "permanent_upgrades": [upgrade_to_dict(u) for u in acct.upgrades.values()],
        }

    # ── Private helpers ──────────────────────────────────────────────

    def _seed_new_account(self, account: Account) -> None:
        account.progress.current_boss_hp = boss_hp(1)
        account.progress.current_boss_max_hp = boss_hp(1)

    def _accrue_offline(self, acct: Account, now: int) -> None:
        """Move idle output since the checkpoint into the pending claim."""
        since = acct.last_checkpoint_at
        if not acct.machines:
            acct.last_checkpoint_at = now
            return
        pending = acct.pending_offline
        remaining = offline_cap_for(acct) - (pending.capped_at if pending else 0)
        earnings = compute_offline_earnings(acct, since, now, cap_seconds=remaining)
        # Time past the cap is forfeit; a sub-second remainder carries over.
        if earnings.was_capped:
            acct.last_checkpoint_at = now
        else:
            acct.last_checkpoint_at = since + earnings.time_away * 1000
        if earnings.is_empty:
            return
        acct.pending_offline = pending.merge(earnings) if pending else earnings
        logger.info("%s earned offline: %s", acct.username, acct.pending_offline)

    def _snapshot(self, acct: Account) -> dict:
        pending = acct.pending_offline
        return {
            "user": {"id": acct.user_id, "username": acct.username},
            "revision": acct.revision,
            **record_to_dict(acct),
            "offline_earnings": pending.to_dict() if pending else None,
        }

    @staticmethod
    def _balances(acct: Account) -> dict:
        return {"balances": Balances.of(acct.progress).to_dict(), "revision": acct.revision}


# ── Request parsing ──────────────────────────────────────────────────


def _parse_body(body: dict | str | None) -> dict:
    if body is None or body == "":
        return {}
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except ValueError:
            raise ValidationError("Request body is not valid JSON") from None
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


_MISSING = object()


def _int_field(data: dict, name: str, default: Any = _MISSING) -> int:
    value = data.get(name, default)
    if value is _MISSING:
        raise ValidationError(f"Missing {name}")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    return value


def _check_saved_values(values: dict[str, int]) -> None:
    if values["current_stage"] < 1:
        raise ValidationError("current_stage must be at least 1")
    if values["highest_stage"] < values["current_stage"]:
        raise ValidationError("highest_stage cannot be below current_stage")
    for name, value in values.items():
        if value < 0:
            raise ValidationError(f"{name} cannot be negative")
    if values["current_boss_max_hp"] <= 0:
        raise ValidationError("current_boss_max_hp must be positive")
    if values["current_boss_hp"] > values["current_boss_max_hp"]:
        raise ValidationError("current_boss_hp cannot exceed current_boss_max_hp")


def _equipped_slots(acct: Account) -> dict[str, int | None]:
    return {
        slot.value: acct.progress.equipped_id(slot)
        for slot in (ItemType.WEAPON, ItemType.ARMOR, ItemType.ACCESSORY)
    }