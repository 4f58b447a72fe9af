from __future__ import annotations

import logging
import math
import random
from typing import Any, Callable

from tapengine import actions as A
from tapengine.combat import (
    apply_instant_damage,
    deal_damage,
    defeat_boss,
    ensure_boss,
    resolve_tap,
)
from tapengine.content import define_game
from tapengine.definition import GameDefinition
from tapengine.effect import EffectManager
from tapengine.element import ItemType
from tapengine.pipeline import IdleProduction, auto_tap_damage, compute_idle_production
from tapengine.state import GameState
from tapengine.wire import MutationDelta, Snapshot

logger = logging.getLogger(__name__)


class GameRuntime:
    """Single writer of the client-predicted game state.

    Every change goes through :meth:`dispatch`, one action at a time.
    """

    def __init__(
        self,
        definition: GameDefinition | None = None,
        rng: random.Random | None = None,
    ) -> None:
        definition = definition or define_game()
        errors = definition.validate()
        if errors:
            raise ValueError(
                "Invalid GameDefinition:\n" + "\n".join(f"  - {e}" for e in errors)
            )

        self.definition = definition
        self.state = GameState()
        self.rng = rng or random.Random()
        self._handlers: dict[type, Callable[[Any], Any]] = {
            A.LoadSnapshot: self._load_snapshot,
            A.Tap: self._tap,
            A.DefeatBoss: self._defeat_boss,
            A.IdleTick: self._idle_tick,
            A.SweepEffects: self._sweep_effects,
            A.ExpireDamageNumbers: self._expire_damage_numbers,
            A.UseSkill: self._use_skill,
            A.ApplyMutation: self._apply_mutation,
            A.CollectOffline: self._collect_offline,
            A.DismissOffline: self._dismiss_offline,
            A.ResetAfterPrestige: self._reset_after_prestige,
            A.MarkSaved: self._mark_saved,
            A.Logout: self._logout,
        }

    # ── Core loop ────────────────────────────────────────────────────

    def dispatch(self, action: A.Action) -> Any:
        handler = self._handlers.get(type(action))
        if handler is None:
            raise ValueError(f"Unknown action: {type(action).__name__}")
        logger.debug("dispatch %s", type(action).__name__)
        return handler(action)

    # ── Queries ──────────────────────────────────────────────────────

    def get_state(self) -> GameState:
        """Return live reference to game state."""
        return self.state

    def idle_rates(self) -> IdleProduction:
        return compute_idle_production(self.state.machine_levels(), self.state.upgrade_levels())

    def skill_cooldown(self, skill_id: str, now: int) -> float:
        """Seconds until *skill_id* can be used again."""
        ready_at = self.state.skill_ready_at.get(skill_id, 0)
        return max(0.0, (ready_at - now) / 1000)

    def drain_observations(self) -> tuple[list, list]:
        """Hand loot drops to the presentation layer and forget them.

        Damage numbers stay until they expire.
        """
        drops = self.state.loot_drops
        self.state.loot_drops = []
        return list(self.state.damage_numbers), drops

    # ── Handlers ─────────────────────────────────────────────────────

    def _load_snapshot(self, action: A.LoadSnapshot) -> GameState:
        previous = self.state
        same_user = previous.is_authenticated and previous.user_id == action.snapshot.user_id
        self.state = self._state_from_snapshot(action.snapshot)
        if same_user:
            # A reload keeps client-local buffs and cooldowns.
            self.state.effects = previous.effects
            self.state.skill_ready_at = previous.skill_ready_at
        self.state.effects.sweep(action.now)
        return self.state

    def _tap(self, action: A.Tap):
        if not self.state.is_authenticated:
            return None
        if self.state.boss is None:
            ensure_boss(self.state)
        return resolve_tap(self.state, action.now, self.rng)

    def _defeat_boss(self, action: A.DefeatBoss):
        drop = defeat_boss(self.state, action.now)
        if drop is not None:
            logger.debug("stage %d cleared: +%d scrap, +%d data", drop.stage, drop.scrap, drop.data)
        return drop

    def _idle_tick(self, action: A.IdleTick) -> IdleProduction:
        state = self.state
        rates = self.idle_rates()
        seconds = action.seconds

        state.scrap_carry += rates.scrap * seconds
        state.data_carry += rates.data * seconds
        scrap = math.floor(state.scrap_carry)
        data = math.floor(state.data_carry)
        state.scrap_carry -= scrap
        state.data_carry -= data
        progress = state.progress
        progress.scrap += scrap
        progress.data_points += data
        progress.run_scrap_earned += scrap
        progress.run_data_earned += data

        auto_damage, auto_taps = auto_tap_damage(state, action.now)
        machine_hit = math.floor(rates.dps * seconds)
        auto_hit = math.floor(auto_damage * seconds)
        if machine_hit > 0:
            deal_damage(state, machine_hit, counted=False)
        if auto_hit > 0:
            deal_damage(state, auto_hit)
        progress.total_taps += math.floor(auto_taps * seconds)
        return rates

    def _sweep_effects(self, action: A.SweepEffects) -> bool:
        before = self.state.effects.effects
        return self.state.effects.sweep(action.now) is not before

    def _expire_damage_numbers(self, action: A.ExpireDamageNumbers) -> bool:
        numbers = self.state.damage_numbers
        kept = [n for n in numbers if n.created_at + action.ttl_ms > action.now]
        if len(kept) == len(numbers):
            return False
        self.state.damage_numbers = kept
        return True

    def _use_skill(self, action: A.UseSkill) -> bool:
        skill = self.definition.get_skill(action.skill_id)
        if skill is None or not self.state.is_authenticated:
            return False
        if self.state.skill_ready_at.get(skill.id, 0) > action.now:
            return False
        if skill.effect.type.is_instant:
            apply_instant_damage(self.state, skill.effect.value)
        else:
            self.state.effects.activate(skill.effect, action.now)
        self.state.skill_ready_at[skill.id] = action.now + int(skill.cooldown * 1000)
        return True

    def _apply_mutation(self, action: A.ApplyMutation) -> GameState:
        delta = action.delta
        state = self.state
        # Resolve everything that can fail before touching state.
        equipped = None
        if delta.equipped is not None:
            equipped = {ItemType(slot): inv_id for slot, inv_id in delta.equipped.items()}
            if any(not slot.equippable for slot in equipped):
                raise ValueError(f"Not an equipment slot in {delta.equipped!r}")

        _replace_balances(state, delta)
        if delta.inventory is not None:
            rows = [i for i in state.inventory if i.inventory_id != delta.inventory.inventory_id]
            state.inventory = [*rows, delta.inventory]
        if delta.machine is not None:
            state.machines[delta.machine.machine_type] = delta.machine
        if delta.upgrade is not None:
            state.upgrades[delta.upgrade.upgrade_type] = delta.upgrade
        if delta.effect is not None:
            state.effects.effects = [*state.effects.effects, delta.effect]
        if equipped is not None:
            for slot, inv_id in equipped.items():
                state.progress.set_equipped(slot, inv_id)
            for inv in state.inventory:
                if inv.type in equipped:
                    inv.is_equipped = inv.inventory_id == equipped[inv.type]
        if delta.offline_cap_level is not None:
            state.progress.offline_cap_level = delta.offline_cap_level
        return state

    def _collect_offline(self, action: A.CollectOffline) -> GameState:
        delta = action.delta
        state = self.state
        collected = delta.collected
        if collected is None:
            raise ValueError("Offline collection response carries no earnings")
        _replace_balances(state, delta)
        state.progress.run_scrap_earned += collected.scrap
        state.progress.run_data_earned += collected.data
        if collected.damage > 0:
            deal_damage(state, collected.damage, counted=False)
        state.pending_offline = None
        return state

    def _dismiss_offline(self, action: A.DismissOffline) -> None:
        self.state.pending_offline = None

    def _reset_after_prestige(self, action: A.ResetAfterPrestige) -> GameState:
        cooldowns = self.state.skill_ready_at
        self.state = self._state_from_snapshot(action.snapshot)
        self.state.skill_ready_at = cooldowns
        self.state.effects.clear()
        return self.state

    def _mark_saved(self, action: A.MarkSaved) -> None:
        self.state.revision = max(self.state.revision, action.revision)

    def _logout(self, action: A.Logout) -> None:
        self.state = GameState()

    # ── Private helpers ──────────────────────────────────────────────

    def _state_from_snapshot(self, snapshot: Snapshot) -> GameState:
        record = snapshot.record
        state = GameState(
            progress=record.progress,
            inventory=record.inventory,
            machines=record.machines,
            upgrades=record.upgrades,
            prestige_stats=record.prestige_stats,
            achievements=record.achievements,
            user_id=snapshot.user_id,
            username=snapshot.username,
            is_authenticated=True,
            revision=snapshot.revision,
            effects=EffectManager(),
            pending_offline=snapshot.pending_offline,
        )
        ensure_boss(state)
        state.last_defeated_stage = state.progress.current_stage - 1
        return state


def _replace_balances(state: GameState, delta: MutationDelta) -> None:
    progress = state.progress
    progress.scrap = delta.scrap
    progress.data_points = delta.data_points
    progress.core_fragments = delta.core_fragments
    state.revision = max(state.revision, delta.revision)
