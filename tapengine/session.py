from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable

from tapengine import actions as A
from tapengine._types import Clock, system_clock
from tapengine.combat import CombatPhase, phase
from tapengine.config import EngineConfig
from tapengine.definition import GameDefinition
from tapengine.effect import EffectType
from tapengine.errors import GameError, StaleSnapshot, TransportError
from tapengine.formulas import Boss
from tapengine.reconcile import MutationOutcome, Reconciler
from tapengine.runtime import GameRuntime
from tapengine.state import DamageNumber, GameState, LootDrop
from tapengine.transport import Response, Transport
from tapengine.wire import save_payload

logger = logging.getLogger(__name__)


class GameSession:
    """Client controller: verbs, timers and the action queue.

    Timers never touch state themselves. They post actions to a queue
    that one consumer task applies in order, so every change is a single
    :meth:`GameRuntime.dispatch`. With ``run_timers=False`` nothing runs
    in the background and :meth:`pulse` drives the periodic work instead.
    """

    def __init__(
        self,
        transport: Transport,
        definition: GameDefinition | None = None,
        config: EngineConfig | None = None,
        clock: Clock = system_clock,
        rng: random.Random | None = None,
        run_timers: bool = True,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.config = config or EngineConfig()
        self.clock = clock
        self.runtime = GameRuntime(definition, rng=rng)
        self.transport = transport
        self.reconciler = Reconciler(self.runtime, transport, clock, dispatch=self._apply)
        self.token: str | None = None
        self.run_timers = run_timers
        self._sleep = sleep
        self._queue: asyncio.Queue | None = None
        self._tasks: list[asyncio.Task] = []

    # ── Snapshots ────────────────────────────────────────────────────

    @property
    def state(self) -> GameState:
        return self.runtime.state

    @property
    def boss(self) -> Boss | None:
        return self.runtime.state.boss

    @property
    def is_running(self) -> bool:
        return bool(self._tasks)

    @property
    def purchase_in_progress(self) -> bool:
        return self.reconciler.purchase_in_progress

    def observations(self) -> tuple[list[DamageNumber], list[LootDrop]]:
        return self.runtime.drain_observations()

    # ── Session lifecycle ────────────────────────────────────────────

    async def login(self, username: str) -> bool:
        try:
            response = await self.transport.request("POST", "auth/login", {"username": username})
        except TransportError as exc:
            logger.warning("login failed to send: %s", exc.message)
            return False
        if not response.ok:
            logger.warning("login rejected (%d)", response.status)
            return False
        payload = response.json()
        self.token = payload["token"]
        self.reconciler.apply_snapshot(payload)
        logger.info("logged in as %s", username)
        if self.run_timers:
            self.start()
        return True

    async def reload(self) -> bool:
        try:
            await self.reconciler.load(self.token)
        except GameError as exc:
            logger.warning("reload failed: %s", exc.message)
            return False
        logger.info("reloaded state at revision %d", self.state.revision)
        return True

    async def logout(self) -> None:
        await self.stop()
        self.runtime.dispatch(A.Logout())
        self.token = None

    close = logout

    def start(self) -> None:
        """Start the consumer and timer tasks. Needs a running loop."""
        if self._tasks:
            return
        cfg = self.config
        self._queue = asyncio.Queue()
        self._tasks = [
            asyncio.create_task(self._consume()),
            asyncio.create_task(self._every(cfg.idle_tick_interval, self._idle_tick)),
            asyncio.create_task(self._every(cfg.effect_sweep_interval, self._sweep)),
            asyncio.create_task(self._every(cfg.damage_number_ttl, self._expire_numbers)),
            asyncio.create_task(self._every(cfg.autosave_interval, self.save)),
        ]

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("background task failed before shutdown")
        queue, self._queue = self._queue, None
        while queue is not None and not queue.empty():
            _, future = queue.get_nowait()
            future.cancel()

    # ── Combat verbs ─────────────────────────────────────────────────

    async def tap(self) -> DamageNumber | None:
        return await self._post(A.Tap(self.clock()))

    async def use_skill(self, skill_id: str) -> bool:
        return bool(await self._post(A.UseSkill(skill_id, self.clock())))

    # ── Spend verbs ──────────────────────────────────────────────────

    async def buy_item(self, item_id: int, quantity: int = 1) -> bool:
        return (await self._mutate("shop/buy", {"item_id": item_id, "quantity": quantity})).ok

    async def buy_machine(self, machine_type: str, levels: int = 1) -> bool:
        body = {"machine_type": machine_type, "levels": levels}
        return (await self._mutate("machines/buy", body)).ok

    async def buy_upgrade(self, upgrade_type: str) -> bool:
        return (await self._mutate("upgrades/buy", {"upgrade_type": upgrade_type})).ok

    async def equip(self, inventory_id: int, unequip: bool = False) -> bool:
        body = {"inventory_id": inventory_id, "unequip": unequip}
        return (await self._mutate("game/equip", body)).ok

    async def upgrade_weapon(self, inventory_id: int) -> bool:
        return (await self._mutate("shop/upgrade-weapon", {"inventory_id": inventory_id})).ok

    async def upgrade_storage(self) -> bool:
        return (await self._mutate("storage/upgrade", {})).ok

    async def prestige(self) -> bool:
        if self.state.progress.highest_stage < self.config.prestige_min_stage:
            return False
        outcome = await self._mutate("prestige/reboot", {}, self.reconciler.prestige_reset)
        if outcome.ok:
            logger.info("rebooted; core fragments now %d", self.state.progress.core_fragments)
        return outcome.ok

    async def collect_offline(self) -> bool:
        if self.state.pending_offline is None:
            return False
        outcome = await self._mutate(
            "game/collect-offline", {}, self.reconciler.collected_offline
        )
        return outcome.ok

    def dismiss_offline(self) -> None:
        self.runtime.dispatch(A.DismissOffline())

    # ── Saving ───────────────────────────────────────────────────────

    async def save(self) -> bool:
        """Periodic save. Skipped while a spend is in flight."""
        if not self._can_save():
            return False
        body = save_payload(self.state, self.state.revision)
        attempts = self.config.save_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                response = await self.transport.request("POST", "game/save", body, self.token)
            except TransportError as exc:
                logger.warning("save failed to send: %s", exc.message)
                return False
            if response.ok:
                return self._acknowledge_save(response)
            if response.status >= 500 and attempt < attempts:
                delay = self.config.retry_backoff * attempt
                logger.warning("save got %d, retrying in %.1fs", response.status, delay)
                await self._sleep(delay)
                continue
            if response.status == StaleSnapshot.status:
                logger.warning("save skipped: server state is newer")
            elif response.status >= 500:
                logger.warning("save failed after %d attempts (%d)", attempts, response.status)
            else:
                logger.warning("save rejected (%d)", response.status)
            return False
        return False

    def save_on_unload(self) -> bool:
        """Blocking last-chance save. Never runs while a spend is in flight."""
        if not self._can_save():
            return False
        body = save_payload(self.state, self.state.revision)
        try:
            response = self.transport.request_sync("POST", "game/save", body, self.token)
        except TransportError as exc:
            logger.warning("unload save failed: %s", exc.message)
            return False
        if not response.ok:
            logger.warning("unload save rejected (%d)", response.status)
            return False
        return self._acknowledge_save(response)

    def _acknowledge_save(self, response: Response) -> bool:
        """Adopt the revision from a save reply. A garbled reply counts as a failed save."""
        try:
            revision = int(response.json()["revision"])
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("save reply unreadable (%d): %r", response.status, exc)
            return False
        self._apply(A.MarkSaved(revision))
        return True

    # ── Periodic work ────────────────────────────────────────────────

    async def pulse(self, seconds: float = 1.0) -> None:
        """One round of the timer work, for sessions without timers."""
        await self._idle_tick(seconds)
        await self._sweep()
        await self._expire_numbers()

    async def _idle_tick(self, seconds: float | None = None) -> None:
        state = self.state
        if not state.is_authenticated:
            return
        now = self.clock()
        if state.machines or state.effects.is_active(EffectType.AUTO_TAP, now):
            await self._post(A.IdleTick(now, seconds or self.config.idle_tick_interval))

    async def _sweep(self) -> None:
        await self._post(A.SweepEffects(self.clock()))

    async def _expire_numbers(self) -> None:
        ttl_ms = int(self.config.damage_number_ttl * 1000)
        await self._post(A.ExpireDamageNumbers(self.clock(), ttl_ms))

    async def _every(self, interval: float, fn: Callable[[], Awaitable[Any]]) -> None:
        while True:
            await self._sleep(interval)
            try:
                await fn()
            except GameError as exc:
                logger.warning("%s failed: %s", getattr(fn, "__name__", fn), exc.message)
            except Exception:
                logger.exception("%s crashed; timer keeps running", getattr(fn, "__name__", fn))

    # ── Action queue ─────────────────────────────────────────────────

    async def _post(self, action: A.Action) -> Any:
        if self._queue is None:
            return self._apply(action)
        future = asyncio.get_running_loop().create_future()
        await self._queue.put((action, future))
        return await future

    async def _consume(self) -> None:
        queue = self._queue
        while True:
            action, future = await queue.get()
            try:
                result = self._apply(action)
            except Exception as exc:
                if not future.done():
                    future.set_exception(exc)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                queue.task_done()

    def _apply(self, action: A.Action) -> Any:
        """Dispatch one action, then settle a dead boss if there is one."""
        result = self.runtime.dispatch(action)
        if phase(self.runtime.state) is CombatPhase.BOSS_DEFEATED:
            self.runtime.dispatch(A.DefeatBoss(self.clock()))
        return result

    async def _mutate(self, path: str, body: dict, build=None) -> MutationOutcome:
        if not self.state.is_authenticated:
            return MutationOutcome(path)
        # The confirmed balances replace local ones, so unsaved earnings go first.
        await self.save()
        return await self.reconciler.mutate(path, body, self.token, build)

    def _can_save(self) -> bool:
        if not self.state.is_authenticated or self.token is None:
            return False
        if self.purchase_in_progress:
            logger.debug("save skipped: purchase in progress")
            return False
        return True
