"""Client half of the spend protocol.

A mutation is sent as ids only. A failed call changes nothing. A
successful call replaces local balances with the server's numbers. When a
successful call cannot be parsed or merged, the spend has still happened
on the server, so the client reloads the whole snapshot instead of
guessing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from tapengine import actions as A
from tapengine._types import Clock, system_clock
from tapengine.errors import ClientDesyncError, GameError, TransportError, error_for_response
from tapengine.wire import MutationDelta, delta_from_dict, snapshot_from_dict

if TYPE_CHECKING:
    from tapengine.runtime import GameRuntime
    from tapengine.transport import Response, Transport

logger = logging.getLogger(__name__)


class MutationStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class MutationOutcome:
    path: str
    status: MutationStatus = MutationStatus.PENDING
    delta: MutationDelta | None = None
    error: GameError | None = None
    reloaded: bool = False

    @property
    def ok(self) -> bool:
        return self.status is MutationStatus.CONFIRMED

    def confirm(self, delta: MutationDelta | None) -> MutationOutcome:
        self.status = MutationStatus.CONFIRMED
        self.delta = delta
        return self

    def fail(self, error: GameError) -> MutationOutcome:
        self.status = MutationStatus.FAILED
        self.error = error
        return self


# Turns a parsed 2xx body into the reducer action that merges it.
ActionBuilder = Callable[[Any], A.Action]


class Reconciler:
    def __init__(
        self,
        runtime: GameRuntime,
        transport: Transport,
        clock: Clock = system_clock,
        dispatch: Callable[[A.Action], Any] | None = None,
    ) -> None:
        self.runtime = runtime
        self.transport = transport
        self.clock = clock
        self.dispatch = dispatch or runtime.dispatch
        self.in_flight = 0

    @property
    def purchase_in_progress(self) -> bool:
        return self.in_flight > 0

    # ── Spends ───────────────────────────────────────────────────────

    async def mutate(
        self,
        path: str,
        body: dict | None,
        token: str | None,
        build: ActionBuilder | None = None,
    ) -> MutationOutcome:
        """Run one spend through PENDING to CONFIRMED or FAILED."""
        outcome = MutationOutcome(path)
        build = build or self.merge_delta
        self.in_flight += 1
        try:
            try:
                response = await self.transport.request("POST", path, body, token)
            except TransportError as exc:
                logger.warning("%s failed to send: %s", path, exc.message)
                return outcome.fail(exc)
            if not response.ok:
                error = _error_of(response)
                logger.warning("%s rejected (%d): %s", path, response.status, error.message)
                return outcome.fail(error)

            try:
                action = build(response.json())
                self.dispatch(action)
            except Exception as exc:
                desync = ClientDesyncError(f"Could not apply {path} response: {exc}")
                logger.error("%s", desync.message, exc_info=exc)
                outcome.error = desync
                outcome.reloaded = await self.resync(token, cause=desync)
                return outcome.confirm(None)
            return outcome.confirm(getattr(action, "delta", None))
        finally:
            self.in_flight -= 1

    def merge_delta(self, payload: Any) -> A.Action:
        return A.ApplyMutation(delta_from_dict(payload, self.runtime.definition))

    def collected_offline(self, payload: Any) -> A.Action:
        return A.CollectOffline(delta_from_dict(payload, self.runtime.definition))

    def prestige_reset(self, payload: Any) -> A.Action:
        snapshot = snapshot_from_dict(payload, self.runtime.definition)
        return A.ResetAfterPrestige(snapshot, self.clock())

    # ── Reads ────────────────────────────────────────────────────────

    async def load(self, token: str | None) -> None:
        """Replace local state with the server's snapshot."""
        response = await self.transport.request("GET", "game/state", None, token)
        if not response.ok:
            raise _error_of(response)
        self.apply_snapshot(response.json())

    def apply_snapshot(self, payload: Any) -> None:
        snapshot = snapshot_from_dict(payload, self.runtime.definition)
        self.dispatch(A.LoadSnapshot(snapshot, self.clock()))

    async def resync(self, token: str | None, cause: ClientDesyncError) -> bool:
        """Reload after a desync. Re-raises *cause* if the reload fails too."""
        try:
            await self.load(token)
        except GameError as exc:
            logger.error("reload after desync failed: %s", exc.message)
            raise cause from exc
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("reload after desync returned a bad snapshot: %s", exc)
            raise cause from exc
        logger.info("reloaded state after desync")
        return True


def _error_of(response: Response) -> GameError:
    try:
        payload = response.json()
        message = str(payload.get("error", ""))
        code = payload.get("code")
    except (ValueError, AttributeError):
        message, code = response.body, None
    return error_for_response(response.status, message or f"HTTP {response.status}", code)
