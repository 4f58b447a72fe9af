"""Tests for the client reconciler."""
import asyncio

import pytest

from tapengine._types import ManualClock
from tapengine.authority import GameServer
from tapengine.content import define_game
from tapengine.errors import (
    ClientDesyncError,
    InsufficientResources,
    TransientServerError,
    TransportError,
    Unauthorized,
)
from tapengine.reconcile import MutationStatus, Reconciler
from tapengine.runtime import GameRuntime
from tapengine.transport import InProcessTransport, Response


def _make_reconciler(scrap: int = 0):
    clock = ManualClock(1_000_000)
    server = GameServer(define_game(), clock=clock)
    transport = InProcessTransport(server)
    runtime = GameRuntime(define_game())
    reconciler = Reconciler(runtime, transport, clock)
    payload = transport.request_sync("POST", "auth/login", {"username": "carol"}).json()
    server.ledger.find_by_username("carol").progress.scrap = scrap
    reconciler.apply_snapshot(payload)
    return reconciler, transport, payload["token"]


_BUY = ("machines/buy", {"machine_type": "scrap_collector"})


def test_confirmed_spend_overwrites_balances():
    reconciler, _, token = _make_reconciler(scrap=1500)
    state = reconciler.runtime.get_state()
    state.progress.scrap = 999_999  # local prediction is never trusted
    outcome = asyncio.run(reconciler.mutate(*_BUY, token))
    assert outcome.status is MutationStatus.CONFIRMED
    assert outcome.delta.scrap == 500
    assert reconciler.runtime.get_state().progress.scrap == 500
    assert reconciler.runtime.get_state().machine_level("scrap_collector") == 1
    assert reconciler.in_flight == 0


def test_rejected_spend_changes_nothing():
    reconciler, _, token = _make_reconciler(scrap=10)
    outcome = asyncio.run(reconciler.mutate(*_BUY, token))
    assert outcome.status is MutationStatus.FAILED
    assert isinstance(outcome.error, InsufficientResources)
    assert reconciler.runtime.get_state().machines == {}


def test_server_error_maps_to_transient():
    reconciler, transport, token = _make_reconciler(scrap=1500)
    transport.inject("machines/buy", Response.of(503, {"error": "busy"}))
    outcome = asyncio.run(reconciler.mutate(*_BUY, token))
    assert isinstance(outcome.error, TransientServerError)
    assert outcome.error.status == 503


def test_dropped_connection_fails():
    reconciler, transport, token = _make_reconciler(scrap=1500)
    transport.inject("machines/buy", ConnectionResetError("reset"))
    outcome = asyncio.run(reconciler.mutate(*_BUY, token))
    assert not outcome.ok
    assert isinstance(outcome.error, TransportError)
    assert reconciler.in_flight == 0


def test_garbled_reply_triggers_reload():
    reconciler, transport, token = _make_reconciler(scrap=1500)
    transport.inject("machines/buy", Response(200, "<html>oops</html>"), after=True)
    outcome = asyncio.run(reconciler.mutate(*_BUY, token))
    assert outcome.ok
    assert outcome.reloaded
    assert outcome.delta is None
    assert isinstance(outcome.error, ClientDesyncError)
    state = reconciler.runtime.get_state()
    assert state.machine_level("scrap_collector") == 1
    assert state.progress.scrap == 500
    assert ("GET", "game/state") in transport.calls


def test_unmergeable_reply_triggers_reload():
    reconciler, transport, token = _make_reconciler(scrap=1500)
    body = {"balances": {"scrap": 1}, "revision": 3}  # incomplete balances
    transport.inject("machines/buy", Response.of(200, body), after=True)
    outcome = asyncio.run(reconciler.mutate(*_BUY, token))
    assert outcome.reloaded
    assert reconciler.runtime.get_state().progress.scrap == 500


def test_failed_reload_raises_desync():
    reconciler, transport, token = _make_reconciler(scrap=1500)
    transport.inject("machines/buy", Response(200, "garbage"), after=True)
    transport.inject("game/state", Response.of(500, {"error": "down"}))
    with pytest.raises(ClientDesyncError):
        asyncio.run(reconciler.mutate(*_BUY, token))
    assert reconciler.in_flight == 0


def test_purchase_in_progress_during_request():
    reconciler, transport, token = _make_reconciler(scrap=1500)
    seen = []
    original = transport.request

    async def spy(*args, **kwargs):
        seen.append(reconciler.purchase_in_progress)
        return await original(*args, **kwargs)

    transport.request = spy
    asyncio.run(reconciler.mutate(*_BUY, token))
    assert seen == [True]
    assert not reconciler.purchase_in_progress


def test_load_error():
    reconciler, _, _ = _make_reconciler()
    with pytest.raises(Unauthorized):
        asyncio.run(reconciler.load("bad-token"))
