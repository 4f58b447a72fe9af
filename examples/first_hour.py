"""Scripted first hour of Scrapyard Reboot against an in-process server."""
from __future__ import annotations

import asyncio
import random

from tapengine._types import ManualClock
from tapengine.authority import GameServer
from tapengine.config import EngineConfig
from tapengine.content import define_game
from tapengine.formatting import format_status_report
from tapengine.formulas import machine_cost, upgrade_cost
from tapengine.session import GameSession
from tapengine.transport import InProcessTransport

START_MS = 1_704_067_200_000


async def play(seconds: int = 3600, taps_per_second: int = 5, seed: int = 7) -> GameSession:
    """Tap steadily, reinvest scrap every ten seconds, autosave every two."""
    defn = define_game()
    config = EngineConfig()
    clock = ManualClock(START_MS)
    server = GameServer(defn, clock=clock, config=config)

    session = GameSession(
        InProcessTransport(server),
        definition=defn,
        config=config,
        clock=clock,
        rng=random.Random(seed),
        run_timers=False,
    )
    await session.login("example")

    for second in range(1, seconds + 1):
        for _ in range(taps_per_second):
            await session.tap()
        clock.advance(1)
        await session.pulse(1.0)
        if second % 10 == 0:
            await _reinvest(session)
        if second % int(config.autosave_interval) == 0:
            await session.save()
    return session


async def _reinvest(session: GameSession) -> None:
    state = session.state
    scrap = state.progress.scrap
    if scrap >= upgrade_cost("tap_power", state.upgrade_level("tap_power")):
        await session.buy_upgrade("tap_power")
    elif scrap >= machine_cost("scrap_collector", state.machine_level("scrap_collector")):
        await session.buy_machine("scrap_collector")


if __name__ == "__main__":
    final = asyncio.run(play())
    print(format_status_report(final.state))
