from __future__ import annotations

import asyncio
import json
import logging
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, Union

from tapengine.errors import TransportError

if TYPE_CHECKING:
    from tapengine.authority import GameServer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Response:
    """Status code plus raw JSON text, as a client would receive it."""

    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.body)

    @classmethod
    def of(cls, status: int, payload: Any) -> Response:
        return cls(status, json.dumps(payload))


class Transport(Protocol):
    async def request(
        self, method: str, path: str, body: dict | None = None, token: str | None = None
    ) -> Response: ...

    def request_sync(
        self, method: str, path: str, body: dict | None = None, token: str | None = None
    ) -> Response: ...


# A scripted outcome: a canned response, or an exception to raise.
Fault = Union[Response, Exception]


class InProcessTransport:
    """Calls a GameServer directly, with optional scripted faults.

    ``inject(path, fault)`` queues an outcome for the next request to
    *path*. A queued Response is returned instead of calling the server;
    an exception is raised as if the connection dropped. Passing
    ``after=True`` lets the server commit first and then replaces the
    response, which models a lost or garbled reply to a committed spend.
    """

    def __init__(self, server: GameServer, latency: float = 0.0) -> None:
        self.server = server
        self.latency = latency
        self.calls: list[tuple[str, str]] = []
        self._faults: dict[str, deque[tuple[Fault, bool]]] = defaultdict(deque)

    def inject(self, path: str, fault: Fault, after: bool = False) -> None:
        self._faults[path].append((fault, after))

    async def request(
        self, method: str, path: str, body: dict | None = None, token: str | None = None
    ) -> Response:
        if self.latency:
            await asyncio.sleep(self.latency)
        return self._call(method, path, body, token)

    def request_sync(
        self, method: str, path: str, body: dict | None = None, token: str | None = None
    ) -> Response:
        return self._call(method, path, body, token)

    def _call(self, method: str, path: str, body: dict | None, token: str | None) -> Response:
        self.calls.append((method, path))
        fault, after = self._faults[path].popleft() if self._faults[path] else (None, False)
        if fault is not None and not after:
            return self._deliver(fault, path)
        response = self.server.handle(method, path, body, token)
        if fault is not None:
            return self._deliver(fault, path)
        return response

    @staticmethod
    def _deliver(fault: Fault, path: str) -> Response:
        if isinstance(fault, Response):
            return fault
        logger.debug("injected failure on %s: %r", path, fault)
        if isinstance(fault, TransportError):
            raise fault
        raise TransportError(str(fault)) from fault
