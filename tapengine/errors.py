"""Error taxonomy shared by the server authority and the client session.

Server handlers raise :class:`GameError` subclasses; the router turns them
into HTTP-style status codes plus a machine-readable ``code``. The client
maps a failed response back to the same classes so callers can tell a
rejected spend from a broken connection.
"""

from __future__ import annotations


class GameError(Exception):
    """Base class for expected, user-facing failures."""

    status: int = 400
    code: str = "error"

    def __init__(self, message: str = "", status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class ValidationError(GameError):
    """Malformed or out-of-range input, rejected before any mutation."""

    status = 400
    code = "validation"


class InsufficientResources(GameError):
    """The recomputed cost exceeds the authoritative balance."""

    status = 400
    code = "insufficient_resources"


class NotFound(GameError):
    status = 404
    code = "not_found"


class Unauthorized(GameError):
    status = 401
    code = "unauthorized"


class StaleSnapshot(GameError):
    """A save was built on a revision older than the server's."""

    status = 409
    code = "stale_snapshot"


class TransientServerError(GameError):
    status = 500
    code = "server_error"


class TransportError(GameError):
    """The request never produced a response."""

    status = 0
    code = "transport"


class ClientDesyncError(GameError):
    """The server committed a mutation but the client could not apply it.

    Never guessed around: the session reloads the authoritative snapshot.
    """

    status = 0
    code = "desync"


_BY_CODE: dict[str, type[GameError]] = {
    cls.code: cls
    for cls in (
        ValidationError,
        InsufficientResources,
        NotFound,
        Unauthorized,
        StaleSnapshot,
        TransientServerError,
    )
}


def error_for_response(status: int, message: str, code: str | None = None) -> GameError:
    """Rebuild the error a failed server response stands for."""
    if status >= 500:
        return TransientServerError(message, status)
    cls = _BY_CODE.get(code or "")
    if cls is None:
        cls = {401: Unauthorized, 404: NotFound, 409: StaleSnapshot}.get(status, ValidationError)
    return cls(message, status)
