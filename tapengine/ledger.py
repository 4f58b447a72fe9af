from __future__ import annotations

import copy
import logging
import secrets
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from tapengine.errors import Unauthorized
from tapengine.offline import OfflineEarnings
from tapengine.state import PlayerRecord

logger = logging.getLogger(__name__)


@dataclass
class Account(PlayerRecord):
    """Server-side row set for one player."""

    user_id: int = 0
    username: str = ""
    session_token: str = ""
    revision: int = 0
    last_checkpoint_at: int = 0  # epoch ms up to which idle output is accounted
    pending_offline: OfflineEarnings | None = None
    next_inventory_id: int = 1

    def allocate_inventory_id(self) -> int:
        inv_id = self.next_inventory_id
        self.next_inventory_id += 1
        return inv_id


class Ledger:
    """In-memory account store with one atomic transaction per request.

    A transaction works on a deep copy of the account and commits it only
    when the block exits without raising. A per-account lock serialises
    concurrent requests for the same player.
    """

    def __init__(self) -> None:
        self._accounts: dict[int, Account] = {}
        self._by_username: dict[str, int] = {}
        self._by_token: dict[str, int] = {}
        self._locks: dict[int, threading.RLock] = {}
        self._registry_lock = threading.Lock()
        self._next_user_id = 1

    def __len__(self) -> int:
        return len(self._accounts)

    def find_by_username(self, username: str) -> Account | None:
        user_id = self._by_username.get(username)
        return None if user_id is None else self._accounts[user_id]

    def create(self, username: str, now: int) -> Account:
        with self._registry_lock:
            if username in self._by_username:
                raise ValueError(f"Account already exists: {username!r}")
            account = Account(
                user_id=self._next_user_id,
                username=username,
                last_checkpoint_at=now,
            )
            self._next_user_id += 1
            self._accounts[account.user_id] = account
            self._by_username[username] = account.user_id
            self._locks[account.user_id] = threading.RLock()
        logger.info("created account %s (%d)", username, account.user_id)
        return account

    def issue_token(self, user_id: int) -> str:
        """Rotate the session token for *user_id*."""
        token = secrets.token_hex(16)
        with self._registry_lock:
            account = self._accounts[user_id]
            if account.session_token:
                self._by_token.pop(account.session_token, None)
            account.session_token = token
            self._by_token[token] = user_id
        return token

    def resolve(self, token: str | None) -> int:
        if not token:
            raise Unauthorized("Unauthorized")
        user_id = self._by_token.get(token)
        if user_id is None:
            raise Unauthorized("Unauthorized")
        return user_id

    def read(self, token: str | None) -> Account:
        """A detached copy of the account; changes to it are never stored."""
        user_id = self.resolve(token)
        with self._locks[user_id]:
            return copy.deepcopy(self._accounts[user_id])

    @contextmanager
    def transaction(self, token: str | None) -> Iterator[Account]:
        user_id = self.resolve(token)
        with self._locks[user_id]:
            working = copy.deepcopy(self._accounts[user_id])
            yield working
            working.revision += 1
            self._accounts[user_id] = working
            logger.debug("committed %s at revision %d", working.username, working.revision)
