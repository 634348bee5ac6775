"""
=============================================================================
IN-MEMORY USER STORE
=============================================================================

The only shared mutable state in the service: a table of users keyed by
an auto-incrementing integer id.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          UserStore                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   ReadWriteLock ─────── guards ───────┐                             │
    │                                       ▼                             │
    │                          ┌──────────────────────────┐               │
    │                          │ _UserTable               │               │
    │                          │   users:   {1: User, …}  │               │
    │                          │   next_id: 3             │               │
    │                          └──────────────────────────┘               │
    │                                                                     │
    │   add_user()  write lock: id = next_id, stamp, insert, next_id += 1 │
    │   get_user()  read lock:  users.get(id)                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

The map and the counter sit in one object behind one lock. Nobody can see
``next_id`` advanced without the matching user present, or the reverse:
both change inside the same write section.

Guarantees:
    - ids start at 1, increase by 1 per add, and are never reused
    - N concurrent add_user() calls return exactly {1, ..., N}
    - created_at is stamped inside the write section, so it never
      decreases as ids increase
    - get_user() never sees a half-built record (records are frozen and
      inserted whole under the write lock)

Nothing is persisted; the table lives as long as the process.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from ..core.rwlock import ReadWriteLock
from .models import NewUser, User


logger = logging.getLogger(__name__)


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _UserTable:
    users: Dict[int, User] = field(default_factory=dict)
    next_id: int = 1


class UserStore:
    """
    Thread-safe in-memory user table.

    Construct one per process and pass it to the handlers that need it:

        store = UserStore()
        handler = UserHandler(store)

    Args:
        clock: Source of ``created_at`` values. Must return aware
               datetimes. Tests pass a fixed clock.
    """

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock
        self._lock = ReadWriteLock()
        self._table = _UserTable()

    def add_user(self, candidate: NewUser) -> int:
        """
        Store ``candidate`` as a new user and return its id.

        Cannot fail for a well-formed NewUser.
        """
        with self._lock.write_lock():
            table = self._table
            user = User(
                id=table.next_id,
                name=candidate.name,
                email=candidate.email,
                created_at=self._clock(),
            )
            table.users[user.id] = user
            table.next_id += 1

        logger.debug(f"Added user {user.id}")
        return user.id

    def get_user(self, user_id: int) -> tuple[Optional[User], bool]:
        """
        Look up a user.

        Returns:
            ``(user, True)`` if found, ``(None, False)`` otherwise.
        """
        with self._lock.read_lock():
            user = self._table.users.get(user_id)
        return user, user is not None

    def __len__(self) -> int:
        with self._lock.read_lock():
            return len(self._table.users)
