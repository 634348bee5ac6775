"""User records and the thread-safe in-memory store that holds them."""

from .models import InvalidUserError, NewUser, User
from .user_store import UserStore, utc_now

__all__ = [
    "InvalidUserError",
    "NewUser",
    "User",
    "UserStore",
    "utc_now",
]
