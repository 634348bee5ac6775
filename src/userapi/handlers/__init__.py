"""
Request handlers.

    HealthHandler   GET /health
    UserHandler     POST /users, GET /users/:id
"""

from .health import HealthHandler, OPERATIONAL_MESSAGE
from .users import UserHandler, USER_NOT_FOUND, parse_user_id

__all__ = [
    "HealthHandler",
    "OPERATIONAL_MESSAGE",
    "UserHandler",
    "USER_NOT_FOUND",
    "parse_user_id",
]
