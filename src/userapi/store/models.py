"""
User records and their JSON shape.

    User     what the store holds and GET /users/:id returns
    NewUser  what POST /users supplies: a user without id or created_at
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


class InvalidUserError(ValueError):
    """A create body that cannot be turned into a NewUser."""


@dataclass(frozen=True)
class NewUser:
    """
    Candidate user from a create request.

    ``name`` and ``email`` are opaque: no format checks, no uniqueness.
    """

    name: str = ""
    email: str = ""

    @classmethod
    def from_json(cls, data: Any) -> "NewUser":
        """
        Build a candidate from a decoded JSON body.

        ``id``, ``created_at`` and any unknown keys are ignored; the store
        assigns the first two. A missing or null ``name``/``email`` is
        the empty string.

        Raises:
            InvalidUserError: ``data`` is not an object, or ``name`` /
                ``email`` is present with a non-string value.
        """
        if not isinstance(data, dict):
            raise InvalidUserError(
                f"user must be a JSON object, not {_json_type(data)}"
            )

        fields = {}
        for key in ("name", "email"):
            value = data.get(key)
            if value is None:
                value = ""
            elif not isinstance(value, str):
                raise InvalidUserError(
                    f"field {key!r} must be a string, not {_json_type(value)}"
                )
            fields[key] = value
        return cls(**fields)


@dataclass(frozen=True)
class User:
    """A stored user. Frozen: readers can hold one without copying."""

    id: int
    name: str
    email: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """
        Wire shape:

            {"id": 1, "name": "Ann", "email": "ann@x.com",
             "created_at": "2026-10-19T09:30:00.123456+00:00"}

        ``created_at`` is RFC 3339 (``isoformat()`` of an aware datetime).
        """
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": self.created_at.isoformat(),
        }


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"
