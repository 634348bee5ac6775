"""
=============================================================================
USER ENDPOINTS
=============================================================================

    POST /users        body {"name": ..., "email": ...}
                       201 {"id": <int>}       Location: /users/<id>
                       400 {"error": "<why the body was rejected>"}

    GET  /users/:id    200 {"id", "name", "email", "created_at"}
                       404 {"error": "User not found"}

The handlers only translate: JSON in, store call, JSON out. They hold no
state of their own beyond the injected store, so one UserHandler serves
every worker thread.

A path id that is not an integer (``/users/abc``) cannot name a user the
store issued, so it is answered with 404 like any other unknown id.

=============================================================================
"""

import logging
import re
from typing import Optional

from ..http.request import HTTPParseError, HTTPRequest
from ..http.response import HTTPResponse, bad_request, created, not_found, ok
from ..store import InvalidUserError, NewUser, UserStore


logger = logging.getLogger(__name__)


USER_NOT_FOUND = "User not found"

_ID_PATTERN = re.compile(r"^[+-]?[0-9]{1,32}$")


def parse_user_id(raw: str) -> Optional[int]:
    """'42' → 42. Anything that is not a short base-10 integer → None."""
    if not _ID_PATTERN.match(raw):
        return None
    return int(raw)


class UserHandler:
    """
    Create/retrieve handlers bound to one UserStore.

        users = UserHandler(store)
        router.post("/users")(users.create)
        router.get("/users/:id")(users.retrieve)
    """

    def __init__(self, store: UserStore):
        self.store = store

    def create(self, request: HTTPRequest) -> HTTPResponse:
        if not request.body:
            return bad_request("Request body is empty")

        try:
            candidate = NewUser.from_json(request.json)
        except (HTTPParseError, InvalidUserError) as e:
            return bad_request(str(e))

        user_id = self.store.add_user(candidate)
        return created({"id": user_id}, location=f"/users/{user_id}")

    def retrieve(self, request: HTTPRequest) -> HTTPResponse:
        user_id = parse_user_id(request.path_params.get("id", ""))
        if user_id is None:
            return not_found(USER_NOT_FOUND)

        user, found = self.store.get_user(user_id)
        if not found:
            return not_found(USER_NOT_FOUND)
        return ok(user.to_dict())
