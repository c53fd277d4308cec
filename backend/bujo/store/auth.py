"""Application id / master key authentication dependency."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header, Request

from bujo.store.errors import StoreError, OPERATION_FORBIDDEN


class Unauthorized(Exception):
    """Request did not carry the application id."""


@dataclass
class AuthContext:
    master: bool = False


async def verify_app_id(
    request: Request,
    x_parse_application_id: Optional[str] = Header(None, alias="X-Parse-Application-Id"),
    x_parse_master_key: Optional[str] = Header(None, alias="X-Parse-Master-Key"),
) -> AuthContext:
    """
    Verify the X-Parse-Application-Id header against the configured app id.

    - A missing or wrong application id is rejected with 403.
    - A matching X-Parse-Master-Key marks the request as master.
    """
    config = request.app.state.config
    if x_parse_application_id != config.app_id:
        raise Unauthorized()
    return AuthContext(master=bool(x_parse_master_key) and x_parse_master_key == config.master_key)


def require_master(auth: AuthContext):
    if not auth.master:
        raise StoreError(OPERATION_FORBIDDEN, "This operation requires the master key.")
