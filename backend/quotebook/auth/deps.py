"""FastAPI dependencies for authentication.

Dependencies:
  get_current_owner  → decode the bearer JWT and return its `sub` claim

Every query is scoped to the returned owner id; there is no user table
on this side of the auth boundary.
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from quotebook.auth.jwt import decode_token
from quotebook.middleware.exceptions import UnauthorizedError

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_owner(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Return the owner id from a valid access token, else 401."""
    if credentials is None:
        raise UnauthorizedError("Not authenticated")

    payload = decode_token(credentials.credentials)
    owner_id: str | None = payload.get("sub")
    if not owner_id or payload.get("type") != "access":
        raise UnauthorizedError("Invalid or expired token")
    return owner_id
