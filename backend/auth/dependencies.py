from dataclasses import dataclass

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.auth import jwt_handler
from backend.core.errors import Forbidden, Unauthenticated

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    id: int
    email: str
    role: str


def require_auth(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise Unauthenticated()

    try:
        payload = jwt_handler.decode_access_token(credentials.credentials)
    except jwt.PyJWTError as exc:
        raise Unauthenticated("Invalid or expired token") from exc

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise Unauthenticated("Invalid token subject") from exc

    return Identity(id=user_id, email=payload.get("email", ""), role=payload.get("role", ""))


def require_role(role: str):
    """Build a dependency that admits only identities holding exactly ``role``."""

    def dependency(identity: Identity = Depends(require_auth)) -> Identity:
        if identity.role != role:
            raise Forbidden()
        return identity

    return dependency


require_admin = require_role("admin")
