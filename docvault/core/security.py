"""Bearer-token authentication and role checks.

Tokens are issued by the external identity service; this module only verifies
them. The role comes from the local ``profiles`` row, not from the token.
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from docvault.core.config import settings
from docvault.core.exceptions import ForbiddenError, NotFoundError
from docvault.schemas.schemas import Role

# JWT bearer scheme
security_scheme = HTTPBearer(auto_error=False)


class Principal(BaseModel):
    """The authenticated caller."""
    id: str
    email: Optional[str] = None
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def require_admin(actor: Principal, action: str = "this operation") -> None:
    """Raise ForbiddenError unless the caller holds the admin role."""
    if not actor.is_admin:
        raise ForbiddenError(f"Role '{actor.role.value}' may not perform {action}")


def decode_token(token: str) -> dict:
    """Decode and validate an identity-service JWT."""
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_token_subject(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> dict:
    """Extract the token payload from the Bearer header."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_token(credentials.credentials)
    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )
    return payload


async def resolve_principal(payload: dict, store) -> Principal:
    """Build the caller from a token payload and their profile row.

    A caller without a profile row is treated as a plain user.
    """
    try:
        profile = await store.get_profile(payload["sub"])
    except NotFoundError:
        return Principal(id=payload["sub"], email=payload.get("email"))
    return Principal(id=profile.id, email=profile.email, role=profile.role)
