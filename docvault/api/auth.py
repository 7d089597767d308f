"""Sign-in/sign-out proxied to the identity service."""

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field

from docvault.api.deps import get_identity_client
from docvault.core.security import get_token_subject, security_scheme
from docvault.schemas.schemas import MessageResponse, SessionTokens
from docvault.services.identity import IdentityClient

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


@router.post("/login", response_model=SessionTokens)
async def login(body: LoginRequest, identity: IdentityClient = Depends(get_identity_client)):
    """Exchange email/password for identity-service tokens."""
    return await identity.sign_in(body.email, body.password)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    payload: dict = Depends(get_token_subject),
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
    identity: IdentityClient = Depends(get_identity_client),
):
    """Revoke the caller's session at the identity service."""
    await identity.sign_out(credentials.credentials)
    return MessageResponse(message="Logged out successfully")
