"""Profiles and account administration router."""

import hmac
from typing import List

from fastapi import APIRouter, Depends, Header

from docvault.api.deps import get_principal, get_profile_service
from docvault.core.config import settings
from docvault.core.exceptions import ForbiddenError
from docvault.core.security import Principal, require_admin
from docvault.schemas.schemas import (
    AccountCreate,
    MessageResponse,
    NewProfile,
    PendingAccount,
    Profile,
    ProfileUpdate,
)
from docvault.services.profile_service import ProfileService

router = APIRouter(tags=["profiles"])


@router.get("/profiles/me", response_model=Profile)
async def get_me(
    service: ProfileService = Depends(get_profile_service),
    actor: Principal = Depends(get_principal),
):
    """Current caller's profile."""
    return await service.get_profile(actor.id)


@router.post("/profiles/callback", response_model=Profile, status_code=201)
async def identity_callback(
    body: NewProfile,
    x_identity_secret: str = Header(""),
    service: ProfileService = Depends(get_profile_service),
):
    """Called by the identity service when a new account is confirmed."""
    expected = settings.IDENTITY_WEBHOOK_SECRET
    if not expected:
        raise ForbiddenError("Identity callbacks are disabled: no shared secret configured")
    if not hmac.compare_digest(x_identity_secret.encode("utf-8"), expected.encode("utf-8")):
        raise ForbiddenError("Invalid identity callback secret")
    return await service.register_profile(body.id, body.email, body.display_name, body.role)


@router.get("/admin/profiles", response_model=List[Profile])
async def admin_list_profiles(
    service: ProfileService = Depends(get_profile_service),
    actor: Principal = Depends(get_principal),
):
    """List all profiles, newest first (admin only)."""
    require_admin(actor, "profile listing")
    return await service.list_profiles()


@router.put("/admin/profiles/{profile_id}", response_model=Profile)
async def admin_update_profile(
    profile_id: str,
    body: ProfileUpdate,
    service: ProfileService = Depends(get_profile_service),
    actor: Principal = Depends(get_principal),
):
    """Change a profile's display name or role (admin only)."""
    return await service.update_profile(actor, profile_id, body.display_name, body.role)


@router.delete("/admin/profiles/{profile_id}", response_model=MessageResponse)
async def admin_delete_profile(
    profile_id: str,
    service: ProfileService = Depends(get_profile_service),
    actor: Principal = Depends(get_principal),
):
    """Remove a local profile row (admin only)."""
    await service.delete_profile(actor, profile_id)
    return MessageResponse(message="Profile removed")


@router.post("/admin/accounts", response_model=PendingAccount, status_code=202)
async def admin_provision_account(
    body: AccountCreate,
    service: ProfileService = Depends(get_profile_service),
    actor: Principal = Depends(get_principal),
):
    """Create an account through the identity service (admin only)."""
    return await service.provision_account(
        actor, body.email, body.password, body.display_name, body.role
    )
