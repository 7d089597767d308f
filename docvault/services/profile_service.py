"""Profile service — admin management of local account rows."""

from typing import List, Optional

from docvault.core.exceptions import ValidationError
from docvault.core.logging import get_logger
from docvault.core.security import Principal, require_admin
from docvault.schemas.schemas import NewProfile, PendingAccount, Profile, Role
from docvault.services.identity import IdentityClient
from docvault.stores.base import MetadataStoreBase

logger = get_logger("profiles")


class ProfileService:
    """Reads are open to any caller; every write requires the admin role."""

    def __init__(self, metadata: MetadataStoreBase, identity: Optional[IdentityClient] = None):
        self.metadata = metadata
        self.identity = identity or IdentityClient()

    async def list_profiles(self) -> List[Profile]:
        return await self.metadata.list_profiles()

    async def get_profile(self, profile_id: str) -> Profile:
        return await self.metadata.get_profile(profile_id)

    async def update_profile(
        self,
        actor: Principal,
        profile_id: str,
        display_name: Optional[str] = None,
        role: Optional[Role] = None,
    ) -> Profile:
        require_admin(actor, "profile changes")
        changes = {}
        if display_name is not None:
            if not display_name.strip():
                raise ValidationError("Display name cannot be empty")
            changes["display_name"] = display_name.strip()
        if role is not None:
            changes["role"] = role
        if not changes:
            return await self.metadata.get_profile(profile_id)
        return await self.metadata.update_profile(profile_id, changes)

    async def delete_profile(self, actor: Principal, profile_id: str) -> None:
        """Remove the local row only; the identity itself belongs to the identity service."""
        require_admin(actor, "profile removal")
        await self.metadata.delete_profile(profile_id)
        logger.info("Profile %s removed by %s", profile_id, actor.id)

    async def provision_account(
        self,
        actor: Principal,
        email: str,
        password: str,
        display_name: str,
        role: Role = Role.USER,
    ) -> PendingAccount:
        require_admin(actor, "account provisioning")
        email, display_name = (email or "").strip(), (display_name or "").strip()
        if not email or not (password or "").strip() or not display_name:
            raise ValidationError("Email, password and display name are required")
        return await self.identity.sign_up(email, password, display_name, role)

    async def register_profile(
        self, identity_id: str, email: str, display_name: str, role: Role = Role.USER
    ) -> Profile:
        """Create the local row once the identity service confirms a new account."""
        profile = await self.metadata.insert_profile(
            NewProfile(id=identity_id, email=email, display_name=display_name or email, role=role)
        )
        logger.info("Registered profile %s (%s)", profile.id, profile.role.value)
        return profile
