"""Profile service for business logic operations.

This module owns the user profile lifecycle: creation at signup, reads,
partial updates, and the analyzed-documents counter bumped when an analysis
completes.
"""

import re
from datetime import datetime, timezone
from typing import List, Optional

from synapse_legal.core.exceptions import ConfigurationError, NotFoundError, ValidationError
from synapse_legal.repositories.profile_repository import ProfileRepository
from synapse_legal.schemas.auth import SignupRequest, SignupUser
from synapse_legal.schemas.profile import Profile, ProfileUpdate
from synapse_legal.services.identity_service import IdentityService
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)

PASSWORD_RULES = [
    (lambda pwd: len(pwd) >= 8, "at least 8 characters"),
    (lambda pwd: re.search(r"[A-Z]", pwd) is not None, "one uppercase letter"),
    (lambda pwd: re.search(r"[a-z]", pwd) is not None, "one lowercase letter"),
    (lambda pwd: re.search(r"\d", pwd) is not None, "one number"),
]


def password_violations(password: str) -> List[str]:
    """Return the password rules ``password`` does not satisfy."""
    return [text for rule, text in PASSWORD_RULES if not rule(password)]


class ProfileService:
    """Service for profile business logic operations."""

    def __init__(self, repository: ProfileRepository, identity_service: Optional[IdentityService] = None):
        """Initialize service.

        Args:
            repository: Profile repository
            identity_service: Supabase Auth admin client, needed for signup only
        """
        self.repository = repository
        self.identity_service = identity_service

    async def signup(self, request: SignupRequest) -> SignupUser:
        """Create the identity and its profile.

        Args:
            request: Signup payload

        Returns:
            The created identity

        Raises:
            ValidationError: If the password is weak or the account is rejected
        """
        violations = password_violations(request.password)
        if violations:
            raise ValidationError(f"Password must contain {', '.join(violations)}")
        if self.identity_service is None:
            raise ConfigurationError("Identity service is not configured")

        user = await self.identity_service.create_user(request.email, request.password, request.name)
        await self.create_profile(user.id, request.email, request.name)

        LOGGER.info(f"User signed up: {user.id}", extra={"user_id": user.id})
        return user

    async def create_profile(self, user_id: str, email: str, name: Optional[str]) -> Profile:
        profile = Profile(
            id=user_id,
            email=email,
            name=name,
            created_at=datetime.now(timezone.utc),
            documents_analyzed=0,
            subscription_tier="free",
        )
        return await self.repository.save(profile)

    async def get_profile(self, user_id: str) -> Profile:
        """Get the caller's profile.

        Raises:
            NotFoundError: If the user has no profile
        """
        profile = await self.repository.get(user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def update_profile(self, user_id: str, update: ProfileUpdate) -> Profile:
        """Merge the provided fields into the stored profile.

        Args:
            user_id: Owner of the profile
            update: Fields to change; unset fields are left alone

        Returns:
            The updated profile

        Raises:
            NotFoundError: If the user has no profile
        """
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        merged = await self.repository.update_fields(user_id, changes)
        if merged is None:
            raise NotFoundError("Profile not found")

        LOGGER.info(
            f"Profile updated for user {user_id}",
            extra={"user_id": user_id, "fields": sorted(changes)},
        )
        return merged

    async def increment_documents_analyzed(self, user_id: str) -> Optional[Profile]:
        return await self.repository.increment_documents_analyzed(user_id)
