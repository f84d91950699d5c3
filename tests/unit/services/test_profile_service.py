"""Unit tests for the profile service and password policy."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from synapse_legal.core.exceptions import ConfigurationError, NotFoundError, ValidationError
from synapse_legal.repositories.kv_store import InMemoryKeyValueStore
from synapse_legal.repositories.profile_repository import ProfileRepository
from synapse_legal.schemas.auth import SignupRequest, SignupUser
from synapse_legal.schemas.profile import ProfileUpdate
from synapse_legal.services.identity_service import IdentityService
from synapse_legal.services.profile_service import ProfileService, password_violations


@pytest.fixture
def identity() -> AsyncMock:
    identity = AsyncMock(spec=IdentityService)
    identity.create_user.return_value = SignupUser(id="user-a", email="a@example.com")
    return identity


@pytest.fixture
def service(identity) -> ProfileService:
    return ProfileService(ProfileRepository(InMemoryKeyValueStore()), identity_service=identity)


@pytest.mark.parametrize(
    "password, expected",
    [
        ("Str0ngPass", []),
        ("Sh0rt", ["at least 8 characters"]),
        ("alllowercase1", ["one uppercase letter"]),
        ("ALLUPPERCASE1", ["one lowercase letter"]),
        ("NoDigitsHere", ["one number"]),
    ],
)
def test_password_violations(password, expected):
    assert password_violations(password) == expected


class TestProfileService:
    @pytest.mark.asyncio
    async def test_signup_creates_fresh_profile(self, service, identity):
        user = await service.signup(SignupRequest(email="a@example.com", password="Str0ngPass", name="Alex"))

        assert user.id == "user-a"
        profile = await service.get_profile("user-a")
        assert profile.email == "a@example.com"
        assert profile.name == "Alex"
        assert profile.documents_analyzed == 0
        assert profile.subscription_tier == "free"

    @pytest.mark.asyncio
    async def test_signup_rejects_weak_password_before_calling_identity(self, service, identity):
        with pytest.raises(ValidationError):
            await service.signup(SignupRequest(email="a@example.com", password="password", name="Alex"))

        identity.create_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_signup_without_identity_service(self):
        service = ProfileService(ProfileRepository(InMemoryKeyValueStore()))

        with pytest.raises(ConfigurationError):
            await service.signup(SignupRequest(email="a@example.com", password="Str0ngPass", name="Alex"))

    @pytest.mark.asyncio
    async def test_get_missing_profile(self, service):
        with pytest.raises(NotFoundError):
            await service.get_profile("nobody")

    @pytest.mark.asyncio
    async def test_update_merges_only_given_fields(self, service):
        await service.create_profile("user-a", "a@example.com", "Alex")

        updated = await service.update_profile("user-a", ProfileUpdate(name="Alexandra"))

        assert updated.name == "Alexandra"
        assert updated.email == "a@example.com"
        assert updated.subscription_tier == "free"
        assert updated.updated_at is not None
        assert await service.get_profile("user-a") == updated

    @pytest.mark.asyncio
    async def test_update_ignores_explicit_nulls(self, service):
        await service.create_profile("user-a", "a@example.com", "Alex")

        updated = await service.update_profile("user-a", ProfileUpdate(email=None, subscription_tier="pro"))

        assert updated.email == "a@example.com"
        assert updated.subscription_tier == "pro"

    @pytest.mark.asyncio
    async def test_update_missing_profile(self, service):
        with pytest.raises(NotFoundError):
            await service.update_profile("nobody", ProfileUpdate(name="X"))

    @pytest.mark.asyncio
    async def test_increment(self, service):
        await service.create_profile("user-a", "a@example.com", "Alex")

        await service.increment_documents_analyzed("user-a")
        profile = await service.increment_documents_analyzed("user-a")

        assert profile.documents_analyzed == 2
        assert await service.increment_documents_analyzed("nobody") is None


class YieldingStore(InMemoryKeyValueStore):
    """Hands control back to the event loop on every read and write."""

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key, value):
        await asyncio.sleep(0)
        await super().set(key, value)


@pytest.mark.asyncio
async def test_edit_during_credit_keeps_both_changes():
    service = ProfileService(ProfileRepository(YieldingStore()))
    await service.create_profile("user-a", "a@example.com", "Alex")

    await asyncio.gather(
        service.increment_documents_analyzed("user-a"),
        service.update_profile("user-a", ProfileUpdate(name="New")),
        service.increment_documents_analyzed("user-a"),
    )

    profile = await service.get_profile("user-a")
    assert (profile.documents_analyzed, profile.name) == (2, "New")
