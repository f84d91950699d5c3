"""Repository for user profiles."""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Mapping, Optional

from synapse_legal.repositories.base_repository import BaseRepository
from synapse_legal.repositories.kv_store import KeyValueStore
from synapse_legal.schemas.profile import Profile
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ProfileRepository(BaseRepository[Profile]):
    """Repository for Profile records under ``user_profile:{user_id}``.

    Every read-modify-write of a profile runs under a per-user lock, so a
    profile edit and a counter increment never overwrite each other within
    this process.
    """

    namespace = "user_profile"

    def __init__(self, store: KeyValueStore):
        super().__init__(store, Profile)
        self._locks: Dict[str, asyncio.Lock] = {}
        # Holders plus waiters per user; the lock is dropped when this hits zero
        self._lock_users: Dict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._lock_users[user_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[user_id] -= 1
            if not self._lock_users[user_id]:
                del self._lock_users[user_id]
                del self._locks[user_id]

    async def get(self, user_id: str) -> Optional[Profile]:
        return await self.get_by_id(user_id)

    async def save(self, profile: Profile) -> Profile:
        return await self.put(profile.id, profile)

    async def update_fields(self, user_id: str, changes: Mapping[str, Any]) -> Optional[Profile]:
        """Re-read the profile and apply ``changes`` to it.

        Args:
            user_id: Owner of the profile
            changes: Field values to overwrite

        Returns:
            The updated profile, or None when the user has no profile
        """
        async with self._user_lock(user_id):
            profile = await self.get(user_id)
            if profile is None:
                return None

            updated = profile.model_copy(update={**changes, "updated_at": datetime.now(timezone.utc)})
            return await self.save(updated)

    async def increment_documents_analyzed(self, user_id: str) -> Optional[Profile]:
        """Add one to the user's analyzed-documents counter.

        Args:
            user_id: Owner of the profile

        Returns:
            The updated profile, or None when the user has no profile
        """
        async with self._user_lock(user_id):
            profile = await self.get(user_id)
            if profile is None:
                LOGGER.info(
                    f"No profile for user {user_id}, counter not incremented",
                    extra={"user_id": user_id},
                )
                return None

            profile.documents_analyzed += 1
            return await self.save(profile)
