"""Namespaced key-value store.

Documents, analyses and profiles are JSON records under prefixed keys
(``document:{id}``, ``analysis:{id}``, ``user_profile:{id}``). The rest of the
application talks to the abstract ``KeyValueStore``; ``SqlKeyValueStore`` is
the production backend and ``InMemoryKeyValueStore`` serves local runs and
tests.
"""

import copy
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from synapse_legal.core.exceptions import DependencyError
from synapse_legal.database.models import KeyValueEntry
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)

Record = Dict[str, Any]


class KeyValueStore(ABC):
    """Abstract key-value store interface."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Record]:
        """Return the record stored under ``key`` or None."""

    @abstractmethod
    async def get_many(self, keys: Iterable[str]) -> List[Record]:
        """Return the records for ``keys`` in the given order, skipping missing ones."""

    @abstractmethod
    async def set(self, key: str, value: Record) -> None:
        """Insert or overwrite the record under ``key``."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""

    @abstractmethod
    async def get_by_prefix(self, prefix: str) -> List[Record]:
        """Return every record whose key starts with ``prefix``."""

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "backend": self.__class__.__name__}


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store; records are copied in and out so callers can't alias them."""

    def __init__(self, initial: Optional[Dict[str, Record]] = None):
        self._data: Dict[str, Record] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Optional[Record]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def get_many(self, keys: Iterable[str]) -> List[Record]:
        return [copy.deepcopy(self._data[key]) for key in keys if key in self._data]

    async def set(self, key: str, value: Record) -> None:
        self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def get_by_prefix(self, prefix: str) -> List[Record]:
        return [
            copy.deepcopy(value)
            for key, value in sorted(self._data.items())
            if key.startswith(prefix)
        ]

    def keys(self) -> List[str]:
        return sorted(self._data)


class SqlKeyValueStore(KeyValueStore):
    """Key-value store backed by the ``kv_store`` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        """Initialize the store.

        Args:
            session_maker: Factory producing async sessions bound to the engine
        """
        self.session_maker = session_maker

    async def get(self, key: str) -> Optional[Record]:
        try:
            async with self.session_maker() as session:
                return await session.scalar(
                    select(KeyValueEntry.value).where(KeyValueEntry.key == key)
                )
        except SQLAlchemyError as e:
            raise self._dependency_error("get", key, e)

    async def get_many(self, keys: Iterable[str]) -> List[Record]:
        keys = list(keys)
        if not keys:
            return []
        try:
            async with self.session_maker() as session:
                result = await session.execute(
                    select(KeyValueEntry.key, KeyValueEntry.value).where(KeyValueEntry.key.in_(keys))
                )
                found = {row.key: row.value for row in result}
        except SQLAlchemyError as e:
            raise self._dependency_error("get_many", ",".join(keys), e)
        return [found[key] for key in keys if key in found]

    async def set(self, key: str, value: Record) -> None:
        try:
            async with self.session_maker() as session:
                await session.merge(KeyValueEntry(key=key, value=value))
                await session.commit()
        except SQLAlchemyError as e:
            raise self._dependency_error("set", key, e)

    async def delete(self, key: str) -> None:
        try:
            async with self.session_maker() as session:
                await session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
                await session.commit()
        except SQLAlchemyError as e:
            raise self._dependency_error("delete", key, e)

    async def get_by_prefix(self, prefix: str) -> List[Record]:
        try:
            async with self.session_maker() as session:
                result = await session.scalars(
                    select(KeyValueEntry.value)
                    .where(KeyValueEntry.key.startswith(prefix, autoescape=True))
                    .order_by(KeyValueEntry.key)
                )
                return list(result.all())
        except SQLAlchemyError as e:
            raise self._dependency_error("get_by_prefix", prefix, e)

    async def health_check(self) -> Dict[str, Any]:
        try:
            async with self.session_maker() as session:
                await session.execute(select(KeyValueEntry.key).limit(1))
        except SQLAlchemyError as e:
            LOGGER.error("Key-value store health check failed", extra={"error": str(e)})
            return {"status": "unhealthy", "backend": self.__class__.__name__, "error": str(e)}
        return {"status": "healthy", "backend": self.__class__.__name__}

    def _dependency_error(self, operation: str, key: str, error: SQLAlchemyError) -> DependencyError:
        LOGGER.error(
            f"Key-value {operation} failed for {key}: {str(error)}",
            exc_info=True,
            extra={"operation": operation, "key": key},
        )
        return DependencyError(f"Key-value store {operation} failed", original_error=error)
