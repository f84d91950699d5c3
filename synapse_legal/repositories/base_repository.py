from typing import Generic, Optional, Type, TypeVar

from pydantic import BaseModel

from synapse_legal.repositories.kv_store import KeyValueStore
from synapse_legal.utils.logging import get_logger

# Pydantic record type managed by a repository
RecordType = TypeVar("RecordType", bound=BaseModel)

LOGGER = get_logger(__name__)


class BaseRepository(Generic[RecordType]):
    """Base repository for records kept under one key-value namespace.

    Subclasses set the namespace; keys are ``{namespace}:{record_id}``.
    """

    namespace: str = ""

    def __init__(self, store: KeyValueStore, model: Type[RecordType]):
        """Initialize the repository.

        Args:
            store: Key-value store holding the records
            model: The pydantic model this repository manages
        """
        self.store = store
        self.model = model
        self.logger = LOGGER

    def key(self, record_id: str) -> str:
        return f"{self.namespace}:{record_id}"

    async def get_by_id(self, record_id: str) -> Optional[RecordType]:
        """Get a record by its ID.

        Args:
            record_id: Identifier within the namespace

        Returns:
            The record if found, None otherwise
        """
        data = await self.store.get(self.key(record_id))
        return self.model.model_validate(data) if data is not None else None

    async def put(self, record_id: str, record: RecordType) -> RecordType:
        """Insert or overwrite a record."""
        await self.store.set(self.key(record_id), record.model_dump(mode="json"))
        return record

    async def delete(self, record_id: str) -> None:
        await self.store.delete(self.key(record_id))
