from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from synapse_legal.repositories.base_repository import BaseRepository
from synapse_legal.repositories.kv_store import KeyValueStore
from synapse_legal.schemas.documents import AnalysisStatus, DocumentRecord, OwnerIndexEntry
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)

OWNER_INDEX_NAMESPACE = "user_document"


class DocumentRepository(BaseRepository[DocumentRecord]):
    """Repository for managing Document records.

    Besides ``document:{id}`` it writes one ``user_document:{owner}:{id}``
    pointer per document, so listing a user's documents reads only that
    user's keys instead of scanning every document.
    """

    namespace = "document"

    def __init__(self, store: KeyValueStore):
        """Initialize document repository.

        Args:
            store: Key-value store holding the records
        """
        super().__init__(store, DocumentRecord)

    def owner_index_prefix(self, owner_id: str) -> str:
        return f"{OWNER_INDEX_NAMESPACE}:{owner_id}:"

    async def create(
        self,
        owner_id: str,
        name: str,
        storage_path: str,
        mime_type: str,
        size: int,
    ) -> DocumentRecord:
        """Create a new document record with status ``pending`` and progress 0.

        Args:
            owner_id: ID of the user owning the document
            name: Display name
            storage_path: Object path inside the storage bucket
            mime_type: Declared MIME type of the upload
            size: Size in bytes

        Returns:
            Created DocumentRecord
        """
        document = DocumentRecord(
            id=str(uuid4()),
            user_id=owner_id,
            name=name,
            file_path=storage_path,
            file_type=mime_type,
            file_size=size,
            uploaded_at=datetime.now(timezone.utc),
            analysis_status=AnalysisStatus.PENDING,
            analysis_progress=0,
        )
        await self.put(document.id, document)

        index_entry = OwnerIndexEntry(document_id=document.id, uploaded_at=document.uploaded_at)
        try:
            await self.store.set(
                f"{self.owner_index_prefix(owner_id)}{document.id}",
                index_entry.model_dump(mode="json"),
            )
        except Exception:
            # An unindexed record would never be listed or analysed
            LOGGER.error(
                f"Owner index write failed, removing document {document.id}",
                extra={"document_id": document.id, "user_id": owner_id},
            )
            await self.delete(document.id)
            raise

        LOGGER.info(
            f"Created document {document.id}",
            extra={"document_id": document.id, "user_id": owner_id},
        )
        return document

    async def get(self, document_id: str) -> Optional[DocumentRecord]:
        return await self.get_by_id(document_id)

    async def list_by_owner(self, owner_id: str) -> List[DocumentRecord]:
        """List a user's documents, newest upload first.

        Args:
            owner_id: ID of the owning user

        Returns:
            Documents owned by ``owner_id``
        """
        entries = await self.store.get_by_prefix(self.owner_index_prefix(owner_id))
        keys = [self.key(OwnerIndexEntry.model_validate(entry).document_id) for entry in entries]
        documents = [DocumentRecord.model_validate(data) for data in await self.store.get_many(keys)]
        # The index entry is only a pointer; ownership is checked on the record itself
        return self._newest_first([doc for doc in documents if doc.user_id == owner_id])

    async def scan_by_owner(self, owner_id: str) -> List[DocumentRecord]:
        """List a user's documents by scanning every document record.

        Reads the whole ``document:`` namespace; kept for records written
        without an owner index entry.
        """
        documents = [
            DocumentRecord.model_validate(data)
            for data in await self.store.get_by_prefix(f"{self.namespace}:")
        ]
        return self._newest_first([doc for doc in documents if doc.user_id == owner_id])

    async def update_progress(
        self,
        document_id: str,
        status: AnalysisStatus,
        progress: int,
    ) -> Optional[DocumentRecord]:
        """Re-read a document and overwrite its analysis status and progress.

        Only the two analysis fields change; everything else keeps the
        freshly read value. Progress never goes backwards.

        Args:
            document_id: Document ID
            status: New analysis status
            progress: New progress percentage

        Returns:
            The updated document, or None if it no longer exists
        """
        document = await self.get(document_id)
        if document is None:
            return None

        if progress < document.analysis_progress:
            LOGGER.warning(
                f"Ignoring progress regression for document {document_id}: "
                f"{document.analysis_progress} -> {progress}",
                extra={"document_id": document_id, "stage": status.value},
            )
            return document

        document.analysis_status = status
        document.analysis_progress = progress
        return await self.put(document.id, document)

    async def mark_failed(self, document_id: str, reason: str) -> Optional[DocumentRecord]:
        """Move a document to the ``error`` status, keeping its progress."""
        document = await self.get(document_id)
        if document is None:
            return None

        document.analysis_status = AnalysisStatus.ERROR
        document.analysis_error = reason
        return await self.put(document.id, document)

    @staticmethod
    def _newest_first(documents: List[DocumentRecord]) -> List[DocumentRecord]:
        return sorted(documents, key=lambda doc: doc.uploaded_at, reverse=True)
