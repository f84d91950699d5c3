"""Document service for upload and retrieval operations.

Handles upload validation, storage of the raw bytes, the document record,
and ownership-checked reads of documents, analyses and signed file URLs.
Scheduling the analysis is left to the caller.
"""

import re
import time
from typing import List, Optional

from synapse_legal.core.exceptions import DependencyError, NotFoundError, ValidationError
from synapse_legal.repositories.analysis_repository import AnalysisRepository
from synapse_legal.repositories.document_repository import DocumentRepository
from synapse_legal.schemas.documents import AnalysisResult, AnalysisStatus, DocumentRecord
from synapse_legal.services.storage_service import StorageService
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)

ALLOWED_MIME_TYPES = (
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_filename(filename: str) -> str:
    """Replace every character outside ``[a-zA-Z0-9.-]`` with ``_``."""
    return _UNSAFE_CHARS.sub("_", filename)


def build_storage_path(owner_id: str, filename: str, timestamp_ms: Optional[int] = None) -> str:
    """Object path ``{owner}/{epoch_ms}_{sanitized name}`` inside the bucket."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{owner_id}/{timestamp_ms}_{sanitize_filename(filename)}"


class DocumentService:
    """Service for document management operations."""

    def __init__(
        self,
        documents: DocumentRepository,
        analyses: AnalysisRepository,
        storage: StorageService,
        bucket: str,
        max_upload_bytes: int,
        signed_url_expiry_seconds: int = 3600,
    ):
        """Initialize document service.

        Args:
            documents: Document repository
            analyses: Analysis repository
            storage: Object storage client
            bucket: Bucket holding uploaded files
            max_upload_bytes: Largest accepted upload
            signed_url_expiry_seconds: Lifetime of download URLs
        """
        self.documents = documents
        self.analyses = analyses
        self.storage = storage
        self.bucket = bucket
        self.max_upload_bytes = max_upload_bytes
        self.signed_url_expiry_seconds = signed_url_expiry_seconds

    def validate_upload(self, filename: Optional[str], content_type: Optional[str], size: int) -> None:
        """Reject uploads the service does not accept.

        Raises:
            ValidationError: On a missing file, an unsupported MIME type, or
                a file that is too large
        """
        if not filename:
            raise ValidationError("No file provided")
        if content_type not in ALLOWED_MIME_TYPES:
            raise ValidationError("Invalid file type. Only PDF and Word documents are allowed.")
        if size > self.max_upload_bytes:
            raise ValidationError(
                f"File too large. Maximum size is {self.max_upload_bytes // (1024 * 1024)}MB."
            )

    async def upload_document(
        self,
        owner_id: str,
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
        display_name: Optional[str] = None,
    ) -> DocumentRecord:
        """Store an uploaded file and create its ``pending`` document record.

        Args:
            owner_id: Uploading user
            filename: Original file name
            content_type: Declared MIME type
            content: Raw file bytes
            display_name: Optional name shown instead of ``filename``

        Returns:
            The created document

        Raises:
            ValidationError: If the upload is rejected
            DependencyError: If storage or persistence fails
        """
        self.validate_upload(filename, content_type, len(content))

        storage_path = build_storage_path(owner_id, filename)
        await self.storage.upload_file(self.bucket, storage_path, content, content_type)

        LOGGER.info(
            f"File uploaded to storage: filename={filename}, path={storage_path}",
            extra={"user_id": owner_id, "size": len(content)},
        )

        try:
            return await self.documents.create(
                owner_id=owner_id,
                name=(display_name or "").strip() or filename,
                storage_path=storage_path,
                mime_type=content_type,
                size=len(content),
            )
        except Exception:
            await self._discard_upload(storage_path, owner_id)
            raise

    async def _discard_upload(self, storage_path: str, owner_id: str) -> None:
        """Remove a stored object whose document record could not be written."""
        try:
            await self.storage.delete_file(self.bucket, storage_path)
        except DependencyError as e:
            LOGGER.error(
                f"Failed to remove orphaned upload {storage_path}: {e}",
                exc_info=True,
                extra={"user_id": owner_id},
            )

    async def list_documents(self, owner_id: str) -> List[DocumentRecord]:
        return await self.documents.list_by_owner(owner_id)

    async def get_owned_document(self, owner_id: str, document_id: str) -> DocumentRecord:
        """Fetch a document owned by ``owner_id``.

        Another user's document is reported exactly like a missing one.

        Raises:
            NotFoundError: If absent or not owned by the caller
        """
        document = await self.documents.get(document_id)
        if document is None or document.user_id != owner_id:
            raise NotFoundError(f"Document with ID {document_id} not found")
        return document

    async def get_analysis(self, owner_id: str, document_id: str) -> Optional[AnalysisResult]:
        """Return the analysis of an owned document, or None until it is complete."""
        document = await self.get_owned_document(owner_id, document_id)
        if document.analysis_status is not AnalysisStatus.COMPLETE:
            return None
        return await self.analyses.get(document_id)

    async def get_file_url(self, owner_id: str, document_id: str) -> str:
        """Signed download URL for an owned document's file."""
        document = await self.get_owned_document(owner_id, document_id)
        return await self.storage.get_signed_url(
            self.bucket, document.file_path, expires_in=self.signed_url_expiry_seconds
        )
