"""Unit tests for upload validation and storage paths."""

from unittest.mock import AsyncMock

import pytest

from synapse_legal.core.exceptions import DependencyError, NotFoundError, ValidationError
from synapse_legal.repositories.analysis_repository import AnalysisRepository
from synapse_legal.repositories.document_repository import DocumentRepository
from synapse_legal.repositories.kv_store import InMemoryKeyValueStore
from synapse_legal.services.document_service import (
    ALLOWED_MIME_TYPES,
    DocumentService,
    build_storage_path,
    sanitize_filename,
)
from synapse_legal.services.storage_service import StorageService


@pytest.fixture
def storage() -> AsyncMock:
    storage = AsyncMock(spec=StorageService)
    storage.upload_file.return_value = {}
    return storage


@pytest.fixture
def service(storage) -> DocumentService:
    store = InMemoryKeyValueStore()
    return DocumentService(
        documents=DocumentRepository(store),
        analyses=AnalysisRepository(store),
        storage=storage,
        bucket="legal-documents",
        max_upload_bytes=1024,
    )


def test_sanitize_filename():
    assert sanitize_filename("Master Agreement (final) ü.pdf") == "Master_Agreement__final___.pdf"
    assert sanitize_filename("nda-v2.docx") == "nda-v2.docx"


def test_build_storage_path_keeps_single_extension():
    assert build_storage_path("user-a", "my nda.pdf", timestamp_ms=1700000000000) == (
        "user-a/1700000000000_my_nda.pdf"
    )


@pytest.mark.parametrize("mime_type", ALLOWED_MIME_TYPES)
def test_allowed_types_pass_validation(service, mime_type):
    service.validate_upload("contract", mime_type, 10)


@pytest.mark.parametrize(
    "filename, mime_type, size",
    [
        (None, "application/pdf", 10),
        ("", "application/pdf", 10),
        ("notes.txt", "text/plain", 10),
        ("image.png", "image/png", 10),
        ("contract.pdf", None, 10),
        ("contract.pdf", "application/pdf", 1025),
    ],
)
def test_invalid_uploads_are_rejected(service, filename, mime_type, size):
    with pytest.raises(ValidationError):
        service.validate_upload(filename, mime_type, size)


@pytest.mark.asyncio
async def test_upload_document(service, storage):
    document = await service.upload_document("user-a", "nda.pdf", "application/pdf", b"%PDF-1.4")

    storage.upload_file.assert_awaited_once()
    assert document.name == "nda.pdf"
    assert document.file_path.startswith("user-a/")
    assert document.file_path.endswith("_nda.pdf")
    assert await service.list_documents("user-a") == [document]


@pytest.mark.asyncio
async def test_rejected_upload_stores_nothing(service, storage):
    with pytest.raises(ValidationError):
        await service.upload_document("user-a", "notes.txt", "text/plain", b"hello")

    storage.upload_file.assert_not_called()
    assert await service.list_documents("user-a") == []


@pytest.mark.asyncio
async def test_foreign_document_is_not_found(service):
    document = await service.upload_document("user-a", "nda.pdf", "application/pdf", b"%PDF-1.4")

    with pytest.raises(NotFoundError):
        await service.get_owned_document("user-b", document.id)
    with pytest.raises(NotFoundError):
        await service.get_analysis("user-b", document.id)
    assert await service.get_analysis("user-a", document.id) is None


class IndexFailingStore(InMemoryKeyValueStore):
    async def set(self, key, value):
        if key.startswith("user_document:"):
            raise DependencyError("Key-value store set failed")
        await super().set(key, value)


@pytest.mark.asyncio
async def test_failed_record_write_discards_stored_file(storage):
    store = IndexFailingStore()
    service = DocumentService(
        documents=DocumentRepository(store),
        analyses=AnalysisRepository(store),
        storage=storage,
        bucket="legal-documents",
        max_upload_bytes=1024,
    )

    with pytest.raises(DependencyError):
        await service.upload_document("user-a", "nda.pdf", "application/pdf", b"%PDF-1.4")

    _, stored_path, _, _ = storage.upload_file.call_args.args
    storage.delete_file.assert_awaited_once_with("legal-documents", stored_path)
    assert store.keys() == []


@pytest.mark.asyncio
async def test_failed_cleanup_keeps_original_error(storage):
    storage.delete_file.side_effect = DependencyError("Storage delete failed with status 500")
    store = IndexFailingStore()
    service = DocumentService(
        documents=DocumentRepository(store),
        analyses=AnalysisRepository(store),
        storage=storage,
        bucket="legal-documents",
        max_upload_bytes=1024,
    )

    with pytest.raises(DependencyError, match="Key-value store set failed"):
        await service.upload_document("user-a", "nda.pdf", "application/pdf", b"%PDF-1.4")
