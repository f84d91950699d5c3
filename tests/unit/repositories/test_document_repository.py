"""Unit tests for the document, analysis and profile repositories."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from synapse_legal.core.exceptions import DependencyError
from synapse_legal.repositories.analysis_repository import AnalysisRepository
from synapse_legal.repositories.document_repository import DocumentRepository
from synapse_legal.repositories.kv_store import InMemoryKeyValueStore
from synapse_legal.repositories.profile_repository import ProfileRepository
from synapse_legal.schemas.documents import AnalysisStatus, DocumentRecord
from synapse_legal.schemas.profile import Profile
from synapse_legal.services.analysis.producer import MockAnalysisProducer


class IndexFailingStore(InMemoryKeyValueStore):
    """Rejects writes to the owner index."""

    async def set(self, key, value):
        if key.startswith("user_document:"):
            raise DependencyError("Key-value store set failed")
        await super().set(key, value)


class YieldingStore(InMemoryKeyValueStore):
    """Hands control back to the event loop on every read and write."""

    async def get(self, key):
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key, value):
        await asyncio.sleep(0)
        await super().set(key, value)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def documents(store) -> DocumentRepository:
    return DocumentRepository(store)


class TestDocumentRepository:
    @pytest.mark.asyncio
    async def test_create_writes_record_and_owner_index(self, documents, store):
        document = await documents.create("user-a", "nda.pdf", "user-a/1_nda.pdf", "application/pdf", 42)

        assert document.analysis_status is AnalysisStatus.PENDING
        assert document.analysis_progress == 0
        assert store.keys() == [f"document:{document.id}", f"user_document:user-a:{document.id}"]
        assert await documents.get(document.id) == document

    @pytest.mark.asyncio
    async def test_failed_index_write_removes_record(self):
        store = IndexFailingStore()
        documents = DocumentRepository(store)

        with pytest.raises(DependencyError):
            await documents.create("user-a", "nda.pdf", "user-a/1_nda.pdf", "application/pdf", 42)

        assert store.keys() == []
        assert await documents.scan_by_owner("user-a") == []

    @pytest.mark.asyncio
    async def test_create_assigns_unique_ids(self, documents):
        first = await documents.create("user-a", "a.pdf", "p/a", "application/pdf", 1)
        second = await documents.create("user-a", "a.pdf", "p/a", "application/pdf", 1)

        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_list_by_owner_isolates_users_and_sorts_newest_first(self, documents, store):
        now = datetime.now(timezone.utc)
        old = await documents.create("user-a", "old.pdf", "p/old", "application/pdf", 1)
        new = await documents.create("user-a", "new.pdf", "p/new", "application/pdf", 1)
        await documents.create("user-b", "theirs.pdf", "p/theirs", "application/pdf", 1)

        old.uploaded_at = now - timedelta(days=1)
        new.uploaded_at = now
        await documents.put(old.id, old)
        await documents.put(new.id, new)

        listed = await documents.list_by_owner("user-a")
        assert [doc.id for doc in listed] == [new.id, old.id]
        assert await documents.scan_by_owner("user-a") == listed
        assert await documents.list_by_owner("nobody") == []

    @pytest.mark.asyncio
    async def test_list_by_owner_ignores_foreign_index_entries(self, documents, store):
        theirs = await documents.create("user-b", "theirs.pdf", "p/theirs", "application/pdf", 1)
        await store.set(
            f"user_document:user-a:{theirs.id}",
            {"document_id": theirs.id, "uploaded_at": theirs.uploaded_at.isoformat()},
        )

        assert await documents.list_by_owner("user-a") == []

    @pytest.mark.asyncio
    async def test_update_progress_keeps_other_fields(self, documents):
        document = await documents.create("user-a", "nda.pdf", "user-a/1_nda.pdf", "application/pdf", 42)

        updated = await documents.update_progress(document.id, AnalysisStatus.EXTRACTING, 25)

        assert updated.analysis_status is AnalysisStatus.EXTRACTING
        assert updated.analysis_progress == 25
        assert updated.model_dump(exclude={"analysis_status", "analysis_progress"}) == document.model_dump(
            exclude={"analysis_status", "analysis_progress"}
        )

    @pytest.mark.asyncio
    async def test_update_progress_never_goes_backwards(self, documents):
        document = await documents.create("user-a", "nda.pdf", "p", "application/pdf", 1)
        await documents.update_progress(document.id, AnalysisStatus.ANALYZING, 75)

        result = await documents.update_progress(document.id, AnalysisStatus.EXTRACTING, 25)

        assert result.analysis_status is AnalysisStatus.ANALYZING
        assert (await documents.get(document.id)).analysis_progress == 75

    @pytest.mark.asyncio
    async def test_update_progress_of_missing_document(self, documents, store):
        assert await documents.update_progress("gone", AnalysisStatus.EXTRACTING, 25) is None
        assert store.keys() == []

    @pytest.mark.asyncio
    async def test_mark_failed(self, documents):
        document = await documents.create("user-a", "nda.pdf", "p", "application/pdf", 1)
        await documents.update_progress(document.id, AnalysisStatus.CLASSIFYING, 50)

        failed = await documents.mark_failed(document.id, "Analysis failed during analyzing")

        assert failed.analysis_status is AnalysisStatus.ERROR
        assert failed.analysis_progress == 50
        assert failed.analysis_error == "Analysis failed during analyzing"
        assert await documents.mark_failed("gone", "x") is None


class TestAnalysisRepository:
    @pytest.mark.asyncio
    async def test_save_get_delete(self, store):
        analyses = AnalysisRepository(store)
        document = DocumentRecord(
            id="doc-1", user_id="u", name="n", file_path="p", file_type="application/pdf", file_size=1
        )
        analysis = await MockAnalysisProducer().produce(document)

        await analyses.save(analysis)
        assert store.keys() == ["analysis:doc-1"]
        assert await analyses.get("doc-1") == analysis

        await analyses.delete("doc-1")
        assert await analyses.get("doc-1") is None


class TestProfileRepository:
    @pytest.mark.asyncio
    async def test_increment_without_profile_writes_nothing(self, store):
        profiles = ProfileRepository(store)

        assert await profiles.increment_documents_analyzed("user-a") is None
        assert store.keys() == []

    @pytest.mark.asyncio
    async def test_concurrent_increments_are_not_lost(self, store):
        profiles = ProfileRepository(store)
        await profiles.save(Profile(id="user-a", email="a@example.com"))

        await asyncio.gather(*(profiles.increment_documents_analyzed("user-a") for _ in range(10)))

        assert (await profiles.get("user-a")).documents_analyzed == 10

    @pytest.mark.asyncio
    async def test_user_locks_are_released_after_use(self):
        profiles = ProfileRepository(YieldingStore())
        await profiles.save(Profile(id="user-a", email="a@example.com"))
        await profiles.save(Profile(id="user-b", email="b@example.com"))

        await asyncio.gather(
            *(profiles.increment_documents_analyzed("user-a") for _ in range(5)),
            profiles.update_fields("user-b", {"name": "Bea"}),
            profiles.increment_documents_analyzed("nobody"),
        )

        assert (await profiles.get("user-a")).documents_analyzed == 5
        assert (await profiles.get("user-b")).name == "Bea"
        assert profiles._locks == {}
        assert profiles._lock_users == {}
