"""Repository layer modules."""

from synapse_legal.repositories.analysis_repository import AnalysisRepository
from synapse_legal.repositories.document_repository import DocumentRepository
from synapse_legal.repositories.kv_store import InMemoryKeyValueStore, KeyValueStore, SqlKeyValueStore
from synapse_legal.repositories.profile_repository import ProfileRepository

__all__ = [
    "AnalysisRepository",
    "DocumentRepository",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "ProfileRepository",
    "SqlKeyValueStore",
]
