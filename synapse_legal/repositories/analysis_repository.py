from typing import Optional

from synapse_legal.repositories.base_repository import BaseRepository
from synapse_legal.repositories.kv_store import KeyValueStore
from synapse_legal.schemas.documents import AnalysisResult


class AnalysisRepository(BaseRepository[AnalysisResult]):
    """Repository for analysis results, keyed by document id."""

    namespace = "analysis"

    def __init__(self, store: KeyValueStore):
        super().__init__(store, AnalysisResult)

    async def get(self, document_id: str) -> Optional[AnalysisResult]:
        return await self.get_by_id(document_id)

    async def save(self, analysis: AnalysisResult) -> AnalysisResult:
        return await self.put(analysis.document_id, analysis)
