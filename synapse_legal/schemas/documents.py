"""Document and analysis records.

Records are persisted in the key-value store as ``model_dump(mode="json")``
and read back with ``model_validate``.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class AnalysisStatus(str, Enum):
    """Lifecycle of a document's simulated analysis."""

    PENDING = "pending"
    EXTRACTING = "extracting"
    CLASSIFYING = "classifying"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"


class DocumentRecord(BaseModel):
    """Metadata of an uploaded document."""

    id: str
    user_id: str
    name: str
    file_path: str
    file_type: str
    file_size: int = Field(..., ge=0)
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    analysis_status: AnalysisStatus = AnalysisStatus.PENDING
    analysis_progress: int = Field(default=0, ge=0, le=100)
    analysis_error: Optional[str] = None


class ClauseFinding(BaseModel):
    """One detected clause and its risk assessment."""

    id: str
    type: str = Field(..., description="Clause category tag")
    text: str = Field(..., description="Source excerpt")
    risk_score: int = Field(..., ge=0, le=10)
    explanation: str
    suggestions: List[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Completed analysis of a document, keyed by the document id."""

    document_id: str
    clauses: List[ClauseFinding]
    summary: str
    overall_risk_score: float = Field(..., ge=0, le=10)
    missing_clauses: List[str] = Field(default_factory=list)
    compliance_score: int = Field(..., ge=0, le=100)
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class OwnerIndexEntry(BaseModel):
    """Owner to document pointer used to list a user's documents."""

    document_id: str
    uploaded_at: datetime
