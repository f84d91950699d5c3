"""Analysis producers.

The pipeline asks a producer for the finished analysis once the last stage
is reached. ``MockAnalysisProducer`` returns the same findings for every
document; a real model-backed producer plugs in through the same protocol.
"""

from datetime import datetime, timezone
from typing import Protocol

from synapse_legal.schemas.documents import AnalysisResult, ClauseFinding, DocumentRecord


class AnalysisProducer(Protocol):
    async def produce(self, document: DocumentRecord) -> AnalysisResult:
        ...


class MockAnalysisProducer:
    """Returns a fixed three-clause contract review."""

    async def produce(self, document: DocumentRecord) -> AnalysisResult:
        return AnalysisResult(
            document_id=document.id,
            clauses=[
                ClauseFinding(
                    id="1",
                    type="liability",
                    text=(
                        "The Company shall not be liable for any indirect, incidental, special, "
                        "consequential, or punitive damages..."
                    ),
                    risk_score=7,
                    explanation=(
                        "High risk - Very broad liability limitation that may not be enforceable "
                        "in all jurisdictions."
                    ),
                    suggestions=[
                        "Consider mutual liability limitations",
                        "Add carve-outs for gross negligence",
                    ],
                ),
                ClauseFinding(
                    id="2",
                    type="termination",
                    text="Either party may terminate this agreement with thirty (30) days written notice...",
                    risk_score=4,
                    explanation="Medium risk - Standard termination clause but lacks specific breach triggers.",
                    suggestions=[
                        "Add termination for cause provisions",
                        "Specify cure periods",
                    ],
                ),
                ClauseFinding(
                    id="3",
                    type="confidentiality",
                    text="Each party agrees to maintain in confidence all Confidential Information...",
                    risk_score=2,
                    explanation="Low risk - Well-structured confidentiality provision with proper definitions.",
                    suggestions=["Consider adding return of materials clause"],
                ),
            ],
            summary=(
                "This contract contains standard commercial terms with some areas requiring attention. "
                "The liability limitation clause is particularly broad and may need revision."
            ),
            overall_risk_score=4.3,
            missing_clauses=["Force Majeure", "Dispute Resolution", "Governing Law"],
            compliance_score=78,
            analyzed_at=datetime.now(timezone.utc),
        )
