"""Stage definitions and step results of the analysis pipeline."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from synapse_legal.schemas.documents import AnalysisStatus


@dataclass(frozen=True)
class AnalysisStage:
    """One step of the pipeline: the status and progress it publishes."""

    status: AnalysisStatus
    progress: int
    message: str

    @property
    def is_terminal(self) -> bool:
        return self.status is AnalysisStatus.COMPLETE


ANALYSIS_STAGES: Tuple[AnalysisStage, ...] = (
    AnalysisStage(AnalysisStatus.EXTRACTING, 25, "Extracting clauses from document..."),
    AnalysisStage(AnalysisStatus.CLASSIFYING, 50, "Classifying clause types..."),
    AnalysisStage(AnalysisStatus.ANALYZING, 75, "Analyzing risk factors..."),
    AnalysisStage(AnalysisStatus.COMPLETE, 100, "Analysis complete"),
)


class StepOutcome(Enum):
    APPLIED = "applied"
    # Document deleted concurrently; the step is a no-op
    SKIPPED = "skipped"
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass
class StepResult:
    """Result of applying one stage to one document."""

    outcome: StepOutcome
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.outcome in (StepOutcome.RETRYABLE, StepOutcome.FATAL)
