"""Staged document analysis."""

from synapse_legal.services.analysis.producer import AnalysisProducer, MockAnalysisProducer
from synapse_legal.services.analysis.runner import AnalysisStageRunner
from synapse_legal.services.analysis.stages import ANALYSIS_STAGES, AnalysisStage, StepOutcome, StepResult

__all__ = [
    "ANALYSIS_STAGES",
    "AnalysisProducer",
    "AnalysisStage",
    "AnalysisStageRunner",
    "MockAnalysisProducer",
    "StepOutcome",
    "StepResult",
]
