"""Staged analysis runner.

Walks a document through extracting -> classifying -> analyzing -> complete,
persisting status and progress after each stage so clients can poll it.
At completion it stores the analysis and credits the owner's profile.

Failures never propagate to the caller. A stage that keeps failing moves the
document to the ``error`` status instead of leaving it stuck mid-way.
"""

import asyncio
from typing import Optional, Sequence

from synapse_legal.core.exceptions import DependencyError
from synapse_legal.repositories.analysis_repository import AnalysisRepository
from synapse_legal.repositories.document_repository import DocumentRepository
from synapse_legal.repositories.profile_repository import ProfileRepository
from synapse_legal.schemas.documents import AnalysisStatus
from synapse_legal.services.analysis.producer import AnalysisProducer, MockAnalysisProducer
from synapse_legal.services.analysis.stages import ANALYSIS_STAGES, AnalysisStage, StepOutcome, StepResult
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)


class AnalysisStageRunner:
    """Runs the staged analysis of uploaded documents."""

    def __init__(
        self,
        documents: DocumentRepository,
        analyses: AnalysisRepository,
        profiles: ProfileRepository,
        producer: Optional[AnalysisProducer] = None,
        stages: Sequence[AnalysisStage] = ANALYSIS_STAGES,
        start_delay: float = 1.0,
        stage_delay: float = 2.0,
        max_concurrent: int = 10,
        max_step_retries: int = 2,
        retry_delay: float = 1.0,
    ):
        """Initialize the runner.

        Args:
            documents: Document repository
            analyses: Analysis repository
            profiles: Profile repository holding the analyzed-documents counter
            producer: Builds the final analysis; defaults to the fixed mock
            stages: Ordered stages, the last one terminal
            start_delay: Seconds between upload acceptance and the first stage
            stage_delay: Seconds before each stage
            max_concurrent: Upper bound on analyses running at once
            max_step_retries: Retries of a stage after a backend failure
            retry_delay: Seconds between retries
        """
        self.documents = documents
        self.analyses = analyses
        self.profiles = profiles
        self.producer = producer or MockAnalysisProducer()
        self.stages = tuple(stages)
        self.start_delay = start_delay
        self.stage_delay = stage_delay
        self.max_step_retries = max_step_retries
        self.retry_delay = retry_delay
        self._slots = asyncio.Semaphore(max_concurrent)
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        """Number of analyses currently holding a worker slot."""
        return self._in_flight

    async def run(self, document_id: str, user_id: str) -> Optional[AnalysisStatus]:
        """Run every stage for one document.

        Args:
            document_id: Document to analyze, already stored as ``pending``
            user_id: Owner whose profile counter is credited on completion

        Returns:
            ``complete`` or ``error``, or None if the document was deleted
            while the analysis ran
        """
        await asyncio.sleep(self.start_delay)

        async with self._slots:
            self._in_flight += 1
            try:
                return await self._run_stages(document_id, user_id)
            except Exception as e:
                LOGGER.error(
                    f"Unexpected error analyzing document {document_id}: {str(e)}",
                    exc_info=True,
                    extra={"document_id": document_id, "user_id": user_id},
                )
                await self._record_failure(document_id, None)
                return AnalysisStatus.ERROR
            finally:
                self._in_flight -= 1

    async def _run_stages(self, document_id: str, user_id: str) -> Optional[AnalysisStatus]:
        LOGGER.info(f"Starting analysis of document {document_id}", extra={"document_id": document_id})

        result = StepResult(StepOutcome.APPLIED)
        for stage in self.stages:
            await asyncio.sleep(self.stage_delay)

            result = await self._apply_with_retries(document_id, stage)
            if result.failed:
                LOGGER.error(
                    f"Stage {stage.status.value} failed for document {document_id}",
                    exc_info=result.error,
                    extra={"document_id": document_id, "stage": stage.status.value},
                )
                await self._record_failure(document_id, stage)
                return AnalysisStatus.ERROR

            if result.outcome is StepOutcome.SKIPPED:
                LOGGER.info(
                    f"Document {document_id} no longer exists, stage {stage.status.value} skipped",
                    extra={"document_id": document_id, "stage": stage.status.value},
                )
                continue

            LOGGER.info(
                stage.message,
                extra={"document_id": document_id, "stage": stage.status.value, "progress": stage.progress},
            )

        if result.outcome is StepOutcome.SKIPPED:
            return None

        await self._credit_owner(user_id, document_id)
        return AnalysisStatus.COMPLETE

    async def _apply_with_retries(self, document_id: str, stage: AnalysisStage) -> StepResult:
        attempt = 0
        while True:
            result = await self._apply_stage(document_id, stage)
            if result.outcome is not StepOutcome.RETRYABLE or attempt >= self.max_step_retries:
                return result

            attempt += 1
            LOGGER.warning(
                f"Retrying stage {stage.status.value} for document {document_id} "
                f"({attempt}/{self.max_step_retries}): {result.error}",
                extra={"document_id": document_id, "stage": stage.status.value},
            )
            await asyncio.sleep(self.retry_delay)

    async def _apply_stage(self, document_id: str, stage: AnalysisStage) -> StepResult:
        try:
            if stage.is_terminal:
                return await self._complete(document_id, stage)

            updated = await self.documents.update_progress(document_id, stage.status, stage.progress)
            if updated is None:
                return StepResult(StepOutcome.SKIPPED)
            return StepResult(StepOutcome.APPLIED)

        except DependencyError as e:
            return StepResult(StepOutcome.RETRYABLE, e)
        except Exception as e:
            return StepResult(StepOutcome.FATAL, e)

    async def _complete(self, document_id: str, stage: AnalysisStage) -> StepResult:
        document = await self.documents.get(document_id)
        if document is None:
            return StepResult(StepOutcome.SKIPPED)

        # Analysis first, so a client that sees "complete" always finds it
        analysis = await self.producer.produce(document)
        await self.analyses.save(analysis)

        updated = await self.documents.update_progress(document_id, stage.status, stage.progress)
        if updated is None:
            await self.analyses.delete(document_id)
            return StepResult(StepOutcome.SKIPPED)
        return StepResult(StepOutcome.APPLIED)

    async def _credit_owner(self, user_id: str, document_id: str) -> None:
        for attempt in range(self.max_step_retries + 1):
            try:
                await self.profiles.increment_documents_analyzed(user_id)
                return
            except DependencyError as e:
                if attempt < self.max_step_retries:
                    await asyncio.sleep(self.retry_delay)
                    continue
                LOGGER.error(
                    f"Could not credit analysis of {document_id} to user {user_id}",
                    exc_info=e,
                    extra={"document_id": document_id, "user_id": user_id},
                )
            except Exception as e:
                LOGGER.error(
                    f"Unexpected error crediting user {user_id}: {str(e)}",
                    exc_info=True,
                    extra={"document_id": document_id, "user_id": user_id},
                )
                return

    async def _record_failure(self, document_id: str, stage: Optional[AnalysisStage]) -> None:
        reason = f"Analysis failed during {stage.status.value}" if stage else "Analysis failed"
        try:
            await self.analyses.delete(document_id)
            await self.documents.mark_failed(document_id, reason)
        except Exception:
            LOGGER.error(
                f"Could not mark document {document_id} as failed",
                exc_info=True,
                extra={"document_id": document_id},
            )
