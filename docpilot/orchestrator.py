"""
Document Analysis Orchestrator - concurrent multi-agent pipeline coordinator.

Runs the five analysis tasks for one request:
    Segmentation -> [Risk | Key Numbers | Clauses | FAQ | Missing Clauses]

Key Features:
- Request validation and segmentation before any task is dispatched
- Launch-all, await-all fan-out; every task settles before aggregation
- Per-task isolation: an unexpected error becomes that task's Failed outcome
- Clause explanation is critical; its failure rejects the whole request
- Execution traces per task for diagnosis
"""

import asyncio
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, List, Optional, Tuple

from loguru import logger

from docpilot.agents import (
    AgentRun,
    ClauseExplanationAgent,
    DocumentTypeAgent,
    FaqAgent,
    KeyNumbersAgent,
    MissingClausesAgent,
    RiskAssessmentAgent,
    RoleSuggestionAgent,
)
from docpilot.error_handling import (
    CriticalTaskError,
    InvalidRequestError,
    NoAnalyzableContentError,
    classify_error,
    log_classified_failure,
)
from docpilot.generation import GenerationClient
from docpilot.logging_config import get_task_logger
from docpilot.models import (
    SUPPORTED_LANGUAGES,
    AnalysisRequest,
    AnalysisResult,
    Degraded,
    DocumentMetadata,
    Failed,
    Success,
    TaskTrace,
)
from docpilot.settings import GenerationSettings, load_settings
from docpilot.task_runner import ResilientTaskRunner
from tools.fallback_classifier import UNCLASSIFIED_CATEGORY, UNCLASSIFIED_CONFIDENCE
from tools.output_validator import OutputValidator
from tools.text_segmenter import TextSegmenter


CRITICAL_TASK = "clauses"


def _status_of(outcome: Any) -> str:
    if isinstance(outcome, Success):
        return "success"
    if isinstance(outcome, Degraded):
        return "degraded"
    return "failed"


class DocumentAnalysisOrchestrator:
    """
    Coordinates the concurrent document analysis pipeline.

    Agents never share mutable state; each one owns its output slot in the
    AnalysisResult, so no locking is required.
    """

    def __init__(
        self,
        runner: ResilientTaskRunner,
        segmenter: Optional[TextSegmenter] = None,
        validator: Optional[OutputValidator] = None,
        risk_agent: Optional[RiskAssessmentAgent] = None,
        key_numbers_agent: Optional[KeyNumbersAgent] = None,
        clause_agent: Optional[ClauseExplanationAgent] = None,
        faq_agent: Optional[FaqAgent] = None,
        missing_clauses_agent: Optional[MissingClausesAgent] = None,
        document_type_agent: Optional[DocumentTypeAgent] = None,
        role_agent: Optional[RoleSuggestionAgent] = None
    ):
        """Initialize the orchestrator.

        Args:
            runner: Resilient task runner shared by all agents
            segmenter: Clause segmenter (default threshold if not provided)
            validator: Structured output validator shared by all agents
            risk_agent: Risk assessment agent override
            key_numbers_agent: Key numbers agent override
            clause_agent: Clause explanation agent override
            faq_agent: FAQ agent override
            missing_clauses_agent: Missing clauses agent override
            document_type_agent: Document type agent override
            role_agent: Role suggestion agent override
        """
        self.runner = runner
        self.segmenter = segmenter or TextSegmenter()
        self.validator = validator or OutputValidator()

        self.risk_agent = risk_agent or RiskAssessmentAgent(runner, self.validator)
        self.key_numbers_agent = key_numbers_agent or KeyNumbersAgent(runner, self.validator)
        self.clause_agent = clause_agent or ClauseExplanationAgent(runner, self.validator)
        self.faq_agent = faq_agent or FaqAgent(runner, self.validator)
        self.missing_clauses_agent = missing_clauses_agent or MissingClausesAgent(runner, self.validator)
        self.document_type_agent = document_type_agent or DocumentTypeAgent(runner, self.validator)
        self.role_agent = role_agent or RoleSuggestionAgent(runner)

        logger.info("DocumentAnalysisOrchestrator initialized")

    @staticmethod
    def _validate_request(request: AnalysisRequest) -> None:
        if not request.document_text or not request.document_text.strip():
            raise InvalidRequestError("Document text is required for analysis")
        if not request.user_role or not request.user_role.strip():
            raise InvalidRequestError("User role is required for analysis")
        if request.language_code not in SUPPORTED_LANGUAGES:
            raise InvalidRequestError(f"Unsupported language code: {request.language_code}")

    async def _isolate(
        self,
        task_name: str,
        run: Awaitable[AgentRun]
    ) -> Tuple[Any, TaskTrace]:
        """Await one task, converting any escaping exception into Failed."""
        start_time = time.time()
        attempts = 0

        try:
            agent_run = await run
            outcome = agent_run.outcome
            attempts = agent_run.attempts
        except Exception as e:
            kind = classify_error(e)
            log_classified_failure(task_name, e, kind)
            outcome = Failed(classification=kind, message=str(e))

        trace = TaskTrace(
            task_name=task_name,
            attempts=attempts,
            latency_seconds=time.time() - start_time,
            status=_status_of(outcome),
            error_kind=outcome.classification if isinstance(outcome, Failed) else None
        )
        return outcome, trace

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Run the full analysis for one request.

        Args:
            request: Document text, user role and output language

        Returns:
            AnalysisResult holding the settled outcome of every task

        Raises:
            InvalidRequestError: If the text or role is empty, or the language unsupported
            NoAnalyzableContentError: If segmentation yields no clause candidates
            CriticalTaskError: If the clause explanation task failed
        """
        self._validate_request(request)

        request_id = str(uuid.uuid4())
        task_logger = get_task_logger(request_id, "DocumentAnalysisOrchestrator")
        start_time = time.time()

        candidates = self.segmenter.segment(request.document_text)
        if not candidates:
            task_logger.warning("Segmentation produced no clause candidates")
            raise NoAnalyzableContentError("no analyzable content")

        task_logger.info(
            "Starting document analysis",
            user_role=request.user_role,
            language=request.language_code,
            clause_candidates=len(candidates)
        )

        tasks: Dict[str, Awaitable[AgentRun]] = {
            "risk": self.risk_agent.assess(request, request_id=request_id),
            "key_numbers": self.key_numbers_agent.extract(request, request_id=request_id),
            "clauses": self.clause_agent.explain(candidates, request, request_id=request_id),
            "faq": self.faq_agent.generate(request, request_id=request_id),
            "missing_clauses": self.missing_clauses_agent.detect(request, request_id=request_id),
        }

        settled = await asyncio.gather(
            *(self._isolate(name, run) for name, run in tasks.items())
        )
        outcomes = {name: outcome for name, (outcome, _) in zip(tasks, settled)}
        traces: List[TaskTrace] = [trace for _, trace in settled]

        for trace in traces:
            task_logger.info(
                f"Task {trace.task_name} settled: {trace.status}",
                attempts=trace.attempts,
                latency_seconds=round(trace.latency_seconds, 3)
            )

        clauses = outcomes[CRITICAL_TASK]
        if isinstance(clauses, Failed):
            task_logger.error(
                "Critical task failed, rejecting analysis",
                error_kind=clauses.classification.value
            )
            raise CriticalTaskError(CRITICAL_TASK, clauses.classification, clauses.message)

        result = AnalysisResult(
            request_id=request_id,
            created_at=datetime.now(timezone.utc),
            user_role=request.user_role,
            language_code=request.language_code,
            document_text=request.document_text,
            clause_candidates=candidates,
            risk=outcomes["risk"],
            key_numbers=outcomes["key_numbers"],
            clauses=clauses,
            faq=outcomes["faq"],
            missing_clauses=outcomes["missing_clauses"],
            traces=traces
        )

        task_logger.info(
            "Document analysis complete",
            total_time_seconds=round(time.time() - start_time, 3),
            statuses={trace.task_name: trace.status for trace in traces}
        )
        return result

    async def detect_document_type(self, document_text: str) -> Any:
        """Detect the document type.

        Returns:
            TaskOutcome[DocumentTypeResult]; generation failures are returned, not raised
        """
        if not document_text or not document_text.strip():
            raise InvalidRequestError("Document text is required to detect the document type")

        outcome, _ = await self._isolate(
            "document_type",
            self.document_type_agent.detect(document_text, request_id=str(uuid.uuid4()))
        )
        return outcome

    async def suggest_user_role(self, document_text: str) -> Any:
        """Suggest the user's role in the document.

        Returns:
            TaskOutcome[str]; generation failures are returned, not raised
        """
        if not document_text or not document_text.strip():
            raise InvalidRequestError("Document text is required to suggest a user role")

        outcome, _ = await self._isolate(
            "role_suggestion",
            self.role_agent.suggest(document_text, request_id=str(uuid.uuid4()))
        )
        return outcome


def build_metadata(document_type_outcome: Any, user_role: str) -> DocumentMetadata:
    """Turn a document type outcome into chat context metadata.

    Args:
        document_type_outcome: TaskOutcome[DocumentTypeResult]
        user_role: The user's role

    Returns:
        DocumentMetadata (unclassified at zero confidence when detection failed)
    """
    detected = document_type_outcome.value_or(None)
    if detected is None:
        return DocumentMetadata(
            document_type=UNCLASSIFIED_CATEGORY,
            document_type_confidence=UNCLASSIFIED_CONFIDENCE,
            user_role=user_role
        )

    return DocumentMetadata(
        document_type=detected.document_type,
        document_type_confidence=min(max(detected.confidence, 0), 100),
        user_role=user_role
    )


def create_orchestrator(
    settings: Optional[GenerationSettings] = None,
    client: Optional[GenerationClient] = None
) -> DocumentAnalysisOrchestrator:
    """Factory function to create an orchestrator.

    Args:
        settings: Generation settings (loaded from the environment if not provided)
        client: Generation client (Gemini client built from settings if not provided)

    Returns:
        Configured DocumentAnalysisOrchestrator instance
    """
    settings = settings or load_settings()
    runner = ResilientTaskRunner(settings, client=client)
    return DocumentAnalysisOrchestrator(runner)
