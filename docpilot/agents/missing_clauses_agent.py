"""
Missing Clauses Agent - protections the document lacks for the user's role.

Importance Levels:
- Critical: Absence exposes the user to serious harm
- Important: Should be negotiated before signing
- Recommended: Good practice, lower impact
"""

from docpilot.agents.base import AgentRun, GenerationAgent
from docpilot.logging_config import log_task_execution
from docpilot.models import AnalysisRequest, MissingClausesReport


FALLBACK_SUMMARY = (
    "The missing clause analysis could not be read reliably. "
    "Review the document for standard protections such as termination, "
    "liability, dispute resolution and payment terms."
)


class MissingClausesAgent(GenerationAgent):
    """Detects important clauses absent from the document."""

    TASK_NAME = "missing_clauses"

    def _build_prompt(self, request: AnalysisRequest) -> str:
        return f"""You are an expert legal analyst specializing in identifying missing clauses and protections in legal documents.

Analyze this document from the perspective of someone in the role of "{request.user_role}" and identify important clauses that are missing.
For each missing clause give a title, its importance (Critical, Important or Recommended), what it would protect, the risk of not having it, and optionally example language.
Also rate the overall completeness of the document from 0 to 100.

IMPORTANT: Your entire response must be in the following language: {request.language}

Document Text:
{request.document_text}

Respond with ONLY a JSON object of the form:
{{"missingClauses": [{{"clauseTitle": string, "importance": "Critical | Important | Recommended", "description": string, "riskWithoutClause": string, "suggestedLanguage": string}}], "overallCompleteness": number, "summary": string}}"""

    def _fallback(self, raw_text: str) -> MissingClausesReport:
        return MissingClausesReport(
            missing_clauses=[],
            overall_completeness=0,
            summary=FALLBACK_SUMMARY
        )

    @log_task_execution("MissingClausesAgent")
    async def detect(self, request: AnalysisRequest, request_id: str = "unknown") -> AgentRun:
        """Detect missing clauses in the document.

        Args:
            request: Analysis request
            request_id: Request identifier for logging

        Returns:
            AgentRun with a TaskOutcome[MissingClausesReport]
        """
        return await self._generate_validated(
            self._build_prompt(request),
            MissingClausesReport,
            self._fallback
        )
