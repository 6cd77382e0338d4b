"""
Risk Assessment Agent - overall risk of a document for the user's role.

Severity Levels:
- HIGH: Significant financial/legal exposure requiring immediate attention
- MEDIUM: Negotiable concerns that should be addressed
- LOW: Standard terms with minimal risk

When the response does not validate, the risk level is read from the first
severity keyword found in the raw text, with a fixed score per level.
"""

import re

from docpilot.agents.base import AgentRun, GenerationAgent
from docpilot.logging_config import log_task_execution
from docpilot.models import AnalysisRequest, RiskAssessment


# Ordered: first match wins
RISK_KEYWORD_RULES = (
    ("High", re.compile(r"\bhigh\b"), 75),
    ("Medium", re.compile(r"\b(medium|moderate)\b"), 50),
    ("Low", re.compile(r"\blow\b"), 25),
)

SUMMARY_PREVIEW_CHARS = 500


class RiskAssessmentAgent(GenerationAgent):
    """Scores the document's overall risk from the user's point of view."""

    TASK_NAME = "risk"

    def _build_prompt(self, request: AnalysisRequest) -> str:
        return f"""You are an AI legal assistant tasked with assessing the risk level of a legal document.

Based on the document text and the user's role, determine the overall risk level (Low, Medium, or High) and provide a numerical risk score (0-100).
Also provide a brief summary of the key risks identified in the document.

Consider the following factors when assessing risk:
- Unfavorable clauses for the user's role
- Missing or incomplete information
- Ambiguous language
- Potential liabilities

IMPORTANT: Write the summary in the following language: {request.language}

User Role: {request.user_role}

Document Text:
{request.document_text}

Respond with ONLY a JSON object matching this schema:
{{"riskLevel": "Low | Medium | High", "riskScore": number, "summary": string}}"""

    def _fallback(self, raw_text: str) -> RiskAssessment:
        lowered = raw_text.lower()
        summary = " ".join(raw_text.split())[:SUMMARY_PREVIEW_CHARS] or "Risk summary unavailable."

        for level, pattern, score in RISK_KEYWORD_RULES:
            if pattern.search(lowered):
                return RiskAssessment(risk_level=level, risk_score=score, summary=summary)

        return RiskAssessment(
            risk_level="Medium",
            risk_score=50,
            summary="The risk level could not be determined automatically. Please review the document carefully."
        )

    @log_task_execution("RiskAssessmentAgent")
    async def assess(self, request: AnalysisRequest, request_id: str = "unknown") -> AgentRun:
        """Assess the overall risk of the document.

        Args:
            request: Analysis request
            request_id: Request identifier for logging

        Returns:
            AgentRun with a TaskOutcome[RiskAssessment]
        """
        return await self._generate_validated(
            self._build_prompt(request),
            RiskAssessment,
            self._fallback
        )
