"""
Document Type Agent - classifies the kind of legal document.

The generation service is asked for a specific, descriptive type. When its
output does not validate, the ordered keyword rule table of the fallback
classifier decides the type with a fixed confidence.
"""

from typing import Optional

from docpilot.agents.base import AgentRun, GenerationAgent
from docpilot.logging_config import log_task_execution
from docpilot.models import DocumentTypeResult
from tools.fallback_classifier import FallbackClassifier


DOCUMENT_PREVIEW_CHARS = 3000

FALLBACK_REASONING = "Classification based on keyword analysis due to parsing error"


class DocumentTypeAgent(GenerationAgent):
    """Detects the document type with a keyword fallback."""

    TASK_NAME = "document_type"

    def __init__(self, runner, validator=None, classifier: Optional[FallbackClassifier] = None):
        super().__init__(runner, validator)
        self.classifier = classifier or FallbackClassifier()

    def _build_prompt(self, document_text: str) -> str:
        preview = document_text[:DOCUMENT_PREVIEW_CHARS]
        if len(document_text) > DOCUMENT_PREVIEW_CHARS:
            preview += "..."

        return f"""You are an expert legal document classifier. Analyze the provided legal document text and determine its specific type.

Be as specific as possible while remaining accurate, e.g. "Commercial Lease Agreement" instead of just "Lease".
Common categories: Lease, Employment, Service Agreement, Loan Agreement, NDA, Purchase Agreement, Contract, Other.
Provide a confidence score (0-100) and a brief reasoning (1-2 sentences).

Document to analyze:
{preview}

Respond with ONLY a JSON object of the form:
{{"documentType": string, "confidence": number, "reasoning": string}}"""

    def _fallback(self, raw_text: str) -> DocumentTypeResult:
        classification = self.classifier.classify(raw_text)
        return DocumentTypeResult(
            document_type=classification.category,
            confidence=classification.confidence,
            reasoning=FALLBACK_REASONING
        )

    @log_task_execution("DocumentTypeAgent")
    async def detect(self, document_text: str, request_id: str = "unknown") -> AgentRun:
        """Detect the type of a document.

        Args:
            document_text: Document text
            request_id: Request identifier for logging

        Returns:
            AgentRun with a TaskOutcome[DocumentTypeResult]
        """
        return await self._generate_validated(
            self._build_prompt(document_text),
            DocumentTypeResult,
            self._fallback
        )
