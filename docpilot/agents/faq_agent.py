"""FAQ Agent - frequently asked questions tailored to the user's role."""

import re
from typing import List

from docpilot.agents.base import AgentRun, GenerationAgent
from docpilot.logging_config import log_task_execution
from docpilot.models import AnalysisRequest, FaqItem, FaqReport


QA_PAIR = re.compile(
    r"(?:^|\n)\s*(?:\*\*)?Q(?:uestion)?\s*[:.)]\s*(?:\*\*)?\s*(?P<question>.+?)\s*\n\s*(?:\*\*)?A(?:nswer)?\s*[:.)]\s*(?:\*\*)?\s*(?P<answer>.+?)(?=\n\s*(?:\*\*)?Q(?:uestion)?\s*[:.)]|\Z)",
    re.IGNORECASE | re.DOTALL
)


class FaqAgent(GenerationAgent):
    """Generates question/answer pairs a person in the user's role would ask."""

    TASK_NAME = "faq"

    def _build_prompt(self, request: AnalysisRequest) -> str:
        return f"""You are an AI legal assistant. Generate a list of frequently asked questions (FAQs) based on the provided legal document, relevant to the user's role.

IMPORTANT: Your entire response (questions and answers) must be in the following language: {request.language}

Include questions that cover key aspects of the document, potential ambiguities, and "what if" scenarios the user might encounter, for example "What if I am late on a payment?".

User Role: {request.user_role}

Document Text:
{request.document_text}

Respond with ONLY a JSON object of the form:
{{"faqs": [{{"question": string, "answer": string}}]}}"""

    def _fallback(self, raw_text: str) -> FaqReport:
        faqs: List[FaqItem] = [
            FaqItem(
                question=" ".join(match.group("question").split()),
                answer=" ".join(match.group("answer").split())
            )
            for match in QA_PAIR.finditer(raw_text)
        ]
        return FaqReport(faqs=faqs)

    @log_task_execution("FaqAgent")
    async def generate(self, request: AnalysisRequest, request_id: str = "unknown") -> AgentRun:
        """Generate FAQs for the document.

        Args:
            request: Analysis request
            request_id: Request identifier for logging

        Returns:
            AgentRun with a TaskOutcome[FaqReport]
        """
        return await self._generate_validated(
            self._build_prompt(request),
            FaqReport,
            self._fallback
        )
