"""
Key Numbers Agent - extracts figures and dates (rent, deposits, deadlines).

Only values explicitly present in the document are requested. The fallback
scrapes ``Label: value`` lines that contain a digit from the raw response.
"""

import re
from typing import Dict

from docpilot.agents.base import AgentRun, GenerationAgent
from docpilot.logging_config import log_task_execution
from docpilot.models import AnalysisRequest, KeyNumbers


LABEL_VALUE_LINE = re.compile(
    r"""^[\s\-*•]*["']?(?P<label>[A-Za-z][^:"'\n]{0,60}?)["']?\s*:\s*["']?(?P<value>[^"'\n]*\d[^"'\n]*?)["']?\s*,?\s*$""",
    re.MULTILINE
)


class KeyNumbersAgent(GenerationAgent):
    """Extracts key numbers from the document as a label -> value map."""

    TASK_NAME = "key_numbers"

    def _build_prompt(self, request: AnalysisRequest) -> str:
        return f"""You are an expert legal document analyst. Extract the key numbers (amounts, dates, durations, percentages) from the following legal document.

Only extract what is explicitly mentioned in the document. If a value is not mentioned, do not invent it; leave the key out.
Write the labels in the following language: {request.language}

Document Text:
{request.document_text}

Respond with ONLY a JSON object of the form:
{{"keyNumbers": {{"Monthly Rent": "$2,000", "Contract End Date": "2026-12-31"}}}}"""

    def _fallback(self, raw_text: str) -> KeyNumbers:
        found: Dict[str, str] = {}
        for match in LABEL_VALUE_LINE.finditer(raw_text):
            label = match.group("label").strip()
            value = match.group("value").strip()
            if label and value and label not in found:
                found[label] = value
        return KeyNumbers(key_numbers=found)

    @log_task_execution("KeyNumbersAgent")
    async def extract(self, request: AnalysisRequest, request_id: str = "unknown") -> AgentRun:
        """Extract key numbers from the document.

        Args:
            request: Analysis request
            request_id: Request identifier for logging

        Returns:
            AgentRun with a TaskOutcome[KeyNumbers]
        """
        return await self._generate_validated(
            self._build_prompt(request),
            KeyNumbers,
            self._fallback
        )
