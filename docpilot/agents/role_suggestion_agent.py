"""Role Suggestion Agent - guesses the user's party role from the document."""

from docpilot.agents.base import AgentRun
from docpilot.logging_config import log_task_execution
from docpilot.models import ErrorKind, Failed, Success
from docpilot.task_runner import ResilientTaskRunner


DOCUMENT_PREVIEW_CHARS = 3000
MAX_ROLE_LENGTH = 60


class RoleSuggestionAgent:
    """Suggests a single concise role such as "Tenant" or "Employee"."""

    TASK_NAME = "role_suggestion"

    def __init__(self, runner: ResilientTaskRunner):
        self.runner = runner

    def _build_prompt(self, document_text: str) -> str:
        return f"""You are an expert legal analyst. Read the provided legal document and determine the most likely role of the user reviewing it.

Common roles include "Tenant", "Landlord", "Employee", "Employer", "Contractor", "Client", "Lender", "Borrower".
Output only a single, concise role name and nothing else.

Document:
{document_text[:DOCUMENT_PREVIEW_CHARS]}"""

    @staticmethod
    def _first_line(text: str) -> str:
        for line in text.splitlines():
            role = line.strip().strip("\"'*`.").strip()
            if role:
                return role[:MAX_ROLE_LENGTH]
        return ""

    @log_task_execution("RoleSuggestionAgent")
    async def suggest(self, document_text: str, request_id: str = "unknown") -> AgentRun:
        """Suggest the user's role.

        Args:
            document_text: Document text
            request_id: Request identifier for logging

        Returns:
            AgentRun with a TaskOutcome[str]
        """
        report = await self.runner.generate(self._build_prompt(document_text), task_name=self.TASK_NAME)

        if isinstance(report.outcome, Failed):
            return AgentRun(outcome=report.outcome, attempts=report.attempts)

        role = self._first_line(report.outcome.value.text or "")
        if not role:
            return AgentRun(
                outcome=Failed(
                    classification=ErrorKind.MALFORMED_OUTPUT,
                    message="Generation returned no role suggestion"
                ),
                attempts=report.attempts
            )

        return AgentRun(outcome=Success(value=role), attempts=report.attempts)
