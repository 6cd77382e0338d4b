"""Shared plumbing for agents that call the generation service."""

from typing import Any, Callable, Optional, Type

from msgspec import Struct

from docpilot.error_handling import EmptyOutputError
from docpilot.models import ErrorKind, Failed
from docpilot.task_runner import ResilientTaskRunner
from tools.output_validator import OutputValidator


class AgentRun(Struct, frozen=True):
    """TaskOutcome of one agent invocation and the attempts it took."""
    outcome: Any
    attempts: int


class GenerationAgent:
    """Base for agents: retried generation followed by validate-then-fallback."""

    TASK_NAME = "generation"

    def __init__(
        self,
        runner: ResilientTaskRunner,
        validator: Optional[OutputValidator] = None
    ):
        self.runner = runner
        self.validator = validator or OutputValidator()

    async def _generate_validated(
        self,
        prompt: str,
        shape: Type,
        fallback: Callable[[str], Any],
        task_name: Optional[str] = None
    ) -> AgentRun:
        task_name = task_name or self.TASK_NAME
        report = await self.runner.generate(prompt, expected_shape=shape, task_name=task_name)

        if isinstance(report.outcome, Failed):
            return AgentRun(outcome=report.outcome, attempts=report.attempts)

        try:
            outcome = self.validator.validate(
                report.outcome.value,
                shape,
                fallback,
                task_name=task_name
            )
        except EmptyOutputError as e:
            outcome = Failed(classification=ErrorKind.UNKNOWN, message=str(e))

        return AgentRun(outcome=outcome, attempts=report.attempts)
