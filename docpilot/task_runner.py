"""
Resilient Task Runner - bounded retries around one generation call.

Failures are classified into an ErrorKind. Transient kinds (network,
timeout, unknown) are retried with exponential backoff; kinds that cannot
succeed on retry (credentials, quota, model) fail fast. The caller only ever
sees the final outcome.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, TypeVar, Union

from loguru import logger
from msgspec import Struct

from docpilot.error_handling import RetryConfig, classify_error
from docpilot.generation import GenerationClient, GenerationResponse, GeminiGenerationClient
from docpilot.models import Failed, Success
from docpilot.settings import GenerationSettings


T = TypeVar("T")


class RunReport(Struct, frozen=True):
    """Final outcome of a retried call plus what it took to get there."""
    outcome: Union[Success[Any], Failed]
    attempts: int
    delays: List[float] = []


class ResilientTaskRunner:
    """Executes generation calls under the configured retry policy."""

    def __init__(
        self,
        settings: GenerationSettings,
        client: Optional[GenerationClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """Initialize the runner.

        Args:
            settings: Generation settings (credentials and retry policy)
            client: Generation client (defaults to a Gemini client built from settings)
            sleep: Awaitable sleep used between attempts
        """
        self.settings = settings
        self.retry_config: RetryConfig = settings.retry_config()
        self.client = client if client is not None else GeminiGenerationClient(settings)
        self._sleep = sleep

        logger.info(
            "ResilientTaskRunner initialized",
            max_attempts=self.retry_config.attempts,
            initial_delay=self.retry_config.initial_delay,
            exp_base=self.retry_config.exp_base
        )

    async def run_with_retry(
        self,
        call: Callable[[], Awaitable[T]],
        max_attempts: Optional[int] = None,
        task_name: str = "generation"
    ) -> RunReport:
        """Run ``call`` until it succeeds, fails fast, or the budget is spent.

        Args:
            call: Zero-argument coroutine factory performing one attempt
            max_attempts: Attempt budget (defaults to the configured attempts)
            task_name: Name used in diagnostics

        Returns:
            RunReport whose outcome is Success(value) or Failed(kind, message)
        """
        attempts_allowed = max_attempts or self.retry_config.attempts
        delays: List[float] = []
        task_logger = logger.bind(task_name=task_name)

        attempt = 0
        while True:
            attempt += 1
            try:
                value = await call()
            except Exception as e:
                kind = classify_error(e)

                if not self.retry_config.should_retry(kind):
                    task_logger.error(
                        f"Attempt {attempt}/{attempts_allowed} failed with non-retryable {kind.value}",
                        error=str(e),
                        error_type=type(e).__name__
                    )
                    return RunReport(
                        outcome=Failed(classification=kind, message=str(e)),
                        attempts=attempt,
                        delays=delays
                    )

                if attempt >= attempts_allowed:
                    task_logger.error(
                        f"All {attempts_allowed} attempts failed",
                        error=str(e),
                        error_type=type(e).__name__,
                        error_kind=kind.value
                    )
                    return RunReport(
                        outcome=Failed(classification=kind, message=str(e)),
                        attempts=attempt,
                        delays=delays
                    )

                delay = self.retry_config.calculate_delay(attempt - 1)
                task_logger.warning(
                    f"Attempt {attempt}/{attempts_allowed} failed, retrying in {delay}s",
                    error=str(e),
                    error_type=type(e).__name__,
                    error_kind=kind.value
                )
                delays.append(delay)
                await self._sleep(delay)
                continue

            if attempt > 1:
                task_logger.info(f"Succeeded on attempt {attempt}/{attempts_allowed}")
            return RunReport(outcome=Success(value=value), attempts=attempt, delays=delays)

    async def generate(
        self,
        prompt: str,
        expected_shape: Optional[type] = None,
        task_name: str = "generation"
    ) -> RunReport:
        """Retried call to the generation client."""
        async def call() -> GenerationResponse:
            return await self.client.generate(prompt, expected_shape)

        return await self.run_with_retry(call, task_name=task_name)
