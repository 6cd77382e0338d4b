"""Structured output validation for generation responses.

Responses are validated strictly against the task's expected shape. When
that fails, a deterministic fallback derives a best-effort value so the task
degrades instead of failing.
"""

import re
from typing import Callable, Optional, Type, TypeVar, Union

import msgspec
from loguru import logger

from docpilot.error_handling import EmptyOutputError
from docpilot.generation import GenerationResponse
from docpilot.models import Degraded, Success


T = TypeVar("T")

FALLBACK_REASON = "schema validation failed; used heuristic fallback"

FENCED_BLOCK = re.compile(r"```[a-zA-Z0-9_-]*[ \t]*\n?(.*?)\n?[ \t]*```", re.DOTALL)

CLOSING = {"{": "}", "[": "]"}


def strip_wrapping(text: str) -> str:
    """Remove known wrapping artifacts around a JSON payload.

    Handles fenced code blocks (with or without a language tag) and prose
    before or after the payload.

    Args:
        text: Raw response text

    Returns:
        Text most likely to hold the bare payload
    """
    cleaned = text.strip()

    fenced = FENCED_BLOCK.search(cleaned)
    if fenced:
        cleaned = fenced.group(1).strip()
    elif cleaned.startswith("```"):
        # Unterminated fence
        cleaned = cleaned.lstrip("`")
        if cleaned[:4].lower() == "json":
            cleaned = cleaned[4:]
        cleaned = cleaned.strip()

    if cleaned[:1] in CLOSING:
        return cleaned

    starts = [pos for pos in (cleaned.find("{"), cleaned.find("[")) if pos != -1]
    if not starts:
        return cleaned

    start = min(starts)
    end = cleaned.rfind(CLOSING[cleaned[start]])
    if end > start:
        return cleaned[start:end + 1]
    return cleaned


class OutputValidator:
    """Validate-then-fallback decoder for generation output."""

    def validate(
        self,
        response: Optional[Union[GenerationResponse, str]],
        shape: Type[T],
        fallback: Callable[[str], T],
        task_name: str = "generation"
    ) -> Union[Success[T], Degraded[T]]:
        """Decode a response into ``shape``, falling back on failure.

        Args:
            response: Generation response or raw text
            shape: Expected output type (msgspec-compatible)
            fallback: Deterministic builder of a value from the raw text
            task_name: Name used in diagnostics

        Returns:
            Success with the decoded value, or Degraded with the fallback value

        Raises:
            EmptyOutputError: If the response carries no output at all
        """
        if response is None:
            raise EmptyOutputError(f"Generation returned no response for {task_name}")

        if isinstance(response, str):
            response = GenerationResponse(text=response)

        if response.structured_output is not None:
            try:
                value = msgspec.convert(response.structured_output, type=shape)
                return Success(value=value)
            except msgspec.ValidationError as e:
                logger.warning(
                    f"Structured output for {task_name} failed validation",
                    task_name=task_name,
                    error=str(e)
                )

        raw_text = response.text
        if raw_text is None:
            if response.structured_output is None:
                raise EmptyOutputError(f"Generation returned an empty response for {task_name}")
            raw_text = msgspec.json.encode(response.structured_output).decode("utf-8")

        try:
            value = msgspec.json.decode(strip_wrapping(raw_text).encode("utf-8"), type=shape)
            return Success(value=value)
        except (msgspec.DecodeError, msgspec.ValidationError, UnicodeError) as e:
            logger.warning(
                f"Output for {task_name} failed validation, using heuristic fallback",
                task_name=task_name,
                error=str(e),
                response_preview=raw_text[:200]
            )

        return Degraded(value=fallback(raw_text), reason=FALLBACK_REASON)
