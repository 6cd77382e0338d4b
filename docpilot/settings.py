"""Generation settings loaded once from the environment.

Settings are read here and passed explicitly to the task runner and the
generation client; nothing below this module reads process state.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from msgspec import Struct

from docpilot.error_handling import RetryConfig


class GenerationSettings(Struct, frozen=True, kw_only=True):
    """Credentials and call policy for the generation service."""
    api_key: Optional[str] = None
    model_name: str = "gemini-2.5-flash-lite"
    temperature: float = 0.3
    max_output_tokens: int = 8000
    max_attempts: int = 3
    initial_delay: float = 1.0
    exp_base: int = 2
    max_delay: float = 30.0

    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            attempts=self.max_attempts,
            exp_base=self.exp_base,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay
        )

    def masked_key(self) -> str:
        if not self.api_key:
            return "<unset>"
        return f"{'*' * 8}{self.api_key[-4:]}"


def load_settings(env_file: Optional[str] = None, **overrides) -> GenerationSettings:
    """Build settings from .env and environment variables.

    Args:
        env_file: Optional path to a .env file (defaults to dotenv discovery)
        **overrides: Explicit values that take precedence over the environment

    Returns:
        GenerationSettings instance
    """
    load_dotenv(env_file)

    values = {
        "api_key": os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY"),
        "model_name": os.getenv("DOCPILOT_MODEL", "gemini-2.5-flash-lite"),
        "max_attempts": int(os.getenv("DOCPILOT_MAX_ATTEMPTS", "3")),
        "initial_delay": float(os.getenv("DOCPILOT_RETRY_BASE_DELAY", "1.0")),
    }
    values.update({key: value for key, value in overrides.items() if value is not None})

    return GenerationSettings(**values)
