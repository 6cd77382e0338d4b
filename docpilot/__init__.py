"""Legal document copilot - concurrent analysis and chat core.

The orchestrator and agents are imported from their own modules
(``docpilot.orchestrator``, ``docpilot.agents``) since they depend on the
``tools`` package, which in turn depends on this package.
"""

from docpilot.models import (
    AnalysisRequest,
    AnalysisResult,
    ChatMessage,
    ChatReply,
    ChatSession,
    ClauseCandidate,
    Degraded,
    DocumentContext,
    DocumentMetadata,
    ErrorKind,
    Failed,
    Success,
    TaskOutcome,
    TaskTrace,
)

from docpilot.logging_config import (
    setup_logging,
    get_task_logger,
    log_task_execution,
    log_tool_execution,
)

from docpilot.error_handling import (
    DocPilotError,
    ConfigurationError,
    InvalidRequestError,
    NoAnalyzableContentError,
    CriticalTaskError,
    SessionError,
    RetryConfig,
    classify_error,
    friendly_message,
)

from docpilot.settings import GenerationSettings, load_settings

__version__ = "0.1.0"

__all__ = [
    # Models
    "AnalysisRequest",
    "AnalysisResult",
    "ChatMessage",
    "ChatReply",
    "ChatSession",
    "ClauseCandidate",
    "Degraded",
    "DocumentContext",
    "DocumentMetadata",
    "ErrorKind",
    "Failed",
    "Success",
    "TaskOutcome",
    "TaskTrace",
    # Logging
    "setup_logging",
    "get_task_logger",
    "log_task_execution",
    "log_tool_execution",
    # Error Handling
    "DocPilotError",
    "ConfigurationError",
    "InvalidRequestError",
    "NoAnalyzableContentError",
    "CriticalTaskError",
    "SessionError",
    "RetryConfig",
    "classify_error",
    "friendly_message",
    # Settings
    "GenerationSettings",
    "load_settings",
]
