"""
Data Models - msgspec Structs for efficient serialization.

These models define the records passed between the orchestrator, the
per-task agents and the conversation layer. Using msgspec provides:
- Strict decoding of generation output against an expected shape
- Fast JSON serialization for the external persistence collaborator
- Immutable (frozen) snapshots for analysis results and chat context
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, Generic, List, Literal, Optional, TypeVar, Union

from msgspec import Meta, Struct


T = TypeVar("T")

Score = Annotated[float, Meta(ge=0, le=100)]

# Locale code -> language name used in prompts
SUPPORTED_LANGUAGES: Dict[str, str] = {
    "en": "English",
    "hi": "Hindi",
    "ta": "Tamil",
    "kn": "Kannada",
    "bn": "Bengali",
    "mr": "Marathi",
    "gu": "Gujarati",
    "ml": "Malayalam",
    "te": "Telugu",
    "ur": "Urdu",
}

LanguageCode = Literal["en", "hi", "ta", "kn", "bn", "mr", "gu", "ml", "te", "ur"]


class ErrorKind(str, Enum):
    """Classification of a failed generation call."""
    UNAUTHENTICATED = "unauthenticated"
    QUOTA_EXCEEDED = "quota_exceeded"
    TIMEOUT = "timeout"
    NETWORK_UNAVAILABLE = "network_unavailable"
    MODEL_UNAVAILABLE = "model_unavailable"
    MALFORMED_OUTPUT = "malformed_output"
    UNKNOWN = "unknown"


# Task outcomes

class Success(Struct, Generic[T], frozen=True, tag="success", tag_field="status"):
    """Value validated against the task's expected shape."""
    value: T

    def value_or(self, default: Any = None) -> T:
        return self.value


class Degraded(Struct, Generic[T], frozen=True, tag="degraded", tag_field="status"):
    """Value produced by the heuristic fallback instead of strict parsing."""
    value: T
    reason: str

    def value_or(self, default: Any = None) -> T:
        return self.value


class Failed(Struct, frozen=True, tag="failed", tag_field="status"):
    """Terminal failure of a task after the retry budget was spent."""
    classification: ErrorKind
    message: str

    def value_or(self, default: Any = None) -> Any:
        return default


TaskOutcome = Union[Success[T], Degraded[T], Failed]


# Requests and segmentation

class AnalysisRequest(Struct, frozen=True):
    """One document submitted for analysis by a user acting in a given role."""
    document_text: str
    user_role: str
    language_code: LanguageCode = "en"

    @property
    def language(self) -> str:
        return SUPPORTED_LANGUAGES.get(self.language_code, "English")


class ClauseCandidate(Struct, frozen=True):
    """Blank-line delimited segment of the document, in document order."""
    index: int
    text: str


# Expected output shapes

class RiskAssessment(Struct, frozen=True, rename="camel"):
    """Overall risk of the document for the user's role."""
    risk_level: Literal["Low", "Medium", "High"]
    risk_score: Score
    summary: str


class KeyNumbers(Struct, frozen=True, rename="camel"):
    """Key figures and dates, label -> value as written in the document."""
    key_numbers: Dict[str, str] = {}


class JargonTerm(Struct, frozen=True):
    term: str
    definition: str


class ClauseExplanation(Struct, frozen=True):
    """Plain-language explanation of one clause."""
    original_text: str
    plain_english_explanation: str
    jargon_terms: List[JargonTerm] = []
    index: int = -1


class ExplanationVerification(Struct, frozen=True):
    """Verifier verdict on whether an explanation stays within its clause."""
    verified: bool
    reason: str = ""


class FaqItem(Struct, frozen=True):
    question: str
    answer: str


class FaqReport(Struct, frozen=True):
    faqs: List[FaqItem] = []


class MissingClause(Struct, frozen=True, rename="camel"):
    clause_title: str
    importance: Literal["Critical", "Important", "Recommended"]
    description: str
    risk_without_clause: str
    suggested_language: Optional[str] = None


class MissingClausesReport(Struct, frozen=True, rename="camel"):
    """Protections the document lacks from the user's point of view."""
    missing_clauses: List[MissingClause]
    overall_completeness: Score
    summary: str


class DocumentTypeResult(Struct, frozen=True, rename="camel"):
    document_type: str
    confidence: Score
    reasoning: str


class ChatReply(Struct, frozen=True, rename="camel"):
    """Answer to one conversational turn."""
    response: str
    suggested_follow_ups: List[str] = []
    referenced_sections: List[str] = []


# Aggregation

class TaskTrace(Struct, frozen=True):
    """Execution trace of one analysis task for diagnosis."""
    task_name: str
    attempts: int
    latency_seconds: float
    status: str
    error_kind: Optional[ErrorKind] = None


class AnalysisResult(Struct, frozen=True):
    """Snapshot of all five analysis tasks for one request."""
    request_id: str
    created_at: datetime
    user_role: str
    language_code: str
    document_text: str
    clause_candidates: List[ClauseCandidate]
    risk: TaskOutcome[RiskAssessment]
    key_numbers: TaskOutcome[KeyNumbers]
    clauses: TaskOutcome[List[ClauseExplanation]]
    faq: TaskOutcome[FaqReport]
    missing_clauses: TaskOutcome[MissingClausesReport]
    traces: List[TaskTrace] = []

    def outcomes(self) -> Dict[str, Any]:
        return {
            "risk": self.risk,
            "key_numbers": self.key_numbers,
            "clauses": self.clauses,
            "faq": self.faq,
            "missing_clauses": self.missing_clauses,
        }


# Conversation

class DocumentMetadata(Struct, frozen=True):
    """Identifying metadata supplied alongside a completed analysis."""
    document_type: str
    document_type_confidence: Score
    user_role: str


class KeyNumberEntry(Struct, frozen=True):
    label: str
    value: str


class DocumentContext(Struct, frozen=True):
    """Bounded, prompt-ready view over an AnalysisResult.

    Section texts are always present; unavailable analysis is rendered as a
    sentinel string so prompts keep the same structure.
    """
    document_type: str
    document_type_confidence: float
    user_role: str
    document_text: str
    risk_score: Optional[float]
    risk_text: str
    key_numbers: List[KeyNumberEntry]
    key_numbers_text: str
    clauses_text: str
    faqs_text: str
    missing_clauses_text: str
    clause_count: int = 0
    has_jargon: bool = False


class ChatMessage(Struct, frozen=True):
    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime


class ChatSession(Struct, kw_only=True):
    """Ordered, append-only conversation about one analyzed document."""
    session_id: str
    document_context: DocumentContext
    started_at: datetime
    messages: List[ChatMessage] = []
    last_message_at: Optional[datetime] = None
    max_messages: int = 100

    def append(self, message: ChatMessage) -> None:
        """Append a message, evicting the oldest ones beyond max_messages."""
        self.messages.append(message)
        overflow = len(self.messages) - self.max_messages
        if overflow > 0:
            del self.messages[:overflow]
        self.last_message_at = message.timestamp
