"""
Conversation Context Assembler - bounded context for follow-up chat turns.

A DocumentContext is derived once from a completed AnalysisResult and never
changes afterwards. Each chat turn combines it with a trailing window of the
session history into a ContextBundle, so prompt size stays bounded no matter
how long the conversation runs.
"""

from typing import List, Optional

from msgspec import Struct

from docpilot.models import (
    AnalysisResult,
    ChatMessage,
    ChatSession,
    DocumentContext,
    DocumentMetadata,
    Degraded,
    KeyNumberEntry,
)


DOCUMENT_TEXT_BUDGET = 3000
CONTINUATION_MARKER = "..."
HISTORY_WINDOW = 6
CLAUSE_TITLE_CHARS = 60

NO_KEY_NUMBERS = "None extracted"
NO_RISK = "Risk assessment not completed"
NO_CLAUSES = "None analyzed yet"
NO_FAQS = "None generated yet"
NO_MISSING_CLAUSES = "Missing clause analysis not available"
NO_HISTORY = "No previous messages"

DEGRADED_SUFFIX = " (estimated, lower confidence)"


def truncate_text(text: str, budget: int = DOCUMENT_TEXT_BUDGET) -> str:
    """Cap text at ``budget`` characters, marking truncation explicitly."""
    if len(text) <= budget:
        return text
    return text[:budget] + CONTINUATION_MARKER


def clause_title(text: str) -> str:
    first_line = text.strip().splitlines()[0] if text.strip() else ""
    if len(first_line) > CLAUSE_TITLE_CHARS:
        return first_line[:CLAUSE_TITLE_CHARS].rstrip() + CONTINUATION_MARKER
    return first_line


def _suffix(outcome) -> str:
    return DEGRADED_SUFFIX if isinstance(outcome, Degraded) else ""


def build_context(result: AnalysisResult, meta: DocumentMetadata) -> DocumentContext:
    """Derive the bounded chat context from a completed analysis.

    Failed or empty task outcomes are rendered as sentinel text so the
    prompt structure never changes.

    Args:
        result: Completed analysis result
        meta: Document type, confidence and user role

    Returns:
        Immutable DocumentContext
    """
    risk = result.risk.value_or(None)
    if risk is not None:
        risk_score: Optional[float] = risk.risk_score
        risk_text = f"Risk Score: {risk.risk_score:g}/100 ({risk.risk_level}) - {risk.summary}{_suffix(result.risk)}"
    else:
        risk_score = None
        risk_text = NO_RISK

    key_numbers_value = result.key_numbers.value_or(None)
    key_numbers = [
        KeyNumberEntry(label=label, value=value)
        for label, value in (key_numbers_value.key_numbers.items() if key_numbers_value else ())
    ]
    if key_numbers:
        key_numbers_text = ", ".join(f"{kn.label}: {kn.value}" for kn in key_numbers) + _suffix(result.key_numbers)
    else:
        key_numbers_text = NO_KEY_NUMBERS

    clauses = result.clauses.value_or([])
    if clauses:
        clauses_text = "\n".join(
            f"• {clause_title(c.original_text)}: {c.plain_english_explanation}" for c in clauses
        )
    else:
        clauses_text = NO_CLAUSES

    faq_report = result.faq.value_or(None)
    faqs = faq_report.faqs if faq_report else []
    if faqs:
        faqs_text = "\n\n".join(f"Q: {f.question}\nA: {f.answer}" for f in faqs)
    else:
        faqs_text = NO_FAQS

    missing = result.missing_clauses.value_or(None)
    if missing is not None and (missing.missing_clauses or missing.summary):
        lines = [f"Completeness: {missing.overall_completeness:g}/100 - {missing.summary}{_suffix(result.missing_clauses)}"]
        lines.extend(
            f"• [{m.importance}] {m.clause_title}: {m.risk_without_clause}"
            for m in missing.missing_clauses
        )
        missing_clauses_text = "\n".join(lines)
    else:
        missing_clauses_text = NO_MISSING_CLAUSES

    return DocumentContext(
        document_type=meta.document_type,
        document_type_confidence=meta.document_type_confidence,
        user_role=meta.user_role,
        document_text=truncate_text(result.document_text),
        risk_score=risk_score,
        risk_text=risk_text,
        key_numbers=key_numbers,
        key_numbers_text=key_numbers_text,
        clauses_text=clauses_text,
        faqs_text=faqs_text,
        missing_clauses_text=missing_clauses_text,
        clause_count=len(clauses),
        has_jargon=any(c.jargon_terms for c in clauses)
    )


def window_history(session: ChatSession, n: int = HISTORY_WINDOW) -> List[ChatMessage]:
    """Return the most recent ``n`` messages in original order."""
    if n <= 0:
        return []
    return list(session.messages[-n:])


class ContextBundle(Struct, frozen=True):
    """Prompt-ready combination of document context and recent history."""
    context: DocumentContext
    history: List[ChatMessage]
    message: str

    def render_prompt(self) -> str:
        ctx = self.context
        history_text = "\n".join(f"{m.role}: {m.content}" for m in self.history) or NO_HISTORY

        return f"""You are an expert legal assistant AI helping a {ctx.user_role} understand their {ctx.document_type} document. You have access to a comprehensive analysis of this document.

DOCUMENT CONTEXT:
- Document Type: {ctx.document_type} ({ctx.document_type_confidence:g}% confidence)
- User Role: {ctx.user_role}
- Risk Assessment: {ctx.risk_text}

KEY NUMBERS & DATES:
{ctx.key_numbers_text}

EXPLAINED CLAUSES:
{ctx.clauses_text}

FREQUENTLY ASKED QUESTIONS:
{ctx.faqs_text}

MISSING CLAUSES:
{ctx.missing_clauses_text}

CONVERSATION HISTORY:
{history_text}

CURRENT USER MESSAGE: {self.message}

GUIDELINES:
1. Answer as a knowledgeable legal assistant, but clarify you are not a lawyer
2. Reference specific parts of the document and the analysis when relevant
3. Explain legal terms in plain English
4. Suggest practical next steps when appropriate
5. For complex legal questions, recommend consulting a qualified attorney

Original document text for reference:
{ctx.document_text}

Respond with ONLY a JSON object of the form:
{{"response": string, "suggestedFollowUps": [string], "referencedSections": [string]}}
Suggest 1-3 follow-up questions."""


def build_bundle(session: ChatSession, message: str, n: int = HISTORY_WINDOW) -> ContextBundle:
    """Combine the session's context snapshot with its recent history."""
    return ContextBundle(
        context=session.document_context,
        history=window_history(session, n),
        message=message
    )
