from datetime import datetime, timedelta, timezone

from docpilot.context_assembler import (
    CONTINUATION_MARKER,
    DEGRADED_SUFFIX,
    DOCUMENT_TEXT_BUDGET,
    NO_CLAUSES,
    NO_FAQS,
    NO_HISTORY,
    NO_KEY_NUMBERS,
    NO_MISSING_CLAUSES,
    NO_RISK,
    build_bundle,
    build_context,
    truncate_text,
    window_history,
)
from docpilot.models import (
    AnalysisResult,
    ChatMessage,
    ClauseCandidate,
    ClauseExplanation,
    Degraded,
    DocumentMetadata,
    ErrorKind,
    Failed,
    FaqItem,
    FaqReport,
    JargonTerm,
    KeyNumbers,
    MissingClausesReport,
    RiskAssessment,
    Success,
)


START = datetime(2025, 1, 1, tzinfo=timezone.utc)
META = DocumentMetadata(document_type="Residential Lease Agreement", document_type_confidence=92, user_role="Tenant")


def make_result(document_text="Clause A text here.", **outcomes) -> AnalysisResult:
    failed = Failed(classification=ErrorKind.TIMEOUT, message="timed out")
    fields = {
        "risk": failed,
        "key_numbers": failed,
        "clauses": Success(value=[]),
        "faq": failed,
        "missing_clauses": failed,
    }
    fields.update(outcomes)
    return AnalysisResult(
        request_id="req-1",
        created_at=START,
        user_role="Tenant",
        language_code="en",
        document_text=document_text,
        clause_candidates=[ClauseCandidate(index=0, text=document_text)],
        **fields
    )


def message(i: int) -> ChatMessage:
    return ChatMessage(
        id=f"m{i}",
        role="user" if i % 2 == 0 else "assistant",
        content=f"message {i}",
        timestamp=START + timedelta(minutes=i)
    )


def test_truncate_text_marks_continuation():
    assert truncate_text("short") == "short"
    exact = "a" * DOCUMENT_TEXT_BUDGET
    assert truncate_text(exact) == exact

    truncated = truncate_text("a" * (DOCUMENT_TEXT_BUDGET + 10))
    assert truncated == "a" * DOCUMENT_TEXT_BUDGET + CONTINUATION_MARKER


def test_unavailable_outcomes_render_as_sentinels():
    context = build_context(make_result(), META)

    assert context.risk_score is None
    assert context.risk_text == NO_RISK
    assert context.key_numbers == []
    assert context.key_numbers_text == NO_KEY_NUMBERS
    assert context.clauses_text == NO_CLAUSES
    assert context.faqs_text == NO_FAQS
    assert context.missing_clauses_text == NO_MISSING_CLAUSES
    assert context.document_type == "Residential Lease Agreement"
    assert context.user_role == "Tenant"


def test_available_outcomes_are_summarized():
    result = make_result(
        risk=Success(value=RiskAssessment(risk_level="High", risk_score=80, summary="Uncapped liability.")),
        key_numbers=Degraded(value=KeyNumbers(key_numbers={"Monthly Rent": "$2,000"}), reason="fallback"),
        clauses=Success(value=[ClauseExplanation(
            original_text="Indemnification. The Tenant shall indemnify the Landlord.",
            plain_english_explanation="You cover the landlord's losses.",
            jargon_terms=[JargonTerm(term="Indemnify", definition="Compensate for harm.")],
            index=0
        )]),
        faq=Success(value=FaqReport(faqs=[FaqItem(question="Can I sublet?", answer="With consent.")])),
        missing_clauses=Success(value=MissingClausesReport(missing_clauses=[], overall_completeness=70, summary="Fair."))
    )

    context = build_context(result, META)

    assert context.risk_score == 80
    assert "High" in context.risk_text
    assert context.key_numbers_text == "Monthly Rent: $2,000" + DEGRADED_SUFFIX
    assert "You cover the landlord's losses." in context.clauses_text
    assert context.faqs_text == "Q: Can I sublet?\nA: With consent."
    assert context.missing_clauses_text.startswith("Completeness: 70/100")
    assert context.clause_count == 1
    assert context.has_jargon


def test_document_text_is_truncated_in_context():
    long_text = "x" * (DOCUMENT_TEXT_BUDGET + 500)

    context = build_context(make_result(document_text=long_text), META)

    assert len(context.document_text) == DOCUMENT_TEXT_BUDGET + len(CONTINUATION_MARKER)
    assert context.document_text.endswith(CONTINUATION_MARKER)


def test_window_history_returns_last_messages_in_order(chat_session):
    for i in range(10):
        chat_session.append(message(i))

    window = window_history(chat_session, 6)

    assert [m.id for m in window] == ["m4", "m5", "m6", "m7", "m8", "m9"]
    assert len(chat_session.messages) == 10


def test_window_history_edge_cases(chat_session):
    assert window_history(chat_session, 6) == []

    chat_session.append(message(0))
    assert [m.id for m in window_history(chat_session, 6)] == ["m0"]
    assert window_history(chat_session, 0) == []


def test_bundle_renders_context_history_and_message(chat_session):
    empty_prompt = build_bundle(chat_session, "Can I sublet?").render_prompt()
    assert NO_HISTORY in empty_prompt

    chat_session.append(message(0))
    prompt = build_bundle(chat_session, "Can I sublet?").render_prompt()

    assert "CURRENT USER MESSAGE: Can I sublet?" in prompt
    assert "user: message 0" in prompt
    assert "Monthly Rent: $2,000" in prompt
    assert "Residential Lease Agreement (92% confidence)" in prompt
