"""Suggested questions generator based on document analysis context.

Produces prioritized starter questions for a chat session from a
DocumentContext, without calling the generation service.
"""

from typing import List, Literal

from msgspec import Struct

from docpilot.models import DocumentContext


class SuggestedQuestion(Struct, frozen=True):
    id: str
    text: str
    category: Literal["general", "risk", "clauses", "negotiation", "missing"]
    priority: int


def _risk_questions(risk_score: float) -> List[SuggestedQuestion]:
    if risk_score > 70:
        return [
            SuggestedQuestion(
                id="high-risk-concern",
                text=f"This document has a high risk score of {risk_score:g}. What should I be most concerned about?",
                category="risk",
                priority=10
            ),
            SuggestedQuestion(
                id="risk-mitigation",
                text="How can I protect myself from the risks identified in this document?",
                category="risk",
                priority=9
            ),
        ]
    if risk_score > 40:
        return [SuggestedQuestion(
            id="moderate-risk",
            text="What are the main risk factors I should be aware of?",
            category="risk",
            priority=7
        )]
    return [SuggestedQuestion(
        id="low-risk-confidence",
        text="Even though the risk is low, what should I still watch out for?",
        category="risk",
        priority=5
    )]


def _document_type_questions(document_type: str, user_role: str) -> List[SuggestedQuestion]:
    doc_type = document_type.lower()

    if "lease" in doc_type:
        if "tenant" in user_role.lower():
            return [
                SuggestedQuestion(id="lease-tenant-rights", text="What are my rights as a tenant under this lease?", category="general", priority=9),
                SuggestedQuestion(id="lease-early-termination", text="What happens if I need to move out early?", category="general", priority=8),
                SuggestedQuestion(id="lease-maintenance", text="Who is responsible for repairs and maintenance?", category="general", priority=7),
            ]
        return [
            SuggestedQuestion(id="lease-landlord-protection", text="How am I protected if the tenant damages the property?", category="general", priority=8),
            SuggestedQuestion(id="lease-eviction", text="What are the procedures for eviction if needed?", category="general", priority=7),
        ]

    if "employment" in doc_type:
        return [
            SuggestedQuestion(id="employment-termination", text="Under what conditions can my employment be terminated?", category="general", priority=9),
            SuggestedQuestion(id="employment-benefits", text="What benefits am I entitled to and when do they vest?", category="general", priority=8),
            SuggestedQuestion(id="employment-noncompete", text="Are there any restrictions on working for competitors after I leave?", category="general", priority=7),
        ]

    return []


def suggest_questions(context: DocumentContext, limit: int = 10) -> List[SuggestedQuestion]:
    """Generate starter questions ordered by priority (highest first).

    Args:
        context: Document context of the chat session
        limit: Maximum number of questions returned

    Returns:
        Prioritized list of suggested questions
    """
    questions: List[SuggestedQuestion] = []

    if context.risk_score is not None:
        questions.extend(_risk_questions(context.risk_score))

    questions.extend(_document_type_questions(context.document_type, context.user_role))

    if context.key_numbers:
        questions.append(SuggestedQuestion(
            id="key-numbers-explanation",
            text="Can you explain what the key numbers and dates mean for me?",
            category="general",
            priority=8
        ))

    if context.clause_count > 0:
        questions.append(SuggestedQuestion(
            id="complex-clauses",
            text="Which clauses are the most complex or important for me to understand?",
            category="clauses",
            priority=8
        ))
        if context.has_jargon:
            questions.append(SuggestedQuestion(
                id="jargon-explanation",
                text="Can you explain the legal jargon in simple terms?",
                category="clauses",
                priority=6
            ))

    if context.risk_score is not None and context.risk_score > 30:
        questions.append(SuggestedQuestion(
            id="negotiation-points",
            text="What terms should I try to negotiate before signing?",
            category="negotiation",
            priority=9
        ))

    questions.append(SuggestedQuestion(
        id="missing-protections",
        text=f"As a {context.user_role}, what protections might be missing from this document?",
        category="missing",
        priority=7
    ))
    questions.append(SuggestedQuestion(
        id="next-steps",
        text="What should I do next before making a decision about this document?",
        category="general",
        priority=6
    ))
    questions.append(SuggestedQuestion(
        id="professional-review",
        text="Do I need a lawyer to review this document?",
        category="general",
        priority=5
    ))

    # sorted() is stable, so equal priorities keep insertion order
    return sorted(questions, key=lambda q: q.priority, reverse=True)[:limit]
