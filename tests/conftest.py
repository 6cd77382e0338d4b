import json
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

import pytest

from docpilot.generation import GenerationResponse
from docpilot.models import (
    AnalysisRequest,
    ChatSession,
    DocumentContext,
    KeyNumberEntry,
)
from docpilot.settings import GenerationSettings
from docpilot.task_runner import ResilientTaskRunner


# Prompt markers identifying each task's prompt
RISK = "assessing the risk level"
KEY_NUMBERS = "Extract the key numbers"
CLAUSES = "simplifying complex legal documents"
FAQ = "frequently asked questions (FAQs)"
MISSING = "identifying missing clauses"
DOCUMENT_TYPE = "legal document classifier"
ROLE = "most likely role"
CHAT = "expert legal assistant AI"
VERIFY = "You are an AI verifier"

Scripted = Union[str, dict, list, BaseException]


class FakeGenerationClient:
    """Generation client scripted per prompt marker.

    Each marker maps to a list of replies consumed in order; the last reply
    repeats once the list is exhausted. Exceptions are raised, dicts and
    lists are returned as JSON text.
    """

    def __init__(self, script: Optional[Dict[str, List[Scripted]]] = None):
        self.script: Dict[str, List[Scripted]] = script or {}
        self.prompts: List[str] = []
        self._cursor: Dict[str, int] = {}

    def calls_for(self, marker: str) -> List[str]:
        return [prompt for prompt in self.prompts if marker in prompt]

    async def generate(self, prompt: str, expected_shape=None) -> GenerationResponse:
        self.prompts.append(prompt)

        for marker, replies in self.script.items():
            if marker in prompt:
                position = self._cursor.get(marker, 0)
                self._cursor[marker] = position + 1
                reply = replies[min(position, len(replies) - 1)]
                break
        else:
            raise AssertionError(f"Unscripted prompt: {prompt[:80]}")

        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, (dict, list)):
            return GenerationResponse(text=json.dumps(reply))
        return GenerationResponse(text=reply)


class SleepRecorder:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def successful_script() -> Dict[str, List[Scripted]]:
    return {
        RISK: [{"riskLevel": "Medium", "riskScore": 55, "summary": "Deposit terms favor the landlord."}],
        KEY_NUMBERS: [{"keyNumbers": {"Monthly Rent": "$2,000", "Security Deposit": "$4,000"}}],
        CLAUSES: [{
            "original_text": "clause",
            "plain_english_explanation": "You pay rent on the first of each month.",
            "jargon_terms": [{"term": "Lessee", "definition": "The tenant."}],
        }],
        FAQ: [{"faqs": [{"question": "What if I pay late?", "answer": "A late fee applies."}]}],
        MISSING: [{
            "missingClauses": [{
                "clauseTitle": "Dispute Resolution",
                "importance": "Important",
                "description": "How disagreements are settled.",
                "riskWithoutClause": "Disputes may go straight to court.",
            }],
            "overallCompleteness": 80,
            "summary": "Mostly complete.",
        }],
        DOCUMENT_TYPE: [{"documentType": "Residential Lease Agreement", "confidence": 92, "reasoning": "Mentions tenant and apartment."}],
        ROLE: ["Tenant"],
        CHAT: [{"response": "You can sublet with written consent.", "suggestedFollowUps": ["Who approves subletting?"], "referencedSections": ["Clause 4"]}],
        VERIFY: [{"verified": True, "reason": ""}],
    }


LEASE_TEXT = (
    "1. Rent. The Tenant shall pay $2,000 per month on the first day of each month.\n"
    "\n"
    "2. Deposit. A security deposit of $4,000 is due at signing.\n"
    "\n"
    "3\n"
    "\n"
    "4. Subletting. The Tenant may not sublet without written consent of the Landlord."
)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def settings() -> GenerationSettings:
    return GenerationSettings(api_key="test-key-1234")


@pytest.fixture
def fake_client() -> FakeGenerationClient:
    return FakeGenerationClient(successful_script())


@pytest.fixture
def runner(settings, fake_client, sleep_recorder) -> ResilientTaskRunner:
    return ResilientTaskRunner(settings, client=fake_client, sleep=sleep_recorder)


@pytest.fixture
def lease_request() -> AnalysisRequest:
    return AnalysisRequest(document_text=LEASE_TEXT, user_role="Tenant")


@pytest.fixture
def document_context() -> DocumentContext:
    return DocumentContext(
        document_type="Residential Lease Agreement",
        document_type_confidence=92,
        user_role="Tenant",
        document_text=LEASE_TEXT,
        risk_score=55,
        risk_text="Risk Score: 55/100 (Medium) - Deposit terms favor the landlord.",
        key_numbers=[KeyNumberEntry(label="Monthly Rent", value="$2,000")],
        key_numbers_text="Monthly Rent: $2,000",
        clauses_text="• 1. Rent.: You pay rent on the first of each month.",
        faqs_text="Q: What if I pay late?\nA: A late fee applies.",
        missing_clauses_text="Completeness: 80/100 - Mostly complete.",
        clause_count=3,
        has_jargon=True
    )


@pytest.fixture
def chat_session(document_context) -> ChatSession:
    return ChatSession(
        session_id="session-1",
        document_context=document_context,
        started_at=datetime(2025, 1, 1, tzinfo=timezone.utc)
    )
