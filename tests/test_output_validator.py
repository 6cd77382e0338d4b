import pytest

from docpilot.agents.document_type_agent import FALLBACK_REASONING, DocumentTypeAgent
from docpilot.error_handling import EmptyOutputError
from docpilot.generation import GenerationResponse
from docpilot.models import Degraded, DocumentTypeResult, RiskAssessment, Success
from tools.fallback_classifier import FallbackClassifier
from tools.output_validator import FALLBACK_REASON, OutputValidator, strip_wrapping


def classifier_fallback(raw_text: str) -> DocumentTypeResult:
    classification = FallbackClassifier().classify(raw_text)
    return DocumentTypeResult(
        document_type=classification.category,
        confidence=classification.confidence,
        reasoning=FALLBACK_REASONING
    )


def test_strip_wrapping_handles_fences_and_prose():
    assert strip_wrapping('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_wrapping('```\n[1, 2]\n```') == "[1, 2]"
    assert strip_wrapping('Here you go: {"a": 1} Hope this helps!') == '{"a": 1}'
    assert strip_wrapping('```json\n{"a": 1}') == '{"a": 1}'
    assert strip_wrapping("no payload here") == "no payload here"


def test_fenced_json_matching_shape_is_success():
    raw = '```json\n{"riskLevel": "High", "riskScore": 82, "summary": "Uncapped liability."}\n```'

    outcome = OutputValidator().validate(raw, RiskAssessment, lambda text: None)

    assert outcome == Success(value=RiskAssessment(risk_level="High", risk_score=82, summary="Uncapped liability."))


def test_structured_output_is_preferred():
    response = GenerationResponse(
        text="ignored",
        structured_output={"documentType": "NDA", "confidence": 88, "reasoning": "Confidentiality terms."}
    )

    outcome = OutputValidator().validate(response, DocumentTypeResult, classifier_fallback)

    assert isinstance(outcome, Success)
    assert outcome.value.document_type == "NDA"


def test_free_text_lease_commercial_degrades_to_keyword_category():
    raw = "This looks like a commercial lease between a landlord and a business tenant."

    outcome = OutputValidator().validate(raw, DocumentTypeResult, classifier_fallback)

    assert isinstance(outcome, Degraded)
    assert outcome.reason == FALLBACK_REASON
    assert outcome.value.document_type == "Commercial Lease Agreement"
    assert outcome.value.confidence == 70


def test_out_of_range_values_fail_validation():
    raw = '{"riskLevel": "High", "riskScore": 140, "summary": "x"}'

    outcome = OutputValidator().validate(
        raw,
        RiskAssessment,
        lambda text: RiskAssessment(risk_level="Medium", risk_score=50, summary="fallback")
    )

    assert isinstance(outcome, Degraded)
    assert outcome.value.summary == "fallback"


def test_unencodable_text_falls_back():
    raw = "risk is high \ud800"

    outcome = OutputValidator().validate(
        raw,
        RiskAssessment,
        lambda text: RiskAssessment(risk_level="High", risk_score=75, summary=text[:12])
    )

    assert outcome == Degraded(
        value=RiskAssessment(risk_level="High", risk_score=75, summary="risk is high"),
        reason=FALLBACK_REASON
    )


def test_absent_output_raises():
    validator = OutputValidator()

    with pytest.raises(EmptyOutputError):
        validator.validate(None, RiskAssessment, lambda text: None)
    with pytest.raises(EmptyOutputError):
        validator.validate(GenerationResponse(), RiskAssessment, lambda text: None)


@pytest.mark.asyncio
async def test_document_type_agent_falls_back_on_free_text(runner, fake_client):
    fake_client.script["legal document classifier"] = ["I think this is a residential lease for an apartment."]

    run = await DocumentTypeAgent(runner).detect("The tenant rents the apartment.")

    assert isinstance(run.outcome, Degraded)
    assert run.outcome.value.document_type == "Residential Lease Agreement"
    assert run.outcome.value.reasoning == FALLBACK_REASONING
