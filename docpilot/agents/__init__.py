"""Agents package for document analysis and chat."""

from docpilot.agents.base import AgentRun, GenerationAgent
from docpilot.agents.risk_assessment_agent import RiskAssessmentAgent
from docpilot.agents.key_numbers_agent import KeyNumbersAgent
from docpilot.agents.clause_explanation_agent import ClauseExplanationAgent
from docpilot.agents.faq_agent import FaqAgent
from docpilot.agents.missing_clauses_agent import MissingClausesAgent
from docpilot.agents.document_type_agent import DocumentTypeAgent
from docpilot.agents.role_suggestion_agent import RoleSuggestionAgent
from docpilot.agents.chat_agent import DocumentChatAgent

__all__ = [
    "AgentRun",
    "GenerationAgent",
    "RiskAssessmentAgent",
    "KeyNumbersAgent",
    "ClauseExplanationAgent",
    "FaqAgent",
    "MissingClausesAgent",
    "DocumentTypeAgent",
    "RoleSuggestionAgent",
    "DocumentChatAgent",
]
