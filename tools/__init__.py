"""Tools package for deterministic document processing utilities."""

from tools.text_segmenter import TextSegmenter, segment_text_tool
from tools.output_validator import OutputValidator, strip_wrapping
from tools.fallback_classifier import FallbackClassifier, Classification, KeywordRule
from tools.suggested_questions import SuggestedQuestion, suggest_questions

__all__ = [
    "TextSegmenter",
    "segment_text_tool",
    "OutputValidator",
    "strip_wrapping",
    "FallbackClassifier",
    "Classification",
    "KeywordRule",
    "SuggestedQuestion",
    "suggest_questions",
]
