"""Keyword fallback classifier for document types.

Used when the generation service returns output that does not validate.
Rules live in an ordered JSON table (document_type_rules.json) and are
evaluated top to bottom; the first matching rule wins and its confidence is
fixed by the table.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from loguru import logger
from msgspec import Struct

from docpilot.logging_config import log_tool_execution


UNCLASSIFIED_CATEGORY = "Unclassified Document"
UNCLASSIFIED_CONFIDENCE = 0

DEFAULT_RULES_PATH = Path(__file__).parent / "document_type_rules.json"


class KeywordRule(Struct, frozen=True):
    """Matches when every keyword group has at least one keyword present."""
    name: str
    category: str
    confidence: int
    all_of: List[List[str]]

    def matches(self, lowered_text: str) -> bool:
        return all(
            any(keyword in lowered_text for keyword in group)
            for group in self.all_of
        )


class Classification(Struct, frozen=True):
    category: str
    confidence: int
    rule_name: Optional[str] = None


class FallbackClassifier:
    """Ordered keyword-rule classifier."""

    def __init__(
        self,
        rules: Optional[Sequence[Dict]] = None,
        rules_path: Optional[str] = None
    ):
        """Initialize the classifier.

        Args:
            rules: Rule dictionaries in precedence order (overrides rules_path)
            rules_path: Path to a JSON rule table (defaults to document_type_rules.json)
        """
        if rules is None:
            self.rules_path = Path(rules_path) if rules_path else DEFAULT_RULES_PATH
            rules = self._load_rules()
        else:
            self.rules_path = None

        self.rules: List[KeywordRule] = [self._build_rule(rule) for rule in rules]

        logger.info("Document type rules loaded", rule_count=len(self.rules))

    def _load_rules(self) -> List[Dict]:
        """Load the rule table from JSON.

        Raises:
            FileNotFoundError: If the rules file doesn't exist
            json.JSONDecodeError: If the rules file is invalid JSON
        """
        if not self.rules_path.exists():
            raise FileNotFoundError(f"Document type rules file not found: {self.rules_path}")

        with open(self.rules_path, "r", encoding="utf-8") as f:
            return json.load(f)

    @staticmethod
    def _build_rule(rule: Dict) -> KeywordRule:
        return KeywordRule(
            name=rule.get("name", rule["category"]),
            category=rule["category"],
            confidence=int(rule["confidence"]),
            all_of=[[keyword.lower() for keyword in group] for group in rule["all_of"]]
        )

    @log_tool_execution("fallback_classifier")
    def classify(self, text: str) -> Classification:
        """Classify text with the first matching rule.

        Args:
            text: Raw (unparsable) generation output or document text

        Returns:
            Classification with the rule's category and fixed confidence
        """
        lowered = (text or "").lower()

        for rule in self.rules:
            if rule.matches(lowered):
                logger.debug(f"Fallback rule '{rule.name}' matched", category=rule.category)
                return Classification(
                    category=rule.category,
                    confidence=rule.confidence,
                    rule_name=rule.name
                )

        return Classification(
            category=UNCLASSIFIED_CATEGORY,
            confidence=UNCLASSIFIED_CONFIDENCE
        )

    def reload_rules(self) -> None:
        """Reload rules from the JSON file."""
        if self.rules_path is None:
            return
        self.rules = [self._build_rule(rule) for rule in self._load_rules()]
        logger.info("Document type rules reloaded", rule_count=len(self.rules))
