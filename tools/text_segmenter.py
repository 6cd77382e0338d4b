"""Text segmentation tool for splitting documents into clause candidates.

Segments are separated by one or more blank lines. Short segments such as
page numbers or stray headings are discarded as noise.
"""

import re
from typing import List

from loguru import logger

from docpilot.logging_config import log_tool_execution
from docpilot.models import ClauseCandidate


MIN_CLAUSE_LENGTH = 15

# A blank line is a line holding nothing but whitespace
BLANK_LINE_SPLIT = re.compile(r"\n[ \t\f\v]*\n\s*")


class TextSegmenter:
    """Deterministic splitter from raw text to ordered clause candidates."""

    def __init__(self, min_length: int = MIN_CLAUSE_LENGTH):
        """Initialize the segmenter.

        Args:
            min_length: Minimum stripped segment length kept as a candidate
        """
        self.min_length = min_length

    @log_tool_execution("text_segmenter")
    def segment(self, text: str) -> List[ClauseCandidate]:
        """Split text into clause candidates in document order.

        Args:
            text: Raw document text

        Returns:
            List of ClauseCandidate, indexed from 0 in document order
        """
        if not text:
            return []

        normalized = text.replace("\r\n", "\n").replace("\r", "\n")
        segments = (segment.strip() for segment in BLANK_LINE_SPLIT.split(normalized))

        candidates = [
            ClauseCandidate(index=index, text=segment)
            for index, segment in enumerate(
                s for s in segments if len(s) >= self.min_length
            )
        ]

        logger.debug(f"Segmented text into {len(candidates)} clause candidates")
        return candidates


def segment_text_tool(text: str, min_length: int = MIN_CLAUSE_LENGTH) -> List[ClauseCandidate]:
    """Tool function for segmenting document text.

    Args:
        text: Raw document text
        min_length: Minimum segment length

    Returns:
        Ordered clause candidates
    """
    return TextSegmenter(min_length=min_length).segment(text)
