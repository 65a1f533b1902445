"""Extraction of structured fixes from free-form model output.

Model responses nominally contain a JSON object but often wrap it in
markdown or prose. ``FixResponseParser`` tries an ordered list of extraction
patterns; the first one that finds a candidate decides the outcome; later
patterns are not consulted even if that candidate fails to parse.
"""

import json
import re
from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..errors import FixParseError
from ..logging import get_logger

logger = get_logger(__name__)


class ExtractionPattern(Protocol):
    """Finds the JSON candidate in a model response."""

    name: str

    def extract(self, text: str) -> Optional[str]:
        ...


class RegexPattern:
    """Extracts the first capture group of a regular expression."""

    def __init__(self, name: str, pattern: str, flags: int = 0):
        self.name = name
        self._regex = re.compile(pattern, flags)

    def extract(self, text: str) -> Optional[str]:
        match = self._regex.search(text)
        if not match:
            return None
        return match.group(1)

    def __repr__(self) -> str:
        return f"RegexPattern({self.name!r})"


class BalancedBracePattern:
    """Extracts the first balanced top-level ``{...}`` span.

    Braces inside JSON string literals are ignored, so code in
    ``fixed_content`` does not end the span early.
    """

    name = "braces"

    def extract(self, text: str) -> Optional[str]:
        start = text.find('{')
        if start == -1:
            return None

        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        return None

    def __repr__(self) -> str:
        return "BalancedBracePattern()"


# The closing fence must start a line; backticks inside a JSON string never do
JSON_FENCE = RegexPattern("json_fence", r'```json[ \t]*\r?\n([\s\S]*?)\r?\n```', re.IGNORECASE)
ANY_FENCE = RegexPattern("any_fence", r'```[^\n`]*\r?\n([\s\S]*?)\r?\n```')
FIRST_OBJECT = BalancedBracePattern()

DEFAULT_PATTERNS: Sequence[ExtractionPattern] = (JSON_FENCE, ANY_FENCE, FIRST_OBJECT)


class FixResponseParser:
    """Turns raw model text into a JSON object using ordered patterns."""

    def __init__(self, patterns: Optional[Sequence[ExtractionPattern]] = None):
        self.patterns: List[ExtractionPattern] = list(patterns or DEFAULT_PATTERNS)

    def add_pattern(self, pattern: ExtractionPattern, *, index: Optional[int] = None) -> None:
        """Register another pattern, by default after the existing ones."""
        if index is None:
            self.patterns.append(pattern)
        else:
            self.patterns.insert(index, pattern)

    def parse(self, text: str) -> Dict[str, Any]:
        for pattern in self.patterns:
            candidate = pattern.extract(text)
            if candidate is None:
                continue

            logger.debug("Fix response matched pattern", pattern=pattern.name)
            try:
                data = json.loads(candidate.strip())
            except json.JSONDecodeError as e:
                logger.warning(
                    "Fix response is not valid JSON",
                    pattern=pattern.name,
                    error=str(e)
                )
                raise FixParseError("Failed to parse AI response. Please try again.") from e

            if not isinstance(data, dict):
                raise FixParseError("AI response is not a JSON object")
            return data

        logger.warning("No JSON found in fix response", response_length=len(text))
        raise FixParseError("Failed to parse AI response. Please try again.")
