"""Fix synthesis for RepoFix."""

import math
from typing import Any, Dict, List, Optional, Protocol

from ..errors import InvalidFixError, MissingContextError
from ..logging import get_logger
from ..models.findings import SecurityFinding
from ..models.fixes import Fix, RepoContext
from .parsing import FixResponseParser

logger = get_logger(__name__)

DEFAULT_CONFIDENCE = 0.8


class ContentSource(Protocol):
    async def fetch_file_content(self, owner: str, repo: str, path: str) -> str:
        ...


class FixGenerator(Protocol):
    async def generate(
        self,
        finding: SecurityFinding,
        file_content: str,
        repo_context: RepoContext
    ) -> str:
        ...


class FixSynthesizer:
    """Produces a validated ``Fix`` for one finding.

    The file is fetched from the repository unless the caller already has
    its content. The generator's raw text goes through ``FixResponseParser``
    and the required fields are checked before a ``Fix`` is built. Nothing
    here retries: a failed call or an unreadable response is raised to the
    caller as-is.
    """

    def __init__(
        self,
        content_source: ContentSource,
        generator: FixGenerator,
        parser: Optional[FixResponseParser] = None,
    ):
        self.content_source = content_source
        self.generator = generator
        self.parser = parser or FixResponseParser()

    async def synthesize(
        self,
        finding: SecurityFinding,
        repo_context: RepoContext,
        file_content: Optional[str] = None,
    ) -> Fix:
        if not finding.file_path:
            raise MissingContextError("No file path available for this issue")

        if file_content is None:
            file_content = await self.content_source.fetch_file_content(
                repo_context.owner,
                repo_context.name,
                finding.file_path
            )

        raw = await self.generator.generate(finding, file_content, repo_context)
        data = self.parser.parse(raw)
        fix = self._build_fix(data, finding, file_content)

        logger.info(
            "Fix synthesized",
            finding_id=finding.id,
            file_path=finding.file_path,
            confidence=fix.confidence,
            changes=len(fix.changes_summary)
        )
        return fix

    def _build_fix(self, data: Dict[str, Any], finding: SecurityFinding, file_content: str) -> Fix:
        fixed_content = data.get('fixed_content')
        explanation = data.get('explanation')
        if not isinstance(fixed_content, str) or not fixed_content:
            raise InvalidFixError("Invalid fix data from AI: missing fixed_content")
        if not isinstance(explanation, str) or not explanation.strip():
            raise InvalidFixError("Invalid fix data from AI: missing explanation")

        return Fix(
            original_content=file_content,
            fixed_content=fixed_content,
            explanation=explanation,
            confidence=_coerce_confidence(data.get('confidence')),
            changes_summary=_coerce_changes(data.get('changes_summary')),
            issue_id=finding.id,
            file_path=finding.file_path,
        )


def _coerce_confidence(value: Any) -> float:
    if value is None:
        return DEFAULT_CONFIDENCE
    if isinstance(value, bool):
        raise InvalidFixError("Invalid fix data from AI: confidence is not a number")
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        raise InvalidFixError("Invalid fix data from AI: confidence is not a number")
    if math.isnan(confidence):
        raise InvalidFixError("Invalid fix data from AI: confidence is not a number")
    # Low confidence is shown to the user, never rejected
    return min(1.0, max(0.0, confidence))


def _coerce_changes(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise InvalidFixError("Invalid fix data from AI: changes_summary is not a list")
    return [str(change) for change in value]
