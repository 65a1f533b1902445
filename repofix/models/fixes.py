"""Fix and pull request data models for RepoFix."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional

from dataclasses_json import DataClassJsonMixin

EXTENSION_LANGUAGES: Dict[str, str] = {
    '.js': 'javascript',
    '.jsx': 'javascript',
    '.mjs': 'javascript',
    '.cjs': 'javascript',
    '.ts': 'typescript',
    '.tsx': 'typescript',
    '.py': 'python',
    '.rb': 'ruby',
    '.go': 'go',
    '.java': 'java',
    '.kt': 'kotlin',
    '.cs': 'csharp',
    '.php': 'php',
    '.rs': 'rust',
    '.c': 'c',
    '.h': 'c',
    '.cpp': 'cpp',
    '.cc': 'cpp',
    '.swift': 'swift',
    '.sh': 'shell',
    '.yml': 'yaml',
    '.yaml': 'yaml',
    '.json': 'json',
    '.tf': 'terraform',
    '.sql': 'sql',
}


def detect_language(file_path: Optional[str]) -> Optional[str]:
    """Guess a language label from a file extension."""
    if not file_path:
        return None
    path = PurePosixPath(file_path)
    if path.name == 'Dockerfile':
        return 'dockerfile'
    return EXTENSION_LANGUAGES.get(path.suffix.lower())


@dataclass(frozen=True, slots=True)
class RepoContext(DataClassJsonMixin):
    """Repository context passed to the fix generator."""

    owner: str
    name: str
    language: str
    framework: Optional[str] = field(default=None)

    @classmethod
    def for_file(
        cls,
        owner: str,
        name: str,
        file_path: Optional[str],
        default_language: str,
        framework: Optional[str] = None,
    ) -> RepoContext:
        return cls(
            owner=owner,
            name=name,
            language=detect_language(file_path) or default_language,
            framework=framework,
        )


@dataclass(frozen=True, slots=True)
class Fix(DataClassJsonMixin):
    """A synthesized replacement for one file, addressing one finding."""

    original_content: str
    fixed_content: str
    explanation: str
    confidence: float
    issue_id: str
    file_path: str
    changes_summary: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.fixed_content:
            raise ValueError("Fixed content cannot be empty")
        if not self.explanation:
            raise ValueError("Explanation cannot be empty")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("Confidence must be between 0 and 1")

    @property
    def confidence_percent(self) -> int:
        return round(self.confidence * 100)

    @property
    def changed(self) -> bool:
        """Whether the fix actually differs from the original file."""
        return self.fixed_content != self.original_content

    def to_dict(self, encode_json: bool = False) -> Dict[str, Any]:
        """Convert fix to its wire shape."""
        return {
            'original_content': self.original_content,
            'fixed_content': self.fixed_content,
            'explanation': self.explanation,
            'confidence': self.confidence,
            'changes_summary': list(self.changes_summary),
            'issue_id': self.issue_id,
            'file_path': self.file_path,
        }


@dataclass(frozen=True, slots=True)
class PullRequest(DataClassJsonMixin):
    """A pull request opened on the hosting provider."""

    url: str
    number: Optional[int] = field(default=None)
    branch: Optional[str] = field(default=None)


@dataclass(frozen=True, slots=True)
class PublishResult(DataClassJsonMixin):
    """Outcome of a pull request publication attempt."""

    success: bool
    pr: Optional[PullRequest] = field(default=None)
    error: Optional[str] = field(default=None)

    @classmethod
    def failed(cls, error: str) -> PublishResult:
        return cls(success=False, error=error)

    @property
    def pr_url(self) -> Optional[str]:
        return self.pr.url if self.pr else None
