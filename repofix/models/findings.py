"""Finding and analysis result data models for RepoFix."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Sequence, Union

from dataclasses_json import DataClassJsonMixin, config

# Type aliases for better type safety
Severity = Literal['critical', 'high', 'medium', 'low']

SEVERITIES: tuple[Severity, ...] = ('critical', 'high', 'medium', 'low')

# Scanner payloads use camelCase keys
_FINDING_KEYS = {
    'filePath': 'file_path',
    'lineNumber': 'line_number',
    'codeSnippet': 'code_snippet',
}

_RESULT_KEYS = {
    'repoOwner': 'repo_owner',
    'repoName': 'repo_name',
    'repoUrl': 'repo_url',
    'securityScore': 'security_score',
    'totalIssues': 'total_issues',
    'criticalCount': 'critical_count',
    'highCount': 'high_count',
    'mediumCount': 'medium_count',
    'lowCount': 'low_count',
    'analyzedAt': 'analyzed_at',
}


def _snake_keys(data: Dict[str, Any], mapping: Dict[str, str]) -> Dict[str, Any]:
    return {mapping.get(key, key): value for key, value in data.items()}


def _line_number(value: Any) -> Optional[int]:
    # Scanners report 0 (or nothing usable) for file-level findings
    try:
        line = int(value)
    except (TypeError, ValueError):
        return None
    return line if line > 0 else None


def _parse_timestamp(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace('Z', '+00:00'))


@dataclass(frozen=True, slots=True)
class SecurityFinding(DataClassJsonMixin):
    """A security finding produced by the scanner.

    Findings are read-only: nothing in the remediation workflow mutates them.
    """

    id: str
    severity: Severity
    category: str
    title: str
    description: str
    recommendation: str
    file_path: Optional[str] = field(default=None)
    line_number: Optional[int] = field(default=None)
    code_snippet: Optional[str] = field(default=None)

    def __post_init__(self) -> None:
        """Validate finding data after initialization."""
        if not self.id:
            raise ValueError("Finding ID cannot be empty")
        if self.severity not in SEVERITIES:
            raise ValueError(f"Unknown severity: {self.severity!r}")
        if not self.title:
            raise ValueError("Title cannot be empty")
        if self.line_number is not None and self.line_number < 1:
            raise ValueError("Line number must be positive")

    def to_dict(self, encode_json: bool = False) -> Dict[str, Any]:
        """Convert finding to the scanner's camelCase shape."""
        return {
            'id': self.id,
            'severity': self.severity,
            'category': self.category,
            'title': self.title,
            'description': self.description,
            'filePath': self.file_path,
            'lineNumber': self.line_number,
            'codeSnippet': self.code_snippet,
            'recommendation': self.recommendation,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], *, infer_missing: bool = False) -> SecurityFinding:
        """Create finding from a camelCase or snake_case dictionary."""
        values = _snake_keys(data, _FINDING_KEYS)
        return cls(
            id=str(values['id']),
            severity=values['severity'],
            category=values.get('category', ''),
            title=values['title'],
            description=values.get('description', ''),
            recommendation=values.get('recommendation', ''),
            file_path=values.get('file_path') or None,
            line_number=_line_number(values.get('line_number')),
            code_snippet=values.get('code_snippet') or None,
        )

    @property
    def is_high_or_critical(self) -> bool:
        """Check if finding is high or critical severity."""
        return self.severity in ('high', 'critical')

    @property
    def is_fixable(self) -> bool:
        """A fix can only be synthesized when the finding points at a file."""
        return bool(self.file_path)

    @property
    def location(self) -> str:
        """Human-readable ``path:line`` location."""
        if not self.file_path:
            return "unknown location"
        if self.line_number:
            return f"{self.file_path}:{self.line_number}"
        return self.file_path


@dataclass(slots=True)
class AnalysisResult(DataClassJsonMixin):
    """Scanner output for one repository."""

    repo_owner: str
    repo_name: str
    repo_url: str
    security_score: int
    total_issues: int
    critical_count: int
    high_count: int
    medium_count: int
    low_count: int
    issues: List[SecurityFinding] = field(default_factory=list)
    analyzed_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
        metadata=config(encoder=datetime.isoformat, decoder=_parse_timestamp)
    )

    def __post_init__(self) -> None:
        """Validate that the counters agree with the findings."""
        if not self.repo_owner:
            raise ValueError("Repository owner cannot be empty")
        if not self.repo_name:
            raise ValueError("Repository name cannot be empty")
        if not 0 <= self.security_score <= 100:
            raise ValueError("Security score must be between 0 and 100")

        counts = {severity: 0 for severity in SEVERITIES}
        for issue in self.issues:
            counts[issue.severity] += 1

        declared = {
            'critical': self.critical_count,
            'high': self.high_count,
            'medium': self.medium_count,
            'low': self.low_count,
        }
        for severity, count in declared.items():
            if count != counts[severity]:
                raise ValueError(
                    f"{severity} count is {count} but {counts[severity]} "
                    f"{severity} issues are listed"
                )
        if self.total_issues != len(self.issues):
            raise ValueError(
                f"Total issues is {self.total_issues} but {len(self.issues)} issues are listed"
            )

    @classmethod
    def from_findings(
        cls,
        repo_owner: str,
        repo_name: str,
        repo_url: str,
        issues: Sequence[SecurityFinding],
        analyzed_at: Optional[datetime] = None,
    ) -> AnalysisResult:
        """Build a result whose score and counters are computed from ``issues``."""
        from ..orchestrator.scoring import aggregate

        summary = aggregate(issues)
        return cls(
            repo_owner=repo_owner,
            repo_name=repo_name,
            repo_url=repo_url,
            security_score=summary.score,
            total_issues=summary.total,
            critical_count=summary.critical,
            high_count=summary.high,
            medium_count=summary.medium,
            low_count=summary.low,
            issues=list(issues),
            analyzed_at=analyzed_at or datetime.now(timezone.utc),
        )

    def to_dict(self, encode_json: bool = False) -> Dict[str, Any]:
        """Convert result to the scanner's camelCase shape."""
        return {
            'repoOwner': self.repo_owner,
            'repoName': self.repo_name,
            'repoUrl': self.repo_url,
            'securityScore': self.security_score,
            'totalIssues': self.total_issues,
            'criticalCount': self.critical_count,
            'highCount': self.high_count,
            'mediumCount': self.medium_count,
            'lowCount': self.low_count,
            'issues': [issue.to_dict() for issue in self.issues],
            'analyzedAt': self.analyzed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], *, infer_missing: bool = False) -> AnalysisResult:
        """Create result from a camelCase or snake_case dictionary."""
        values = _snake_keys(data, _RESULT_KEYS)
        values['issues'] = [
            issue if isinstance(issue, SecurityFinding) else SecurityFinding.from_dict(issue)
            for issue in values.get('issues', [])
        ]
        if 'analyzed_at' in values:
            values['analyzed_at'] = _parse_timestamp(values['analyzed_at'])
        return cls(**values)

    @property
    def full_name(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"

    def filter_by_severity(self, severity: Union[Severity, Literal['all']] = 'all') -> List[SecurityFinding]:
        """Return findings of one severity, or every finding for ``'all'``."""
        if severity == 'all':
            return list(self.issues)
        return [issue for issue in self.issues if issue.severity == severity]

    def get_issue(self, issue_id: str) -> Optional[SecurityFinding]:
        for issue in self.issues:
            if issue.id == issue_id:
                return issue
        return None

    def first_fixable(self) -> Optional[SecurityFinding]:
        """First critical or high finding that points at a file."""
        for issue in self.issues:
            if issue.is_high_or_critical and issue.is_fixable:
                return issue
        return None


def load_analysis(path: Union[str, Path]) -> AnalysisResult:
    """Load an analysis result from a JSON file."""
    with open(path, 'r', encoding='utf-8') as f:
        return AnalysisResult.from_dict(json.load(f))
