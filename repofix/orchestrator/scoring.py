"""Security score aggregation for RepoFix."""

from dataclasses import dataclass
from typing import Dict, Iterable

from ..models.findings import SEVERITIES, SecurityFinding, Severity

# Points deducted from a perfect score per finding
SEVERITY_WEIGHTS: Dict[Severity, int] = {
    'critical': 20,
    'high': 10,
    'medium': 5,
    'low': 1,
}

MAX_SCORE = 100

# Lower bounds, checked in order; anything below the last is "Critical"
SCORE_LABELS = (
    (90, "Excellent"),
    (80, "Good"),
    (60, "Fair"),
    (40, "Poor"),
)


@dataclass(frozen=True, slots=True)
class SeveritySummary:
    """Per-severity counts and the derived score for a finding set."""

    score: int
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @property
    def total(self) -> int:
        return self.critical + self.high + self.medium + self.low

    @property
    def label(self) -> str:
        return score_label(self.score)

    def count(self, severity: Severity) -> int:
        return getattr(self, severity)


def aggregate(findings: Iterable[SecurityFinding]) -> SeveritySummary:
    """Count findings per severity and compute the security score.

    The score starts at 100 and loses a fixed number of points per finding,
    weighted by severity, never dropping below 0. Adding a finding or raising
    its severity can only lower the score.
    """
    counts = {severity: 0 for severity in SEVERITIES}
    for finding in findings:
        counts[finding.severity] += 1

    deduction = sum(SEVERITY_WEIGHTS[severity] * count for severity, count in counts.items())
    return SeveritySummary(score=max(0, MAX_SCORE - deduction), **counts)


def score_label(score: int) -> str:
    """Map a score to its qualitative label."""
    for lower_bound, label in SCORE_LABELS:
        if score >= lower_bound:
            return label
    return "Critical"
