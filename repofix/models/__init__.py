"""Data models for RepoFix."""

from .findings import SEVERITIES, AnalysisResult, SecurityFinding, Severity, load_analysis
from .fixes import Fix, PublishResult, PullRequest, RepoContext, detect_language
from .sessions import (
    Auth,
    Closed,
    Creating,
    Error,
    Generating,
    Review,
    Stage,
    Success,
    WorkflowSession,
    WorkflowState,
)

__all__ = [
    "SEVERITIES",
    "AnalysisResult",
    "SecurityFinding",
    "Severity",
    "load_analysis",
    "Fix",
    "PublishResult",
    "PullRequest",
    "RepoContext",
    "detect_language",
    "Auth",
    "Closed",
    "Creating",
    "Error",
    "Generating",
    "Review",
    "Stage",
    "Success",
    "WorkflowSession",
    "WorkflowState",
]
