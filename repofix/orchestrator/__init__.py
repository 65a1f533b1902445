"""Orchestration components for RepoFix."""

from .generator import ClaudeFixGenerator
from .parsing import FixResponseParser
from .scoring import aggregate, score_label
from .synthesizer import FixSynthesizer
from .workflow import RemediationWorkflow

__all__ = [
    "ClaudeFixGenerator",
    "FixResponseParser",
    "FixSynthesizer",
    "RemediationWorkflow",
    "aggregate",
    "score_label",
]
