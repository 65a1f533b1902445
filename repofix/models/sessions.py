"""Workflow session state models for RepoFix.

A session's state is one of the frozen dataclasses below. Payloads live on
the state that needs them, so a ``Review`` without a fix or a ``Success``
without a pull request URL cannot be constructed.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import ClassVar, Literal, Optional, Union

from .findings import SecurityFinding
from .fixes import Fix

Stage = Literal['closed', 'auth', 'generating', 'review', 'creating', 'success', 'error']


@dataclass(frozen=True, slots=True)
class Closed:
    stage: ClassVar[Stage] = 'closed'


@dataclass(frozen=True, slots=True)
class Auth:
    stage: ClassVar[Stage] = 'auth'


@dataclass(frozen=True, slots=True)
class Generating:
    stage: ClassVar[Stage] = 'generating'


@dataclass(frozen=True, slots=True)
class Review:
    fix: Fix
    stage: ClassVar[Stage] = 'review'

    def __post_init__(self) -> None:
        if self.fix is None:
            raise ValueError("Review requires a fix")


@dataclass(frozen=True, slots=True)
class Creating:
    fix: Fix
    stage: ClassVar[Stage] = 'creating'

    def __post_init__(self) -> None:
        if self.fix is None:
            raise ValueError("Creating requires a fix")


@dataclass(frozen=True, slots=True)
class Success:
    pr_url: str
    stage: ClassVar[Stage] = 'success'

    def __post_init__(self) -> None:
        if not self.pr_url:
            raise ValueError("Success requires a pull request URL")


@dataclass(frozen=True, slots=True)
class Error:
    message: str
    stage: ClassVar[Stage] = 'error'


WorkflowState = Union[Closed, Auth, Generating, Review, Creating, Success, Error]


@dataclass(slots=True)
class WorkflowSession:
    """Mutable state of one remediation attempt."""

    finding: SecurityFinding
    state: WorkflowState = field(default_factory=Closed)
    id: str = field(default_factory=lambda: f"session_{uuid.uuid4().hex[:8]}")
    opened_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def stage(self) -> Stage:
        return self.state.stage

    @property
    def error(self) -> Optional[str]:
        return self.state.message if isinstance(self.state, Error) else None

    @property
    def fix(self) -> Optional[Fix]:
        if isinstance(self.state, (Review, Creating)):
            return self.state.fix
        return None

    @property
    def pr_url(self) -> Optional[str]:
        return self.state.pr_url if isinstance(self.state, Success) else None

    @property
    def is_closed(self) -> bool:
        return isinstance(self.state, Closed)

    @property
    def is_busy(self) -> bool:
        """An external call is in flight."""
        return isinstance(self.state, (Generating, Creating))
