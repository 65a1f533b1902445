"""Remediation workflow transitions.

``transition`` is the only way a session changes state. It is a pure function
of (state, event) and returns the next state plus the effects the driver
must perform. Any pair missing from the table raises
``InvalidTransitionError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple, Union

from ..errors import InvalidTransitionError
from ..models.fixes import Fix
from ..models.sessions import (
    Auth,
    Closed,
    Creating,
    Error,
    Generating,
    Review,
    Success,
    WorkflowState,
)

GENERATION_FAILED = "Failed to generate fix"
PUBLISH_FAILED = "Failed to create pull request"


# Events

@dataclass(frozen=True, slots=True)
class SessionOpened:
    authenticated: bool


@dataclass(frozen=True, slots=True)
class AuthorizationRequested:
    pass


@dataclass(frozen=True, slots=True)
class SynthesisSucceeded:
    fix: Fix


@dataclass(frozen=True, slots=True)
class SynthesisFailed:
    message: str = ""


@dataclass(frozen=True, slots=True)
class ReviewConfirmed:
    pass


@dataclass(frozen=True, slots=True)
class ReviewCancelled:
    pass


@dataclass(frozen=True, slots=True)
class PublishSucceeded:
    pr_url: str


@dataclass(frozen=True, slots=True)
class PublishFailed:
    message: str = ""


@dataclass(frozen=True, slots=True)
class ErrorAcknowledged:
    pass


@dataclass(frozen=True, slots=True)
class SessionClosed:
    pass


WorkflowEvent = Union[
    SessionOpened,
    AuthorizationRequested,
    SynthesisSucceeded,
    SynthesisFailed,
    ReviewConfirmed,
    ReviewCancelled,
    PublishSucceeded,
    PublishFailed,
    ErrorAcknowledged,
    SessionClosed,
]


# Effects

@dataclass(frozen=True, slots=True)
class InitiateOAuth:
    pass


@dataclass(frozen=True, slots=True)
class SynthesizeFix:
    pass


@dataclass(frozen=True, slots=True)
class PublishFix:
    fix: Fix


@dataclass(frozen=True, slots=True)
class DiscardSession:
    pass


Effect = Union[InitiateOAuth, SynthesizeFix, PublishFix, DiscardSession]


@dataclass(frozen=True, slots=True)
class Transition:
    state: WorkflowState
    effects: Tuple[Effect, ...] = field(default=())


def _opened(event: SessionOpened) -> Transition:
    if event.authenticated:
        return Transition(Generating(), (SynthesizeFix(),))
    return Transition(Auth())


def transition(state: WorkflowState, event: WorkflowEvent) -> Transition:
    """Compute the next state and effects for ``event`` in ``state``."""
    if isinstance(event, SessionClosed) and not isinstance(state, Closed):
        return Transition(Closed(), (DiscardSession(),))

    if isinstance(state, (Closed, Auth)):
        if isinstance(event, SessionOpened):
            return _opened(event)
        if isinstance(state, Auth) and isinstance(event, AuthorizationRequested):
            return Transition(state, (InitiateOAuth(),))

    elif isinstance(state, Generating):
        if isinstance(event, SynthesisSucceeded):
            return Transition(Review(event.fix))
        if isinstance(event, SynthesisFailed):
            return Transition(Error(event.message or GENERATION_FAILED))

    elif isinstance(state, Review):
        if isinstance(event, ReviewConfirmed):
            return Transition(Creating(state.fix), (PublishFix(state.fix),))
        if isinstance(event, ReviewCancelled):
            return Transition(Closed(), (DiscardSession(),))

    elif isinstance(state, Creating):
        if isinstance(event, PublishSucceeded):
            return Transition(Success(event.pr_url))
        if isinstance(event, PublishFailed):
            return Transition(Error(event.message or PUBLISH_FAILED))

    elif isinstance(state, Error):
        if isinstance(event, ErrorAcknowledged):
            return Transition(Closed(), (DiscardSession(),))

    raise InvalidTransitionError(state.stage, type(event).__name__)
