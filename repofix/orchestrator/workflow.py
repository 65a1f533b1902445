"""Remediation workflow driver for RepoFix."""

from typing import Optional, Protocol, Tuple

import anyio

from ..config import Settings, get_settings
from ..errors import InvalidTransitionError
from ..logging import get_logger, log_workflow_event
from ..models.findings import SecurityFinding
from ..models.fixes import Fix, PublishResult, RepoContext
from ..models.sessions import Stage, WorkflowSession
from .transitions import (
    AuthorizationRequested,
    DiscardSession,
    Effect,
    ErrorAcknowledged,
    InitiateOAuth,
    PublishFailed,
    PublishFix,
    PublishSucceeded,
    ReviewCancelled,
    ReviewConfirmed,
    SessionClosed,
    SessionOpened,
    SynthesisFailed,
    SynthesisSucceeded,
    SynthesizeFix,
    WorkflowEvent,
    transition,
)

logger = get_logger(__name__)


class AuthGate(Protocol):
    def is_authenticated(self) -> bool:
        ...

    def initiate_oauth(self) -> None:
        ...


class Synthesizer(Protocol):
    async def synthesize(
        self,
        finding: SecurityFinding,
        repo_context: RepoContext,
        file_content: Optional[str] = None,
    ) -> Fix:
        ...


class PRPublisher(Protocol):
    async def create_pr(
        self,
        repo_owner: str,
        repo_name: str,
        finding: SecurityFinding,
        fix: Fix
    ) -> PublishResult:
        ...


class RemediationWorkflow:
    """Turns one finding into a pull request, one session at a time.

    The driver owns at most one ``WorkflowSession``. Every state change goes
    through ``transition``; the driver only performs the effects it returns.
    Failures from synthesis or publication become a single error state and
    are never retried. ``close`` disposes of the session immediately, and a
    result that arrives afterwards is dropped instead of being applied.
    """

    def __init__(
        self,
        finding: SecurityFinding,
        repo_owner: str,
        repo_name: str,
        *,
        auth_gate: AuthGate,
        synthesizer: Synthesizer,
        publisher: PRPublisher,
        repo_context: Optional[RepoContext] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.finding = finding
        self.repo_owner = repo_owner
        self.repo_name = repo_name
        self.auth_gate = auth_gate
        self.synthesizer = synthesizer
        self.publisher = publisher
        self.repo_context = repo_context or RepoContext.for_file(
            repo_owner,
            repo_name,
            finding.file_path,
            self.settings.default_language,
        )
        self._session: Optional[WorkflowSession] = None

    @property
    def session(self) -> Optional[WorkflowSession]:
        return self._session

    @property
    def stage(self) -> Stage:
        return self._session.stage if self._session else 'closed'

    async def open(self) -> WorkflowSession:
        """Start a fresh session, replacing any open one.

        Authentication is checked again on every open. With a credential the
        session goes straight to fix generation and this call returns once
        synthesis has settled.
        """
        if self._session is not None:
            self.close()

        session = WorkflowSession(finding=self.finding)
        self._session = session
        log_workflow_event(
            logger,
            session.id,
            "opened",
            finding_id=self.finding.id,
            repo=f"{self.repo_owner}/{self.repo_name}"
        )

        await self._drive(session, SessionOpened(self.auth_gate.is_authenticated()))
        return session

    def authorize(self) -> None:
        """Send the user to the hosting provider's authorization page."""
        self._dispatch_local(AuthorizationRequested())

    async def confirm(self) -> WorkflowSession:
        """Publish the reviewed fix as a pull request."""
        session = self._require_session(ReviewConfirmed())
        await self._drive(session, ReviewConfirmed())
        return session

    def cancel(self) -> None:
        """Reject the reviewed fix and close the session."""
        self._dispatch_local(ReviewCancelled())

    def acknowledge(self) -> None:
        """Dismiss the error and close the session."""
        self._dispatch_local(ErrorAcknowledged())

    def close(self) -> None:
        """Dispose of the current session from whatever stage it is in."""
        if self._session is None:
            return
        self._dispatch_local(SessionClosed())

    def _require_session(self, event: WorkflowEvent) -> WorkflowSession:
        if self._session is None:
            raise InvalidTransitionError('closed', type(event).__name__)
        return self._session

    def _dispatch_local(self, event: WorkflowEvent) -> None:
        session = self._require_session(event)
        for effect in self._apply(session, event):
            self._perform_local(session, effect)

    def _apply(self, session: WorkflowSession, event: WorkflowEvent) -> Tuple[Effect, ...]:
        if session is not self._session:
            logger.info(
                "workflow.stale_event_discarded",
                session_id=session.id,
                event_type=type(event).__name__
            )
            return ()

        previous = session.stage
        result = transition(session.state, event)
        session.state = result.state

        log_workflow_event(
            logger,
            session.id,
            session.stage,
            finding_id=session.finding.id,
            previous_stage=previous,
            event_type=type(event).__name__,
            error=session.error,
            pr_url=session.pr_url
        )
        return result.effects

    async def _drive(self, session: WorkflowSession, event: WorkflowEvent) -> None:
        for effect in self._apply(session, event):
            follow_up = await self._perform(session, effect)
            if follow_up is not None:
                await self._drive(session, follow_up)

    async def _perform(self, session: WorkflowSession, effect: Effect) -> Optional[WorkflowEvent]:
        if isinstance(effect, SynthesizeFix):
            return await self._synthesize(session)
        if isinstance(effect, PublishFix):
            return await self._publish(session, effect.fix)
        self._perform_local(session, effect)
        return None

    def _perform_local(self, session: WorkflowSession, effect: Effect) -> None:
        if isinstance(effect, InitiateOAuth):
            self.auth_gate.initiate_oauth()
        elif isinstance(effect, DiscardSession):
            if self._session is session:
                self._session = None
        else:
            raise TypeError(f"Effect {type(effect).__name__} cannot run synchronously")

    async def _synthesize(self, session: WorkflowSession) -> WorkflowEvent:
        try:
            with anyio.fail_after(self.settings.fix_timeout):
                fix = await self.synthesizer.synthesize(session.finding, self.repo_context)
        except TimeoutError:
            logger.error("Fix generation timed out", session_id=session.id, timeout=self.settings.fix_timeout)
            return SynthesisFailed("Fix generation timed out")
        except Exception as e:
            logger.error(
                "Fix generation error",
                session_id=session.id,
                error=str(e),
                error_type=type(e).__name__
            )
            return SynthesisFailed(str(e))
        return SynthesisSucceeded(fix)

    async def _publish(self, session: WorkflowSession, fix: Fix) -> WorkflowEvent:
        try:
            with anyio.fail_after(self.settings.publish_timeout):
                result = await self.publisher.create_pr(
                    self.repo_owner,
                    self.repo_name,
                    session.finding,
                    fix
                )
        except TimeoutError:
            logger.error("PR creation timed out", session_id=session.id, timeout=self.settings.publish_timeout)
            return PublishFailed("Pull request creation timed out")
        except Exception as e:
            logger.error(
                "PR creation error",
                session_id=session.id,
                error=str(e),
                error_type=type(e).__name__
            )
            return PublishFailed(str(e))

        if not result.success or not result.pr_url:
            return PublishFailed(result.error or "")
        return PublishSucceeded(result.pr_url)
