"""Exception hierarchy for RepoFix.

Every error raised while generating or publishing a fix derives from
``RemediationError``. The workflow turns any of them into a single
human-readable message on the error state, so ``str(exc)`` must always be
something a user can read.
"""


class RemediationError(Exception):
    """Base class for remediation failures."""


class MissingContextError(RemediationError):
    """The finding carries no file path, so there is nothing to fix."""


class ContentFetchError(RemediationError):
    """The file content could not be fetched from the repository."""


class FixGenerationError(RemediationError):
    """The fix generation service failed or is not configured."""


class FixParseError(RemediationError):
    """The model response could not be read as a JSON object."""


class InvalidFixError(RemediationError):
    """The parsed response is missing required fields."""


class PublishError(RemediationError):
    """GitHub rejected or failed the branch/commit/pull request sequence."""


class GitHubAPIError(RemediationError):
    """GitHub answered with an unexpected status."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


class AuthenticationError(RemediationError):
    """The OAuth exchange failed or OAuth is not configured."""


class InvalidTransitionError(RemediationError):
    """An event was dispatched in a state that does not accept it."""

    def __init__(self, stage: str, event: str):
        super().__init__(f"Event {event} is not valid in stage '{stage}'")
        self.stage = stage
        self.event = event
