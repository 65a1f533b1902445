"""GitHub adapters: credentials, REST client, OAuth and pull request publishing."""

from .client import GitHubClient
from .credentials import Credential, CredentialStore
from .oauth import GitHubOAuthClient
from .publisher import GitHubPRPublisher

__all__ = [
    "Credential",
    "CredentialStore",
    "GitHubClient",
    "GitHubOAuthClient",
    "GitHubPRPublisher",
]
