"""Adapters for external systems integration."""

from .github import (
    Credential,
    CredentialStore,
    GitHubClient,
    GitHubOAuthClient,
    GitHubPRPublisher,
)

__all__ = [
    "Credential",
    "CredentialStore",
    "GitHubClient",
    "GitHubOAuthClient",
    "GitHubPRPublisher",
]
