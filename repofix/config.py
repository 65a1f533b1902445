"""Configuration management for RepoFix."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """RepoFix configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="dev", description="Environment: dev, prod")

    # GitHub Configuration
    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL"
    )
    github_oauth_url: str = Field(
        default="https://github.com/login/oauth",
        description="GitHub OAuth base URL (authorize and access_token live under it)"
    )
    github_client_id: Optional[str] = Field(
        default=None,
        description="GitHub OAuth app client ID"
    )
    github_client_secret: Optional[str] = Field(
        default=None,
        description="GitHub OAuth app client secret"
    )
    github_redirect_uri: Optional[str] = Field(
        default=None,
        description="OAuth callback URL registered with the GitHub app"
    )
    github_oauth_scope: str = Field(
        default="repo",
        description="OAuth scope requested when authorizing"
    )

    # Credential store
    credentials_path: Path = Field(
        default=Path.home() / ".repofix" / "credentials.json",
        description="Where the GitHub access token is persisted"
    )

    # AI/Claude Configuration
    claude_api_key: Optional[str] = Field(
        default=None,
        description="Claude API key"
    )
    claude_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Claude model used for fix synthesis"
    )
    claude_max_tokens: int = Field(
        default=8000,
        description="Maximum tokens in a fix response"
    )

    # Remediation Configuration
    default_language: str = Field(
        default="javascript",
        description="Language label sent to the model when it cannot be inferred"
    )
    branch_prefix: str = Field(
        default="repofix",
        description="Prefix for branches created for fix pull requests"
    )

    # Timeouts (seconds)
    http_timeout: float = Field(
        default=30,
        description="Timeout for a single GitHub HTTP request"
    )
    fix_timeout: Optional[float] = Field(
        default=None,
        description="Upper bound on fix synthesis; unset means no limit"
    )
    publish_timeout: Optional[float] = Field(
        default=None,
        description="Upper bound on pull request creation; unset means no limit"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="json",
        description="Log format: json, console"
    )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance (for testing)."""
    global _settings
    _settings = None
