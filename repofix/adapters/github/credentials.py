"""GitHub credential store for RepoFix."""

import json
import os
import secrets
import webbrowser
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import urlencode

from dataclasses_json import DataClassJsonMixin, config

from ...config import Settings, get_settings
from ...errors import AuthenticationError
from ...logging import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class Credential(DataClassJsonMixin):
    """A GitHub access token and the user it belongs to."""

    access_token: str
    token_type: str = field(default='bearer')
    scope: str = field(default='')
    login: Optional[str] = field(default=None)
    name: Optional[str] = field(default=None)
    user_id: Optional[int] = field(default=None)
    avatar_url: Optional[str] = field(default=None)
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
        metadata=config(encoder=datetime.isoformat, decoder=datetime.fromisoformat)
    )

    def __post_init__(self) -> None:
        if not self.access_token:
            raise ValueError("Access token cannot be empty")


class CredentialStore:
    """File-backed holder of the user's GitHub token.

    Every check reads the file again, so a login completed by another
    process is picked up the next time a workflow opens.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        *,
        settings: Optional[Settings] = None,
        launcher: Callable[[str], bool] = webbrowser.open,
    ):
        self.settings = settings or get_settings()
        self.path = Path(path or self.settings.credentials_path)
        self._launcher = launcher

    @property
    def state_path(self) -> Path:
        return self.path.with_name(self.path.stem + ".state")

    def load(self) -> Optional[Credential]:
        """Read the stored credential, if any."""
        try:
            raw = self.path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None

        try:
            return Credential.from_json(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable credential file", path=str(self.path), error=str(e))
            return None

    def is_authenticated(self) -> bool:
        credential = self.load()
        return credential is not None and bool(credential.access_token)

    def access_token(self) -> Optional[str]:
        credential = self.load()
        return credential.access_token if credential else None

    def save(self, credential: Credential) -> None:
        """Persist a credential readable only by the current user."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(credential.to_json(), encoding='utf-8')
        os.chmod(self.path, 0o600)
        logger.info("GitHub credential stored", login=credential.login, scope=credential.scope)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        self.state_path.unlink(missing_ok=True)
        logger.info("GitHub credential removed")

    def authorization_url(self, state: str) -> str:
        if not self.settings.github_client_id:
            raise AuthenticationError("GitHub OAuth credentials not configured")

        params = {
            'client_id': self.settings.github_client_id,
            'scope': self.settings.github_oauth_scope,
            'state': state,
        }
        if self.settings.github_redirect_uri:
            params['redirect_uri'] = self.settings.github_redirect_uri

        return f"{self.settings.github_oauth_url.rstrip('/')}/authorize?{urlencode(params)}"

    def initiate_oauth(self) -> None:
        """Open GitHub's authorization page; the callback completes the login."""
        state = secrets.token_urlsafe(16)
        url = self.authorization_url(state)

        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        self.state_path.write_text(json.dumps({'state': state}), encoding='utf-8')
        os.chmod(self.state_path, 0o600)

        logger.info("Starting GitHub authorization", scope=self.settings.github_oauth_scope)
        self._launcher(url)

    def verify_state(self, state: Optional[str]) -> None:
        """Check a callback's ``state`` against the one issued by ``initiate_oauth``.

        A callback without ``state`` is only accepted when no login is pending.
        """
        if state is None:
            if self.state_path.exists():
                raise AuthenticationError("OAuth state missing; pass the state from the callback URL")
            return
        try:
            expected = json.loads(self.state_path.read_text(encoding='utf-8')).get('state')
        except (FileNotFoundError, ValueError):
            expected = None

        if not expected or not secrets.compare_digest(expected, state):
            raise AuthenticationError("OAuth state mismatch; start the login again")
        self.state_path.unlink(missing_ok=True)
