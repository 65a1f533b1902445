"""GitHub OAuth code exchange for RepoFix."""

from typing import Any, Dict, Optional

import aiohttp

from ...config import Settings, get_settings
from ...errors import AuthenticationError, GitHubAPIError
from ...logging import get_logger
from .client import USER_AGENT, GitHubClient
from .credentials import Credential, CredentialStore

logger = get_logger(__name__)


class GitHubOAuthClient:
    """Completes the OAuth web flow started by ``CredentialStore.initiate_oauth``."""

    def __init__(self, store: CredentialStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    async def _request_token(self, code: str) -> Dict[str, Any]:
        payload = {
            "client_id": self.settings.github_client_id,
            "client_secret": self.settings.github_client_secret,
            "code": code,
        }
        if self.settings.github_redirect_uri:
            payload["redirect_uri"] = self.settings.github_redirect_uri

        async with aiohttp.ClientSession(
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
            timeout=aiohttp.ClientTimeout(total=self.settings.http_timeout)
        ) as session:
            async with session.post(
                f"{self.settings.github_oauth_url.rstrip('/')}/access_token",
                json=payload
            ) as response:
                return await response.json(content_type=None)

    async def exchange_code(self, code: str, state: Optional[str] = None) -> Credential:
        """Trade an authorization code for a token and store it."""
        if not code:
            raise AuthenticationError("No code provided")
        if not self.settings.github_client_id or not self.settings.github_client_secret:
            raise AuthenticationError("GitHub OAuth credentials not configured")

        self.store.verify_state(state)

        try:
            token_data = await self._request_token(code)
        except (aiohttp.ClientError, ValueError) as e:
            logger.error("OAuth token exchange failed", error=str(e))
            raise AuthenticationError(f"Token exchange failed: {e}") from e

        if not isinstance(token_data, dict) or token_data.get('error') or not token_data.get('access_token'):
            data = token_data if isinstance(token_data, dict) else {}
            message = data.get('error_description') or data.get('error') or "No access token returned"
            logger.error("OAuth token exchange rejected", error=message)
            raise AuthenticationError(message)

        access_token = token_data['access_token']
        try:
            user = await GitHubClient(
                token=access_token,
                base_url=self.settings.github_api_url,
                timeout=self.settings.http_timeout
            ).get_authenticated_user()
        except (GitHubAPIError, aiohttp.ClientError) as e:
            raise AuthenticationError(f"Could not read the GitHub user: {e}") from e

        credential = Credential(
            access_token=access_token,
            token_type=token_data.get('token_type', 'bearer'),
            scope=token_data.get('scope', ''),
            login=user.get('login'),
            name=user.get('name'),
            user_id=user.get('id'),
            avatar_url=user.get('avatar_url'),
        )
        self.store.save(credential)
        return credential
