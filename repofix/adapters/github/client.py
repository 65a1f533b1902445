"""GitHub REST API client for RepoFix."""

import base64
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

import aiohttp
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ...config import get_settings
from ...errors import ContentFetchError, GitHubAPIError
from ...logging import get_logger, log_github_call
from .credentials import CredentialStore

logger = get_logger(__name__)

USER_AGENT = "repofix/0.3"


class GitHubClient:
    """Thin aiohttp wrapper over the GitHub endpoints RepoFix needs."""

    def __init__(
        self,
        credentials: Optional[CredentialStore] = None,
        *,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the GitHub client."""
        settings = get_settings()
        self._credentials = credentials
        self._token = token
        self._base_url = (base_url or settings.github_api_url).rstrip('/')
        self._timeout = timeout or settings.http_timeout

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": USER_AGENT,
        }
        # Resolved per request so a fresh login is used without rebuilding the client
        token = self._token or (self._credentials.access_token() if self._credentials else None)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, Any]:
        """Send one request and return the status with the decoded body."""
        log_github_call(logger, method, endpoint, payload)

        async with aiohttp.ClientSession(
            headers=self._headers(),
            timeout=aiohttp.ClientTimeout(total=self._timeout)
        ) as session:
            async with session.request(
                method,
                f"{self._base_url}{endpoint}",
                json=payload,
                params=params
            ) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    data = await response.text()

                logger.debug("GitHub call completed", endpoint=endpoint, status_code=response.status)
                return response.status, data

    @retry(
        retry=retry_if_exception_type(aiohttp.ClientConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True
    )
    async def _get(self, endpoint: str, params: Optional[Dict[str, str]] = None) -> Tuple[int, Any]:
        return await self._request("GET", endpoint, params=params)

    @staticmethod
    def _error_message(data: Any, default: str) -> str:
        if isinstance(data, dict) and data.get('message'):
            return str(data['message'])
        return default

    def _expect(self, status: int, data: Any, expected: Tuple[int, ...], action: str) -> Any:
        if status not in expected:
            message = self._error_message(data, f"HTTP {status}")
            logger.error("GitHub call failed", action=action, status_code=status, error=message)
            raise GitHubAPIError(f"Failed to {action}: {message}", status)
        return data

    async def fetch_file_content(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: Optional[str] = None
    ) -> str:
        """Fetch and decode a file through the contents API."""
        endpoint = f"/repos/{owner}/{repo}/contents/{quote(path.lstrip('/'))}"
        params = {"ref": ref} if ref else None

        try:
            status, data = await self._get(endpoint, params)
        except aiohttp.ClientError as e:
            logger.error("Content fetch failed", path=path, error=str(e))
            raise ContentFetchError(f"Could not reach GitHub to fetch {path}: {e}") from e

        if status == 404:
            raise ContentFetchError(f"File not found: {path}")
        if status != 200:
            message = self._error_message(data, f"HTTP {status}")
            raise ContentFetchError(f"Failed to fetch {path}: {message}")
        if not isinstance(data, dict) or data.get('type') != 'file':
            raise ContentFetchError(f"{path} is not a file")
        if data.get('encoding') != 'base64':
            raise ContentFetchError(f"{path} is too large to fetch through the contents API")

        try:
            return base64.b64decode(data.get('content', '')).decode('utf-8')
        except (ValueError, UnicodeDecodeError) as e:
            raise ContentFetchError(f"{path} is not a UTF-8 text file") from e

    async def get_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        status, data = await self._get(f"/repos/{owner}/{repo}")
        return self._expect(status, data, (200,), f"read repository {owner}/{repo}")

    async def get_branch_sha(self, owner: str, repo: str, branch: str) -> str:
        status, data = await self._get(f"/repos/{owner}/{repo}/git/ref/heads/{quote(branch)}")
        data = self._expect(status, data, (200,), f"read branch {branch}")
        return data['object']['sha']

    async def create_branch(self, owner: str, repo: str, branch: str, sha: str) -> None:
        status, data = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/git/refs",
            {"ref": f"refs/heads/{branch}", "sha": sha}
        )
        self._expect(status, data, (201,), f"create branch {branch}")

    async def get_file_sha(self, owner: str, repo: str, path: str, ref: str) -> Optional[str]:
        """Blob SHA of ``path`` on ``ref``; ``None`` when the file does not exist there."""
        status, data = await self._get(
            f"/repos/{owner}/{repo}/contents/{quote(path.lstrip('/'))}",
            {"ref": ref}
        )
        if status == 404:
            return None
        data = self._expect(status, data, (200,), f"read {path}")
        return data.get('sha')

    async def put_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode('utf-8')).decode('ascii'),
            "branch": branch,
        }
        if sha:
            payload["sha"] = sha

        status, data = await self._request(
            "PUT",
            f"/repos/{owner}/{repo}/contents/{quote(path.lstrip('/'))}",
            payload
        )
        return self._expect(status, data, (200, 201), f"commit {path}")

    async def create_pull_request(
        self,
        owner: str,
        repo: str,
        title: str,
        head: str,
        base: str,
        body: str,
    ) -> Dict[str, Any]:
        status, data = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/pulls",
            {"title": title, "head": head, "base": base, "body": body}
        )
        return self._expect(status, data, (201,), "create pull request")

    async def get_authenticated_user(self) -> Dict[str, Any]:
        status, data = await self._get("/user")
        return self._expect(status, data, (200,), "read the authenticated user")
