"""Integration tests for the GitHub adapters against a local aiohttp server."""

import base64
import json
from dataclasses import replace

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from repofix.adapters.github import CredentialStore, GitHubClient, GitHubOAuthClient, GitHubPRPublisher
from repofix.config import Settings, get_settings, reset_settings
from repofix.errors import AuthenticationError, ContentFetchError, PublishError

SOURCE = "const q = 'SELECT * FROM users WHERE id = ' + id;\n"


class FakeGitHub:
    """Just enough of the GitHub REST and OAuth endpoints to drive the adapters."""

    def __init__(self):
        self.files = {"src/db.js": SOURCE}
        self.calls = []
        self.branches = {"main": "base-sha"}
        self.reject_branch = False
        self.token_response = {"access_token": "gho_new", "token_type": "bearer", "scope": "repo"}

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/repos/{owner}/{repo}", self.repository)
        app.router.add_get("/repos/{owner}/{repo}/git/ref/heads/{branch:.+}", self.branch)
        app.router.add_post("/repos/{owner}/{repo}/git/refs", self.create_ref)
        app.router.add_get("/repos/{owner}/{repo}/contents/{path:.+}", self.get_contents)
        app.router.add_put("/repos/{owner}/{repo}/contents/{path:.+}", self.put_contents)
        app.router.add_post("/repos/{owner}/{repo}/pulls", self.create_pull)
        app.router.add_get("/user", self.user)
        app.router.add_post("/login/oauth/access_token", self.access_token)
        return app

    def _record(self, request, body=None):
        self.calls.append((request.method, request.path, body, request.headers.get("Authorization")))

    async def repository(self, request):
        self._record(request)
        return web.json_response({"full_name": "acme/shop", "default_branch": "main"})

    async def branch(self, request):
        self._record(request)
        sha = self.branches.get(request.match_info["branch"])
        if sha is None:
            return web.json_response({"message": "Not Found"}, status=404)
        return web.json_response({"object": {"sha": sha}})

    async def create_ref(self, request):
        body = await request.json()
        self._record(request, body)
        if self.reject_branch:
            return web.json_response({"message": "Reference already exists"}, status=422)
        self.branches[body["ref"].removeprefix("refs/heads/")] = body["sha"]
        return web.json_response({"ref": body["ref"]}, status=201)

    async def get_contents(self, request):
        self._record(request)
        content = self.files.get(request.match_info["path"])
        if content is None:
            return web.json_response({"message": "Not Found"}, status=404)
        return web.json_response({
            "type": "file",
            "encoding": "base64",
            "sha": "file-sha",
            "content": base64.b64encode(content.encode()).decode(),
        })

    async def put_contents(self, request):
        body = await request.json()
        self._record(request, body)
        self.files[request.match_info["path"]] = base64.b64decode(body["content"]).decode()
        return web.json_response({"commit": {"sha": "commit-sha"}}, status=200)

    async def create_pull(self, request):
        body = await request.json()
        self._record(request, body)
        return web.json_response(
            {"number": 7, "html_url": "https://github.com/acme/shop/pull/7"},
            status=201
        )

    async def user(self, request):
        self._record(request)
        return web.json_response({"login": "octocat", "name": "Mona", "id": 1})

    async def access_token(self, request):
        body = await request.json()
        self._record(request, body)
        return web.json_response(self.token_response)


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest_asyncio.fixture
async def server(fake_github):
    server = TestServer(fake_github.app())
    await server.start_server()
    yield server
    await server.close()


@pytest.fixture
def base_url(server):
    return str(server.make_url("")).rstrip("/")


@pytest.fixture
def client(base_url):
    return GitHubClient(token="gho_test", base_url=base_url)


class TestFetchFileContent:
    @pytest.mark.asyncio
    async def test_decodes_file(self, client, fake_github):
        assert await client.fetch_file_content("acme", "shop", "src/db.js") == SOURCE
        assert fake_github.calls[0][3] == "Bearer gho_test"

    @pytest.mark.asyncio
    async def test_missing_file(self, client):
        with pytest.raises(ContentFetchError, match="File not found: src/missing.js"):
            await client.fetch_file_content("acme", "shop", "src/missing.js")


class TestPublisher:
    @pytest.mark.asyncio
    async def test_opens_pull_request(self, client, fake_github, finding, sample_fix):
        result = await GitHubPRPublisher(client).create_pr("acme", "shop", finding, sample_fix)

        assert result.success is True
        assert result.pr_url == "https://github.com/acme/shop/pull/7"
        assert result.pr.number == 7
        assert result.pr.branch.startswith("repofix/fix-SEC-001-")
        assert fake_github.files["src/db.js"] == sample_fix.fixed_content

        methods = [(method, path) for method, path, _, _ in fake_github.calls]
        assert methods[0] == ("GET", "/repos/acme/shop")
        assert methods[-1] == ("POST", "/repos/acme/shop/pulls")

        put = next(body for method, _, body, _ in fake_github.calls if method == "PUT")
        assert put["sha"] == "file-sha"
        assert put["message"] == f"fix(security): {finding.title}"

        pull = fake_github.calls[-1][2]
        assert pull["title"] == f"[Security] {finding.title}"
        assert pull["base"] == "main"
        assert pull["head"] == result.pr.branch
        assert sample_fix.explanation in pull["body"]

    @pytest.mark.asyncio
    async def test_api_failure_is_reported(self, client, fake_github, finding, sample_fix):
        fake_github.reject_branch = True

        result = await GitHubPRPublisher(client).create_pr("acme", "shop", finding, sample_fix)

        assert result.success is False
        assert "Reference already exists" in result.error
        assert not any(path.endswith("/pulls") for _, path, _, _ in fake_github.calls)

    @pytest.mark.asyncio
    async def test_unchanged_fix_rejected(self, client, fake_github, finding, sample_fix):
        unchanged = replace(sample_fix, fixed_content=sample_fix.original_content)
        with pytest.raises(PublishError):
            await GitHubPRPublisher(client).create_pr("acme", "shop", finding, unchanged)
        assert fake_github.calls == []


class TestOAuth:
    @pytest.fixture
    def oauth_settings(self, base_url, monkeypatch):
        monkeypatch.setenv("GITHUB_API_URL", base_url)
        monkeypatch.setenv("GITHUB_OAUTH_URL", f"{base_url}/login/oauth")
        monkeypatch.setenv("GITHUB_CLIENT_ID", "client-123")
        monkeypatch.setenv("GITHUB_CLIENT_SECRET", "secret-456")
        reset_settings()
        return get_settings()

    @pytest.mark.asyncio
    async def test_exchange_stores_credential(self, oauth_settings, fake_github):
        store = CredentialStore(launcher=lambda url: True)
        store.initiate_oauth()
        state = json.loads(store.state_path.read_text())["state"]

        credential = await GitHubOAuthClient(store).exchange_code("code-abc", state)

        assert credential.login == "octocat"
        assert credential.access_token == "gho_new"
        assert store.is_authenticated() is True
        token_call = next(call for call in fake_github.calls if call[1] == "/login/oauth/access_token")
        assert token_call[2]["code"] == "code-abc"
        assert token_call[2]["client_secret"] == "secret-456"
        user_call = next(call for call in fake_github.calls if call[1] == "/user")
        assert user_call[3] == "Bearer gho_new"

    @pytest.mark.asyncio
    async def test_rejected_code(self, oauth_settings, fake_github):
        fake_github.token_response = {
            "error": "bad_verification_code",
            "error_description": "The code passed is incorrect or expired.",
        }
        store = CredentialStore()

        with pytest.raises(AuthenticationError, match="incorrect or expired"):
            await GitHubOAuthClient(store).exchange_code("stale")
        assert store.is_authenticated() is False

    @pytest.mark.asyncio
    async def test_empty_code(self, oauth_settings):
        with pytest.raises(AuthenticationError, match="No code provided"):
            await GitHubOAuthClient(CredentialStore()).exchange_code("")

    @pytest.mark.asyncio
    async def test_callback_without_state_rejected_while_login_pending(self, oauth_settings, fake_github):
        store = CredentialStore(launcher=lambda url: True)
        store.initiate_oauth()

        with pytest.raises(AuthenticationError, match="state missing"):
            await GitHubOAuthClient(store).exchange_code("code-abc")
        assert store.is_authenticated() is False
        assert fake_github.calls == []


@pytest.mark.asyncio
async def test_oauth_user_lookup_uses_client_settings(base_url, fake_github, tmp_path):
    settings = Settings(
        github_api_url=base_url,
        github_oauth_url=f"{base_url}/login/oauth",
        github_client_id="client-123",
        github_client_secret="secret-456",
        credentials_path=tmp_path / "custom" / "credentials.json",
    )
    assert get_settings().github_api_url != base_url

    store = CredentialStore(settings=settings)
    credential = await GitHubOAuthClient(store, settings=settings).exchange_code("code-abc")

    assert credential.login == "octocat"
    assert any(call[1] == "/user" for call in fake_github.calls)
