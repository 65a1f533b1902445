"""Unit tests for the GitHub credential store."""

import stat
from urllib.parse import parse_qs, urlparse

import pytest

from repofix.adapters.github.credentials import Credential, CredentialStore
from repofix.config import Settings
from repofix.errors import AuthenticationError


@pytest.fixture
def settings(tmp_path):
    return Settings(
        credentials_path=tmp_path / "creds" / "credentials.json",
        github_client_id="client-123",
        github_redirect_uri="http://localhost:8000/callback",
    )


@pytest.fixture
def launched():
    return []


@pytest.fixture
def store(settings, launched):
    return CredentialStore(settings=settings, launcher=launched.append)


def test_no_file_means_not_authenticated(store):
    assert store.is_authenticated() is False
    assert store.load() is None


def test_save_and_load(store):
    store.save(Credential(access_token="gho_abc", scope="repo", login="octocat"))

    assert store.is_authenticated() is True
    credential = store.load()
    assert credential.login == "octocat"
    assert credential.access_token == "gho_abc"
    assert stat.S_IMODE(store.path.stat().st_mode) == 0o600


def test_every_check_reads_the_file(store):
    store.save(Credential(access_token="gho_abc"))
    assert store.is_authenticated() is True

    store.path.unlink()
    assert store.is_authenticated() is False


def test_corrupt_file_is_not_a_credential(store):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text("{not json")
    assert store.is_authenticated() is False


def test_clear(store):
    store.save(Credential(access_token="gho_abc"))
    store.clear()
    assert store.is_authenticated() is False
    store.clear()


def test_initiate_oauth_launches_authorize_url(store, launched):
    store.initiate_oauth()

    assert len(launched) == 1
    url = urlparse(launched[0])
    query = parse_qs(url.query)
    assert url.path.endswith("/authorize")
    assert query["client_id"] == ["client-123"]
    assert query["scope"] == ["repo"]
    assert query["redirect_uri"] == ["http://localhost:8000/callback"]

    state = query["state"][0]
    store.verify_state(state)
    assert not store.state_path.exists()


def test_state_mismatch_rejected(store):
    store.initiate_oauth()
    with pytest.raises(AuthenticationError, match="state mismatch"):
        store.verify_state("forged")


def test_initiate_oauth_requires_client_id(tmp_path, launched):
    store = CredentialStore(
        settings=Settings(credentials_path=tmp_path / "credentials.json"),
        launcher=launched.append,
    )
    with pytest.raises(AuthenticationError, match="not configured"):
        store.initiate_oauth()
    assert launched == []


def test_missing_state_rejected_while_login_pending(store):
    store.initiate_oauth()
    with pytest.raises(AuthenticationError, match="state missing"):
        store.verify_state(None)
    assert store.state_path.exists()


def test_missing_state_allowed_without_pending_login(store):
    store.verify_state(None)
