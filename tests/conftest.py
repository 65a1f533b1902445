"""Shared fixtures for RepoFix tests."""

import pytest

from repofix.config import reset_settings
from repofix.models.findings import SecurityFinding
from repofix.models.fixes import Fix


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a temporary credential file and drop real API keys.

    Running from ``tmp_path`` keeps a developer's ``.env`` out of the tests.
    """
    monkeypatch.setenv("CREDENTIALS_PATH", str(tmp_path / "credentials.json"))
    for name in (
        "CLAUDE_API_KEY",
        "GITHUB_CLIENT_ID",
        "GITHUB_CLIENT_SECRET",
        "GITHUB_REDIRECT_URI",
        "FIX_TIMEOUT",
        "PUBLISH_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def make_finding():
    def _make(**overrides) -> SecurityFinding:
        values = {
            "id": "SEC-001",
            "severity": "high",
            "category": "Injection",
            "title": "SQL query built from user input",
            "description": "User input is concatenated into a SQL statement.",
            "recommendation": "Use parameterized queries.",
            "file_path": "src/db.js",
            "line_number": 12,
            "code_snippet": "db.query('SELECT * FROM users WHERE id = ' + id)",
        }
        values.update(overrides)
        return SecurityFinding(**values)

    return _make


@pytest.fixture
def finding(make_finding):
    return make_finding()


@pytest.fixture
def sample_fix():
    return Fix(
        original_content="db.query('SELECT * FROM users WHERE id = ' + id)\n",
        fixed_content="db.query('SELECT * FROM users WHERE id = ?', [id])\n",
        explanation="Switched to a parameterized query.",
        confidence=0.9,
        changes_summary=["Use placeholder instead of concatenation"],
        issue_id="SEC-001",
        file_path="src/db.js",
    )
