"""Pull request publication for RepoFix."""

import re
import time
from typing import Optional

import aiohttp

from ...config import Settings, get_settings
from ...errors import GitHubAPIError, PublishError
from ...logging import get_logger
from ...models.findings import SecurityFinding
from ...models.fixes import Fix, PublishResult, PullRequest
from .client import GitHubClient

logger = get_logger(__name__)


def sanitize_branch(name: str) -> str:
    s = re.sub(r"\s+", "-", name.strip())
    s = re.sub(r"[^A-Za-z0-9._-]", "-", s)
    s = s.strip("-.")
    return s or "issue"


def build_branch_name(prefix: str, finding: SecurityFinding, timestamp: Optional[int] = None) -> str:
    stamp = timestamp if timestamp is not None else int(time.time())
    return f"{prefix}/fix-{sanitize_branch(finding.id)}-{stamp}"


def build_commit_message(finding: SecurityFinding) -> str:
    return f"fix(security): {finding.title}"


def build_pr_body(finding: SecurityFinding, fix: Fix) -> str:
    """Markdown description for the fix pull request."""
    lines = [
        "## Security fix",
        "",
        f"**Issue:** {finding.title}",
        f"**Severity:** {finding.severity.upper()}",
        f"**Category:** {finding.category}",
        f"**Location:** `{finding.location}`",
        "",
        finding.description,
        "",
        "## What changed",
        "",
        fix.explanation,
    ]

    if fix.changes_summary:
        lines.append("")
        lines.extend(f"- {change}" for change in fix.changes_summary)

    lines += [
        "",
        f"**AI confidence:** {fix.confidence_percent}%",
        "",
        "---",
        "_Generated by RepoFix. Review the change carefully before merging._",
    ]
    return "\n".join(lines)


class GitHubPRPublisher:
    """Creates a branch, commits the fixed file and opens a pull request."""

    def __init__(self, client: GitHubClient, settings: Optional[Settings] = None):
        self.client = client
        self.settings = settings or get_settings()

    async def create_pr(
        self,
        repo_owner: str,
        repo_name: str,
        finding: SecurityFinding,
        fix: Fix
    ) -> PublishResult:
        if not fix.changed:
            raise PublishError("The generated fix does not change the file")

        try:
            repository = await self.client.get_repository(repo_owner, repo_name)
            base = repository.get('default_branch') or 'main'
            base_sha = await self.client.get_branch_sha(repo_owner, repo_name, base)

            branch = build_branch_name(self.settings.branch_prefix, finding)
            await self.client.create_branch(repo_owner, repo_name, branch, base_sha)

            file_sha = await self.client.get_file_sha(repo_owner, repo_name, fix.file_path, ref=branch)
            await self.client.put_file(
                repo_owner,
                repo_name,
                fix.file_path,
                fix.fixed_content,
                build_commit_message(finding),
                branch,
                file_sha
            )

            pr = await self.client.create_pull_request(
                repo_owner,
                repo_name,
                title=f"[Security] {finding.title}",
                head=branch,
                base=base,
                body=build_pr_body(finding, fix)
            )
        except GitHubAPIError as e:
            return PublishResult.failed(str(e))
        except aiohttp.ClientError as e:
            raise PublishError(f"Could not reach GitHub: {e}") from e

        url = pr.get('html_url') or pr.get('url')
        logger.info(
            "Pull request created",
            repo=f"{repo_owner}/{repo_name}",
            finding_id=finding.id,
            branch=branch,
            pr_url=url
        )
        return PublishResult(
            success=True,
            pr=PullRequest(url=url, number=pr.get('number'), branch=branch)
        )
