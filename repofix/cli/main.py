"""Main CLI application for RepoFix."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.syntax import Syntax
from rich.table import Table

from ..adapters.github import (
    CredentialStore,
    GitHubClient,
    GitHubOAuthClient,
    GitHubPRPublisher,
)
from ..config import get_settings
from ..errors import RemediationError
from ..logging import get_logger, setup_logging
from ..models.findings import SEVERITIES, AnalysisResult, SecurityFinding, load_analysis
from ..models.sessions import Auth, Error, Review, Success, WorkflowSession
from ..orchestrator.generator import ClaudeFixGenerator
from ..orchestrator.scoring import aggregate, score_label
from ..orchestrator.synthesizer import FixSynthesizer
from ..orchestrator.workflow import RemediationWorkflow

app = typer.Typer(
    name="repofix",
    help="Turn repository security findings into pull requests",
    add_completion=False
)

console = Console()
logger = get_logger(__name__)

SEVERITY_COLORS = {
    'critical': 'red',
    'high': 'dark_orange',
    'medium': 'yellow',
    'low': 'blue',
}


def _load(analysis_file: str) -> AnalysisResult:
    try:
        return load_analysis(analysis_file)
    except (OSError, ValueError, KeyError, TypeError) as e:
        console.print(f"[red]Could not load {analysis_file}: {e}[/red]")
        raise typer.Exit(1)


def _severity(severity: str) -> str:
    color = SEVERITY_COLORS.get(severity, 'white')
    return f"[{color}]{severity.upper()}[/{color}]"


@app.command()
def findings(
    analysis_file: str = typer.Argument(..., help="Analysis result JSON file"),
    severity: str = typer.Option(
        "all", "--severity", "-s", help="Filter: all, critical, high, medium, low"
    ),
) -> None:
    """List the findings of an analysis."""
    if severity != "all" and severity not in SEVERITIES:
        console.print(f"[red]Unknown severity: {severity}[/red]")
        raise typer.Exit(1)

    result = _load(analysis_file)
    issues = result.filter_by_severity(severity)

    table = Table(title=f"{result.full_name}: {len(issues)} findings")
    table.add_column("ID", style="cyan")
    table.add_column("Severity")
    table.add_column("Category", style="magenta")
    table.add_column("Title", style="white")
    table.add_column("Location", style="blue")

    for issue in issues:
        table.add_row(issue.id, _severity(issue.severity), issue.category, issue.title, issue.location)

    console.print(table)


@app.command()
def score(
    analysis_file: str = typer.Argument(..., help="Analysis result JSON file"),
) -> None:
    """Show the security score and severity breakdown of an analysis."""
    result = _load(analysis_file)
    summary = aggregate(result.issues)

    console.print(f"[bold blue]RepoFix[/bold blue] - {result.full_name}")
    console.print(f"Analyzed at: {result.analyzed_at.isoformat()}")
    console.print()

    table = Table(title="Security Score")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Reported score", f"{result.security_score} ({score_label(result.security_score)})")
    table.add_row("Computed score", f"{summary.score} ({summary.label})")
    table.add_row("Total issues", str(summary.total))
    for severity in SEVERITIES:
        table.add_row(_severity(severity), str(summary.count(severity)))

    console.print(table)


@app.command()
def fix(
    analysis_file: str = typer.Argument(..., help="Analysis result JSON file"),
    finding_id: Optional[str] = typer.Option(
        None, "--finding", "-f", help="Finding to fix (default: first critical/high finding with a file)"
    ),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Create the pull request without asking"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging"
    ),
) -> None:
    """Generate a fix for a finding and open it as a pull request."""
    settings = get_settings()
    if verbose:
        settings.log_level = "DEBUG"
        setup_logging()

    result = _load(analysis_file)
    finding = result.get_issue(finding_id) if finding_id else result.first_fixable()
    if finding is None:
        if finding_id:
            console.print(f"[red]No finding with ID {finding_id}[/red]")
        else:
            console.print("[yellow]No critical or high severity issues to fix[/yellow]")
        raise typer.Exit(1)

    console.print(f"[bold blue]RepoFix[/bold blue] - Generate Fix PR")
    console.print(f"Repository: {result.full_name}")
    console.print(f"Finding: {finding.id} {_severity(finding.severity)} {finding.title}")
    console.print()

    asyncio.run(_run_fix(result, finding, yes))


@app.command()
def login() -> None:
    """Authorize RepoFix to create pull requests on GitHub."""
    store = CredentialStore()
    try:
        store.initiate_oauth()
    except RemediationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print("Opened GitHub in your browser.")
    console.print("Required permission: [bold]repo[/bold]")
    console.print("After approving, run: [bold cyan]repofix auth-callback CODE --state STATE[/bold cyan]")


@app.command("auth-callback")
def auth_callback(
    code: str = typer.Argument(..., help="Code from the OAuth callback URL"),
    state: Optional[str] = typer.Option(
        None, "--state", help="State from the OAuth callback URL"
    ),
) -> None:
    """Finish the GitHub login with the code from the callback."""
    oauth = GitHubOAuthClient(CredentialStore())
    try:
        credential = asyncio.run(oauth.exchange_code(code, state))
    except RemediationError as e:
        console.print(f"[red]Login failed: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"✅ Logged in as [bold]{credential.login or 'unknown user'}[/bold]")


@app.command()
def logout() -> None:
    """Forget the stored GitHub credential."""
    CredentialStore().clear()
    console.print("Logged out of GitHub")


@app.command()
def whoami() -> None:
    """Show the GitHub account RepoFix acts as."""
    credential = CredentialStore().load()
    if credential is None:
        console.print("Not logged in. Run: [bold cyan]repofix login[/bold cyan]")
        raise typer.Exit(1)

    console.print(f"Logged in as [bold]{credential.login or 'unknown user'}[/bold]")
    console.print(f"Scope: {credential.scope or 'none'}")


def build_workflow(result: AnalysisResult, finding: SecurityFinding) -> RemediationWorkflow:
    """Wire the GitHub and Claude collaborators into a workflow."""
    store = CredentialStore()
    github = GitHubClient(store)
    return RemediationWorkflow(
        finding,
        result.repo_owner,
        result.repo_name,
        auth_gate=store,
        synthesizer=FixSynthesizer(github, ClaudeFixGenerator()),
        publisher=GitHubPRPublisher(github),
    )


async def _run_fix(result: AnalysisResult, finding: SecurityFinding, assume_yes: bool) -> None:
    workflow = build_workflow(result, finding)

    with console.status("Generating AI-powered fix..."):
        session = await workflow.open()

    if isinstance(session.state, Auth):
        console.print(Panel.fit(
            "To create pull requests, RepoFix needs access to your GitHub account.",
            title="Connect GitHub Account"
        ))
        try:
            workflow.authorize()
        except RemediationError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        workflow.close()
        console.print("Finish the login with [bold cyan]repofix auth-callback[/bold cyan], then run this command again.")
        return

    if isinstance(session.state, Review):
        _display_fix(session)
        if not assume_yes and not Confirm.ask("Create pull request?"):
            workflow.cancel()
            console.print("Cancelled; nothing was pushed.")
            return

        with console.status("Creating branch and opening pull request..."):
            session = await workflow.confirm()

    if isinstance(session.state, Success):
        console.print(Panel.fit(
            f"Pull request created: [link={session.pr_url}]{session.pr_url}[/link]",
            title="✅ Success",
            style="green"
        ))
        workflow.close()
        return

    if isinstance(session.state, Error):
        console.print(Panel.fit(session.error, title="Something went wrong", style="red"))
        workflow.acknowledge()
        raise typer.Exit(1)


def _display_fix(session: WorkflowSession) -> None:
    """Display a fix for review."""
    fix = session.fix
    finding = session.finding

    console.print(Panel.fit(
        f"AI Confidence: [bold]{fix.confidence_percent}%[/bold]",
        title="Review Before Creating PR",
        style="blue"
    ))

    console.print(f"[bold]Issue Being Fixed[/bold]  {_severity(finding.severity)} {finding.category}")
    console.print(finding.title)
    console.print(f"[dim]{finding.description}[/dim]")
    console.print()

    console.print("[bold]Explanation[/bold]")
    console.print(fix.explanation)
    console.print()

    if fix.changes_summary:
        console.print("[bold]Changes Made[/bold]")
        for change in fix.changes_summary:
            console.print(f"  ✓ {change}")
        console.print()

    console.print(f"[bold]Fixed Code Preview[/bold] ({fix.file_path})")
    lexer = Syntax.guess_lexer(fix.file_path, code=fix.fixed_content)
    console.print(Syntax(fix.fixed_content, lexer, line_numbers=True))


if __name__ == "__main__":
    app()
