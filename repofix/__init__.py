"""
RepoFix: turn security findings into pull requests

RepoFix takes the findings of a repository scan and, one finding at a time:
- Checks that the user has authorized GitHub access
- Asks Claude to synthesize a fix for the affected file
- Lets the user review the fix
- Publishes the accepted fix as a pull request

Usage:
    from repofix import RemediationWorkflow

    # Or use CLI:
    $ repofix fix analysis.json --finding SEC-001
"""

__version__ = "0.3.0"

# Core functionality
from .config import get_settings
from .logging import get_logger

# Main workflow class for programmatic use
from .orchestrator.workflow import RemediationWorkflow

__all__ = ["RemediationWorkflow", "get_settings", "get_logger", "__version__"]
