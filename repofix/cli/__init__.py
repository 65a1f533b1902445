"""Command line interface for RepoFix."""
