"""Release runbook for develop/master git-flow projects."""

__version__ = "0.1.0"
