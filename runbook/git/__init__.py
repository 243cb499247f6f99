"""Git operations module.

Usage:
    from runbook.git import Repository

    repo = Repository(Path("/path/to/project"))
    branch = repo.current_branch()
    if branch.is_ok():
        print(f"Branch: {branch.unwrap()}")
"""

from runbook.git.repository import Repository

__all__ = ["Repository"]
