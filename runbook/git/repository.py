"""Git-backed repository gateway.

Usage:
    repo = Repository(Path("/path/to/project"))

    match repo.current_branch():
        case Ok(branch):
            print(f"Branch: {branch}")
        case Err(e):
            print(f"Error: {e.message}")

    match repo.merge("develop", ConflictPolicy.THEIRS):
        case Ok(_):
            print("merged")
        case Err(e):
            print(f"Merge failed: {e.message}")
"""

from __future__ import annotations

from pathlib import Path

from runbook.core.result import Err, Ok, Result
from runbook.platform.process import run as run_process
from runbook.release.errors import RepositoryOperationFailed
from runbook.release.gateways import ConflictPolicy, RepoCommit

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

# Field / record separators for `git log --format`.
_FS = "\x1f"
_RS = "\x1e"

__all__ = ["Repository"]


class Repository:
    """Git operations on a single working tree.

    Every method returns a Result; a non-zero git exit becomes
    ``RepositoryOperationFailed`` carrying git's own message.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def current_branch(self) -> Result[str, RepositoryOperationFailed]:
        """Current branch name; ``HEAD`` when detached."""
        return self._git("rev-parse", ["rev-parse", "--abbrev-ref", "HEAD"]).map(str.strip)

    def status(self) -> Result[list[str], RepositoryOperationFailed]:
        return self._git("status", ["status", "--porcelain"]).map(lambda out: out.split("\n"))

    def checkout(self, branch: str) -> Result[None, RepositoryOperationFailed]:
        return self._git("checkout", ["checkout", branch]).map(_discard)

    def pull(self, remote: str, branch: str) -> Result[None, RepositoryOperationFailed]:
        return self._git("pull", ["pull", remote, branch]).map(_discard)

    def merge(
        self, branch: str, conflict_policy: ConflictPolicy = ConflictPolicy.DEFAULT
    ) -> Result[None, RepositoryOperationFailed]:
        args = ["merge", "--no-edit"]
        if conflict_policy is not ConflictPolicy.DEFAULT:
            args += ["-X", conflict_policy.value]
        return self._git("merge", [*args, branch]).map(_discard)

    def push(
        self, remote: str, branch: str, *, tags: bool = False
    ) -> Result[None, RepositoryOperationFailed]:
        args = ["push", remote, branch]
        if tags:
            args.append("--tags")
        return self._git("push", args).map(_discard)

    def tag(self, name: str, message: str) -> Result[None, RepositoryOperationFailed]:
        return self._git("tag", ["tag", "-a", name, "-m", message]).map(_discard)

    def commit(self, message: str) -> Result[None, RepositoryOperationFailed]:
        """Stage everything in the working tree, then commit."""
        staged = self._git("add", ["add", "-A"])
        if isinstance(staged, Err):
            return staged
        return self._git("commit", ["commit", "-m", message]).map(_discard)

    def tags(self) -> Result[list[str], RepositoryOperationFailed]:
        result = self._git("tag", ["tag", "--list", "--sort=-v:refname"])
        return result.map(lambda out: [ln.strip() for ln in out.splitlines() if ln.strip()])

    def log(
        self, since: str | None, until: str
    ) -> Result[list[RepoCommit], RepositoryOperationFailed]:
        """Commits reachable from ``until`` but not ``since``, merges included."""
        rev_range = f"{since}..{until}" if since else until
        result = self._git("log", ["log", f"--format=%H{_FS}%s{_FS}%b{_RS}", rev_range])
        return result.map(_parse_log)

    def remote_url(self, remote: str) -> Result[str, RepositoryOperationFailed]:
        return self._git("remote", ["remote", "get-url", remote]).map(str.strip)

    def _git(self, operation: str, args: list[str]) -> Result[str, RepositoryOperationFailed]:
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS
            if operation in {"fetch", "pull", "push"}
            else _GIT_TIMEOUT_SECONDS
        )
        result = run_process(["git", *args], cwd=self.path, timeout=timeout)
        if isinstance(result, Err):
            return Err(RepositoryOperationFailed(operation=operation, message=result.error.detail))
        return Ok(result.value)


def _discard(_: str) -> None:
    return None


def _parse_log(output: str) -> list[RepoCommit]:
    commits: list[RepoCommit] = []
    for record in output.split(_RS):
        record = record.strip("\n")
        if not record.strip():
            continue
        sha, _, rest = record.partition(_FS)
        subject, _, body = rest.partition(_FS)
        commits.append(RepoCommit(sha=sha.strip(), subject=subject, body=body.strip()))
    return commits
