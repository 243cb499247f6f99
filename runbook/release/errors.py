from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class MissingCredential:
    variable: str = "GITHUB_TOKEN"


@dataclass(frozen=True, slots=True)
class InvalidVersion:
    text: str


@dataclass(frozen=True, slots=True)
class WrongBranch:
    expected: str
    actual: str


@dataclass(frozen=True, slots=True)
class DirtyWorkingTree:
    # Trimmed `git status --porcelain` lines, e.g. "M file.txt".
    entries: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class RepositoryOperationFailed:
    operation: str
    message: str


@dataclass(frozen=True, slots=True)
class MetadataIOError:
    path: Path
    message: str


@dataclass(frozen=True, slots=True)
class HostStatusDegraded:
    status: str
    detail: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseRejected:
    reasons: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ReleasePublishTransportError:
    message: str


@dataclass(frozen=True, slots=True)
class UnknownStep:
    name: str
    available: tuple[str, ...]


ReleaseError = (
    MissingCredential
    | InvalidVersion
    | WrongBranch
    | DirtyWorkingTree
    | RepositoryOperationFailed
    | MetadataIOError
    | HostStatusDegraded
    | ReleaseRejected
    | ReleasePublishTransportError
    | UnknownStep
)


@dataclass(frozen=True, slots=True)
class StepFailed:
    """A step-level error tagged with the step that produced it."""

    step: str
    error: ReleaseError


RunError = StepFailed | MissingCredential | UnknownStep


def describe_error(error: ReleaseError | StepFailed) -> str:
    """One-paragraph operator-facing message for any release error."""
    match error:
        case StepFailed(step=step, error=inner):
            return f"step '{step}' failed: {describe_error(inner)}"
        case MissingCredential(variable=variable):
            return f"no GitHub token defined (pass --github-token or set {variable})"
        case InvalidVersion(text=text):
            return f"invalid semantic version: {text!r}"
        case WrongBranch(expected=expected, actual=actual):
            return f"not on {expected} (current branch: {actual or 'detached HEAD'})"
        case DirtyWorkingTree(entries=entries):
            return "working tree not clean: " + ", ".join(entries)
        case RepositoryOperationFailed(operation=operation, message=message):
            return f"git {operation} failed: {message}"
        case MetadataIOError(path=path, message=message):
            return f"package metadata error ({path}): {message}"
        case HostStatusDegraded(status=status, detail=detail):
            suffix = f" ({detail})" if detail else ""
            return f"GitHub is not available: status {status!r}{suffix}"
        case ReleaseRejected(reasons=reasons):
            lines = "\n".join(f"  - {reason}" for reason in reasons)
            return f"GitHub release rejected ({len(reasons)} reason(s)):\n{lines}"
        case ReleasePublishTransportError(message=message):
            return f"GitHub release could not be sent: {message}"
        case UnknownStep(name=name, available=available):
            return f"unknown step: {name} (available: {', '.join(available)})"
    return str(error)
