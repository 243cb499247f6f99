"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from runbook.core.errors import ErrorCode
from runbook.output.console import Style
from runbook.release.errors import (
    DirtyWorkingTree,
    HostStatusDegraded,
    InvalidVersion,
    MetadataIOError,
    MissingCredential,
    ReleaseError,
    ReleasePublishTransportError,
    ReleaseRejected,
    RepositoryOperationFailed,
    StepFailed,
    UnknownStep,
    WrongBranch,
    describe_error,
)

if TYPE_CHECKING:
    from runbook.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError | StepFailed, console: ConsoleProtocol) -> None:
    """Print the error plus a hint when the operator has an obvious next move."""
    console.error(describe_error(error))

    inner = error.error if isinstance(error, StepFailed) else error
    match inner:
        case MissingCredential():
            console.print("hint: export GITHUB_TOKEN=<token>", Style.DIM)
        case DirtyWorkingTree():
            console.print("hint: commit or stash local changes, then retry", Style.DIM)
        case WrongBranch(expected=expected):
            console.print(f"hint: git checkout {expected}", Style.DIM)
        case _:
            pass


def release_error_exit_code(error: ReleaseError | StepFailed) -> int:
    inner = error.error if isinstance(error, StepFailed) else error
    match inner:
        case MissingCredential() | InvalidVersion() | WrongBranch() | DirtyWorkingTree():
            return int(ErrorCode.USER_ERROR)
        case UnknownStep():
            return int(ErrorCode.USER_ERROR)
        case RepositoryOperationFailed():
            return int(ErrorCode.ENV_ERROR)
        case HostStatusDegraded() | ReleaseRejected() | ReleasePublishTransportError():
            return int(ErrorCode.NETWORK_ERROR)
        case MetadataIOError():
            return int(ErrorCode.IO_ERROR)
    return int(ErrorCode.USER_ERROR)
