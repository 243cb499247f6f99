"""Process exit codes.

A hosting task runner only sees the exit status of ``runbook``; these values
are the contract for it and should remain stable.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: User error (missing token, wrong branch, dirty tree, bad version)
    - 2: Environment error (git command failed, bad config file)
    - 4: Network error (host degraded, publish rejected or unreachable)
    - 5: I/O error (package metadata unreadable or unwritable)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
