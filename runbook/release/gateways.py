"""Capability interfaces the orchestrator consumes.

The orchestrator never shells out or talks HTTP itself: it calls a
``RepositoryGateway`` (git), a ``MetadataStore`` (package.json) and a
``ReleaseHostGateway`` (GitHub). Production implementations live in
``runbook.git.repository``, ``runbook.release.metadata`` and
``runbook.release.github``; tests substitute in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Literal, Protocol

from runbook.core.result import Result
from runbook.core.structured import StrDict
from runbook.release.errors import MetadataIOError, RepositoryOperationFailed

__all__ = [
    "ConflictPolicy",
    "HostTransportError",
    "MetadataStore",
    "PackageMetadata",
    "PublishItem",
    "PublishSummary",
    "ReleaseDraft",
    "ReleaseHostGateway",
    "RepoCommit",
    "RepositoryGateway",
    "ServiceStatus",
]


class ConflictPolicy(Enum):
    """How merge resolves conflicting hunks."""

    DEFAULT = "default"
    THEIRS = "theirs"


@dataclass(frozen=True, slots=True)
class RepoCommit:
    sha: str
    subject: str
    body: str = ""


@dataclass(frozen=True, slots=True)
class PackageMetadata:
    """The whole package.json document; only ``version`` is interpreted."""

    data: StrDict

    @property
    def version(self) -> str | None:
        value = self.data.get("version")
        return value if isinstance(value, str) else None

    def with_version(self, version: str) -> PackageMetadata:
        return replace(self, data={**self.data, "version": version})


@dataclass(frozen=True, slots=True)
class ServiceStatus:
    status: str
    detail: str | None = None

    @property
    def is_good(self) -> bool:
        return self.status == "good"


@dataclass(frozen=True, slots=True)
class ReleaseDraft:
    tag: str
    name: str
    body: str


PublishState = Literal["fulfilled", "rejected"]


@dataclass(frozen=True, slots=True)
class PublishItem:
    tag: str
    state: PublishState
    url: str | None = None
    reasons: tuple[str, ...] = ()

    @property
    def rejected(self) -> bool:
        return self.state == "rejected"


@dataclass(frozen=True, slots=True)
class PublishSummary:
    items: tuple[PublishItem, ...]

    @property
    def rejections(self) -> tuple[PublishItem, ...]:
        return tuple(item for item in self.items if item.rejected)

    @property
    def rejection_reasons(self) -> tuple[str, ...]:
        """Every reason of every rejected item, prefixed with its tag."""
        return tuple(
            f"{item.tag}: {reason}" for item in self.rejections for reason in item.reasons
        )


@dataclass(frozen=True, slots=True)
class HostTransportError:
    """The host could not be reached or answered with garbage."""

    message: str


class RepositoryGateway(Protocol):
    def current_branch(self) -> Result[str, RepositoryOperationFailed]: ...

    def status(self) -> Result[list[str], RepositoryOperationFailed]:
        """Raw `git status --porcelain` lines (may contain blanks)."""
        ...

    def checkout(self, branch: str) -> Result[None, RepositoryOperationFailed]: ...

    def pull(self, remote: str, branch: str) -> Result[None, RepositoryOperationFailed]: ...

    def merge(
        self, branch: str, conflict_policy: ConflictPolicy = ConflictPolicy.DEFAULT
    ) -> Result[None, RepositoryOperationFailed]: ...

    def push(
        self, remote: str, branch: str, *, tags: bool = False
    ) -> Result[None, RepositoryOperationFailed]: ...

    def tag(self, name: str, message: str) -> Result[None, RepositoryOperationFailed]: ...

    def commit(self, message: str) -> Result[None, RepositoryOperationFailed]: ...

    def tags(self) -> Result[list[str], RepositoryOperationFailed]:
        """Tags, newest version first."""
        ...

    def log(
        self, since: str | None, until: str
    ) -> Result[list[RepoCommit], RepositoryOperationFailed]: ...


class MetadataStore(Protocol):
    def read(self) -> Result[PackageMetadata, MetadataIOError]: ...

    def write(self, metadata: PackageMetadata) -> Result[None, MetadataIOError]: ...


class ReleaseHostGateway(Protocol):
    def check_service_status(self) -> Result[ServiceStatus, HostTransportError]: ...

    def publish_release(
        self, drafts: tuple[ReleaseDraft, ...]
    ) -> Result[PublishSummary, HostTransportError]: ...
