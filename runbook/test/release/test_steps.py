from __future__ import annotations

from pathlib import Path

from runbook.core.config import BumpType, ReleaseConfig
from runbook.core.result import Err, Ok
from runbook.output.console import MockConsole
from runbook.release.errors import (
    DirtyWorkingTree,
    HostStatusDegraded,
    InvalidVersion,
    ReleasePublishTransportError,
    ReleaseRejected,
    RepositoryOperationFailed,
    WrongBranch,
    describe_error,
)
from runbook.release.gateways import (
    ConflictPolicy,
    HostTransportError,
    PublishItem,
    PublishSummary,
    RepoCommit,
    ServiceStatus,
)
from runbook.release.steps import (
    DEFAULT_DISABLED_STEPS,
    RELEASE_SEQUENCE,
    ReleaseSteps,
    build_registry,
)
from runbook.test.release._fakes import FakeHost, FakeMetadataStore, FakeRepository


def _make(
    *,
    repo: FakeRepository | None = None,
    metadata: FakeMetadataStore | None = None,
    host: FakeHost | None = None,
    **config: object,
) -> tuple[ReleaseSteps, FakeRepository, FakeMetadataStore, FakeHost, MockConsole]:
    repo = repo or FakeRepository()
    metadata = metadata or FakeMetadataStore()
    host = host or FakeHost()
    console = MockConsole()
    cfg = ReleaseConfig(
        project_root=Path("/project"), host_token="secret", **config  # type: ignore[arg-type]
    )
    steps = ReleaseSteps(config=cfg, repo=repo, metadata=metadata, host=host, console=console)
    return steps, repo, metadata, host, console


# =============================================================================
# Registry
# =============================================================================


def test_registry_covers_release_sequence() -> None:
    steps, *_ = _make()
    registry = build_registry(steps)
    assert registry.names == RELEASE_SEQUENCE


def test_default_disabled_steps_are_the_publishing_tail() -> None:
    assert DEFAULT_DISABLED_STEPS == {
        "commit-release-changes",
        "create-new-tag",
        "push-master",
        "github-release",
        "switch-to-develop",
        "bump-develop",
        "commit-bump-changes",
        "push-develop",
    }


# =============================================================================
# ensure-clean
# =============================================================================


def test_ensure_clean_ignores_blank_lines() -> None:
    steps, *_ = _make(repo=FakeRepository(status_lines="\n \n".split("\n")))
    assert steps.ensure_clean() == Ok(None)


def test_ensure_clean_reports_each_dirty_path() -> None:
    steps, *_ = _make(repo=FakeRepository(status_lines=" M file.txt\n".split("\n")))

    result = steps.ensure_clean()

    assert isinstance(result, Err)
    assert result.error == DirtyWorkingTree(entries=("M file.txt",))
    assert len(result.error.entries) == 1


def test_ensure_clean_propagates_git_failure() -> None:
    steps, *_ = _make(repo=FakeRepository(failures={"status": "not a git repository"}))
    result = steps.ensure_clean()
    assert result == Err(RepositoryOperationFailed("status", "not a git repository"))


# =============================================================================
# check-host-status
# =============================================================================


def test_check_host_status_good() -> None:
    steps, *_ = _make()
    assert steps.check_host_status() == Ok(None)


def test_check_host_status_degraded() -> None:
    host = FakeHost(status=Ok(ServiceStatus(status="minor", detail="Partial outage")))
    steps, *_ = _make(host=host)

    result = steps.check_host_status()

    assert result == Err(HostStatusDegraded(status="minor", detail="Partial outage"))


def test_check_host_status_unreachable() -> None:
    host = FakeHost(status=Err(HostTransportError(message="connection refused")))
    steps, *_ = _make(host=host)

    result = steps.check_host_status()

    assert result == Err(HostStatusDegraded(status="unreachable", detail="connection refused"))


# =============================================================================
# Branch sync
# =============================================================================


def test_merge_develop_prefers_incoming_changes() -> None:
    steps, repo, *_ = _make()
    assert steps.merge_develop() == Ok(None)
    assert repo.calls == [("merge", "develop", ConflictPolicy.THEIRS)]


def test_pull_uses_configured_remote() -> None:
    steps, repo, *_ = _make(remote="upstream")
    assert steps.pull("master")() == Ok(None)
    assert repo.calls == [("pull", "upstream", "master")]


# =============================================================================
# strip-prerelease-version
# =============================================================================


def test_strip_prerelease_version_on_master() -> None:
    steps, _, metadata, _, console = _make()

    assert steps.strip_prerelease_version() == Ok(None)

    assert metadata.version == "1.2.0"
    assert metadata.data["name"] == "demo"
    assert console.find("strip version: 1.2.0-prerelease -> 1.2.0")


def test_strip_prerelease_version_requires_master() -> None:
    metadata = FakeMetadataStore()
    before = dict(metadata.data)
    steps, *_ = _make(repo=FakeRepository(branch="develop"), metadata=metadata)

    result = steps.strip_prerelease_version()

    assert result == Err(WrongBranch(expected="master", actual="develop"))
    assert metadata.writes == []
    assert metadata.data == before


def test_strip_prerelease_version_honours_configured_master() -> None:
    steps, *_ = _make(repo=FakeRepository(branch="main"), master_branch="main")
    assert steps.strip_prerelease_version() == Ok(None)


def test_strip_prerelease_version_rejects_invalid_version() -> None:
    metadata = FakeMetadataStore(data={"version": "banana"})
    steps, *_ = _make(metadata=metadata)

    result = steps.strip_prerelease_version()

    assert result == Err(InvalidVersion(text="banana"))
    assert metadata.writes == []


def test_strip_prerelease_version_oversized_version_is_invalid() -> None:
    text = "2" * 5000 + ".0.0-prerelease"
    metadata = FakeMetadataStore(data={"version": text})
    steps, *_ = _make(metadata=metadata)

    assert steps.strip_prerelease_version() == Err(InvalidVersion(text=text))
    assert metadata.writes == []


def test_strip_prerelease_version_missing_version_field() -> None:
    steps, *_ = _make(metadata=FakeMetadataStore(data={"name": "demo"}))
    result = steps.strip_prerelease_version()
    assert isinstance(result, Err)
    assert isinstance(result.error, InvalidVersion)


# =============================================================================
# bump-develop
# =============================================================================


def test_bump_develop_uses_configured_bump_type() -> None:
    metadata = FakeMetadataStore(data={"version": "1.2.0"})
    steps, *_ = _make(metadata=metadata, bump_type=BumpType.PATCH)

    assert steps.bump_develop() == Ok(None)
    assert metadata.version == "1.2.1-prerelease"


def test_bump_develop_defaults_to_minor() -> None:
    metadata = FakeMetadataStore(data={"version": "1.2.0"})
    steps, *_ = _make(metadata=metadata)

    assert steps.bump_develop() == Ok(None)
    assert metadata.version == "1.3.0-prerelease"


def test_bump_develop_surfaces_write_failure() -> None:
    metadata = FakeMetadataStore(fail_write=True)
    steps, *_ = _make(metadata=metadata)
    result = steps.bump_develop()
    assert isinstance(result, Err)


# =============================================================================
# Commit / tag
# =============================================================================


def test_commit_and_tag_use_current_version() -> None:
    metadata = FakeMetadataStore(data={"version": "1.2.0"})
    steps, repo, *_ = _make(metadata=metadata)

    assert steps.commit_changes("release")() == Ok(None)
    assert steps.create_new_tag() == Ok(None)

    assert repo.calls == [
        ("commit", "[release] set version number to 1.2.0"),
        ("tag", "v1.2.0", "Created Tag for version: 1.2.0"),
    ]


# =============================================================================
# github-release
# =============================================================================


def _tagged_repo() -> FakeRepository:
    return FakeRepository(
        tag_names=["v1.2.0", "v1.1.0", "not-a-version"],
        commits={
            "v1.2.0": [
                RepoCommit(sha="a" * 40, subject="feat(cli): add bump command"),
                RepoCommit(sha="b" * 40, subject="chore: tidy"),
            ]
        },
    )


def test_github_release_publishes_latest_tag_notes() -> None:
    steps, repo, _, host, _ = _make(repo=_tagged_repo())

    assert steps.github_release() == Ok(None)

    assert ("log", "v1.1.0", "v1.2.0") in repo.calls
    (drafts,) = host.published
    assert [d.tag for d in drafts] == ["v1.2.0"]
    assert "add bump command" in drafts[0].body
    assert "tidy" not in drafts[0].body


def test_github_release_release_count() -> None:
    steps, repo, _, host, _ = _make(repo=_tagged_repo(), release_count=2)

    assert steps.github_release() == Ok(None)

    assert ("log", None, "v1.1.0") in repo.calls
    assert [d.tag for d in host.published[0]] == ["v1.2.0", "v1.1.0"]


def test_github_release_rejection_among_successes_fails() -> None:
    summary = PublishSummary(
        items=(
            PublishItem(tag="v1.0.0", state="fulfilled"),
            PublishItem(tag="v1.1.0", state="fulfilled"),
            PublishItem(tag="v1.2.0", state="rejected", reasons=("tag_name already_exists",)),
            PublishItem(tag="v1.3.0", state="fulfilled"),
        )
    )
    steps, *_ = _make(repo=_tagged_repo(), host=FakeHost(publish=Ok(summary)))

    result = steps.github_release()

    assert isinstance(result, Err)
    assert isinstance(result.error, ReleaseRejected)
    assert "tag_name already_exists" in describe_error(result.error)


def test_github_release_lists_every_rejection_reason() -> None:
    summary = PublishSummary(
        items=(
            PublishItem(tag="v1.2.0", state="rejected", reasons=("first", "second")),
            PublishItem(tag="v1.3.0", state="rejected", reasons=("third",)),
        )
    )
    steps, _, _, _, console = _make(repo=_tagged_repo(), host=FakeHost(publish=Ok(summary)))

    result = steps.github_release()

    assert result == Err(
        ReleaseRejected(reasons=("v1.2.0: first", "v1.2.0: second", "v1.3.0: third"))
    )
    assert len(console.find("v1.2.0:")) == 2


def test_github_release_transport_error_is_distinct() -> None:
    host = FakeHost(publish=Err(HostTransportError(message="timed out")))
    steps, *_ = _make(repo=_tagged_repo(), host=host)

    result = steps.github_release()

    assert result == Err(ReleasePublishTransportError(message="timed out"))
    assert "could not be sent" in describe_error(result.error)


def test_github_release_without_tags() -> None:
    steps, _, _, host, _ = _make()
    result = steps.github_release()
    assert isinstance(result, Err)
    assert isinstance(result.error, RepositoryOperationFailed)
    assert host.published == []
