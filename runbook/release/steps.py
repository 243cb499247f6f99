"""The release runbook's named steps.

Each step is a zero-argument callable returning ``Result[None, ReleaseError]``;
``build_registry`` binds them to their names. ``RELEASE_SEQUENCE`` is the full
release order. The steps in ``DEFAULT_DISABLED_STEPS`` are registered but
skipped unless an operator enables them.
"""

from __future__ import annotations

from runbook.core.config import ReleaseConfig
from runbook.core.result import Err, Ok, Result
from runbook.output.console import ConsoleProtocol, Style
from runbook.release.errors import (
    DirtyWorkingTree,
    HostStatusDegraded,
    InvalidVersion,
    ReleaseError,
    ReleasePublishTransportError,
    ReleaseRejected,
    RepositoryOperationFailed,
    WrongBranch,
)
from runbook.release.gateways import (
    ConflictPolicy,
    MetadataStore,
    PackageMetadata,
    ReleaseDraft,
    ReleaseHostGateway,
    RepositoryGateway,
)
from runbook.release.notes import build_draft
from runbook.release.sequence import StepAction, StepRegistry
from runbook.release.version import Version, base_version, next_prerelease, parse_version

CHECK_HOST_STATUS = "check-host-status"
ENSURE_CLEAN = "ensure-clean"
CHECKOUT_DEVELOP = "checkout-develop"
PULL_DEVELOP = "pull-develop"
CHECKOUT_MASTER = "checkout-master"
PULL_MASTER = "pull-master"
MERGE_DEVELOP = "merge-develop"
STRIP_PRERELEASE_VERSION = "strip-prerelease-version"
COMMIT_RELEASE_CHANGES = "commit-release-changes"
CREATE_NEW_TAG = "create-new-tag"
PUSH_MASTER = "push-master"
GITHUB_RELEASE = "github-release"
SWITCH_TO_DEVELOP = "switch-to-develop"
BUMP_DEVELOP = "bump-develop"
COMMIT_BUMP_CHANGES = "commit-bump-changes"
PUSH_DEVELOP = "push-develop"

RELEASE_SEQUENCE: tuple[str, ...] = (
    CHECK_HOST_STATUS,
    ENSURE_CLEAN,
    CHECKOUT_DEVELOP,
    PULL_DEVELOP,
    CHECKOUT_MASTER,
    PULL_MASTER,
    MERGE_DEVELOP,
    STRIP_PRERELEASE_VERSION,
    COMMIT_RELEASE_CHANGES,
    CREATE_NEW_TAG,
    PUSH_MASTER,
    GITHUB_RELEASE,
    SWITCH_TO_DEVELOP,
    BUMP_DEVELOP,
    COMMIT_BUMP_CHANGES,
    PUSH_DEVELOP,
)

# Everything after the version strip is off until the operator opts in.
DEFAULT_DISABLED_STEPS: frozenset[str] = frozenset(
    RELEASE_SEQUENCE[RELEASE_SEQUENCE.index(STRIP_PRERELEASE_VERSION) + 1 :]
)

# Steps that talk to the host with the token.
CREDENTIAL_STEPS: frozenset[str] = frozenset({GITHUB_RELEASE})


class ReleaseSteps:
    """Step actions bound to one config and one set of gateways."""

    def __init__(
        self,
        *,
        config: ReleaseConfig,
        repo: RepositoryGateway,
        metadata: MetadataStore,
        host: ReleaseHostGateway,
        console: ConsoleProtocol,
    ) -> None:
        self.config = config
        self.repo = repo
        self.metadata = metadata
        self.host = host
        self.console = console

    # -- checks -------------------------------------------------------------

    def check_host_status(self) -> Result[None, ReleaseError]:
        result = self.host.check_service_status()
        if isinstance(result, Err):
            return Err(HostStatusDegraded(status="unreachable", detail=result.error.message))

        status = result.value
        if not status.is_good:
            return Err(HostStatusDegraded(status=status.status, detail=status.detail))

        self.console.print("github is up and running...", Style.DIM)
        return Ok(None)

    def ensure_clean(self) -> Result[None, ReleaseError]:
        result = self.repo.status()
        if isinstance(result, Err):
            return result

        entries = tuple(line.strip() for line in result.value if line.strip())
        if entries:
            return Err(DirtyWorkingTree(entries=entries))
        return Ok(None)

    # -- branch sync --------------------------------------------------------

    def checkout(self, branch: str) -> StepAction:
        def action() -> Result[None, ReleaseError]:
            self.console.print(f"git checkout {branch}", Style.DIM)
            return self.repo.checkout(branch)

        return action

    def pull(self, branch: str) -> StepAction:
        def action() -> Result[None, ReleaseError]:
            self.console.print(f"git pull {self.config.remote} {branch}", Style.DIM)
            return self.repo.pull(self.config.remote, branch)

        return action

    def merge_develop(self) -> Result[None, ReleaseError]:
        branch = self.config.develop_branch
        self.console.print(f"git merge -X theirs {branch}", Style.DIM)
        return self.repo.merge(branch, ConflictPolicy.THEIRS)

    def push(self, branch: str, *, tags: bool = False) -> StepAction:
        def action() -> Result[None, ReleaseError]:
            suffix = " --tags" if tags else ""
            self.console.print(f"git push {self.config.remote} {branch}{suffix}", Style.DIM)
            return self.repo.push(self.config.remote, branch, tags=tags)

        return action

    # -- versions -----------------------------------------------------------

    def _read_version(self) -> Result[tuple[PackageMetadata, Version], ReleaseError]:
        read = self.metadata.read()
        if isinstance(read, Err):
            return read

        pkg = read.value
        if pkg.version is None:
            return Err(InvalidVersion(text=repr(pkg.data.get("version"))))

        parsed = parse_version(pkg.version)
        if isinstance(parsed, Err):
            return parsed
        return Ok((pkg, parsed.value))

    def strip_prerelease_version(self) -> Result[None, ReleaseError]:
        branch = self.repo.current_branch()
        if isinstance(branch, Err):
            return branch

        self.console.print(f"branch: {branch.value}", Style.DIM)
        if branch.value != self.config.master_branch:
            return Err(WrongBranch(expected=self.config.master_branch, actual=branch.value))

        read = self._read_version()
        if isinstance(read, Err):
            return read

        pkg, version = read.value
        stripped = base_version(version)
        self.console.print(f"strip version: {version} -> {stripped}", Style.DIM)
        return self.metadata.write(pkg.with_version(str(stripped)))

    def bump_develop(self) -> Result[None, ReleaseError]:
        read = self._read_version()
        if isinstance(read, Err):
            return read

        pkg, version = read.value
        bumped = next_prerelease(version, self.config.bump_type, self.config.prerelease_label)
        self.console.print(f"new develop version: {bumped}", Style.DIM)
        return self.metadata.write(pkg.with_version(str(bumped)))

    # -- commits and tags ---------------------------------------------------

    def commit_changes(self, prefix: str) -> StepAction:
        def action() -> Result[None, ReleaseError]:
            read = self._read_version()
            if isinstance(read, Err):
                return read
            _, version = read.value
            return self.repo.commit(f"[{prefix}] set version number to {version}")

        return action

    def create_new_tag(self) -> Result[None, ReleaseError]:
        read = self._read_version()
        if isinstance(read, Err):
            return read

        _, version = read.value
        self.console.print(f"git tag v{version}", Style.DIM)
        return self.repo.tag(f"v{version}", f"Created Tag for version: {version}")

    # -- publishing ---------------------------------------------------------

    def _release_drafts(self) -> Result[tuple[ReleaseDraft, ...], ReleaseError]:
        listed = self.repo.tags()
        if isinstance(listed, Err):
            return listed

        version_tags = [t for t in listed.value if isinstance(parse_version(t), Ok)]
        if not version_tags:
            return Err(RepositoryOperationFailed(operation="tag", message="no version tags found"))

        drafts: list[ReleaseDraft] = []
        for index, tag in enumerate(version_tags[: self.config.release_count]):
            previous = version_tags[index + 1] if index + 1 < len(version_tags) else None
            commits = self.repo.log(previous, tag)
            if isinstance(commits, Err):
                return commits
            drafts.append(build_draft(tag, commits.value))
        return Ok(tuple(drafts))

    def github_release(self) -> Result[None, ReleaseError]:
        drafts = self._release_drafts()
        if isinstance(drafts, Err):
            return drafts

        published = self.host.publish_release(drafts.value)
        if isinstance(published, Err):
            return Err(ReleasePublishTransportError(message=published.error.message))

        summary = published.value
        if summary.rejections:
            for reason in summary.rejection_reasons:
                self.console.print(reason, Style.WARNING)
            return Err(ReleaseRejected(reasons=summary.rejection_reasons))

        for item in summary.items:
            self.console.print(f"released {item.tag}: {item.url or '(no url)'}", Style.DIM)
        return Ok(None)


def build_registry(steps: ReleaseSteps) -> StepRegistry:
    cfg = steps.config
    registry = StepRegistry()
    registry.register(CHECK_HOST_STATUS, steps.check_host_status)
    registry.register(ENSURE_CLEAN, steps.ensure_clean)
    registry.register(CHECKOUT_DEVELOP, steps.checkout(cfg.develop_branch))
    registry.register(PULL_DEVELOP, steps.pull(cfg.develop_branch))
    registry.register(CHECKOUT_MASTER, steps.checkout(cfg.master_branch))
    registry.register(PULL_MASTER, steps.pull(cfg.master_branch))
    registry.register(MERGE_DEVELOP, steps.merge_develop)
    registry.register(STRIP_PRERELEASE_VERSION, steps.strip_prerelease_version)
    registry.register(COMMIT_RELEASE_CHANGES, steps.commit_changes("release"))
    registry.register(CREATE_NEW_TAG, steps.create_new_tag)
    registry.register(PUSH_MASTER, steps.push(cfg.master_branch, tags=True))
    registry.register(GITHUB_RELEASE, steps.github_release)
    registry.register(SWITCH_TO_DEVELOP, steps.checkout(cfg.develop_branch))
    registry.register(BUMP_DEVELOP, steps.bump_develop)
    registry.register(COMMIT_BUMP_CHANGES, steps.commit_changes("bump"))
    registry.register(PUSH_DEVELOP, steps.push(cfg.develop_branch))
    return registry
