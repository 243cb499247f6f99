"""Release configuration.

``ReleaseConfig`` is built once per invocation from CLI flags, the
environment and the optional ``runbook.toml`` at the project root, then handed
to the orchestrator. Nothing reads configuration from module globals.

``runbook.toml`` layout (every key optional):

    [git]
    remote = "origin"
    develop = "develop"
    master = "master"

    [version]
    bump_type = "minor"
    prerelease_label = "prerelease"
    metadata_file = "package.json"

    [github]
    repository = "owner/name"
    status_url = "https://www.githubstatus.com/api/v2/status.json"
    release_count = 1

    [steps]
    enabled = ["commit-release-changes"]
    disabled = []
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_str_list, get_table

__all__ = [
    "BumpType",
    "ConfigError",
    "FileConfig",
    "ReleaseConfig",
    "CONFIG_FILE_NAME",
    "DEFAULT_PRERELEASE_LABEL",
    "PRERELEASE_LABEL_RE",
    "build_release_config",
    "load_file_config",
]

CONFIG_FILE_NAME = "runbook.toml"

DEFAULT_REMOTE = "origin"
DEFAULT_DEVELOP_BRANCH = "develop"
DEFAULT_MASTER_BRANCH = "master"
DEFAULT_PRERELEASE_LABEL = "prerelease"
DEFAULT_METADATA_FILE = "package.json"
DEFAULT_STATUS_URL = "https://www.githubstatus.com/api/v2/status.json"
DEFAULT_RELEASE_COUNT = 1

PRERELEASE_LABEL_RE = re.compile(r"^[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*$")


class BumpType(str, Enum):
    """Which version component the next development version increments."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when runbook.toml cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class FileConfig:
    """Values read from runbook.toml. None means "not set in the file"."""

    remote: str | None = None
    develop_branch: str | None = None
    master_branch: str | None = None
    bump_type: BumpType | None = None
    prerelease_label: str | None = None
    metadata_file: str | None = None
    repository: str | None = None
    status_url: str | None = None
    release_count: int | None = None
    enabled_steps: tuple[str, ...] = ()
    disabled_steps: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> FileConfig:
        """Create FileConfig from parsed TOML.

        Raises:
            ValueError: On an unknown bump type, a malformed prerelease label
                or a non-positive release count.
        """
        git: StrDict = get_table(data, "git") or {}
        version: StrDict = get_table(data, "version") or {}
        github: StrDict = get_table(data, "github") or {}
        steps: StrDict = get_table(data, "steps") or {}

        bump_raw = get_str(version, "bump_type")
        label = get_str(version, "prerelease_label")
        if label is not None and not PRERELEASE_LABEL_RE.match(label):
            raise ValueError(f"version.prerelease_label is not a semver identifier: {label!r}")
        release_count = get_int(github, "release_count")
        if release_count is not None and release_count < 1:
            raise ValueError(f"github.release_count must be >= 1, got {release_count}")

        return cls(
            remote=get_str(git, "remote"),
            develop_branch=get_str(git, "develop"),
            master_branch=get_str(git, "master"),
            bump_type=BumpType(bump_raw) if bump_raw is not None else None,
            prerelease_label=label,
            metadata_file=get_str(version, "metadata_file"),
            repository=get_str(github, "repository"),
            status_url=get_str(github, "status_url"),
            release_count=release_count,
            enabled_steps=tuple(get_str_list(steps, "enabled")),
            disabled_steps=tuple(get_str_list(steps, "disabled")),
        )


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Immutable settings for one orchestrator run."""

    project_root: Path
    bump_type: BumpType = BumpType.MINOR
    host_token: str | None = None
    remote: str = DEFAULT_REMOTE
    develop_branch: str = DEFAULT_DEVELOP_BRANCH
    master_branch: str = DEFAULT_MASTER_BRANCH
    prerelease_label: str = DEFAULT_PRERELEASE_LABEL
    metadata_file: str = DEFAULT_METADATA_FILE
    repository: str | None = None
    status_url: str = DEFAULT_STATUS_URL
    release_count: int = DEFAULT_RELEASE_COUNT
    disabled_steps: frozenset[str] = field(default_factory=frozenset)
    # Every name an operator enabled or disabled, checked against the registry.
    toggled_steps: frozenset[str] = field(default_factory=frozenset)

    @property
    def metadata_path(self) -> Path:
        """The one package metadata location used for reads and writes."""
        return self.project_root / self.metadata_file

    @property
    def has_token(self) -> bool:
        return bool(self.host_token and self.host_token.strip())


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except (OSError, UnicodeDecodeError) as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_file_config(project_root: Path) -> Result[FileConfig, ConfigError]:
    """Load runbook.toml from the project root.

    A missing file is not an error: every setting has a default.
    """
    path = project_root / CONFIG_FILE_NAME
    if not path.is_file():
        return Ok(FileConfig())

    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(FileConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def build_release_config(
    *,
    project_root: Path,
    file_config: FileConfig,
    default_disabled: Iterable[str],
    bump_type: BumpType | None = None,
    host_token: str | None = None,
    enable: Iterable[str] = (),
    disable: Iterable[str] = (),
) -> ReleaseConfig:
    """Merge defaults, runbook.toml and CLI flags (CLI wins)."""
    cli_enable, cli_disable = set(enable), set(disable)
    disabled = set(default_disabled)
    disabled |= set(file_config.disabled_steps)
    disabled -= set(file_config.enabled_steps)
    disabled |= cli_disable
    disabled -= cli_enable
    toggled = {*file_config.enabled_steps, *file_config.disabled_steps, *cli_enable, *cli_disable}

    token = host_token.strip() if host_token else None

    return ReleaseConfig(
        project_root=project_root,
        bump_type=bump_type or file_config.bump_type or BumpType.MINOR,
        host_token=token or None,
        remote=file_config.remote or DEFAULT_REMOTE,
        develop_branch=file_config.develop_branch or DEFAULT_DEVELOP_BRANCH,
        master_branch=file_config.master_branch or DEFAULT_MASTER_BRANCH,
        prerelease_label=file_config.prerelease_label or DEFAULT_PRERELEASE_LABEL,
        metadata_file=file_config.metadata_file or DEFAULT_METADATA_FILE,
        repository=file_config.repository,
        status_url=file_config.status_url or DEFAULT_STATUS_URL,
        release_count=file_config.release_count or DEFAULT_RELEASE_COUNT,
        disabled_steps=frozenset(disabled),
        toggled_steps=frozenset(toggled),
    )
