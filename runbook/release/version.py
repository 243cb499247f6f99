from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering

from runbook.core.config import DEFAULT_PRERELEASE_LABEL, PRERELEASE_LABEL_RE, BumpType
from runbook.core.result import Err, Ok, Result
from runbook.release.errors import InvalidVersion

# semver.org 2.0.0 grammar; a leading "v" is tolerated like npm semver does.
_SEMVER_RE = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


def _identifier_key(identifier: str) -> tuple[int, int, str]:
    # Numeric identifiers sort before alphanumeric ones. They have no leading
    # zeros, so length then digits orders them without int conversion.
    if identifier.isdigit():
        return (0, len(identifier), identifier)
    return (1, 0, identifier)


@total_ordering
@dataclass(frozen=True, slots=True)
class Version:
    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    def __post_init__(self) -> None:
        if min(self.major, self.minor, self.patch) < 0:
            raise ValueError(f"version components must be non-negative: {self!r}")

    def __str__(self) -> str:
        out = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            out += f"-{self.prerelease}"
        if self.build:
            out += f"+{self.build}"
        return out

    def _precedence(self) -> tuple[int, int, int, int, tuple[tuple[int, int, str], ...]]:
        # Build metadata does not take part in precedence.
        if not self.prerelease:
            return (self.major, self.minor, self.patch, 1, ())
        parts = tuple(_identifier_key(p) for p in self.prerelease.split("."))
        return (self.major, self.minor, self.patch, 0, parts)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() < other._precedence()

    def bump(self, kind: BumpType) -> Version:
        """Increment one component of the release part; labels are dropped."""
        match kind:
            case BumpType.MAJOR:
                return Version(self.major + 1, 0, 0)
            case BumpType.MINOR:
                return Version(self.major, self.minor + 1, 0)
            case BumpType.PATCH:
                return Version(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")


def parse_version(text: str) -> Result[Version, InvalidVersion]:
    m = _SEMVER_RE.match(text.strip())
    if m is None:
        return Err(InvalidVersion(text=text))
    try:
        major, minor, patch = (int(m.group(i)) for i in (1, 2, 3))
    except ValueError:
        # Beyond the interpreter's int-from-string digit limit.
        return Err(InvalidVersion(text=text))
    return Ok(Version(major, minor, patch, prerelease=m.group(4), build=m.group(5)))


def base_version(v: Version) -> Version:
    """``major.minor.patch`` with prerelease and build metadata removed."""
    return Version(v.major, v.minor, v.patch)


def next_prerelease(
    v: Version,
    bump_type: BumpType,
    label: str = DEFAULT_PRERELEASE_LABEL,
) -> Version:
    """Next development version: bump the base version and attach ``label``.

    The result always sorts above ``v``: bumping makes the release part
    strictly greater, which outranks any prerelease label.
    """
    if not PRERELEASE_LABEL_RE.match(label):
        raise ValueError(f"invalid prerelease label: {label!r}")
    bumped = base_version(v).bump(bump_type)
    return Version(bumped.major, bumped.minor, bumped.patch, prerelease=label)
