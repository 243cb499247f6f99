"""Release notes from conventional commit messages (angular preset).

A commit subject ``feat(parser)!: drop legacy syntax`` contributes to both
"Features" and "BREAKING CHANGES". Commits whose type has no section
(``chore``, ``docs``, ``test``...) and non-conventional subjects are left out.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from runbook.release.gateways import ReleaseDraft, RepoCommit

_HEADER_RE = re.compile(r"^(?P<type>\w+)(?:\((?P<scope>[^()]*)\))?(?P<bang>!)?: (?P<subject>.+)$")
_BREAKING_RE = re.compile(r"^BREAKING[ -]CHANGE:\s*(?P<note>.+)", re.MULTILINE)
# GitHub merge commits: "Merge pull request #12 from owner/branch" + title in body.
_MERGE_RE = re.compile(r"^Merge pull request #(?P<pr>\d+) from \S+$")

SECTIONS: tuple[tuple[str, str], ...] = (
    ("feat", "Features"),
    ("fix", "Bug Fixes"),
    ("perf", "Performance Improvements"),
    ("revert", "Reverts"),
)
BREAKING_TITLE = "BREAKING CHANGES"


@dataclass(frozen=True, slots=True)
class ConventionalCommit:
    type: str
    scope: str | None
    subject: str
    sha: str
    breaking: str | None = None


def parse_commit(commit: RepoCommit) -> ConventionalCommit | None:
    subject = commit.subject.strip()
    body = commit.body

    merge = _MERGE_RE.match(subject)
    if merge is not None:
        # The PR title is the first body line; parse it as the header instead.
        lines = [ln for ln in body.splitlines() if ln.strip()]
        if not lines:
            return None
        subject = lines[0].strip()
        body = "\n".join(lines[1:])

    m = _HEADER_RE.match(subject)
    if m is None:
        return None

    breaking: str | None = None
    footer = _BREAKING_RE.search(body)
    if footer is not None:
        breaking = footer.group("note").strip()
    elif m.group("bang"):
        breaking = m.group("subject").strip()

    return ConventionalCommit(
        type=m.group("type").lower(),
        scope=(m.group("scope") or "").strip() or None,
        subject=m.group("subject").strip(),
        sha=commit.sha,
        breaking=breaking,
    )


def _entry(c: ConventionalCommit, text: str) -> str:
    scope = f"**{c.scope}:** " if c.scope else ""
    return f"* {scope}{text} ({c.sha[:7]})"


def render_notes(commits: Sequence[RepoCommit]) -> str:
    parsed = [c for c in (parse_commit(commit) for commit in commits) if c is not None]

    blocks: list[str] = []
    for commit_type, title in SECTIONS:
        entries = [_entry(c, c.subject) for c in parsed if c.type == commit_type]
        if entries:
            blocks.append(f"### {title}\n\n" + "\n".join(entries))

    breaking = [_entry(c, c.breaking or "") for c in parsed if c.breaking]
    if breaking:
        blocks.append(f"### {BREAKING_TITLE}\n\n" + "\n".join(breaking))

    return "\n\n".join(blocks) + ("\n" if blocks else "")


def build_draft(tag: str, commits: Sequence[RepoCommit]) -> ReleaseDraft:
    return ReleaseDraft(tag=tag, name=tag, body=render_notes(commits))
