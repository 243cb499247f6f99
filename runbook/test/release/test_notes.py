from __future__ import annotations

from runbook.release.gateways import RepoCommit
from runbook.release.notes import build_draft, parse_commit, render_notes

SHA = "0123456789abcdef0123456789abcdef01234567"


def _c(subject: str, body: str = "") -> RepoCommit:
    return RepoCommit(sha=SHA, subject=subject, body=body)


class TestParseCommit:
    def test_type_scope_subject(self) -> None:
        parsed = parse_commit(_c("feat(cli): add bump command"))
        assert parsed is not None
        assert (parsed.type, parsed.scope, parsed.subject) == ("feat", "cli", "add bump command")
        assert parsed.breaking is None

    def test_non_conventional_subject_is_ignored(self) -> None:
        assert parse_commit(_c("Update README")) is None

    def test_bang_marks_breaking(self) -> None:
        parsed = parse_commit(_c("feat!: drop node 14"))
        assert parsed is not None
        assert parsed.breaking == "drop node 14"

    def test_breaking_footer_wins_over_bang(self) -> None:
        parsed = parse_commit(
            _c("fix(api)!: rename field", "Details.\n\nBREAKING CHANGE: `id` is now `uid`")
        )
        assert parsed is not None
        assert parsed.breaking == "`id` is now `uid`"

    def test_merge_commit_uses_pr_title(self) -> None:
        parsed = parse_commit(
            _c("Merge pull request #12 from acme/feature-x", "fix(core): handle empty tags\n")
        )
        assert parsed is not None
        assert (parsed.type, parsed.scope) == ("fix", "core")

    def test_merge_commit_without_body(self) -> None:
        assert parse_commit(_c("Merge pull request #12 from acme/feature-x")) is None


class TestRenderNotes:
    def test_sections_in_fixed_order(self) -> None:
        notes = render_notes(
            [
                _c("fix: handle empty status"),
                _c("chore: tidy"),
                _c("feat(cli): add bump command"),
                _c("perf: cache tags"),
            ]
        )

        assert notes == (
            "### Features\n\n"
            "* **cli:** add bump command (0123456)\n\n"
            "### Bug Fixes\n\n"
            "* handle empty status (0123456)\n\n"
            "### Performance Improvements\n\n"
            "* cache tags (0123456)\n"
        )

    def test_breaking_changes_section(self) -> None:
        notes = render_notes([_c("feat(api)!: remove v1 endpoints")])
        assert notes.endswith("### BREAKING CHANGES\n\n* **api:** remove v1 endpoints (0123456)\n")

    def test_nothing_notable_renders_empty(self) -> None:
        assert render_notes([_c("docs: typo"), _c("WIP")]) == ""


def test_build_draft_uses_tag_as_name() -> None:
    draft = build_draft("v1.2.0", [_c("fix: x")])
    assert (draft.tag, draft.name) == ("v1.2.0", "v1.2.0")
    assert "### Bug Fixes" in draft.body
