from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import typer

from runbook.core.config import BumpType, ReleaseConfig, build_release_config, load_file_config
from runbook.core.errors import ErrorCode
from runbook.core.result import Err, Ok
from runbook.git.repository import Repository
from runbook.output.console import ConsoleProtocol, RichConsole
from runbook.platform.http import RealHttpClient
from runbook.release.github import GitHubHost, parse_repo_slug
from runbook.release.metadata import JsonMetadataStore
from runbook.release.orchestrator import Orchestrator
from runbook.release.steps import DEFAULT_DISABLED_STEPS


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: ReleaseConfig
    console: ConsoleProtocol
    orchestrator: Orchestrator


def _resolve_repository(config: ReleaseConfig, repo: Repository) -> str | None:
    if config.repository:
        return config.repository
    # Only ask git when the token makes publishing possible at all.
    if not config.has_token:
        return None
    match repo.remote_url(config.remote):
        case Ok(url):
            return parse_repo_slug(url)
        case Err(_):
            return None


def build_context(
    *,
    root: Path,
    bump_type: BumpType | None = None,
    github_token: str | None = None,
    enable: Sequence[str] = (),
    disable: Sequence[str] = (),
) -> CLIContext:
    try:
        project_root = root.expanduser().resolve()
    except OSError as e:
        typer.echo(f"error: invalid --root: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    if not project_root.is_dir():
        typer.echo(f"error: project root not found: {project_root}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    file_result = load_file_config(project_root)
    if isinstance(file_result, Err):
        typer.echo(f"error: {file_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    config = build_release_config(
        project_root=project_root,
        file_config=file_result.value,
        default_disabled=DEFAULT_DISABLED_STEPS,
        bump_type=bump_type,
        host_token=github_token,
        enable=enable,
        disable=disable,
    )

    console = RichConsole()
    repo = Repository(project_root)
    host = GitHubHost(
        http=RealHttpClient(),
        token=config.host_token,
        repository=_resolve_repository(config, repo),
        status_url=config.status_url,
    )
    orchestrator = Orchestrator(
        config=config,
        repo=repo,
        metadata=JsonMetadataStore(config.metadata_path),
        host=host,
        console=console,
    )
    return CLIContext(config=config, console=console, orchestrator=orchestrator)
