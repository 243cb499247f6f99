from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer

from runbook import __version__
from runbook.cli.context import build_context
from runbook.core.config import BumpType
from runbook.core.result import Err, Result
from runbook.output.console import ConsoleProtocol, Style
from runbook.output.errors import print_release_error, release_error_exit_code
from runbook.release.errors import RunError

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Release runbook for develop/master git-flow projects.",
)

_BUMP_HELP = "Component to increment for the next develop version (major/minor/patch)."
_ROOT_HELP = "Project root holding package.json and optional runbook.toml."


def _finish(result: Result[None, RunError], console: ConsoleProtocol) -> None:
    if isinstance(result, Err):
        _fail(result.error, console)


def _fail(error: RunError, console: ConsoleProtocol) -> NoReturn:
    print_release_error(error, console)
    raise typer.Exit(code=release_error_exit_code(error))


@app.command()
def release(
    bump_type: BumpType | None = typer.Option(
        None, "--bump-type", "--bumpType", case_sensitive=False, help=_BUMP_HELP
    ),
    github_token: str | None = typer.Option(
        None,
        "--github-token",
        "--githubToken",
        envvar="GITHUB_TOKEN",
        show_envvar=True,
        help="GitHub token used to publish the release.",
    ),
    root: Path = typer.Option(Path("."), "--root", help=_ROOT_HELP),
    enable: list[str] = typer.Option([], "--enable", help="Enable a disabled step (repeatable)"),
    disable: list[str] = typer.Option([], "--disable", help="Disable a step (repeatable)"),
) -> None:
    """Sync develop into master, strip the prerelease version and publish."""
    ctx = build_context(
        root=root,
        bump_type=bump_type,
        github_token=github_token,
        enable=enable,
        disable=disable,
    )
    _finish(ctx.orchestrator.release(), ctx.console)


@app.command()
def bump(
    bump_type: BumpType | None = typer.Option(
        None, "--bump-type", "--bumpType", case_sensitive=False, help=_BUMP_HELP
    ),
    root: Path = typer.Option(Path("."), "--root", help=_ROOT_HELP),
) -> None:
    """Set the package version to the next prerelease version."""
    ctx = build_context(root=root, bump_type=bump_type)
    _finish(ctx.orchestrator.bump(), ctx.console)


@app.command("run")
def run_cmd(
    steps: list[str] = typer.Argument(..., help="Step names, executed in the given order"),
    bump_type: BumpType | None = typer.Option(
        None, "--bump-type", "--bumpType", case_sensitive=False, help=_BUMP_HELP
    ),
    github_token: str | None = typer.Option(
        None,
        "--github-token",
        "--githubToken",
        envvar="GITHUB_TOKEN",
        show_envvar=True,
        help="GitHub token (needed by github-release).",
    ),
    root: Path = typer.Option(Path("."), "--root", help=_ROOT_HELP),
) -> None:
    """Run individual steps with the same stop-at-first-failure rule."""
    ctx = build_context(root=root, bump_type=bump_type, github_token=github_token)
    _finish(ctx.orchestrator.run_steps(steps), ctx.console)
    ctx.console.success("steps finished")


@app.command("steps")
def steps_cmd(
    root: Path = typer.Option(Path("."), "--root", help=_ROOT_HELP),
    enable: list[str] = typer.Option([], "--enable", help="Enable a disabled step (repeatable)"),
    disable: list[str] = typer.Option([], "--disable", help="Disable a step (repeatable)"),
) -> None:
    """List the release sequence and which steps are enabled."""
    ctx = build_context(root=root, enable=enable, disable=disable)
    _finish(ctx.orchestrator.check_step_toggles(), ctx.console)
    for index, (name, enabled) in enumerate(ctx.orchestrator.enabled_steps(), start=1):
        mark = "on " if enabled else "off"
        ctx.console.print(f"{index:2d}. [{mark}] {name}", Style.DEFAULT if enabled else Style.DIM)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Show version and exit."
    ),
) -> None:
    del version


def main() -> None:
    app()
