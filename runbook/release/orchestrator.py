"""Release orchestrator.

Usage:
    orchestrator = Orchestrator(
        config=config,
        repo=Repository(config.project_root),
        metadata=JsonMetadataStore(config.metadata_path),
        host=GitHubHost(...),
        console=RichConsole(),
    )
    match orchestrator.release():
        case Ok(_):
            ...
        case Err(error):
            print_release_error(error, console)
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from runbook.core.config import ReleaseConfig
from runbook.core.result import Err, Ok, Result
from runbook.output.console import ConsoleProtocol, Style
from runbook.release.errors import MissingCredential, RunError, UnknownStep
from runbook.release.gateways import MetadataStore, ReleaseHostGateway, RepositoryGateway
from runbook.release.sequence import Observer, Running, RunSequence, RunState, StepRegistry
from runbook.release.steps import (
    BUMP_DEVELOP,
    CREDENTIAL_STEPS,
    RELEASE_SEQUENCE,
    ReleaseSteps,
    build_registry,
)

RunCallback = Callable[[RunError | None], None]

RELEASE_FINISHED = "RELEASE FINISHED SUCCESSFULLY"


class Orchestrator:
    """Builds and executes run sequences over the registered release steps.

    Each call to ``release``, ``bump`` or ``run_steps`` builds a fresh
    ``RunSequence``; nothing carries over between runs.
    """

    def __init__(
        self,
        *,
        config: ReleaseConfig,
        repo: RepositoryGateway,
        metadata: MetadataStore,
        host: ReleaseHostGateway,
        console: ConsoleProtocol,
        observer: Observer | None = None,
        registry: StepRegistry | None = None,
    ) -> None:
        self.config = config
        self.console = console
        self._observer = observer
        self.registry = registry or build_registry(
            ReleaseSteps(
                config=config,
                repo=repo,
                metadata=metadata,
                host=host,
                console=console,
            )
        )
        self.last_sequence: RunSequence | None = None

    def release(self, on_complete: RunCallback | None = None) -> Result[None, RunError]:
        """Run the release sequence, honouring the disabled-step set."""
        if not self.config.has_token:
            return self._abort(MissingCredential(), on_complete)
        toggles = self.check_step_toggles()
        if isinstance(toggles, Err):
            return self._abort(toggles.error, on_complete)

        result = self._execute(RELEASE_SEQUENCE, on_complete, disabled=self.config.disabled_steps)
        if isinstance(result, Ok):
            self.console.success(RELEASE_FINISHED)
        return result

    def bump(self, on_complete: RunCallback | None = None) -> Result[None, RunError]:
        """Move the package version to the next prerelease (any branch)."""
        return self._execute((BUMP_DEVELOP,), on_complete)

    def run_steps(
        self, names: Sequence[str], on_complete: RunCallback | None = None
    ) -> Result[None, RunError]:
        """Run the named steps in the given order; disabled marks do not apply."""
        if CREDENTIAL_STEPS.intersection(names) and not self.config.has_token:
            return self._abort(MissingCredential(), on_complete)
        return self._execute(names, on_complete)

    def check_step_toggles(self) -> Result[None, UnknownStep]:
        """Every enabled/disabled name must be a registered step."""
        known = self.registry.names
        for name in sorted(self.config.toggled_steps):
            if name not in known:
                return Err(UnknownStep(name=name, available=known))
        return Ok(None)

    def enabled_steps(self) -> tuple[tuple[str, bool], ...]:
        """The release sequence with an enabled flag per step."""
        disabled = self.config.disabled_steps
        return tuple((name, name not in disabled) for name in RELEASE_SEQUENCE)

    def _execute(
        self,
        names: Sequence[str],
        on_complete: RunCallback | None,
        *,
        disabled: frozenset[str] = frozenset(),
    ) -> Result[None, RunError]:
        resolved = self.registry.resolve(names, disabled=disabled)
        if isinstance(resolved, Err):
            return self._abort(resolved.error, on_complete)

        sequence = RunSequence(resolved.value, on_complete=on_complete, observer=self._observe)
        self.last_sequence = sequence
        result = sequence.run()
        if isinstance(result, Err):
            return Err(result.error)
        return Ok(None)

    def _observe(self, state: RunState) -> None:
        if isinstance(state, Running):
            self.console.header(f"[{state.step}]")
        if self._observer is not None:
            self._observer(state)

    def _abort(
        self, error: RunError, on_complete: RunCallback | None
    ) -> Result[None, RunError]:
        self.console.print("aborting before any step ran", Style.DIM)
        if on_complete is not None:
            on_complete(error)
        return Err(error)
