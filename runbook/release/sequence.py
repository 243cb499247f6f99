"""Named steps and the linear run sequence.

A ``RunSequence`` executes its steps strictly in order and stops at the first
step whose action returns ``Err``. There is no retry, resume or rollback: a
failed sequence is discarded and the operator starts a fresh one.

    Idle -> Running(0) -> Running(1) -> ... -> Succeeded
                               \\-> Failed(1, step, error)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from runbook.core.result import Err, Ok, Result
from runbook.release.errors import ReleaseError, StepFailed, UnknownStep

__all__ = [
    "CompletionCallback",
    "Failed",
    "Idle",
    "RunSequence",
    "RunState",
    "Running",
    "Step",
    "StepAction",
    "StepRegistry",
    "Succeeded",
]

StepAction = Callable[[], Result[None, ReleaseError]]


@dataclass(frozen=True, slots=True)
class Step:
    name: str
    action: StepAction


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Running:
    index: int
    step: str


@dataclass(frozen=True, slots=True)
class Succeeded:
    pass


@dataclass(frozen=True, slots=True)
class Failed:
    index: int
    step: str
    error: ReleaseError


RunState = Idle | Running | Succeeded | Failed
Observer = Callable[[RunState], None]
CompletionCallback = Callable[[StepFailed | None], None]


class StepRegistry:
    """Steps by name, in registration order."""

    def __init__(self) -> None:
        self._steps: dict[str, Step] = {}

    def register(self, name: str, action: StepAction) -> None:
        if name in self._steps:
            raise ValueError(f"step already registered: {name}")
        self._steps[name] = Step(name=name, action=action)

    def get(self, name: str) -> Step | None:
        return self._steps.get(name)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._steps)

    def resolve(
        self,
        names: Iterable[str],
        *,
        disabled: frozenset[str] = frozenset(),
    ) -> Result[tuple[Step, ...], UnknownStep]:
        """Look up ``names`` in order, dropping disabled ones.

        Every name in ``names`` must be registered. ``disabled`` is only a
        filter; the orchestrator validates operator toggles separately.
        """
        steps: list[Step] = []
        for name in names:
            step = self._steps.get(name)
            if step is None:
                return Err(UnknownStep(name=name, available=self.names))
            if name not in disabled:
                steps.append(step)
        return Ok(tuple(steps))


class RunSequence:
    """One execution of an ordered list of steps.

    Args:
        steps: Steps to execute, in order.
        on_complete: Called exactly once with None on success or the
            ``StepFailed`` error on failure.
        observer: Optional hook receiving every state transition.
    """

    def __init__(
        self,
        steps: Sequence[Step],
        on_complete: CompletionCallback | None = None,
        observer: Observer | None = None,
    ) -> None:
        self.steps = tuple(steps)
        self._on_complete = on_complete
        self._observer = observer
        self._state: RunState = Idle()

    @property
    def state(self) -> RunState:
        return self._state

    def run(self) -> Result[None, StepFailed]:
        if not isinstance(self._state, Idle):
            raise RuntimeError("run sequence already executed; build a new one")

        for index, step in enumerate(self.steps):
            self._transition(Running(index=index, step=step.name))
            outcome = step.action()
            if isinstance(outcome, Err):
                self._transition(Failed(index=index, step=step.name, error=outcome.error))
                failure = StepFailed(step=step.name, error=outcome.error)
                self._complete(failure)
                return Err(failure)

        self._transition(Succeeded())
        self._complete(None)
        return Ok(None)

    def _transition(self, state: RunState) -> None:
        self._state = state
        if self._observer is not None:
            self._observer(state)

    def _complete(self, error: StepFailed | None) -> None:
        if self._on_complete is not None:
            self._on_complete(error)
