"""Release orchestration: version model, step registry and run sequence."""

from runbook.release.errors import ReleaseError, StepFailed, describe_error
from runbook.release.orchestrator import Orchestrator
from runbook.release.sequence import (
    Failed,
    Idle,
    RunSequence,
    Running,
    Step,
    StepRegistry,
    Succeeded,
)
from runbook.release.version import Version, base_version, next_prerelease, parse_version

__all__ = [
    "Failed",
    "Idle",
    "Orchestrator",
    "ReleaseError",
    "RunSequence",
    "Running",
    "Step",
    "StepFailed",
    "StepRegistry",
    "Succeeded",
    "Version",
    "base_version",
    "describe_error",
    "next_prerelease",
    "parse_version",
]
