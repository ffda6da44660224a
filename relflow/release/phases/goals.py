"""Phases running build goals: preparation, completion and perform."""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path

from relflow.core.config import DEFAULT_PERFORM_GOALS
from relflow.core.errors import ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.release.descriptor import ReleaseDescriptor
from relflow.release.phase import PhaseRun, ReleasePhase

from .common import PhaseDependencies, working_directory

__all__ = [
    "RunCompletionGoalsPhase",
    "RunGoalsPhase",
    "RunPerformGoalsPhase",
    "RunPreparationGoalsPhase",
]


class RunGoalsPhase(ReleasePhase):
    """Run the descriptor's goals for this phase; empty goals are a no-op."""

    def __init__(self, deps: PhaseDependencies) -> None:
        self.deps = deps

    @abstractmethod
    def goals(self, descriptor: ReleaseDescriptor) -> str | None: ...

    def directory(self, descriptor: ReleaseDescriptor) -> Path:
        return working_directory(descriptor)

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        descriptor = run.descriptor
        goals = (self.goals(descriptor) or "").strip()
        if not goals:
            run.result.info("No goals to run")
            return Ok(None)

        run.result.info(f"Executing goals '{goals}'...")
        result = self.deps.invoker.execute_goals(
            self.directory(descriptor),
            goals,
            run.environment,
            descriptor.interactive,
            descriptor.additional_arguments,
            descriptor.manifest_file_name,
        )
        if isinstance(result, Err):
            return result
        for line in result.value.output.splitlines():
            run.result.append(line)
        return Ok(None)


class RunPreparationGoalsPhase(RunGoalsPhase):
    phase_id = "run-preparation-goals"

    def goals(self, descriptor: ReleaseDescriptor) -> str | None:
        return descriptor.preparation_goals


class RunCompletionGoalsPhase(RunGoalsPhase):
    phase_id = "run-completion-goals"

    def goals(self, descriptor: ReleaseDescriptor) -> str | None:
        return descriptor.completion_goals


class RunPerformGoalsPhase(RunGoalsPhase):
    """Deploy from the fresh checkout of the release tag."""

    phase_id = "run-perform-goals"

    def goals(self, descriptor: ReleaseDescriptor) -> str | None:
        return descriptor.perform_goals or DEFAULT_PERFORM_GOALS

    def directory(self, descriptor: ReleaseDescriptor) -> Path:
        return descriptor.checkout_directory or working_directory(descriptor)

    def simulate(self, run: PhaseRun) -> Result[None, ReleaseError]:
        goals = self.goals(run.descriptor)
        run.result.info(
            f"Executing perform goals '{goals}' - since this is simulation mode these goals are skipped."
        )
        return Ok(None)
