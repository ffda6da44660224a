"""Phase pipeline: runs a workflow's phases in order with checkpointing.

Rules:

- all phase ids are resolved before anything runs; an unknown id fails the run
- the prepare workflow resumes after ``descriptor.completed_phase`` when that
  id is part of the list; other workflows always run every phase
- when checkpointing, the descriptor is written after every phase
- on failure, ``completed_phase`` is rewound to the phase before the failing
  one (and written, when checkpointing) so a retry starts at the failed phase
- simulated runs never write; their ``completed_phase`` is cleared at the end
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.output.console import Style

from .model import PhaseResult, PhaseStatus, PipelineResult
from .phase import PhaseRegistry, PhaseRun, ReleasePhase, ResourceGenerator
from .strategy import Workflow

if TYPE_CHECKING:
    from relflow.output.console import ConsoleProtocol

    from .descriptor import ReleaseDescriptor
    from .model import Project, ReleaseEnvironment
    from .store import DescriptorStore

__all__ = ["PhasePipeline", "resume_index"]


def resume_index(phase_ids: Sequence[str], completed_phase: str | None) -> int:
    """Index of the first phase to run given the checkpoint."""
    if completed_phase is None or completed_phase not in phase_ids:
        return 0
    return list(phase_ids).index(completed_phase) + 1


class PhasePipeline:
    def __init__(
        self,
        registry: PhaseRegistry,
        store: DescriptorStore,
        console: ConsoleProtocol,
    ) -> None:
        self.registry = registry
        self.store = store
        self.console = console

    def run(
        self,
        workflow: Workflow,
        phase_ids: Sequence[str],
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        projects: list[Project],
        *,
        simulate: bool = False,
    ) -> Result[PipelineResult, ReleaseError]:
        resolved = self.registry.resolve(phase_ids)
        if isinstance(resolved, Err):
            return resolved
        phases = resolved.value

        checkpoint = workflow == Workflow.PREPARE and not simulate
        start = resume_index(phase_ids, descriptor.completed_phase) if workflow == Workflow.PREPARE else 0

        result = PipelineResult(workflow=str(workflow), simulated=simulate, started_at=time.time())
        mode = " (dry run)" if simulate else ""
        self.console.header(f"relflow {workflow}{mode}: {len(phases)} phase(s)")

        for phase in phases[:start]:
            result.skipped.append(phase.phase_id)
            self.console.print(f"  skip  {phase.phase_id}", Style.DIM)

        if start == len(phases) and phases:
            self.console.info(
                "Release preparation already completed. Continue with 'relflow perform', "
                "or start again with --no-resume"
            )
        elif start > 0:
            self.console.info(f"Resuming release from phase '{phases[start].phase_id}'")

        for index in range(start, len(phases)):
            phase = phases[index]
            error, phase_result = self._run_phase(
                phase, descriptor, environment, projects, simulate=simulate
            )
            result.phases[phase.phase_id] = phase_result

            if error is not None:
                previous = phases[index - 1].phase_id if index > 0 else None
                return self._fail(result, phase, phase_result, error, descriptor, previous, checkpoint)

            result.executed.append(phase.phase_id)
            descriptor.completed_phase = phase.phase_id
            if checkpoint:
                written = self.store.write(descriptor)
                if isinstance(written, Err):
                    error = ReleaseError(
                        kind=ErrorKind.EXECUTION,
                        message="Error writing release properties after completing phase",
                        hint=written.error.message,
                    )
                    return self._fail(
                        result, phase, phase_result, error, descriptor, phase.phase_id, checkpoint
                    )

        if simulate:
            descriptor.completed_phase = None

        result.status = PhaseStatus.SUCCESS
        result.ended_at = time.time()
        return Ok(result)

    def _run_phase(
        self,
        phase: ReleasePhase,
        descriptor: ReleaseDescriptor,
        environment: ReleaseEnvironment,
        projects: list[Project],
        *,
        simulate: bool,
    ) -> tuple[ReleaseError | None, PhaseResult]:
        phase_result = PhaseResult()
        phase_result.start()
        self.console.print(f"  [{phase.phase_id}]", Style.INFO)

        run = PhaseRun(
            descriptor=descriptor,
            environment=environment,
            projects=projects,
            result=phase_result,
        )
        try:
            outcome = phase.simulate(run) if simulate else phase.execute(run)
        except Exception as e:
            outcome = Err(
                ReleaseError(
                    kind=ErrorKind.EXECUTION,
                    message=f"Phase '{phase.phase_id}' raised {type(e).__name__}: {e}",
                )
            )

        for line in phase_result.output.splitlines():
            self.console.print(f"    {line}", Style.DIM)

        if isinstance(outcome, Err):
            phase_result.error(outcome.error.message)
            phase_result.finish(PhaseStatus.ERROR)
            return outcome.error, phase_result

        phase_result.finish(PhaseStatus.SUCCESS)
        return None, phase_result

    def _fail(
        self,
        result: PipelineResult,
        phase: ReleasePhase,
        phase_result: PhaseResult,
        error: ReleaseError,
        descriptor: ReleaseDescriptor,
        previous: str | None,
        checkpoint: bool,
    ) -> Result[PipelineResult, ReleaseError]:
        result.status = PhaseStatus.ERROR
        result.ended_at = time.time()
        descriptor.completed_phase = previous
        self.console.error(f"phase '{phase.phase_id}' failed")

        if checkpoint:
            written = self.store.write(descriptor)
            if isinstance(written, Err):
                self.console.warning(f"could not save release checkpoint: {written.error.message}")

        return Err(error.in_phase(phase.phase_id, phase_result))

    def clean(
        self,
        phase_ids: Sequence[str],
        descriptor: ReleaseDescriptor,
        projects: list[Project],
    ) -> Result[None, ReleaseError]:
        """Run every resource generator's cleanup, then delete the checkpoint.

        Cleanup failures are reported as warnings and do not stop the others.
        """
        seen: set[str] = set()
        for phase_id in phase_ids:
            if phase_id in seen:
                continue
            seen.add(phase_id)

            found = self.registry.get(phase_id)
            if isinstance(found, Err):
                self.console.warning(found.error.message)
                continue
            phase = found.value
            if not isinstance(phase, ResourceGenerator):
                continue

            phase_result = PhaseResult()
            cleaned = phase.clean(projects, phase_result)
            if isinstance(cleaned, Err):
                self.console.warning(f"cleanup of '{phase_id}' failed: {cleaned.error.message}")

        return self.store.delete(descriptor)
