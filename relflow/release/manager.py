"""Release workflows: prepare, perform, branch, rollback, update-versions, clean."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from relflow.core.errors import ReleaseError
from relflow.core.result import Err, Ok, Result

from .pipeline import PhasePipeline
from .strategy import StrategyCatalog, Workflow

if TYPE_CHECKING:
    from relflow.output.console import ConsoleProtocol

    from .descriptor import ReleaseDescriptor
    from .model import PipelineResult, Project, ReleaseEnvironment
    from .phase import PhaseRegistry
    from .store import DescriptorStore

__all__ = ["ReleaseManager", "ReleaseRequest"]


def _empty_versions() -> dict[str, str]:
    return {}


@dataclass(slots=True)
class ReleaseRequest:
    """Input of a workflow.

    Attributes:
        descriptor: Caller descriptor (config file + command line).
        environment: Build environment.
        projects: Modules of the project, root first.
        simulate: Dry run; nothing irreversible happens and nothing is written.
        resume: Prepare only; continue from the saved checkpoint.
        clean: Perform only; delete the checkpoint afterwards.
        release_versions: Release versions given by the user, by module key.
        development_versions: Development versions given by the user, by module key.
    """

    descriptor: ReleaseDescriptor
    environment: ReleaseEnvironment
    projects: list[Project]
    simulate: bool = False
    resume: bool = True
    clean: bool = True
    release_versions: dict[str, str] = field(default_factory=_empty_versions)
    development_versions: dict[str, str] = field(default_factory=_empty_versions)


class ReleaseManager:
    def __init__(
        self,
        store: DescriptorStore,
        registry: PhaseRegistry,
        catalog: StrategyCatalog,
        console: ConsoleProtocol,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.console = console
        self.pipeline = PhasePipeline(registry, store, console)

    # -- workflows ---------------------------------------------------------

    def prepare(self, request: ReleaseRequest) -> Result[PipelineResult, ReleaseError]:
        caller = _with_user_versions(request)
        if request.resume:
            loaded = self.store.read(caller)
            if isinstance(loaded, Err):
                return loaded
            descriptor = loaded.value
        else:
            descriptor = caller

        return self._run(Workflow.PREPARE, descriptor, request)

    def perform(self, request: ReleaseRequest) -> Result[PipelineResult, ReleaseError]:
        # arguments only known at perform time (staging repository...) are not in the checkpoint
        additional_arguments = request.descriptor.additional_arguments
        loaded = self.store.read(request.descriptor)
        if isinstance(loaded, Err):
            return loaded
        descriptor = loaded.value
        descriptor.additional_arguments = additional_arguments

        result = self._run(Workflow.PERFORM, descriptor, request)
        if isinstance(result, Err):
            return result
        if request.clean and not request.simulate:
            cleaned = self._clean(descriptor, request.projects)
            if isinstance(cleaned, Err):
                return cleaned
        return result

    def branch(self, request: ReleaseRequest) -> Result[PipelineResult, ReleaseError]:
        loaded = self.store.read(_with_user_versions(request))
        if isinstance(loaded, Err):
            return loaded
        descriptor = loaded.value

        result = self._run(Workflow.BRANCH, descriptor, request)
        if isinstance(result, Err):
            return result
        if not request.simulate:
            cleaned = self._clean(descriptor, request.projects)
            if isinstance(cleaned, Err):
                return cleaned
        return result

    def rollback(self, request: ReleaseRequest) -> Result[PipelineResult, ReleaseError]:
        loaded = self.store.read(request.descriptor)
        if isinstance(loaded, Err):
            return loaded
        descriptor = loaded.value

        result = self._run(Workflow.ROLLBACK, descriptor, replace(request, simulate=False))
        if isinstance(result, Err):
            return result
        # a rolled back release can not be resumed
        cleaned = self._clean(descriptor, request.projects)
        if isinstance(cleaned, Err):
            return cleaned
        return result

    def update_versions(self, request: ReleaseRequest) -> Result[PipelineResult, ReleaseError]:
        loaded = self.store.read(_with_user_versions(request))
        if isinstance(loaded, Err):
            return loaded
        descriptor = loaded.value

        result = self._run(Workflow.UPDATE_VERSIONS, descriptor, replace(request, simulate=False))
        if isinstance(result, Err):
            return result
        cleaned = self._clean(descriptor, request.projects)
        if isinstance(cleaned, Err):
            return cleaned
        return result

    def clean(self, request: ReleaseRequest) -> Result[None, ReleaseError]:
        return self._clean(request.descriptor, request.projects)

    # -- internals -----------------------------------------------------------

    def _run(
        self, workflow: Workflow, descriptor: ReleaseDescriptor, request: ReleaseRequest
    ) -> Result[PipelineResult, ReleaseError]:
        phase_ids = self.catalog.phases(descriptor.release_strategy_id, workflow)
        if isinstance(phase_ids, Err):
            return phase_ids
        return self.pipeline.run(
            workflow,
            phase_ids.value,
            descriptor,
            request.environment,
            request.projects,
            simulate=request.simulate,
        )

    def _clean(
        self, descriptor: ReleaseDescriptor, projects: list[Project]
    ) -> Result[None, ReleaseError]:
        self.console.info("Cleaning up after release...")
        strategy = self.catalog.get(descriptor.release_strategy_id)
        if isinstance(strategy, Err):
            return strategy
        phase_ids = (
            *strategy.value.phases(Workflow.PREPARE),
            *strategy.value.phases(Workflow.BRANCH),
        )
        cleaned = self.pipeline.clean(phase_ids, descriptor, projects)
        if isinstance(cleaned, Err):
            return cleaned
        return Ok(None)


def _with_user_versions(request: ReleaseRequest) -> ReleaseDescriptor:
    descriptor = replace(
        request.descriptor,
        release_versions={**request.descriptor.release_versions, **request.release_versions},
        development_versions={
            **request.descriptor.development_versions,
            **request.development_versions,
        },
    )
    return descriptor
