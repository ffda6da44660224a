"""Choose the SCM tag (or branch) name of the release."""

from __future__ import annotations

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.policy.naming import (
    DEFAULT_NAMING_POLICY,
    NamingPolicyRequest,
    get_naming_policy,
    interpolate_name,
)
from relflow.release.model import Project
from relflow.release.phase import PhaseRun, ReleasePhase

from .common import PhaseDependencies

__all__ = ["InputVariablesPhase"]


class InputVariablesPhase(ReleasePhase):
    """Fill ``scm_release_label``.

    For a release the label is proposed from the naming policy (or the
    configured tag name format) and confirmed interactively. A branch name has
    no proposal: it must be given, either up front or at the prompt.
    """

    def __init__(self, phase_id: str, deps: PhaseDependencies, *, branch: bool = False) -> None:
        self.phase_id = phase_id
        self.deps = deps
        self.branch = branch

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        descriptor = run.descriptor
        root = run.root_project
        if descriptor.scm_release_label is not None or root is None:
            return Ok(None)

        if self.branch:
            name = ""
            if descriptor.interactive:
                name = self.deps.prompter.prompt(
                    f'What is the branch name for "{root.artifact_id}"? ({root.key})'
                ).strip()
            if not name:
                return Err(
                    ReleaseError(
                        kind=ErrorKind.FAILURE,
                        message="No branch name was given.",
                        hint="pass --branch-name",
                    )
                )
            descriptor.scm_release_label = name
            run.result.info(f"Branch name: {name}")
            return Ok(None)

        release_version = descriptor.release_version(root.key)
        if release_version is None:
            return Err(
                ReleaseError(
                    kind=ErrorKind.EXECUTION,
                    message="Project tag cannot be selected if version is not yet mapped",
                )
            )

        suggested = self._suggest(run, root, release_version)
        if isinstance(suggested, Err):
            return suggested

        tag = suggested.value
        if descriptor.interactive:
            tag = self.deps.prompter.prompt(
                f'What is the SCM release tag or label for "{root.artifact_id}"? ({root.key})',
                suggested.value,
            ).strip() or suggested.value
        descriptor.scm_release_label = tag
        run.result.info(f"Release tag: {tag}")
        return Ok(None)

    def _suggest(self, run: PhaseRun, root: Project, version: str) -> Result[str, ReleaseError]:
        descriptor = run.descriptor
        if descriptor.project_naming_policy_id is None and descriptor.scm_tag_name_format is not None:
            return interpolate_name(
                descriptor.scm_tag_name_format,
                {"groupId": root.group_id, "artifactId": root.artifact_id, "version": version},
            )

        policy = get_naming_policy(
            descriptor.project_naming_policy_id or DEFAULT_NAMING_POLICY,
            dict(self.deps.naming_policies),
        )
        if isinstance(policy, Err):
            return policy
        return policy.value.get_name(
            NamingPolicyRequest(
                version=version,
                branch=self.branch,
                group_id=root.group_id,
                artifact_id=root.artifact_id,
            )
        )
