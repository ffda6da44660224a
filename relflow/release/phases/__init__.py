"""Concrete release phases.

``build_phase_registry`` wires every phase named by the default strategy to
one set of services. Alternate strategies may reorder or omit these ids but
cannot introduce new ones.
"""

from __future__ import annotations

from relflow.release.phase import PhaseRegistry, ReleasePhase

from .checks import (
    CheckDependencySnapshotsPhase,
    CheckManifestsPhase,
    ScmCheckModificationsPhase,
    VerifyCompletedPreparePhase,
)
from .common import PhaseDependencies
from .goals import RunCompletionGoalsPhase, RunPerformGoalsPhase, RunPreparationGoalsPhase
from .naming import InputVariablesPhase
from .resources import (
    CreateBackupManifestsPhase,
    GenerateReleaseManifestsPhase,
    RemoveReleaseManifestsPhase,
    RestoreBackupManifestsPhase,
)
from .rewrite import RewriteManifestsPhase, RewriteMode
from .scm import (
    CheckoutProjectPhase,
    CommitKind,
    EndReleasePhase,
    RemoveScmTagPhase,
    ScmBranchPhase,
    ScmCommitPhase,
    ScmTagPhase,
)
from .versions import MapMode, MapVersionsPhase

__all__ = ["PhaseDependencies", "build_phase_registry", "default_phases"]


def default_phases(deps: PhaseDependencies) -> list[ReleasePhase]:
    return [
        # checks
        CheckManifestsPhase("check-poms"),
        CheckManifestsPhase("check-poms-updateversions", require_scm=False),
        ScmCheckModificationsPhase(deps),
        CheckDependencySnapshotsPhase(deps),
        VerifyCompletedPreparePhase(),
        # files
        CreateBackupManifestsPhase(),
        RestoreBackupManifestsPhase(),
        GenerateReleaseManifestsPhase(),
        RemoveReleaseManifestsPhase(),
        # versions and names
        MapVersionsPhase("map-release-versions", MapMode.RELEASE, deps),
        MapVersionsPhase("map-development-versions", MapMode.DEVELOPMENT, deps),
        MapVersionsPhase("map-branch-versions", MapMode.BRANCH, deps),
        InputVariablesPhase("input-variables", deps),
        InputVariablesPhase("branch-input-variables", deps, branch=True),
        # manifests
        RewriteManifestsPhase("rewrite-poms-for-release", RewriteMode.RELEASE, deps),
        RewriteManifestsPhase("rewrite-poms-for-development", RewriteMode.DEVELOPMENT, deps),
        RewriteManifestsPhase("rewrite-poms-for-branch", RewriteMode.BRANCH, deps),
        RewriteManifestsPhase("rewrite-pom-versions", RewriteMode.VERSIONS, deps),
        # build
        RunPreparationGoalsPhase(deps),
        RunCompletionGoalsPhase(deps),
        RunPerformGoalsPhase(deps),
        # scm
        ScmCommitPhase("scm-commit-release", CommitKind.RELEASE, deps),
        ScmCommitPhase("scm-commit-development", CommitKind.DEVELOPMENT, deps),
        ScmCommitPhase("scm-commit-branch", CommitKind.BRANCH, deps),
        ScmCommitPhase("scm-commit-rollback", CommitKind.ROLLBACK, deps),
        ScmTagPhase(deps),
        ScmBranchPhase(deps),
        RemoveScmTagPhase(deps),
        CheckoutProjectPhase(deps),
        EndReleasePhase(),
    ]


def build_phase_registry(deps: PhaseDependencies) -> PhaseRegistry:
    return PhaseRegistry(default_phases(deps))
