"""Shared plumbing for the concrete phases.

``PhaseDependencies`` is the explicit service graph every phase receives at
construction; nothing is looked up globally.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from relflow.core.config import DEFAULT_MANIFEST
from relflow.output.console import ConsoleProtocol
from relflow.policy.naming import NAMING_POLICIES, NamingPolicy
from relflow.policy.version import VERSION_POLICIES, VersionPolicy
from relflow.release.collaborators import (
    BuildInvoker,
    ManifestTransformer,
    Prompter,
    RepositoryProvider,
    ScmCredentials,
)
from relflow.release.descriptor import ReleaseDescriptor
from relflow.release.model import Project

__all__ = [
    "BACKUP_SUFFIX",
    "DEFAULT_COMMENT_PREFIX",
    "RELEASE_MANIFEST_PREFIX",
    "PhaseDependencies",
    "backup_path",
    "credentials",
    "manifest_name",
    "reactor_keys",
    "relative",
    "release_manifest_path",
    "working_directory",
]

BACKUP_SUFFIX = ".releaseBackup"
RELEASE_MANIFEST_PREFIX = "release-"
DEFAULT_COMMENT_PREFIX = "[relflow] "


def _version_policies() -> dict[str, VersionPolicy]:
    return dict(VERSION_POLICIES)


def _naming_policies() -> dict[str, NamingPolicy]:
    return dict(NAMING_POLICIES)


@dataclass(frozen=True, slots=True)
class PhaseDependencies:
    """Services shared by the phases of one registry."""

    provider: RepositoryProvider
    invoker: BuildInvoker
    transformer: ManifestTransformer
    prompter: Prompter
    console: ConsoleProtocol | None = None
    version_policies: Mapping[str, VersionPolicy] = field(default_factory=_version_policies)
    naming_policies: Mapping[str, NamingPolicy] = field(default_factory=_naming_policies)


def working_directory(descriptor: ReleaseDescriptor) -> Path:
    return descriptor.working_directory or Path.cwd()


def manifest_name(descriptor: ReleaseDescriptor) -> str:
    return descriptor.manifest_file_name or DEFAULT_MANIFEST


def credentials(descriptor: ReleaseDescriptor) -> ScmCredentials:
    return ScmCredentials(
        username=descriptor.scm_username,
        password=descriptor.scm_password,
        private_key=descriptor.scm_private_key,
        passphrase=descriptor.scm_private_key_pass_phrase,
    )


def reactor_keys(projects: list[Project]) -> set[str]:
    return {p.key for p in projects}


def backup_path(project: Project) -> Path:
    return project.manifest.with_name(project.manifest.name + BACKUP_SUFFIX)


def release_manifest_path(project: Project) -> Path:
    return project.manifest.with_name(RELEASE_MANIFEST_PREFIX + project.manifest.name)


def relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)
