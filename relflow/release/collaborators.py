"""Interfaces of the services the release phases drive.

Phases never talk to git, the build tool or the manifest files directly; they
go through these protocols so every one of them can be replaced (or mocked).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from relflow.core.errors import ReleaseError
from relflow.core.result import Result

from .descriptor import ScmInfo
from .model import Project, ReleaseEnvironment

__all__ = [
    "BuildInvoker",
    "BuildOutput",
    "FileStatus",
    "ManifestChanges",
    "ManifestDocument",
    "ManifestTransformer",
    "Prompter",
    "RepositoryProvider",
    "ScmCredentials",
]


@dataclass(frozen=True, slots=True)
class ScmCredentials:
    username: str | None = None
    password: str | None = None
    private_key: str | None = None
    passphrase: str | None = None


@dataclass(frozen=True, slots=True)
class FileStatus:
    """One changed file in a working copy (porcelain status code + path)."""

    code: str
    path: str


class RepositoryProvider(Protocol):
    """Version-control operations used by the phases.

    Every operation addresses a working copy directory; ``url`` identifies the
    remote repository where one is needed. Mutating operations are ``checkout``,
    ``commit``, ``tag``, ``branch`` and ``remove_tag``.
    """

    def status(self, working_directory: Path) -> Result[list[FileStatus], ReleaseError]: ...

    def checkout(
        self, url: str, tag: str, target: Path, credentials: ScmCredentials
    ) -> Result[None, ReleaseError]: ...

    def commit(
        self,
        working_directory: Path,
        files: Sequence[Path],
        message: str,
        *,
        push: bool,
    ) -> Result[None, ReleaseError]: ...

    def tag(
        self,
        working_directory: Path,
        name: str,
        message: str,
        *,
        push: bool,
    ) -> Result[None, ReleaseError]: ...

    def branch(
        self,
        working_directory: Path,
        name: str,
        message: str,
        *,
        push: bool,
    ) -> Result[None, ReleaseError]: ...

    def remove_tag(
        self, working_directory: Path, name: str, *, push: bool
    ) -> Result[None, ReleaseError]: ...


@dataclass(frozen=True, slots=True)
class BuildOutput:
    command: tuple[str, ...]
    returncode: int
    output: str


class BuildInvoker(Protocol):
    def execute_goals(
        self,
        working_directory: Path,
        goals: str,
        environment: ReleaseEnvironment,
        interactive: bool,
        additional_arguments: str | None,
        manifest_file_name: str | None,
    ) -> Result[BuildOutput, ReleaseError]: ...


@dataclass(frozen=True, slots=True)
class ManifestChanges:
    """What to rewrite in one manifest.

    Attributes:
        version: New project version.
        dependencies: New versions of dependencies, by dependency key.
        scm: New SCM section values; ``None`` leaves the section alone.
    """

    version: str | None = None
    dependencies: Mapping[str, str] | None = None
    scm: ScmInfo | None = None


class ManifestDocument(Protocol):
    @property
    def path(self) -> Path: ...

    @property
    def text(self) -> str: ...


class ManifestTransformer(Protocol):
    """Extract/transform/load of project manifests."""

    def extract(self, path: Path) -> Result[ManifestDocument, ReleaseError]: ...

    def transform(
        self, document: ManifestDocument, changes: ManifestChanges
    ) -> Result[ManifestDocument, ReleaseError]: ...

    def load(self, document: ManifestDocument) -> Result[Path, ReleaseError]: ...

    def read_projects(
        self, root: Path, manifest_name: str
    ) -> Result[list[Project], ReleaseError]: ...


class Prompter(Protocol):
    def prompt(self, message: str, default: str | None = None) -> str: ...
