"""TOML project manifests.

Layout understood by ``TomlManifestTransformer``::

    [project]
    name = "widget"
    version = "1.2-SNAPSHOT"

    [tool.relflow]
    group = "org.acme"
    modules = ["core", "cli"]

    [tool.relflow.scm]
    connection = "scm:git:https://example.org/acme/widget.git"
    developer-connection = "scm:git:git@example.org:acme/widget.git"
    url = "https://example.org/acme/widget"
    tag = "HEAD"

    [tool.relflow.dependencies]
    "org.acme:core" = "1.2-SNAPSHOT"

Reading goes through ``tomllib``; writing goes through the patch-list editor
so untouched bytes stay as they were.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.core.structured import StrDict, as_str_dict, get_str, get_str_list, get_table
from relflow.platform.files import atomic_write_text
from relflow.release.collaborators import ManifestChanges, ManifestDocument
from relflow.release.descriptor import ScmInfo
from relflow.release.model import Dependency, Project

from .editor import TextPatch, apply_patches, insert_keys, replace_value

__all__ = ["PROJECT_TABLE", "SCM_TABLE", "TomlManifest", "TomlManifestTransformer"]

PROJECT_TABLE = "project"
TOOL_TABLE = "tool.relflow"
SCM_TABLE = "tool.relflow.scm"
DEPENDENCIES_TABLE = "tool.relflow.dependencies"

_SCM_KEYS: tuple[tuple[str, str], ...] = (
    ("connection", "connection"),
    ("developer-connection", "developer_connection"),
    ("url", "url"),
    ("tag", "tag"),
    ("id", "id"),
)


@dataclass(frozen=True, slots=True)
class TomlManifest:
    """A manifest's original text plus its parsed, read-only view."""

    path: Path
    text: str
    data: StrDict


def _parse(path: Path, text: str) -> Result[StrDict, ReleaseError]:
    try:
        data = as_str_dict(tomllib.loads(text))
    except tomllib.TOMLDecodeError as e:
        return Err(
            ReleaseError(
                kind=ErrorKind.EXECUTION,
                message=f"Invalid TOML in {path.name}: {e}",
                hint=str(path),
            )
        )
    if data is None:
        return Err(ReleaseError(kind=ErrorKind.EXECUTION, message=f"Invalid manifest: {path}"))
    return Ok(data)


def _scm_info(tool: StrDict) -> ScmInfo | None:
    scm = get_table(tool, "scm")
    if scm is None:
        return None
    return ScmInfo(**{attr: get_str(scm, key) for key, attr in _SCM_KEYS})


class TomlManifestTransformer:
    """Extract, transform and load TOML manifests."""

    def extract(self, path: Path) -> Result[ManifestDocument, ReleaseError]:
        return self._read(path)

    def _read(self, path: Path) -> Result[TomlManifest, ReleaseError]:
        try:
            with path.open("r", encoding="utf-8", newline="") as handle:
                text = handle.read()
        except OSError as e:
            return Err(
                ReleaseError(
                    kind=ErrorKind.EXECUTION,
                    message=f"Error reading manifest: {e}",
                    hint=str(path),
                )
            )
        parsed = _parse(path, text)
        if isinstance(parsed, Err):
            return parsed
        return Ok(TomlManifest(path=path, text=text, data=parsed.value))

    def transform(
        self, document: ManifestDocument, changes: ManifestChanges
    ) -> Result[ManifestDocument, ReleaseError]:
        text = document.text
        patches: list[TextPatch] = []

        if changes.version is not None:
            patch = replace_value(text, PROJECT_TABLE, "version", changes.version)
            if patch is None:
                return Err(
                    ReleaseError(
                        kind=ErrorKind.FAILURE,
                        message=f"No [project] version in {document.path}",
                        hint="add version = \"...\" to the [project] table",
                    )
                )
            patches.append(patch)

        for key, version in (changes.dependencies or {}).items():
            patch = replace_value(text, DEPENDENCIES_TABLE, key, version)
            if patch is not None:
                patches.append(patch)

        if changes.scm is not None:
            missing: list[tuple[str, str]] = []
            for key, attr in _SCM_KEYS:
                value = getattr(changes.scm, attr)
                if value is None:
                    continue
                patch = replace_value(text, SCM_TABLE, key, value)
                if patch is None:
                    missing.append((key, value))
                else:
                    patches.append(patch)
            if missing:
                patches.append(insert_keys(text, SCM_TABLE, missing))

        updated = apply_patches(text, patches)
        if isinstance(updated, Err):
            return Err(
                ReleaseError(
                    kind=updated.error.kind,
                    message=updated.error.message,
                    hint=str(document.path),
                )
            )
        parsed = _parse(document.path, updated.value)
        if isinstance(parsed, Err):
            return parsed
        return Ok(TomlManifest(path=document.path, text=updated.value, data=parsed.value))

    def load(self, document: ManifestDocument) -> Result[Path, ReleaseError]:
        try:
            atomic_write_text(document.path, document.text)
        except OSError as e:
            return Err(
                ReleaseError(
                    kind=ErrorKind.EXECUTION,
                    message=f"Error writing manifest: {e}",
                    hint=str(document.path),
                )
            )
        return Ok(document.path)

    def read_projects(self, root: Path, manifest_name: str) -> Result[list[Project], ReleaseError]:
        """Read the root manifest and, recursively, its modules (root first)."""
        projects: list[Project] = []
        seen: set[Path] = set()
        error = self._read_tree(root / manifest_name, manifest_name, None, projects, seen)
        if error is not None:
            return Err(error)
        return Ok(projects)

    def _read_tree(
        self,
        manifest: Path,
        manifest_name: str,
        parent_group: str | None,
        projects: list[Project],
        seen: set[Path],
    ) -> ReleaseError | None:
        resolved = manifest.resolve()
        if resolved in seen:
            return None
        seen.add(resolved)

        extracted = self._read(manifest)
        if isinstance(extracted, Err):
            return extracted.error
        document = extracted.value

        built = _project_from(document, parent_group)
        if isinstance(built, Err):
            return built.error
        project = built.value
        projects.append(project)

        for module in project.modules:
            error = self._read_tree(
                manifest.parent / module / manifest_name,
                manifest_name,
                project.group_id,
                projects,
                seen,
            )
            if error is not None:
                return error
        return None


def _project_from(document: TomlManifest, parent_group: str | None) -> Result[Project, ReleaseError]:
    project: StrDict = get_table(document.data, "project") or {}
    tool: StrDict = get_table(get_table(document.data, "tool") or {}, "relflow") or {}

    name = get_str(project, "name")
    version = get_str(project, "version")
    if name is None or version is None:
        return Err(
            ReleaseError(
                kind=ErrorKind.FAILURE,
                message=f"Manifest {document.path} needs [project] name and version",
                hint=str(document.path),
            )
        )

    group = get_str(tool, "group") or parent_group or name
    deps_table: StrDict = get_table(tool, "dependencies") or {}
    dependencies = tuple(
        Dependency(key=key, version=value.strip())
        for key, value in deps_table.items()
        if isinstance(value, str) and value.strip()
    )

    return Ok(
        Project(
            group_id=group,
            artifact_id=name,
            version=version,
            manifest=document.path,
            scm=_scm_info(tool),
            dependencies=dependencies,
            modules=get_str_list(tool, "modules") or (),
        )
    )
