"""Checkpoint persistence for release descriptors.

The checkpoint lives in ``<working directory>/release.properties``. Only
settings and state are written; most behavioral flags are not, because the
caller's current value always wins on read (see ``relflow.release.merge``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.platform.files import atomic_write_text

from . import properties
from .descriptor import ReleaseDescriptor, ResolvedDependency, ScmInfo
from .merge import merge

__all__ = [
    "RELEASE_PROPERTIES",
    "DescriptorStore",
    "IdentityCipher",
    "SecretCipher",
    "descriptor_from_properties",
    "descriptor_to_properties",
]

RELEASE_PROPERTIES = "release.properties"

_COMMENT = "release configuration"

# (property key, descriptor field) for plain optional strings
_STRING_KEYS: tuple[tuple[str, str], ...] = (
    ("completedPhase", "completed_phase"),
    ("scm.id", "scm_id"),
    ("scm.url", "scm_source_url"),
    ("scm.username", "scm_username"),
    ("scm.privateKey", "scm_private_key"),
    ("scm.tagBase", "scm_tag_base"),
    ("scm.branchBase", "scm_branch_base"),
    ("scm.tag", "scm_release_label"),
    ("scm.tagNameFormat", "scm_tag_name_format"),
    ("scm.commentPrefix", "scm_comment_prefix"),
    ("scm.releaseCommitComment", "scm_release_commit_comment"),
    ("scm.developmentCommitComment", "scm_development_commit_comment"),
    ("scm.branchCommitComment", "scm_branch_commit_comment"),
    ("scm.rollbackCommitComment", "scm_rollback_commit_comment"),
    ("exec.additionalArguments", "additional_arguments"),
    ("exec.pomFileName", "manifest_file_name"),
    ("preparationGoals", "preparation_goals"),
    ("completionGoals", "completion_goals"),
    ("performGoals", "perform_goals"),
    ("projectVersionPolicyId", "project_version_policy_id"),
    ("projectNamingPolicyId", "project_naming_policy_id"),
    ("releaseStrategyId", "release_strategy_id"),
    ("defaultReleaseVersion", "default_release_version"),
    ("defaultDevelopmentVersion", "default_development_version"),
)

_SECRET_KEYS: tuple[tuple[str, str], ...] = (
    ("scm.password", "scm_password"),
    ("scm.passphrase", "scm_private_key_pass_phrase"),
)

_BOOL_KEYS: tuple[tuple[str, str], ...] = (
    ("exec.snapshotReleasePluginAllowed", "snapshot_release_plugin_allowed"),
    ("remoteTagging", "remote_tagging"),
    ("pushChanges", "push_changes"),
)

_SCM_FIELDS: tuple[tuple[str, str], ...] = (
    ("connection", "connection"),
    ("developerConnection", "developer_connection"),
    ("url", "url"),
    ("tag", "tag"),
    ("id", "id"),
)


class SecretCipher(Protocol):
    def encrypt(self, value: str) -> str: ...

    def decrypt(self, value: str) -> str: ...


class IdentityCipher:
    def encrypt(self, value: str) -> str:
        return value

    def decrypt(self, value: str) -> str:
        return value


def _parse_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def descriptor_to_properties(
    descriptor: ReleaseDescriptor, cipher: SecretCipher | None = None
) -> dict[str, str]:
    cipher = cipher or IdentityCipher()
    props: dict[str, str] = {}

    for key, name in _STRING_KEYS:
        value = getattr(descriptor, name)
        if value is not None:
            props[key] = value
    for key, name in _SECRET_KEYS:
        value = getattr(descriptor, name)
        if value is not None:
            props[key] = cipher.encrypt(value)

    if descriptor.commit_by_project:
        props["commitByProject"] = "true"
    if descriptor.check_modification_excludes:
        props["scm.checkModificationExcludes"] = ",".join(descriptor.check_modification_excludes)
    for key, name in _BOOL_KEYS:
        props[key] = "true" if getattr(descriptor, name) else "false"

    for module, version in descriptor.release_versions.items():
        props[f"project.rel.{module}"] = version
    for module, version in descriptor.development_versions.items():
        props[f"project.dev.{module}"] = version

    for module, scm in descriptor.original_scm_info.items():
        prefix = f"project.scm.{module}"
        if scm is None:
            props[f"{prefix}.empty"] = "true"
            continue
        written = False
        for key, attr in _SCM_FIELDS:
            value = getattr(scm, attr)
            if value is not None:
                props[f"{prefix}.{key}"] = value
                written = True
        if not written:
            # an SCM section without any value still has to come back
            props[f"{prefix}.defined"] = "true"

    for dep, resolved in descriptor.resolved_snapshot_dependencies.items():
        if resolved.release is not None:
            props[f"dependency.{dep}.release"] = resolved.release
        if resolved.development is not None:
            props[f"dependency.{dep}.development"] = resolved.development

    return props


def descriptor_from_properties(
    props: dict[str, str], cipher: SecretCipher | None = None
) -> ReleaseDescriptor:
    cipher = cipher or IdentityCipher()
    descriptor = ReleaseDescriptor()

    for key, name in _STRING_KEYS:
        if key in props:
            setattr(descriptor, name, props[key])
    for key, name in _SECRET_KEYS:
        if key in props:
            setattr(descriptor, name, cipher.decrypt(props[key]))

    if "commitByProject" in props:
        descriptor.commit_by_project = _parse_bool(props["commitByProject"])
    if "scm.checkModificationExcludes" in props:
        excludes = tuple(p.strip() for p in props["scm.checkModificationExcludes"].split(","))
        descriptor.check_modification_excludes = tuple(p for p in excludes if p) or None
    for key, name in _BOOL_KEYS:
        if key in props:
            setattr(descriptor, name, _parse_bool(props[key]))

    scm_keys: set[str] = set()
    for key, value in props.items():
        if key.startswith("project.rel."):
            descriptor.release_versions[key.removeprefix("project.rel.")] = value
        elif key.startswith("project.dev."):
            descriptor.development_versions[key.removeprefix("project.dev.")] = value
        elif key.startswith("project.scm."):
            module, sep, _ = key.removeprefix("project.scm.").rpartition(".")
            if sep and module:
                scm_keys.add(module)
        elif key.startswith("dependency."):
            _load_dependency(descriptor, key, value)

    for module in sorted(scm_keys):
        prefix = f"project.scm.{module}"
        if f"{prefix}.empty" in props:
            descriptor.original_scm_info[module] = None
            continue
        descriptor.original_scm_info[module] = ScmInfo(
            **{attr: props.get(f"{prefix}.{key}") for key, attr in _SCM_FIELDS}
        )

    return descriptor


def _load_dependency(descriptor: ReleaseDescriptor, key: str, value: str) -> None:
    rest = key.removeprefix("dependency.")
    if rest.endswith(".development"):
        dep = rest.removesuffix(".development")
        descriptor.resolve_dependency(dep, development=value)
    elif rest.endswith(".release"):
        dep = rest.removesuffix(".release")
        descriptor.resolve_dependency(dep, release=value)
    # other dependency.* keys belong to someone else


class DescriptorStore:
    """Reads, writes and deletes ``release.properties`` checkpoints."""

    def __init__(self, cipher: SecretCipher | None = None) -> None:
        self.cipher: SecretCipher = cipher or IdentityCipher()

    @staticmethod
    def path_for(descriptor: ReleaseDescriptor) -> Path:
        base = descriptor.working_directory or Path.cwd()
        return base / RELEASE_PROPERTIES

    def load(self, path: Path) -> Result[ReleaseDescriptor, ReleaseError]:
        """Read a checkpoint file as-is; a missing file is an empty descriptor."""
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Ok(ReleaseDescriptor())
        except (OSError, UnicodeDecodeError) as e:
            return Err(
                ReleaseError(
                    kind=ErrorKind.EXECUTION,
                    message=f"Error reading properties file '{path.name}': {e}",
                    hint=str(path),
                )
            )
        return Ok(descriptor_from_properties(properties.loads(text), self.cipher))

    def read(self, caller: ReleaseDescriptor) -> Result[ReleaseDescriptor, ReleaseError]:
        """The persisted checkpoint with the caller's settings merged over it."""
        loaded = self.load(self.path_for(caller))
        if isinstance(loaded, Err):
            return loaded
        return Ok(merge(into=loaded.value, source=caller))

    def write(self, descriptor: ReleaseDescriptor) -> Result[Path, ReleaseError]:
        path = self.path_for(descriptor)
        content = properties.dumps(descriptor_to_properties(descriptor, self.cipher), _COMMENT)
        try:
            atomic_write_text(path, content)
        except OSError as e:
            return Err(
                ReleaseError(
                    kind=ErrorKind.EXECUTION,
                    message=f"Error writing properties file '{path.name}': {e}",
                    hint=str(path),
                )
            )
        return Ok(path)

    def delete(self, descriptor: ReleaseDescriptor) -> Result[None, ReleaseError]:
        path = self.path_for(descriptor)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            return Err(
                ReleaseError(
                    kind=ErrorKind.EXECUTION,
                    message=f"Error deleting properties file '{path.name}': {e}",
                    hint=str(path),
                )
            )
        return Ok(None)
