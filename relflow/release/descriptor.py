"""Release descriptor: configuration plus state accumulated by the phases.

The descriptor is the one mutable object a release run threads through its
phases. Configuration comes from the caller (config file, command line); state
(completed phase, version maps, original SCM sections) is filled in by phases
and persisted between runs by ``relflow.release.store``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

__all__ = [
    "ReleaseDescriptor",
    "ResolvedDependency",
    "ScmInfo",
    "module_key",
]


def module_key(group_id: str, artifact_id: str) -> str:
    """Key identifying a module in the descriptor's maps."""
    return f"{group_id}:{artifact_id}"


@dataclass(frozen=True, slots=True)
class ScmInfo:
    """SCM section of a project manifest."""

    connection: str | None = None
    developer_connection: str | None = None
    url: str | None = None
    tag: str | None = None
    id: str | None = None


@dataclass(frozen=True, slots=True)
class ResolvedDependency:
    """Versions chosen for a snapshot dependency during the release."""

    release: str | None = None
    development: str | None = None


@dataclass(slots=True)
class ReleaseDescriptor:
    # scm
    scm_id: str | None = None
    scm_source_url: str | None = None
    scm_username: str | None = None
    scm_password: str | None = None
    scm_private_key: str | None = None
    scm_private_key_pass_phrase: str | None = None
    scm_tag_base: str | None = None
    scm_branch_base: str | None = None
    scm_release_label: str | None = None
    scm_tag_name_format: str | None = None
    scm_comment_prefix: str | None = None
    scm_release_commit_comment: str | None = None
    scm_development_commit_comment: str | None = None
    scm_branch_commit_comment: str | None = None
    scm_rollback_commit_comment: str | None = None

    # build
    additional_arguments: str | None = None
    manifest_file_name: str | None = None
    preparation_goals: str | None = None
    completion_goals: str | None = None
    perform_goals: str | None = None

    # policies
    project_version_policy_id: str | None = None
    project_naming_policy_id: str | None = None
    release_strategy_id: str | None = None
    default_release_version: str | None = None
    default_development_version: str | None = None
    check_modification_excludes: tuple[str, ...] | None = None

    # ephemeral, never persisted
    working_directory: Path | None = None
    checkout_directory: Path | None = None

    # flags
    scm_use_edit_mode: bool = False
    add_schema: bool = True
    generate_release_manifests: bool = False
    interactive: bool = True
    update_dependencies: bool = True
    use_release_profile: bool = True
    branch_creation: bool = False
    update_branch_versions: bool = False
    update_working_copy_versions: bool = True
    suppress_commit_before_tag_or_branch: bool = False
    update_versions_to_snapshot: bool = False
    allow_timestamped_snapshots: bool = False
    snapshot_release_plugin_allowed: bool = False
    auto_version_submodules: bool = False
    remote_tagging: bool = True
    local_checkout: bool = False
    push_changes: bool = True
    commit_by_project: bool = False
    wait_before_tagging: int = 0

    # state
    completed_phase: str | None = None
    release_versions: dict[str, str] = field(default_factory=dict)
    development_versions: dict[str, str] = field(default_factory=dict)
    original_scm_info: dict[str, ScmInfo | None] = field(default_factory=dict)
    resolved_snapshot_dependencies: dict[str, ResolvedDependency] = field(default_factory=dict)

    def release_version(self, key: str) -> str | None:
        return self.release_versions.get(key)

    def development_version(self, key: str) -> str | None:
        return self.development_versions.get(key)

    def add_release_version(self, key: str, version: str) -> None:
        self.release_versions.setdefault(key, version)

    def add_development_version(self, key: str, version: str) -> None:
        self.development_versions.setdefault(key, version)

    def add_original_scm_info(self, key: str, scm: ScmInfo | None) -> None:
        self.original_scm_info.setdefault(key, scm)

    def resolve_dependency(
        self, key: str, *, release: str | None = None, development: str | None = None
    ) -> None:
        current = self.resolved_snapshot_dependencies.get(key, ResolvedDependency())
        self.resolved_snapshot_dependencies[key] = ResolvedDependency(
            release=release if release is not None else current.release,
            development=development if development is not None else current.development,
        )

    def is_snapshot_release_plugin_allowed(self) -> bool:
        return self.snapshot_release_plugin_allowed
