"""Descriptor merge rules.

``merge(into, source)`` combines a persisted descriptor (``into``) with the
caller's descriptor (``source``):

- optional string settings: ``source`` wins when set, ``into`` otherwise
- behavioral flags: always ``source``, the caller's current intent
- ``commit_by_project``: ``source`` only when it is not the default ``False``
- per-module maps: union, ``source`` wins on equal keys
- working/checkout directories: always ``source``, they are never persisted
- ``completed_phase``: ``into`` when set, ``source`` otherwise
"""

from __future__ import annotations

from dataclasses import fields, replace

from .descriptor import ReleaseDescriptor

__all__ = ["FLAG_FIELDS", "STRING_FIELDS", "merge"]

STRING_FIELDS: tuple[str, ...] = (
    "scm_id",
    "scm_source_url",
    "scm_username",
    "scm_password",
    "scm_private_key",
    "scm_private_key_pass_phrase",
    "scm_tag_base",
    "scm_branch_base",
    "scm_release_label",
    "scm_tag_name_format",
    "scm_comment_prefix",
    "scm_release_commit_comment",
    "scm_development_commit_comment",
    "scm_branch_commit_comment",
    "scm_rollback_commit_comment",
    "additional_arguments",
    "manifest_file_name",
    "preparation_goals",
    "completion_goals",
    "perform_goals",
    "project_version_policy_id",
    "project_naming_policy_id",
    "release_strategy_id",
    "default_release_version",
    "default_development_version",
    "check_modification_excludes",
)

FLAG_FIELDS: tuple[str, ...] = (
    "scm_use_edit_mode",
    "add_schema",
    "generate_release_manifests",
    "interactive",
    "update_dependencies",
    "use_release_profile",
    "branch_creation",
    "update_branch_versions",
    "update_working_copy_versions",
    "suppress_commit_before_tag_or_branch",
    "update_versions_to_snapshot",
    "allow_timestamped_snapshots",
    "snapshot_release_plugin_allowed",
    "auto_version_submodules",
    "remote_tagging",
    "local_checkout",
    "push_changes",
    "wait_before_tagging",
)

_COMMIT_BY_PROJECT_DEFAULT = False


def merge(into: ReleaseDescriptor, source: ReleaseDescriptor) -> ReleaseDescriptor:
    """Merge ``source`` over ``into``; neither input is modified."""
    changes: dict[str, object] = {}

    for name in STRING_FIELDS:
        value = getattr(source, name)
        changes[name] = value if value is not None else getattr(into, name)

    for name in FLAG_FIELDS:
        changes[name] = getattr(source, name)

    # only a non-default caller value overrides the persisted one
    if source.commit_by_project != _COMMIT_BY_PROJECT_DEFAULT:
        changes["commit_by_project"] = source.commit_by_project
    else:
        changes["commit_by_project"] = into.commit_by_project

    changes["working_directory"] = source.working_directory
    changes["checkout_directory"] = source.checkout_directory

    changes["completed_phase"] = into.completed_phase or source.completed_phase

    changes["release_versions"] = {**into.release_versions, **source.release_versions}
    changes["development_versions"] = {**into.development_versions, **source.development_versions}
    changes["original_scm_info"] = {**into.original_scm_info, **source.original_scm_info}
    changes["resolved_snapshot_dependencies"] = {
        **into.resolved_snapshot_dependencies,
        **source.resolved_snapshot_dependencies,
    }

    return replace(into, **changes)


def _covered_fields() -> set[str]:
    return {
        *STRING_FIELDS,
        *FLAG_FIELDS,
        "commit_by_project",
        "working_directory",
        "checkout_directory",
        "completed_phase",
        "release_versions",
        "development_versions",
        "original_scm_info",
        "resolved_snapshot_dependencies",
    }


def uncovered_fields() -> set[str]:
    """Descriptor fields no merge rule handles (should be empty)."""
    return {f.name for f in fields(ReleaseDescriptor)} - _covered_fields()
