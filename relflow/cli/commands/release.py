"""Release workflow commands: prepare, perform, branch, rollback, update-versions, clean."""

from __future__ import annotations

import typer

from relflow.cli.commands._helpers import caller_descriptor, parse_versions, run_workflow
from relflow.cli.context import build_context
from relflow.core.config import DEFAULT_MANIFEST
from relflow.core.result import Err
from relflow.output.errors import print_release_error, release_error_exit_code
from relflow.release.manager import ReleaseRequest


def _batch_mode(batch: bool) -> bool | None:
    return False if batch else None


def prepare(
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate: no commits, tags or pushes"),
    resume: bool = typer.Option(
        True, "--resume/--no-resume", help="Continue from release.properties if present"
    ),
    batch: bool = typer.Option(False, "--batch", help="Never prompt; use defaults and policies"),
    tag: str | None = typer.Option(None, "--tag", help="SCM tag of the release", show_default=False),
    release_version: list[str] = typer.Option(
        [], "--release-version", help="group:artifact=version (repeatable)"
    ),
    development_version: list[str] = typer.Option(
        [], "--development-version", help="group:artifact=version (repeatable)"
    ),
    scm_url: str | None = typer.Option(None, "--scm-url", help="SCM connection url", show_default=False),
    arguments: str | None = typer.Option(
        None, "--arguments", help="Extra arguments for every build", show_default=False
    ),
    strategy: str | None = typer.Option(None, "--strategy", help="Release strategy id", show_default=False),
    version_policy: str | None = typer.Option(
        None, "--version-policy", help="Version policy id", show_default=False
    ),
    auto_version_submodules: bool = typer.Option(
        False, "--auto-version-submodules", help="Give every module the root project's version"
    ),
    push: bool = typer.Option(True, "--push/--no-push", help="Push commits and tags"),
) -> None:
    """Prepare a release: set versions, build, commit, tag, move to the next snapshot."""
    ctx = build_context()
    descriptor = caller_descriptor(
        ctx,
        interactive=_batch_mode(batch),
        scm_release_label=tag,
        scm_source_url=scm_url,
        additional_arguments=arguments,
        release_strategy_id=strategy,
        project_version_policy_id=version_policy,
        auto_version_submodules=auto_version_submodules or None,
        push_changes=push,
    )
    projects = ctx.read_projects(descriptor.manifest_file_name or DEFAULT_MANIFEST)
    request = ReleaseRequest(
        descriptor=descriptor,
        environment=ctx.config.build.to_environment(),
        projects=projects,
        simulate=dry_run,
        resume=resume,
        release_versions=parse_versions(release_version, flag="--release-version"),
        development_versions=parse_versions(development_version, flag="--development-version"),
    )
    run_workflow(ctx, ctx.manager.prepare, request, "release prepared")


def perform(
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate: no checkout, no deploy"),
    clean: bool = typer.Option(True, "--clean/--no-clean", help="Remove release.properties afterwards"),
    arguments: str | None = typer.Option(
        None, "--arguments", help="Extra arguments for the perform build", show_default=False
    ),
    goals: str | None = typer.Option(None, "--goals", help="Perform goals", show_default=False),
    local_checkout: bool = typer.Option(
        False, "--local-checkout", help="Clone the tag from the working copy instead of the SCM url"
    ),
) -> None:
    """Perform a prepared release: check out the tag and run the perform goals."""
    ctx = build_context()
    descriptor = caller_descriptor(
        ctx,
        additional_arguments=arguments,
        perform_goals=goals,
        local_checkout=local_checkout or None,
    )
    request = ReleaseRequest(
        descriptor=descriptor,
        environment=ctx.config.build.to_environment(),
        projects=ctx.read_projects(descriptor.manifest_file_name or DEFAULT_MANIFEST),
        simulate=dry_run,
        clean=clean,
    )
    run_workflow(ctx, ctx.manager.perform, request, "release performed")


def branch(
    branch_name: str | None = typer.Option(
        None, "--branch-name", help="Name of the branch to create", show_default=False
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate: no commits, no branch"),
    batch: bool = typer.Option(False, "--batch", help="Never prompt; use defaults and policies"),
    update_branch_versions: bool = typer.Option(
        False, "--update-branch-versions", help="Change versions on the branch"
    ),
    update_working_copy_versions: bool = typer.Option(
        True,
        "--update-working-copy-versions/--keep-working-copy-versions",
        help="Move the working copy to the next snapshot",
    ),
    update_versions_to_snapshot: bool = typer.Option(
        False, "--update-versions-to-snapshot", help="Branch versions become snapshots"
    ),
    suppress_commit: bool = typer.Option(
        False, "--suppress-commit", help="Branch without committing the rewritten manifests first"
    ),
    push: bool = typer.Option(True, "--push/--no-push", help="Push commits and the branch"),
) -> None:
    """Create a branch of the project, optionally with new versions."""
    ctx = build_context()
    descriptor = caller_descriptor(
        ctx,
        branch_creation=True,
        scm_release_label=branch_name,
        interactive=_batch_mode(batch),
        update_branch_versions=update_branch_versions,
        update_working_copy_versions=update_working_copy_versions,
        update_versions_to_snapshot=update_versions_to_snapshot,
        suppress_commit_before_tag_or_branch=suppress_commit,
        push_changes=push,
    )
    request = ReleaseRequest(
        descriptor=descriptor,
        environment=ctx.config.build.to_environment(),
        projects=ctx.read_projects(descriptor.manifest_file_name or DEFAULT_MANIFEST),
        simulate=dry_run,
    )
    run_workflow(ctx, ctx.manager.branch, request, "branch created")


def rollback() -> None:
    """Roll back a prepared release: restore manifests, commit, delete the tag."""
    ctx = build_context()
    descriptor = caller_descriptor(ctx)
    request = ReleaseRequest(
        descriptor=descriptor,
        environment=ctx.config.build.to_environment(),
        projects=ctx.read_projects(descriptor.manifest_file_name or DEFAULT_MANIFEST),
    )
    run_workflow(ctx, ctx.manager.rollback, request, "release rolled back")


def update_versions(
    development_version: list[str] = typer.Option(
        [], "--development-version", help="group:artifact=version (repeatable)"
    ),
    batch: bool = typer.Option(False, "--batch", help="Never prompt; use defaults and policies"),
    auto_version_submodules: bool = typer.Option(
        False, "--auto-version-submodules", help="Give every module the root project's version"
    ),
) -> None:
    """Set new development versions without releasing."""
    ctx = build_context()
    descriptor = caller_descriptor(
        ctx,
        interactive=_batch_mode(batch),
        auto_version_submodules=auto_version_submodules or None,
    )
    request = ReleaseRequest(
        descriptor=descriptor,
        environment=ctx.config.build.to_environment(),
        projects=ctx.read_projects(descriptor.manifest_file_name or DEFAULT_MANIFEST),
        development_versions=parse_versions(development_version, flag="--development-version"),
    )
    run_workflow(ctx, ctx.manager.update_versions, request, "versions updated")


def clean() -> None:
    """Remove release.properties, manifest backups and release manifests."""
    ctx = build_context()
    descriptor = caller_descriptor(ctx)
    request = ReleaseRequest(
        descriptor=descriptor,
        environment=ctx.config.build.to_environment(),
        projects=ctx.read_projects(descriptor.manifest_file_name or DEFAULT_MANIFEST),
    )
    result = ctx.manager.clean(request)
    if isinstance(result, Err):
        print_release_error(result.error, ctx.console)
        raise typer.Exit(code=release_error_exit_code(result.error))
    ctx.console.success("cleaned")
