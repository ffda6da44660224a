"""Typed configuration loading and access.

``relflow.toml`` (optional, in the project root) holds the settings a release
would otherwise need on the command line::

    [scm]
    url = "scm:git:git@example.org:acme/widget.git"
    tag-name-format = "v@{project.version}"
    comment-prefix = "[release] "

    [build]
    command = ["make"]
    preparation-goals = "check"
    perform-goals = "deploy"

    [release]
    strategy = "default"
    version-policy = "semver-minor"

    [strategies.quick]
    prepare = ["check-poms", "map-release-versions", "rewrite-poms-for-release"]
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_int, get_str, get_str_list, get_table

if TYPE_CHECKING:
    from relflow.release.descriptor import ReleaseDescriptor
    from relflow.release.model import ReleaseEnvironment
    from relflow.release.strategy import Strategy

__all__ = [
    "CONFIG_FILE_NAME",
    "BuildConfig",
    "Config",
    "ConfigError",
    "ReleaseConfig",
    "ScmConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "relflow.toml"

DEFAULT_PREPARATION_GOALS = "check"
DEFAULT_PERFORM_GOALS = "deploy"
DEFAULT_MANIFEST = "pyproject.toml"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ScmConfig:
    url: str | None = None
    id: str | None = None
    username: str | None = None
    password: str | None = None
    private_key: str | None = None
    passphrase: str | None = None
    tag_base: str | None = None
    branch_base: str | None = None
    tag_name_format: str | None = None
    comment_prefix: str | None = None
    release_commit_comment: str | None = None
    development_commit_comment: str | None = None
    branch_commit_comment: str | None = None
    rollback_commit_comment: str | None = None
    check_modification_excludes: tuple[str, ...] = ()
    push_changes: bool = True
    remote_tagging: bool = True
    local_checkout: bool = False
    use_edit_mode: bool = False


def _empty_env() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class BuildConfig:
    command: tuple[str, ...] = ("make",)
    manifest: str = DEFAULT_MANIFEST
    preparation_goals: str = DEFAULT_PREPARATION_GOALS
    completion_goals: str | None = None
    perform_goals: str = DEFAULT_PERFORM_GOALS
    arguments: str | None = None
    timeout: int | None = None
    env: dict[str, str] = field(default_factory=_empty_env)

    def to_environment(self) -> ReleaseEnvironment:
        from relflow.release.model import ReleaseEnvironment

        return ReleaseEnvironment(
            build_command=self.command,
            environment=dict(self.env),
            timeout=float(self.timeout) if self.timeout else None,
        )


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    strategy: str | None = None
    version_policy: str | None = None
    naming_policy: str | None = None
    interactive: bool = True
    update_dependencies: bool = True
    auto_version_submodules: bool = False
    allow_timestamped_snapshots: bool = False
    commit_by_project: bool = False
    generate_release_manifests: bool = False
    wait_before_tagging: int = 0


def _empty_strategies() -> dict[str, Strategy]:
    return {}


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    scm: ScmConfig = field(default_factory=ScmConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    strategies: dict[str, Strategy] = field(default_factory=_empty_strategies)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        scm: StrDict = get_table(data, "scm") or {}
        build: StrDict = get_table(data, "build") or {}
        release: StrDict = get_table(data, "release") or {}
        strategies: StrDict = get_table(data, "strategies") or {}

        env_table: StrDict = get_table(build, "env") or {}
        env = {k: v for k, v in env_table.items() if isinstance(v, str)}

        def flag(table: StrDict, key: str, default: bool) -> bool:
            value = get_bool(table, key)
            return default if value is None else value

        return cls(
            scm=ScmConfig(
                url=get_str(scm, "url"),
                id=get_str(scm, "id"),
                username=get_str(scm, "username"),
                password=get_str(scm, "password"),
                private_key=get_str(scm, "private-key"),
                passphrase=get_str(scm, "passphrase"),
                tag_base=get_str(scm, "tag-base"),
                branch_base=get_str(scm, "branch-base"),
                tag_name_format=get_str(scm, "tag-name-format"),
                comment_prefix=_get_raw_str(scm, "comment-prefix"),
                release_commit_comment=get_str(scm, "release-commit-comment"),
                development_commit_comment=get_str(scm, "development-commit-comment"),
                branch_commit_comment=get_str(scm, "branch-commit-comment"),
                rollback_commit_comment=get_str(scm, "rollback-commit-comment"),
                check_modification_excludes=get_str_list(scm, "check-modification-excludes") or (),
                push_changes=flag(scm, "push-changes", True),
                remote_tagging=flag(scm, "remote-tagging", True),
                local_checkout=flag(scm, "local-checkout", False),
                use_edit_mode=flag(scm, "use-edit-mode", False),
            ),
            build=BuildConfig(
                command=get_str_list(build, "command") or ("make",),
                manifest=get_str(build, "manifest") or DEFAULT_MANIFEST,
                preparation_goals=get_str(build, "preparation-goals") or DEFAULT_PREPARATION_GOALS,
                completion_goals=get_str(build, "completion-goals"),
                perform_goals=get_str(build, "perform-goals") or DEFAULT_PERFORM_GOALS,
                arguments=get_str(build, "arguments"),
                timeout=get_int(build, "timeout"),
                env=env,
            ),
            release=ReleaseConfig(
                strategy=get_str(release, "strategy"),
                version_policy=get_str(release, "version-policy"),
                naming_policy=get_str(release, "naming-policy"),
                interactive=flag(release, "interactive", True),
                update_dependencies=flag(release, "update-dependencies", True),
                auto_version_submodules=flag(release, "auto-version-submodules", False),
                allow_timestamped_snapshots=flag(release, "allow-timestamped-snapshots", False),
                commit_by_project=flag(release, "commit-by-project", False),
                generate_release_manifests=flag(release, "generate-release-manifests", False),
                wait_before_tagging=get_int(release, "wait-before-tagging") or 0,
            ),
            strategies={
                name: _strategy_from_table(table)
                for name, table in strategies.items()
                if isinstance(table, dict)
            },
        )

    def to_descriptor(self, working_directory: Path) -> ReleaseDescriptor:
        """Caller descriptor for a run in ``working_directory``."""
        from relflow.release.descriptor import ReleaseDescriptor

        scm = self.scm
        build = self.build
        release = self.release
        return ReleaseDescriptor(
            scm_id=scm.id,
            scm_source_url=scm.url,
            scm_username=scm.username,
            scm_password=scm.password,
            scm_private_key=scm.private_key,
            scm_private_key_pass_phrase=scm.passphrase,
            scm_tag_base=scm.tag_base,
            scm_branch_base=scm.branch_base,
            scm_tag_name_format=scm.tag_name_format,
            scm_comment_prefix=scm.comment_prefix,
            scm_release_commit_comment=scm.release_commit_comment,
            scm_development_commit_comment=scm.development_commit_comment,
            scm_branch_commit_comment=scm.branch_commit_comment,
            scm_rollback_commit_comment=scm.rollback_commit_comment,
            check_modification_excludes=scm.check_modification_excludes or None,
            push_changes=scm.push_changes,
            remote_tagging=scm.remote_tagging,
            local_checkout=scm.local_checkout,
            scm_use_edit_mode=scm.use_edit_mode,
            manifest_file_name=build.manifest,
            preparation_goals=build.preparation_goals,
            completion_goals=build.completion_goals,
            perform_goals=build.perform_goals,
            additional_arguments=build.arguments,
            release_strategy_id=release.strategy,
            project_version_policy_id=release.version_policy,
            project_naming_policy_id=release.naming_policy,
            interactive=release.interactive,
            update_dependencies=release.update_dependencies,
            auto_version_submodules=release.auto_version_submodules,
            allow_timestamped_snapshots=release.allow_timestamped_snapshots,
            commit_by_project=release.commit_by_project,
            generate_release_manifests=release.generate_release_manifests,
            wait_before_tagging=release.wait_before_tagging,
            working_directory=working_directory,
        )


def _get_raw_str(table: Mapping[str, object], key: str) -> str | None:
    # comment prefixes keep their trailing space
    value = table.get(key)
    return value if isinstance(value, str) and value else None


def _strategy_from_table(table: Mapping[str, object]) -> Strategy:
    from relflow.release.strategy import Strategy

    return Strategy(
        prepare=get_str_list(table, "prepare"),
        perform=get_str_list(table, "perform"),
        branch=get_str_list(table, "branch"),
        rollback=get_str_list(table, "rollback"),
        update_versions=get_str_list(table, "update-versions"),
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Like ``load_config``, but a missing file yields the default config."""
    if not path.exists():
        return Ok(Config())
    return load_config(path)
