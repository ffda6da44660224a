from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from relflow.core.config import CONFIG_FILE_NAME, Config, load_config_or_default
from relflow.core.errors import ErrorCode
from relflow.core.result import Err
from relflow.exec.build import SubprocessBuildInvoker
from relflow.manifest.toml import TomlManifestTransformer
from relflow.output.console import ConsoleProtocol, RichConsole
from relflow.output.errors import print_release_error, release_error_exit_code
from relflow.release.manager import ReleaseManager
from relflow.release.model import Project
from relflow.release.phases import PhaseDependencies, build_phase_registry
from relflow.release.store import DescriptorStore
from relflow.release.strategy import StrategyCatalog
from relflow.scm.git import GitRepositoryProvider

DIRECTORY_ENV = "RELFLOW_DIRECTORY"


class TyperPrompter:
    """``Prompter`` reading answers from the terminal."""

    def prompt(self, message: str, default: str | None = None) -> str:
        if default is None:
            return str(typer.prompt(message, default="", show_default=False))
        return str(typer.prompt(message, default=default))


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: Config
    console: ConsoleProtocol
    transformer: TomlManifestTransformer
    manager: ReleaseManager

    def read_projects(self, manifest_name: str) -> list[Project]:
        result = self.transformer.read_projects(self.root, manifest_name)
        if isinstance(result, Err):
            print_release_error(result.error, self.console)
            raise typer.Exit(code=release_error_exit_code(result.error))
        return result.value


def _root() -> Path:
    configured = os.environ.get(DIRECTORY_ENV)
    return Path(configured).resolve() if configured else Path.cwd().resolve()


def build_context() -> CLIContext:
    root = _root()
    console = RichConsole()

    config_result = load_config_or_default(root / CONFIG_FILE_NAME)
    if isinstance(config_result, Err):
        error = config_result.error
        typer.echo(f"error: {error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    config = config_result.value

    transformer = TomlManifestTransformer()
    deps = PhaseDependencies(
        provider=GitRepositoryProvider(),
        invoker=SubprocessBuildInvoker(console),
        transformer=transformer,
        prompter=TyperPrompter(),
        console=console,
    )
    registry = build_phase_registry(deps)
    catalog = StrategyCatalog(config.strategies)

    valid = registry.validate(catalog)
    if isinstance(valid, Err):
        print_release_error(valid.error, console)
        raise typer.Exit(code=release_error_exit_code(valid.error))

    return CLIContext(
        root=root,
        config=config,
        console=console,
        transformer=transformer,
        manager=ReleaseManager(DescriptorStore(), registry, catalog, console),
    )
