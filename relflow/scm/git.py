"""Git-backed repository provider.

Shells out to ``git``. SCM urls may carry the ``scm:git:`` prefix used in
manifests; it is stripped before use.

Usage:
    provider = GitRepositoryProvider()
    match provider.status(Path(".")):
        case Ok(files):
            print(f"{len(files)} changed file(s)")
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.platform.process import ProcessError
from relflow.platform.process import run as run_process
from relflow.release.collaborators import FileStatus, ScmCredentials

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NETWORK_COMMANDS = frozenset({"clone", "fetch", "pull", "push"})

SCM_PREFIX = "scm:git:"

__all__ = ["GitRepositoryProvider", "SCM_PREFIX", "git_url", "parse_porcelain"]


def git_url(url: str) -> Result[str, ReleaseError]:
    """Strip the ``scm:git:`` prefix; other ``scm:`` providers are rejected."""
    if url.startswith(SCM_PREFIX):
        return Ok(url[len(SCM_PREFIX) :])
    if url.startswith("scm:"):
        provider = url.split(":", 2)[1]
        return Err(
            ReleaseError(
                kind=ErrorKind.REPOSITORY_REPOSITORY,
                message=f"Unsupported SCM provider '{provider}' in {url}",
                hint="only scm:git: urls are supported",
            )
        )
    return Ok(url)


def parse_porcelain(output: str) -> list[FileStatus]:
    """Parse ``git status --porcelain=v1`` output."""
    entries: list[FileStatus] = []
    for line in output.splitlines():
        if len(line) < 4 or line.startswith("##"):
            continue
        code = line[:2]
        path = line[3:]
        if " -> " in path:
            # renames report "old -> new"
            path = path.split(" -> ", 1)[1]
        entries.append(FileStatus(code=code, path=path.strip('"')))
    return entries


class GitRepositoryProvider:
    """``RepositoryProvider`` implementation running git commands."""

    def __init__(self, remote: str = "origin") -> None:
        self.remote = remote

    def status(self, working_directory: Path) -> Result[list[FileStatus], ReleaseError]:
        match self._run(working_directory, ["status", "--porcelain=v1"]):
            case Err(e):
                return Err(self._error("status", e, "Unable to check for local modifications"))
            case Ok(stdout):
                return Ok(parse_porcelain(stdout))

    def checkout(
        self, url: str, tag: str, target: Path, credentials: ScmCredentials
    ) -> Result[None, ReleaseError]:
        resolved = git_url(url)
        if isinstance(resolved, Err):
            return resolved
        target.parent.mkdir(parents=True, exist_ok=True)
        args = ["clone", "--branch", tag, "--depth", "1", resolved.value, str(target)]
        result = self._run(target.parent, args, env=_credential_env(credentials))
        if isinstance(result, Err):
            return Err(self._error("clone", result.error, f"Unable to checkout {tag} from {url}"))
        return Ok(None)

    def commit(
        self,
        working_directory: Path,
        files: Sequence[Path],
        message: str,
        *,
        push: bool,
    ) -> Result[None, ReleaseError]:
        paths = [str(p) for p in files]
        added = self._run(working_directory, ["add", "--", *paths])
        if isinstance(added, Err):
            return Err(self._error("add", added.error, "Unable to stage files"))
        committed = self._run(working_directory, ["commit", "-m", message, "--", *paths])
        if isinstance(committed, Err):
            return Err(self._error("commit", committed.error, "Unable to commit files"))
        if push:
            return self._push(working_directory, ["HEAD"])
        return Ok(None)

    def tag(
        self,
        working_directory: Path,
        name: str,
        message: str,
        *,
        push: bool,
    ) -> Result[None, ReleaseError]:
        result = self._run(working_directory, ["tag", "-a", name, "-m", message])
        if isinstance(result, Err):
            return Err(self._error("tag", result.error, f"Unable to tag SCM as {name}"))
        if push:
            return self._push(working_directory, [f"refs/tags/{name}"])
        return Ok(None)

    def branch(
        self,
        working_directory: Path,
        name: str,
        message: str,
        *,
        push: bool,
    ) -> Result[None, ReleaseError]:
        # git branches carry no message; it is part of the branch commit instead
        result = self._run(working_directory, ["branch", name])
        if isinstance(result, Err):
            return Err(self._error("branch", result.error, f"Unable to branch SCM as {name}"))
        if push:
            return self._push(working_directory, [name])
        return Ok(None)

    def remove_tag(
        self, working_directory: Path, name: str, *, push: bool
    ) -> Result[None, ReleaseError]:
        result = self._run(working_directory, ["tag", "-d", name])
        if isinstance(result, Err):
            return Err(self._error("tag -d", result.error, f"Unable to remove tag {name}"))
        if push:
            return self._push(working_directory, [f":refs/tags/{name}"])
        return Ok(None)

    def _push(self, working_directory: Path, refspecs: list[str]) -> Result[None, ReleaseError]:
        result = self._run(working_directory, ["push", self.remote, *refspecs])
        if isinstance(result, Err):
            return Err(self._error("push", result.error, f"Unable to push to {self.remote}"))
        return Ok(None)

    def _run(
        self,
        path: Path,
        args: list[str],
        env: dict[str, str] | None = None,
    ) -> Result[str, ProcessError]:
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(path), *args], cwd=path, env=env, timeout=timeout)

    @staticmethod
    def _error(command: str, error: ProcessError, message: str) -> ReleaseError:
        detail = error.stderr.strip() or error.stdout.strip() or str(error)
        return ReleaseError(
            kind=ErrorKind.REPOSITORY_COMMAND,
            message=f"{message} (git {command} exit {error.returncode})",
            hint=detail,
        )


def _credential_env(credentials: ScmCredentials) -> dict[str, str] | None:
    if credentials.private_key is None:
        return None
    env = dict(os.environ)
    env["GIT_SSH_COMMAND"] = f"ssh -i {credentials.private_key} -o IdentitiesOnly=yes"
    return env
