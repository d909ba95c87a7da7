"""
Repository Locator - Detect the git repository containing a directory
"""

from __future__ import annotations

import logging
import os
import time

from showme.errors import GitErrorCode, PathErrorCode, Result, ShowMeError
from showme.models.git import Repository
from showme.services.git_runner import GitCommandError, run_git

logger = logging.getLogger(__name__)

ROOT_LOOKUP_TIMEOUT_S = 10.0
LOOKUP_TIMEOUT_S = 5.0


class RepositoryLocator:
    """Find root, branch and remote for a working directory"""

    def __init__(
        self,
        root_timeout: float = ROOT_LOOKUP_TIMEOUT_S,
        lookup_timeout: float = LOOKUP_TIMEOUT_S,
        git_binary: str = "git",
    ):
        self.root_timeout = root_timeout
        self.lookup_timeout = lookup_timeout
        self.git_binary = git_binary

    async def detect(self, path: str | os.PathLike) -> Result[Repository]:
        """Detect repository information; never cached, branch and remotes can change"""
        start = time.monotonic()
        if "\0" in os.fspath(path):
            return Result.failure(
                ShowMeError.validation(PathErrorCode.NULL_BYTE, "Working directory contains a null byte")
            )
        working_directory = os.path.abspath(path)

        root_result = await self._get_git_root(working_directory)
        if not root_result.ok:
            return Result.failure(root_result.error)
        git_root = root_result.value

        branch_result = await self._get_current_branch(git_root)
        if not branch_result.ok:
            return Result.failure(branch_result.error)

        remote = await self._get_remote(git_root)

        repository = Repository(
            git_root=git_root,
            current_branch=branch_result.value,
            has_remote=remote is not None,
            remote_name=remote[0] if remote else None,
            remote_url=remote[1] if remote else None,
            working_directory=working_directory,
        )
        logger.info(
            "[RepositoryLocator] Detected %s on %s (remote=%s, %.0fms)",
            git_root,
            repository.current_branch,
            repository.remote_name,
            (time.monotonic() - start) * 1000,
        )
        return Result.success(repository)

    async def is_repository(self, path: str | os.PathLike) -> bool:
        result = await self.detect(path)
        return result.ok

    async def _git(self, args: list[str], cwd: str, timeout: float) -> str:
        return await run_git(args, cwd=cwd, timeout=timeout, git_binary=self.git_binary)

    async def _get_git_root(self, working_directory: str) -> Result[str]:
        try:
            stdout = await self._git(["rev-parse", "--show-toplevel"], working_directory, self.root_timeout)
        except GitCommandError as e:
            message = str(e)
            lowered = message.lower()
            if "not a git repository" in lowered or "not a git repo" in lowered:
                return Result.failure(
                    ShowMeError.git(GitErrorCode.NOT_A_REPOSITORY, "Not a git repository", path=working_directory)
                )
            if e.not_found or "enoent" in lowered or "no such file or directory" in lowered:
                return Result.failure(
                    ShowMeError.git(
                        GitErrorCode.DIRECTORY_NOT_FOUND,
                        f"Directory does not exist: {working_directory}",
                        cause=e,
                    )
                )
            return Result.failure(
                ShowMeError.git(GitErrorCode.ROOT_LOOKUP_FAILED, f"Failed to get git root: {message}", cause=e)
            )

        git_root = stdout.strip()
        if not git_root:
            return Result.failure(ShowMeError.git(GitErrorCode.ROOT_LOOKUP_FAILED, "No git root found"))
        return Result.success(git_root)

    async def _get_current_branch(self, git_root: str) -> Result[str]:
        try:
            branch = (await self._git(["rev-parse", "--abbrev-ref", "HEAD"], git_root, self.lookup_timeout)).strip()
            if not branch or branch == "HEAD":
                # Detached HEAD: label with the short commit hash
                commit = await self._git(["rev-parse", "--short", "HEAD"], git_root, self.lookup_timeout)
                return Result.success(f"detached-{commit.strip()}")
            return Result.success(branch)
        except GitCommandError as e:
            return Result.failure(
                ShowMeError.git(GitErrorCode.BRANCH_LOOKUP_FAILED, f"Failed to get current branch: {e}", cause=e)
            )

    async def _get_remote(self, git_root: str) -> tuple[str, str] | None:
        """First configured remote as (name, url), or None"""
        try:
            names = [n for n in (await self._git(["remote"], git_root, self.lookup_timeout)).splitlines() if n.strip()]
            if not names:
                return None
            name = names[0].strip()
            url = await self._git(["remote", "get-url", name], git_root, self.lookup_timeout)
            return name, url.strip()
        except GitCommandError as e:
            logger.debug("[RepositoryLocator] Remote lookup failed in %s: %s", git_root, e)
            return None
