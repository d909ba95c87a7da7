"""
Diff Generator Service - Run git diff for a repository and build a DiffResult
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any

from unidiff import UnidiffParseError

from showme.errors import GitErrorCode, Result, ShowMeError
from showme.models.git import DiffRequest, DiffResult, Repository
from showme.services.diff_command import build_diff_args, build_stats_args
from showme.services.diff_parser import attach_chunks, parse_hunks, parse_stats
from showme.services.git_runner import (
    DEFAULT_MAX_OUTPUT_BYTES,
    DEFAULT_TIMEOUT_S,
    GitCommandError,
    run_git,
)
from showme.services.repository_locator import RepositoryLocator

logger = logging.getLogger(__name__)


def classify_diff_error(error: GitCommandError, request: DiffRequest) -> ShowMeError:
    """Map a failed git diff invocation onto a specific error code"""
    message = str(error)
    lowered = message.lower()
    target = request.target or request.base

    if "bad revision" in lowered or "unknown revision" in lowered:
        return ShowMeError.git(GitErrorCode.INVALID_TARGET, f"Invalid commit or branch: {target}", cause=error)
    if "ambiguous argument" in lowered:
        return ShowMeError.git(GitErrorCode.AMBIGUOUS_TARGET, f"Ambiguous target: {target}", cause=error)
    if error.timed_out or "timed out" in lowered or "timeout" in lowered or "etimedout" in lowered:
        return ShowMeError.git(GitErrorCode.TIMEOUT, "Git operation timed out", cause=error)
    if error.output_exceeded:
        return ShowMeError.git(GitErrorCode.OUTPUT_TOO_LARGE, f"Diff output too large: {message}", cause=error)
    return ShowMeError.git(GitErrorCode.DIFF_COMMAND_ERROR, f"Git diff command failed: {message}", cause=error)


class DiffGenerator:
    """Generate structured diffs from a git working tree"""

    def __init__(
        self,
        locator: RepositoryLocator | None = None,
        timeout: float = DEFAULT_TIMEOUT_S,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
        git_binary: str = "git",
    ):
        self.locator = locator or RepositoryLocator(git_binary=git_binary)
        self.timeout = timeout
        self.max_output_bytes = max_output_bytes
        self.git_binary = git_binary

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "DiffGenerator":
        git_cfg = config.get("git", {})
        locator = RepositoryLocator(root_timeout=git_cfg.get("lookupTimeoutSeconds", 10))
        return cls(
            locator,
            timeout=git_cfg.get("diffTimeoutSeconds", DEFAULT_TIMEOUT_S),
            max_output_bytes=git_cfg.get("maxOutputBytes", DEFAULT_MAX_OUTPUT_BYTES),
        )

    async def generate_diff(self, working_path: str | os.PathLike, request: DiffRequest) -> Result[DiffResult]:
        """Detect the repository, then run the raw and numstat diffs"""
        start = time.monotonic()

        # Validate arguments before touching git at all
        diff_args = build_diff_args(request)
        if not diff_args.ok:
            return Result.failure(diff_args.error)
        stats_args = build_stats_args(request)
        if not stats_args.ok:
            return Result.failure(stats_args.error)

        repo_result = await self.locator.detect(working_path)
        if not repo_result.ok:
            return Result.failure(repo_result.error)
        repository = repo_result.value

        raw = await self._execute(repository, diff_args.value, request)
        if not raw.ok:
            return Result.failure(raw.error)
        numstat = await self._execute(repository, stats_args.value, request)
        if not numstat.ok:
            return Result.failure(numstat.error)

        result = self.build_result(repository, request, raw.value, numstat.value)
        logger.info(
            "[DiffGenerator] %s diff in %s: %d files +%d/-%d (%.0fms)",
            request.type,
            repository.git_root,
            result.stats.files_changed,
            result.stats.additions,
            result.stats.deletions,
            (time.monotonic() - start) * 1000,
        )
        return Result.success(result)

    @staticmethod
    def build_result(repository: Repository, request: DiffRequest, raw: str, numstat: str) -> DiffResult:
        files, stats = parse_stats(numstat)
        if request.include_chunks:
            try:
                files = attach_chunks(files, parse_hunks(raw))
            except UnidiffParseError as e:
                # Counts and status still stand; only chunk structure is missing
                logger.warning("[DiffGenerator] Could not parse hunks in %s: %s", repository.git_root, e)
        return DiffResult(
            repository=repository,
            type=request.type,
            target=request.target,
            files=files,
            stats=stats,
            raw=raw,
        )

    async def _execute(self, repository: Repository, args: list[str], request: DiffRequest) -> Result[str]:
        try:
            stdout = await run_git(
                args,
                cwd=repository.git_root,
                timeout=self.timeout,
                max_output_bytes=self.max_output_bytes,
                git_binary=self.git_binary,
            )
        except GitCommandError as e:
            error = classify_diff_error(e, request)
            logger.warning("[DiffGenerator] git %s failed: %s", " ".join(args), error.to_log_format())
            return Result.failure(error)
        return Result.success(stdout)

    async def staged_diff(self, working_path: str, paths: list[str] | None = None) -> Result[DiffResult]:
        return await self.generate_diff(working_path, DiffRequest(type="staged", paths=paths))

    async def unstaged_diff(self, working_path: str, paths: list[str] | None = None) -> Result[DiffResult]:
        return await self.generate_diff(working_path, DiffRequest(type="unstaged", paths=paths))

    async def commit_diff(
        self, working_path: str, commit: str | None = None, paths: list[str] | None = None
    ) -> Result[DiffResult]:
        return await self.generate_diff(working_path, DiffRequest(type="commit", target=commit, paths=paths))

    async def range_diff(
        self, working_path: str, base: str, target: str, paths: list[str] | None = None
    ) -> Result[DiffResult]:
        return await self.generate_diff(
            working_path, DiffRequest(type="commit-range", base=base, target=target, paths=paths)
        )

    async def branch_diff(
        self, working_path: str, base_branch: str | None = None, paths: list[str] | None = None
    ) -> Result[DiffResult]:
        return await self.generate_diff(working_path, DiffRequest(type="branch", target=base_branch, paths=paths))
