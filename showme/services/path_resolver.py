"""
Path Resolver - Validate caller-supplied paths against a workspace root
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any

from showme.errors import PathErrorCode, Result, ShowMeError

logger = logging.getLogger(__name__)

RESERVED_DEVICE_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{i}" for i in range(1, 10)]
    + [f"LPT{i}" for i in range(1, 10)]
)


def _file_stem(input_path: str) -> str:
    """Filename up to its first dot, uppercased"""
    name = input_path.replace("\\", "/").rsplit("/", 1)[-1]
    return name.split(".", 1)[0].upper()


def _is_within(path: Path, root: Path) -> bool:
    return path == root or root in path.parents


class PathResolver:
    """Resolve paths without touching the filesystem until the shape is known safe"""

    def __init__(self, workspace_root: str | os.PathLike | None = None, allow_absolute_paths: bool = True):
        self.workspace_root = Path(os.path.abspath(workspace_root or os.getcwd()))
        self.allow_absolute_paths = allow_absolute_paths

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "PathResolver":
        paths_cfg = config.get("paths", {})
        return cls(paths_cfg.get("workspaceRoot"), allow_absolute_paths=paths_cfg.get("allowAbsolute", True))

    def resolve_sync(self, input_path: str) -> Result[Path]:
        """Shape validation only, no I/O"""
        if "\0" in input_path:
            printable = input_path.replace("\0", "\\0")
            return Result.failure(
                ShowMeError.validation(
                    PathErrorCode.NULL_BYTE,
                    f"Path contains a null byte: {printable}",
                )
            )

        stem = _file_stem(input_path)
        if stem in RESERVED_DEVICE_NAMES:
            return Result.failure(
                ShowMeError.validation(
                    PathErrorCode.RESERVED_DEVICE_NAME,
                    f"Path uses a reserved device name: {stem}",
                    path=input_path,
                )
            )

        if os.path.isabs(input_path):
            resolved = Path(os.path.normpath(input_path))
            if not self.allow_absolute_paths and not _is_within(resolved, self.workspace_root):
                return Result.failure(
                    ShowMeError.validation(
                        PathErrorCode.ABSOLUTE_PATH_DENIED,
                        f"Absolute path outside workspace is not allowed: {input_path}",
                        path=input_path,
                    )
                )
            return Result.success(resolved)

        resolved = Path(os.path.normpath(os.path.join(self.workspace_root, input_path)))
        if not _is_within(resolved, self.workspace_root):
            if ".." in input_path:
                return Result.failure(
                    ShowMeError.validation(
                        PathErrorCode.DIRECTORY_TRAVERSAL,
                        f"Path contains directory traversal: {input_path}",
                        path=input_path,
                    )
                )
            return Result.failure(
                ShowMeError.validation(
                    PathErrorCode.OUTSIDE_WORKSPACE,
                    f"Path resolves outside workspace: {input_path}",
                    path=input_path,
                )
            )

        return Result.success(resolved)

    async def resolve(self, input_path: str, check_access: bool = False) -> Result[Path]:
        """Shape validation, then optionally a read-permission check"""
        result = self.resolve_sync(input_path)
        if not result.ok or not check_access:
            return result
        return await self._check_access(input_path, result.value)

    async def resolve_many(self, input_paths: list[str], check_access: bool = False) -> Result[list[Path]]:
        """Validate a batch, failing on the first bad entry.

        Every path passes shape validation before any of them is checked for access.
        """
        resolved = []
        for input_path in input_paths:
            result = self.resolve_sync(input_path)
            if not result.ok:
                return Result.failure(result.error)
            resolved.append(result.value)

        if check_access:
            for input_path, path in zip(input_paths, resolved):
                result = await self._check_access(input_path, path)
                if not result.ok:
                    return Result.failure(result.error)
        return Result.success(resolved)

    async def _check_access(self, input_path: str, path: Path) -> Result[Path]:
        readable = await asyncio.to_thread(os.access, path, os.R_OK)
        if not readable:
            logger.debug("[PathResolver] Not accessible: %s", path)
            return Result.failure(
                ShowMeError.validation(
                    PathErrorCode.NOT_ACCESSIBLE,
                    f"File not accessible: {input_path}",
                    path=str(path),
                )
            )
        return Result.success(path)
