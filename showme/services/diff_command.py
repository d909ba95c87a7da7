"""
Diff Command Builder - Turn a DiffRequest into git argument lists
"""

from __future__ import annotations

from showme.errors import GitErrorCode, Result, ShowMeError
from showme.models.git import DiffRequest

DEFAULT_BRANCH_TARGET = "main"


def validate_diff_paths(paths: list[str]) -> Result[list[str]]:
    """Reject path arguments that could escape the repo or be read as git options"""
    validated = []
    for path in paths:
        if "\0" in path or ".." in path or path.startswith("-"):
            return Result.failure(
                ShowMeError.git(GitErrorCode.UNSAFE_PATH, f"Unsafe path detected: {path!r}", path=path)
            )
        clean = path.strip().replace("\\", "/")
        if not clean:
            return Result.failure(ShowMeError.git(GitErrorCode.EMPTY_PATH, "Empty path provided"))
        if clean.startswith("-"):
            return Result.failure(
                ShowMeError.git(GitErrorCode.UNSAFE_PATH, f"Unsafe path detected: {path!r}", path=path)
            )
        validated.append(clean)
    return Result.success(validated)


def _validate_ref(ref: str | None) -> ShowMeError | None:
    if ref is None:
        return None
    if "\0" in ref or ref.strip().startswith("-") or not ref.strip():
        return ShowMeError.git(GitErrorCode.UNSAFE_PATH, f"Unsafe revision: {ref!r}", ref=ref)
    return None


def _revision_args(request: DiffRequest) -> list[str]:
    if request.type == "staged":
        return ["--cached"]
    if request.type == "unstaged":
        return []
    if request.type == "commit":
        target = request.target or "HEAD"
        return [f"{target}~1", target]
    if request.type == "commit-range":
        return [f"{request.base or 'HEAD~1'}..{request.target or 'HEAD'}"]
    if request.type == "branch":
        return [f"{request.target or DEFAULT_BRANCH_TARGET}...HEAD"]
    raise ValueError(f"Unknown diff type: {request.type}")


def _build(request: DiffRequest, output_args: list[str]) -> Result[list[str]]:
    # Every check runs before the argument list is assembled
    for ref in (request.base, request.target):
        error = _validate_ref(ref)
        if error:
            return Result.failure(error)

    paths: list[str] = []
    if request.paths:
        paths_result = validate_diff_paths(request.paths)
        if not paths_result.ok:
            return Result.failure(paths_result.error)
        paths = paths_result.value

    args = ["diff", *_revision_args(request)]
    if request.context_lines is not None:
        args.append(f"-U{request.context_lines}")
    if request.ignore_whitespace:
        args.append("--ignore-all-space")
    args.extend(output_args)
    if paths:
        args.append("--")
        args.extend(paths)
    return Result.success(args)


def build_diff_args(request: DiffRequest) -> Result[list[str]]:
    """Arguments for the raw unified diff body"""
    return _build(request, ["--no-prefix"])


def build_stats_args(request: DiffRequest) -> Result[list[str]]:
    """Arguments for per-file numeric statistics"""
    return _build(request, ["--numstat", "--summary"])
