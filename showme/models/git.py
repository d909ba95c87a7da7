"""Git repository and diff data models"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DiffType = Literal["staged", "unstaged", "commit", "commit-range", "branch"]
FileStatus = Literal["added", "modified", "deleted", "renamed", "copied"]


class Repository(BaseModel):
    """Repository information, detected fresh for every request"""

    model_config = ConfigDict(frozen=True)

    git_root: str
    current_branch: str
    has_remote: bool = False
    remote_name: str | None = None
    remote_url: str | None = None
    working_directory: str


class DiffRequest(BaseModel):
    """What to diff and how"""

    model_config = ConfigDict(frozen=True)

    type: DiffType = "unstaged"
    base: str | None = None  # range start for commit-range
    target: str | None = None  # commit, range end, or branch to compare against
    paths: list[str] | None = None
    context_lines: int | None = Field(default=None, ge=0)
    ignore_whitespace: bool = False
    include_chunks: bool = False


class DiffChunk(BaseModel):
    """A single hunk of a unified diff"""

    model_config = ConfigDict(frozen=True)

    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    header: str
    content: str


class FileDiff(BaseModel):
    """Per-file change summary"""

    model_config = ConfigDict(frozen=True)

    path: str
    old_path: str | None = None  # only for renames and copies
    status: FileStatus = "modified"
    additions: int = 0
    deletions: int = 0
    binary: bool = False
    chunks: list[DiffChunk] = []


class DiffStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    files_changed: int = 0
    additions: int = 0
    deletions: int = 0


class DiffResult(BaseModel):
    """Complete diff for one request"""

    model_config = ConfigDict(frozen=True)

    repository: Repository
    type: DiffType
    target: str | None = None
    files: list[FileDiff] = []
    stats: DiffStats = DiffStats()
    raw: str = ""  # unified diff text, consumed by the renderer
