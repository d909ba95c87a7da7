"""Models module - Pydantic data models"""

from .git import (
    DiffChunk,
    DiffRequest,
    DiffResult,
    DiffStats,
    DiffType,
    FileDiff,
    FileStatus,
    Repository,
)
from .artifact import ServedArtifact, ServerInfo, ShowResponse, TempArtifact

__all__ = [
    # Git models
    "DiffChunk",
    "DiffRequest",
    "DiffResult",
    "DiffStats",
    "DiffType",
    "FileDiff",
    "FileStatus",
    "Repository",
    # Served content models
    "ServedArtifact",
    "ServerInfo",
    "ShowResponse",
    "TempArtifact",
]
