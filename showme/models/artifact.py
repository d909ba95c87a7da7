"""Served content data models"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from .git import DiffStats


class TempArtifact(BaseModel):
    """Generated content held in memory until it expires"""

    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    filename: str
    created_at: float  # monotonic seconds


class ServedArtifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    id: str


class ServerInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    port: int
    base_url: str


class ShowResponse(BaseModel):
    """What a show-file / show-diff request hands back to the tool layer"""

    url: str
    id: str
    message: str
    stats: DiffStats | None = None
    opened: bool = False
