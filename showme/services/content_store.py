"""
Temp Artifact Store - In-memory generated content keyed by unguessable ids
"""

from __future__ import annotations

import logging
import secrets
import time
from typing import Callable

from showme.models.artifact import TempArtifact

logger = logging.getLogger(__name__)

DEFAULT_TTL_S = 60 * 60  # 1 hour
ID_BYTES = 16


class TempArtifactStore:
    """Owns every TempArtifact; entries expire after ``ttl_seconds``"""

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_S, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._artifacts: dict[str, TempArtifact] = {}

    def put(self, content: str, filename: str) -> TempArtifact:
        artifact = TempArtifact(
            id=secrets.token_hex(ID_BYTES),
            content=content,
            filename=filename,
            created_at=self._clock(),
        )
        self._artifacts[artifact.id] = artifact
        return artifact

    def get(self, artifact_id: str) -> TempArtifact | None:
        return self._artifacts.get(artifact_id)

    def sweep(self) -> int:
        """Drop expired entries, returning how many were removed"""
        now = self._clock()
        expired = [
            artifact_id
            for artifact_id, artifact in list(self._artifacts.items())
            if now - artifact.created_at > self.ttl_seconds
        ]
        for artifact_id in expired:
            artifact = self._artifacts.pop(artifact_id, None)
            if artifact is not None:
                logger.debug("[ContentStore] Expired %s (%s)", artifact_id, artifact.filename)
        return len(expired)

    def clear(self) -> None:
        self._artifacts.clear()

    def __len__(self) -> int:
        return len(self._artifacts)
