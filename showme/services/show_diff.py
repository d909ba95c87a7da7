"""
Show Diff Handler - Detect, diff, render and serve in one request
"""

from __future__ import annotations

import asyncio
import logging
import os
import time

from showme.errors import Result
from showme.models.artifact import ShowResponse
from showme.models.git import DiffRequest, DiffResult
from showme.services.browser import BrowserOpener
from showme.services.diff_generator import DiffGenerator
from showme.services.http_server import ContentServer
from showme.services.renderer import DiffRenderer, DiffRenderOptions, PygmentsDiffRenderer

logger = logging.getLogger(__name__)


def request_for(base: str | None, target: str | None, files: list[str] | None) -> DiffRequest:
    """base+target compares two refs, base alone compares a branch with HEAD, neither shows the working tree"""
    if base and target:
        return DiffRequest(type="commit-range", base=base, target=target, paths=files)
    if base:
        return DiffRequest(type="branch", target=base, paths=files)
    return DiffRequest(type="unstaged", paths=files)


def describe(result: DiffResult, request: DiffRequest, url: str) -> str:
    stats = result.stats
    if request.type == "commit-range":
        compare = f" {request.base}..{request.target}"
    elif request.type == "branch":
        compare = f" {request.target}..HEAD"
    else:
        compare = ""
    files_text = f" ({stats.files_changed} files)" if stats.files_changed else ""
    changes = f" +{stats.additions}/-{stats.deletions}" if stats.additions + stats.deletions else ""
    return f"Git diff ready{compare}{files_text}{changes}: {url}"


class ShowDiffHandler:
    def __init__(
        self,
        server: ContentServer,
        generator: DiffGenerator | None = None,
        renderer: DiffRenderer | None = None,
        opener: BrowserOpener | None = None,
    ):
        self.server = server
        self.generator = generator or DiffGenerator()
        self.renderer = renderer or PygmentsDiffRenderer()
        self.opener = opener or BrowserOpener()

    async def handle(
        self,
        base: str | None = None,
        target: str | None = None,
        files: list[str] | None = None,
        working_path: str | os.PathLike | None = None,
        render_options: DiffRenderOptions | None = None,
        open_browser: bool = False,
    ) -> Result[ShowResponse]:
        start = time.monotonic()
        request = request_for(base, target, files)

        diff = await self.generator.generate_diff(working_path or os.getcwd(), request)
        if not diff.ok:
            logger.warning("[ShowDiff] Diff failed: %s", diff.error.to_log_format())
            return Result.failure(diff.error)

        page = await asyncio.to_thread(self.renderer.render, diff.value, render_options)
        served = self.server.put(page, "diff.html")
        if not served.ok:
            return Result.failure(served.error)

        opened = self.opener.open(served.value.url) if open_browser else False
        logger.info(
            "[ShowDiff] Request completed: %d files (%.0fms)",
            diff.value.stats.files_changed,
            (time.monotonic() - start) * 1000,
        )
        return Result.success(
            ShowResponse(
                url=served.value.url,
                id=served.value.id,
                message=describe(diff.value, request, served.value.url),
                stats=diff.value.stats,
                opened=opened,
            )
        )
