"""
Show File Handler - Resolve, read, highlight and serve one or more files
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from showme.errors import PathErrorCode, Result, ShowMeError
from showme.models.artifact import ShowResponse
from showme.services.browser import BrowserOpener
from showme.services.http_server import ContentServer
from showme.services.path_resolver import PathResolver
from showme.services.renderer import FileRenderer, PygmentsFileRenderer

logger = logging.getLogger(__name__)


class ShowFileHandler:
    def __init__(
        self,
        server: ContentServer,
        resolver: PathResolver | None = None,
        renderer: FileRenderer | None = None,
        opener: BrowserOpener | None = None,
    ):
        self.server = server
        self.resolver = resolver or PathResolver()
        self.renderer = renderer or PygmentsFileRenderer()
        self.opener = opener or BrowserOpener()

    async def handle(self, path: str, line_highlight: int | None = None, open_browser: bool = False) -> Result[ShowResponse]:
        resolved = await self.resolver.resolve(path, check_access=True)
        if not resolved.ok:
            return Result.failure(resolved.error)

        page = await self._render(resolved.value, line_highlight)
        if not page.ok:
            return Result.failure(page.error)
        return self._serve(resolved.value, page.value, line_highlight, open_browser)

    async def handle_many(self, paths: list[str], open_browser: bool = False) -> Result[list[ShowResponse]]:
        """Validate and render every file before any of them is served"""
        if not paths:
            return Result.failure(ShowMeError.validation(PathErrorCode.MISSING_PATH, "No file paths provided"))

        resolved = await self.resolver.resolve_many(paths, check_access=True)
        if not resolved.ok:
            return Result.failure(resolved.error)

        pages = []
        for file_path in resolved.value:
            page = await self._render(file_path, None)
            if not page.ok:
                return Result.failure(page.error)
            pages.append(page.value)

        responses = []
        for file_path, page in zip(resolved.value, pages):
            served = self._serve(file_path, page, None, open_browser)
            if not served.ok:
                return Result.failure(served.error)
            responses.append(served.value)
        logger.info("[ShowFile] Serving %d files", len(responses))
        return Result.success(responses)

    async def _render(self, file_path: Path, line_highlight: int | None) -> Result[str]:
        try:
            content = await asyncio.to_thread(file_path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return Result.failure(
                ShowMeError.validation(
                    PathErrorCode.FILE_READ_ERROR, f"Failed to read file: {e}", cause=e, path=str(file_path)
                )
            )
        # CPU bound, off the loop
        page = await asyncio.to_thread(self.renderer.render, content, file_path.name, line_highlight)
        return Result.success(page)

    def _serve(
        self, file_path: Path, page: str, line_highlight: int | None, open_browser: bool
    ) -> Result[ShowResponse]:
        served = self.server.put(page, f"{file_path.name}.html")
        if not served.ok:
            return Result.failure(served.error)

        opened = self.opener.open(served.value.url) if open_browser else False
        line_text = f" at line {line_highlight}" if line_highlight else ""
        logger.info("[ShowFile] Serving %s%s", file_path, line_text)
        return Result.success(
            ShowResponse(
                url=served.value.url,
                id=served.value.id,
                message=f"File {file_path.name}{line_text} ready: {served.value.url}",
                opened=opened,
            )
        )
