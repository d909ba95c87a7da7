"""
Content Server - Serve generated HTML at unguessable URLs and evict it after a TTL
"""

from __future__ import annotations

import asyncio
import contextlib
import errno
import logging
import os
import socket
from typing import Any

import aiohttp
import uvicorn

from showme.app import create_app
from showme.errors import Result, ServerErrorCode, ShowMeError
from showme.models.artifact import ServedArtifact, ServerInfo
from showme.services.content_store import TempArtifactStore

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_SWEEP_INTERVAL_S = 30 * 60  # 30 minutes
STARTUP_POLL_S = 0.01


async def check_health(base_url: str, timeout: float = 2.0) -> dict[str, Any] | None:
    """Ask a server for /health. Returns the payload, or None when nothing answers"""
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(f"{base_url}/health", timeout=aiohttp.ClientTimeout(total=timeout)) as response:
                if response.status != 200:
                    return None
                return await response.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        logger.debug("[ContentServer] Health check of %s failed: %s", base_url, e)
        return None


class ContentServer:
    """HTTP surface over a TempArtifactStore with a periodic eviction sweep"""

    def __init__(
        self,
        store: TempArtifactStore,
        host: str = DEFAULT_HOST,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_S,
    ):
        self.store = store
        self.host = host
        self.sweep_interval_seconds = sweep_interval_seconds
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task | None = None
        self._sweep_task: asyncio.Task | None = None
        self._socket: socket.socket | None = None
        self._info: ServerInfo | None = None

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ContentServer":
        store_cfg = config.get("store", {})
        server_cfg = config.get("server", {})
        store = TempArtifactStore(ttl_seconds=store_cfg.get("ttlSeconds", 3600))
        return cls(
            store,
            host=server_cfg.get("host", DEFAULT_HOST),
            sweep_interval_seconds=store_cfg.get("sweepIntervalSeconds", DEFAULT_SWEEP_INTERVAL_S),
        )

    @property
    def running(self) -> bool:
        return self._info is not None

    @property
    def base_url(self) -> str | None:
        return self._info.base_url if self._info else None

    async def start(self, port: int) -> Result[ServerInfo]:
        """Bind one local TCP port (0 picks a free one) and start serving"""
        if self._info is not None:
            return Result.success(self._info)

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        if os.name != "nt":
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, port))
        except OSError as e:
            sock.close()
            if e.errno == errno.EADDRINUSE:
                existing = await check_health(f"http://{self.host}:{port}")
                return Result.failure(
                    ShowMeError.server(
                        ServerErrorCode.ADDRESS_IN_USE,
                        f"Failed to start server: port {port} is already in use (EADDRINUSE)",
                        cause=e,
                        port=port,
                        existing_server=existing is not None,
                    )
                )
            return Result.failure(
                ShowMeError.server(ServerErrorCode.SERVER_START_ERROR, f"Failed to start server: {e}", cause=e, port=port)
            )

        config = uvicorn.Config(create_app(self.store), log_level="warning", access_log=False)
        server = uvicorn.Server(config)
        serve_task = asyncio.create_task(server.serve(sockets=[sock]))

        while not server.started:
            if serve_task.done():
                sock.close()
                cause = None if serve_task.cancelled() else serve_task.exception()
                return Result.failure(
                    ShowMeError.server(
                        ServerErrorCode.SERVER_START_ERROR,
                        f"Server exited during startup: {cause}",
                        cause=cause,
                        port=port,
                    )
                )
            await asyncio.sleep(STARTUP_POLL_S)

        actual_port = sock.getsockname()[1]
        self._server = server
        self._serve_task = serve_task
        self._socket = sock
        self._info = ServerInfo(port=actual_port, base_url=f"http://{self.host}:{actual_port}")
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        logger.info("[ContentServer] Listening on %s", self._info.base_url)
        return Result.success(self._info)

    def put(self, content: str, filename: str) -> Result[ServedArtifact]:
        """Store content and hand back the URL it is served at"""
        if self._info is None:
            return Result.failure(ShowMeError.server(ServerErrorCode.SERVER_NOT_STARTED, "Server not started"))

        artifact = self.store.put(content, filename)
        url = f"{self._info.base_url}/file/{artifact.id}"
        logger.info("[ContentServer] Serving %s at %s", filename, url)
        return Result.success(ServedArtifact(url=url, id=artifact.id))

    def sweep(self) -> int:
        removed = self.store.sweep()
        if removed:
            logger.info("[ContentServer] Evicted %d expired files, %d remaining", removed, len(self.store))
        return removed

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            self.sweep()

    async def wait_closed(self) -> None:
        """Block until the HTTP server exits (signal or dispose)"""
        if self._serve_task is not None:
            await asyncio.shield(self._serve_task)

    async def dispose(self) -> None:
        """Stop the sweep timer, close the socket and drop all content. Safe to repeat"""
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None

        if self._server is not None:
            self._server.should_exit = True
            if self._serve_task is not None:
                try:
                    await self._serve_task
                except Exception as e:
                    logger.warning("[ContentServer] Server task ended with error: %s", e)
            self._server = None
            self._serve_task = None
            logger.info("[ContentServer] Stopped")

        if self._socket is not None:
            self._socket.close()
            self._socket = None

        self._info = None
        self.store.clear()
