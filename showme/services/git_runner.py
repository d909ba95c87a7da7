"""
Git Runner - Shell-free, time- and size-bounded git subprocess execution
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from typing import Sequence

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0
DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024  # 10MB
READ_CHUNK_BYTES = 64 * 1024


class GitCommandError(Exception):
    """Raised by run_git; callers classify it into a ShowMeError"""

    def __init__(
        self,
        message: str,
        *,
        stderr: str = "",
        returncode: int | None = None,
        timed_out: bool = False,
        output_exceeded: bool = False,
        not_found: bool = False,
    ):
        super().__init__(message)
        self.stderr = stderr
        self.returncode = returncode
        self.timed_out = timed_out
        self.output_exceeded = output_exceeded
        self.not_found = not_found


class _OutputLimitExceeded(Exception):
    pass


async def _read_capped(stream: asyncio.StreamReader, limit: int) -> bytes:
    chunks = []
    size = 0
    while True:
        chunk = await stream.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        size += len(chunk)
        if size > limit:
            raise _OutputLimitExceeded(size)
        chunks.append(chunk)
    return b"".join(chunks)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
    await proc.wait()


async def run_git(
    args: Sequence[str],
    cwd: str | os.PathLike,
    timeout: float = DEFAULT_TIMEOUT_S,
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    git_binary: str = "git",
) -> str:
    """Run git with an argument list and return decoded stdout.

    The process is killed when it outlives ``timeout``, writes more than
    ``max_output_bytes`` to either stream, or the awaiting task is cancelled.
    """
    argv = [git_binary, *args]
    logger.debug("[GitRunner] %s (cwd=%s)", " ".join(argv), cwd)

    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, NotADirectoryError) as e:
        raise GitCommandError(f"ENOENT: {e}", not_found=True) from e
    except (OSError, ValueError) as e:
        # PermissionError, or an embedded null byte in cwd or argv
        raise GitCommandError(f"Failed to start git: {e}") from e

    async def collect() -> tuple[bytes, bytes]:
        out, err = await asyncio.gather(
            _read_capped(proc.stdout, max_output_bytes),
            _read_capped(proc.stderr, max_output_bytes),
        )
        await proc.wait()
        return out, err

    try:
        stdout, stderr = await asyncio.wait_for(collect(), timeout=timeout)
    except asyncio.TimeoutError as e:
        await _kill(proc)
        raise GitCommandError(f"git {args[0] if args else ''} timed out after {timeout}s", timed_out=True) from e
    except _OutputLimitExceeded as e:
        await _kill(proc)
        raise GitCommandError(
            f"git output exceeded {max_output_bytes} bytes", output_exceeded=True
        ) from e
    except asyncio.CancelledError:
        await _kill(proc)
        raise

    stderr_text = stderr.decode("utf-8", errors="replace").strip()
    if proc.returncode != 0:
        raise GitCommandError(
            stderr_text or f"git exited with status {proc.returncode}",
            stderr=stderr_text,
            returncode=proc.returncode,
        )
    return stdout.decode("utf-8", errors="replace")
