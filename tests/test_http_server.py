import asyncio

import aiohttp

from showme.errors import ErrorCategory, ServerErrorCode
from showme.services.content_store import TempArtifactStore
from showme.services.http_server import ContentServer, check_health


async def fetch(url: str) -> tuple[int, dict, str]:
    async with aiohttp.ClientSession() as session:
        async with session.get(url) as response:
            return response.status, dict(response.headers), await response.text()


async def started_server(**kwargs) -> ContentServer:
    server = ContentServer(TempArtifactStore(), host="127.0.0.1", **kwargs)
    server_info = await server.start(0)
    assert server_info.ok, server_info.error
    return server


def test_put_before_start_fails():
    server = ContentServer(TempArtifactStore())
    result = server.put("<p>x</p>", "x.html")

    assert not result.ok
    assert result.error.category == ErrorCategory.HTTP_SERVER
    assert result.error.code == ServerErrorCode.SERVER_NOT_STARTED


def test_serves_stored_html():
    async def scenario():
        server = await started_server()
        try:
            served = server.put("<h1>Hello</h1>", "hello.html").unwrap()
            assert served.url == f"{server.base_url}/file/{served.id}"
            first = await fetch(served.url)
            second = await fetch(served.url)
            return first, second
        finally:
            await server.dispose()

    (status, headers, body), second = asyncio.run(scenario())

    assert status == 200
    assert headers["Content-Type"].startswith("text/html")
    assert headers["Cache-Control"] == "no-cache"
    assert body == "<h1>Hello</h1>"
    assert second[2] == body


def test_unknown_paths_are_plain_text_404():
    async def scenario():
        server = await started_server()
        try:
            return [
                await fetch(f"{server.base_url}/file/{'0' * 32}"),
                await fetch(f"{server.base_url}/docs"),
                await fetch(f"{server.base_url}/"),
            ]
        finally:
            await server.dispose()

    missing_file, docs, root = asyncio.run(scenario())

    assert missing_file[0] == 404
    assert missing_file[2] == "File not found"
    for status, headers, body in (docs, root):
        assert status == 404
        assert headers["Content-Type"].startswith("text/plain")
        assert body == "Not found"


def test_health_reports_file_count():
    async def scenario():
        server = await started_server()
        try:
            server.put("a", "a.html")
            server.put("b", "b.html")
            return await check_health(server.base_url)
        finally:
            await server.dispose()

    assert asyncio.run(scenario()) == {"status": "ok", "tempFiles": 2}


def test_concurrent_puts_get_distinct_urls():
    async def scenario():
        server = await started_server()
        try:
            served = [server.put(f"<p>{i}</p>", f"{i}.html").unwrap() for i in range(20)]
            bodies = await asyncio.gather(*(fetch(s.url) for s in served))
            return served, bodies
        finally:
            await server.dispose()

    served, bodies = asyncio.run(scenario())

    assert len({s.url for s in served}) == 20
    assert [b[2] for b in bodies] == [f"<p>{i}</p>" for i in range(20)]


def test_expired_content_is_swept():
    async def scenario():
        server = await started_server()
        server.store.ttl_seconds = 0.05
        try:
            served = server.put("<p>soon gone</p>", "gone.html").unwrap()
            await asyncio.sleep(0.1)
            removed = server.sweep()
            return removed, await fetch(served.url)
        finally:
            await server.dispose()

    removed, (status, _, _) = asyncio.run(scenario())

    assert removed == 1
    assert status == 404


def test_sweep_loop_runs_on_interval():
    async def scenario():
        server = await started_server(sweep_interval_seconds=0.05)
        server.store.ttl_seconds = 0.01
        try:
            server.put("x", "x.html")
            await asyncio.sleep(0.3)
            return len(server.store)
        finally:
            await server.dispose()

    assert asyncio.run(scenario()) == 0


def test_address_in_use_detects_existing_server():
    async def scenario():
        first = await started_server()
        second = ContentServer(TempArtifactStore(), host="127.0.0.1")
        try:
            return await second.start(int(first.base_url.rsplit(":", 1)[1]))
        finally:
            await first.dispose()

    result = asyncio.run(scenario())

    assert not result.ok
    assert result.error.code == ServerErrorCode.ADDRESS_IN_USE
    assert result.error.context["existing_server"] is True


def test_dispose_is_idempotent_and_clears_content():
    async def scenario():
        server = await started_server()
        server.put("x", "x.html")
        await server.dispose()
        await server.dispose()
        return server

    server = asyncio.run(scenario())

    assert not server.running
    assert server.base_url is None
    assert len(server.store) == 0
    assert server.put("y", "y.html").error.code == ServerErrorCode.SERVER_NOT_STARTED


def test_dispose_before_start_is_harmless():
    asyncio.run(ContentServer(TempArtifactStore()).dispose())
