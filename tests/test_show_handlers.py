import asyncio
import threading

import aiohttp
import pytest

from showme.errors import GitErrorCode, PathErrorCode
from showme.models.git import DiffResult, Repository
from showme.services.browser import BrowserOpener
from showme.services.content_store import TempArtifactStore
from showme.services.http_server import ContentServer
from showme.services.path_resolver import PathResolver
from showme.services.renderer import PygmentsDiffRenderer, PygmentsFileRenderer
from showme.services.show_diff import ShowDiffHandler, describe, request_for
from showme.services.show_file import ShowFileHandler
from tests.conftest import git, requires_git


class RecordingOpener(BrowserOpener):
    def __init__(self):
        super().__init__(environ={})
        self.opened = []

    def open(self, url: str) -> bool:
        self.opened.append(url)
        return True


async def fetch_text(url: str) -> str:
    async with aiohttp.ClientSession() as session:
        async with session.get(url) as response:
            assert response.status == 200
            return await response.text()


def run_with_server(handler_factory, call):
    """Start a server, run ``call(handler)`` and fetch the served page"""

    async def scenario():
        server = ContentServer(TempArtifactStore(), host="127.0.0.1")
        (await server.start(0)).unwrap()
        try:
            result = await call(handler_factory(server))
            page = await fetch_text(result.value.url) if result.ok else None
            return result, page
        finally:
            await server.dispose()

    return asyncio.run(scenario())


@pytest.mark.parametrize(
    "base, target, expected_type",
    [("v1", "v2", "commit-range"), ("develop", None, "branch"), (None, None, "unstaged"), (None, "v2", "unstaged")],
)
def test_request_for(base, target, expected_type):
    assert request_for(base, target, None).type == expected_type


def test_branch_request_compares_against_base():
    request = request_for("develop", None, ["src"])

    assert request.target == "develop"
    assert request.paths == ["src"]


def test_show_file_serves_highlighted_page(tmp_path):
    (tmp_path / "hello.py").write_text("def greet():\n    return 'hi'\n")
    opener = RecordingOpener()

    result, page = run_with_server(
        lambda server: ShowFileHandler(server, resolver=PathResolver(tmp_path), opener=opener),
        lambda handler: handler.handle("hello.py", line_highlight=2, open_browser=True),
    )

    response = result.unwrap()
    assert response.message == f"File hello.py at line 2 ready: {response.url}"
    assert response.opened
    assert opener.opened == [response.url]
    assert "greet" in page
    assert 'class="hll"' in page


def test_show_file_rejects_traversal_before_reading(tmp_path):
    result, _ = run_with_server(
        lambda server: ShowFileHandler(server, resolver=PathResolver(tmp_path / "ws")),
        lambda handler: handler.handle("../secret.txt"),
    )

    assert result.error.code == PathErrorCode.DIRECTORY_TRAVERSAL


def test_show_file_reports_undecodable_content(tmp_path):
    (tmp_path / "blob.txt").write_bytes(b"\xff\xfe\x00bad")

    result, _ = run_with_server(
        lambda server: ShowFileHandler(server, resolver=PathResolver(tmp_path)),
        lambda handler: handler.handle("blob.txt"),
    )

    assert result.error.code == PathErrorCode.FILE_READ_ERROR
    assert result.error.cause is not None


@requires_git
def test_show_diff_serves_working_tree_changes(git_repo):
    (git_repo / "a.txt").write_text("one\ntwo\nthree\nfour\n")

    result, page = run_with_server(
        lambda server: ShowDiffHandler(server),
        lambda handler: handler.handle(working_path=str(git_repo)),
    )

    response = result.unwrap()
    assert response.stats.additions == 1
    assert response.message == f"Git diff ready (1 files) +1/-0: {response.url}"
    assert not response.opened
    assert "a.txt" in page
    assert "four" in page


@requires_git
def test_show_diff_branch_comparison(git_repo, commit_file):
    git(git_repo, "checkout", "-q", "-b", "feature")
    commit_file(git_repo, "b.txt", "x\ny\n")

    result, _ = run_with_server(
        lambda server: ShowDiffHandler(server),
        lambda handler: handler.handle(base="main", working_path=str(git_repo)),
    )

    assert result.unwrap().message.startswith("Git diff ready main..HEAD (1 files) +2/-0: ")


@requires_git
def test_show_diff_propagates_git_errors(git_repo):
    result, _ = run_with_server(
        lambda server: ShowDiffHandler(server),
        lambda handler: handler.handle(base="nope-1", target="nope-2", working_path=str(git_repo)),
    )

    assert result.error.code in (GitErrorCode.INVALID_TARGET, GitErrorCode.AMBIGUOUS_TARGET)


def test_show_diff_rejects_option_like_file_before_git(tmp_path):
    handler = ShowDiffHandler(ContentServer(TempArtifactStore()))

    result = asyncio.run(handler.handle(files=["--evil"], working_path=str(tmp_path)))

    assert result.error.code == GitErrorCode.UNSAFE_PATH


def test_describe_without_changes():
    result = DiffResult(
        repository=Repository(git_root="/r", current_branch="main", working_directory="/r"),
        type="unstaged",
    )

    assert describe(result, request_for(None, None, None), "http://x/file/1") == "Git diff ready: http://x/file/1"


class ThreadRecordingRenderer(PygmentsFileRenderer):
    def __init__(self):
        super().__init__()
        self.threads = []

    def render(self, content, filename, line_highlight=None):
        self.threads.append(threading.get_ident())
        return super().render(content, filename, line_highlight)


def test_show_file_renders_off_the_event_loop(tmp_path):
    (tmp_path / "big.py").write_text("x = 1\n" * 500)
    renderer = ThreadRecordingRenderer()

    result, _ = run_with_server(
        lambda server: ShowFileHandler(server, resolver=PathResolver(tmp_path), renderer=renderer),
        lambda handler: handler.handle("big.py"),
    )

    assert result.ok
    assert renderer.threads and threading.get_ident() not in renderer.threads


def test_show_many_files_serves_one_page_each(tmp_path):
    (tmp_path / "a.py").write_text("a = 1\n")
    (tmp_path / "b.md").write_text("# B\n")

    async def scenario():
        server = ContentServer(TempArtifactStore(), host="127.0.0.1")
        (await server.start(0)).unwrap()
        try:
            handler = ShowFileHandler(server, resolver=PathResolver(tmp_path))
            responses = (await handler.handle_many(["a.py", "b.md"])).unwrap()
            pages = [await fetch_text(r.url) for r in responses]
            return responses, pages
        finally:
            await server.dispose()

    responses, pages = asyncio.run(scenario())

    assert len({r.url for r in responses}) == 2
    assert responses[1].message.startswith("File b.md ready: ")
    assert "<title>a.py</title>" in pages[0]
    assert "<title>b.md</title>" in pages[1]


@pytest.mark.parametrize(
    "paths, code",
    [
        ([], PathErrorCode.MISSING_PATH),
        (["a.py", "../escape.py"], PathErrorCode.DIRECTORY_TRAVERSAL),
        (["a.py", "missing.py"], PathErrorCode.NOT_ACCESSIBLE),
    ],
)
def test_show_many_files_serves_nothing_when_any_path_fails(tmp_path, paths, code):
    (tmp_path / "a.py").write_text("a = 1\n")

    async def scenario():
        server = ContentServer(TempArtifactStore(), host="127.0.0.1")
        (await server.start(0)).unwrap()
        try:
            handler = ShowFileHandler(server, resolver=PathResolver(tmp_path))
            return await handler.handle_many(paths), len(server.store)
        finally:
            await server.dispose()

    result, stored = asyncio.run(scenario())

    assert result.error.code == code
    assert stored == 0


@requires_git
def test_show_diff_renders_off_the_event_loop(git_repo):
    (git_repo / "a.txt").write_text("changed\n")
    threads = []

    class Renderer(PygmentsDiffRenderer):
        def render(self, result, options=None):
            threads.append(threading.get_ident())
            return super().render(result, options)

    result, _ = run_with_server(
        lambda server: ShowDiffHandler(server, renderer=Renderer()),
        lambda handler: handler.handle(working_path=str(git_repo)),
    )

    assert result.ok
    assert threads and threading.get_ident() not in threads


def test_show_diff_rejects_null_byte_working_path():
    handler = ShowDiffHandler(ContentServer(TempArtifactStore()))

    result = asyncio.run(handler.handle(working_path="/tmp\0"))

    assert result.error.code == PathErrorCode.NULL_BYTE
