import pytest

from showme.models.git import DiffChunk, FileDiff
from showme.services.diff_parser import (
    attach_chunks,
    parse_hunks,
    parse_stats,
    split_rename,
    unquote_path,
)

SAMPLE_DIFF = """diff --git a/src/app.py b/src/app.py
index 83db48f..bf269f4 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,3 +1,4 @@
 import os
-import sys
+import sys, json
+import re
 
@@ -10 +11 @@ def main():
-    pass
+    run()
diff --git a/new.txt b/new.txt
new file mode 100644
index 0000000..3b18e51
--- /dev/null
+++ b/new.txt
@@ -0,0 +1 @@
+hello
"""

NO_PREFIX_DIFF = """diff --git old.txt old.txt
deleted file mode 100644
index 3b18e51..0000000
--- old.txt
+++ /dev/null
@@ -1,2 +0,0 @@
-hello
-world
diff --git img.png img.png
index 1111111..2222222 100644
Binary files img.png and img.png differ
"""


def test_empty_numstat_gives_zero_stats():
    files, stats = parse_stats("")

    assert files == []
    assert (stats.files_changed, stats.additions, stats.deletions) == (0, 0, 0)


@pytest.mark.parametrize("count", [1, 3, 12])
def test_totals_equal_sum_of_files(count):
    lines = [f"{i}\t{i * 2}\tfile{i}.py" for i in range(count)]
    files, stats = parse_stats("\n".join(lines) + "\n")

    assert stats.files_changed == count == len(files)
    assert stats.additions == sum(f.additions for f in files) == sum(range(count))
    assert stats.deletions == sum(f.deletions for f in files) == 2 * sum(range(count))


def test_binary_file_counts_as_zero():
    files, stats = parse_stats("-\t-\tlogo.png\n2\t1\tREADME.md\n")

    assert files[0].binary
    assert (files[0].additions, files[0].deletions) == (0, 0)
    assert not files[1].binary
    assert (stats.additions, stats.deletions) == (2, 1)


def test_summary_lines_set_status():
    text = (
        "3\t0\tnew.py\n"
        "0\t4\tgone.py\n"
        "1\t1\tsame.py\n"
        " create mode 100644 new.py\n"
        " delete mode 100644 gone.py\n"
    )
    files, _ = parse_stats(text)
    status = {f.path: f.status for f in files}

    assert status == {"new.py": "added", "gone.py": "deleted", "same.py": "modified"}


def test_brace_rename_in_numstat_and_summary():
    text = "1\t0\tsrc/{old => new}/mod.py\n rename src/{old => new}/mod.py (90%)\n"
    files, stats = parse_stats(text)

    assert len(files) == 1
    assert files[0].path == "src/new/mod.py"
    assert files[0].old_path == "src/old/mod.py"
    assert files[0].status == "renamed"
    assert stats.additions == 1


def test_split_rename_forms():
    assert split_rename("a.txt => b.txt") == ("a.txt", "b.txt")
    assert split_rename("{ => sub}/x.py") == ("x.py", "sub/x.py")
    assert split_rename("plain.py") == (None, "plain.py")


def test_unquote_path_handles_git_quoting():
    assert unquote_path('"tab\\there.txt"') == "tab\there.txt"
    assert unquote_path('"caf\\303\\251.txt"') == "café.txt"
    assert unquote_path("plain.txt") == "plain.txt"


def test_parse_hunks_with_prefixes():
    files = parse_hunks(SAMPLE_DIFF)

    assert [f.path for f in files] == ["src/app.py", "new.txt"]
    app, new = files
    assert app.status == "modified"
    assert len(app.chunks) == 2
    first, second = app.chunks
    assert (first.old_start, first.old_lines, first.new_start, first.new_lines) == (1, 3, 1, 4)
    assert first.content.splitlines()[1] == "-import sys"
    assert (second.old_lines, second.new_lines) == (1, 1)
    assert new.status == "added"
    assert new.chunks[0].content == "+hello"


def test_parse_hunks_without_prefixes():
    files = parse_hunks(NO_PREFIX_DIFF)

    assert [f.path for f in files] == ["old.txt", "img.png"]
    assert files[0].status == "deleted"
    assert files[0].chunks[0].old_lines == 2
    assert files[1].binary
    assert files[1].chunks == []


def test_parse_hunks_reads_renames():
    text = (
        "diff --git a/old.py b/new.py\n"
        "similarity index 100%\n"
        "rename from old.py\n"
        "rename to new.py\n"
    )
    [file] = parse_hunks(text)

    assert (file.path, file.old_path, file.status) == ("new.py", "old.py", "renamed")


def test_attach_chunks_keeps_numstat_counts():
    files, _ = parse_stats("3\t1\tsrc/app.py\n1\t0\tnew.txt\n")
    merged = attach_chunks(files, parse_hunks(SAMPLE_DIFF))

    assert [len(f.chunks) for f in merged] == [2, 1]
    assert (merged[0].additions, merged[0].deletions) == (3, 1)


def test_attach_chunks_falls_back_to_old_path():
    files = [FileDiff(path="new.py", old_path="old.py", status="renamed")]
    chunk = DiffChunk(old_start=1, old_lines=1, new_start=1, new_lines=1, header="@@ -1 +1 @@", content="-a\n+b")
    hunks = [FileDiff(path="old.py", chunks=[chunk])]
    [merged] = attach_chunks(files, hunks)

    assert merged.path == "new.py"
    assert merged.chunks == [chunk]


def test_chunk_header_keeps_section_heading():
    app = parse_hunks(SAMPLE_DIFF)[0]

    assert app.chunks[0].header == "@@ -1,3 +1,4 @@"
    assert app.chunks[1].header == "@@ -10,1 +11,1 @@ def main():"

