"""
Diff Parser - Structured file records from git numstat and unified diff text

Line counts and file status come from ``--numstat --summary`` output only.
Hunk scanning attaches chunk structure and never recomputes counts.
"""

from __future__ import annotations

import codecs
import re

from unidiff import Hunk, PatchedFile, PatchSet

from showme.models.git import DiffChunk, DiffStats, FileDiff

NUMSTAT_RE = re.compile(r"^(\d+|-)\t(\d+|-)\t(.*)$")
SUMMARY_RE = re.compile(r"^ (create|delete) mode \d+ (.*)$")
SUMMARY_MOVE_RE = re.compile(r"^ (rename|copy) (.*) \(\d+%\)$")
BRACE_RENAME_RE = re.compile(r"^(?P<prefix>.*?)\{(?P<old>.*?) => (?P<new>.*?)\}(?P<suffix>.*)$")

SUMMARY_STATUS = {"create": "added", "delete": "deleted", "rename": "renamed", "copy": "copied"}
DEV_NULL = "/dev/null"


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting of unusual path names"""
    if len(path) >= 2 and path[0] == path[-1] == '"':
        raw = codecs.escape_decode(path[1:-1].encode("utf-8"))[0]
        return raw.decode("utf-8", errors="replace")
    return path


def split_rename(path: str) -> tuple[str | None, str]:
    """Split a numstat/summary rename expression into (old_path, new_path)"""
    match = BRACE_RENAME_RE.match(path)
    if match:
        prefix, suffix = match.group("prefix"), match.group("suffix")
        # An empty side ("{ => sub}/x.py") leaves a doubled or leading slash
        old = (prefix + match.group("old") + suffix).replace("//", "/").lstrip("/")
        new = (prefix + match.group("new") + suffix).replace("//", "/").lstrip("/")
        return old, new
    if " => " in path:
        old, new = path.split(" => ", 1)
        return unquote_path(old), unquote_path(new)
    return None, unquote_path(path)


def parse_stats(numstat_text: str) -> tuple[list[FileDiff], DiffStats]:
    """Parse ``git diff --numstat --summary`` output"""
    records: dict[str, dict] = {}
    order: list[str] = []

    for line in numstat_text.splitlines():
        match = NUMSTAT_RE.match(line)
        if not match:
            continue
        added, deleted, path_expr = match.groups()
        old_path, path = split_rename(path_expr)
        binary = added == "-" or deleted == "-"
        if path not in records:
            order.append(path)
            records[path] = {
                "path": path,
                "old_path": old_path,
                "status": "renamed" if old_path else "modified",
                "additions": 0,
                "deletions": 0,
                "binary": False,
            }
        record = records[path]
        record["additions"] += 0 if added == "-" else int(added)
        record["deletions"] += 0 if deleted == "-" else int(deleted)
        record["binary"] = record["binary"] or binary

    for line in numstat_text.splitlines():
        match = SUMMARY_RE.match(line)
        if match:
            kind, path = match.group(1), unquote_path(match.group(2))
            if path in records:
                records[path]["status"] = SUMMARY_STATUS[kind]
            continue
        match = SUMMARY_MOVE_RE.match(line)
        if match:
            kind = match.group(1)
            old_path, path = split_rename(match.group(2))
            if path in records:
                records[path]["status"] = SUMMARY_STATUS[kind]
                records[path]["old_path"] = old_path

    files = [FileDiff(**records[path]) for path in order]
    stats = DiffStats(
        files_changed=len(files),
        additions=sum(f.additions for f in files),
        deletions=sum(f.deletions for f in files),
    )
    return files, stats


def _chunk(hunk: Hunk) -> DiffChunk:
    header = f"@@ -{hunk.source_start},{hunk.source_length} +{hunk.target_start},{hunk.target_length} @@"
    if hunk.section_header:
        header += f" {hunk.section_header}"
    return DiffChunk(
        old_start=hunk.source_start,
        old_lines=hunk.source_length,
        new_start=hunk.target_start,
        new_lines=hunk.target_length,
        header=header,
        content="".join(str(line) for line in hunk).rstrip("\n"),
    )


def _side_paths(patched_file: PatchedFile) -> tuple[str | None, str | None]:
    """(old, new) with a/ b/ prefixes removed when present; /dev/null becomes None"""
    source = unquote_path(patched_file.source_file)
    target = unquote_path(patched_file.target_file)
    real = [(path, prefix) for path, prefix in ((source, "a/"), (target, "b/")) if path != DEV_NULL]
    prefixed = all(path.startswith(prefix) for path, prefix in real)

    def clean(path: str, prefix: str) -> str | None:
        if path == DEV_NULL:
            return None
        return path[len(prefix):] if prefixed else path

    return clean(source, "a/"), clean(target, "b/")


def parse_hunks(raw_text: str) -> list[FileDiff]:
    """Full-hunk parse of unified diff text (with or without a/ b/ prefixes)"""
    files = []
    for patched_file in PatchSet(raw_text):
        old, new = _side_paths(patched_file)
        if patched_file.is_added_file or old is None:
            status, path, old_path = "added", new or old, None
        elif patched_file.is_removed_file or new is None:
            status, path, old_path = "deleted", old, None
        elif old != new:
            status, path, old_path = "renamed", new, old
        else:
            status, path, old_path = "modified", new, None
        files.append(
            FileDiff(
                path=path,
                old_path=old_path,
                status=status,
                binary=patched_file.is_binary_file,
                chunks=[_chunk(hunk) for hunk in patched_file],
            )
        )
    return files


def attach_chunks(files: list[FileDiff], hunk_files: list[FileDiff]) -> list[FileDiff]:
    """Copy chunk structure from a hunk parse onto numstat records, matched by path"""
    by_path = {f.path: f for f in hunk_files}
    merged = []
    for file in files:
        parsed = by_path.get(file.path)
        if parsed is None and file.old_path:
            parsed = by_path.get(file.old_path)
        merged.append(file.model_copy(update={"chunks": parsed.chunks}) if parsed else file)
    return merged
