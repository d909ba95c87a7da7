"""
Renderers - Turn diffs and source files into standalone HTML pages
"""

from __future__ import annotations

import html
from typing import Protocol

from pydantic import BaseModel
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.lexers.diff import DiffLexer
from pygments.util import ClassNotFound

from showme.models.git import DiffResult, FileDiff

STATUS_BADGES = {
    "added": ("A", "Added"),
    "modified": ("M", "Modified"),
    "deleted": ("D", "Deleted"),
    "renamed": ("R", "Renamed"),
    "copied": ("C", "Copied"),
}

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ margin: 0; font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; background: {background}; color: {foreground}; }}
header {{ padding: 12px 20px; border-bottom: 1px solid {border}; }}
header .meta {{ font-size: 13px; opacity: 0.8; }}
main {{ padding: 12px 20px; }}
.file-list {{ list-style: none; padding: 0; font-size: 13px; }}
.badge {{ display: inline-block; width: 1.4em; text-align: center; font-weight: bold; }}
.adds {{ color: #2da44e; }} .dels {{ color: #cf222e; }}
.highlight pre {{ font-size: 13px; line-height: 1.45; overflow-x: auto; }}
.hll {{ background-color: #fff8c5; }}
{pygments_css}
</style>
</head>
<body>
<header>
<h1>{title}</h1>
<div class="meta">{meta}</div>
</header>
<main>
{body}
</main>
</body>
</html>
"""

SCHEMES = {
    "light": {"background": "#ffffff", "foreground": "#1f2328", "border": "#d0d7de", "style": "default"},
    "dark": {"background": "#0d1117", "foreground": "#e6edf3", "border": "#30363d", "style": "monokai"},
}


class DiffRenderOptions(BaseModel):
    output_format: str = "line-by-line"
    color_scheme: str = "light"
    draw_file_list: bool = True
    highlight: bool = True


class DiffRenderer(Protocol):
    def render(self, result: DiffResult, options: DiffRenderOptions | None = None) -> str: ...


class FileRenderer(Protocol):
    def render(self, content: str, filename: str, line_highlight: int | None = None) -> str: ...


def _page(title: str, meta: str, body: str, color_scheme: str, formatter: HtmlFormatter) -> str:
    scheme = SCHEMES.get(color_scheme, SCHEMES["light"])
    return PAGE_TEMPLATE.format(
        title=html.escape(title),
        meta=meta,
        body=body,
        background=scheme["background"],
        foreground=scheme["foreground"],
        border=scheme["border"],
        pygments_css=formatter.get_style_defs(".highlight"),
    )


def _file_list_item(file: FileDiff) -> str:
    label, title = STATUS_BADGES.get(file.status, ("?", file.status))
    name = html.escape(file.path)
    if file.old_path:
        name = f"{html.escape(file.old_path)} &rarr; {name}"
    counts = "binary" if file.binary else (
        f'<span class="adds">+{file.additions}</span> <span class="dels">-{file.deletions}</span>'
    )
    return f'<li><span class="badge" title="{title}">{label}</span> <code>{name}</code> {counts}</li>'


class PygmentsDiffRenderer:
    """Highlight raw unified diff text with Pygments' DiffLexer"""

    def render(self, result: DiffResult, options: DiffRenderOptions | None = None) -> str:
        options = options or DiffRenderOptions()
        formatter = HtmlFormatter(style=SCHEMES.get(options.color_scheme, SCHEMES["light"])["style"])
        repo = result.repository

        meta_parts = [
            f"<strong>Repository:</strong> {html.escape(repo.git_root)}",
            f"<strong>Branch:</strong> {html.escape(repo.current_branch)}",
        ]
        if repo.has_remote and repo.remote_url:
            meta_parts.append(f"<strong>Remote:</strong> {html.escape(repo.remote_name or '')} {html.escape(repo.remote_url)}")
        stats = result.stats
        meta_parts.append(
            f"{stats.files_changed} files changed, "
            f'<span class="adds">+{stats.additions}</span> <span class="dels">-{stats.deletions}</span>'
        )

        sections = []
        if options.draw_file_list and result.files:
            items = "\n".join(_file_list_item(f) for f in result.files)
            sections.append(f'<ul class="file-list">\n{items}\n</ul>')
        if not result.raw.strip():
            sections.append("<p><em>No changes</em></p>")
        elif options.highlight:
            sections.append(highlight(result.raw, DiffLexer(), formatter))
        else:
            sections.append(f"<pre>{html.escape(result.raw)}</pre>")

        title = f"Diff ({result.type}{': ' + result.target if result.target else ''})"
        return _page(title, " &middot; ".join(meta_parts), "\n".join(sections), options.color_scheme, formatter)


class PygmentsFileRenderer:
    """Syntax-highlight a single file, picking the lexer from its name"""

    def __init__(self, color_scheme: str = "light"):
        self.color_scheme = color_scheme

    def render(self, content: str, filename: str, line_highlight: int | None = None) -> str:
        try:
            lexer = get_lexer_for_filename(filename, stripnl=False)
        except ClassNotFound:
            lexer = TextLexer(stripnl=False)

        formatter = HtmlFormatter(
            style=SCHEMES.get(self.color_scheme, SCHEMES["light"])["style"],
            linenos="table",
            hl_lines=[line_highlight] if line_highlight else [],
            lineanchors="line",
        )
        meta = f"{html.escape(lexer.name)} &middot; {len(content.splitlines())} lines"
        if line_highlight:
            meta += f' &middot; <a href="#line-{line_highlight}">line {line_highlight}</a>'
        body = highlight(content, lexer, formatter)
        return _page(filename, meta, body, self.color_scheme, formatter)
