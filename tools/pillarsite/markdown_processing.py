from __future__ import annotations

import html
from dataclasses import dataclass
from typing import List

import markdown
from markdown.extensions import Extension
from markdown.postprocessors import Postprocessor

from .config import (
    BARE_CODE_BLOCK,
    HEADING_HTML,
    ID_ATTR,
    TAG_RE,
    TOC_HEADING_HTML,
)
from .utils import slugify

MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]


@dataclass(frozen=True)
class TocItem:
    id: str
    text: str
    level: int


def _inner_text(fragment: str) -> str:
    return html.unescape(TAG_RE.sub("", fragment)).strip()


def slugify_heading(text: str) -> str:
    return slugify(text) or "section"


class HeadingIdPostprocessor(Postprocessor):
    """Give every `<hN>` without an id one slugged from its text; other attributes stay."""

    def run(self, text: str) -> str:
        def _repl(m):
            level, attrs, inner = m.group("level"), m.group("attrs"), m.group("inner")
            if ID_ATTR.search(attrs):
                return m.group(0)
            hid = slugify_heading(_inner_text(inner))
            return f'<h{level} id="{hid}"{attrs}>{inner}</h{level}>'

        return HEADING_HTML.sub(_repl, text)


class CodeLanguagePostprocessor(Postprocessor):
    """Fenced blocks without a language (and indented blocks) become `language-text`."""

    def run(self, text: str) -> str:
        return BARE_CODE_BLOCK.sub('<pre><code class="language-text">', text)


class PillarExtension(Extension):
    def extendMarkdown(self, md):
        # after raw HTML has been restored, so stashed code blocks are visible
        md.postprocessors.register(HeadingIdPostprocessor(md), "heading_ids", 5)
        md.postprocessors.register(CodeLanguagePostprocessor(md), "code_language", 4)


def render_markdown(body: str) -> str:
    md = markdown.Markdown(
        extensions=MARKDOWN_EXTENSIONS + [PillarExtension()],
        output_format="html",
    )
    return md.convert(body)


def extract_toc(rendered: str) -> List[TocItem]:
    items = []
    for m in TOC_HEADING_HTML.finditer(rendered):
        id_match = ID_ATTR.search(m.group("attrs"))
        if id_match is None:
            continue
        items.append(TocItem(
            id=id_match.group("id"),
            text=_inner_text(m.group("inner")),
            level=int(m.group("level")),
        ))
    return items
