from __future__ import annotations

import copy
import pathlib
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import nbformat
from nbconvert import MarkdownExporter
from nbformat import NotebookNode
from nbformat.validator import validate

from .config import MD_H1
from .utils import _norm_text, short_hash, slugify

_HIDE_INPUT = {"hide-input", "remove-input", "hide_input", "remove_input"}
_HIDE_OUTPUT = {"hide-output", "remove-output", "hide_output", "remove_output"}
_REMOVE_CELL = {"remove-cell", "hide-cell", "remove_cell", "hide_cell"}


@dataclass(frozen=True)
class NotebookDocument:
    title: Optional[str]
    tags: Tuple[str, ...]
    body: str
    resources: Tuple[Tuple[str, bytes], ...]


def _visible_cell(cell: NotebookNode) -> Optional[NotebookNode]:
    """Copy of `cell` with hidden parts dropped, or None if nothing is left."""
    md = cell.get("metadata") or {}
    tags = set(md.get("tags") or [])
    jupyter = md.get("jupyter") if isinstance(md.get("jupyter"), dict) else {}
    kind = cell.get("cell_type")

    if tags & _REMOVE_CELL:
        return None

    c = copy.deepcopy(cell)
    if jupyter.get("source_hidden") or tags & _HIDE_INPUT:
        if kind == "markdown":
            return None
        c["source"] = ""
    if kind == "code" and (jupyter.get("outputs_hidden") or tags & _HIDE_OUTPUT):
        c["outputs"] = []
        c["execution_count"] = None

    src = _norm_text(c.get("source", "")).strip()
    if kind == "markdown" and not src and not c.get("attachments"):
        return None
    if kind == "code" and not src and not c.get("outputs"):
        return None
    return c


def _first_heading(nb: NotebookNode) -> Optional[str]:
    for cell in nb.cells:
        if cell.get("cell_type") != "markdown":
            continue
        m = MD_H1.search(cell.get("source", ""))
        if m:
            return m.group(1).strip()
    return None


def _metadata_tags(raw: Any) -> Tuple[str, ...]:
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        return ()
    tags = []
    for t in raw:
        t = str(t).strip()
        if t and t not in tags:
            tags.append(t)
    return tuple(tags)


def load_notebook(path: pathlib.Path, slug: str) -> NotebookDocument:
    """
    Read a notebook and export it to markdown.

    Output blobs get content-hashed names prefixed with the post slug, so
    they can sit next to the page without clashing with other posts.
    """
    nb = nbformat.read(str(path), as_version=4)
    validate(nb)
    nb.cells = [c for c in (_visible_cell(c) for c in nb.cells) if c is not None]

    title = nb.metadata.get("title") or _first_heading(nb)
    tags = _metadata_tags(nb.metadata.get("tags"))

    body, res = MarkdownExporter().from_notebook_node(nb)

    resources = []
    for name, data in sorted((res.get("outputs") or {}).items()):
        p = pathlib.PurePosixPath(name)
        new_name = f"{slug}-{slugify(p.stem)}.{short_hash(data)}{p.suffix}"
        body = body.replace(name, new_name)
        resources.append((new_name, data))

    return NotebookDocument(
        title=str(title).strip() if title else None,
        tags=tags,
        body=_norm_text(body),
        resources=tuple(resources),
    )
