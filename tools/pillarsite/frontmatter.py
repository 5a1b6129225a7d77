from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .config import BRACKET_LIST, FRONTMATTER_FENCE, FRONTMATTER_LINE
from .utils import coerce_datetime

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frontmatter:
    title: Optional[str] = None
    tags: Tuple[str, ...] = ()
    date: Optional[datetime] = None
    description: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self == Frontmatter()


@dataclass(frozen=True)
class ParsedDocument:
    frontmatter: Frontmatter = field(default_factory=Frontmatter)
    body: str = ""


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _split_header(text: str) -> Optional[Tuple[str, str]]:
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONTMATTER_FENCE:
        return None
    for i in range(1, len(lines)):
        if lines[i].strip() == FRONTMATTER_FENCE:
            return "".join(lines[1:i]), "".join(lines[i + 1:])
    return None


def _parse_lines(header: str) -> Dict[str, Any]:
    """Tolerant key: value reader used when the header is not valid YAML."""
    data: Dict[str, Any] = {}
    for line in header.splitlines():
        m = FRONTMATTER_LINE.match(line.strip())
        if not m:
            continue
        key, value = m.group("key"), m.group("value").strip()
        if key == "tags":
            bm = BRACKET_LIST.match(value)
            data[key] = (
                [_unquote(v) for v in bm.group("items").split(",")]
                if bm else []
            )
        else:
            data[key] = _unquote(value)
    return data


def _normalize_tags(raw: Any) -> Tuple[str, ...]:
    if not isinstance(raw, (list, tuple)):
        return ()
    tags: List[str] = []
    for item in raw:
        if item is None:
            continue
        tag = str(item).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)


def _optional_str(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    value = str(raw).strip()
    return value or None


def parse_frontmatter(text: str) -> ParsedDocument:
    """
    Split an optional `---` delimited header off the top of a document.

    No header (or an unclosed one) gives empty metadata and the text
    unchanged. A header that is not valid YAML is read line by line;
    unrecognised keys are ignored and a malformed tag list becomes empty.
    """
    split = _split_header(text)
    if split is None:
        return ParsedDocument(Frontmatter(), text)
    header, body = split

    try:
        # BaseLoader: every scalar stays a string
        data = yaml.load(header, Loader=yaml.BaseLoader)
    except (yaml.YAMLError, ValueError):
        log.debug("frontmatter is not valid YAML, reading it line by line")
        data = _parse_lines(header)
    if not isinstance(data, dict):
        data = _parse_lines(header)

    fm = Frontmatter(
        title=_optional_str(data.get("title")),
        tags=_normalize_tags(data.get("tags")),
        date=coerce_datetime(data.get("date")),
        description=_optional_str(data.get("description")),
    )
    return ParsedDocument(fm, body)
