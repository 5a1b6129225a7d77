from __future__ import annotations

import hashlib
import pathlib
import re
from datetime import date, datetime, timezone
from typing import Any, Dict

import yaml

from .config import SLUG_RE, WORDS_PER_MINUTE


def slugify(s: str) -> str:
    return SLUG_RE.sub("-", s.lower()).strip("-")


def title_from_slug(slug: str) -> str:
    words = re.split(r"[-_\s]+", slug)
    return " ".join(w[:1].upper() + w[1:] for w in words if w)


def natural_key(s: str):
    return [int(t) if t.isdigit() else t for t in re.split(r'(\d+)', s.lower())]


def read_yaml(path: pathlib.Path) -> Dict[str, Any]:
    if path.exists():
        return yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return {}


def short_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()[:8]


def _norm_text(s: str) -> str:
    return s.replace('\r\n', '\n').replace('\r', '\n').lstrip('\ufeff')


def coerce_datetime(v):
    """Frontmatter dates arrive as date, datetime or ISO strings."""
    if isinstance(v, datetime):
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)
    if isinstance(v, date):
        return datetime(v.year, v.month, v.day, tzinfo=timezone.utc)
    if isinstance(v, str):
        s = v.strip().strip('"').strip("'")
        try:
            return coerce_datetime(datetime.fromisoformat(s))
        except ValueError:
            return None
    return None


def human_date(dt: datetime) -> str:
    return f"{dt:%B} {dt.day}, {dt.year}"


def read_time(text: str) -> str:
    words = len(text.split())
    minutes = max(1, int(words / WORDS_PER_MINUTE + 0.5))
    return f"{minutes} min read"
