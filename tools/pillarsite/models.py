from __future__ import annotations

import pathlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class Post:
    slug: str
    title: str
    tags: Tuple[str, ...]
    published: datetime
    edited: datetime
    body_source: str
    pillar_slug: str
    section: str
    source_path: pathlib.Path
    description: Optional[str] = None
    # extra files emitted beside the page (notebook output images)
    resources: Tuple[Tuple[str, bytes], ...] = ()

    @property
    def filename(self) -> str:
        return f"{self.slug}.html"

    @property
    def url(self) -> str:
        return f"/{self.pillar_slug}/{self.filename}"


@dataclass(frozen=True)
class Section:
    name: str
    posts: Tuple[Post, ...]


@dataclass(frozen=True)
class Pillar:
    slug: str
    name: str
    sections: Tuple[Section, ...]

    @property
    def posts(self) -> List[Post]:
        """Each post once, in first-seen section order."""
        seen: Dict[str, Post] = {}
        for section in self.sections:
            for post in section.posts:
                seen.setdefault(post.slug, post)
        return list(seen.values())


@dataclass(frozen=True)
class TopicStub:
    slug: str
    title: Optional[str] = None


@dataclass(frozen=True)
class SectionStub:
    name: str
    topics: Tuple[TopicStub, ...]


@dataclass(frozen=True)
class Descriptor:
    pillar: str
    sections: Tuple[SectionStub, ...]


@dataclass(frozen=True)
class DeclaredSource:
    directory: pathlib.Path
    descriptor: Descriptor


@dataclass(frozen=True)
class AutoDiscoveredSource:
    directory: pathlib.Path


PillarSource = Union[DeclaredSource, AutoDiscoveredSource]


@dataclass(frozen=True)
class Site:
    pillars: Tuple[Pillar, ...]
    posts: Tuple[Post, ...] = field(default=())

    def recent_posts(self, limit: int) -> List[Post]:
        ordered = sorted(
            self.posts,
            key=lambda p: (p.pillar_slug, p.slug),
        )
        ordered.sort(key=lambda p: p.published, reverse=True)
        return ordered[:limit]
