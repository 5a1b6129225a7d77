"""
Content discovery: turn a content root into pillars, sections and posts.

Each top-level directory is a pillar. A pillar with a descriptor file
(`_meta.yml`, `_meta.yaml` or `_meta.json`) is *declared*: its sections,
topic order and titles come from the descriptor and each topic is read from
`<slug>.md` (or `<slug>.ipynb`). Without a descriptor the pillar is
*auto-discovered*: every post file is read and sections are built by tag,
so a post with two tags is listed under both.
"""

from __future__ import annotations

import logging
import pathlib
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import yaml

from .config import DEFAULT_TAG, DESCRIPTOR_CANDIDATES, POST_SUFFIXES
from .frontmatter import parse_frontmatter
from .git import TimestampProvider
from .models import (
    AutoDiscoveredSource,
    DeclaredSource,
    Descriptor,
    Pillar,
    PillarSource,
    Post,
    Section,
    SectionStub,
    Site,
    TopicStub,
)
from .notebooks import load_notebook
from .utils import _norm_text, natural_key, slugify, title_from_slug

log = logging.getLogger(__name__)

RESERVED_SLUGS = {"index"}


class DiscoveryError(ValueError):
    pass


@dataclass(frozen=True)
class _Document:
    title: Optional[str]
    tags: Tuple[str, ...]
    date: Optional[datetime]
    description: Optional[str]
    body: str
    resources: Tuple[Tuple[str, bytes], ...] = ()


# ---------- Descriptor

def find_descriptor(directory: pathlib.Path) -> Optional[pathlib.Path]:
    for name in DESCRIPTOR_CANDIDATES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def _topic_stub(raw, where: str) -> TopicStub:
    if isinstance(raw, str):
        return TopicStub(slug=raw.strip())
    if not isinstance(raw, dict) or not str(raw.get("slug") or "").strip():
        raise DiscoveryError(f"{where}: every topic needs a slug")
    title = raw.get("title")
    return TopicStub(
        slug=str(raw["slug"]).strip(),
        title=str(title).strip() if title else None,
    )


def load_descriptor(path: pathlib.Path) -> Descriptor:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise DiscoveryError(f"{path}: descriptor must be a mapping")

    sections: List[SectionStub] = []
    for i, raw in enumerate(data.get("sections") or []):
        if not isinstance(raw, dict) or not str(raw.get("name") or "").strip():
            raise DiscoveryError(f"{path}: section #{i + 1} needs a name")
        where = f"{path} [{raw['name']}]"
        topics = tuple(_topic_stub(t, where) for t in raw.get("topics") or [])
        sections.append(SectionStub(name=str(raw["name"]).strip(), topics=topics))

    pillar = data.get("pillar") or title_from_slug(path.parent.name)
    return Descriptor(pillar=str(pillar).strip(), sections=tuple(sections))


def resolve_source(directory: pathlib.Path) -> PillarSource:
    descriptor = find_descriptor(directory)
    if descriptor is not None:
        return DeclaredSource(directory, load_descriptor(descriptor))
    return AutoDiscoveredSource(directory)


# ---------- Reading posts

def _read_document(path: pathlib.Path, slug: str) -> _Document:
    if path.suffix == ".ipynb":
        nb = load_notebook(path, slug)
        return _Document(nb.title, nb.tags, None, None, nb.body, nb.resources)

    doc = parse_frontmatter(_norm_text(path.read_text(encoding="utf-8")))
    fm = doc.frontmatter
    return _Document(fm.title, fm.tags, fm.date, fm.description, doc.body)


def read_post(
    path: pathlib.Path,
    slug: str,
    pillar_slug: str,
    timestamps: TimestampProvider,
    fallback_tag: str,
    title: Optional[str] = None,
    section: Optional[str] = None,
) -> Post:
    """
    Build a Post from one file.

    `title` (from a descriptor) wins over the document's own title, which
    wins over a title made from the slug. Tags fall back to `fallback_tag`.
    """
    doc = _read_document(path, slug)
    created, modified = timestamps.timestamps(path)
    tags = doc.tags or (fallback_tag,)
    return Post(
        slug=slug,
        title=title or doc.title or title_from_slug(slug),
        tags=tags,
        published=doc.date or created,
        edited=modified,
        body_source=doc.body,
        pillar_slug=pillar_slug,
        section=section or tags[0],
        source_path=path,
        description=doc.description,
        resources=doc.resources,
    )


def _check_slug(slug: str, seen: Dict[str, pathlib.Path], origin: pathlib.Path) -> None:
    if not slug:
        raise DiscoveryError(f"{origin}: empty slug")
    if slug in RESERVED_SLUGS:
        raise DiscoveryError(f"{origin}: slug {slug!r} is reserved")
    if slug in seen:
        raise DiscoveryError(
            f"{origin}: slug {slug!r} already used by {seen[slug]}"
        )
    seen[slug] = origin


def _post_file(directory: pathlib.Path, slug: str) -> Optional[pathlib.Path]:
    for suffix in POST_SUFFIXES:
        candidate = directory / f"{slug}{suffix}"
        if candidate.is_file():
            return candidate
    return None


# ---------- Grouping

def group_declared(descriptor: Descriptor, posts: Sequence[Post]) -> Tuple[Section, ...]:
    """Sections exactly as declared; topics without a post are dropped."""
    by_slug = {p.slug: p for p in posts}
    sections = []
    for stub in descriptor.sections:
        members = tuple(by_slug[t.slug] for t in stub.topics if t.slug in by_slug)
        if members:
            sections.append(Section(stub.name, members))
    return tuple(sections)


def group_by_tag(posts: Sequence[Post]) -> Tuple[Section, ...]:
    """One section per distinct tag; a post sits in every section it is tagged with."""
    groups: "OrderedDict[str, List[Post]]" = OrderedDict()
    for post in posts:
        for tag in post.tags:
            groups.setdefault(tag, []).append(post)
    return tuple(
        Section(tag, tuple(groups[tag]))
        for tag in sorted(groups, key=natural_key)
    )


# ---------- Pillars

def _declared_posts(
    source: DeclaredSource,
    timestamps: TimestampProvider,
) -> List[Post]:
    pillar_slug = source.directory.name
    seen: Dict[str, pathlib.Path] = {}
    posts: List[Post] = []
    for section in source.descriptor.sections:
        for topic in section.topics:
            _check_slug(topic.slug, seen, source.directory / f"{topic.slug}.md")
            path = _post_file(source.directory, topic.slug)
            if path is None:
                log.warning("! missing %s", source.directory / f"{topic.slug}.md")
                continue
            posts.append(read_post(
                path,
                topic.slug,
                pillar_slug,
                timestamps,
                fallback_tag=section.name,
                title=topic.title,
                section=section.name,
            ))
    return posts


def _discovered_posts(
    source: AutoDiscoveredSource,
    timestamps: TimestampProvider,
    default_tag: str,
) -> List[Post]:
    pillar_slug = source.directory.name
    files = sorted(
        (p for p in source.directory.iterdir()
         if p.is_file() and p.suffix in POST_SUFFIXES
         and not p.name.startswith(".")),
        key=lambda p: natural_key(p.name),
    )
    seen: Dict[str, pathlib.Path] = {}
    posts: List[Post] = []
    for path in files:
        slug = slugify(path.stem)
        _check_slug(slug, seen, path)
        posts.append(read_post(path, slug, pillar_slug, timestamps, default_tag))
    return posts


def discover_pillar(
    source: PillarSource,
    timestamps: TimestampProvider,
    default_tag: str = DEFAULT_TAG,
) -> Pillar:
    slug = source.directory.name
    if isinstance(source, DeclaredSource):
        posts = _declared_posts(source, timestamps)
        return Pillar(
            slug=slug,
            name=source.descriptor.pillar,
            sections=group_declared(source.descriptor, posts),
        )
    posts = _discovered_posts(source, timestamps, default_tag)
    return Pillar(
        slug=slug,
        name=title_from_slug(slug),
        sections=group_by_tag(posts),
    )


def pillar_directories(content_dir: pathlib.Path) -> List[pathlib.Path]:
    if not content_dir.is_dir():
        raise FileNotFoundError(f"content directory not found: {content_dir}")
    return sorted(
        (p for p in content_dir.iterdir()
         if p.is_dir() and not p.name.startswith((".", "_"))),
        key=lambda p: natural_key(p.name),
    )


def discover_site(
    content_dir: pathlib.Path,
    timestamps: TimestampProvider,
    default_tag: str = DEFAULT_TAG,
) -> Site:
    pillars = []
    posts: List[Post] = []
    for directory in pillar_directories(content_dir):
        pillar = discover_pillar(resolve_source(directory), timestamps, default_tag)
        log.debug("discovered %s: %d posts in %d sections",
                  pillar.slug, len(pillar.posts), len(pillar.sections))
        pillars.append(pillar)
        posts.extend(pillar.posts)
    return Site(pillars=tuple(pillars), posts=tuple(posts))
