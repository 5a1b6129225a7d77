"""
Page composition: HTML fragments (sidebar, breadcrumb, TOC, indexes) and
the Jinja2 templates they are slotted into.

Fragments are plain functions of their inputs. Templates are rendered from
typed context objects with StrictUndefined, so a template asking for a slot
that does not exist fails the build rather than leaking into the output.
"""

from __future__ import annotations

import json
import pathlib
from dataclasses import dataclass, fields
from html import escape
from typing import Any, Dict, Iterable, List, Sequence

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    select_autoescape,
)
from markupsafe import Markup

from .config import BUILTIN_TEMPLATE_DIR, HOME_NAV, PILLAR_NAV, SiteConfig
from .markdown_processing import TocItem, extract_toc, render_markdown
from .models import Pillar, Post, Section, Site
from .utils import human_date, natural_key, read_time


# ---------- Fragments

def render_sidebar(pillar: Pillar, sections: Sequence[Section], current_slug: str) -> str:
    out = [
        '<div class="sidebar-pillar">PILLAR</div>',
        f'<div class="sidebar-pillar-name">{escape(pillar.name)}</div>',
    ]
    for section in sections:
        out.append('<div class="sidebar-section">')
        out.append('  <div class="sidebar-section-header">')
        out.append(f'    <span>{escape(section.name)}</span>')
        out.append('    <button class="sidebar-toggle" aria-label="Toggle section">&minus;</button>')
        out.append('  </div>')
        out.append('  <div class="sidebar-section-items">')
        for post in section.posts:
            active = " active" if post.slug == current_slug else ""
            out.append(
                f'    <a href="{escape(post.url)}" class="sidebar-item{active}">'
                f'{escape(post.title)}</a>'
            )
        out.append('  </div>')
        out.append('</div>')
    return "\n".join(out) + "\n"


def render_breadcrumb(pillar_name: str, section_name: str, post_title: str,
                      pillar_slug: str) -> str:
    return (
        '<nav class="breadcrumb">\n'
        '  <a href="/">LIBRARY</a>\n'
        '  <span class="breadcrumb-sep">&rsaquo;</span>\n'
        f'  <a href="/{escape(pillar_slug)}/">{escape(pillar_name.upper())}</a>\n'
        '  <span class="breadcrumb-sep">&rsaquo;</span>\n'
        f'  <span>{escape(section_name.upper())}</span>\n'
        '  <span class="breadcrumb-sep">&rsaquo;</span>\n'
        f'  <span class="breadcrumb-current">{escape(post_title.upper())}</span>\n'
        '</nav>'
    )


def render_toc(items: Sequence[TocItem]) -> str:
    if not items:
        return ""
    links = []
    for item in items:
        cls = "toc-link toc-sub" if item.level == 3 else "toc-link"
        links.append(
            f'<a href="#{escape(item.id)}" class="{cls}">{escape(item.text)}</a>'
        )
    return "\n".join(links)


def _tags_attr(tags: Iterable[str]) -> str:
    return escape(json.dumps(list(tags), ensure_ascii=False))


def render_card(post: Post) -> str:
    return (
        f'<a href="{escape(post.url)}" class="pillar-topic-card" '
        f'data-tags="{_tags_attr(post.tags)}" '
        f'data-date="{post.published.date().isoformat()}">\n'
        f'  <span class="pillar-topic-title">{escape(post.title)}</span>\n'
        f'  <span class="pillar-topic-date">{human_date(post.published)}</span>\n'
        '  <span class="pillar-topic-arrow">&rarr;</span>\n'
        '</a>'
    )


def _by_date(posts: Sequence[Post]) -> List[Post]:
    ordered = sorted(posts, key=lambda p: natural_key(p.slug))
    ordered.sort(key=lambda p: p.published, reverse=True)
    return ordered


def render_pillar_index(pillar: Pillar, sections: Sequence[Section],
                        posts: Sequence[Post]) -> str:
    """
    Two views over the same cards: grouped by section (shown) and a flat
    newest-first list (hidden), plus one filter button per distinct tag.
    Switching, sorting and filtering happen client-side.
    """
    tags = sorted({t for p in posts for t in p.tags}, key=natural_key)
    name = escape(pillar.name)

    out = [
        f'<div class="pillar-index" data-pillar="{escape(pillar.slug)}">',
        f'<h1>{name}</h1>',
        f'<p class="pillar-description">Explore topics in {name}.</p>',
        '<div class="blog-controls">',
        '  <div class="blog-views">',
        '    <button class="blog-view-btn active" data-view="topic">By topic</button>',
        '    <button class="blog-view-btn" data-view="date">By date</button>',
        '  </div>',
        '  <div class="blog-sorts">',
        '    <button class="blog-sort-btn active" data-sort="newest">Newest</button>',
        '    <button class="blog-sort-btn" data-sort="oldest">Oldest</button>',
        '  </div>',
        '  <div class="blog-tags">',
        '    <button class="blog-tag-btn active" data-tag="">All</button>',
    ]
    for tag in tags:
        out.append(
            f'    <button class="blog-tag-btn" data-tag="{escape(tag)}">{escape(tag)}</button>'
        )
    out += ['  </div>', '</div>', '<div class="blog-view" data-view="topic">']
    for section in sections:
        out.append(f'<div class="pillar-section" data-section="{escape(section.name)}">')
        out.append(f'<h2>{escape(section.name)}</h2>')
        out.append('<div class="pillar-topics-grid">')
        out.extend(render_card(p) for p in section.posts)
        out.append('</div></div>')
    out += ['</div>', '<div class="blog-view" data-view="date" hidden>',
            '<div class="pillar-topics-grid">']
    out.extend(render_card(p) for p in _by_date(posts))
    out += ['</div></div>', '</div>']
    return "\n".join(out)


def render_recent_posts(posts: Sequence[Post], pillar_names: Dict[str, str]) -> str:
    if not posts:
        return '<p class="recent-posts-empty">Nothing published yet.</p>'
    out = ['<ul class="recent-posts">']
    for post in posts:
        out.append(
            f'  <li class="recent-post" data-tags="{_tags_attr(post.tags)}" '
            f'data-date="{post.published.date().isoformat()}">'
            f'<a href="{escape(post.url)}">{escape(post.title)}</a> '
            f'<span class="recent-post-pillar">'
            f'{escape(pillar_names.get(post.pillar_slug, post.pillar_slug))}</span> '
            f'<time datetime="{post.published.date().isoformat()}">'
            f'{human_date(post.published)}</time></li>'
        )
    out.append('</ul>')
    return "\n".join(out)


def render_pillar_links(pillars: Sequence[Pillar]) -> str:
    out = ['<div class="home-pillars-grid">']
    for pillar in pillars:
        out.append(
            f'  <a href="/{escape(pillar.slug)}/" class="home-pillar-card">'
            f'<span class="home-pillar-name">{escape(pillar.name)}</span> '
            f'<span class="home-pillar-count">{len(pillar.posts)} topics</span></a>'
        )
    out.append('</div>')
    return "\n".join(out)


# ---------- Template contexts

@dataclass(frozen=True)
class TopicContext:
    sidebar: Markup
    breadcrumb: Markup
    pillar: str
    title: str
    date: str
    edit_date: str
    read_time: str
    content: Markup
    toc: Markup
    toc_visible: bool


@dataclass(frozen=True)
class HomeContext:
    site_title: str
    site_description: str
    pillars: Markup
    recent_posts: Markup


@dataclass(frozen=True)
class PageContext:
    site_title: str
    title: str
    description: str
    content: Markup
    nav: Dict[str, str]


def _as_mapping(ctx: Any) -> Dict[str, Any]:
    return {f.name: getattr(ctx, f.name) for f in fields(ctx)}


class Templates:
    def __init__(self, template_dir: pathlib.Path, nav_targets: Sequence[str]):
        self.nav_targets = tuple(nav_targets)
        self.env = Environment(
            loader=FileSystemLoader([str(template_dir), str(BUILTIN_TEMPLATE_DIR)]),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def render(self, name: str, ctx: Any) -> str:
        return self.env.get_template(name).render(_as_mapping(ctx))

    def nav(self, active: str) -> Dict[str, str]:
        if active not in self.nav_targets:
            raise ValueError(f"unknown navigation target {active!r}")
        return {t: ("active" if t == active else "") for t in self.nav_targets}


# ---------- Pages

def compose_post_page(templates: Templates, config: SiteConfig,
                      pillar: Pillar, post: Post) -> str:
    body = render_markdown(post.body_source)
    toc = extract_toc(body)
    topic = templates.render("topic.html", TopicContext(
        sidebar=Markup(render_sidebar(pillar, pillar.sections, post.slug)),
        breadcrumb=Markup(render_breadcrumb(pillar.name, post.section,
                                            post.title, pillar.slug)),
        pillar=pillar.name.upper(),
        title=post.title,
        date=human_date(post.published),
        edit_date=human_date(post.edited),
        read_time=read_time(post.body_source),
        content=Markup(body),
        toc=Markup(render_toc(toc)),
        toc_visible=bool(toc),
    ))
    return templates.render("base.html", PageContext(
        site_title=config.site_title,
        title=f"{post.title} · {pillar.name} · {config.site_title}",
        description=post.description or f"Learn about {post.title} in {pillar.name}.",
        content=Markup(topic),
        nav=templates.nav(PILLAR_NAV),
    ))


def compose_pillar_index(templates: Templates, config: SiteConfig,
                         pillar: Pillar) -> str:
    return templates.render("base.html", PageContext(
        site_title=config.site_title,
        title=f"{pillar.name} · {config.site_title}",
        description=f"{pillar.name} topics.",
        content=Markup(render_pillar_index(pillar, pillar.sections, pillar.posts)),
        nav=templates.nav(PILLAR_NAV),
    ))


def compose_homepage(templates: Templates, config: SiteConfig, site: Site) -> str:
    names = {p.slug: p.name for p in site.pillars}
    home = templates.render("home.html", HomeContext(
        site_title=config.site_title,
        site_description=config.site_description,
        pillars=Markup(render_pillar_links(site.pillars)),
        recent_posts=Markup(render_recent_posts(
            site.recent_posts(config.recent_posts_limit), names
        )),
    ))
    return templates.render("base.html", PageContext(
        site_title=config.site_title,
        title=config.site_title,
        description=config.site_description,
        content=Markup(home),
        nav=templates.nav(HOME_NAV),
    ))
