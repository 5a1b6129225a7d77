from __future__ import annotations

import logging
import pathlib
from dataclasses import dataclass, field
from typing import List

from .assets import (
    copy_cname,
    copy_static_assets,
    ensure_dir,
    reset_output,
    write_resources,
)
from .compose import (
    Templates,
    compose_homepage,
    compose_pillar_index,
    compose_post_page,
)
from .config import SiteConfig
from .discovery import discover_site
from .git import TimestampProvider
from .models import Pillar, Site

log = logging.getLogger(__name__)


@dataclass
class BuildResult:
    site: Site
    pages: List[pathlib.Path] = field(default_factory=list)


def _write(path: pathlib.Path, html: str, result: BuildResult, root: pathlib.Path) -> None:
    ensure_dir(path.parent)
    path.write_text(html, encoding="utf-8")
    result.pages.append(path)
    log.info("✓ %s", path.relative_to(root).as_posix())


def build_pillar(templates: Templates, config: SiteConfig, pillar: Pillar,
                 result: BuildResult) -> None:
    out_dir = config.output_dir / pillar.slug
    ensure_dir(out_dir)
    _write(out_dir / "index.html",
           compose_pillar_index(templates, config, pillar),
           result, config.output_dir)
    for post in pillar.posts:
        write_resources(post.resources, out_dir)
        _write(out_dir / post.filename,
               compose_post_page(templates, config, pillar, post),
               result, config.output_dir)


def build_site(config: SiteConfig, timestamps: TimestampProvider) -> BuildResult:
    """
    Full clean build: wipe output, copy assets and CNAME, render every
    pillar and post, then the homepage. Errors propagate to the caller.
    """
    log.info("Cleaning %s", config.output_dir)
    reset_output(config.output_dir)

    log.info("Copying assets...")
    copy_static_assets(config.assets_dir, config.output_dir)
    copy_cname(config.cname_file, config.output_dir)

    log.info("Discovering content in %s", config.content_dir)
    site = discover_site(config.content_dir, timestamps, config.default_tag)

    templates = Templates(config.template_dir, config.nav_targets)
    result = BuildResult(site=site)

    log.info("Building pillar pages...")
    for pillar in site.pillars:
        build_pillar(templates, config, pillar, result)

    log.info("Building homepage...")
    _write(config.output_dir / "index.html",
           compose_homepage(templates, config, site),
           result, config.output_dir)
    return result
