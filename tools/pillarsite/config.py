#!/usr/bin/env python3
from __future__ import annotations

import pathlib
import re
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

# ---------- Paths

BUILTIN_TEMPLATE_DIR = pathlib.Path(__file__).resolve().parent / "templates"

# ---------- Defaults

CONFIG_FILE_NAME = "site.yml"
DESCRIPTOR_CANDIDATES = ("_meta.yml", "_meta.yaml", "_meta.json")
POST_SUFFIXES = (".md", ".ipynb")
DEFAULT_TAG = "General"
DEFAULT_NAV_TARGETS = ("home", "learn", "blog")
HOME_NAV = "home"
PILLAR_NAV = "learn"
WORDS_PER_MINUTE = 200

# Some shared regexes

FRONTMATTER_FENCE = "---"
FRONTMATTER_LINE = re.compile(r"^(?P<key>[A-Za-z_][\w-]*)\s*:\s*(?P<value>.*)$")
BRACKET_LIST = re.compile(r"^\[(?P<items>.*)\]$")
HEADING_HTML = re.compile(
    r"<h(?P<level>[1-6])(?P<attrs>(?:\s[^>]*)?)>(?P<inner>.*?)</h(?P=level)>",
    re.IGNORECASE | re.DOTALL,
)
TOC_HEADING_HTML = re.compile(
    r"<h(?P<level>[23])(?P<attrs>\s[^>]*)>(?P<inner>.*?)</h(?P=level)>",
    re.IGNORECASE | re.DOTALL,
)
ID_ATTR = re.compile(r'(?:^|\s)id\s*=\s*"(?P<id>[^"]*)"')
BARE_CODE_BLOCK = re.compile(r"<pre><code>")
TAG_RE = re.compile(r"<[^>]*>")
MD_H1 = re.compile(r"^\s*#\s+(.+?)\s*$", re.MULTILINE)
SLUG_RE = re.compile(r"[^a-z0-9]+")


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class SiteConfig:
    root: pathlib.Path
    content_dir: pathlib.Path
    template_dir: pathlib.Path
    assets_dir: pathlib.Path
    output_dir: pathlib.Path
    cname_file: pathlib.Path
    site_title: str = "Library"
    site_description: str = "Notes, organised by pillar."
    default_tag: str = DEFAULT_TAG
    recent_posts_limit: int = 5
    nav_targets: Tuple[str, ...] = field(default=DEFAULT_NAV_TARGETS)

    @classmethod
    def for_root(cls, root: pathlib.Path, **overrides: Any) -> "SiteConfig":
        root = pathlib.Path(root).resolve()
        values: Dict[str, Any] = {
            "content_dir": "content",
            "template_dir": "templates",
            "assets_dir": "assets",
            "output_dir": "docs",
            "cname_file": "CNAME",
        }
        values.update(overrides)
        for key in ("content_dir", "template_dir", "assets_dir",
                    "output_dir", "cname_file"):
            values[key] = root / pathlib.Path(values[key])
        if "nav_targets" in values:
            values["nav_targets"] = tuple(values["nav_targets"])
        cfg = cls(root=root, **values)
        cfg.validate()
        return cfg

    def validate(self) -> None:
        if not isinstance(self.recent_posts_limit, int) or self.recent_posts_limit < 1:
            raise ConfigError(
                f"recent_posts_limit must be a positive integer, "
                f"got {self.recent_posts_limit!r}"
            )
        required = [HOME_NAV, PILLAR_NAV]
        if not (self.template_dir / "base.html").is_file():
            # the built-in base.html links every default target
            required = list(DEFAULT_NAV_TARGETS)
        for target in required:
            if target not in self.nav_targets:
                raise ConfigError(f"nav_targets must include {target!r}")
        if not str(self.default_tag).strip():
            raise ConfigError("default_tag must not be empty")


_KNOWN_KEYS = {f.name for f in fields(SiteConfig)} - {"root"}


def load_config(
    path: Optional[pathlib.Path],
    root: pathlib.Path,
    **overrides: Any,
) -> SiteConfig:
    """
    Build a SiteConfig from an optional YAML file.

    Missing file means defaults. Keyword overrides (e.g. from the CLI)
    win over the file.
    """
    from .utils import read_yaml

    data: Dict[str, Any] = {}
    if path is not None:
        data = read_yaml(pathlib.Path(path))
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping at the top level")
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"{path}: unknown config keys: {', '.join(unknown)}")
    data.update({k: v for k, v in overrides.items() if v is not None})
    return SiteConfig.for_root(root, **data)
