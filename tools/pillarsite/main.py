#!/usr/bin/env python3
"""
Static site builder for pillar-organised markdown notes.

- content/<pillar>/*.md (and *.ipynb) -> docs/<pillar>/<slug>.html
- content/<pillar>/_meta.yml          -> fixed sections/topics for a pillar
  (without one, sections are grouped by frontmatter tags)
- every pillar gets docs/<pillar>/index.html, the site gets docs/index.html

Key features:
- Frontmatter `title`, `tags: [...]`, `date`, `description`
- Heading ids + table of contents for h2/h3
- Published/edited dates from git history (build time as fallback)
- Jinja2 templates with strict slots (site templates/ override built-ins)
- Static assets and CNAME copied verbatim
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from datetime import datetime, timezone
from typing import Optional, Sequence

from .build import build_site
from .config import CONFIG_FILE_NAME, load_config
from .git import FixedTimestampProvider, GitTimestampProvider

log = logging.getLogger("pillarsite")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--root", type=pathlib.Path, default=pathlib.Path.cwd(),
                        help="site root (default: current directory)")
    parser.add_argument("--config", type=pathlib.Path, default=None,
                        help=f"config file (default: <root>/{CONFIG_FILE_NAME})")
    parser.add_argument("--output", type=pathlib.Path, default=None,
                        help="output directory (overrides the config)")
    parser.add_argument("--no-git", action="store_true",
                        help="skip git history, date everything with the build time")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(stream=sys.stderr, format="%(message)s")
    log.setLevel(logging.DEBUG if verbose else logging.INFO)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(args.verbose)

    root = args.root.resolve()
    config_path = args.config or root / CONFIG_FILE_NAME
    if args.config is not None and not args.config.is_file():
        log.error("ERROR: config file %s not found", args.config)
        return 1
    try:
        config = load_config(config_path, root, output_dir=args.output)
        now = datetime.now(timezone.utc)
        timestamps = (
            FixedTimestampProvider(now) if args.no_git
            else GitTimestampProvider(now)
        )
        result = build_site(config, timestamps)
    except Exception:
        log.exception("Build failed")
        return 1

    log.info("✓ built %d pages into %s", len(result.pages), config.output_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
