from __future__ import annotations

import logging
import pathlib
import shutil
from typing import Iterable, Tuple

log = logging.getLogger(__name__)

ASSET_DIR_NAME = "assets"


def ensure_dir(p: pathlib.Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def reset_output(output_dir: pathlib.Path) -> None:
    """Wipe and recreate the output tree; builds always start clean."""
    if output_dir.exists():
        shutil.rmtree(output_dir)
    ensure_dir(output_dir)


def copy_static_assets(assets_dir: pathlib.Path, output_dir: pathlib.Path) -> int:
    """
    Copy the static assets tree verbatim to `<output>/assets/`.

    Returns the number of files copied; a missing assets directory copies
    nothing.
    """
    if not assets_dir.is_dir():
        log.info("- no assets directory at %s, skipping", assets_dir)
        return 0
    dest = output_dir / ASSET_DIR_NAME
    shutil.copytree(assets_dir, dest)
    count = sum(1 for p in dest.rglob("*") if p.is_file())
    log.info("✓ %d asset files", count)
    return count


def copy_cname(cname_file: pathlib.Path, output_dir: pathlib.Path) -> bool:
    if not cname_file.is_file():
        return False
    shutil.copy2(cname_file, output_dir / cname_file.name)
    log.info("✓ %s", cname_file.name)
    return True


def write_resources(
    resources: Iterable[Tuple[str, bytes]],
    out_dir: pathlib.Path,
) -> None:
    for name, data in resources:
        ensure_dir(out_dir)
        (out_dir / name).write_bytes(data)
