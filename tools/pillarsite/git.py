from __future__ import annotations

import logging
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

log = logging.getLogger(__name__)

Timestamps = Tuple[datetime, datetime]


class TimestampProvider(Protocol):
    def timestamps(self, path: Path) -> Timestamps:
        """Return (created, modified) for a content file."""
        ...


class FixedTimestampProvider:
    """Same pair for every file; used by `--no-git` builds and tests."""

    def __init__(self, created: datetime, modified: Optional[datetime] = None):
        self.created = created
        self.modified = modified or created

    def timestamps(self, path: Path) -> Timestamps:
        return self.created, self.modified


def _run_git_dates(cwd: Path, args: List[str]) -> List[datetime]:
    try:
        proc = subprocess.run(
            ["git"] + args,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        log.debug("git unavailable: %s", exc)
        return []
    if proc.returncode != 0 or not proc.stdout.strip():
        return []
    dates: List[datetime] = []
    for line in proc.stdout.splitlines():
        line = line.strip()
        if not line:
            continue
        # ISO 8601, e.g. 2025-03-01T10:23:45+00:00
        try:
            dates.append(datetime.fromisoformat(line))
        except ValueError:
            log.debug("unparsable git date %r", line)
    return dates


def git_first_commit_date(path: Path) -> Optional[datetime]:
    """
    First commit touching this path (oldest authoring time).
    """
    dates = _run_git_dates(
        path.parent,
        ["log", "--follow", "--reverse", "--format=%aI", "--", path.name],
    )
    return dates[0] if dates else None


def git_last_commit_date(path: Path) -> Optional[datetime]:
    dates = _run_git_dates(
        path.parent,
        ["log", "--follow", "-1", "--format=%aI", "--", path.name],
    )
    return dates[0] if dates else None


class GitTimestampProvider:
    """
    Created/modified times from version-control history.

    Files without history (untracked, no repository, no git binary) fall
    back to `now`, which is captured once so a build is self-consistent.
    """

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime.now(timezone.utc)

    def timestamps(self, path: Path) -> Timestamps:
        created = git_first_commit_date(path)
        modified = git_last_commit_date(path)
        if created is None or modified is None:
            log.debug("no git history for %s, using build time", path)
        return created or self.now, modified or self.now
