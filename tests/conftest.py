import pathlib
import textwrap
from datetime import datetime, timezone

import pytest

from pillarsite.config import SiteConfig
from pillarsite.git import FixedTimestampProvider
from pillarsite.models import Post

CREATED = datetime(2025, 1, 5, 9, 30, tzinfo=timezone.utc)
MODIFIED = datetime(2025, 2, 1, 18, 0, tzinfo=timezone.utc)


def write(path: pathlib.Path, text: str) -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
    return path


def make_post(slug, tags=("General",), published=CREATED, pillar="algorithms",
              title=None, section=None):
    return Post(
        slug=slug,
        title=title or slug.title(),
        tags=tuple(tags),
        published=published,
        edited=published,
        body_source=f"# {slug}\n",
        pillar_slug=pillar,
        section=section or tags[0],
        source_path=pathlib.Path(f"{slug}.md"),
    )


@pytest.fixture
def timestamps():
    return FixedTimestampProvider(CREATED, MODIFIED)


@pytest.fixture
def site_root(tmp_path):
    (tmp_path / "content").mkdir()
    return tmp_path


@pytest.fixture
def config(site_root):
    return SiteConfig.for_root(site_root, site_title="Test Library")
