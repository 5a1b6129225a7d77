import re

import pytest

from conftest import write
from pillarsite.build import build_site
from pillarsite.config import SiteConfig
from pillarsite.main import main


def _read(path):
    return path.read_text(encoding="utf-8")


class TestBuildSite:
    def test_single_auto_pillar(self, site_root, config, timestamps):
        write(site_root / "content" / "algorithms" / "sorting.md",
              '---\ntitle: "Sorting"\ntags: [Arrays]\n---\n## Bubble sort\n\nSwap.\n')

        result = build_site(config, timestamps)

        docs = site_root / "docs"
        page = _read(docs / "algorithms" / "sorting.html")
        sidebar = page.split('<aside class="sidebar">', 1)[1].split("</aside>", 1)[0]
        assert sidebar.count('class="sidebar-section"') == 1
        assert "<span>Arrays</span>" in sidebar
        assert re.findall(r'<a href="([^"]+)" class="sidebar-item active">', sidebar) == [
            "/algorithms/sorting.html"
        ]
        breadcrumb = page.split('<nav class="breadcrumb">', 1)[1].split("</nav>", 1)[0]
        assert breadcrumb.rstrip().endswith('<span class="breadcrumb-current">SORTING</span>')
        assert '<h2 id="bubble-sort">Bubble sort</h2>' in page
        assert '<a href="#bubble-sort" class="toc-link">Bubble sort</a>' in page

        index = _read(docs / "algorithms" / "index.html")
        topic_view = index.split('<div class="blog-view" data-view="topic">', 1)[1]
        topic_view = topic_view.split('<div class="blog-view" data-view="date"', 1)[0]
        assert '<div class="pillar-section" data-section="Arrays">' in topic_view
        assert topic_view.count('class="pillar-topic-card"') == 1
        assert 'data-date="2025-01-05"' in topic_view

        home = _read(docs / "index.html")
        assert '<a href="/algorithms/sorting.html">Sorting</a>' in home
        assert len(result.pages) == 3

    def test_missing_declared_topic_is_skipped(self, site_root, config, timestamps):
        pillar_dir = site_root / "content" / "design"
        write(pillar_dir / "_meta.yml", """
            pillar: Design
            sections:
              - name: Basics
                topics:
                  - {slug: caching, title: Caching}
                  - {slug: sharding, title: Sharding}
        """)
        write(pillar_dir / "caching.md", "Cache things.\n")

        build_site(config, timestamps)

        out = site_root / "docs" / "design"
        assert (out / "caching.html").exists()
        assert not (out / "sharding.html").exists()
        assert "sharding" not in _read(out / "caching.html")
        assert "sharding" not in _read(out / "index.html")

    def test_impossible_frontmatter_date_still_builds(self, site_root, config, timestamps):
        pillar_dir = site_root / "content" / "algorithms"
        write(pillar_dir / "a.md", "---\ntitle: A\ndate: 2024-13-45\n---\nFirst.\n")
        write(pillar_dir / "b.md", "---\ntitle: B\ndate: 2024-06-30\n---\nSecond.\n")

        result = build_site(config, timestamps)

        out = site_root / "docs" / "algorithms"
        assert (out / "a.html").exists()
        assert (out / "b.html").exists()
        assert len(result.pages) == 4
        index = _read(out / "index.html")
        assert 'data-date="2025-01-05"' in index
        assert 'data-date="2024-06-30"' in index

    def test_rebuild_is_byte_identical(self, site_root, config, timestamps):
        write(site_root / "content" / "a" / "one.md", "---\ntags: [X, Y]\n---\n## H\n")
        write(site_root / "content" / "b" / "two.md", "text\n")

        def snapshot():
            docs = site_root / "docs"
            return {p.relative_to(docs): p.read_bytes()
                    for p in sorted(docs.rglob("*")) if p.is_file()}

        build_site(config, timestamps)
        first = snapshot()
        build_site(config, timestamps)
        assert snapshot() == first

    def test_output_is_wiped_and_assets_copied(self, site_root, config, timestamps):
        write(site_root / "docs" / "stale.html", "old\n")
        write(site_root / "assets" / "css" / "style.css", "body {}\n")
        write(site_root / "CNAME", "notes.example.com\n")

        build_site(config, timestamps)

        docs = site_root / "docs"
        assert not (docs / "stale.html").exists()
        assert _read(docs / "assets" / "css" / "style.css") == "body {}\n"
        assert _read(docs / "CNAME") == "notes.example.com\n"
        assert (docs / "index.html").exists()

    def test_output_dir_override(self, site_root, timestamps):
        config = SiteConfig.for_root(site_root, output_dir="public")
        build_site(config, timestamps)
        assert (site_root / "public" / "index.html").exists()
        assert not (site_root / "docs").exists()


class TestMain:
    def test_success(self, site_root):
        write(site_root / "site.yml", "site_title: My Notes\n")
        write(site_root / "content" / "misc" / "hello.md", "hi\n")

        assert main(["--root", str(site_root), "--no-git"]) == 0
        assert "<title>My Notes</title>" in _read(site_root / "docs" / "index.html")

    def test_missing_content_dir_fails(self, tmp_path, caplog):
        assert main(["--root", str(tmp_path), "--no-git"]) == 1
        assert "Build failed" in caplog.text

    def test_missing_config_file_fails(self, site_root):
        assert main(["--root", str(site_root), "--config", str(site_root / "nope.yml")]) == 1

    def test_bad_config_fails(self, site_root):
        write(site_root / "site.yml", "colour: blue\n")
        assert main(["--root", str(site_root), "--no-git"]) == 1

    @pytest.mark.parametrize("bad", ["recent_posts_limit: 0\n", "nav_targets: [home]\n"])
    def test_invalid_values_fail(self, site_root, bad):
        write(site_root / "site.yml", bad)
        assert main(["--root", str(site_root), "--no-git"]) == 1
