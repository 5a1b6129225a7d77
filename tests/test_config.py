import pytest

from conftest import write
from pillarsite.config import ConfigError, SiteConfig, load_config


class TestConfig:
    def test_defaults(self, tmp_path):
        config = load_config(tmp_path / "site.yml", tmp_path)
        root = tmp_path.resolve()
        assert config.content_dir == root / "content"
        assert config.output_dir == root / "docs"
        assert config.cname_file == root / "CNAME"
        assert config.nav_targets == ("home", "learn", "blog")
        assert config.recent_posts_limit == 5

    def test_file_values_and_overrides(self, tmp_path):
        path = write(tmp_path / "site.yml", """
            site_title: Notes
            content_dir: src/notes
            recent_posts_limit: 3
            nav_targets: [home, learn, blog, about]
        """)
        config = load_config(path, tmp_path, output_dir=tmp_path / "out", site_title=None)

        assert config.site_title == "Notes"
        assert config.content_dir == tmp_path.resolve() / "src" / "notes"
        assert config.output_dir == tmp_path / "out"
        assert config.recent_posts_limit == 3
        assert config.nav_targets == ("home", "learn", "blog", "about")

    def test_unknown_key(self, tmp_path):
        path = write(tmp_path / "site.yml", "outptu_dir: x\n")
        with pytest.raises(ConfigError, match="outptu_dir"):
            load_config(path, tmp_path)

    def test_not_a_mapping(self, tmp_path):
        path = write(tmp_path / "site.yml", "- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(path, tmp_path)

    def test_invalid_values(self, tmp_path):
        with pytest.raises(ConfigError):
            SiteConfig.for_root(tmp_path, recent_posts_limit=0)
        with pytest.raises(ConfigError):
            SiteConfig.for_root(tmp_path, nav_targets=["learn"])
        with pytest.raises(ConfigError):
            SiteConfig.for_root(tmp_path, default_tag="  ")

    def test_builtin_base_template_needs_every_default_nav_target(self, tmp_path):
        with pytest.raises(ConfigError, match="blog"):
            SiteConfig.for_root(tmp_path, nav_targets=["home", "learn"])

        write(tmp_path / "templates" / "base.html", "{{ nav.home }}{{ nav.learn }}\n")
        cfg = SiteConfig.for_root(tmp_path, nav_targets=["home", "learn"])
        assert cfg.nav_targets == ("home", "learn")
