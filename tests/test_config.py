"""Tests for tplchain.config."""

from __future__ import annotations

import pytest

from tplchain.chain import MAX_PRIORITY
from tplchain.config import TemplatingConfig
from tplchain.environment import TemplatingEnvironment


class TestTemplatingConfig:
    def test_defaults(self, tmp_path):
        config = TemplatingConfig(project_dir=str(tmp_path), cache_dir=str(tmp_path / "c"))
        assert config.auto_refresh is True
        assert config.extension == ".j2"
        assert config.template_directories == []

    def test_directory_entry_forms(self, tmp_path):
        config = TemplatingConfig(
            project_dir=str(tmp_path),
            cache_dir=str(tmp_path / "c"),
            template_directories=[
                str(tmp_path / "a"),
                (str(tmp_path / "b"), 5),
                {"path": str(tmp_path / "c"), "priority": True},
            ],
        )
        assert config.template_directories == [
            (str(tmp_path / "a"), None),
            (str(tmp_path / "b"), 5),
            (str(tmp_path / "c"), True),
        ]

    def test_home_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        config = TemplatingConfig(project_dir="~/app", cache_dir="~/cache")
        assert config.project_dir == str(tmp_path / "app")
        assert config.cache_dir == str(tmp_path / "cache")

    def test_from_dict(self, tmp_path):
        config = TemplatingConfig.from_dict({
            "project_dir": str(tmp_path),
            "cache_dir": str(tmp_path / "c"),
            "auto_refresh": False,
        })
        assert config.auto_refresh is False

    def test_from_dict_rejects_unknown_keys(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown templating settings"):
            TemplatingConfig.from_dict({
                "project_dir": str(tmp_path),
                "cache_dir": str(tmp_path / "c"),
                "cache_ttl": 10,
            })


class TestFromConfig:
    def test_builds_environment(self, tmp_path):
        (tmp_path / "a").mkdir()
        (tmp_path / "b").mkdir()
        (tmp_path / "a" / "t.j2").write_text("a {{ site }}")
        (tmp_path / "b" / "t.j2").write_text("b {{ site }}")
        config = TemplatingConfig(
            project_dir=str(tmp_path / "project"),
            cache_dir=str(tmp_path / "cache"),
            template_directories=[(str(tmp_path / "a"), None), (str(tmp_path / "b"), True)],
            global_variables={"site": "S"},
        )
        env = TemplatingEnvironment.from_config(config)
        assert env.chain.directories[0] == (MAX_PRIORITY, str(tmp_path / "b"))
        assert env.render("t.j2") == "b S"
