"""Test suite for settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from techtree.config import Settings


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TECHTREE_OUTPUT_DIR", raising=False)
        settings = Settings(_env_file=None)

        assert settings.workshop_path is None
        assert settings.game_path is None
        assert settings.package_paths == []
        assert settings.output_dir == Path("mods")
        assert settings.max_workers >= 1

    def test_output_files(self, tmp_path):
        settings = Settings(output_dir=tmp_path)

        assert settings.localisation_output == tmp_path / "localisation.json"
        assert settings.technologies_output == tmp_path / "all_technologies.json"
        assert settings.technologies_map_output == tmp_path / "technologies_map.json"
        assert settings.tech_tree_output == tmp_path / "tech_tree.txt"

    def test_environment_prefix(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TECHTREE_WORKSHOP_PATH", str(tmp_path))
        monkeypatch.setenv("TECHTREE_MAX_WORKERS", "3")

        settings = Settings(_env_file=None)
        assert settings.workshop_path == tmp_path
        assert settings.max_workers == 3

    def test_worker_count_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(max_workers=0)
