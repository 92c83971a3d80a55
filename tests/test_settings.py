"""Tests for persisted settings."""

from __future__ import annotations

import json

from staledirs.settings import Settings


class TestSettings:
    def test_defaults_when_file_missing(self, tmp_path):
        settings = Settings(tmp_path / "settings.json")
        assert settings.get("report.group") == 10
        assert settings.get("scan.workers") == 1
        assert settings.get("dirs_info.strict") is True
        assert settings.get("nope.nothing", "fallback") == "fallback"

    def test_set_persists(self, tmp_path):
        path = tmp_path / "nested" / "settings.json"
        Settings(path).set("report.group", 25)

        assert json.loads(path.read_text()) == {"report": {"group": 25}}
        assert Settings(path).get("report.group") == 25
        assert Settings(path).get("scan.workers") == 1

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path, caplog):
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        settings = Settings(path)
        assert settings.get("report.group") == 10
        assert "Could not load settings" in caplog.text

    def test_non_object_file_is_ignored(self, tmp_path, caplog):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2, 3]")
        assert Settings(path).get("scan.workers") == 1
        assert "not an object" in caplog.text

    def test_get_returns_copies(self, tmp_path):
        settings = Settings(tmp_path / "settings.json")
        settings.get("report")["group"] = 99
        assert settings.get("report.group") == 10
