"""Tests for settings loading and logging configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from buildcheck.config import SolverSettings, configure_logging, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("CONTACT_TOLERANCE", "ANGLE_TOLERANCE", "MATCH_EPSILON",
                "REQUIRE_ALL_POINTS", "MAX_WORKERS", "LOG_LEVEL"):
        monkeypatch.delenv(f"BUILDCHECK_{key}", raising=False)


@pytest.fixture
def restore_level():
    logger = logging.getLogger("buildcheck")
    level = logger.level
    yield logger
    logger.setLevel(level)


class TestLoadSettings:
    def test_defaults(self):
        assert load_settings().model_dump() == SolverSettings().model_dump()
        assert SolverSettings().max_workers == 1
        assert SolverSettings().require_all_points is False

    def test_missing_file_uses_defaults(self, tmp_path: Path):
        assert load_settings(tmp_path / "absent.json").model_dump() == SolverSettings().model_dump()

    def test_json_file(self, tmp_path: Path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"angle_tolerance": 2.5, "max_workers": 2}), encoding="utf-8")
        settings = load_settings(path)
        assert settings.angle_tolerance == 2.5
        assert settings.max_workers == 2

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"max_workers": 2}), encoding="utf-8")
        monkeypatch.setenv("BUILDCHECK_MAX_WORKERS", "6")
        monkeypatch.setenv("BUILDCHECK_REQUIRE_ALL_POINTS", "yes")
        settings = load_settings(path)
        assert settings.max_workers == 6
        assert settings.require_all_points is True

    def test_invalid_env_ignored(self, monkeypatch):
        monkeypatch.setenv("BUILDCHECK_CONTACT_TOLERANCE", "tight")
        assert load_settings().contact_tolerance == SolverSettings().contact_tolerance

    def test_bad_file_ignored(self, tmp_path: Path):
        path = tmp_path / "settings.json"
        path.write_text("{broken", encoding="utf-8")
        assert load_settings(path).max_workers == 1
        path.write_text("[1, 2]", encoding="utf-8")
        assert load_settings(path).max_workers == 1

    def test_invalid_value_raises(self, tmp_path: Path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"max_workers": 0}), encoding="utf-8")
        with pytest.raises(ValidationError):
            load_settings(path)


class TestConfigureLogging:
    def test_sets_level(self, restore_level):
        configure_logging(SolverSettings(log_level="debug"))
        assert restore_level.level == logging.DEBUG

    def test_unknown_level_kept(self, restore_level):
        restore_level.setLevel(logging.INFO)
        configure_logging(SolverSettings(log_level="chatty"))
        assert restore_level.level == logging.INFO
