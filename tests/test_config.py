"""Tests for configuration loading."""

import os

import pytest

from hunk_review.config import Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("HUNKREVIEW_"):
            monkeypatch.delenv(key)


class TestDefaults:
    def test_builtin_defaults(self):
        cfg = Config()
        assert cfg.LOOKAHEAD_WINDOW == 50
        assert cfg.CONTEXT_LINES == 3
        assert cfg.SESSION_STORE_FILE == ".hunkreview/sessions.json"
        assert cfg.PERSIST_SESSIONS is True
        assert cfg.METRICS_ENABLED is True
        assert cfg.LOG_DIR == ".hunkreview/logs"


class TestPriority:
    def test_yaml_overrides_defaults(self):
        cfg = Config({"context_lines": 5, "persist_sessions": False})
        assert cfg.CONTEXT_LINES == 5
        assert cfg.PERSIST_SESSIONS is False

    def test_env_overrides_yaml(self, monkeypatch):
        monkeypatch.setenv("HUNKREVIEW_CONTEXT_LINES", "1")
        monkeypatch.setenv("HUNKREVIEW_METRICS_ENABLED", "no")
        cfg = Config({"context_lines": 5, "metrics_enabled": True})
        assert cfg.CONTEXT_LINES == 1
        assert cfg.METRICS_ENABLED is False

    def test_bad_values_fall_back_to_default(self, monkeypatch):
        monkeypatch.setenv("HUNKREVIEW_LOOKAHEAD_WINDOW", "many")
        cfg = Config({"context_lines": "lots"})
        assert cfg.LOOKAHEAD_WINDOW == 50
        assert cfg.CONTEXT_LINES == 3


class TestLoad:
    def test_explicit_path(self, tmp_path):
        path = tmp_path / "review.yaml"
        path.write_text("context_lines: 0\nlog_dir: /tmp/review-logs\n")

        cfg = Config.load(str(path))

        assert cfg.CONTEXT_LINES == 0
        assert cfg.LOG_DIR == "/tmp/review-logs"

    def test_missing_explicit_path_uses_defaults(self, tmp_path):
        cfg = Config.load(str(tmp_path / "nope.yaml"))
        assert cfg.CONTEXT_LINES == 3

    def test_finds_file_in_cwd(self, tmp_path, monkeypatch):
        (tmp_path / ".hunkreview.yaml").write_text("lookahead_window: 10\n")
        monkeypatch.chdir(tmp_path)
        assert Config.load().LOOKAHEAD_WINDOW == 10

    def test_invalid_yaml_is_ignored(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("context_lines: [unclosed\n")
        assert Config.load(str(path)).CONTEXT_LINES == 3
