"""Tests for the hunk-review command line."""

import io
import json
import os

import pytest

from hunk_review.cli import ReviewError, _read_text, main


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    for key in list(os.environ):
        if key.startswith("HUNKREVIEW_"):
            monkeypatch.delenv(key)
    state = tmp_path / "state"
    monkeypatch.setenv("HUNKREVIEW_LOG_DIR", str(state / "logs"))
    monkeypatch.setenv("HUNKREVIEW_METRICS_DIR", str(state))
    monkeypatch.setenv("HUNKREVIEW_SESSION_STORE_FILE", str(state / "sessions.json"))
    monkeypatch.chdir(tmp_path)
    (tmp_path / "notes.md").write_text("a\nb\nc")
    (tmp_path / "proposed.md").write_text("a\nX\nc")
    return tmp_path


def _run(*args):
    return main(list(args) + ["--base-dir", "."])


class TestAuto:
    def test_accept(self, workdir, capsys):
        assert _run("notes.md", "proposed.md", "--auto", "accept", "--no-persist") == 0

        assert (workdir / "notes.md").read_text() == "a\nX\nc"
        assert "accepted_all" in capsys.readouterr().out

    def test_reject(self, workdir, capsys):
        assert _run("notes.md", "proposed.md", "--auto", "reject", "--no-persist") == 0

        assert (workdir / "notes.md").read_text() == "a\nb\nc"
        assert "rejected_all" in capsys.readouterr().out

    def test_missing_original_is_created(self, workdir):
        assert _run("new.md", "proposed.md", "--auto", "accept", "--no-persist") == 0
        assert (workdir / "new.md").read_text() == "a\nX\nc"

    def test_rejected_create_removes_file(self, workdir):
        assert _run("new.md", "proposed.md", "--auto", "reject", "--no-persist") == 0
        assert not (workdir / "new.md").exists()

    def test_logs_and_metrics_follow_config(self, workdir):
        _run("notes.md", "proposed.md", "--auto", "accept", "--no-persist")

        assert os.listdir(workdir / "state" / "logs")
        with open(workdir / "state" / "review_metrics.jsonl") as f:
            assert json.loads(f.readline())["outcome"] == "accepted_all"


class TestEdgeCases:
    def test_identical_files(self, workdir, capsys):
        (workdir / "proposed.md").write_text("a\nb\nc")
        assert _run("notes.md", "proposed.md", "--no-persist") == 0
        assert "No changes to review." in capsys.readouterr().out

    def test_unreadable_target(self, workdir, capsys):
        assert _run("notes.md", "missing.md", "--no-persist") == 1
        assert "Cannot read" in capsys.readouterr().err

    def test_arguments_required(self, workdir):
        with pytest.raises(SystemExit):
            main([])

    def test_read_text_error(self, tmp_path):
        with pytest.raises(ReviewError):
            _read_text(str(tmp_path / "nope"))

    def test_stats(self, workdir, capsys):
        _run("notes.md", "proposed.md", "--auto", "accept", "--no-persist")
        capsys.readouterr()

        assert main(["--stats"]) == 0
        out = capsys.readouterr().out
        assert "Reviews:        1" in out


class TestConsole:
    def test_accept_from_stdin(self, workdir, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("a\n"))

        assert _run("notes.md", "proposed.md", "--console", "--no-persist") == 0

        assert (workdir / "notes.md").read_text() == "a\nX\nc"
        assert "completed" in capsys.readouterr().out

    def test_session_resumes_after_quit(self, workdir, monkeypatch, capsys):
        (workdir / "proposed.md").write_text(
            "\n".join(["A"] + [f"l{i}" for i in range(2, 20)] + ["Z"])
        )
        (workdir / "notes.md").write_text("\n".join(f"l{i}" for i in range(1, 21)))

        monkeypatch.setattr("sys.stdin", io.StringIO("a\n"))
        assert _run("notes.md", "proposed.md", "--console") == 0
        assert "left open" in capsys.readouterr().out
        with open(workdir / "state" / "sessions.json") as f:
            assert list(json.load(f)) == ["notes.md"]

        monkeypatch.setattr("sys.stdin", io.StringIO("a\n"))
        assert _run("notes.md", "proposed.md", "--console") == 0

        out = capsys.readouterr().out
        assert "completed (2 accepted, 0 rejected)" in out
        assert (workdir / "notes.md").read_text().startswith("A\n")
