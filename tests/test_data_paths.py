"""Tests for data path helpers."""

import hashlib
from pathlib import Path

from agile_story.infra.data_paths import (
    get_data_root,
    get_stories_db_path,
    get_team_context_dir,
    get_team_context_path,
    is_serverless,
    safe_team_filename,
)


class TestDataRoot:
    """Tests for data root resolution."""

    def test_env_override(self, isolated_data_dir):
        assert get_data_root() == isolated_data_dir.resolve()

    def test_serverless_uses_tmpdir(self, monkeypatch, tmp_path):
        monkeypatch.delenv("STORY_DATA_DIR", raising=False)
        monkeypatch.setenv("VERCEL", "1")
        monkeypatch.setenv("TMPDIR", str(tmp_path))

        assert is_serverless() is True
        assert get_data_root() == tmp_path / ".data"

    def test_default_is_cwd(self, monkeypatch, tmp_path):
        monkeypatch.delenv("STORY_DATA_DIR", raising=False)
        monkeypatch.chdir(tmp_path)

        assert is_serverless() is False
        assert get_data_root() == Path.cwd() / ".data"

    def test_derived_paths(self, isolated_data_dir):
        root = isolated_data_dir.resolve()
        assert get_stories_db_path() == root / "team-stories.db"
        assert get_team_context_dir() == root / "teams"


class TestTeamContextPath:
    """Tests for per-team digest paths."""

    def test_context_path(self, tmp_path):
        assert get_team_context_path("accounts", tmp_path) == tmp_path / "accounts-context.txt"

    def test_default_directory(self, isolated_data_dir):
        path = get_team_context_path("accounts")
        assert path == isolated_data_dir.resolve() / "teams" / "accounts-context.txt"

    def test_safe_filename(self):
        assert safe_team_filename("team-1_a.b") == "team-1_a.b"
        assert safe_team_filename("team a/b").startswith("team_a_b+")
        assert safe_team_filename("../etc/passwd").startswith("_etc_passwd+")
        assert safe_team_filename("").startswith("_+")

    def test_sanitised_ids_carry_hash_of_raw_id(self):
        expected = hashlib.sha1("a/b".encode("utf-8")).hexdigest()[:8]
        assert safe_team_filename("a/b") == f"a_b+{expected}"

    def test_colliding_ids_get_distinct_files(self, tmp_path):
        paths = {get_team_context_path(team_id, tmp_path) for team_id in ("a/b", "a_b", "a b", "a?b")}
        assert len(paths) == 4

    def test_unsafe_id_stays_in_directory(self, tmp_path):
        path = get_team_context_path("../../escape", tmp_path)
        assert path.parent == tmp_path
