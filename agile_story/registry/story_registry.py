"""
Story Registry - SQLite Persistent Storage

Stores generated stories and their tweak history for every team, and keeps a
human-readable context digest file per team that is regenerated after every
write.

Design principles:
- One row per story, one row per tweak; each write is its own transaction,
  so concurrent writers never drop each other's records
- Story rows carry a version number, bumped by every tweak while the
  write lock is held
- The digest is a cache derived from the rows, never the other way round;
  a failed digest write is logged and heals on the next rebuild
"""

import json
import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from agile_story.infra.data_paths import (
    get_stories_db_path,
    get_team_context_dir,
    get_team_context_path,
)
from agile_story.story.entities import (
    StoryRecord,
    TeamConfig,
    TweakRecord,
    generate_record_id,
    now_iso,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Configuration
# =============================================================================

SCHEMA_VERSION = "1.0.0"
DEFAULT_BUSY_TIMEOUT = 30.0
DEFAULT_RECENT_LIMIT = 5

EMPTY_DIGEST_TEXT = "No prior stories for this team."


# =============================================================================
# Digest rendering
# =============================================================================

def render_context_digest(stories: List[StoryRecord]) -> str:
    """
    Render the team context digest for a list of stories (oldest first).

    Args:
        stories: The team's stories in creation order

    Returns:
        Digest text, or EMPTY_DIGEST_TEXT when there are no stories
    """
    if not stories:
        return EMPTY_DIGEST_TEXT

    lines = [f"Team Stories Count: {len(stories)}", ""]

    for idx, story in enumerate(stories, start=1):
        lines.append(f"Story #{idx} (Created: {story.created_at})")
        lines.append(f"Original Input: {story.original_input}")
        lines.append(f"User Story: {story.formatted_story}")
        if story.suggestions:
            lines.append("Suggestions:")
            lines.extend(f"- {s}" for s in story.suggestions)
        if story.tweak_history:
            lines.append(f"Edits ({len(story.tweak_history)}):")
            for t_idx, tweak in enumerate(story.tweak_history, start=1):
                lines.append(f"  Edit #{t_idx} at {tweak.created_at}")
                lines.append(f"  Request: {tweak.tweak_instructions}")
                lines.append(f"  Updated Story: {tweak.formatted_story}")
                if tweak.suggestions:
                    lines.append("  Suggestions:")
                    lines.extend(f"  - {s}" for s in tweak.suggestions)
        lines.append("")

    return "\n".join(lines)


# =============================================================================
# Story Registry Class
# =============================================================================

class StoryRegistry:
    """
    Persistent story registry using SQLite.

    Provides:
    - save_new_story / add_tweak_to_story writes
    - Per-team story queries
    - Context digest rebuild after every write
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        context_dir: Optional[str] = None,
        busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
    ):
        """
        Initialize the story registry.

        Args:
            db_path: Path to SQLite database file. If None, uses env var or default.
            context_dir: Directory for team digest files. Defaults to the
                "teams" directory next to the database.
            busy_timeout: Seconds to wait for a competing writer.
        """
        explicit_path = db_path or os.getenv("STORY_REGISTRY_DB_PATH")
        self.db_path = str(explicit_path or get_stories_db_path())
        if context_dir is not None:
            self.context_dir = Path(context_dir)
        elif explicit_path:
            self.context_dir = Path(self.db_path).parent / "teams"
        else:
            self.context_dir = get_team_context_dir()
        self.busy_timeout = busy_timeout

        logger.info(f"[Registry] Story registry initialized: {self.db_path}")

        self._ensure_directory()
        self._init_db()

    def _ensure_directory(self) -> None:
        """Create parent directory if it doesn't exist."""
        db_dir = Path(self.db_path).parent
        if not db_dir.exists():
            db_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"[Registry] Created directory: {db_dir}")

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with WAL mode enabled."""
        conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for read-only connections."""
        conn = self._get_connection()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for write transactions (takes the write lock up front)."""
        conn = self._get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.execute("COMMIT")
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema with version tracking."""
        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS stories (
                    id TEXT PRIMARY KEY,
                    team_id TEXT NOT NULL,
                    original_input TEXT NOT NULL,
                    formatted_story TEXT NOT NULL,
                    suggestions_json TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL,
                    team_config_json TEXT,
                    version INTEGER NOT NULL DEFAULT 1
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_stories_team_created
                ON stories (team_id, created_at)
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS story_tweaks (
                    id TEXT PRIMARY KEY,
                    story_id TEXT NOT NULL,
                    tweak_instructions TEXT NOT NULL,
                    formatted_story TEXT NOT NULL,
                    suggestions_json TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (story_id) REFERENCES stories(id)
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_story_tweaks_story
                ON story_tweaks (story_id, created_at)
            """)

            row = conn.execute("SELECT value FROM meta WHERE key = 'schema_version'").fetchone()
            if row is None:
                conn.execute(
                    "INSERT INTO meta (key, value) VALUES ('schema_version', ?)",
                    (SCHEMA_VERSION,)
                )
                logger.info(f"[Registry] Schema created (v{SCHEMA_VERSION})")
            elif row["value"] != SCHEMA_VERSION:
                logger.warning(
                    f"[Registry] Unknown schema version {row['value']}, expected {SCHEMA_VERSION}"
                )

    # =========================================================================
    # Row mapping
    # =========================================================================

    @staticmethod
    def _row_to_tweak(row: sqlite3.Row) -> TweakRecord:
        return TweakRecord(
            id=row["id"],
            tweak_instructions=row["tweak_instructions"],
            formatted_story=row["formatted_story"],
            suggestions=json.loads(row["suggestions_json"] or "[]"),
            created_at=row["created_at"],
        )

    def _row_to_story(self, conn: sqlite3.Connection, row: sqlite3.Row) -> StoryRecord:
        tweak_rows = conn.execute("""
            SELECT * FROM story_tweaks
            WHERE story_id = ?
            ORDER BY created_at DESC, rowid DESC
        """, (row["id"],)).fetchall()

        snapshot = None
        if row["team_config_json"]:
            snapshot = TeamConfig.from_dict(json.loads(row["team_config_json"]))

        return StoryRecord(
            id=row["id"],
            team_id=row["team_id"],
            original_input=row["original_input"],
            formatted_story=row["formatted_story"],
            suggestions=json.loads(row["suggestions_json"] or "[]"),
            created_at=row["created_at"],
            team_config_snapshot=snapshot,
            tweak_history=[self._row_to_tweak(t) for t in tweak_rows],
            version=row["version"],
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def save_new_story(
        self,
        team_id: str,
        original_input: str,
        formatted_story: str,
        suggestions: Optional[List[str]] = None,
        team_config: Optional[TeamConfig] = None,
    ) -> StoryRecord:
        """
        Persist a newly generated story and refresh the team digest.

        Args:
            team_id: Owning team
            original_input: The user's one-sentence description
            formatted_story: Generated story text
            suggestions: Improvement hints (may be empty)
            team_config: Team config at generation time (stored as snapshot)

        Returns:
            The created StoryRecord
        """
        record = StoryRecord(
            id=generate_record_id(),
            team_id=team_id,
            original_input=original_input,
            formatted_story=formatted_story,
            suggestions=list(suggestions or []),
            created_at=now_iso(),
            team_config_snapshot=team_config,
            tweak_history=[],
            version=1,
        )

        with self._transaction() as conn:
            conn.execute("""
                INSERT INTO stories
                (id, team_id, original_input, formatted_story, suggestions_json,
                 created_at, team_config_json, version)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                record.id,
                record.team_id,
                record.original_input,
                record.formatted_story,
                json.dumps(record.suggestions, ensure_ascii=False),
                record.created_at,
                json.dumps(team_config.to_dict(), ensure_ascii=False) if team_config else None,
                record.version,
            ))

        logger.info(f"[Registry] Story saved: {record.id} (team={team_id})")
        self._refresh_digest(team_id)
        return record

    def add_tweak_to_story(
        self,
        story_id: str,
        formatted_story: str,
        suggestions: Optional[List[str]],
        tweak_instructions: str,
    ) -> Optional[StoryRecord]:
        """
        Record a tweak against an existing story.

        The story's current formatted_story / suggestions are replaced by the
        tweak output and the tweak is prepended to its history. The version
        is read and bumped inside one BEGIN IMMEDIATE transaction, so
        concurrent tweaks are serialised by the write lock and none is lost.

        Returns:
            Updated StoryRecord, or None if story_id does not exist (nothing
            is written in that case)
        """
        tweak = TweakRecord(
            id=generate_record_id(),
            tweak_instructions=tweak_instructions,
            formatted_story=formatted_story,
            suggestions=list(suggestions or []),
            created_at=now_iso(),
        )
        suggestions_json = json.dumps(tweak.suggestions, ensure_ascii=False)

        with self._transaction() as conn:
            row = conn.execute(
                "SELECT team_id, version FROM stories WHERE id = ?", (story_id,)
            ).fetchone()
            if row is None:
                logger.warning(f"[Registry] Tweak skipped, story not found: {story_id}")
                return None

            team_id = row["team_id"]
            version = row["version"]

            conn.execute("""
                INSERT INTO story_tweaks
                (id, story_id, tweak_instructions, formatted_story, suggestions_json, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                tweak.id,
                story_id,
                tweak.tweak_instructions,
                tweak.formatted_story,
                suggestions_json,
                tweak.created_at,
            ))

            conn.execute("""
                UPDATE stories
                SET formatted_story = ?, suggestions_json = ?, version = ?
                WHERE id = ?
            """, (formatted_story, suggestions_json, version + 1, story_id))

        logger.info(f"[Registry] Tweak saved: {tweak.id} -> story {story_id} (v{version + 1})")
        self._refresh_digest(team_id)
        return self.get_story(story_id)

    # =========================================================================
    # Reads
    # =========================================================================

    def get_story(self, story_id: str) -> Optional[StoryRecord]:
        """Get a single story with its tweak history, or None."""
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM stories WHERE id = ?", (story_id,)).fetchone()
            if row is None:
                return None
            return self._row_to_story(conn, row)

    def get_stories_for_team(self, team_id: str) -> List[StoryRecord]:
        """Get all stories for a team, oldest first."""
        with self._connection() as conn:
            rows = conn.execute("""
                SELECT * FROM stories
                WHERE team_id = ?
                ORDER BY created_at ASC, rowid ASC
            """, (team_id,)).fetchall()
            return [self._row_to_story(conn, row) for row in rows]

    def get_recent_stories_for_team(
        self,
        team_id: str,
        limit: int = DEFAULT_RECENT_LIMIT,
    ) -> List[StoryRecord]:
        """Get the most recent stories for a team, newest first."""
        with self._connection() as conn:
            rows = conn.execute("""
                SELECT * FROM stories
                WHERE team_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
            """, (team_id, limit)).fetchall()
            return [self._row_to_story(conn, row) for row in rows]

    def count_stories(self, team_id: Optional[str] = None) -> int:
        """Count stories, optionally for one team."""
        with self._connection() as conn:
            if team_id is None:
                row = conn.execute("SELECT COUNT(*) AS cnt FROM stories").fetchone()
            else:
                row = conn.execute(
                    "SELECT COUNT(*) AS cnt FROM stories WHERE team_id = ?", (team_id,)
                ).fetchone()
            return row["cnt"]

    def count_tweaks(self) -> int:
        with self._connection() as conn:
            return conn.execute("SELECT COUNT(*) AS cnt FROM story_tweaks").fetchone()["cnt"]

    # =========================================================================
    # Context digest
    # =========================================================================

    def generate_context_text(self, team_id: str) -> str:
        """Render the digest text for a team from the stored rows."""
        return render_context_digest(self.get_stories_for_team(team_id))

    def get_context_path(self, team_id: str) -> Path:
        return get_team_context_path(team_id, self.context_dir)

    def rebuild_context_digest(self, team_id: str) -> str:
        """
        Regenerate a team's digest text and write it to its cache file.

        File write errors are logged and ignored; the text is returned either
        way.
        """
        context = self.generate_context_text(team_id)
        path = self.get_context_path(team_id)
        tmp_path = path.with_name(f"{path.name}.{os.getpid()}.{threading.get_ident()}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(context, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            logger.warning(f"[Registry] Could not write context digest {path}: {e}")
        return context

    def read_context_digest(self, team_id: str) -> str:
        """
        Return a team's digest, rebuilding the cache file first.

        Falls back to the freshly rendered text if the cache file cannot be
        read back.
        """
        context = self.rebuild_context_digest(team_id)
        path = self.get_context_path(team_id)
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"[Registry] Could not read context digest {path}: {e}")
            return context

    def _refresh_digest(self, team_id: str) -> None:
        try:
            self.rebuild_context_digest(team_id)
        except sqlite3.Error as e:
            logger.warning(f"[Registry] Digest rebuild failed for team {team_id}: {e}")
