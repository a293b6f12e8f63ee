"""
Data path helpers for the story generator.

Directory structure:
<data root>/
 ├── team-stories.db           # Story registry (SQLite)
 └── teams/
     └── <team_id>-context.txt # Per-team context digest

Data root resolution:
1. STORY_DATA_DIR, if set
2. $TMPDIR/.data (default /tmp/.data) on serverless hosts (VERCEL set),
   where only the temp dir is writable
3. <cwd>/.data
"""

import hashlib
import os
import re
from pathlib import Path
from typing import Optional

STORIES_DB_NAME = "team-stories.db"
TEAMS_DIR_NAME = "teams"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def is_serverless() -> bool:
    """True when running on a read-only serverless filesystem."""
    return bool(os.getenv("VERCEL"))


def get_data_root() -> Path:
    """
    Get the data root directory.

    Returns:
        Path: Writable directory holding the registry and digest files
    """
    env_path = os.getenv("STORY_DATA_DIR")
    if env_path:
        return Path(env_path).resolve()
    if is_serverless():
        return Path(os.getenv("TMPDIR") or "/tmp") / ".data"
    return Path.cwd() / ".data"


def get_stories_db_path() -> Path:
    """Get story registry SQLite database path."""
    return get_data_root() / STORIES_DB_NAME


def get_team_context_dir() -> Path:
    """Get directory holding per-team context digests."""
    return get_data_root() / TEAMS_DIR_NAME


def safe_team_filename(team_id: str) -> str:
    """
    Make a team id usable as a file name.

    Characters outside [A-Za-z0-9_.-] become "_", and leading dots are
    stripped so ids cannot escape the teams directory. When that changes the
    id, "+" and a short hash of the raw id are appended, so "a/b" and "a_b"
    never share a digest file.
    """
    name = _UNSAFE_CHARS.sub("_", team_id).lstrip(".") or "_"
    if name != team_id:
        digest = hashlib.sha1(team_id.encode("utf-8")).hexdigest()[:8]
        name = f"{name}+{digest}"
    return name


def get_team_context_path(team_id: str, context_dir: Optional[Path] = None) -> Path:
    """Get the digest file path for a team."""
    base = context_dir if context_dir is not None else get_team_context_dir()
    return base / f"{safe_team_filename(team_id)}-context.txt"
