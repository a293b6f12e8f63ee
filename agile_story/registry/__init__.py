"""
Registry module - SQLite-based persistent storage for team stories.
"""

from .story_registry import (
    EMPTY_DIGEST_TEXT,
    StoryRegistry,
    render_context_digest,
)

__all__ = [
    "EMPTY_DIGEST_TEXT",
    "StoryRegistry",
    "render_context_digest",
]
