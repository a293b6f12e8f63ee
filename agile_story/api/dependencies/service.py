"""
StoryService wiring for the API.

One service per process, built lazily from the environment. Tests replace it
through app.dependency_overrides[get_story_service].
"""

import logging
import sqlite3
from typing import Optional

from agile_story.infra.config import load_environment
from agile_story.registry.story_registry import StoryRegistry
from agile_story.story.generator import get_generator
from agile_story.story.service import StoryService

logger = logging.getLogger(__name__)

_service: Optional[StoryService] = None


def get_story_service() -> StoryService:
    """
    Get the process-wide StoryService.

    If the registry cannot be opened (read-only filesystem, bad path) the
    service runs without persistence.
    """
    global _service
    if _service is None:
        config = load_environment()
        registry = None
        try:
            registry = StoryRegistry()
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"[StoryAPI] Registry init failed, persistence disabled: {e}")
        _service = StoryService(generator=get_generator(config), registry=registry)
    return _service


def reset_story_service() -> None:
    """Drop the cached service so the next request rebuilds it."""
    global _service
    _service = None
