"""
Story module - user story generation pipeline components.

- Extraction of role / action / benefit from free text
- Template formatting and improvement suggestions
- Model providers and prompt building for LLM generation
- Generator strategies (remote with heuristic fallback)

The request-level StoryService lives in agile_story.story.service.
"""

from .entities import (
    TeamConfig,
    StoryRecord,
    TweakRecord,
    StoryResult,
    DEFAULT_TEMPLATE,
)

from .extractor import (
    StoryParts,
    extract,
)

from .formatter import format_story

from .suggestions import generate_suggestions

from .generator import (
    StoryGenerator,
    HeuristicGenerator,
    RemoteGenerator,
    get_generator,
)

__all__ = [
    # entities
    "TeamConfig",
    "StoryRecord",
    "TweakRecord",
    "StoryResult",
    "DEFAULT_TEMPLATE",
    # extractor
    "StoryParts",
    "extract",
    # formatter
    "format_story",
    # suggestions
    "generate_suggestions",
    # generator
    "StoryGenerator",
    "HeuristicGenerator",
    "RemoteGenerator",
    "get_generator",
]
