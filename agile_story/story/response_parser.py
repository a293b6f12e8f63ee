"""
Parsing of model replies into a formatted story and suggestions.

Two strategies, tried in order by the generator:
1. parse_structured_response: the reply is (or wraps in a code fence) a JSON
   object with "formattedStory" and "suggestions"
2. extract_sections: line-oriented scrape of "story" / "suggestion" sections
   from free text
"""

import json
import logging
import re
from typing import Any, List, Optional

from .entities import StoryResult

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3

_BULLET_RE = re.compile(r"^(?:[-*•]|\d+[.)])\s*")


def _strip_code_fences(text: str) -> str:
    json_str = text.strip()

    if "```json" in json_str:
        start = json_str.find("```json") + 7
        end = json_str.find("```", start)
        json_str = json_str[start:end if end != -1 else None].strip()
    elif "```" in json_str:
        start = json_str.find("```") + 3
        end = json_str.find("```", start)
        json_str = json_str[start:end if end != -1 else None].strip()

    return json_str


def _normalize_suggestions(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    suggestions = [str(item).strip() for item in value if str(item).strip()]
    return suggestions[:MAX_SUGGESTIONS]


def parse_structured_response(response_text: str) -> Optional[StoryResult]:
    """
    Parse a JSON model reply.

    Returns:
        StoryResult with source "remote", or None when the reply is not a
        JSON object carrying a non-empty "formattedStory"
    """
    json_str = _strip_code_fences(response_text)

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.warning(f"[ResponseParser] JSON parse error: {e}")
        logger.debug(f"[ResponseParser] Response was: {response_text[:500]}")
        return None

    if not isinstance(data, dict):
        logger.warning("[ResponseParser] JSON reply is not an object")
        return None

    story = data.get("formattedStory")
    if not isinstance(story, str) or not story.strip():
        logger.warning("[ResponseParser] No formattedStory in response")
        return None

    return StoryResult(
        formatted_story=story.strip(),
        suggestions=_normalize_suggestions(data.get("suggestions")),
        source="remote",
    )


def extract_sections(response_text: str) -> Optional[StoryResult]:
    """
    Scrape story and suggestion sections from a free-text reply.

    A line mentioning "user story" or "story:" opens the story section and a
    line mentioning "suggestion" opens the suggestions section. Text after a
    colon on a header line counts as section content.

    Returns:
        StoryResult with source "remote_text", or None if no story text found
    """
    story_lines: List[str] = []
    suggestions: List[str] = []
    section = ""

    for line in response_text.splitlines():
        trimmed = line.strip()
        lowered = trimmed.lower()

        if "user story" in lowered or "story:" in lowered:
            section = "story"
            trimmed = trimmed.split(":", 1)[1].strip() if ":" in trimmed else ""
        elif "suggestion" in lowered:
            section = "suggestions"
            trimmed = trimmed.split(":", 1)[1].strip() if ":" in trimmed else ""

        if not trimmed:
            continue

        if section == "story":
            story_lines.append(trimmed.strip('"'))
        elif section == "suggestions":
            suggestions.append(_BULLET_RE.sub("", trimmed))

    if not story_lines:
        return None

    return StoryResult(
        formatted_story=" ".join(story_lines),
        suggestions=_normalize_suggestions(suggestions),
        source="remote_text",
    )
