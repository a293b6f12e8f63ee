"""
Story service - request-level orchestration.

generate_story: validate -> team context -> generator -> registry -> digest
tweak_story:    validate -> team context -> generator.tweak -> registry

Storage problems never fail a request: they are logged and the story is
returned without a story id.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from agile_story.errors import MissingFieldsError, StoryNotFoundError
from agile_story.registry.story_registry import EMPTY_DIGEST_TEXT, StoryRegistry

from .entities import StoryRecord, StoryResult, TeamConfig
from .generator import StoryGenerator

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (sqlite3.Error, OSError)


@dataclass
class GenerationOutcome:
    """Response payload for generate / tweak requests."""
    formatted_story: str
    suggestions: List[str] = field(default_factory=list)
    story_id: Optional[str] = None
    source: str = "heuristic"

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "formattedStory": self.formatted_story,
            "suggestions": list(self.suggestions),
        }
        if self.story_id:
            data["storyId"] = self.story_id
        return data


def _require(**fields: Any) -> None:
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise MissingFieldsError(missing)


class StoryService:
    """Ties a StoryGenerator to an optional StoryRegistry."""

    def __init__(self, generator: StoryGenerator, registry: Optional[StoryRegistry] = None):
        self.generator = generator
        self.registry = registry

    def _prior_context(self, team_id: Optional[str]) -> str:
        if not team_id or self.registry is None:
            return ""
        try:
            context = self.registry.generate_context_text(team_id)
        except STORAGE_ERRORS as e:
            logger.warning(f"[StoryService] Could not load team context for {team_id}: {e}")
            return ""
        return "" if context == EMPTY_DIGEST_TEXT else context

    def generate_story(
        self,
        user_input: Optional[str],
        team_config: Optional[TeamConfig],
        team_id: Optional[str] = None,
    ) -> GenerationOutcome:
        """
        Generate a story and persist it for the team.

        Args:
            user_input: One-sentence description (required)
            team_config: Team config (required)
            team_id: Owning team; defaults to team_config.id. Without a team
                id nothing is persisted.

        Raises:
            MissingFieldsError: user_input or team_config missing
        """
        _require(userInput=user_input, teamConfig=team_config)

        team_id = team_id or team_config.id
        prior_context = self._prior_context(team_id)

        result: StoryResult = self.generator.generate(user_input, team_config, prior_context)
        logger.info(f"[StoryService] Story generated via {result.source} ({len(result.formatted_story)} chars)")

        outcome = GenerationOutcome(
            formatted_story=result.formatted_story,
            suggestions=result.suggestions,
            source=result.source,
        )

        if team_id and self.registry is not None:
            try:
                record = self.registry.save_new_story(
                    team_id=team_id,
                    original_input=user_input,
                    formatted_story=result.formatted_story,
                    suggestions=result.suggestions,
                    team_config=team_config,
                )
                outcome.story_id = record.id
            except STORAGE_ERRORS as e:
                logger.warning(f"[StoryService] Story not persisted for team {team_id}: {e}")

        return outcome

    def tweak_story(
        self,
        original_story: Optional[str],
        tweak_instructions: Optional[str],
        team_config: Optional[TeamConfig],
        story_id: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> GenerationOutcome:
        """
        Refine a story and, when story_id is known, append to its history.

        Raises:
            MissingFieldsError: a required field is missing
        """
        _require(
            originalStory=original_story,
            tweakInstructions=tweak_instructions,
            teamConfig=team_config,
        )

        team_id = team_id or team_config.id
        prior_context = self._prior_context(team_id)

        result = self.generator.tweak(original_story, tweak_instructions, team_config, prior_context)
        logger.info(f"[StoryService] Story tweaked via {result.source}")

        outcome = GenerationOutcome(
            formatted_story=result.formatted_story,
            suggestions=result.suggestions,
            source=result.source,
        )

        if story_id and self.registry is not None:
            try:
                record = self.registry.add_tweak_to_story(
                    story_id=story_id,
                    formatted_story=result.formatted_story,
                    suggestions=result.suggestions,
                    tweak_instructions=tweak_instructions,
                )
                if record is not None:
                    outcome.story_id = record.id
            except STORAGE_ERRORS as e:
                logger.warning(f"[StoryService] Tweak not persisted for story {story_id}: {e}")

        return outcome

    def get_team_context(self, team_id: Optional[str]) -> str:
        """
        Return the team's digest text, rebuilt on demand.

        Raises:
            MissingFieldsError: team_id missing
        """
        _require(team=team_id)
        if self.registry is None:
            return EMPTY_DIGEST_TEXT
        return self.registry.read_context_digest(team_id)

    def list_team_stories(self, team_id: Optional[str], limit: int = 5) -> List[StoryRecord]:
        """Most recent stories for a team, newest first."""
        _require(team=team_id)
        if self.registry is None:
            return []
        return self.registry.get_recent_stories_for_team(team_id, limit=limit)

    def get_story(self, story_id: str) -> StoryRecord:
        """
        Raises:
            StoryNotFoundError: no story with that id
        """
        record = self.registry.get_story(story_id) if self.registry is not None else None
        if record is None:
            raise StoryNotFoundError(story_id)
        return record
