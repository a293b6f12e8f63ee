"""
Story generators.

Two strategies behind one interface:
- HeuristicGenerator: local regex extraction + template formatting
- RemoteGenerator: LLM generation, composing a HeuristicGenerator as its
  fallback for every failure path

get_generator() picks one at construction time based on credential presence.
Neither generator raises: every path returns a well-formed StoryResult.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .entities import StoryResult, TeamConfig
from .extractor import extract
from .formatter import format_parts
from .model_provider import ModelProvider, get_provider
from .prompt_builder import build_system_prompt, build_tweak_prompt, build_user_prompt
from .response_parser import extract_sections, parse_structured_response
from .suggestions import generate_suggestions

logger = logging.getLogger(__name__)

TWEAK_NOTE_SUGGESTION = "No model API key configured, tweak applied as note."
TWEAK_FAILED_SUGGESTION = "AI tweak failed, see error log."


class StoryGenerator(ABC):
    """Turns story descriptions into formatted stories and refines them."""

    @abstractmethod
    def generate(
        self,
        user_input: str,
        team_config: TeamConfig,
        prior_context: str = "",
    ) -> StoryResult:
        """
        Generate a formatted story from a one-sentence description.

        Args:
            user_input: Free-text story description
            team_config: Team template and context
            prior_context: Team context digest text

        Returns:
            StoryResult
        """
        pass

    @abstractmethod
    def tweak(
        self,
        original_story: str,
        tweak_instructions: str,
        team_config: TeamConfig,
        prior_context: str = "",
    ) -> StoryResult:
        """Refine an existing story according to follow-up instructions."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass


class HeuristicGenerator(StoryGenerator):
    """Regex extraction + template substitution, no network."""

    @property
    def name(self) -> str:
        return "heuristic"

    def generate(
        self,
        user_input: str,
        team_config: TeamConfig,
        prior_context: str = "",
    ) -> StoryResult:
        parts = extract(user_input)
        logger.debug(
            f"[Generator] Extracted role={parts.role!r} action={parts.action!r} benefit={parts.benefit!r}"
        )
        return StoryResult(
            formatted_story=format_parts(team_config.user_story_template, parts),
            suggestions=generate_suggestions(user_input, parts.role, parts.action, parts.benefit),
            source="heuristic",
        )

    def tweak(
        self,
        original_story: str,
        tweak_instructions: str,
        team_config: TeamConfig,
        prior_context: str = "",
    ) -> StoryResult:
        return StoryResult(
            formatted_story=f"{original_story}\n\n(Tweak: {tweak_instructions})",
            suggestions=[TWEAK_NOTE_SUGGESTION],
            source="note",
        )


class RemoteGenerator(StoryGenerator):
    """
    LLM-backed generator.

    Failure handling for generate():
    - provider raises -> fallback generator
    - reply is not structured JSON -> scrape story/suggestion sections
    - no story in the reply either -> fallback generator

    For tweak(), a provider failure appends a "(Tweak failed: ...)" note to
    the original story, and a reply with neither JSON nor a story section is
    used verbatim.
    """

    def __init__(
        self,
        provider: ModelProvider,
        provider_config: Dict[str, Any],
        fallback: Optional[StoryGenerator] = None,
    ):
        self.provider = provider
        self.provider_config = provider_config
        self.fallback = fallback or HeuristicGenerator()

    @property
    def name(self) -> str:
        return f"remote:{self.provider.provider_name}"

    def _call(self, system_prompt: str, user_prompt: str) -> str:
        result = self.provider.generate(system_prompt, user_prompt, self.provider_config)
        if result.usage:
            logger.info(
                f"[Generator] Tokens - Input: {result.usage.get('input_tokens')}, "
                f"Output: {result.usage.get('output_tokens')}"
            )
        return result.text or ""

    def generate(
        self,
        user_input: str,
        team_config: TeamConfig,
        prior_context: str = "",
    ) -> StoryResult:
        system_prompt = build_system_prompt(team_config, prior_context)
        user_prompt = build_user_prompt(user_input)

        try:
            response = self._call(system_prompt, user_prompt)
        except Exception as e:
            logger.error(f"[Generator] Remote generation failed, using fallback: {e}", exc_info=True)
            return self.fallback.generate(user_input, team_config, prior_context)

        parsed = parse_structured_response(response) or extract_sections(response)
        if parsed is None:
            logger.warning("[Generator] No story found in model reply, using fallback")
            return self.fallback.generate(user_input, team_config, prior_context)

        return parsed

    def tweak(
        self,
        original_story: str,
        tweak_instructions: str,
        team_config: TeamConfig,
        prior_context: str = "",
    ) -> StoryResult:
        system_prompt = build_system_prompt(team_config, prior_context, tweak=True)
        user_prompt = build_tweak_prompt(original_story, tweak_instructions)

        try:
            response = self._call(system_prompt, user_prompt)
        except Exception as e:
            logger.error(f"[Generator] Remote tweak failed: {e}", exc_info=True)
            return StoryResult(
                formatted_story=f"{original_story}\n\n(Tweak failed: {tweak_instructions})",
                suggestions=[TWEAK_FAILED_SUGGESTION],
                source="note",
            )

        parsed = parse_structured_response(response) or extract_sections(response)
        if parsed is not None:
            return parsed

        if response.strip():
            logger.warning("[Generator] Unstructured tweak reply, returning text as-is")
            return StoryResult(formatted_story=response.strip(), suggestions=[], source="remote_text")

        logger.warning("[Generator] Empty tweak reply, using fallback")
        return self.fallback.tweak(original_story, tweak_instructions, team_config, prior_context)


def get_generator(config) -> StoryGenerator:
    """
    Select a generator for the given GenerationConfig.

    Returns a RemoteGenerator when the configured provider is usable (a
    credential is present, or none is needed), else a HeuristicGenerator.
    """
    if not config.remote_enabled:
        logger.info("[Generator] Using heuristic generator (no credential)")
        return HeuristicGenerator()

    info = config.model_info
    logger.info(f"[Generator] Using remote generator provider={info.provider}, model={info.model_name}")
    return RemoteGenerator(
        provider=get_provider(config.model_spec),
        provider_config=config.to_provider_config(),
    )
