"""
Prompt Builder - System and User Prompt Construction

Builds the system / user message pair sent to the story model for both
generation and tweak requests. The team's accumulated story context (the
digest text kept by the registry) is appended to the system prompt so the
model stays consistent with stories the team already wrote.
"""

import logging
from typing import Optional

from .entities import TeamConfig

logger = logging.getLogger(__name__)

EMPTY_CONTEXT_TEXT = "No prior stories for this team."

_RESPONSE_FORMAT = """Respond in JSON format:
{
  "formattedStory": "%s",
  "suggestions": ["suggestion 1", "suggestion 2"]
}"""

GENERATE_INSTRUCTIONS = """Instructions:
1. Analyze the user's input and extract the role, feature/functionality, and benefit/value
2. Format the user story using the provided template
3. Provide 1-2 suggestions for improving the story if applicable"""

TWEAK_INSTRUCTIONS = """Instructions:
1. Take the provided user story and the user's tweak instructions.
2. Revise the story according to the instructions, keeping it well-structured and clear.
3. Provide 1-2 suggestions for further improvement if applicable."""


def _format_team_context(team_config: TeamConfig) -> str:
    return "\n".join([
        "Team Context:",
        f"- Team Name: {team_config.team_name}",
        f"- Mission: {team_config.mission}",
        f"- Project: {team_config.project_description}",
        f"- Team Roles: {team_config.team_roles}",
    ])


def _format_prior_context(prior_context: Optional[str]) -> str:
    """
    Format the team's story history for system prompt injection.

    Returns an empty string when there is nothing useful to add.
    """
    if not prior_context or prior_context.strip() == EMPTY_CONTEXT_TEXT:
        return ""

    return "\n".join([
        "",
        "Previous Stories From This Team (keep terminology and roles consistent):",
        prior_context.strip(),
        "",
    ])


def build_system_prompt(
    team_config: TeamConfig,
    prior_context: Optional[str] = None,
    tweak: bool = False,
) -> str:
    """
    Build the system prompt for story generation or refinement.

    Args:
        team_config: Team identity, mission, project, roles and template
        prior_context: Team context digest text (may be empty)
        tweak: Build the refinement prompt instead of the generation prompt

    Returns:
        System prompt text
    """
    if tweak:
        intro = ("You are an expert SAFe agile coach and user story writer. "
                 "Your task is to help teams refine and improve user stories.")
        instructions = TWEAK_INSTRUCTIONS
        response_format = _RESPONSE_FORMAT % "the revised user story"
    else:
        intro = ("You are an expert SAFe agile coach and user story writer. "
                 "Your task is to help teams create well-structured user stories.")
        instructions = GENERATE_INSTRUCTIONS
        response_format = _RESPONSE_FORMAT % "the formatted user story"

    sections = [
        intro,
        "",
        _format_team_context(team_config),
        "",
        f"User Story Template: {team_config.user_story_template}",
    ]

    prior = _format_prior_context(prior_context)
    if prior:
        sections.append(prior)
    else:
        sections.append("")

    sections.extend([instructions, "", response_format])

    prompt = "\n".join(sections)
    logger.debug(f"[PromptBuilder] System prompt built ({len(prompt)} chars, tweak={tweak})")
    return prompt


def build_user_prompt(user_input: str) -> str:
    """Build the user prompt for a generation request."""
    return (
        f'User Input: "{user_input}"\n\n'
        "Please generate a user story based on this input."
    )


def build_tweak_prompt(original_story: str, tweak_instructions: str) -> str:
    """Build the user prompt for a tweak request."""
    return (
        f'Original Story: "{original_story}"\n\n'
        f"Tweak Instructions: {tweak_instructions}\n\n"
        "Please revise the user story as requested."
    )
