"""Tests for prompt_builder module."""

from agile_story.story.prompt_builder import (
    EMPTY_CONTEXT_TEXT,
    build_system_prompt,
    build_tweak_prompt,
    build_user_prompt,
)


class TestBuildSystemPrompt:
    """Tests for build_system_prompt."""

    def test_includes_team_context(self, team_config):
        prompt = build_system_prompt(team_config)

        assert "- Team Name: Accounts" in prompt
        assert "- Mission: Make sign-in painless" in prompt
        assert "- Project: Customer account portal" in prompt
        assert "- Team Roles: customer, support agent, admin" in prompt
        assert f"User Story Template: {team_config.user_story_template}" in prompt

    def test_generation_prompt_asks_for_json(self, team_config):
        prompt = build_system_prompt(team_config)

        assert "create well-structured user stories" in prompt
        assert '"formattedStory": "the formatted user story"' in prompt
        assert '"suggestions"' in prompt

    def test_tweak_prompt_variant(self, team_config):
        prompt = build_system_prompt(team_config, tweak=True)

        assert "refine and improve user stories" in prompt
        assert '"formattedStory": "the revised user story"' in prompt

    def test_no_prior_section_without_context(self, team_config):
        assert "Previous Stories" not in build_system_prompt(team_config)
        assert "Previous Stories" not in build_system_prompt(team_config, "")

    def test_no_prior_section_for_empty_digest(self, team_config):
        prompt = build_system_prompt(team_config, EMPTY_CONTEXT_TEXT)
        assert "Previous Stories" not in prompt

    def test_prior_context_injected(self, team_config):
        digest = "Team Stories Count: 1\n\nStory #1 (Created: 2026-01-01T00:00:00.000Z)"
        prompt = build_system_prompt(team_config, digest)

        assert "Previous Stories From This Team" in prompt
        assert "Team Stories Count: 1" in prompt
        # History comes before the instructions
        assert prompt.index("Team Stories Count") < prompt.index("Instructions:")


class TestUserPrompts:
    """Tests for user prompt builders."""

    def test_build_user_prompt(self):
        prompt = build_user_prompt("I want to export reports")
        assert prompt == (
            'User Input: "I want to export reports"\n\n'
            "Please generate a user story based on this input."
        )

    def test_build_tweak_prompt(self):
        prompt = build_tweak_prompt("As a user, I want x, so that y.", "Mention 2FA")

        assert 'Original Story: "As a user, I want x, so that y."' in prompt
        assert "Tweak Instructions: Mention 2FA" in prompt
