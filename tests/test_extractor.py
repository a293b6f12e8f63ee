"""Tests for role / action / benefit extraction."""

import pytest

from agile_story.story.extractor import (
    ACTION_RULES,
    DEFAULT_ACTION,
    DEFAULT_BENEFIT,
    DEFAULT_ROLE,
    StoryParts,
    extract,
    extract_action,
    extract_benefit,
    extract_role,
    first_match,
)


class TestExtractRole:
    """Tests for role extraction."""

    def test_as_a_role(self):
        """'As a <role>' yields the role word."""
        assert extract_role("As a customer, I want to reset my password") == "customer"

    def test_as_an_role(self):
        """'As an <role>' is accepted."""
        assert extract_role("As an admin I need to ban spammers") == "admin"

    def test_i_am_a_role(self):
        """'I am a <role>' yields the role word."""
        assert extract_role("I am a developer and I want to see logs") == "developer"

    def test_here_role(self):
        """'<role> here' yields the word before 'here'."""
        assert extract_role("Admin here, would like to ban spammers") == "Admin"

    def test_case_insensitive(self):
        """Keywords match regardless of case; captured text keeps its case."""
        assert extract_role("AS AN ENGINEER I WANT TO DEPLOY") == "ENGINEER"

    def test_keyword_inside_word_matches(self):
        """Keywords are not anchored: 'has a' contains 'as a'."""
        assert extract_role("Whoever has a badge should get in") == "badge"

    def test_i_am_an_not_accepted(self):
        """Only 'i am a' is a role rule; 'I am an' falls through to the default."""
        assert extract_role("I am an auditor who needs to export logs") == DEFAULT_ROLE

    def test_default_role(self):
        """No rule matches -> default role."""
        assert extract_role("Export the monthly report") == DEFAULT_ROLE


class TestExtractAction:
    """Tests for action extraction."""

    def test_want_to_runs_to_end_of_sentence(self):
        """The captured action runs up to the next sentence terminator."""
        text = "As a customer, I want to reset my password so I can access my account"
        assert extract_action(text) == "reset my password so I can access my account"

    def test_stops_at_terminator(self):
        """Capture stops at the next full stop."""
        assert extract_action("I need to export reports. Thanks!") == "export reports"

    def test_exclamation_does_not_end_capture(self):
        """'!' and '?' are part of the captured phrase."""
        assert extract_action("I need to export now! Managers wait.") == "export now! Managers wait"

    def test_would_like_to(self):
        assert extract_action("I would like to pin messages") == "pin messages"

    def test_can_rule(self):
        assert extract_action("Users can filter orders by date") == "filter orders by date"

    def test_rule_order_beats_position(self):
        """A later 'want to' wins over an earlier 'can' because its rule comes first."""
        text = "I can log in quickly and I want to see alerts"
        assert extract_action(text) == "see alerts"

    def test_only_whitespace_trimmed(self):
        """Outer whitespace is trimmed, inner spacing is kept."""
        assert extract_action("I want to   reset   my password   .") == "reset   my password"

    def test_default_action(self):
        assert extract_action("Reports, monthly") == DEFAULT_ACTION


class TestExtractBenefit:
    """Tests for benefit extraction."""

    def test_so_without_that(self):
        text = "As a customer, I want to reset my password so I can access my account"
        assert extract_benefit(text) == "I can access my account"

    def test_so_that(self):
        assert extract_benefit("I want alerts so that I stay informed") == "I stay informed"

    def test_because(self):
        text = "I need to export reports because managers ask for them."
        assert extract_benefit(text) == "managers ask for them"

    def test_in_order_to(self):
        assert extract_benefit("Archive tickets in order to keep the queue short") == "keep the queue short"

    def test_bare_to_fallback(self):
        """Without other connectors the bare 'to' rule picks up the action phrase."""
        assert extract_benefit("Admin here, would like to ban spammers") == "ban spammers"

    def test_so_inside_word(self):
        """'also' contains 'so', which the so-that rule picks up first."""
        text = "I also want to export reports quickly! Managers need them"
        assert extract_benefit(text) == "want to export reports quickly! Managers need them"

    def test_default_benefit(self):
        assert extract_benefit("Reports, monthly") == DEFAULT_BENEFIT


class TestExtract:
    """Tests for the combined extractor."""

    def test_full_sentence(self):
        parts = extract("As a customer, I want to reset my password so I can access my account")
        assert parts == StoryParts(
            role="customer",
            action="reset my password so I can access my account",
            benefit="I can access my account",
        )

    def test_empty_input_uses_defaults(self):
        parts = extract("")
        assert parts.role == DEFAULT_ROLE
        assert parts.action == DEFAULT_ACTION
        assert parts.benefit == DEFAULT_BENEFIT


class TestFirstMatch:
    """Tests for first_match."""

    @pytest.mark.parametrize("text,expected", [
        ("I want to a. I need to b.", "a"),
        ("I need to b.", "b"),
        ("", "fallback"),
    ])
    def test_first_rule_wins(self, text, expected):
        assert first_match(text, ACTION_RULES, "fallback") == expected
