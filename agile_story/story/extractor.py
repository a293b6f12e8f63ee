"""
Role / action / benefit extraction from free-text story descriptions.

Each slot is filled by an ordered list of rules. Rules are tried in list
order and the first one that matches anywhere in the text wins, even if a
later rule would match earlier in the text. Matching is case-insensitive and
the captured text is only whitespace-trimmed. Keywords are not anchored to
word boundaries, so "has a badge" reads as the role "badge".
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence

DEFAULT_ROLE = "user"
DEFAULT_ACTION = "access a feature"
DEFAULT_BENEFIT = "achieve my goals"

# Captured phrases run up to the next full stop
_PHRASE = r"([^.]+)"


@dataclass(frozen=True)
class ExtractionRule:
    """A named pattern whose first capture group is the extracted value."""
    name: str
    pattern: Pattern[str]

    def apply(self, text: str) -> Optional[str]:
        match = self.pattern.search(text)
        if not match:
            return None
        value = match.group(1).strip()
        return value or None


def _rule(name: str, regex: str) -> ExtractionRule:
    return ExtractionRule(name=name, pattern=re.compile(regex, re.IGNORECASE))


ROLE_RULES: List[ExtractionRule] = [
    _rule("as_a", r"as\s+an?\s+(\w+)"),
    _rule("i_am_a", r"i\s+am\s+a\s+(\w+)"),
    _rule("here", r"(\w+)\s+here"),
]

ACTION_RULES: List[ExtractionRule] = [
    _rule("want_to", r"want\s+to\s+" + _PHRASE),
    _rule("need_to", r"need\s+to\s+" + _PHRASE),
    _rule("would_like_to", r"would\s+like\s+to\s+" + _PHRASE),
    _rule("can", r"can\s+" + _PHRASE),
]

BENEFIT_RULES: List[ExtractionRule] = [
    _rule("so_that", r"so\s+(?:that\s+)?" + _PHRASE),
    _rule("because", r"because\s+" + _PHRASE),
    _rule("in_order_to", r"in\s+order\s+to\s+" + _PHRASE),
    _rule("to", r"to\s+" + _PHRASE),
]


@dataclass(frozen=True)
class StoryParts:
    """The three slots of a user story."""
    role: str
    action: str
    benefit: str


def first_match(text: str, rules: Sequence[ExtractionRule], default: str) -> str:
    """Return the value of the first rule in `rules` that matches, else `default`."""
    for rule in rules:
        value = rule.apply(text)
        if value is not None:
            return value
    return default


def extract_role(text: str) -> str:
    return first_match(text, ROLE_RULES, DEFAULT_ROLE)


def extract_action(text: str) -> str:
    return first_match(text, ACTION_RULES, DEFAULT_ACTION)


def extract_benefit(text: str) -> str:
    return first_match(text, BENEFIT_RULES, DEFAULT_BENEFIT)


def extract(text: str) -> StoryParts:
    """
    Extract role, action and benefit from a one-sentence description.

    Args:
        text: Free-text input, e.g. "As a customer, I want to reset my
            password so I can access my account"

    Returns:
        StoryParts with defaults for any slot no rule matched
    """
    return StoryParts(
        role=extract_role(text),
        action=extract_action(text),
        benefit=extract_benefit(text),
    )
