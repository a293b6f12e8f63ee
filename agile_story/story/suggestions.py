"""
Heuristic improvement hints for a user story.

Rules run in a fixed order and each contributes at most one hint:
1. Generic role ("user")
2. Short action (< 10 chars)
3. Short benefit (< 10 chars)
4. No benefit connector ("so", "because", "to") anywhere in the input
"""

from typing import List

from .extractor import DEFAULT_ROLE

MAX_SUGGESTIONS = 3
MIN_PHRASE_LENGTH = 10
BENEFIT_CONNECTORS = ("so", "because", "to")

ROLE_SUGGESTION = (
    'Consider being more specific about the user role '
    '(e.g., "customer", "admin", "developer")'
)
ACTION_SUGGESTION = "Try to be more specific about what functionality you want"
BENEFIT_SUGGESTION = "Consider explaining the business value or user benefit more clearly"
CONNECTOR_SUGGESTION = (
    'Try to include the benefit or reason using words like "so", "because", or "to"'
)


def generate_suggestions(text: str, role: str, action: str, benefit: str) -> List[str]:
    """
    Build up to three suggestions for improving a story description.

    Args:
        text: The original free-text input
        role: Extracted role
        action: Extracted action
        benefit: Extracted benefit

    Returns:
        Suggestions in rule order, at most MAX_SUGGESTIONS
    """
    suggestions: List[str] = []

    if role == DEFAULT_ROLE:
        suggestions.append(ROLE_SUGGESTION)

    if len(action) < MIN_PHRASE_LENGTH:
        suggestions.append(ACTION_SUGGESTION)

    if len(benefit) < MIN_PHRASE_LENGTH:
        suggestions.append(BENEFIT_SUGGESTION)

    # Literal, case-sensitive substring check
    if not any(connector in text for connector in BENEFIT_CONNECTORS):
        suggestions.append(CONNECTOR_SUGGESTION)

    return suggestions[:MAX_SUGGESTIONS]
