"""
User story template formatting.
"""

from .entities import BENEFIT_PLACEHOLDER, FEATURE_PLACEHOLDER, ROLE_PLACEHOLDER
from .extractor import StoryParts


def format_story(template: str, role: str, action: str, benefit: str) -> str:
    """
    Substitute role, action and benefit into a story template.

    Only the first occurrence of each placeholder is replaced. Values are
    inserted verbatim. A template with no placeholders comes back unchanged.
    """
    return (
        template
        .replace(ROLE_PLACEHOLDER, role, 1)
        .replace(FEATURE_PLACEHOLDER, action, 1)
        .replace(BENEFIT_PLACEHOLDER, benefit, 1)
    )


def format_parts(template: str, parts: StoryParts) -> str:
    return format_story(template, parts.role, parts.action, parts.benefit)
