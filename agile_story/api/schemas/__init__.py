"""
API Schemas package.

Pydantic models for request/response validation.
"""

from .story import (
    TeamConfigPayload,
    StoryGenerateRequest,
    StoryGenerateResponse,
    StoryTweakRequest,
    StoryTweakResponse,
    TeamContextResponse,
    TweakItem,
    StoryItem,
    StoryListResponse,
    ErrorResponse,
)

__all__ = [
    "TeamConfigPayload",
    "StoryGenerateRequest",
    "StoryGenerateResponse",
    "StoryTweakRequest",
    "StoryTweakResponse",
    "TeamContextResponse",
    "TweakItem",
    "StoryItem",
    "StoryListResponse",
    "ErrorResponse",
]
