"""
Story generator exceptions.

Client input problems are the only errors surfaced to callers. Remote model
failures and storage failures are absorbed by the generator and service
layers respectively.
"""

from typing import Iterable


class StoryGeneratorError(Exception):
    """Base exception for all story generator errors."""
    pass


class MissingFieldsError(StoryGeneratorError, ValueError):
    """Raised when a generation or tweak request lacks required fields."""

    def __init__(self, fields: Iterable[str]):
        self.fields = list(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}")


class StoryNotFoundError(StoryGeneratorError):
    """Raised when a requested story does not exist."""

    def __init__(self, story_id: str):
        self.story_id = story_id
        super().__init__(f"Story not found: {story_id}")
