"""
Story operation schemas.

Field names on the wire are camelCase (userInput, teamConfig, ...). Required
request fields are declared Optional so that missing values produce the
{"error": "Missing required fields"} 400 response instead of a 422.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from agile_story.story.entities import DEFAULT_TEMPLATE, StoryRecord, TeamConfig


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TeamConfigPayload(_CamelModel):
    """Team configuration as sent by clients."""

    id: Optional[str] = None
    team_name: str = Field(default="", alias="teamName")
    mission: str = ""
    project_description: str = Field(default="", alias="projectDescription")
    user_story_template: str = Field(
        default=DEFAULT_TEMPLATE,
        alias="userStoryTemplate",
        description="Template with [role], [feature/functionality] and [benefit/value] placeholders",
        json_schema_extra={"examples": [DEFAULT_TEMPLATE]},
    )
    team_roles: str = Field(default="", alias="teamRoles")
    created_at: Optional[str] = Field(default=None, alias="createdAt")

    def to_entity(self) -> TeamConfig:
        return TeamConfig(
            team_name=self.team_name,
            mission=self.mission,
            project_description=self.project_description,
            user_story_template=self.user_story_template,
            team_roles=self.team_roles,
            id=self.id,
            created_at=self.created_at,
        )


class StoryGenerateRequest(_CamelModel):
    """Request for story generation."""

    user_input: Optional[str] = Field(
        default=None,
        alias="userInput",
        description="One-sentence story description",
        json_schema_extra={"examples": ["As a customer, I want to reset my password so I can access my account"]},
    )
    team_id: Optional[str] = Field(default=None, alias="teamId")
    team_config: Optional[TeamConfigPayload] = Field(default=None, alias="teamConfig")


class StoryGenerateResponse(_CamelModel):
    """Response from story generation."""

    formatted_story: str = Field(alias="formattedStory")
    suggestions: List[str] = Field(default_factory=list)
    story_id: Optional[str] = Field(default=None, alias="storyId")


class StoryTweakRequest(_CamelModel):
    """Request to refine an existing story."""

    original_story: Optional[str] = Field(default=None, alias="originalStory")
    tweak_instructions: Optional[str] = Field(
        default=None,
        alias="tweakInstructions",
        json_schema_extra={"examples": ["Mention two-factor authentication"]},
    )
    team_config: Optional[TeamConfigPayload] = Field(default=None, alias="teamConfig")
    story_id: Optional[str] = Field(default=None, alias="storyId")
    team_id: Optional[str] = Field(default=None, alias="teamId")


class StoryTweakResponse(_CamelModel):
    """Response from a story tweak."""

    formatted_story: str = Field(alias="formattedStory")
    suggestions: List[str] = Field(default_factory=list)


class TeamContextResponse(_CamelModel):
    """Team context digest."""

    context_text: str = Field(alias="contextText")


class TweakItem(_CamelModel):
    id: str
    tweak_instructions: str = Field(alias="tweakInstructions")
    formatted_story: str = Field(alias="formattedStory")
    suggestions: List[str] = Field(default_factory=list)
    created_at: str = Field(alias="createdAt")


class StoryItem(_CamelModel):
    """A stored story with its tweak history (newest tweak first)."""

    id: str
    team_id: str = Field(alias="teamId")
    original_input: str = Field(alias="originalInput")
    formatted_story: str = Field(alias="formattedStory")
    suggestions: List[str] = Field(default_factory=list)
    created_at: str = Field(alias="createdAt")
    team_config_snapshot: Optional[TeamConfigPayload] = Field(default=None, alias="teamConfigSnapshot")
    tweak_history: List[TweakItem] = Field(default_factory=list, alias="tweakHistory")
    version: int = 1

    @classmethod
    def from_record(cls, record: StoryRecord) -> "StoryItem":
        return cls.model_validate(record.to_dict())


class StoryListResponse(_CamelModel):
    stories: List[StoryItem] = Field(default_factory=list)
    total: int


class ErrorResponse(BaseModel):
    error: str
