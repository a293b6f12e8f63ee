"""
Story domain entities.

- TeamConfig: A team's template and context, immutable once created
- TweakRecord: One refinement applied to a story (append-only)
- StoryRecord: A generated story plus its tweak history
- StoryResult: Formatted story and suggestions returned by a generator

Serialized field names are camelCase to match the JSON payloads exchanged
with clients; Python attributes are snake_case.
"""

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


ROLE_PLACEHOLDER = "[role]"
FEATURE_PLACEHOLDER = "[feature/functionality]"
BENEFIT_PLACEHOLDER = "[benefit/value]"

DEFAULT_TEMPLATE = (
    f"As a {ROLE_PLACEHOLDER}, I want {FEATURE_PLACEHOLDER}, "
    f"so that {BENEFIT_PLACEHOLDER}."
)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_record_id() -> str:
    """
    Generate a record id from the current epoch millis and a random suffix.

    Uniqueness is probabilistic, not guaranteed.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=11))
    return f"{int(time.time() * 1000)}-{suffix}"


def now_iso() -> str:
    """Current UTC time as an ISO string with millisecond precision."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


@dataclass(frozen=True)
class TeamConfig:
    """
    A team's story template and surrounding context.

    The template should contain the three placeholder tokens; nothing
    enforces this, a missing token simply drops that field.
    """

    team_name: str = ""
    mission: str = ""
    project_description: str = ""
    user_story_template: str = DEFAULT_TEMPLATE
    team_roles: str = ""
    id: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "teamName": self.team_name,
            "mission": self.mission,
            "projectDescription": self.project_description,
            "userStoryTemplate": self.user_story_template,
            "teamRoles": self.team_roles,
        }
        if self.id is not None:
            data["id"] = self.id
        if self.created_at is not None:
            data["createdAt"] = self.created_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamConfig":
        return cls(
            team_name=data.get("teamName") or "",
            mission=data.get("mission") or "",
            project_description=data.get("projectDescription") or "",
            user_story_template=data.get("userStoryTemplate") or "",
            team_roles=data.get("teamRoles") or "",
            id=data.get("id"),
            created_at=data.get("createdAt"),
        )


@dataclass(frozen=True)
class TweakRecord:
    """A single refinement of a story. Never mutated after creation."""

    id: str
    tweak_instructions: str
    formatted_story: str
    suggestions: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tweakInstructions": self.tweak_instructions,
            "formattedStory": self.formatted_story,
            "suggestions": list(self.suggestions),
            "createdAt": self.created_at,
        }


@dataclass
class StoryRecord:
    """
    A generated story.

    formatted_story and suggestions always hold the latest version; every
    tweak is also kept in tweak_history, newest first.
    """

    id: str
    team_id: str
    original_input: str
    formatted_story: str
    suggestions: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=now_iso)
    team_config_snapshot: Optional[TeamConfig] = None
    tweak_history: List[TweakRecord] = field(default_factory=list)
    version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "teamId": self.team_id,
            "originalInput": self.original_input,
            "formattedStory": self.formatted_story,
            "suggestions": list(self.suggestions),
            "createdAt": self.created_at,
            "teamConfigSnapshot": (
                self.team_config_snapshot.to_dict() if self.team_config_snapshot else None
            ),
            "tweakHistory": [t.to_dict() for t in self.tweak_history],
            "version": self.version,
        }


@dataclass
class StoryResult:
    """
    Output of a generation or tweak request.

    source records which path produced the story: "remote" (model JSON),
    "remote_text" (sections scraped from a non-JSON model reply),
    "heuristic" (local extraction) or "note" (tweak appended as text).
    """

    formatted_story: str
    suggestions: List[str] = field(default_factory=list)
    source: str = "heuristic"
