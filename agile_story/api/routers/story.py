"""
Story router for generation, tweaking and team context.

Endpoints:
- POST /story/generate - Generate a formatted user story
- PATCH /story/tweak - Refine a story with follow-up instructions
- GET /story/team-context - Get a team's context digest (rebuilt on demand)
- GET /story/list - List a team's most recent stories
- GET /story/{story_id} - Get a story with its tweak history
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from agile_story.errors import MissingFieldsError, StoryNotFoundError
from agile_story.story.service import StoryService

from ..dependencies.service import get_story_service
from ..schemas.story import (
    ErrorResponse,
    StoryGenerateRequest,
    StoryGenerateResponse,
    StoryItem,
    StoryListResponse,
    StoryTweakRequest,
    StoryTweakResponse,
    TeamContextResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post(
    "/generate",
    response_model=StoryGenerateResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
)
def generate_story(
    request: StoryGenerateRequest,
    service: StoryService = Depends(get_story_service),
):
    """
    Generate a user story from a one-sentence description.

    Uses the configured LLM when a credential is available, otherwise (or on
    any model failure) the local extraction heuristic. When a team id is
    known the story is saved and its id returned as storyId.
    """
    try:
        team_config = request.team_config.to_entity() if request.team_config else None
        outcome = service.generate_story(
            user_input=request.user_input,
            team_config=team_config,
            team_id=request.team_id,
        )
        return outcome.to_dict()

    except MissingFieldsError as e:
        logger.info(f"[StoryAPI] Generate rejected: {e}")
        return _error(400, "Missing required fields")
    except Exception as e:
        logger.error(f"[StoryAPI] Generation error: {e}", exc_info=True)
        return _error(500, "Internal server error")


@router.patch("/tweak", response_model=StoryTweakResponse, responses=_ERROR_RESPONSES)
def tweak_story(
    request: StoryTweakRequest,
    service: StoryService = Depends(get_story_service),
):
    """
    Refine a story according to tweak instructions.

    When storyId refers to a saved story the tweak is appended to its history.
    """
    try:
        team_config = request.team_config.to_entity() if request.team_config else None
        outcome = service.tweak_story(
            original_story=request.original_story,
            tweak_instructions=request.tweak_instructions,
            team_config=team_config,
            story_id=request.story_id,
            team_id=request.team_id,
        )
        return {
            "formattedStory": outcome.formatted_story,
            "suggestions": outcome.suggestions,
        }

    except MissingFieldsError as e:
        logger.info(f"[StoryAPI] Tweak rejected: {e}")
        return _error(400, "Missing required fields")
    except Exception as e:
        logger.error(f"[StoryAPI] Tweak error: {e}", exc_info=True)
        return _error(500, "Internal server error")


@router.get("/team-context", response_model=TeamContextResponse, responses=_ERROR_RESPONSES)
def get_team_context(
    team: Optional[str] = Query(default=None, description="Team identifier"),
    service: StoryService = Depends(get_story_service),
):
    """Return the team's story digest, regenerated from stored stories."""
    try:
        return {"contextText": service.get_team_context(team)}

    except MissingFieldsError:
        return _error(400, "Missing team parameter")
    except Exception as e:
        logger.error(f"[StoryAPI] Team context error: {e}", exc_info=True)
        return _error(500, "Internal server error")


@router.get("/list", response_model=StoryListResponse, responses=_ERROR_RESPONSES)
def list_stories(
    team: Optional[str] = Query(default=None, description="Team identifier"),
    limit: int = Query(default=5, ge=1, le=500, description="Maximum stories to return"),
    service: StoryService = Depends(get_story_service),
):
    """List a team's most recent stories, newest first."""
    try:
        records = service.list_team_stories(team, limit=limit)
        stories = [StoryItem.from_record(r) for r in records]
        return StoryListResponse(stories=stories, total=len(stories))

    except MissingFieldsError:
        return _error(400, "Missing team parameter")
    except Exception as e:
        logger.error(f"[StoryAPI] List error: {e}", exc_info=True)
        return _error(500, "Internal server error")


@router.get("/{story_id}", response_model=StoryItem)
def get_story_detail(
    story_id: str,
    service: StoryService = Depends(get_story_service),
):
    """Get a stored story with its full tweak history."""
    try:
        return StoryItem.from_record(service.get_story(story_id))
    except StoryNotFoundError:
        raise HTTPException(status_code=404, detail=f"Story not found: {story_id}")
