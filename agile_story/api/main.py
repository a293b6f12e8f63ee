"""
FastAPI application entry point.

Story generation API: turns one-sentence descriptions into formatted user
stories and keeps a per-team history.

Optional API key authentication on story routes (API_AUTH_ENABLED).
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from agile_story import __version__
from agile_story.infra.config import load_environment
from agile_story.infra.logging_config import setup_logging
from .routers import story
from .dependencies.auth import verify_api_key, API_AUTH_ENABLED
from .dependencies.service import reset_story_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Loads .env and configures logging on startup; drops the cached story
    service on shutdown.
    """
    setup_logging(load_environment().log_level)

    yield

    reset_story_service()


tags_metadata = [
    {
        "name": "story",
        "description": "User story generation, tweaking, listing and team context digests",
    },
]

app = FastAPI(
    title="Agile User Story API",
    lifespan=lifespan,
    description="""
## Agile User Story API

Generates formatted agile user stories from one-sentence descriptions using a
team-configured template.

### Generation
When a model credential is configured (`ANTHROPIC_API_KEY`, or
`OPENAI_API_KEY` with `STORY_MODEL=openai:<model>`), stories are written by
the model. Otherwise, or when the model call fails, a local heuristic
extracts role / feature / benefit and fills the template.

### Authentication
When `API_AUTH_ENABLED=true`, all endpoints except `/health` require an
`X-API-Key` header matching the `API_KEY` environment variable.

### Usage
```bash
uvicorn agile_story.api.main:app --host 127.0.0.1 --port 8000

curl -X POST http://localhost:8000/story/generate \\
  -H "Content-Type: application/json" \\
  -d '{"userInput": "As a customer, I want to reset my password so I can access my account",
       "teamConfig": {"teamName": "Accounts",
                      "userStoryTemplate": "As a [role], I want [feature/functionality], so that [benefit/value]."}}'
```
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=tags_metadata,
)


@app.get("/health")
async def health_check():
    """Health check endpoint. Not authenticated."""
    return {"status": "ok", "version": __version__}


auth_dependency = [Depends(verify_api_key)] if API_AUTH_ENABLED else []

app.include_router(
    story.router, prefix="/story", tags=["story"], dependencies=auth_dependency
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
