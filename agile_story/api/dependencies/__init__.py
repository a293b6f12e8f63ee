"""
API Dependencies package.

Cross-cutting concerns: authentication and service wiring.
"""

from .auth import verify_api_key, API_AUTH_ENABLED
from .service import get_story_service, reset_story_service

__all__ = ["verify_api_key", "API_AUTH_ENABLED", "get_story_service", "reset_story_service"]
