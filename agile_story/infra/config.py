"""
Environment configuration for story generation.

Environment Variables:
- STORY_MODEL: Model spec ("claude-...", "openai:<model>", "ollama:<model>")
- CLAUDE_MODEL: Default Claude model when STORY_MODEL is unset
- ANTHROPIC_API_KEY: Credential for Claude models
- OPENAI_API_KEY: Credential for OpenAI models
- LLM_TIMEOUT: Remote call timeout in seconds (default: 60)
- LOG_LEVEL: Logging level (default: INFO)

A missing credential is not an error: it only disables remote generation.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from agile_story.story.model_provider import (
    DEFAULT_TIMEOUT,
    STORY_MAX_TOKENS,
    STORY_TEMPERATURE,
    ModelInfo,
    parse_model_spec,
)

logger = logging.getLogger(__name__)


def _get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    val = os.getenv(key)
    if val is not None:
        try:
            return int(val)
        except ValueError:
            logger.warning(f"[Config] Invalid integer for {key}: {val}, using default: {default}")
    return default


@dataclass(frozen=True)
class GenerationConfig:
    """Resolved settings for the story generator."""

    model_spec: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT
    log_level: str = "INFO"

    @property
    def model_info(self) -> ModelInfo:
        return parse_model_spec(self.model_spec)

    @property
    def credential(self) -> Optional[str]:
        """API key for the configured provider, None if absent or not needed."""
        provider = self.model_info.provider
        if provider == "anthropic":
            return self.anthropic_api_key or None
        if provider == "openai":
            return self.openai_api_key or None
        return None

    @property
    def remote_enabled(self) -> bool:
        """True when the configured provider can be called."""
        if not self.model_info.requires_api_key:
            return True
        return self.credential is not None

    def to_provider_config(self) -> Dict[str, Any]:
        """Build the config dict passed to ModelProvider.generate()."""
        return {
            "api_key": self.credential,
            "max_tokens": STORY_MAX_TOKENS,
            "temperature": STORY_TEMPERATURE,
            "timeout": self.timeout,
        }


def load_environment(dotenv: bool = True) -> GenerationConfig:
    """
    Load generation settings from the environment.

    Args:
        dotenv: Load a .env file first (values already set in the
            environment win)

    Returns:
        GenerationConfig
    """
    if dotenv:
        load_dotenv()

    config = GenerationConfig(
        model_spec=os.getenv("STORY_MODEL") or None,
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        timeout=_get_env_int("LLM_TIMEOUT", DEFAULT_TIMEOUT),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )

    info = config.model_info
    if config.remote_enabled:
        logger.info(f"[Config] Remote generation enabled - provider={info.provider}, model={info.model_name}")
    else:
        logger.info(f"[Config] No credential for provider={info.provider}, using heuristic generation")

    return config
