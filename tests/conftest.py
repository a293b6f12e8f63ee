"""
Pytest configuration and shared fixtures.
"""

import os
import pytest

from agile_story.story.entities import DEFAULT_TEMPLATE, TeamConfig


@pytest.fixture(autouse=True, scope="function")
def reset_auth_module():
    """
    Reset auth module state before each test.

    This ensures tests run with API_AUTH_ENABLED=false by default,
    unless the test explicitly sets it otherwise.
    """
    # Store original values
    original_auth_enabled = os.environ.get("API_AUTH_ENABLED")
    original_api_key = os.environ.get("API_KEY")

    # Set defaults for tests (auth disabled)
    os.environ["API_AUTH_ENABLED"] = "false"

    yield

    # Restore original values
    if original_auth_enabled is not None:
        os.environ["API_AUTH_ENABLED"] = original_auth_enabled
    elif "API_AUTH_ENABLED" in os.environ:
        del os.environ["API_AUTH_ENABLED"]

    if original_api_key is not None:
        os.environ["API_KEY"] = original_api_key
    elif "API_KEY" in os.environ:
        del os.environ["API_KEY"]

    # Reload auth module to reset state
    import importlib
    import agile_story.api.dependencies.auth as auth_module
    importlib.reload(auth_module)


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Point data and log directories at a temp dir for every test."""
    data_dir = tmp_path / "data"
    monkeypatch.setenv("STORY_DATA_DIR", str(data_dir))
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("STORY_REGISTRY_DB_PATH", raising=False)
    monkeypatch.delenv("VERCEL", raising=False)
    return data_dir


@pytest.fixture
def team_config():
    """A typical team configuration using the default template."""
    return TeamConfig(
        team_name="Accounts",
        mission="Make sign-in painless",
        project_description="Customer account portal",
        user_story_template=DEFAULT_TEMPLATE,
        team_roles="customer, support agent, admin",
        id="team-accounts",
    )


@pytest.fixture
def registry(tmp_path):
    """A StoryRegistry backed by a temp database."""
    from agile_story.registry.story_registry import StoryRegistry

    return StoryRegistry(
        db_path=str(tmp_path / "stories.db"),
        context_dir=str(tmp_path / "teams"),
    )
