"""
Infrastructure module - configuration, logging and data paths.
"""

from .data_paths import (
    get_data_root,
    get_stories_db_path,
    get_team_context_dir,
    get_team_context_path,
)

from .logging_config import setup_logging

from .config import GenerationConfig, load_environment

__all__ = [
    # data_paths
    "get_data_root",
    "get_stories_db_path",
    "get_team_context_dir",
    "get_team_context_path",
    # logging
    "setup_logging",
    # config
    "GenerationConfig",
    "load_environment",
]
