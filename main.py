"""
Agile user story generator - command line entry point.

Generates, tweaks and lists team user stories using the same pipeline as the
HTTP API. Results are printed as JSON.
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from agile_story.errors import MissingFieldsError, StoryNotFoundError
from agile_story.infra.config import load_environment
from agile_story.infra.logging_config import setup_logging
from agile_story.registry.story_registry import StoryRegistry
from agile_story.story.entities import DEFAULT_TEMPLATE, TeamConfig
from agile_story.story.generator import get_generator
from agile_story.story.service import StoryService

logger = logging.getLogger("agile_story.cli")

EXIT_OK = 0
EXIT_USAGE = 2


def load_team_config(args: argparse.Namespace) -> TeamConfig:
    """
    Build a TeamConfig from --team-config (JSON file) and/or CLI flags.

    Flags override values from the file.
    """
    data: Dict[str, Any] = {}
    if args.team_config:
        with open(args.team_config, "r", encoding="utf-8") as f:
            data = json.load(f)

    overrides = {
        "teamName": args.team_name,
        "userStoryTemplate": args.template,
        "id": args.team_id,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    data.setdefault("userStoryTemplate", DEFAULT_TEMPLATE)
    return TeamConfig.from_dict(data)


def build_service(args: argparse.Namespace) -> StoryService:
    config = load_environment(dotenv=False)
    registry = None if args.no_save else StoryRegistry(db_path=args.db_path)
    return StoryService(generator=get_generator(config), registry=registry)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def cmd_generate(args: argparse.Namespace, service: StoryService) -> int:
    team_config = load_team_config(args)
    outcome = service.generate_story(args.input, team_config, team_id=args.team_id)
    _print_json(outcome.to_dict())
    return EXIT_OK


def cmd_tweak(args: argparse.Namespace, service: StoryService) -> int:
    team_config = load_team_config(args)
    outcome = service.tweak_story(
        original_story=args.story,
        tweak_instructions=args.instructions,
        team_config=team_config,
        story_id=args.story_id,
        team_id=args.team_id,
    )
    _print_json(outcome.to_dict())
    return EXIT_OK


def cmd_context(args: argparse.Namespace, service: StoryService) -> int:
    print(service.get_team_context(args.team_id))
    return EXIT_OK


def cmd_list(args: argparse.Namespace, service: StoryService) -> int:
    records = service.list_team_stories(args.team_id, limit=args.limit)
    _print_json([r.to_dict() for r in records])
    return EXIT_OK


def cmd_show(args: argparse.Namespace, service: StoryService) -> int:
    _print_json(service.get_story(args.story_id).to_dict())
    return EXIT_OK


def _add_team_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--team-config",
        type=str,
        default=None,
        help="Path to a team config JSON file (teamName, mission, projectDescription, userStoryTemplate, teamRoles, id)"
    )
    parser.add_argument("--team-name", type=str, default=None, help="Team name (overrides the file)")
    parser.add_argument("--template", type=str, default=None, help="User story template (overrides the file)")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Agile user story generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate a story for a team
  python main.py generate "As a customer, I want to reset my password so I can access my account" \\
      --team-config team.json --team-id accounts

  # Refine a saved story
  python main.py tweak "As a customer, ..." "Mention two-factor authentication" \\
      --team-config team.json --story-id 1760000000000-abc123

  # Show the team's story digest
  python main.py context --team-id accounts
        """
    )
    parser.add_argument("--db-path", type=str, default=None, help="SQLite registry path. Default: <data root>/team-stories.db")
    parser.add_argument("--no-save", action="store_true", default=False, help="Do not persist stories")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level. Default: LOG_LEVEL env or WARNING")

    sub = parser.add_subparsers(dest="command", required=True)

    p_generate = sub.add_parser("generate", help="Generate a user story from a description")
    p_generate.add_argument("input", help="One-sentence story description")
    p_generate.add_argument("--team-id", type=str, default=None, help="Team id (stories are saved under it)")
    _add_team_options(p_generate)
    p_generate.set_defaults(func=cmd_generate)

    p_tweak = sub.add_parser("tweak", help="Refine a story with follow-up instructions")
    p_tweak.add_argument("story", help="Current story text")
    p_tweak.add_argument("instructions", help="Tweak instructions")
    p_tweak.add_argument("--story-id", type=str, default=None, help="Saved story id to append the tweak to")
    p_tweak.add_argument("--team-id", type=str, default=None, help="Team id")
    _add_team_options(p_tweak)
    p_tweak.set_defaults(func=cmd_tweak)

    p_context = sub.add_parser("context", help="Print a team's story digest")
    p_context.add_argument("--team-id", type=str, required=True)
    p_context.set_defaults(func=cmd_context)

    p_list = sub.add_parser("list", help="List a team's most recent stories")
    p_list.add_argument("--team-id", type=str, required=True)
    p_list.add_argument("--limit", type=int, default=5)
    p_list.set_defaults(func=cmd_list)

    p_show = sub.add_parser("show", help="Show a saved story with its tweak history")
    p_show.add_argument("story_id")
    p_show.set_defaults(func=cmd_show)

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)

    log_level = args.log_level or os.getenv("LOG_LEVEL", "WARNING")
    setup_logging(log_level, log_to_file=bool(os.getenv("LOG_DIR")))

    try:
        service = build_service(args)
        return args.func(args, service)
    except MissingFieldsError as e:
        logger.error(str(e))
        return EXIT_USAGE
    except StoryNotFoundError as e:
        logger.error(str(e))
        return 1
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read team config: {e}")
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
