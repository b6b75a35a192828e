"""Replay activity events against an achievement catalog"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from progress_engine import config
from progress_engine.exceptions import ProgressEngineError
from progress_engine.gamification.engine import AchievementEngine
from progress_engine.gamification.rule_catalog import load_catalog_file, load_configured_catalog

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Replay activity events through the achievement engine")
    parser.add_argument("events", help="JSON file with an array of activity events")
    parser.add_argument("--catalog", help="JSON catalog file (default: ACHIEVEMENT_CATALOG_PATH or built-in)")
    parser.add_argument("--state-in", help="Engine state JSON to start from")
    parser.add_argument("--state-out", help="Write the final engine state JSON here")
    parser.add_argument("--strict", action="store_true", help="Fail on the first invalid catalog rule")
    return parser


def replay(
    events_path: Path,
    catalog_path: Optional[Path] = None,
    state_in: Optional[Path] = None,
    state_out: Optional[Path] = None,
    strict: bool = False
) -> dict:
    """
    Run every event through a fresh (or rehydrated) engine

    Returns:
        {
            'unlocks': [achievement dicts in unlock order],
            'total_points': int,
            'completion_percentage': int,
            'catalog_issues': [{'rule_id', 'index', 'reason'}]
        }
    """
    catalog = load_catalog_file(catalog_path, strict=strict) if catalog_path else load_configured_catalog()

    if state_in:
        engine = AchievementEngine.from_state(json.loads(Path(state_in).read_text(encoding="utf-8")), catalog=catalog)
    else:
        engine = AchievementEngine(catalog=catalog)

    events = json.loads(Path(events_path).read_text(encoding="utf-8"))
    unlocked = []
    for event in events:
        engine.process_activity(event)
        while engine.current_notification() is not None:
            unlocked.append(engine.dismiss().achievement.model_dump(mode="json"))

    if state_out:
        Path(state_out).write_text(engine.export_state().model_dump_json(indent=2), encoding="utf-8")
        logger.info(f"Wrote engine state to {state_out}")

    return {
        "unlocks": unlocked,
        "total_points": engine.get_total_points(),
        "completion_percentage": engine.get_overall_completion_percentage(),
        "catalog_issues": [issue.model_dump() for issue in engine.catalog_issues],
    }


def main(argv: Optional[list] = None) -> int:
    """CLI entry point"""
    configure_logging()
    args = build_parser().parse_args(argv)

    try:
        config.validate_config()
        result = replay(
            Path(args.events),
            catalog_path=Path(args.catalog) if args.catalog else None,
            state_in=Path(args.state_in) if args.state_in else None,
            state_out=Path(args.state_out) if args.state_out else None,
            strict=args.strict,
        )
    except ProgressEngineError as e:
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return 1
    except (PydanticValidationError, json.JSONDecodeError, OSError) as e:
        logger.error(f"Replay failed: {e}", exc_info=True)
        return 1

    for issue in result["catalog_issues"]:
        print(f"⚠️  Rejected {issue['rule_id']}: {issue['reason']}")
    for achievement in result["unlocks"]:
        print(f"🏆 {achievement['title']} (+{achievement['points_awarded']} points)")
    print(f"⭐ Total points: {result['total_points']}")
    print(f"📈 Completion: {result['completion_percentage']}%")
    return 0


if __name__ == "__main__":
    sys.exit(main())
