"""Weekly picks job entry point.

Usage:
    python run_pipeline.py [--now 2026-10-19T06:00:00+00:00] [--config config.yaml]

Loads config.yaml, runs the weekly ranking pipeline for the 7-day window
ending the day before ``--now`` (default: the current UTC time), and reports
success/failure to stdout and the pipeline log. Meant to be triggered by an
external scheduler once a week.
"""

import argparse
import sys
from datetime import datetime

from dotenv import load_dotenv

load_dotenv()  # must precede package imports so env vars are available at module load

from weekly_picks.core.config import load_config  # noqa: E402
from weekly_picks.core.errors import PersistenceFailure  # noqa: E402
from weekly_picks.core.logger import logger  # noqa: E402
from weekly_picks.pipeline.engine import WeeklyPipeline  # noqa: E402


def _parse_args(argv):
    parser = argparse.ArgumentParser(description="Run the weekly picks pipeline once.")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument(
        "--now", type=datetime.fromisoformat, default=None,
        help="Run as if at this ISO-8601 time (naive = UTC)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Run the pipeline. Returns 0 on success, 1 on failure."""
    args = _parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        logger.error(f"run_pipeline: failed to load config: {exc}")
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    try:
        result = WeeklyPipeline(config=config).run(args.now)
    except PersistenceFailure as exc:
        logger.error(f"run_pipeline: could not persist picks: {exc}", exc_info=True)
        print(f"ERROR: persistence failed — {exc}", file=sys.stderr)
        return 1
    except Exception as exc:
        logger.error(f"run_pipeline: WeeklyPipeline raised: {exc}", exc_info=True)
        print(f"ERROR: pipeline failed — {exc}", file=sys.stderr)
        return 1

    week = result.week
    if week is None:
        logger.error("run_pipeline: no ticker could be scored — nothing published")
        print("ERROR: no ticker could be scored; rerun once data sources recover", file=sys.stderr)
        return 1

    if not result.created:
        print(f"SKIPPED: window {week.week_start}..{week.week_end} already processed (week {week.id})")
        return 0

    print(f"SUCCESS: week {week.id} ({week.week_start}..{week.week_end}) — {len(result.picks)} picks")
    for entry in result.picks:
        print(f"  #{entry.rank}  {entry.ticker:6}  {entry.score:+.4f}")
    logger.info(f"run_pipeline: completed — week {week.id}, {len(result.picks)} picks")
    return 0


if __name__ == "__main__":
    sys.exit(main())
