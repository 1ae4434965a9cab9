"""
Debug dump — scores every ticker in the universe for a window without
persisting anything, and writes output/scores_debug.json showing, per ticker,
the headlines found, the per-headline keyword/event contributions, momentum
and the composite score (or why the ticker was dropped).

Run with:
    python scripts/dump_scores_debug.py [--now 2026-10-19T06:00:00]
"""

import argparse
import json
import os
from datetime import datetime, timezone

from dotenv import load_dotenv

load_dotenv()

from weekly_picks.core.config import load_config  # noqa: E402
from weekly_picks.core.errors import DataUnavailable  # noqa: E402
from weekly_picks.pipeline.engine import WeeklyPipeline, week_window  # noqa: E402
from weekly_picks.scoring.events import headline_events  # noqa: E402
from weekly_picks.scoring.ranker import rank  # noqa: E402
from weekly_picks.scoring.sentiment import headline_sentiment  # noqa: E402

DIVIDER = "=" * 70


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--now", type=datetime.fromisoformat, default=None)
    parser.add_argument("--config", default=None)
    args = parser.parse_args()

    config = load_config(args.config)
    pipeline = WeeklyPipeline(config)
    week_start, week_end = week_window(args.now or datetime.now(timezone.utc))

    print(f"\n{DIVIDER}")
    print(f"  Score dump  |  window={week_start}..{week_end}")
    print(DIVIDER)

    dump = {}
    scored = []
    for ticker in pipeline.universe.get_tickers():
        try:
            headlines = pipeline.headlines.fetch_headlines(ticker, week_start, week_end)
        except DataUnavailable as exc:
            dump[ticker] = {"dropped": f"headlines unavailable: {exc}"}
            print(f"  {ticker:6}  DROPPED  {exc}")
            continue

        entry = pipeline.score_ticker(ticker, week_start, week_end)
        dump[ticker] = {
            "headlines": [
                {
                    **h.to_dict(),
                    "sentiment": headline_sentiment(h.title),
                    "events": headline_events(h.title),
                }
                for h in headlines
            ],
        }
        if entry is None:
            dump[ticker]["dropped"] = "no headlines or momentum unavailable"
            print(f"  {ticker:6}  DROPPED  ({len(headlines)} headlines)")
            continue

        scored.append(entry)
        dump[ticker].update({
            "sentiment_score": entry.rationale.sentiment_score,
            "event_score": entry.rationale.event_score,
            "momentum": entry.rationale.momentum,
            "score": entry.score,
        })
        print(f"  {ticker:6}  {entry.score:+.4f}  ({len(headlines)} headlines)")

    print(f"\n{DIVIDER}")
    print(f"  TOP {pipeline.top_n}")
    print(DIVIDER)
    for ranked in rank(scored, pipeline.top_n):
        print(f"  #{ranked.rank}  {ranked.ticker:6}  {ranked.score:+.4f}")

    os.makedirs(pipeline.output_dir, exist_ok=True)
    path = os.path.join(pipeline.output_dir, "scores_debug.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(
            {"week_start": week_start.isoformat(), "week_end": week_end.isoformat(), "tickers": dump},
            f, indent=2,
        )
    print(f"\n  wrote {path}\n")


if __name__ == "__main__":
    main()
