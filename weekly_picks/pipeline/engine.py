"""Weekly ranking pipeline — universe scan → scoring → ranking → persistence.

Flow per run:
  1. Window   — the 7 days ending the day before ``now`` (UTC)
  2. Guard    — a window already stored with picks makes the run a no-op
  3. Universe — tickers in scan order
  4. Per ticker (optionally on a thread pool, results kept in universe order):
       headlines → sentiment + events → momentum → composite score
  5. Ranker   — top ``top_n`` by score, ties in universe order
  6. Store    — week + picks in one transaction; nothing if no ticker scored
  7. Export   — output/picks_<week_end>.csv for audit

Failures on a single ticker are logged and the ticker is dropped; a
persistence failure aborts the run and propagates to the caller.
"""

import csv
import math
import os
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from weekly_picks.access.entitlement import as_utc
from weekly_picks.core.config import load_config
from weekly_picks.core.errors import DataUnavailable
from weekly_picks.core.logger import logger
from weekly_picks.models.datatypes import RankedTicker, Rationale, RunResult, ScoredTicker
from weekly_picks.providers.base import HeadlineSource, MomentumSource, UniverseProvider
from weekly_picks.providers.market import build_momentum_source
from weekly_picks.providers.news import build_headline_source
from weekly_picks.providers.universe import StaticUniverseProvider
from weekly_picks.scoring.aggregate import aggregate, clamp_momentum
from weekly_picks.scoring.events import detect_events
from weekly_picks.scoring.ranker import rank
from weekly_picks.scoring.sentiment import score_sentiment
from weekly_picks.store.db import Database
from weekly_picks.store.weeks import WeekStore

_CSV_HEADER = [
    "Week_Start", "Week_End", "Rank", "Ticker", "Score",
    "Sentiment_Score", "Event_Score", "Momentum", "Headline_Count",
]


def week_window(now: datetime) -> Tuple[date, date]:
    """Return ``(week_start, week_end)`` for a run at ``now``.

    ``week_end`` is the last fully elapsed UTC day before ``now`` and
    ``week_start`` is six days earlier, giving a 7-day inclusive window.
    """
    week_end = as_utc(now).date() - timedelta(days=1)
    return week_end - timedelta(days=6), week_end


class WeeklyPipeline:
    """Orchestrates one weekly ranking run.

    Providers and the store are built from ``config`` unless passed in.

    Args:
        config: Validated config dict (see ``core.config.load_config``).
        weeks: Week Store to persist into.
        universe: Ticker universe provider.
        headlines: Headline source (usually a fallback chain).
        momentum: Momentum source.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        weeks: Optional[WeekStore] = None,
        universe: Optional[UniverseProvider] = None,
        headlines: Optional[HeadlineSource] = None,
        momentum: Optional[MomentumSource] = None,
    ) -> None:
        self.config = config
        self.output_dir = config.get("output_dir", "output")
        self.top_n = config.get("top_n", 5)
        self.max_workers = config.get("pipeline", {}).get("max_workers", 1)

        self.weeks = weeks or WeekStore(Database(config["database"]["path"]))
        self.universe = universe or StaticUniverseProvider(config["universe"])
        self.headlines = headlines or build_headline_source(config["news"], self.output_dir)
        self.momentum = momentum or build_momentum_source(config["market"])

    # ── public ────────────────────────────────────────────────────────────────

    def run(self, now: Optional[datetime] = None) -> RunResult:
        """Run the pipeline for the window ending the day before ``now``.

        A window counts as processed only once it holds picks. A run that
        scores nothing (e.g. every provider is down) stores nothing, so a
        later run for the same window can still publish it.

        Returns:
            :class:`RunResult`; ``created`` is False when the window had
            already been processed or no ticker could be scored.

        Raises:
            PersistenceFailure: The week and its picks could not be stored.
        """
        now = now or datetime.now(timezone.utc)
        week_start, week_end = week_window(now)

        existing = self.weeks.find_week(week_start, week_end)
        if existing and self.weeks.count_picks(existing.id) > 0:
            logger.info(
                f"WeeklyPipeline: window {week_start}..{week_end} already processed "
                f"as week {existing.id} — nothing to do"
            )
            return RunResult(week=existing, created=False)

        tickers = self.universe.get_tickers()
        logger.info(
            f"WeeklyPipeline: scanning {len(tickers)} tickers for "
            f"{week_start}..{week_end} (workers={self.max_workers})"
        )

        scored = self.score_universe(tickers, week_start, week_end)
        ranked = rank(scored, self.top_n)
        logger.info(
            f"WeeklyPipeline: {len(scored)}/{len(tickers)} tickers scored, "
            f"keeping top {len(ranked)}"
        )

        if not ranked:
            logger.warning(
                f"WeeklyPipeline: no ticker could be scored for {week_start}..{week_end} "
                f"— nothing stored, the window stays open for a rerun"
            )
            return RunResult(week=None, created=False)

        if existing:
            # pick-less row left by an earlier create_week; fill it
            self.weeks.append_picks(existing.id, ranked)
            week = existing
        else:
            week = self.weeks.save_week(week_start, week_end, ranked)
            if week is None:
                # another run stored this window after our guard check
                return RunResult(week=self.weeks.find_week(week_start, week_end), created=False)

        self._write_csv(week_start, week_end, ranked)
        for entry in ranked:
            logger.info(f"WeeklyPipeline: #{entry.rank} {entry.ticker} score={entry.score:+.4f}")
        return RunResult(week=week, picks=ranked, created=True)

    def score_universe(
        self,
        tickers: List[str],
        week_start: date,
        week_end: date,
    ) -> List[ScoredTicker]:
        """Score every ticker, keeping universe order and dropping failures."""
        if self.max_workers > 1 and len(tickers) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(
                    lambda t: self.score_ticker(t, week_start, week_end), tickers
                ))
        else:
            results = [self.score_ticker(t, week_start, week_end) for t in tickers]
        return [r for r in results if r is not None]

    def score_ticker(self, ticker: str, week_start: date, week_end: date) -> Optional[ScoredTicker]:
        """Build one :class:`ScoredTicker`. Returns None if the ticker is skipped."""
        try:
            headlines = self.headlines.fetch_headlines(ticker, week_start, week_end)
        except DataUnavailable as exc:
            logger.error(f"WeeklyPipeline: skipping {ticker} — headlines unavailable: {exc}")
            return None
        except Exception as exc:
            logger.error(f"WeeklyPipeline: skipping {ticker} — headline fetch raised: {exc}", exc_info=True)
            return None

        if not headlines:
            logger.info(f"WeeklyPipeline: skipping {ticker} — no headlines in window")
            return None

        sentiment_score = score_sentiment(headlines)
        event_score = detect_events(headlines)

        try:
            raw_momentum = self.momentum.fetch_momentum(ticker)
        except DataUnavailable as exc:
            logger.error(f"WeeklyPipeline: skipping {ticker} — momentum unavailable: {exc}")
            return None
        except Exception as exc:
            logger.error(f"WeeklyPipeline: skipping {ticker} — momentum fetch raised: {exc}", exc_info=True)
            return None

        if math.isnan(raw_momentum):
            logger.error(f"WeeklyPipeline: skipping {ticker} — momentum source returned NaN")
            return None

        momentum = clamp_momentum(raw_momentum)
        if momentum != raw_momentum:
            logger.warning(
                f"WeeklyPipeline: momentum for {ticker} out of range "
                f"({raw_momentum}) — clamped to {momentum}"
            )

        score = aggregate(sentiment_score, event_score, momentum)
        logger.info(
            f"WeeklyPipeline: {ticker} sentiment={sentiment_score:+.3f} "
            f"events={event_score:+.2f} momentum={momentum:+.3f} → {score:+.4f}"
        )
        return ScoredTicker(
            ticker=ticker,
            score=score,
            rationale=Rationale(
                headlines=list(headlines),
                sentiment_score=sentiment_score,
                event_score=event_score,
                momentum=momentum,
            ),
        )

    # ── internal ──────────────────────────────────────────────────────────────

    def _write_csv(self, week_start: date, week_end: date, ranked: List[RankedTicker]) -> None:
        """Write the ranked picks to output/picks_<week_end>.csv."""
        os.makedirs(self.output_dir, exist_ok=True)
        path = os.path.join(self.output_dir, f"picks_{week_end.isoformat()}.csv")
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=_CSV_HEADER)
            writer.writeheader()
            for entry in ranked:
                writer.writerow({
                    "Week_Start": week_start.isoformat(),
                    "Week_End": week_end.isoformat(),
                    "Rank": entry.rank,
                    "Ticker": entry.ticker,
                    "Score": entry.score,
                    "Sentiment_Score": entry.rationale.sentiment_score,
                    "Event_Score": entry.rationale.event_score,
                    "Momentum": entry.rationale.momentum,
                    "Headline_Count": len(entry.rationale.headlines),
                })
        logger.info(f"WeeklyPipeline: wrote {len(ranked)} picks → {path}")


def run_weekly_job(now: Optional[datetime] = None, config: Optional[Dict[str, Any]] = None) -> RunResult:
    """Load config (unless given), build the pipeline and run it once."""
    if config is None:
        config = load_config()
    return WeeklyPipeline(config).run(now)
