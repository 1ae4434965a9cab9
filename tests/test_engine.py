"""Tests for the weekly ranking pipeline and its command-line entry point."""

import csv
from datetime import date, datetime, timezone

import pytest

import run_pipeline
from conftest import (
    RUN_AT, WEEK_END, WEEK_START, StubHeadlineSource, StubMomentumSource, make_headline,
)
from weekly_picks.core.errors import PersistenceFailure
from weekly_picks.pipeline.engine import WeeklyPipeline, run_weekly_job, week_window
from weekly_picks.pipeline.validator import validate_week
from weekly_picks.providers.universe import StaticUniverseProvider


def pipeline(config, weeks, headlines, momentum=None, universe=None) -> WeeklyPipeline:
    return WeeklyPipeline(
        config,
        weeks=weeks,
        universe=universe,
        headlines=headlines,
        momentum=momentum or StubMomentumSource({"AAPL": -0.4, "XOM": -0.6}),
    )


class TestWeekWindow:
    def test_window_ends_the_day_before(self):
        assert week_window(RUN_AT) == (WEEK_START, WEEK_END)

    def test_window_spans_seven_days(self):
        start, end = week_window(datetime(2026, 3, 2, 23, 59, tzinfo=timezone.utc))
        assert (start, end) == (date(2026, 2, 23), date(2026, 3, 1))
        assert (end - start).days == 6

    def test_naive_now_is_utc(self):
        assert week_window(RUN_AT.replace(tzinfo=None)) == (WEEK_START, WEEK_END)


class TestWeeklyPipeline:
    def test_end_to_end(self, config, weeks):
        headlines = StubHeadlineSource({"AAPL": [make_headline("Apple earnings beat expectations")]})
        result = pipeline(config, weeks, headlines).run(RUN_AT)

        assert result.created is True
        assert (result.week.week_start, result.week.week_end) == (WEEK_START, WEEK_END)
        assert [(p.ticker, p.rank) for p in result.picks] == [("AAPL", 1)]
        assert result.picks[0].score == pytest.approx(0.5 * 1 + 0.3 * 2 + 0.2 * -0.4)

        stored = weeks.picks_for_week(result.week.id)
        assert [p.ticker for p in stored] == ["AAPL"]
        rationale = stored[0].rationale
        assert (rationale.sentiment_score, rationale.event_score, rationale.momentum) == (1.0, 2.0, -0.4)
        assert rationale.headlines[0].title == "Apple earnings beat expectations"

        passed, _ = validate_week(weeks, result.week.id)
        assert passed

    def test_headlines_are_requested_for_the_window(self, config, weeks):
        headlines = StubHeadlineSource({})
        pipeline(config, weeks, headlines).run(RUN_AT)
        assert headlines.calls == [("AAPL", WEEK_START, WEEK_END), ("XOM", WEEK_START, WEEK_END)]

    def test_ranking_orders_by_score(self, config, weeks):
        headlines = StubHeadlineSource({
            "AAPL": [make_headline("Lawsuit filed over app store")],
            "XOM": [make_headline("Exxon earnings beat on record output")],
        })
        result = pipeline(config, weeks, headlines).run(RUN_AT)
        assert [p.ticker for p in result.picks] == ["XOM", "AAPL"]
        assert [p.rank for p in result.picks] == [1, 2]

    def test_top_n_limits_picks(self, config, weeks):
        config["top_n"] = 1
        headline = [make_headline("Strong quarter")]
        result = pipeline(config, weeks, StubHeadlineSource({"AAPL": headline, "XOM": headline})).run(RUN_AT)
        assert [p.ticker for p in result.picks] == ["AAPL"]

    def test_parallel_scoring_keeps_universe_order_for_ties(self, config, weeks):
        config["pipeline"]["max_workers"] = 4
        tickers = ["XOM", "AAPL", "MSFT", "NVDA", "JPM"]
        headline = [make_headline("Analyst upgrade")]
        result = pipeline(
            config, weeks,
            StubHeadlineSource({t: headline for t in tickers}),
            momentum=StubMomentumSource({}),
            universe=StaticUniverseProvider(tickers),
        ).run(RUN_AT)
        assert [p.ticker for p in result.picks] == ["XOM", "AAPL", "MSFT", "NVDA", "JPM"]
        assert len({p.score for p in result.picks}) == 1

    def test_unavailable_headlines_skip_ticker(self, config, weeks, unavailable):
        headlines = StubHeadlineSource({
            "AAPL": unavailable("AAPL"),
            "XOM": [make_headline("Exxon upgrade")],
        })
        result = pipeline(config, weeks, headlines).run(RUN_AT)
        assert [p.ticker for p in result.picks] == ["XOM"]

    def test_unexpected_headline_error_skips_ticker(self, config, weeks):
        headlines = StubHeadlineSource({
            "AAPL": RuntimeError("boom"),
            "XOM": [make_headline("Exxon upgrade")],
        })
        result = pipeline(config, weeks, headlines).run(RUN_AT)
        assert [p.ticker for p in result.picks] == ["XOM"]

    def test_unavailable_momentum_skips_ticker(self, config, weeks, unavailable):
        headline = [make_headline("Upgrade")]
        result = pipeline(
            config, weeks,
            StubHeadlineSource({"AAPL": headline, "XOM": headline}),
            momentum=StubMomentumSource({"AAPL": unavailable("AAPL"), "XOM": 0.2}),
        ).run(RUN_AT)
        assert [p.ticker for p in result.picks] == ["XOM"]

    def test_out_of_range_momentum_is_clamped(self, config, weeks):
        headline = [make_headline("Quiet week")]
        result = pipeline(
            config, weeks,
            StubHeadlineSource({"AAPL": headline, "XOM": headline}),
            momentum=StubMomentumSource({"AAPL": 3.5, "XOM": -2.0}),
        ).run(RUN_AT)
        by_ticker = {p.ticker: p for p in result.picks}
        assert by_ticker["AAPL"].rationale.momentum == 1.0
        assert by_ticker["AAPL"].score == pytest.approx(0.2)
        assert by_ticker["XOM"].rationale.momentum == -1.0
        assert validate_week(weeks, result.week.id)[0]

    def test_no_scored_tickers_stores_nothing(self, config, weeks):
        result = pipeline(config, weeks, StubHeadlineSource({})).run(RUN_AT)
        assert result.created is False
        assert result.week is None
        assert result.picks == []
        assert weeks.latest_week() is None

    def test_rerun_after_outage_publishes_the_window(self, config, weeks, unavailable):
        outage = StubHeadlineSource({"AAPL": unavailable("AAPL"), "XOM": unavailable("XOM")})
        first = pipeline(config, weeks, outage).run(RUN_AT)
        assert first.week is None

        recovered = StubHeadlineSource({"AAPL": [make_headline("Apple earnings beat expectations")]})
        second = pipeline(config, weeks, recovered).run(RUN_AT)
        assert second.created is True
        assert [p.ticker for p in second.picks] == ["AAPL"]
        assert (second.week.week_start, second.week.week_end) == (WEEK_START, WEEK_END)
        assert weeks.count_picks(second.week.id) == 1

    def test_pick_less_week_is_filled_by_the_next_run(self, config, weeks):
        empty = weeks.create_week(WEEK_START, WEEK_END)
        headlines = StubHeadlineSource({"AAPL": [make_headline("Apple upgrade")]})
        result = pipeline(config, weeks, headlines).run(RUN_AT)
        assert result.created is True
        assert result.week == empty
        assert [p.ticker for p in weeks.picks_for_week(empty.id)] == ["AAPL"]

    def test_nan_momentum_skips_ticker(self, config, weeks):
        headline = [make_headline("Quiet week")]
        result = pipeline(
            config, weeks,
            StubHeadlineSource({"AAPL": headline, "XOM": headline}),
            momentum=StubMomentumSource({"AAPL": float("nan"), "XOM": 0.5}),
        ).run(RUN_AT)
        assert [(p.ticker, p.rank, p.rationale.momentum) for p in result.picks] == [("XOM", 1, 0.5)]
        assert validate_week(weeks, result.week.id)[0]

    def test_rerun_for_same_window_is_a_noop(self, config, weeks):
        headlines = StubHeadlineSource({"AAPL": [make_headline("Apple upgrade")]})
        first = pipeline(config, weeks, headlines).run(RUN_AT)
        calls = len(headlines.calls)

        second = pipeline(config, weeks, headlines).run(RUN_AT.replace(hour=18))
        assert second.created is False
        assert second.week == first.week
        assert len(headlines.calls) == calls
        assert [p.ticker for p in weeks.picks_for_week(first.week.id)] == ["AAPL"]

    def test_next_week_creates_a_new_week(self, config, weeks):
        headlines = StubHeadlineSource({"AAPL": [make_headline("Apple upgrade")]})
        first = pipeline(config, weeks, headlines).run(RUN_AT)
        second = pipeline(config, weeks, headlines).run(datetime(2026, 10, 25, 6, 0, tzinfo=timezone.utc))
        assert second.created is True
        assert second.week.id != first.week.id
        assert weeks.latest_week() == second.week

    def test_persistence_failure_propagates(self, config, weeks, monkeypatch):
        def fail(*args, **kwargs):
            raise PersistenceFailure("disk full")

        monkeypatch.setattr(weeks, "save_week", fail)
        headlines = StubHeadlineSource({"AAPL": [make_headline("Apple upgrade")]})
        with pytest.raises(PersistenceFailure):
            pipeline(config, weeks, headlines).run(RUN_AT)
        assert weeks.latest_week() is None

    def test_writes_csv_export(self, config, weeks, tmp_path):
        headlines = StubHeadlineSource({
            "AAPL": [make_headline("Apple earnings beat expectations")],
            "XOM": [make_headline("Exxon downgrade")],
        })
        pipeline(config, weeks, headlines).run(RUN_AT)

        path = tmp_path / "output" / "picks_2026-10-17.csv"
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert [(r["Rank"], r["Ticker"]) for r in rows] == [("1", "AAPL"), ("2", "XOM")]
        assert rows[0]["Week_Start"] == "2026-10-11"
        assert rows[0]["Headline_Count"] == "1"


class TestRunWeeklyJob:
    def test_offline_run_with_mock_providers(self, config):
        result = run_weekly_job(now=RUN_AT, config=config)
        assert result.created is True
        # neutral mock headlines, so mock momentum alone orders the picks
        assert [p.ticker for p in result.picks] == ["AAPL", "XOM"]
        assert result.picks[0].score == pytest.approx(0.2 * -0.4)


class TestRunPipelineMain:
    @pytest.fixture
    def config_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "universe: [AAPL, XOM]\n"
            "top_n: 5\n"
            f"output_dir: {tmp_path / 'output'}\n"
            "database:\n"
            f"  path: {tmp_path / 'weekly_picks.db'}\n"
            "news:\n"
            "  providers: [mock]\n"
            f"  cache_path: {tmp_path / 'cache.db'}\n"
            "market:\n"
            "  provider: mock\n",
            encoding="utf-8",
        )
        return path

    def test_success_then_skip(self, config_file, capsys):
        argv = ["--config", str(config_file), "--now", "2026-10-18T06:00:00+00:00"]
        assert run_pipeline.main(argv) == 0
        assert "SUCCESS" in capsys.readouterr().out

        assert run_pipeline.main(argv) == 0
        assert "SKIPPED" in capsys.readouterr().out

    def test_nothing_scored_fails(self, config_file, monkeypatch, capsys):
        monkeypatch.setattr(
            "weekly_picks.providers.news.MockNewsProvider.fetch_headlines",
            lambda self, ticker, window_start, window_end: [],
        )
        argv = ["--config", str(config_file), "--now", "2026-10-18T06:00:00+00:00"]
        assert run_pipeline.main(argv) == 1
        assert "no ticker could be scored" in capsys.readouterr().err

    def test_missing_config_fails(self, tmp_path):
        assert run_pipeline.main(["--config", str(tmp_path / "absent.yaml")]) == 1

    def test_invalid_config_fails(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("top_n: 0\n", encoding="utf-8")
        assert run_pipeline.main(["--config", str(path)]) == 1
