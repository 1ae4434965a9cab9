"""Shared fixtures for the weekly picks test suite."""

import os
import tempfile
from datetime import date, datetime, timezone
from typing import Dict, List, Union

# keep the import-time log file out of the working tree
os.environ.setdefault(
    "WEEKLY_PICKS_LOG", os.path.join(tempfile.gettempdir(), "weekly_picks_tests.log")
)

import pytest  # noqa: E402

from weekly_picks.core.config import validate_config  # noqa: E402
from weekly_picks.core.errors import DataUnavailable  # noqa: E402
from weekly_picks.models.datatypes import Headline  # noqa: E402
from weekly_picks.providers.base import HeadlineSource, MomentumSource  # noqa: E402
from weekly_picks.store.db import Database  # noqa: E402
from weekly_picks.store.subscriptions import SubscriptionStore  # noqa: E402
from weekly_picks.store.weeks import WeekStore  # noqa: E402

# Sunday morning run → window Sun 2026-10-11 .. Sat 2026-10-17
RUN_AT = datetime(2026, 10, 18, 6, 0, tzinfo=timezone.utc)
WEEK_START = date(2026, 10, 11)
WEEK_END = date(2026, 10, 17)


def make_headline(title: str, published_at: str = "2026-10-14T12:00:00+00:00") -> Headline:
    return Headline(
        title=title,
        source="TestWire",
        url="https://example.com/news",
        published_at=published_at,
    )


class StubHeadlineSource(HeadlineSource):
    """Headlines keyed by ticker; an Exception value is raised instead."""

    def __init__(self, by_ticker: Dict[str, Union[List[Headline], Exception]]) -> None:
        self.by_ticker = by_ticker
        self.calls = []

    def fetch_headlines(self, ticker, window_start, window_end):
        self.calls.append((ticker, window_start, window_end))
        value = self.by_ticker.get(ticker, [])
        if isinstance(value, Exception):
            raise value
        return list(value)


class StubMomentumSource(MomentumSource):
    def __init__(self, by_ticker: Dict[str, Union[float, Exception]], default: float = 0.0) -> None:
        self.by_ticker = by_ticker
        self.default = default

    def fetch_momentum(self, ticker):
        value = self.by_ticker.get(ticker, self.default)
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def db(tmp_path):
    return Database(str(tmp_path / "weekly_picks.db"))


@pytest.fixture
def weeks(db):
    return WeekStore(db)


@pytest.fixture
def subscriptions(db):
    return SubscriptionStore(db)


@pytest.fixture
def config(tmp_path):
    """Offline config: mock providers, everything under tmp_path."""
    return validate_config({
        "universe": ["AAPL", "XOM"],
        "top_n": 5,
        "output_dir": str(tmp_path / "output"),
        "database": {"path": str(tmp_path / "weekly_picks.db")},
        "pipeline": {"max_workers": 1},
        "news": {"providers": ["mock"], "cache_path": str(tmp_path / "cache.db")},
        "market": {"provider": "mock"},
    })


@pytest.fixture
def unavailable():
    """Factory for DataUnavailable errors."""
    return lambda ticker: DataUnavailable(ticker, "provider down")
