"""Data structures for the weekly picks pipeline."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Headline:
    """
    A normalized news headline fetched from any news provider.
    """
    title: str
    source: str
    url: str
    published_at: str  # ISO 8601 timestamp

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "source": self.source,
            "url": self.url,
            "published_at": self.published_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Headline":
        return cls(
            title=data.get("title") or "",
            source=data.get("source") or "",
            url=data.get("url") or "",
            published_at=data.get("published_at") or "",
        )


@dataclass(frozen=True)
class Week:
    """
    One processed 7-day window. ``week_end`` is the last fully elapsed day
    before the run; ``week_start`` is six days earlier.
    """
    id: int
    week_start: date
    week_end: date


@dataclass(frozen=True)
class Rationale:
    """The raw inputs that produced a pick's score."""
    headlines: List[Headline]
    sentiment_score: float
    event_score: float
    momentum: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headlines": [h.to_dict() for h in self.headlines],
            "sentiment_score": self.sentiment_score,
            "event_score": self.event_score,
            "momentum": self.momentum,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rationale":
        return cls(
            headlines=[Headline.from_dict(h) for h in data.get("headlines", [])],
            sentiment_score=float(data["sentiment_score"]),
            event_score=float(data["event_score"]),
            momentum=float(data["momentum"]),
        )


@dataclass(frozen=True)
class ScoredTicker:
    ticker: str
    score: float
    rationale: Rationale


@dataclass(frozen=True)
class RankedTicker:
    ticker: str
    score: float
    rank: int
    rationale: Rationale


@dataclass(frozen=True)
class Pick:
    """A persisted ranked pick belonging to one Week."""
    week_id: int
    ticker: str
    score: float
    rank: int
    rationale: Rationale

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticker": self.ticker,
            "score": self.score,
            "rank": self.rank,
            "rationale": self.rationale.to_dict(),
        }


@dataclass
class SubscriptionRecord:
    """
    Subscription state for one user as last reported by the payment provider.
    """
    user_id: int
    external_customer_id: str
    status: str
    current_period_end: Optional[datetime] = None


@dataclass
class RunResult:
    """Outcome of one weekly pipeline run.

    ``created`` is False when the window had already been processed and the
    run was a no-op. ``week`` is None when no ticker could be scored and
    nothing was stored.
    """
    week: Optional[Week]
    picks: List[RankedTicker] = field(default_factory=list)
    created: bool = False
