"""Rule-based corporate event detection.

Rules are evaluated independently against every headline and all matching
rules fire. The result is summed, not averaged: a week with more earnings
beats scores higher than a week with one.
"""

from typing import Callable, Sequence, Tuple

from weekly_picks.models.datatypes import Headline

EventRule = Tuple[str, Callable[[str], bool], float]


def _all(*words: str) -> Callable[[str], bool]:
    return lambda text: all(w in text for w in words)


def _any(*words: str) -> Callable[[str], bool]:
    return lambda text: any(w in text for w in words)


EVENT_RULES: Tuple[EventRule, ...] = (
    ("earnings_beat", _all("earnings", "beat"), 2.0),
    ("earnings_miss", _all("earnings", "miss"), -2.0),
    ("upgrade", _any("upgrade"), 1.5),
    ("downgrade", _any("downgrade"), -1.5),
    ("m_and_a", _any("acquisition", "merger"), 1.0),
    ("legal_regulatory", _any("lawsuit", "probe", "regulatory"), -2.0),
)


def headline_events(title: str) -> float:
    """Sum of every rule weight that matches ``title``."""
    text = (title or "").lower()
    return sum(weight for _, matches, weight in EVENT_RULES if matches(text))


def detect_events(headlines: Sequence[Headline]) -> float:
    """Total event impact across ``headlines``; ``0.0`` for no headlines."""
    return float(sum(headline_events(h.title) for h in headlines))
