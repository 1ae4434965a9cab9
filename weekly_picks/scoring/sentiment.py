"""Keyword sentiment scoring over a ticker's weekly headlines.

Each headline scores +1 for every positive keyword and -1 for every negative
keyword found as a substring of its lower-cased title. The ticker's sentiment
is the mean of those per-headline values, so it does not grow with headline
volume.
"""

from typing import Sequence

from weekly_picks.models.datatypes import Headline

POSITIVE_WORDS = ("beat", "strong", "growth", "upgrade", "record", "surge", "bullish")
NEGATIVE_WORDS = ("miss", "weak", "downgrade", "lawsuit", "probe", "regulatory", "fraud")


def headline_sentiment(title: str) -> int:
    """Net keyword matches for a single title."""
    text = (title or "").lower()
    score = 0
    for word in POSITIVE_WORDS:
        if word in text:
            score += 1
    for word in NEGATIVE_WORDS:
        if word in text:
            score -= 1
    return score


def score_sentiment(headlines: Sequence[Headline]) -> float:
    """Average per-headline sentiment; ``0.0`` when there are no headlines."""
    if not headlines:
        return 0.0
    total = sum(headline_sentiment(h.title) for h in headlines)
    return total / len(headlines)
