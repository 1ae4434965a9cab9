"""Top-N ranking of scored tickers."""

from typing import List, Sequence, Union

from weekly_picks.models.datatypes import RankedTicker, ScoredTicker


def rank(
    entries: Sequence[Union[ScoredTicker, RankedTicker]],
    limit: int,
) -> List[RankedTicker]:
    """Order ``entries`` by score and keep the best ``limit``.

    The sort is stable, so equal scores keep their input order (the universe
    order when called from the pipeline). Ranks are assigned ``1..k`` in the
    resulting order. ``limit`` is validated by the caller.

    Args:
        entries: Scored entries in universe order.
        limit: Maximum number of entries to return.

    Returns:
        At most ``limit`` :class:`RankedTicker` objects, best first.
    """
    ordered = sorted(entries, key=lambda e: e.score, reverse=True)
    return [
        RankedTicker(
            ticker=entry.ticker,
            score=entry.score,
            rank=position,
            rationale=entry.rationale,
        )
        for position, entry in enumerate(ordered[:limit], start=1)
    ]
