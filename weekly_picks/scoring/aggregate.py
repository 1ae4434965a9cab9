"""Composite score: fixed-weight blend of sentiment, events and momentum."""

import math

SENTIMENT_WEIGHT = 0.5
EVENT_WEIGHT = 0.3
MOMENTUM_WEIGHT = 0.2

MOMENTUM_MIN = -1.0
MOMENTUM_MAX = 1.0


def clamp_momentum(momentum: float) -> float:
    """Clip momentum into ``[-1, 1]``.

    Raises:
        ValueError: ``momentum`` is NaN, which has no place in the range.
    """
    value = float(momentum)
    if math.isnan(value):
        raise ValueError("momentum is NaN")
    return max(MOMENTUM_MIN, min(MOMENTUM_MAX, value))


def aggregate(sentiment: float, event: float, momentum: float) -> float:
    """
    Combine the three per-ticker signals into one score.

    Momentum is clamped to ``[-1, 1]`` before weighting so that an
    unnormalised source cannot dominate the blend.

    Args:
        sentiment (float): Averaged keyword sentiment.
        event (float): Summed event impact.
        momentum (float): Normalised price momentum.

    Returns:
        float: ``0.5 * sentiment + 0.3 * event + 0.2 * momentum``.
    """
    return (
        SENTIMENT_WEIGHT * sentiment
        + EVENT_WEIGHT * event
        + MOMENTUM_WEIGHT * clamp_momentum(momentum)
    )
