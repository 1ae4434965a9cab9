"""Entitlement gate: may this subscription see the current picks?"""

from datetime import datetime, timezone
from typing import Optional

from weekly_picks.models.datatypes import SubscriptionRecord

ENTITLED_STATUSES = frozenset({"active", "trialing"})


def as_utc(moment: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def is_entitled(subscription: Optional[SubscriptionRecord], now: datetime) -> bool:
    """True iff the subscription is active/trialing and its period ends after ``now``.

    A period ending exactly at ``now`` has lapsed.
    """
    if subscription is None:
        return False
    if subscription.status not in ENTITLED_STATUSES:
        return False
    if subscription.current_period_end is None:
        return False
    return as_utc(subscription.current_period_end) > as_utc(now)
