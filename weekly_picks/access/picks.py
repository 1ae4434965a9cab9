"""Query path for the current week's picks.

Response shape (the same keys in every case)::

    {"locked": bool, "week": {"start": "YYYY-MM-DD", "end": "YYYY-MM-DD"} | None,
     "picks": [{"ticker", "score", "rank", "rationale"}, ...]}

A latest week without picks is reported exactly like "no week yet", and a
locked response discloses nothing beyond the lock flag.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from weekly_picks.access.entitlement import is_entitled
from weekly_picks.core.errors import Unauthorized
from weekly_picks.core.logger import logger
from weekly_picks.store.subscriptions import SubscriptionStore
from weekly_picks.store.weeks import WeekStore


def resolve_user_id(header_value: Optional[str]) -> Optional[int]:
    """Parse an ``X-User-Id`` header value into a positive user id.

    Stand-in for real authentication; returns ``None`` for anything that is
    not a positive integer.
    """
    if header_value is None:
        return None
    try:
        user_id = int(str(header_value).strip())
    except ValueError:
        return None
    return user_id if user_id > 0 else None


def get_current_picks(
    user_id: Optional[int],
    weeks: WeekStore,
    subscriptions: SubscriptionStore,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Return the latest week's picks if ``user_id`` is entitled to them.

    Raises:
        Unauthorized: ``user_id`` is ``None``.
    """
    if user_id is None:
        raise Unauthorized("no user identity on picks request")

    now = now or datetime.now(timezone.utc)

    week = weeks.latest_week()
    if week is None or weeks.count_picks(week.id) == 0:
        logger.info(f"get_current_picks: no picks published yet (user={user_id})")
        return _response(locked=False)

    if not is_entitled(subscriptions.get(user_id), now):
        logger.info(f"get_current_picks: locked for user={user_id}")
        return _response(locked=True)

    picks = weeks.picks_for_week(week.id)
    logger.info(
        f"get_current_picks: user={user_id} week={week.id} → {len(picks)} picks"
    )
    return _response(
        locked=False,
        week={"start": week.week_start.isoformat(), "end": week.week_end.isoformat()},
        picks=[p.to_dict() for p in picks],
    )


def _response(locked: bool, week: Optional[Dict[str, str]] = None, picks=None) -> Dict[str, Any]:
    return {"locked": locked, "week": week, "picks": picks or []}
