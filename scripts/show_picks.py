"""
Query the current picks the way the API layer would, and print the JSON.

Run with:
    python scripts/show_picks.py --user-id 42
    python scripts/show_picks.py --user-id 42 --grant-days 30   # local testing only

``--grant-days`` registers an active subscription for the user through the
same webhook-event path the payment provider uses, so the unlocked response
can be inspected without a real checkout.
"""

import argparse
import json
import sys
from datetime import datetime, timedelta, timezone
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

from weekly_picks.access.picks import get_current_picks, resolve_user_id  # noqa: E402
from weekly_picks.core.config import load_config  # noqa: E402
from weekly_picks.core.errors import Unauthorized  # noqa: E402
from weekly_picks.models.datatypes import SubscriptionRecord  # noqa: E402
from weekly_picks.store.db import Database  # noqa: E402
from weekly_picks.store.subscriptions import EVENT_UPDATED, SubscriptionStore  # noqa: E402
from weekly_picks.store.weeks import WeekStore  # noqa: E402


def grant_local_subscription(
    subscriptions: SubscriptionStore,
    user_id: int,
    days: int,
    now: Optional[datetime] = None,
) -> SubscriptionRecord:
    """Activate ``user_id`` for ``days`` through the webhook-event path.

    A user who already has a row keeps its customer id; the event is sent to
    that id so it lands on the existing row.
    """
    record = subscriptions.create_pending(user_id, f"local_{user_id}")
    period_end = (now or datetime.now(timezone.utc)) + timedelta(days=days)
    subscriptions.apply_webhook_event({
        "type": EVENT_UPDATED,
        "data": {"object": {
            "customer": record.external_customer_id,
            "status": "active",
            "current_period_end": int(period_end.timestamp()),
        }},
    })
    return subscriptions.get(user_id)


def main() -> int:
    parser = argparse.ArgumentParser(description="Show the current weekly picks for a user.")
    parser.add_argument("--user-id", default=None, help="Value of the X-User-Id header")
    parser.add_argument("--config", default=None)
    parser.add_argument("--grant-days", type=int, default=0)
    args = parser.parse_args()

    config = load_config(args.config)
    db = Database(config["database"]["path"])
    weeks, subscriptions = WeekStore(db), SubscriptionStore(db)

    user_id = resolve_user_id(args.user_id)
    if user_id is not None and args.grant_days > 0:
        grant_local_subscription(subscriptions, user_id, args.grant_days)

    try:
        response = get_current_picks(user_id, weeks, subscriptions)
    except Unauthorized:
        print("401 Unauthorized", file=sys.stderr)
        return 1

    print(json.dumps(response, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
