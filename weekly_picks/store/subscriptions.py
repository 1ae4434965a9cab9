"""Subscription store — one row per user, mirrored from the payment provider.

The entitlement gate only reads from here. Rows are created when a user
starts checkout and updated from payment-provider webhook events whose
signatures have already been verified upstream.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from weekly_picks.core.logger import logger
from weekly_picks.models.datatypes import SubscriptionRecord
from weekly_picks.store.db import Database

EVENT_CREATED = "customer.subscription.created"
EVENT_UPDATED = "customer.subscription.updated"
EVENT_DELETED = "customer.subscription.deleted"


class SubscriptionStore:
    """SQLite-backed :class:`SubscriptionRecord` store."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def get(self, user_id: int) -> Optional[SubscriptionRecord]:
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT user_id, external_customer_id, status, current_period_end "
                "FROM subscriptions WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        if not row:
            return None
        period_end = row["current_period_end"]
        return SubscriptionRecord(
            user_id=row["user_id"],
            external_customer_id=row["external_customer_id"],
            status=row["status"],
            current_period_end=datetime.fromisoformat(period_end) if period_end else None,
        )

    def create_pending(self, user_id: int, external_customer_id: str) -> SubscriptionRecord:
        """Register a customer id for ``user_id`` ahead of checkout.

        An existing row for the user is left as is and returned.
        """
        existing = self.get(user_id)
        if existing:
            return existing
        with self.db.transaction() as conn:
            conn.execute(
                "INSERT INTO subscriptions (user_id, external_customer_id, status) "
                "VALUES (?, ?, 'pending')",
                (user_id, external_customer_id),
            )
        logger.info(f"SubscriptionStore: user {user_id} → customer {external_customer_id} (pending)")
        return SubscriptionRecord(
            user_id=user_id,
            external_customer_id=external_customer_id,
            status="pending",
        )

    def apply_webhook_event(self, event: Dict[str, Any]) -> bool:
        """Apply a verified payment-provider subscription event.

        Args:
            event: ``{"type": ..., "data": {"object": {"customer": ...,
                "status": ..., "current_period_end": <epoch seconds>}}}``.

        Returns:
            True if a subscription row was updated.
        """
        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}
        customer_id = obj.get("customer")

        if event_type not in (EVENT_CREATED, EVENT_UPDATED, EVENT_DELETED) or not customer_id:
            logger.debug(f"SubscriptionStore: ignoring event type={event_type!r}")
            return False

        status = obj.get("status")
        if event_type != EVENT_DELETED and (not isinstance(status, str) or not status):
            logger.warning(
                f"SubscriptionStore: ignoring {event_type} for customer {customer_id} without a status"
            )
            return False

        with self.db.transaction() as conn:
            if event_type == EVENT_DELETED:
                cur = conn.execute(
                    "UPDATE subscriptions SET status = 'canceled' WHERE external_customer_id = ?",
                    (customer_id,),
                )
            else:
                period_end = obj.get("current_period_end")
                period_end_iso = (
                    datetime.fromtimestamp(int(period_end), tz=timezone.utc).isoformat()
                    if period_end is not None else None
                )
                cur = conn.execute(
                    "UPDATE subscriptions SET status = ?, current_period_end = ? "
                    "WHERE external_customer_id = ?",
                    (status, period_end_iso, customer_id),
                )
            updated = cur.rowcount > 0

        if updated:
            logger.info(f"SubscriptionStore: {event_type} applied for customer {customer_id}")
        else:
            logger.warning(f"SubscriptionStore: {event_type} for unknown customer {customer_id}")
        return updated
