"""Week Store — persists processed windows and their ranked picks.

A window ``(week_start, week_end)`` is stored at most once. Re-creating an
existing window is a no-op, so overlapping or repeated pipeline runs cannot
produce duplicate weeks. :meth:`WeekStore.save_week` writes the week and its
picks in one transaction; :meth:`create_week` and :meth:`append_picks` are
the same two steps exposed separately.
"""

import json
import sqlite3
from datetime import date
from typing import List, Optional, Sequence

from weekly_picks.core.errors import PersistenceFailure
from weekly_picks.core.logger import logger
from weekly_picks.models.datatypes import Pick, RankedTicker, Rationale, Week
from weekly_picks.store.db import Database

_INSERT_WEEK = "INSERT INTO weeks (week_start, week_end) VALUES (?, ?)"
_INSERT_PICK = (
    "INSERT INTO picks (week_id, ticker, score, rank, rationale) VALUES (?, ?, ?, ?, ?)"
)


class WeekStore:
    """SQLite-backed store for :class:`Week` and :class:`Pick` rows."""

    def __init__(self, db: Database) -> None:
        self.db = db

    # ── writes ────────────────────────────────────────────────────────────────

    def create_week(self, week_start: date, week_end: date) -> Week:
        """Insert a week, or return the existing one for the same window."""
        with self.db.transaction() as conn:
            try:
                cur = conn.execute(_INSERT_WEEK, (week_start.isoformat(), week_end.isoformat()))
            except sqlite3.IntegrityError:
                logger.info(f"WeekStore: window {week_start}..{week_end} already exists")
                return self._find_week(conn, week_start, week_end)
            week = Week(id=cur.lastrowid, week_start=week_start, week_end=week_end)
        logger.info(f"WeekStore: created week {week.id} ({week_start}..{week_end})")
        return week

    def append_picks(self, week_id: int, ranked: Sequence[RankedTicker]) -> None:
        """Insert one pick row per ranked entry, keeping its rank.

        Raises:
            PersistenceFailure: ``week_id`` does not exist or a rank is
                already taken for that week.
        """
        with self.db.transaction() as conn:
            self._insert_picks(conn, week_id, ranked)
        logger.info(f"WeekStore: stored {len(ranked)} picks for week {week_id}")

    def save_week(
        self,
        week_start: date,
        week_end: date,
        ranked: Sequence[RankedTicker],
    ) -> Optional[Week]:
        """Create the week and its picks atomically.

        Returns:
            The new :class:`Week`, or ``None`` if the window was already
            stored (nothing is written in that case).
        """
        with self.db.transaction() as conn:
            try:
                cur = conn.execute(_INSERT_WEEK, (week_start.isoformat(), week_end.isoformat()))
            except sqlite3.IntegrityError:
                logger.warning(
                    f"WeekStore: window {week_start}..{week_end} already stored — skipping"
                )
                return None
            week = Week(id=cur.lastrowid, week_start=week_start, week_end=week_end)
            self._insert_picks(conn, week.id, ranked)

        logger.info(
            f"WeekStore: saved week {week.id} ({week_start}..{week_end}) "
            f"with {len(ranked)} picks"
        )
        return week

    # ── reads ─────────────────────────────────────────────────────────────────

    def find_week(self, week_start: date, week_end: date) -> Optional[Week]:
        with self.db.transaction() as conn:
            return self._find_week(conn, week_start, week_end)

    def latest_week(self) -> Optional[Week]:
        """Most recently created week (highest id), or ``None``."""
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT id, week_start, week_end FROM weeks ORDER BY id DESC LIMIT 1"
            ).fetchone()
        return _row_to_week(row) if row else None

    def picks_for_week(self, week_id: int) -> List[Pick]:
        """All picks of ``week_id`` ordered by rank ascending."""
        with self.db.transaction() as conn:
            rows = conn.execute(
                "SELECT week_id, ticker, score, rank, rationale FROM picks "
                "WHERE week_id = ? ORDER BY rank ASC",
                (week_id,),
            ).fetchall()

        picks = []
        for row in rows:
            try:
                rationale = Rationale.from_dict(json.loads(row["rationale"]))
            except (ValueError, KeyError, TypeError) as exc:
                raise PersistenceFailure(
                    f"corrupt rationale for week {week_id} rank {row['rank']}: {exc}"
                ) from exc
            picks.append(Pick(
                week_id=row["week_id"],
                ticker=row["ticker"],
                score=row["score"],
                rank=row["rank"],
                rationale=rationale,
            ))
        return picks

    def count_picks(self, week_id: int) -> int:
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM picks WHERE week_id = ?", (week_id,)
            ).fetchone()
        return int(row[0])

    # ── internal ──────────────────────────────────────────────────────────────

    @staticmethod
    def _insert_picks(
        conn: sqlite3.Connection,
        week_id: int,
        ranked: Sequence[RankedTicker],
    ) -> None:
        conn.executemany(
            _INSERT_PICK,
            [
                (
                    week_id,
                    entry.ticker,
                    entry.score,
                    entry.rank,
                    json.dumps(entry.rationale.to_dict()),
                )
                for entry in ranked
            ],
        )

    @staticmethod
    def _find_week(
        conn: sqlite3.Connection,
        week_start: date,
        week_end: date,
    ) -> Optional[Week]:
        row = conn.execute(
            "SELECT id, week_start, week_end FROM weeks WHERE week_start = ? AND week_end = ?",
            (week_start.isoformat(), week_end.isoformat()),
        ).fetchone()
        return _row_to_week(row) if row else None


def _row_to_week(row: sqlite3.Row) -> Week:
    return Week(
        id=row["id"],
        week_start=date.fromisoformat(row["week_start"]),
        week_end=date.fromisoformat(row["week_end"]),
    )
