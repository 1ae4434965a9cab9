"""SQLite response cache for headline providers.

Raw provider responses are stored per ``(provider, ticker, window, query)``
key so a re-run for the same window does not spend API credits again.
Entries older than ``ttl_hours`` read as misses; a window that is still open
when first fetched is re-fetched once the entry expires.
"""

import json
import sqlite3
import time
from pathlib import Path
from typing import Any, Optional

from weekly_picks.core.logger import logger


class SQLiteCache:
    """Key/value cache of JSON-serialisable values with a per-instance TTL.

    Args:
        db_path: SQLite file holding the ``api_cache`` table.
        ttl_hours: Age after which an entry is ignored. ``None`` keeps
            entries forever.
    """

    def __init__(self, db_path: str = "output/.cache.db", ttl_hours: Optional[float] = None) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.ttl_seconds = ttl_hours * 3600 if ttl_hours is not None else None
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, check_same_thread=False)

    def _init_db(self) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS api_cache (
                    cache_key  TEXT PRIMARY KEY,
                    payload    TEXT NOT NULL,
                    stored_at  REAL NOT NULL
                )
                """
            )

    def get(self, key: str) -> Optional[Any]:
        """Decoded value for ``key``; ``None`` when absent, expired or unreadable."""
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT payload, stored_at FROM api_cache WHERE cache_key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"SQLiteCache: read failed for {key}: {e}")
            return None

        if row is None:
            logger.debug(f"SQLiteCache: miss {key}")
            return None

        payload, stored_at = row
        if self.ttl_seconds is not None and time.time() - stored_at > self.ttl_seconds:
            logger.debug(f"SQLiteCache: expired {key}")
            return None

        try:
            return json.loads(payload)
        except json.JSONDecodeError as e:
            logger.error(f"SQLiteCache: corrupt payload for {key}: {e}")
            return None

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``; values that cannot be JSON-encoded are skipped."""
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.error(f"SQLiteCache: cannot encode value for {key}: {e}")
            return

        try:
            with self._get_connection() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO api_cache (cache_key, payload, stored_at) VALUES (?, ?, ?)",
                    (key, payload, time.time()),
                )
        except sqlite3.Error as e:
            logger.error(f"SQLiteCache: write failed for {key}: {e}")

    def purge_expired(self) -> int:
        """Delete entries past the TTL. Returns the number of rows removed."""
        if self.ttl_seconds is None:
            return 0
        cutoff = time.time() - self.ttl_seconds
        with self._get_connection() as conn:
            removed = conn.execute("DELETE FROM api_cache WHERE stored_at < ?", (cutoff,)).rowcount
        if removed:
            logger.info(f"SQLiteCache: purged {removed} expired entries")
        return removed
