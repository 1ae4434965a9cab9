"""SQLite connection handling and schema for weeks, picks and subscriptions."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from weekly_picks.core.errors import PersistenceFailure
from weekly_picks.core.logger import logger

SCHEMA = """
CREATE TABLE IF NOT EXISTS weeks (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    week_start  TEXT NOT NULL,
    week_end    TEXT NOT NULL,
    created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (week_start, week_end)
);

CREATE TABLE IF NOT EXISTS picks (
    week_id    INTEGER NOT NULL REFERENCES weeks (id),
    ticker     TEXT NOT NULL,
    score      REAL NOT NULL,
    rank       INTEGER NOT NULL CHECK (rank >= 1),
    rationale  TEXT NOT NULL CHECK (json_valid(rationale)),
    PRIMARY KEY (week_id, rank)
);

CREATE TABLE IF NOT EXISTS subscriptions (
    user_id               INTEGER PRIMARY KEY,
    external_customer_id  TEXT NOT NULL UNIQUE,
    status                TEXT NOT NULL DEFAULT 'pending',
    current_period_end    TEXT
);
"""


class Database:
    """Thin wrapper that opens one connection per unit of work.

    Args:
        db_path: Path to the SQLite database file. Parent directories are
            created on first use.
    """

    def __init__(self, db_path: str = "output/weekly_picks.db") -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_db(self) -> None:
        with self.transaction() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection; commit on success, roll back on any error.

        ``sqlite3.Error`` is re-raised as :class:`PersistenceFailure`.
        """
        try:
            conn = self._get_connection()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"cannot open {self.db_path}: {exc}") from exc

        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error(f"Database: rolled back transaction on {self.db_path}: {exc}")
            raise PersistenceFailure(str(exc)) from exc
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()
