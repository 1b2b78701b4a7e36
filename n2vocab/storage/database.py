"""SQLite database for review state storage."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Mapping

from n2vocab.core.errors import PersistenceError
from n2vocab.core.models import ReviewRecord, ReviewResult, ReviewState
from n2vocab.core.review_store import ReviewStateBackend


logger = logging.getLogger(__name__)


SCHEMA = """
    CREATE TABLE IF NOT EXISTS review_state (
        identity TEXT PRIMARY KEY,
        level INTEGER NOT NULL DEFAULT 0,
        due TEXT NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_review_state_due ON review_state(due);

    CREATE TABLE IF NOT EXISTS review_history (
        identity TEXT NOT NULL,
        seq INTEGER NOT NULL,
        date TEXT NOT NULL,
        result TEXT NOT NULL,
        PRIMARY KEY (identity, seq)
    );
"""


class SqliteBackend(ReviewStateBackend):
    """SQLite database holding review levels, due dates and history.

    Nothing touches the file until the first load or save, where the
    schema is created if missing.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)

    @contextmanager
    def _connection(self):
        """Context manager for database connections with the schema in place."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
        except (OSError, sqlite3.Error) as e:
            raise PersistenceError(f"Could not open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            conn.executescript(SCHEMA)
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"Database error: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def load(self) -> dict[str, ReviewState]:
        """Read all review state."""
        with self._connection() as conn:
            history: dict[str, list[ReviewRecord]] = {}
            rows = conn.execute(
                "SELECT identity, date, result FROM review_history ORDER BY identity, seq"
            ).fetchall()
            try:
                for row in rows:
                    history.setdefault(row["identity"], []).append(
                        ReviewRecord(
                            date=date.fromisoformat(row["date"]),
                            result=ReviewResult(row["result"]),
                        )
                    )

                return {
                    row["identity"]: ReviewState(
                        level=row["level"],
                        due=date.fromisoformat(row["due"]),
                        history=tuple(history.get(row["identity"], ())),
                    )
                    for row in conn.execute("SELECT * FROM review_state")
                }
            except ValueError as e:
                raise PersistenceError(f"Invalid review state in database: {e}") from e

    def save(self, states: Mapping[str, ReviewState]) -> None:
        """Replace all review state in one transaction."""
        with self._connection() as conn:
            conn.execute("DELETE FROM review_history")
            conn.execute("DELETE FROM review_state")
            conn.executemany(
                "INSERT INTO review_state (identity, level, due) VALUES (?, ?, ?)",
                [(key, s.level, s.due.isoformat()) for key, s in states.items()],
            )
            conn.executemany(
                "INSERT INTO review_history (identity, seq, date, result) VALUES (?, ?, ?, ?)",
                [
                    (key, seq, r.date.isoformat(), r.result.value)
                    for key, s in states.items()
                    for seq, r in enumerate(s.history)
                ],
            )
        logger.debug("Saved review state for %d words", len(states))
