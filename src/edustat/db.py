"""SQLite persistence for last computed streak results."""

import sqlite3
from datetime import datetime, timedelta
from pathlib import Path

from edustat.streaks import StreakResult

DEFAULT_DB_PATH = Path.home() / ".edustat" / "data.db"


class Database:
    """SQLite database manager with WAL mode."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.init_db()

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS streak_snapshots (
                subject TEXT NOT NULL,
                platform TEXT NOT NULL,
                current_streak INTEGER DEFAULT 0,
                longest_streak INTEGER DEFAULT 0,
                total_activity INTEGER DEFAULT 0,
                reference_date TEXT,
                computed_at TEXT NOT NULL,
                error TEXT,
                PRIMARY KEY (subject, platform)
            );
        """)
        self.conn.commit()

    def save_snapshot(
        self,
        subject: str,
        platform: str,
        result: StreakResult,
        computed_at: str,
        reference_date: str | None = None,
        error: str | None = None,
    ) -> None:
        """Store the latest streak result for a subject (upsert)."""
        self.conn.execute(
            "INSERT INTO streak_snapshots "
            "(subject, platform, current_streak, longest_streak, total_activity, "
            "reference_date, computed_at, error) VALUES (?, ?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(subject, platform) DO UPDATE SET "
            "current_streak = excluded.current_streak, "
            "longest_streak = excluded.longest_streak, "
            "total_activity = excluded.total_activity, "
            "reference_date = excluded.reference_date, "
            "computed_at = excluded.computed_at, "
            "error = excluded.error",
            (
                subject,
                platform,
                result.current_streak,
                result.longest_streak,
                result.total_activity,
                reference_date,
                computed_at,
                error,
            ),
        )
        self.conn.commit()

    def get_snapshot(self, subject: str, platform: str) -> dict | None:
        """Get the stored snapshot for one subject and platform."""
        row = self.conn.execute(
            "SELECT * FROM streak_snapshots WHERE subject = ? AND platform = ?",
            (subject, platform),
        ).fetchone()
        return dict(row) if row else None

    def get_all_snapshots(self) -> list[dict]:
        """Return all snapshots ordered by subject, then platform."""
        rows = self.conn.execute(
            "SELECT * FROM streak_snapshots ORDER BY subject, platform"
        ).fetchall()
        return [dict(row) for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()


def snapshot_result(snapshot: dict) -> StreakResult:
    """Rebuild a StreakResult from a stored row."""
    return StreakResult(
        current_streak=snapshot.get("current_streak", 0),
        longest_streak=snapshot.get("longest_streak", 0),
        total_activity=snapshot.get("total_activity", 0),
    )


def is_stale(snapshot: dict | None, now: datetime, max_age_hours: float) -> bool:
    """True if there is no snapshot or it was computed more than max_age_hours before now."""
    if snapshot is None:
        return True
    try:
        computed_at = datetime.fromisoformat(snapshot["computed_at"])
    except (KeyError, TypeError, ValueError):
        return True
    if (computed_at.tzinfo is None) != (now.tzinfo is None):
        return True
    return now - computed_at > timedelta(hours=max_age_hours)
