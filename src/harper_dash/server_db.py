"""
server_db.py: Database layer for run persistence and leaderboard queries.
"""

import logging
import sqlite3
import time
from typing import Callable, List, Optional

from .constants import (
    CUMULATIVE_LIMIT, DB_FILE, MAX_QUERY_LIMIT, MAX_STORED_INT, PLAYER_RUNS_LIMIT, TOP_RUNS_LIMIT
)
from .data_models import GameRun, PlayerStats
from .errors import ValidationError

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def parse_limit(value, default: int) -> int:
    """
    Any missing, non-numeric or non-positive limit falls back to the default.
    Oversized limits are capped at MAX_QUERY_LIMIT.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        limit = int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if limit <= 0:
        return default
    return min(limit, MAX_QUERY_LIMIT)


def _require_count(name: str, value) -> int:
    if value is None:
        raise ValidationError(f"Missing required field: {name}")
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    if value < 0:
        raise ValidationError(f"{name} must not be negative")
    if value > MAX_STORED_INT:
        raise ValidationError(f"{name} is too large")
    return value


class Database:
    """Handles all interaction with the SQLite database."""
    def __init__(self, db_file: str = DB_FILE, clock: Callable[[], int] = _now_ms):
        # check_same_thread=False is essential for multi-threading access
        self.conn = sqlite3.connect(db_file, check_same_thread=False)
        self.cur = self.conn.cursor()
        self.clock = clock
        self.setup()

    def setup(self):
        """Creates tables if they don't exist."""
        self.cur.execute("""
            CREATE TABLE IF NOT EXISTS GameRuns (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                player_name TEXT NOT NULL,
                score INTEGER NOT NULL,
                duration_seconds INTEGER NOT NULL,
                created_at INTEGER NOT NULL
            )
        """)
        self.cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_runs_player ON GameRuns(player_name, created_at)")
        self.conn.commit()

    def close(self):
        self.conn.close()

    def submit_run(self, player_name: Optional[str], score, duration_seconds) -> GameRun:
        """Validates and stores one finished run. Raises ValidationError on bad input."""
        if not isinstance(player_name, str) or not player_name.strip():
            raise ValidationError("Missing required field: player_name")
        player_name = player_name.strip()
        score = _require_count("score", score)
        duration_seconds = _require_count("duration_seconds", duration_seconds)

        created_at = self.clock()
        self.cur.execute(
            "INSERT INTO GameRuns (player_name, score, duration_seconds, created_at) VALUES (?, ?, ?, ?)",
            (player_name, score, duration_seconds, created_at))
        self.conn.commit()
        run = GameRun(self.cur.lastrowid, player_name, score, duration_seconds, created_at)
        logger.info("Stored run #%d: %s scored %d", run.id, player_name, score)
        return run

    def top_runs(self, limit=TOP_RUNS_LIMIT) -> List[GameRun]:
        """Best individual runs, highest score first."""
        self.cur.execute("""
            SELECT id, player_name, score, duration_seconds, created_at
            FROM GameRuns
            ORDER BY score DESC, id ASC
            LIMIT ?
        """, (parse_limit(limit, TOP_RUNS_LIMIT),))
        return [GameRun(*row) for row in self.cur.fetchall()]

    def cumulative_leaderboard(self, limit=CUMULATIVE_LIMIT) -> List[PlayerStats]:
        """Per-player totals, ranked by total score. Ties keep first-appearance order."""
        self.cur.execute("""
            SELECT player_name, MAX(score), SUM(score), COUNT(*), MAX(created_at)
            FROM GameRuns
            GROUP BY player_name
            ORDER BY SUM(score) DESC, MIN(id) ASC
            LIMIT ?
        """, (parse_limit(limit, CUMULATIVE_LIMIT),))
        return [PlayerStats(*row) for row in self.cur.fetchall()]

    def player_runs(self, player_name: Optional[str], limit=PLAYER_RUNS_LIMIT) -> List[GameRun]:
        """One player's run history, most recent first."""
        if not isinstance(player_name, str) or not player_name.strip():
            raise ValidationError("player_name required")
        self.cur.execute("""
            SELECT id, player_name, score, duration_seconds, created_at
            FROM GameRuns
            WHERE player_name = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        """, (player_name.strip(), parse_limit(limit, PLAYER_RUNS_LIMIT)))
        return [GameRun(*row) for row in self.cur.fetchall()]
