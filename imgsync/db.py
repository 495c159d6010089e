from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import closing
from datetime import datetime
from typing import Any

from .settings import settings

logger = logging.getLogger("imgsync")

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


def utc_now() -> str:
    return datetime.utcnow().strftime("%Y-%m-%dT%H:%M:%SZ")


def _resolve_db_path() -> str:
    """Return a file path usable by sqlite.

    If the configured path is an existing directory (a bind mount Docker
    created for a missing file, for instance) the DB file is placed inside it.
    """

    p = os.path.abspath(settings.db_path)

    if os.path.isdir(p):
        p = os.path.join(p, "imgsync.db")

    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)

    return p


def connect() -> sqlite3.Connection:
    conn = sqlite3.connect(_resolve_db_path(), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    """Create the events table if it does not exist."""
    with closing(connect()) as conn, conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS events (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              ts TEXT NOT NULL,
              level TEXT NOT NULL,
              service_name TEXT,
              revision TEXT,
              message TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
            """
        )


def log_event(level: str, message: str, service_name: str | None = None, revision: str | None = None) -> None:
    level = level.upper()
    logger.log(_LEVELS.get(level, logging.INFO), "%s%s", f"[{service_name}] " if service_name else "", message)
    try:
        with closing(connect()) as conn, conn:
            conn.execute(
                "INSERT INTO events (ts, level, service_name, revision, message) VALUES (?, ?, ?, ?, ?)",
                (utc_now(), level, service_name, revision, message),
            )
    except (sqlite3.Error, OSError) as e:
        # Best effort: the logger mirror above already has the event.
        logger.warning("Event not journalled (%s): %s", e, message)


def latest_events(limit: int = 100) -> list[dict[str, Any]]:
    with closing(connect()) as conn:
        rows = conn.execute("SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
        return [dict(r) for r in rows]
