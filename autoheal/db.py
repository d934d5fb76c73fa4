from __future__ import annotations

import logging
import os
import sqlite3
from datetime import datetime, timezone
from threading import Lock
from typing import Any

from .settings import settings

logger = logging.getLogger("autoheal")

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

_path_override: str | None = None
_initialized: set[str] = set()
_init_lock = Lock()


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def use_path(path: str | None) -> None:
    """Point the event log at another file (None restores settings.db_path)."""
    global _path_override
    _path_override = path


def _resolve_db_path() -> str:
    """Return a file path usable by sqlite.

    If the configured path is a directory (Docker creates one when a missing
    bind-mounted file is requested), the DB file is placed inside it.
    """
    p = os.path.abspath(_path_override or settings.db_path)

    if os.path.isdir(p):
        p = os.path.join(p, "autoheal.db")

    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)

    return p


def connect() -> sqlite3.Connection:
    path = _resolve_db_path()
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if path not in _initialized:
        with _init_lock:
            if path not in _initialized:
                _create_schema(conn)
                _initialized.add(path)
    return conn


def _create_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS events (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          ts TEXT NOT NULL,
          level TEXT NOT NULL,
          container_id TEXT,
          container_name TEXT,
          message TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
        CREATE INDEX IF NOT EXISTS idx_events_container ON events(container_id);
        """
    )


def init_db() -> None:
    """Create tables if they do not exist."""
    with connect() as conn:
        _create_schema(conn)


def log_event(
    level: str,
    message: str,
    container_id: str | None = None,
    container_name: str | None = None,
) -> None:
    level = level.upper()
    if container_name:
        logger.log(_LEVELS.get(level, logging.INFO), "%s (%s): %s", container_name, (container_id or "")[:12], message)
    else:
        logger.log(_LEVELS.get(level, logging.INFO), "%s", message)

    conn = connect()
    try:
        with conn:
            conn.execute(
                "INSERT INTO events (ts, level, container_id, container_name, message) VALUES (?, ?, ?, ?, ?)",
                (utc_now(), level, container_id, container_name, message),
            )
    finally:
        conn.close()


def latest_events(limit: int = 100, container_name: str | None = None) -> list[dict[str, Any]]:
    conn = connect()
    try:
        if container_name:
            rows = conn.execute(
                "SELECT * FROM events WHERE container_name=? ORDER BY id DESC LIMIT ?",
                (container_name, limit),
            ).fetchall()
        else:
            rows = conn.execute("SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
        return [dict(r) for r in rows]
    finally:
        conn.close()
