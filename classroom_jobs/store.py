"""SQLite persistence for per-user state and saved roster defaults.

Every mutating request goes through ``_run_state_operation``: the caller's
state is loaded, the pure operation runs, and the result is written back
inside one ``BEGIN IMMEDIATE`` transaction, so two writers for the same
database are serialized by SQLite's lock. A failed write rolls back and
raises PersistenceError; nothing is returned as if it had been saved.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from pydantic import ValidationError

from .db import _get_connection, _utcnow_iso
from .exceptions import PersistenceError
from .models import AppState, UserDefaults
from .state import (
    _default_state,
    _deserialize_state,
    _serialize_state,
    _validate_state,
    reset_all,
)

logger = logging.getLogger(__name__)


@contextmanager
def _transaction(immediate: bool = False) -> Iterator[sqlite3.Connection]:
    conn: Optional[sqlite3.Connection] = None
    try:
        conn = _get_connection()
        if immediate:
            conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except sqlite3.Error as exc:
        if conn is not None:
            conn.rollback()
        logger.error("State database error: %s", exc)
        raise PersistenceError("Could not access the state database.") from exc
    except Exception:
        if conn is not None:
            conn.rollback()
        raise
    finally:
        if conn is not None:
            conn.close()


def _read_state(conn: sqlite3.Connection, user_id: str) -> Optional[AppState]:
    row = conn.execute("SELECT data FROM app_state WHERE id = ?", (user_id,)).fetchone()
    if not row:
        return None
    try:
        return _deserialize_state(json.loads(row["data"]))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.error("Stored state for user %s is unreadable: %s", user_id, exc)
        raise PersistenceError("Stored state is corrupt.") from exc


def _write_state(conn: sqlite3.Connection, state: AppState, user_id: str) -> None:
    conn.execute(
        "INSERT OR REPLACE INTO app_state (id, data, updated_at) VALUES (?, ?, ?)",
        (user_id, json.dumps(_serialize_state(state)), _utcnow_iso()),
    )


def _read_user_defaults(conn: sqlite3.Connection, user_id: str) -> UserDefaults:
    row = conn.execute(
        "SELECT students, job_titles FROM user_defaults WHERE id = ?", (user_id,)
    ).fetchone()
    if not row:
        return UserDefaults()
    try:
        return UserDefaults(
            students=json.loads(row["students"]),
            jobTitles=json.loads(row["job_titles"]),
        )
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.error("Stored defaults for user %s are unreadable: %s", user_id, exc)
        raise PersistenceError("Stored defaults are corrupt.") from exc


def _load_or_initialize(conn: sqlite3.Connection, user_id: str) -> tuple[AppState, bool]:
    state = _read_state(conn, user_id)
    if state is None:
        defaults = _read_user_defaults(conn, user_id)
        logger.info("Initializing state for user %s", user_id)
        return _default_state(defaults.students, defaults.jobTitles), True
    state, changed = _validate_state(state)
    if changed:
        logger.info("Reconciled stored state for user %s with its roster", user_id)
    return state, changed


def _load_state(user_id: str) -> AppState:
    with _transaction(immediate=True) as conn:
        state, dirty = _load_or_initialize(conn, user_id)
        if dirty:
            _write_state(conn, state, user_id)
    return state


def _save_state(state: AppState, user_id: str) -> None:
    with _transaction(immediate=True) as conn:
        _write_state(conn, state, user_id)


def _run_state_operation(
    user_id: str, operation: Callable[[AppState], AppState]
) -> AppState:
    with _transaction(immediate=True) as conn:
        state, _ = _load_or_initialize(conn, user_id)
        next_state = operation(state)
        _write_state(conn, next_state, user_id)
    return next_state


def _run_reset_all(
    user_id: str,
    students: Optional[List[int]] = None,
    job_titles: Optional[List[str]] = None,
) -> AppState:
    """Reset the caller's state, filling missing rosters from their saved defaults."""
    with _transaction(immediate=True) as conn:
        state, _ = _load_or_initialize(conn, user_id)
        if not students or not job_titles:
            defaults = _read_user_defaults(conn, user_id)
            students = students or defaults.students
            job_titles = job_titles or defaults.jobTitles
        next_state = reset_all(state, students, job_titles)
        _write_state(conn, next_state, user_id)
    return next_state


def _load_user_defaults(user_id: str) -> UserDefaults:
    with _transaction() as conn:
        return _read_user_defaults(conn, user_id)


def _save_user_defaults(
    user_id: str,
    students: Optional[List[int]] = None,
    job_titles: Optional[List[str]] = None,
) -> UserDefaults:
    """Overwrite the saved students and/or job titles; ``None`` keeps the stored value."""
    with _transaction(immediate=True) as conn:
        current = _read_user_defaults(conn, user_id)
        updated = UserDefaults(
            students=current.students if students is None else list(students),
            jobTitles=current.jobTitles if job_titles is None else list(job_titles),
        )
        conn.execute(
            """
            INSERT OR REPLACE INTO user_defaults (id, students, job_titles, updated_at)
            VALUES (?, ?, ?, ?)
            """,
            (
                user_id,
                json.dumps(updated.students),
                json.dumps(updated.jobTitles),
                _utcnow_iso(),
            ),
        )
    return updated
