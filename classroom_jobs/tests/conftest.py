"""Shared pytest fixtures for classroom_jobs tests."""

import random
from datetime import datetime
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from classroom_jobs import db
from classroom_jobs.main import app
from classroom_jobs.models import AppState

# -----------------------------------------------------------------------------
# Factory functions for test data creation
# -----------------------------------------------------------------------------


def make_app_state(
    students: Optional[List[int]] = None,
    job_titles: Optional[List[str]] = None,
    current_assignments: Optional[Dict[int, str]] = None,
    cycle_queue: Optional[List[int]] = None,
    history: Optional[Dict[int, List[str]]] = None,
    last_assignment_timestamp: Optional[datetime] = None,
) -> AppState:
    """
    Create an AppState for testing.

    Defaults to three students and two jobs with every student still owed a
    job in the current cycle.
    """
    if students is None:
        students = [1, 2, 3]
    if job_titles is None:
        job_titles = ["A", "B"]
    if cycle_queue is None:
        cycle_queue = list(students)
    return AppState(
        students=students,
        jobTitles=job_titles,
        currentAssignments=current_assignments or {},
        cycleQueue=cycle_queue,
        history=history or {},
        lastAssignmentTimestamp=last_assignment_timestamp,
    )


def seeded(seed: int = 1234) -> random.Random:
    return random.Random(seed)


# -----------------------------------------------------------------------------
# Pytest fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def temp_db(tmp_path, monkeypatch):
    """Point every test at its own SQLite file."""
    path = tmp_path / "classroom_jobs_test.db"
    monkeypatch.setattr(db, "DB_PATH", str(path))
    monkeypatch.setattr(db, "_SCHEMA_READY", False)
    return path


@pytest.fixture
def default_state() -> AppState:
    """Three students, two jobs, fresh cycle."""
    return make_app_state()


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    return TestClient(app)
