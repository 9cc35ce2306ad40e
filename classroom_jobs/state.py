import random
from typing import Any, Dict, Iterable, List, Optional, Sequence, TypeVar

from .constants import DEFAULT_JOB_TITLES, DEFAULT_STUDENTS
from .exceptions import (
    DuplicateRosterEntryError,
    InvariantViolation,
    RosterEditError,
    UnknownRosterEntryError,
)
from .models import AppState, UserStateExport

T = TypeVar("T")


def _resolve_rng(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else random.Random()


def _shuffled(items: Iterable[T], rng: random.Random) -> List[T]:
    result = list(items)
    rng.shuffle(result)
    return result


def _find_duplicates(values: Sequence[T]) -> List[T]:
    seen = set()
    duplicates: List[T] = []
    for value in values:
        if value in seen and value not in duplicates:
            duplicates.append(value)
        seen.add(value)
    return duplicates


def _validate_state(state: AppState) -> tuple[AppState, bool]:
    """Check roster invariants and reconcile references to the current roster.

    Duplicate students, duplicate job titles and blank job titles raise
    InvariantViolation. Cycle queue entries and current assignments that point
    at students no longer on the roster are dropped, as are repeated queue
    entries and a second student holding an already assigned job. Returns the
    reconciled state and whether anything was dropped; the input is never
    modified.
    """
    duplicate_students = _find_duplicates(state.students)
    if duplicate_students:
        raise InvariantViolation(f"Duplicate student ids: {duplicate_students}")
    if any(not title.strip() for title in state.jobTitles):
        raise InvariantViolation("Job titles must not be blank.")
    duplicate_titles = _find_duplicates(state.jobTitles)
    if duplicate_titles:
        raise InvariantViolation(f"Duplicate job titles: {duplicate_titles}")

    roster = set(state.students)

    cycle_queue: List[int] = []
    queued = set()
    for student_id in state.cycleQueue:
        if student_id not in roster or student_id in queued:
            continue
        queued.add(student_id)
        cycle_queue.append(student_id)

    assignments: Dict[int, str] = {}
    used_jobs = set()
    for student_id, job in state.currentAssignments.items():
        if student_id not in roster or job in used_jobs:
            continue
        used_jobs.add(job)
        assignments[student_id] = job

    changed = cycle_queue != state.cycleQueue or assignments != state.currentAssignments
    if not changed:
        return state, False
    return (
        state.model_copy(update={"cycleQueue": cycle_queue, "currentAssignments": assignments}),
        True,
    )


def _default_state(
    students: Optional[Sequence[int]] = None,
    job_titles: Optional[Sequence[str]] = None,
    rng: Optional[random.Random] = None,
) -> AppState:
    rng = _resolve_rng(rng)
    roster = list(students) if students else list(DEFAULT_STUDENTS)
    titles = list(job_titles) if job_titles else list(DEFAULT_JOB_TITLES)
    return AppState(
        students=roster,
        jobTitles=titles,
        currentAssignments={},
        cycleQueue=_shuffled(roster, rng),
        history={},
        lastAssignmentTimestamp=None,
    )


# -----------------------------------------------------------------------------
# Roster edits
# -----------------------------------------------------------------------------


def add_student(state: AppState, student_id: int) -> AppState:
    if isinstance(student_id, bool) or not isinstance(student_id, int) or student_id <= 0:
        raise RosterEditError("Invalid student number. Must be a positive integer.")
    if student_id in state.students:
        raise DuplicateRosterEntryError(f"Student number {student_id} already exists.")
    return state.model_copy(update={"students": sorted([*state.students, student_id])})


def remove_student(state: AppState, student_id: int) -> AppState:
    if student_id not in state.students:
        raise UnknownRosterEntryError(f"Student number {student_id} is not on the roster.")
    return state.model_copy(
        update={
            "students": [s for s in state.students if s != student_id],
            "cycleQueue": [s for s in state.cycleQueue if s != student_id],
            "currentAssignments": {
                s: job for s, job in state.currentAssignments.items() if s != student_id
            },
            "history": {s: jobs for s, jobs in state.history.items() if s != student_id},
        }
    )


def add_job_title(state: AppState, job_title: str) -> AppState:
    title = (job_title or "").strip()
    if not title:
        raise RosterEditError("Job title must not be blank.")
    if title in state.jobTitles:
        raise DuplicateRosterEntryError(f'Job title "{title}" already exists.')
    return state.model_copy(update={"jobTitles": [*state.jobTitles, title]})


def remove_job_title(state: AppState, job_title: str) -> AppState:
    # History keeps past entries for removed jobs.
    if job_title not in state.jobTitles:
        raise UnknownRosterEntryError(f'Job title "{job_title}" is not on the roster.')
    return state.model_copy(
        update={"jobTitles": [title for title in state.jobTitles if title != job_title]}
    )


# -----------------------------------------------------------------------------
# Clear / reset
# -----------------------------------------------------------------------------


def clear_current_assignments(state: AppState) -> AppState:
    return state.model_copy(update={"currentAssignments": {}, "lastAssignmentTimestamp": None})


def reset_assignment_history(
    state: AppState, rng: Optional[random.Random] = None
) -> AppState:
    rng = _resolve_rng(rng)
    return state.model_copy(
        update={
            "currentAssignments": {},
            "history": {},
            "cycleQueue": _shuffled(state.students, rng),
            "lastAssignmentTimestamp": None,
        }
    )


def reset_all(
    state: AppState,
    fallback_students: Optional[Sequence[int]] = None,
    fallback_job_titles: Optional[Sequence[str]] = None,
    rng: Optional[random.Random] = None,
) -> AppState:
    """Replace both rosters and drop every derived field.

    Empty or missing fallbacks select the built-in rosters. Nothing from
    ``state`` survives the reset.
    """
    fresh = _default_state(fallback_students, fallback_job_titles, rng)
    normalized, _ = _validate_state(fresh)
    return normalized


# -----------------------------------------------------------------------------
# Serialization
# -----------------------------------------------------------------------------


def _serialize_state(state: AppState) -> Dict[str, Any]:
    payload = state.model_dump(mode="json")
    payload["currentAssignments"] = {
        str(student_id): job for student_id, job in state.currentAssignments.items()
    }
    payload["history"] = {
        str(student_id): list(jobs) for student_id, jobs in state.history.items()
    }
    return payload


def _deserialize_state(data: Dict[str, Any]) -> AppState:
    return AppState.model_validate(data)


def _parse_import_state(payload: Optional[Dict[str, Any]]) -> Optional[AppState]:
    if payload is None:
        return None
    if isinstance(payload, dict) and "state" in payload:
        export = UserStateExport.model_validate(payload)
        normalized, _ = _validate_state(export.state)
        return normalized
    state = _deserialize_state(payload)
    normalized, _ = _validate_state(state)
    return normalized
