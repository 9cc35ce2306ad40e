import logging
import random
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from .constants import DEFAULT_RECENT_WINDOW
from .models import AppState, AssignmentNotice
from .state import _resolve_rng, _shuffled, _validate_state

logger = logging.getLogger(__name__)


def _recent_jobs(history: Sequence[str], window: int) -> Sequence[str]:
    if window <= 0:
        return ()
    return history[-window:]


def _pick_student(
    job: str,
    eligible: List[int],
    history: Dict[int, List[str]],
    recent_window: int,
) -> tuple[int, int]:
    """Return (student, tier) for ``job``; ``eligible`` must be non-empty."""
    for student_id in eligible:
        if job not in _recent_jobs(history.get(student_id, []), recent_window):
            return student_id, 1
    for student_id in eligible:
        if job not in history.get(student_id, []):
            return student_id, 2
    return eligible[0], 3


def generate_weekly_assignments(
    state: AppState,
    rng: Optional[random.Random] = None,
    recent_window: int = DEFAULT_RECENT_WINDOW,
    now: Optional[datetime] = None,
) -> tuple[AppState, List[AssignmentNotice]]:
    """Produce this week's assignments and the updated history and cycle queue.

    Jobs are visited in a shuffled order and each goes to the first student of
    a shuffled weekly pool who is still free this week, preferring a student
    without the job among their last ``recent_window`` entries, then one who
    never held it, then anyone. Shortfalls come back as notices, never as
    errors. Raises InvariantViolation for a malformed state.
    """
    original = state
    state, _ = _validate_state(state)
    rng = _resolve_rng(rng)
    notices: List[AssignmentNotice] = []

    students = list(state.students)
    job_titles = list(state.jobTitles)
    if not students or not job_titles:
        notices.append(
            AssignmentNotice(
                kind="EmptyRosterWarning",
                message="Cannot assign: add students and job titles before assigning jobs.",
            )
        )
        return original, notices

    if len(job_titles) > len(students):
        notices.append(
            AssignmentNotice(
                kind="JobsExceedStudentsWarning",
                message="More job titles than students. Some jobs will not be assigned this week.",
            )
        )

    cycle_queue = list(state.cycleQueue)
    if not cycle_queue:
        cycle_queue = _shuffled(students, rng)
        notices.append(
            AssignmentNotice(
                kind="CycleRefilledNotice",
                message="Starting a new cycle: all students are now available for assignment.",
            )
        )

    weekly_pool = _shuffled(students, rng)
    job_order = _shuffled(job_titles, rng)

    history: Dict[int, List[str]] = {
        student_id: list(jobs) for student_id, jobs in state.history.items()
    }
    assigned_this_week = set()
    new_assignments: Dict[int, str] = {}

    for job in job_order:
        eligible = [s for s in weekly_pool if s not in assigned_this_week]
        if not eligible:
            notices.append(
                AssignmentNotice(
                    kind="InsufficientEligibleStudentsWarning",
                    message=(
                        "Not enough unique students to assign all jobs this week. "
                        f'Job "{job}" was skipped.'
                    ),
                    jobTitle=job,
                )
            )
            continue

        student_id, tier = _pick_student(job, eligible, history, recent_window)
        if tier == 2:
            notices.append(
                AssignmentNotice(
                    kind="FallbackAssignmentWarning",
                    message=(
                        f'Student {student_id} was assigned job "{job}" even though it is in '
                        "their recent history, as no better option was available."
                    ),
                    studentId=student_id,
                    jobTitle=job,
                )
            )
        elif tier == 3:
            notices.append(
                AssignmentNotice(
                    kind="FallbackAssignmentWarning",
                    message=(
                        f'Student {student_id} was assigned job "{job}" even though they have '
                        "held it before, as all eligible students have held this job."
                    ),
                    studentId=student_id,
                    jobTitle=job,
                )
            )
        if tier > 1:
            logger.debug("Tier %s fallback: student %s -> %r", tier, student_id, job)

        new_assignments[student_id] = job
        assigned_this_week.add(student_id)
        history[student_id] = [*history.get(student_id, []), job]
        if student_id in cycle_queue:
            cycle_queue.remove(student_id)

    if not cycle_queue:
        notices.append(
            AssignmentNotice(
                kind="CycleCompletedNotice",
                message=(
                    "All students have received a job in this cycle. "
                    "The next assignment will start a new cycle."
                ),
            )
        )

    timestamp = now or datetime.now(timezone.utc).replace(microsecond=0)
    logger.info(
        "Assigned %s of %s jobs to %s students; %s left in cycle",
        len(new_assignments),
        len(job_titles),
        len(students),
        len(cycle_queue),
    )
    return (
        state.model_copy(
            update={
                "currentAssignments": new_assignments,
                "history": history,
                "cycleQueue": cycle_queue,
                "lastAssignmentTimestamp": timestamp,
            }
        ),
        notices,
    )
