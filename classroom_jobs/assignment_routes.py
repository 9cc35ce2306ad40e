import random
from typing import List, Optional

from fastapi import APIRouter, Depends

from .constants import RECENT_WINDOW
from .engine import generate_weekly_assignments
from .identity import _get_current_user
from .models import (
    AppState,
    AssignmentNotice,
    AssignmentRunResponse,
    GenerateAssignmentsRequest,
    ResetAllRequest,
    UserPublic,
)
from .state import clear_current_assignments, reset_assignment_history
from .store import _run_reset_all, _run_state_operation

router = APIRouter()


@router.post("/v1/assignments/generate", response_model=AssignmentRunResponse)
def generate_assignments(
    payload: Optional[GenerateAssignmentsRequest] = None,
    current_user: UserPublic = Depends(_get_current_user),
):
    payload = payload or GenerateAssignmentsRequest()
    recent_window = RECENT_WINDOW if payload.recentWindow is None else payload.recentWindow
    rng = random.Random(payload.seed) if payload.seed is not None else None
    notices: List[AssignmentNotice] = []

    def _run(state: AppState) -> AppState:
        next_state, run_notices = generate_weekly_assignments(
            state, rng=rng, recent_window=recent_window
        )
        notices.extend(run_notices)
        return next_state

    state = _run_state_operation(current_user.username, _run)
    return AssignmentRunResponse(state=state, notices=notices)


@router.post("/v1/assignments/clear", response_model=AppState)
def clear_assignments(current_user: UserPublic = Depends(_get_current_user)):
    return _run_state_operation(current_user.username, clear_current_assignments)


@router.post("/v1/history/reset", response_model=AppState)
def reset_history(current_user: UserPublic = Depends(_get_current_user)):
    return _run_state_operation(current_user.username, reset_assignment_history)


@router.post("/v1/reset-all", response_model=AppState)
def reset_everything(
    payload: Optional[ResetAllRequest] = None,
    current_user: UserPublic = Depends(_get_current_user),
):
    payload = payload or ResetAllRequest()
    return _run_reset_all(current_user.username, payload.students, payload.jobTitles)
