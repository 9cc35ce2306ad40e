from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from .constants import EXPORT_VERSION
from .db import _utcnow_iso
from .identity import _get_current_user
from .models import (
    AppState,
    JobTitleCreateRequest,
    StudentCreateRequest,
    UserDefaults,
    UserPublic,
    UserStateExport,
)
from .state import (
    _parse_import_state,
    add_job_title,
    add_student,
    remove_job_title,
    remove_student,
)
from .store import (
    _load_state,
    _load_user_defaults,
    _run_state_operation,
    _save_state,
    _save_user_defaults,
)

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/v1/state", response_model=AppState)
def get_state(current_user: UserPublic = Depends(_get_current_user)):
    return _load_state(current_user.username)


@router.post("/v1/state", response_model=AppState)
def set_state(
    payload: Dict[str, Any] = Body(...),
    current_user: UserPublic = Depends(_get_current_user),
):
    try:
        normalized = _parse_import_state(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail="Invalid state payload.") from exc
    if normalized is None:
        raise HTTPException(status_code=400, detail="Missing state.")
    _save_state(normalized, current_user.username)
    return normalized


@router.get("/v1/state/export", response_model=UserStateExport)
def export_state(current_user: UserPublic = Depends(_get_current_user)):
    return UserStateExport(
        version=EXPORT_VERSION,
        exportedAt=_utcnow_iso(),
        sourceUser=current_user.username,
        state=_load_state(current_user.username),
    )


@router.post("/v1/students", response_model=AppState)
def create_student(
    payload: StudentCreateRequest, current_user: UserPublic = Depends(_get_current_user)
):
    return _run_state_operation(
        current_user.username, lambda state: add_student(state, payload.studentId)
    )


@router.delete("/v1/students/{student_id}", response_model=AppState)
def delete_student(student_id: int, current_user: UserPublic = Depends(_get_current_user)):
    return _run_state_operation(
        current_user.username, lambda state: remove_student(state, student_id)
    )


@router.post("/v1/job-titles", response_model=AppState)
def create_job_title(
    payload: JobTitleCreateRequest, current_user: UserPublic = Depends(_get_current_user)
):
    return _run_state_operation(
        current_user.username, lambda state: add_job_title(state, payload.jobTitle)
    )


@router.delete("/v1/job-titles/{job_title:path}", response_model=AppState)
def delete_job_title(job_title: str, current_user: UserPublic = Depends(_get_current_user)):
    return _run_state_operation(
        current_user.username, lambda state: remove_job_title(state, job_title)
    )


@router.get("/v1/defaults", response_model=UserDefaults)
def get_defaults(current_user: UserPublic = Depends(_get_current_user)):
    return _load_user_defaults(current_user.username)


@router.post("/v1/defaults/students", response_model=UserDefaults)
def save_default_students(current_user: UserPublic = Depends(_get_current_user)):
    state = _load_state(current_user.username)
    return _save_user_defaults(current_user.username, students=list(state.students))


@router.post("/v1/defaults/job-titles", response_model=UserDefaults)
def save_default_job_titles(current_user: UserPublic = Depends(_get_current_user)):
    state = _load_state(current_user.username)
    return _save_user_defaults(current_user.username, job_titles=list(state.jobTitles))
