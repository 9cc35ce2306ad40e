from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, NonNegativeInt, PositiveInt, StrictInt

NoticeKind = Literal[
    "EmptyRosterWarning",
    "JobsExceedStudentsWarning",
    "InsufficientEligibleStudentsWarning",
    "FallbackAssignmentWarning",
    "CycleRefilledNotice",
    "CycleCompletedNotice",
]


class UserPublic(BaseModel):
    username: str


class AppState(BaseModel):
    students: List[PositiveInt] = Field(default_factory=list)
    jobTitles: List[str] = Field(default_factory=list)
    currentAssignments: Dict[PositiveInt, str] = Field(default_factory=dict)
    cycleQueue: List[PositiveInt] = Field(default_factory=list)
    history: Dict[PositiveInt, List[str]] = Field(default_factory=dict)
    lastAssignmentTimestamp: Optional[datetime] = None


class UserDefaults(BaseModel):
    students: List[PositiveInt] = Field(default_factory=list)
    jobTitles: List[str] = Field(default_factory=list)


class UserStateExport(BaseModel):
    version: int = 1
    exportedAt: str
    sourceUser: str
    state: AppState


class AssignmentNotice(BaseModel):
    kind: NoticeKind
    message: str
    studentId: Optional[int] = None
    jobTitle: Optional[str] = None


class GenerateAssignmentsRequest(BaseModel):
    recentWindow: Optional[NonNegativeInt] = None
    seed: Optional[int] = None


class AssignmentRunResponse(BaseModel):
    state: AppState
    notices: List[AssignmentNotice]


class StudentCreateRequest(BaseModel):
    studentId: StrictInt


class JobTitleCreateRequest(BaseModel):
    jobTitle: str


class ResetAllRequest(BaseModel):
    students: Optional[List[PositiveInt]] = None
    jobTitles: Optional[List[str]] = None
