"""Pydantic models for the manual attendance workflow.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Wire payloads use the backend's camelCase field names through aliases.
"""

import datetime as dt
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Department(str, Enum):
    HNDIT = "HNDIT"
    HNDA = "HNDA"
    HNDM = "HNDM"
    HNDE = "HNDE"


class Year(str, Enum):
    FIRST = "1st Year"
    SECOND = "2nd Year"
    THIRD = "3rd Year"


class StudyType(str, Enum):
    FULL_TIME = "Full Time"
    PART_TIME = "Part Time"


class AttendanceStatus(str, Enum):
    """Canonical status vocabulary, identical to what the backend stores."""

    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"
    EXCUSED = "Excused"

    @property
    def is_present_like(self) -> bool:
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


# Subjects offered to each study year
YEAR_SEMESTERS: dict[Year, frozenset[str]] = {
    Year.FIRST: frozenset({"1st Semester", "2nd Semester"}),
    Year.SECOND: frozenset({"3rd Semester", "4th Semester"}),
    Year.THIRD: frozenset({"5th Semester", "6th Semester"}),
}


def validate_time(value: str) -> str:
    """Accept ``HH:MM`` (24h) or the empty string."""
    if value and not _TIME_RE.match(value):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return value


def status_from_bool(is_present: bool) -> AttendanceStatus:
    """Map the boolean present/absent vocabulary onto the canonical enum."""
    return AttendanceStatus.PRESENT if is_present else AttendanceStatus.ABSENT


def status_to_bool(status: AttendanceStatus) -> bool:
    return status.is_present_like


def status_from_triple(value: str) -> AttendanceStatus:
    """Map the lowercase ``present|late|absent`` vocabulary onto the canonical enum.

    Raises:
        ValueError: If the value is not one of the three lowercase statuses.
    """
    mapping = {
        "present": AttendanceStatus.PRESENT,
        "late": AttendanceStatus.LATE,
        "absent": AttendanceStatus.ABSENT,
    }
    try:
        return mapping[value]
    except KeyError:
        raise ValueError(f"Unknown status {value!r}. Valid: {list(mapping)}") from None


def status_to_triple(status: AttendanceStatus) -> str:
    # Excused has no counterpart in the triple and is reported as absent
    if status is AttendanceStatus.EXCUSED:
        return "absent"
    return status.value.lower()


class Student(BaseModel):
    """Read-only snapshot of a student user as listed by ``GET /users/list``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    registration_number: str = Field(default="", alias="registrationNumber")
    email: str = ""
    role: str = "student"
    department: str | None = None
    year: str | None = None
    type: str | None = None
    # Older accounts have no isActive flag; they count as active
    active: bool = Field(default=True, alias="isActive")

    @field_validator("active", mode="before")
    @classmethod
    def _missing_active_is_true(cls, value: Any) -> Any:
        return True if value is None else value

    @field_validator("name", "registration_number", "email", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class Subject(BaseModel):
    """Read-only snapshot of a subject as listed by ``GET /subjects``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    course_code: str = Field(alias="courseCode")
    course_name: str = Field(default="", alias="courseName")
    department: str | None = None
    semester: str | None = None
    lecturer_name: str | None = Field(default=None, alias="lecturerName")

    @field_validator("course_name", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class AttendanceRecord(BaseModel):
    """Per-student attendance state held in the ledger.

    ``marked`` is set once the user picks a status; only marked records are
    submitted. ``arrival_time_explicit`` records whether the time was typed in
    rather than taken from the default.
    """

    status: AttendanceStatus = AttendanceStatus.ABSENT
    arrival_time: str = ""
    remarks: str = ""
    marked: bool = False
    arrival_time_explicit: bool = False

    @field_validator("arrival_time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return validate_time(value)


class FilterSelection(BaseModel):
    """Point-in-time copy of the filter fields."""

    department: Department | None = None
    year: Year | None = None
    type: StudyType | None = None
    subject_code: str | None = None
    date: dt.date | None = None


class MarkAttendancePayload(BaseModel):
    """Body of ``POST /attendance/mark``."""

    model_config = ConfigDict(populate_by_name=True)

    registration_number: str = Field(alias="registrationNumber")
    subject_code: str = Field(alias="subjectCode")
    status: AttendanceStatus
    location: str
    date: str
    arrival_time: str = Field(default="", alias="arrivalTime")
    remarks: str = ""

    def to_wire(self) -> dict[str, str]:
        return self.model_dump(mode="json", by_alias=True)


class ApiResponse(BaseModel):
    """Uniform envelope returned by every backend endpoint."""

    model_config = ConfigDict(extra="ignore")

    success: bool = False
    data: Any = None
    message: str | None = None


class SubmissionResult(BaseModel):
    """Aggregate outcome of one batch submission."""

    attempted: int = 0
    success_count: int = 0
    failed: list[str] = Field(default_factory=list)  # registration numbers

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def succeeded(self) -> bool:
        return self.success_count > 0
