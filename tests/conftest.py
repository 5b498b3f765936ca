from __future__ import annotations

import threading
from datetime import date

import pytest

from src.attendance.config import AttendanceConfig
from src.attendance.errors import BackendError, TransportError
from src.attendance.models import MarkAttendancePayload, Student, Subject
from src.attendance.workflow import ManualAttendanceWorkflow

CLASS_DATE = date(2024, 3, 1)
DEFAULT_TIME = "08:30"


def make_student(sid: str, name: str, reg: str, **overrides) -> Student:
    data = {
        "id": sid,
        "name": name,
        "registrationNumber": reg,
        "email": f"{name.lower().replace(' ', '.')}@example.com",
        "role": "student",
        "department": "HNDIT",
        "year": "1st Year",
        "type": "Full Time",
        "isActive": True,
    }
    data.update(overrides)
    return Student.model_validate(data)


STUDENTS = [
    make_student("a", "Amal Perera", "HNDIT/FT/2024/001"),
    make_student("b", "Bimal Silva", "HNDIT/FT/2024/002"),
    make_student("c", "Chamari Fernando", "HNDIT/FT/2024/003"),
    make_student("d", "Dinesh Kumar", "HNDIT/PT/2024/004", type="Part Time"),
    make_student("e", "Erandi Jayasuriya", "HNDA/FT/2024/005", department="HNDA"),
    make_student("f", "Fathima Rizwan", "HNDIT/FT/2023/006", year="2nd Year"),
    make_student("g", "Gayan Inactive", "HNDIT/FT/2024/007", isActive=False),
]

SUBJECTS = [
    Subject(courseCode="IT101", courseName="Programming Fundamentals", department="HNDIT", semester="1st Semester"),
    Subject(courseCode="IT102", courseName="Computer Systems", department="HNDIT", semester="2nd Semester"),
    Subject(courseCode="IT201", courseName="Databases", department="HNDIT", semester="3rd Semester"),
    Subject(courseCode="IT301", courseName="Project", department="HNDIT", semester="5th Semester"),
]


class FakeClient:
    """In-memory stand-in for AttendanceApiClient."""

    def __init__(self, students=None, subjects=None):
        self.students = list(STUDENTS if students is None else students)
        self.subjects = list(SUBJECTS if subjects is None else subjects)
        self.student_calls = 0
        self.subject_calls: list[str | None] = []
        self.payloads: list[MarkAttendancePayload] = []
        self.reject: set[str] = set()
        self.fail_students = False
        self.fail_subjects = False
        self._lock = threading.Lock()

    def list_students(self) -> list[Student]:
        self.student_calls += 1
        if self.fail_students:
            raise TransportError("Failed to fetch users: connection refused")
        return list(self.students)

    def list_subjects(self, department: str | None = None) -> list[Subject]:
        self.subject_calls.append(department)
        if self.fail_subjects:
            raise BackendError("Failed to fetch subjects")
        return [s for s in self.subjects if not department or s.department == department]

    def mark_attendance(self, payload: MarkAttendancePayload):
        with self._lock:
            self.payloads.append(payload)
        if payload.registration_number in self.reject:
            raise BackendError("Student not found")
        return {"id": payload.registration_number}

    def close(self) -> None:
        pass


@pytest.fixture
def config() -> AttendanceConfig:
    return AttendanceConfig(
        default_arrival_time=DEFAULT_TIME,
        default_location="Lab 01",
        submit_timeout_seconds=5,
        undo_capacity=10,
    )


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def workflow(client, config) -> ManualAttendanceWorkflow:
    return ManualAttendanceWorkflow(client, config, today=CLASS_DATE)
