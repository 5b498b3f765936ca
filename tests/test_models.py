from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.attendance.models import (
    AttendanceRecord,
    AttendanceStatus,
    MarkAttendancePayload,
    Student,
    Subject,
    status_from_bool,
    status_from_triple,
    status_to_bool,
    status_to_triple,
)


def test_student_parses_backend_user_record():
    student = Student.model_validate(
        {
            "id": "u1",
            "name": "Amal Perera",
            "email": "amal@example.com",
            "registrationNumber": "HNDIT/FT/2024/001",
            "department": "HNDIT",
            "year": "1st Year",
            "type": "Full Time",
            "role": "student",
            "isActive": None,
            "profilePicture": None,
            "createdAt": {"seconds": 1},
        }
    )
    assert student.registration_number == "HNDIT/FT/2024/001"
    assert student.active is True


def test_student_with_missing_strings_gets_empty_values():
    student = Student.model_validate({"id": "u2", "name": None, "registrationNumber": None})
    assert student.name == ""
    assert student.registration_number == ""
    assert student.email == ""


def test_subject_uses_camel_case_keys():
    subject = Subject.model_validate(
        {"courseCode": "IT101", "courseName": "Programming", "semester": "1st Semester", "credits": 3}
    )
    assert subject.course_code == "IT101"
    assert subject.lecturer_name is None


def test_payload_serialises_with_backend_field_names():
    payload = MarkAttendancePayload(
        registration_number="R1",
        subject_code="IT101",
        status=AttendanceStatus.LATE,
        location="Lab 02",
        date="2024-03-01",
        arrival_time="09:10",
        remarks="bus delay",
    )
    assert payload.to_wire() == {
        "registrationNumber": "R1",
        "subjectCode": "IT101",
        "status": "Late",
        "location": "Lab 02",
        "date": "2024-03-01",
        "arrivalTime": "09:10",
        "remarks": "bus delay",
    }


def test_record_rejects_malformed_time():
    with pytest.raises(PydanticValidationError):
        AttendanceRecord(arrival_time="9am")


def test_default_record_is_unmarked_absent():
    record = AttendanceRecord()
    assert record.status is AttendanceStatus.ABSENT
    assert record.arrival_time == ""
    assert record.marked is False


@pytest.mark.parametrize(
    "value,expected",
    [(True, AttendanceStatus.PRESENT), (False, AttendanceStatus.ABSENT)],
)
def test_boolean_vocabulary(value, expected):
    assert status_from_bool(value) is expected
    assert status_to_bool(expected) is value


def test_late_counts_as_present_in_boolean_vocabulary():
    assert status_to_bool(AttendanceStatus.LATE) is True
    assert status_to_bool(AttendanceStatus.EXCUSED) is False


def test_lowercase_triple_vocabulary():
    assert status_from_triple("late") is AttendanceStatus.LATE
    assert status_to_triple(AttendanceStatus.PRESENT) == "present"
    assert status_to_triple(AttendanceStatus.EXCUSED) == "absent"
    with pytest.raises(ValueError):
        status_from_triple("Present")
