from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.attendance.config import AttendanceConfig


def test_environment_overrides_defaults(monkeypatch):
    monkeypatch.setenv("ATTENDANCE_API_BASE_URL", "https://attendance.example.edu/api/")
    monkeypatch.setenv("ATTENDANCE_DEFAULT_LOCATION", "Lecture Hall A")
    monkeypatch.setenv("ATTENDANCE_UNDO_CAPACITY", "5")
    config = AttendanceConfig(_env_file=None)
    assert config.api_base_url == "https://attendance.example.edu/api"
    assert config.default_location == "Lecture Hall A"
    assert config.undo_capacity == 5


def test_unknown_location_rejected():
    with pytest.raises(PydanticValidationError):
        AttendanceConfig(_env_file=None, default_location="Cafeteria")


def test_defaults():
    config = AttendanceConfig(_env_file=None)
    assert config.default_location == "Lab 01"
    assert config.default_arrival_time == ""
    assert config.submit_timeout_seconds == 30.0
