"""Manual attendance entry client for the attendance REST backend.

Filters the student roster, keeps per-student attendance marks, and submits
them to the backend in one concurrent batch.
"""

from src.attendance.client import ApiSession, AttendanceApiClient
from src.attendance.models import AttendanceStatus, SubmissionResult
from src.attendance.workflow import ManualAttendanceWorkflow

__all__ = [
    "ApiSession",
    "AttendanceApiClient",
    "AttendanceStatus",
    "ManualAttendanceWorkflow",
    "SubmissionResult",
]
