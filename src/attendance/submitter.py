"""Submission of marked attendance records to the backend.

Every marked ledger entry becomes one ``POST /attendance/mark`` call. Calls
are issued concurrently and awaited together; one student's failure never
cancels another's. The outcome is reported as an aggregate count, with the
failed registration numbers kept on the result for callers that want them.
"""

import asyncio

from src.attendance.client import AttendanceApiClient
from src.attendance.config import LOCATIONS
from src.attendance.errors import AttendanceError, ValidationError
from src.attendance.filters import FilterState
from src.attendance.ledger import AttendanceLedger
from src.attendance.logging import get_logger
from src.attendance.models import (
    AttendanceStatus,
    MarkAttendancePayload,
    SubmissionResult,
    validate_time,
)
from src.attendance.notifications import Notifier
from src.attendance.roster import RosterFetcher

log = get_logger(__name__)


class Submitter:
    def __init__(
        self,
        client: AttendanceApiClient,
        filters: FilterState,
        ledger: AttendanceLedger,
        roster: RosterFetcher,
        notifier: Notifier,
        *,
        location: str = "Lab 01",
        timeout: float | None = 30.0,
        require_full_filters: bool = True,
    ) -> None:
        self.client = client
        self.filters = filters
        self.ledger = ledger
        self.roster = roster
        self.notifier = notifier
        self.location = location
        self.timeout = timeout
        self.require_full_filters = require_full_filters
        self.is_submitting = False

    def validate(self) -> None:
        """Check every precondition for a batch submission.

        Raises:
            ValidationError: With the message to show for the first failed check.
        """
        f = self.filters
        if f.date is None:
            raise ValidationError("Please select a date")
        if not f.subject_code:
            raise ValidationError("Please select a subject")
        if self.require_full_filters:
            if f.department is None:
                raise ValidationError("Please select a department")
            if f.year is None:
                raise ValidationError("Please select a year")
            if f.type is None:
                raise ValidationError("Please select a type")
        if self.location not in LOCATIONS:
            raise ValidationError(f"Unknown location: {self.location}")
        if self.ledger.marked_count == 0:
            raise ValidationError("Please mark attendance for at least one student")

    def build_payloads(self) -> list[MarkAttendancePayload]:
        """One payload per marked record, in no particular order."""
        payloads = []
        for student_id, record in self.ledger.marked().items():
            student = self.roster.find_student(student_id)
            if student is None:
                log.warning("payload_skipped", student_id=student_id, reason="not_in_roster")
                continue

            arrival_time = record.arrival_time
            if record.status is not AttendanceStatus.ABSENT and not arrival_time:
                arrival_time = self.ledger.default_arrival_time

            payloads.append(
                MarkAttendancePayload(
                    registration_number=student.registration_number,
                    subject_code=self.filters.subject_code or "",
                    status=record.status,
                    location=self.location,
                    date=self.filters.date.isoformat() if self.filters.date else "",
                    arrival_time=arrival_time,
                    remarks=record.remarks,
                )
            )
        return payloads

    async def _send(self, payload: MarkAttendancePayload) -> bool:
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self.client.mark_attendance, payload),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            log.warning(
                "mark_timed_out",
                registration_number=payload.registration_number,
                timeout=self.timeout,
            )
            return False
        except AttendanceError as e:
            log.warning(
                "mark_failed",
                registration_number=payload.registration_number,
                error=e.message,
            )
            return False
        return True

    async def dispatch(self, payloads: list[MarkAttendancePayload]) -> SubmissionResult:
        """Send every payload concurrently and wait for all of them."""
        outcomes = await asyncio.gather(*(self._send(p) for p in payloads))
        failed = [p.registration_number for p, ok in zip(payloads, outcomes) if not ok]
        return SubmissionResult(
            attempted=len(payloads),
            success_count=sum(outcomes),
            failed=failed,
        )

    async def submit(self) -> SubmissionResult | None:
        """Validate, send and report one batch.

        Returns:
            The aggregate result, or None if validation failed or a
            submission is already in flight (no request is made then).
        """
        if self.is_submitting:
            log.debug("submit_skipped", reason="in_flight")
            return None
        try:
            self.validate()
        except ValidationError as e:
            self.notifier.error(e.message)
            return None

        self.is_submitting = True
        try:
            payloads = self.build_payloads()
            log.info(
                "submission_started",
                subject=self.filters.subject_code,
                date=str(self.filters.date),
                records=len(payloads),
            )
            result = await self.dispatch(payloads)
        finally:
            self.is_submitting = False

        log.info(
            "submission_finished",
            attempted=result.attempted,
            succeeded=result.success_count,
            failed=result.failure_count,
        )
        if result.succeeded:
            self.notifier.success(
                f"Attendance marked successfully for {result.success_count} students!"
            )
            if result.failed:
                self.notifier.warning(
                    f"Failed to mark attendance for {result.failure_count} students"
                )
        else:
            self.notifier.error("Failed to mark attendance for any students")
        return result

    async def submit_single(
        self,
        registration_number: str,
        status: AttendanceStatus | str = AttendanceStatus.PRESENT,
        arrival_time: str | None = None,
        remarks: str = "",
    ) -> bool:
        """Mark one student picked by registration number.

        Uses the selected subject and date and the batch location. Returns
        True when the backend accepted the record.
        """
        if not registration_number or not self.filters.subject_code:
            self.notifier.error("Please fill in all required fields")
            return False
        student = self.roster.find_by_registration(registration_number)
        if student is None:
            self.notifier.error("Invalid registration number - student not found")
            return False
        if self.filters.date is None:
            self.notifier.error("Please select a date")
            return False

        status = AttendanceStatus(status)
        if arrival_time is None:
            arrival_time = (
                "" if status is AttendanceStatus.ABSENT else self.ledger.default_arrival_time
            )
        try:
            validate_time(arrival_time)
        except ValueError as e:
            self.notifier.error(str(e))
            return False
        payload = MarkAttendancePayload(
            registration_number=student.registration_number,
            subject_code=self.filters.subject_code,
            status=status,
            location=self.location,
            date=self.filters.date.isoformat(),
            arrival_time=arrival_time,
            remarks=remarks,
        )

        try:
            await asyncio.wait_for(
                asyncio.to_thread(self.client.mark_attendance, payload),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            self.notifier.error("Failed to add attendance")
            return False
        except AttendanceError as e:
            self.notifier.error(e.message or "Failed to add attendance")
            return False

        log.info("single_marked", registration_number=registration_number, status=status.value)
        self.notifier.success("Attendance added successfully!")
        return True
