"""Manual attendance workflow: one open instance of the attendance form.

Wires the filter state, roster fetcher, ledger, bulk operators and
submitter together. Each workflow owns its own filters and ledger; nothing
is shared between instances.

Typical use:

    workflow = ManualAttendanceWorkflow(client)
    await workflow.open()
    workflow.filters.set_department("HNDIT")
    await workflow.refresh()
    workflow.mark_all_visible("Present")
    await workflow.submit()
"""

from collections.abc import Callable
from datetime import date, datetime
from typing import Any

from src.attendance.bulk import BulkOperators
from src.attendance.client import AttendanceApiClient
from src.attendance.config import LOCATIONS, AttendanceConfig, get_config
from src.attendance.errors import ValidationError
from src.attendance.filters import FilterChange, FilterState
from src.attendance.ledger import AttendanceLedger
from src.attendance.logging import get_logger
from src.attendance.models import (
    AttendanceRecord,
    AttendanceStatus,
    Student,
    SubmissionResult,
    Subject,
)
from src.attendance.notifications import Notifier
from src.attendance.roster import RosterFetcher
from src.attendance.submitter import Submitter

log = get_logger(__name__)


class ManualAttendanceWorkflow:
    def __init__(
        self,
        client: AttendanceApiClient,
        config: AttendanceConfig | None = None,
        *,
        notifier: Notifier | None = None,
        on_submitted: Callable[[dict[str, Any]], None] | None = None,
        today: date | None = None,
        require_full_filters: bool = True,
    ) -> None:
        self.config = config or get_config()
        self.client = client
        self.notifier = notifier or Notifier()
        self.on_submitted = on_submitted
        self._today = today
        self.is_open = False

        self.filters = FilterState(today=today)
        self.ledger = AttendanceLedger(
            self._initial_arrival_time(), undo_capacity=self.config.undo_capacity
        )
        self.roster = RosterFetcher(
            client, self.filters, self.notifier, on_roster_loaded=self._seed_ledger
        )
        self.bulk = BulkOperators(self.ledger, lambda: self.roster.visible, self.notifier)
        self.submitter = Submitter(
            client,
            self.filters,
            self.ledger,
            self.roster,
            self.notifier,
            location=self.config.default_location,
            timeout=self.config.submit_timeout_seconds,
            require_full_filters=require_full_filters,
        )
        self.filters.subscribe(self._on_filter_change)

    def _initial_arrival_time(self) -> str:
        return self.config.default_arrival_time or datetime.now().strftime("%H:%M")

    def _seed_ledger(self, roster: list[Student]) -> None:
        self.ledger.seed(s.id for s in roster)

    def _on_filter_change(self, change: FilterChange) -> None:
        # Marks made for the old roster are meaningless for the new one
        if change.invalidates_roster and len(self.ledger):
            log.info("ledger_discarded", field=change.field, records=len(self.ledger))
            self.ledger.clear()

    # -- lifecycle -------------------------------------------------------

    async def open(self) -> None:
        """Open the form and load students and subjects."""
        self.is_open = True
        log.info("workflow_opened")
        await self.roster.refresh(force=True)

    async def refresh(self) -> None:
        """Re-fetch whatever the filter changes since the last fetch invalidated."""
        await self.roster.refresh()

    def close(self) -> None:
        """Discard all state and return every setting to its initial value."""
        self.filters.reset(self._today)
        self.ledger.clear()
        self.roster.clear()
        self.ledger.default_arrival_time = self._initial_arrival_time()
        self.submitter.location = self.config.default_location
        self.is_open = False
        log.info("workflow_closed")

    # -- settings --------------------------------------------------------

    @property
    def default_arrival_time(self) -> str:
        return self.ledger.default_arrival_time

    @default_arrival_time.setter
    def default_arrival_time(self, value: str) -> None:
        self.ledger.default_arrival_time = value

    @property
    def location(self) -> str:
        return self.submitter.location

    @location.setter
    def location(self, value: str) -> None:
        if value not in LOCATIONS:
            raise ValueError(f"Unknown location {value!r}. Valid: {list(LOCATIONS)}")
        self.submitter.location = value

    # -- views -----------------------------------------------------------

    @property
    def is_busy(self) -> bool:
        return self.roster.is_loading or self.submitter.is_submitting

    @property
    def visible_students(self) -> list[Student]:
        return self.roster.visible

    @property
    def subjects(self) -> list[Subject]:
        return self.roster.subjects

    @property
    def visible_count(self) -> int:
        return len(self.roster.visible)

    @property
    def marked_count(self) -> int:
        return self.ledger.marked_count

    def record(self, student_id: str) -> AttendanceRecord:
        return self.ledger.get(student_id)

    # -- per-student edits -----------------------------------------------

    def set_status(self, student_id: str, status: AttendanceStatus | str) -> None:
        self.ledger.set_status(student_id, status)

    def set_arrival_time(self, student_id: str, time: str) -> bool:
        try:
            self.ledger.set_arrival_time(student_id, time)
        except ValidationError as e:
            self.notifier.warning(e.message)
            return False
        return True

    def set_remarks(self, student_id: str, text: str) -> None:
        self.ledger.set_remarks(student_id, text)

    # -- bulk ------------------------------------------------------------

    def mark_all_visible(self, status: AttendanceStatus | str) -> int:
        return self.bulk.mark_all_visible(status)

    def clear_all(self) -> int:
        return self.bulk.clear_all()

    def undo(self) -> bool:
        return self.bulk.undo()

    # -- submission ------------------------------------------------------

    async def submit(self) -> SubmissionResult | None:
        """Submit every marked record.

        On any success the workflow reports to ``on_submitted`` and closes;
        on total failure it stays open with the ledger intact.
        """
        subject = self.filters.subject_code
        submitted_date = self.filters.date
        result = await self.submitter.submit()
        if result is not None and result.succeeded:
            if self.on_submitted is not None:
                self.on_submitted(
                    {
                        "date": submitted_date.isoformat() if submitted_date else None,
                        "subject": subject,
                        "students_count": result.success_count,
                    }
                )
            self.close()
        return result

    async def submit_single(
        self,
        registration_number: str,
        status: AttendanceStatus | str = AttendanceStatus.PRESENT,
        arrival_time: str | None = None,
        remarks: str = "",
    ) -> bool:
        return await self.submitter.submit_single(
            registration_number, status, arrival_time, remarks
        )
