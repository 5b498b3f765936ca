"""Attendance ledger: per-student attendance state for one open workflow.

Invariants kept by every status change:
  - Absent records have an empty arrival time.
  - Present and Late records have an arrival time (the default one unless
    the user typed a time for that student).

Mutations only touch the named student. Each public mutation first pushes
a snapshot of the whole ledger onto a bounded undo history.
"""

from collections import deque
from collections.abc import Iterable

from src.attendance.errors import ValidationError
from src.attendance.logging import get_logger
from src.attendance.models import AttendanceRecord, AttendanceStatus, validate_time

logger = get_logger(__name__)

Snapshot = dict[str, AttendanceRecord]


class UndoHistory:
    """Bounded LIFO of ledger snapshots; the oldest is dropped when full."""

    def __init__(self, capacity: int = 10) -> None:
        self._stack: deque[Snapshot] = deque(maxlen=capacity)

    def push(self, snapshot: Snapshot) -> None:
        self._stack.append(snapshot)

    def pop(self) -> Snapshot | None:
        return self._stack.pop() if self._stack else None

    def clear(self) -> None:
        self._stack.clear()

    def __len__(self) -> int:
        return len(self._stack)


class AttendanceLedger:
    def __init__(self, default_arrival_time: str, undo_capacity: int = 10) -> None:
        self.default_arrival_time = default_arrival_time
        self.history = UndoHistory(undo_capacity)
        self._records: dict[str, AttendanceRecord] = {}

    @property
    def default_arrival_time(self) -> str:
        return self._default_arrival_time

    @default_arrival_time.setter
    def default_arrival_time(self, value: str) -> None:
        if not value:
            raise ValueError("Default arrival time must not be empty")
        self._default_arrival_time = validate_time(value)

    # -- reads -----------------------------------------------------------

    def __contains__(self, student_id: object) -> bool:
        return student_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def get(self, student_id: str) -> AttendanceRecord:
        try:
            return self._records[student_id].model_copy()
        except KeyError:
            raise KeyError(f"Student {student_id!r} is not in the ledger") from None

    def snapshot(self) -> Snapshot:
        """Independent copy of every record."""
        return {sid: rec.model_copy() for sid, rec in self._records.items()}

    def marked(self) -> Snapshot:
        return {sid: rec.model_copy() for sid, rec in self._records.items() if rec.marked}

    @property
    def marked_count(self) -> int:
        return sum(1 for rec in self._records.values() if rec.marked)

    # -- history ---------------------------------------------------------

    def checkpoint(self) -> None:
        self.history.push(self.snapshot())

    def undo(self) -> bool:
        """Restore the most recent snapshot. Returns False if there is none."""
        previous = self.history.pop()
        if previous is None:
            return False
        self._records = previous
        logger.debug("ledger_restored", records=len(previous))
        return True

    # -- mutations -------------------------------------------------------

    def seed(self, student_ids: Iterable[str]) -> None:
        """Replace the ledger with a default record for each student.

        A new roster starts a new ledger, so the undo history is dropped too.
        """
        self._records = {sid: AttendanceRecord() for sid in student_ids}
        self.history.clear()
        logger.debug("ledger_seeded", records=len(self._records))

    def _record(self, student_id: str) -> AttendanceRecord:
        if student_id not in self._records:
            raise KeyError(f"Student {student_id!r} is not in the ledger")
        return self._records[student_id]

    def set_status(
        self,
        student_id: str,
        status: AttendanceStatus | str,
        *,
        record_history: bool = True,
        override_time: bool = False,
    ) -> None:
        """Set a status, keeping the arrival-time invariants.

        With override_time, present-like statuses take the default time even
        where the user typed one.
        """
        status = AttendanceStatus(status)
        record = self._record(student_id)
        if record_history:
            self.checkpoint()

        updates: dict[str, object] = {"status": status, "marked": True}
        if status is AttendanceStatus.ABSENT:
            updates.update(arrival_time="", arrival_time_explicit=False)
        elif status.is_present_like and (
            override_time or not (record.arrival_time_explicit and record.arrival_time)
        ):
            updates.update(
                arrival_time=self.default_arrival_time, arrival_time_explicit=False
            )
        self._records[student_id] = record.model_copy(update=updates)

    def set_arrival_time(self, student_id: str, time: str) -> None:
        """Set an explicit arrival time.

        Raises:
            ValidationError: If the student is marked Absent or the time is malformed.
        """
        record = self._record(student_id)
        if record.status is AttendanceStatus.ABSENT:
            raise ValidationError("Arrival time cannot be set for an absent student")
        if not time and record.status.is_present_like:
            raise ValidationError("Arrival time is required for present or late students")
        try:
            validate_time(time)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        self.checkpoint()
        self._records[student_id] = record.model_copy(
            update={"arrival_time": time, "arrival_time_explicit": bool(time)}
        )

    def set_remarks(self, student_id: str, text: str) -> None:
        record = self._record(student_id)
        self.checkpoint()
        self._records[student_id] = record.model_copy(update={"remarks": text})

    def reset(self, student_ids: Iterable[str], *, record_history: bool = True) -> None:
        """Reinitialise each listed student that is in the ledger."""
        ids = [sid for sid in student_ids if sid in self._records]
        if record_history:
            self.checkpoint()
        for sid in ids:
            self._records[sid] = AttendanceRecord()

    def clear(self) -> None:
        self._records = {}
        self.history.clear()
