"""Bulk operations over the students currently visible in the form."""

from collections.abc import Callable

from src.attendance.ledger import AttendanceLedger
from src.attendance.logging import get_logger
from src.attendance.models import AttendanceStatus, Student
from src.attendance.notifications import Notifier

log = get_logger(__name__)


class BulkOperators:
    """Apply one change to every visible student in a single undoable step.

    ``visible`` returns the students passing the active filters and search,
    which may be fewer than the fetched roster. Students outside that set
    are never touched.
    """

    def __init__(
        self,
        ledger: AttendanceLedger,
        visible: Callable[[], list[Student]],
        notifier: Notifier,
    ) -> None:
        self.ledger = ledger
        self.visible = visible
        self.notifier = notifier

    def _visible_ids(self) -> list[str]:
        return [s.id for s in self.visible() if s.id in self.ledger]

    def mark_all_visible(self, status: AttendanceStatus | str) -> int:
        """Set ``status`` on every visible student. Returns how many changed."""
        status = AttendanceStatus(status)
        ids = self._visible_ids()
        if not ids:
            log.debug("bulk_skipped", operation="mark_all", reason="nothing_visible")
            return 0

        self.ledger.checkpoint()
        for sid in ids:
            self.ledger.set_status(sid, status, record_history=False, override_time=True)
        log.info("bulk_marked", status=status.value, students=len(ids))
        return len(ids)

    def clear_all(self) -> int:
        """Reset every visible student to the default record."""
        ids = self._visible_ids()
        if not ids:
            log.debug("bulk_skipped", operation="clear_all", reason="nothing_visible")
            return 0

        self.ledger.reset(ids)
        log.info("bulk_cleared", students=len(ids))
        return len(ids)

    def undo(self) -> bool:
        if not self.ledger.undo():
            self.notifier.info("Nothing to undo")
            return False
        log.info("bulk_undone", remaining=len(self.ledger.history))
        return True
