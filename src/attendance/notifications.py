"""User-visible notices raised by the attendance workflow."""

from dataclasses import dataclass, field
from enum import Enum

from src.attendance.logging import get_logger

logger = get_logger(__name__)


class NoticeLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str


@dataclass
class Notifier:
    """Collects notices in the order they were raised and logs each one.

    A front end drains ``notices`` to show toasts; tests read it directly.
    """

    notices: list[Notice] = field(default_factory=list)

    def _push(self, level: NoticeLevel, message: str) -> None:
        self.notices.append(Notice(level, message))
        logger.info("notice", level=level.value, message=message)

    def info(self, message: str) -> None:
        self._push(NoticeLevel.INFO, message)

    def success(self, message: str) -> None:
        self._push(NoticeLevel.SUCCESS, message)

    def warning(self, message: str) -> None:
        self._push(NoticeLevel.WARNING, message)

    def error(self, message: str) -> None:
        self._push(NoticeLevel.ERROR, message)

    @property
    def last(self) -> Notice | None:
        return self.notices[-1] if self.notices else None

    def messages(self, level: NoticeLevel | None = None) -> list[str]:
        return [n.message for n in self.notices if level is None or n.level == level]

    def drain(self) -> list[Notice]:
        drained, self.notices = self.notices, []
        return drained
