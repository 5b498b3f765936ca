"""Filter state for the manual attendance form.

Holds the selected department, year, study type, subject and date, plus the
free-text search and sort order applied to the fetched roster. Setters do
no validation beyond type coercion; required-field checks happen at submit
time.

Each change is published as a FilterChange to subscribers. Only changes to
ROSTER_FIELDS or SUBJECT_FIELDS invalidate fetched data; search and sort are
applied in memory.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

from src.attendance.logging import get_logger
from src.attendance.models import Department, FilterSelection, StudyType, Year

logger = get_logger(__name__)

# Fields whose change alters which students belong to the roster
ROSTER_FIELDS: frozenset[str] = frozenset({"department", "year", "type"})
# Fields whose change alters which subjects are offered
SUBJECT_FIELDS: frozenset[str] = frozenset({"department", "year"})


class SortKey(str, Enum):
    NAME = "name"
    REGISTRATION_NUMBER = "registration_number"


@dataclass(frozen=True)
class FilterChange:
    field: str
    old: Any
    new: Any

    @property
    def invalidates_roster(self) -> bool:
        return self.field in ROSTER_FIELDS

    @property
    def invalidates_subjects(self) -> bool:
        return self.field in SUBJECT_FIELDS


Listener = Callable[[FilterChange], None]


class FilterState:
    def __init__(self, today: date | None = None) -> None:
        self._listeners: list[Listener] = []
        self.department: Department | None = None
        self.year: Year | None = None
        self.type: StudyType | None = None
        self.subject_code: str | None = None
        self.date: date | None = today or date.today()
        self.search_term: str = ""
        self.sort_key: SortKey = SortKey.NAME
        self.sort_descending: bool = False

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _set(self, name: str, value: Any) -> bool:
        old = getattr(self, name)
        if old == value:
            return False
        setattr(self, name, value)
        change = FilterChange(name, old, value)
        logger.debug("filter_changed", field=name, old=str(old), new=str(value))
        for listener in list(self._listeners):
            listener(change)
        return True

    def set_department(self, department: Department | str | None) -> None:
        value = Department(department) if department else None
        if self._set("department", value):
            self.set_subject(None)

    def set_year(self, year: Year | str | None) -> None:
        value = Year(year) if year else None
        if self._set("year", value):
            self.set_subject(None)

    def set_type(self, study_type: StudyType | str | None) -> None:
        self._set("type", StudyType(study_type) if study_type else None)

    def set_subject(self, subject_code: str | None) -> None:
        self._set("subject_code", subject_code or None)

    def set_date(self, value: date | str | None) -> None:
        if isinstance(value, str):
            value = date.fromisoformat(value) if value else None
        self._set("date", value)

    def set_search(self, term: str) -> None:
        self._set("search_term", term)

    def set_sort(self, key: SortKey | str, descending: bool = False) -> None:
        self._set("sort_key", SortKey(key))
        self._set("sort_descending", descending)

    def selection(self) -> FilterSelection:
        return FilterSelection(
            department=self.department,
            year=self.year,
            type=self.type,
            subject_code=self.subject_code,
            date=self.date,
        )

    def reset(self, today: date | None = None) -> None:
        """Return every field to its initial value, publishing each change."""
        self.set_department(None)
        self.set_year(None)
        self.set_type(None)
        self.set_subject(None)
        self.set_date(today or date.today())
        self.set_search("")
        self.set_sort(SortKey.NAME)
