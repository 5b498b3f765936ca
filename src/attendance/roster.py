"""Roster fetcher: students and subjects for the current filter selection.

Students are always fetched as the full user list and narrowed client-side
(role, department, year, type, active flag). Subjects are fetched per
department and narrowed client-side by the year-to-semester mapping.

Filter changes only mark the fetched data stale; refresh() performs the
network reads. Several filter changes between two refreshes therefore cost
a single fetch, and search/sort changes never cost one.
"""

import asyncio
from collections.abc import Callable, Iterable

from src.attendance.client import AttendanceApiClient
from src.attendance.errors import AttendanceError
from src.attendance.filters import FilterChange, FilterState, SortKey
from src.attendance.logging import get_logger
from src.attendance.models import YEAR_SEMESTERS, Student, Subject
from src.attendance.notifications import Notifier

log = get_logger(__name__)


def matches_search(student: Student, term: str) -> bool:
    """Case-insensitive substring match over name, registration number and email."""
    needle = term.strip().lower()
    if not needle:
        return True
    return any(
        needle in value.lower()
        for value in (student.name, student.registration_number, student.email)
    )


def filter_students(
    students: Iterable[Student],
    *,
    department: str | None = None,
    year: str | None = None,
    study_type: str | None = None,
) -> list[Student]:
    """Keep active students matching every filter that is set."""
    return [
        s
        for s in students
        if s.role == "student"
        and s.active
        and (not department or s.department == department)
        and (not year or s.year == year)
        and (not study_type or s.type == study_type)
    ]


def filter_subjects(subjects: Iterable[Subject], year: str | None = None) -> list[Subject]:
    """Keep subjects taught in the semesters of the given study year."""
    if not year:
        return list(subjects)
    semesters = next((v for k, v in YEAR_SEMESTERS.items() if k.value == year), None)
    if semesters is None:
        return list(subjects)
    return [s for s in subjects if s.semester in semesters]


def sort_students(
    students: Iterable[Student], key: SortKey, descending: bool = False
) -> list[Student]:
    if key is SortKey.REGISTRATION_NUMBER:
        sort_key = lambda s: s.registration_number.lower()  # noqa: E731
    else:
        sort_key = lambda s: s.name.lower()  # noqa: E731
    return sorted(students, key=sort_key, reverse=descending)


class RosterFetcher:
    def __init__(
        self,
        client: AttendanceApiClient,
        filters: FilterState,
        notifier: Notifier,
        on_roster_loaded: Callable[[list[Student]], None] | None = None,
    ) -> None:
        self.client = client
        self.filters = filters
        self.notifier = notifier
        self.on_roster_loaded = on_roster_loaded

        self._students: list[Student] = []
        self._subjects: list[Subject] = []
        self.roster_stale = True
        self.subjects_stale = True
        self.loading_students = False
        self.loading_subjects = False

        filters.subscribe(self._on_filter_change)

    def _on_filter_change(self, change: FilterChange) -> None:
        if change.invalidates_roster:
            self.roster_stale = True
        if change.invalidates_subjects:
            self.subjects_stale = True

    @property
    def is_loading(self) -> bool:
        return self.loading_students or self.loading_subjects

    @property
    def roster(self) -> list[Student]:
        """Students passing department, year and type filters."""
        f = self.filters
        return filter_students(
            self._students,
            department=f.department.value if f.department else None,
            year=f.year.value if f.year else None,
            study_type=f.type.value if f.type else None,
        )

    @property
    def visible(self) -> list[Student]:
        """Roster narrowed by the search term and ordered by the sort setting."""
        f = self.filters
        matching = [s for s in self.roster if matches_search(s, f.search_term)]
        return sort_students(matching, f.sort_key, f.sort_descending)

    @property
    def subjects(self) -> list[Subject]:
        f = self.filters
        return filter_subjects(self._subjects, f.year.value if f.year else None)

    def find_student(self, student_id: str) -> Student | None:
        return next((s for s in self._students if s.id == student_id), None)

    def find_by_registration(self, registration_number: str) -> Student | None:
        return next(
            (s for s in self._students if s.registration_number == registration_number),
            None,
        )

    async def refresh(self, *, force: bool = False) -> None:
        """Fetch whatever the last filter changes made stale.

        Reads already in flight are not duplicated. Failures are reported
        through the notifier and leave an empty result.
        """
        tasks = []
        if (force or self.roster_stale) and not self.loading_students:
            tasks.append(self.fetch_students())
        if (force or self.subjects_stale) and not self.loading_subjects:
            tasks.append(self.fetch_subjects())
        if not tasks:
            log.debug("refresh_skipped", loading=self.is_loading)
            return
        await asyncio.gather(*tasks)

    async def fetch_students(self) -> list[Student]:
        self.roster_stale = False
        self.loading_students = True
        try:
            self._students = await asyncio.to_thread(self.client.list_students)
        except AttendanceError as e:
            log.warning("students_fetch_failed", error=e.message)
            self.notifier.error("Failed to load students")
            self._students = []
        finally:
            self.loading_students = False

        roster = self.roster
        log.info("roster_fetched", fetched=len(self._students), roster=len(roster))
        if self.on_roster_loaded is not None:
            self.on_roster_loaded(roster)
        return roster

    async def fetch_subjects(self) -> list[Subject]:
        self.subjects_stale = False
        self.loading_subjects = True
        department = self.filters.department
        try:
            self._subjects = await asyncio.to_thread(
                self.client.list_subjects, department.value if department else None
            )
        except AttendanceError as e:
            log.warning("subjects_fetch_failed", error=e.message)
            self.notifier.error("Failed to load subjects")
            self._subjects = []
        finally:
            self.loading_subjects = False

        subjects = self.subjects
        log.info("subjects_fetched", fetched=len(self._subjects), offered=len(subjects))
        return subjects

    def clear(self) -> None:
        self._students = []
        self._subjects = []
        self.roster_stale = True
        self.subjects_stale = True
