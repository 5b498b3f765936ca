from __future__ import annotations

from datetime import date

from src.attendance.filters import FilterState, SortKey
from src.attendance.models import Department, Year


def _recording_state():
    state = FilterState(today=date(2024, 3, 1))
    changes = []
    state.subscribe(changes.append)
    return state, changes


def test_department_change_clears_subject():
    state, _ = _recording_state()
    state.set_department("HNDIT")
    state.set_subject("IT101")
    state.set_department("HNDA")
    assert state.department is Department.HNDA
    assert state.subject_code is None


def test_year_change_clears_subject():
    state, _ = _recording_state()
    state.set_department("HNDIT")
    state.set_subject("IT101")
    state.set_year("2nd Year")
    assert state.year is Year.SECOND
    assert state.subject_code is None


def test_type_and_date_changes_keep_subject():
    state, _ = _recording_state()
    state.set_subject("IT101")
    state.set_type("Part Time")
    state.set_date("2024-03-05")
    assert state.subject_code == "IT101"
    assert state.date == date(2024, 3, 5)


def test_setting_same_value_publishes_nothing():
    state, changes = _recording_state()
    state.set_department("HNDIT")
    changes.clear()
    state.set_department("HNDIT")
    assert changes == []


def test_search_and_sort_do_not_invalidate_fetched_data():
    state, changes = _recording_state()
    state.set_search("amal")
    state.set_sort(SortKey.REGISTRATION_NUMBER, descending=True)
    assert changes
    assert not any(c.invalidates_roster or c.invalidates_subjects for c in changes)


def test_roster_fields_invalidate_roster():
    state, changes = _recording_state()
    state.set_type("Full Time")
    assert [c.field for c in changes] == ["type"]
    assert changes[0].invalidates_roster
    assert not changes[0].invalidates_subjects


def test_selection_snapshot_and_reset():
    state, _ = _recording_state()
    state.set_department("HNDIT")
    state.set_year("1st Year")
    state.set_subject("IT101")
    selection = state.selection()
    assert selection.department is Department.HNDIT
    assert selection.subject_code == "IT101"

    state.reset(date(2024, 4, 1))
    assert state.department is None
    assert state.year is None
    assert state.subject_code is None
    assert state.date == date(2024, 4, 1)
    # Snapshot is unaffected by later changes
    assert selection.year is Year.FIRST
