from __future__ import annotations

import asyncio

import pytest

from src.attendance.models import AttendanceStatus
from tests.conftest import DEFAULT_TIME


@pytest.fixture
def opened(workflow):
    asyncio.run(workflow.open())
    workflow.filters.set_department("HNDIT")
    workflow.filters.set_year("1st Year")
    asyncio.run(workflow.refresh())
    # a, b, c (Full Time) and d (Part Time)
    return workflow


def test_mark_all_visible_present_sets_default_time(opened):
    opened.filters.set_search("HNDIT/FT")
    assert opened.mark_all_visible(AttendanceStatus.PRESENT) == 3
    for sid in "abc":
        record = opened.record(sid)
        assert record.status is AttendanceStatus.PRESENT
        assert record.arrival_time == DEFAULT_TIME
    # d is on the roster but hidden by the search
    assert not opened.record("d").marked


def test_mark_all_visible_overrides_explicit_times(opened):
    opened.set_status("a", "Present")
    opened.set_arrival_time("a", "09:45")
    opened.mark_all_visible("Late")
    assert opened.record("a").arrival_time == DEFAULT_TIME


def test_mark_all_visible_keeps_remarks(opened):
    opened.set_remarks("b", "medical note")
    opened.mark_all_visible("Absent")
    assert opened.record("b").remarks == "medical note"
    assert opened.record("b").arrival_time == ""


def test_clear_all_is_idempotent(opened):
    opened.mark_all_visible("Present")
    opened.set_remarks("a", "x")
    opened.clear_all()
    once = opened.ledger.snapshot()
    opened.clear_all()
    assert opened.ledger.snapshot() == once
    assert opened.marked_count == 0


def test_clear_all_only_touches_visible(opened):
    opened.mark_all_visible("Present")
    opened.filters.set_search("bimal")
    opened.clear_all()
    assert not opened.record("b").marked
    assert opened.record("a").status is AttendanceStatus.PRESENT


def test_undo_restores_state_before_bulk_mark(opened):
    opened.set_status("a", "Late")
    opened.set_arrival_time("a", "09:20")
    opened.set_remarks("c", "left early")
    before = opened.ledger.snapshot()

    opened.mark_all_visible("Absent")
    assert opened.undo()
    assert opened.ledger.snapshot() == before


def test_bulk_mark_is_a_single_undo_step(opened):
    opened.mark_all_visible("Present")
    opened.mark_all_visible("Absent")
    opened.undo()
    assert all(opened.record(sid).status is AttendanceStatus.PRESENT for sid in "abcd")


def test_undo_with_empty_history_notifies(opened):
    assert not opened.undo()
    assert opened.notifier.last.message == "Nothing to undo"
