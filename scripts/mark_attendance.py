"""Mark class attendance for a filtered group of students from the command line.

Loads the student roster for a department/year/type, marks every visible
student with one status, applies per-student overrides, and submits the
batch to the attendance backend.

Run with: python scripts/mark_attendance.py --department HNDIT --year "1st Year" \
              --type "Full Time" --subject IT101
Absentees: python scripts/mark_attendance.py ... --absent REG001 --absent REG007
Late:      python scripts/mark_attendance.py ... --late REG003 --time 09:05
Search:    python scripts/mark_attendance.py ... --search kumar --all-status Present
Dry run:   python scripts/mark_attendance.py ... --dry-run
Subjects:  python scripts/mark_attendance.py --department HNDIT --year "1st Year" --list-subjects

Exit codes:
  0 = success (payloads or result summary as JSON on stdout)
  1 = validation or submission failure (message on stderr)
"""

import argparse
import asyncio
import json
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.attendance.client import ApiSession, AttendanceApiClient  # noqa: E402
from src.attendance.config import LOCATIONS, get_config  # noqa: E402
from src.attendance.errors import ValidationError  # noqa: E402
from src.attendance.logging import setup_logging  # noqa: E402
from src.attendance.models import (  # noqa: E402
    AttendanceStatus,
    Department,
    StudyType,
    Year,
)
from src.attendance.workflow import ManualAttendanceWorkflow  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean for JSON."""
    print(msg, file=sys.stderr)


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Mark class attendance for a filtered group of students.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--department", choices=[d.value for d in Department])
    parser.add_argument("--year", choices=[y.value for y in Year])
    parser.add_argument("--type", dest="study_type", choices=[t.value for t in StudyType])
    parser.add_argument("--subject", help="Course code, e.g. IT101.")
    parser.add_argument("--date", help="Class date as YYYY-MM-DD (default: today).")
    parser.add_argument("--location", choices=LOCATIONS, help="Class location.")
    parser.add_argument("--time", help="Default arrival time as HH:MM (default: now).")
    parser.add_argument("--search", default="", help="Only mark students matching this text.")
    parser.add_argument(
        "--all-status",
        choices=[s.value for s in AttendanceStatus],
        default=AttendanceStatus.PRESENT.value,
        help="Status applied to every visible student (default: Present).",
    )
    for status in ("absent", "late", "excused", "present"):
        parser.add_argument(
            f"--{status}",
            action="append",
            default=[],
            metavar="REG",
            help=f"Registration number to mark {status.capitalize()} (repeatable).",
        )
    parser.add_argument(
        "--loose",
        action="store_true",
        help="Do not require department, year and type to be selected.",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the payloads as JSON without submitting.",
    )
    mode.add_argument(
        "--list-subjects",
        action="store_true",
        help="Print the subjects offered for the selected department/year and exit.",
    )
    return parser.parse_args()


def _apply_overrides(workflow: ManualAttendanceWorkflow, args: argparse.Namespace) -> list[str]:
    """Apply per-student status flags. Returns unknown registration numbers."""
    by_registration = {s.registration_number: s for s in workflow.roster.roster}
    unknown = []
    overrides = [
        (AttendanceStatus.ABSENT, args.absent),
        (AttendanceStatus.LATE, args.late),
        (AttendanceStatus.EXCUSED, args.excused),
        (AttendanceStatus.PRESENT, args.present),
    ]
    for status, registrations in overrides:
        for reg in registrations:
            student = by_registration.get(reg)
            if student is None:
                unknown.append(reg)
                continue
            workflow.set_status(student.id, status)
    return unknown


async def main(args: argparse.Namespace) -> int:
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    client = AttendanceApiClient(ApiSession.from_config(config))
    workflow = ManualAttendanceWorkflow(
        client, config, require_full_filters=not args.loose
    )
    try:
        if args.time:
            workflow.default_arrival_time = args.time
        if args.location:
            workflow.location = args.location

        filters = workflow.filters
        filters.set_department(args.department)
        filters.set_year(args.year)
        filters.set_type(args.study_type)
        if args.date:
            filters.set_date(args.date)
        await workflow.open()

        if args.list_subjects:
            subjects = [s.model_dump(by_alias=True) for s in workflow.subjects]
            print(json.dumps(subjects, indent=2, ensure_ascii=False))
            return 0

        filters.set_subject(args.subject)
        filters.set_search(args.search)
        _log(f"{workflow.visible_count} students found")

        workflow.mark_all_visible(args.all_status)
        unknown = _apply_overrides(workflow, args)
        if unknown:
            _log(f"Unknown registration numbers: {', '.join(unknown)}")
            return 1
        _log(f"{workflow.marked_count} students marked")

        if args.dry_run:
            try:
                workflow.submitter.validate()
            except ValidationError as e:
                _log(f"ERROR: {e.message}")
                return 1
            payloads = [p.to_wire() for p in workflow.submitter.build_payloads()]
            print(json.dumps(payloads, indent=2, ensure_ascii=False))
            return 0

        result = await workflow.submit()
        for notice in workflow.notifier.drain():
            _log(f"[{notice.level.value}] {notice.message}")
        if result is None or not result.succeeded:
            return 1
        print(json.dumps(result.model_dump(), indent=2))
        return 0
    finally:
        client.close()


if __name__ == "__main__":
    args = _parse_args()
    try:
        sys.exit(asyncio.run(main(args)))
    except KeyboardInterrupt:
        sys.exit(130)
