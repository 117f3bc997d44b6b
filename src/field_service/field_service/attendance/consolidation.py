"""Attendance consolidation engine.

Turns raw check-in/check-out sessions into one record per (user, calendar day),
adds placeholder records for roster members without any session on the target
date, and attaches diagnostic flags. Pure: no I/O, no ambient clock.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Mapping, Optional, Sequence

from ..core.constants import ABSENT_ID_PREFIX, ABSENT_NOTE, NOTES_SEPARATOR
from ..core.enums import AttendanceStatus, FlagSeverity, FlagType
from ..core.exceptions import InvalidInputError, ValidationError
from ..users.model import User
from .flags.activity_rules import MultipleSessionsRule
from .flags.base import FlagRule
from .flags.factory import FlagRuleFactory
from .model import AttendanceFlag, AttendanceSession, ConsolidatedDayRecord, DayAccumulator

# Higher wins when sessions of the same day disagree.
STATUS_PRIORITY: dict[AttendanceStatus, int] = {
    AttendanceStatus.CHECKED_IN: 5,
    AttendanceStatus.LATE: 4,
    AttendanceStatus.EARLY_CHECKOUT: 3,
    AttendanceStatus.CHECKED_OUT: 2,
    AttendanceStatus.ABSENT: 1,
}


def absent_record_id(user_id: int, work_date: date) -> str:
    return f"{ABSENT_ID_PREFIX}-{int(user_id)}-{work_date.strftime('%Y%m%d')}"


def is_absent_record_id(record_id) -> bool:
    return isinstance(record_id, str) and record_id.startswith(f"{ABSENT_ID_PREFIX}-")


def parse_absent_record_id(record_id: str) -> tuple[int, date]:
    """Inverse of absent_record_id."""
    parts = str(record_id).split("-")
    if len(parts) != 3 or parts[0] != ABSENT_ID_PREFIX:
        raise ValidationError("Invalid absent record ID format")
    try:
        return int(parts[1]), datetime.strptime(parts[2], "%Y%m%d").date()
    except ValueError:
        raise ValidationError("Invalid absent record ID format")


def append_note(existing: Optional[str], incoming: Optional[str], *, separator: str = NOTES_SEPARATOR) -> Optional[str]:
    """Append-only note merge; text already present is not repeated."""
    if not incoming:
        return existing
    if not existing:
        return incoming
    if incoming in existing:
        return existing
    return f"{existing}{separator}{incoming}"


def consolidate(
    sessions: Iterable[AttendanceSession],
    roster: Sequence[User],
    target_date: date,
    activity_counts: Mapping[int, int],
    *,
    as_of: datetime,
    rules: Optional[Sequence[FlagRule]] = None,
) -> list[ConsolidatedDayRecord]:
    """Merge sessions per (user, day), synthesize absentees for target_date, derive flags.

    Sessions are processed in check-in order, so the result does not depend on
    the order of the input. Absent placeholders are only created for
    target_date; other dates in a multi-day range never get them.
    """
    rules = tuple(rules) if rules is not None else FlagRuleFactory().build()

    ordered = sorted((_checked(s) for s in sessions), key=_session_sort_key)

    groups: dict[tuple[int, date], DayAccumulator] = {}
    for session in ordered:
        key = (int(session.user_id), session.check_in_at.date())
        acc = groups.get(key)
        if acc is None:
            groups[key] = _start_group(session)
        else:
            _merge_into(acc, session)

    records = [
        _with_flags(_freeze(acc), activity_counts.get(acc.user_id, 0), as_of=as_of, rules=rules)
        for acc in groups.values()
    ]

    seen: set[int] = set()
    for member in roster:
        user_id = int(member.user_id)
        if user_id in seen or (user_id, target_date) in groups:
            continue
        seen.add(user_id)
        records.append(absent_record(user_id, target_date))

    return records


def flatten(records: Iterable[ConsolidatedDayRecord]) -> list[AttendanceSession]:
    """All real sessions behind a list of consolidated records."""
    return [s for r in records for s in r.sessions]


def _checked(session: AttendanceSession) -> AttendanceSession:
    if session.user_id is None:
        raise InvalidInputError(f"Attendance session {session.id!r} has no user id")
    if session.check_in_at is None:
        raise InvalidInputError(f"Attendance session {session.id!r} has no check-in time")
    return session


def _session_sort_key(session: AttendanceSession):
    return session.check_in_at, str(session.id)


def _start_group(session: AttendanceSession) -> DayAccumulator:
    return DayAccumulator(
        user_id=int(session.user_id),
        work_date=session.check_in_at.date(),
        first=session,
        earliest_check_in=session.check_in_at,
        latest_check_out=session.check_out_at,
        check_in_location=session.check_in_location,
        check_out_location=session.check_out_location if session.check_out_at else None,
        total_hours=float(session.total_hours or 0),
        status=session.status,
        notes=session.notes,
        sessions=[session],
    )


def _merge_into(acc: DayAccumulator, session: AttendanceSession) -> None:
    acc.sessions.append(session)
    acc.total_hours += float(session.total_hours or 0)

    if session.check_in_at < acc.earliest_check_in:
        acc.earliest_check_in = session.check_in_at
        acc.check_in_location = session.check_in_location
        acc.first = session

    if session.check_out_at and (acc.latest_check_out is None or session.check_out_at > acc.latest_check_out):
        acc.latest_check_out = session.check_out_at
        acc.check_out_location = session.check_out_location

    if STATUS_PRIORITY.get(session.status, 0) > STATUS_PRIORITY.get(acc.status, 0):
        acc.status = session.status

    acc.notes = append_note(acc.notes, session.notes)


def _freeze(acc: DayAccumulator) -> ConsolidatedDayRecord:
    return ConsolidatedDayRecord(
        id=acc.first.id,
        user_id=acc.user_id,
        work_date=acc.work_date,
        earliest_check_in=acc.earliest_check_in,
        latest_check_out=acc.latest_check_out,
        check_in_location=acc.check_in_location,
        check_out_location=acc.check_out_location,
        total_hours=round(acc.total_hours, 2),
        status=acc.status,
        notes=acc.notes,
        sessions=tuple(acc.sessions),
    )


def _with_flags(
    record: ConsolidatedDayRecord,
    activity_count: int,
    *,
    as_of: datetime,
    rules: Sequence[FlagRule],
) -> ConsolidatedDayRecord:
    if record.status == AttendanceStatus.ABSENT:
        # Stored ABSENT rows get no timing/activity diagnostics.
        flags = [_absent_flag()]
        extra = MultipleSessionsRule().evaluate(record, activity_count=activity_count, as_of=as_of)
        if extra is not None:
            flags.append(extra)
        return replace(record, flags=tuple(flags), activity_count=int(activity_count))

    flags = []
    for rule in rules:
        flag = rule.evaluate(record, activity_count=activity_count, as_of=as_of)
        if flag is not None:
            flags.append(flag)
    return replace(record, flags=tuple(flags), activity_count=int(activity_count))


def absent_record(user_id: int, work_date: date) -> ConsolidatedDayRecord:
    return ConsolidatedDayRecord(
        id=absent_record_id(user_id, work_date),
        user_id=user_id,
        work_date=work_date,
        earliest_check_in=None,
        latest_check_out=None,
        check_in_location=None,
        check_out_location=None,
        total_hours=0.0,
        status=AttendanceStatus.ABSENT,
        notes=ABSENT_NOTE,
        sessions=(),
        flags=(_absent_flag(),),
        activity_count=0,
    )


def _absent_flag() -> AttendanceFlag:
    return AttendanceFlag(FlagType.ABSENT, "No attendance record", FlagSeverity.ERROR)
