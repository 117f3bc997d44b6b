"""Example: consolidate a day of sessions without Flask or a database.

Controllers stay thin; the merging and flagging rules live in plain functions.
"""

from datetime import date, datetime

from src.field_service.field_service.attendance.consolidation import consolidate
from src.field_service.field_service.attendance.model import AttendanceSession
from src.field_service.field_service.core.enums import AttendanceStatus, Role
from src.field_service.field_service.users.model import User


def main():
    day = date(2024, 6, 1)
    sessions = [
        AttendanceSession(1, 7, datetime(2024, 6, 1, 8), datetime(2024, 6, 1, 12), total_hours=4, status=AttendanceStatus.CHECKED_OUT),
        AttendanceSession(2, 7, datetime(2024, 6, 1, 13), datetime(2024, 6, 1, 18, 30), total_hours=5.5, status=AttendanceStatus.CHECKED_OUT),
    ]
    roster = [
        User(7, "Asha", "asha@example.com", Role.SERVICE_PERSON),
        User(9, "Ravi", "ravi@example.com", Role.SERVICE_PERSON),
    ]

    for record in consolidate(sessions, roster, day, {7: 3}, as_of=datetime(2024, 6, 1, 20)):
        flags = ", ".join(f.type.value for f in record.flags) or "-"
        print(f"user={record.user_id} status={record.status.value} hours={record.total_hours} flags={flags}")


if __name__ == "__main__":
    main()
