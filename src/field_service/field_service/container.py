from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .activities.mysql_activity_repository import MySQLActivityRepository
from .activities.repository import ActivityRepository
from .activities.service import ActivityService
from .attendance.factory import CheckoutStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.report_service import AttendanceReportService
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core import constants
from .database.connection import DBConfig, DatabaseConnection
from .geocoding.resolver import Geocoder, LocationResolver
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    activities_repo: ActivityRepository

    attendance_service: AttendanceService
    report_service: AttendanceReportService
    activity_service: ActivityService

    conn: Optional[DatabaseConnection] = None
    default_page_size: int = constants.DEFAULT_PAGE_SIZE


def wire(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    activities_repo: ActivityRepository,
    settings: Optional[dict] = None,
    geocoder: Optional[Geocoder] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build services on top of any repository implementations."""
    settings = settings or {}
    locations = LocationResolver(geocoder)
    strategy_factory = CheckoutStrategyFactory(
        cutoff_hour=int(settings.get("EARLY_CHECKOUT_CUTOFF_HOUR", constants.EARLY_CHECKOUT_CUTOFF_HOUR))
    )

    attendance_service = AttendanceService(
        attendance_repo,
        users_repo,
        activities_repo,
        locations=locations,
        strategy_factory=strategy_factory,
        auto_checkout_hour=int(settings.get("AUTO_CHECKOUT_HOUR", constants.AUTO_CHECKOUT_HOUR)),
    )
    report_service = AttendanceReportService(attendance_repo, users_repo, activities_repo)
    activity_service = ActivityService(activities_repo, attendance_repo, locations=locations)

    return Container(
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        activities_repo=activities_repo,
        attendance_service=attendance_service,
        report_service=report_service,
        activity_service=activity_service,
        conn=conn,
        default_page_size=int(settings.get("DEFAULT_PAGE_SIZE", constants.DEFAULT_PAGE_SIZE)),
    )


def build_container(*, db_config: dict, settings: Optional[dict] = None, geocoder: Optional[Geocoder] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return wire(
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        activities_repo=MySQLActivityRepository(conn),
        settings=settings,
        geocoder=geocoder,
        conn=conn,
    )
