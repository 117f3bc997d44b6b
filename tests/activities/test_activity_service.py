from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.field_service.field_service.activities.service import ActivityFilters, ActivityService
from src.field_service.field_service.common.datetime_utils import minutes_between
from src.field_service.field_service.core.enums import ActivityType
from src.field_service.field_service.core.exceptions import NotFoundError, ValidationError
from src.field_service.field_service.geocoding.resolver import LocationResolver

NOW = datetime(2024, 6, 1, 11, 0)


@pytest.fixture
def service(activities_repo, attendance_repo, geocoder):
    return ActivityService(activities_repo, attendance_repo, locations=LocationResolver(geocoder))


@pytest.fixture
def checked_in(attendance_repo):
    return attendance_repo.seed(7, datetime(2024, 6, 1, 9))


def work(**overrides):
    data = {
        "activity_type": "TICKET_WORK",
        "title": "Replace compressor",
        "start_time": "2024-06-01T10:00:00",
    }
    data.update(overrides)
    return data


def test_logging_work_requires_check_in_today(service, attendance_repo):
    attendance_repo.seed(7, datetime(2024, 5, 31, 9))

    with pytest.raises(ValidationError, match="Check-in required"):
        service.create_activity(7, work(), now=NOW)


def test_create_activity_computes_duration(service, checked_in):
    entry = service.create_activity(7, work(end_time="2024-06-01T10:45:00", ticket_id="42"), now=NOW)

    assert entry.user_id == 7
    assert entry.activity_type == ActivityType.TICKET_WORK
    assert entry.duration == 45
    assert entry.ticket_id == 42
    assert entry.metadata == {}


def test_create_activity_geocodes_coordinate_string(service, checked_in, geocoder):
    entry = service.create_activity(7, work(location="12.9716, 77.5946"), now=NOW)

    assert (entry.latitude, entry.longitude) == (12.9716, 77.5946)
    assert entry.location == "221B Baker Street"
    assert geocoder.calls == [(12.9716, 77.5946)]


def test_plain_address_is_kept_without_geocoding(service, checked_in, geocoder):
    entry = service.create_activity(7, work(location="Client office"), now=NOW)

    assert entry.location == "Client office"
    assert entry.latitude is None
    assert geocoder.calls == []


@pytest.mark.parametrize(
    "data",
    [
        work(activity_type="GOSSIP"),
        work(activity_type=None),
        work(title="  "),
        work(start_time=None),
        work(end_time="2024-06-01T09:00:00"),
        work(metadata=["not", "a", "dict"]),
    ],
)
def test_create_activity_validation(service, checked_in, data):
    with pytest.raises(ValidationError):
        service.create_activity(7, data, now=NOW)


def test_update_sets_end_time_and_keeps_other_fields(service, checked_in):
    entry = service.create_activity(7, work(description="first visit", location="Client office"), now=NOW)

    updated = service.update_activity(7, entry.activity_id, {"end_time": "2024-06-01T11:30:00"})

    assert updated.duration == 90
    assert updated.description == "first visit"
    assert updated.location == "Client office"


def test_update_with_new_coordinates_regeocodes(service, checked_in, geocoder):
    entry = service.create_activity(7, work(), now=NOW)

    updated = service.update_activity(7, entry.activity_id, {"latitude": 1.5, "longitude": 2.5})

    assert (updated.latitude, updated.longitude) == (1.5, 2.5)
    assert updated.location == "221B Baker Street"


def test_update_of_someone_elses_activity_is_not_found(service, activities_repo):
    aid = activities_repo.seed(9, datetime(2024, 6, 1, 10))

    with pytest.raises(NotFoundError):
        service.update_activity(7, aid, {"description": "mine now"})


def test_list_activities_filters_and_paginates(service, activities_repo):
    for hour in (8, 10, 12):
        activities_repo.seed(7, datetime(2024, 6, 1, hour))
    activities_repo.seed(7, datetime(2024, 6, 1, 14), activity_type=ActivityType.TRAVEL)
    activities_repo.seed(9, datetime(2024, 6, 1, 9))

    page = service.list_activities(7, ActivityFilters(), page=1, limit=2)
    assert [a.start_time.hour for a in page.items] == [14, 12]
    assert page.total == 4

    only_work = service.list_activities(7, ActivityFilters(activity_type=ActivityType.TICKET_WORK))
    assert [a.start_time.hour for a in only_work.items] == [12, 10, 8]


def test_stats_breaks_down_by_type(service, activities_repo):
    activities_repo.seed(7, datetime(2024, 5, 30, 9), duration=90)
    activities_repo.seed(7, datetime(2024, 5, 31, 9), duration=30)
    activities_repo.seed(7, datetime(2024, 5, 31, 14), activity_type=ActivityType.TRAVEL, duration=60)
    activities_repo.seed(7, datetime(2024, 4, 1, 9), duration=600)

    stats = service.stats(7, period="month", now=NOW)

    assert stats["total_activities"] == 3
    assert stats["total_duration"] == 180
    assert stats["total_hours"] == 3
    assert stats["activity_type_breakdown"]["TICKET_WORK"] == {"count": 2, "total_duration": 120}
    assert stats["activity_type_breakdown"]["TRAVEL"] == {"count": 1, "total_duration": 60}


def test_admin_adds_activity_for_record_owner(service, attendance_repo):
    sid = attendance_repo.seed(9, datetime(2024, 5, 31, 9))

    entry = service.admin_add_activity(
        1,
        sid,
        {
            "activity_type": "MEETING",
            "title": "Customer review",
            "start_time": "2024-05-31T15:00:00",
            "end_time": "2024-05-31T16:00:00",
            "description": "Forgot to log",
        },
    )

    assert entry.user_id == 9
    assert entry.duration == 60
    assert entry.description == "Forgot to log (Added by admin)"
    assert entry.metadata == {"added_by_admin": True, "added_by_id": 1}


def test_admin_activity_without_description(service, attendance_repo):
    sid = attendance_repo.seed(9, datetime(2024, 5, 31, 9))

    entry = service.admin_add_activity(1, sid, work())

    assert entry.description == "Added by admin"


def test_admin_activity_for_unknown_record(service):
    with pytest.raises(NotFoundError):
        service.admin_add_activity(1, 404, work())


def test_create_activity_with_utc_start_and_local_end(service, checked_in):
    local_start = datetime(2024, 6, 1, 10, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)

    entry = service.create_activity(7, work(start_time="2024-06-01T10:00:00Z", end_time="2024-06-03T11:00:00"), now=NOW)

    assert entry.start_time == local_start
    assert entry.start_time.tzinfo is None
    assert entry.duration == minutes_between(local_start, datetime(2024, 6, 3, 11))


def test_create_activity_with_offset_timestamps(service, checked_in):
    entry = service.create_activity(
        7,
        work(start_time="2024-06-01T10:00:00+05:30", end_time="2024-06-01T11:30:00+05:30"),
        now=NOW,
    )

    assert entry.start_time.tzinfo is None
    assert entry.end_time.tzinfo is None
    assert entry.duration == 90
