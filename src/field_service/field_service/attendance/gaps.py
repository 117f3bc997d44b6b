from __future__ import annotations

from typing import Iterable, Iterator

from ..activities.model import ActivityLogEntry
from ..common.datetime_utils import minutes_between
from ..core.constants import ACTIVITY_GAP_MINUTES
from .model import GapRecord


def compute_gaps(activities: Iterable[ActivityLogEntry], *, threshold_minutes: int = ACTIVITY_GAP_MINUTES) -> Iterator[GapRecord]:
    """Yield idle stretches longer than threshold_minutes between consecutive activities.

    Entries are sorted by start time here; an entry without an end time is
    treated as ending when it started.
    """
    ordered = sorted(activities, key=lambda a: a.start_time)
    for prev, current in zip(ordered, ordered[1:]):
        prev_end = prev.end_time or prev.start_time
        gap_seconds = (current.start_time - prev_end).total_seconds()
        if gap_seconds > threshold_minutes * 60:
            yield GapRecord(start=prev_end, end=current.start_time, duration_minutes=minutes_between(prev_end, current.start_time))
