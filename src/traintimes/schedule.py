"""
Departure queries against a schedule snapshot.

Everything here is a pure function of its arguments: no I/O, and the
snapshot is never modified, so repeated or concurrent calls are safe.

Service days start at 3:00 AM local time. Trips that leave between
midnight and 3:00 AM belong to the previous day's schedule and are stored
with minute values past 1440 (e.g. 1:30 AM is 1530).
"""

from datetime import datetime, timedelta, tzinfo
from typing import List, Mapping, Optional, Sequence, Union

from .config import (
    LATER_BUCKET_SIZE,
    MINUTES_PER_DAY,
    NEXT_BUCKET_SIZE,
    QUERY_HORIZON_MINUTES,
    SERVICE_DAY_START_HOUR,
)
from .models import (
    Departure,
    DepartureBuckets,
    Direction,
    HolidayOverride,
    ServiceDay,
    ServiceType,
    Snapshot,
)


def _to_local(now: datetime, tz: Optional[tzinfo]) -> datetime:
    # Naive timestamps are taken to already be in local time
    if tz is not None and now.tzinfo is not None:
        return now.astimezone(tz)
    return now


def resolve_service_day(
    now: datetime,
    holidays: Mapping[str, Union[HolidayOverride, int]],
    tz: Optional[tzinfo] = None,
) -> ServiceDay:
    """
    Find the service day a timestamp falls in and which timetable it runs.

    Before 3:00 AM the previous calendar date is used. The holiday map is
    checked first; otherwise Saturday and Sunday run the weekend timetable
    and every other day the weekday one.

    Args:
        now: Current time.
        holidays: Holiday exception map ("YYYYMMDD" -> override).
        tz: Local timezone of the line. Aware timestamps are converted to it.
    """
    local = _to_local(now, tz)
    service_date = local.date()
    if local.hour < SERVICE_DAY_START_HOUR:
        service_date -= timedelta(days=1)

    override = holidays.get(service_date.strftime("%Y%m%d"))
    if override is not None:
        return ServiceDay(date=service_date, service_type=HolidayOverride(override).service_type)

    if service_date.weekday() >= 5:
        return ServiceDay(date=service_date, service_type=ServiceType.WEEKEND)
    return ServiceDay(date=service_date, service_type=ServiceType.WEEKDAY)


def current_service_minutes(now: datetime, tz: Optional[tzinfo] = None) -> int:
    """Minutes since midnight, counting 12:00-2:59 AM as 1440-1619."""
    local = _to_local(now, tz)
    minutes = local.hour * 60 + local.minute
    if local.hour < SERVICE_DAY_START_HOUR:
        minutes += MINUTES_PER_DAY
    return minutes


def format_clock_time(minute: int) -> str:
    """Format service-day minutes as a 12-hour clock time, e.g. 1530 -> "1:30am"."""
    hour = (minute // 60) % 24
    suffix = "pm" if hour >= 12 else "am"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute % 60:02d}{suffix}"


def query_departures(
    snapshot: Snapshot,
    origin_id: str,
    dest_id: str,
    direction: Direction,
    service_type: ServiceType,
    now_minutes: int,
) -> List[Departure]:
    """
    Upcoming departures from origin that also stop at the destination.

    Only departures of the given service type between now_minutes and 2:00 AM
    of the following morning are returned, in ascending time order. A train
    counts as stopping at the destination if its number appears in the
    destination's departures for the same direction and service type.
    Unknown stations give an empty list.
    """
    dest_trains = {
        d.train_number
        for d in snapshot.departures(dest_id, direction)
        if d.service_type == service_type
    }
    if not dest_trains:
        return []

    departures = [
        d for d in snapshot.departures(origin_id, direction)
        if d.service_type == service_type
        and now_minutes <= d.minute <= QUERY_HORIZON_MINUTES
        and d.train_number in dest_trains
    ]
    departures.sort(key=lambda d: d.minute)
    return departures


def bucket_departures(departures: Sequence[Departure]) -> DepartureBuckets:
    """Split an ordered departure list into Next, Later and Rest of day."""
    later_end = NEXT_BUCKET_SIZE + LATER_BUCKET_SIZE
    return DepartureBuckets(
        next=tuple(departures[:NEXT_BUCKET_SIZE]),
        later=tuple(departures[NEXT_BUCKET_SIZE:later_end]),
        rest=tuple(departures[later_end:]),
    )


def infer_direction(snapshot: Snapshot, origin_id: str, dest_id: str) -> Direction:
    """
    Work out the travel direction between two stations.

    Snapshot stations are ordered north to south, so a destination listed
    before the origin lies to the north.

    Raises:
        ValueError: If either station is unknown or they are the same.
    """
    order = [station.id for station in snapshot.stations]
    if origin_id not in order:
        raise ValueError(f"Station {origin_id} not found")
    if dest_id not in order:
        raise ValueError(f"Station {dest_id} not found")
    if origin_id == dest_id:
        raise ValueError("Origin and destination are the same station")

    if order.index(dest_id) < order.index(origin_id):
        return Direction.NORTHBOUND
    return Direction.SOUTHBOUND
