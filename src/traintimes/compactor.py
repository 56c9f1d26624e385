"""Compacts GTFS feed tables into a schedule snapshot."""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .config import AGENCY_NAME, EXCLUDED_STATION_KEYWORDS
from .models import (
    CalendarDateRecord,
    CalendarRecord,
    Departure,
    Direction,
    FeedTables,
    HolidayOverride,
    RouteRecord,
    RouteType,
    ServiceCalendarEntry,
    ServiceType,
    Snapshot,
    Station,
    StationTimetable,
    StopRecord,
    StopTimeRecord,
    TripRecord,
)

logger = logging.getLogger(__name__)

STATION_LOCATION_TYPE = 1
EXCEPTION_ADDED = 1
EXCEPTION_REMOVED = 2


def clean_station_name(name: str, agency_name: str = AGENCY_NAME) -> str:
    """Strip trailing " Station" and agency suffixes from a stop name."""
    suffixes = [" Station"]
    if agency_name:
        suffixes.append(f" {agency_name}")

    name = name.strip()
    stripped = True
    while stripped:
        stripped = False
        for suffix in suffixes:
            if name.endswith(suffix) and len(name) > len(suffix):
                name = name[: -len(suffix)].rstrip()
                stripped = True
    return name


def build_stations(stops: Iterable[StopRecord], agency_name: str = AGENCY_NAME) -> List[Station]:
    """
    Select the parent stations of the line, ordered north to south.

    Shuttle and elevator entries are excluded.
    """
    candidates = []
    for stop in stops:
        if stop.location_type != STATION_LOCATION_TYPE:
            continue
        if any(keyword in stop.stop_name for keyword in EXCLUDED_STATION_KEYWORDS):
            continue
        latitude = stop.stop_lat if stop.stop_lat is not None else 0.0
        name = clean_station_name(stop.stop_name, agency_name)
        candidates.append((latitude, Station(id=stop.stop_id, name=name)))

    # sorted() is stable, so stations at the same latitude keep feed order
    candidates = sorted(candidates, key=lambda item: -item[0])
    return [station for _, station in candidates]


def build_stop_parents(stops: Iterable[StopRecord]) -> Dict[str, str]:
    """Map every platform stop to its parent station."""
    stop_to_parent: Dict[str, str] = {}
    for stop in stops:
        if stop.parent_station:
            stop_to_parent[stop.stop_id] = stop.parent_station
        # A parent station is its own parent
        elif stop.location_type == STATION_LOCATION_TYPE:
            stop_to_parent.setdefault(stop.stop_id, stop.stop_id)
    return stop_to_parent


def build_trip_index(trips: Iterable[TripRecord]) -> Dict[str, TripRecord]:
    return {trip.trip_id: trip for trip in trips}


def build_route_types(routes: Iterable[RouteRecord]) -> Dict[str, RouteType]:
    route_types = {}
    for route in routes:
        name = route.short_name or route.long_name
        route_types[route.route_id] = RouteType.from_name(name)
    return route_types


def build_service_calendar(calendar: Iterable[CalendarRecord]) -> Dict[str, ServiceCalendarEntry]:
    return {
        entry.service_id: ServiceCalendarEntry(weekday=entry.monday, weekend=entry.saturday)
        for entry in calendar
    }


def classify_service(service_id: str, services: Mapping[str, ServiceCalendarEntry]) -> ServiceType:
    """Services that only exist through calendar_dates are holiday specials."""
    entry = services.get(service_id)
    if entry is None:
        return ServiceType.MODIFIED
    return entry.service_type


def build_holiday_exceptions(
    calendar_dates: Iterable[CalendarDateRecord],
    services: Mapping[str, ServiceCalendarEntry],
) -> Dict[str, HolidayOverride]:
    """
    Reduce calendar_dates to one schedule override per date.

    A date that adds a service unknown to calendar.txt runs a modified
    schedule. Otherwise a date that removes a weekday service runs the
    weekend schedule. Dates matching neither rule follow the normal
    weekday/weekend pattern and are left out of the map.
    """
    exceptions_by_date: Dict[str, List[CalendarDateRecord]] = {}
    for exception in calendar_dates:
        exceptions_by_date.setdefault(exception.date, []).append(exception)

    holidays: Dict[str, HolidayOverride] = {}
    for date in sorted(exceptions_by_date):
        exceptions = exceptions_by_date[date]
        adds_modified = any(
            e.exception_type == EXCEPTION_ADDED
            and classify_service(e.service_id, services) is ServiceType.MODIFIED
            for e in exceptions
        )
        removes_weekday = any(
            e.exception_type == EXCEPTION_REMOVED
            and classify_service(e.service_id, services) is ServiceType.WEEKDAY
            for e in exceptions
        )
        if adds_modified:
            holidays[date] = HolidayOverride.MODIFIED
        elif removes_weekday:
            holidays[date] = HolidayOverride.WEEKEND
    return holidays


def _dedupe(departures: List[Departure]) -> Tuple[Departure, ...]:
    """Sort by minute and drop repeated (minute, train, service) entries, keeping the first."""
    seen = set()
    result = []
    for departure in sorted(departures, key=lambda d: d.minute):
        key = (departure.minute, departure.train_number, departure.service_type)
        if key in seen:
            continue
        seen.add(key)
        result.append(departure)
    return tuple(result)


def build_timetables(
    stop_times: Iterable[StopTimeRecord],
    trips: Mapping[str, TripRecord],
    stop_parents: Mapping[str, str],
    route_types: Mapping[str, RouteType],
    services: Mapping[str, ServiceCalendarEntry],
) -> Dict[str, StationTimetable]:
    """Build the per-station departure lists from stop_times."""
    buckets: Dict[str, Dict[Direction, List[Departure]]] = {}
    skipped = 0

    for stop_time in stop_times:
        trip = trips.get(stop_time.trip_id)
        station_id = stop_parents.get(stop_time.stop_id)
        if trip is None or station_id is None:
            skipped += 1
            continue
        try:
            direction = Direction.from_direction_id(trip.direction_id)
        except ValueError:
            skipped += 1
            continue

        departure = Departure(
            minute=stop_time.departure_minute,
            train_number=trip.train_number,
            route_type=route_types.get(trip.route_id, RouteType.LOCAL),
            service_type=classify_service(trip.service_id, services),
        )
        station_buckets = buckets.setdefault(
            station_id, {Direction.NORTHBOUND: [], Direction.SOUTHBOUND: []}
        )
        station_buckets[direction].append(departure)

    if skipped:
        logger.info(f"Skipped {skipped} stop times with unknown trips or stops")

    return {
        station_id: StationTimetable(
            northbound=_dedupe(station_buckets[Direction.NORTHBOUND]),
            southbound=_dedupe(station_buckets[Direction.SOUTHBOUND]),
        )
        for station_id, station_buckets in buckets.items()
    }


def _validity_window(calendar: List[CalendarRecord]) -> Tuple[Optional[str], Optional[str]]:
    start_dates = [entry.start_date for entry in calendar if entry.start_date]
    end_dates = [entry.end_date for entry in calendar if entry.end_date]
    return (
        min(start_dates) if start_dates else None,
        max(end_dates) if end_dates else None,
    )


def compact_feed(feed: FeedTables, agency_name: str = AGENCY_NAME) -> Snapshot:
    """
    Build a schedule snapshot from GTFS feed tables.

    Records that reference unknown trips or stops are skipped. The result
    depends only on the feed, so compacting the same feed twice gives the
    same snapshot.
    """
    stations = build_stations(feed.stops, agency_name)
    stop_parents = build_stop_parents(feed.stops)
    trips = build_trip_index(feed.trips)
    route_types = build_route_types(feed.routes)
    services = build_service_calendar(feed.calendar)
    holidays = build_holiday_exceptions(feed.calendar_dates, services)
    schedule = build_timetables(feed.stop_times, trips, stop_parents, route_types, services)

    active_stations = tuple(
        station for station in stations
        if station.id in schedule and not schedule[station.id].is_empty
    )
    dropped = len(stations) - len(active_stations)
    if dropped:
        logger.debug(f"Dropped {dropped} stations without departures")

    valid_from, valid_to = _validity_window(feed.calendar)
    logger.info(
        f"Compacted {len(active_stations)} stations, {len(holidays)} holiday exceptions, "
        f"valid {valid_from} to {valid_to}"
    )
    return Snapshot(
        stations=active_stations,
        schedule=MappingProxyType(schedule),
        holidays=MappingProxyType(holidays),
        valid_from=valid_from,
        valid_to=valid_to,
    )
