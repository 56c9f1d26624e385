"""traintimes - Scheduled commuter rail departures from a compact GTFS snapshot."""

__version__ = "0.1.0"

from .models import (
    Departure,
    DepartureBoard,
    Direction,
    HolidayOverride,
    RouteType,
    ServiceDay,
    ServiceType,
    Snapshot,
    Station,
    StationTimetable,
)
from .compactor import compact_feed
from .departure_tracker import DepartureTracker
from .gtfs_loader import GTFSLoader
from .schedule import (
    bucket_departures,
    current_service_minutes,
    format_clock_time,
    query_departures,
    resolve_service_day,
)
from .snapshot import SnapshotError, load_snapshot, write_snapshot

__all__ = [
    "DepartureTracker",
    "GTFSLoader",
    "compact_feed",
    "query_departures",
    "resolve_service_day",
    "current_service_minutes",
    "format_clock_time",
    "bucket_departures",
    "load_snapshot",
    "write_snapshot",
    "SnapshotError",
    "Departure",
    "DepartureBoard",
    "Direction",
    "HolidayOverride",
    "RouteType",
    "ServiceDay",
    "ServiceType",
    "Snapshot",
    "Station",
    "StationTimetable",
]
