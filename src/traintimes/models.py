"""Data models for the compact train schedule."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, IntEnum
from typing import List, Mapping, Optional, Sequence, Tuple

from .config import ROUTE_TYPE_NAMES


class RouteType(IntEnum):
    """Stopping pattern of a train."""
    LOCAL = 0
    LIMITED = 1
    EXPRESS = 2
    SOUTH_COUNTY = 3

    @classmethod
    def from_name(cls, name: Optional[str]) -> "RouteType":
        """Map a route display name to a RouteType. Unknown names are Local."""
        return cls(ROUTE_TYPE_NAMES.get((name or "").strip(), cls.LOCAL))


class ServiceType(IntEnum):
    """Calendar variant of the timetable."""
    WEEKDAY = 0
    WEEKEND = 1
    MODIFIED = 2


class HolidayOverride(IntEnum):
    """Value of a holiday exception map entry."""
    WEEKEND = 1
    MODIFIED = 2

    @property
    def service_type(self) -> ServiceType:
        if self is HolidayOverride.MODIFIED:
            return ServiceType.MODIFIED
        return ServiceType.WEEKEND


class Direction(str, Enum):
    """Travel direction, keyed the way the snapshot stores it."""
    NORTHBOUND = "n"
    SOUTHBOUND = "s"

    @classmethod
    def from_direction_id(cls, direction_id: int) -> "Direction":
        """GTFS direction_id 0 is northbound, 1 is southbound."""
        if direction_id == 0:
            return cls.NORTHBOUND
        if direction_id == 1:
            return cls.SOUTHBOUND
        raise ValueError(f"Unknown direction_id {direction_id}")

    @property
    def label(self) -> str:
        return "Northbound" if self is Direction.NORTHBOUND else "Southbound"


@dataclass(frozen=True)
class Station:
    """Represents a parent station on the line."""
    id: str
    name: str


@dataclass(frozen=True)
class Departure:
    """A scheduled departure of one train from one station."""
    minute: int  # Minutes since midnight of the service day, may exceed 1440
    train_number: str
    route_type: RouteType
    service_type: ServiceType

    def to_row(self) -> list:
        """Positional encoding used in the serialized snapshot."""
        return [self.minute, self.train_number, int(self.route_type), int(self.service_type)]

    @classmethod
    def from_row(cls, row: Sequence) -> "Departure":
        minute, train_number, route_type, service_type = row
        return cls(
            minute=int(minute),
            train_number=str(train_number),
            route_type=RouteType(route_type),
            service_type=ServiceType(service_type),
        )


@dataclass(frozen=True)
class StationTimetable:
    """Departures from one station, all service types interleaved."""
    northbound: Tuple[Departure, ...] = ()
    southbound: Tuple[Departure, ...] = ()

    def departures(self, direction: Direction) -> Tuple[Departure, ...]:
        if Direction(direction) is Direction.NORTHBOUND:
            return self.northbound
        return self.southbound

    @property
    def is_empty(self) -> bool:
        return not self.northbound and not self.southbound


@dataclass(frozen=True)
class ServiceCalendarEntry:
    """Day-of-week flags of a calendar.txt service."""
    weekday: bool
    weekend: bool

    @property
    def service_type(self) -> ServiceType:
        # Saturday wins; a service with neither flag (e.g. Sunday only) is weekend
        if self.weekend:
            return ServiceType.WEEKEND
        if self.weekday:
            return ServiceType.WEEKDAY
        return ServiceType.WEEKEND


@dataclass(frozen=True)
class Snapshot:
    """
    Compact schedule dataset produced by the compactor.

    Treated as an immutable value: the query engine reads it and never
    modifies it. The compactor and the decoder hand out read-only views
    of schedule and holidays.
    """
    stations: Tuple[Station, ...]
    schedule: Mapping[str, StationTimetable]
    holidays: Mapping[str, HolidayOverride]
    valid_from: Optional[str] = None
    valid_to: Optional[str] = None

    def get_station(self, station_id: str) -> Optional[Station]:
        for station in self.stations:
            if station.id == station_id:
                return station
        return None

    def timetable(self, station_id: str) -> StationTimetable:
        return self.schedule.get(station_id, StationTimetable())

    def departures(self, station_id: str, direction: Direction) -> Tuple[Departure, ...]:
        return self.timetable(station_id).departures(direction)


@dataclass(frozen=True)
class ServiceDay:
    """The operating day a timestamp belongs to and its timetable variant."""
    date: date
    service_type: ServiceType


@dataclass(frozen=True)
class DepartureBuckets:
    """Display grouping of an ordered departure list."""
    next: Tuple[Departure, ...] = ()
    later: Tuple[Departure, ...] = ()
    rest: Tuple[Departure, ...] = ()


@dataclass
class DepartureBoard:
    """Upcoming departures between two stations."""
    origin: Station
    destination: Station
    direction: Direction
    service_day: ServiceDay
    now_minutes: int
    departures: List[Departure]
    buckets: DepartureBuckets
    last_updated: datetime


# GTFS feed records, one per table. Numeric and boolean fields are parsed
# once by the loader.


@dataclass(frozen=True)
class StopRecord:
    stop_id: str
    stop_name: str
    stop_lat: Optional[float]
    location_type: int
    parent_station: str = ""


@dataclass(frozen=True)
class TripRecord:
    trip_id: str
    service_id: str
    direction_id: int
    headsign: str
    route_id: str
    train_number: str


@dataclass(frozen=True)
class StopTimeRecord:
    trip_id: str
    stop_id: str
    departure_minute: int
    stop_sequence: int = 0


@dataclass(frozen=True)
class CalendarRecord:
    service_id: str
    monday: bool
    tuesday: bool
    wednesday: bool
    thursday: bool
    friday: bool
    saturday: bool
    sunday: bool
    start_date: str
    end_date: str


@dataclass(frozen=True)
class CalendarDateRecord:
    service_id: str
    date: str  # YYYYMMDD
    exception_type: int  # 1 = service added, 2 = service removed


@dataclass(frozen=True)
class RouteRecord:
    route_id: str
    short_name: str
    long_name: str = ""


@dataclass
class FeedTables:
    """The six GTFS tables the compactor reads."""
    stops: List[StopRecord] = field(default_factory=list)
    trips: List[TripRecord] = field(default_factory=list)
    stop_times: List[StopTimeRecord] = field(default_factory=list)
    calendar: List[CalendarRecord] = field(default_factory=list)
    calendar_dates: List[CalendarDateRecord] = field(default_factory=list)
    routes: List[RouteRecord] = field(default_factory=list)
