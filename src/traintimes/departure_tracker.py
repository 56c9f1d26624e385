"""Main departure tracker class."""

import logging
from datetime import datetime
from typing import List, Optional

from zoneinfo import ZoneInfo

from .config import TIMEZONE
from .models import DepartureBoard, Direction, Snapshot, Station
from .schedule import (
    bucket_departures,
    current_service_minutes,
    infer_direction,
    query_departures,
    resolve_service_day,
)
from .snapshot import fetch_snapshot, load_snapshot

logger = logging.getLogger(__name__)


class DepartureTracker:
    """
    Looks up scheduled departures between two stations on the line.

    This class provides methods to:
    - Find stations by name or ID
    - Get the upcoming trains from an origin that stop at a destination,
      grouped into Next, Later and Rest of day

    One snapshot is held for the whole session and is never modified.
    """

    def __init__(self, snapshot: Snapshot, timezone: str = TIMEZONE):
        """
        Initialize the tracker.

        Args:
            snapshot: Compacted schedule data.
            timezone: IANA name of the line's local timezone.
        """
        self.snapshot = snapshot
        self.tz = ZoneInfo(timezone)

    @classmethod
    def from_file(cls, path: str, timezone: str = TIMEZONE) -> "DepartureTracker":
        """Create a tracker from a snapshot JSON file."""
        return cls(load_snapshot(path), timezone=timezone)

    @classmethod
    def from_url(cls, url: str, timezone: str = TIMEZONE) -> "DepartureTracker":
        """Create a tracker from a published snapshot."""
        return cls(fetch_snapshot(url), timezone=timezone)

    def get_station(self, station_input: str) -> Station:
        """
        Get a station by ID or name.

        Args:
            station_input: Either a stop ID (e.g., "70011") or station name (e.g., "Palo Alto").

        Returns:
            Station object.

        Raises:
            ValueError: If station not found.
        """
        station = self.snapshot.get_station(station_input)
        if station is not None:
            return station

        stations = self.find_stations_by_name(station_input)
        if not stations:
            raise ValueError(f"No station found matching '{station_input}'")

        # Prefer an exact name match over a partial one
        for station in stations:
            if station.name.lower() == station_input.strip().lower():
                return station
        return stations[0]

    def find_stations_by_name(self, name: str) -> List[Station]:
        """Find stations by name (partial, case-insensitive match), north to south."""
        name_lower = name.strip().lower()
        if not name_lower:
            return []
        return [s for s in self.snapshot.stations if name_lower in s.name.lower()]

    def now(self) -> datetime:
        """Current time in the line's timezone."""
        return datetime.now(self.tz)

    def get_departures(
        self,
        origin_input: str,
        destination_input: str,
        now: Optional[datetime] = None,
        direction: Optional[Direction] = None,
    ) -> DepartureBoard:
        """
        Get upcoming departures from origin to destination.

        Args:
            origin_input: Origin station ID or name.
            destination_input: Destination station ID or name.
            now: Time to query for. Defaults to the current local time.
            direction: Travel direction. Inferred from station order if omitted.

        Returns:
            DepartureBoard with the ordered departures and their display groups.

        Raises:
            ValueError: If a station is not found, or origin and destination
                are the same station.
        """
        origin = self.get_station(origin_input)
        destination = self.get_station(destination_input)
        if direction is None:
            direction = infer_direction(self.snapshot, origin.id, destination.id)
        else:
            direction = Direction(direction)

        if now is None:
            now = self.now()

        service_day = resolve_service_day(now, self.snapshot.holidays, tz=self.tz)
        now_minutes = current_service_minutes(now, tz=self.tz)
        self._check_validity(service_day.date.strftime("%Y%m%d"))

        departures = query_departures(
            self.snapshot,
            origin.id,
            destination.id,
            direction,
            service_day.service_type,
            now_minutes,
        )
        logger.debug(
            f"{len(departures)} {service_day.service_type.name.lower()} departures "
            f"from {origin.name} to {destination.name} after minute {now_minutes}"
        )

        return DepartureBoard(
            origin=origin,
            destination=destination,
            direction=direction,
            service_day=service_day,
            now_minutes=now_minutes,
            departures=departures,
            buckets=bucket_departures(departures),
            last_updated=now,
        )

    def _check_validity(self, service_date: str) -> None:
        valid_from = self.snapshot.valid_from
        valid_to = self.snapshot.valid_to
        if (valid_from and service_date < valid_from) or (valid_to and service_date > valid_to):
            logger.warning(
                f"Service date {service_date} is outside the schedule's "
                f"validity window {valid_from} to {valid_to}"
            )
