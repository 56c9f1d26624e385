"""GTFS static feed loader."""

import csv
import io
import logging
import os
import zipfile
from typing import Callable, Dict, List, Optional, TypeVar

import requests

from .config import FEED_FILES, GTFS_FEED_URL, REQUEST_TIMEOUT
from .models import (
    CalendarDateRecord,
    CalendarRecord,
    FeedTables,
    RouteRecord,
    StopRecord,
    StopTimeRecord,
    TripRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Columns GTFS marks optional but without which a table's rows cannot be used
EXPECTED_COLUMNS = {
    "trips": ("direction_id",),
}


def parse_gtfs_time(value: Optional[str]) -> Optional[int]:
    """
    Convert a GTFS HH:MM[:SS] time to minutes since midnight.

    Hours past 23 are kept as-is, so "24:14:00" becomes 1454.
    Returns None for empty or malformed values.
    """
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
    except ValueError:
        return None
    if hours < 0 or not 0 <= minutes < 60:
        return None
    return hours * 60 + minutes


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip() == "1"


def _int(value: Optional[str], default: Optional[int] = None) -> int:
    value = (value or "").strip()
    if not value:
        if default is None:
            raise ValueError("missing integer field")
        return default
    return int(value)


def _float(value: Optional[str]) -> Optional[float]:
    value = (value or "").strip()
    return float(value) if value else None


def _parse_stop(row: Dict[str, str]) -> StopRecord:
    return StopRecord(
        stop_id=row["stop_id"],
        stop_name=row.get("stop_name") or "",
        stop_lat=_float(row.get("stop_lat")),
        location_type=_int(row.get("location_type"), default=0),
        parent_station=(row.get("parent_station") or "").strip(),
    )


def _parse_trip(row: Dict[str, str]) -> TripRecord:
    return TripRecord(
        trip_id=row["trip_id"],
        service_id=row["service_id"],
        direction_id=_int(row.get("direction_id")),
        headsign=row.get("trip_headsign") or "",
        route_id=row.get("route_id") or "",
        train_number=row.get("trip_short_name") or row["trip_id"],
    )


def _parse_stop_time(row: Dict[str, str]) -> StopTimeRecord:
    # Non-timepoint stops may leave departure_time empty
    minute = parse_gtfs_time(row.get("departure_time"))
    if minute is None:
        minute = parse_gtfs_time(row.get("arrival_time"))
    if minute is None:
        raise ValueError(f"no usable time for trip {row.get('trip_id')}")
    return StopTimeRecord(
        trip_id=row["trip_id"],
        stop_id=row["stop_id"],
        departure_minute=minute,
        stop_sequence=_int(row.get("stop_sequence"), default=0),
    )


def _parse_calendar(row: Dict[str, str]) -> CalendarRecord:
    return CalendarRecord(
        service_id=row["service_id"],
        monday=_flag(row.get("monday")),
        tuesday=_flag(row.get("tuesday")),
        wednesday=_flag(row.get("wednesday")),
        thursday=_flag(row.get("thursday")),
        friday=_flag(row.get("friday")),
        saturday=_flag(row.get("saturday")),
        sunday=_flag(row.get("sunday")),
        start_date=(row.get("start_date") or "").strip(),
        end_date=(row.get("end_date") or "").strip(),
    )


def _parse_calendar_date(row: Dict[str, str]) -> CalendarDateRecord:
    return CalendarDateRecord(
        service_id=row["service_id"],
        date=row["date"].strip(),
        exception_type=_int(row.get("exception_type")),
    )


def _parse_route(row: Dict[str, str]) -> RouteRecord:
    return RouteRecord(
        route_id=row["route_id"],
        short_name=row.get("route_short_name") or "",
        long_name=row.get("route_long_name") or "",
    )


class GTFSLoader:
    """Loads the GTFS tables needed to build a schedule snapshot."""

    def load_from_url(self, url: str = GTFS_FEED_URL) -> FeedTables:
        """Download a GTFS zip and load it."""
        logger.info(f"Downloading GTFS data from {url}")
        try:
            response = requests.get(url, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to download GTFS data: {e}")
            raise

        with zipfile.ZipFile(io.BytesIO(response.content)) as zip_file:
            return self._load_from_archive(zip_file)

    def load_from_zip(self, zip_path: str) -> FeedTables:
        """Load GTFS data from a local zip archive."""
        logger.info(f"Loading GTFS data from {zip_path}")
        with zipfile.ZipFile(zip_path) as zip_file:
            return self._load_from_archive(zip_file)

    def load_from_directory(self, feed_dir: str) -> FeedTables:
        """
        Load GTFS data from a directory of CSV files.

        Raises:
            FileNotFoundError: If one of the required tables is missing.
        """
        logger.info(f"Loading GTFS data from {feed_dir}")
        contents = {}
        for table, filename in FEED_FILES.items():
            path = os.path.join(feed_dir, filename)
            with open(path, "r", encoding="utf-8-sig", newline="") as f:
                contents[table] = f.read()
        return self.load_from_strings(contents)

    def _load_from_archive(self, zip_file: zipfile.ZipFile) -> FeedTables:
        # Some agencies nest the tables in a folder inside the archive
        by_basename = {os.path.basename(name): name for name in zip_file.namelist()}
        contents = {}
        for table, filename in FEED_FILES.items():
            if filename not in by_basename:
                raise FileNotFoundError(f"{filename} not found in GTFS archive")
            contents[table] = zip_file.read(by_basename[filename]).decode("utf-8-sig")
        return self.load_from_strings(contents)

    def load_from_strings(self, contents: Dict[str, str]) -> FeedTables:
        """Parse already-read table contents keyed by table name (see FEED_FILES)."""
        feed = FeedTables(
            stops=self._parse_table(contents["stops"], _parse_stop, "stops"),
            trips=self._parse_table(contents["trips"], _parse_trip, "trips"),
            stop_times=self._parse_table(contents["stop_times"], _parse_stop_time, "stop_times"),
            calendar=self._parse_table(contents["calendar"], _parse_calendar, "calendar"),
            calendar_dates=self._parse_table(
                contents["calendar_dates"], _parse_calendar_date, "calendar_dates"
            ),
            routes=self._parse_table(contents["routes"], _parse_route, "routes"),
        )
        logger.info(
            f"Loaded {len(feed.stops)} stops, {len(feed.trips)} trips, "
            f"{len(feed.stop_times)} stop times and {len(feed.routes)} routes"
        )
        return feed

    @staticmethod
    def _parse_table(
        csv_content: str, parse_row: Callable[[Dict[str, str]], T], table: str
    ) -> List[T]:
        """Parse every row of a table, skipping rows that cannot be read."""
        reader = csv.DictReader(io.StringIO(csv_content.lstrip("\ufeff")))
        missing = [c for c in EXPECTED_COLUMNS.get(table, ()) if c not in (reader.fieldnames or [])]
        if missing:
            logger.warning(f"{table} has no {', '.join(missing)} column; its rows will be skipped")
        records: List[T] = []
        skipped = 0

        for row in reader:
            try:
                records.append(parse_row(row))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                skipped += 1
                logger.debug(f"Skipping malformed {table} row {row}: {e}")

        if skipped:
            logger.info(f"Skipped {skipped} malformed rows in {table}")
        return records
