"""Serialization of schedule snapshots to and from JSON."""

import json
import logging
import os
from types import MappingProxyType
from typing import Any, Dict, Tuple

import requests

from .config import REQUEST_TIMEOUT, SNAPSHOT_FILE, SNAPSHOT_MIN_FILE
from .models import Departure, Direction, HolidayOverride, Snapshot, Station, StationTimetable

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Raised when a snapshot document cannot be decoded."""


def snapshot_to_dict(snapshot: Snapshot) -> Dict[str, Any]:
    """
    Encode a snapshot as a JSON-compatible document.

    Departures are written positionally as
    [minute, trainNumber, routeType, serviceType] to keep the file small.
    """
    return {
        "stations": [{"id": station.id, "name": station.name} for station in snapshot.stations],
        "schedule": {
            station_id: {
                Direction.NORTHBOUND.value: [d.to_row() for d in timetable.northbound],
                Direction.SOUTHBOUND.value: [d.to_row() for d in timetable.southbound],
            }
            for station_id, timetable in snapshot.schedule.items()
        },
        "holidays": {date: int(override) for date, override in snapshot.holidays.items()},
        "validFrom": snapshot.valid_from,
        "validTo": snapshot.valid_to,
    }


def _decode_holiday(date: str, value: Any) -> HolidayOverride:
    # Older snapshots stored a boolean "runs weekend service" flag
    if value is True:
        return HolidayOverride.WEEKEND
    try:
        return HolidayOverride(value)
    except ValueError:
        raise SnapshotError(f"Invalid holiday override {value!r} for {date}")


def snapshot_from_dict(data: Dict[str, Any]) -> Snapshot:
    """Decode a snapshot document produced by snapshot_to_dict()."""
    try:
        stations = tuple(Station(id=s["id"], name=s["name"]) for s in data["stations"])
        schedule = {
            station_id: StationTimetable(
                northbound=tuple(Departure.from_row(row) for row in buckets.get("n", [])),
                southbound=tuple(Departure.from_row(row) for row in buckets.get("s", [])),
            )
            for station_id, buckets in data["schedule"].items()
        }
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise SnapshotError(f"Malformed snapshot: {e}") from e

    raw_holidays = data.get("holidays") or {}
    if not isinstance(raw_holidays, dict):
        raise SnapshotError(f"Malformed snapshot: holidays must be an object, got {raw_holidays!r}")
    holidays = {
        date: _decode_holiday(date, value)
        for date, value in raw_holidays.items()
        if value is not False
    }
    return Snapshot(
        stations=stations,
        schedule=MappingProxyType(schedule),
        holidays=MappingProxyType(holidays),
        valid_from=data.get("validFrom"),
        valid_to=data.get("validTo"),
    )


def dumps(snapshot: Snapshot, pretty: bool = False) -> str:
    document = snapshot_to_dict(snapshot)
    if pretty:
        return json.dumps(document, indent=2, ensure_ascii=False)
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False)


def loads(content: str) -> Snapshot:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Snapshot is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot document must be a JSON object")
    return snapshot_from_dict(data)


def write_snapshot(snapshot: Snapshot, directory: str = ".") -> Tuple[str, str]:
    """
    Write the pretty-printed and minified snapshot files.

    Both documents are encoded before anything is written.

    Returns:
        (pretty_path, minified_path)
    """
    pretty = dumps(snapshot, pretty=True)
    minified = dumps(snapshot)

    pretty_path = os.path.join(directory, SNAPSHOT_FILE)
    min_path = os.path.join(directory, SNAPSHOT_MIN_FILE)
    with open(pretty_path, "w", encoding="utf-8") as f:
        f.write(pretty)
    with open(min_path, "w", encoding="utf-8") as f:
        f.write(minified)

    logger.info(f"Wrote snapshot to {pretty_path} and {min_path}")
    return pretty_path, min_path


def load_snapshot(path: str = SNAPSHOT_MIN_FILE) -> Snapshot:
    """Load a snapshot from a local JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        snapshot = loads(f.read())
    logger.info(f"Loaded snapshot with {len(snapshot.stations)} stations from {path}")
    return snapshot


def fetch_snapshot(url: str) -> Snapshot:
    """Download a published snapshot."""
    logger.debug(f"Fetching snapshot from {url}")
    try:
        response = requests.get(url, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Failed to fetch snapshot from {url}: {e}")
        raise
    return loads(response.content.decode("utf-8"))
