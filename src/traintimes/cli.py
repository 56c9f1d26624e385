"""Command line entry points."""

import logging
import os
import sys
from typing import List, Optional

from .compactor import compact_feed
from .config import FEED_DIR, SNAPSHOT_MIN_FILE
from .departure_tracker import DepartureTracker
from .gtfs_loader import GTFSLoader
from .models import Departure, DepartureBoard, RouteType
from .schedule import format_clock_time
from .snapshot import write_snapshot

ROUTE_LABELS = {
    RouteType.LOCAL: "Local",
    RouteType.LIMITED: "Limited",
    RouteType.EXPRESS: "Express",
    RouteType.SOUTH_COUNTY: "South County",
}


def _setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def compact_main() -> int:
    """
    Build the schedule snapshot from the GTFS feed in ./gtfs.

    Writes schedule-data.json and schedule-data.min.json to the working
    directory. A missing feed file is fatal and nothing is written.
    """
    _setup_logging(logging.WARNING)

    feed = GTFSLoader().load_from_directory(FEED_DIR)
    snapshot = compact_feed(feed)
    _, min_path = write_snapshot(snapshot, ".")

    print("Generated schedule data:")
    print(f"- {len(snapshot.stations)} stations")
    print(f"- Valid from {snapshot.valid_from} to {snapshot.valid_to}")
    print(f"- {len(snapshot.holidays)} holiday exceptions")
    print(f"- Minified size: {os.path.getsize(min_path) / 1024:.1f} KB")
    return 0


def _print_group(title: str, departures: List[Departure]) -> None:
    if not departures:
        return
    print(f"\n{title}:")
    for departure in departures:
        time_str = format_clock_time(departure.minute)
        print(f"  {time_str:>8}  #{departure.train_number:<6} {ROUTE_LABELS[departure.route_type]}")


def print_board(board: DepartureBoard) -> None:
    print(f"\n{'=' * 50}")
    print(f"{board.origin.name} → {board.destination.name} ({board.direction.label})")
    print(
        f"{board.service_day.service_type.name.title()} service, "
        f"updated {board.last_updated.strftime('%H:%M:%S')}"
    )
    print(f"{'=' * 50}")

    if not board.departures:
        print("\nNo more trains today")
        return

    _print_group("Next", list(board.buckets.next))
    _print_group("Later", list(board.buckets.later))
    _print_group("Rest of day", list(board.buckets.rest))
    print()


def departures_main(argv: Optional[List[str]] = None) -> int:
    """Print upcoming departures: traintimes ORIGIN DESTINATION."""
    _setup_logging(logging.WARNING)
    args = sys.argv[1:] if argv is None else argv

    if len(args) != 2:
        print("Usage: traintimes ORIGIN DESTINATION")
        print("Stations can be given by stop ID or (partial) name, e.g. 'Palo Alto'")
        return 1

    try:
        tracker = DepartureTracker.from_file(SNAPSHOT_MIN_FILE)
    except FileNotFoundError:
        print(f"Error: {SNAPSHOT_MIN_FILE} not found. Run traintimes-compact first.")
        return 1

    try:
        board = tracker.get_departures(args[0], args[1])
    except ValueError as e:
        print(f"Error: {e}")
        matching = tracker.find_stations_by_name(args[0]) + tracker.find_stations_by_name(args[1])
        if matching:
            print("\nDid you mean:")
            for station in matching[:5]:
                print(f"  - {station.name} ({station.id})")
        return 1

    print_board(board)
    return 0


if __name__ == "__main__":
    sys.exit(departures_main())
