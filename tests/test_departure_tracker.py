"""Tests for DepartureTracker and the command line entry points."""

import io
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

# Add src to path so we can import traintimes
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from traintimes import cli
from traintimes.compactor import compact_feed
from traintimes.departure_tracker import DepartureTracker
from traintimes.gtfs_loader import GTFSLoader
from traintimes.models import DepartureBoard, Direction, ServiceType
from traintimes.snapshot import load_snapshot, write_snapshot

from feed_fixtures import FEED_CONTENTS, write_feed


class TestDepartureTracker(unittest.TestCase):
    """Test station lookup and departure boards."""

    def setUp(self):
        self.snapshot = compact_feed(GTFSLoader().load_from_strings(FEED_CONTENTS))
        self.tracker = DepartureTracker(self.snapshot)

    def test_get_station_by_id(self):
        station = self.tracker.get_station("pa")
        self.assertEqual(station.name, "Palo Alto")

    def test_get_station_by_name(self):
        self.assertEqual(self.tracker.get_station("palo").id, "pa")
        self.assertEqual(self.tracker.get_station("Millbrae").id, "mb")

    def test_get_station_not_found(self):
        with self.assertRaises(ValueError):
            self.tracker.get_station("NONEXISTENT")

    def test_find_stations_by_name(self):
        results = self.tracker.find_stations_by_name("a")
        self.assertEqual([s.id for s in results], ["sf", "mb", "pa"])
        self.assertEqual(self.tracker.find_stations_by_name("  "), [])

    def test_weekday_northbound(self):
        board = self.tracker.get_departures("Palo Alto", "San Francisco", now=datetime(2025, 11, 24, 5, 0))

        self.assertIsInstance(board, DepartureBoard)
        self.assertEqual(board.direction, Direction.NORTHBOUND)
        self.assertEqual(board.service_day.service_type, ServiceType.WEEKDAY)
        self.assertEqual(board.now_minutes, 300)
        self.assertEqual([d.train_number for d in board.departures], ["101", "102"])
        self.assertEqual(list(board.buckets.next), board.departures)
        self.assertEqual(board.buckets.later, ())

    def test_express_skips_intermediate_station(self):
        board = self.tracker.get_departures("pa", "mb", now=datetime(2025, 11, 24, 5, 0))
        self.assertEqual([d.train_number for d in board.departures], ["101"])

    def test_modified_holiday(self):
        board = self.tracker.get_departures("pa", "sf", now=datetime(2025, 11, 28, 6, 0))
        self.assertEqual(board.service_day.service_type, ServiceType.MODIFIED)
        self.assertEqual([d.train_number for d in board.departures], ["M101"])

    def test_weekend_holiday(self):
        board = self.tracker.get_departures("sf", "pa", now=datetime(2025, 12, 25, 12, 0))
        self.assertEqual(board.direction, Direction.SOUTHBOUND)
        self.assertEqual(board.service_day.service_type, ServiceType.WEEKEND)
        self.assertEqual([d.minute for d in board.departures], [1454])

    def test_late_night_uses_previous_service_day(self):
        # 00:30 Sunday still runs Saturday's schedule; 201 left San Francisco at 00:14
        now = datetime(2025, 11, 30, 0, 30)
        board = self.tracker.get_departures("sf", "pa", now=now)
        self.assertEqual(board.service_day.date.isoformat(), "2025-11-29")
        self.assertEqual(board.now_minutes, 1470)
        self.assertEqual(board.departures, [])

        board = self.tracker.get_departures("mb", "pa", now=now)
        self.assertEqual([d.train_number for d in board.departures], ["201"])

    def test_explicit_direction(self):
        board = self.tracker.get_departures(
            "pa", "sf", now=datetime(2025, 11, 24, 5, 0), direction=Direction.SOUTHBOUND
        )
        self.assertEqual(board.departures, [])

    def test_same_station(self):
        with self.assertRaises(ValueError):
            self.tracker.get_departures("pa", "Palo Alto", now=datetime(2025, 11, 24, 5, 0))

    def test_outside_validity_window_warns(self):
        with self.assertLogs("traintimes.departure_tracker", level="WARNING"):
            self.tracker.get_departures("pa", "sf", now=datetime(2026, 3, 2, 5, 0))

    def test_default_now_uses_local_time(self):
        with patch.object(DepartureTracker, "now", return_value=datetime(2025, 11, 24, 5, 20)):
            board = self.tracker.get_departures("pa", "sf")
        self.assertEqual([d.train_number for d in board.departures], ["102"])


class TestCommandLine(unittest.TestCase):
    """Test the compact and departures commands."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        cwd = os.getcwd()
        os.chdir(self.tmp.name)
        self.addCleanup(os.chdir, cwd)

    def test_compact_main(self):
        os.mkdir("gtfs")
        write_feed("gtfs")

        output = io.StringIO()
        with redirect_stdout(output):
            status = cli.compact_main()

        self.assertEqual(status, 0)
        self.assertTrue(os.path.exists("schedule-data.json"))
        self.assertTrue(os.path.exists("schedule-data.min.json"))
        self.assertIn("- 3 stations", output.getvalue())
        self.assertIn("- Valid from 20250101 to 20260131", output.getvalue())
        self.assertIn("- 2 holiday exceptions", output.getvalue())
        self.assertEqual(len(load_snapshot("schedule-data.min.json").stations), 3)

    def test_compact_main_missing_feed(self):
        with self.assertRaises(FileNotFoundError):
            cli.compact_main()
        self.assertFalse(os.path.exists("schedule-data.min.json"))

    def test_departures_main(self):
        write_snapshot(compact_feed(GTFSLoader().load_from_strings(FEED_CONTENTS)), ".")

        output = io.StringIO()
        with patch.object(DepartureTracker, "now", return_value=datetime(2025, 11, 24, 5, 0)):
            with redirect_stdout(output):
                status = cli.departures_main(["Palo Alto", "San Francisco"])

        self.assertEqual(status, 0)
        self.assertIn("Palo Alto → San Francisco (Northbound)", output.getvalue())
        self.assertIn("5:10am", output.getvalue())
        self.assertIn("#102", output.getvalue())

    def test_departures_main_unknown_station(self):
        write_snapshot(compact_feed(GTFSLoader().load_from_strings(FEED_CONTENTS)), ".")

        output = io.StringIO()
        with redirect_stdout(output):
            status = cli.departures_main(["Palo Alto", "Atlantis"])

        self.assertEqual(status, 1)
        self.assertIn("No station found", output.getvalue())

    def test_departures_main_usage(self):
        output = io.StringIO()
        with redirect_stdout(output):
            status = cli.departures_main([])
        self.assertEqual(status, 1)
        self.assertIn("Usage", output.getvalue())


if __name__ == "__main__":
    unittest.main()
