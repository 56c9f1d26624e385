"""Tests for snapshot serialization."""

import json
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

# Add src to path so we can import traintimes
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from traintimes.compactor import compact_feed
from traintimes.gtfs_loader import GTFSLoader
from traintimes.models import HolidayOverride, RouteType, ServiceType
from traintimes.snapshot import (
    SnapshotError,
    dumps,
    fetch_snapshot,
    load_snapshot,
    loads,
    snapshot_from_dict,
    snapshot_to_dict,
    write_snapshot,
)

from feed_fixtures import FEED_CONTENTS


class TestSnapshotFormat(unittest.TestCase):
    """Test the JSON document layout."""

    def setUp(self):
        self.snapshot = compact_feed(GTFSLoader().load_from_strings(FEED_CONTENTS))

    def test_document_layout(self):
        document = snapshot_to_dict(self.snapshot)
        self.assertEqual(
            sorted(document), ["holidays", "schedule", "stations", "validFrom", "validTo"]
        )
        self.assertEqual(document["stations"][0], {"id": "sf", "name": "San Francisco"})
        self.assertEqual(document["schedule"]["mb"], {"n": [[325, "101", 0, 0]], "s": [[1470, "201", 0, 1]]})
        self.assertEqual(document["holidays"], {"20251128": 2, "20251225": 1})
        self.assertEqual(document["validFrom"], "20250101")
        self.assertEqual(document["validTo"], "20260131")

    def test_minified_and_pretty(self):
        minified = dumps(self.snapshot)
        pretty = dumps(self.snapshot, pretty=True)
        self.assertNotIn("\n", minified)
        self.assertNotIn(", ", minified)
        self.assertIn('\n  "stations": [', pretty)
        self.assertEqual(json.loads(minified), json.loads(pretty))

    def test_decode(self):
        snapshot = loads(dumps(self.snapshot))
        self.assertEqual(snapshot, self.snapshot)

        departure = snapshot.timetable("pa").northbound[1]
        self.assertEqual(departure.train_number, "102")
        self.assertIs(departure.route_type, RouteType.EXPRESS)
        self.assertIs(departure.service_type, ServiceType.WEEKDAY)

    def test_legacy_boolean_holidays(self):
        document = snapshot_to_dict(self.snapshot)
        document["holidays"] = {"20251225": True, "20251226": False}
        snapshot = snapshot_from_dict(document)
        self.assertEqual(snapshot.holidays, {"20251225": HolidayOverride.WEEKEND})

    def test_malformed_documents(self):
        with self.assertRaises(SnapshotError):
            loads("not json")
        with self.assertRaises(SnapshotError):
            loads("[]")
        with self.assertRaises(SnapshotError):
            snapshot_from_dict({"stations": [], "schedule": {"x": {"n": [[1, "2", 9, 0]]}}})
        with self.assertRaises(SnapshotError):
            snapshot_from_dict({"schedule": {}})
        with self.assertRaises(SnapshotError):
            snapshot_from_dict({"stations": [], "schedule": {}, "holidays": {"20250101": 5}})
        with self.assertRaises(SnapshotError):
            loads('{"stations":[],"schedule":{},"holidays":[1]}')
        with self.assertRaises(SnapshotError):
            loads('{"stations":[],"schedule":{},"holidays":"20251225"}')

    def test_decoded_mappings_are_read_only(self):
        snapshot = loads(dumps(self.snapshot))
        with self.assertRaises(TypeError):
            snapshot.holidays["20260101"] = HolidayOverride.WEEKEND
        with self.assertRaises(TypeError):
            snapshot.schedule["pa"] = snapshot.timetable("sf")

    def test_snapshot_error_is_value_error(self):
        self.assertTrue(issubclass(SnapshotError, ValueError))


class TestSnapshotFiles(unittest.TestCase):
    """Test writing and loading snapshot files."""

    def setUp(self):
        self.snapshot = compact_feed(GTFSLoader().load_from_strings(FEED_CONTENTS))

    def test_write_and_load(self):
        with tempfile.TemporaryDirectory() as tmp:
            pretty_path, min_path = write_snapshot(self.snapshot, tmp)
            self.assertEqual(os.path.basename(pretty_path), "schedule-data.json")
            self.assertEqual(os.path.basename(min_path), "schedule-data.min.json")
            self.assertLess(os.path.getsize(min_path), os.path.getsize(pretty_path))

            self.assertEqual(load_snapshot(min_path), self.snapshot)
            self.assertEqual(load_snapshot(pretty_path), self.snapshot)

    @patch("traintimes.snapshot.requests.get")
    def test_fetch_snapshot(self, mock_get):
        mock_response = MagicMock()
        mock_response.content = dumps(self.snapshot).encode("utf-8")
        mock_get.return_value = mock_response

        snapshot = fetch_snapshot("http://test/schedule-data.min.json")

        mock_response.raise_for_status.assert_called_once()
        self.assertEqual(snapshot, self.snapshot)


if __name__ == "__main__":
    unittest.main()
