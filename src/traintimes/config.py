"""Configuration constants for traintimes."""

# GTFS static feed for the line
GTFS_FEED_URL = "https://data.trilliumtransit.com/gtfs/caltrain-ca-us/caltrain-ca-us.zip"
REQUEST_TIMEOUT = 30  # seconds

# Compactor input/output
FEED_DIR = "gtfs"
FEED_FILES = {
    "stops": "stops.txt",
    "trips": "trips.txt",
    "stop_times": "stop_times.txt",
    "calendar": "calendar.txt",
    "calendar_dates": "calendar_dates.txt",
    "routes": "routes.txt",
}
SNAPSHOT_FILE = "schedule-data.json"
SNAPSHOT_MIN_FILE = "schedule-data.min.json"

# Station naming
AGENCY_NAME = "Caltrain"
EXCLUDED_STATION_KEYWORDS = ("Shuttle", "Elevator")

# Service day handling
TIMEZONE = "America/Los_Angeles"
SERVICE_DAY_START_HOUR = 3  # trips before 3am belong to the previous day
MINUTES_PER_DAY = 24 * 60
QUERY_HORIZON_MINUTES = MINUTES_PER_DAY + 120  # until 2am the next morning

# Display grouping
NEXT_BUCKET_SIZE = 6
LATER_BUCKET_SIZE = 6

# Route display names (routes.txt route_short_name) -> RouteType value
ROUTE_TYPE_NAMES = {
    "Local Weekday": 0,
    "Local Weekend": 0,
    "Local": 0,
    "Limited": 1,
    "Express": 2,
    "South County": 3,
}
