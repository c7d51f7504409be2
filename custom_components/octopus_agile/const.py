"""Constants for the Octopus Agile Rates integration."""

import logging
from datetime import timedelta

DOMAIN = "octopus_agile"
LOGGER = logging.getLogger(__package__)

ATTRIBUTION = "Data provided by Octopus Energy"

# Integration name should match manifest.json
DEFAULT_NAME = "Octopus Agile Rates"

CONF_POSTCODE = "postcode"
CONF_TARIFF_CODE = "tariff_code"
CONF_REGION = "region"
CONF_LOOKBACK_HOURS = "lookback_hours"
CONF_AVERAGE_HOURS = "average_hours"

# Region used by callers when the postcode is left empty (London)
DEFAULT_REGION = "H"

# 21 hours = 42 half-hourly rates, enough for a "since this morning" chart
DEFAULT_LOOKBACK_HOURS = 21
MIN_LOOKBACK_HOURS = 1
MAX_LOOKBACK_HOURS = 48

# Window for the average upcoming rate sensor
DEFAULT_AVERAGE_HOURS = 2.0
MIN_AVERAGE_HOURS = 0.5
MAX_AVERAGE_HOURS = 24.0

# Number of cheapest upcoming slots averaged by the lowest-slots sensor
LOWEST_SLOTS_COUNT = 10

# Publication schedule: tomorrow's prices appear at 16:00 UK time and run until 23:00
REFERENCE_TIME_ZONE = "Europe/London"
PUBLICATION_CUTOFF_HOUR = 16
COVERAGE_END_HOUR = 23
SUFFICIENCY_TOLERANCE = timedelta(minutes=30)

# Refresh scheduling fallbacks
CALENDAR_FAILURE_REFRESH_DELAY = timedelta(hours=1)
EMPTY_CACHE_REFRESH_DELAY = timedelta(minutes=15)

# Remote API
API_BASE_URL = "https://api.octopus.energy/v1"
API_REQUEST_TIMEOUT = 30  # seconds, total per request
API_PAGE_SIZE = 1500
API_MAX_PAGES = 10

# Region lookup retry policy (interruption-class errors only)
REGION_LOOKUP_MAX_RETRIES = 3
REGION_LOOKUP_RETRY_DELAY = 1.0  # seconds, multiplied by attempt number

# Storage
STORAGE_VERSION = 1
RECORD_STORAGE_KEY = f"{DOMAIN}.records"
REGION_STORAGE_KEY = f"{DOMAIN}.region_lookup"
RECORD_RETENTION = timedelta(days=7)

# Coordinator timers
UPDATE_INTERVAL = timedelta(minutes=15)
RETRY_INTERVAL = timedelta(minutes=5)
