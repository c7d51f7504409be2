"""Constants for coordinator module."""

# Half-hour rate slot boundaries (minutes past the hour, UTC)
RATE_SLOT_BOUNDARIES = (0, 30)
