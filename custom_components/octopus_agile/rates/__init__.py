"""
Rate data layer.

Components:
- models.py: Typed price records and cache entries
- freshness.py: Publication-schedule freshness rules
- cache.py: Single-entry in-memory cache
- single_flight.py: Per-tariff fetch coalescing
- record_store.py: Persistent record store
- repository.py: Cache → store → API cascade (import directly, it depends on the api package)
"""

from .cache import OctopusAgileRateCache
from .freshness import OctopusAgileFreshnessPolicy
from .models import OctopusAgileCacheEntry, OctopusAgilePriceRecord
from .record_store import OctopusAgileRecordStore, create_record_store
from .single_flight import OctopusAgileSingleFlight

__all__ = [
    "OctopusAgileCacheEntry",
    "OctopusAgileFreshnessPolicy",
    "OctopusAgilePriceRecord",
    "OctopusAgileRateCache",
    "OctopusAgileRecordStore",
    "OctopusAgileSingleFlight",
    "create_record_store",
]
