"""
Data update coordination package.

Main components:
- core.py: OctopusAgileDataUpdateCoordinator (refresh timers and error mapping)
- constants.py: Rate slot boundaries
"""

from .constants import RATE_SLOT_BOUNDARIES
from .core import OctopusAgileDataUpdateCoordinator

__all__ = [
    "RATE_SLOT_BOUNDARIES",
    "OctopusAgileDataUpdateCoordinator",
]
