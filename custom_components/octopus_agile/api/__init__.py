"""
Octopus Energy REST API client package.

Main components:
- client.py: OctopusAgileApiClient (aiohttp-based REST client)
- exceptions.py: API-specific error classes
- helpers.py: Response parsing and tariff code utilities
"""

from .client import OctopusAgileApiClient
from .exceptions import (
    OctopusAgileApiClientCommunicationError,
    OctopusAgileApiClientError,
    OctopusAgileApiClientInterruptedError,
)

__all__ = [
    "OctopusAgileApiClient",
    "OctopusAgileApiClientCommunicationError",
    "OctopusAgileApiClientError",
    "OctopusAgileApiClientInterruptedError",
]
