"""Postcode to region resolution."""

from .resolver import OctopusAgileRegionResolver, create_region_resolver, normalize_postcode

__all__ = [
    "OctopusAgileRegionResolver",
    "create_region_resolver",
    "normalize_postcode",
]
