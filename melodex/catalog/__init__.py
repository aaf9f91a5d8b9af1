"""
Catalog package.

Client and data types for the external music catalog service.
"""

from melodex.catalog.client import CatalogService
from melodex.catalog.models import FetchFailure, FetchResult, FetchSuccess, Track, TrackId

__all__ = [
    "CatalogService",
    "FetchFailure",
    "FetchResult",
    "FetchSuccess",
    "Track",
    "TrackId",
]
