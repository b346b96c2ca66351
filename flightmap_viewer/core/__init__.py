"""Core foundation classes for geometry and backend access.

This module provides:
- GeoCalculator: Circle approximation, bounds, camera framing, antimeridian wrap
- AnalysisClient: Fetches the analysis of one flight
- LearnedLayersFetcher: Fetches learned reference geometry
- LearnedLayersCache: Once-per-mount cache of the learned geometry
"""

from flightmap_viewer.core.api_client import AnalysisClient, LearnedLayersFetcher
from flightmap_viewer.core.geo_calculator import Bounds, GeoCalculator
from flightmap_viewer.core.learned_layers import FetchStatus, LearnedLayersCache

__all__ = [
    # Geometry
    "GeoCalculator",
    "Bounds",
    # Backend
    "AnalysisClient",
    "LearnedLayersFetcher",
    # Cache
    "LearnedLayersCache",
    "FetchStatus",
]
