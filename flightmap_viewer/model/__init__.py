"""Data model classes for flight and reference geometry.

Domain objects store (lat, lon); (lon, lat) conversion happens in ui.source_sync.
- TrackPoint / RawPathPoint: Detailed and coarse flight positions
- AnomalyPoint + ModelLayer: Model-tagged anomaly locations
- LearnedPath / LearnedProcedure / LearnedTurnZone / LearnedLayers: Reference geometry
- Airport + AIRPORTS: Static airport reference set
- AnalysisResult: Backend verdict for one flight
"""

from flightmap_viewer.model.airport import AIRPORTS, Airport
from flightmap_viewer.model.analysis_result import AnalysisResult, AnalysisSummary, ModelResult
from flightmap_viewer.model.learned import (
    CenterlinePoint,
    LearnedLayers,
    LearnedPath,
    LearnedProcedure,
    LearnedTurnZone,
)
from flightmap_viewer.model.track_point import AnomalyPoint, ModelLayer, RawPathPoint, TrackPoint

__all__ = [
    "AIRPORTS",
    "Airport",
    "AnalysisResult",
    "AnalysisSummary",
    "ModelResult",
    "AnomalyPoint",
    "ModelLayer",
    "RawPathPoint",
    "TrackPoint",
    "CenterlinePoint",
    "LearnedLayers",
    "LearnedPath",
    "LearnedProcedure",
    "LearnedTurnZone",
]
