"""AnalysisResult - the backend's verdict on one flight.

Only the parts the map and profile consume are modeled: the summary,
the detailed track and the per-model results carrying anomaly points.
Rule engine and XGBoost results are displayed elsewhere and ignored here.
"""

from dataclasses import dataclass, field
from typing import Any

from flightmap_viewer.model.track_point import AnomalyPoint, ModelLayer, RawPathPoint, TrackPoint


@dataclass(frozen=True)
class AnalysisSummary:
    """Headline verdict and the coarse path."""

    flight_id: str
    is_anomaly: bool
    confidence_score: float
    num_points: int
    triggers: tuple[str, ...] = ()
    flight_path: tuple[RawPathPoint, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisSummary":
        if data.get("flight_id") is None:
            raise ValueError("Analysis summary is missing 'flight_id'")
        return cls(
            flight_id=str(data["flight_id"]),
            is_anomaly=bool(data.get("is_anomaly", False)),
            confidence_score=float(data.get("confidence_score") or 0.0),
            num_points=int(data.get("num_points") or 0),
            triggers=tuple(data.get("triggers") or ()),
            flight_path=tuple(RawPathPoint.from_lon_lat(pair) for pair in data.get("flight_path") or ()),
        )


@dataclass(frozen=True)
class ModelResult:
    """Result of one ML model layer."""

    status: str
    is_anomaly: bool
    score: float | None = None
    severity: float | None = None
    anomaly_points: tuple[AnomalyPoint, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any], model_layer: ModelLayer) -> "ModelResult":
        """Parse a model result, tagging its anomaly points with model_layer."""
        score = data.get("score")
        severity = data.get("severity")
        return cls(
            status=str(data.get("status", "UNKNOWN")),
            is_anomaly=bool(data.get("is_anomaly", False)),
            score=float(score) if score is not None else None,
            severity=float(severity) if severity is not None else None,
            anomaly_points=tuple(
                AnomalyPoint.from_dict(raw, model_layer=model_layer) for raw in data.get("anomaly_points") or ()
            ),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Parsed /api/analyze response."""

    summary: AnalysisSummary
    track_points: tuple[TrackPoint, ...] = ()
    model_results: dict[ModelLayer, ModelResult] = field(default_factory=dict)

    @property
    def coarse_path(self) -> tuple[RawPathPoint, ...]:
        return self.summary.flight_path

    def anomaly_points(self) -> list[AnomalyPoint]:
        """All anomaly points of all model layers, in ModelLayer order."""
        points: list[AnomalyPoint] = []
        for layer in ModelLayer:
            result = self.model_results.get(layer)
            if result is not None:
                points.extend(result.anomaly_points)
        return points

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisResult":
        """Parse the analysis payload.

        Raises:
            ValueError: If the summary or a required point field is missing.
        """
        if not isinstance(data, dict) or not isinstance(data.get("summary"), dict):
            raise ValueError("Analysis payload has no 'summary' object")

        track = data.get("track") or {}
        track_points = tuple(TrackPoint.from_dict(raw) for raw in track.get("points") or ())

        model_results = {}
        for layer in ModelLayer:
            raw = data.get(layer.result_key)
            if isinstance(raw, dict):
                model_results[layer] = ModelResult.from_dict(raw, model_layer=layer)

        return cls(
            summary=AnalysisSummary.from_dict(data["summary"]),
            track_points=track_points,
            model_results=model_results,
        )
