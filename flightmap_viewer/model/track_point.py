"""TrackPoint, RawPathPoint and AnomalyPoint - the geometry atoms of a flight.

Domain objects store (lat, lon). Conversion to (lon, lat) for rendering
happens once, in ui.source_sync, via the lon_lat properties below.

Wire format (backend JSON):
    track point: {"lat", "lon", "alt", "timestamp", "track"?, "gspeed"?}
    coarse path: [[lon, lat], ...]
    anomaly point: {"lat", "lon", "timestamp", "point_score"}
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ModelLayer(Enum):
    """ML model layers that report anomaly points.

    Values double as marker category names and StyleConfig.MODEL_COLORS keys.
    """

    DEEP_DENSE = "deep_dense"
    DEEP_CNN = "deep_cnn"
    TRANSFORMER = "transformer"
    HYBRID = "hybrid"

    @property
    def result_key(self) -> str:
        """Key of this layer's result in the AnalysisResult payload."""
        return _RESULT_KEYS[self]

    @property
    def display_name(self) -> str:
        """Human-friendly model name."""
        return _DISPLAY_NAMES[self]


_RESULT_KEYS = {
    ModelLayer.DEEP_DENSE: "layer_3_deep_dense",
    ModelLayer.DEEP_CNN: "layer_4_deep_cnn",
    ModelLayer.TRANSFORMER: "layer_5_transformer",
    ModelLayer.HYBRID: "layer_6_hybrid",
}

_DISPLAY_NAMES = {
    ModelLayer.DEEP_DENSE: "Deep Dense AE",
    ModelLayer.DEEP_CNN: "Deep CNN",
    ModelLayer.TRANSFORMER: "Transformer",
    ModelLayer.HYBRID: "Hybrid CNN-Trans",
}


def _require(data: dict[str, Any], key: str, kind: str) -> Any:
    """Return data[key] or raise ValueError naming the missing field."""
    value = data.get(key)
    if value is None:
        raise ValueError(f"{kind} is missing required field '{key}': {data!r}")
    return value


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class TrackPoint:
    """One position report of the analyzed flight.

    Attributes:
        lat: Latitude in decimal degrees
        lon: Longitude in decimal degrees
        altitude: Altitude in feet
        timestamp: Unix seconds
        heading: Track angle in degrees, None when not reported
        ground_speed: Ground speed in knots, None when not reported
    """

    lat: float
    lon: float
    altitude: float
    timestamp: int
    heading: float | None = None
    ground_speed: float | None = None

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        return (self.lon, self.lat)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackPoint":
        """Parse a backend track point. Optional fields default to None."""
        return cls(
            lat=float(_require(data, "lat", "TrackPoint")),
            lon=float(_require(data, "lon", "TrackPoint")),
            altitude=float(_require(data, "alt", "TrackPoint")),
            timestamp=int(_require(data, "timestamp", "TrackPoint")),
            heading=_optional_float(data.get("track")),
            ground_speed=_optional_float(data.get("gspeed")),
        )


@dataclass(frozen=True)
class RawPathPoint:
    """One coordinate of the coarse summary path (no altitude, no time)."""

    lat: float
    lon: float

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        return (self.lon, self.lat)

    @classmethod
    def from_lon_lat(cls, pair: list[float] | tuple[float, float]) -> "RawPathPoint":
        """Parse a wire [lon, lat] pair."""
        if len(pair) < 2:
            raise ValueError(f"Path coordinate needs [lon, lat], got {pair!r}")
        return cls(lat=float(pair[1]), lon=float(pair[0]))


@dataclass(frozen=True)
class AnomalyPoint:
    """A track location flagged by one ML model.

    Attributes:
        lat: Latitude in decimal degrees
        lon: Longitude in decimal degrees
        timestamp: Unix seconds
        point_score: Reconstruction-error-like score (higher = more anomalous)
        model_layer: Model that flagged the point
    """

    lat: float
    lon: float
    timestamp: int
    point_score: float
    model_layer: ModelLayer

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        return (self.lon, self.lat)

    @classmethod
    def from_dict(cls, data: dict[str, Any], model_layer: ModelLayer) -> "AnomalyPoint":
        """Parse a backend anomaly point and tag it with its model layer."""
        return cls(
            lat=float(_require(data, "lat", "AnomalyPoint")),
            lon=float(_require(data, "lon", "AnomalyPoint")),
            timestamp=int(_require(data, "timestamp", "AnomalyPoint")),
            point_score=float(data.get("point_score") or 0.0),
            model_layer=model_layer,
        )
