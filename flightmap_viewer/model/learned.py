"""Learned reference geometry - typical corridors, turn zones and procedures.

Produced offline by the anomaly backend from historical traffic and served as:

    {"paths": [...], "turns": [...], "sids": [...], "stars": [...]}

Parsing is lenient: the backend has shipped several spellings over time
(e.g. turn zones with "centroid_lat" or "lat"), optional fields fall back to
defaults and centerline points lacking coordinates are skipped. Entries that
cannot be placed on the map at all are dropped with a debug log.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from flightmap_viewer.constants import Overlay

logger = logging.getLogger(__name__)

SID = "SID"
STAR = "STAR"


@dataclass(frozen=True)
class CenterlinePoint:
    """A vertex of a learned centerline."""

    lat: float
    lon: float
    alt: float = 0.0

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        return (self.lon, self.lat)


def _parse_centerline(raw: list[dict[str, Any]] | None) -> tuple[CenterlinePoint, ...]:
    points = []
    for p in raw or []:
        if not isinstance(p, dict) or p.get("lat") is None or p.get("lon") is None:
            continue
        points.append(CenterlinePoint(lat=float(p["lat"]), lon=float(p["lon"]), alt=float(p.get("alt") or 0.0)))
    return tuple(points)


def _optional_float(value: Any) -> float | None:
    return float(value) if value is not None else None


@dataclass(frozen=True)
class LearnedPath:
    """Typical origin/destination corridor."""

    id: str
    origin: str | None
    destination: str | None
    centerline: tuple[CenterlinePoint, ...]
    width_nm: float | None = None
    member_count: int = 0

    @property
    def is_renderable(self) -> bool:
        """A line needs at least two vertices."""
        return len(self.centerline) >= 2

    @property
    def label(self) -> str:
        return f"{self.origin or '?'} → {self.destination or '?'}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LearnedPath":
        return cls(
            id=str(data.get("id", "unknown")),
            origin=data.get("origin"),
            destination=data.get("destination"),
            centerline=_parse_centerline(data.get("centerline")),
            width_nm=_optional_float(data.get("width_nm")),
            member_count=int(data.get("member_count") or 0),
        )


@dataclass(frozen=True)
class LearnedProcedure:
    """Learned SID or STAR centerline for one airport."""

    id: str
    airport: str | None
    procedure_type: str
    centerline: tuple[CenterlinePoint, ...]
    width_nm: float | None = None
    member_count: int = 0

    @property
    def is_renderable(self) -> bool:
        """A line needs at least two vertices."""
        return len(self.centerline) >= 2

    @property
    def label(self) -> str:
        return f"{self.procedure_type} {self.airport or '?'}"

    @classmethod
    def from_dict(cls, data: dict[str, Any], procedure_type: str) -> "LearnedProcedure":
        """Parse a procedure. procedure_type comes from the payload key, not the entry."""
        return cls(
            id=str(data.get("id", "unknown")),
            airport=data.get("airport"),
            procedure_type=procedure_type,
            centerline=_parse_centerline(data.get("centerline")),
            width_nm=_optional_float(data.get("width_nm")),
            member_count=int(data.get("member_count") or 0),
        )


@dataclass(frozen=True)
class LearnedTurnZone:
    """Area where traffic typically turns, rendered as a circle."""

    id: str
    lat: float
    lon: float
    radius_nm: float
    avg_altitude: float | None = None
    angle_range: tuple[float, float] | None = None
    avg_speed: float | None = None
    member_count: int = 0
    directions: dict[str, int] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return f"Turn zone {self.id}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LearnedTurnZone | None":
        """Parse a turn zone. Returns None when it has no center."""
        lat = data.get("centroid_lat", data.get("lat"))
        lon = data.get("centroid_lon", data.get("lon"))
        if lat is None or lon is None:
            return None

        angle_range = data.get("angle_range")
        if isinstance(angle_range, (list, tuple)) and len(angle_range) == 2:
            angle_range = (float(angle_range[0]), float(angle_range[1]))
        else:
            angle_range = None

        directions = data.get("directions")
        if not isinstance(directions, dict):
            # Single-direction clusters only carry turn_direction
            turn_direction = data.get("turn_direction")
            directions = {str(turn_direction): int(data.get("member_count") or 0)} if turn_direction else {}

        return cls(
            id=str(data.get("id", data.get("cluster_id", "unknown"))),
            lat=float(lat),
            lon=float(lon),
            radius_nm=float(data.get("radius_nm") or 0.0),
            avg_altitude=_optional_float(data.get("avg_alt", data.get("avg_altitude"))),
            angle_range=angle_range,
            avg_speed=_optional_float(data.get("avg_speed")),
            member_count=int(data.get("member_count") or 0),
            directions={str(k): int(v) for k, v in directions.items()},
        )


@dataclass(frozen=True)
class LearnedLayers:
    """The whole learned-layers payload, one tuple per category."""

    paths: tuple[LearnedPath, ...] = ()
    turns: tuple[LearnedTurnZone, ...] = ()
    sids: tuple[LearnedProcedure, ...] = ()
    stars: tuple[LearnedProcedure, ...] = ()

    @staticmethod
    def empty() -> "LearnedLayers":
        return LearnedLayers()

    @property
    def is_empty(self) -> bool:
        return not (self.paths or self.turns or self.sids or self.stars)

    def for_overlay(self, overlay: str) -> tuple:
        """Entries of one learned overlay category."""
        if overlay == Overlay.PATHS:
            return self.paths
        if overlay == Overlay.TURNS:
            return self.turns
        if overlay == Overlay.SIDS:
            return self.sids
        if overlay == Overlay.STARS:
            return self.stars
        raise ValueError(f"Not a learned overlay: {overlay!r}")

    def counts(self) -> dict[str, int]:
        """Entry count per learned overlay."""
        return {overlay: len(self.for_overlay(overlay)) for overlay in Overlay.LEARNED}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LearnedLayers":
        """Parse the learned-layers document.

        Missing or null categories are empty. Entries that are not objects
        are skipped.

        Raises:
            ValueError: If data is not a JSON object or a category is not a list.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Learned layers payload must be an object, got {type(data).__name__}")

        turns = []
        for raw in _entries(data, "turns"):
            zone = LearnedTurnZone.from_dict(raw)
            if zone is None:
                logger.debug(f"[LEARNED] Skipping turn zone without center: {raw.get('id')}")
                continue
            turns.append(zone)

        return cls(
            paths=tuple(LearnedPath.from_dict(raw) for raw in _entries(data, "paths")),
            turns=tuple(turns),
            sids=tuple(LearnedProcedure.from_dict(raw, procedure_type=SID) for raw in _entries(data, "sids")),
            stars=tuple(LearnedProcedure.from_dict(raw, procedure_type=STAR) for raw in _entries(data, "stars")),
        )


def _entries(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    """Object entries of one category; non-object entries are dropped."""
    raw = data.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"Learned layers '{key}' must be a list, got {type(raw).__name__}")
    entries = [entry for entry in raw if isinstance(entry, dict)]
    if len(entries) < len(raw):
        logger.debug(f"[LEARNED] Skipping {len(raw) - len(entries)} non-object {key} entries")
    return entries
