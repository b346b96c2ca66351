"""Markers and popups owned by one map handle.

Markers (start/end flags, per-model anomaly pins) are held in an explicit
per-category collection, never discovered from the rendered page. Every
update replaces a category wholesale: old handles are removed first, then
the new ones are added, so re-renders never leave duplicates or orphans.

Popups are read-only text anchored at a feature. Their longitude is shifted
by 360° steps when the pointer sits on the other side of the antimeridian.
"""

import itertools
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pydeck as pdk

from flightmap_viewer.constants import MarkerConfig, StyleConfig
from flightmap_viewer.core.geo_calculator import GeoCalculator

logger = logging.getLogger(__name__)

# Feature "kind" property values understood by popup_text()
KIND_TRACK_POINT = "track_point"
KIND_ANOMALY_POINT = "anomaly_point"
KIND_AIRPORT = "airport"
KIND_LEARNED = "learned"
KIND_MARKER = "marker"


# =============================================================================
# POPUP TEXT
# =============================================================================


def format_time_utc(timestamp: int | float) -> str:
    """Unix seconds -> 'HH:MM:SS UTC'."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%H:%M:%S UTC")


def track_point_text(timestamp: int, altitude: float, heading: float) -> str:
    return f"Time: {format_time_utc(timestamp)}<br>Alt: {altitude:.0f} ft<br>Heading: {heading:.0f}°"


def anomaly_point_text(model_name: str, score: float, timestamp: int) -> str:
    return f"<b>{model_name}</b><br>Score: {score:.4f}<br>Time: {format_time_utc(timestamp)}"


def popup_text(properties: dict[str, Any]) -> str:
    """Derive popup text from a feature's properties.

    Features carry a precomputed "tooltip" (also used by the pydeck hover
    tooltip); kinds without one fall back to their name.
    """
    tooltip = properties.get("tooltip")
    if tooltip:
        return str(tooltip)
    kind = properties.get("kind")
    if kind == KIND_TRACK_POINT:
        return track_point_text(
            timestamp=int(properties.get("timestamp", 0)),
            altitude=float(properties.get("altitude", 0.0)),
            heading=float(properties.get("heading", 0.0)),
        )
    if kind == KIND_ANOMALY_POINT:
        return anomaly_point_text(
            model_name=str(properties.get("model_name", "")),
            score=float(properties.get("score", 0.0)),
            timestamp=int(properties.get("timestamp", 0)),
        )
    return str(properties.get("name", ""))


# =============================================================================
# MARKERS
# =============================================================================


@dataclass(frozen=True)
class MarkerSpec:
    """What to draw: position, color and label of one marker."""

    lon: float
    lat: float
    color: list[int]
    label: str
    radius_px: int = MarkerConfig.ROUTE_MARKER_RADIUS_PX

    @property
    def lon_lat(self) -> tuple[float, float]:
        return (self.lon, self.lat)


class MarkerHandle:
    """A marker added to the map. remove() detaches it from its controller."""

    def __init__(self, marker_id: int, category: str, spec: MarkerSpec) -> None:
        self.id = marker_id
        self.category = category
        self.spec = spec
        self.removed = False

    def remove(self) -> None:
        self.removed = True

    def __repr__(self) -> str:
        return f"MarkerHandle(id={self.id}, category={self.category}, label={self.spec.label!r})"


class MarkerController:
    """Owns all markers of one map handle, grouped by category.

    Example:
        markers = MarkerController()
        markers.replace("route", [start_spec, end_spec])
        layers = markers.to_layers()
    """

    def __init__(self) -> None:
        self._markers: dict[str, list[MarkerHandle]] = {}
        self._ids = itertools.count(1)

    def replace(self, category: str, specs: list[MarkerSpec]) -> list[MarkerHandle]:
        """Remove every marker of category, then add one per spec."""
        self.remove_category(category)
        handles = [MarkerHandle(marker_id=next(self._ids), category=category, spec=spec) for spec in specs]
        if handles:
            self._markers[category] = handles
        return handles

    def add(self, category: str, spec: MarkerSpec) -> MarkerHandle:
        """Add a single marker without touching the rest of its category."""
        handle = MarkerHandle(marker_id=next(self._ids), category=category, spec=spec)
        self._markers.setdefault(category, []).append(handle)
        return handle

    def remove_category(self, category: str) -> int:
        """Remove all markers of category. Returns how many were removed."""
        handles = self._markers.pop(category, [])
        for handle in handles:
            handle.remove()
        return len(handles)

    def clear(self) -> None:
        """Remove every marker of every category."""
        for category in list(self._markers):
            self.remove_category(category)

    def markers(self, category: str | None = None) -> list[MarkerHandle]:
        """Live markers of one category, or of all categories."""
        if category is not None:
            return list(self._markers.get(category, []))
        return [h for handles in self._markers.values() for h in handles]

    def count(self, category: str | None = None) -> int:
        return len(self.markers(category))

    def to_layers(self) -> list[pdk.Layer]:
        """One ScatterplotLayer per non-empty category."""
        layers = []
        for category, handles in self._markers.items():
            data = [
                {
                    "kind": KIND_MARKER,
                    "position": list(h.spec.lon_lat),
                    "color": h.spec.color,
                    "radius": h.spec.radius_px,
                    "name": h.spec.label,
                    "tooltip": h.spec.label,
                }
                for h in handles
            ]
            layers.append(
                pdk.Layer(
                    "ScatterplotLayer",
                    data,
                    get_position="position",
                    get_fill_color="color",
                    get_line_color=MarkerConfig.MARKER_LINE_COLOR,
                    get_radius="radius",
                    radius_units="pixels",
                    stroked=True,
                    line_width_min_pixels=2,
                    pickable=True,
                    id=f"markers-{category}",
                )
            )
        return layers


# =============================================================================
# POPUPS
# =============================================================================


@dataclass(frozen=True)
class Popup:
    """Read-only popup anchored at (lon, lat)."""

    lon: float
    lat: float
    text: str


class PopupController:
    """Holds the single open popup of a map handle."""

    def __init__(self) -> None:
        self._current: Popup | None = None

    @property
    def current(self) -> Popup | None:
        return self._current

    def open(
        self,
        properties: dict[str, Any],
        feature_lon: float,
        feature_lat: float,
        cursor_lon: float | None = None,
    ) -> Popup:
        """Open a popup for a picked feature, replacing any open one.

        Args:
            properties: Picked feature properties (text is derived from them)
            feature_lon: Stored feature longitude
            feature_lat: Stored feature latitude
            cursor_lon: Pointer longitude as reported by the map (may be unwrapped)
        """
        lon = feature_lon if cursor_lon is None else GeoCalculator.wrap_popup_longitude(feature_lon, cursor_lon)
        self._current = Popup(lon=lon, lat=feature_lat, text=popup_text(properties))
        logger.debug(f"[POPUP] Opened at ({lon:.4f}, {feature_lat:.4f})")
        return self._current

    def close(self) -> None:
        self._current = None

    def to_layer(self) -> pdk.Layer | None:
        """TextLayer for the open popup, None when closed."""
        if self._current is None:
            return None
        # TextLayer has no HTML, show one line per <br>
        text = self._current.text.replace("<br>", "\n").replace("<b>", "").replace("</b>", "")
        return pdk.Layer(
            "TextLayer",
            [{"position": [self._current.lon, self._current.lat], "text": text}],
            get_position="position",
            get_text="text",
            get_color=StyleConfig.POPUP_TEXT_COLOR,
            get_size=12,
            get_alignment_baseline="'bottom'",
            get_pixel_offset=[0, -12],
            background=True,
            get_background_color=StyleConfig.POPUP_BACKGROUND_COLOR,
            id="popup",
        )
