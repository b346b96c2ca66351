"""Source synchronizer - application data to map sources.

Split in two:

1. compute_source_updates(): pure function from (track, anomaly points,
   learned layers, visibility flags) to a SourceUpdates value holding one
   GeoJSON FeatureCollection per dynamic source, the marker specs per
   category and the coordinates to frame. Testable without a map.

2. SourceSynchronizer.sync(): thin effect applying SourceUpdates to a
   ready MapHandle. Each source is replaced wholesale (never diffed), each
   marker category is rebuilt, and the camera is fit to the rendered
   coordinates when there are any.

This is the only place where domain (lat, lon) objects become (lon, lat)
rendering coordinates.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from flightmap_viewer.constants import MarkerConfig, Overlay, SourceIds, StyleConfig
from flightmap_viewer.core.geo_calculator import Bounds, GeoCalculator
from flightmap_viewer.model.learned import LearnedLayers, LearnedPath, LearnedProcedure, LearnedTurnZone
from flightmap_viewer.model.track_point import AnomalyPoint, ModelLayer, RawPathPoint, TrackPoint
from flightmap_viewer.ui.markers import (
    KIND_ANOMALY_POINT,
    KIND_LEARNED,
    KIND_TRACK_POINT,
    MarkerSpec,
    anomaly_point_text,
    track_point_text,
)
from flightmap_viewer.ui.state_machine import VisibilityFlags

if TYPE_CHECKING:
    from flightmap_viewer.ui.center_map import MapHandle

logger = logging.getLogger(__name__)

FeatureCollection = dict[str, Any]
LonLat = tuple[float, float]


# =============================================================================
# FEATURE COLLECTION BUILDERS
# =============================================================================


def empty_feature_collection() -> FeatureCollection:
    """An empty dataset. Absence of data is never None."""
    return {"type": "FeatureCollection", "features": []}


def _feature(geometry_type: str, coordinates: Any, properties: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": geometry_type, "coordinates": coordinates},
        "properties": properties,
    }


def route_line_collection(coordinates: Sequence[LonLat]) -> FeatureCollection:
    """Single LineString through coordinates (empty collection for no coordinates)."""
    if not coordinates:
        return empty_feature_collection()
    return {
        "type": "FeatureCollection",
        "features": [_feature("LineString", [list(c) for c in coordinates], {"name": "Flight path"})],
    }


def route_points_collection(track_points: Sequence[TrackPoint]) -> FeatureCollection:
    """One Point feature per detailed track point, carrying tooltip fields."""
    features = []
    for index, p in enumerate(track_points):
        heading = p.heading if p.heading is not None else 0.0
        features.append(
            _feature(
                "Point",
                list(p.lon_lat),
                {
                    "kind": KIND_TRACK_POINT,
                    "index": index,
                    "timestamp": p.timestamp,
                    "altitude": p.altitude,
                    "heading": heading,
                    "tooltip": track_point_text(timestamp=p.timestamp, altitude=p.altitude, heading=heading),
                },
            )
        )
    return {"type": "FeatureCollection", "features": features}


def anomaly_points_collection(anomaly_points: Sequence[AnomalyPoint]) -> FeatureCollection:
    """One Point feature per anomaly point, colored by model layer."""
    features = []
    for p in anomaly_points:
        layer = p.model_layer
        features.append(
            _feature(
                "Point",
                list(p.lon_lat),
                {
                    "kind": KIND_ANOMALY_POINT,
                    "model_layer": layer.value,
                    "model_name": layer.display_name,
                    "timestamp": p.timestamp,
                    "score": p.point_score,
                    "color": StyleConfig.MODEL_COLORS[layer.value],
                    "tooltip": anomaly_point_text(
                        model_name=layer.display_name, score=p.point_score, timestamp=p.timestamp
                    ),
                },
            )
        )
    return {"type": "FeatureCollection", "features": features}


def centerline_collection(
    items: Sequence[LearnedPath | LearnedProcedure],
    color: list[int],
) -> FeatureCollection:
    """LineString per learned path/procedure. Centerlines under 2 points are dropped."""
    features = []
    for item in items:
        if not item.is_renderable:
            logger.debug(f"[SYNC] Dropping {item.id}: centerline has {len(item.centerline)} point(s)")
            continue
        features.append(
            _feature(
                "LineString",
                [list(p.lon_lat) for p in item.centerline],
                {
                    "kind": KIND_LEARNED,
                    "id": item.id,
                    "name": item.label,
                    "member_count": item.member_count,
                    "color": color,
                    "tooltip": f"<b>{item.label}</b><br>Flights: {item.member_count}",
                },
            )
        )
    return {"type": "FeatureCollection", "features": features}


def turn_zone_collection(zones: Sequence[LearnedTurnZone], color: list[int]) -> FeatureCollection:
    """Polygon (circle approximation) per turn zone."""
    features = []
    for zone in zones:
        if zone.radius_nm <= 0:
            logger.debug(f"[SYNC] Dropping turn zone {zone.id}: radius {zone.radius_nm} nm")
            continue
        ring = GeoCalculator.circle_ring(lat=zone.lat, lon=zone.lon, radius_nm=zone.radius_nm)
        alt_text = f"{zone.avg_altitude:.0f} ft" if zone.avg_altitude is not None else "n/a"
        features.append(
            _feature(
                "Polygon",
                [[list(c) for c in ring]],
                {
                    "kind": KIND_LEARNED,
                    "id": zone.id,
                    "name": zone.label,
                    "radius_nm": zone.radius_nm,
                    "member_count": zone.member_count,
                    "color": color,
                    "tooltip": (
                        f"<b>{zone.label}</b><br>Radius: {zone.radius_nm:.1f} nm"
                        f"<br>Avg alt: {alt_text}<br>Flights: {zone.member_count}"
                    ),
                },
            )
        )
    return {"type": "FeatureCollection", "features": features}


def _learned_collection(overlay: str, layers: LearnedLayers) -> FeatureCollection:
    source_id = Overlay.SOURCE_BY_OVERLAY[overlay]
    color = StyleConfig.LEARNED_COLORS[source_id]
    items = layers.for_overlay(overlay)
    if overlay == Overlay.TURNS:
        return turn_zone_collection(items, color=color)
    return centerline_collection(items, color=color)


# =============================================================================
# PURE SYNC
# =============================================================================


def marker_category(layer: ModelLayer) -> str:
    """Marker category of one model layer's anomaly pins."""
    return f"ml-{layer.value}"


MARKER_CATEGORIES = [MarkerConfig.CATEGORY_ROUTE] + [marker_category(layer) for layer in ModelLayer]


@dataclass
class SourceUpdates:
    """Everything one sync pass writes to the map.

    Attributes:
        sources: Source id -> full replacement FeatureCollection
        markers: Marker category -> marker specs (every category present)
        route_coordinates: (lon, lat) route as drawn (for animation)
        frame_coordinates: (lon, lat) coordinates the camera should frame
    """

    sources: dict[str, FeatureCollection] = field(default_factory=dict)
    markers: dict[str, list[MarkerSpec]] = field(default_factory=dict)
    route_coordinates: list[LonLat] = field(default_factory=list)
    frame_coordinates: list[LonLat] = field(default_factory=list)

    @property
    def bounds(self) -> Bounds | None:
        return GeoCalculator.bounds(self.frame_coordinates)


def compute_source_updates(
    track_points: Sequence[TrackPoint],
    anomaly_points: Sequence[AnomalyPoint],
    learned_layers: LearnedLayers,
    flags: VisibilityFlags,
    coarse_path: Sequence[RawPathPoint] = (),
    defer_end_marker: bool = False,
) -> SourceUpdates:
    """Translate application data into source datasets and markers.

    Args:
        track_points: Detailed track (takes precedence over coarse_path)
        anomaly_points: Model-tagged anomaly points
        learned_layers: Cached learned geometry (may be empty)
        flags: Overlay visibility snapshot
        coarse_path: Fallback route when there are no detailed points
        defer_end_marker: Leave out the end marker (added when the draw animation ends)

    Returns:
        SourceUpdates with every dynamic source and marker category filled.
    """
    updates = SourceUpdates()

    # Route: detailed sequence wins, coarse path is only a fallback
    if track_points:
        route = [p.lon_lat for p in track_points]
        updates.sources[SourceIds.ROUTE_POINTS] = route_points_collection(track_points)
    else:
        route = [p.lon_lat for p in coarse_path]
        updates.sources[SourceIds.ROUTE_POINTS] = empty_feature_collection()
    updates.sources[SourceIds.ROUTE] = route_line_collection(route)
    updates.route_coordinates = route

    route_markers = []
    if route:
        route_markers.append(
            MarkerSpec(lon=route[0][0], lat=route[0][1], color=StyleConfig.START_MARKER_COLOR, label=MarkerConfig.START_LABEL)
        )
        if not defer_end_marker:
            route_markers.append(end_marker_spec(route))
    updates.markers[MarkerConfig.CATEGORY_ROUTE] = route_markers

    # ML anomaly points
    shown_anomalies = list(anomaly_points) if flags.ml_points else []
    updates.sources[SourceIds.ML_POINTS] = anomaly_points_collection(shown_anomalies)
    for layer in ModelLayer:
        updates.markers[marker_category(layer)] = [
            MarkerSpec(
                lon=p.lon,
                lat=p.lat,
                color=StyleConfig.MODEL_COLORS[layer.value],
                label=f"{layer.display_name}: {p.point_score:.4f}",
                radius_px=MarkerConfig.ANOMALY_MARKER_RADIUS_PX,
            )
            for p in shown_anomalies
            if p.model_layer == layer
        ]

    # Learned overlays: visible AND non-empty, otherwise an empty collection
    for overlay in Overlay.LEARNED:
        source_id = Overlay.SOURCE_BY_OVERLAY[overlay]
        if flags.is_visible(overlay) and learned_layers.for_overlay(overlay):
            updates.sources[source_id] = _learned_collection(overlay, learned_layers)
        else:
            updates.sources[source_id] = empty_feature_collection()

    updates.frame_coordinates = route + [p.lon_lat for p in shown_anomalies]
    return updates


def end_marker_spec(route: Sequence[LonLat]) -> MarkerSpec:
    """End flag at the last route coordinate."""
    return MarkerSpec(lon=route[-1][0], lat=route[-1][1], color=StyleConfig.END_MARKER_COLOR, label=MarkerConfig.END_LABEL)


# =============================================================================
# EFFECT
# =============================================================================


class SourceSynchronizer:
    """Applies compute_source_updates() to a map handle.

    Example:
        synchronizer = SourceSynchronizer()
        synchronizer.sync(handle, track_points, anomaly_points, cache.layers, visibility.flags())
    """

    def sync(
        self,
        handle: "MapHandle",
        track_points: Sequence[TrackPoint],
        anomaly_points: Sequence[AnomalyPoint],
        learned_layers: LearnedLayers,
        flags: VisibilityFlags,
        coarse_path: Sequence[RawPathPoint] = (),
        defer_end_marker: bool = False,
    ) -> SourceUpdates | None:
        """Replace every dynamic source and marker category of handle.

        Returns:
            The applied SourceUpdates, or None when the handle is not ready
            (nothing is queued, the next rerun syncs again).
        """
        if handle is None or not handle.is_ready:
            logger.debug("[SYNC] Map not ready, skipping sync")
            return None

        updates = compute_source_updates(
            track_points=track_points,
            anomaly_points=anomaly_points,
            learned_layers=learned_layers,
            flags=flags,
            coarse_path=coarse_path,
            defer_end_marker=defer_end_marker,
        )

        for source_id in SourceIds.DYNAMIC:
            handle.set_source_data(source_id, updates.sources[source_id])

        for category, specs in updates.markers.items():
            handle.markers.replace(category, specs)

        bounds = updates.bounds
        if bounds is not None:
            handle.fit_bounds(bounds)

        logger.debug(
            f"[SYNC] route={len(updates.route_coordinates)} pts, "
            f"markers={handle.markers.count()}, framed={bounds is not None}"
        )
        return updates
