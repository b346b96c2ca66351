"""Map instance owner - the single pydeck map of a view.

Owns one MapHandle per mount (Streamlit session) with:
- Named GeoJSON sources (airports, route, route points, ML points, learned overlays)
- The marker and popup controllers
- The viewport (center, zoom, framed bounds)

Lifecycle contract:
    owner.initialize(container) -> handle   # create, idempotent while live
    handle.is_ready                         # every mutation requires it
    owner.teardown()                        # release, next initialize creates anew

Key pydeck conventions:
- [lon, lat] coordinate order (GeoJSON standard)
- Colors as RGBA lists [R, G, B, A] (0-255)
- pickable=True enables hover tooltips and click events
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

import pydeck as pdk

from flightmap_viewer.constants import MapConfig, SourceIds, StyleConfig
from flightmap_viewer.core.geo_calculator import Bounds, GeoCalculator
from flightmap_viewer.model.airport import AIRPORTS, Airport
from flightmap_viewer.ui.markers import KIND_AIRPORT, MarkerController, PopupController
from flightmap_viewer.ui.source_sync import FeatureCollection, empty_feature_collection

logger = logging.getLogger(__name__)


def airports_collection(airports: tuple[Airport, ...] = AIRPORTS) -> FeatureCollection:
    """Static airport points labeled with their code."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": list(a.lon_lat)},
                "properties": {
                    "kind": KIND_AIRPORT,
                    "code": a.code,
                    "name": a.name,
                    "tooltip": f"<b>{a.code}</b><br>{a.name}",
                },
            }
            for a in airports
        ],
    }


@dataclass
class ViewportState:
    """Camera of the map."""

    center_lon: float = MapConfig.START_CENTER_LON
    center_lat: float = MapConfig.START_CENTER_LAT
    zoom: float = MapConfig.DEFAULT_ZOOM
    bounds: Bounds | None = None

    def contains(self, lon: float, lat: float) -> bool:
        """True if (lon, lat) lies inside the last framed bounds."""
        if self.bounds is None:
            return False
        min_lon, min_lat, max_lon, max_lat = self.bounds
        return min_lon <= lon <= max_lon and min_lat <= lat <= max_lat


@dataclass
class LayerCollection:
    """Pydeck layers with correct z-ordering.

    Z-order (back to front): airports → learned → route → route points → ML points → markers → popup
    """

    airports: list[pdk.Layer] = field(default_factory=list)
    learned: list[pdk.Layer] = field(default_factory=list)
    route: list[pdk.Layer] = field(default_factory=list)
    route_points: list[pdk.Layer] = field(default_factory=list)
    ml_points: list[pdk.Layer] = field(default_factory=list)
    markers: list[pdk.Layer] = field(default_factory=list)
    popup: list[pdk.Layer] = field(default_factory=list)

    def get_ordered_layers(self) -> list[pdk.Layer]:
        """Return all layers in correct z-order (back to front)."""
        return (
            self.airports + self.learned + self.route + self.route_points + self.ml_points + self.markers + self.popup
        )


class MapHandle:
    """A live map: sources, markers, popup and viewport.

    Created only by MapInstanceOwner. All mutating methods are no-ops
    (logged at debug level) once the handle is no longer ready.
    """

    def __init__(self, container: Any, width_px: int, height_px: int) -> None:
        self.container = container
        self.width_px = width_px
        self.height_px = height_px
        self.viewport = ViewportState()
        self.markers = MarkerController()
        self.popups = PopupController()
        self._sources: dict[str, FeatureCollection] = {}
        self._ready = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def is_ready(self) -> bool:
        return self._ready

    def _on_load(self) -> None:
        """Create the persistent base sources exactly once."""
        for source_id in SourceIds.BASE:
            data = airports_collection() if source_id == SourceIds.AIRPORTS else empty_feature_collection()
            self.add_source(source_id, data)
        self._ready = True
        logger.info(f"[MAP] Loaded with base sources {self.source_ids()}")

    def _release(self) -> None:
        self._ready = False
        self.markers.clear()
        self.popups.close()
        self._sources.clear()
        self.container = None

    def bind_container(self, container: Any) -> None:
        """Render into a new placeholder (each Streamlit rerun has its own)."""
        self.container = container

    # =========================================================================
    # SOURCES
    # =========================================================================

    def has_source(self, source_id: str) -> bool:
        return source_id in self._sources

    def source_ids(self) -> list[str]:
        return list(self._sources)

    def add_source(self, source_id: str, data: FeatureCollection) -> bool:
        """Create a source. Returns False (and keeps the existing one) if it exists."""
        if source_id in self._sources:
            logger.debug(f"[MAP] Source '{source_id}' already exists")
            return False
        self._sources[source_id] = copy.deepcopy(data)
        return True

    def ensure_learned_sources(self) -> None:
        """Create the learned placeholder sources once."""
        for source_id in SourceIds.LEARNED:
            self.add_source(source_id, empty_feature_collection())

    def set_source_data(self, source_id: str, data: FeatureCollection) -> None:
        """Replace a source's whole dataset.

        Learned sources are created lazily on first write; unknown
        non-learned sources are rejected.

        Raises:
            ValueError: If source_id is neither existing nor a learned source.
        """
        if not self._ready:
            logger.debug(f"[MAP] Not ready, ignoring write to '{source_id}'")
            return
        if source_id not in self._sources:
            if source_id not in SourceIds.LEARNED:
                raise ValueError(f"Unknown source '{source_id}'")
            self.ensure_learned_sources()
        self._sources[source_id] = copy.deepcopy(data if data is not None else empty_feature_collection())

    def get_source_data(self, source_id: str) -> FeatureCollection:
        """Current dataset of a source (empty collection if it does not exist)."""
        return copy.deepcopy(self._sources.get(source_id, empty_feature_collection()))

    # =========================================================================
    # CAMERA
    # =========================================================================

    def fit_bounds(self, bounds: Bounds, padding_px: int = MapConfig.FIT_PADDING_PX) -> None:
        """Frame bounds with padding (fitBounds equivalent)."""
        if not self._ready:
            return
        center_lon, center_lat, zoom = GeoCalculator.fit_bounds(
            bounds=bounds, width_px=self.width_px, height_px=self.height_px, padding_px=padding_px
        )
        self.viewport = ViewportState(center_lon=center_lon, center_lat=center_lat, zoom=zoom, bounds=bounds)
        logger.debug(f"[MAP] Fit bounds {bounds} -> zoom {zoom:.2f}")

    def get_view_state(self) -> pdk.ViewState:
        return pdk.ViewState(
            longitude=self.viewport.center_lon,
            latitude=self.viewport.center_lat,
            zoom=self.viewport.zoom,
            pitch=0,
            bearing=0,
        )

    # =========================================================================
    # RENDERING
    # =========================================================================

    def build_deck(self) -> pdk.Deck:
        """Build the pydeck Deck from the current sources, markers and popup."""
        layers = LayerCollection()
        layers.airports.extend(self._create_airport_layers())
        layers.learned.extend(self._create_learned_layers())
        layers.route.append(
            pdk.Layer(
                "GeoJsonLayer",
                self._sources.get(SourceIds.ROUTE, empty_feature_collection()),
                get_line_color=StyleConfig.ROUTE_LINE_COLOR,
                get_line_width=StyleConfig.ROUTE_LINE_WIDTH_PX,
                line_width_units="pixels",
                pickable=False,
                id="route-line",
            )
        )
        layers.route_points.append(
            pdk.Layer(
                "GeoJsonLayer",
                self._sources.get(SourceIds.ROUTE_POINTS, empty_feature_collection()),
                get_fill_color=StyleConfig.ROUTE_POINT_COLOR,
                get_point_radius=StyleConfig.ROUTE_POINT_RADIUS_PX,
                point_radius_units="pixels",
                stroked=False,
                pickable=True,
                id="route-points",
            )
        )
        layers.ml_points.append(
            pdk.Layer(
                "GeoJsonLayer",
                self._sources.get(SourceIds.ML_POINTS, empty_feature_collection()),
                get_fill_color="properties.color",
                get_point_radius=4,
                point_radius_units="pixels",
                stroked=False,
                pickable=True,
                id="ml-anomaly-points",
            )
        )
        layers.markers.extend(self.markers.to_layers())
        popup_layer = self.popups.to_layer()
        if popup_layer is not None:
            layers.popup.append(popup_layer)

        return pdk.Deck(
            map_style=MapConfig.MAP_STYLE,
            initial_view_state=self.get_view_state(),
            layers=layers.get_ordered_layers(),
            tooltip=self._create_tooltip_config(),
            parameters={"pickingRadius": MapConfig.PICKING_RADIUS_PX},
        )

    def _create_airport_layers(self) -> list[pdk.Layer]:
        data = self._sources.get(SourceIds.AIRPORTS, empty_feature_collection())
        labels = [
            {"position": f["geometry"]["coordinates"], "code": f["properties"]["code"]} for f in data["features"]
        ]
        return [
            pdk.Layer(
                "GeoJsonLayer",
                data,
                get_fill_color=StyleConfig.AIRPORT_FILL_COLOR,
                get_line_color=StyleConfig.AIRPORT_LINE_COLOR,
                get_point_radius=StyleConfig.AIRPORT_RADIUS_PX,
                point_radius_units="pixels",
                line_width_min_pixels=1,
                pickable=True,
                id="airports-circle",
            ),
            pdk.Layer(
                "TextLayer",
                labels,
                get_position="position",
                get_text="code",
                get_color=StyleConfig.AIRPORT_LABEL_COLOR,
                get_size=StyleConfig.AIRPORT_LABEL_SIZE,
                get_alignment_baseline="'top'",
                get_pixel_offset=[0, 8],
                id="airports-label",
            ),
        ]

    def _create_learned_layers(self) -> list[pdk.Layer]:
        """One layer per existing learned source (placeholders render nothing)."""
        layers = []
        for source_id in SourceIds.LEARNED:
            if source_id not in self._sources:
                continue
            is_polygon = source_id == SourceIds.LEARNED_TURNS
            layers.append(
                pdk.Layer(
                    "GeoJsonLayer",
                    self._sources[source_id],
                    get_fill_color="properties.color",
                    get_line_color="properties.color",
                    get_line_width=StyleConfig.LEARNED_LINE_WIDTH_PX,
                    line_width_units="pixels",
                    filled=is_polygon,
                    stroked=True,
                    pickable=True,
                    id=source_id,
                )
            )
        return layers

    def _create_tooltip_config(self) -> dict[str, str | dict[str, str]]:
        """Hover tooltip showing each feature's precomputed text."""
        return {"html": "{tooltip}", "style": StyleConfig.TOOLTIP_STYLE}


class MapInstanceOwner:
    """Creates and owns the single MapHandle of a view.

    Example:
        owner = MapInstanceOwner()
        handle = owner.initialize(container=st.empty())
        if handle is not None:
            synchronizer.sync(handle, ...)
    """

    def __init__(self, width_px: int = MapConfig.MAP_WIDTH_PX, height_px: int = MapConfig.MAP_HEIGHT_PX) -> None:
        self.width_px = width_px
        self.height_px = height_px
        self._handle: MapHandle | None = None

    @property
    def handle(self) -> MapHandle | None:
        return self._handle

    @property
    def is_ready(self) -> bool:
        return self._handle is not None and self._handle.is_ready

    def initialize(self, container: Any) -> MapHandle | None:
        """Create the map once. A second call while live returns the live handle.

        Args:
            container: Render target (a Streamlit placeholder). None means the
                page has not laid it out yet.

        Returns:
            The live MapHandle, or None if the container is unavailable. Never raises
            for a missing container; the next rerun calls initialize again.
        """
        if self._handle is not None and self._handle.is_ready:
            return self._handle
        if container is None:
            logger.warning("[MAP] Container not available, deferring map creation")
            return None

        handle = MapHandle(container=container, width_px=self.width_px, height_px=self.height_px)
        handle._on_load()
        self._handle = handle
        return handle

    # Lifecycle alias
    create = initialize

    def teardown(self) -> None:
        """Release the handle. Safe to call repeatedly."""
        if self._handle is None:
            return
        self._handle._release()
        self._handle = None
        logger.info("[MAP] Torn down")
