"""Configuration constants for Flight Anomaly Map.

All configurable parameters are centralized here for easy tuning.

Classes:
    AppConfig: UI application settings
    ApiConfig: Backend endpoints and request timeouts
    MapConfig: Default map view and camera framing parameters
    GeoConfig: Flat-earth circle approximation constants
    SourceIds: Names of the vector sources owned by the map handle
    Overlay: Toggleable overlay categories
    StyleConfig: Visual colors and styling
    MarkerConfig: Marker categories and sizes
    AnimationConfig: Route draw animation pacing
    ChartConfig: Altitude profile chart dimensions
"""

import os


class AppConfig:
    """UI application settings."""

    TITLE = "Flight Anomaly Map"
    ICON = "✈️"
    LAYOUT = "wide"
    DEFAULT_FLIGHT_ID = "3bc6854c"


class ApiConfig:
    """Backend endpoints consumed by the viewer."""

    BASE_URL = os.environ.get("FLIGHTMAP_API_URL", "http://localhost:8000")
    ANALYZE_PATH = "/api/analyze/{flight_id}"
    LEARNED_LAYERS_PATH = "/api/learned-layers"

    # Analysis runs several models server-side, give it time
    ANALYZE_TIMEOUT_S = 120
    LEARNED_LAYERS_TIMEOUT_S = 30


class MapConfig:
    """Default map view parameters."""

    # Initial center: Israel
    START_CENTER_LAT = 31.0461
    START_CENTER_LON = 34.8516
    DEFAULT_ZOOM = 6

    # Rendered map size (pixels), also used for camera framing math
    MAP_WIDTH_PX = 1000
    MAP_HEIGHT_PX = 560

    # fitBounds equivalent
    FIT_PADDING_PX = 50
    FIT_MAX_ZOOM = 14.0

    # deck.gl web mercator tiles are 512px
    TILE_SIZE_PX = 512

    # Picking tolerance for small point features
    PICKING_RADIUS_PX = 6

    # Dark basemap without API key
    MAP_STYLE = "https://basemaps.cartocdn.com/gl/dark-matter-gl-style/style.json"


class GeoConfig:
    """Constants of the local flat-earth circle approximation.

    Adequate for turn zones a few nautical miles across, not geodesically exact.
    """

    KM_PER_NM = 1.852
    KM_PER_DEG_LAT = 110.574
    KM_PER_DEG_LON_EQUATOR = 111.320
    CIRCLE_SEGMENTS = 32


class SourceIds:
    """Vector source names owned by MapHandle."""

    AIRPORTS = "airports"
    ROUTE = "route"
    ROUTE_POINTS = "route-points"
    ML_POINTS = "ml-anomaly-points"
    LEARNED_PATHS = "learned-paths"
    LEARNED_TURNS = "learned-turns"
    LEARNED_SIDS = "learned-sids"
    LEARNED_STARS = "learned-stars"

    # Created exactly once when the handle is created
    BASE = [AIRPORTS, ROUTE, ROUTE_POINTS, ML_POINTS]
    # Created lazily on first write
    LEARNED = [LEARNED_PATHS, LEARNED_TURNS, LEARNED_SIDS, LEARNED_STARS]
    # Rewritten by every sync (airports are static)
    DYNAMIC = [ROUTE, ROUTE_POINTS, ML_POINTS] + LEARNED


class Overlay:
    """Toggleable overlay categories (one visibility flag each)."""

    PATHS = "paths"
    TURNS = "turns"
    SIDS = "sids"
    STARS = "stars"
    ML_POINTS = "ml_points"

    LEARNED = [PATHS, TURNS, SIDS, STARS]
    ALL = LEARNED + [ML_POINTS]

    # Learned overlay -> source it writes
    SOURCE_BY_OVERLAY = {
        PATHS: SourceIds.LEARNED_PATHS,
        TURNS: SourceIds.LEARNED_TURNS,
        SIDS: SourceIds.LEARNED_SIDS,
        STARS: SourceIds.LEARNED_STARS,
    }
    assert set(SOURCE_BY_OVERLAY.values()) == set(SourceIds.LEARNED)

    DISPLAY_NAMES = {
        PATHS: "Learned paths",
        TURNS: "Turn zones",
        SIDS: "SIDs",
        STARS: "STARs",
        ML_POINTS: "ML anomaly points",
    }
    assert set(DISPLAY_NAMES.keys()) == set(ALL)

    # Learned overlays start hidden, ML points start visible
    DEFAULT_VISIBLE = {
        PATHS: False,
        TURNS: False,
        SIDS: False,
        STARS: False,
        ML_POINTS: True,
    }
    assert set(DEFAULT_VISIBLE.keys()) == set(ALL)


class StyleConfig:
    """Visual colors and styling (RGBA lists, 0-255)."""

    ROUTE_LINE_COLOR = [59, 130, 246, 255]  # blue-500
    ROUTE_LINE_WIDTH_PX = 4
    ROUTE_POINT_COLOR = [147, 197, 253, 200]  # blue-300
    ROUTE_POINT_RADIUS_PX = 3

    AIRPORT_FILL_COLOR = [255, 255, 255, 255]
    AIRPORT_LINE_COLOR = [0, 0, 0, 255]
    AIRPORT_LABEL_COLOR = [204, 204, 204, 255]
    AIRPORT_RADIUS_PX = 4
    AIRPORT_LABEL_SIZE = 10

    LEARNED_COLORS = {
        SourceIds.LEARNED_PATHS: [250, 204, 21, 160],  # yellow-400
        SourceIds.LEARNED_TURNS: [168, 85, 247, 90],  # purple-500
        SourceIds.LEARNED_SIDS: [34, 197, 94, 180],  # green-500
        SourceIds.LEARNED_STARS: [249, 115, 22, 180],  # orange-500
    }
    assert set(LEARNED_COLORS.keys()) == set(SourceIds.LEARNED)
    LEARNED_LINE_WIDTH_PX = 2

    # Per-model anomaly colors, keyed by ModelLayer value
    MODEL_COLORS = {
        "deep_dense": [239, 68, 68, 230],  # red-500
        "deep_cnn": [236, 72, 153, 230],  # pink-500
        "transformer": [245, 158, 11, 230],  # amber-500
        "hybrid": [20, 184, 166, 230],  # teal-500
    }

    START_MARKER_COLOR = [16, 185, 129, 255]  # emerald-500
    END_MARKER_COLOR = [239, 68, 68, 255]  # red-500

    POPUP_TEXT_COLOR = [255, 255, 255, 255]
    POPUP_BACKGROUND_COLOR = [17, 24, 39, 230]  # gray-900

    TOOLTIP_STYLE = {
        "backgroundColor": "rgba(17, 24, 39, 0.92)",
        "color": "#f9fafb",
        "padding": "6px 10px",
        "borderRadius": "4px",
        "fontSize": "12px",
    }


class MarkerConfig:
    """Marker categories and sizes."""

    # Start/end flags of the route
    CATEGORY_ROUTE = "route"

    START_LABEL = "Start"
    END_LABEL = "End"

    ROUTE_MARKER_RADIUS_PX = 8
    ANOMALY_MARKER_RADIUS_PX = 6
    MARKER_LINE_COLOR = [255, 255, 255, 255]


class AnimationConfig:
    """Route draw animation pacing."""

    # Whole route drawn in ~2 seconds at 60 fps
    TARGET_FRAMES = 120
    FRAME_INTERVAL_S = 1 / 60


class ChartConfig:
    """Altitude profile chart settings."""

    PROFILE_WIDTH = 1000
    PROFILE_HEIGHT = 280

    ALTITUDE_PADDING_FACTOR = 0.1  # 10% padding above/below
    ALTITUDE_PADDING_MIN_FT = 500
