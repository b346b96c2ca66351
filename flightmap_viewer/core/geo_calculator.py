"""Geographic helpers for map rendering.

Provides:
- Circle approximation (turn zones as closed polygon rings)
- Bounding boxes of (lon, lat) coordinate sets
- Camera framing (fitBounds equivalent in Web Mercator)
- Popup longitude correction across the antimeridian

The circle uses a local flat-earth approximation (one degree of latitude
= 110.574 km, one degree of longitude = 111.320 km * cos(lat)). It is only
adequate for radii of a few nautical miles and degrades towards the poles.
"""

from math import atan, cos, degrees, exp, isfinite, log, log2, pi, radians, sin, tan

from flightmap_viewer.constants import GeoConfig, MapConfig

# (min_lon, min_lat, max_lon, max_lat)
Bounds = tuple[float, float, float, float]


class GeoCalculator:
    """Static methods for map geometry.

    Coordinates are decimal degrees (WGS84). Every method that returns
    coordinates returns (lon, lat) pairs, the rendering order.
    """

    @staticmethod
    def circle_ring(
        lat: float,
        lon: float,
        radius_nm: float,
        segments: int = GeoConfig.CIRCLE_SEGMENTS,
    ) -> list[tuple[float, float]]:
        """Approximate a circle as a closed polygon ring.

        Args:
            lat: Center latitude (decimal degrees)
            lon: Center longitude (decimal degrees)
            radius_nm: Radius in nautical miles
            segments: Number of sampled angles

        Returns:
            segments + 1 (lon, lat) pairs, the last equal to the first.

        Raises:
            ValueError: If radius_nm is not positive.
        """
        if radius_nm <= 0:
            raise ValueError(f"Circle radius must be positive, got {radius_nm} nm")

        radius_km = radius_nm * GeoConfig.KM_PER_NM
        dx_deg = radius_km / (GeoConfig.KM_PER_DEG_LON_EQUATOR * cos(radians(lat)))
        dy_deg = radius_km / GeoConfig.KM_PER_DEG_LAT

        ring = []
        for i in range(segments):
            theta = (i / segments) * 2 * pi
            ring.append((lon + dx_deg * cos(theta), lat + dy_deg * sin(theta)))
        ring.append(ring[0])
        return ring

    @staticmethod
    def bounds(coordinates: list[tuple[float, float]]) -> Bounds | None:
        """Bounding box of (lon, lat) pairs, None for an empty list."""
        if not coordinates:
            return None
        lons = [c[0] for c in coordinates]
        lats = [c[1] for c in coordinates]
        return (min(lons), min(lats), max(lons), max(lats))

    @staticmethod
    def _mercator_y(lat: float) -> float:
        """Normalized Web Mercator y (0 at top, 1 at bottom)."""
        lat_rad = radians(lat)
        return (1 - log(tan(lat_rad) + 1 / cos(lat_rad)) / pi) / 2

    @staticmethod
    def _mercator_lat(y: float) -> float:
        """Inverse of _mercator_y."""
        return degrees(2 * atan(exp(pi * (1 - 2 * y))) - pi / 2)

    @staticmethod
    def fit_bounds(
        bounds: Bounds,
        width_px: int = MapConfig.MAP_WIDTH_PX,
        height_px: int = MapConfig.MAP_HEIGHT_PX,
        padding_px: int = MapConfig.FIT_PADDING_PX,
        max_zoom: float = MapConfig.FIT_MAX_ZOOM,
    ) -> tuple[float, float, float]:
        """Camera that shows bounds inside a padded viewport.

        Same result as a map library's fitBounds: the box is centered and the
        largest zoom is chosen at which it fits on both axes.

        Args:
            bounds: (min_lon, min_lat, max_lon, max_lat)
            width_px: Viewport width
            height_px: Viewport height
            padding_px: Padding on every side
            max_zoom: Upper zoom limit (single points or tiny boxes)

        Returns:
            Tuple (center_lon, center_lat, zoom).
        """
        min_lon, min_lat, max_lon, max_lat = bounds

        x_min = (min_lon + 180) / 360
        x_max = (max_lon + 180) / 360
        y_top = GeoCalculator._mercator_y(max_lat)
        y_bottom = GeoCalculator._mercator_y(min_lat)

        usable_w = max(1, width_px - 2 * padding_px)
        usable_h = max(1, height_px - 2 * padding_px)

        zoom = max_zoom
        span_x = x_max - x_min
        span_y = y_bottom - y_top
        if span_x > 0:
            zoom = min(zoom, log2(usable_w / (span_x * MapConfig.TILE_SIZE_PX)))
        if span_y > 0:
            zoom = min(zoom, log2(usable_h / (span_y * MapConfig.TILE_SIZE_PX)))

        center_lon = (min_lon + max_lon) / 2
        center_lat = GeoCalculator._mercator_lat((y_top + y_bottom) / 2)
        return center_lon, center_lat, max(0.0, zoom)

    @staticmethod
    def wrap_popup_longitude(feature_lon: float, cursor_lon: float) -> float:
        """Shift a feature longitude by 360° steps towards the cursor.

        When the map is panned across the antimeridian, the cursor longitude is
        unwrapped (e.g. -179.9 next to a feature stored at 179.9). Anchoring the
        popup at the raw feature longitude would put it on the other side of
        the world.

        Returns:
            Longitude within 180° of cursor_lon, or feature_lon unchanged
            when cursor_lon is not finite.
        """
        if not isfinite(cursor_lon):
            return feature_lon
        return feature_lon + 360 * round((cursor_lon - feature_lon) / 360)
