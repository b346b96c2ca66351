"""Tests for the source synchronizer.

Tests: compute_source_updates (pure), SourceSynchronizer.sync (effect on a map handle)
Focus: Wholesale replacement, visibility gating, coarse fallback, camera framing

Note: Fixtures are defined in conftest.py (analysis payload, learned payload, ready handle).
"""

from unittest.mock import MagicMock

from flightmap_viewer.constants import MarkerConfig, Overlay, SourceIds, StyleConfig
from flightmap_viewer.core.learned_layers import LearnedLayersCache
from flightmap_viewer.model.learned import LearnedLayers
from flightmap_viewer.model.track_point import AnomalyPoint, ModelLayer, RawPathPoint, TrackPoint
from flightmap_viewer.ui.center_map import MapHandle, MapInstanceOwner
from flightmap_viewer.ui.source_sync import (
    MARKER_CATEGORIES,
    SourceSynchronizer,
    compute_source_updates,
    marker_category,
    route_points_collection,
)
from flightmap_viewer.ui.state_machine import VisibilityFlags, VisibilityState

ALL_LEARNED_VISIBLE = VisibilityFlags(paths=True, turns=True, sids=True, stars=True, ml_points=True)


def feature_count(collection: dict) -> int:
    return len(collection["features"])


class TestComputeSourceUpdates:
    """compute_source_updates - pure translation to sources and markers."""

    def test_empty_input(self) -> None:
        """Nothing to show: every source empty, every marker category present and empty, no bounds."""
        updates = compute_source_updates(
            track_points=(), anomaly_points=(), learned_layers=LearnedLayers.empty(), flags=VisibilityFlags()
        )
        assert set(updates.sources) == set(SourceIds.DYNAMIC)
        assert all(feature_count(c) == 0 for c in updates.sources.values())
        assert set(updates.markers) == set(MARKER_CATEGORIES)
        assert all(specs == [] for specs in updates.markers.values())
        assert updates.bounds is None

    def test_route_from_track(self, track_points: tuple[TrackPoint, ...]) -> None:
        """N track points give an N-vertex line, N point features and start/end markers."""
        updates = compute_source_updates(
            track_points=track_points, anomaly_points=(), learned_layers=LearnedLayers.empty(), flags=VisibilityFlags()
        )
        line = updates.sources[SourceIds.ROUTE]["features"][0]
        assert line["geometry"]["type"] == "LineString"
        assert line["geometry"]["coordinates"][0] == [34.88, 32.00]
        assert len(line["geometry"]["coordinates"]) == 5
        assert feature_count(updates.sources[SourceIds.ROUTE_POINTS]) == 5

        start, end = updates.markers[MarkerConfig.CATEGORY_ROUTE]
        assert (start.lon, start.lat, start.color) == (34.88, 32.00, StyleConfig.START_MARKER_COLOR)
        assert (end.lon, end.lat, end.color) == (35.02, 32.22, StyleConfig.END_MARKER_COLOR)

    def test_defer_end_marker(self, track_points: tuple[TrackPoint, ...]) -> None:
        """While the route animates only the start marker is placed."""
        updates = compute_source_updates(
            track_points=track_points,
            anomaly_points=(),
            learned_layers=LearnedLayers.empty(),
            flags=VisibilityFlags(),
            defer_end_marker=True,
        )
        assert [m.label for m in updates.markers[MarkerConfig.CATEGORY_ROUTE]] == [MarkerConfig.START_LABEL]

    def test_missing_heading_defaults_to_zero(self) -> None:
        """A point without heading reports heading 0."""
        collection = route_points_collection([TrackPoint(lat=31.0, lon=34.8, altitude=1000, timestamp=0)])
        assert collection["features"][0]["properties"]["heading"] == 0.0

    def test_coarse_path_fallback(self) -> None:
        """Without detailed points the coarse path is drawn, without point features."""
        coarse = (RawPathPoint(lat=31.0, lon=34.8), RawPathPoint(lat=31.5, lon=35.0))
        updates = compute_source_updates(
            track_points=(),
            anomaly_points=(),
            learned_layers=LearnedLayers.empty(),
            flags=VisibilityFlags(),
            coarse_path=coarse,
        )
        assert updates.route_coordinates == [(34.8, 31.0), (35.0, 31.5)]
        assert feature_count(updates.sources[SourceIds.ROUTE_POINTS]) == 0
        assert len(updates.markers[MarkerConfig.CATEGORY_ROUTE]) == 2

    def test_detailed_track_wins_over_coarse(self, track_points: tuple[TrackPoint, ...]) -> None:
        """A coarse path is ignored when detailed points exist."""
        coarse = (RawPathPoint(lat=0.0, lon=0.0), RawPathPoint(lat=1.0, lon=1.0))
        updates = compute_source_updates(
            track_points=track_points,
            anomaly_points=(),
            learned_layers=LearnedLayers.empty(),
            flags=VisibilityFlags(),
            coarse_path=coarse,
        )
        assert updates.route_coordinates == [p.lon_lat for p in track_points]

    def test_anomaly_points_per_model_category(self, anomaly_points: list[AnomalyPoint]) -> None:
        """Anomaly markers are grouped by model layer and colored by it."""
        updates = compute_source_updates(
            track_points=(), anomaly_points=anomaly_points, learned_layers=LearnedLayers.empty(), flags=VisibilityFlags()
        )
        assert len(updates.markers[marker_category(ModelLayer.DEEP_DENSE)]) == 1
        assert len(updates.markers[marker_category(ModelLayer.TRANSFORMER)]) == 2
        assert updates.markers[marker_category(ModelLayer.HYBRID)] == []

        features = updates.sources[SourceIds.ML_POINTS]["features"]
        assert len(features) == 3
        assert features[0]["properties"]["color"] == StyleConfig.MODEL_COLORS["deep_dense"]

    def test_ml_points_hidden(
        self, track_points: tuple[TrackPoint, ...], anomaly_points: list[AnomalyPoint]
    ) -> None:
        """Hidden ML points leave their source and markers empty and out of framing."""
        updates = compute_source_updates(
            track_points=track_points,
            anomaly_points=anomaly_points,
            learned_layers=LearnedLayers.empty(),
            flags=VisibilityFlags(ml_points=False),
        )
        assert feature_count(updates.sources[SourceIds.ML_POINTS]) == 0
        assert all(updates.markers[marker_category(layer)] == [] for layer in ModelLayer)
        assert updates.bounds == (34.88, 32.00, 35.02, 32.22)

    def test_framing_includes_off_route_anomaly(
        self, track_points: tuple[TrackPoint, ...], off_route_anomaly: AnomalyPoint
    ) -> None:
        """Visible anomaly points extend the framed bounds."""
        updates = compute_source_updates(
            track_points=track_points,
            anomaly_points=[off_route_anomaly],
            learned_layers=LearnedLayers.empty(),
            flags=VisibilityFlags(),
        )
        assert updates.bounds == (34.88, 32.00, 36.0, 33.5)

    def test_learned_hidden_even_with_data(self, learned_layers: LearnedLayers) -> None:
        """Hidden overlays write empty collections regardless of cached data."""
        updates = compute_source_updates(
            track_points=(), anomaly_points=(), learned_layers=learned_layers, flags=VisibilityFlags()
        )
        for source_id in SourceIds.LEARNED:
            assert feature_count(updates.sources[source_id]) == 0

    def test_learned_visible(self, learned_layers: LearnedLayers) -> None:
        """Visible overlays render their renderable entries only."""
        updates = compute_source_updates(
            track_points=(), anomaly_points=(), learned_layers=learned_layers, flags=ALL_LEARNED_VISIBLE
        )
        # Single-vertex path dropped
        assert feature_count(updates.sources[SourceIds.LEARNED_PATHS]) == 1
        # Zero-radius zone dropped
        turns = updates.sources[SourceIds.LEARNED_TURNS]["features"]
        assert len(turns) == 1
        assert turns[0]["geometry"]["type"] == "Polygon"
        assert len(turns[0]["geometry"]["coordinates"][0]) == 33
        sids = updates.sources[SourceIds.LEARNED_SIDS]["features"]
        assert len(sids[0]["geometry"]["coordinates"]) == 2
        assert feature_count(updates.sources[SourceIds.LEARNED_STARS]) == 1

    def test_learned_excluded_from_framing(
        self, track_points: tuple[TrackPoint, ...], learned_layers: LearnedLayers
    ) -> None:
        """Learned overlays never move the camera."""
        updates = compute_source_updates(
            track_points=track_points, anomaly_points=(), learned_layers=learned_layers, flags=ALL_LEARNED_VISIBLE
        )
        assert updates.bounds == (34.88, 32.00, 35.02, 32.22)

    def test_learned_only_has_no_bounds(self, learned_layers: LearnedLayers) -> None:
        """With no route and no anomalies there is nothing to frame."""
        updates = compute_source_updates(
            track_points=(), anomaly_points=(), learned_layers=learned_layers, flags=ALL_LEARNED_VISIBLE
        )
        assert updates.bounds is None


class TestSourceSynchronizer:
    """SourceSynchronizer.sync - applying updates to a map handle."""

    def test_not_ready_is_noop(self, track_points: tuple[TrackPoint, ...]) -> None:
        """A torn-down or missing handle is skipped without error."""
        synchronizer = SourceSynchronizer()
        assert (
            synchronizer.sync(None, track_points, (), LearnedLayers.empty(), VisibilityFlags())  # type: ignore[arg-type]
            is None
        )

        owner = MapInstanceOwner()
        handle = owner.initialize(container=object())
        assert handle is not None
        owner.teardown()
        assert synchronizer.sync(handle, track_points, (), LearnedLayers.empty(), VisibilityFlags()) is None
        assert handle.markers.count() == 0

    def test_sync_writes_sources_and_fits(
        self, handle: MapHandle, track_points: tuple[TrackPoint, ...], anomaly_points: list[AnomalyPoint]
    ) -> None:
        """Sources, markers and camera reflect the data."""
        updates = SourceSynchronizer().sync(handle, track_points, anomaly_points, LearnedLayers.empty(), VisibilityFlags())
        assert updates is not None
        assert feature_count(handle.get_source_data(SourceIds.ROUTE_POINTS)) == 5
        assert handle.markers.count(MarkerConfig.CATEGORY_ROUTE) == 2
        assert handle.markers.count() == 2 + 3
        assert handle.viewport.bounds == updates.bounds

    def test_empty_data_does_not_move_camera(self, handle: MapHandle) -> None:
        """No coordinates, no fit."""
        SourceSynchronizer().sync(handle, (), (), LearnedLayers.empty(), VisibilityFlags())
        assert handle.viewport.bounds is None

    def test_idempotent(
        self, handle: MapHandle, track_points: tuple[TrackPoint, ...], anomaly_points: list[AnomalyPoint]
    ) -> None:
        """Syncing the same inputs twice leaves the same state, no duplicate markers."""
        synchronizer = SourceSynchronizer()
        synchronizer.sync(handle, track_points, anomaly_points, LearnedLayers.empty(), VisibilityFlags())
        first = {s: handle.get_source_data(s) for s in SourceIds.DYNAMIC}
        count = handle.markers.count()
        synchronizer.sync(handle, track_points, anomaly_points, LearnedLayers.empty(), VisibilityFlags())
        assert {s: handle.get_source_data(s) for s in SourceIds.DYNAMIC} == first
        assert handle.markers.count() == count

    def test_new_flight_replaces_old(self, handle: MapHandle, track_points: tuple[TrackPoint, ...]) -> None:
        """Loading a shorter flight leaves nothing of the previous one."""
        synchronizer = SourceSynchronizer()
        synchronizer.sync(handle, track_points, (), LearnedLayers.empty(), VisibilityFlags())
        synchronizer.sync(handle, track_points[:2], (), LearnedLayers.empty(), VisibilityFlags())
        assert feature_count(handle.get_source_data(SourceIds.ROUTE_POINTS)) == 2
        assert handle.markers.count(MarkerConfig.CATEGORY_ROUTE) == 2

    def test_toggle_restores_without_refetch(
        self, handle: MapHandle, visibility: VisibilityState, learned_layers: LearnedLayers
    ) -> None:
        """Hide then show an overlay: same data again, fetched exactly once."""
        fetcher = MagicMock()
        fetcher.fetch.return_value = learned_layers
        cache = LearnedLayersCache()
        synchronizer = SourceSynchronizer()

        def sync() -> None:
            cache.ensure_requested(fetcher=fetcher, background=False)
            synchronizer.sync(handle, (), (), cache.layers, visibility.flags())

        visibility.set_visible(Overlay.TURNS, True)
        sync()
        shown = handle.get_source_data(SourceIds.LEARNED_TURNS)
        assert feature_count(shown) == 1

        visibility.set_visible(Overlay.TURNS, False)
        sync()
        assert feature_count(handle.get_source_data(SourceIds.LEARNED_TURNS)) == 0

        visibility.set_visible(Overlay.TURNS, True)
        sync()
        assert handle.get_source_data(SourceIds.LEARNED_TURNS) == shown
        assert fetcher.fetch.call_count == 1

    def test_late_learned_data_shows_on_next_sync(self, handle: MapHandle, learned_layers: LearnedLayers) -> None:
        """An overlay toggled on before the data arrived fills in on the next sync."""
        synchronizer = SourceSynchronizer()
        flags = VisibilityFlags(paths=True)
        synchronizer.sync(handle, (), (), LearnedLayers.empty(), flags)
        assert feature_count(handle.get_source_data(SourceIds.LEARNED_PATHS)) == 0
        synchronizer.sync(handle, (), (), learned_layers, flags)
        assert feature_count(handle.get_source_data(SourceIds.LEARNED_PATHS)) == 1
