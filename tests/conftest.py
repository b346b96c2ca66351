"""Shared pytest fixtures for flightmap_viewer tests.

Provides backend-shaped payloads, parsed domain objects and a ready map
handle. All fixtures use explicit values with documented rationale.

COORDINATE SYSTEM:
    Tests use coordinates over Israel (lat ~31-32, lon ~34-35), the region
    the map starts centered on. Payloads use the backend wire keys ("alt",
    "track", "gspeed", "point_score", [lon, lat] coarse path).
"""

from typing import Any

import pytest
import requests

from flightmap_viewer.core.learned_layers import LearnedLayersCache
from flightmap_viewer.model.analysis_result import AnalysisResult
from flightmap_viewer.model.learned import LearnedLayers
from flightmap_viewer.model.track_point import AnomalyPoint, ModelLayer, TrackPoint
from flightmap_viewer.ui.center_map import MapHandle, MapInstanceOwner
from flightmap_viewer.ui.route_animation import RouteAnimator
from flightmap_viewer.ui.state_machine import VisibilityState

# 2024-01-01 10:00:00 UTC
T0 = 1704103200


# =============================================================================
# FAKES
# =============================================================================


class FakeContainer:
    """Stands in for a Streamlit placeholder (only identity matters)."""

    def __init__(self, name: str = "map") -> None:
        self.name = name


class FakeResponse:
    """Minimal requests.Response replacement for session mocks."""

    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)  # type: ignore[arg-type]

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Records GET calls and answers with a fixed FakeResponse."""

    def __init__(self, response: FakeResponse) -> None:
        self.response = response
        self.calls: list[str] = []

    def get(self, url: str, timeout: float) -> FakeResponse:
        self.calls.append(url)
        return self.response


# =============================================================================
# PAYLOADS
# =============================================================================


@pytest.fixture
def track_payload() -> list[dict[str, Any]]:
    """Five-minute climb out of Ben Gurion, one point per minute."""
    return [
        {"lat": 32.00, "lon": 34.88, "alt": 1000, "timestamp": T0, "track": 10.0, "gspeed": 180},
        {"lat": 32.05, "lon": 34.90, "alt": 3000, "timestamp": T0 + 60, "track": 15.0, "gspeed": 220},
        {"lat": 32.10, "lon": 34.93, "alt": 6000, "timestamp": T0 + 120, "track": 20.0},
        {"lat": 32.16, "lon": 34.97, "alt": 9000, "timestamp": T0 + 180},
        {"lat": 32.22, "lon": 35.02, "alt": 11000, "timestamp": T0 + 240, "track": 30.0, "gspeed": 300},
    ]


@pytest.fixture
def analysis_payload(track_payload: list[dict[str, Any]]) -> dict[str, Any]:
    """Analysis with a detailed track and two models reporting anomaly points."""
    return {
        "summary": {
            "flight_id": "3bc6854c",
            "is_anomaly": True,
            "confidence_score": 87.5,
            "num_points": 5,
            "triggers": ["Deep Dense AE", "Transformer"],
            "flight_path": [[p["lon"], p["lat"]] for p in track_payload],
        },
        "track": {"points": track_payload},
        "layer_3_deep_dense": {
            "status": "ANOMALY",
            "is_anomaly": True,
            "score": 0.91,
            "anomaly_points": [{"lat": 32.10, "lon": 34.93, "timestamp": T0 + 120, "point_score": 0.0123}],
        },
        "layer_5_transformer": {
            "status": "ANOMALY",
            "is_anomaly": True,
            "score": 0.75,
            "anomaly_points": [
                {"lat": 32.16, "lon": 34.97, "timestamp": T0 + 180, "point_score": 0.5},
                {"lat": 32.40, "lon": 35.30, "timestamp": T0 + 200, "point_score": 0.7},
            ],
        },
        "layer_4_deep_cnn": {"status": "NORMAL", "is_anomaly": False, "anomaly_points": []},
    }


@pytest.fixture
def learned_payload() -> dict[str, Any]:
    """One entry per learned category plus entries that must be dropped."""
    return {
        "paths": [
            {
                "id": "LLBG_LLHA_0",
                "origin": "LLBG",
                "destination": "LLHA",
                "centerline": [{"lat": 32.0, "lon": 34.9, "alt": 3000}, {"lat": 32.8, "lon": 35.0, "alt": 4000}],
                "width_nm": 4.0,
                "member_count": 42,
            },
            {"id": "single_point", "centerline": [{"lat": 31.0, "lon": 34.0}], "member_count": 1},
        ],
        "turns": [
            {"cluster_id": 7, "centroid_lat": 31.5, "centroid_lon": 34.8, "radius_nm": 3.0, "avg_alt": 12000},
            {"id": "zero_radius", "lat": 31.6, "lon": 34.9, "radius_nm": 0},
            {"id": "no_center", "radius_nm": 2.0},
        ],
        "sids": [
            {
                "id": "SID_LLBG_0",
                "airport": "LLBG",
                "centerline": [{"lat": 32.0, "lon": 34.88}, {"lon": 34.7}, {"lat": 32.1, "lon": 34.6}],
                "member_count": 12,
            }
        ],
        "stars": [
            {
                "id": "STAR_LLBG_0",
                "airport": "LLBG",
                "centerline": [{"lat": 31.7, "lon": 35.2}, {"lat": 32.0, "lon": 34.88}],
                "member_count": 9,
            }
        ],
    }


# =============================================================================
# DOMAIN OBJECTS
# =============================================================================


@pytest.fixture
def analysis(analysis_payload: dict[str, Any]) -> AnalysisResult:
    return AnalysisResult.from_dict(analysis_payload)


@pytest.fixture
def track_points(analysis: AnalysisResult) -> tuple[TrackPoint, ...]:
    return analysis.track_points


@pytest.fixture
def anomaly_points(analysis: AnalysisResult) -> list[AnomalyPoint]:
    """Three points: one Deep Dense, two Transformer (one off-route)."""
    return analysis.anomaly_points()


@pytest.fixture
def learned_layers(learned_payload: dict[str, Any]) -> LearnedLayers:
    return LearnedLayers.from_dict(learned_payload)


@pytest.fixture
def off_route_anomaly() -> AnomalyPoint:
    """Anomaly point far outside the route's bounding box."""
    return AnomalyPoint(lat=33.5, lon=36.0, timestamp=T0 + 90, point_score=0.9, model_layer=ModelLayer.HYBRID)


# =============================================================================
# MAP AND UI STATE
# =============================================================================


@pytest.fixture
def owner() -> MapInstanceOwner:
    return MapInstanceOwner()


@pytest.fixture
def handle(owner: MapInstanceOwner) -> MapHandle:
    """Ready map handle created from a fake container."""
    created = owner.initialize(container=FakeContainer())
    assert created is not None
    return created


@pytest.fixture
def visibility() -> VisibilityState:
    return VisibilityState.create(add_log_listener=False)


@pytest.fixture
def cache() -> LearnedLayersCache:
    return LearnedLayersCache()


@pytest.fixture
def animator() -> RouteAnimator:
    """Animator that never sleeps."""
    return RouteAnimator(sleep=lambda _: None)


@pytest.fixture
def container() -> FakeContainer:
    return FakeContainer()


@pytest.fixture
def make_session() -> Any:
    """Factory: make_session(payload, status_code=200) -> FakeSession."""

    def factory(payload: Any, status_code: int = 200) -> FakeSession:
        return FakeSession(FakeResponse(payload, status_code=status_code))

    return factory
