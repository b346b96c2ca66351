"""HTTP access to the anomaly backend.

Two read-only endpoints:
- GET /api/analyze/{flight_id}  -> AnalysisResult
- GET /api/learned-layers       -> LearnedLayers

Both raise requests exceptions on failure. Callers decide what a failure
means: the analyze call surfaces it to the user, the learned-layers fetch
(see core.learned_layers) only logs it.
"""

import logging

import requests

from flightmap_viewer.constants import ApiConfig
from flightmap_viewer.model.analysis_result import AnalysisResult
from flightmap_viewer.model.learned import LearnedLayers

logger = logging.getLogger(__name__)


class _BackendClient:
    """Shared base URL and session handling."""

    def __init__(self, base_url: str = ApiConfig.BASE_URL, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _get_json(self, path: str, timeout: float) -> object:
        url = f"{self.base_url}{path}"
        logger.debug(f"[FETCH] GET {url}")
        response = self.session.get(url, timeout=timeout)
        response.raise_for_status()
        return response.json()


class AnalysisClient(_BackendClient):
    """Fetches the analysis of one flight."""

    def fetch_analysis(self, flight_id: str) -> AnalysisResult:
        """Run (or load) the backend analysis for flight_id.

        Raises:
            requests.RequestException: On network errors and non-2xx responses.
            ValueError: If the payload is not a valid analysis.
        """
        if not flight_id:
            raise ValueError("flight_id must not be empty")
        path = ApiConfig.ANALYZE_PATH.format(flight_id=flight_id)
        data = self._get_json(path=path, timeout=ApiConfig.ANALYZE_TIMEOUT_S)
        result = AnalysisResult.from_dict(data)
        logger.info(
            f"[FETCH] Analysis for {flight_id}: anomaly={result.summary.is_anomaly}, "
            f"{len(result.track_points)} track points, {len(result.anomaly_points())} anomaly points"
        )
        return result


class LearnedLayersFetcher(_BackendClient):
    """Fetches the learned reference geometry document."""

    def fetch(self) -> LearnedLayers:
        """Download and parse the learned layers.

        Raises:
            requests.RequestException: On network errors and non-2xx responses.
            ValueError: If the body is not JSON or not a learned-layers object.
            TypeError: If a field holds a value of the wrong JSON type.
        """
        data = self._get_json(path=ApiConfig.LEARNED_LAYERS_PATH, timeout=ApiConfig.LEARNED_LAYERS_TIMEOUT_S)
        layers = LearnedLayers.from_dict(data)
        logger.info(f"[FETCH] Learned layers loaded: {layers.counts()}")
        return layers
