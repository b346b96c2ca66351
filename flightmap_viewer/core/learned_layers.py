"""Cache for the learned reference geometry.

The learned layers are fetched once per mount (one Streamlit session) in a
background thread and kept here, independent of which overlays are visible.
Toggling an overlay only changes what the next sync reads from the cache;
it never triggers a fetch. The cache is refetched only after invalidate().

Fetch policy:
- Fire-and-forget, no retry, no cancellation.
- A failure is logged and leaves the cache empty (status FAILED); the map
  keeps working without overlays.
- A result arriving after the view went away only fills this inert cache;
  one arriving after invalidate() is dropped.
"""

import logging
import threading
from enum import Enum

import requests

from flightmap_viewer.core.api_client import LearnedLayersFetcher
from flightmap_viewer.model.learned import LearnedLayers

logger = logging.getLogger(__name__)


class FetchStatus(Enum):
    """Lifecycle of the one fetch per mount."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class LearnedLayersCache:
    """Thread-safe holder of the fetched LearnedLayers.

    Example:
        cache = LearnedLayersCache()
        cache.ensure_requested(fetcher=LearnedLayersFetcher())  # every rerun, fetches once
        layers = cache.layers  # empty until the fetch completes
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._layers = LearnedLayers.empty()
        self._status = FetchStatus.IDLE
        self._thread: threading.Thread | None = None
        # Bumped by every request and by invalidate(); a load only writes for its own generation
        self._generation = 0

    @property
    def layers(self) -> LearnedLayers:
        """Cached layers, empty until loaded."""
        with self._lock:
            return self._layers

    @property
    def status(self) -> FetchStatus:
        with self._lock:
            return self._status

    @property
    def is_loaded(self) -> bool:
        return self.status == FetchStatus.LOADED

    def ensure_requested(self, fetcher: LearnedLayersFetcher, background: bool = True) -> bool:
        """Start the fetch if this mount has not requested it yet.

        Args:
            fetcher: Backend fetcher
            background: Run in a daemon thread (True) or inline (False)

        Returns:
            True if a fetch was started by this call.
        """
        with self._lock:
            if self._status != FetchStatus.IDLE:
                return False
            self._status = FetchStatus.LOADING
            self._generation += 1
            generation = self._generation

        if background:
            self._thread = threading.Thread(
                target=self.load, args=(fetcher, generation), name="learned-layers-fetch", daemon=True
            )
            self._thread.start()
        else:
            self.load(fetcher, generation)
        return True

    def load(self, fetcher: LearnedLayersFetcher, generation: int | None = None) -> None:
        """Fetch and store the layers. Failures are logged, not raised.

        Args:
            fetcher: Backend fetcher
            generation: Request this load belongs to. The result is dropped if
                invalidate() or a newer request has happened since. None
                means the current generation.
        """
        with self._lock:
            if generation is None:
                generation = self._generation

        try:
            layers = fetcher.fetch()
        except (requests.RequestException, ValueError, TypeError) as e:
            logger.warning(f"[FETCH] Learned layers unavailable: {e}")
            with self._lock:
                if generation == self._generation:
                    self._status = FetchStatus.FAILED
            return

        with self._lock:
            if generation != self._generation:
                logger.info(f"[FETCH] Dropping stale learned layers (generation {generation})")
                return
            self._layers = layers
            self._status = FetchStatus.LOADED

    def wait(self, timeout: float | None = None) -> None:
        """Block until a background fetch finishes (tests, scripts)."""
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def invalidate(self) -> None:
        """Forget the cached layers so the next mount fetches again.

        A fetch still in flight keeps running but its result is discarded.
        """
        with self._lock:
            self._layers = LearnedLayers.empty()
            self._status = FetchStatus.IDLE
            self._thread = None
            self._generation += 1
        logger.info("[FETCH] Learned layers cache invalidated")
