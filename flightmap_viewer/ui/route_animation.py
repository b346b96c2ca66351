"""Progressive route drawing.

The route line is revealed in prefixes over about TARGET_FRAMES frames:
each frame extends the drawn prefix by max(1, ceil(n / TARGET_FRAMES))
coordinates and writes it to the route source. After the final frame the
end marker is added.

Only the newest animation may write. start() hands out a generation token;
a running loop checks it before every frame and stops silently once a newer
animation (or cancel()) has replaced it. Frames never run against a handle
that is no longer ready.
"""

import logging
import time
from collections.abc import Callable, Sequence
from math import ceil
from typing import TYPE_CHECKING

from flightmap_viewer.constants import AnimationConfig, MarkerConfig, SourceIds
from flightmap_viewer.ui.source_sync import LonLat, end_marker_spec, route_line_collection

if TYPE_CHECKING:
    from flightmap_viewer.ui.center_map import MapHandle

logger = logging.getLogger(__name__)


def frame_ends(n: int, target_frames: int = AnimationConfig.TARGET_FRAMES) -> list[int]:
    """Prefix lengths drawn by successive frames.

    Example:
        frame_ends(5) == [1, 2, 3, 4, 5]
        frame_ends(300) == [3, 6, ..., 297, 300]
    """
    if n <= 0:
        return []
    step = max(1, ceil(n / target_frames))
    ends = list(range(step, n, step))
    ends.append(n)
    return ends


class RouteAnimator:
    """Draws a route progressively, one animation at a time.

    Example:
        animator = RouteAnimator()
        if animator.needs_restart(coords):
            animator.run(handle, coords, on_frame=lambda _: placeholder_redraw())
    """

    def __init__(
        self,
        frame_interval_s: float = AnimationConfig.FRAME_INTERVAL_S,
        target_frames: int = AnimationConfig.TARGET_FRAMES,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.frame_interval_s = frame_interval_s
        self.target_frames = target_frames
        self._sleep = sleep
        self._generation = 0
        self._last_path: tuple[LonLat, ...] | None = None
        self._completed = False

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def completed(self) -> bool:
        """True once the latest animation reached its final frame."""
        return self._completed

    def needs_restart(self, coordinates: Sequence[LonLat]) -> bool:
        """True if coordinates differ from the last animated route."""
        return tuple(tuple(c) for c in coordinates) != self._last_path

    def start(self, coordinates: Sequence[LonLat]) -> int:
        """Supersede any running animation. Returns the new token."""
        self._generation += 1
        self._last_path = tuple(tuple(c) for c in coordinates)
        self._completed = False
        return self._generation

    def cancel(self) -> None:
        """Stop the running animation at its next frame."""
        self._generation += 1

    def is_current(self, token: int) -> bool:
        return token == self._generation

    def run(
        self,
        handle: "MapHandle",
        coordinates: Sequence[LonLat],
        on_frame: Callable[[int], None] | None = None,
        on_complete: Callable[[], None] | None = None,
    ) -> bool:
        """Animate coordinates into the route source of handle.

        Args:
            handle: Ready map handle
            coordinates: (lon, lat) route as drawn
            on_frame: Called with the drawn prefix length after each frame
                (e.g. to redraw the Streamlit placeholder)
            on_complete: Called once after the end marker was added

        Returns:
            True if the animation ran to completion, False if it was
            superseded, cancelled or the handle stopped being ready.
        """
        token = self.start(coordinates)
        coords = list(coordinates)
        if not coords:
            self._completed = True
            return True

        ends = frame_ends(len(coords), self.target_frames)
        logger.info(f"[ANIM] Drawing {len(coords)} points in {len(ends)} frames (token {token})")

        for i, end in enumerate(ends):
            if not self.is_current(token) or not handle.is_ready:
                logger.debug(f"[ANIM] Token {token} stopped before frame {i}")
                return False
            handle.set_source_data(SourceIds.ROUTE, route_line_collection(coords[:end]))
            if on_frame is not None:
                on_frame(end)
            if i < len(ends) - 1:
                self._sleep(self.frame_interval_s)

        if not self.is_current(token) or not handle.is_ready:
            return False
        handle.markers.add(MarkerConfig.CATEGORY_ROUTE, end_marker_spec(coords))
        self._completed = True
        if on_complete is not None:
            on_complete()
        return True
