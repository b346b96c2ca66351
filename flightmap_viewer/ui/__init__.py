"""User interface components for the flight anomaly map.

File Structure (layout-based naming):
- left_panel.py: Sidebar with flight input, overlay toggles, summary
- center_map.py: Map instance owner, sources, pydeck rendering
- bottom_chart.py: Plotly altitude profile chart

Core Components:
- state_machine.py: Per-overlay visibility machines + VisibilityFlags
- source_sync.py: Application data -> map sources and markers
- markers.py: Marker and popup controllers
- route_animation.py: Progressive route drawing
- pydeck_click_handler.py: st_deckgl click capture
- infra.py: Mockable Streamlit rerun/map version helpers
"""

from flightmap_viewer.ui.bottom_chart import AltitudeProfileChart
from flightmap_viewer.ui.center_map import MapHandle, MapInstanceOwner
from flightmap_viewer.ui.markers import MarkerController, MarkerSpec, PopupController
from flightmap_viewer.ui.route_animation import RouteAnimator
from flightmap_viewer.ui.source_sync import SourceSynchronizer, SourceUpdates, compute_source_updates
from flightmap_viewer.ui.state_machine import (
    OverlayVisibilityMachine,
    VisibilityFlags,
    VisibilityState,
)

__all__ = [
    "MapInstanceOwner",
    "MapHandle",
    "SourceSynchronizer",
    "SourceUpdates",
    "compute_source_updates",
    "MarkerController",
    "MarkerSpec",
    "PopupController",
    "RouteAnimator",
    "AltitudeProfileChart",
    "OverlayVisibilityMachine",
    "VisibilityFlags",
    "VisibilityState",
]
