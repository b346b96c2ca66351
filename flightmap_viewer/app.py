"""Flight Anomaly Map - flight trajectory and anomaly viewer.

Shows the analyzed route of one flight with per-model anomaly points,
an altitude profile, and toggleable learned reference overlays (typical
paths, turn zones, SIDs, STARs) fetched once per session.

Run: streamlit run flightmap_viewer/app.py
"""

import logging
import traceback

import requests
import streamlit as st

from flightmap_viewer.constants import AppConfig, ChartConfig, MapConfig
from flightmap_viewer.core.api_client import AnalysisClient, LearnedLayersFetcher
from flightmap_viewer.core.learned_layers import LearnedLayersCache
from flightmap_viewer.model.analysis_result import AnalysisResult
from flightmap_viewer.ui import (
    AltitudeProfileChart,
    MapHandle,
    MapInstanceOwner,
    RouteAnimator,
    SourceSynchronizer,
    VisibilityState,
)
from flightmap_viewer.ui.infra import bump_map_version, trigger_rerun
from flightmap_viewer.ui.left_panel import SidebarRenderer
from flightmap_viewer.ui.pydeck_click_handler import render_pydeck_map

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =============================================================================
# SESSION STATE
# =============================================================================


def init_session_state() -> None:
    """Initialize session state with map owner, visibility, cache and helpers."""
    if "map_owner" not in st.session_state:
        st.session_state.map_owner = MapInstanceOwner()

    if "visibility" not in st.session_state:
        st.session_state.visibility = VisibilityState.create()

    if "learned_cache" not in st.session_state:
        st.session_state.learned_cache = LearnedLayersCache()

    if "animator" not in st.session_state:
        st.session_state.animator = RouteAnimator()

    if "synchronizer" not in st.session_state:
        st.session_state.synchronizer = SourceSynchronizer()

    if "analysis" not in st.session_state:
        st.session_state.analysis = None

    if "analysis_error" not in st.session_state:
        st.session_state.analysis_error = None

    if "map_version" not in st.session_state:
        st.session_state.map_version = 0

    # Once per session, fire-and-forget
    st.session_state.learned_cache.ensure_requested(fetcher=LearnedLayersFetcher())


def reset_ui_state() -> None:
    """Reset the map after an error while keeping the loaded analysis.

    Tears the map handle down (next run creates a fresh one), stops any
    animation and bumps the map version to drop stale click state.
    """
    logger.info("Resetting UI state due to error recovery")
    st.session_state.animator.cancel()
    st.session_state.map_owner.teardown()
    st.session_state.animator = RouteAnimator()
    st.session_state.map_version = st.session_state.get("map_version", 0) + 1


# =============================================================================
# ANALYSIS
# =============================================================================


def load_analysis(flight_id: str) -> None:
    """Fetch the analysis of flight_id into session state.

    Errors are kept for display; the previous analysis is cleared either way.
    """
    st.session_state.flight_id = flight_id
    st.session_state.analysis = None
    st.session_state.analysis_error = None

    with st.spinner(f"Analyzing flight {flight_id}..."):
        try:
            st.session_state.analysis = AnalysisClient().fetch_analysis(flight_id=flight_id)
        except requests.RequestException as e:
            logger.error(f"[FETCH] Analysis request for {flight_id} failed: {e}")
            st.session_state.analysis_error = f"Backend request failed: {e}"
        except ValueError as e:
            logger.error(f"[FETCH] Analysis for {flight_id} is invalid: {e}")
            st.session_state.analysis_error = f"Invalid analysis response: {e}"

    handle: MapHandle | None = st.session_state.map_owner.handle
    if handle is not None:
        handle.popups.close()
    bump_map_version()


# =============================================================================
# MAP RENDERING
# =============================================================================


def _render_map() -> None:
    """Sync sources, animate a new route, render the map and handle clicks."""
    owner: MapInstanceOwner = st.session_state.map_owner
    visibility: VisibilityState = st.session_state.visibility
    cache: LearnedLayersCache = st.session_state.learned_cache
    animator: RouteAnimator = st.session_state.animator
    synchronizer: SourceSynchronizer = st.session_state.synchronizer
    analysis: AnalysisResult | None = st.session_state.analysis

    placeholder = st.empty()
    handle = owner.initialize(container=placeholder)
    if handle is None:
        return
    handle.bind_container(placeholder)

    track_points = analysis.track_points if analysis is not None else ()
    anomaly_points = analysis.anomaly_points() if analysis is not None else []
    coarse_path = analysis.coarse_path if analysis is not None else ()

    # Route the synchronizer would draw, to decide about animation first
    route = [p.lon_lat for p in track_points] or [p.lon_lat for p in coarse_path]
    animate = bool(route) and (animator.needs_restart(route) or not animator.completed)

    updates = synchronizer.sync(
        handle,
        track_points=track_points,
        anomaly_points=anomaly_points,
        learned_layers=cache.layers,
        flags=visibility.flags(),
        coarse_path=coarse_path,
        defer_end_marker=animate,
    )
    if updates is None:
        return

    if animate:

        def draw_frame(_: int) -> None:
            placeholder.pydeck_chart(handle.build_deck(), height=MapConfig.MAP_HEIGHT_PX)

        animator.run(handle, updates.route_coordinates, on_frame=draw_frame)

    map_key = f"flight_map_{st.session_state.map_version}"
    with placeholder:
        click_result = render_pydeck_map(deck=handle.build_deck(), key=map_key, height=MapConfig.MAP_HEIGHT_PX)

    if click_result.is_object_click:
        position = click_result.feature_position
        if position is not None:
            handle.popups.open(
                click_result.properties,
                feature_lon=position[0],
                feature_lat=position[1],
                cursor_lon=click_result.cursor_lon,
            )
            trigger_rerun()
    elif click_result.clicked_coordinate is not None and handle.popups.current is not None:
        handle.popups.close()
        trigger_rerun()


def _render_profile() -> None:
    analysis: AnalysisResult | None = st.session_state.analysis
    if analysis is None or not analysis.track_points:
        return
    chart = AltitudeProfileChart(width=ChartConfig.PROFILE_WIDTH, height=ChartConfig.PROFILE_HEIGHT)
    fig = chart.render(track_points=analysis.track_points, anomaly_points=analysis.anomaly_points())
    st.plotly_chart(fig, width="stretch", key="altitude_profile")


def _run_app_ui() -> None:
    sidebar = SidebarRenderer(
        visibility=st.session_state.visibility,
        cache=st.session_state.learned_cache,
        analysis=st.session_state.analysis,
    )
    actions = sidebar.render()
    if actions["analyze"]:
        load_analysis(flight_id=actions["flight_id"])

    if st.session_state.analysis_error:
        st.error(f"⚠️ {st.session_state.analysis_error}")

    _render_map()
    _render_profile()


# =============================================================================
# MAIN
# =============================================================================


def main() -> None:
    """Application entry point."""
    st.set_page_config(page_title=AppConfig.TITLE, page_icon=AppConfig.ICON, layout=AppConfig.LAYOUT)
    init_session_state()

    st.title(AppConfig.TITLE)

    try:
        _run_app_ui()
    except Exception as e:
        # Log full traceback for debugging
        error_msg = f"{type(e).__name__}: {e}"
        full_traceback = traceback.format_exc()
        logger.error(f"[UI] UI error caught: {error_msg}\n{full_traceback}")

        st.error(f"⚠️ [UI] Something went wrong: {error_msg}")
        reset_ui_state()

        if st.button("🔄 Reset and Continue", type="primary"):
            trigger_rerun()


if __name__ == "__main__":
    main()
