"""Sidebar UI renderer for the flight anomaly map.

Renders the left sidebar with:
- Flight id input and analyze button
- Overlay checkboxes (learned paths, turn zones, SIDs, STARs, ML points)
- Learned-layers fetch status and counts
- Analysis summary of the loaded flight

All rendering logic is encapsulated to keep the main app.py concise.
"""

import logging
from typing import Any

import streamlit as st

from flightmap_viewer.constants import AppConfig, Overlay
from flightmap_viewer.core.learned_layers import FetchStatus, LearnedLayersCache
from flightmap_viewer.model.analysis_result import AnalysisResult
from flightmap_viewer.ui.infra import trigger_rerun
from flightmap_viewer.ui.state_machine import VisibilityState

logger = logging.getLogger(__name__)

_STATUS_TEXT = {
    FetchStatus.IDLE: "not requested",
    FetchStatus.LOADING: "loading...",
    FetchStatus.LOADED: "loaded",
    FetchStatus.FAILED: "unavailable",
}


class SidebarRenderer:
    """Renders the sidebar UI and returns action flags."""

    def __init__(
        self,
        visibility: VisibilityState,
        cache: LearnedLayersCache,
        analysis: AnalysisResult | None,
    ) -> None:
        """Initialize sidebar renderer with required dependencies."""
        self.visibility = visibility
        self.cache = cache
        self.analysis = analysis

    def render(self) -> dict[str, Any]:
        """Render complete sidebar and return action flags.

        Returns:
            Dict with keys: analyze (bool), flight_id (str), visibility_changed (bool)
        """
        with st.sidebar:
            actions: dict[str, Any] = {"analyze": False, "flight_id": "", "visibility_changed": False}
            actions.update(self._render_flight_input())
            st.divider()
            actions["visibility_changed"] = self._render_overlay_toggles()
            st.divider()
            self._render_learned_status()
            if self.analysis is not None:
                st.divider()
                self._render_analysis_summary()
            return actions

    def _render_flight_input(self) -> dict[str, Any]:
        flight_id = st.text_input(
            "Flight ID",
            value=st.session_state.get("flight_id", AppConfig.DEFAULT_FLIGHT_ID),
            help="Identifier of the flight to analyze",
        ).strip()
        analyze = st.button("🔍 Analyze", type="primary", width="stretch", disabled=not flight_id)
        return {"analyze": analyze, "flight_id": flight_id}

    def _render_overlay_toggles(self) -> bool:
        """Bind one checkbox per overlay to its visibility machine.

        Returns:
            True if any overlay changed state during this run.
        """
        st.markdown("**Overlays**")
        counts = self.cache.layers.counts()
        changed = False
        for overlay in Overlay.ALL:
            label = Overlay.DISPLAY_NAMES[overlay]
            if overlay in counts:
                label = f"{label} ({counts[overlay]})"
            checked = st.checkbox(label, value=self.visibility.is_visible(overlay), key=f"overlay_{overlay}")
            if self.visibility.set_visible(overlay, checked):
                changed = True
        return changed

    def _render_learned_status(self) -> None:
        status = self.cache.status
        st.caption(f"Learned layers: {_STATUS_TEXT[status]}")
        if status == FetchStatus.LOADING and st.button("↻ Refresh overlays", width="stretch"):
            trigger_rerun()
        if status == FetchStatus.FAILED:
            st.caption("The map works without reference overlays.")

    def _render_analysis_summary(self) -> None:
        summary = self.analysis.summary
        verdict = "🚨 Anomaly" if summary.is_anomaly else "✅ Normal"
        st.markdown(f"**{summary.flight_id}**: {verdict}")
        st.metric("Confidence", f"{summary.confidence_score:.0f}%")
        st.caption(f"{summary.num_points} points analyzed")
        for layer, result in self.analysis.model_results.items():
            flagged = "flagged" if result.is_anomaly else "normal"
            st.caption(f"{layer.display_name}: {flagged} ({len(result.anomaly_points)} points)")
        if summary.triggers:
            st.markdown("**Triggers**")
            for trigger in summary.triggers:
                st.markdown(f"- {trigger}")
