"""AltitudeProfileChart - Plotly altitude profile rendering.

Renders the altitude of a flight over time with:
- Area fill under the track altitude
- One marker trace per model layer that flagged anomaly points
"""

import logging
from collections.abc import Sequence
from typing import Optional

import plotly.graph_objects as go

from flightmap_viewer.constants import ChartConfig, StyleConfig
from flightmap_viewer.model.track_point import AnomalyPoint, ModelLayer, TrackPoint

logger = logging.getLogger(__name__)


class AltitudeProfileChart:
    """Renders altitude profiles using Plotly.

    Example:
        chart = AltitudeProfileChart(width=ChartConfig.PROFILE_WIDTH, height=ChartConfig.PROFILE_HEIGHT)
        fig = chart.render(track_points=result.track_points, anomaly_points=result.anomaly_points())
        st.plotly_chart(fig)
    """

    def __init__(
        self,
        width: int,
        height: int,
    ) -> None:
        """Initialize profile chart renderer.

        Args:
            width: Chart width in pixels
            height: Chart height in pixels
        """
        self.width = width
        self.height = height

    def render(
        self,
        track_points: Sequence[TrackPoint],
        anomaly_points: Sequence[AnomalyPoint] = (),
        title: Optional[str] = None,
    ) -> go.Figure:
        """Render altitude over minutes since the first track point.

        Anomaly points are placed at the track altitude nearest in time.

        Args:
            track_points: Detailed track, chronological
            anomaly_points: Model-tagged anomaly points
            title: Optional chart title

        Returns:
            Plotly Figure object.
        """
        if not track_points:
            raise ValueError("Track must have points to render")

        t0 = track_points[0].timestamp
        minutes = [(p.timestamp - t0) / 60 for p in track_points]
        altitudes = [p.altitude for p in track_points]

        # Y-axis range (not starting from 0)
        min_alt = min(altitudes)
        max_alt = max(altitudes)
        padding = max(
            (max_alt - min_alt) * ChartConfig.ALTITUDE_PADDING_FACTOR,
            ChartConfig.ALTITUDE_PADDING_MIN_FT,
        )

        color = StyleConfig.ROUTE_LINE_COLOR
        fig = go.Figure()
        fig.add_trace(
            go.Scatter(
                x=minutes,
                y=altitudes,
                fill="tozeroy",
                fillcolor=self._rgba(color=color, alpha=0.3),
                line=dict(color=self._rgba(color=color, alpha=1.0), width=2),
                name="Altitude",
                hovertemplate="T+%{x:.1f} min<br>Altitude: %{y:.0f} ft<extra></extra>",
            )
        )

        for layer in ModelLayer:
            layer_points = [p for p in anomaly_points if p.model_layer == layer]
            if not layer_points:
                continue
            fig.add_trace(
                go.Scatter(
                    x=[(p.timestamp - t0) / 60 for p in layer_points],
                    y=[self._altitude_at(track_points, p.timestamp) for p in layer_points],
                    mode="markers",
                    marker=dict(color=self._rgba(color=StyleConfig.MODEL_COLORS[layer.value], alpha=1.0), size=8),
                    name=layer.display_name,
                    customdata=[p.point_score for p in layer_points],
                    hovertemplate=(
                        f"{layer.display_name}<br>T+%{{x:.1f}} min<br>Score: %{{customdata:.4f}}<extra></extra>"
                    ),
                )
            )

        duration_min = minutes[-1]
        fig.update_layout(
            title=dict(text=title or "Altitude profile", x=0.5),
            xaxis=dict(
                title="Time since first point (min)",
                showgrid=True,
                gridcolor="rgba(200, 200, 200, 0.3)",
            ),
            yaxis=dict(
                title="Altitude (ft)",
                showgrid=True,
                gridcolor="rgba(200, 200, 200, 0.3)",
                range=[max(0.0, min_alt - padding), max_alt + padding],
            ),
            showlegend=len(fig.data) > 1,
            width=self.width,
            height=self.height,
            margin=dict(l=50, r=30, t=50, b=50),
            plot_bgcolor="white",
        )

        fig.add_annotation(
            xref="paper",
            yref="paper",
            x=0.5,
            y=-0.3,
            text=f"Points: {len(track_points)} | Duration: {duration_min:.0f} min | Max alt: {max_alt:.0f} ft",
            showarrow=False,
            font=dict(size=11),
        )
        return fig

    @staticmethod
    def _altitude_at(track_points: Sequence[TrackPoint], timestamp: int) -> float:
        """Altitude of the track point closest in time."""
        nearest = min(track_points, key=lambda p: abs(p.timestamp - timestamp))
        return nearest.altitude

    @staticmethod
    def _rgba(color: list[int], alpha: float) -> str:
        """[R, G, B, A] list to a Plotly rgba() string with the given alpha."""
        r, g, b = color[:3]
        return f"rgba({r}, {g}, {b}, {alpha})"
