"""Flight Anomaly Map - Render flights and anomaly findings on an interactive map.

Renders a flight's trajectory, per-model anomaly points and learned reference
geometry (corridors, turn zones, SID/STAR procedures) with pydeck in Streamlit.

Modules:
    core: Foundation classes (flat-earth geometry, backend API client, learned layer cache)
    model: Data structures (TrackPoint, AnomalyPoint, learned geometry, AnalysisResult)
    ui: Map instance owner, source synchronizer, markers/popups, visibility state

Example:
    from flightmap_viewer.ui import MapInstanceOwner, SourceSynchronizer, VisibilityState
    from flightmap_viewer.core import LearnedLayersCache, LearnedLayersFetcher
"""
