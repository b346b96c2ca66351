"""Pydeck click handler using streamlit-deckgl for feature click support.

Uses st_deckgl from streamlit-deckgl to capture deck.gl click events and
turn a picked feature into the data a popup needs: its properties, its
stored position and the pointer longitude.

The key difference from st.pydeck_chart:
- st.pydeck_chart: Only returns object selections (pickable=True objects)
- st_deckgl: Returns full deck.gl onClick event with coordinate field for ALL clicks
"""

import logging
from dataclasses import dataclass
from typing import Any

import pydeck as pdk
import streamlit as st
from streamlit_deckgl import st_deckgl  # type: ignore[import-untyped]

from flightmap_viewer.constants import MapConfig

logger = logging.getLogger(__name__)

# Event keys added by st_deckgl, not part of the picked object
_EVENT_KEYS = ("coordinate", "eventType")


@dataclass
class PydeckClickResult:
    """Result from Pydeck click detection.

    Attributes:
        clicked_object: The picked deck.gl object data (dict) or None if empty map click
        clicked_coordinate: [lon, lat] of the pointer (unwrapped across the antimeridian)
    """

    clicked_object: dict[str, Any] | None
    clicked_coordinate: list[float] | None

    @property
    def is_object_click(self) -> bool:
        """True if a pickable object was clicked."""
        return self.clicked_object is not None

    @property
    def properties(self) -> dict[str, Any]:
        """Feature properties of the picked object.

        GeoJSON features nest them under "properties"; plain layer rows
        (markers, labels) are their own properties.
        """
        if self.clicked_object is None:
            return {}
        nested = self.clicked_object.get("properties")
        if isinstance(nested, dict):
            return nested
        return self.clicked_object

    @property
    def feature_position(self) -> tuple[float, float] | None:
        """Stored (lon, lat) of the picked object.

        Point features and marker rows have one; lines and polygons fall
        back to the pointer coordinate.
        """
        if self.clicked_object is None:
            return None
        geometry = self.clicked_object.get("geometry")
        if isinstance(geometry, dict) and geometry.get("type") == "Point":
            lon, lat = geometry["coordinates"][:2]
            return float(lon), float(lat)
        position = self.clicked_object.get("position")
        if isinstance(position, (list, tuple)) and len(position) >= 2:
            return float(position[0]), float(position[1])
        if self.clicked_coordinate is not None:
            return self.clicked_coordinate[0], self.clicked_coordinate[1]
        return None

    @property
    def cursor_lon(self) -> float | None:
        return self.clicked_coordinate[0] if self.clicked_coordinate is not None else None

    @staticmethod
    def empty() -> "PydeckClickResult":
        """Return empty result (no click detected)."""
        return PydeckClickResult(clicked_object=None, clicked_coordinate=None)


def parse_click_event(event: Any) -> PydeckClickResult:
    """Turn a raw st_deckgl event into a PydeckClickResult.

    st_deckgl SPREADS the picked object into the event dict (no "object" key).
    Event structure:
    - Empty map click: {coordinate: [lon, lat], eventType: "click"}
    - Feature click: {type: "Feature", geometry: {...}, properties: {...}, coordinate: [...], eventType: "click"}
    - Row click (markers): {kind: ..., position: [...], coordinate: [...], eventType: "click"}
    """
    if not event or not isinstance(event, dict):
        return PydeckClickResult.empty()

    clicked_coordinate: list[float] | None = None
    coord = event.get("coordinate")
    if isinstance(coord, (list, tuple)) and len(coord) >= 2:
        clicked_coordinate = [float(coord[0]), float(coord[1])]

    clicked_object: dict[str, Any] | None = None
    picked = {k: v for k, v in event.items() if k not in _EVENT_KEYS}
    if picked:
        clicked_object = picked
        logger.debug(f"[CLICK] Object click: keys={sorted(picked.keys())}")

    if clicked_coordinate is None and clicked_object is None:
        return PydeckClickResult.empty()
    return PydeckClickResult(clicked_object=clicked_object, clicked_coordinate=clicked_coordinate)


def render_pydeck_map(
    deck: pdk.Deck,
    key: str,
    height: int = MapConfig.MAP_HEIGHT_PX,
) -> PydeckClickResult:
    """Render Pydeck map with click support.

    Args:
        deck: Configured pydeck.Deck object
        key: Unique key for this component instance
        height: Height in pixels

    Returns:
        PydeckClickResult with click info, empty for a repeated click.
    """
    # Session state key for click deduplication
    last_click_key = f"_deckgl_last_click_{key}"
    if last_click_key not in st.session_state:
        st.session_state[last_click_key] = None

    # MUST pass events=['click'] to enable click detection!
    event = st_deckgl(deck, key=key, height=height, events=["click"])
    result = parse_click_event(event)
    if result.clicked_object is None and result.clicked_coordinate is None:
        return result

    # The component returns its last event on every rerun
    click_id = _get_click_id(obj=result.clicked_object, coord=result.clicked_coordinate)
    if click_id == st.session_state.get(last_click_key):
        return PydeckClickResult.empty()
    st.session_state[last_click_key] = click_id

    logger.debug(f"[CLICK] New click: object={result.is_object_click}, coord={result.clicked_coordinate}")
    return result


def _get_click_id(obj: dict[str, Any] | None, coord: list[float] | None) -> str:
    """Generate unique ID for click deduplication."""
    parts = []

    if obj:
        properties = obj.get("properties") if isinstance(obj.get("properties"), dict) else obj
        obj_kind = properties.get("kind", "")
        obj_id = properties.get("id", properties.get("index", ""))
        if obj_kind and obj_id != "":
            parts.append(f"{obj_kind}_{obj_id}")

    if coord:
        # Round coordinates for dedup tolerance
        parts.append(f"coord_{coord[0]:.5f}_{coord[1]:.5f}")

    return "_".join(parts) if parts else ""
