"""Overlay visibility state machines.

Uses python-statemachine, one tiny machine per overlay:

    Hidden ⇄ Visible

Transitions (explicit user toggles only):
    show:   Hidden -> Visible
    hide:   Visible -> Hidden
    toggle: either direction

Data arrival never changes visibility; it only changes what a visible
overlay shows on the next sync. Toggling never touches map sources or the
learned-layers cache, the synchronizer reads VisibilityFlags on its next pass.

Initial state: learned overlays (paths, turns, SIDs, STARs) hidden,
ML anomaly points visible (they are drawn whenever a result has any).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from statemachine import State, StateMachine

from flightmap_viewer.constants import Overlay

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisibilityFlags:
    """Immutable snapshot of every overlay flag, consumed by the synchronizer."""

    paths: bool = False
    turns: bool = False
    sids: bool = False
    stars: bool = False
    ml_points: bool = True

    def is_visible(self, overlay: str) -> bool:
        if overlay not in Overlay.ALL:
            raise ValueError(f"Unknown overlay: {overlay!r}")
        return getattr(self, overlay)


class OverlayVisibilityMachine(StateMachine):
    """Visibility of a single overlay."""

    hidden = State("Hidden", initial=True)
    visible = State("Visible")

    show = hidden.to(visible)
    hide = visible.to(hidden)
    toggle = hidden.to(visible) | visible.to(hidden)

    def __init__(self, overlay: str, start_visible: bool = False) -> None:
        """Initialize machine for one overlay.

        Args:
            overlay: Overlay name (one of Overlay.ALL)
            start_visible: Start in Visible instead of Hidden
        """
        if overlay not in Overlay.ALL:
            raise ValueError(f"Unknown overlay: {overlay!r}")
        self.overlay = overlay
        super().__init__(start_value="visible" if start_visible else "hidden")

    @property
    def is_visible(self) -> bool:
        return self.visible.is_active

    def __repr__(self) -> str:
        return f"OverlayVisibilityMachine(overlay={self.overlay}, state={self.current_state.name})"


class VisibilityLogListener:
    """Logs every visibility transition (python-statemachine listener)."""

    def __init__(self, overlay: str) -> None:
        self.overlay = overlay

    def after_transition(self, event: str, source: State, target: State) -> None:
        logger.info(f"[VISIBILITY] {self.overlay}: {source.name} --({event})--> {target.name}")


class VisibilityState:
    """Independent visibility flags for all overlays.

    Example:
        visibility = VisibilityState.create()
        visibility.toggle(Overlay.TURNS)
        synchronizer.sync(..., flags=visibility.flags())
    """

    def __init__(self, machines: dict[str, OverlayVisibilityMachine]) -> None:
        assert set(machines.keys()) == set(Overlay.ALL), "One machine per overlay required"
        self._machines = machines

    @staticmethod
    def create(add_log_listener: bool = True) -> VisibilityState:
        """Factory with default visibility (learned hidden, ML points visible).

        Args:
            add_log_listener: If True, log every transition.
        """
        machines = {}
        for overlay in Overlay.ALL:
            sm = OverlayVisibilityMachine(overlay=overlay, start_visible=Overlay.DEFAULT_VISIBLE[overlay])
            if add_log_listener:
                sm.add_listener(VisibilityLogListener(overlay=overlay))
            machines[overlay] = sm
        return VisibilityState(machines=machines)

    def machine(self, overlay: str) -> OverlayVisibilityMachine:
        if overlay not in self._machines:
            raise ValueError(f"Unknown overlay: {overlay!r}")
        return self._machines[overlay]

    def is_visible(self, overlay: str) -> bool:
        return self.machine(overlay).is_visible

    def toggle(self, overlay: str) -> bool:
        """Flip one overlay. Returns the new visibility."""
        sm = self.machine(overlay)
        sm.toggle()
        return sm.is_visible

    def set_visible(self, overlay: str, visible: bool) -> bool:
        """Drive an overlay to the requested state (checkbox binding).

        Returns:
            True if a transition happened, False if already in that state.
        """
        sm = self.machine(overlay)
        if sm.is_visible == visible:
            return False
        if visible:
            sm.show()
        else:
            sm.hide()
        return True

    def flags(self) -> VisibilityFlags:
        """Snapshot for the synchronizer."""
        return VisibilityFlags(**{overlay: self.is_visible(overlay) for overlay in Overlay.ALL})

    def __repr__(self) -> str:
        visible = [o for o in Overlay.ALL if self.is_visible(o)]
        return f"VisibilityState(visible={visible})"
