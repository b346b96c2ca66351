"""Tests for Streamlit infrastructure wrappers.

Tests: trigger_rerun, bump_map_version
Focus: The Streamlit module is patched, no script runner is needed
"""

from unittest.mock import MagicMock, patch

from flightmap_viewer.ui import infra


class FakeSessionState(dict):
    """dict with attribute access, like st.session_state."""

    def __getattr__(self, name: str) -> object:
        try:
            return self[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __setattr__(self, name: str, value: object) -> None:
        self[name] = value


class TestInfra:
    """infra - mockable rerun and map version."""

    def test_trigger_rerun_passes_scope(self) -> None:
        """trigger_rerun forwards to st.rerun."""
        with patch.object(infra, "st") as st_mock:
            infra.trigger_rerun(scope="fragment")
        st_mock.rerun.assert_called_once_with(scope="fragment")

    def test_bump_map_version_from_missing(self) -> None:
        """First bump goes 0 -> 1."""
        st_mock = MagicMock()
        st_mock.session_state = FakeSessionState()
        with patch.object(infra, "st", st_mock):
            infra.bump_map_version()
        assert st_mock.session_state["map_version"] == 1

    def test_bump_map_version_increments(self) -> None:
        """Each bump adds one."""
        st_mock = MagicMock()
        st_mock.session_state = FakeSessionState(map_version=4)
        with patch.object(infra, "st", st_mock):
            infra.bump_map_version()
            infra.bump_map_version()
        assert st_mock.session_state["map_version"] == 6
