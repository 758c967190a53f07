"""
Barndo Estimator - SessionManager

Typed wrapper around a dict-like UI session store for the estimate workflow.
"""
from dataclasses import dataclass, field
from typing import Any

from barndo.application.estimate_session import EstimateSession


@dataclass
class EstimateUIState:
    """Transient UI state for one open estimate."""

    expanded_sections: set[str] = field(default_factory=set)
    show_breakdown: bool = False
    editing_item_id: str | None = None
    pending_inputs: dict[str, Any] = field(default_factory=dict)
    last_error: str | None = None


@dataclass
class WorkspaceState:
    """Open estimates, keyed by session key."""

    sessions: dict[str, EstimateSession] = field(default_factory=dict)
    ui: dict[str, EstimateUIState] = field(default_factory=dict)
    active_key: str | None = None


class SessionManager:
    """
    Typed wrapper around a UI session store.

    Each open estimate owns its own EstimateSession and UI flags; nothing is
    shared between estimates.
    """

    def __init__(self, session_state: Any):
        """
        Initialize SessionManager.

        Args:
            session_state: Dict-like session store
        """
        self._state = session_state

    # Workspace

    def get_workspace(self) -> WorkspaceState:
        """Get open-estimates workspace."""
        if "estimate_workspace" not in self._state:
            self._state["estimate_workspace"] = WorkspaceState()
        return self._state["estimate_workspace"]

    def set_workspace(self, workspace: WorkspaceState) -> None:
        self._state["estimate_workspace"] = workspace

    # Estimate sessions

    def open_session(self, key: str, session: EstimateSession, activate: bool = True) -> EstimateSession:
        """Register an estimate session under `key` (replacing any previous one)."""
        workspace = self.get_workspace()
        previous = workspace.sessions.get(key)
        if previous is not None and previous is not session:
            previous.close()
        workspace.sessions[key] = session
        workspace.ui[key] = EstimateUIState()
        if activate:
            workspace.active_key = key
        self.set_workspace(workspace)
        return session

    def get_session(self, key: str) -> EstimateSession | None:
        return self.get_workspace().sessions.get(key)

    def get_active_session(self) -> EstimateSession | None:
        """Get the estimate session currently shown."""
        workspace = self.get_workspace()
        if workspace.active_key is None:
            return None
        return workspace.sessions.get(workspace.active_key)

    def set_active(self, key: str) -> None:
        """
        Switch the shown estimate.

        Raises:
            KeyError: If no session is open under `key`
        """
        workspace = self.get_workspace()
        if key not in workspace.sessions:
            raise KeyError(f"No open estimate session '{key}'")
        workspace.active_key = key
        self.set_workspace(workspace)

    def open_keys(self) -> list[str]:
        return list(self.get_workspace().sessions)

    def close_session(self, key: str) -> None:
        """
        Close an estimate: unsaved edits and UI flags are dropped, persisted
        snapshots are untouched.
        """
        workspace = self.get_workspace()
        session = workspace.sessions.pop(key, None)
        workspace.ui.pop(key, None)
        if session is not None:
            session.close()
        if workspace.active_key == key:
            workspace.active_key = next(iter(workspace.sessions), None)
        self.set_workspace(workspace)

    # UI flags

    def get_ui_state(self, key: str) -> EstimateUIState:
        """Get UI state for an open estimate."""
        workspace = self.get_workspace()
        if key not in workspace.ui:
            workspace.ui[key] = EstimateUIState()
        return workspace.ui[key]

    def toggle_section(self, key: str, section: str) -> bool:
        """Flip a section's expanded flag; returns the new value."""
        state = self.get_ui_state(key)
        if section in state.expanded_sections:
            state.expanded_sections.discard(section)
            return False
        state.expanded_sections.add(section)
        return True

    def is_section_expanded(self, key: str, section: str) -> bool:
        return section in self.get_ui_state(key).expanded_sections

    def set_show_breakdown(self, key: str, show: bool) -> None:
        self.get_ui_state(key).show_breakdown = show

    def set_editing_item(self, key: str, item_id: str | None) -> None:
        self.get_ui_state(key).editing_item_id = item_id

    def set_pending_input(self, key: str, name: str, value: Any) -> None:
        """Remember a half-typed input value (cleared on close)."""
        self.get_ui_state(key).pending_inputs[name] = value

    def set_error(self, key: str, message: str | None) -> None:
        """Set (or clear) the user-visible error for an estimate."""
        self.get_ui_state(key).last_error = message

    # Utility methods

    def clear_all(self) -> None:
        """Close every estimate and clear all session state."""
        for key in self.open_keys():
            self.close_session(key)
        self._state.clear()
