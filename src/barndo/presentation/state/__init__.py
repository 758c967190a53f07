"""Session state management."""

from .session_manager import EstimateUIState, SessionManager, WorkspaceState

__all__ = ["SessionManager", "EstimateUIState", "WorkspaceState"]
