"""
Module 'state': Auth State Store (actions, réducteurs, conteneur) et vue de session.
"""

from .auth import (
    AuthState,
    RootState,
    Login,
    Logout,
    SetLoading,
    SetError,
    ClearErrors,
    auth_reducer,
    error_reducer,
    root_reducer,
)
from .store import Store, create_store
from .views import SessionView, session_view, render_session_widget

__all__ = [
    "AuthState",
    "RootState",
    "Login",
    "Logout",
    "SetLoading",
    "SetError",
    "ClearErrors",
    "auth_reducer",
    "error_reducer",
    "root_reducer",
    "Store",
    "create_store",
    "SessionView",
    "session_view",
    "render_session_widget",
]
