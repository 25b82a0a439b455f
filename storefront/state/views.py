"""
Rendu à deux variantes (connecté / anonyme) sélectionné par SessionView.
"""
from enum import Enum
from typing import Any, Dict, Optional

from storefront.auth.models import UserIdentity
from .auth import AuthState

class SessionView(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"

def session_view(state: AuthState) -> SessionView:
    if state.authenticated and state.token is not None:
        return SessionView.AUTHENTICATED
    return SessionView.ANONYMOUS

def render_session_widget(view: SessionView, identity: Optional[UserIdentity] = None) -> Dict[str, Any]:
    """Modèle du widget de connexion de la barre de navigation."""
    if view is SessionView.AUTHENTICATED and identity is not None:
        return {
            "view": view.value,
            "title": identity.username,
            "actions": [{"label": "Logout", "method": "POST", "href": "/auth/logout"}],
        }
    return {
        "view": SessionView.ANONYMOUS.value,
        "title": "Sign in",
        "fields": [
            {"name": "email", "type": "string", "label": "Username"},
            {"name": "password", "type": "password", "label": "Password"},
        ],
        "actions": [
            {"label": "Sign in", "method": "POST", "href": "/auth/login"},
            {"label": "Register", "method": "GET", "href": "/auth/register"},
        ],
    }
