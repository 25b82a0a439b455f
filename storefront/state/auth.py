"""
Auth State Store: état {authenticated, token, loading} et tranche d'erreurs.

Mutations uniquement via actions typées (Login, Logout, SetLoading, SetError, ClearErrors).
Les réducteurs sont purs: ils retournent un nouvel état, jamais de mutation en place.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Union

from storefront.auth.models import UserIdentity

@dataclass(frozen=True)
class AuthState:
    authenticated: bool = False
    token: Optional[UserIdentity] = None
    loading: bool = False

@dataclass(frozen=True)
class RootState:
    login: AuthState = field(default_factory=AuthState)
    error: Dict[str, Any] = field(default_factory=dict)

# --- Actions ---

@dataclass(frozen=True)
class Login:
    identity: UserIdentity

    def __post_init__(self):
        # Jamais authenticated=True avec token=None
        if self.identity is None:
            raise ValueError("Login exige une identité décodée")

@dataclass(frozen=True)
class Logout:
    pass

@dataclass(frozen=True)
class SetLoading:
    loading: bool = True

@dataclass(frozen=True)
class SetError:
    payload: Any = None

@dataclass(frozen=True)
class ClearErrors:
    pass

Action = Union[Login, Logout, SetLoading, SetError, ClearErrors]

# --- Réducteurs ---

def auth_reducer(state: Optional[AuthState], action: Action) -> AuthState:
    state = state or AuthState()
    if isinstance(action, Login):
        return replace(state, authenticated=True, token=action.identity)
    if isinstance(action, Logout):
        return replace(state, authenticated=False, token=None)
    if isinstance(action, SetLoading):
        return replace(state, loading=action.loading)
    return state

def error_reducer(state: Optional[Dict[str, Any]], action: Action) -> Dict[str, Any]:
    state = state if state is not None else {}
    if isinstance(action, SetError):
        payload = action.payload
        # Payload backend transmis tel quel; les chaînes sont enveloppées
        if isinstance(payload, dict):
            return dict(payload)
        return {"error": payload}
    if isinstance(action, ClearErrors):
        return {}
    return state

def root_reducer(state: Optional[RootState], action: Action) -> RootState:
    state = state or RootState()
    return RootState(
        login=auth_reducer(state.login, action),
        error=error_reducer(state.error, action),
    )
