"""
Route Guard: décide si une vue protégée s'affiche ou redirige.

Double contrôle pour une vue `authenticated`:
1) UID non vide dans le Credential Store (état local)
2) le dernier appel à un endpoint de contrôle n'a pas répondu 404/401 (confirmation serveur)
Les identifiants locaux peuvent être périmés (révoqués côté serveur): l'état local seul ne suffit pas.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

from storefront.config import LOGIN_PATH, NOT_FOUND_PATH
from storefront.credentials import SessionTokens
from storefront.state import AuthState, SessionView, session_view

logger = logging.getLogger(__name__)

REJECTED_STATUSES = (401, 403, 404)

class Capability(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"

class CapabilityCheck(str, Enum):
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    UNKNOWN = "unknown"

    @classmethod
    def from_status(cls, status_code: Optional[int]) -> "CapabilityCheck":
        if status_code is None:
            return cls.UNKNOWN
        if status_code in REJECTED_STATUSES:
            return cls.REJECTED
        if 200 <= status_code < 300:
            return cls.CONFIRMED
        return cls.UNKNOWN

class SessionMismatchError(Exception):
    """Ressource protégée refusée malgré des identifiants locaux; déclenche le repli, jamais propagée."""

@dataclass(frozen=True)
class GuardDecision:
    render: bool
    view: SessionView
    redirect_to: Optional[str] = None
    reason: Optional[str] = None

class RouteGuard:
    def __init__(self, fallback_login: str = LOGIN_PATH, fallback_not_found: str = NOT_FOUND_PATH):
        self.fallback_login = fallback_login
        self.fallback_not_found = fallback_not_found

    def decide(
        self,
        capability: Capability,
        tokens: SessionTokens,
        auth_state: AuthState,
        check: CapabilityCheck = CapabilityCheck.UNKNOWN,
    ) -> GuardDecision:
        view = session_view(auth_state)
        if capability is Capability.ANONYMOUS:
            return GuardDecision(True, view)
        if not tokens.uid:
            return GuardDecision(False, view, self.fallback_login, "missing_uid")
        if check is CapabilityCheck.REJECTED:
            logger.info("guard.decide session_mismatch uid=%s", tokens.uid)
            return GuardDecision(False, view, self.fallback_not_found, "session_mismatch")
        return GuardDecision(True, view)
