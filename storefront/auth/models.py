from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

class AuthError(Exception):
    """Identifiants invalides, token malformé ou échec réseau pendant la connexion."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

@dataclass(frozen=True)
class Credentials:
    identifier: str
    secret: str

@dataclass(frozen=True)
class UserIdentity:
    username: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "UserIdentity":
        """Construit l'identité depuis les claims décodés (username, sinon email, sinon sub)."""
        if not isinstance(claims, dict):
            raise AuthError("Claims invalides")
        username = claims.get("username") or claims.get("email") or claims.get("sub")
        if not username:
            raise AuthError("Token sans identité (username/email/sub)")
        user_id = claims.get("id") or claims.get("user_id") or claims.get("sub")
        return cls(
            username=str(username),
            user_id=str(user_id) if user_id is not None else None,
            email=claims.get("email"),
            claims=dict(claims),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {"username": self.username, "id": self.user_id, "email": self.email}

class AuthResponse:
    def __init__(
        self,
        success: bool,
        identity: Optional[UserIdentity] = None,
        error: Optional[str] = None,
        payload: Any = None,
    ):
        self.success = success
        self.identity = identity
        self.error = error
        self.payload = payload

    @property
    def username(self):
        return self.identity.username if self.identity else None

def handle_exception(action: str, e: Exception) -> AuthResponse:
    if isinstance(e, AuthError):
        logger.warning("auth.%s failed status=%s error=%s", action, e.status_code, e.message)
        return AuthResponse(False, error=e.message, payload=e.payload)
    logger.exception(f"Erreur {action}")
    return AuthResponse(False, error=f"Erreur {action}: {str(e)}")
