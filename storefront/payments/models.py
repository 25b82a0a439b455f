"""
Modèles du paiement: état de la session de paiement, événements du widget, erreurs.
"""
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional

class CheckoutState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    AWAITING_INPUT = "awaiting_input"
    READY = "ready"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    # Échec d'obtention du client secret: erreur visible, non silencieuse
    UNAVAILABLE = "unavailable"

class PaymentSecretError(Exception):
    """Le backend n'a pas délivré de client secret."""

class PaymentConfirmationError(Exception):
    """Carte refusée ou échec côté processeur; porte toujours un message lisible."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message or "Paiement refusé"

class InputError(Exception):
    """Saisie carte incomplète ou invalide côté widget."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message or "Saisie carte invalide"

@dataclass(frozen=True)
class CardInputEvent:
    complete: bool
    error: Optional[str] = None

@dataclass(frozen=True)
class BillingDetails:
    email: Optional[str] = None
    name: Optional[str] = None

@dataclass
class PaymentSession:
    client_secret: Optional[str] = None
    card_complete: bool = False
    processing: bool = False
    succeeded: bool = False
    error: Optional[str] = None
    loading: bool = False
    secret_failed: bool = False

    @property
    def state(self) -> CheckoutState:
        if self.succeeded:
            return CheckoutState.SUCCEEDED
        if self.processing:
            return CheckoutState.PROCESSING
        if self.secret_failed:
            return CheckoutState.UNAVAILABLE
        if self.loading:
            return CheckoutState.LOADING
        if not self.client_secret:
            return CheckoutState.IDLE
        if self.error:
            return CheckoutState.FAILED
        if self.card_complete:
            return CheckoutState.READY
        return CheckoutState.AWAITING_INPUT

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("client_secret", None)
        data["has_client_secret"] = bool(self.client_secret)
        data["state"] = self.state.value
        return data
