import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from storefront.auth.service import SessionController
from storefront.config import STRIPE_PUBLIC_KEY
from storefront.guard import Capability
from storefront.utils.security import require_capability
from .models import BillingDetails, CardInputEvent
from .registry import CheckoutRegistry, get_checkout_registry
from .service import PaymentController
from .widget import StripeCardWidget

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])

class CartItem(BaseModel):
    id: str

class CheckoutRequest(BaseModel):
    items: List[CartItem] = []

class CardInputRequest(BaseModel):
    complete: bool
    error: Optional[str] = None

class SubmitRequest(BaseModel):
    payment_method: Optional[str] = None
    cardholder_name: Optional[str] = None

def _owner(session: SessionController) -> str:
    user = session.current_user()
    if user is None:
        raise HTTPException(status_code=401, detail="Veuillez vous connecter")
    return user.user_id or user.username

def _payload(checkout_id: str, controller: PaymentController) -> Dict[str, Any]:
    return {"checkout_id": checkout_id, **controller.session.as_dict()}

def _controller(checkout_id: str, session: SessionController, registry: CheckoutRegistry) -> PaymentController:
    controller = registry.get(checkout_id, _owner(session))
    if controller is None:
        raise HTTPException(status_code=404, detail="Checkout introuvable")
    return controller

authenticated = require_capability(Capability.AUTHENTICATED)

@router.post("")
async def mount_checkout(
    body: CheckoutRequest,
    session: SessionController = Depends(authenticated),
    registry: CheckoutRegistry = Depends(get_checkout_registry),
):
    """
    Monte une vue checkout et demande le client secret (une fois par montage).
    - Entrée JSON: { "items": [ { "id": "<article>" }, ... ] }
    - Retour: {checkout_id, state, error, ...}; un échec du secret donne state="unavailable" (visible)
    """
    owner = _owner(session)
    checkout_id, controller = registry.mount(owner)
    try:
        await controller.init_checkout([item.model_dump() for item in body.items])
    except asyncio.CancelledError:
        # Client déconnecté avant de connaître checkout_id: personne ne pourra démonter
        registry.unmount(checkout_id, owner)
        raise
    return {**_payload(checkout_id, controller), "publishable_key": STRIPE_PUBLIC_KEY}

@router.get("/{checkout_id}")
async def get_checkout(
    checkout_id: str,
    session: SessionController = Depends(authenticated),
    registry: CheckoutRegistry = Depends(get_checkout_registry),
):
    return _payload(checkout_id, _controller(checkout_id, session, registry))

@router.post("/{checkout_id}/card")
async def card_input_changed(
    checkout_id: str,
    body: CardInputRequest,
    session: SessionController = Depends(authenticated),
    registry: CheckoutRegistry = Depends(get_checkout_registry),
):
    """Relaie la validation en direct du widget carte (aucun appel réseau)."""
    controller = _controller(checkout_id, session, registry)
    controller.on_card_input_change(CardInputEvent(complete=body.complete, error=body.error))
    return _payload(checkout_id, controller)

@router.post("/{checkout_id}/submit")
async def submit_checkout(
    checkout_id: str,
    body: SubmitRequest,
    session: SessionController = Depends(authenticated),
    registry: CheckoutRegistry = Depends(get_checkout_registry),
):
    """
    Confirme le paiement: email de reçu depuis la session, nom du titulaire depuis le formulaire.
    - No-op (état inchangé) si déjà en cours, carte incomplète ou déjà réussi
    """
    controller = _controller(checkout_id, session, registry)
    if isinstance(controller.widget, StripeCardWidget):
        controller.widget.provide(body.payment_method)
    user = session.current_user()
    # Email de reçu: claim email, sinon identifiant de connexion s'il a la forme d'un email
    email = user.email or (user.username if "@" in user.username else None)
    billing = BillingDetails(email=email, name=(body.cardholder_name or "").strip() or None)
    await controller.submit(billing)
    return _payload(checkout_id, controller)

@router.post("/{checkout_id}/retry")
async def retry_checkout(
    checkout_id: str,
    body: CheckoutRequest,
    session: SessionController = Depends(authenticated),
    registry: CheckoutRegistry = Depends(get_checkout_registry),
):
    """Rejoue la demande de client secret après un échec (état unavailable uniquement)."""
    controller = _controller(checkout_id, session, registry)
    await controller.retry_checkout([item.model_dump() for item in body.items])
    return _payload(checkout_id, controller)

@router.delete("/{checkout_id}")
async def unmount_checkout(
    checkout_id: str,
    session: SessionController = Depends(authenticated),
    registry: CheckoutRegistry = Depends(get_checkout_registry),
):
    """Démonte la vue: toute réponse tardive est ignorée."""
    if not registry.unmount(checkout_id, _owner(session)):
        raise HTTPException(status_code=404, detail="Checkout introuvable")
    return {"status": "unmounted", "checkout_id": checkout_id}
