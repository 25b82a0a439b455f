"""
Accès au backend REST pour la feature 'payments'.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging

import httpx

from storefront.config import PAYMENT_ITEMS_SOURCE, PAYMENT_FIXED_ITEMS
from storefront.infra.api_client import get_api_client
from .models import PaymentSecretError

logger = logging.getLogger(__name__)

def select_items(cart_items: Iterable[Dict[str, Any]], source: Optional[str] = None) -> List[Dict[str, str]]:
    """
    Construit la liste {id} envoyée à POST /payment.
    - source "cart": articles réels du panier (lignes sans id ignorées)
    - source "fixed": liste configurée PAYMENT_FIXED_ITEMS
    """
    source = (source or PAYMENT_ITEMS_SOURCE or "cart").lower()
    if source == "fixed":
        return [{"id": item_id} for item_id in PAYMENT_FIXED_ITEMS]
    items = []
    for it in cart_items or []:
        item_id = str((it or {}).get("id") or "").strip()
        if item_id:
            items.append({"id": item_id})
    return items

async def create_payment_intent(items: List[Dict[str, str]]) -> str:
    """
    POST /payment {items: [{id}]} -> clientSecret.
    - Soulève PaymentSecretError si panier vide, statut non-2xx, réseau en échec ou secret absent.
    """
    if not items:
        raise PaymentSecretError("Panier vide")
    try:
        resp = await get_api_client().post("/payment", json={"items": items})
    except httpx.HTTPError as e:
        logger.warning("payments.repository.create_payment_intent network error: %s", e)
        raise PaymentSecretError(f"Erreur réseau: {e}") from e
    if not resp.is_success:
        raise PaymentSecretError(f"Paiement indisponible (status {resp.status_code})")
    try:
        body = resp.json()
    except ValueError:
        body = None
    secret = body.get("clientSecret") if isinstance(body, dict) else None
    if not secret:
        raise PaymentSecretError("Client secret manquant")
    return secret
