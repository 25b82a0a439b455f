"""
Frontière du widget de paiement: interface de capacité + adaptateur Stripe.

- collect_payment_method() -> identifiant de moyen de paiement (ou InputError)
- confirm(secret, method, billing) -> None (ou PaymentConfirmationError)
La machine d'état du PaymentController ne dépend que de cette interface.
"""
import logging
from typing import Optional, Protocol

import stripe
from starlette.concurrency import run_in_threadpool

from storefront.config import STRIPE_SECRET_KEY
from .models import BillingDetails, InputError, PaymentConfirmationError

logger = logging.getLogger(__name__)

class PaymentWidget(Protocol):
    async def collect_payment_method(self) -> str: ...
    async def confirm(self, secret: str, method: str, billing: BillingDetails) -> None: ...

def require_stripe() -> stripe:
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY si disponible.
    - En absence de clé, les appels Stripe échouent côté SDK (ex: No API key provided).
    """
    if STRIPE_SECRET_KEY:
        stripe.api_key = STRIPE_SECRET_KEY
    return stripe

def intent_id_from_secret(client_secret: str) -> str:
    """pi_123_secret_abc -> pi_123"""
    intent_id, sep, _ = (client_secret or "").partition("_secret_")
    if not sep or not intent_id:
        raise PaymentConfirmationError("Client secret invalide")
    return intent_id

class StripeCardWidget:
    """
    Adaptateur Stripe du widget carte.
    - Le navigateur (Stripe Elements) crée le moyen de paiement pm_... et le transmet via provide()
    - confirm() appelle PaymentIntent.confirm dans le threadpool (SDK synchrone)
    """

    def __init__(self, payment_method: Optional[str] = None):
        self._payment_method = payment_method

    def provide(self, payment_method: Optional[str]) -> None:
        if payment_method:
            self._payment_method = payment_method

    async def collect_payment_method(self) -> str:
        if not self._payment_method:
            raise InputError("Moyen de paiement manquant")
        return self._payment_method

    async def confirm(self, secret: str, method: str, billing: BillingDetails) -> None:
        intent_id = intent_id_from_secret(secret)
        params = {"payment_method": method}
        if billing.email:
            params["receipt_email"] = billing.email
        try:
            require_stripe()
            billing_details = {k: v for k, v in (("name", billing.name), ("email", billing.email)) if v}
            if billing_details:
                await run_in_threadpool(stripe.PaymentMethod.modify, method, billing_details=billing_details)
            intent = await run_in_threadpool(stripe.PaymentIntent.confirm, intent_id, **params)
        except stripe.CardError as e:
            raise PaymentConfirmationError(e.user_message or str(e)) from e
        except stripe.StripeError as e:
            logger.exception("payments.widget.confirm stripe error intent=%s", intent_id)
            raise PaymentConfirmationError(e.user_message or "Erreur du processeur de paiement") from e

        status = intent.get("status") if isinstance(intent, dict) else getattr(intent, "status", None)
        if status not in ("succeeded", "processing"):
            raise PaymentConfirmationError(f"Paiement non confirmé (status={status})")
