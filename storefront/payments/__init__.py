"""
Module 'payments' (feature-first): point d'entrée public.
Réunit modèles du checkout, widget Stripe, repository backend, PaymentController et registre.
"""

from .models import (
    CheckoutState,
    PaymentSession,
    CardInputEvent,
    BillingDetails,
    PaymentSecretError,
    PaymentConfirmationError,
    InputError,
)
from .widget import PaymentWidget, StripeCardWidget, require_stripe, intent_id_from_secret
from .repository import select_items, create_payment_intent
from .service import PaymentController
from .registry import CheckoutRegistry, get_checkout_registry, reset_checkout_registry

__all__ = [
    # models
    "CheckoutState",
    "PaymentSession",
    "CardInputEvent",
    "BillingDetails",
    "PaymentSecretError",
    "PaymentConfirmationError",
    "InputError",
    # widget
    "PaymentWidget",
    "StripeCardWidget",
    "require_stripe",
    "intent_id_from_secret",
    # repository
    "select_items",
    "create_payment_intent",
    # services
    "PaymentController",
    "CheckoutRegistry",
    "get_checkout_registry",
    "reset_checkout_registry",
]
