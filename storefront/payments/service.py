"""
Cas d'usage 'payments': machine d'état du checkout (PaymentController).

Idle -> Loading -> AwaitingInput -> Ready -> Processing -> {Succeeded | Failed}
Failed -> Ready sur correction de la saisie, sans re-monter la vue ni refaire la requête du secret.
Modèle coopératif (asyncio): les gardes `_init_task` et `processing` sont posées avant le premier await.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from storefront.config import PAYMENT_TIMEOUT
from . import repository
from .models import (
    BillingDetails,
    CardInputEvent,
    CheckoutState,
    InputError,
    PaymentConfirmationError,
    PaymentSecretError,
    PaymentSession,
)
from .widget import PaymentWidget

logger = logging.getLogger(__name__)

CreateIntent = Callable[[List[Dict[str, str]]], Awaitable[str]]

class PaymentController:
    def __init__(
        self,
        widget: PaymentWidget,
        create_intent: Optional[CreateIntent] = None,
        timeout: Optional[float] = PAYMENT_TIMEOUT,
        items_source: Optional[str] = None,
    ):
        self.widget = widget
        self._create_intent = create_intent or repository.create_payment_intent
        self.timeout = timeout
        self.items_source = items_source
        self.session = PaymentSession()
        self._mounted = True
        self._init_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> CheckoutState:
        return self.session.state

    @property
    def mounted(self) -> bool:
        return self._mounted

    async def init_checkout(self, cart_items: Iterable[Dict[str, Any]]) -> CheckoutState:
        """
        Demande un client secret au backend, une seule fois par montage.
        - Un second appel (en vol ou déjà résolu) est ignoré, jamais mis en file.
        - Échec réseau / backend / délai: état UNAVAILABLE avec message visible.
        """
        if not self._mounted or self._init_task is not None:
            logger.debug("payments.init_checkout suppressed mounted=%s", self._mounted)
            return self.state
        items = repository.select_items(cart_items, self.items_source)
        self.session.loading = True
        self._init_task = asyncio.ensure_future(self._fetch_secret(items))
        # wait() ne relaie pas l'annulation de la tâche interne (unmount)
        await asyncio.wait([self._init_task])
        return self.state

    async def retry_checkout(self, cart_items: Iterable[Dict[str, Any]]) -> CheckoutState:
        """Depuis UNAVAILABLE uniquement: repart comme un nouveau montage."""
        if not self._mounted or self.state is not CheckoutState.UNAVAILABLE:
            return self.state
        self.session = PaymentSession()
        self._init_task = None
        return await self.init_checkout(cart_items)

    async def _fetch_secret(self, items: List[Dict[str, str]]) -> None:
        secret: Optional[str] = None
        error: Optional[str] = None
        try:
            secret = await asyncio.wait_for(self._create_intent(items), timeout=self.timeout)
        except asyncio.TimeoutError:
            error = "Délai dépassé pour la préparation du paiement"
        except PaymentSecretError as e:
            error = str(e) or "Paiement indisponible"
        except Exception:
            logger.exception("payments.init_checkout failed items=%s", len(items))
            error = "Paiement indisponible"

        if not self._mounted:
            logger.info("payments.init_checkout result discarded (unmounted)")
            return
        self.session.loading = False
        if secret:
            self.session.client_secret = secret
            self.session.error = None
            logger.info("payments.init_checkout ok items=%s", len(items))
        else:
            self.session.secret_failed = True
            self.session.error = error
            logger.warning("payments.init_checkout unavailable error=%s", error)

    def on_card_input_change(self, event: CardInputEvent) -> CheckoutState:
        """Validation en direct du widget: purement local, ne touche ni processing ni succeeded."""
        if not self._mounted or self.session.succeeded:
            return self.state
        self.session.card_complete = bool(event.complete)
        # Pendant la confirmation: processing et error ne coexistent jamais
        if not self.session.secret_failed and not self.session.processing:
            self.session.error = event.error or None
        return self.state

    async def submit(self, billing: BillingDetails) -> CheckoutState:
        """
        Confirme le paiement via le widget avec le client secret stocké.
        - No-op si processing, carte incomplète, déjà réussi ou secret absent
        - Succès: succeeded=True (terminal); échec: error=<message>, rejouable
        """
        s = self.session
        if not self._mounted or s.processing or not s.card_complete or s.succeeded or not s.client_secret:
            return self.state

        s.processing = True
        s.error = None
        secret = s.client_secret
        error: Optional[str] = None
        try:
            method = await self.widget.collect_payment_method()
            await self.widget.confirm(secret, method, billing)
        except (InputError, PaymentConfirmationError) as e:
            error = e.message
        except Exception:
            logger.exception("payments.submit failed")
            error = "Erreur lors du paiement"

        if not self._mounted:
            logger.info("payments.submit result discarded (unmounted)")
            return self.state
        s.processing = False
        if error:
            s.error = error
            logger.info("payments.submit failed error=%s", error)
        else:
            s.succeeded = True
            s.error = None
            logger.info("payments.submit succeeded")
        return self.state

    def unmount(self) -> None:
        """Démontage: annule la requête du secret en vol; tout résultat tardif est ignoré."""
        self._mounted = False
        if self._init_task is not None and not self._init_task.done():
            self._init_task.cancel()
