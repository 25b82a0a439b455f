"""
Registre des vues checkout montées: un PaymentController par montage, jamais partagé.

Borné: une vue non démontée explicitement (navigation, déconnexion du client) est
démontée après CHECKOUT_TTL secondes, ou dès que son propriétaire dépasse
CHECKOUT_MAX_PER_OWNER montages (la plus ancienne d'abord).
"""
import logging
import time
from typing import Callable, Dict, NamedTuple, Optional, Tuple
from uuid import uuid4

from storefront.config import CHECKOUT_MAX_PER_OWNER, CHECKOUT_TTL
from .service import PaymentController
from .widget import PaymentWidget, StripeCardWidget

logger = logging.getLogger(__name__)

class _Mount(NamedTuple):
    owner: str
    controller: PaymentController
    mounted_at: float

class CheckoutRegistry:
    def __init__(
        self,
        controller_factory: Optional[Callable[[PaymentWidget], PaymentController]] = None,
        widget_factory: Callable[[], PaymentWidget] = StripeCardWidget,
        ttl: Optional[float] = CHECKOUT_TTL,
        max_per_owner: Optional[int] = CHECKOUT_MAX_PER_OWNER,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._controller_factory = controller_factory or PaymentController
        self._widget_factory = widget_factory
        self.ttl = ttl
        self.max_per_owner = max_per_owner
        self._clock = clock
        # Ordre d'insertion = ordre de montage
        self._mounted: Dict[str, _Mount] = {}

    def mount(self, owner: str) -> Tuple[str, PaymentController]:
        self.evict_expired()
        if self.max_per_owner:
            owned = [cid for cid, m in self._mounted.items() if m.owner == owner]
            for checkout_id in owned[: max(0, len(owned) - self.max_per_owner + 1)]:
                logger.info("payments.registry evict id=%s owner=%s reason=max_per_owner", checkout_id, owner)
                self._drop(checkout_id)
        checkout_id = uuid4().hex
        controller = self._controller_factory(self._widget_factory())
        self._mounted[checkout_id] = _Mount(owner, controller, self._clock())
        logger.info("payments.registry mount id=%s owner=%s", checkout_id, owner)
        return checkout_id, controller

    def get(self, checkout_id: str, owner: str) -> Optional[PaymentController]:
        self.evict_expired()
        entry = self._mounted.get(checkout_id)
        if not entry or entry.owner != owner:
            return None
        return entry.controller

    def unmount(self, checkout_id: str, owner: str) -> bool:
        if self.get(checkout_id, owner) is None:
            return False
        self._drop(checkout_id)
        logger.info("payments.registry unmount id=%s", checkout_id)
        return True

    def evict_expired(self) -> int:
        if not self.ttl:
            return 0
        deadline = self._clock() - self.ttl
        expired = [cid for cid, m in self._mounted.items() if m.mounted_at <= deadline]
        for checkout_id in expired:
            logger.info("payments.registry evict id=%s reason=ttl", checkout_id)
            self._drop(checkout_id)
        return len(expired)

    def _drop(self, checkout_id: str) -> None:
        entry = self._mounted.pop(checkout_id, None)
        if entry is not None:
            entry.controller.unmount()

    def __len__(self) -> int:
        return len(self._mounted)

_registry: Optional[CheckoutRegistry] = None

def get_checkout_registry() -> CheckoutRegistry:
    global _registry
    if _registry is None:
        _registry = CheckoutRegistry()
    return _registry

def reset_checkout_registry(registry: Optional[CheckoutRegistry] = None) -> None:
    """Remplace le registre (lifespan, tests)."""
    global _registry
    _registry = registry
