import asyncio

import pytest

from storefront.payments import (
    BillingDetails,
    CardInputEvent,
    CheckoutState,
    InputError,
    PaymentConfirmationError,
    PaymentController,
    PaymentSecretError,
)

CART = [{"id": "xl-tshirt"}]
BILLING = BillingDetails(email="alice@example.com", name="Alice")

class FakeWidget:
    """Widget carte simulé: échecs de confirmation programmables, confirmation bloquable."""

    def __init__(self, method="pm_card", failures=None, gate=None):
        self.method = method
        self.failures = list(failures or [])
        self.gate = gate
        self.confirms = []

    async def collect_payment_method(self):
        if not self.method:
            raise InputError("Numéro de carte incomplet")
        return self.method

    async def confirm(self, secret, method, billing):
        self.confirms.append((secret, method, billing))
        if self.gate is not None:
            await self.gate.wait()
        if self.failures:
            raise PaymentConfirmationError(self.failures.pop(0))

class FakeIntents:
    def __init__(self, secret="pi_1_secret_abc", error=None, gate=None, delay=None):
        self.secret = secret
        self.error = error
        self.gate = gate
        self.delay = delay
        self.calls = []

    async def __call__(self, items):
        self.calls.append(items)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.secret

async def _ready_controller(widget=None, intents=None):
    intents = intents or FakeIntents()
    ctrl = PaymentController(widget or FakeWidget(), create_intent=intents, items_source="cart")
    await ctrl.init_checkout(CART)
    ctrl.on_card_input_change(CardInputEvent(complete=True))
    return ctrl, intents

@pytest.mark.asyncio
async def test_init_then_card_complete_is_ready():
    intents = FakeIntents()
    ctrl = PaymentController(FakeWidget(), create_intent=intents, items_source="cart")
    assert ctrl.state is CheckoutState.IDLE

    assert await ctrl.init_checkout(CART) is CheckoutState.AWAITING_INPUT
    assert intents.calls == [[{"id": "xl-tshirt"}]]
    assert ctrl.on_card_input_change(CardInputEvent(complete=True)) is CheckoutState.READY

@pytest.mark.asyncio
async def test_duplicate_init_issues_one_request():
    gate = asyncio.Event()
    intents = FakeIntents(gate=gate)
    ctrl = PaymentController(FakeWidget(), create_intent=intents, items_source="cart")

    first = asyncio.ensure_future(ctrl.init_checkout(CART))
    await asyncio.sleep(0)
    assert ctrl.state is CheckoutState.LOADING
    # Second appel pendant le vol: ignoré
    assert await ctrl.init_checkout(CART) is CheckoutState.LOADING
    gate.set()
    await first
    # Après résolution: toujours ignoré
    await ctrl.init_checkout(CART)

    assert len(intents.calls) == 1
    assert ctrl.session.client_secret == "pi_1_secret_abc"

@pytest.mark.asyncio
async def test_submit_while_processing_is_noop():
    gate = asyncio.Event()
    widget = FakeWidget(gate=gate)
    ctrl, _ = await _ready_controller(widget)

    pending = asyncio.ensure_future(ctrl.submit(BILLING))
    await asyncio.sleep(0)
    assert ctrl.state is CheckoutState.PROCESSING
    assert await ctrl.submit(BILLING) is CheckoutState.PROCESSING
    gate.set()

    assert await pending is CheckoutState.SUCCEEDED
    assert len(widget.confirms) == 1

@pytest.mark.asyncio
async def test_declined_then_corrected_then_succeeds_with_same_secret():
    widget = FakeWidget(failures=["Your card was declined."])
    ctrl, intents = await _ready_controller(widget)

    assert await ctrl.submit(BILLING) is CheckoutState.FAILED
    assert ctrl.session.error == "Your card was declined."
    assert ctrl.session.processing is False

    assert ctrl.on_card_input_change(CardInputEvent(complete=True)) is CheckoutState.READY
    assert await ctrl.submit(BILLING) is CheckoutState.SUCCEEDED

    assert len(intents.calls) == 1
    assert [c[0] for c in widget.confirms] == ["pi_1_secret_abc", "pi_1_secret_abc"]
    assert widget.confirms[0][2] == BILLING

@pytest.mark.asyncio
async def test_succeeded_is_terminal():
    ctrl, _ = await _ready_controller()
    await ctrl.submit(BILLING)
    assert ctrl.on_card_input_change(CardInputEvent(complete=False, error="x")) is CheckoutState.SUCCEEDED
    assert await ctrl.submit(BILLING) is CheckoutState.SUCCEEDED

@pytest.mark.asyncio
async def test_submit_requires_complete_card():
    widget = FakeWidget()
    ctrl = PaymentController(widget, create_intent=FakeIntents(), items_source="cart")
    await ctrl.init_checkout(CART)
    ctrl.on_card_input_change(CardInputEvent(complete=False, error="Numéro invalide"))
    assert await ctrl.submit(BILLING) is CheckoutState.FAILED
    assert widget.confirms == []

@pytest.mark.asyncio
async def test_missing_payment_method_is_an_input_error():
    ctrl, _ = await _ready_controller(FakeWidget(method=None))
    assert await ctrl.submit(BILLING) is CheckoutState.FAILED
    assert ctrl.session.error == "Numéro de carte incomplet"

@pytest.mark.asyncio
async def test_secret_failure_is_visible_and_retryable():
    intents = FakeIntents(error=PaymentSecretError("Paiement indisponible (status 500)"))
    ctrl = PaymentController(FakeWidget(), create_intent=intents, items_source="cart")

    assert await ctrl.init_checkout(CART) is CheckoutState.UNAVAILABLE
    assert "500" in ctrl.session.error
    # La saisie carte n'efface pas l'erreur du secret
    ctrl.on_card_input_change(CardInputEvent(complete=True))
    assert ctrl.state is CheckoutState.UNAVAILABLE
    assert await ctrl.submit(BILLING) is CheckoutState.UNAVAILABLE

    intents.error = None
    assert await ctrl.retry_checkout(CART) is CheckoutState.AWAITING_INPUT
    assert len(intents.calls) == 2

@pytest.mark.asyncio
async def test_retry_is_ignored_unless_unavailable():
    ctrl, intents = await _ready_controller()
    assert await ctrl.retry_checkout(CART) is CheckoutState.READY
    assert len(intents.calls) == 1

@pytest.mark.asyncio
async def test_timeout_gives_unavailable():
    ctrl = PaymentController(FakeWidget(), create_intent=FakeIntents(delay=1), timeout=0.01, items_source="cart")
    assert await ctrl.init_checkout(CART) is CheckoutState.UNAVAILABLE
    assert "Délai" in ctrl.session.error

@pytest.mark.asyncio
async def test_unmount_discards_late_result():
    gate = asyncio.Event()
    ctrl = PaymentController(FakeWidget(), create_intent=FakeIntents(gate=gate), items_source="cart")

    pending = asyncio.ensure_future(ctrl.init_checkout(CART))
    await asyncio.sleep(0)
    ctrl.unmount()
    gate.set()
    await pending

    assert ctrl.mounted is False
    assert ctrl.session.client_secret is None
    assert ctrl.session.secret_failed is False
    # Plus aucune transition après démontage
    assert await ctrl.init_checkout(CART) is ctrl.state

@pytest.mark.asyncio
async def test_unmount_during_submit_discards_result():
    gate = asyncio.Event()
    ctrl, _ = await _ready_controller(FakeWidget(gate=gate))
    pending = asyncio.ensure_future(ctrl.submit(BILLING))
    await asyncio.sleep(0)
    ctrl.unmount()
    gate.set()
    await pending
    assert ctrl.session.succeeded is False

@pytest.mark.asyncio
async def test_empty_cart_with_repository():
    # Sans create_intent injecté: repository.create_payment_intent refuse un panier vide
    ctrl = PaymentController(FakeWidget(), items_source="cart")
    assert await ctrl.init_checkout([]) is CheckoutState.UNAVAILABLE
    assert ctrl.session.error == "Panier vide"

@pytest.mark.asyncio
async def test_card_input_during_processing_never_sets_error():
    gate = asyncio.Event()
    ctrl, _ = await _ready_controller(FakeWidget(gate=gate))

    pending = asyncio.ensure_future(ctrl.submit(BILLING))
    await asyncio.sleep(0)
    assert ctrl.on_card_input_change(CardInputEvent(complete=False, error="bad number")) is CheckoutState.PROCESSING
    assert ctrl.session.error is None
    assert ctrl.session.as_dict()["error"] is None
    gate.set()
    await pending
    assert ctrl.session.processing is False
