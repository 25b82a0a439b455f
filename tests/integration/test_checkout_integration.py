import pytest

from storefront.payments import CheckoutRegistry, PaymentConfirmationError, StripeCardWidget, reset_checkout_registry

CART = {"items": [{"id": "xl-tshirt"}]}

class FakeStripeWidget(StripeCardWidget):
    """Widget Stripe sans appel réseau: "pm_declined" est refusé."""
    confirms = []

    async def confirm(self, secret, method, billing):
        FakeStripeWidget.confirms.append((secret, method, billing))
        if method == "pm_declined":
            raise PaymentConfirmationError("Your card was declined.")

@pytest.fixture()
def fake_widget_registry():
    FakeStripeWidget.confirms = []
    reset_checkout_registry(CheckoutRegistry(widget_factory=FakeStripeWidget))

def _mount(client):
    resp = client.post("/api/v1/checkout", json=CART)
    assert resp.status_code == 200
    return resp.json()

def test_checkout_requires_session(client, fake_backend):
    resp = client.post("/api/v1/checkout", json=CART, headers={"Accept": "text/html"})
    assert resp.status_code == 401
    assert fake_backend.calls_to("POST", "/payment") == []

def test_mount_fetches_secret_without_exposing_it(logged_in_client, fake_backend):
    fake_backend.on("POST", "/payment", json={"clientSecret": "pi_1_secret_x"})

    body = _mount(logged_in_client)

    assert body["state"] == "awaiting_input"
    assert body["has_client_secret"] is True
    assert "client_secret" not in body
    assert "publishable_key" in body
    assert "no-store" in logged_in_client.get(f"/api/v1/checkout/{body['checkout_id']}").headers["Cache-Control"]

def test_unavailable_then_retry(logged_in_client, fake_backend):
    fake_backend.on("POST", "/payment", status=500, json={"error": "boom"})
    body = _mount(logged_in_client)
    assert body["state"] == "unavailable"
    assert body["error"]

    fake_backend.on("POST", "/payment", json={"clientSecret": "pi_1_secret_x"})
    retried = logged_in_client.post(f"/api/v1/checkout/{body['checkout_id']}/retry", json=CART).json()
    assert retried["state"] == "awaiting_input"
    assert len(fake_backend.calls_to("POST", "/payment")) == 2

def test_declined_then_success(logged_in_client, fake_backend, fake_widget_registry):
    fake_backend.on("POST", "/payment", json={"clientSecret": "pi_1_secret_x"})
    checkout_id = _mount(logged_in_client)["checkout_id"]
    base = f"/api/v1/checkout/{checkout_id}"

    assert logged_in_client.post(f"{base}/card", json={"complete": True}).json()["state"] == "ready"

    failed = logged_in_client.post(f"{base}/submit", json={"payment_method": "pm_declined", "cardholder_name": " Alice "}).json()
    assert failed["state"] == "failed"
    assert failed["error"] == "Your card was declined."

    assert logged_in_client.post(f"{base}/card", json={"complete": True}).json()["state"] == "ready"
    done = logged_in_client.post(f"{base}/submit", json={"payment_method": "pm_ok"}).json()
    assert done["state"] == "succeeded"

    secrets = {c[0] for c in FakeStripeWidget.confirms}
    assert secrets == {"pi_1_secret_x"}
    assert FakeStripeWidget.confirms[0][2].name == "Alice"
    assert len(fake_backend.calls_to("POST", "/payment")) == 1

def test_submit_incomplete_card_is_noop(logged_in_client, fake_backend, fake_widget_registry):
    fake_backend.on("POST", "/payment", json={"clientSecret": "pi_1_secret_x"})
    checkout_id = _mount(logged_in_client)["checkout_id"]
    body = logged_in_client.post(f"/api/v1/checkout/{checkout_id}/submit", json={"payment_method": "pm_ok"}).json()
    assert body["state"] == "awaiting_input"
    assert FakeStripeWidget.confirms == []

def test_unmount_and_unknown_checkout(logged_in_client, fake_backend):
    fake_backend.on("POST", "/payment", json={"clientSecret": "pi_1_secret_x"})
    checkout_id = _mount(logged_in_client)["checkout_id"]

    assert logged_in_client.delete(f"/api/v1/checkout/{checkout_id}").json()["status"] == "unmounted"
    assert logged_in_client.get(f"/api/v1/checkout/{checkout_id}").status_code == 404
    assert logged_in_client.delete(f"/api/v1/checkout/{checkout_id}").status_code == 404

def test_lone_uid_cookie_is_not_a_session(client, fake_backend):
    # Triplet partiel (UID seul, périmé): 401, jamais d'erreur serveur
    client.cookies.set("UID", "stale-u1")
    resp = client.post("/api/v1/checkout", json=CART)
    assert resp.status_code == 401
    assert client.get("/api/v1/checkout/whatever").status_code == 401
    assert fake_backend.calls_to("POST", "/payment") == []

def test_repeated_mounts_are_bounded_per_owner(logged_in_client, fake_backend):
    fake_backend.on("POST", "/payment", json={"clientSecret": "pi_1_secret_x"})
    registry = CheckoutRegistry(max_per_owner=2)
    reset_checkout_registry(registry)

    ids = [_mount(logged_in_client)["checkout_id"] for _ in range(5)]

    assert len(registry) == 2
    assert logged_in_client.get(f"/api/v1/checkout/{ids[0]}").status_code == 404
    assert logged_in_client.get(f"/api/v1/checkout/{ids[-1]}").status_code == 200

def test_checkout_handlers_run_on_the_event_loop():
    # Pas de threadpool: les contrôleurs ne sont modifiés que depuis la boucle asyncio
    import inspect
    from storefront.payments.views import router

    for route in router.routes:
        assert inspect.iscoroutinefunction(route.endpoint), route.path
