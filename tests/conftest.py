import os
from typing import Any, Callable, Dict, Generator, List, Optional, Tuple

# Pas de Redis pendant les tests (doit précéder l'import de l'app)
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import httpx
import pytest
from fastapi.testclient import TestClient

from storefront.app import app as fastapi_app
from storefront.infra.api_client import create_api_client, set_api_client
from storefront.payments import reset_checkout_registry

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/tests/unit/" in nodeid or nodeid.startswith("tests/unit/"):
            item.add_marker(pytest.mark.unit)
        elif "/tests/integration/" in nodeid or nodeid.startswith("tests/integration/"):
            item.add_marker(pytest.mark.integration)
        elif "/tests/functional/" in nodeid or nodeid.startswith("tests/functional/"):
            item.add_marker(pytest.mark.functional)

class FakeBackend:
    """
    Backend REST simulé (httpx.MockTransport).
    - on(method, path, ...): réponse fixe, reconstruite à chaque appel
    - on_call(method, path, fn): fn(request) -> httpx.Response
    - calls: requêtes reçues, dans l'ordre
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: List[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, json: Any = None, headers: Optional[Dict[str, str]] = None):
        self.routes[(method.upper(), path)] = lambda request: httpx.Response(status, json=json, headers=headers)

    def on_call(self, method: str, path: str, fn: Callable[[httpx.Request], httpx.Response]):
        self.routes[(method.upper(), path)] = fn

    def calls_to(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.calls if r.method == method.upper() and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        fn = self.routes.get((request.method, request.url.path))
        if fn is None:
            return httpx.Response(404, json={"error": "not found"})
        return fn(request)

@pytest.fixture()
def fake_backend() -> Generator[FakeBackend, None, None]:
    backend = FakeBackend()
    set_api_client(create_api_client(transport=httpx.MockTransport(backend.handler)))
    try:
        yield backend
    finally:
        set_api_client(None)

@pytest.fixture(autouse=True)
def _fresh_checkout_registry():
    reset_checkout_registry()
    yield
    reset_checkout_registry()

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app, fake_backend) -> Generator[TestClient, None, None]:
    # Le backend simulé est installé avant le lifespan (client httpx partagé)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

SESSION_HEADERS = {"UID": "u-1", "CID": "c-1", "SID": "s-1"}

@pytest.fixture()
def logged_in_client(client, fake_backend) -> TestClient:
    """Client connecté via POST /auth/login (cookies UID/CID/SID/AID)."""
    fake_backend.on("POST", "/login", headers={**SESSION_HEADERS, "AID": "a-1"}, json={"ok": True})
    resp = client.post("/auth/login", json={"email": "alice@example.com", "password": "pwd"})
    assert resp.status_code == 200
    return client
