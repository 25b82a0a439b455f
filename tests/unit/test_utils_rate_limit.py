import time

from fastapi import FastAPI, Depends, Request
from fastapi.testclient import TestClient

from storefront.utils.rate_limit import optional_rate_limit, rate_limit_health_info


def _make_app(times=2, seconds=60):
    app = FastAPI()

    @app.get("/limitedA", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def limited_a():
        return {"ok": True}

    @app.get("/limitedB", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def limited_b():
        return {"ok": True}

    @app.get("/rl_info")
    def rl_info(request: Request):
        return rate_limit_health_info(request)

    return app


def test_rate_limit_fallback_blocks_after_limit(monkeypatch):
    client = TestClient(_make_app(times=2, seconds=60))
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    assert client.get("/limitedA").status_code == 200
    assert client.get("/limitedA").status_code == 200
    assert client.get("/limitedA").status_code == 429


def test_rate_limit_is_per_path_and_session(monkeypatch):
    client = TestClient(_make_app(times=2, seconds=60))
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    # Avec cookie SID, la clé inclut le hash + path
    client.cookies.set("SID", "s-1")
    assert client.get("/limitedA").status_code == 200
    assert client.get("/limitedA").status_code == 200
    assert client.get("/limitedA").status_code == 429

    # path B: indépendant de A
    assert client.get("/limitedB").status_code == 200

    # Autre session: compteur distinct
    client.cookies.set("SID", "s-2")
    assert client.get("/limitedA").status_code == 200


def test_rate_limit_resets_after_window_sleep(monkeypatch):
    client = TestClient(_make_app(times=1, seconds=1))
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")

    assert client.get("/limitedA").status_code == 200
    assert client.get("/limitedA").status_code == 429
    time.sleep(1.1)
    assert client.get("/limitedA").status_code == 200


def test_rate_limit_disabled_flag_bypasses_limit(monkeypatch):
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    app = _make_app(times=1, seconds=60)
    client = TestClient(app)
    app.state.rate_limit_enabled = False

    for _ in range(3):
        assert client.get("/limitedA").status_code == 200


def test_rate_limit_health_info(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    app = _make_app()
    client = TestClient(app)
    app.state.rate_limit_enabled = True

    info = client.get("/rl_info").json()
    assert info["enabled"] is True
    assert info["local_fallback"] is True


def test_client_key_hashes_sid_and_includes_path():
    from starlette.requests import Request
    from storefront.utils.security import client_key

    def _req(cookie: bytes):
        headers = [(b"cookie", cookie)] if cookie else []
        return Request({"type": "http", "method": "POST", "path": "/auth/login", "headers": headers, "client": ("1.2.3.4", 5)})

    with_sid = client_key(_req(b"SID=secret-sid"))
    assert with_sid.startswith("sid:")
    assert "secret-sid" not in with_sid
    assert with_sid.endswith(":/auth/login")
    assert client_key(_req(b"")) == "ip:1.2.3.4:/auth/login"
