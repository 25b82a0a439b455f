"""
Rate limiting des endpoints d'authentification.
- Redis via fastapi-limiter quand le lifespan l'a initialisé
- Fenêtre glissante en mémoire (app.state) si LOCAL_RATE_LIMIT_FALLBACK=1
- Clé: client_key (SID hashé, sinon IP) + chemin
"""
from typing import Dict, Any, List
from urllib.parse import urlparse
import os
import time

from fastapi import Request, Response, HTTPException
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

from storefront.utils.security import client_key

def _local_fallback() -> bool:
    return os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1"

def _hit_local_window(request: Request, times: int, seconds: int) -> None:
    now = time.time()
    key = client_key(request)
    windows: Dict[str, List[float]] = getattr(request.app.state, "_rl_store", {})
    hits = [t for t in windows.get(key, []) if now - t < seconds]
    if len(hits) >= times:
        raise HTTPException(status_code=429, detail="Too Many Requests")
    windows[key] = hits + [now]
    request.app.state._rl_store = windows

async def _identifier(request: Request) -> str:
    return client_key(request)

def optional_rate_limit(times: int, seconds: int):
    """Dépendance FastAPI: 429 au-delà de `times` requêtes par `seconds` secondes."""
    async def _dep(request: Request, response: Response):
        if _local_fallback():
            _hit_local_window(request, times, seconds)
            return
        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return
        try:
            await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
        except HTTPException:
            raise
        except Exception:
            # Redis indisponible: pas de 429 (activer LOCAL_RATE_LIMIT_FALLBACK=1 en dev)
            return
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    ready = getattr(FastAPILimiter, "redis", None) is not None
    info: Dict[str, Any] = {
        "enabled": bool(enabled) if enabled is not None else None,
        "ready": ready,
        "backend": "redis" if ready else None,
        "local_fallback": _local_fallback(),
    }
    redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
    if ready and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {"scheme": p.scheme, "host": p.hostname, "port": p.port}
    return info
