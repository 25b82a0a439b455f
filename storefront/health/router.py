import logging

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from storefront.config import API_BASE_URL
from storefront.infra.api_client import get_api_client
from storefront.utils.rate_limit import rate_limit_health_info

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return {"ok": True}

@router.get("/backend")
async def health_backend():
    """Joignabilité du backend REST (tout statut HTTP compte comme joignable)."""
    info = {"base_url": API_BASE_URL, "reachable": False, "status": None}
    try:
        resp = await get_api_client().get("/")
        info.update(reachable=True, status=resp.status_code)
    except httpx.HTTPError as e:
        logger.warning("health.backend unreachable error=%s", e)
        info["error"] = str(e)
    return JSONResponse(info, status_code=200 if info["reachable"] else 503)

@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return rate_limit_health_info(request)
