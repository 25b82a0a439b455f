from typing import Any, List, Optional
import logging

import httpx

from storefront.guard import CapabilityCheck, SessionMismatchError
from storefront.infra.api_client import get_api_client

logger = logging.getLogger(__name__)

async def fetch_orders(aid: Optional[str]) -> httpx.Response:
    """GET /orders avec l'en-tête AID (omis s'il est absent)."""
    headers = {"AID": aid} if aid else {}
    return await get_api_client().get("/orders", headers=headers)

async def load_orders(aid: Optional[str]) -> List[Any]:
    """
    Liste des commandes, confirmée par le serveur.
    - 404/401/403 malgré des identifiants locaux: SessionMismatchError (repli du Route Guard)
    - autre statut non-2xx: httpx.HTTPStatusError
    """
    resp = await fetch_orders(aid)
    if CapabilityCheck.from_status(resp.status_code) is CapabilityCheck.REJECTED:
        logger.info("orders.load rejected status=%s aid=%s", resp.status_code, bool(aid))
        raise SessionMismatchError(f"orders status {resp.status_code}")
    resp.raise_for_status()
    data = resp.json()
    return data if isinstance(data, list) else (data or {}).get("orders", [])
