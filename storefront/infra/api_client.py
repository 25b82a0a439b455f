from typing import Optional
import httpx
from storefront.config import API_BASE_URL, REQUEST_TIMEOUT

_api_client: Optional[httpx.AsyncClient] = None

def create_api_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """
    Client httpx asynchrone vers le backend REST.
    - base_url: API_BASE_URL; timeout: REQUEST_TIMEOUT (borne les états loading)
    - transport: injectable (httpx.MockTransport en tests)
    """
    return httpx.AsyncClient(base_url=API_BASE_URL, timeout=REQUEST_TIMEOUT, transport=transport)

def get_api_client() -> httpx.AsyncClient:
    global _api_client
    if _api_client is None or _api_client.is_closed:
        _api_client = create_api_client()
    return _api_client

def set_api_client(client: Optional[httpx.AsyncClient]) -> None:
    """Remplace le client partagé (lifespan, tests)."""
    global _api_client
    _api_client = client

async def close_api_client() -> None:
    global _api_client
    if _api_client is not None and not _api_client.is_closed:
        await _api_client.aclose()
    _api_client = None
