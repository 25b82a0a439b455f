from typing import Any, Dict
import httpx
from storefront.infra.api_client import get_api_client

# --- Backend REST (auth) ---

async def post_login(email: str, password: str) -> httpx.Response:
    """POST /login: en cas de succès, les identifiants UID/CID/SID(/AID) arrivent en en-têtes."""
    client = get_api_client()
    return await client.post("/login", json={"email": email, "password": password})

async def post_token_login(user_data: Dict[str, Any]) -> httpx.Response:
    """POST /users/login: flux bearer, corps de réponse {token, message}."""
    client = get_api_client()
    return await client.post("/users/login", json=user_data)

async def post_register(user_data: Dict[str, Any]) -> httpx.Response:
    """POST /users: inscription; les erreurs de validation sont renvoyées telles quelles."""
    client = get_api_client()
    return await client.post("/users", json=user_data)

def response_payload(resp: httpx.Response) -> Any:
    """Corps JSON si possible, sinon texte brut."""
    try:
        return resp.json()
    except ValueError:
        return resp.text
