import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from storefront.auth.service import SessionController
from storefront.guard import Capability, CapabilityCheck, GuardDecision, RouteGuard, SessionMismatchError
from storefront.utils.security import carry_cookies, get_route_guard, get_session, wants_html
from .repository import load_orders

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Orders"])

def guard_fallback(request: Request, response: Response, decision: GuardDecision) -> Response:
    """
    Vue de repli du Route Guard.
    - HTML: redirection 303 vers la vue de repli
    - API: 401 (connexion requise) ou 404 (session non confirmée) avec le modèle de vue
    """
    if wants_html(request):
        return carry_cookies(response, RedirectResponse(url=decision.redirect_to, status_code=HTTP_303_SEE_OTHER))
    missing_uid = decision.reason == "missing_uid"
    content = {
        "view": "login" if missing_uid else "not_found",
        "redirect_to": decision.redirect_to,
        "reason": decision.reason,
    }
    return carry_cookies(response, JSONResponse(status_code=401 if missing_uid else 404, content=content))

@router.get("/orders")
async def orders_page(
    request: Request,
    response: Response,
    session: SessionController = Depends(get_session),
    guard: RouteGuard = Depends(get_route_guard),
):
    """
    Liste des commandes (vue protégée):
    1) contrôle local (UID présent) via RouteGuard.decide
    2) confirmation serveur: GET /orders avec AID; 404/401 => vue not-found au lieu de la liste
    """
    tokens = session.effective_tokens()
    decision = guard.decide(Capability.AUTHENTICATED, tokens, session.auth_state)
    orders = []
    if decision.render:
        try:
            orders = await load_orders(tokens.aid)
        except SessionMismatchError:
            decision = guard.decide(Capability.AUTHENTICATED, tokens, session.auth_state, CapabilityCheck.REJECTED)
        except httpx.HTTPError:
            logger.exception("Erreur orders_page")
            raise HTTPException(status_code=502, detail="Backend indisponible")
    if not decision.render:
        return guard_fallback(request, response, decision)
    return {"view": "orders", "session_view": decision.view.value, "orders": orders}
