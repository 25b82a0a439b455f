from fastapi import Request, HTTPException, Depends
from fastapi.responses import Response
import hashlib

from storefront.auth.models import UserIdentity
from storefront.auth.service import SessionController
from storefront.credentials import SID, CookieCredentialStore
from storefront.guard import Capability, RouteGuard
from storefront.state import create_store

def get_session(request: Request, response: Response) -> SessionController:
    """
    Dépendance par requête: Credential Store (cookies) + Store d'état propres à la requête,
    puis reconstruction explicite de l'état d'auth (restore).
    """
    credentials = CookieCredentialStore(request, response)
    controller = SessionController(create_store(), credentials)
    controller.restore()
    return controller

def get_route_guard() -> RouteGuard:
    return RouteGuard()

def require_user(session: SessionController = Depends(get_session)) -> UserIdentity:
    """Contrôle local: état d'auth reconstruit et UID présent (ou bearer valide)."""
    user = session.current_user()
    if user is None:
        raise HTTPException(status_code=401, detail="Non authentifié")
    return user

def require_capability(capability: Capability):
    """Fabrique de dépendance: applique RouteGuard.decide sur l'état local (sans contrôle serveur)."""
    def _dep(
        session: SessionController = Depends(get_session),
        guard: RouteGuard = Depends(get_route_guard),
    ) -> SessionController:
        decision = guard.decide(capability, session.effective_tokens(), session.auth_state)
        # UID seul (triplet partiel ou périmé): pas d'identité restaurée
        stale = capability is Capability.AUTHENTICATED and session.current_user() is None
        if not decision.render or stale:
            raise HTTPException(status_code=401, detail="Veuillez vous connecter")
        return session
    return _dep

def carry_cookies(source: Response, target: Response) -> Response:
    """Recopie les Set-Cookie posés sur la réponse injectée vers une réponse retournée directement."""
    for key, value in source.raw_headers:
        if key.lower() == b"set-cookie":
            target.raw_headers.append((key, value))
    return target

def wants_html(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    return "text/html" in accept and not request.url.path.startswith("/api/")

def client_key(request: Request) -> str:
    """
    Clé client stable pour le rate limiting, propre au chemin:
    - identifiant de session SID (hashé) si présent
    - sinon adresse IP
    """
    sid = request.cookies.get(SID)
    if sid:
        client = "sid:" + hashlib.sha256(sid.encode("utf-8")).hexdigest()[:16]
    else:
        client = "ip:" + (request.client.host if request.client else "local")
    return f"{client}:{request.url.path}"
