from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from starlette.status import HTTP_303_SEE_OTHER

from storefront.config import HOME_PATH
from storefront.state import session_view, render_session_widget
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.security import get_session, require_user, carry_cookies
from .models import AuthResponse, Credentials, UserIdentity
from .service import SessionController

# --- API Router (/auth) ---

api_router = APIRouter(prefix="/auth", tags=["Auth API"])

class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

class TokenLoginRequest(BaseModel):
    identifier: str = Field(min_length=1)
    secret: str = Field(min_length=1)

class RegisterRequest(BaseModel):
    # Champs supplémentaires transmis tels quels au backend
    model_config = ConfigDict(extra="allow")
    email: EmailStr
    password: str = Field(min_length=1)
    username: Optional[str] = None

def _session_payload(session: SessionController) -> Dict[str, Any]:
    state = session.auth_state
    user = session.current_user()
    return {
        "authenticated": state.authenticated,
        "loading": state.loading,
        "session_view": session_view(state).value,
        "user": user.as_dict() if user else None,
    }

def _failure(session: SessionController, result: AuthResponse, status_code: int, response: Response) -> JSONResponse:
    # La tranche error du store est renvoyée pour affichage
    content = {"detail": result.error, "errors": session.store.state.error}
    return carry_cookies(response, JSONResponse(status_code=status_code, content=content))

@api_router.post("/login", dependencies=[Depends(optional_rate_limit(times=3, seconds=60))])
async def api_login(req: LoginRequest, response: Response, session: SessionController = Depends(get_session)):
    """Point d'entrée de connexion (formulaire).
    - Applique un rate limit (3 requêtes par 60 secondes via la dépendance).
    - Délègue au SessionController selon SESSION_STRATEGY (cookies UID/CID/SID/AID ou bearer).
    - Échec: 401 avec la tranche d'erreurs; aucun cookie modifié.
    """
    result = await session.sign_in(Credentials(identifier=req.email, secret=req.password))
    if not result.success:
        return _failure(session, result, 401, response)
    return _session_payload(session)

@api_router.post("/token-login", dependencies=[Depends(optional_rate_limit(times=3, seconds=60))])
async def api_token_login(req: TokenLoginRequest, response: Response, session: SessionController = Depends(get_session)):
    """Flux bearer explicite: POST /users/login puis décodage et persistance du token."""
    result = await session.login_with_token({"identifier": req.identifier, "secret": req.secret})
    if not result.success:
        return _failure(session, result, 401, response)
    return _session_payload(session)

@api_router.post("/register", status_code=201, dependencies=[Depends(optional_rate_limit(times=3, seconds=60))])
async def api_register(req: RegisterRequest, response: Response, session: SessionController = Depends(get_session)):
    """Inscription: les erreurs de validation du backend sont renvoyées telles quelles (400)."""
    result = await session.register(req.model_dump(exclude_none=True))
    if not result.success:
        return _failure(session, result, 400, response)
    return {"message": "Inscription réussie", "next": "/login"}

@api_router.post("/logout")
def api_logout(session: SessionController = Depends(get_session)):
    """Efface bearer token et identifiants UID/CID/SID/AID; toujours réussi."""
    session.logout()
    return {"message": "Déconnexion réussie"}

@api_router.get("/me")
def api_me(user: UserIdentity = Depends(require_user)):
    """Retourne l'utilisateur reconstruit depuis le Credential Store."""
    return user.as_dict()

@api_router.get("/widget")
def api_widget(session: SessionController = Depends(get_session)):
    """Widget de la barre de navigation: formulaire de connexion ou nom + déconnexion."""
    return render_session_widget(session_view(session.auth_state), session.current_user())

# --- Web Router ---

web_router = APIRouter(tags=["Auth Web"])

@web_router.get("/login")
def login_page(response: Response, session: SessionController = Depends(get_session)):
    """Déjà connecté: redirection vers l'accueil; sinon modèle du formulaire de connexion."""
    if session.current_user() is not None:
        return carry_cookies(response, RedirectResponse(url=HOME_PATH, status_code=HTTP_303_SEE_OTHER))
    return render_session_widget(session_view(session.auth_state))
