from enum import Enum
from typing import Optional, Dict, Any, Union
import logging

import httpx
import jwt

from storefront.config import BEARER_COOKIE_NAME, BEARER_MAX_AGE, SESSION_STRATEGY
from storefront.credentials import CookieOptions, CredentialStore, SessionTokens
from storefront.state import Store, Login, Logout, SetLoading, SetError, ClearErrors
from .models import AuthError, AuthResponse, Credentials, UserIdentity, handle_exception
from .repository import (
    post_login as sign_in_password,
    post_token_login as sign_in_token,
    post_register as register_account,
    response_payload,
)

logger = logging.getLogger(__name__)

class SessionStrategy(str, Enum):
    COOKIES = "cookies"
    BEARER = "bearer"

    @classmethod
    def from_config(cls, value: Optional[str] = None) -> "SessionStrategy":
        try:
            return cls((value or SESSION_STRATEGY or "cookies").lower())
        except ValueError:
            logger.warning("SESSION_STRATEGY inconnue=%s, repli sur cookies", value)
            return cls.COOKIES

def decode_token(token: str) -> Dict[str, Any]:
    """
    Décode les claims d'un bearer token côté client.
    - Pas de vérification de signature (le backend reste l'autorité), mais exp est contrôlé
    - Toute erreur de décodage devient une AuthError (jamais un no-op silencieux)
    """
    if not isinstance(token, str) or not token.strip():
        raise AuthError("Token manquant")
    try:
        claims = jwt.decode(token, options={"verify_signature": False, "verify_exp": True})
    except jwt.PyJWTError as e:
        raise AuthError(f"Token invalide: {e}") from e
    if not isinstance(claims, dict):
        raise AuthError("Token invalide: claims non objet")
    return claims

class SessionController:
    """
    Orchestration de la session côté client:
    - login (cookies UID/CID/SID/AID) et login_with_token (bearer)
    - logout total, lecture de l'utilisateur courant
    - restore: reconstruction explicite de l'état d'auth au démarrage (chaque requête)
    """

    def __init__(
        self,
        store: Store,
        credentials: CredentialStore,
        strategy: Optional[SessionStrategy] = None,
        cookie_options: Optional[CookieOptions] = None,
        bearer_name: str = BEARER_COOKIE_NAME,
    ):
        self.store = store
        self.credentials = credentials
        self.strategy = strategy or SessionStrategy.from_config()
        self.cookie_options = cookie_options or CookieOptions()
        self.bearer_name = bearer_name

    # --- Lecture ---

    @property
    def auth_state(self):
        return self.store.state.login

    def tokens(self) -> SessionTokens:
        return SessionTokens.load(self.credentials)

    def effective_tokens(self) -> SessionTokens:
        """Identifiants vus par le Route Guard; en flux bearer, l'identité décodée tient lieu d'UID."""
        tokens = self.tokens()
        user = self.current_user()
        if not tokens.uid and user is not None and self.credentials.get(self.bearer_name):
            return SessionTokens(uid=user.user_id or user.username, aid=tokens.aid)
        return tokens

    def current_user(self) -> Optional[UserIdentity]:
        """Lecture pure de l'état d'auth, sans I/O."""
        state = self.auth_state
        return state.token if state.authenticated else None

    # --- Cas d'usage ---

    async def sign_in(self, credentials: Credentials) -> AuthResponse:
        """Point d'entrée du formulaire: délègue au flux choisi par la stratégie."""
        if self.strategy is SessionStrategy.BEARER:
            return await self.login_with_token(credentials)
        return await self.login(credentials)

    async def login(self, credentials: Credentials) -> AuthResponse:
        """Connexion multiplexée par cookies:
        - POST /login puis extraction des en-têtes UID/CID/SID/AID
        - Écrit uniquement les identifiants présents (un AID antérieur n'est jamais effacé ici)
        - Échec (non-2xx, réseau, triplet incomplet): aucune écriture, erreur dans la tranche error
        """
        self.store.dispatch(SetLoading(True))
        try:
            try:
                resp = await sign_in_password((credentials.identifier or "").strip(), credentials.secret)
            except httpx.HTTPError as e:
                raise AuthError(f"Erreur réseau: {e}") from e
            if not resp.is_success:
                raise AuthError("Identifiants invalides", status_code=resp.status_code, payload=response_payload(resp))

            tokens = SessionTokens.from_headers(resp.headers)
            if not tokens.is_complete:
                raise AuthError("Réponse de connexion incomplète (UID/CID/SID)", status_code=resp.status_code)

            tokens.write(self.credentials, self.cookie_options)
            identifier = (credentials.identifier or "").strip()
            identity = UserIdentity(username=identifier, user_id=tokens.uid, email=identifier)
            self.store.dispatch(Login(identity))
            self.store.dispatch(ClearErrors())
            logger.info("auth.login ok uid=%s aid=%s", tokens.uid, bool(tokens.aid))
            return AuthResponse(True, identity=identity)
        except Exception as e:
            return self._fail("login", e)
        finally:
            self.store.dispatch(SetLoading(False))

    async def login_with_token(self, user_data: Union[Credentials, Dict[str, Any]]) -> AuthResponse:
        """Connexion bearer:
        - POST /users/login, corps {token, message}
        - Décode le token en claims, persiste le token brut (entrée longue durée), dispatch Login
        """
        if isinstance(user_data, Credentials):
            user_data = {"identifier": user_data.identifier, "secret": user_data.secret}
        self.store.dispatch(SetLoading(True))
        try:
            try:
                resp = await sign_in_token(user_data)
            except httpx.HTTPError as e:
                raise AuthError(f"Erreur réseau: {e}") from e
            body = response_payload(resp)
            if not resp.is_success:
                raise AuthError("Identifiants invalides", status_code=resp.status_code, payload=body)

            token = body.get("token") if isinstance(body, dict) else None
            identity = UserIdentity.from_claims(decode_token(token))

            self.credentials.set(self.bearer_name, token, self.cookie_options.with_max_age(BEARER_MAX_AGE))
            self.store.dispatch(Login(identity))
            self.store.dispatch(ClearErrors())
            logger.info("auth.login_with_token ok user=%s message=%s", identity.username, body.get("message"))
            return AuthResponse(True, identity=identity)
        except Exception as e:
            return self._fail("login_with_token", e)
        finally:
            self.store.dispatch(SetLoading(False))

    async def register(self, user_data: Dict[str, Any]) -> AuthResponse:
        """Inscription: POST /users; les erreurs de validation du backend vont telles quelles dans la tranche error."""
        self.store.dispatch(SetLoading(True))
        try:
            try:
                resp = await register_account(user_data)
            except httpx.HTTPError as e:
                raise AuthError(f"Erreur réseau: {e}") from e
            body = response_payload(resp)
            if not resp.is_success:
                raise AuthError("Inscription refusée", status_code=resp.status_code, payload=body)
            self.store.dispatch(ClearErrors())
            return AuthResponse(True, payload=body)
        except Exception as e:
            return self._fail("register", e)
        finally:
            self.store.dispatch(SetLoading(False))

    def logout(self) -> None:
        """Déconnexion locale, synchrone, toujours réussie (idempotente)."""
        self.credentials.clear(self.bearer_name)
        self.store.dispatch(Logout())
        SessionTokens.clear(self.credentials)
        logger.info("auth.logout")

    def restore(self) -> Optional[UserIdentity]:
        """
        Reconstruit l'état d'auth depuis le Credential Store:
        - bearer token persistant (décodé; un token malformé ou expiré est effacé)
        - sinon triplet UID/CID/SID complet (AID seul ne suffit jamais)
        - sinon anonyme
        """
        token = self.credentials.get(self.bearer_name)
        if token:
            try:
                identity = UserIdentity.from_claims(decode_token(token))
                self.store.dispatch(Login(identity))
                return identity
            except AuthError as e:
                logger.warning("auth.restore bearer rejeté: %s", e.message)
                self.credentials.clear(self.bearer_name)

        tokens = self.tokens()
        if tokens.is_complete:
            identity = UserIdentity(username=tokens.uid, user_id=tokens.uid)
            self.store.dispatch(Login(identity))
            return identity
        return None

    # --- Interne ---

    def _fail(self, action: str, e: Exception) -> AuthResponse:
        result = handle_exception(action, e)
        payload = result.payload if result.payload not in (None, "") else {"error": result.error}
        self.store.dispatch(SetError(payload))
        return result
