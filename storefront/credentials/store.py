"""
Credential Store: persistance clé/valeur des identifiants de session côté navigateur.

- Stockage transparent: aucune validation de la forme des valeurs.
- Lecture de ses propres écritures dans la même requête (écritures synchrones).
- Deux implémentations: cookies navigateur (requête/réponse) et mémoire (tests, appels hors HTTP).
"""
from dataclasses import dataclass, replace
from typing import Dict, Optional, Protocol

from fastapi import Request
from fastapi.responses import Response

from storefront.config import COOKIE_SECURE, COOKIE_CROSS_SITE, COOKIE_MAX_AGE

@dataclass(frozen=True)
class CookieOptions:
    """Politique de portée d'une entrée (drapeaux secure / cross-site)."""
    secure: bool = COOKIE_SECURE
    cross_site: bool = COOKIE_CROSS_SITE
    http_only: bool = True
    max_age: Optional[int] = COOKIE_MAX_AGE
    path: str = "/"

    @property
    def samesite(self) -> str:
        return "none" if self.cross_site else "lax"

    def with_max_age(self, max_age: Optional[int]) -> "CookieOptions":
        return replace(self, max_age=max_age)


class CredentialStore(Protocol):
    def set(self, name: str, value: str, options: Optional[CookieOptions] = None) -> None: ...
    def get(self, name: str) -> Optional[str]: ...
    def clear(self, name: str) -> None: ...


class MemoryCredentialStore:
    """Store en mémoire; conserve les options d'écriture pour inspection."""

    def __init__(self, defaults: Optional[CookieOptions] = None):
        self.defaults = defaults or CookieOptions()
        self._values: Dict[str, str] = {}
        self.options: Dict[str, CookieOptions] = {}

    def set(self, name: str, value: str, options: Optional[CookieOptions] = None) -> None:
        self._values[name] = value
        self.options[name] = options or self.defaults

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def clear(self, name: str) -> None:
        self._values.pop(name, None)
        self.options.pop(name, None)

    def names(self):
        return set(self._values)


class CookieCredentialStore:
    """
    Store adossé aux cookies du navigateur.
    - get: écritures en attente d'abord (même requête), puis cookies de la requête
    - set/clear: en-têtes Set-Cookie posés sur la réponse
    """

    def __init__(self, request: Request, response: Response, defaults: Optional[CookieOptions] = None):
        self.request = request
        self.response = response
        self.defaults = defaults or CookieOptions()
        # None = effacé pendant cette requête
        self._pending: Dict[str, Optional[str]] = {}

    def set(self, name: str, value: str, options: Optional[CookieOptions] = None) -> None:
        opts = options or self.defaults
        self.response.set_cookie(
            key=name,
            value=value,
            httponly=opts.http_only,
            secure=opts.secure,
            samesite=opts.samesite,
            max_age=opts.max_age,
            path=opts.path,
        )
        self._pending[name] = value

    def get(self, name: str) -> Optional[str]:
        if name in self._pending:
            return self._pending[name]
        return self.request.cookies.get(name)

    def clear(self, name: str) -> None:
        # Mêmes drapeaux qu'à l'écriture, sinon le navigateur peut ignorer la suppression
        self.response.delete_cookie(
            name,
            path=self.defaults.path,
            secure=self.defaults.secure,
            httponly=self.defaults.http_only,
            samesite=self.defaults.samesite,
        )
        self._pending[name] = None
