"""
Gestionnaires d'exceptions.
- Transforme 401/403 en redirection HTML vers la page de connexion (si Accept: text/html et pas /api/*).
- Conserve la réponse JSON standard pour les clients API.
"""
import urllib.parse
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from storefront.config import LOGIN_PATH
from storefront.utils.security import wants_html

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def html_redirect_on_auth_errors(request: Request, exc: HTTPException):
        if exc.status_code in (401, 403) and wants_html(request):
            detail = str(getattr(exc, "detail", "")) or (
                "Veuillez vous connecter" if exc.status_code == 401 else "Accès interdit"
            )
            msg = urllib.parse.quote_plus(detail)
            return RedirectResponse(url=f"{LOGIN_PATH}?error={msg}", status_code=HTTP_303_SEE_OTHER)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)
