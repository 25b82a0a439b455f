"""
Routes simples (hors routers).
- /: accueil avec le widget de session (formulaire de connexion ou nom + déconnexion)
- /not-found: vue de repli du Route Guard
- /favicon.ico: pas de contenu (204) pour éviter des 404 dans les logs
"""
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse, Response
from starlette.status import HTTP_204_NO_CONTENT, HTTP_404_NOT_FOUND

from storefront.auth.service import SessionController
from storefront.config import NOT_FOUND_PATH
from storefront.state import render_session_widget, session_view
from storefront.utils.security import get_session

def register_routes(app: FastAPI) -> None:
    @app.get("/", include_in_schema=False)
    def home(session: SessionController = Depends(get_session)):
        view = session_view(session.auth_state)
        return {"view": "home", "widget": render_session_widget(view, session.current_user())}

    @app.get(NOT_FOUND_PATH, include_in_schema=False)
    def not_found():
        return JSONResponse(status_code=HTTP_404_NOT_FOUND, content={"view": "not_found"})

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=HTTP_204_NO_CONTENT)
