"""
Registre central des routers.
- Web: auth_web_router (/login), orders (/orders)
- API: auth_api_router (/auth/*), checkout (/api/v1/checkout/*)
- Health: health_router
"""
from fastapi import FastAPI
from storefront.auth.views import web_router as auth_web_router, api_router as auth_api_router
from storefront.orders import views as orders_views
from storefront.payments import views as payments_views
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # Pages web
    app.include_router(auth_web_router)
    app.include_router(orders_views.router)
    # API
    app.include_router(auth_api_router)
    app.include_router(payments_views.router)
    # Health & monitoring
    app.include_router(health_router)
