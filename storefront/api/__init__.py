# storefront/api/__init__.py
from fastapi import FastAPI

from storefront.api.routers import carts, orders, health


def include_routers(app: FastAPI) -> FastAPI:
    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    return app
