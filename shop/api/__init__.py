# shop/api/__init__.py
from fastapi import FastAPI
from shop.api.middleware import request_id_middleware
from shop.api.routers import carts, health, orders, products, users
from shop.utils.settings import SERVICE_NAME


def create_app(lifespan=None) -> FastAPI:
    app = FastAPI(title=SERVICE_NAME, version="1.0.0", lifespan=lifespan)
    app.middleware("http")(request_id_middleware)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(orders.router)

    return app
