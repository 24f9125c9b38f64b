# wlstore/api/__init__.py
import os

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from wlstore.api.deps import rate_limit
from wlstore.api.routers import admin, auth, health, orders, products, users
from wlstore.utils.settings import APP_VERSION, UPLOAD_DIR


def create_app() -> FastAPI:
    app = FastAPI(
        title="WLStore API",
        version=APP_VERSION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {"message": "welcome wlstore-server"}

    # Include routers, every /api route goes through the rate limiter
    limited = [Depends(rate_limit)]
    app.include_router(health.router)
    app.include_router(auth.router, dependencies=limited)
    app.include_router(products.router, dependencies=limited)
    app.include_router(orders.router, dependencies=limited)
    app.include_router(users.router, dependencies=limited)
    app.include_router(admin.router, dependencies=limited)

    os.makedirs(UPLOAD_DIR, exist_ok=True)
    app.mount("/img", StaticFiles(directory=UPLOAD_DIR), name="img")

    return app
