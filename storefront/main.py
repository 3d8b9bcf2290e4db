# storefront/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from storefront.config import settings
from storefront.services.storefront import Storefront

load_dotenv()

# Routers
from storefront.routes.session import router as session_router
from storefront.routes.catalog import router as catalog_router
from storefront.routes.cart import router as cart_router
from storefront.routes.checkout import router as checkout_router
from storefront.routes.payment import router as payment_router


def create_app(storefront: Storefront = None) -> FastAPI:
    """Storefront pages as a JSON API. Run with ``uvicorn --factory storefront.main:create_app``."""
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(title="Yuli Storefront", version="1.0.0")
    app.state.storefront = storefront or Storefront.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(session_router)
    app.include_router(catalog_router)
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(payment_router)

    @app.get("/")
    def read_root():
        return {"message": "Storefront is running"}

    return app
