"""FastAPI application for the Store Service."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.middleware import add_observability_middleware
from services.store_service.routers import (
    admin_catalog_router,
    admin_exports_router,
    admin_inventory_router,
    admin_orders_router,
    admin_promotions_router,
    admin_purchase_orders_router,
    admin_recommendations_router,
    admin_reviews_router,
    cart_router,
    catalog_router,
    orders_router,
    promotions_router,
    recommendations_router,
    reviews_router,
)


def create_app() -> FastAPI:
    """Create and configure the Store Service FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title="GlowMart Store Service",
        version="0.1.0",
        description=(
            "Storefront and back-office for GlowMart - catalog, cart, checkout, "
            "orders, reviews, inventory, purchase orders, promotions and "
            "Tally exports."
        ),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", settings.SITE_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Structured logging + request tracing
    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "store"}

    # Public store routes
    app.include_router(catalog_router, prefix="/store")
    app.include_router(recommendations_router, prefix="/store")
    app.include_router(reviews_router, prefix="/store")
    app.include_router(promotions_router, prefix="/store")
    app.include_router(cart_router, prefix="/store")
    app.include_router(orders_router, prefix="/store")

    # Admin routes
    app.include_router(admin_catalog_router, prefix="/admin/store")
    app.include_router(admin_inventory_router, prefix="/admin/store")
    app.include_router(admin_orders_router, prefix="/admin/store")
    app.include_router(admin_purchase_orders_router, prefix="/admin/store")
    app.include_router(admin_promotions_router, prefix="/admin/store")
    app.include_router(admin_recommendations_router, prefix="/admin/store")
    app.include_router(admin_reviews_router, prefix="/admin/store")
    app.include_router(admin_exports_router, prefix="/admin/store")

    return app


app = create_app()
