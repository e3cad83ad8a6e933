"""Store service routers package."""

from services.store_service.routers.admin_catalog import router as admin_catalog_router
from services.store_service.routers.admin_exports import router as admin_exports_router
from services.store_service.routers.admin_inventory import (
    router as admin_inventory_router,
)
from services.store_service.routers.admin_orders import router as admin_orders_router
from services.store_service.routers.admin_promotions import (
    router as admin_promotions_router,
)
from services.store_service.routers.admin_purchase_orders import (
    router as admin_purchase_orders_router,
)
from services.store_service.routers.admin_reviews import router as admin_reviews_router
from services.store_service.routers.cart import router as cart_router
from services.store_service.routers.catalog import router as catalog_router
from services.store_service.routers.orders import router as orders_router
from services.store_service.routers.promotions import router as promotions_router
from services.store_service.routers.recommendations import (
    admin_router as admin_recommendations_router,
)
from services.store_service.routers.recommendations import (
    router as recommendations_router,
)
from services.store_service.routers.reviews import router as reviews_router

__all__ = [
    "admin_catalog_router",
    "admin_exports_router",
    "admin_inventory_router",
    "admin_orders_router",
    "admin_promotions_router",
    "admin_purchase_orders_router",
    "admin_recommendations_router",
    "admin_reviews_router",
    "cart_router",
    "catalog_router",
    "orders_router",
    "promotions_router",
    "recommendations_router",
    "reviews_router",
]
