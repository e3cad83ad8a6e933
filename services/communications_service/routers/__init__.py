"""Communications service routers package."""

from services.communications_service.routers.abandoned_carts import (
    router as abandoned_carts_router,
)
from services.communications_service.routers.campaigns import (
    campaigns_router,
    templates_router,
)
from services.communications_service.routers.email import router as email_router
from services.communications_service.routers.segments import router as segments_router
from services.communications_service.routers.stats import router as stats_router
from services.communications_service.routers.whatsapp import router as whatsapp_router

__all__ = [
    "abandoned_carts_router",
    "campaigns_router",
    "email_router",
    "segments_router",
    "stats_router",
    "templates_router",
    "whatsapp_router",
]
