"""FastAPI application for the Communications Service."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from services.communications_service.routers import (
    abandoned_carts_router,
    campaigns_router,
    email_router,
    segments_router,
    stats_router,
    templates_router,
    whatsapp_router,
)
from services.communications_service.services.campaign_sender import CampaignError

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """Create and configure the Communications Service FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title="GlowMart Communications Service",
        version="0.1.0",
        description=(
            "Transactional order emails, email and WhatsApp marketing, "
            "customer segments and abandoned cart reminders for GlowMart."
        ),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", settings.SITE_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_observability_middleware(app)

    @app.exception_handler(CampaignError)
    async def campaign_error_handler(request: Request, exc: CampaignError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "communications"}

    # Internal (service-role) email API
    app.include_router(email_router)

    # Admin marketing
    app.include_router(templates_router, prefix="/admin/marketing")
    app.include_router(campaigns_router, prefix="/admin/marketing")
    app.include_router(whatsapp_router, prefix="/admin/marketing")
    app.include_router(segments_router, prefix="/admin/marketing")
    app.include_router(abandoned_carts_router, prefix="/admin/marketing")
    app.include_router(stats_router, prefix="/admin/marketing")

    return app


app = create_app()
