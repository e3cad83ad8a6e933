"""Admin marketing dashboard."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.communications_service.schemas import MarketingStats
from services.communications_service.services.marketing_stats import marketing_stats
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["marketing"])


@router.get("/stats", response_model=MarketingStats)
async def get_marketing_stats(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Open/click rates across email campaigns and abandoned cart recovery rate."""
    return await marketing_stats(db)
