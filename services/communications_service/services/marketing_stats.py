"""Marketing dashboard figures: campaign reach and abandoned cart recovery."""

from decimal import Decimal
from typing import Iterable

from services.communications_service.models import (
    AbandonedCart,
    CampaignStatus,
    EmailCampaign,
)
from services.communications_service.schemas import MarketingStats
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


def _percent(part: int, whole: int) -> float:
    return round(part * 100 / whole, 1) if whole else 0.0


def summarize(
    campaigns: Iterable[tuple[CampaignStatus, int, int, int]],
    carts: Iterable[tuple[bool, Decimal]],
) -> MarketingStats:
    """Fold ``(status, sent, opened, clicked)`` and ``(recovered, value)`` rows."""
    campaigns = list(campaigns)
    total_sent = sum(row[1] or 0 for row in campaigns)
    total_opened = sum(row[2] or 0 for row in campaigns)
    total_clicked = sum(row[3] or 0 for row in campaigns)

    abandoned = recovered = 0
    abandoned_value = Decimal("0")
    for is_recovered, value in carts:
        if is_recovered:
            recovered += 1
        else:
            abandoned += 1
            abandoned_value += Decimal(value or 0)

    return MarketingStats(
        total_campaigns=len(campaigns),
        sent_campaigns=sum(1 for row in campaigns if row[0] == CampaignStatus.SENT),
        total_sent=total_sent,
        total_opened=total_opened,
        total_clicked=total_clicked,
        open_rate=_percent(total_opened, total_sent),
        click_rate=_percent(total_clicked, total_opened),
        abandoned_carts=abandoned,
        recovered_carts=recovered,
        total_abandoned_value=abandoned_value,
        recovery_rate=_percent(recovered, abandoned + recovered),
    )


async def marketing_stats(db: AsyncSession) -> MarketingStats:
    campaigns = await db.execute(
        select(
            EmailCampaign.status,
            EmailCampaign.total_sent,
            EmailCampaign.total_opened,
            EmailCampaign.total_clicked,
        )
    )
    carts = await db.execute(select(AbandonedCart.recovered, AbandonedCart.total_value))
    return summarize(campaigns.all(), carts.all())
