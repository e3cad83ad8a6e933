"""Admin WhatsApp marketing: templates, campaigns and API settings."""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.communications_service.models import (
    CampaignStatus,
    SiteSetting,
    WhatsAppCampaign,
    WhatsAppTemplate,
)
from services.communications_service.routers._helpers import actor_uuid
from services.communications_service.schemas import (
    WhatsAppCampaignCreate,
    WhatsAppCampaignResponse,
    WhatsAppCampaignResult,
    WhatsAppCampaignUpdate,
    WhatsAppSettings,
    WhatsAppTemplateCreate,
    WhatsAppTemplateResponse,
    WhatsAppTemplateUpdate,
)
from services.communications_service.services import whatsapp_sender
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/whatsapp", tags=["marketing"])


# ============================================================================
# SETTINGS
# ============================================================================


@router.get("/settings", response_model=WhatsAppSettings)
async def get_whatsapp_settings(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    value = await whatsapp_sender.load_whatsapp_settings(db)
    return WhatsAppSettings.model_validate(value or {})


@router.put("/settings", response_model=WhatsAppSettings)
async def update_whatsapp_settings(
    settings_in: WhatsAppSettings,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(SiteSetting).where(
            SiteSetting.key == whatsapp_sender.WHATSAPP_SETTINGS_KEY
        )
    )
    setting = result.scalar_one_or_none()
    if setting:
        setting.value = settings_in.model_dump()
    else:
        db.add(
            SiteSetting(
                key=whatsapp_sender.WHATSAPP_SETTINGS_KEY,
                value=settings_in.model_dump(),
            )
        )
    await db.commit()
    return settings_in


# ============================================================================
# TEMPLATES
# ============================================================================


@router.get("/templates", response_model=List[WhatsAppTemplateResponse])
async def list_whatsapp_templates(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(WhatsAppTemplate).order_by(WhatsAppTemplate.created_at.desc())
    )
    return result.scalars().all()


@router.post(
    "/templates",
    response_model=WhatsAppTemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_whatsapp_template(
    template_in: WhatsAppTemplateCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    template = WhatsAppTemplate(**template_in.model_dump())
    db.add(template)
    await db.commit()
    await db.refresh(template)
    return template


@router.patch("/templates/{template_id}", response_model=WhatsAppTemplateResponse)
async def update_whatsapp_template(
    template_id: uuid.UUID,
    template_in: WhatsAppTemplateUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    template = await db.get(WhatsAppTemplate, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    for field, value in template_in.model_dump(exclude_unset=True).items():
        setattr(template, field, value)
    await db.commit()
    await db.refresh(template)
    return template


@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_whatsapp_template(
    template_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    template = await db.get(WhatsAppTemplate, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    await db.delete(template)
    await db.commit()
    return None


# ============================================================================
# CAMPAIGNS
# ============================================================================


@router.get("/campaigns", response_model=List[WhatsAppCampaignResponse])
async def list_whatsapp_campaigns(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(WhatsAppCampaign).order_by(WhatsAppCampaign.created_at.desc())
    )
    return result.scalars().all()


@router.post(
    "/campaigns",
    response_model=WhatsAppCampaignResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_whatsapp_campaign(
    campaign_in: WhatsAppCampaignCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    if campaign_in.template_id and not await db.get(
        WhatsAppTemplate, campaign_in.template_id
    ):
        raise HTTPException(status_code=404, detail="Template not found")

    campaign = WhatsAppCampaign(
        **campaign_in.model_dump(),
        status=(
            CampaignStatus.SCHEDULED if campaign_in.scheduled_at else CampaignStatus.DRAFT
        ),
        created_by=actor_uuid(current_user),
    )
    db.add(campaign)
    await db.commit()
    await db.refresh(campaign)
    return campaign


@router.get("/campaigns/{campaign_id}", response_model=WhatsAppCampaignResponse)
async def get_whatsapp_campaign(
    campaign_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    campaign = await db.get(WhatsAppCampaign, campaign_id)
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign


@router.patch("/campaigns/{campaign_id}", response_model=WhatsAppCampaignResponse)
async def update_whatsapp_campaign(
    campaign_id: uuid.UUID,
    campaign_in: WhatsAppCampaignUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    campaign = await db.get(WhatsAppCampaign, campaign_id)
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    for field, value in campaign_in.model_dump(exclude_unset=True).items():
        setattr(campaign, field, value)
    await db.commit()
    await db.refresh(campaign)
    return campaign


@router.delete("/campaigns/{campaign_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_whatsapp_campaign(
    campaign_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    campaign = await db.get(WhatsAppCampaign, campaign_id)
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    await db.delete(campaign)
    await db.commit()
    return None


@router.post("/campaigns/{campaign_id}/send", response_model=WhatsAppCampaignResult)
async def send_whatsapp_campaign(
    campaign_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Send the campaign through the WhatsApp Business API configured in settings."""
    return await whatsapp_sender.send_whatsapp_campaign(db, campaign_id)
