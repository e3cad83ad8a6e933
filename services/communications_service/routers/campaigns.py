"""Admin email templates and email campaigns."""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.communications_service.models import (
    CampaignRecipient,
    CampaignStatus,
    EmailCampaign,
    EmailTemplate,
    EmailTemplateType,
)
from services.communications_service.resend_client import ResendClient
from services.communications_service.routers._helpers import (
    actor_uuid,
    require_resend_client,
)
from services.communications_service.schemas import (
    CampaignRecipientResponse,
    CampaignSendResult,
    EmailCampaignCreate,
    EmailCampaignResponse,
    EmailCampaignUpdate,
    EmailTemplateCreate,
    EmailTemplateResponse,
    EmailTemplateUpdate,
)
from services.communications_service.services import campaign_sender
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

templates_router = APIRouter(prefix="/email-templates", tags=["marketing"])
campaigns_router = APIRouter(prefix="/email-campaigns", tags=["marketing"])


async def _clear_other_defaults(
    db: AsyncSession, template_type: EmailTemplateType, keep_id: uuid.UUID
) -> None:
    """At most one default template per type."""
    await db.execute(
        update(EmailTemplate)
        .where(
            EmailTemplate.template_type == template_type,
            EmailTemplate.id != keep_id,
        )
        .values(is_default=False)
    )


# ===== TEMPLATES =====


@templates_router.get("", response_model=List[EmailTemplateResponse])
async def list_email_templates(
    template_type: Optional[EmailTemplateType] = None,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(EmailTemplate).order_by(EmailTemplate.created_at.desc())
    if template_type:
        query = query.where(EmailTemplate.template_type == template_type)
    result = await db.execute(query)
    return result.scalars().all()


@templates_router.post(
    "", response_model=EmailTemplateResponse, status_code=status.HTTP_201_CREATED
)
async def create_email_template(
    template_in: EmailTemplateCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    template = EmailTemplate(**template_in.model_dump())
    db.add(template)
    await db.flush()
    if template.is_default:
        await _clear_other_defaults(db, template.template_type, template.id)
    await db.commit()
    await db.refresh(template)
    return template


@templates_router.get("/{template_id}", response_model=EmailTemplateResponse)
async def get_email_template(
    template_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    template = await db.get(EmailTemplate, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


@templates_router.patch("/{template_id}", response_model=EmailTemplateResponse)
async def update_email_template(
    template_id: uuid.UUID,
    template_in: EmailTemplateUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    template = await db.get(EmailTemplate, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")

    for field, value in template_in.model_dump(exclude_unset=True).items():
        setattr(template, field, value)
    if template.is_default:
        await _clear_other_defaults(db, template.template_type, template.id)

    await db.commit()
    await db.refresh(template)
    return template


@templates_router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_email_template(
    template_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    template = await db.get(EmailTemplate, template_id)
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    await db.delete(template)
    await db.commit()
    return None


# ===== CAMPAIGNS =====


async def _get_campaign(db: AsyncSession, campaign_id: uuid.UUID) -> EmailCampaign:
    campaign = await db.get(EmailCampaign, campaign_id)
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign


@campaigns_router.get("", response_model=List[EmailCampaignResponse])
async def list_email_campaigns(
    status_filter: Optional[CampaignStatus] = None,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(EmailCampaign).order_by(EmailCampaign.created_at.desc())
    if status_filter:
        query = query.where(EmailCampaign.status == status_filter)
    result = await db.execute(query)
    return result.scalars().all()


@campaigns_router.post(
    "", response_model=EmailCampaignResponse, status_code=status.HTTP_201_CREATED
)
async def create_email_campaign(
    campaign_in: EmailCampaignCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a campaign; it becomes ``scheduled`` when ``scheduled_at`` is set."""
    campaign = EmailCampaign(
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


@campaigns_router.get("/{campaign_id}", response_model=EmailCampaignResponse)
async def get_email_campaign(
    campaign_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await _get_campaign(db, campaign_id)


@campaigns_router.patch("/{campaign_id}", response_model=EmailCampaignResponse)
async def update_email_campaign(
    campaign_id: uuid.UUID,
    campaign_in: EmailCampaignUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    campaign = await _get_campaign(db, campaign_id)
    if campaign.status in (CampaignStatus.SENDING, CampaignStatus.SENT):
        raise HTTPException(
            status_code=400, detail="Sent campaigns can no longer be edited"
        )

    for field, value in campaign_in.model_dump(exclude_unset=True).items():
        setattr(campaign, field, value)

    await db.commit()
    await db.refresh(campaign)
    return campaign


@campaigns_router.delete("/{campaign_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_email_campaign(
    campaign_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    campaign = await _get_campaign(db, campaign_id)
    await db.delete(campaign)
    await db.commit()
    return None


@campaigns_router.get(
    "/{campaign_id}/recipients", response_model=List[CampaignRecipientResponse]
)
async def list_campaign_recipients(
    campaign_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await _get_campaign(db, campaign_id)
    result = await db.execute(
        select(CampaignRecipient)
        .where(CampaignRecipient.campaign_id == campaign_id)
        .order_by(CampaignRecipient.created_at)
    )
    return result.scalars().all()


@campaigns_router.post("/{campaign_id}/send", response_model=CampaignSendResult)
async def send_email_campaign(
    campaign_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    client: ResendClient = Depends(require_resend_client),
    db: AsyncSession = Depends(get_async_db),
):
    """Send the campaign now to its segment (or every customer with an email)."""
    return await campaign_sender.send_campaign(db, campaign_id, client=client)
