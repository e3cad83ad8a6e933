"""Admin abandoned cart list and reminders."""

import uuid
from typing import List, Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.db.rpc import call_rpc
from libs.db.session import get_async_db
from services.communications_service.models import AbandonedCart
from services.communications_service.models.refs import profiles
from services.communications_service.routers._helpers import require_resend_client
from services.communications_service.schemas import (
    AbandonedCartResponse,
    CartReminderResult,
    RefreshResponse,
)
from services.communications_service.services import campaign_sender, whatsapp_sender
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/abandoned-carts", tags=["marketing"])


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_abandoned_carts(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Rebuild abandoned cart rows from stale carts in the database."""
    result = await call_rpc(db, "update_abandoned_carts")
    await db.commit()
    return RefreshResponse(result=result)


@router.get("", response_model=List[AbandonedCartResponse])
async def list_abandoned_carts(
    include_recovered: bool = False,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Carts not yet recovered, most recent activity first."""
    query = (
        select(AbandonedCart, profiles.c.email, profiles.c.full_name, profiles.c.phone)
        .outerjoin(profiles, profiles.c.id == AbandonedCart.user_id)
        .order_by(AbandonedCart.last_activity_at.desc())
    )
    if not include_recovered:
        query = query.where(AbandonedCart.recovered.is_(False))

    result = await db.execute(query)
    carts = []
    for cart, email, full_name, phone in result.all():
        response = AbandonedCartResponse.model_validate(cart)
        response.email, response.full_name, response.phone = email, full_name, phone
        carts.append(response)
    return carts


@router.post("/{cart_id}/recover", response_model=AbandonedCartResponse)
async def mark_cart_recovered(
    cart_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    cart = await db.get(AbandonedCart, cart_id)
    if not cart:
        raise HTTPException(status_code=404, detail="Abandoned cart not found")
    cart.recovered = True
    cart.recovered_at = utc_now()
    await db.commit()
    await db.refresh(cart)
    return cart


@router.post("/{cart_id}/remind", response_model=CartReminderResult)
async def send_cart_reminder(
    cart_id: uuid.UUID,
    channel: Literal["email", "whatsapp"] = Query("email"),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Remind the customer by email (Resend) or WhatsApp."""
    if channel == "whatsapp":
        return await whatsapp_sender.send_whatsapp_cart_reminder(db, cart_id)
    client = require_resend_client()
    return await campaign_sender.send_cart_reminder(db, cart_id, client=client)
