"""
Email campaign and abandoned cart reminder sending.

``deliver_campaign_email`` is the provider-facing step and needs only a
client with ``send_email``; ``send_campaign`` and ``send_cart_reminder`` add
the database reads and writes around it. Sends are sequential with no
retries: a recipient that fails is recorded and the loop moves on.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.communications_service.models import (
    AbandonedCart,
    CampaignRecipient,
    CampaignStatus,
    CustomerSegmentMember,
    EmailCampaign,
    EmailTemplate,
    EmailTemplateType,
    RecipientStatus,
)
from services.communications_service.models.refs import cart_items, products, profiles
from services.communications_service.resend_client import ResendClient, ResendError
from services.communications_service.schemas import (
    CampaignSendResult,
    CartReminderResult,
)
from services.communications_service.templates.marketing import (
    DEFAULT_CART_REMINDER_CONTENT,
    DEFAULT_CART_REMINDER_SUBJECT,
    cart_items_html,
    render_campaign_html,
    render_cart_reminder_html,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

DEFAULT_CUSTOMER_NAME = "Valued Customer"


class CampaignError(Exception):
    """Sending could not start or finish; carries the HTTP status to return."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class Recipient:
    user_id: uuid.UUID
    contact: str
    full_name: Optional[str] = None


@dataclass
class DeliveryOutcome:
    recipient: Recipient
    success: bool
    error: Optional[str] = None
    sent_at: Optional[datetime] = None
    message_id: Optional[str] = None


# ============================================================================
# RECIPIENTS
# ============================================================================


async def resolve_recipients(
    db: AsyncSession, *, segment_id: Optional[uuid.UUID], contact_field: str
) -> list[Recipient]:
    """Profiles with a non-null ``contact_field``, limited to a segment if given."""
    contact = profiles.c[contact_field]
    query = select(profiles.c.id, contact, profiles.c.full_name).where(
        contact.is_not(None)
    )
    if segment_id:
        members = select(CustomerSegmentMember.customer_id).where(
            CustomerSegmentMember.segment_id == segment_id
        )
        query = query.where(profiles.c.id.in_(members))

    result = await db.execute(query.order_by(contact))
    return [
        Recipient(user_id=row[0], contact=row[1], full_name=row[2])
        for row in result.all()
    ]


# ============================================================================
# EMAIL CAMPAIGNS
# ============================================================================


async def deliver_campaign_email(
    client: ResendClient,
    recipient: Recipient,
    *,
    subject: str,
    content: str,
    shop_url: str,
) -> DeliveryOutcome:
    """Personalize and send one campaign email."""
    html = render_campaign_html(
        content,
        {
            "customer_name": escape(recipient.full_name or DEFAULT_CUSTOMER_NAME),
            "shop_url": shop_url,
            "campaign_content": content,
        },
    )
    try:
        data = await client.send_email(recipient.contact, subject, html)
    except ResendError as e:
        logger.error(f"Failed to send campaign email to {recipient.contact}: {e}")
        return DeliveryOutcome(recipient=recipient, success=False, error=e.message)
    return DeliveryOutcome(
        recipient=recipient,
        success=True,
        sent_at=utc_now(),
        message_id=data.get("id"),
    )


async def send_campaign(
    db: AsyncSession, campaign_id: uuid.UUID, *, client: ResendClient
) -> CampaignSendResult:
    """Send a draft or scheduled email campaign to its target audience.

    Each recipient's row is committed as soon as its send returns, so an
    interrupted run leaves the campaign ``sending`` with the finished
    recipients recorded.
    """
    logger.info(f"Starting campaign send for: {campaign_id}")

    campaign = await db.get(EmailCampaign, campaign_id)
    if not campaign:
        raise CampaignError("Campaign not found", status_code=404)
    if campaign.status not in (CampaignStatus.DRAFT, CampaignStatus.SCHEDULED):
        raise CampaignError("Campaign already sent or cancelled")

    campaign.status = CampaignStatus.SENDING
    await db.commit()

    recipients = await resolve_recipients(
        db, segment_id=campaign.target_segment_id, contact_field="email"
    )
    logger.info(f"Found {len(recipients)} recipients for campaign {campaign_id}")
    campaign.total_recipients = len(recipients)
    await db.commit()

    shop_url = get_settings().SITE_URL
    sent = failed = 0
    for recipient in recipients:
        if not recipient.contact:
            continue
        outcome = await deliver_campaign_email(
            client,
            recipient,
            subject=campaign.subject,
            content=campaign.content,
            shop_url=shop_url,
        )
        db.add(
            CampaignRecipient(
                campaign_id=campaign.id,
                user_id=recipient.user_id,
                email=recipient.contact,
                status=RecipientStatus.SENT if outcome.success else RecipientStatus.FAILED,
                sent_at=outcome.sent_at,
                error_message=outcome.error,
            )
        )
        await db.commit()
        if outcome.success:
            sent += 1
        else:
            failed += 1

    campaign.status = CampaignStatus.SENT
    campaign.sent_at = utc_now()
    campaign.total_sent = sent
    await db.commit()

    logger.info(f"Campaign {campaign_id} completed: {sent} sent, {failed} failed")
    return CampaignSendResult(sent=sent, failed=failed)


# ============================================================================
# ABANDONED CART REMINDERS
# ============================================================================


async def get_abandoned_cart(
    db: AsyncSession, cart_id: uuid.UUID, not_found: str = "Abandoned cart not found"
) -> AbandonedCart:
    cart = await db.get(AbandonedCart, cart_id)
    if not cart:
        raise CampaignError(not_found, status_code=404)
    return cart


async def get_profile_contact(db: AsyncSession, user_id: uuid.UUID):
    """``(email, full_name, phone)`` row for a customer, or None."""
    result = await db.execute(
        select(profiles.c.email, profiles.c.full_name, profiles.c.phone).where(
            profiles.c.id == user_id
        )
    )
    return result.first()


async def load_cart_items(db: AsyncSession, user_id: uuid.UUID) -> list[dict]:
    result = await db.execute(
        select(
            cart_items.c.quantity,
            products.c.name,
            products.c.price,
            products.c.image_url,
        )
        .select_from(cart_items.join(products, products.c.id == cart_items.c.product_id))
        .where(cart_items.c.user_id == user_id)
    )
    return [dict(row._mapping) for row in result.all()]


async def record_reminder(db: AsyncSession, cart: AbandonedCart) -> None:
    cart.reminder_count = (cart.reminder_count or 0) + 1
    cart.reminder_sent_at = utc_now()
    await db.commit()


async def send_cart_reminder(
    db: AsyncSession, cart_id: uuid.UUID, *, client: ResendClient
) -> CartReminderResult:
    """Email a customer the contents of their abandoned cart."""
    logger.info(f"Sending cart reminder for: {cart_id}")

    cart = await get_abandoned_cart(db, cart_id)
    profile = await get_profile_contact(db, cart.user_id)
    if not profile or not profile.email:
        raise CampaignError("Customer email not found")

    items = await load_cart_items(db, cart.user_id)

    template_result = await db.execute(
        select(EmailTemplate)
        .where(
            EmailTemplate.template_type == EmailTemplateType.ABANDONED_CART,
            EmailTemplate.is_default.is_(True),
        )
        .limit(1)
    )
    template = template_result.scalar_one_or_none()
    subject = template.subject if template else DEFAULT_CART_REMINDER_SUBJECT
    content = template.content if template else DEFAULT_CART_REMINDER_CONTENT

    html = render_cart_reminder_html(
        content,
        {
            "customer_name": escape(profile.full_name or DEFAULT_CUSTOMER_NAME),
            "cart_items": cart_items_html(items),
            "cart_url": f"{get_settings().SITE_URL.rstrip('/')}/cart",
        },
    )

    try:
        await client.send_email(profile.email, subject, html)
    except ResendError as e:
        raise CampaignError(e.message, status_code=500) from e

    await record_reminder(db, cart)
    logger.info(f"Cart reminder sent to {profile.email}")
    return CartReminderResult(success=True, email=profile.email)
