"""
WhatsApp campaign and cart reminder sending.

Credentials come from ``site_settings['whatsapp_api']`` and are checked
before anything is sent.
"""

import uuid
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.communications_service.models import (
    CampaignStatus,
    RecipientStatus,
    SiteSetting,
    WhatsAppCampaign,
    WhatsAppCampaignRecipient,
)
from services.communications_service.schemas import (
    CartReminderResult,
    WhatsAppCampaignResult,
    WhatsAppSettings,
)
from services.communications_service.services.campaign_sender import (
    CampaignError,
    DeliveryOutcome,
    Recipient,
    get_abandoned_cart,
    get_profile_contact,
    load_cart_items,
    record_reminder,
    resolve_recipients,
)
from services.communications_service.templates.marketing import whatsapp_cart_message
from services.communications_service.whatsapp_client import (
    WhatsAppClient,
    WhatsAppError,
    normalize_phone,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

WHATSAPP_SETTINGS_KEY = "whatsapp_api"


def personalize_message(message_content: str, full_name: Optional[str]) -> str:
    """Fill the first ``{{1}}`` placeholder with the recipient's name."""
    return message_content.replace("{{1}}", full_name or "Customer", 1)


def check_whatsapp_settings(value: Optional[dict]) -> WhatsAppSettings:
    """Validate stored settings, raising the admin-facing 400 errors."""
    if value is None:
        raise CampaignError(
            "WhatsApp API not configured. Please configure it in Marketing Settings."
        )
    settings = WhatsAppSettings.model_validate(value)
    if not settings.whatsapp_enabled:
        raise CampaignError(
            "WhatsApp marketing is disabled. Enable it in Marketing Settings."
        )
    if not settings.phone_number_id or not settings.access_token:
        raise CampaignError("WhatsApp API credentials not configured properly.")
    return settings


async def load_whatsapp_settings(db: AsyncSession) -> Optional[dict]:
    result = await db.execute(
        select(SiteSetting.value).where(SiteSetting.key == WHATSAPP_SETTINGS_KEY)
    )
    return result.scalar_one_or_none()


async def get_whatsapp_client(db: AsyncSession) -> WhatsAppClient:
    settings = check_whatsapp_settings(await load_whatsapp_settings(db))
    return WhatsAppClient(settings.phone_number_id, settings.access_token)


async def deliver_whatsapp_message(
    client: WhatsAppClient, recipient: Recipient, message_content: str
) -> DeliveryOutcome:
    """Send one personalized text."""
    body = personalize_message(message_content, recipient.full_name)
    try:
        sent = await client.send_text(normalize_phone(recipient.contact), body)
    except WhatsAppError as e:
        logger.error(f"Error sending WhatsApp message to {recipient.contact}: {e}")
        return DeliveryOutcome(recipient=recipient, success=False, error=e.message)
    return DeliveryOutcome(
        recipient=recipient,
        success=True,
        sent_at=utc_now(),
        message_id=sent.message_id,
    )


async def send_whatsapp_campaign(
    db: AsyncSession,
    campaign_id: uuid.UUID,
    *,
    client: Optional[WhatsAppClient] = None,
) -> WhatsAppCampaignResult:
    """Send a WhatsApp campaign, one committed recipient row per message.

    The row is inserted as ``pending`` just before its send and updated to
    ``sent`` or ``failed`` right after.
    """
    logger.info(f"Processing WhatsApp campaign: {campaign_id}")
    if client is None:
        client = await get_whatsapp_client(db)

    campaign = await db.get(WhatsAppCampaign, campaign_id)
    if not campaign:
        raise CampaignError("Campaign not found", status_code=404)

    campaign.status = CampaignStatus.SENDING
    await db.commit()

    recipients = await resolve_recipients(
        db, segment_id=campaign.target_segment_id, contact_field="phone"
    )
    logger.info(f"Found {len(recipients)} WhatsApp recipients for {campaign_id}")
    campaign.total_recipients = len(recipients)
    await db.commit()

    sent = failed = 0
    for recipient in recipients:
        row = WhatsAppCampaignRecipient(
            campaign_id=campaign.id,
            user_id=recipient.user_id,
            phone_number=recipient.contact,
            status=RecipientStatus.PENDING,
        )
        db.add(row)
        await db.commit()

        outcome = await deliver_whatsapp_message(
            client, recipient, campaign.message_content
        )
        if outcome.success:
            row.status = RecipientStatus.SENT
            row.message_id = outcome.message_id
            row.sent_at = outcome.sent_at
            sent += 1
        else:
            row.status = RecipientStatus.FAILED
            row.error_message = outcome.error
            row.failed_at = utc_now()
            failed += 1
        await db.commit()

    campaign.status = CampaignStatus.SENT
    campaign.sent_at = utc_now()
    campaign.total_sent = sent
    campaign.total_failed = failed
    await db.commit()

    logger.info(f"WhatsApp campaign {campaign_id} completed: {sent} sent, {failed} failed")
    return WhatsAppCampaignResult(
        message=f"Campaign sent to {sent} recipients",
        total_recipients=len(recipients),
        sent=sent,
        failed=failed,
    )


async def send_whatsapp_cart_reminder(
    db: AsyncSession,
    cart_id: uuid.UUID,
    *,
    client: Optional[WhatsAppClient] = None,
) -> CartReminderResult:
    logger.info(f"Processing WhatsApp cart reminder: {cart_id}")
    if client is None:
        client = await get_whatsapp_client(db)

    cart = await get_abandoned_cart(db, cart_id, not_found="Cart not found")
    profile = await get_profile_contact(db, cart.user_id)
    if not profile or not profile.phone:
        raise CampaignError("Customer phone number not available")

    item_count = cart.total_items
    if not item_count:
        item_count = len(await load_cart_items(db, cart.user_id))

    message = whatsapp_cart_message(
        profile.full_name,
        item_count,
        cart.total_value or 0,
        get_settings().SITE_URL,
    )
    try:
        sent = await client.send_text(normalize_phone(profile.phone), message)
    except WhatsAppError as e:
        raise CampaignError(e.message) from e

    await record_reminder(db, cart)
    return CartReminderResult(success=True, message_id=sent.message_id)
