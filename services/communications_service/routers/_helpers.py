"""Shared dependencies for communications routers."""

import uuid
from typing import Optional

from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from services.communications_service.resend_client import (
    ResendClient,
    get_resend_client,
    is_email_configured,
)
from services.communications_service.services.campaign_sender import CampaignError

logger = get_logger(__name__)


def require_resend_client() -> ResendClient:
    """Resend client, or a 500 when no API key is configured."""
    if not is_email_configured():
        logger.error("RESEND_API_KEY is not set")
        raise CampaignError("Email service not configured", status_code=500)
    return get_resend_client()


def actor_uuid(user: AuthUser) -> Optional[uuid.UUID]:
    """Admin user id for ``created_by``; service tokens have none."""
    try:
        return uuid.UUID(user.user_id)
    except ValueError:
        return None
