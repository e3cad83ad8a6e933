"""Communications Service models package."""

from services.communications_service.models.enums import (
    CampaignStatus,
    CampaignType,
    EmailTemplateType,
    RecipientStatus,
    SegmentType,
    WhatsAppTemplateCategory,
)
from services.communications_service.models.marketing import (
    AbandonedCart,
    CampaignRecipient,
    CustomerSegment,
    CustomerSegmentMember,
    EmailCampaign,
    EmailTemplate,
    SiteSetting,
)
from services.communications_service.models.whatsapp import (
    WhatsAppCampaign,
    WhatsAppCampaignRecipient,
    WhatsAppTemplate,
)

__all__ = [
    "AbandonedCart",
    "CampaignRecipient",
    "CampaignStatus",
    "CampaignType",
    "CustomerSegment",
    "CustomerSegmentMember",
    "EmailCampaign",
    "EmailTemplate",
    "EmailTemplateType",
    "RecipientStatus",
    "SegmentType",
    "SiteSetting",
    "WhatsAppCampaign",
    "WhatsAppCampaignRecipient",
    "WhatsAppTemplate",
    "WhatsAppTemplateCategory",
]
