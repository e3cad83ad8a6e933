"""Enum definitions for communications service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class SegmentType(str, enum.Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class CampaignStatus(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENDING = "sending"
    SENT = "sent"
    CANCELLED = "cancelled"


class CampaignType(str, enum.Enum):
    PROMOTIONAL = "promotional"
    NEWSLETTER = "newsletter"
    ANNOUNCEMENT = "announcement"
    ABANDONED_CART = "abandoned_cart"


class EmailTemplateType(str, enum.Enum):
    PROMOTIONAL = "promotional"
    NEWSLETTER = "newsletter"
    ABANDONED_CART = "abandoned_cart"
    WELCOME = "welcome"
    ORDER_FOLLOWUP = "order_followup"


class RecipientStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class WhatsAppTemplateCategory(str, enum.Enum):
    MARKETING = "marketing"
    UTILITY = "utility"
    AUTHENTICATION = "authentication"
