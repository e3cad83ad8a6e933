import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from services.communications_service.models import (
    CampaignStatus,
    CampaignType,
    EmailTemplateType,
    RecipientStatus,
    SegmentType,
    WhatsAppTemplateCategory,
)

# ===== TRANSACTIONAL EMAIL SCHEMAS =====


class OrderEmailItem(BaseModel):
    product_name: str
    quantity: int
    unit_price: float
    total_price: float
    variant_info: Optional[str] = None


class OrderEmailDetails(BaseModel):
    items: list[OrderEmailItem] = []
    subtotal: float = 0
    tax_amount: float = 0
    shipping_amount: float = 0
    discount_amount: float = 0
    total_amount: float = 0
    payment_method: str = "cod"
    shipping_address: Optional[dict[str, Any]] = None


class OrderEmailRequest(BaseModel):
    """Order lifecycle email posted by the store service."""

    email: EmailStr
    customer_name: str
    order_number: str
    email_type: str  # order_placed/order_confirmed/order_shipped/order_delivered/order_cancelled
    order_details: OrderEmailDetails
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    cancel_reason: Optional[str] = None


class RequestStatusEmailRequest(BaseModel):
    """Return/replace request status change."""

    email: EmailStr
    customer_name: Optional[str] = None
    order_number: str
    request_type: str  # return/replace
    old_status: str
    new_status: str
    admin_notes: Optional[str] = None
    refund_amount: Optional[float] = None
    refund_status: Optional[str] = None


class EmailSendResponse(BaseModel):
    success: bool
    id: Optional[str] = None


# ===== SEGMENT SCHEMAS =====


class SegmentBase(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
    segment_type: SegmentType = SegmentType.MANUAL
    criteria: dict[str, Any] = {}
    color: str = "#6366f1"
    is_active: bool = True


class SegmentCreate(SegmentBase):
    pass


class SegmentUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    segment_type: Optional[SegmentType] = None
    criteria: Optional[dict[str, Any]] = None
    color: Optional[str] = None
    is_active: Optional[bool] = None


class SegmentResponse(SegmentBase):
    id: uuid.UUID
    member_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SegmentMemberAdd(BaseModel):
    customer_id: uuid.UUID


class SegmentMemberResponse(BaseModel):
    id: uuid.UUID
    segment_id: uuid.UUID
    customer_id: uuid.UUID
    assigned_by: Optional[uuid.UUID] = None
    assigned_at: datetime
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# ===== EMAIL TEMPLATE & CAMPAIGN SCHEMAS =====


class EmailTemplateBase(BaseModel):
    name: str = Field(..., max_length=255)
    subject: str = Field(..., max_length=500)
    content: str
    template_type: EmailTemplateType = EmailTemplateType.PROMOTIONAL
    is_default: bool = False


class EmailTemplateCreate(EmailTemplateBase):
    pass


class EmailTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    subject: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = None
    template_type: Optional[EmailTemplateType] = None
    is_default: Optional[bool] = None


class EmailTemplateResponse(EmailTemplateBase):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EmailCampaignBase(BaseModel):
    name: str = Field(..., max_length=255)
    subject: str = Field(..., max_length=500)
    content: str
    campaign_type: CampaignType = CampaignType.PROMOTIONAL
    template_id: Optional[uuid.UUID] = None
    target_segment_id: Optional[uuid.UUID] = None
    scheduled_at: Optional[datetime] = None


class EmailCampaignCreate(EmailCampaignBase):
    pass


class EmailCampaignUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    subject: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = None
    campaign_type: Optional[CampaignType] = None
    template_id: Optional[uuid.UUID] = None
    target_segment_id: Optional[uuid.UUID] = None
    scheduled_at: Optional[datetime] = None
    status: Optional[CampaignStatus] = None


class EmailCampaignResponse(EmailCampaignBase):
    id: uuid.UUID
    status: CampaignStatus
    sent_at: Optional[datetime] = None
    total_recipients: int
    total_sent: int
    total_opened: int
    total_clicked: int
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CampaignRecipientResponse(BaseModel):
    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    email: str
    status: RecipientStatus
    error_message: Optional[str] = None
    sent_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CampaignSendResult(BaseModel):
    sent: int
    failed: int


class CartReminderResult(BaseModel):
    success: bool
    email: Optional[str] = None
    message_id: Optional[str] = None


# ===== WHATSAPP SCHEMAS =====


class WhatsAppTemplateBase(BaseModel):
    name: str = Field(..., max_length=255)
    category: WhatsAppTemplateCategory = WhatsAppTemplateCategory.MARKETING
    language: str = "en"
    message_content: str
    is_active: bool = True


class WhatsAppTemplateCreate(WhatsAppTemplateBase):
    pass


class WhatsAppTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    category: Optional[WhatsAppTemplateCategory] = None
    language: Optional[str] = None
    message_content: Optional[str] = None
    is_active: Optional[bool] = None


class WhatsAppTemplateResponse(WhatsAppTemplateBase):
    id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WhatsAppCampaignBase(BaseModel):
    name: str = Field(..., max_length=255)
    template_id: Optional[uuid.UUID] = None
    message_content: str
    target_segment_id: Optional[uuid.UUID] = None
    scheduled_at: Optional[datetime] = None


class WhatsAppCampaignCreate(WhatsAppCampaignBase):
    pass


class WhatsAppCampaignUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    template_id: Optional[uuid.UUID] = None
    message_content: Optional[str] = None
    target_segment_id: Optional[uuid.UUID] = None
    scheduled_at: Optional[datetime] = None
    status: Optional[CampaignStatus] = None


class WhatsAppCampaignResponse(WhatsAppCampaignBase):
    id: uuid.UUID
    status: CampaignStatus
    sent_at: Optional[datetime] = None
    total_recipients: int
    total_sent: int
    total_delivered: int
    total_read: int
    total_failed: int
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WhatsAppCampaignResult(BaseModel):
    success: bool = True
    message: str
    total_recipients: int
    sent: int
    failed: int


class WhatsAppSettings(BaseModel):
    """Value stored under site_settings['whatsapp_api']."""

    whatsapp_enabled: bool = False
    phone_number_id: str = ""
    access_token: str = ""
    business_id: str = ""


# ===== ABANDONED CART SCHEMAS =====


class AbandonedCartResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    total_items: int
    total_value: Decimal
    last_activity_at: datetime
    reminder_sent_at: Optional[datetime] = None
    reminder_count: int
    recovered: bool
    recovered_at: Optional[datetime] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RefreshResponse(BaseModel):
    success: bool = True
    result: Optional[Any] = None


class MarketingStats(BaseModel):
    total_campaigns: int
    sent_campaigns: int
    total_sent: int
    total_opened: int
    total_clicked: int
    open_rate: float
    click_rate: float
    abandoned_carts: int
    recovered_carts: int
    total_abandoned_value: Decimal
    recovery_rate: float
