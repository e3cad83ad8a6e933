"""Pydantic schemas for store service."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from services.store_service.models import (
    BxgyDiscountType,
    DiscountType,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    PurchaseOrderStatus,
    RecommendationType,
    ReturnRequestStatus,
    ReturnRequestType,
    StockMovementType,
)

# ============================================================================
# SHARED VALUE TYPES
# ============================================================================


class Address(BaseModel):
    """Postal address stored as JSON on orders."""

    full_name: str = Field(..., max_length=255)
    phone: str = Field(..., max_length=20)
    address_line1: str = Field(..., max_length=500)
    address_line2: Optional[str] = Field(None, max_length=500)
    city: str = Field(..., max_length=100)
    state: str = Field(..., max_length=100)
    pincode: str = Field(..., pattern=r"^\d{6}$")
    country: str = "India"


# ============================================================================
# CATEGORY SCHEMAS
# ============================================================================


class CategoryBase(BaseModel):
    name: str = Field(..., max_length=100)
    slug: str = Field(..., max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[uuid.UUID] = None
    sort_order: int = 0
    is_active: bool = True


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[uuid.UUID] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryResponse(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class StorefrontCategory(CategoryResponse):
    product_count: int = 0


# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductBase(BaseModel):
    name: str = Field(..., max_length=255)
    slug: str = Field(..., max_length=255)
    sku: Optional[str] = Field(None, max_length=100)
    hsn_code: Optional[str] = Field(None, max_length=20)
    category_id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    mrp: Optional[Decimal] = Field(None, ge=0)
    discount_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    gst_percent: Decimal = Field(Decimal("18"), ge=0, le=100)
    low_stock_threshold: int = Field(10, ge=0)
    is_featured: bool = False
    is_trending: bool = False
    is_active: bool = True


class ProductCreate(ProductBase):
    stock_quantity: int = Field(0, ge=0)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    sku: Optional[str] = Field(None, max_length=100)
    hsn_code: Optional[str] = Field(None, max_length=20)
    category_id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=500)
    image_url: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    mrp: Optional[Decimal] = Field(None, ge=0)
    discount_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    gst_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    low_stock_threshold: Optional[int] = Field(None, ge=0)
    is_featured: Optional[bool] = None
    is_trending: Optional[bool] = None
    is_active: Optional[bool] = None


class ProductResponse(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    stock_quantity: int
    created_at: datetime
    updated_at: datetime


class StorefrontProduct(ProductResponse):
    """Product as shown to shoppers, with any live flash-sale price."""

    sale_price: Optional[Decimal] = None
    flash_sale_id: Optional[uuid.UUID] = None
    in_stock: bool = True


class ProductSummary(BaseModel):
    """Compact product card used inside other responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    sku: Optional[str] = None
    price: Decimal
    mrp: Optional[Decimal] = None
    image_url: Optional[str] = None
    discount_percent: Optional[Decimal] = None


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int
    page: int
    page_size: int


class StorefrontProductList(BaseModel):
    items: list[StorefrontProduct]
    total: int
    page: int
    page_size: int


# ============================================================================
# CART SCHEMAS
# ============================================================================


class CartItemAdd(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(1, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1)


class CartItemResponse(BaseModel):
    id: uuid.UUID
    product: ProductSummary
    quantity: int
    unit_price: Decimal  # Effective price (flash sale applied)
    line_total: Decimal
    flash_sale_id: Optional[uuid.UUID] = None


class CartResponse(BaseModel):
    items: list[CartItemResponse]
    item_count: int
    subtotal: Decimal
    total_mrp: Decimal
    mrp_savings: Decimal
    shipping: Decimal
    total: Decimal


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class CheckoutRequest(BaseModel):
    shipping_address: Address
    billing_address: Optional[Address] = None
    payment_method: PaymentMethod = PaymentMethod.COD
    notes: Optional[str] = None
    apply_offers: bool = True


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    product_name: str
    sku: Optional[str] = None
    hsn_code: Optional[str] = None
    variant_info: Optional[str] = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    gst_percent: Decimal


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    user_id: uuid.UUID
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    subtotal: Decimal
    discount_amount: Decimal
    shipping_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    shipping_address: dict
    billing_address: Optional[dict] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemResponse] = []


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int
    page: int
    page_size: int


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    cancel_reason: Optional[str] = None


class OrderCancelRequest(BaseModel):
    reason: Optional[str] = None


class TimelineStepResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    label: str
    completed: bool
    current: bool
    at: Optional[datetime] = None


class OrderTrackingResponse(BaseModel):
    order_number: str
    status: str
    terminal: bool
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    steps: list[TimelineStepResponse]


# ============================================================================
# RETURN REQUEST SCHEMAS
# ============================================================================


class ReturnRequestCreate(BaseModel):
    request_type: ReturnRequestType = ReturnRequestType.RETURN
    reason: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class ReturnRequestUpdate(BaseModel):
    status: Optional[ReturnRequestStatus] = None
    admin_notes: Optional[str] = None
    refund_amount: Optional[Decimal] = Field(None, ge=0)
    refund_status: Optional[str] = None


class ReturnRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_id: uuid.UUID
    user_id: uuid.UUID
    request_type: ReturnRequestType
    reason: str
    description: Optional[str] = None
    status: ReturnRequestStatus
    admin_notes: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    refund_status: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ============================================================================
# INVENTORY SCHEMAS
# ============================================================================


class StockAdjustment(BaseModel):
    product_id: uuid.UUID
    quantity: int  # Delta: positive adds, negative removes
    movement_type: Literal["adjustment", "restock", "damage", "transfer"] = "adjustment"
    reason: str = Field(..., min_length=1)


class BulkRestockItem(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., ge=1)


class BulkRestockRequest(BaseModel):
    items: list[BulkRestockItem] = Field(..., min_length=1)


class StockAdjustmentResponse(BaseModel):
    product_id: uuid.UUID
    previous_quantity: int
    new_quantity: int


class StockMovementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    movement_type: StockMovementType
    quantity: int
    previous_quantity: int
    new_quantity: int
    reason: Optional[str] = None
    reference_id: Optional[uuid.UUID] = None
    created_by: Optional[str] = None
    created_at: datetime


class InventorySummary(BaseModel):
    total_products: int
    out_of_stock: int
    low_stock: int
    in_stock: int
    total_units: int


class StockImportResult(BaseModel):
    success_count: int = 0
    error_count: int = 0
    errors: list[str] = []
    total_items: int = 0


# ============================================================================
# SUPPLIER & PURCHASE ORDER SCHEMAS
# ============================================================================


class SupplierBase(BaseModel):
    name: str = Field(..., max_length=255)
    code: Optional[str] = Field(None, max_length=50)
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    gstin: Optional[str] = Field(None, max_length=15)
    pan: Optional[str] = Field(None, max_length=10)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    code: Optional[str] = Field(None, max_length=50)
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    gstin: Optional[str] = Field(None, max_length=15)
    pan: Optional[str] = Field(None, max_length=10)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class SupplierResponse(SupplierBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class PurchaseOrderItemCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0)
    tax_percent: Optional[Decimal] = Field(None, ge=0, le=100)


class PurchaseOrderCreate(BaseModel):
    supplier_id: uuid.UUID
    items: list[PurchaseOrderItemCreate] = Field(..., min_length=1)
    notes: Optional[str] = None
    order_date: Optional[date] = None
    expected_date: Optional[date] = None
    shipping_amount: Decimal = Field(Decimal("0"), ge=0)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)


class PurchaseOrderUpdate(BaseModel):
    status: Optional[PurchaseOrderStatus] = None
    notes: Optional[str] = None
    order_date: Optional[date] = None
    expected_date: Optional[date] = None
    shipping_amount: Optional[Decimal] = Field(None, ge=0)
    discount_amount: Optional[Decimal] = Field(None, ge=0)


class ReceiveItem(BaseModel):
    id: uuid.UUID
    received_quantity: int = Field(..., ge=0)


class ReceiveItemsRequest(BaseModel):
    items: list[ReceiveItem] = Field(..., min_length=1)


class PurchaseOrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    received_quantity: int
    unit_price: Decimal
    tax_percent: Decimal
    total_price: Decimal


class PurchaseOrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    po_number: str
    supplier_id: uuid.UUID
    status: PurchaseOrderStatus
    order_date: Optional[date] = None
    expected_date: Optional[date] = None
    received_date: Optional[date] = None
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: list[PurchaseOrderItemResponse] = []


# ============================================================================
# PROMOTION SCHEMAS
# ============================================================================


class FlashSaleBase(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
    banner_image: Optional[str] = None
    discount_type: DiscountType = DiscountType.PERCENTAGE
    discount_value: Decimal = Field(..., ge=0)
    starts_at: datetime
    ends_at: datetime
    is_active: bool = True
    max_uses: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def check_window(self):
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class FlashSaleCreate(FlashSaleBase):
    pass


class FlashSaleUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    banner_image: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    is_active: Optional[bool] = None
    max_uses: Optional[int] = Field(None, ge=1)


class FlashSaleProductCreate(BaseModel):
    product_id: uuid.UUID
    special_price: Optional[Decimal] = Field(None, ge=0)
    max_quantity_per_user: int = Field(5, ge=1)


class FlashSaleProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    flash_sale_id: uuid.UUID
    product_id: uuid.UUID
    special_price: Optional[Decimal] = None
    max_quantity_per_user: int
    sale_price: Optional[Decimal] = None
    product: Optional[ProductSummary] = None


class FlashSaleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    banner_image: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal
    starts_at: datetime
    ends_at: datetime
    is_active: bool
    max_uses: Optional[int] = None
    current_uses: int
    created_at: datetime
    updated_at: datetime
    products: list[FlashSaleProductResponse] = []


class BundleBase(BaseModel):
    name: str = Field(..., max_length=255)
    slug: str = Field(..., max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = None
    bundle_price: Decimal = Field(..., ge=0)
    is_active: bool = True
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    max_purchases: Optional[int] = Field(None, ge=1)


class BundleUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = None
    bundle_price: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    max_purchases: Optional[int] = Field(None, ge=1)


class BundleItemCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(1, ge=1)


class BundleCreate(BundleBase):
    items: list[BundleItemCreate] = []


class BundleItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    bundle_id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    product: Optional[ProductSummary] = None


class BundlePriceUpdate(BaseModel):
    bundle_price: Decimal = Field(..., ge=0)


class BundleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    bundle_price: Decimal
    original_price: Optional[Decimal] = None
    discount_percent: Optional[int] = None
    is_active: bool
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    max_purchases: Optional[int] = None
    current_purchases: int
    created_at: datetime
    updated_at: datetime
    items: list[BundleItemResponse] = []


class BxgyOfferBase(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
    buy_product_id: Optional[uuid.UUID] = None
    buy_category_id: Optional[uuid.UUID] = None
    buy_quantity: int = Field(1, ge=1)
    get_product_id: Optional[uuid.UUID] = None
    get_category_id: Optional[uuid.UUID] = None
    get_quantity: int = Field(1, ge=1)
    get_discount_type: BxgyDiscountType = BxgyDiscountType.FREE
    get_discount_value: Decimal = Field(Decimal("100"), ge=0)
    is_active: bool = True
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    max_uses: Optional[int] = Field(None, ge=1)
    usage_per_customer: int = Field(1, ge=1)


class BxgyOfferCreate(BxgyOfferBase):
    @model_validator(mode="after")
    def check_buy_condition(self):
        if not self.buy_product_id and not self.buy_category_id:
            raise ValueError("Either buy_product_id or buy_category_id is required")
        return self


class BxgyOfferUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    buy_product_id: Optional[uuid.UUID] = None
    buy_category_id: Optional[uuid.UUID] = None
    buy_quantity: Optional[int] = Field(None, ge=1)
    get_product_id: Optional[uuid.UUID] = None
    get_category_id: Optional[uuid.UUID] = None
    get_quantity: Optional[int] = Field(None, ge=1)
    get_discount_type: Optional[BxgyDiscountType] = None
    get_discount_value: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    max_uses: Optional[int] = Field(None, ge=1)
    usage_per_customer: Optional[int] = Field(None, ge=1)


class BxgyOfferResponse(BxgyOfferBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    current_uses: int
    created_at: datetime
    updated_at: datetime


class BxgyEligibilityResponse(BaseModel):
    offer: BxgyOfferResponse
    discount: Decimal
    free_product: Optional[ProductSummary] = None


# ============================================================================
# RECOMMENDATION SCHEMAS
# ============================================================================


class RecommendationCreate(BaseModel):
    product_id: uuid.UUID
    recommended_product_id: uuid.UUID
    recommendation_type: RecommendationType
    score: Decimal = Field(Decimal("1"), ge=0)

    @model_validator(mode="after")
    def check_distinct(self):
        if self.product_id == self.recommended_product_id:
            raise ValueError("A product cannot recommend itself")
        return self


class RecommendationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    recommended_product_id: uuid.UUID
    recommendation_type: RecommendationType
    score: Decimal
    is_manual: bool
    created_at: datetime
    recommended_product: Optional[ProductSummary] = None


class GenerateRecommendationsResponse(BaseModel):
    generated: int


# ============================================================================
# REVIEW SCHEMAS
# ============================================================================


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=200)
    comment: Optional[str] = None
    images: Optional[list[str]] = None


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, max_length=200)
    comment: Optional[str] = None
    images: Optional[list[str]] = None


class ReviewModeration(BaseModel):
    is_approved: Optional[bool] = None
    admin_reply: Optional[str] = None


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    user_id: uuid.UUID
    order_id: Optional[uuid.UUID] = None
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    images: Optional[list[str]] = None
    is_verified_purchase: bool
    is_approved: bool
    admin_reply: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PublicReviewResponse(ReviewResponse):
    reviewer_name: Optional[str] = None
    reviewer_avatar_url: Optional[str] = None


class AdminReviewResponse(ReviewResponse):
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    product_name: Optional[str] = None


class RatingStats(BaseModel):
    average: float = 0.0
    count: int = 0
    distribution: dict[int, int] = Field(
        default_factory=lambda: {star: 0 for star in range(1, 6)}
    )


class CanReviewResponse(BaseModel):
    can_review: bool
    is_verified_purchase: bool
    has_reviewed: bool = False
