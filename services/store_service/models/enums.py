"""Enum definitions for store service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"
    REFUNDED = "refunded"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    RAZORPAY = "razorpay"
    STRIPE = "stripe"
    COD = "cod"


class ReturnRequestType(str, enum.Enum):
    RETURN = "return"
    REPLACE = "replace"


class ReturnRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSING = "processing"
    COMPLETED = "completed"


class StockMovementType(str, enum.Enum):
    PURCHASE = "purchase"
    RESTOCK = "restock"
    SALE = "sale"
    RETURN = "return"
    ADJUSTMENT = "adjustment"
    ADJUSTMENT_ADD = "adjustment_add"
    ADJUSTMENT_REMOVE = "adjustment_remove"
    DAMAGE = "damage"
    TRANSFER = "transfer"


class PurchaseOrderStatus(str, enum.Enum):
    DRAFT = "draft"
    ORDERED = "ordered"
    PARTIAL = "partial"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class BxgyDiscountType(str, enum.Enum):
    FREE = "free"
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class RecommendationType(str, enum.Enum):
    FREQUENTLY_BOUGHT = "frequently_bought"
    SIMILAR = "similar"
    COMPLEMENTARY = "complementary"
    UPSELL = "upsell"
    CROSS_SELL = "cross_sell"


class AuditEntityType(str, enum.Enum):
    CATEGORY = "category"
    PRODUCT = "product"
    INVENTORY = "inventory"
    ORDER = "order"
    RETURN_REQUEST = "return_request"
    SUPPLIER = "supplier"
    PURCHASE_ORDER = "purchase_order"
    PROMOTION = "promotion"
    REVIEW = "review"
