"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    product = ProductFactory.create(stock_quantity=5)
    db_session.add(product)
    await db_session.commit()
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _suffix() -> str:
    return uuid.uuid4().hex[:8]


def shipping_address(**overrides) -> dict:
    address = {
        "full_name": "Priya Sharma",
        "phone": "9876543210",
        "address_line1": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
        "country": "India",
    }
    address.update(overrides)
    return address


# ---------------------------------------------------------------------------
# Store Service
# ---------------------------------------------------------------------------


class CategoryFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Category

        suffix = _suffix()
        defaults = {
            "id": _uuid(),
            "name": f"Skincare {suffix}",
            "slug": f"skincare-{suffix}",
            "is_active": True,
        }
        defaults.update(overrides)
        return Category(**defaults)


class ProductFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Product

        suffix = _suffix()
        defaults = {
            "id": _uuid(),
            "name": f"Vitamin C Serum {suffix}",
            "slug": f"vitamin-c-serum-{suffix}",
            "sku": f"SKU-{suffix.upper()}",
            "hsn_code": "3304",
            "price": Decimal("599.00"),
            "mrp": Decimal("799.00"),
            "gst_percent": Decimal("18"),
            "stock_quantity": 50,
            "low_stock_threshold": 10,
            "is_active": True,
        }
        defaults.update(overrides)
        return Product(**defaults)


class ProfileFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Profile

        defaults = {
            "id": _uuid(),
            "email": f"customer-{_suffix()}@glowmart.in",
            "full_name": "Priya Sharma",
            "phone": "9876543210",
        }
        defaults.update(overrides)
        return Profile(**defaults)


class CartItemFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import CartItem

        defaults = {
            "id": _uuid(),
            "user_id": _uuid(),
            "quantity": 1,
        }
        defaults.update(overrides)
        return CartItem(**defaults)


class OrderFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Order, OrderStatus, PaymentMethod

        defaults = {
            "id": _uuid(),
            "order_number": Order.generate_order_number(),
            "user_id": _uuid(),
            "status": OrderStatus.PENDING,
            "payment_method": PaymentMethod.COD,
            "subtotal": Decimal("1198.00"),
            "discount_amount": Decimal("0"),
            "shipping_amount": Decimal("0"),
            "tax_amount": Decimal("182.75"),
            "total_amount": Decimal("1198.00"),
            "shipping_address": shipping_address(),
        }
        defaults.update(overrides)
        return Order(**defaults)


class OrderItemFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import OrderItem

        defaults = {
            "id": _uuid(),
            "product_name": "Vitamin C Serum",
            "quantity": 2,
            "unit_price": Decimal("599.00"),
            "total_price": Decimal("1198.00"),
            "gst_percent": Decimal("18"),
        }
        defaults.update(overrides)
        return OrderItem(**defaults)


class SupplierFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Supplier

        defaults = {
            "id": _uuid(),
            "name": f"Beauty Supplies {_suffix()}",
            "contact_person": "Rahul Mehta",
            "email": "orders@beautysupplies.in",
            "phone": "9988776655",
            "state": "Maharashtra",
            "is_active": True,
        }
        defaults.update(overrides)
        return Supplier(**defaults)


class FlashSaleFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import DiscountType, FlashSale

        defaults = {
            "id": _uuid(),
            "name": "Weekend Glow Sale",
            "discount_type": DiscountType.PERCENTAGE,
            "discount_value": Decimal("20"),
            "starts_at": _now() - timedelta(hours=1),
            "ends_at": _now() + timedelta(days=1),
            "is_active": True,
        }
        defaults.update(overrides)
        return FlashSale(**defaults)


class ReviewFactory:
    @staticmethod
    def create(**overrides):
        from services.store_service.models import Review

        defaults = {
            "id": _uuid(),
            "user_id": _uuid(),
            "rating": 5,
            "title": "Skin feels amazing",
            "comment": "Visible glow within a week.",
            "is_approved": True,
        }
        defaults.update(overrides)
        return Review(**defaults)


# ---------------------------------------------------------------------------
# Communications Service
# ---------------------------------------------------------------------------


class CustomerSegmentFactory:
    @staticmethod
    def create(**overrides):
        from services.communications_service.models import CustomerSegment, SegmentType

        defaults = {
            "id": _uuid(),
            "name": f"VIP Customers {_suffix()}",
            "segment_type": SegmentType.MANUAL,
            "criteria": {},
            "is_active": True,
        }
        defaults.update(overrides)
        return CustomerSegment(**defaults)


class EmailCampaignFactory:
    @staticmethod
    def create(**overrides):
        from services.communications_service.models import (
            CampaignStatus,
            CampaignType,
            EmailCampaign,
        )

        defaults = {
            "id": _uuid(),
            "name": "Diwali Glow Offers",
            "subject": "Festive offers inside",
            "content": "<p>Hi {{customer_name}}, shop at {{shop_url}}</p>",
            "campaign_type": CampaignType.PROMOTIONAL,
            "status": CampaignStatus.DRAFT,
        }
        defaults.update(overrides)
        return EmailCampaign(**defaults)


class WhatsAppCampaignFactory:
    @staticmethod
    def create(**overrides):
        from services.communications_service.models import (
            CampaignStatus,
            WhatsAppCampaign,
        )

        defaults = {
            "id": _uuid(),
            "name": "New arrivals",
            "message_content": "Hi {{1}}, new serums just landed!",
            "status": CampaignStatus.DRAFT,
        }
        defaults.update(overrides)
        return WhatsAppCampaign(**defaults)


class AbandonedCartFactory:
    @staticmethod
    def create(**overrides):
        from services.communications_service.models import AbandonedCart

        defaults = {
            "id": _uuid(),
            "user_id": _uuid(),
            "total_items": 2,
            "total_value": Decimal("1198.00"),
            "last_activity_at": _now() - timedelta(hours=3),
            "reminder_count": 0,
            "recovered": False,
        }
        defaults.update(overrides)
        return AbandonedCart(**defaults)
