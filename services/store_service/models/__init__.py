"""Store Service models package."""

from services.store_service.models.catalog import Category, Product
from services.store_service.models.commerce import (
    CartItem,
    Order,
    OrderItem,
    ReturnRequest,
    StoreAuditLog,
)
from services.store_service.models.customers import Profile
from services.store_service.models.enums import (
    AuditEntityType,
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
from services.store_service.models.inventory import (
    PurchaseOrder,
    PurchaseOrderItem,
    StockMovement,
    Supplier,
)
from services.store_service.models.promotions import (
    BundleItem,
    BxgyOffer,
    FlashSale,
    FlashSaleProduct,
    ProductBundle,
)
from services.store_service.models.recommendations import (
    ProductRecommendation,
    UserProductView,
)
from services.store_service.models.reviews import Review

__all__ = [
    "AuditEntityType",
    "BundleItem",
    "BxgyDiscountType",
    "BxgyOffer",
    "CartItem",
    "Category",
    "DiscountType",
    "FlashSale",
    "FlashSaleProduct",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "ProductBundle",
    "ProductRecommendation",
    "Profile",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchaseOrderStatus",
    "RecommendationType",
    "ReturnRequest",
    "ReturnRequestStatus",
    "ReturnRequestType",
    "Review",
    "StockMovement",
    "StockMovementType",
    "StoreAuditLog",
    "Supplier",
    "UserProductView",
]
