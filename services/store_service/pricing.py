"""Price arithmetic for carts, orders and promotions.

Everything here is pure: callers load rows and pass them in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

from libs.common.config import get_settings
from libs.common.currency import to_money
from services.store_service.models.enums import (
    BxgyDiscountType,
    DiscountType,
    OrderStatus,
)
from services.store_service.tally import split_gst

ZERO = Decimal("0")


@dataclass
class PricedLine:
    product_id: Any
    unit_price: Decimal
    quantity: int
    gst_percent: Optional[Decimal] = None
    mrp: Optional[Decimal] = None
    category_id: Any = None

    @property
    def line_total(self) -> Decimal:
        return to_money(Decimal(self.unit_price) * self.quantity)

    @property
    def mrp_total(self) -> Decimal:
        mrp = self.mrp if self.mrp is not None else self.unit_price
        return to_money(Decimal(mrp) * self.quantity)


@dataclass
class OrderTotals:
    subtotal: Decimal
    total_mrp: Decimal
    mrp_savings: Decimal
    discount_amount: Decimal
    shipping_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal


@dataclass
class BxgyEligibility:
    offer: Any
    discount: Decimal
    free_product: Any = None


@dataclass
class TimelineStep:
    key: str
    label: str
    completed: bool
    current: bool = False
    at: Optional[datetime] = None


@dataclass
class Timeline:
    status: str
    terminal: bool
    steps: list[TimelineStep] = field(default_factory=list)


# ============================================================================
# ORDER TOTALS
# ============================================================================


def shipping_for(subtotal: Decimal) -> Decimal:
    settings = get_settings()
    if subtotal >= settings.FREE_SHIPPING_THRESHOLD:
        return ZERO
    return to_money(settings.SHIPPING_FEE)


def calculate_order_totals(
    lines: Iterable[PricedLine], discount_amount: Decimal = ZERO
) -> OrderTotals:
    """Totals for a set of GST-inclusive lines.

    ``total = subtotal - discount + shipping``. Shipping is decided on the
    undiscounted subtotal; the discount is capped at the subtotal. Tax is the
    GST contained in the discounted subtotal.
    """
    lines = list(lines)
    settings = get_settings()

    subtotal = sum((line.line_total for line in lines), ZERO)
    total_mrp = sum((line.mrp_total for line in lines), ZERO)
    discount = min(to_money(discount_amount), subtotal)
    shipping = shipping_for(subtotal)

    tax = ZERO
    if subtotal > 0:
        discount_ratio = (subtotal - discount) / subtotal
        for line in lines:
            split = split_gst(
                line.line_total * discount_ratio,
                line.gst_percent or settings.DEFAULT_GST_PERCENT,
            )
            tax += split.total_tax

    totals = OrderTotals(
        subtotal=subtotal,
        total_mrp=total_mrp,
        mrp_savings=max(total_mrp - subtotal, ZERO),
        discount_amount=discount,
        shipping_amount=shipping,
        tax_amount=to_money(tax),
        total_amount=subtotal - discount + shipping,
    )
    assert_totals_consistent(totals)
    return totals


def assert_totals_consistent(totals: OrderTotals) -> None:
    expected = totals.subtotal - totals.discount_amount + totals.shipping_amount
    if totals.total_amount != expected:
        raise ValueError(
            f"Order total {totals.total_amount} does not match {expected}"
        )


# ============================================================================
# FLASH SALES
# ============================================================================


def is_within_window(
    starts_at: Optional[datetime], ends_at: Optional[datetime], now: datetime
) -> bool:
    if starts_at is not None and starts_at > now:
        return False
    if ends_at is not None and ends_at < now:
        return False
    return True


def flash_sale_price(price: Decimal, sale: Any, special_price: Optional[Decimal]) -> Decimal:
    """Sale price of a product: its special price, else the sale-wide discount."""
    if special_price is not None:
        return to_money(special_price)

    price = Decimal(price)
    value = Decimal(sale.discount_value)
    if sale.discount_type == DiscountType.PERCENTAGE:
        discounted = price - price * value / 100
    else:
        discounted = price - value
    return to_money(max(discounted, ZERO))


# ============================================================================
# BUNDLES
# ============================================================================


def bundle_original_price(items: Iterable[Any]) -> Decimal:
    """Sum of product price x quantity; items need ``product`` loaded."""
    return to_money(
        sum(
            (Decimal(item.product.price) * item.quantity for item in items if item.product),
            ZERO,
        )
    )


def bundle_discount_percent(original_price: Decimal, bundle_price: Decimal) -> int:
    if original_price <= 0:
        return 0
    percent = (Decimal(original_price) - Decimal(bundle_price)) / original_price * 100
    return int(percent.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ============================================================================
# BUY X GET Y
# ============================================================================


def bxgy_discount(offer: Any, get_product_price: Optional[Decimal]) -> Decimal:
    price = Decimal(get_product_price or 0)
    value = Decimal(offer.get_discount_value or 0)
    if offer.get_discount_type == BxgyDiscountType.FREE:
        discount = price * offer.get_quantity
    elif offer.get_discount_type == BxgyDiscountType.PERCENTAGE:
        discount = price * offer.get_quantity * value / 100
    else:
        discount = value * offer.get_quantity
    return to_money(discount)


def bxgy_buy_condition_met(offer: Any, lines: list[PricedLine]) -> bool:
    if offer.buy_product_id:
        quantity = sum(
            line.quantity for line in lines if line.product_id == offer.buy_product_id
        )
        return quantity >= offer.buy_quantity
    if offer.buy_category_id:
        quantity = sum(
            line.quantity for line in lines if line.category_id == offer.buy_category_id
        )
        return quantity >= offer.buy_quantity
    return False


def evaluate_bxgy_offers(
    offers: Iterable[Any], lines: list[PricedLine]
) -> list[BxgyEligibility]:
    """Offers whose buy condition the cart satisfies, with their discount.

    Offers without a get-product are never eligible; offers that have used
    up ``max_uses`` are skipped.
    """
    eligible: list[BxgyEligibility] = []
    for offer in offers:
        if offer.max_uses is not None and offer.current_uses >= offer.max_uses:
            continue
        if not bxgy_buy_condition_met(offer, lines) or not offer.get_product_id:
            continue
        get_product = getattr(offer, "get_product", None)
        price = get_product.price if get_product is not None else None
        eligible.append(
            BxgyEligibility(
                offer=offer,
                discount=bxgy_discount(offer, price),
                free_product=get_product,
            )
        )
    return eligible


# ============================================================================
# ORDER TRACKING
# ============================================================================

TRACKING_STEPS = [
    (OrderStatus.PENDING, "Order Placed"),
    (OrderStatus.CONFIRMED, "Confirmed"),
    (OrderStatus.SHIPPED, "Shipped"),
    (OrderStatus.DELIVERED, "Delivered"),
]

TERMINAL_STATUSES = {OrderStatus.CANCELLED, OrderStatus.RETURNED, OrderStatus.REFUNDED}


def build_tracking_timeline(order: Any) -> Timeline:
    status = OrderStatus(order.status)
    if status in TERMINAL_STATUSES:
        at = order.cancelled_at if status == OrderStatus.CANCELLED else order.updated_at
        return Timeline(
            status=status.value,
            terminal=True,
            steps=[
                TimelineStep(
                    key=status.value,
                    label=status.value.capitalize(),
                    completed=True,
                    current=True,
                    at=at,
                )
            ],
        )

    current_index = [step for step, _ in TRACKING_STEPS].index(status)
    step_dates = {
        OrderStatus.PENDING: order.created_at,
        OrderStatus.CONFIRMED: order.confirmed_at or (
            order.created_at if current_index >= 1 else None
        ),
        OrderStatus.SHIPPED: order.shipped_at,
        OrderStatus.DELIVERED: order.delivered_at,
    }

    steps = [
        TimelineStep(
            key=step.value,
            label=label,
            completed=index <= current_index,
            current=index == current_index,
            at=step_dates[step] if index <= current_index else None,
        )
        for index, (step, label) in enumerate(TRACKING_STEPS)
    ]
    return Timeline(status=status.value, terminal=False, steps=steps)
