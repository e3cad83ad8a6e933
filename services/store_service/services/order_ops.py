"""Cart pricing, checkout, order status changes and return requests."""

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from libs.common.config import get_settings
from libs.common.currency import to_money
from libs.common.datetime_utils import utc_now
from libs.common.emails.client import get_email_client
from libs.common.logging import get_logger
from services.store_service.models import (
    BxgyOffer,
    CartItem,
    FlashSale,
    FlashSaleProduct,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    Profile,
    ReturnRequest,
    ReturnRequestStatus,
    StockMovementType,
)
from services.store_service.pricing import (
    PricedLine,
    calculate_order_totals,
    evaluate_bxgy_offers,
    flash_sale_price,
)
from services.store_service.schemas import (
    CartItemResponse,
    CartResponse,
    CheckoutRequest,
    OrderStatusUpdate,
    ProductSummary,
    ReturnRequestCreate,
    ReturnRequestUpdate,
)
from services.store_service.services.inventory_ops import record_stock_change
from services.store_service.tally import is_inter_state
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

CUSTOMER_CANCELLABLE = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

STATUS_EMAIL_TYPES = {
    OrderStatus.CONFIRMED: "order_confirmed",
    OrderStatus.SHIPPED: "order_shipped",
    OrderStatus.DELIVERED: "order_delivered",
    OrderStatus.CANCELLED: "order_cancelled",
}


@dataclass
class CartLine:
    item: CartItem
    unit_price: Decimal
    flash_sale_id: Optional[uuid.UUID] = None
    max_per_user: Optional[int] = None

    @property
    def product(self) -> Product:
        return self.item.product

    def priced(self) -> PricedLine:
        return PricedLine(
            product_id=self.product.id,
            unit_price=self.unit_price,
            quantity=self.item.quantity,
            gst_percent=self.product.gst_percent,
            mrp=self.product.mrp,
            category_id=self.product.category_id,
        )


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FlashPrice:
    price: Decimal
    flash_sale_id: uuid.UUID
    max_quantity_per_user: int


async def active_flash_prices(
    db: AsyncSession, product_ids: list[uuid.UUID]
) -> dict[uuid.UUID, FlashPrice]:
    """Lowest live flash-sale price per product.

    Sales that reached ``max_uses`` are no longer live.
    """
    if not product_ids:
        return {}

    now = utc_now()
    query = (
        select(FlashSaleProduct)
        .join(FlashSale, FlashSale.id == FlashSaleProduct.flash_sale_id)
        .where(
            FlashSaleProduct.product_id.in_(product_ids),
            FlashSale.is_active.is_(True),
            FlashSale.starts_at <= now,
            FlashSale.ends_at >= now,
            or_(FlashSale.max_uses.is_(None), FlashSale.current_uses < FlashSale.max_uses),
        )
        .options(
            selectinload(FlashSaleProduct.flash_sale),
            selectinload(FlashSaleProduct.product),
        )
    )
    result = await db.execute(query)

    prices: dict[uuid.UUID, FlashPrice] = {}
    for entry in result.scalars().all():
        price = flash_sale_price(entry.product.price, entry.flash_sale, entry.special_price)
        current = prices.get(entry.product_id)
        if current is None or price < current.price:
            prices[entry.product_id] = FlashPrice(
                price=price,
                flash_sale_id=entry.flash_sale_id,
                max_quantity_per_user=entry.max_quantity_per_user,
            )
    return prices


def check_flash_limit(product: Product, quantity: int, limit: Optional[int]) -> None:
    """Reject quantities above the per-customer cap of a live flash sale."""
    if limit is not None and quantity > limit:
        raise HTTPException(
            status_code=400,
            detail=f"Maximum {limit} per customer for {product.name} during the flash sale",
        )


async def load_cart_lines(db: AsyncSession, user_id: uuid.UUID) -> list[CartLine]:
    result = await db.execute(
        select(CartItem)
        .where(CartItem.user_id == user_id)
        .options(selectinload(CartItem.product))
        .order_by(CartItem.created_at)
    )
    items = list(result.scalars().all())
    flash_prices = await active_flash_prices(db, [item.product_id for item in items])

    lines = []
    for item in items:
        flash = flash_prices.get(item.product_id)
        if flash:
            lines.append(
                CartLine(
                    item=item,
                    unit_price=flash.price,
                    flash_sale_id=flash.flash_sale_id,
                    max_per_user=flash.max_quantity_per_user,
                )
            )
        else:
            lines.append(CartLine(item=item, unit_price=to_money(item.product.price)))
    return lines


async def build_cart(db: AsyncSession, user_id: uuid.UUID) -> CartResponse:
    lines = await load_cart_lines(db, user_id)
    totals = calculate_order_totals([line.priced() for line in lines])
    return CartResponse(
        items=[
            CartItemResponse(
                id=line.item.id,
                product=ProductSummary.model_validate(line.product),
                quantity=line.item.quantity,
                unit_price=line.unit_price,
                line_total=line.priced().line_total,
                flash_sale_id=line.flash_sale_id,
            )
            for line in lines
        ],
        item_count=sum(line.item.quantity for line in lines),
        subtotal=totals.subtotal,
        total_mrp=totals.total_mrp,
        mrp_savings=totals.mrp_savings,
        shipping=totals.shipping_amount,
        total=totals.total_amount,
    )


async def active_bxgy_offers(db: AsyncSession) -> list[BxgyOffer]:
    now = utc_now()
    result = await db.execute(
        select(BxgyOffer)
        .where(
            BxgyOffer.is_active.is_(True),
            or_(BxgyOffer.starts_at.is_(None), BxgyOffer.starts_at <= now),
            or_(BxgyOffer.ends_at.is_(None), BxgyOffer.ends_at >= now),
        )
        .options(selectinload(BxgyOffer.get_product))
        .order_by(BxgyOffer.created_at)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Emails
# ---------------------------------------------------------------------------


def order_email_details(order: Order) -> dict:
    return {
        "items": [
            {
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price": float(item.unit_price),
                "total_price": float(item.total_price),
                "variant_info": item.variant_info,
            }
            for item in order.items
        ],
        "subtotal": float(order.subtotal),
        "tax_amount": float(order.tax_amount),
        "shipping_amount": float(order.shipping_amount),
        "discount_amount": float(order.discount_amount),
        "total_amount": float(order.total_amount),
        "payment_method": order.payment_method.value if order.payment_method else "cod",
        "shipping_address": order.shipping_address,
    }


async def _customer_contact(
    db: AsyncSession, order: Order
) -> tuple[Optional[str], str]:
    """Email and display name for the customer behind an order."""
    profile = await db.get(Profile, order.user_id)
    address = order.shipping_address or {}
    name = address.get("full_name") or (profile.full_name if profile else None) or "Customer"
    return (profile.email if profile else None), name


async def send_order_notification(
    db: AsyncSession,
    order: Order,
    email_type: str,
    email: Optional[str] = None,
) -> None:
    """Email the customer about an order event; failures are only logged."""
    try:
        profile_email, customer_name = await _customer_contact(db, order)
        to_email = email or profile_email
        if not to_email:
            logger.warning(f"No email for order {order.order_number}, skipping {email_type}")
            return

        email_client = get_email_client()
        sent = await email_client.send_order_email(
            email=to_email,
            customer_name=customer_name,
            order_number=order.order_number,
            email_type=email_type,
            order_details=order_email_details(order),
            tracking_number=order.tracking_number,
            tracking_url=order.tracking_url,
            cancel_reason=order.cancel_reason,
        )
        if not sent:
            logger.error(f"Order email {email_type} not sent for {order.order_number}")
    except Exception as e:
        logger.error(f"Failed to send order email: {e}")


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


async def get_order_with_items(
    db: AsyncSession,
    *,
    order_id: Optional[uuid.UUID] = None,
    order_number: Optional[str] = None,
    user_id: Optional[uuid.UUID] = None,
) -> Order:
    query = select(Order).options(selectinload(Order.items))
    if order_id:
        query = query.where(Order.id == order_id)
    if order_number:
        query = query.where(Order.order_number == order_number)
    if user_id:
        query = query.where(Order.user_id == user_id)

    order = (await db.execute(query)).scalar_one_or_none()
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found",
        )
    return order


async def checkout(
    db: AsyncSession,
    *,
    user_id: uuid.UUID,
    request: CheckoutRequest,
    email: Optional[str] = None,
) -> Order:
    """Turn the user's cart into a pending order and clear the cart."""
    settings = get_settings()
    lines = await load_cart_lines(db, user_id)
    if not lines:
        raise HTTPException(status_code=400, detail="Cart is empty")

    for line in lines:
        if not line.product.is_active:
            raise HTTPException(
                status_code=400,
                detail=f"{line.product.name} is no longer available",
            )
        if line.product.stock_quantity < line.item.quantity:
            raise HTTPException(
                status_code=400,
                detail=f"Insufficient stock for {line.product.name}",
            )
        check_flash_limit(line.product, line.item.quantity, line.max_per_user)

    priced_lines = [line.priced() for line in lines]

    applied_offers: list[BxgyOffer] = []
    discount = Decimal("0")
    if request.apply_offers:
        for eligibility in evaluate_bxgy_offers(await active_bxgy_offers(db), priced_lines):
            applied_offers.append(eligibility.offer)
            discount += eligibility.discount

    totals = calculate_order_totals(priced_lines, discount)

    address = request.shipping_address.model_dump()
    if is_inter_state(settings.TALLY_COMPANY_STATE, address.get("state")):
        cgst = sgst = Decimal("0")
        igst = totals.tax_amount
    else:
        cgst = to_money(totals.tax_amount / 2)
        sgst = totals.tax_amount - cgst
        igst = Decimal("0")

    order = Order(
        id=uuid.uuid4(),
        order_number=Order.generate_order_number(),
        user_id=user_id,
        status=OrderStatus.PENDING,
        payment_method=request.payment_method,
        subtotal=totals.subtotal,
        discount_amount=totals.discount_amount,
        shipping_amount=totals.shipping_amount,
        tax_amount=totals.tax_amount,
        cgst_amount=cgst,
        sgst_amount=sgst,
        igst_amount=igst,
        total_amount=totals.total_amount,
        shipping_address=address,
        billing_address=(
            request.billing_address.model_dump() if request.billing_address else address
        ),
        notes=request.notes,
    )
    db.add(order)

    for line in lines:
        product = line.product
        priced = line.priced()
        db.add(
            OrderItem(
                order_id=order.id,
                product_id=product.id,
                product_name=product.name,
                sku=product.sku,
                hsn_code=product.hsn_code,
                quantity=line.item.quantity,
                unit_price=line.unit_price,
                total_price=priced.line_total,
                gst_percent=product.gst_percent or settings.DEFAULT_GST_PERCENT,
            )
        )
        record_stock_change(
            db,
            product,
            product.stock_quantity - line.item.quantity,
            movement_type=StockMovementType.SALE,
            reason=f"Order {order.order_number}",
            created_by=str(user_id),
            reference_id=order.id,
        )

    for offer in applied_offers:
        offer.current_uses += 1

    # One use per order, however many of its lines the sale priced
    for flash_sale_id in {line.flash_sale_id for line in lines if line.flash_sale_id}:
        flash_sale = await db.get(FlashSale, flash_sale_id)
        flash_sale.current_uses += 1

    await db.execute(delete(CartItem).where(CartItem.user_id == user_id))
    await db.commit()

    order = await get_order_with_items(db, order_id=order.id)
    logger.info(
        f"Order {order.order_number} placed by {user_id} for {order.total_amount}"
    )

    await send_order_notification(db, order, "order_placed", email=email)
    return order


def _restock_cancelled_order(db: AsyncSession, order: Order, products: dict) -> None:
    for item in order.items:
        product = products.get(item.product_id)
        if product is None:
            continue
        record_stock_change(
            db,
            product,
            product.stock_quantity + item.quantity,
            movement_type=StockMovementType.RETURN,
            reason=f"Order {order.order_number} cancelled",
            reference_id=order.id,
        )


async def _load_order_products(db: AsyncSession, order: Order) -> dict:
    product_ids = [item.product_id for item in order.items if item.product_id]
    if not product_ids:
        return {}
    result = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    return {product.id: product for product in result.scalars().all()}


async def update_order_status(
    db: AsyncSession,
    *,
    order: Order,
    update: OrderStatusUpdate,
) -> Order:
    """Admin status change with timestamps, tracking info and a customer email."""
    old_status = order.status
    new_status = update.status
    now = utc_now()

    order.status = new_status
    if new_status == OrderStatus.CONFIRMED:
        order.confirmed_at = now
    elif new_status == OrderStatus.SHIPPED:
        order.shipped_at = now
        if update.tracking_number:
            order.tracking_number = update.tracking_number
        if update.tracking_url:
            order.tracking_url = update.tracking_url
    elif new_status == OrderStatus.DELIVERED:
        order.delivered_at = now
    elif new_status == OrderStatus.CANCELLED:
        order.cancelled_at = now
        order.cancel_reason = update.cancel_reason
        if old_status != OrderStatus.CANCELLED:
            _restock_cancelled_order(db, order, await _load_order_products(db, order))

    await db.commit()
    order = await get_order_with_items(db, order_id=order.id)
    logger.info(f"Order {order.order_number} status {old_status.value} -> {new_status.value}")

    email_type = STATUS_EMAIL_TYPES.get(new_status)
    if email_type and new_status != old_status:
        await send_order_notification(db, order, email_type)
    return order


async def cancel_order_for_customer(
    db: AsyncSession, *, order: Order, reason: Optional[str]
) -> Order:
    if order.status not in CUSTOMER_CANCELLABLE:
        raise HTTPException(
            status_code=400,
            detail="Order can no longer be cancelled",
        )
    return await update_order_status(
        db,
        order=order,
        update=OrderStatusUpdate(
            status=OrderStatus.CANCELLED,
            cancel_reason=reason or "Cancelled by customer",
        ),
    )


# ---------------------------------------------------------------------------
# Return / replace requests
# ---------------------------------------------------------------------------


async def create_return_request(
    db: AsyncSession,
    *,
    order: Order,
    user_id: uuid.UUID,
    request: ReturnRequestCreate,
) -> ReturnRequest:
    if order.status != OrderStatus.DELIVERED:
        raise HTTPException(
            status_code=400,
            detail="Only delivered orders can be returned or replaced",
        )

    open_request = await db.execute(
        select(ReturnRequest.id).where(
            ReturnRequest.order_id == order.id,
            ReturnRequest.status.in_(
                [ReturnRequestStatus.PENDING, ReturnRequestStatus.PROCESSING]
            ),
        )
    )
    if open_request.first():
        raise HTTPException(
            status_code=400,
            detail="A request is already open for this order",
        )

    return_request = ReturnRequest(
        order_id=order.id,
        user_id=user_id,
        request_type=request.request_type,
        reason=request.reason,
        description=request.description,
    )
    db.add(return_request)
    await db.commit()
    await db.refresh(return_request)
    return return_request


async def update_return_request(
    db: AsyncSession,
    *,
    return_request: ReturnRequest,
    update: ReturnRequestUpdate,
) -> ReturnRequest:
    """Apply admin changes; a status change emails the customer."""
    old_status = return_request.status
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(return_request, field, value)

    await db.commit()
    await db.refresh(return_request)

    if update.status and update.status != old_status:
        try:
            order = await db.get(Order, return_request.order_id)
            email, customer_name = await _customer_contact(db, order)
            if email:
                email_client = get_email_client()
                await email_client.send_request_status_email(
                    email=email,
                    customer_name=customer_name,
                    order_number=order.order_number,
                    request_type=return_request.request_type.value,
                    old_status=old_status.value,
                    new_status=return_request.status.value,
                    admin_notes=return_request.admin_notes,
                    refund_amount=(
                        float(return_request.refund_amount)
                        if return_request.refund_amount is not None
                        else None
                    ),
                    refund_status=return_request.refund_status,
                )
        except Exception as e:
            logger.error(f"Failed to send request status email: {e}")

    return return_request
