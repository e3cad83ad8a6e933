"""Purchase order business logic."""

import uuid
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from libs.common.currency import to_money
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service.models import (
    Product,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
    StockMovementType,
    Supplier,
)
from services.store_service.schemas import (
    PurchaseOrderCreate,
    PurchaseOrderUpdate,
    ReceiveItem,
)
from services.store_service.services.inventory_ops import record_stock_change
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

DEFAULT_TAX_PERCENT = Decimal("18")


def compute_po_totals(
    items: list[PurchaseOrderItem],
    shipping_amount: Decimal = Decimal("0"),
    discount_amount: Decimal = Decimal("0"),
) -> tuple[Decimal, Decimal, Decimal]:
    """Returns ``(subtotal, tax_amount, total_amount)``; prices are tax-exclusive."""
    subtotal = sum((Decimal(item.total_price) for item in items), Decimal("0"))
    tax_amount = sum(
        (
            to_money(Decimal(item.total_price) * Decimal(item.tax_percent) / 100)
            for item in items
        ),
        Decimal("0"),
    )
    total = subtotal + tax_amount + Decimal(shipping_amount) - Decimal(discount_amount)
    return to_money(subtotal), to_money(tax_amount), to_money(total)


def receipt_status(items: list[PurchaseOrderItem]) -> PurchaseOrderStatus:
    """All lines fully received -> received, any received -> partial."""
    if items and all(item.received_quantity >= item.quantity for item in items):
        return PurchaseOrderStatus.RECEIVED
    if any(item.received_quantity > 0 for item in items):
        return PurchaseOrderStatus.PARTIAL
    return PurchaseOrderStatus.ORDERED


async def get_purchase_order(db: AsyncSession, po_id: uuid.UUID) -> PurchaseOrder:
    query = (
        select(PurchaseOrder)
        .where(PurchaseOrder.id == po_id)
        .options(selectinload(PurchaseOrder.items), selectinload(PurchaseOrder.supplier))
    )
    purchase_order = (await db.execute(query)).scalar_one_or_none()
    if not purchase_order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Purchase order not found",
        )
    return purchase_order


async def create_purchase_order(
    db: AsyncSession,
    *,
    data: PurchaseOrderCreate,
    created_by: Optional[str] = None,
) -> PurchaseOrder:
    supplier = await db.get(Supplier, data.supplier_id)
    if not supplier:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Supplier not found",
        )

    items = [
        PurchaseOrderItem(
            product_id=item.product_id,
            quantity=item.quantity,
            received_quantity=0,
            unit_price=item.unit_price,
            tax_percent=(
                item.tax_percent if item.tax_percent is not None else DEFAULT_TAX_PERCENT
            ),
            total_price=to_money(item.unit_price * item.quantity),
        )
        for item in data.items
    ]
    subtotal, tax_amount, total = compute_po_totals(
        items, data.shipping_amount, data.discount_amount
    )

    purchase_order = PurchaseOrder(
        po_number=PurchaseOrder.generate_po_number(),
        supplier_id=data.supplier_id,
        status=PurchaseOrderStatus.DRAFT,
        order_date=data.order_date or utc_now().date(),
        expected_date=data.expected_date,
        subtotal=subtotal,
        tax_amount=tax_amount,
        shipping_amount=data.shipping_amount,
        discount_amount=data.discount_amount,
        total_amount=total,
        notes=data.notes,
        created_by=created_by,
        items=items,
    )
    db.add(purchase_order)
    await db.commit()

    logger.info(f"Created purchase order {purchase_order.po_number} ({total})")
    return await get_purchase_order(db, purchase_order.id)


async def update_purchase_order(
    db: AsyncSession, *, purchase_order: PurchaseOrder, data: PurchaseOrderUpdate
) -> PurchaseOrder:
    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(purchase_order, field, value)

    if "shipping_amount" in update_data or "discount_amount" in update_data:
        subtotal, tax_amount, total = compute_po_totals(
            purchase_order.items,
            purchase_order.shipping_amount,
            purchase_order.discount_amount,
        )
        purchase_order.subtotal = subtotal
        purchase_order.tax_amount = tax_amount
        purchase_order.total_amount = total

    await db.commit()
    return await get_purchase_order(db, purchase_order.id)


async def receive_items(
    db: AsyncSession,
    *,
    purchase_order: PurchaseOrder,
    received: list[ReceiveItem],
    performed_by: Optional[str] = None,
) -> PurchaseOrder:
    """Record received quantities line by line, then recompute the PO status.

    Only the increase over the previously received quantity goes into stock.
    """
    if purchase_order.status == PurchaseOrderStatus.CANCELLED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot receive items on a cancelled purchase order",
        )

    items_by_id = {item.id: item for item in purchase_order.items}
    for entry in received:
        item = items_by_id.get(entry.id)
        if item is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Purchase order item {entry.id} not found",
            )

        delta = entry.received_quantity - item.received_quantity
        item.received_quantity = entry.received_quantity
        if delta > 0:
            product = await db.get(Product, item.product_id)
            if product:
                record_stock_change(
                    db,
                    product,
                    product.stock_quantity + delta,
                    movement_type=StockMovementType.PURCHASE,
                    reason=f"Received against {purchase_order.po_number}",
                    created_by=performed_by,
                    reference_id=purchase_order.id,
                )
        await db.commit()

    new_status = receipt_status(purchase_order.items)
    purchase_order.status = new_status
    if new_status == PurchaseOrderStatus.RECEIVED:
        purchase_order.received_date = utc_now().date()
    await db.commit()

    logger.info(f"Purchase order {purchase_order.po_number} now {new_status.value}")
    return await get_purchase_order(db, purchase_order.id)


async def delete_purchase_order(db: AsyncSession, purchase_order: PurchaseOrder) -> None:
    await db.delete(purchase_order)
    await db.commit()
    logger.info(f"Deleted purchase order {purchase_order.po_number}")
