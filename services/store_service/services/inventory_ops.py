"""Stock operations: manual adjustments, bulk restock, CSV import, reporting.

Every stock change writes a ``StockMovement`` row next to the product update.
Multi-row operations commit per row; nothing spans rows in a transaction.
"""

import uuid
from typing import Optional

from fastapi import HTTPException, status
from libs.common.logging import get_logger
from services.store_service.inventory_csv import (
    IMPORT_MOVEMENT_TYPE,
    StockImportRow,
    compute_new_quantity,
)
from services.store_service.models import Product, StockMovement, StockMovementType
from services.store_service.schemas import InventorySummary, StockImportResult
from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

MOVEMENTS_PAGE_SIZE = 100


def record_stock_change(
    db: AsyncSession,
    product: Product,
    new_quantity: int,
    *,
    movement_type: StockMovementType,
    reason: Optional[str],
    created_by: Optional[str] = None,
    reference_id: Optional[uuid.UUID] = None,
) -> StockMovement:
    """Set a product's stock and append the matching movement (not committed)."""
    previous_quantity = product.stock_quantity
    movement = StockMovement(
        product_id=product.id,
        movement_type=movement_type,
        quantity=new_quantity - previous_quantity,
        previous_quantity=previous_quantity,
        new_quantity=new_quantity,
        reason=reason,
        reference_id=reference_id,
        created_by=created_by,
    )
    db.add(movement)
    product.stock_quantity = new_quantity
    return movement


async def _get_product(db: AsyncSession, product_id: uuid.UUID) -> Product:
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )
    return product


# ---------------------------------------------------------------------------
# Manual adjustments
# ---------------------------------------------------------------------------


async def adjust_stock(
    db: AsyncSession,
    *,
    product_id: uuid.UUID,
    quantity: int,
    movement_type: StockMovementType,
    reason: str,
    performed_by: str,
) -> tuple[int, int]:
    """Apply a stock delta. Returns ``(previous_quantity, new_quantity)``."""
    product = await _get_product(db, product_id)

    previous_quantity = product.stock_quantity
    new_quantity = previous_quantity + quantity
    if new_quantity < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Stock cannot be negative",
        )

    record_stock_change(
        db,
        product,
        new_quantity,
        movement_type=movement_type,
        reason=reason,
        created_by=performed_by,
    )
    await db.commit()

    logger.info(
        "Stock adjusted for %s: %d -> %d (%s)",
        product.id,
        previous_quantity,
        new_quantity,
        movement_type.value,
    )
    return previous_quantity, new_quantity


async def bulk_restock(
    db: AsyncSession,
    *,
    items: list[tuple[uuid.UUID, int]],
    performed_by: str,
) -> int:
    """Restock products one by one.

    An unknown product aborts the run with 404; items before it stay applied.
    """
    for product_id, quantity in items:
        product = await _get_product(db, product_id)
        record_stock_change(
            db,
            product,
            product.stock_quantity + quantity,
            movement_type=StockMovementType.RESTOCK,
            reason="Bulk restock",
            created_by=performed_by,
        )
        await db.commit()

    logger.info("Bulk restocked %d products", len(items))
    return len(items)


# ---------------------------------------------------------------------------
# CSV import
# ---------------------------------------------------------------------------


async def apply_stock_import(
    db: AsyncSession,
    rows: list[StockImportRow],
    performed_by: Optional[str] = None,
) -> StockImportResult:
    """Apply parsed CSV rows sequentially, collecting per-row errors.

    Each successful row is committed on its own, so re-running an ``add``
    file applies the increase again.
    """
    result = StockImportResult(total_items=len(rows))

    for row in rows:
        try:
            query = select(Product).where(Product.sku == row.sku)
            product = (await db.execute(query)).scalar_one_or_none()
            if not product:
                result.errors.append(f'SKU "{row.sku}": Product not found')
                result.error_count += 1
                continue

            new_quantity = compute_new_quantity(
                product.stock_quantity, row.stock_quantity, row.adjustment_type
            )
            if new_quantity < 0:
                result.errors.append(f'SKU "{row.sku}": Would result in negative stock')
                result.error_count += 1
                continue

            record_stock_change(
                db,
                product,
                new_quantity,
                movement_type=IMPORT_MOVEMENT_TYPE,
                reason=f"CSV Import ({row.adjustment_type})",
                created_by=performed_by,
            )
            await db.commit()
            result.success_count += 1

        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"CSV import failed for SKU {row.sku}: {e}")
            result.errors.append(f'SKU "{row.sku}": {e}')
            result.error_count += 1

    logger.info(
        "CSV import finished: %d ok, %d failed of %d",
        result.success_count,
        result.error_count,
        result.total_items,
    )
    return result


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


async def list_movements(
    db: AsyncSession, product_id: Optional[uuid.UUID] = None
) -> list[StockMovement]:
    query = (
        select(StockMovement)
        .order_by(StockMovement.created_at.desc())
        .limit(MOVEMENTS_PAGE_SIZE)
    )
    if product_id:
        query = query.where(StockMovement.product_id == product_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def inventory_summary(db: AsyncSession) -> InventorySummary:
    stock = Product.stock_quantity
    threshold = Product.low_stock_threshold
    query = select(
        func.count(Product.id),
        func.count(case((stock == 0, 1))),
        func.count(case(((stock > 0) & (stock <= threshold), 1))),
        func.count(case((stock > threshold, 1))),
        func.coalesce(func.sum(stock), 0),
    )
    total, out_of_stock, low_stock, in_stock, units = (await db.execute(query)).one()
    return InventorySummary(
        total_products=total,
        out_of_stock=out_of_stock,
        low_stock=low_stock,
        in_stock=in_stock,
        total_units=int(units),
    )


async def list_products_with_category(db: AsyncSession) -> list[Product]:
    query = (
        select(Product)
        .options(selectinload(Product.category))
        .order_by(Product.name)
    )
    result = await db.execute(query)
    return list(result.scalars().all())
