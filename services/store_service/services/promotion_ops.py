"""Flash sales, bundles and buy-X-get-Y offers."""

import uuid

from fastapi import HTTPException, status
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service.models import (
    BundleItem,
    BxgyOffer,
    FlashSale,
    FlashSaleProduct,
    ProductBundle,
)
from services.store_service.pricing import (
    bundle_discount_percent,
    bundle_original_price,
    flash_sale_price,
)
from services.store_service.schemas import (
    BundleItemResponse,
    BundleResponse,
    FlashSaleProductResponse,
    FlashSaleResponse,
    ProductSummary,
)
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Flash sales
# ---------------------------------------------------------------------------


def flash_sale_response(sale: FlashSale) -> FlashSaleResponse:
    """Serialize a sale with each product's effective sale price."""
    response = FlashSaleResponse.model_validate(sale, from_attributes=True)
    response.products = [
        FlashSaleProductResponse(
            id=entry.id,
            flash_sale_id=entry.flash_sale_id,
            product_id=entry.product_id,
            special_price=entry.special_price,
            max_quantity_per_user=entry.max_quantity_per_user,
            sale_price=(
                flash_sale_price(entry.product.price, sale, entry.special_price)
                if entry.product
                else None
            ),
            product=ProductSummary.model_validate(entry.product) if entry.product else None,
        )
        for entry in sale.products
    ]
    return response


async def get_flash_sale(db: AsyncSession, sale_id: uuid.UUID) -> FlashSale:
    query = (
        select(FlashSale)
        .where(FlashSale.id == sale_id)
        .options(selectinload(FlashSale.products).selectinload(FlashSaleProduct.product))
        .execution_options(populate_existing=True)
    )
    sale = (await db.execute(query)).scalar_one_or_none()
    if not sale:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Flash sale not found",
        )
    return sale


async def list_flash_sales(db: AsyncSession, active_only: bool = False) -> list[FlashSale]:
    query = (
        select(FlashSale)
        .options(selectinload(FlashSale.products).selectinload(FlashSaleProduct.product))
        .order_by(FlashSale.starts_at.desc())
    )
    if active_only:
        now = utc_now()
        query = query.where(
            FlashSale.is_active.is_(True),
            FlashSale.starts_at <= now,
            FlashSale.ends_at >= now,
        )
    result = await db.execute(query)
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Bundles
# ---------------------------------------------------------------------------


def bundle_response(bundle: ProductBundle) -> BundleResponse:
    response = BundleResponse.model_validate(bundle, from_attributes=True)
    response.items = [
        BundleItemResponse(
            id=item.id,
            bundle_id=item.bundle_id,
            product_id=item.product_id,
            quantity=item.quantity,
            product=ProductSummary.model_validate(item.product) if item.product else None,
        )
        for item in bundle.items
    ]
    return response


async def get_bundle(db: AsyncSession, bundle_id: uuid.UUID) -> ProductBundle:
    query = (
        select(ProductBundle)
        .where(ProductBundle.id == bundle_id)
        .options(selectinload(ProductBundle.items).selectinload(BundleItem.product))
        .execution_options(populate_existing=True)
    )
    bundle = (await db.execute(query)).scalar_one_or_none()
    if not bundle:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Bundle not found",
        )
    return bundle


async def list_bundles(db: AsyncSession, active_only: bool = False) -> list[ProductBundle]:
    query = (
        select(ProductBundle)
        .options(selectinload(ProductBundle.items).selectinload(BundleItem.product))
        .order_by(ProductBundle.created_at.desc())
    )
    if active_only:
        now = utc_now()
        query = query.where(
            ProductBundle.is_active.is_(True),
            or_(ProductBundle.starts_at.is_(None), ProductBundle.starts_at <= now),
            or_(ProductBundle.ends_at.is_(None), ProductBundle.ends_at >= now),
        )
    result = await db.execute(query)
    return list(result.scalars().all())


async def recompute_bundle_prices(db: AsyncSession, bundle_id: uuid.UUID) -> ProductBundle:
    """Refresh ``original_price`` and ``discount_percent`` from current product prices."""
    bundle = await get_bundle(db, bundle_id)
    original = bundle_original_price(bundle.items)
    bundle.original_price = original
    bundle.discount_percent = bundle_discount_percent(original, bundle.bundle_price)
    await db.commit()

    logger.info(
        f"Bundle {bundle.slug}: original {original}, {bundle.discount_percent}% off"
    )
    return await get_bundle(db, bundle_id)


# ---------------------------------------------------------------------------
# Buy X get Y
# ---------------------------------------------------------------------------


async def get_bxgy_offer(db: AsyncSession, offer_id: uuid.UUID) -> BxgyOffer:
    offer = await db.get(BxgyOffer, offer_id)
    if not offer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Offer not found",
        )
    return offer


async def list_bxgy_offers(db: AsyncSession, active_only: bool = False) -> list[BxgyOffer]:
    query = select(BxgyOffer).order_by(BxgyOffer.created_at.desc())
    if active_only:
        now = utc_now()
        query = query.where(
            BxgyOffer.is_active.is_(True),
            or_(BxgyOffer.starts_at.is_(None), BxgyOffer.starts_at <= now),
            or_(BxgyOffer.ends_at.is_(None), BxgyOffer.ends_at >= now),
        )
    result = await db.execute(query)
    return list(result.scalars().all())
