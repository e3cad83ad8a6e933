"""Storefront promotions router: currently running sales and offers."""

from fastapi import APIRouter, Depends, HTTPException
from libs.db.session import get_async_db
from services.store_service.models import BundleItem, ProductBundle
from services.store_service.schemas import (
    BundleResponse,
    BxgyOfferResponse,
    FlashSaleResponse,
)
from services.store_service.services import promotion_ops
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(tags=["store"])


@router.get("/flash-sales", response_model=list[FlashSaleResponse])
async def list_active_flash_sales(
    db: AsyncSession = Depends(get_async_db),
):
    """Flash sales that are active and inside their time window."""
    sales = await promotion_ops.list_flash_sales(db, active_only=True)
    return [promotion_ops.flash_sale_response(sale) for sale in sales]


@router.get("/bundles", response_model=list[BundleResponse])
async def list_active_bundles(
    db: AsyncSession = Depends(get_async_db),
):
    bundles = await promotion_ops.list_bundles(db, active_only=True)
    return [promotion_ops.bundle_response(bundle) for bundle in bundles]


@router.get("/bundles/{slug}", response_model=BundleResponse)
async def get_bundle_by_slug(
    slug: str,
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(ProductBundle)
        .where(ProductBundle.slug == slug, ProductBundle.is_active.is_(True))
        .options(selectinload(ProductBundle.items).selectinload(BundleItem.product))
    )
    bundle = (await db.execute(query)).scalar_one_or_none()
    if not bundle:
        raise HTTPException(status_code=404, detail="Bundle not found")
    return promotion_ops.bundle_response(bundle)


@router.get("/offers", response_model=list[BxgyOfferResponse])
async def list_active_offers(
    db: AsyncSession = Depends(get_async_db),
):
    """Active buy-X-get-Y offers."""
    return await promotion_ops.list_bxgy_offers(db, active_only=True)
