"""Admin promotions router: flash sales, bundles and buy-X-get-Y offers."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.models import (
    AuditEntityType,
    BundleItem,
    BxgyOffer,
    FlashSale,
    FlashSaleProduct,
    Product,
    ProductBundle,
)
from services.store_service.routers._helpers import log_audit
from services.store_service.schemas import (
    BundleCreate,
    BundleItemCreate,
    BundlePriceUpdate,
    BundleResponse,
    BundleUpdate,
    BxgyOfferCreate,
    BxgyOfferResponse,
    BxgyOfferUpdate,
    FlashSaleCreate,
    FlashSaleProductCreate,
    FlashSaleResponse,
    FlashSaleUpdate,
)
from services.store_service.services import promotion_ops
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])


async def _require_product(db: AsyncSession, product_id: uuid.UUID) -> Product:
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# ============================================================================
# FLASH SALES
# ============================================================================


@router.get("/flash-sales", response_model=list[FlashSaleResponse])
async def list_flash_sales(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    sales = await promotion_ops.list_flash_sales(db)
    return [promotion_ops.flash_sale_response(sale) for sale in sales]


@router.post(
    "/flash-sales", response_model=FlashSaleResponse, status_code=status.HTTP_201_CREATED
)
async def create_flash_sale(
    sale_in: FlashSaleCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    sale = FlashSale(**sale_in.model_dump())
    db.add(sale)
    await db.flush()

    await log_audit(
        db,
        AuditEntityType.PROMOTION,
        sale.id,
        "flash_sale_created",
        current_user.user_id,
        new_value=sale_in.model_dump(mode="json"),
    )
    await db.commit()
    sale = await promotion_ops.get_flash_sale(db, sale.id)
    return promotion_ops.flash_sale_response(sale)


@router.get("/flash-sales/{sale_id}", response_model=FlashSaleResponse)
async def get_flash_sale(
    sale_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    sale = await promotion_ops.get_flash_sale(db, sale_id)
    return promotion_ops.flash_sale_response(sale)


@router.patch("/flash-sales/{sale_id}", response_model=FlashSaleResponse)
async def update_flash_sale(
    sale_id: uuid.UUID,
    sale_in: FlashSaleUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    sale = await promotion_ops.get_flash_sale(db, sale_id)
    update_data = sale_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(sale, field, value)

    if sale.ends_at <= sale.starts_at:
        raise HTTPException(status_code=400, detail="ends_at must be after starts_at")

    await log_audit(
        db,
        AuditEntityType.PROMOTION,
        sale.id,
        "flash_sale_updated",
        current_user.user_id,
        new_value=sale_in.model_dump(mode="json", exclude_unset=True),
    )
    await db.commit()
    sale = await promotion_ops.get_flash_sale(db, sale_id)
    return promotion_ops.flash_sale_response(sale)


@router.delete("/flash-sales/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_flash_sale(
    sale_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    sale = await promotion_ops.get_flash_sale(db, sale_id)
    await db.delete(sale)
    await log_audit(
        db,
        AuditEntityType.PROMOTION,
        sale_id,
        "flash_sale_deleted",
        current_user.user_id,
        old_value={"name": sale.name},
    )
    await db.commit()
    return None


@router.post(
    "/flash-sales/{sale_id}/products",
    response_model=FlashSaleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_flash_sale_product(
    sale_id: uuid.UUID,
    entry_in: FlashSaleProductCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    sale = await promotion_ops.get_flash_sale(db, sale_id)
    await _require_product(db, entry_in.product_id)

    if any(entry.product_id == entry_in.product_id for entry in sale.products):
        raise HTTPException(status_code=400, detail="Product already in flash sale")

    db.add(FlashSaleProduct(flash_sale_id=sale.id, **entry_in.model_dump()))
    await db.commit()
    sale = await promotion_ops.get_flash_sale(db, sale_id)
    return promotion_ops.flash_sale_response(sale)


@router.delete(
    "/flash-sales/{sale_id}/products/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_flash_sale_product(
    sale_id: uuid.UUID,
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(FlashSaleProduct).where(
        FlashSaleProduct.flash_sale_id == sale_id,
        FlashSaleProduct.product_id == product_id,
    )
    entry = (await db.execute(query)).scalar_one_or_none()
    if not entry:
        raise HTTPException(status_code=404, detail="Product not in flash sale")

    await db.delete(entry)
    await db.commit()
    return None


# ============================================================================
# BUNDLES
# ============================================================================


@router.get("/bundles", response_model=list[BundleResponse])
async def list_bundles(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    bundles = await promotion_ops.list_bundles(db)
    return [promotion_ops.bundle_response(bundle) for bundle in bundles]


@router.post(
    "/bundles", response_model=BundleResponse, status_code=status.HTTP_201_CREATED
)
async def create_bundle(
    bundle_in: BundleCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    existing = await db.execute(
        select(ProductBundle).where(ProductBundle.slug == bundle_in.slug)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Bundle with this slug already exists")

    data = bundle_in.model_dump(exclude={"items"})
    bundle = ProductBundle(**data)
    for item_in in bundle_in.items:
        await _require_product(db, item_in.product_id)
        bundle.items.append(
            BundleItem(product_id=item_in.product_id, quantity=item_in.quantity)
        )
    db.add(bundle)
    await db.flush()

    await log_audit(
        db,
        AuditEntityType.PROMOTION,
        bundle.id,
        "bundle_created",
        current_user.user_id,
        new_value=bundle_in.model_dump(mode="json"),
    )
    await db.commit()
    bundle = await promotion_ops.recompute_bundle_prices(db, bundle.id)
    return promotion_ops.bundle_response(bundle)


@router.get("/bundles/{bundle_id}", response_model=BundleResponse)
async def get_bundle(
    bundle_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    bundle = await promotion_ops.get_bundle(db, bundle_id)
    return promotion_ops.bundle_response(bundle)


@router.patch("/bundles/{bundle_id}", response_model=BundleResponse)
async def update_bundle(
    bundle_id: uuid.UUID,
    bundle_in: BundleUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    bundle = await promotion_ops.get_bundle(db, bundle_id)
    for field, value in bundle_in.model_dump(exclude_unset=True).items():
        setattr(bundle, field, value)
    await db.commit()
    bundle = await promotion_ops.recompute_bundle_prices(db, bundle_id)
    return promotion_ops.bundle_response(bundle)


@router.put("/bundles/{bundle_id}/price", response_model=BundleResponse)
async def set_bundle_price(
    bundle_id: uuid.UUID,
    price_in: BundlePriceUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Set the bundle price and recompute original price and discount."""
    bundle = await promotion_ops.get_bundle(db, bundle_id)
    bundle.bundle_price = price_in.bundle_price
    await db.commit()
    bundle = await promotion_ops.recompute_bundle_prices(db, bundle_id)
    return promotion_ops.bundle_response(bundle)


@router.post("/bundles/{bundle_id}/recompute", response_model=BundleResponse)
async def recompute_bundle(
    bundle_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    bundle = await promotion_ops.recompute_bundle_prices(db, bundle_id)
    return promotion_ops.bundle_response(bundle)


@router.post(
    "/bundles/{bundle_id}/items",
    response_model=BundleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_bundle_item(
    bundle_id: uuid.UUID,
    item_in: BundleItemCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await promotion_ops.get_bundle(db, bundle_id)
    await _require_product(db, item_in.product_id)
    db.add(BundleItem(bundle_id=bundle_id, **item_in.model_dump()))
    await db.commit()
    bundle = await promotion_ops.recompute_bundle_prices(db, bundle_id)
    return promotion_ops.bundle_response(bundle)


@router.delete(
    "/bundles/{bundle_id}/items/{item_id}", response_model=BundleResponse
)
async def remove_bundle_item(
    bundle_id: uuid.UUID,
    item_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(BundleItem).where(
        BundleItem.id == item_id, BundleItem.bundle_id == bundle_id
    )
    item = (await db.execute(query)).scalar_one_or_none()
    if not item:
        raise HTTPException(status_code=404, detail="Bundle item not found")

    await db.delete(item)
    await db.commit()
    bundle = await promotion_ops.recompute_bundle_prices(db, bundle_id)
    return promotion_ops.bundle_response(bundle)


@router.delete("/bundles/{bundle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bundle(
    bundle_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    bundle = await promotion_ops.get_bundle(db, bundle_id)
    await db.delete(bundle)
    await log_audit(
        db,
        AuditEntityType.PROMOTION,
        bundle_id,
        "bundle_deleted",
        current_user.user_id,
        old_value={"slug": bundle.slug},
    )
    await db.commit()
    return None


# ============================================================================
# BUY X GET Y
# ============================================================================


@router.get("/bxgy-offers", response_model=list[BxgyOfferResponse])
async def list_bxgy_offers(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await promotion_ops.list_bxgy_offers(db)


@router.post(
    "/bxgy-offers", response_model=BxgyOfferResponse, status_code=status.HTTP_201_CREATED
)
async def create_bxgy_offer(
    offer_in: BxgyOfferCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    offer = BxgyOffer(**offer_in.model_dump())
    db.add(offer)
    await db.flush()

    await log_audit(
        db,
        AuditEntityType.PROMOTION,
        offer.id,
        "bxgy_created",
        current_user.user_id,
        new_value=offer_in.model_dump(mode="json"),
    )
    await db.commit()
    await db.refresh(offer)
    return offer


@router.patch("/bxgy-offers/{offer_id}", response_model=BxgyOfferResponse)
async def update_bxgy_offer(
    offer_id: uuid.UUID,
    offer_in: BxgyOfferUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    offer = await promotion_ops.get_bxgy_offer(db, offer_id)
    for field, value in offer_in.model_dump(exclude_unset=True).items():
        setattr(offer, field, value)

    if not offer.buy_product_id and not offer.buy_category_id:
        raise HTTPException(
            status_code=400,
            detail="Either buy_product_id or buy_category_id is required",
        )

    await db.commit()
    await db.refresh(offer)
    return offer


@router.delete("/bxgy-offers/{offer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bxgy_offer(
    offer_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    offer = await promotion_ops.get_bxgy_offer(db, offer_id)
    await db.delete(offer)
    await db.commit()
    return None
