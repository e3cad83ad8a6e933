"""Store cart router: cart operations and offer eligibility."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.models import CartItem, Product
from services.store_service.pricing import evaluate_bxgy_offers
from services.store_service.routers._helpers import user_uuid
from services.store_service.schemas import (
    BxgyEligibilityResponse,
    BxgyOfferResponse,
    CartItemAdd,
    CartItemUpdate,
    CartResponse,
    ProductSummary,
)
from services.store_service.services.order_ops import (
    active_bxgy_offers,
    active_flash_prices,
    build_cart,
    check_flash_limit,
    load_cart_lines,
)
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/cart", tags=["store"])


async def _get_cart_item(
    db: AsyncSession, item_id: uuid.UUID, user_id: uuid.UUID
) -> CartItem:
    query = select(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
    item = (await db.execute(query)).scalar_one_or_none()
    if not item:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return item


async def _check_quantity(db: AsyncSession, product: Product, quantity: int) -> None:
    if quantity > product.stock_quantity:
        raise HTTPException(
            status_code=400,
            detail=f"Only {product.stock_quantity} in stock",
        )
    flash = (await active_flash_prices(db, [product.id])).get(product.id)
    check_flash_limit(
        product, quantity, flash.max_quantity_per_user if flash else None
    )


@router.get("", response_model=CartResponse)
async def get_cart(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Cart with flash-sale prices applied and the shipping charge."""
    return await build_cart(db, user_uuid(current_user))


@router.post("/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    item_in: CartItemAdd,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Add a product, or bump its quantity if it is already in the cart."""
    user_id = user_uuid(current_user)

    product = await db.get(Product, item_in.product_id)
    if not product or not product.is_active:
        raise HTTPException(status_code=404, detail="Product not found")

    query = select(CartItem).where(
        CartItem.user_id == user_id, CartItem.product_id == item_in.product_id
    )
    item = (await db.execute(query)).scalar_one_or_none()
    new_quantity = item_in.quantity + (item.quantity if item else 0)
    await _check_quantity(db, product, new_quantity)

    if item:
        item.quantity = new_quantity
    else:
        db.add(
            CartItem(user_id=user_id, product_id=product.id, quantity=item_in.quantity)
        )
    await db.commit()
    return await build_cart(db, user_id)


@router.patch("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: uuid.UUID,
    item_in: CartItemUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    user_id = user_uuid(current_user)
    item = await _get_cart_item(db, item_id, user_id)

    product = await db.get(Product, item.product_id)
    if product:
        await _check_quantity(db, product, item_in.quantity)

    item.quantity = item_in.quantity
    await db.commit()
    return await build_cart(db, user_id)


@router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(
    item_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    user_id = user_uuid(current_user)
    item = await _get_cart_item(db, item_id, user_id)
    await db.delete(item)
    await db.commit()
    return await build_cart(db, user_id)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    await db.execute(delete(CartItem).where(CartItem.user_id == user_uuid(current_user)))
    await db.commit()
    return None


@router.get("/offers", response_model=list[BxgyEligibilityResponse])
async def get_cart_offers(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Buy-X-get-Y offers the current cart qualifies for."""
    lines = await load_cart_lines(db, user_uuid(current_user))
    eligible = evaluate_bxgy_offers(
        await active_bxgy_offers(db), [line.priced() for line in lines]
    )
    return [
        BxgyEligibilityResponse(
            offer=BxgyOfferResponse.model_validate(e.offer),
            discount=e.discount,
            free_product=(
                ProductSummary.model_validate(e.free_product) if e.free_product else None
            ),
        )
        for e in eligible
    ]
