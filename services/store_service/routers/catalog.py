"""Storefront catalog: category tree and product browsing."""

import uuid
from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from libs.db.session import get_async_db
from services.store_service.models import Category, Product
from services.store_service.schemas import (
    StorefrontCategory,
    StorefrontProduct,
    StorefrontProductList,
)
from services.store_service.services.order_ops import active_flash_prices
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])

ProductSort = Literal["featured", "newest", "price_asc", "price_desc", "name"]

SORT_ORDERS = {
    "featured": (Product.is_featured.desc(), Product.created_at.desc()),
    "newest": (Product.created_at.desc(),),
    "price_asc": (Product.price.asc(), Product.name),
    "price_desc": (Product.price.desc(), Product.name),
    "name": (Product.name,),
}


async def _storefront_products(
    db: AsyncSession, products: list[Product]
) -> list[StorefrontProduct]:
    flash = await active_flash_prices(db, [p.id for p in products])
    items = []
    for product in products:
        item = StorefrontProduct.model_validate(product)
        item.in_stock = product.stock_quantity > 0
        if product.id in flash:
            item.sale_price = flash[product.id].price
            item.flash_sale_id = flash[product.id].flash_sale_id
        items.append(item)
    return items


@router.get("/categories", response_model=list[StorefrontCategory])
async def list_categories(
    parent_id: Optional[uuid.UUID] = None,
    db: AsyncSession = Depends(get_async_db),
):
    """Active categories with the number of active products in each.

    Pass ``parent_id`` to list only the children of one category.
    """
    product_count = (
        select(func.count(Product.id))
        .where(Product.category_id == Category.id, Product.is_active.is_(True))
        .correlate(Category)
        .scalar_subquery()
    )
    query = select(Category, product_count).where(Category.is_active.is_(True))
    if parent_id is not None:
        query = query.where(Category.parent_id == parent_id)
    query = query.order_by(Category.sort_order, Category.name)

    rows = (await db.execute(query)).all()
    categories = []
    for category, count in rows:
        item = StorefrontCategory.model_validate(category)
        item.product_count = count or 0
        categories.append(item)
    return categories


@router.get("/categories/{slug}", response_model=StorefrontCategory)
async def get_category(
    slug: str,
    db: AsyncSession = Depends(get_async_db),
):
    category = (
        await db.execute(
            select(Category).where(Category.slug == slug, Category.is_active.is_(True))
        )
    ).scalar_one_or_none()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    count = (
        await db.execute(
            select(func.count(Product.id)).where(
                Product.category_id == category.id, Product.is_active.is_(True)
            )
        )
    ).scalar_one()
    item = StorefrontCategory.model_validate(category)
    item.product_count = count
    return item


@router.get("/products", response_model=StorefrontProductList)
async def list_products(
    category_slug: Optional[str] = None,
    search: Optional[str] = None,
    featured: Optional[bool] = None,
    trending: Optional[bool] = None,
    in_stock: Optional[bool] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    sort: ProductSort = "featured",
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
):
    """Browse active products.

    Price filters and price sorting use the list price; a live flash-sale
    price is reported alongside as ``sale_price``.
    """
    filters = [Product.is_active.is_(True)]
    if category_slug:
        category_ids = select(Category.id).where(Category.slug == category_slug)
        filters.append(Product.category_id.in_(category_ids))
    if search:
        term = f"%{search}%"
        filters.append(
            Product.name.ilike(term)
            | Product.description.ilike(term)
            | Product.sku.ilike(term)
        )
    if featured is not None:
        filters.append(Product.is_featured == featured)
    if trending is not None:
        filters.append(Product.is_trending == trending)
    if in_stock is True:
        filters.append(Product.stock_quantity > 0)
    elif in_stock is False:
        filters.append(Product.stock_quantity <= 0)
    if min_price is not None:
        filters.append(Product.price >= min_price)
    if max_price is not None:
        filters.append(Product.price <= max_price)

    total = (
        await db.execute(select(func.count(Product.id)).where(*filters))
    ).scalar_one()

    result = await db.execute(
        select(Product)
        .where(*filters)
        .order_by(*SORT_ORDERS[sort])
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    products = list(result.scalars().all())

    return StorefrontProductList(
        items=await _storefront_products(db, products),
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/products/{slug}", response_model=StorefrontProduct)
async def get_product(
    slug: str,
    db: AsyncSession = Depends(get_async_db),
):
    product = (
        await db.execute(
            select(Product).where(Product.slug == slug, Product.is_active.is_(True))
        )
    ).scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    (item,) = await _storefront_products(db, [product])
    return item
