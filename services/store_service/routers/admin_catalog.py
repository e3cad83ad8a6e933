"""Admin catalog management: categories and products."""

import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.models import (
    AuditEntityType,
    Category,
    Product,
    StockMovementType,
)
from services.store_service.routers._helpers import log_audit
from services.store_service.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)
from services.store_service.services.inventory_ops import record_stock_change
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(tags=["admin-store"])


async def _ensure_unique(
    db: AsyncSession,
    column: Any,
    value: Any,
    detail: str,
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    model = column.class_
    query = select(model.id).where(column == value)
    if exclude_id is not None:
        query = query.where(model.id != exclude_id)
    if (await db.execute(query.limit(1))).first():
        raise HTTPException(status_code=400, detail=detail)


async def _check_parent(
    db: AsyncSession, parent_id: Optional[uuid.UUID], category_id: Optional[uuid.UUID]
) -> None:
    if parent_id is None:
        return
    if parent_id == category_id:
        raise HTTPException(status_code=400, detail="Category cannot be its own parent")
    if not await db.get(Category, parent_id):
        raise HTTPException(status_code=404, detail="Parent category not found")


def _discount_from_mrp(price: Decimal, mrp: Optional[Decimal]) -> Optional[Decimal]:
    if mrp is None:
        return None
    if price > mrp:
        raise HTTPException(status_code=400, detail="Price cannot exceed MRP")
    if mrp == 0:
        return Decimal("0")
    return ((mrp - price) / mrp * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# ============================================================================
# CATEGORIES
# ============================================================================


@router.get("/categories", response_model=list[CategoryResponse])
async def list_all_categories(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(select(Category).order_by(Category.sort_order, Category.name))
    return result.scalars().all()


@router.post(
    "/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED
)
async def create_category(
    category_in: CategoryCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await _ensure_unique(
        db, Category.slug, category_in.slug, "Category with this slug already exists"
    )
    await _check_parent(db, category_in.parent_id, None)

    category = Category(**category_in.model_dump())
    db.add(category)
    await db.flush()

    await log_audit(
        db,
        AuditEntityType.CATEGORY,
        category.id,
        "created",
        current_user.user_id,
        new_value=category_in.model_dump(mode="json"),
    )
    await db.commit()
    await db.refresh(category)
    return category


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: uuid.UUID,
    category_in: CategoryUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    category = await db.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    changes = category_in.model_dump(exclude_unset=True)
    if changes.get("slug") and changes["slug"] != category.slug:
        await _ensure_unique(
            db,
            Category.slug,
            changes["slug"],
            "Category with this slug already exists",
            exclude_id=category.id,
        )
    if "parent_id" in changes:
        await _check_parent(db, changes["parent_id"], category.id)

    old_values = {field: getattr(category, field) for field in changes}
    for field, value in changes.items():
        setattr(category, field, value)

    await log_audit(
        db,
        AuditEntityType.CATEGORY,
        category.id,
        "updated",
        current_user.user_id,
        old_value={k: str(v) if v is not None else None for k, v in old_values.items()},
        new_value=category_in.model_dump(mode="json", exclude_unset=True),
    )
    await db.commit()
    await db.refresh(category)
    return category


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def archive_category(
    category_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Archive a category. Refused while it still holds active products."""
    category = await db.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    active_products = (
        await db.execute(
            select(func.count(Product.id)).where(
                Product.category_id == category.id, Product.is_active.is_(True)
            )
        )
    ).scalar_one()
    if active_products:
        raise HTTPException(
            status_code=400,
            detail=f"Category has {active_products} active products",
        )

    category.is_active = False
    await log_audit(
        db, AuditEntityType.CATEGORY, category.id, "archived", current_user.user_id
    )
    await db.commit()
    return None


# ============================================================================
# PRODUCTS
# ============================================================================


@router.get("/products", response_model=ProductListResponse)
async def list_all_products(
    search: Optional[str] = None,
    category_id: Optional[uuid.UUID] = None,
    is_active: Optional[bool] = None,
    low_stock_only: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """All products including archived ones; low-stock lists lowest stock first."""
    filters = []
    if is_active is not None:
        filters.append(Product.is_active == is_active)
    if category_id is not None:
        filters.append(Product.category_id == category_id)
    if low_stock_only:
        filters.append(Product.stock_quantity <= Product.low_stock_threshold)
    if search:
        term = f"%{search}%"
        filters.append(
            Product.name.ilike(term) | Product.sku.ilike(term) | Product.hsn_code.ilike(term)
        )

    total = (await db.execute(select(func.count(Product.id)).where(*filters))).scalar_one()

    ordering = (
        (Product.stock_quantity.asc(), Product.name)
        if low_stock_only
        else (Product.created_at.desc(),)
    )
    result = await db.execute(
        select(Product)
        .where(*filters)
        .order_by(*ordering)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED
)
async def create_product(
    product_in: ProductCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a product; opening stock is recorded as a restock movement."""
    await _ensure_unique(
        db, Product.slug, product_in.slug, "Product with this slug already exists"
    )
    if product_in.sku:
        await _ensure_unique(
            db, Product.sku, product_in.sku, "Product with this SKU already exists"
        )

    data = product_in.model_dump(exclude={"stock_quantity"})
    if data["discount_percent"] is None:
        data["discount_percent"] = _discount_from_mrp(product_in.price, product_in.mrp)
    else:
        _discount_from_mrp(product_in.price, product_in.mrp)

    product = Product(**data, stock_quantity=0)
    db.add(product)
    await db.flush()

    if product_in.stock_quantity:
        record_stock_change(
            db,
            product,
            product_in.stock_quantity,
            movement_type=StockMovementType.RESTOCK,
            reason="Opening stock",
            created_by=current_user.user_id,
        )

    await log_audit(
        db,
        AuditEntityType.PRODUCT,
        product.id,
        "created",
        current_user.user_id,
        new_value=product_in.model_dump(mode="json"),
    )
    await db.commit()
    await db.refresh(product)
    logger.info(
        f"Product {product.sku or product.slug} created",
        extra={"extra_fields": {"product_id": str(product.id)}},
    )
    return product


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product_admin(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    product_in: ProductUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Update product fields. Stock changes go through the inventory endpoints.

    Changing price or MRP without an explicit ``discount_percent`` recomputes it.
    """
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    changes = product_in.model_dump(exclude_unset=True)
    if changes.get("slug") and changes["slug"] != product.slug:
        await _ensure_unique(
            db,
            Product.slug,
            changes["slug"],
            "Product with this slug already exists",
            exclude_id=product.id,
        )
    if changes.get("sku") and changes["sku"] != product.sku:
        await _ensure_unique(
            db,
            Product.sku,
            changes["sku"],
            "Product with this SKU already exists",
            exclude_id=product.id,
        )

    if "price" in changes or "mrp" in changes:
        price = changes.get("price", product.price)
        mrp = changes.get("mrp", product.mrp)
        derived = _discount_from_mrp(Decimal(price), Decimal(mrp) if mrp is not None else None)
        changes.setdefault("discount_percent", derived)

    old_values = {
        field: str(getattr(product, field)) if getattr(product, field) is not None else None
        for field in changes
    }
    for field, value in changes.items():
        setattr(product, field, value)

    await log_audit(
        db,
        AuditEntityType.PRODUCT,
        product.id,
        "updated",
        current_user.user_id,
        old_value=old_values,
        new_value=product_in.model_dump(mode="json", exclude_unset=True),
    )
    await db.commit()
    await db.refresh(product)
    return product


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def archive_product(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    product.is_active = False
    await log_audit(
        db, AuditEntityType.PRODUCT, product.id, "archived", current_user.user_id
    )
    await db.commit()
    return None
