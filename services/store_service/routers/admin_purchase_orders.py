"""Admin suppliers and purchase orders router."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.models import (
    AuditEntityType,
    PurchaseOrder,
    PurchaseOrderStatus,
    Supplier,
)
from services.store_service.routers._helpers import log_audit
from services.store_service.schemas import (
    PurchaseOrderCreate,
    PurchaseOrderResponse,
    PurchaseOrderUpdate,
    ReceiveItemsRequest,
    SupplierCreate,
    SupplierResponse,
    SupplierUpdate,
)
from services.store_service.services import purchase_order_ops
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(tags=["admin-store"])


# ============================================================================
# SUPPLIERS
# ============================================================================


@router.get("/suppliers", response_model=list[SupplierResponse])
async def list_suppliers(
    include_inactive: bool = False,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(Supplier).order_by(Supplier.name)
    if not include_inactive:
        query = query.where(Supplier.is_active.is_(True))
    result = await db.execute(query)
    return result.scalars().all()


@router.post(
    "/suppliers", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED
)
async def create_supplier(
    supplier_in: SupplierCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    supplier = Supplier(**supplier_in.model_dump())
    db.add(supplier)
    await db.flush()

    await log_audit(
        db,
        AuditEntityType.SUPPLIER,
        supplier.id,
        "created",
        current_user.user_id,
        new_value={"name": supplier.name},
    )
    await db.commit()
    await db.refresh(supplier)
    return supplier


@router.patch("/suppliers/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: uuid.UUID,
    supplier_in: SupplierUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    supplier = await db.get(Supplier, supplier_id)
    if not supplier:
        raise HTTPException(status_code=404, detail="Supplier not found")

    for field, value in supplier_in.model_dump(exclude_unset=True).items():
        setattr(supplier, field, value)

    await db.commit()
    await db.refresh(supplier)
    return supplier


@router.delete("/suppliers/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_supplier(
    supplier_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a supplier that has no purchase orders."""
    supplier = await db.get(Supplier, supplier_id)
    if not supplier:
        raise HTTPException(status_code=404, detail="Supplier not found")

    try:
        await db.delete(supplier)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=400,
            detail="Supplier has purchase orders; deactivate it instead",
        )
    return None


# ============================================================================
# PURCHASE ORDERS
# ============================================================================


@router.get("/purchase-orders", response_model=list[PurchaseOrderResponse])
async def list_purchase_orders(
    status_filter: Optional[PurchaseOrderStatus] = None,
    supplier_id: Optional[uuid.UUID] = None,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(PurchaseOrder)
        .options(selectinload(PurchaseOrder.items))
        .order_by(PurchaseOrder.created_at.desc())
    )
    if status_filter:
        query = query.where(PurchaseOrder.status == status_filter)
    if supplier_id:
        query = query.where(PurchaseOrder.supplier_id == supplier_id)
    result = await db.execute(query)
    return result.scalars().all()


@router.post(
    "/purchase-orders",
    response_model=PurchaseOrderResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_purchase_order(
    po_in: PurchaseOrderCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    purchase_order = await purchase_order_ops.create_purchase_order(
        db, data=po_in, created_by=current_user.user_id
    )
    await log_audit(
        db,
        AuditEntityType.PURCHASE_ORDER,
        purchase_order.id,
        "created",
        current_user.user_id,
        new_value={
            "po_number": purchase_order.po_number,
            "total_amount": str(purchase_order.total_amount),
        },
    )
    await db.commit()
    return purchase_order


@router.get("/purchase-orders/{po_id}", response_model=PurchaseOrderResponse)
async def get_purchase_order(
    po_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await purchase_order_ops.get_purchase_order(db, po_id)


@router.patch("/purchase-orders/{po_id}", response_model=PurchaseOrderResponse)
async def update_purchase_order(
    po_id: uuid.UUID,
    po_in: PurchaseOrderUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    purchase_order = await purchase_order_ops.get_purchase_order(db, po_id)
    await log_audit(
        db,
        AuditEntityType.PURCHASE_ORDER,
        purchase_order.id,
        "updated",
        current_user.user_id,
        old_value={"status": purchase_order.status.value},
        new_value=po_in.model_dump(mode="json", exclude_unset=True),
    )
    return await purchase_order_ops.update_purchase_order(
        db, purchase_order=purchase_order, data=po_in
    )


@router.post("/purchase-orders/{po_id}/receive", response_model=PurchaseOrderResponse)
async def receive_purchase_order_items(
    po_id: uuid.UUID,
    receive_in: ReceiveItemsRequest,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Record received quantities and add the newly received units to stock."""
    purchase_order = await purchase_order_ops.get_purchase_order(db, po_id)
    return await purchase_order_ops.receive_items(
        db,
        purchase_order=purchase_order,
        received=receive_in.items,
        performed_by=current_user.user_id,
    )


@router.delete("/purchase-orders/{po_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_purchase_order(
    po_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    purchase_order = await purchase_order_ops.get_purchase_order(db, po_id)
    await log_audit(
        db,
        AuditEntityType.PURCHASE_ORDER,
        purchase_order.id,
        "deleted",
        current_user.user_id,
        old_value={"po_number": purchase_order.po_number},
    )
    await purchase_order_ops.delete_purchase_order(db, purchase_order)
    return None
