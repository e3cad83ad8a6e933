"""Admin store orders router: order management and return requests."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.models import (
    AuditEntityType,
    Order,
    OrderStatus,
    PaymentStatus,
    ReturnRequest,
    ReturnRequestStatus,
)
from services.store_service.routers._helpers import log_audit
from services.store_service.schemas import (
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    ReturnRequestResponse,
    ReturnRequestUpdate,
)
from services.store_service.services import order_ops
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(tags=["admin-store"])


# ============================================================================
# ORDERS
# ============================================================================


@router.get("/orders", response_model=OrderListResponse)
async def list_all_orders(
    status_filter: Optional[OrderStatus] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all orders."""
    query = select(Order)

    if status_filter:
        query = query.where(Order.status == status_filter)
    if search:
        query = query.where(Order.order_number.ilike(f"%{search}%"))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = (
        query.options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(query)
    orders = result.scalars().all()

    return OrderListResponse(
        items=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order_admin(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Get order detail (admin)."""
    return await order_ops.get_order_with_items(db, order_id=order_id)


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    status_update: OrderStatusUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Update order status and email the customer."""
    order = await order_ops.get_order_with_items(db, order_id=order_id)

    await log_audit(
        db,
        AuditEntityType.ORDER,
        order.id,
        "status_changed",
        current_user.user_id,
        old_value={"status": order.status.value},
        new_value=status_update.model_dump(mode="json", exclude_none=True),
        notes=status_update.cancel_reason,
    )
    return await order_ops.update_order_status(db, order=order, update=status_update)


@router.post("/orders/{order_id}/mark-paid", response_model=OrderResponse)
async def mark_order_paid(
    order_id: uuid.UUID,
    payment_id: Optional[str] = None,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Mark an order's payment as received (COD collection, manual capture)."""
    order = await order_ops.get_order_with_items(db, order_id=order_id)

    if order.payment_status == PaymentStatus.PAID:
        return order

    old_status = order.payment_status
    order.payment_status = PaymentStatus.PAID
    if payment_id:
        order.payment_id = payment_id

    await log_audit(
        db,
        AuditEntityType.ORDER,
        order.id,
        "payment_confirmed",
        current_user.user_id,
        old_value={"payment_status": old_status.value},
        new_value={"payment_status": PaymentStatus.PAID.value},
    )
    await db.commit()
    return await order_ops.get_order_with_items(db, order_id=order.id)


# ============================================================================
# RETURN / REPLACE REQUESTS
# ============================================================================


@router.get("/returns", response_model=list[ReturnRequestResponse])
async def list_return_requests(
    status_filter: Optional[ReturnRequestStatus] = None,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = select(ReturnRequest).order_by(ReturnRequest.created_at.desc())
    if status_filter:
        query = query.where(ReturnRequest.status == status_filter)
    result = await db.execute(query)
    return result.scalars().all()


@router.patch("/returns/{request_id}", response_model=ReturnRequestResponse)
async def update_return_request(
    request_id: uuid.UUID,
    update_in: ReturnRequestUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Update a return/replace request; status changes email the customer."""
    return_request = await db.get(ReturnRequest, request_id)
    if not return_request:
        raise HTTPException(status_code=404, detail="Return request not found")

    await log_audit(
        db,
        AuditEntityType.RETURN_REQUEST,
        return_request.id,
        "updated",
        current_user.user_id,
        old_value={"status": return_request.status.value},
        new_value=update_in.model_dump(mode="json", exclude_unset=True),
    )
    return await order_ops.update_return_request(
        db, return_request=return_request, update=update_in
    )
