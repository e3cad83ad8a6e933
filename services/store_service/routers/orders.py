"""Store orders router: checkout, order history, tracking and returns."""

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.models import Order, ReturnRequest
from services.store_service.pricing import build_tracking_timeline
from services.store_service.routers._helpers import user_uuid
from services.store_service.schemas import (
    CheckoutRequest,
    OrderCancelRequest,
    OrderListResponse,
    OrderResponse,
    OrderTrackingResponse,
    ReturnRequestCreate,
    ReturnRequestResponse,
    TimelineStepResponse,
)
from services.store_service.services import order_ops
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(tags=["store"])


# ============================================================================
# CHECKOUT
# ============================================================================


@router.post(
    "/checkout", response_model=OrderResponse, status_code=status.HTTP_201_CREATED
)
async def checkout(
    checkout_in: CheckoutRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Place an order from the current cart."""
    return await order_ops.checkout(
        db,
        user_id=user_uuid(current_user),
        request=checkout_in,
        email=current_user.email,
    )


# ============================================================================
# ORDERS
# ============================================================================


@router.get("/orders", response_model=OrderListResponse)
async def list_my_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List the current user's orders, newest first."""
    user_id = user_uuid(current_user)
    query = select(Order).where(Order.user_id == user_id)

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


@router.get("/orders/{order_number}", response_model=OrderResponse)
async def get_my_order(
    order_number: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await order_ops.get_order_with_items(
        db, order_number=order_number, user_id=user_uuid(current_user)
    )


@router.get("/orders/{order_number}/tracking", response_model=OrderTrackingResponse)
async def track_order(
    order_number: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Map the order status onto the placed/confirmed/shipped/delivered steps."""
    order = await order_ops.get_order_with_items(
        db, order_number=order_number, user_id=user_uuid(current_user)
    )
    timeline = build_tracking_timeline(order)
    return OrderTrackingResponse(
        order_number=order.order_number,
        status=timeline.status,
        terminal=timeline.terminal,
        tracking_number=order.tracking_number,
        tracking_url=order.tracking_url,
        steps=[
            TimelineStepResponse(
                key=step.key,
                label=step.label,
                completed=step.completed,
                current=step.current,
                at=step.at,
            )
            for step in timeline.steps
        ],
    )


@router.post("/orders/{order_number}/cancel", response_model=OrderResponse)
async def cancel_my_order(
    order_number: str,
    cancel_in: OrderCancelRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Cancel a pending or confirmed order."""
    order = await order_ops.get_order_with_items(
        db, order_number=order_number, user_id=user_uuid(current_user)
    )
    return await order_ops.cancel_order_for_customer(
        db, order=order, reason=cancel_in.reason
    )


# ============================================================================
# RETURNS / REPLACEMENTS
# ============================================================================


@router.post(
    "/orders/{order_number}/returns",
    response_model=ReturnRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_return(
    order_number: str,
    request_in: ReturnRequestCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    user_id = user_uuid(current_user)
    order = await order_ops.get_order_with_items(
        db, order_number=order_number, user_id=user_id
    )
    return await order_ops.create_return_request(
        db, order=order, user_id=user_id, request=request_in
    )


@router.get("/returns", response_model=list[ReturnRequestResponse])
async def list_my_returns(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(ReturnRequest)
        .where(ReturnRequest.user_id == user_uuid(current_user))
        .order_by(ReturnRequest.created_at.desc())
    )
    result = await db.execute(query)
    return result.scalars().all()
