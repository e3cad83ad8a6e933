"""Admin customer segments and their members."""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.rpc import call_rpc
from libs.db.session import get_async_db
from services.communications_service.models import (
    CustomerSegment,
    CustomerSegmentMember,
)
from services.communications_service.models.refs import profiles
from services.communications_service.routers._helpers import actor_uuid
from services.communications_service.schemas import (
    RefreshResponse,
    SegmentCreate,
    SegmentMemberAdd,
    SegmentMemberResponse,
    SegmentResponse,
    SegmentUpdate,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/segments", tags=["marketing"])


async def _get_segment(db: AsyncSession, segment_id: uuid.UUID) -> CustomerSegment:
    segment = await db.get(CustomerSegment, segment_id)
    if not segment:
        raise HTTPException(status_code=404, detail="Segment not found")
    return segment


async def _member_count(db: AsyncSession, segment_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count(CustomerSegmentMember.id)).where(
            CustomerSegmentMember.segment_id == segment_id
        )
    )
    return result.scalar() or 0


def _segment_response(segment: CustomerSegment, member_count: int) -> SegmentResponse:
    response = SegmentResponse.model_validate(segment)
    response.member_count = member_count
    return response


@router.get("", response_model=List[SegmentResponse])
async def list_segments(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Segments with their current member counts."""
    counts = (
        select(
            CustomerSegmentMember.segment_id,
            func.count(CustomerSegmentMember.id).label("member_count"),
        )
        .group_by(CustomerSegmentMember.segment_id)
        .subquery()
    )
    result = await db.execute(
        select(CustomerSegment, func.coalesce(counts.c.member_count, 0))
        .outerjoin(counts, counts.c.segment_id == CustomerSegment.id)
        .order_by(CustomerSegment.created_at.desc())
    )
    return [_segment_response(segment, count) for segment, count in result.all()]


@router.post("", response_model=SegmentResponse, status_code=status.HTTP_201_CREATED)
async def create_segment(
    segment_in: SegmentCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    segment = CustomerSegment(**segment_in.model_dump())
    db.add(segment)
    await db.commit()
    await db.refresh(segment)
    return _segment_response(segment, 0)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_segments(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Re-evaluate membership of every automatic segment in the database."""
    result = await call_rpc(db, "refresh_all_customer_segments")
    await db.commit()
    return RefreshResponse(result=result)


@router.get("/{segment_id}", response_model=SegmentResponse)
async def get_segment(
    segment_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    segment = await _get_segment(db, segment_id)
    return _segment_response(segment, await _member_count(db, segment_id))


@router.patch("/{segment_id}", response_model=SegmentResponse)
async def update_segment(
    segment_id: uuid.UUID,
    segment_in: SegmentUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    segment = await _get_segment(db, segment_id)
    for field, value in segment_in.model_dump(exclude_unset=True).items():
        setattr(segment, field, value)
    await db.commit()
    await db.refresh(segment)
    return _segment_response(segment, await _member_count(db, segment_id))


@router.delete("/{segment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_segment(
    segment_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    segment = await _get_segment(db, segment_id)
    await db.delete(segment)
    await db.commit()
    return None


# ===== MEMBERS =====


@router.get("/{segment_id}/members", response_model=List[SegmentMemberResponse])
async def list_segment_members(
    segment_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await _get_segment(db, segment_id)
    result = await db.execute(
        select(
            CustomerSegmentMember,
            profiles.c.email,
            profiles.c.full_name,
            profiles.c.phone,
        )
        .outerjoin(profiles, profiles.c.id == CustomerSegmentMember.customer_id)
        .where(CustomerSegmentMember.segment_id == segment_id)
        .order_by(CustomerSegmentMember.assigned_at.desc())
    )
    members = []
    for member, email, full_name, phone in result.all():
        response = SegmentMemberResponse.model_validate(member)
        response.email, response.full_name, response.phone = email, full_name, phone
        members.append(response)
    return members


@router.post(
    "/{segment_id}/members",
    response_model=SegmentMemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_segment_member(
    segment_id: uuid.UUID,
    member_in: SegmentMemberAdd,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await _get_segment(db, segment_id)
    existing = await db.execute(
        select(CustomerSegmentMember).where(
            CustomerSegmentMember.segment_id == segment_id,
            CustomerSegmentMember.customer_id == member_in.customer_id,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=400, detail="Customer is already in this segment"
        )

    member = CustomerSegmentMember(
        segment_id=segment_id,
        customer_id=member_in.customer_id,
        assigned_by=actor_uuid(current_user),
    )
    db.add(member)
    await db.commit()
    await db.refresh(member)
    return member


@router.delete(
    "/{segment_id}/members/{customer_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def remove_segment_member(
    segment_id: uuid.UUID,
    customer_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    result = await db.execute(
        select(CustomerSegmentMember).where(
            CustomerSegmentMember.segment_id == segment_id,
            CustomerSegmentMember.customer_id == customer_id,
        )
    )
    member = result.scalar_one_or_none()
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    await db.delete(member)
    await db.commit()
    return None
