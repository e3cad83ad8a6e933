"""Admin review moderation router."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.models import AuditEntityType, Product, Profile, Review
from services.store_service.routers._helpers import log_audit
from services.store_service.schemas import (
    AdminReviewResponse,
    ReviewModeration,
    ReviewResponse,
)
from services.store_service.services import review_ops
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])


@router.get("/reviews", response_model=list[AdminReviewResponse])
async def list_all_reviews(
    is_approved: Optional[bool] = None,
    product_id: Optional[uuid.UUID] = None,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """All reviews with customer and product names, newest first."""
    query = (
        select(Review, Profile.full_name, Profile.email, Product.name)
        .outerjoin(Profile, Profile.id == Review.user_id)
        .join(Product, Product.id == Review.product_id)
        .order_by(Review.created_at.desc())
    )
    if is_approved is not None:
        query = query.where(Review.is_approved == is_approved)
    if product_id is not None:
        query = query.where(Review.product_id == product_id)

    reviews = []
    for review, full_name, email, product_name in (await db.execute(query)).all():
        item = AdminReviewResponse.model_validate(review)
        item.customer_name = full_name
        item.customer_email = email
        item.product_name = product_name
        reviews.append(item)
    return reviews


@router.patch("/reviews/{review_id}", response_model=ReviewResponse)
async def moderate_review(
    review_id: uuid.UUID,
    moderation: ReviewModeration,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Approve or hide a review and set the public reply."""
    review = await review_ops.get_review(db, review_id)
    changes = moderation.model_dump(exclude_unset=True)
    old_values = {field: getattr(review, field) for field in changes}
    for field, value in changes.items():
        setattr(review, field, value)

    await log_audit(
        db,
        AuditEntityType.REVIEW,
        review.id,
        "moderated",
        current_user.user_id,
        old_value=old_values,
        new_value=changes,
    )
    await db.commit()
    await db.refresh(review)
    return review


@router.delete("/reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(
    review_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    review = await review_ops.get_review(db, review_id)
    await db.delete(review)
    await log_audit(
        db,
        AuditEntityType.REVIEW,
        review_id,
        "deleted",
        current_user.user_id,
        old_value={"product_id": str(review.product_id), "rating": review.rating},
    )
    await db.commit()
    return None
