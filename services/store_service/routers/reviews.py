"""Storefront reviews router: approved reviews, rating stats and own reviews."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.models import Review
from services.store_service.routers._helpers import user_uuid
from services.store_service.schemas import (
    CanReviewResponse,
    PublicReviewResponse,
    RatingStats,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
)
from services.store_service.services import review_ops
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(tags=["store"])


@router.get(
    "/products/{product_id}/reviews", response_model=list[PublicReviewResponse]
)
async def list_product_reviews(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    """Approved reviews with the reviewer's name and avatar, newest first."""
    rows = await review_ops.approved_reviews(db, product_id)
    reviews = []
    for review, full_name, avatar_url in rows:
        item = PublicReviewResponse.model_validate(review)
        item.reviewer_name = full_name
        item.reviewer_avatar_url = avatar_url
        reviews.append(item)
    return reviews


@router.get("/products/{product_id}/rating-stats", response_model=RatingStats)
async def get_rating_stats(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    return await review_ops.product_rating_stats(db, product_id)


@router.get(
    "/products/{product_id}/reviews/mine", response_model=Optional[ReviewResponse]
)
async def get_my_review(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """The caller's review of a product, approved or not; null if none."""
    return await review_ops.find_user_review(db, product_id, user_uuid(current_user))


@router.get("/products/{product_id}/can-review", response_model=CanReviewResponse)
async def can_review(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Anyone signed in may review once; a delivered order marks it verified."""
    user_id = user_uuid(current_user)
    existing = await review_ops.find_user_review(db, product_id, user_id)
    order_id = await review_ops.delivered_order_for(db, user_id, product_id)
    return CanReviewResponse(
        can_review=existing is None,
        is_verified_purchase=order_id is not None,
        has_reviewed=existing is not None,
    )


@router.post(
    "/products/{product_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_review(
    product_id: uuid.UUID,
    review_in: ReviewCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Submit a review. It stays hidden until an admin approves it."""
    user_id = user_uuid(current_user)
    await review_ops.get_active_product(db, product_id)

    if await review_ops.find_user_review(db, product_id, user_id):
        raise HTTPException(
            status_code=400, detail="You have already reviewed this product"
        )

    order_id = await review_ops.delivered_order_for(db, user_id, product_id)
    review = Review(
        product_id=product_id,
        user_id=user_id,
        order_id=order_id,
        is_verified_purchase=order_id is not None,
        **review_in.model_dump(),
    )
    db.add(review)
    await db.commit()
    await db.refresh(review)

    logger.info(f"Review {review.id} submitted for product {product_id}")
    return review


@router.patch("/reviews/{review_id}", response_model=ReviewResponse)
async def update_my_review(
    review_id: uuid.UUID,
    review_in: ReviewUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Edit your own review; an edited review goes back to moderation."""
    review = await review_ops.get_review(db, review_id, user_uuid(current_user))
    changes = review_in.model_dump(exclude_unset=True)
    if "rating" in changes and changes["rating"] is None:
        raise HTTPException(status_code=400, detail="Rating cannot be empty")

    for field, value in changes.items():
        setattr(review, field, value)
    if changes:
        review.is_approved = False

    await db.commit()
    await db.refresh(review)
    return review


@router.delete("/reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_review(
    review_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    review = await review_ops.get_review(db, review_id, user_uuid(current_user))
    await db.delete(review)
    await db.commit()
    return None
