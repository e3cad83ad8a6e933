"""Product reviews: verified-purchase lookup, rating summaries and loading."""

import uuid
from typing import Iterable, Optional

from fastapi import HTTPException, status
from services.store_service.models import (
    Order,
    OrderItem,
    OrderStatus,
    Product,
    Profile,
    Review,
)
from services.store_service.schemas import RatingStats
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


def summarize_ratings(ratings: Iterable[int]) -> RatingStats:
    """Average, count and per-star distribution of a set of ratings."""
    stats = RatingStats()
    total = 0
    for rating in ratings:
        stats.distribution[rating] += 1
        stats.count += 1
        total += rating
    if stats.count:
        stats.average = round(total / stats.count, 2)
    return stats


async def delivered_order_for(
    db: AsyncSession, user_id: uuid.UUID, product_id: uuid.UUID
) -> Optional[uuid.UUID]:
    """Most recent delivered order of ``user_id`` containing the product."""
    result = await db.execute(
        select(Order.id)
        .join(OrderItem, OrderItem.order_id == Order.id)
        .where(
            Order.user_id == user_id,
            Order.status == OrderStatus.DELIVERED,
            OrderItem.product_id == product_id,
        )
        .order_by(Order.delivered_at.desc().nulls_last(), Order.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_active_product(db: AsyncSession, product_id: uuid.UUID) -> Product:
    product = await db.get(Product, product_id)
    if not product or not product.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )
    return product


async def get_review(
    db: AsyncSession, review_id: uuid.UUID, user_id: Optional[uuid.UUID] = None
) -> Review:
    query = select(Review).where(Review.id == review_id)
    if user_id is not None:
        query = query.where(Review.user_id == user_id)
    review = (await db.execute(query)).scalar_one_or_none()
    if not review:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Review not found",
        )
    return review


async def find_user_review(
    db: AsyncSession, product_id: uuid.UUID, user_id: uuid.UUID
) -> Optional[Review]:
    result = await db.execute(
        select(Review).where(Review.product_id == product_id, Review.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def approved_reviews(db: AsyncSession, product_id: uuid.UUID):
    """``(review, full_name, avatar_url)`` rows, newest first."""
    result = await db.execute(
        select(Review, Profile.full_name, Profile.avatar_url)
        .outerjoin(Profile, Profile.id == Review.user_id)
        .where(Review.product_id == product_id, Review.is_approved.is_(True))
        .order_by(Review.created_at.desc())
    )
    return result.all()


async def product_rating_stats(db: AsyncSession, product_id: uuid.UUID) -> RatingStats:
    result = await db.execute(
        select(Review.rating).where(
            Review.product_id == product_id, Review.is_approved.is_(True)
        )
    )
    return summarize_ratings(result.scalars().all())
