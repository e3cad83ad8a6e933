"""Product recommendations router (storefront and admin)."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import get_current_user, require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.models import (
    Product,
    ProductRecommendation,
    RecommendationType,
)
from services.store_service.routers._helpers import user_uuid
from services.store_service.schemas import (
    GenerateRecommendationsResponse,
    ProductSummary,
    RecommendationCreate,
    RecommendationResponse,
)
from services.store_service.services import recommendation_ops
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

router = APIRouter(tags=["store"])
admin_router = APIRouter(prefix="/recommendations", tags=["admin-store"])


# ============================================================================
# STOREFRONT
# ============================================================================


@router.get(
    "/products/{product_id}/recommendations",
    response_model=list[RecommendationResponse],
)
async def get_product_recommendations(
    product_id: uuid.UUID,
    recommendation_type: Optional[RecommendationType] = None,
    db: AsyncSession = Depends(get_async_db),
):
    return await recommendation_ops.recommendations_for_product(
        db, product_id, recommendation_type
    )


@router.get("/recommendations/for-you", response_model=list[ProductSummary])
async def get_personalized_recommendations(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Products picked from the user's recently viewed items."""
    return await recommendation_ops.personalized_recommendations(
        db, user_uuid(current_user)
    )


@router.post("/products/{product_id}/view", status_code=status.HTTP_204_NO_CONTENT)
async def track_product_view(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    if not await db.get(Product, product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    await recommendation_ops.track_product_view(
        db, user_id=user_uuid(current_user), product_id=product_id
    )
    return None


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("", response_model=list[RecommendationResponse])
async def list_recommendations(
    product_id: Optional[uuid.UUID] = None,
    recommendation_type: Optional[RecommendationType] = None,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    query = (
        select(ProductRecommendation)
        .options(selectinload(ProductRecommendation.recommended_product))
        .order_by(ProductRecommendation.score.desc())
    )
    if product_id:
        query = query.where(ProductRecommendation.product_id == product_id)
    if recommendation_type:
        query = query.where(
            ProductRecommendation.recommendation_type == recommendation_type
        )
    result = await db.execute(query)
    return result.scalars().all()


@admin_router.post(
    "", response_model=RecommendationResponse, status_code=status.HTTP_201_CREATED
)
async def create_recommendation(
    rec_in: RecommendationCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Add a manual recommendation edge."""
    existing = await db.execute(
        select(ProductRecommendation).where(
            ProductRecommendation.product_id == rec_in.product_id,
            ProductRecommendation.recommended_product_id == rec_in.recommended_product_id,
            ProductRecommendation.recommendation_type == rec_in.recommendation_type,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Recommendation already exists")

    recommendation = ProductRecommendation(**rec_in.model_dump(), is_manual=True)
    db.add(recommendation)
    await db.commit()

    result = await db.execute(
        select(ProductRecommendation)
        .where(ProductRecommendation.id == recommendation.id)
        .options(selectinload(ProductRecommendation.recommended_product))
    )
    return result.scalar_one()


@admin_router.delete("/{recommendation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recommendation(
    recommendation_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    recommendation = await db.get(ProductRecommendation, recommendation_id)
    if not recommendation:
        raise HTTPException(status_code=404, detail="Recommendation not found")
    await db.delete(recommendation)
    await db.commit()
    return None


@admin_router.post("/generate", response_model=GenerateRecommendationsResponse)
async def generate_recommendations(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Rebuild frequently-bought-together scores from order history."""
    generated = await recommendation_ops.generate_recommendations(db)
    return GenerateRecommendationsResponse(generated=generated)
