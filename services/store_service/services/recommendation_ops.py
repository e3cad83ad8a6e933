"""
Product recommendations: co-occurrence generation and lookups.

``count_co_occurrences`` and ``build_frequently_bought_edges`` are pure and
work on plain ``(order_id, product_id)`` pairs; the async functions wrap them
with database reads and writes.
"""

import uuid
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from itertools import combinations
from typing import Any, Iterable, Optional

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.store_service.models import (
    OrderItem,
    Product,
    ProductRecommendation,
    RecommendationType,
    UserProductView,
)
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

MIN_CO_OCCURRENCE = 2
PRODUCT_RECOMMENDATION_LIMIT = 10
RECENT_VIEWS_LIMIT = 5
PERSONALIZED_CANDIDATES_LIMIT = 12
PERSONALIZED_LIMIT = 8


@dataclass(frozen=True)
class RecommendationEdge:
    product_id: Any
    recommended_product_id: Any
    score: int
    recommendation_type: RecommendationType = RecommendationType.FREQUENTLY_BOUGHT
    is_manual: bool = False


# ============================================================================
# CO-OCCURRENCE
# ============================================================================


def count_co_occurrences(order_items: Iterable[tuple[Any, Any]]) -> Counter:
    """Count how often each unordered product pair appears in the same order.

    Keys are sorted ``(a, b)`` tuples. Orders with a single line are ignored.
    Pairs are taken by line position, so a product listed twice in one order
    pairs with itself.
    """
    products_by_order: dict[Any, list[Any]] = {}
    for order_id, product_id in order_items:
        if product_id is None:
            continue
        products_by_order.setdefault(order_id, []).append(product_id)

    pair_counts: Counter = Counter()
    for product_ids in products_by_order.values():
        if len(product_ids) < 2:
            continue
        for first, second in combinations(product_ids, 2):
            key = tuple(sorted((first, second), key=str))
            pair_counts[key] += 1
    return pair_counts


def build_frequently_bought_edges(
    pair_counts: dict, min_count: int = MIN_CO_OCCURRENCE
) -> list[RecommendationEdge]:
    """Turn pair counts into bidirectional ``frequently_bought`` edges."""
    edges: list[RecommendationEdge] = []
    for (product_a, product_b), count in pair_counts.items():
        if count < min_count or product_a == product_b:
            continue
        edges.append(RecommendationEdge(product_a, product_b, count))
        edges.append(RecommendationEdge(product_b, product_a, count))
    return edges


async def generate_recommendations(db: AsyncSession) -> int:
    """Rebuild ``frequently_bought`` scores from order history.

    Existing edges get their score updated; edges for pairs that no longer
    qualify are left in place. Returns the number of edges written.
    """
    result = await db.execute(
        select(OrderItem.order_id, OrderItem.product_id).order_by(OrderItem.order_id)
    )
    pair_counts = count_co_occurrences(result.all())
    edges = build_frequently_bought_edges(pair_counts)

    if not edges:
        logger.info("No product pairs met the co-occurrence threshold")
        return 0

    stmt = insert(ProductRecommendation).values(
        [
            {
                "id": uuid.uuid4(),
                "product_id": edge.product_id,
                "recommended_product_id": edge.recommended_product_id,
                "recommendation_type": edge.recommendation_type,
                "score": Decimal(edge.score),
                "is_manual": edge.is_manual,
            }
            for edge in edges
        ]
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["product_id", "recommended_product_id", "recommendation_type"],
        set_={"score": stmt.excluded.score, "updated_at": utc_now()},
    )
    await db.execute(stmt)
    await db.commit()

    logger.info(
        f"Generated {len(edges)} recommendation edges from {len(pair_counts)} pairs"
    )
    return len(edges)


# ============================================================================
# LOOKUPS
# ============================================================================


async def recommendations_for_product(
    db: AsyncSession,
    product_id: uuid.UUID,
    recommendation_type: Optional[RecommendationType] = None,
) -> list[ProductRecommendation]:
    """Top-scored recommendations for a product, skipping inactive targets."""
    query = (
        select(ProductRecommendation)
        .where(ProductRecommendation.product_id == product_id)
        .options(selectinload(ProductRecommendation.recommended_product))
        .order_by(ProductRecommendation.score.desc())
        .limit(PRODUCT_RECOMMENDATION_LIMIT)
    )
    if recommendation_type:
        query = query.where(
            ProductRecommendation.recommendation_type == recommendation_type
        )
    result = await db.execute(query)
    return [
        rec
        for rec in result.scalars().all()
        if rec.recommended_product is None or rec.recommended_product.is_active
    ]


async def personalized_recommendations(
    db: AsyncSession, user_id: uuid.UUID
) -> list[Product]:
    """Products recommended from the user's recent views.

    Falls back to the newest active products when there is no view history.
    """
    views = await db.execute(
        select(UserProductView.product_id)
        .where(UserProductView.user_id == user_id)
        .order_by(UserProductView.last_viewed_at.desc())
        .limit(RECENT_VIEWS_LIMIT)
    )
    viewed_ids = list(views.scalars().all())

    if not viewed_ids:
        newest = await db.execute(
            select(Product)
            .where(Product.is_active.is_(True))
            .order_by(Product.created_at.desc())
            .limit(PERSONALIZED_LIMIT)
        )
        return list(newest.scalars().all())

    result = await db.execute(
        select(ProductRecommendation)
        .where(ProductRecommendation.product_id.in_(viewed_ids))
        .options(selectinload(ProductRecommendation.recommended_product))
        .order_by(ProductRecommendation.score.desc())
        .limit(PERSONALIZED_CANDIDATES_LIMIT)
    )

    seen: set[uuid.UUID] = set()
    products: list[Product] = []
    for rec in result.scalars().all():
        product = rec.recommended_product
        if product and product.is_active and product.id not in seen:
            seen.add(product.id)
            products.append(product)
    return products[:PERSONALIZED_LIMIT]


async def track_product_view(
    db: AsyncSession, *, user_id: uuid.UUID, product_id: uuid.UUID
) -> None:
    stmt = insert(UserProductView).values(
        id=uuid.uuid4(),
        user_id=user_id,
        product_id=product_id,
        view_count=1,
        last_viewed_at=utc_now(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "product_id"],
        set_={
            "view_count": UserProductView.view_count + 1,
            "last_viewed_at": stmt.excluded.last_viewed_at,
        },
    )
    await db.execute(stmt)
    await db.commit()
