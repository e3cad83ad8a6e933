"""Integration tests for product reviews and their moderation."""

from datetime import datetime, timedelta, timezone

import pytest
from services.store_service.models import OrderStatus, StoreAuditLog
from sqlalchemy import select
from tests.factories import (
    OrderFactory,
    OrderItemFactory,
    ProductFactory,
    ProfileFactory,
    ReviewFactory,
)


async def _add(db_session, *rows):
    db_session.add_all(rows)
    await db_session.commit()
    return rows


async def _delivered_order(db_session, user_id, product):
    order = OrderFactory.create(
        user_id=user_id,
        status=OrderStatus.DELIVERED,
        delivered_at=datetime.now(timezone.utc),
    )
    await _add(db_session, order)
    await _add(db_session, OrderItemFactory.create(order_id=order.id, product_id=product.id))
    return order


@pytest.mark.asyncio
@pytest.mark.integration
async def test_public_reviews_and_rating_stats(store_client, db_session):
    product = ProductFactory.create()
    anita = ProfileFactory.create(full_name="Anita Rao", avatar_url="https://cdn/anita.png")
    await _add(db_session, product, anita)

    now = datetime.now(timezone.utc)
    await _add(
        db_session,
        ReviewFactory.create(
            product_id=product.id, user_id=anita.id, rating=5, created_at=now
        ),
        ReviewFactory.create(
            product_id=product.id, rating=4, created_at=now - timedelta(days=1)
        ),
        ReviewFactory.create(
            product_id=product.id, rating=4, created_at=now - timedelta(days=2)
        ),
        ReviewFactory.create(product_id=product.id, rating=1, is_approved=False),
    )

    response = await store_client.get(f"/store/products/{product.id}/reviews")
    assert response.status_code == 200, response.text
    reviews = response.json()
    assert [r["rating"] for r in reviews] == [5, 4, 4]
    assert reviews[0]["reviewer_name"] == "Anita Rao"
    assert reviews[0]["reviewer_avatar_url"] == "https://cdn/anita.png"
    assert reviews[1]["reviewer_name"] is None

    response = await store_client.get(f"/store/products/{product.id}/rating-stats")
    assert response.status_code == 200, response.text
    assert response.json() == {
        "average": 4.33,
        "count": 3,
        "distribution": {"1": 0, "2": 0, "3": 0, "4": 2, "5": 1},
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_rating_stats_without_reviews(store_client, db_session):
    product = ProductFactory.create()
    await _add(db_session, product)

    response = await store_client.get(f"/store/products/{product.id}/rating-stats")
    assert response.json() == {
        "average": 0,
        "count": 0,
        "distribution": {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0},
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_verified_purchase_review_flow(
    store_client, db_session, customer_id, customer_headers, admin_headers
):
    product = ProductFactory.create()
    await _add(db_session, product)
    order = await _delivered_order(db_session, customer_id, product)

    response = await store_client.get(
        f"/store/products/{product.id}/can-review", headers=customer_headers
    )
    assert response.status_code == 200, response.text
    assert response.json() == {
        "can_review": True,
        "is_verified_purchase": True,
        "has_reviewed": False,
    }

    response = await store_client.get(
        f"/store/products/{product.id}/reviews/mine", headers=customer_headers
    )
    assert response.status_code == 200
    assert response.json() is None

    response = await store_client.post(
        f"/store/products/{product.id}/reviews",
        json={"rating": 4, "title": "Lovely texture", "comment": "Absorbs fast"},
        headers=customer_headers,
    )
    assert response.status_code == 201, response.text
    review = response.json()
    assert review["is_verified_purchase"] is True
    assert review["order_id"] == str(order.id)
    assert review["is_approved"] is False

    # Pending moderation
    response = await store_client.get(f"/store/products/{product.id}/reviews")
    assert response.json() == []

    response = await store_client.post(
        f"/store/products/{product.id}/reviews",
        json={"rating": 5},
        headers=customer_headers,
    )
    assert response.status_code == 400
    assert response.json() == {"detail": "You have already reviewed this product"}

    response = await store_client.get(
        f"/store/products/{product.id}/can-review", headers=customer_headers
    )
    assert response.json()["can_review"] is False
    assert response.json()["has_reviewed"] is True

    response = await store_client.patch(
        f"/admin/store/reviews/{review['id']}",
        json={"is_approved": True, "admin_reply": "Thank you!"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["is_approved"] is True

    response = await store_client.get(f"/store/products/{product.id}/reviews")
    [public] = response.json()
    assert public["admin_reply"] == "Thank you!"

    # Editing sends the review back to moderation
    response = await store_client.patch(
        f"/store/reviews/{review['id']}",
        json={"rating": 5},
        headers=customer_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["rating"] == 5
    assert response.json()["is_approved"] is False

    response = await store_client.get(
        f"/store/products/{product.id}/reviews/mine", headers=customer_headers
    )
    assert response.json()["id"] == review["id"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_review_without_delivered_order_is_unverified(
    store_client, db_session, customer_id, customer_headers
):
    product = ProductFactory.create()
    await _add(db_session, product)
    pending = OrderFactory.create(user_id=customer_id, status=OrderStatus.SHIPPED)
    await _add(db_session, pending)
    await _add(db_session, OrderItemFactory.create(order_id=pending.id, product_id=product.id))

    response = await store_client.get(
        f"/store/products/{product.id}/can-review", headers=customer_headers
    )
    assert response.json()["is_verified_purchase"] is False

    response = await store_client.post(
        f"/store/products/{product.id}/reviews",
        json={"rating": 3},
        headers=customer_headers,
    )
    assert response.status_code == 201, response.text
    assert response.json()["is_verified_purchase"] is False
    assert response.json()["order_id"] is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_review_validation(store_client, db_session, customer_headers):
    product = ProductFactory.create()
    archived = ProductFactory.create(is_active=False)
    await _add(db_session, product, archived)

    response = await store_client.post(
        f"/store/products/{product.id}/reviews",
        json={"rating": 6},
        headers=customer_headers,
    )
    assert response.status_code == 422

    response = await store_client.post(
        f"/store/products/{archived.id}/reviews",
        json={"rating": 5},
        headers=customer_headers,
    )
    assert response.status_code == 404

    response = await store_client.post(
        f"/store/products/{product.id}/reviews", json={"rating": 5}
    )
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customers_only_change_their_own_reviews(
    store_client, db_session, customer_id, customer_headers, other_customer_headers
):
    product = ProductFactory.create()
    await _add(db_session, product)
    [mine] = await _add(
        db_session, ReviewFactory.create(product_id=product.id, user_id=customer_id)
    )

    response = await store_client.patch(
        f"/store/reviews/{mine.id}", json={"rating": 1}, headers=other_customer_headers
    )
    assert response.status_code == 404
    assert response.json() == {"detail": "Review not found"}

    response = await store_client.delete(
        f"/store/reviews/{mine.id}", headers=other_customer_headers
    )
    assert response.status_code == 404

    response = await store_client.delete(
        f"/store/reviews/{mine.id}", headers=customer_headers
    )
    assert response.status_code == 204

    response = await store_client.get(f"/store/products/{product.id}/reviews")
    assert response.json() == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_review_list_and_delete(
    store_client, db_session, admin_headers, customer_headers
):
    serum = ProductFactory.create(name="Vitamin C Serum")
    mask = ProductFactory.create(name="Clay Mask")
    meera = ProfileFactory.create(full_name="Meera", email="meera@glowmart.in")
    await _add(db_session, serum, mask, meera)
    approved, pending = await _add(
        db_session,
        ReviewFactory.create(product_id=serum.id, user_id=meera.id),
        ReviewFactory.create(product_id=mask.id, is_approved=False, rating=2),
    )

    response = await store_client.get("/admin/store/reviews", headers=customer_headers)
    assert response.status_code == 403

    response = await store_client.get("/admin/store/reviews", headers=admin_headers)
    assert response.status_code == 200, response.text
    assert len(response.json()) == 2

    response = await store_client.get(
        "/admin/store/reviews", params={"is_approved": "false"}, headers=admin_headers
    )
    [item] = response.json()
    assert item["id"] == str(pending.id)
    assert item["product_name"] == "Clay Mask"
    assert item["customer_name"] is None

    response = await store_client.get(
        "/admin/store/reviews", params={"product_id": str(serum.id)}, headers=admin_headers
    )
    [item] = response.json()
    assert item["customer_name"] == "Meera"
    assert item["customer_email"] == "meera@glowmart.in"
    assert item["product_name"] == "Vitamin C Serum"

    response = await store_client.delete(
        f"/admin/store/reviews/{approved.id}", headers=admin_headers
    )
    assert response.status_code == 204
    response = await store_client.delete(
        f"/admin/store/reviews/{approved.id}", headers=admin_headers
    )
    assert response.status_code == 404

    result = await db_session.execute(
        select(StoreAuditLog.action).where(StoreAuditLog.entity_id == approved.id)
    )
    assert result.scalars().all() == ["deleted"]
