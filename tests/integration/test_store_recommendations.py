"""Integration tests for recommendation generation and lookups."""

import pytest
from tests.factories import OrderFactory, OrderItemFactory, ProductFactory


async def _order_with(db_session, *products):
    order = OrderFactory.create()
    order.items = [
        OrderItemFactory.create(product_id=product.id, product_name=product.name)
        for product in products
    ]
    db_session.add(order)
    await db_session.commit()
    return order


@pytest.mark.asyncio
@pytest.mark.integration
async def test_generate_from_order_history(store_client, db_session, admin_headers):
    serum = ProductFactory.create(name="Vitamin C Serum")
    sunscreen = ProductFactory.create(name="SPF 50 Sunscreen")
    toner = ProductFactory.create(name="Rose Toner")
    db_session.add_all([serum, sunscreen, toner])
    await db_session.commit()

    await _order_with(db_session, serum, sunscreen)
    await _order_with(db_session, serum, sunscreen)
    await _order_with(db_session, serum, toner)

    response = await store_client.post(
        "/admin/store/recommendations/generate", headers=admin_headers
    )
    assert response.status_code == 200, response.text
    assert response.json() == {"generated": 2}

    # Regenerating updates scores in place
    response = await store_client.post(
        "/admin/store/recommendations/generate", headers=admin_headers
    )
    assert response.json() == {"generated": 2}

    response = await store_client.get(f"/store/products/{serum.id}/recommendations")
    assert response.status_code == 200, response.text
    [rec] = response.json()
    assert rec["recommended_product_id"] == str(sunscreen.id)
    assert rec["recommendation_type"] == "frequently_bought"
    assert float(rec["score"]) == 2.0
    assert rec["is_manual"] is False

    response = await store_client.get(f"/store/products/{toner.id}/recommendations")
    assert response.json() == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_manual_recommendation(store_client, db_session, admin_headers):
    cleanser = ProductFactory.create(name="Gel Cleanser")
    moisturiser = ProductFactory.create(name="Daily Moisturiser")
    db_session.add_all([cleanser, moisturiser])
    await db_session.commit()

    payload = {
        "product_id": str(cleanser.id),
        "recommended_product_id": str(moisturiser.id),
        "recommendation_type": "complementary",
    }
    response = await store_client.post(
        "/admin/store/recommendations", json=payload, headers=admin_headers
    )
    assert response.status_code == 201, response.text
    assert response.json()["is_manual"] is True
    assert response.json()["recommended_product"]["name"] == "Daily Moisturiser"

    response = await store_client.post(
        "/admin/store/recommendations", json=payload, headers=admin_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_self_recommendation_is_rejected(store_client, admin_headers):
    from uuid import uuid4

    product_id = str(uuid4())
    response = await store_client.post(
        "/admin/store/recommendations",
        json={
            "product_id": product_id,
            "recommended_product_id": product_id,
            "recommendation_type": "similar",
        },
        headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_for_you_uses_viewed_products(
    store_client, db_session, customer_headers, admin_headers
):
    serum = ProductFactory.create(name="Niacinamide Serum")
    mask = ProductFactory.create(name="Clay Mask")
    db_session.add_all([serum, mask])
    await db_session.commit()

    response = await store_client.post(
        "/admin/store/recommendations",
        json={
            "product_id": str(serum.id),
            "recommended_product_id": str(mask.id),
            "recommendation_type": "cross_sell",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text

    for _ in range(2):
        response = await store_client.post(
            f"/store/products/{serum.id}/view", headers=customer_headers
        )
        assert response.status_code == 204

    response = await store_client.get(
        "/store/recommendations/for-you", headers=customer_headers
    )
    assert response.status_code == 200, response.text
    assert [p["id"] for p in response.json()] == [str(mask.id)]
