"""Integration tests for the cart, checkout, order lifecycle and returns."""

from decimal import Decimal

import pytest
from services.store_service.models import StockMovement, StockMovementType
from sqlalchemy import select
from tests.factories import ProductFactory, ProfileFactory, shipping_address


async def _stocked_product(db_session, **overrides):
    product = ProductFactory.create(**overrides)
    db_session.add(product)
    await db_session.commit()
    return product


async def _place_order(store_client, headers, product_id, quantity=2):
    response = await store_client.post(
        "/store/cart/items",
        json={"product_id": str(product_id), "quantity": quantity},
        headers=headers,
    )
    assert response.status_code == 201, response.text

    response = await store_client.post(
        "/store/checkout",
        json={"shipping_address": shipping_address(), "payment_method": "cod"},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cart_requires_authentication(store_client):
    response = await store_client.get("/store/cart")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_to_cart_merges_quantities(store_client, db_session, customer_headers):
    product = await _stocked_product(db_session, stock_quantity=5, price=Decimal("599.00"))

    for _ in range(2):
        response = await store_client.post(
            "/store/cart/items",
            json={"product_id": str(product.id), "quantity": 2},
            headers=customer_headers,
        )
        assert response.status_code == 201, response.text

    cart = response.json()
    assert len(cart["items"]) == 1
    assert cart["item_count"] == 4
    assert Decimal(cart["subtotal"]) == Decimal("2396.00")
    assert Decimal(cart["total"]) == Decimal(cart["subtotal"]) + Decimal(cart["shipping"])


@pytest.mark.asyncio
@pytest.mark.integration
async def test_add_to_cart_beyond_stock_is_rejected(
    store_client, db_session, customer_headers
):
    product = await _stocked_product(db_session, stock_quantity=1)

    response = await store_client.post(
        "/store/cart/items",
        json={"product_id": str(product.id), "quantity": 3},
        headers=customer_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Only 1 in stock"


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_creates_order_and_decrements_stock(
    store_client, db_session, customer_headers, order_email_client
):
    product = await _stocked_product(db_session, stock_quantity=10, price=Decimal("599.00"))

    order = await _place_order(store_client, customer_headers, product.id, quantity=2)

    assert order["status"] == "pending"
    assert order["order_number"].startswith("GM-")
    assert Decimal(order["subtotal"]) == Decimal("1198.00")
    assert Decimal(order["total_amount"]) == (
        Decimal(order["subtotal"])
        - Decimal(order["discount_amount"])
        + Decimal(order["shipping_amount"])
    )
    assert order["items"][0]["quantity"] == 2
    assert order["items"][0]["hsn_code"] == "3304"

    await db_session.refresh(product)
    assert product.stock_quantity == 8

    result = await db_session.execute(
        select(StockMovement).where(StockMovement.product_id == product.id)
    )
    [movement] = result.scalars().all()
    assert movement.movement_type == StockMovementType.SALE
    assert movement.quantity == -2

    cart = (await store_client.get("/store/cart", headers=customer_headers)).json()
    assert cart["items"] == []

    order_email_client.send_order_email.assert_awaited_once()
    kwargs = order_email_client.send_order_email.await_args.kwargs
    assert kwargs["email"] == "customer@glowmart.in"
    assert kwargs["email_type"] == "order_placed"
    assert kwargs["customer_name"] == "Priya Sharma"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_with_empty_cart(store_client, customer_headers):
    response = await store_client.post(
        "/store/checkout",
        json={"shipping_address": shipping_address()},
        headers=customer_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Cart is empty"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_rejects_invalid_pincode(store_client, customer_headers):
    response = await store_client.post(
        "/store/checkout",
        json={"shipping_address": shipping_address(pincode="5600")},
        headers=customer_headers,
    )
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# Order lifecycle
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customer_cancel_restocks(store_client, db_session, customer_headers):
    product = await _stocked_product(db_session, stock_quantity=10)
    order = await _place_order(store_client, customer_headers, product.id, quantity=3)

    response = await store_client.post(
        f"/store/orders/{order['order_number']}/cancel",
        json={"reason": "Ordered by mistake"},
        headers=customer_headers,
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["status"] == "cancelled"
    assert data["cancel_reason"] == "Ordered by mistake"

    await db_session.refresh(product)
    assert product.stock_quantity == 10


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_ships_order_and_customer_tracks_it(
    store_client,
    db_session,
    customer_id,
    customer_headers,
    admin_headers,
    order_email_client,
):
    db_session.add(ProfileFactory.create(id=customer_id))
    product = await _stocked_product(db_session, stock_quantity=10)
    order = await _place_order(store_client, customer_headers, product.id)

    response = await store_client.patch(
        f"/admin/store/orders/{order['id']}/status",
        json={
            "status": "shipped",
            "tracking_number": "AWB123",
            "tracking_url": "https://track.glowmart.in/AWB123",
        },
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["tracking_number"] == "AWB123"

    response = await store_client.get(
        f"/store/orders/{order['order_number']}/tracking", headers=customer_headers
    )
    assert response.status_code == 200, response.text
    tracking = response.json()
    assert tracking["status"] == "shipped"
    assert [step["completed"] for step in tracking["steps"]] == [True, True, True, False]

    # Shipped orders can no longer be cancelled by the customer
    response = await store_client.post(
        f"/store/orders/{order['order_number']}/cancel",
        json={},
        headers=customer_headers,
    )
    assert response.status_code == 400

    email_types = [
        call.kwargs["email_type"]
        for call in order_email_client.send_order_email.await_args_list
    ]
    assert email_types == ["order_placed", "order_shipped"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customer_cannot_see_other_orders(
    store_client, db_session, customer_headers, other_customer_headers
):
    product = await _stocked_product(db_session, stock_quantity=10)
    order = await _place_order(store_client, customer_headers, product.id)

    response = await store_client.get(
        f"/store/orders/{order['order_number']}", headers=other_customer_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_endpoints_require_admin(store_client, customer_headers):
    response = await store_client.get("/admin/store/orders", headers=customer_headers)
    assert response.status_code == 403


# ---------------------------------------------------------------------------
# Returns
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_return_request_flow(
    store_client,
    db_session,
    customer_id,
    customer_headers,
    admin_headers,
    order_email_client,
):
    db_session.add(ProfileFactory.create(id=customer_id, email="priya@glowmart.in"))
    product = await _stocked_product(db_session, stock_quantity=10)
    order = await _place_order(store_client, customer_headers, product.id)

    # Not delivered yet
    response = await store_client.post(
        f"/store/orders/{order['order_number']}/returns",
        json={"reason": "Damaged"},
        headers=customer_headers,
    )
    assert response.status_code == 400

    response = await store_client.patch(
        f"/admin/store/orders/{order['id']}/status",
        json={"status": "delivered"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text

    response = await store_client.post(
        f"/store/orders/{order['order_number']}/returns",
        json={"reason": "Damaged", "request_type": "return"},
        headers=customer_headers,
    )
    assert response.status_code == 201, response.text
    request_id = response.json()["id"]

    # Only one open request per order
    response = await store_client.post(
        f"/store/orders/{order['order_number']}/returns",
        json={"reason": "Damaged again"},
        headers=customer_headers,
    )
    assert response.status_code == 400

    response = await store_client.patch(
        f"/admin/store/returns/{request_id}",
        json={"status": "approved", "refund_amount": "599.00", "admin_notes": "Pickup Monday"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "approved"

    order_email_client.send_request_status_email.assert_awaited_once()
    kwargs = order_email_client.send_request_status_email.await_args.kwargs
    assert kwargs["email"] == "priya@glowmart.in"
    assert kwargs["old_status"] == "pending"
    assert kwargs["new_status"] == "approved"
    assert kwargs["refund_amount"] == 599.0
