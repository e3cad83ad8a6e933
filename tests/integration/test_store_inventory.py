"""Integration tests for the admin inventory endpoints."""

import uuid

import pytest
from services.store_service.models import StockMovement
from sqlalchemy import select
from tests.factories import ProductFactory


async def _product(db_session, **overrides):
    product = ProductFactory.create(**overrides)
    db_session.add(product)
    await db_session.commit()
    return product


@pytest.mark.asyncio
@pytest.mark.integration
async def test_inventory_requires_admin(store_client, customer_headers):
    response = await store_client.get(
        "/admin/store/inventory/summary", headers=customer_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_adjust_stock(store_client, db_session, admin_headers):
    product = await _product(db_session, stock_quantity=20)

    response = await store_client.post(
        "/admin/store/inventory/adjust",
        json={
            "product_id": str(product.id),
            "quantity": -3,
            "movement_type": "damage",
            "reason": "Leaking bottles",
        },
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json() == {
        "product_id": str(product.id),
        "previous_quantity": 20,
        "new_quantity": 17,
    }

    response = await store_client.get(
        "/admin/store/inventory/movements",
        params={"product_id": str(product.id)},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    [movement] = response.json()
    assert movement["movement_type"] == "damage"
    assert movement["quantity"] == -3
    assert movement["reason"] == "Leaking bottles"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_adjust_unknown_product(store_client, admin_headers):
    response = await store_client.post(
        "/admin/store/inventory/adjust",
        json={"product_id": str(uuid.uuid4()), "quantity": 1, "reason": "Recount"},
        headers=admin_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_bulk_restock(store_client, db_session, admin_headers):
    first = await _product(db_session, stock_quantity=0)
    second = await _product(db_session, stock_quantity=4)

    response = await store_client.post(
        "/admin/store/inventory/restock",
        json={
            "items": [
                {"product_id": str(first.id), "quantity": 12},
                {"product_id": str(second.id), "quantity": 6},
            ]
        },
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json() == {"restocked": 2}

    await db_session.refresh(first)
    await db_session.refresh(second)
    assert first.stock_quantity == 12
    assert second.stock_quantity == 10


@pytest.mark.asyncio
@pytest.mark.integration
async def test_inventory_summary(store_client, db_session, admin_headers):
    await _product(db_session, stock_quantity=0)
    await _product(db_session, stock_quantity=3, low_stock_threshold=5)
    await _product(db_session, stock_quantity=40, low_stock_threshold=5)

    response = await store_client.get(
        "/admin/store/inventory/summary", headers=admin_headers
    )
    assert response.status_code == 200, response.text
    assert response.json() == {
        "total_products": 3,
        "out_of_stock": 1,
        "low_stock": 1,
        "in_stock": 1,
        "total_units": 43,
    }


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_export_inventory_csv(store_client, db_session, admin_headers):
    await _product(db_session, sku="EXP-SERUM", name="Glow Serum", stock_quantity=7)

    response = await store_client.get(
        "/admin/store/inventory/export", headers=admin_headers
    )
    assert response.status_code == 200, response.text
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=inventory_" in response.headers["content-disposition"]

    lines = response.text.splitlines()
    assert lines[0].startswith('"SKU",')
    assert any(line.startswith('"EXP-SERUM",') for line in lines[1:])


@pytest.mark.asyncio
@pytest.mark.integration
async def test_import_template(store_client, admin_headers):
    response = await store_client.get(
        "/admin/store/inventory/import-template", headers=admin_headers
    )
    assert response.status_code == 200, response.text
    assert '"SKU","Adjustment Type","New Stock"' in response.text


@pytest.mark.asyncio
@pytest.mark.integration
async def test_import_inventory_csv(store_client, db_session, admin_headers):
    serum = await _product(db_session, sku="CSV-SERUM", stock_quantity=10)
    toner = await _product(db_session, sku="CSV-TONER", stock_quantity=10)

    csv_text = (
        "SKU,Adjustment Type,New Stock\n"
        "CSV-SERUM,add,5\n"
        "CSV-TONER,set,2\n"
        "CSV-NOPE,set,9\n"
    )
    response = await store_client.post(
        "/admin/store/inventory/import",
        files={"file": ("stock.csv", csv_text.encode("utf-8"), "text/csv")},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["total_items"] == 3
    assert data["success_count"] == 2
    assert data["errors"] == ['SKU "CSV-NOPE": Product not found']

    await db_session.refresh(serum)
    await db_session.refresh(toner)
    assert serum.stock_quantity == 15
    assert toner.stock_quantity == 2

    result = await db_session.execute(
        select(StockMovement).where(StockMovement.product_id == toner.id)
    )
    [movement] = result.scalars().all()
    assert movement.quantity == -8


@pytest.mark.asyncio
@pytest.mark.integration
async def test_import_without_sku_column(store_client, admin_headers):
    response = await store_client.post(
        "/admin/store/inventory/import",
        files={"file": ("stock.csv", b"Name,Stock\nSerum,5\n", "text/csv")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == 'CSV must have a "SKU" column'


@pytest.mark.asyncio
@pytest.mark.integration
async def test_import_with_no_rows(store_client, admin_headers):
    response = await store_client.post(
        "/admin/store/inventory/import",
        files={"file": ("stock.csv", b"SKU,New Stock\n", "text/csv")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "No valid items found in CSV"
