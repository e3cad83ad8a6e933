"""Integration tests for the admin Tally export endpoint."""

from datetime import datetime, timezone

import pytest
from services.store_service.models import OrderStatus
from tests.factories import OrderFactory, OrderItemFactory, ProductFactory

EXPORTS = "/admin/store/exports/tally"


def _at(day: int) -> datetime:
    return datetime(2026, 3, day, 10, 30, tzinfo=timezone.utc)


async def _orders(db_session):
    early = OrderFactory.create(created_at=_at(10))
    late = OrderFactory.create(created_at=_at(20))
    cancelled = OrderFactory.create(created_at=_at(12), status=OrderStatus.CANCELLED)
    db_session.add_all([early, late, cancelled])
    await db_session.commit()
    db_session.add_all(
        [
            OrderItemFactory.create(order_id=early.id, product_name="Vitamin C Serum"),
            OrderItemFactory.create(order_id=late.id, product_name="Kajal Pencil"),
            OrderItemFactory.create(order_id=cancelled.id, product_name="Lip Tint"),
        ]
    )
    await db_session.commit()
    return early, late, cancelled


@pytest.mark.asyncio
@pytest.mark.integration
async def test_exports_require_admin(store_client, customer_headers):
    response = await store_client.get(f"{EXPORTS}/sales", headers=customer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sales_csv_respects_date_range_and_skips_cancelled(
    store_client, db_session, admin_headers
):
    early, late, cancelled = await _orders(db_session)

    response = await store_client.get(
        f"{EXPORTS}/sales",
        params={"from": "2026-03-01", "to": "2026-03-15"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith("attachment; filename=tally_sales_")
    assert disposition.endswith(".csv")

    header, *rows = response.text.split("\n")
    assert header.startswith("Voucher Date,Voucher Number,Party Name")
    assert len(rows) == 1
    assert early.order_number in rows[0]
    assert '"Vitamin C Serum"' in rows[0]
    assert late.order_number not in response.text
    assert cancelled.order_number not in response.text

    # ``to`` covers the whole day
    response = await store_client.get(
        f"{EXPORTS}/sales", params={"to": "2026-03-20"}, headers=admin_headers
    )
    assert late.order_number in response.text


@pytest.mark.asyncio
@pytest.mark.integration
async def test_sales_xml_export(store_client, db_session, admin_headers):
    early, late, _ = await _orders(db_session)

    response = await store_client.get(
        f"{EXPORTS}/sales", params={"format": "xml"}, headers=admin_headers
    )
    assert response.status_code == 200, response.text
    assert response.headers["content-type"].startswith("application/xml")
    assert response.headers["content-disposition"].endswith(".xml")

    body = response.text
    assert body.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert f"<VOUCHERNUMBER>{early.order_number}</VOUCHERNUMBER>" in body
    assert f"<VOUCHERNUMBER>{late.order_number}</VOUCHERNUMBER>" in body
    assert "<STOCKITEMNAME>Kajal Pencil</STOCKITEMNAME>" in body
    assert "Lip Tint" not in body


@pytest.mark.asyncio
@pytest.mark.integration
async def test_product_master_in_both_formats(store_client, db_session, admin_headers):
    db_session.add(ProductFactory.create(name="Rose Toner", sku="GM-ROSE-01"))
    await db_session.commit()

    response = await store_client.get(f"{EXPORTS}/products", headers=admin_headers)
    assert response.status_code == 200, response.text
    header, row = response.text.split("\n")
    assert header.startswith("Item Name,SKU,HSN Code")
    assert "Rose Toner" in row and "GM-ROSE-01" in row

    response = await store_client.get(
        f"{EXPORTS}/products", params={"format": "xml"}, headers=admin_headers
    )
    assert response.status_code == 200, response.text
    assert '<STOCKITEM NAME="Rose Toner" ACTION="Create">' in response.text


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customer_and_gst_csv_exports(store_client, db_session, admin_headers):
    await _orders(db_session)

    response = await store_client.get(f"{EXPORTS}/customers", headers=admin_headers)
    assert response.status_code == 200, response.text
    assert response.text.startswith("Customer Name,Address")
    assert "Priya Sharma" in response.text

    response = await store_client.get(f"{EXPORTS}/gst_summary", headers=admin_headers)
    assert response.status_code == 200, response.text
    assert response.text.startswith("HSN Code,Description,Total Qty")
    assert "tally_gst_summary_" in response.headers["content-disposition"]

    response = await store_client.get(f"{EXPORTS}/inventory", headers=admin_headers)
    assert response.status_code == 200, response.text
    assert response.text.startswith("Date,Voucher No,Item Name")


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "export_type,detail",
    [
        ("inventory", "Inventory export is only available as CSV"),
        ("gst_summary", "GST summary export is only available as CSV"),
    ],
)
async def test_csv_only_exports_reject_xml(
    store_client, admin_headers, export_type, detail
):
    response = await store_client.get(
        f"{EXPORTS}/{export_type}", params={"format": "xml"}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json() == {"detail": detail}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_export_parameter_validation(store_client, admin_headers):
    response = await store_client.get(
        f"{EXPORTS}/sales",
        params={"from": "2026-03-15", "to": "2026-03-01"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json() == {"detail": "'from' must not be after 'to'"}

    response = await store_client.get(f"{EXPORTS}/payroll", headers=admin_headers)
    assert response.status_code == 422

    response = await store_client.get(
        f"{EXPORTS}/sales", params={"format": "json"}, headers=admin_headers
    )
    assert response.status_code == 422
