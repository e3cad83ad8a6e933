"""Unit tests for Tally exports: GST split, row builders, CSV and XML output."""

import xml.etree.ElementTree as ET
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from services.store_service.tally import (
    build_customer_ledgers,
    build_inventory_items,
    build_product_master,
    build_sales_items,
    generate_gst_summary_csv,
    generate_ledgers_xml,
    generate_sales_csv,
    generate_sales_xml,
    generate_stock_items_xml,
    is_inter_state,
    resolve_hsn_code,
    split_gst,
    summarize_gst,
)
from services.store_service.inventory_csv import parse_csv_line


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _item(**overrides):
    defaults = {
        "product_name": "Vitamin C Serum",
        "sku": "SER-001",
        "hsn_code": "3304",
        "quantity": 2,
        "unit_price": Decimal("100.00"),
        "total_price": Decimal("200.00"),
        "gst_percent": Decimal("18"),
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _order(items, **overrides):
    defaults = {
        "order_number": "GM-20260110-AB12C",
        "user_id": "user-1",
        "created_at": datetime(2026, 1, 10, 9, 30, tzinfo=timezone.utc),
        "shipping_address": {
            "full_name": "Priya Sharma",
            "state": "Karnataka",
            "city": "Bengaluru",
            "pincode": "560001",
            "address_line1": "12 MG Road",
            "phone": "9876543210",
        },
        "items": items,
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _product(**overrides):
    defaults = {
        "id": "p1",
        "name": "Vitamin C Serum",
        "sku": "SER-001",
        "hsn_code": "3304",
        "price": Decimal("599.00"),
        "mrp": Decimal("799.00"),
        "gst_percent": Decimal("18"),
        "stock_quantity": 20,
        "category": SimpleNamespace(name="Skincare"),
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


# ---------------------------------------------------------------------------
# GST split
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_split_gst_intra_state_halves_tax():
    split = split_gst(Decimal("118"), Decimal("18"))
    assert split.taxable_value == Decimal("100.00")
    assert split.cgst_rate == Decimal("9")
    assert split.cgst_amount == Decimal("9.00")
    assert split.sgst_amount == Decimal("9.00")
    assert split.igst_amount == 0


@pytest.mark.unit
def test_split_gst_inter_state_uses_igst():
    split = split_gst(Decimal("118"), Decimal("18"), inter_state=True)
    assert split.igst_rate == Decimal("18")
    assert split.igst_amount == Decimal("18.00")
    assert split.cgst_amount == 0 and split.sgst_amount == 0


@pytest.mark.unit
def test_split_gst_defaults_to_eighteen_percent():
    assert split_gst(Decimal("118"), None).taxable_value == Decimal("100.00")


@pytest.mark.unit
@pytest.mark.parametrize(
    "company,customer,expected",
    [
        (None, "Karnataka", False),
        ("Karnataka", "", False),
        ("Karnataka", " karnataka ", False),
        ("Karnataka", "Maharashtra", True),
    ],
)
def test_is_inter_state(company, customer, expected):
    assert is_inter_state(company, customer) is expected


@pytest.mark.unit
def test_resolve_hsn_code_prefers_explicit_then_hsn_sku():
    assert resolve_hsn_code(SimpleNamespace(hsn_code="3305", sku="X")) == "3305"
    assert resolve_hsn_code(SimpleNamespace(hsn_code=None, sku="HSN3304")) == "HSN3304"
    assert resolve_hsn_code(SimpleNamespace(hsn_code=None, sku="SER-1"), "N/A") == "N/A"


# ---------------------------------------------------------------------------
# Sales
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_sales_csv_tax_columns_add_up_to_total():
    """qty 2 x rate 100: taxable + CGST + SGST is within 2 paise of the total."""
    items = build_sales_items([_order([_item()])])
    csv_text = generate_sales_csv(items)

    header, row = csv_text.split("\n")
    columns = parse_csv_line(header)
    values = dict(zip(columns, parse_csv_line(row)))

    assert values["Quantity"] == "2"
    assert values["Rate"] == "100.00"
    assert values["Voucher Date"] == "2026-01-10"
    assert values["Party Name"] == "Priya Sharma"

    taxable = Decimal(values["Taxable Value"])
    cgst = Decimal(values["CGST Amount"])
    sgst = Decimal(values["SGST Amount"])
    total = Decimal(values["Total Amount"])
    assert abs(taxable + cgst + sgst - total) <= Decimal("0.02")
    assert Decimal(values["IGST Amount"]) == 0


@pytest.mark.unit
def test_sales_items_use_igst_for_other_states():
    items = build_sales_items([_order([_item()])], company_state="Maharashtra")
    assert items[0].igst_amount > 0
    assert items[0].cgst_amount == 0


@pytest.mark.unit
def test_sales_xml_groups_lines_by_voucher():
    order = _order([_item(), _item(product_name="Toner", hsn_code="3305")])
    xml_text = generate_sales_xml(build_sales_items([order]))

    assert xml_text.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    root = ET.fromstring(xml_text.split("\n", 1)[1])
    vouchers = root.findall(".//VOUCHER")
    assert len(vouchers) == 1
    assert vouchers[0].findtext("VOUCHERNUMBER") == order.order_number
    assert vouchers[0].findtext("DATE") == "20260110"
    assert len(vouchers[0].findall("ALLINVENTORYENTRIES.LIST")) == 2
    party = vouchers[0].findall("LEDGERENTRIES.LIST")[0]
    assert party.findtext("AMOUNT") == "-400.00"


# ---------------------------------------------------------------------------
# GST summary
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_gst_summary_merges_items_with_same_hsn():
    orders = [
        _order([_item(quantity=2, total_price=Decimal("200.00"))]),
        _order(
            [_item(product_name="Night Cream", quantity=1, total_price=Decimal("118.00"))],
            order_number="GM-20260111-ZZ99X",
        ),
    ]
    summary = summarize_gst(orders)

    assert len(summary) == 1
    row = summary[0]
    assert row.hsn_code == "3304"
    assert row.total_qty == 3
    assert row.total_value == Decimal("318.00")
    assert row.total_tax == row.cgst_amount + row.sgst_amount + row.igst_amount


@pytest.mark.unit
def test_gst_summary_unknown_hsn_and_total_row():
    orders = [_order([_item(hsn_code=None, sku="SER-9"), _item(hsn_code="3305")])]
    summary = summarize_gst(orders)
    assert {row.hsn_code for row in summary} == {"N/A", "3305"}

    lines = generate_gst_summary_csv(summary).split("\n")
    assert lines[0].startswith("HSN Code,Description,Total Qty")
    total_row = parse_csv_line(lines[-1])
    assert total_row[0] == "TOTAL"
    assert total_row[2] == "4"
    assert total_row[3] == "400.00"


# ---------------------------------------------------------------------------
# Inventory, customers, products
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_inventory_items_back_out_opening_stock():
    product = _product(stock_quantity=20)
    movements = [
        SimpleNamespace(product_id="p1", quantity=10, movement_type="restock"),
        SimpleNamespace(product_id="p1", quantity=-3, movement_type="sale"),
        SimpleNamespace(product_id="p1", quantity=-2, movement_type="adjustment"),
    ]
    [item] = build_inventory_items([product], movements, date(2026, 1, 31))

    assert item.inward_qty == 10
    assert item.outward_qty == 5
    assert item.opening_stock == 15
    assert item.closing_stock == 20
    assert item.value == Decimal("11980.00")


@pytest.mark.unit
def test_customer_ledgers_take_latest_order_per_customer():
    newest = _order([_item()])
    older = _order(
        [_item()],
        shipping_address={"full_name": "Old Name", "state": "Goa"},
    )
    profiles = {"user-1": SimpleNamespace(email="priya@glowmart.in", full_name="P", phone=None)}
    [ledger] = build_customer_ledgers([newest, older], profiles)

    assert ledger.customer_name == "Priya Sharma"
    assert ledger.state == "Karnataka"
    assert ledger.email == "priya@glowmart.in"

    root = ET.fromstring(generate_ledgers_xml([ledger]).split("\n", 1)[1])
    assert root.find(".//LEDGER").get("NAME") == "Priya Sharma"
    assert root.findtext(".//PARENT") == "Sundry Debtors"


@pytest.mark.unit
def test_product_master_and_stock_items_xml():
    [master] = build_product_master([_product(mrp=None)])
    assert master.mrp == Decimal("599.00")
    assert master.opening_value == Decimal("11980.00")
    assert master.category == "Skincare"

    root = ET.fromstring(generate_stock_items_xml([master]).split("\n", 1)[1])
    stock_item = root.find(".//STOCKITEM")
    assert stock_item.findtext("HSNCODE") == "3304"
    assert stock_item.findtext("OPENINGBALANCE") == "20 PCS"
    assert stock_item.findtext("RATEOFDUTY") == "18.00"
