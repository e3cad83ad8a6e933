"""Unit tests for the inventory CSV import/export format.

Pure parsing and generation; no database involved.
"""

import pytest
from types import SimpleNamespace

from services.store_service.inventory_csv import (
    ADJUSTMENT_ADD,
    ADJUSTMENT_SET,
    ADJUSTMENT_SUBTRACT,
    CsvImportError,
    compute_new_quantity,
    generate_import_template,
    generate_inventory_csv,
    normalize_adjustment_type,
    parse_csv_line,
    parse_int_prefix,
    parse_inventory_csv,
)


# ---------------------------------------------------------------------------
# parse_csv_line
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_quoted_comma_stays_in_cell():
    assert parse_csv_line('a,"b,c",d') == ["a", "b,c", "d"]


@pytest.mark.unit
def test_doubled_quote_is_escaped_quote():
    assert parse_csv_line('"say ""hi""",x') == ['say "hi"', "x"]


@pytest.mark.unit
def test_empty_cells_are_kept():
    assert parse_csv_line("a,,c,") == ["a", "", "c", ""]


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [("12", 12), ("12 pcs", 12), (" 7", 7), ("-3", -3), ("abc", None), ("", None)],
)
def test_parse_int_prefix(value, expected):
    assert parse_int_prefix(value) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [
        ("add", ADJUSTMENT_ADD),
        ("+", ADJUSTMENT_ADD),
        (" Subtract ", ADJUSTMENT_SUBTRACT),
        ("-", ADJUSTMENT_SUBTRACT),
        ("set", ADJUSTMENT_SET),
        ("replace", ADJUSTMENT_SET),
        (None, ADJUSTMENT_SET),
    ],
)
def test_normalize_adjustment_type(value, expected):
    assert normalize_adjustment_type(value) == expected


@pytest.mark.unit
def test_compute_new_quantity():
    assert compute_new_quantity(10, 5, ADJUSTMENT_ADD) == 15
    assert compute_new_quantity(10, 4, ADJUSTMENT_SUBTRACT) == 6
    assert compute_new_quantity(10, 3, ADJUSTMENT_SET) == 3
    # Going negative is reported by the caller, not clamped here
    assert compute_new_quantity(2, 5, ADJUSTMENT_SUBTRACT) == -3


# ---------------------------------------------------------------------------
# parse_inventory_csv
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_parse_exported_file_prefers_new_stock_column():
    text = (
        "SKU,Product Name,Current Stock,Low Stock Threshold,Category,Adjustment Type,New Stock\n"
        'SER-001,"Serum, 30ml",10,5,Skincare,add,4\n'
        "SER-002,Toner,8,5,Skincare,set,20\n"
    )
    rows = parse_inventory_csv(text)

    assert [(r.sku, r.stock_quantity, r.adjustment_type) for r in rows] == [
        ("SER-001", 4, ADJUSTMENT_ADD),
        ("SER-002", 20, ADJUSTMENT_SET),
    ]


@pytest.mark.unit
def test_parse_falls_back_to_stock_column():
    text = "sku,stock\nA-1,12\n"
    rows = parse_inventory_csv(text)
    assert len(rows) == 1
    assert rows[0].stock_quantity == 12
    assert rows[0].adjustment_type == ADJUSTMENT_SET


@pytest.mark.unit
def test_parse_skips_blank_sku_and_non_numeric_stock():
    text = "SKU,New Stock\n,5\nB-2,lots\nC-3,\n"
    rows = parse_inventory_csv(text)
    # Empty stock cell counts as 0
    assert [(r.sku, r.stock_quantity) for r in rows] == [("C-3", 0)]


@pytest.mark.unit
def test_parse_header_only_returns_nothing():
    assert parse_inventory_csv("SKU,New Stock\n") == []


@pytest.mark.unit
def test_parse_requires_sku_column():
    with pytest.raises(CsvImportError, match="SKU"):
        parse_inventory_csv("Name,Stock\nSerum,4\n")


@pytest.mark.unit
def test_parse_requires_stock_column():
    with pytest.raises(CsvImportError, match="Stock"):
        parse_inventory_csv("SKU,Low Stock Threshold\nA,4\n")


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_export_round_trips_through_parser():
    product = SimpleNamespace(
        sku="SER-001",
        name='Serum "Glow", 30ml',
        stock_quantity=14,
        low_stock_threshold=5,
        category=SimpleNamespace(name="Skincare"),
    )
    csv_text = generate_inventory_csv([product])

    lines = csv_text.split("\n")
    assert lines[0].startswith('"SKU","Product Name"')
    assert parse_csv_line(lines[1])[1] == 'Serum "Glow", 30ml'

    rows = parse_inventory_csv(csv_text)
    assert rows[0].sku == "SER-001"
    assert rows[0].stock_quantity == 14
    assert rows[0].adjustment_type == ADJUSTMENT_SET


@pytest.mark.unit
def test_import_template_has_instructions_and_examples():
    template = generate_import_template()
    assert template.startswith("# Instructions:")
    assert '"EXAMPLE-SKU-002","add","50"' in template
