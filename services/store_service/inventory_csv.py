"""Inventory CSV import/export format.

Import files are matched leniently: header names are compared by
case-insensitive substring, so spreadsheets exported by other tools (or
edited by hand) still import as long as a SKU column and a stock column can
be recognised.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from services.store_service.models.enums import StockMovementType

ADJUSTMENT_SET = "set"
ADJUSTMENT_ADD = "add"
ADJUSTMENT_SUBTRACT = "subtract"

EXPORT_HEADERS = [
    "SKU",
    "Product Name",
    "Current Stock",
    "Low Stock Threshold",
    "Category",
    "Adjustment Type",
    "New Stock",
]

TEMPLATE_HEADERS = ["SKU", "Adjustment Type", "New Stock"]
TEMPLATE_EXAMPLE_ROWS = [
    ["EXAMPLE-SKU-001", "set", "100"],
    ["EXAMPLE-SKU-002", "add", "50"],
    ["EXAMPLE-SKU-003", "subtract", "10"],
]
TEMPLATE_INSTRUCTIONS = [
    "# Instructions:",
    "# 1. SKU column is required - must match existing product SKUs",
    '# 2. Adjustment Type: "set" (replace stock), "add" (increase), "subtract" (decrease)',
    "# 3. New Stock: The quantity value for the adjustment",
    "# 4. Delete these instruction rows before importing",
]

# Movement type recorded for every imported row
IMPORT_MOVEMENT_TYPE = StockMovementType.ADJUSTMENT

_LEADING_INT = re.compile(r"^[+-]?\d+")


class CsvImportError(ValueError):
    """Raised when an import file is missing a required column."""


@dataclass
class StockImportRow:
    sku: str
    stock_quantity: int
    adjustment_type: str = ADJUSTMENT_SET


# ============================================================================
# PARSING
# ============================================================================


def parse_csv_line(line: str) -> list[str]:
    """Split one CSV line into cells.

    Inside quotes, ``""`` is an escaped quote and commas are literal.

    >>> parse_csv_line('a,"b,c",d')
    ['a', 'b,c', 'd']
    """
    cells: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]
        if in_quotes:
            if char == '"' and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            elif char == '"':
                in_quotes = False
            else:
                current.append(char)
        elif char == '"':
            in_quotes = True
        elif char == ",":
            cells.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1

    cells.append("".join(current))
    return cells


def parse_int_prefix(value: str) -> Optional[int]:
    """Parse the leading integer of ``value`` (``"12 pcs"`` -> 12), else None."""
    match = _LEADING_INT.match(value.strip())
    if not match:
        return None
    return int(match.group(0))


def normalize_adjustment_type(value: Optional[str]) -> str:
    """Map a cell to add/subtract; anything unrecognised means set."""
    type_value = (value or "").strip().lower()
    if type_value in ("add", "+"):
        return ADJUSTMENT_ADD
    if type_value in ("subtract", "-"):
        return ADJUSTMENT_SUBTRACT
    return ADJUSTMENT_SET


def _find_column(headers: list[str], predicate) -> int:
    for index, header in enumerate(headers):
        if predicate(header):
            return index
    return -1


def parse_inventory_csv(text: str) -> list[StockImportRow]:
    """Parse an inventory import file into stock update rows.

    Rows with an empty SKU or a non-numeric stock cell are skipped; an empty
    stock cell counts as 0.
    """
    lines = [line for line in text.split("\n") if line.strip()]
    if len(lines) < 2:
        return []

    headers = [header.lower().strip() for header in parse_csv_line(lines[0])]

    sku_index = _find_column(headers, lambda h: "sku" in h)
    type_index = _find_column(headers, lambda h: "adjustment" in h and "type" in h)
    new_stock_index = _find_column(headers, lambda h: "new" in h and "stock" in h)
    stock_index = _find_column(
        headers,
        lambda h: "stock" in h
        and "threshold" not in h
        and "new" not in h
        and "low" not in h,
    )

    if sku_index == -1:
        raise CsvImportError('CSV must have a "SKU" column')

    stock_column = new_stock_index if new_stock_index != -1 else stock_index
    if stock_column == -1:
        raise CsvImportError('CSV must have a "New Stock" or "Stock" column')

    rows: list[StockImportRow] = []
    for line in lines[1:]:
        values = parse_csv_line(line)
        if len(values) <= max(sku_index, stock_column):
            continue

        sku = values[sku_index].strip()
        stock_value = parse_int_prefix(values[stock_column].strip() or "0")
        if not sku or stock_value is None:
            continue

        adjustment_type = ADJUSTMENT_SET
        if type_index != -1 and type_index < len(values) and values[type_index]:
            adjustment_type = normalize_adjustment_type(values[type_index])

        rows.append(
            StockImportRow(
                sku=sku,
                stock_quantity=stock_value,
                adjustment_type=adjustment_type,
            )
        )

    return rows


def compute_new_quantity(previous: int, quantity: int, adjustment_type: str) -> int:
    if adjustment_type == ADJUSTMENT_ADD:
        return previous + quantity
    if adjustment_type == ADJUSTMENT_SUBTRACT:
        return previous - quantity
    return quantity


# ============================================================================
# GENERATION
# ============================================================================


def _quote_cell(value: Any) -> str:
    return '"' + str(value).replace('"', '""') + '"'


def _format_rows(rows: Iterable[list[Any]]) -> str:
    return "\n".join(",".join(_quote_cell(cell) for cell in row) for row in rows)


def generate_inventory_csv(products: Iterable[Any]) -> str:
    """Export current stock in a shape that can be edited and re-imported."""
    rows: list[list[Any]] = [EXPORT_HEADERS]
    for product in products:
        category = getattr(product, "category", None)
        rows.append(
            [
                product.sku or "",
                product.name,
                product.stock_quantity,
                product.low_stock_threshold,
                category.name if category else "",
                ADJUSTMENT_SET,
                product.stock_quantity,
            ]
        )
    return _format_rows(rows)


def generate_import_template() -> str:
    instructions = "\n".join(TEMPLATE_INSTRUCTIONS + [""])
    return instructions + _format_rows([TEMPLATE_HEADERS, *TEMPLATE_EXAMPLE_ROWS])
