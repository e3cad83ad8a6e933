"""Tally-compatible accounting exports.

Pure transforms from fetched rows into flat CSV files or Tally XML import
envelopes. Data fetching lives in ``services.export_ops``.

All prices are GST-inclusive; taxable value is backed out of the line total
and the tax split into CGST/SGST (intra-state) or IGST (inter-state).
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from libs.common.currency import to_money

DEFAULT_UNIT = "PCS"
DEFAULT_GST_RATE = Decimal("18")

INWARD_MOVEMENT_TYPES = {"purchase", "restock", "adjustment_add", "return"}
OUTWARD_MOVEMENT_TYPES = {"sale", "adjustment_remove", "damage"}

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


# ============================================================================
# RECORD TYPES
# ============================================================================


@dataclass
class GstSplit:
    taxable_value: Decimal
    cgst_rate: Decimal
    cgst_amount: Decimal
    sgst_rate: Decimal
    sgst_amount: Decimal
    igst_rate: Decimal
    igst_amount: Decimal

    @property
    def total_tax(self) -> Decimal:
        return self.cgst_amount + self.sgst_amount + self.igst_amount


@dataclass
class SalesVoucherItem:
    voucher_date: date
    voucher_number: str
    party_name: str
    gstin: str
    state: str
    item_name: str
    hsn_code: str
    quantity: int
    rate: Decimal
    taxable_value: Decimal
    cgst_rate: Decimal
    cgst_amount: Decimal
    sgst_rate: Decimal
    sgst_amount: Decimal
    igst_rate: Decimal
    igst_amount: Decimal
    total_amount: Decimal
    unit: str = DEFAULT_UNIT


@dataclass
class InventoryReportItem:
    report_date: date
    voucher_no: str
    item_name: str
    sku: str
    hsn_code: str
    opening_stock: int
    inward_qty: int
    outward_qty: int
    closing_stock: int
    rate: Decimal
    value: Decimal
    unit: str = DEFAULT_UNIT


@dataclass
class CustomerLedger:
    customer_name: str
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    gstin: str = ""
    pan: str = ""
    contact_person: str = ""
    phone: str = ""
    email: str = ""
    opening_balance: Decimal = Decimal("0")


@dataclass
class ProductMaster:
    item_name: str
    sku: str
    hsn_code: str
    category: str
    gst_rate: Decimal
    opening_stock: int
    opening_value: Decimal
    mrp: Optional[Decimal]
    selling_price: Decimal
    unit: str = DEFAULT_UNIT


@dataclass
class GSTSummaryItem:
    hsn_code: str
    description: str
    total_qty: int = 0
    total_value: Decimal = field(default_factory=lambda: Decimal("0"))
    taxable_value: Decimal = field(default_factory=lambda: Decimal("0"))
    cgst_amount: Decimal = field(default_factory=lambda: Decimal("0"))
    sgst_amount: Decimal = field(default_factory=lambda: Decimal("0"))
    igst_amount: Decimal = field(default_factory=lambda: Decimal("0"))
    total_tax: Decimal = field(default_factory=lambda: Decimal("0"))


# ============================================================================
# TAX HELPERS
# ============================================================================


def split_gst(
    total: Decimal, gst_percent: Optional[Decimal], inter_state: bool = False
) -> GstSplit:
    """Back the taxable value out of a GST-inclusive total and split the tax.

    >>> split_gst(Decimal("118"), Decimal("18")).cgst_amount
    Decimal('9.00')
    """
    rate = Decimal(gst_percent) if gst_percent else DEFAULT_GST_RATE
    total = Decimal(total)
    taxable = to_money(total / (1 + rate / 100))
    gst = total - taxable
    zero = Decimal("0")

    if inter_state:
        return GstSplit(
            taxable_value=taxable,
            cgst_rate=zero,
            cgst_amount=zero,
            sgst_rate=zero,
            sgst_amount=zero,
            igst_rate=rate,
            igst_amount=to_money(gst),
        )

    half = to_money(gst / 2)
    return GstSplit(
        taxable_value=taxable,
        cgst_rate=rate / 2,
        cgst_amount=half,
        sgst_rate=rate / 2,
        sgst_amount=half,
        igst_rate=zero,
        igst_amount=zero,
    )


def is_inter_state(company_state: Optional[str], customer_state: Optional[str]) -> bool:
    """Supply is inter-state only when both states are known and differ."""
    if not company_state or not customer_state:
        return False
    return company_state.strip().lower() != customer_state.strip().lower()


def resolve_hsn_code(item: Any, fallback: str = "") -> str:
    """HSN code of an order line: explicit code, else an ``HSN``-prefixed SKU."""
    hsn_code = getattr(item, "hsn_code", None)
    if hsn_code:
        return hsn_code
    sku = getattr(item, "sku", None) or ""
    if sku.startswith("HSN"):
        return sku
    return fallback


# ============================================================================
# ROW BUILDERS
# ============================================================================


def build_sales_items(
    orders: Iterable[Any], company_state: Optional[str] = None
) -> list[SalesVoucherItem]:
    """One voucher line per order item; orders must have ``items`` loaded."""
    sales_items: list[SalesVoucherItem] = []

    for order in orders:
        address = order.shipping_address or {}
        customer_state = address.get("state") or ""
        inter_state = is_inter_state(company_state, customer_state)

        for item in order.items:
            total = Decimal(item.total_price)
            split = split_gst(total, item.gst_percent, inter_state)
            sales_items.append(
                SalesVoucherItem(
                    voucher_date=order.created_at.date(),
                    voucher_number=order.order_number,
                    party_name=address.get("full_name") or "Customer",
                    gstin="",
                    state=customer_state,
                    item_name=item.product_name,
                    hsn_code=resolve_hsn_code(item),
                    quantity=item.quantity,
                    rate=Decimal(item.unit_price),
                    taxable_value=split.taxable_value,
                    cgst_rate=split.cgst_rate,
                    cgst_amount=split.cgst_amount,
                    sgst_rate=split.sgst_rate,
                    sgst_amount=split.sgst_amount,
                    igst_rate=split.igst_rate,
                    igst_amount=split.igst_amount,
                    total_amount=total,
                )
            )

    return sales_items


def build_inventory_items(
    products: Iterable[Any], movements: Iterable[Any], report_date: date
) -> list[InventoryReportItem]:
    """Derive opening stock per product from movements inside the period."""
    inward: dict[Any, int] = defaultdict(int)
    outward: dict[Any, int] = defaultdict(int)

    for movement in movements:
        qty = movement.quantity or 0
        movement_type = getattr(movement.movement_type, "value", movement.movement_type)
        if movement_type in INWARD_MOVEMENT_TYPES:
            inward[movement.product_id] += qty
        elif movement_type in OUTWARD_MOVEMENT_TYPES:
            outward[movement.product_id] += abs(qty)
        elif movement_type == "adjustment":
            if qty >= 0:
                inward[movement.product_id] += qty
            else:
                outward[movement.product_id] += abs(qty)

    items: list[InventoryReportItem] = []
    for product in products:
        closing = product.stock_quantity
        opening = closing - inward[product.id] + outward[product.id]
        price = Decimal(product.price)
        items.append(
            InventoryReportItem(
                report_date=report_date,
                voucher_no="-",
                item_name=product.name,
                sku=product.sku or "",
                hsn_code=product.hsn_code or "",
                opening_stock=max(opening, 0),
                inward_qty=inward[product.id],
                outward_qty=outward[product.id],
                closing_stock=closing,
                rate=price,
                value=price * closing,
            )
        )
    return items


def build_customer_ledgers(
    orders: Iterable[Any], profiles: Mapping[Any, Any]
) -> list[CustomerLedger]:
    """One ledger per customer, taken from their most recent order.

    ``orders`` must be sorted newest first.
    """
    ledgers: dict[Any, CustomerLedger] = {}

    for order in orders:
        if order.user_id in ledgers:
            continue
        address = order.shipping_address or {}
        profile = profiles.get(order.user_id)
        ledgers[order.user_id] = CustomerLedger(
            customer_name=address.get("full_name")
            or getattr(profile, "full_name", None)
            or "Customer",
            address=address.get("address_line1") or "",
            city=address.get("city") or "",
            state=address.get("state") or "",
            pincode=address.get("pincode") or "",
            contact_person=address.get("full_name") or "",
            phone=address.get("phone") or getattr(profile, "phone", None) or "",
            email=getattr(profile, "email", None) or "",
        )

    return list(ledgers.values())


def build_product_master(products: Iterable[Any]) -> list[ProductMaster]:
    masters: list[ProductMaster] = []
    for product in products:
        price = Decimal(product.price)
        category = getattr(product, "category", None)
        masters.append(
            ProductMaster(
                item_name=product.name,
                sku=product.sku or "",
                hsn_code=product.hsn_code or "",
                category=category.name if category else "",
                gst_rate=Decimal(product.gst_percent or DEFAULT_GST_RATE),
                opening_stock=product.stock_quantity,
                opening_value=price * product.stock_quantity,
                mrp=Decimal(product.mrp) if product.mrp else price,
                selling_price=price,
            )
        )
    return masters


def summarize_gst(
    orders: Iterable[Any], company_state: Optional[str] = None
) -> list[GSTSummaryItem]:
    """Aggregate order lines by HSN code. Unknown codes fall under ``N/A``."""
    summary: dict[str, GSTSummaryItem] = {}

    for order in orders:
        address = order.shipping_address or {}
        inter_state = is_inter_state(company_state, address.get("state"))

        for item in order.items:
            hsn_code = resolve_hsn_code(item, fallback="N/A")
            total = Decimal(item.total_price)
            split = split_gst(total, item.gst_percent, inter_state)

            row = summary.get(hsn_code)
            if row is None:
                row = GSTSummaryItem(hsn_code=hsn_code, description=item.product_name)
                summary[hsn_code] = row

            row.total_qty += item.quantity
            row.total_value += total
            row.taxable_value += split.taxable_value
            row.cgst_amount += split.cgst_amount
            row.sgst_amount += split.sgst_amount
            row.igst_amount += split.igst_amount
            row.total_tax += split.total_tax

    return list(summary.values())


# ============================================================================
# CSV GENERATORS
# ============================================================================


def _quote(value: Optional[str]) -> str:
    return '"' + (value or "").replace('"', '""') + '"'


def _money(value: Decimal) -> str:
    return f"{Decimal(value):.2f}"


def _join(headers: list[str], rows: list[list[Any]]) -> str:
    lines = [",".join(headers)]
    lines.extend(",".join(str(cell) for cell in row) for row in rows)
    return "\n".join(lines)


SALES_HEADERS = [
    "Voucher Date",
    "Voucher Number",
    "Party Name",
    "GSTIN",
    "State",
    "Item Name",
    "HSN Code",
    "Quantity",
    "Unit",
    "Rate",
    "Taxable Value",
    "CGST Rate (%)",
    "CGST Amount",
    "SGST Rate (%)",
    "SGST Amount",
    "IGST Rate (%)",
    "IGST Amount",
    "Total Amount",
]

INVENTORY_HEADERS = [
    "Date",
    "Voucher No",
    "Item Name",
    "SKU",
    "HSN Code",
    "Unit",
    "Opening Stock",
    "Inward Qty",
    "Outward Qty",
    "Closing Stock",
    "Rate",
    "Value",
]

CUSTOMER_HEADERS = [
    "Customer Name",
    "Address",
    "City",
    "State",
    "Pincode",
    "GSTIN",
    "PAN",
    "Contact Person",
    "Phone",
    "Email",
    "Opening Balance",
]

PRODUCT_MASTER_HEADERS = [
    "Item Name",
    "SKU",
    "HSN Code",
    "Category",
    "Unit",
    "GST Rate (%)",
    "Opening Stock",
    "Opening Value",
    "MRP",
    "Selling Price",
]

GST_SUMMARY_HEADERS = [
    "HSN Code",
    "Description",
    "Total Qty",
    "Total Value",
    "Taxable Value",
    "CGST Amount",
    "SGST Amount",
    "IGST Amount",
    "Total Tax",
]


def generate_sales_csv(items: list[SalesVoucherItem]) -> str:
    rows = [
        [
            item.voucher_date.isoformat(),
            item.voucher_number,
            _quote(item.party_name),
            item.gstin or "",
            item.state or "",
            _quote(item.item_name),
            item.hsn_code or "",
            item.quantity,
            item.unit or DEFAULT_UNIT,
            _money(item.rate),
            _money(item.taxable_value),
            _money(item.cgst_rate),
            _money(item.cgst_amount),
            _money(item.sgst_rate),
            _money(item.sgst_amount),
            _money(item.igst_rate),
            _money(item.igst_amount),
            _money(item.total_amount),
        ]
        for item in items
    ]
    return _join(SALES_HEADERS, rows)


def generate_inventory_report_csv(items: list[InventoryReportItem]) -> str:
    rows = [
        [
            item.report_date.isoformat(),
            item.voucher_no,
            _quote(item.item_name),
            item.sku or "",
            item.hsn_code or "",
            item.unit or DEFAULT_UNIT,
            item.opening_stock,
            item.inward_qty,
            item.outward_qty,
            item.closing_stock,
            _money(item.rate),
            _money(item.value),
        ]
        for item in items
    ]
    return _join(INVENTORY_HEADERS, rows)


def generate_customer_csv(customers: list[CustomerLedger]) -> str:
    rows = [
        [
            _quote(c.customer_name),
            _quote(c.address),
            c.city,
            c.state,
            c.pincode,
            c.gstin or "",
            c.pan or "",
            _quote(c.contact_person),
            c.phone or "",
            c.email or "",
            _money(c.opening_balance),
        ]
        for c in customers
    ]
    return _join(CUSTOMER_HEADERS, rows)


def generate_product_master_csv(products: list[ProductMaster]) -> str:
    rows = [
        [
            _quote(p.item_name),
            p.sku or "",
            p.hsn_code or "",
            _quote(p.category),
            p.unit or DEFAULT_UNIT,
            _money(p.gst_rate),
            p.opening_stock,
            _money(p.opening_value),
            _money(p.mrp) if p.mrp is not None else "",
            _money(p.selling_price),
        ]
        for p in products
    ]
    return _join(PRODUCT_MASTER_HEADERS, rows)


def generate_gst_summary_csv(items: list[GSTSummaryItem]) -> str:
    rows: list[list[Any]] = [
        [
            item.hsn_code,
            _quote(item.description),
            item.total_qty,
            _money(item.total_value),
            _money(item.taxable_value),
            _money(item.cgst_amount),
            _money(item.sgst_amount),
            _money(item.igst_amount),
            _money(item.total_tax),
        ]
        for item in items
    ]

    rows.append(
        [
            "TOTAL",
            '""',
            sum(item.total_qty for item in items),
            _money(sum((item.total_value for item in items), Decimal("0"))),
            _money(sum((item.taxable_value for item in items), Decimal("0"))),
            _money(sum((item.cgst_amount for item in items), Decimal("0"))),
            _money(sum((item.sgst_amount for item in items), Decimal("0"))),
            _money(sum((item.igst_amount for item in items), Decimal("0"))),
            _money(sum((item.total_tax for item in items), Decimal("0"))),
        ]
    )
    return _join(GST_SUMMARY_HEADERS, rows)


# ============================================================================
# TALLY XML GENERATORS
# ============================================================================


def _sub(parent: ET.Element, tag: str, text: Any = "") -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = "" if text is None else str(text)
    return element


def _envelope(report_name: str) -> tuple[ET.Element, ET.Element]:
    """Build the import envelope, returning (root, TALLYMESSAGE)."""
    envelope = ET.Element("ENVELOPE")
    header = ET.SubElement(envelope, "HEADER")
    _sub(header, "TALLYREQUEST", "Import Data")

    body = ET.SubElement(envelope, "BODY")
    import_data = ET.SubElement(body, "IMPORTDATA")
    request_desc = ET.SubElement(import_data, "REQUESTDESC")
    _sub(request_desc, "REPORTNAME", report_name)
    request_data = ET.SubElement(import_data, "REQUESTDATA")
    message = ET.SubElement(request_data, "TALLYMESSAGE", {"xmlns:UDF": "TallyUDF"})
    return envelope, message


def _serialize(envelope: ET.Element) -> str:
    ET.indent(envelope, space="  ")
    return XML_DECLARATION + ET.tostring(
        envelope, encoding="unicode", short_empty_elements=False
    )


def generate_sales_xml(items: list[SalesVoucherItem]) -> str:
    """Sales vouchers, one VOUCHER per voucher number."""
    envelope, message = _envelope("Vouchers")

    vouchers: dict[str, list[SalesVoucherItem]] = {}
    for item in items:
        vouchers.setdefault(item.voucher_number, []).append(item)

    for voucher_number, lines in vouchers.items():
        first = lines[0]
        total_amount = sum((line.total_amount for line in lines), Decimal("0"))
        taxable_total = sum((line.taxable_value for line in lines), Decimal("0"))

        voucher = ET.SubElement(
            message, "VOUCHER", {"VCHTYPE": "Sales", "ACTION": "Create"}
        )
        _sub(voucher, "DATE", first.voucher_date.strftime("%Y%m%d"))
        _sub(voucher, "VOUCHERTYPENAME", "Sales")
        _sub(voucher, "VOUCHERNUMBER", voucher_number)
        _sub(voucher, "PARTYLEDGERNAME", first.party_name)
        _sub(voucher, "BASICBASEPARTYNAME", first.party_name)
        _sub(voucher, "PARTYGSTIN", first.gstin or "")
        _sub(voucher, "PLACEOFSUPPLY", first.state or "")

        for line in lines:
            entry = ET.SubElement(voucher, "ALLINVENTORYENTRIES.LIST")
            _sub(entry, "STOCKITEMNAME", line.item_name)
            _sub(entry, "ISDEEMEDPOSITIVE", "No")
            _sub(entry, "RATE", f"{_money(line.rate)}/{line.unit}")
            _sub(entry, "AMOUNT", _money(line.taxable_value))
            _sub(entry, "ACTUALQTY", f"{line.quantity} {line.unit}")
            _sub(entry, "BILLEDQTY", f"{line.quantity} {line.unit}")

        party_entry = ET.SubElement(voucher, "LEDGERENTRIES.LIST")
        _sub(party_entry, "LEDGERNAME", first.party_name)
        _sub(party_entry, "ISDEEMEDPOSITIVE", "Yes")
        _sub(party_entry, "AMOUNT", f"-{_money(total_amount)}")

        sales_entry = ET.SubElement(voucher, "LEDGERENTRIES.LIST")
        _sub(sales_entry, "LEDGERNAME", "Sales Account")
        _sub(sales_entry, "ISDEEMEDPOSITIVE", "No")
        _sub(sales_entry, "AMOUNT", _money(taxable_total))

    return _serialize(envelope)


def generate_stock_items_xml(products: list[ProductMaster]) -> str:
    envelope, message = _envelope("All Masters")

    for product in products:
        unit = product.unit or DEFAULT_UNIT
        stock_item = ET.SubElement(
            message, "STOCKITEM", {"NAME": product.item_name, "ACTION": "Create"}
        )
        _sub(stock_item, "NAME", product.item_name)
        _sub(stock_item, "GSTAPPLICABLE", "Applicable")
        _sub(stock_item, "GSTTYPEOFSUPPLY", "Goods")
        _sub(stock_item, "HSNCODE", product.hsn_code or "")
        _sub(stock_item, "TAXABILITY", "Taxable")
        _sub(stock_item, "BASEUNITS", unit)
        _sub(stock_item, "OPENINGBALANCE", f"{product.opening_stock} {unit}")
        _sub(stock_item, "OPENINGVALUE", _money(product.opening_value))
        _sub(stock_item, "RATEOFDUTY", _money(product.gst_rate))

    return _serialize(envelope)


def generate_ledgers_xml(customers: list[CustomerLedger]) -> str:
    envelope, message = _envelope("All Masters")

    for customer in customers:
        ledger = ET.SubElement(
            message, "LEDGER", {"NAME": customer.customer_name, "ACTION": "Create"}
        )
        _sub(ledger, "NAME", customer.customer_name)
        _sub(ledger, "PARENT", "Sundry Debtors")
        _sub(ledger, "ISBILLWISEON", "Yes")
        _sub(ledger, "AFFECTSSTOCK", "No")
        _sub(ledger, "OPENINGBALANCE", _money(customer.opening_balance))
        address_list = ET.SubElement(ledger, "ADDRESS.LIST")
        _sub(address_list, "ADDRESS", customer.address)
        _sub(
            address_list,
            "ADDRESS",
            f"{customer.city}, {customer.state} - {customer.pincode}",
        )
        _sub(ledger, "LEDGERPHONE", customer.phone or "")
        _sub(ledger, "LEDGEREMAIL", customer.email or "")
        _sub(ledger, "GSTREGISTRATIONTYPE", "Regular")
        _sub(ledger, "PARTYGSTIN", customer.gstin or "")
        _sub(ledger, "PANNUMBER", customer.pan or "")

    return _serialize(envelope)
