"""Tally export: fetch rows and hand them to the generators in ``tally``."""

from dataclasses import dataclass
from datetime import date
from typing import Literal, Optional

from fastapi import HTTPException, status
from libs.common.config import get_settings
from libs.common.datetime_utils import date_range_bounds, utc_now
from libs.common.logging import get_logger
from services.store_service import tally
from services.store_service.models import (
    Order,
    OrderStatus,
    Product,
    Profile,
    StockMovement,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

ExportType = Literal["sales", "inventory", "customers", "products", "gst_summary"]
ExportFormat = Literal["csv", "xml"]

CSV_MEDIA_TYPE = "text/csv"
XML_MEDIA_TYPE = "application/xml"


@dataclass
class ExportFile:
    content: str
    filename: str
    media_type: str


async def fetch_orders(
    db: AsyncSession,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> list[Order]:
    """Non-cancelled orders with items, newest first."""
    start, end = date_range_bounds(from_date, to_date)
    query = (
        select(Order)
        .where(Order.status != OrderStatus.CANCELLED)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
    )
    if start:
        query = query.where(Order.created_at >= start)
    if end:
        query = query.where(Order.created_at <= end)
    result = await db.execute(query)
    return list(result.scalars().all())


async def fetch_products(db: AsyncSession) -> list[Product]:
    query = (
        select(Product).options(selectinload(Product.category)).order_by(Product.name)
    )
    result = await db.execute(query)
    return list(result.scalars().all())


async def fetch_movements(
    db: AsyncSession,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> list[StockMovement]:
    start, end = date_range_bounds(from_date, to_date)
    query = select(StockMovement)
    if start:
        query = query.where(StockMovement.created_at >= start)
    if end:
        query = query.where(StockMovement.created_at <= end)
    result = await db.execute(query)
    return list(result.scalars().all())


async def fetch_profiles(db: AsyncSession, user_ids: set) -> dict:
    if not user_ids:
        return {}
    result = await db.execute(select(Profile).where(Profile.id.in_(user_ids)))
    return {profile.id: profile for profile in result.scalars().all()}


async def build_export(
    db: AsyncSession,
    *,
    export_type: ExportType,
    export_format: ExportFormat = "csv",
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> ExportFile:
    company_state = get_settings().TALLY_COMPANY_STATE
    stamp = utc_now().strftime("%Y-%m-%d")
    is_xml = export_format == "xml"

    if export_type == "sales":
        orders = await fetch_orders(db, from_date, to_date)
        items = tally.build_sales_items(orders, company_state)
        content = (
            tally.generate_sales_xml(items) if is_xml else tally.generate_sales_csv(items)
        )

    elif export_type == "inventory":
        if is_xml:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Inventory export is only available as CSV",
            )
        products = await fetch_products(db)
        movements = await fetch_movements(db, from_date, to_date)
        items = tally.build_inventory_items(
            products, movements, to_date or utc_now().date()
        )
        content = tally.generate_inventory_report_csv(items)

    elif export_type == "customers":
        orders = await fetch_orders(db, from_date, to_date)
        profiles = await fetch_profiles(db, {order.user_id for order in orders})
        ledgers = tally.build_customer_ledgers(orders, profiles)
        content = (
            tally.generate_ledgers_xml(ledgers)
            if is_xml
            else tally.generate_customer_csv(ledgers)
        )

    elif export_type == "products":
        masters = tally.build_product_master(await fetch_products(db))
        content = (
            tally.generate_stock_items_xml(masters)
            if is_xml
            else tally.generate_product_master_csv(masters)
        )

    elif export_type == "gst_summary":
        if is_xml:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="GST summary export is only available as CSV",
            )
        orders = await fetch_orders(db, from_date, to_date)
        content = tally.generate_gst_summary_csv(
            tally.summarize_gst(orders, company_state)
        )

    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown export type: {export_type}",
        )

    extension = "xml" if is_xml else "csv"
    logger.info(f"Built Tally {export_type} export ({extension})")
    return ExportFile(
        content=content,
        filename=f"tally_{export_type}_{stamp}.{extension}",
        media_type=XML_MEDIA_TYPE if is_xml else CSV_MEDIA_TYPE,
    )
