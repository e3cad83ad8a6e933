"""Admin store inventory router: adjustments, restock, movements, CSV."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.inventory_csv import (
    CsvImportError,
    generate_import_template,
    generate_inventory_csv,
    parse_inventory_csv,
)
from services.store_service.models import AuditEntityType, StockMovementType
from services.store_service.routers._helpers import log_audit
from services.store_service.schemas import (
    BulkRestockRequest,
    InventorySummary,
    StockAdjustment,
    StockAdjustmentResponse,
    StockImportResult,
    StockMovementResponse,
)
from services.store_service.services import inventory_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/inventory", tags=["admin-store"])
logger = get_logger(__name__)


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# ============================================================================
# REPORTING
# ============================================================================


@router.get("/summary", response_model=InventorySummary)
async def get_inventory_summary(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await inventory_ops.inventory_summary(db)


@router.get("/movements", response_model=list[StockMovementResponse])
async def list_stock_movements(
    product_id: Optional[uuid.UUID] = None,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Latest stock movements, optionally for one product."""
    return await inventory_ops.list_movements(db, product_id)


# ============================================================================
# ADJUSTMENTS
# ============================================================================


@router.post("/adjust", response_model=StockAdjustmentResponse)
async def adjust_stock(
    adjustment: StockAdjustment,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Apply a signed stock delta to a product."""
    await log_audit(
        db,
        AuditEntityType.INVENTORY,
        adjustment.product_id,
        "adjusted",
        current_user.user_id,
        new_value=adjustment.model_dump(mode="json"),
        notes=adjustment.reason,
    )
    previous_quantity, new_quantity = await inventory_ops.adjust_stock(
        db,
        product_id=adjustment.product_id,
        quantity=adjustment.quantity,
        movement_type=StockMovementType(adjustment.movement_type),
        reason=adjustment.reason,
        performed_by=current_user.user_id,
    )
    return StockAdjustmentResponse(
        product_id=adjustment.product_id,
        previous_quantity=previous_quantity,
        new_quantity=new_quantity,
    )


@router.post("/restock")
async def bulk_restock(
    restock: BulkRestockRequest,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Add stock to several products, one product at a time."""
    restocked = await inventory_ops.bulk_restock(
        db,
        items=[(item.product_id, item.quantity) for item in restock.items],
        performed_by=current_user.user_id,
    )
    return {"restocked": restocked}


# ============================================================================
# CSV IMPORT / EXPORT
# ============================================================================


@router.get("/export")
async def export_inventory_csv(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    products = await inventory_ops.list_products_with_category(db)
    filename = f"inventory_{utc_now().strftime('%Y-%m-%d')}.csv"
    return _csv_response(generate_inventory_csv(products), filename)


@router.get("/import-template")
async def download_import_template(
    current_user: AuthUser = Depends(require_admin),
):
    return _csv_response(generate_import_template(), "inventory_import_template.csv")


@router.post("/import", response_model=StockImportResult)
async def import_inventory_csv(
    file: UploadFile = File(...),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Apply stock levels from an uploaded CSV.

    Rows are applied one at a time; per-row failures are reported in
    ``errors`` and do not stop the import.
    """
    raw = await file.read()
    try:
        rows = parse_inventory_csv(raw.decode("utf-8-sig"))
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded")
    except CsvImportError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not rows:
        raise HTTPException(status_code=400, detail="No valid items found in CSV")

    logger.info(f"Importing {len(rows)} stock rows from {file.filename}")
    return await inventory_ops.apply_stock_import(
        db, rows, performed_by=current_user.user_id
    )
