"""Admin Tally export router."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.store_service.services.export_ops import (
    ExportFormat,
    ExportType,
    build_export,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/exports", tags=["admin-store"])


@router.get("/tally/{export_type}")
async def export_tally(
    export_type: ExportType,
    export_format: ExportFormat = Query("csv", alias="format"),
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Download sales, inventory, customer, product or GST summary data for Tally.

    Cancelled orders are excluded; ``from``/``to`` bound order and movement
    dates inclusively.
    """
    if from_date and to_date and from_date > to_date:
        raise HTTPException(status_code=400, detail="'from' must not be after 'to'")

    export = await build_export(
        db,
        export_type=export_type,
        export_format=export_format,
        from_date=from_date,
        to_date=to_date,
    )
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f"attachment; filename={export.filename}"},
    )
