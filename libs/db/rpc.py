"""Calls to server-side SQL functions.

The database owns a few set-based jobs (segment membership refresh,
abandoned cart detection). Their bodies live in migrations, not here.
"""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.logging import get_logger

logger = get_logger(__name__)


async def call_rpc(db: AsyncSession, function_name: str, *args: Any) -> Any:
    """Execute ``SELECT function_name(*args)`` and return the scalar result."""
    logger.info(f"Calling database function {function_name}")
    result = await db.execute(select(getattr(func, function_name)(*args)))
    return result.scalar()
