"""create_store_tables

Revision ID: 5a1f0c2e9b10
Revises:
Create Date: 2026-01-04 10:00:00.000000
"""

from alembic import op
from libs.db.base import Base
from services.store_service import models  # noqa: F401

# revision identifiers, used by Alembic.
revision = "5a1f0c2e9b10"
down_revision = None
branch_labels = None
depends_on = None


STORE_TABLES = [
    "categories",
    "products",
    "profiles",
    "cart_items",
    "orders",
    "order_items",
    "return_requests",
    "store_audit_logs",
    "stock_movements",
    "suppliers",
    "purchase_orders",
    "purchase_order_items",
    "flash_sales",
    "flash_sale_products",
    "product_bundles",
    "bundle_items",
    "bxgy_offers",
    "product_recommendations",
    "user_product_views",
]


def _tables():
    return [Base.metadata.tables[name] for name in STORE_TABLES]


def upgrade() -> None:
    Base.metadata.create_all(bind=op.get_bind(), tables=_tables())


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind(), tables=_tables())
