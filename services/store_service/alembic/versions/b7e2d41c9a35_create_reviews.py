"""create_reviews

Revision ID: b7e2d41c9a35
Revises: 5a1f0c2e9b10
Create Date: 2026-10-17 09:00:00.000000
"""

from alembic import op
from libs.db.base import Base
from services.store_service import models  # noqa: F401

# revision identifiers, used by Alembic.
revision = "b7e2d41c9a35"
down_revision = "5a1f0c2e9b10"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Databases created from the first revision before reviews existed lack
    # the audit label.
    op.execute("""
        DO $$
        BEGIN
            IF NOT EXISTS (
                SELECT 1 FROM pg_enum
                WHERE enumlabel = 'review'
                AND enumtypid = (
                    SELECT oid FROM pg_type WHERE typname = 'store_audit_entity_type_enum'
                )
            ) THEN
                ALTER TYPE store_audit_entity_type_enum ADD VALUE 'review';
            END IF;
        END$$;
    """)
    Base.metadata.create_all(
        bind=op.get_bind(), tables=[Base.metadata.tables["reviews"]]
    )


def downgrade() -> None:
    # PostgreSQL cannot drop an enum label; 'review' stays.
    Base.metadata.drop_all(bind=op.get_bind(), tables=[Base.metadata.tables["reviews"]])
