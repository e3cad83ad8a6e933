"""create_marketing_tables

Creates the marketing tables and the two database functions the admin API
calls: ``refresh_all_customer_segments()`` and ``update_abandoned_carts()``.
Both read store-owned tables (profiles, orders, cart_items, products), so the
store migrations must have run first.

Automatic segment criteria keys (all optional, combined with AND):
    min_orders, min_total_spent, inactive_days, joined_within_days

Revision ID: 8c3d2b7e4f21
Revises:
Create Date: 2026-01-04 10:05:00.000000
"""

from alembic import op
from libs.db.base import Base
from services.communications_service import models  # noqa: F401

# revision identifiers, used by Alembic.
revision = "8c3d2b7e4f21"
down_revision = None
branch_labels = None
depends_on = None


MARKETING_TABLES = [
    "customer_segments",
    "customer_segment_members",
    "email_templates",
    "email_campaigns",
    "campaign_recipients",
    "abandoned_carts",
    "site_settings",
    "whatsapp_templates",
    "whatsapp_campaigns",
    "whatsapp_campaign_recipients",
]

REFRESH_SEGMENTS_SQL = """
CREATE OR REPLACE FUNCTION refresh_all_customer_segments() RETURNS void
LANGUAGE plpgsql AS $$
DECLARE
    seg RECORD;
BEGIN
    FOR seg IN
        SELECT id, criteria FROM customer_segments
        WHERE segment_type = 'automatic' AND is_active
    LOOP
        DELETE FROM customer_segment_members WHERE segment_id = seg.id;

        INSERT INTO customer_segment_members (id, segment_id, customer_id, assigned_at)
        SELECT gen_random_uuid(), seg.id, stats.user_id, now()
        FROM (
            SELECT p.id AS user_id,
                   p.created_at AS joined_at,
                   COUNT(o.id) AS order_count,
                   COALESCE(SUM(o.total_amount), 0) AS total_spent,
                   MAX(o.created_at) AS last_order_at
            FROM profiles p
            LEFT JOIN orders o
              ON o.user_id = p.id AND o.status::text <> 'cancelled'
            GROUP BY p.id, p.created_at
        ) stats
        WHERE (seg.criteria->>'min_orders' IS NULL
               OR stats.order_count >= (seg.criteria->>'min_orders')::int)
          AND (seg.criteria->>'min_total_spent' IS NULL
               OR stats.total_spent >= (seg.criteria->>'min_total_spent')::numeric)
          AND (seg.criteria->>'inactive_days' IS NULL
               OR stats.last_order_at IS NULL
               OR stats.last_order_at < now() - make_interval(days => (seg.criteria->>'inactive_days')::int))
          AND (seg.criteria->>'joined_within_days' IS NULL
               OR stats.joined_at >= now() - make_interval(days => (seg.criteria->>'joined_within_days')::int));
    END LOOP;
END;
$$;
"""

UPDATE_ABANDONED_CARTS_SQL = """
CREATE OR REPLACE FUNCTION update_abandoned_carts() RETURNS void
LANGUAGE plpgsql AS $$
BEGIN
    -- Carts untouched for an hour
    INSERT INTO abandoned_carts (
        id, user_id, total_items, total_value, last_activity_at,
        reminder_count, recovered, created_at, updated_at
    )
    SELECT gen_random_uuid(), ci.user_id, SUM(ci.quantity), SUM(ci.quantity * p.price),
           MAX(ci.updated_at), 0, false, now(), now()
    FROM cart_items ci
    JOIN products p ON p.id = ci.product_id
    GROUP BY ci.user_id
    HAVING MAX(ci.updated_at) < now() - interval '1 hour'
    ON CONFLICT (user_id) DO UPDATE
       SET total_items = EXCLUDED.total_items,
           total_value = EXCLUDED.total_value,
           last_activity_at = EXCLUDED.last_activity_at,
           updated_at = now();

    -- Emptied by an order placed after the last activity
    UPDATE abandoned_carts ac
       SET recovered = true, recovered_at = now(), updated_at = now()
     WHERE ac.recovered = false
       AND NOT EXISTS (SELECT 1 FROM cart_items ci WHERE ci.user_id = ac.user_id)
       AND EXISTS (
           SELECT 1 FROM orders o
           WHERE o.user_id = ac.user_id AND o.created_at >= ac.last_activity_at
       );
END;
$$;
"""


def _tables():
    return [Base.metadata.tables[name] for name in MARKETING_TABLES]


def upgrade() -> None:
    Base.metadata.create_all(bind=op.get_bind(), tables=_tables())
    op.execute(REFRESH_SEGMENTS_SQL)
    op.execute(UPDATE_ABANDONED_CARTS_SQL)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS update_abandoned_carts()")
    op.execute("DROP FUNCTION IF EXISTS refresh_all_customer_segments()")
    Base.metadata.drop_all(bind=op.get_bind(), tables=_tables())
