"""Read-only references to tables owned by the store service.

Lightweight Core constructs: they take part in SELECTs without registering
the store schema in this service's metadata.
"""

from sqlalchemy import Integer, Numeric, String, column, table
from sqlalchemy.dialects.postgresql import UUID

profiles = table(
    "profiles",
    column("id", UUID(as_uuid=True)),
    column("email", String),
    column("full_name", String),
    column("phone", String),
)

products = table(
    "products",
    column("id", UUID(as_uuid=True)),
    column("name", String),
    column("price", Numeric),
    column("image_url", String),
)

cart_items = table(
    "cart_items",
    column("id", UUID(as_uuid=True)),
    column("user_id", UUID(as_uuid=True)),
    column("product_id", UUID(as_uuid=True)),
    column("quantity", Integer),
)
