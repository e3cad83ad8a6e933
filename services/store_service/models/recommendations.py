"""Product recommendation edges and per-user product views."""

import uuid
from datetime import datetime
from decimal import Decimal

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import RecommendationType, enum_values
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship


class ProductRecommendation(Base):
    """Directed edge: product -> recommended product, scored."""

    __tablename__ = "product_recommendations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    recommended_product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    recommendation_type: Mapped[RecommendationType] = mapped_column(
        SAEnum(
            RecommendationType,
            values_callable=enum_values,
            name="recommendation_type_enum",
        ),
        nullable=False,
    )
    score: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=Decimal("1"), server_default="1"
    )
    is_manual: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint(
            "product_id",
            "recommended_product_id",
            "recommendation_type",
            name="unique_product_recommendation",
        ),
    )

    product = relationship("Product", foreign_keys=[product_id])
    recommended_product = relationship("Product", foreign_keys=[recommended_product_id])

    def __repr__(self):
        return (
            f"<ProductRecommendation {self.product_id}->{self.recommended_product_id}"
            f" {self.recommendation_type}>"
        )


class UserProductView(Base):
    """Last-viewed timestamp and view count per (user, product)."""

    __tablename__ = "user_product_views"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), index=True, nullable=False
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    view_count: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    last_viewed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="unique_user_product_view"),
    )
