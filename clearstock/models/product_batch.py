from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from clearstock.database.base import Base


class ProductBatch(Base):
    __tablename__ = "product_batches"

    id = Column(Integer, primary_key=True)
    restaurant_id = Column(String(64), ForeignKey("restaurants.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"))
    location_id = Column(Integer, ForeignKey("locations.id", ondelete="SET NULL"))

    name = Column(String, nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String, nullable=False, default="un")
    expiry_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="ACTIVE")

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    category = relationship("Category")
    location = relationship("Location")

    __table_args__ = (
        Index("idx_batches_restaurant_status", "restaurant_id", "status"),
        Index("idx_batches_expiry", "expiry_date"),
    )


__all__ = ["ProductBatch"]
