from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String

from clearstock.database.base import Base


class StockEvent(Base):
    __tablename__ = "stock_events"

    id = Column(Integer, primary_key=True)
    restaurant_id = Column(String(64), ForeignKey("restaurants.id"), nullable=False)
    batch_id = Column(Integer, ForeignKey("product_batches.id", ondelete="SET NULL"))

    type = Column(String, nullable=False)
    product_name = Column(String, nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String, nullable=False, default="un")

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_stock_events_restaurant_created", "restaurant_id", "created_at"),
        Index("idx_stock_events_batch", "batch_id"),
    )


__all__ = ["StockEvent"]
