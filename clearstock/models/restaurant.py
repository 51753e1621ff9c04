import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from clearstock.database.base import Base


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String, nullable=False, default="")
    alert_days_before_expiry = Column(Integer, nullable=False, default=3)

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

    categories = relationship("Category", back_populates="restaurant", order_by="Category.id")
    locations = relationship("Location", back_populates="restaurant", order_by="Location.id")


__all__ = ["Restaurant"]
