from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from clearstock.database.base import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    restaurant_id = Column(String(64), ForeignKey("restaurants.id"), nullable=False)

    name = Column(String, nullable=False)
    kind = Column(String, nullable=False, default="raw")

    # Per-category overrides; NULL means "use the restaurant default".
    alert_days_before_expiry = Column(Integer)
    warning_days_before_expiry = Column(Integer)

    restaurant = relationship("Restaurant", back_populates="categories")

    __table_args__ = (
        UniqueConstraint("restaurant_id", "name", name="uq_categories_restaurant_name"),
    )

    @property
    def urgent_alert_days(self):
        return self.alert_days_before_expiry

    @property
    def warning_alert_days(self):
        return self.warning_days_before_expiry


__all__ = ["Category"]
