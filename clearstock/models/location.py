from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from clearstock.database.base import Base


class Location(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True)
    restaurant_id = Column(String(64), ForeignKey("restaurants.id"), nullable=False)
    name = Column(String, nullable=False)

    restaurant = relationship("Restaurant", back_populates="locations")

    __table_args__ = (
        UniqueConstraint("restaurant_id", "name", name="uq_locations_restaurant_name"),
    )


__all__ = ["Location"]
