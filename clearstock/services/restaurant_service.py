import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from clearstock.config import get_settings
from clearstock.core.constants import (
    DEFAULT_CATEGORIES,
    DEFAULT_LOCATIONS,
    FALLBACK_ALERT_DAYS,
)
from clearstock.core.thresholds import positive_days
from clearstock.models.category import Category
from clearstock.models.location import Location
from clearstock.models.product_batch import ProductBatch
from clearstock.models.restaurant import Restaurant

logger = logging.getLogger(__name__)


def _default_alert_days() -> int:
    return positive_days(get_settings().DEFAULT_ALERT_DAYS) or FALLBACK_ALERT_DAYS


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def get_or_create_restaurant(
    db: Session,
    restaurant_id: str,
    name: Optional[str] = None,
) -> Restaurant:
    """Idempotent find-or-create for a tenant.

    Two requests racing to create the same tenant both end up with the single
    row that won the primary-key insert; the loser rolls back and re-reads.
    """
    restaurant = db.get(Restaurant, restaurant_id)
    if restaurant is not None:
        return restaurant

    restaurant = Restaurant(
        id=restaurant_id,
        name=(name or "").strip(),
        alert_days_before_expiry=_default_alert_days(),
    )
    if get_settings().SEED_DEFAULTS:
        restaurant.categories = [
            Category(name=category_name, kind=kind) for category_name, kind in DEFAULT_CATEGORIES
        ]
        restaurant.locations = [Location(name=location_name) for location_name in DEFAULT_LOCATIONS]
    db.add(restaurant)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = db.get(Restaurant, restaurant_id)
        if existing is None:
            raise
        logger.info("Restaurant %s was created concurrently; reusing it.", restaurant_id)
        return existing

    logger.info("Created restaurant %s with default catalog.", restaurant_id)
    return restaurant


def update_alert_days(db: Session, restaurant: Restaurant, raw_value) -> Restaurant:
    days = positive_days(raw_value)
    if days is None:
        logger.warning(
            "Invalid alert days %r for restaurant %s; storing fallback %s.",
            raw_value,
            restaurant.id,
            FALLBACK_ALERT_DAYS,
        )
        days = FALLBACK_ALERT_DAYS
    restaurant.alert_days_before_expiry = days
    _commit(db)
    return restaurant


def update_restaurant_name(db: Session, restaurant: Restaurant, name: str) -> Restaurant:
    name = (name or "").strip()
    if not name:
        raise ValueError("Restaurant name is required.")
    restaurant.name = name
    _commit(db)
    return restaurant


def create_category(db: Session, restaurant: Restaurant, name: str, kind: str = "raw") -> Category:
    name = (name or "").strip()
    if not name:
        raise ValueError("Category name is required.")
    kind = "prepared" if kind == "prepared" else "raw"

    existing = db.execute(
        select(Category.id).where(
            Category.restaurant_id == restaurant.id,
            Category.name == name,
        )
    ).first()
    if existing:
        raise ValueError('Category "{}" already exists.'.format(name))

    category = Category(restaurant_id=restaurant.id, name=name, kind=kind)
    db.add(category)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValueError('Category "{}" already exists.'.format(name)) from exc
    return category


def create_location(db: Session, restaurant: Restaurant, name: str) -> Location:
    name = (name or "").strip()
    if not name:
        raise ValueError("Location name is required.")

    existing = db.execute(
        select(Location.id).where(
            Location.restaurant_id == restaurant.id,
            Location.name == name,
        )
    ).first()
    if existing:
        raise ValueError('Location "{}" already exists.'.format(name))

    location = Location(restaurant_id=restaurant.id, name=name)
    db.add(location)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValueError('Location "{}" already exists.'.format(name)) from exc
    return location


def get_category(db: Session, restaurant_id: str, category_id: int) -> Category:
    category = db.execute(
        select(Category).where(
            Category.id == category_id,
            Category.restaurant_id == restaurant_id,
        )
    ).scalars().first()
    if category is None:
        raise LookupError("Category {} not found.".format(category_id))
    return category


def get_location(db: Session, restaurant_id: str, location_id: int) -> Location:
    location = db.execute(
        select(Location).where(
            Location.id == location_id,
            Location.restaurant_id == restaurant_id,
        )
    ).scalars().first()
    if location is None:
        raise LookupError("Location {} not found.".format(location_id))
    return location


def delete_category(db: Session, restaurant: Restaurant, category_id: int) -> None:
    # Batches keep their data and fall back to the restaurant default.
    category = get_category(db, restaurant.id, category_id)
    for batch in db.execute(
        select(ProductBatch).where(ProductBatch.category_id == category.id)
    ).scalars().all():
        batch.category = None
    db.delete(category)
    _commit(db)
    db.expire(restaurant, ["categories"])
    logger.info("Deleted category %s from restaurant %s.", category_id, restaurant.id)


def delete_location(db: Session, restaurant: Restaurant, location_id: int) -> None:
    location = get_location(db, restaurant.id, location_id)
    for batch in db.execute(
        select(ProductBatch).where(ProductBatch.location_id == location.id)
    ).scalars().all():
        batch.location = None
    db.delete(location)
    _commit(db)
    db.expire(restaurant, ["locations"])
    logger.info("Deleted location %s from restaurant %s.", location_id, restaurant.id)


def update_category_alerts(
    db: Session,
    restaurant_id: str,
    category_id: int,
    urgent_raw=None,
    warning_raw=None,
) -> Category:
    category = get_category(db, restaurant_id, category_id)
    category.alert_days_before_expiry = positive_days(urgent_raw)
    category.warning_days_before_expiry = positive_days(warning_raw)

    if (
        category.alert_days_before_expiry is not None
        and category.warning_days_before_expiry is not None
        and category.warning_days_before_expiry < category.alert_days_before_expiry
    ):
        logger.warning(
            "Category %s has warning days (%s) below urgent days (%s); "
            "its WARNING status will never show.",
            category.id,
            category.warning_days_before_expiry,
            category.alert_days_before_expiry,
        )

    _commit(db)
    return category


__all__ = [
    "create_category",
    "create_location",
    "delete_category",
    "delete_location",
    "get_category",
    "get_location",
    "get_or_create_restaurant",
    "update_alert_days",
    "update_category_alerts",
    "update_restaurant_name",
]
