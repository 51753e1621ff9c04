import argparse
import logging
from datetime import date, timedelta

from sqlalchemy import delete, select

from clearstock.core.logging import setup_logging
from clearstock.database import Base, SessionLocal, engine, ensure_sqlite_schema
from clearstock.models import (
    Category,
    Location,
    ProductBatch,
    Restaurant,
    StockEvent,
    import_all_models,
)
from clearstock.schemas.batch import BatchCreate
from clearstock.services.batch_service import create_batch
from clearstock.services.restaurant_service import get_or_create_restaurant

logger = logging.getLogger("seed_data")


def parse_args():
    parser = argparse.ArgumentParser(description="Seed a demo restaurant with stock batches.")
    parser.add_argument("--restaurant", default="demo", help="Tenant id to seed.")
    parser.add_argument("--name", default="Demo Kitchen", help="Restaurant display name.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear existing data before seeding.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()

    import_all_models()
    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema()

    db = SessionLocal()
    try:
        if args.reset:
            db.execute(delete(StockEvent))
            db.execute(delete(ProductBatch))
            db.execute(delete(Category))
            db.execute(delete(Location))
            db.execute(delete(Restaurant))
            db.commit()

        restaurant = get_or_create_restaurant(db, args.restaurant, name=args.name)
        has_batches = db.execute(
            select(ProductBatch.id).where(ProductBatch.restaurant_id == restaurant.id).limit(1)
        ).first()
        if has_batches:
            logger.info("Seed skipped: restaurant %s already has batches.", restaurant.id)
            return

        categories = {category.name: category for category in restaurant.categories}
        locations = {location.name: location for location in restaurant.locations}
        fresh = categories.get("Fresh")
        if fresh is not None:
            fresh.alert_days_before_expiry = 2
            fresh.warning_days_before_expiry = 5
            db.commit()

        today = date.today()

        seeds = (
            ("Whole milk", 6, "l", -1, fresh, "Fridge 1"),
            ("Chicken breast", 4.5, "kg", 2, fresh, "Fridge 1"),
            ("Vegetable soup", 12, "un", 4, categories.get("Soups"), "Freezer"),
            ("Rice", 10, "kg", 180, categories.get("Dry"), "Pantry"),
        )
        for name, quantity, unit, offset, category, location_name in seeds:
            location = locations.get(location_name)
            payload = BatchCreate(
                name=name,
                quantity=quantity,
                unit=unit,
                expiry_date=today + timedelta(days=offset),
                category_id=category.id if category is not None else None,
                location_id=location.id if location is not None else None,
            )
            create_batch(db, restaurant, payload, today=today)
        logger.info("Seed data created for restaurant %s.", restaurant.id)
    finally:
        db.close()


if __name__ == "__main__":
    main()
