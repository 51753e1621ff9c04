import unittest
from datetime import date
from unittest.mock import patch

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from clearstock.database.base import Base
from clearstock.database.engine import build_engine
from clearstock.models import ProductBatch, Restaurant, import_all_models
from clearstock.schemas.batch import BatchCreate
from clearstock.services import restaurant_service
from clearstock.services.batch_service import create_batch
from clearstock.services.restaurant_service import (
    create_category,
    create_location,
    delete_category,
    delete_location,
    get_location,
    get_or_create_restaurant,
    update_alert_days,
    update_category_alerts,
    update_restaurant_name,
)


class RestaurantServiceTest(unittest.TestCase):
    def setUp(self):
        import_all_models()
        self.engine = build_engine("sqlite:///:memory:")
        Base.metadata.create_all(bind=self.engine)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)
        self.db = self.Session()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_get_or_create_seeds_defaults_once(self):
        first = get_or_create_restaurant(self.db, "A", name="Bistro")
        second = get_or_create_restaurant(self.db, "A")

        self.assertIs(first, second)
        self.assertEqual(first.name, "Bistro")
        self.assertEqual(first.alert_days_before_expiry, 3)
        self.assertEqual(
            [(c.name, c.kind) for c in first.categories],
            [("Fresh", "raw"), ("Frozen", "raw"), ("Dry", "raw"), ("Savouries", "prepared"), ("Soups", "prepared")],
        )
        self.assertEqual([loc.name for loc in first.locations], ["Fridge 1", "Pantry", "Freezer"])
        self.assertEqual(self.db.query(Restaurant).count(), 1)

    def test_get_or_create_recovers_from_concurrent_insert(self):
        other = self.Session()
        get_or_create_restaurant(other, "B")
        other.close()

        original_get = self.db.get
        calls = {"count": 0}

        def stale_get(model, ident):
            # The first lookup misses, as if the other writer had not committed yet.
            calls["count"] += 1
            if calls["count"] == 1:
                return None
            return original_get(model, ident)

        with patch.object(self.db, "get", side_effect=stale_get):
            restaurant = get_or_create_restaurant(self.db, "B")

        self.assertEqual(restaurant.id, "B")
        self.assertEqual(self.db.query(Restaurant).count(), 1)

    def test_get_or_create_reraises_when_row_is_missing(self):
        with patch.object(self.db, "get", return_value=None), patch.object(
            self.db,
            "commit",
            side_effect=IntegrityError("INSERT", {}, Exception("boom")),
        ):
            with self.assertRaises(IntegrityError):
                get_or_create_restaurant(self.db, "C")

    def test_update_alert_days_falls_back_on_invalid_input(self):
        restaurant = get_or_create_restaurant(self.db, "A")
        update_alert_days(self.db, restaurant, "5")
        self.assertEqual(restaurant.alert_days_before_expiry, 5)

        for value in ("abc", 0, -4, None):
            with self.subTest(value=value):
                update_alert_days(self.db, restaurant, value)
                self.assertEqual(restaurant.alert_days_before_expiry, 3)

    def test_update_restaurant_name(self):
        restaurant = get_or_create_restaurant(self.db, "A")
        update_restaurant_name(self.db, restaurant, "  Casa Nova ")
        self.assertEqual(restaurant.name, "Casa Nova")
        with self.assertRaises(ValueError):
            update_restaurant_name(self.db, restaurant, "   ")

    def test_create_category_rejects_blank_and_duplicates(self):
        restaurant = get_or_create_restaurant(self.db, "A")
        category = create_category(self.db, restaurant, " Desserts ", "prepared")
        self.assertEqual(category.name, "Desserts")
        self.assertEqual(category.kind, "prepared")
        self.assertEqual(create_category(self.db, restaurant, "Sauces", "weird").kind, "raw")

        with self.assertRaises(ValueError):
            create_category(self.db, restaurant, "")
        with self.assertRaises(ValueError):
            create_category(self.db, restaurant, "Fresh")

    def test_same_category_name_in_other_tenant(self):
        get_or_create_restaurant(self.db, "A")
        other = get_or_create_restaurant(self.db, "B")
        self.assertEqual(create_category(self.db, other, "Desserts").restaurant_id, "B")

    def test_create_location(self):
        restaurant = get_or_create_restaurant(self.db, "A")
        self.assertEqual(create_location(self.db, restaurant, "Bar fridge").name, "Bar fridge")
        with self.assertRaises(ValueError):
            create_location(self.db, restaurant, "Pantry")

    def test_update_category_alerts(self):
        restaurant = get_or_create_restaurant(self.db, "A")
        category = restaurant.categories[0]

        updated = update_category_alerts(self.db, "A", category.id, urgent_raw="2", warning_raw=6)
        self.assertEqual(updated.alert_days_before_expiry, 2)
        self.assertEqual(updated.warning_days_before_expiry, 6)

        updated = update_category_alerts(self.db, "A", category.id, urgent_raw="", warning_raw="-1")
        self.assertIsNone(updated.alert_days_before_expiry)
        self.assertIsNone(updated.warning_days_before_expiry)

    def test_inverted_category_alerts_are_stored_and_logged(self):
        restaurant = get_or_create_restaurant(self.db, "A")
        category = restaurant.categories[0]
        with self.assertLogs(restaurant_service.logger, level="WARNING"):
            updated = update_category_alerts(self.db, "A", category.id, urgent_raw=10, warning_raw=5)
        self.assertEqual(updated.alert_days_before_expiry, 10)
        self.assertEqual(updated.warning_days_before_expiry, 5)

    def test_update_category_alerts_is_tenant_scoped(self):
        restaurant = get_or_create_restaurant(self.db, "A")
        get_or_create_restaurant(self.db, "B")
        with self.assertRaises(LookupError):
            update_category_alerts(self.db, "B", restaurant.categories[0].id, urgent_raw=2)

    def test_update_alert_days_clamps_huge_values(self):
        restaurant = get_or_create_restaurant(self.db, "A")
        update_alert_days(self.db, restaurant, 10**400)
        self.assertEqual(restaurant.alert_days_before_expiry, 3650)

    def test_delete_category_unlinks_batches(self):
        restaurant = get_or_create_restaurant(self.db, "A")
        fresh = restaurant.categories[0]
        batch = create_batch(
            self.db,
            restaurant,
            BatchCreate(name="Milk", quantity=1, expiry_date=date(2024, 5, 22), category_id=fresh.id),
            today=date(2024, 5, 20),
        )

        delete_category(self.db, restaurant, fresh.id)

        self.assertIsNone(batch.category_id)
        self.assertNotIn("Fresh", [c.name for c in restaurant.categories])
        self.assertEqual(self.db.query(ProductBatch).count(), 1)
        with self.assertRaises(LookupError):
            delete_category(self.db, restaurant, fresh.id)

    def test_delete_location_is_tenant_scoped(self):
        restaurant = get_or_create_restaurant(self.db, "A")
        other = get_or_create_restaurant(self.db, "B")
        pantry = restaurant.locations[1]
        with self.assertRaises(LookupError):
            delete_location(self.db, other, pantry.id)

        delete_location(self.db, restaurant, pantry.id)
        self.assertEqual([loc.name for loc in restaurant.locations], ["Fridge 1", "Freezer"])
        self.assertEqual(get_location(self.db, "A", restaurant.locations[0].id).name, "Fridge 1")


if __name__ == "__main__":
    unittest.main()
