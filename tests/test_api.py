import unittest
from datetime import datetime, timezone

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from clearstock.database.base import Base
from clearstock.database.engine import build_engine
from clearstock.dependencies import get_db
from clearstock.main import app
from clearstock.models import import_all_models

AS_OF = {"as_of": "2024-04-01"}


class ApiTest(unittest.TestCase):
    def setUp(self):
        import_all_models()
        self.engine = build_engine("sqlite:///:memory:")
        Base.metadata.create_all(bind=self.engine)
        Session = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

        def override_get_db():
            db = Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.engine.dispose()

    def _category_id(self, name):
        restaurant = self.client.get("/restaurants/A").json()
        return next(c["id"] for c in restaurant["categories"] if c["name"] == name)

    def _log(self, name, expiry_date, **extra):
        payload = {"name": name, "quantity": 2, "expiry_date": expiry_date}
        payload.update(extra)
        return self.client.post("/restaurants/A/batches", json=payload, params=AS_OF)

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_restaurant_is_created_on_first_access(self):
        response = self.client.get("/restaurants/A")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["id"], "A")
        self.assertEqual(body["alert_days_before_expiry"], 3)
        self.assertEqual(len(body["categories"]), 5)
        self.assertEqual(len(self.client.get("/restaurants/A").json()["categories"]), 5)

    def test_settings_update_falls_back_on_invalid_days(self):
        response = self.client.put("/restaurants/A/settings", json={"alert_days": "abc", "name": "Tasca"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["alert_days_before_expiry"], 3)
        self.assertEqual(response.json()["name"], "Tasca")

        response = self.client.put("/restaurants/A/settings", json={"alert_days_before_expiry": 6})
        self.assertEqual(response.json()["alert_days_before_expiry"], 6)

    def test_huge_alert_days_are_clamped(self):
        response = self.client.put("/restaurants/A/settings", json={"alert_days": 10**400})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["alert_days_before_expiry"], 3650)

        response = self.client.put("/restaurants/A/settings", json={"alert_days": "9" * 401})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["alert_days_before_expiry"], 3650)

        category_id = self._category_id("Fresh")
        response = self.client.put(
            "/restaurants/A/categories/{}/alerts".format(category_id),
            json={"alert_days": 2**53 + 1, "warning_days": "1e400"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["urgent_alert_days"], 3650)
        self.assertIsNone(response.json()["warning_alert_days"])

        summary = self.client.get("/restaurants/A/dashboard/summary", params=AS_OF)
        self.assertEqual(summary.status_code, 200)

    def test_blank_restaurant_name_is_rejected(self):
        response = self.client.put("/restaurants/A/settings", json={"name": "  "})
        self.assertEqual(response.status_code, 400)

    def test_category_and_location_creation(self):
        response = self.client.post("/restaurants/A/categories", json={"name": "Desserts", "kind": "prepared"})
        self.assertEqual(response.status_code, 201)
        duplicate = self.client.post("/restaurants/A/categories", json={"name": "Desserts"})
        self.assertEqual(duplicate.status_code, 400)

        response = self.client.post("/restaurants/A/locations", json={"name": "Cellar"})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["name"], "Cellar")

    def test_category_alerts(self):
        category_id = self._category_id("Fresh")
        response = self.client.put(
            "/restaurants/A/categories/{}/alerts".format(category_id),
            json={"alert_days": "2", "warning_days": 5},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["urgent_alert_days"], 2)
        self.assertEqual(response.json()["warning_alert_days"], 5)

        missing = self.client.put("/restaurants/A/categories/9999/alerts", json={})
        self.assertEqual(missing.status_code, 404)

    def test_log_batch_returns_evaluation(self):
        response = self._log("Milk", "2024-04-03")
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["days_to_expiry"], 2)
        self.assertEqual(body["expiry_status"], "URGENT")
        self.assertEqual(body["badge"]["variant"], "destructive")

    def test_log_batch_validation(self):
        self.assertEqual(self._log("Milk", "not-a-date").status_code, 422)
        self.assertEqual(self._log("Milk", "2024-04-03", quantity=0).status_code, 422)
        self.assertEqual(self._log("Milk", "2024-04-03", category_id=9999).status_code, 404)

    def test_dashboard_summary_and_stock(self):
        fresh_id = self._category_id("Fresh")
        self.client.put(
            "/restaurants/A/categories/{}/alerts".format(fresh_id),
            json={"warning_alert_days": 7},
        )
        self._log("Yogurt", "2024-03-31")
        self._log("Chicken", "2024-04-03")
        self._log("Lettuce", "2024-04-06", category_id=fresh_id)
        self._log("Rice", "2024-05-01")

        summary = self.client.get("/restaurants/A/dashboard/summary", params=AS_OF).json()
        self.assertEqual(summary["counts"], {"expired": 1, "urgent": 1, "warning": 1, "ok": 1})
        self.assertEqual(summary["as_of"], "2024-04-01")

        stock = self.client.get(
            "/restaurants/A/dashboard/stock",
            params={"as_of": "2024-04-01", "status": "warning", "group": "category"},
        ).json()
        self.assertEqual([item["name"] for item in stock["results"]], ["Lettuce"])
        self.assertEqual(list(stock["by_category"]), ["Fresh"])

        by_product = self.client.get(
            "/restaurants/A/dashboard/stock", params={"as_of": "2024-04-01", "group": "product"}
        ).json()["by_product"]
        self.assertEqual(by_product[0]["name"], "Yogurt")
        self.assertEqual(by_product[0]["worst_status"], "EXPIRED")

    def test_batch_status_change_removes_from_listing(self):
        batch_id = self._log("Bread", "2024-03-20").json()["id"]
        expired = self.client.get("/restaurants/A/batches/expired", params=AS_OF).json()
        self.assertEqual(expired["expired_count"], 1)

        response = self.client.patch(
            "/restaurants/A/batches/{}/status".format(batch_id), json={"status": "DISCARDED"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "DISCARDED")
        self.assertEqual(self.client.get("/restaurants/A/batches", params=AS_OF).json(), [])

        missing = self.client.patch("/restaurants/B/batches/{}/status".format(batch_id), json={"status": "USED"})
        self.assertEqual(missing.status_code, 404)

    def test_edit_adjust_and_waste_batch(self):
        batch_id = self._log("Milk", "2024-04-10", unit="l").json()["id"]
        url = "/restaurants/A/batches/{}".format(batch_id)

        edited = self.client.patch(url, json={"expiry_date": "2024-04-02", "quantity": 5}, params=AS_OF)
        self.assertEqual(edited.status_code, 200)
        self.assertEqual(edited.json()["quantity"], 5)
        self.assertEqual(edited.json()["expiry_status"], "URGENT")
        self.assertEqual(edited.json()["badge"]["label"], "Use urgently (1 day)")

        self.assertEqual(self.client.patch(url, json={"name": " "}).status_code, 400)
        self.assertEqual(self.client.patch(url, json={"quantity": 0}).status_code, 422)

        adjusted = self.client.post(url + "/adjust", json={"delta": -2})
        self.assertEqual(adjusted.status_code, 200)
        self.assertEqual(adjusted.json()["quantity"], 3)
        self.assertEqual(self.client.post(url + "/adjust", json={"delta": 0}).status_code, 400)

        wasted = self.client.post(url + "/waste")
        self.assertEqual(wasted.status_code, 204)
        self.assertEqual(self.client.post(url + "/waste").status_code, 404)

    def test_delete_batch(self):
        batch_id = self._log("Bread", "2024-04-03").json()["id"]
        self.assertEqual(self.client.delete("/restaurants/B/batches/{}".format(batch_id)).status_code, 404)
        self.assertEqual(self.client.delete("/restaurants/A/batches/{}".format(batch_id)).status_code, 204)
        self.assertEqual(self.client.get("/restaurants/A/batches", params=AS_OF).json(), [])

    def test_delete_category_and_location(self):
        fresh_id = self._category_id("Fresh")
        batch_id = self._log("Lettuce", "2024-04-06", category_id=fresh_id).json()["id"]

        response = self.client.delete("/restaurants/A/categories/{}".format(fresh_id))
        self.assertEqual(response.status_code, 204)
        restaurant = self.client.get("/restaurants/A").json()
        self.assertNotIn("Fresh", [c["name"] for c in restaurant["categories"]])
        batches = self.client.get("/restaurants/A/batches", params=AS_OF).json()
        self.assertEqual([(b["id"], b["category_id"]) for b in batches], [(batch_id, None)])
        self.assertEqual(self.client.delete("/restaurants/A/categories/{}".format(fresh_id)).status_code, 404)

        pantry_id = next(loc["id"] for loc in restaurant["locations"] if loc["name"] == "Pantry")
        self.assertEqual(self.client.delete("/restaurants/B/locations/{}".format(pantry_id)).status_code, 404)
        self.assertEqual(self.client.delete("/restaurants/A/locations/{}".format(pantry_id)).status_code, 204)

    def test_monthly_history(self):
        self._log("Eggs", "2024-04-20")
        self._log("Old cream", "2024-03-01")

        # Events are stamped with the current UTC time.
        now = datetime.now(timezone.utc)
        response = self.client.get("/restaurants/A/history", params={"year": now.year, "month": now.month})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([e["type"] for e in body["events"]], ["ENTRY", "WASTE"])
        self.assertEqual(body["products"]["with_entry_data"][0]["product_name"], "Eggs")
        self.assertEqual(body["products"]["without_entry_data"][0]["product_name"], "Old cream")
        self.assertTrue(body["summary"]["has_enough_data"])

        empty = self.client.get("/restaurants/A/history", params={"year": 2020, "month": 1}).json()
        self.assertEqual(empty["events"], [])
        self.assertEqual(self.client.get("/restaurants/A/history", params={"month": 13}).status_code, 422)

    def test_summary_without_as_of_uses_current_date(self):
        response = self.client.get("/restaurants/A/dashboard/summary")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["total"], 0)

    def test_tenants_are_isolated(self):
        self._log("Milk", "2024-04-03")
        summary = self.client.get("/restaurants/B/dashboard/summary", params=AS_OF).json()
        self.assertEqual(summary["total"], 0)


if __name__ == "__main__":
    unittest.main()
