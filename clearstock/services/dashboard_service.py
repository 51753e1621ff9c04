from sqlalchemy.orm import Session

from clearstock.core.constants import UNCATEGORISED_LABEL
from clearstock.core.status_summary import aggregate_statuses, count_statuses
from clearstock.core.thresholds import resolve_thresholds
from clearstock.models.restaurant import Restaurant
from clearstock.services.batch_service import evaluate_batch, list_active_batches

EXPIRY_STATUS_ALIASES = {
    "expired": "EXPIRED",
    "expirado": "EXPIRED",
    "urgent": "URGENT",
    "urgente": "URGENT",
    "warning": "WARNING",
    "expiring": "WARNING",
    "expiring_soon": "WARNING",
    "soon": "WARNING",
    "ok": "OK",
    "fresh": "OK",
}

_STATUS_RANK = {
    "OK": 0,
    "WARNING": 1,
    "URGENT": 2,
    "EXPIRED": 3,
}


def _normalize_status_value(value):
    if value is None:
        return None
    key = str(value).strip().lower()
    if not key:
        return None
    key = key.replace("-", "_").replace(" ", "_")
    while "__" in key:
        key = key.replace("__", "_")
    key = key.strip("_")
    return EXPIRY_STATUS_ALIASES.get(key)


def normalize_status_filters(status_filters):
    if not status_filters:
        return set()
    raw_values = status_filters.split(",") if isinstance(status_filters, str) else status_filters
    normalized = set()
    for entry in raw_values:
        normalized_value = _normalize_status_value(entry)
        if normalized_value:
            normalized.add(normalized_value)
    return normalized


def expiry_summary(db: Session, restaurant: Restaurant, today):
    batches = list_active_batches(db, restaurant.id)
    entries = [
        (batch.expiry_date, resolve_thresholds(restaurant.alert_days_before_expiry, batch.category))
        for batch in batches
    ]
    return {
        "restaurant_id": restaurant.id,
        "as_of": today,
        "total": len(entries),
        "counts": aggregate_statuses(today, entries),
        "alert_days_before_expiry": restaurant.alert_days_before_expiry,
    }


def stock_view(db: Session, restaurant: Restaurant, today, status_filters=None):
    normalized_filters = normalize_status_filters(status_filters)
    items = [
        evaluate_batch(batch, restaurant.alert_days_before_expiry, today)
        for batch in list_active_batches(db, restaurant.id)
    ]
    counts = count_statuses(item["expiry_status"] for item in items)
    if normalized_filters:
        items = [item for item in items if item["expiry_status"] in normalized_filters]
    return {
        "as_of": today,
        "count": len(items),
        "counts": counts,
        "results": items,
    }


def group_by_category(items):
    grouped = {}
    for item in items:
        grouped.setdefault(item.get("category_name") or UNCATEGORISED_LABEL, []).append(item)
    return grouped


def aggregate_by_product(items):
    """Fold evaluated batches into one row per product name.

    Quantities are summed per product and per storage location; the nearest
    expiry date and the most severe status across batches are kept.
    """
    products = {}
    for item in items:
        name = item["name"]
        product = products.get(name)
        if product is None:
            product = {
                "name": name,
                "unit": item["unit"],
                "total_quantity": 0.0,
                "nearest_expiry": item["expiry_date"],
                "batch_count": 0,
                "worst_status": item["expiry_status"],
                "locations": [],
            }
            products[name] = product

        product["batch_count"] += 1
        product["total_quantity"] += item["quantity"]
        if item["expiry_date"] < product["nearest_expiry"]:
            product["nearest_expiry"] = item["expiry_date"]
        if _STATUS_RANK[item["expiry_status"]] > _STATUS_RANK[product["worst_status"]]:
            product["worst_status"] = item["expiry_status"]

        location_name = item.get("location_name")
        if not location_name:
            continue
        for location in product["locations"]:
            if location["name"] == location_name:
                location["quantity"] += item["quantity"]
                break
        else:
            product["locations"].append(
                {"name": location_name, "quantity": item["quantity"], "unit": item["unit"]}
            )

    return sorted(products.values(), key=lambda row: (row["nearest_expiry"], row["name"]))


__all__ = [
    "EXPIRY_STATUS_ALIASES",
    "aggregate_by_product",
    "expiry_summary",
    "group_by_category",
    "normalize_status_filters",
    "stock_view",
]
