import logging
import math
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from clearstock.models.stock_event import StockEvent

logger = logging.getLogger(__name__)

# Percentages above this come from inconsistent data (e.g. waste logged for
# stock ordered before the period) and are reported as unknown.
MAX_WASTE_PERCENTAGE = 200.0
HIGH_WASTE_PERCENTAGE = 30.0
UNNAMED_PRODUCT = "Unnamed product"


def normalize_product_name(name) -> str:
    return (name or "").strip().lower()


def _month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    if not 1 <= month <= 12:
        raise ValueError("Month must be between 1 and 12.")
    if not 1 <= year <= 9998:
        raise ValueError("Year out of range.")
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start, end


def stock_events_for_month(db: Session, restaurant_id: str, year: int, month: int) -> list[StockEvent]:
    start, end = _month_bounds(year, month)
    events = (
        db.execute(
            select(StockEvent)
            .where(
                StockEvent.restaurant_id == restaurant_id,
                StockEvent.created_at >= start,
                StockEvent.created_at < end,
            )
            .order_by(StockEvent.created_at, StockEvent.id)
        )
        .scalars()
        .all()
    )
    return list(events)


def _waste_percentage(ordered: float, wasted: float):
    if ordered <= 0:
        return None
    percentage = wasted / ordered * 100
    if percentage > MAX_WASTE_PERCENTAGE:
        return None
    return percentage


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def order_suggestion(ordered: float, wasted: float, unit: str, waste_percentage) -> str:
    if ordered == 0:
        return "No orders logged in this period (probably old stock)."
    if wasted >= ordered:
        return (
            "Almost everything was wasted ({:.0f} {unit} of {:.0f} {unit}): "
            "order much less or pause this product.".format(wasted, ordered, unit=unit)
        )
    if wasted == 0:
        return "Keeping ~{} {} looks right.".format(_round_half_up(ordered), unit)

    base = _round_half_up(ordered - wasted)
    if waste_percentage is not None and waste_percentage >= HIGH_WASTE_PERCENTAGE:
        return "A large share was wasted ({:.0f}%): consider reducing to ~{} {}.".format(
            waste_percentage, base, unit
        )
    return "Consider ordering ~{} {}.".format(base, unit)


def aggregate_events_by_product(events: Iterable) -> dict:
    """Fold ENTRY and WASTE events into per-product order and waste totals.

    Products are keyed by normalised name and unit, so "Milk" and "milk " in
    litres are one product while milk in litres and in units stay separate.
    USE and ADJUST events do not count towards either total.
    """
    products: dict[tuple[str, str], dict] = {}
    for event in events:
        if event.type not in ("ENTRY", "WASTE"):
            continue
        key = (normalize_product_name(event.product_name), event.unit)
        product = products.setdefault(key, {"names": [], "entry": 0.0, "waste": 0.0})
        if event.product_name not in product["names"]:
            product["names"].append(event.product_name)
        if event.type == "ENTRY":
            product["entry"] += event.quantity
        else:
            product["waste"] += event.quantity

    units_by_name: dict[str, set] = {}
    for (normalized, unit), product in products.items():
        if product["entry"] > 0 or product["waste"] > 0:
            units_by_name.setdefault(normalized, set()).add(unit)

    with_entry_data = []
    without_entry_data = []
    for (normalized, unit), product in products.items():
        ordered = product["entry"]
        wasted = product["waste"]
        names = [name for name in product["names"] if name and name.strip()]
        percentage = _waste_percentage(ordered, wasted)
        summary = {
            "product_name": names[0] if names else UNNAMED_PRODUCT,
            "normalized_name": normalized,
            "unit": unit,
            "total_ordered": ordered,
            "total_wasted": wasted,
            "waste_percentage": percentage,
            "has_entry_data": ordered > 0,
            "suggestion": order_suggestion(ordered, wasted, unit, percentage),
        }
        if ordered > 0:
            with_entry_data.append(summary)
        else:
            without_entry_data.append(summary)

    # Highest waste first; unknown percentages sort after known ones.
    with_entry_data.sort(
        key=lambda item: (
            item["waste_percentage"] is None,
            -(item["waste_percentage"] or 0.0),
            item["product_name"].lower(),
        )
    )
    without_entry_data.sort(key=lambda item: item["product_name"].lower())

    return {
        "with_entry_data": with_entry_data,
        "without_entry_data": without_entry_data,
        "products_with_multiple_units": sorted(
            name for name, units in units_by_name.items() if len(units) > 1
        ),
    }


def monthly_summary(events: Iterable) -> dict:
    # Totals are kept per unit; kilograms and units are never added together.
    totals: dict[str, dict] = {}
    for event in events:
        if event.type not in ("ENTRY", "WASTE"):
            continue
        unit = event.unit or "un"
        bucket = totals.setdefault(unit, {"ordered": 0.0, "wasted": 0.0})
        if event.type == "ENTRY":
            bucket["ordered"] += event.quantity
        else:
            bucket["wasted"] += event.quantity

    totals_by_unit = [
        {
            "unit": unit,
            "ordered": bucket["ordered"],
            "wasted": bucket["wasted"],
            "waste_percentage": _waste_percentage(bucket["ordered"], bucket["wasted"]),
        }
        for unit, bucket in sorted(totals.items())
    ]
    has_mixed_units = len(totals_by_unit) > 1
    has_enough_data = any(row["ordered"] > 0 for row in totals_by_unit)

    waste_percentage = None
    if has_enough_data and len(totals_by_unit) == 1:
        waste_percentage = totals_by_unit[0]["waste_percentage"]

    return {
        "totals_by_unit": totals_by_unit,
        "waste_percentage": waste_percentage,
        "has_enough_data": has_enough_data,
        "has_mixed_units": has_mixed_units,
    }


def month_history(db: Session, restaurant_id: str, year: int, month: int) -> dict:
    events = stock_events_for_month(db, restaurant_id, year, month)
    logger.debug(
        "Loaded %s stock events for restaurant %s in %04d-%02d.",
        len(events),
        restaurant_id,
        year,
        month,
    )
    return {
        "restaurant_id": restaurant_id,
        "year": year,
        "month": month,
        "events": events,
        "products": aggregate_events_by_product(events),
        "summary": monthly_summary(events),
    }


__all__ = [
    "aggregate_events_by_product",
    "month_history",
    "monthly_summary",
    "normalize_product_name",
    "order_suggestion",
    "stock_events_for_month",
]
