import logging
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from clearstock.config import get_settings
from clearstock.core.constants import BATCH_STATUSES
from clearstock.core.dates import local_today, normalize_date
from clearstock.core.expiry_rules import classify_days, days_to_expiry, status_badge
from clearstock.core.thresholds import resolve_thresholds
from clearstock.models.category import Category
from clearstock.models.location import Location
from clearstock.models.product_batch import ProductBatch
from clearstock.models.restaurant import Restaurant
from clearstock.models.stock_event import StockEvent
from clearstock.schemas.batch import BatchCreate, BatchUpdate
from clearstock.services.history_service import normalize_product_name

logger = logging.getLogger(__name__)


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def _owned(db: Session, model, restaurant_id: str, obj_id: Optional[int]):
    if obj_id is None:
        return None
    obj = db.execute(
        select(model).where(model.id == obj_id, model.restaurant_id == restaurant_id)
    ).scalars().first()
    if obj is None:
        raise LookupError("{} {} not found.".format(model.__name__, obj_id))
    return obj


def _record_event(db: Session, batch: ProductBatch, event_type: str, quantity: float) -> StockEvent:
    # Batch must already be flushed so the event can carry its id.
    event = StockEvent(
        restaurant_id=batch.restaurant_id,
        batch_id=batch.id,
        type=event_type,
        product_name=batch.name,
        quantity=quantity,
        unit=batch.unit,
    )
    db.add(event)
    return event


def _detach_events(db: Session, batch: ProductBatch) -> None:
    db.flush()
    db.execute(
        update(StockEvent).where(StockEvent.batch_id == batch.id).values(batch_id=None)
    )


def create_batch(
    db: Session,
    restaurant: Restaurant,
    payload: BatchCreate,
    today=None,
) -> ProductBatch:
    """Log a new batch and its history event.

    A batch that is already past its expiry date when logged is recorded as
    WASTE rather than ENTRY, so it never counts as an order in the history.
    """
    category = _owned(db, Category, restaurant.id, payload.category_id)
    location = _owned(db, Location, restaurant.id, payload.location_id)
    if today is None:
        today = local_today(get_settings().TIMEZONE)

    batch = ProductBatch(
        restaurant_id=restaurant.id,
        name=payload.name.strip(),
        quantity=payload.quantity,
        unit=(payload.unit or "").strip() or "un",
        expiry_date=payload.expiry_date,
        status="ACTIVE",
        category=category,
        location=location,
    )
    db.add(batch)
    try:
        db.flush()
        expired_on_entry = batch.expiry_date < normalize_date(today)
        _record_event(db, batch, "WASTE" if expired_on_entry else "ENTRY", batch.quantity)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info(
        "Logged batch %s (%s %s) for restaurant %s, expires %s.",
        batch.id,
        batch.quantity,
        batch.unit,
        restaurant.id,
        batch.expiry_date,
    )
    if expired_on_entry:
        logger.info("Batch %s was already expired on entry; recorded as waste.", batch.id)
    return batch


def list_active_batches(db: Session, restaurant_id: str) -> list[ProductBatch]:
    stmt = (
        select(ProductBatch)
        .options(selectinload(ProductBatch.category), selectinload(ProductBatch.location))
        .where(
            ProductBatch.restaurant_id == restaurant_id,
            ProductBatch.status == "ACTIVE",
        )
        .order_by(ProductBatch.expiry_date, ProductBatch.id)
    )
    return list(db.execute(stmt).scalars().all())


def get_batch(db: Session, restaurant_id: str, batch_id: int) -> ProductBatch:
    return _owned(db, ProductBatch, restaurant_id, batch_id)


def _rename_events(db: Session, batch: ProductBatch, old_name: str, old_unit: str) -> int:
    # Events of this batch, plus same-product events still in the old unit.
    old_key = normalize_product_name(old_name)
    candidates = db.execute(
        select(StockEvent).where(
            StockEvent.restaurant_id == batch.restaurant_id,
            or_(StockEvent.batch_id == batch.id, StockEvent.unit == old_unit),
        )
    ).scalars().all()
    renamed = 0
    for event in candidates:
        if event.batch_id != batch.id and normalize_product_name(event.product_name) != old_key:
            continue
        event.product_name = batch.name
        event.unit = batch.unit
        renamed += 1
    return renamed


def update_batch(
    db: Session,
    restaurant_id: str,
    batch_id: int,
    payload: BatchUpdate,
) -> ProductBatch:
    name = payload.name.strip() if payload.name is not None else None
    if name == "":
        raise ValueError("Batch name is required.")

    batch = get_batch(db, restaurant_id, batch_id)
    fields = payload.model_fields_set
    old_name, old_unit = batch.name, batch.unit

    category = batch.category
    if "category_id" in fields:
        category = _owned(db, Category, restaurant_id, payload.category_id)
    location = batch.location
    if "location_id" in fields:
        location = _owned(db, Location, restaurant_id, payload.location_id)

    batch.category = category
    batch.location = location
    if name is not None:
        batch.name = name
    if payload.quantity is not None:
        batch.quantity = payload.quantity
    if "unit" in fields:
        batch.unit = (payload.unit or "").strip() or "un"
    if payload.expiry_date is not None:
        batch.expiry_date = payload.expiry_date

    renamed = 0
    if batch.name != old_name or batch.unit != old_unit:
        renamed = _rename_events(db, batch, old_name, old_unit)
    _commit(db)

    if renamed:
        logger.info(
            "Batch %s renamed (%s %s -> %s %s); %s history events updated.",
            batch.id,
            old_name,
            old_unit,
            batch.name,
            batch.unit,
            renamed,
        )
    return batch


def adjust_batch_quantity(db: Session, restaurant_id: str, batch_id: int, delta) -> ProductBatch:
    """Add ``delta`` (which may be negative) to a batch's quantity.

    Quantities never drop below zero. A batch that reaches zero becomes USED,
    and a USED batch that gets stock back becomes ACTIVE again. The applied
    change is recorded as an ADJUST event, which history totals ignore.
    """
    if not delta:
        raise ValueError("Quantity adjustment must be non-zero.")

    batch = get_batch(db, restaurant_id, batch_id)
    previous = batch.quantity
    batch.quantity = max(0.0, previous + delta)
    if batch.quantity <= 0:
        batch.status = "USED"
    elif batch.status == "USED":
        batch.status = "ACTIVE"

    _record_event(db, batch, "ADJUST", batch.quantity - previous)
    _commit(db)
    logger.info(
        "Batch %s adjusted from %s to %s %s (%s).",
        batch.id,
        previous,
        batch.quantity,
        batch.unit,
        batch.status,
    )
    return batch


def update_batch_status(db: Session, restaurant_id: str, batch_id: int, status: str) -> ProductBatch:
    status = str(status or "").strip().upper()
    if status not in BATCH_STATUSES:
        raise ValueError("Unknown batch status: {}".format(status))

    batch = get_batch(db, restaurant_id, batch_id)
    previous = batch.status
    batch.status = status
    if status != previous and batch.quantity > 0:
        if status == "USED":
            _record_event(db, batch, "USE", batch.quantity)
        elif status == "DISCARDED":
            _record_event(db, batch, "WASTE", batch.quantity)
    _commit(db)
    logger.info("Batch %s moved from %s to %s.", batch.id, previous, status)
    return batch


def mark_as_waste(db: Session, restaurant_id: str, batch_id: int) -> Optional[StockEvent]:
    """Record the batch's remaining quantity as waste, then remove the batch."""
    batch = get_batch(db, restaurant_id, batch_id)
    event = None
    if batch.quantity > 0:
        event = _record_event(db, batch, "WASTE", batch.quantity)
    _detach_events(db, batch)
    db.delete(batch)
    _commit(db)
    logger.info("Batch %s marked as waste and removed.", batch_id)
    return event


def delete_batch(db: Session, restaurant_id: str, batch_id: int) -> None:
    # Corrections only; no WASTE event is written.
    batch = get_batch(db, restaurant_id, batch_id)
    _detach_events(db, batch)
    db.delete(batch)
    _commit(db)
    logger.info("Batch %s deleted without a waste record.", batch_id)


def evaluate_batch(batch: ProductBatch, restaurant_default, today) -> dict:
    thresholds = resolve_thresholds(restaurant_default, batch.category)
    days = days_to_expiry(today, batch.expiry_date)
    status = classify_days(days, thresholds)
    return {
        "id": batch.id,
        "name": batch.name,
        "quantity": batch.quantity,
        "unit": batch.unit,
        "expiry_date": batch.expiry_date,
        "status": batch.status,
        "category_id": batch.category_id,
        "category_name": batch.category.name if batch.category else None,
        "location_id": batch.location_id,
        "location_name": batch.location.name if batch.location else None,
        "days_to_expiry": days,
        "expiry_status": status.value,
        "urgent_days": thresholds.urgent_days,
        "warning_days": thresholds.warning_days,
        "badge": status_badge(status, days),
    }


def count_expired_batches(db: Session, restaurant_id: str, today) -> int:
    stmt = select(func.count(ProductBatch.id)).where(
        ProductBatch.restaurant_id == restaurant_id,
        ProductBatch.status == "ACTIVE",
        ProductBatch.expiry_date < today,
        ProductBatch.quantity > 0,
    )
    expired = db.execute(stmt).scalar_one()
    if expired:
        logger.info("Restaurant %s has %s expired active batches.", restaurant_id, expired)
    return expired


__all__ = [
    "adjust_batch_quantity",
    "count_expired_batches",
    "create_batch",
    "delete_batch",
    "evaluate_batch",
    "get_batch",
    "list_active_batches",
    "mark_as_waste",
    "update_batch",
    "update_batch_status",
]
