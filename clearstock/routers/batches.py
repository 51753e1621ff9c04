from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from clearstock.dependencies import current_restaurant, get_db, get_today
from clearstock.models.restaurant import Restaurant
from clearstock.schemas.batch import (
    BatchCreate,
    BatchEvaluation,
    BatchRead,
    BatchStatusUpdate,
    BatchUpdate,
    QuantityAdjust,
)
from clearstock.services.batch_service import (
    adjust_batch_quantity,
    count_expired_batches,
    create_batch,
    delete_batch,
    evaluate_batch,
    list_active_batches,
    mark_as_waste,
    update_batch,
    update_batch_status,
)

router = APIRouter(prefix="/restaurants/{restaurant_id}/batches", tags=["Batches"])


@router.post("", response_model=BatchEvaluation, status_code=201)
def log_batch(
    payload: BatchCreate,
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    try:
        batch = create_batch(db, restaurant, payload, today=today)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return evaluate_batch(batch, restaurant.alert_days_before_expiry, today)


@router.get("", response_model=list[BatchEvaluation])
def list_batches(
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    return [
        evaluate_batch(batch, restaurant.alert_days_before_expiry, today)
        for batch in list_active_batches(db, restaurant.id)
    ]


@router.get("/expired")
def expired_batches(
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    return {"as_of": today, "expired_count": count_expired_batches(db, restaurant.id, today)}


@router.patch("/{batch_id}", response_model=BatchEvaluation)
def edit_batch(
    batch_id: int,
    payload: BatchUpdate,
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    try:
        batch = update_batch(db, restaurant.id, batch_id, payload)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return evaluate_batch(batch, restaurant.alert_days_before_expiry, today)


@router.post("/{batch_id}/adjust", response_model=BatchRead)
def adjust_batch(
    batch_id: int,
    payload: QuantityAdjust,
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
):
    try:
        return adjust_batch_quantity(db, restaurant.id, batch_id, payload.delta)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.patch("/{batch_id}/status", response_model=BatchRead)
def change_batch_status(
    batch_id: int,
    payload: BatchStatusUpdate,
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
):
    try:
        return update_batch_status(db, restaurant.id, batch_id, payload.status)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/{batch_id}/waste", status_code=204)
def waste_batch(
    batch_id: int,
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
):
    try:
        mark_as_waste(db, restaurant.id, batch_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@router.delete("/{batch_id}", status_code=204)
def remove_batch(
    batch_id: int,
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
):
    try:
        delete_batch(db, restaurant.id, batch_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


__all__ = ["router"]
