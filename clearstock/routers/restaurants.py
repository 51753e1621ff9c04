from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from clearstock.dependencies import current_restaurant, get_db
from clearstock.models.restaurant import Restaurant
from clearstock.schemas.category import CategoryAlertUpdate, CategoryCreate, CategoryRead
from clearstock.schemas.location import LocationCreate, LocationRead
from clearstock.schemas.restaurant import RestaurantRead, RestaurantSettingsUpdate
from clearstock.services.restaurant_service import (
    create_category,
    create_location,
    delete_category,
    delete_location,
    update_alert_days,
    update_category_alerts,
    update_restaurant_name,
)

router = APIRouter(prefix="/restaurants", tags=["Restaurants"])


@router.get("/{restaurant_id}", response_model=RestaurantRead)
def get_restaurant_settings(restaurant: Restaurant = Depends(current_restaurant)):
    return restaurant


@router.put("/{restaurant_id}/settings", response_model=RestaurantRead)
def update_settings(
    payload: RestaurantSettingsUpdate,
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
):
    if payload.name is not None:
        try:
            update_restaurant_name(db, restaurant, payload.name)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    if "alert_days" in payload.model_fields_set:
        update_alert_days(db, restaurant, payload.alert_days)
    db.refresh(restaurant)
    return restaurant


@router.post("/{restaurant_id}/categories", response_model=CategoryRead, status_code=201)
def add_category(
    payload: CategoryCreate,
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
):
    try:
        return create_category(db, restaurant, payload.name, payload.kind)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.put("/{restaurant_id}/categories/{category_id}/alerts", response_model=CategoryRead)
def set_category_alerts(
    category_id: int,
    payload: CategoryAlertUpdate,
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
):
    try:
        return update_category_alerts(
            db,
            restaurant.id,
            category_id,
            urgent_raw=payload.urgent_alert_days,
            warning_raw=payload.warning_alert_days,
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.delete("/{restaurant_id}/categories/{category_id}", status_code=204)
def remove_category(
    category_id: int,
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
):
    try:
        delete_category(db, restaurant, category_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@router.post("/{restaurant_id}/locations", response_model=LocationRead, status_code=201)
def add_location(
    payload: LocationCreate,
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
):
    try:
        return create_location(db, restaurant, payload.name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/{restaurant_id}/locations/{location_id}", status_code=204)
def remove_location(
    location_id: int,
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
):
    try:
        delete_location(db, restaurant, location_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


__all__ = ["router"]
