from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from clearstock.dependencies import current_restaurant, get_db, get_today
from clearstock.models.restaurant import Restaurant
from clearstock.schemas.history import MonthHistory
from clearstock.services.history_service import month_history

router = APIRouter(prefix="/restaurants/{restaurant_id}/history", tags=["History"])


@router.get("", response_model=MonthHistory)
def monthly_history(
    year: Optional[int] = Query(None, ge=1970, le=9998, description="Defaults to the current year"),
    month: Optional[int] = Query(None, ge=1, le=12, description="Defaults to the current month"),
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    try:
        return month_history(
            db,
            restaurant.id,
            year if year is not None else today.year,
            month if month is not None else today.month,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


__all__ = ["router"]
