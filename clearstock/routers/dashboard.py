from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clearstock.dependencies import current_restaurant, get_db, get_today
from clearstock.models.restaurant import Restaurant
from clearstock.schemas.summary import ExpirySummary, StockView
from clearstock.services.dashboard_service import (
    aggregate_by_product,
    expiry_summary,
    group_by_category,
    stock_view,
)

router = APIRouter(prefix="/restaurants/{restaurant_id}/dashboard", tags=["Dashboard"])


@router.get("/summary", response_model=ExpirySummary)
def dashboard_summary(
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    return expiry_summary(db, restaurant, today)


@router.get("/stock", response_model=StockView)
def dashboard_stock(
    status: str | None = Query(None, description="Expiry status filters (comma-separated)"),
    group: str | None = Query(None, pattern="^(category|product)$", description="Grouping"),
    restaurant: Restaurant = Depends(current_restaurant),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    view = stock_view(db, restaurant, today, status_filters=status)
    if group == "category":
        view["by_category"] = group_by_category(view["results"])
    elif group == "product":
        view["by_product"] = aggregate_by_product(view["results"])
    return view


__all__ = ["router"]
