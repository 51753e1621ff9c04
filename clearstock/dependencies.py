from datetime import date
from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from clearstock.config import get_settings
from clearstock.core.dates import local_today
from clearstock.database.session import get_db
from clearstock.services.restaurant_service import get_or_create_restaurant


def get_today(
    as_of: Optional[date] = Query(None, description="Evaluate as of this date (defaults to today)"),
) -> date:
    if as_of is not None:
        return as_of
    return local_today(get_settings().TIMEZONE)


def current_restaurant(restaurant_id: str, db: Session = Depends(get_db)):
    return get_or_create_restaurant(db, restaurant_id)


__all__ = ["current_restaurant", "get_db", "get_today"]
