from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel

from clearstock.schemas.batch import BatchEvaluation, ExpiryStatusName


class StatusCountsRead(BaseModel):
    expired: int
    urgent: int
    warning: int
    ok: int


class ExpirySummary(BaseModel):
    restaurant_id: str
    as_of: date
    total: int
    counts: StatusCountsRead
    alert_days_before_expiry: int


class LocationQuantity(BaseModel):
    name: str
    quantity: float
    unit: str


class ProductStock(BaseModel):
    name: str
    unit: str
    total_quantity: float
    nearest_expiry: date
    batch_count: int
    worst_status: ExpiryStatusName
    locations: List[LocationQuantity]


class StockView(BaseModel):
    as_of: date
    count: int
    counts: StatusCountsRead
    results: List[BatchEvaluation]
    by_category: Optional[Dict[str, List[BatchEvaluation]]] = None
    by_product: Optional[List[ProductStock]] = None
