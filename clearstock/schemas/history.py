from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

StockEventType = Literal["ENTRY", "WASTE", "USE", "ADJUST"]


class StockEventRead(BaseModel):
    id: int
    type: StockEventType
    batch_id: Optional[int] = None
    product_name: str
    quantity: float
    unit: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductWaste(BaseModel):
    product_name: str
    normalized_name: str
    unit: str
    total_ordered: float
    total_wasted: float
    waste_percentage: Optional[float] = None
    has_entry_data: bool
    suggestion: str


class ProductWasteReport(BaseModel):
    with_entry_data: List[ProductWaste] = Field(default_factory=list)
    without_entry_data: List[ProductWaste] = Field(default_factory=list)
    products_with_multiple_units: List[str] = Field(default_factory=list)


class UnitTotals(BaseModel):
    unit: str
    ordered: float
    wasted: float
    waste_percentage: Optional[float] = None


class MonthlySummary(BaseModel):
    totals_by_unit: List[UnitTotals] = Field(default_factory=list)
    waste_percentage: Optional[float] = None
    has_enough_data: bool
    has_mixed_units: bool


class MonthHistory(BaseModel):
    restaurant_id: str
    year: int
    month: int
    events: List[StockEventRead] = Field(default_factory=list)
    products: ProductWasteReport
    summary: MonthlySummary
