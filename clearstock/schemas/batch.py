from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

BatchLifecycle = Literal["ACTIVE", "USED", "DISCARDED", "EXPIRED"]
ExpiryStatusName = Literal["EXPIRED", "URGENT", "WARNING", "OK"]


class BatchCreate(BaseModel):
    name: str = Field(min_length=1)
    quantity: float = Field(gt=0)
    unit: str = "un"
    expiry_date: date
    category_id: Optional[int] = None
    location_id: Optional[int] = None


class BatchUpdate(BaseModel):
    # Omitted fields are left untouched; an explicit null clears a category or location.
    name: Optional[str] = Field(None, min_length=1)
    quantity: Optional[float] = Field(None, gt=0)
    unit: Optional[str] = None
    expiry_date: Optional[date] = None
    category_id: Optional[int] = None
    location_id: Optional[int] = None


class BatchStatusUpdate(BaseModel):
    status: BatchLifecycle


class QuantityAdjust(BaseModel):
    delta: float


class BatchRead(BaseModel):
    id: int
    name: str
    quantity: float
    unit: str
    expiry_date: date
    status: BatchLifecycle
    category_id: Optional[int] = None
    location_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class StatusBadge(BaseModel):
    label: str
    variant: str


class BatchEvaluation(BatchRead):
    category_name: Optional[str] = None
    location_name: Optional[str] = None
    days_to_expiry: int
    expiry_status: ExpiryStatusName
    urgent_days: int
    warning_days: int
    badge: StatusBadge
