from typing import Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

RawDays = Optional[Union[int, float, str]]


class CategoryCreate(BaseModel):
    name: str
    kind: Literal["raw", "prepared"] = "raw"


class CategoryRead(BaseModel):
    id: int
    name: str
    kind: str
    urgent_alert_days: Optional[int] = None
    warning_alert_days: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryAlertUpdate(BaseModel):
    # Raw form values; anything non-numeric or non-positive clears the override.
    urgent_alert_days: RawDays = Field(
        None,
        validation_alias=AliasChoices("urgent_alert_days", "alert_days", "alert_days_before_expiry"),
    )
    warning_alert_days: RawDays = Field(
        None,
        validation_alias=AliasChoices(
            "warning_alert_days", "warning_days", "warning_days_before_expiry"
        ),
    )

    model_config = ConfigDict(populate_by_name=True)
