from typing import List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from clearstock.schemas.category import CategoryRead
from clearstock.schemas.location import LocationRead


class RestaurantRead(BaseModel):
    id: str
    name: str
    alert_days_before_expiry: int
    categories: List[CategoryRead] = Field(default_factory=list)
    locations: List[LocationRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class RestaurantSettingsUpdate(BaseModel):
    name: Optional[str] = None
    alert_days: Optional[Union[int, float, str]] = Field(
        None,
        validation_alias=AliasChoices("alert_days", "alert_days_before_expiry"),
    )

    model_config = ConfigDict(populate_by_name=True)
