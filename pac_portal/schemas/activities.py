from typing import Literal, Optional

from pydantic import BaseModel, Field

DateRange = Literal["all", "today", "week", "month"]


class ActivityFilters(BaseModel):
    search: Optional[str] = None
    action_type: Optional[str] = None
    date_range: DateRange = "all"
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=100)
