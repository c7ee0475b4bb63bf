from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

EventCategory = Literal["training", "operation", "meeting"]


class EventCreate(BaseModel):
    title: str = Field(min_length=3)
    description: Optional[str] = None
    type: str = Field(min_length=1)
    category: EventCategory
    start_date: date
    end_date: date
    time_display: str = Field(min_length=1)
    location: str = Field(min_length=1)
    instructor: Optional[str] = None
    status: str = Field(default="agendado", min_length=1)

    model_config = {"extra": "forbid", "str_strip_whitespace": True}

    @field_validator("end_date")
    @classmethod
    def end_after_start(cls, value: date, info: ValidationInfo) -> date:
        start = info.data.get("start_date")
        if start and value < start:
            raise ValueError("A data final deve ser igual ou posterior à data inicial")
        return value


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3)
    description: Optional[str] = None
    type: Optional[str] = Field(default=None, min_length=1)
    category: Optional[EventCategory] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    time_display: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = Field(default=None, min_length=1)
    instructor: Optional[str] = None
    status: Optional[str] = Field(default=None, min_length=1)

    model_config = {"extra": "forbid", "str_strip_whitespace": True}

    @field_validator(
        "title", "type", "category", "start_date", "end_date", "time_display", "location", "status", mode="before"
    )
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Campo obrigatório")
        return value


class EventFilters(BaseModel):
    category: Optional[EventCategory] = None
    status: Optional[str] = None
    upcoming: bool = False
    limit: int = Field(default=50, ge=1, le=100)
