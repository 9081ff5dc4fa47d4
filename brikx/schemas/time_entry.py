from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class TimeEntryCreate(BaseModel):
    project_id: int
    phase_code: str = Field(..., min_length=1)
    occurred_on: date
    hours: Optional[Decimal] = Field(default=None, gt=0)
    minutes: Optional[int] = Field(default=None, gt=0)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def require_duration(self) -> "TimeEntryCreate":
        if self.hours is None and self.minutes is None:
            raise ValueError("either hours or minutes is required")
        return self


class TimeEntryUpdate(BaseModel):
    project_id: Optional[int] = None
    phase_code: Optional[str] = Field(default=None, min_length=1)
    occurred_on: Optional[date] = None
    hours: Optional[Decimal] = Field(default=None, gt=0)
    minutes: Optional[int] = Field(default=None, gt=0)
    notes: Optional[str] = None


class TimeEntryResponse(BaseModel):
    id: str
    project_id: int
    phase_code: str
    occurred_on: date
    minutes: int
    hours: Decimal
    notes: Optional[str]
    invoiced_at: Optional[date]
    invoice_number: Optional[str]
    created_at: datetime
