from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _check_non_negative(amounts: Dict[str, int]) -> Dict[str, int]:
    for code, cents in amounts.items():
        if cents < 0:
            raise ValueError(f"amount for phase {code} cannot be negative")
    return amounts


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1)
    client_name: Optional[str] = None
    city: Optional[str] = None
    billing_type: Literal["hourly", "fixed"] = "hourly"
    default_rate_cents: Optional[int] = Field(default=None, ge=0)
    phase_rates_cents: Dict[str, int] = Field(default_factory=dict)
    phase_budgets: Dict[str, int] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name cannot be empty or whitespace")
        return v.strip()

    @field_validator("phase_rates_cents", "phase_budgets")
    @classmethod
    def non_negative_cents(cls, v: Dict[str, int]) -> Dict[str, int]:
        return _check_non_negative(v)


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    client_name: Optional[str] = None
    city: Optional[str] = None
    billing_type: Optional[Literal["hourly", "fixed"]] = None
    default_rate_cents: Optional[int] = Field(default=None, ge=0)
    phase_rates_cents: Optional[Dict[str, int]] = None
    phase_budgets: Optional[Dict[str, int]] = None
    archived: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("name cannot be empty or whitespace")
        return v.strip()

    @field_validator("phase_rates_cents", "phase_budgets")
    @classmethod
    def non_negative_cents(cls, v: Optional[Dict[str, int]]) -> Optional[Dict[str, int]]:
        if v is None:
            return v
        return _check_non_negative(v)


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    client_name: Optional[str]
    city: Optional[str]
    billing_type: str
    default_rate_cents: Optional[int]
    phase_rates_cents: Dict[str, int]
    phase_budgets: Dict[str, int]
    invoiced_phases: List[str]
    archived: bool
    created_at: datetime


class PhaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str
    sort_order: int
