from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class HourlyInvoiceRequest(BaseModel):
    cutoff_date: date
    target_amount: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Amount to bill in euros. If omitted, every eligible entry is invoiced.",
    )
    project_id: Optional[int] = None
    invoice_date: Optional[date] = Field(
        default=None,
        description="Date stamped on invoiced entries. Defaults to cutoff_date.",
    )
    invoice_number: Optional[str] = None


class EntrySplitResponse(BaseModel):
    time_entry_id: str
    invoiced_entry_id: str
    original_minutes: int
    invoiced_minutes: int
    remainder_minutes: int


class InvoiceRunResponse(BaseModel):
    mode: str
    cutoff_date: date
    invoice_date: date
    invoice_number: Optional[str]
    target_amount: Optional[Decimal]
    available_amount: Decimal
    billed_amount: Decimal
    shortfall: Decimal
    invoiced_entry_ids: List[str]
    split: Optional[EntrySplitResponse]


class UnbilledProject(BaseModel):
    project_id: int
    project_name: str
    client_name: Optional[str]
    entry_count: int
    total_minutes: int
    total_hours: Decimal
    total_amount: Decimal


class UnbilledSummaryResponse(BaseModel):
    cutoff_date: Optional[date]
    project_id: Optional[int]
    total_minutes: int
    total_hours: Decimal
    total_amount: Decimal
    projects: List[UnbilledProject]


class FixedInvoiceRequest(BaseModel):
    project_id: int
    invoice_date: date
    invoice_number: Optional[str] = None
    mark_phases: List[str] = Field(default_factory=list)
    partial_amounts: Dict[str, Decimal] = Field(default_factory=dict)


class PhaseBudgetLine(BaseModel):
    phase_code: str
    phase_name: str
    budget: Decimal
    partially_invoiced: Decimal
    remaining: Decimal
    invoiced: bool


class PhaseBudgetStatusResponse(BaseModel):
    project_id: int
    billing_type: str
    phase_invoice_meta: Optional[Dict[str, str]]
    phases: List[PhaseBudgetLine]
