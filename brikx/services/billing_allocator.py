from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Mapping, Optional

EPSILON = Decimal("0.000001")
CENT = Decimal("0.01")
MINUTES_PER_HOUR = 60


def to_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def minutes_to_hours(minutes: int) -> Decimal:
    return (Decimal(int(minutes)) / MINUTES_PER_HOUR).quantize(CENT, rounding=ROUND_HALF_UP)


def amount_for_minutes(minutes: int, rate_cents: int) -> Decimal:
    # Unrounded euros; rounding happens once per run, not per line.
    return Decimal(int(minutes)) * Decimal(int(rate_cents)) / (MINUTES_PER_HOUR * 100)


def resolve_rate_cents(
    default_rate_cents: Optional[int],
    phase_rates_cents: Optional[Mapping[str, int]],
    phase_code: str,
) -> int:
    """Phase override first, then the project default, then 0."""
    overrides = phase_rates_cents or {}
    rate = overrides.get(phase_code)
    if rate is None:
        rate = default_rate_cents
    if rate is None:
        return 0
    return int(rate)


@dataclass(frozen=True)
class BillableEntry:
    id: str
    project_id: int
    phase_code: str
    occurred_on: date
    minutes: int
    rate_cents: int
    notes: Optional[str] = None

    @property
    def line_amount(self) -> Decimal:
        return amount_for_minutes(self.minutes, self.rate_cents)


@dataclass(frozen=True)
class EntrySplit:
    entry: BillableEntry
    invoiced_minutes: int
    remainder_minutes: int

    @property
    def amount(self) -> Decimal:
        return amount_for_minutes(self.invoiced_minutes, self.entry.rate_cents)


@dataclass(frozen=True)
class InvoiceRequest:
    cutoff_date: Optional[date]
    target_amount: Optional[Decimal] = None
    project_id: Optional[int] = None
    invoice_date: Optional[date] = None
    invoice_number: Optional[str] = None

    def validate(self) -> None:
        if self.cutoff_date is None:
            raise ValueError("cutoff_date is required")
        if self.target_amount is not None:
            if not Decimal(self.target_amount).is_finite() or Decimal(self.target_amount) <= 0:
                raise ValueError("target_amount must be a positive amount")

    @property
    def mode(self) -> str:
        return "mark_all" if self.target_amount is None else "amount"

    @property
    def stamp_date(self) -> date:
        return self.invoice_date or self.cutoff_date

    @property
    def normalized_invoice_number(self) -> Optional[str]:
        if self.invoice_number is None or not self.invoice_number.strip():
            return None
        return self.invoice_number.strip()


@dataclass
class AllocationPlan:
    target_amount: Optional[Decimal]
    available_amount: Decimal
    consumed: List[BillableEntry] = field(default_factory=list)
    split: Optional[EntrySplit] = None

    @property
    def billed_amount(self) -> Decimal:
        total = sum((e.line_amount for e in self.consumed), Decimal(0))
        if self.split is not None:
            total += self.split.amount
        return to_money(total)

    @property
    def shortfall(self) -> Decimal:
        if self.target_amount is None:
            return Decimal("0.00")
        return max(to_money(Decimal(self.target_amount)) - self.billed_amount, Decimal("0.00"))

    @property
    def is_empty(self) -> bool:
        return not self.consumed and self.split is None


def _oldest_first(entries: Iterable[BillableEntry]) -> List[BillableEntry]:
    # sorted() is stable: equal dates keep repository order.
    return sorted(entries, key=lambda e: e.occurred_on)


def _available(entries: List[BillableEntry]) -> Decimal:
    return sum((e.line_amount for e in entries), Decimal(0))


def plan_by_amount(entries: Iterable[BillableEntry], target_amount: Decimal) -> AllocationPlan:
    """Consume entries oldest first until target_amount is billed.

    The first entry that does not fit is split in whole minutes: the
    invoiced part covers what is left of the target, the remainder stays
    open. Later entries are never touched.
    """
    ordered = _oldest_first(entries)
    target = Decimal(target_amount)
    plan = AllocationPlan(target_amount=target, available_amount=to_money(_available(ordered)))

    remaining = target
    for entry in ordered:
        if remaining <= 0:
            break

        line_amount = entry.line_amount
        if line_amount <= remaining + EPSILON:
            plan.consumed.append(entry)
            remaining -= line_amount
            continue

        # line_amount > remaining > 0 implies a positive rate here.
        exact_minutes = remaining * MINUTES_PER_HOUR * 100 / Decimal(entry.rate_cents)
        invoiced_minutes = int(exact_minutes.to_integral_value(rounding=ROUND_HALF_UP))

        if invoiced_minutes >= entry.minutes:
            plan.consumed.append(entry)
        elif invoiced_minutes > 0:
            plan.split = EntrySplit(
                entry=entry,
                invoiced_minutes=invoiced_minutes,
                remainder_minutes=entry.minutes - invoiced_minutes,
            )
        remaining = Decimal(0)
        break

    return plan


def plan_mark_all(entries: Iterable[BillableEntry]) -> AllocationPlan:
    ordered = _oldest_first(entries)
    return AllocationPlan(
        target_amount=None,
        available_amount=to_money(_available(ordered)),
        consumed=list(ordered),
    )


def allocate(request: InvoiceRequest, entries: Iterable[BillableEntry]) -> AllocationPlan:
    request.validate()

    eligible = [
        e
        for e in entries
        if e.occurred_on <= request.cutoff_date
        and (request.project_id is None or e.project_id == request.project_id)
    ]

    if request.target_amount is None:
        return plan_mark_all(eligible)
    return plan_by_amount(eligible, Decimal(request.target_amount))


def invoice_note(stamp_date: date, invoice_number: Optional[str]) -> str:
    tag = f"[INV {stamp_date.isoformat()}"
    if invoice_number:
        tag += f" #{invoice_number}"
    return tag + "]"


def append_note(notes: Optional[str], tag: str) -> str:
    if notes and notes.strip():
        return f"{notes.strip()} {tag}"
    return tag
