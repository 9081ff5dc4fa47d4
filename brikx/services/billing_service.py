from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from brikx.database import SessionLocal
from brikx.models.phase import Phase
from brikx.models.phase_invoice import PhaseInvoice
from brikx.models.project import Project
from brikx.models.time_entry import TimeEntry
from brikx.services.billing_allocator import (
    AllocationPlan,
    InvoiceRequest,
    allocate,
    append_note,
    invoice_note,
    minutes_to_hours,
    to_money,
)
from brikx.services.billing_repository import BillingRepository, SqlBillingRepository

logger = logging.getLogger(__name__)


@dataclass
class InvoiceRun:
    mode: str
    cutoff_date: date
    invoice_date: date
    invoice_number: Optional[str]
    target_amount: Optional[Decimal]
    available_amount: Decimal
    billed_amount: Decimal
    shortfall: Decimal
    invoiced_entry_ids: List[str] = field(default_factory=list)
    split: Optional[Dict[str, Any]] = None


def _apply_plan(
    repository: BillingRepository,
    user_id: str,
    request: InvoiceRequest,
    plan: AllocationPlan,
) -> InvoiceRun:
    invoice_number = request.normalized_invoice_number
    stamp_date = request.stamp_date

    invoiced_ids = [e.id for e in plan.consumed]
    repository.mark_invoiced(user_id, invoiced_ids, stamp_date, invoice_number)

    split_info = None
    if plan.split is not None:
        split = plan.split
        notes = append_note(split.entry.notes, invoice_note(stamp_date, invoice_number))
        new_id = repository.split_entry(user_id, split, stamp_date, invoice_number, notes)
        invoiced_ids.append(new_id)
        split_info = {
            "time_entry_id": split.entry.id,
            "invoiced_entry_id": new_id,
            "original_minutes": split.entry.minutes,
            "invoiced_minutes": split.invoiced_minutes,
            "remainder_minutes": split.remainder_minutes,
        }

    return InvoiceRun(
        mode=request.mode,
        cutoff_date=request.cutoff_date,
        invoice_date=stamp_date,
        invoice_number=invoice_number,
        target_amount=None if request.target_amount is None else to_money(Decimal(request.target_amount)),
        available_amount=plan.available_amount,
        billed_amount=plan.billed_amount,
        shortfall=plan.shortfall,
        invoiced_entry_ids=invoiced_ids,
        split=split_info,
    )


def invoice_hours(
    user_id: str,
    request: InvoiceRequest,
    *,
    db: Optional[Session] = None,
    repository_factory: Callable[[Session], BillingRepository] = SqlBillingRepository,
) -> InvoiceRun:
    """
    Invoice uninvoiced hours up to request.cutoff_date, either up to
    request.target_amount or all of them.

    Every write of the run goes through one session: if db is provided the
    caller owns the transaction, otherwise it is committed here or rolled
    back as a whole.
    """
    request.validate()

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        repository = repository_factory(db)
        entries = repository.eligible_entries(
            user_id,
            cutoff_date=request.cutoff_date,
            project_id=request.project_id,
        )
        plan = allocate(request, entries)
        run = _apply_plan(repository, user_id, request, plan)
        db.flush()

        if owns_db:
            db.commit()

        logger.info(
            "Hourly invoice run applied",
            extra={
                "user_id": str(user_id),
                "mode": run.mode,
                "eligible_count": len(entries),
                "invoiced_count": len(plan.consumed),
                "split": run.split is not None,
                "billed_amount": str(run.billed_amount),
                "shortfall": str(run.shortfall),
            },
        )
        return run
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def unbilled_summary(
    user_id: str,
    *,
    db: Session,
    cutoff_date: Optional[date] = None,
    project_id: Optional[int] = None,
) -> dict[str, Any]:
    """
    Read-only preview of what an hourly invoice run could bill.

    Grouping: project_id, in project name order.
    """
    entries = SqlBillingRepository(db).eligible_entries(
        user_id, cutoff_date=cutoff_date, project_id=project_id, lock_rows=False
    )

    groups: Dict[int, Dict[str, Any]] = {}
    for e in entries:
        g = groups.setdefault(
            e.project_id,
            {"project_id": e.project_id, "entry_count": 0, "total_minutes": 0, "amount": Decimal(0)},
        )
        g["entry_count"] += 1
        g["total_minutes"] += e.minutes
        g["amount"] += e.line_amount

    projects = {}
    if groups:
        rows = db.query(Project).filter(Project.id.in_(list(groups.keys()))).all()
        projects = {p.id: p for p in rows}

    out = []
    for pid, g in groups.items():
        project = projects.get(pid)
        out.append(
            {
                "project_id": pid,
                "project_name": project.name if project else "Unknown",
                "client_name": project.client_name if project else None,
                "entry_count": g["entry_count"],
                "total_minutes": g["total_minutes"],
                "total_hours": minutes_to_hours(g["total_minutes"]),
                "total_amount": to_money(g["amount"]),
            }
        )
    out.sort(key=lambda g: (g["project_name"].lower(), g["project_id"]))

    total_minutes = sum(g["total_minutes"] for g in out)
    return {
        "cutoff_date": cutoff_date,
        "project_id": project_id,
        "total_minutes": total_minutes,
        "total_hours": minutes_to_hours(total_minutes),
        "total_amount": to_money(sum((e.line_amount for e in entries), Decimal(0))),
        "projects": out,
    }


def unmark_time_entry(user_id: str, time_entry_id: str, *, db: Session) -> TimeEntry:
    """Clear the invoice stamp on one entry. Caller owns the transaction."""
    entry = (
        db.query(TimeEntry)
        .filter(TimeEntry.id == str(time_entry_id), TimeEntry.user_id == str(user_id))
        .first()
    )
    if entry is None:
        raise LookupError("Time entry not found")

    entry.invoiced_at = None
    entry.invoice_number = None
    db.flush()
    return entry


def _get_project(db: Session, user_id: str, project_id: int) -> Project:
    project = (
        db.query(Project)
        .filter(Project.id == int(project_id), Project.user_id == str(user_id))
        .first()
    )
    if project is None:
        raise LookupError("Project not found")
    return project


def _phases_by_code(db: Session) -> Dict[str, Phase]:
    return {p.code: p for p in db.query(Phase).order_by(Phase.sort_order.asc()).all()}


def invoice_fixed_phases(
    user_id: str,
    project_id: int,
    *,
    invoice_date: date,
    db: Session,
    invoice_number: Optional[str] = None,
    mark_phases: Iterable[str] = (),
    partial_amounts: Optional[Mapping[str, Decimal]] = None,
) -> dict[str, Any]:
    """
    Fixed-fee invoicing: mark whole phases invoiced and/or record partial
    amounts against phase budgets. Caller owns the transaction.
    """
    project = _get_project(db, user_id, project_id)
    if not project.phase_budgets:
        raise ValueError("Project has no phase budgets")

    phases = _phases_by_code(db)
    to_mark = list(dict.fromkeys(mark_phases))
    partial_amounts = dict(partial_amounts or {})

    unknown = sorted({c for c in to_mark if c not in phases} | {c for c in partial_amounts if c not in phases})
    if unknown:
        raise ValueError(f"Unknown phase codes: {', '.join(unknown)}")

    for code, amount in partial_amounts.items():
        amount = Decimal(amount)
        if not amount.is_finite() or amount <= 0:
            raise ValueError(f"Partial amount for phase {code} must be positive")

    if not to_mark and not partial_amounts:
        raise ValueError("Nothing to invoice: mark a phase or enter a partial amount")

    number = invoice_number.strip() if invoice_number and invoice_number.strip() else None

    if to_mark:
        merged = set(project.invoiced_phases or []) | set(to_mark)
        project.invoiced_phases = sorted(
            merged, key=lambda c: (phases[c].sort_order if c in phases else 1_000_000, c)
        )
        meta: Dict[str, Any] = {"invoice_date": invoice_date.isoformat()}
        if number:
            meta["invoice_number"] = number
        project.phase_invoice_meta = meta

    created = []
    for code, amount in partial_amounts.items():
        row = PhaseInvoice(
            user_id=str(user_id),
            project_id=project.id,
            phase_code=code,
            amount_cents=int((to_money(Decimal(amount)) * 100).to_integral_value()),
            invoice_date=invoice_date,
            invoice_number=number,
        )
        db.add(row)
        created.append(row)

    db.flush()

    logger.info(
        "Fixed-fee phases invoiced",
        extra={
            "user_id": str(user_id),
            "project_id": project.id,
            "marked_phases": to_mark,
            "partial_count": len(created),
        },
    )
    return phase_budget_status(user_id, project.id, db=db)


def phase_budget_status(user_id: str, project_id: int, *, db: Session) -> dict[str, Any]:
    project = _get_project(db, user_id, project_id)
    phases = _phases_by_code(db)
    budgets = project.phase_budgets or {}
    invoiced_phases = set(project.invoiced_phases or [])

    partial_rows = (
        db.query(
            PhaseInvoice.phase_code.label("phase_code"),
            func.coalesce(func.sum(PhaseInvoice.amount_cents), 0).label("amount_cents"),
        )
        .filter(PhaseInvoice.project_id == project.id, PhaseInvoice.user_id == str(user_id))
        .group_by(PhaseInvoice.phase_code)
        .all()
    )
    partial_cents = {r.phase_code: int(r.amount_cents) for r in partial_rows}

    out = []
    for code, phase in phases.items():
        budget_cents = int(budgets.get(code) or 0)
        invoiced_cents = partial_cents.get(code, 0)
        out.append(
            {
                "phase_code": code,
                "phase_name": phase.name,
                "budget": to_money(Decimal(budget_cents) / 100),
                "partially_invoiced": to_money(Decimal(invoiced_cents) / 100),
                "remaining": to_money(Decimal(max(budget_cents - invoiced_cents, 0)) / 100),
                "invoiced": code in invoiced_phases,
            }
        )

    return {
        "project_id": project.id,
        "billing_type": project.billing_type,
        "phase_invoice_meta": project.phase_invoice_meta,
        "phases": out,
    }
