from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Protocol, Sequence
from uuid import uuid4

from sqlalchemy.orm import Session

from brikx.models.project import Project
from brikx.models.time_entry import TimeEntry
from brikx.services.billing_allocator import BillableEntry, EntrySplit, resolve_rate_cents

logger = logging.getLogger(__name__)


class ConcurrentInvoiceError(Exception):
    """An entry changed between reading the eligible set and writing the run."""


class BillingRepository(Protocol):
    def eligible_entries(
        self,
        user_id: str,
        cutoff_date: Optional[date] = None,
        project_id: Optional[int] = None,
    ) -> List[BillableEntry]:
        ...

    def mark_invoiced(
        self,
        user_id: str,
        entry_ids: Sequence[str],
        invoiced_at: date,
        invoice_number: Optional[str],
    ) -> int:
        ...

    def split_entry(
        self,
        user_id: str,
        split: EntrySplit,
        invoiced_at: date,
        invoice_number: Optional[str],
        notes: str,
    ) -> str:
        ...


class SqlBillingRepository:
    """BillingRepository over a caller-owned session. Never commits."""

    def __init__(self, db: Session):
        self.db = db

    def eligible_entries(
        self,
        user_id: str,
        cutoff_date: Optional[date] = None,
        project_id: Optional[int] = None,
        lock_rows: bool = True,
    ) -> List[BillableEntry]:
        q = (
            self.db.query(TimeEntry, Project)
            .join(Project, Project.id == TimeEntry.project_id)
            .filter(
                TimeEntry.user_id == str(user_id),
                TimeEntry.invoiced_at.is_(None),
            )
        )
        if cutoff_date is not None:
            q = q.filter(TimeEntry.occurred_on <= cutoff_date)
        if project_id is not None:
            q = q.filter(TimeEntry.project_id == int(project_id))

        q = q.order_by(TimeEntry.occurred_on.asc(), TimeEntry.created_at.asc(), TimeEntry.id.asc())
        if lock_rows:
            q = q.with_for_update(of=TimeEntry)
        rows = q.all()

        entries: List[BillableEntry] = []
        for entry, project in rows:
            rate_cents = resolve_rate_cents(
                project.default_rate_cents,
                project.phase_rates_cents,
                entry.phase_code,
            )
            if rate_cents == 0 and lock_rows:
                logger.warning(
                    "No billing rate resolved for time entry; billing at 0",
                    extra={
                        "time_entry_id": entry.id,
                        "project_id": project.id,
                        "phase_code": entry.phase_code,
                    },
                )
            entries.append(
                BillableEntry(
                    id=entry.id,
                    project_id=int(entry.project_id),
                    phase_code=entry.phase_code,
                    occurred_on=entry.occurred_on,
                    minutes=int(entry.minutes),
                    rate_cents=rate_cents,
                    notes=entry.notes,
                )
            )
        return entries

    def mark_invoiced(
        self,
        user_id: str,
        entry_ids: Sequence[str],
        invoiced_at: date,
        invoice_number: Optional[str],
    ) -> int:
        ids = list(entry_ids)
        if not ids:
            return 0

        updated = (
            self.db.query(TimeEntry)
            .filter(
                TimeEntry.user_id == str(user_id),
                TimeEntry.id.in_(ids),
                TimeEntry.invoiced_at.is_(None),
            )
            .update(
                {
                    TimeEntry.invoiced_at: invoiced_at,
                    TimeEntry.invoice_number: invoice_number,
                },
                synchronize_session="fetch",
            )
        )
        if updated != len(ids):
            raise ConcurrentInvoiceError(
                f"Expected to invoice {len(ids)} time entries, updated {updated}"
            )
        return int(updated)

    def split_entry(
        self,
        user_id: str,
        split: EntrySplit,
        invoiced_at: date,
        invoice_number: Optional[str],
        notes: str,
    ) -> str:
        original = split.entry

        # The original row keeps the open remainder; guard against it having moved on.
        updated = (
            self.db.query(TimeEntry)
            .filter(
                TimeEntry.user_id == str(user_id),
                TimeEntry.id == original.id,
                TimeEntry.invoiced_at.is_(None),
                TimeEntry.minutes == original.minutes,
            )
            .update({TimeEntry.minutes: split.remainder_minutes}, synchronize_session="fetch")
        )
        if updated != 1:
            raise ConcurrentInvoiceError(f"Time entry {original.id} changed during invoicing")

        invoiced_part = TimeEntry(
            id=str(uuid4()),
            user_id=str(user_id),
            project_id=original.project_id,
            phase_code=original.phase_code,
            occurred_on=original.occurred_on,
            minutes=split.invoiced_minutes,
            notes=notes,
            invoiced_at=invoiced_at,
            invoice_number=invoice_number,
        )
        self.db.add(invoiced_part)
        self.db.flush()
        return invoiced_part.id
