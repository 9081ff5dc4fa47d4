import logging
from datetime import date
from decimal import Decimal

import pytest

from brikx import database
from brikx.models.project import Project
from brikx.models.time_entry import TimeEntry
from brikx.services import billing_service, time_entry_service
from brikx.services.billing_allocator import InvoiceRequest
from brikx.services.billing_repository import ConcurrentInvoiceError, SqlBillingRepository

USER = "architect"


def _seed(db, *, default_rate_cents=8000, phase_rates_cents=None):
    project = Project(
        user_id=USER,
        name="Villa Dijkzicht",
        default_rate_cents=default_rate_cents,
        phase_rates_cents=phase_rates_cents or {},
        phase_budgets={},
        invoiced_phases=[],
    )
    db.add(project)
    db.flush()

    entries = [
        time_entry_service.create_time_entry(
            USER, project.id, "schetsontwerp", occurred_on, minutes=minutes, db=db
        )
        for occurred_on, minutes in (
            (date(2024, 1, 1), 180),
            (date(2024, 1, 5), 120),
            (date(2024, 1, 10), 60),
        )
    ]
    db.commit()
    return project, entries


def _open_minutes():
    db = database.SessionLocal()
    try:
        rows = (
            db.query(TimeEntry)
            .filter(TimeEntry.user_id == USER, TimeEntry.invoiced_at.is_(None))
            .order_by(TimeEntry.occurred_on.asc())
            .all()
        )
        return [r.minutes for r in rows]
    finally:
        db.close()


class _FailingSplitRepository(SqlBillingRepository):
    def split_entry(self, *args, **kwargs):
        raise RuntimeError("storage went away")


class _RacedRepository(SqlBillingRepository):
    """Another run stamps the oldest entry between the read and the write."""

    def eligible_entries(self, user_id, cutoff_date=None, project_id=None):
        entries = super().eligible_entries(user_id, cutoff_date=cutoff_date, project_id=project_id)
        if entries:
            self.db.query(TimeEntry).filter(TimeEntry.id == entries[0].id).update(
                {TimeEntry.invoiced_at: date(2024, 1, 1)}, synchronize_session=False
            )
        return entries


def test_invoice_hours_commits_its_own_session(db):
    _seed(db)

    run = billing_service.invoice_hours(
        USER, InvoiceRequest(cutoff_date=date(2024, 1, 31), target_amount=Decimal("300"))
    )

    assert run.billed_amount == Decimal("300.00")
    assert len(run.invoiced_entry_ids) == 2
    assert _open_minutes() == [75, 60]


def test_failure_mid_run_rolls_back_every_write(db):
    _seed(db)

    with pytest.raises(RuntimeError):
        billing_service.invoice_hours(
            USER,
            InvoiceRequest(cutoff_date=date(2024, 1, 31), target_amount=Decimal("300")),
            repository_factory=_FailingSplitRepository,
        )

    assert _open_minutes() == [180, 120, 60]


def test_entry_taken_by_a_concurrent_run_aborts_the_whole_run(db):
    _seed(db)

    with pytest.raises(ConcurrentInvoiceError):
        billing_service.invoice_hours(
            USER,
            InvoiceRequest(cutoff_date=date(2024, 1, 31)),
            repository_factory=_RacedRepository,
        )

    assert _open_minutes() == [180, 120, 60]


def test_caller_owned_session_is_not_committed(db):
    _seed(db)

    billing_service.invoice_hours(USER, InvoiceRequest(cutoff_date=date(2024, 1, 31)), db=db)
    db.rollback()

    assert _open_minutes() == [180, 120, 60]


def test_missing_rate_bills_zero_and_logs_warning(db, caplog):
    _seed(db, default_rate_cents=None)

    with caplog.at_level(logging.WARNING, logger="brikx.services.billing_repository"):
        run = billing_service.invoice_hours(USER, InvoiceRequest(cutoff_date=date(2024, 1, 31)))

    assert run.billed_amount == Decimal("0.00")
    assert len(run.invoiced_entry_ids) == 3
    assert any("No billing rate" in r.getMessage() for r in caplog.records)


def test_phase_rate_override_is_used(db):
    _seed(db, phase_rates_cents={"schetsontwerp": 12000})

    summary = billing_service.unbilled_summary(USER, db=db, cutoff_date=date(2024, 1, 1))

    assert summary["total_amount"] == Decimal("360.00")
    assert summary["total_hours"] == Decimal("3.00")


def test_invoiced_entries_cannot_be_edited_or_deleted(db):
    _project, entries = _seed(db)
    billing_service.invoice_hours(USER, InvoiceRequest(cutoff_date=date(2024, 1, 1)), db=db)
    db.commit()

    with pytest.raises(time_entry_service.InvoicedEntryError):
        time_entry_service.update_time_entry(db, USER, entries[0].id, minutes=30)
    with pytest.raises(time_entry_service.InvoicedEntryError):
        time_entry_service.delete_time_entry(db, USER, entries[0].id)


def test_unbilled_preview_does_not_warn_about_missing_rate(db, caplog):
    _seed(db, default_rate_cents=None)

    with caplog.at_level(logging.WARNING, logger="brikx.services.billing_repository"):
        summary = billing_service.unbilled_summary(USER, db=db)

    assert summary["total_minutes"] == 360
    assert summary["total_amount"] == Decimal("0.00")
    assert not any("No billing rate" in r.getMessage() for r in caplog.records)
