from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from brikx.database import SessionLocal
from brikx.models.phase import Phase
from brikx.models.project import Project
from brikx.models.time_entry import TimeEntry


class InvoicedEntryError(ValueError):
    """Invoiced entries are frozen until they are unmarked."""


def to_minutes(*, minutes: Optional[int] = None, hours: Optional[Decimal] = None) -> int:
    if minutes is not None:
        value = int(minutes)
    elif hours is not None:
        value = int((Decimal(str(hours)) * 60).to_integral_value(rounding=ROUND_HALF_UP))
    else:
        raise ValueError("Either minutes or hours is required")

    if value <= 0:
        raise ValueError("Duration must be positive")
    return value


def _require_project(db: Session, user_id: str, project_id: int) -> Project:
    project = (
        db.query(Project)
        .filter(Project.id == int(project_id), Project.user_id == str(user_id))
        .first()
    )
    if project is None:
        raise LookupError("Project not found")
    return project


def _require_phase(db: Session, phase_code: str) -> Phase:
    phase = db.query(Phase).filter(Phase.code == str(phase_code)).first()
    if phase is None:
        raise ValueError(f"Unknown phase code: {phase_code}")
    return phase


def get_time_entry(db: Session, user_id: str, time_entry_id: str) -> TimeEntry:
    entry = (
        db.query(TimeEntry)
        .filter(TimeEntry.id == str(time_entry_id), TimeEntry.user_id == str(user_id))
        .first()
    )
    if entry is None:
        raise LookupError("Time entry not found")
    return entry


def create_time_entry(
    user_id: str,
    project_id: int,
    phase_code: str,
    occurred_on: date,
    *,
    minutes: Optional[int] = None,
    hours: Optional[Decimal] = None,
    notes: Optional[str] = None,
    db: Optional[Session] = None,
) -> TimeEntry:
    """
    If db is provided, this function will NOT commit/close. Caller owns the transaction.
    If db is None, this function manages its own session + commit.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        duration = to_minutes(minutes=minutes, hours=hours)
        _require_project(db, user_id, project_id)
        _require_phase(db, phase_code)

        entry = TimeEntry(
            id=str(uuid4()),
            user_id=str(user_id),
            project_id=int(project_id),
            phase_code=str(phase_code),
            occurred_on=occurred_on,
            minutes=duration,
            notes=notes or None,
            invoiced_at=None,
            invoice_number=None,
        )
        db.add(entry)
        db.flush()
        db.refresh(entry)

        if owns_db:
            db.commit()

        return entry
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def update_time_entry(
    db: Session,
    user_id: str,
    time_entry_id: str,
    *,
    project_id: Optional[int] = None,
    phase_code: Optional[str] = None,
    occurred_on: Optional[date] = None,
    minutes: Optional[int] = None,
    hours: Optional[Decimal] = None,
    notes: Optional[str] = None,
) -> TimeEntry:
    entry = get_time_entry(db, user_id, time_entry_id)
    if entry.invoiced_at is not None:
        raise InvoicedEntryError("Invoiced time entries cannot be edited; unmark first")

    if project_id is not None:
        _require_project(db, user_id, project_id)
        entry.project_id = int(project_id)
    if phase_code is not None:
        _require_phase(db, phase_code)
        entry.phase_code = str(phase_code)
    if occurred_on is not None:
        entry.occurred_on = occurred_on
    if minutes is not None or hours is not None:
        entry.minutes = to_minutes(minutes=minutes, hours=hours)
    if notes is not None:
        entry.notes = notes or None

    db.flush()
    return entry


def delete_time_entry(db: Session, user_id: str, time_entry_id: str) -> None:
    entry = get_time_entry(db, user_id, time_entry_id)
    if entry.invoiced_at is not None:
        raise InvoicedEntryError("Invoiced time entries cannot be deleted; unmark first")
    db.delete(entry)
    db.flush()
