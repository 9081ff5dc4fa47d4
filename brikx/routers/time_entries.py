from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from brikx.database import SessionLocal
from brikx.deps.auth import require_auth
from brikx.models.time_entry import TimeEntry
from brikx.schemas.time_entry import TimeEntryCreate, TimeEntryResponse, TimeEntryUpdate
from brikx.services import billing_service, time_entry_service
from brikx.services.billing_allocator import minutes_to_hours

router = APIRouter(
    prefix="/time_entries",
    tags=["Time Entries"],
)


def _to_response(entry: TimeEntry) -> TimeEntryResponse:
    return TimeEntryResponse(
        id=entry.id,
        project_id=entry.project_id,
        phase_code=entry.phase_code,
        occurred_on=entry.occurred_on,
        minutes=entry.minutes,
        hours=minutes_to_hours(entry.minutes),
        notes=entry.notes,
        invoiced_at=entry.invoiced_at,
        invoice_number=entry.invoice_number,
        created_at=entry.created_at,
    )


@router.get("", response_model=list[TimeEntryResponse])
def list_time_entries(
    request: Request,
    _auth: str = Depends(require_auth),
    project_id: Optional[int] = None,
    phase_code: Optional[str] = None,
    invoiced: Optional[bool] = None,
    occurred_from: Optional[date] = None,
    occurred_to: Optional[date] = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
):
    db = SessionLocal()
    try:
        q = db.query(TimeEntry).filter(TimeEntry.user_id == request.state.user_id)

        if project_id is not None:
            q = q.filter(TimeEntry.project_id == int(project_id))
        if phase_code is not None:
            q = q.filter(TimeEntry.phase_code == str(phase_code))
        if invoiced is True:
            q = q.filter(TimeEntry.invoiced_at.isnot(None))
        if invoiced is False:
            q = q.filter(TimeEntry.invoiced_at.is_(None))
        if occurred_from is not None:
            q = q.filter(TimeEntry.occurred_on >= occurred_from)
        if occurred_to is not None:
            q = q.filter(TimeEntry.occurred_on <= occurred_to)

        rows = (
            q.order_by(TimeEntry.occurred_on.desc(), TimeEntry.created_at.desc(), TimeEntry.id.desc())
            .offset(int(offset))
            .limit(int(limit))
            .all()
        )
        return [_to_response(r) for r in rows]
    finally:
        db.close()


@router.post("", response_model=TimeEntryResponse)
def create_time_entry(
    payload: TimeEntryCreate,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        entry = time_entry_service.create_time_entry(
            user_id=request.state.user_id,
            project_id=payload.project_id,
            phase_code=payload.phase_code,
            occurred_on=payload.occurred_on,
            minutes=payload.minutes,
            hours=payload.hours,
            notes=payload.notes,
            db=db,
        )
        db.commit()
        db.refresh(entry)
        return _to_response(entry)
    except LookupError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("/{time_entry_id}", response_model=TimeEntryResponse)
def get_time_entry(
    time_entry_id: str,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        entry = time_entry_service.get_time_entry(db, request.state.user_id, time_entry_id)
        return _to_response(entry)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    finally:
        db.close()


@router.patch("/{time_entry_id}", response_model=TimeEntryResponse)
def update_time_entry(
    time_entry_id: str,
    payload: TimeEntryUpdate,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        entry = time_entry_service.update_time_entry(
            db,
            request.state.user_id,
            time_entry_id,
            project_id=payload.project_id,
            phase_code=payload.phase_code,
            occurred_on=payload.occurred_on,
            minutes=payload.minutes,
            hours=payload.hours,
            notes=payload.notes,
        )
        db.commit()
        db.refresh(entry)
        return _to_response(entry)
    except LookupError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except time_entry_service.InvoicedEntryError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.delete("/{time_entry_id}", status_code=204)
def delete_time_entry(
    time_entry_id: str,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        time_entry_service.delete_time_entry(db, request.state.user_id, time_entry_id)
        db.commit()
    except LookupError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except time_entry_service.InvoicedEntryError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/{time_entry_id}/unmark", response_model=TimeEntryResponse)
def unmark_time_entry(
    time_entry_id: str,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        entry = billing_service.unmark_time_entry(request.state.user_id, time_entry_id, db=db)
        db.commit()
        db.refresh(entry)
        return _to_response(entry)
    except LookupError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
