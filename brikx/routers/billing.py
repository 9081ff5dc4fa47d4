from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from brikx.database import SessionLocal
from brikx.deps.auth import require_auth
from brikx.schemas.billing import (
    FixedInvoiceRequest,
    HourlyInvoiceRequest,
    InvoiceRunResponse,
    PhaseBudgetStatusResponse,
    UnbilledSummaryResponse,
)
from brikx.services import billing_service
from brikx.services.billing_allocator import InvoiceRequest
from brikx.services.billing_repository import ConcurrentInvoiceError

router = APIRouter(prefix="/billing", tags=["Billing"])


@router.get("/unbilled", response_model=UnbilledSummaryResponse)
def get_unbilled(
    request: Request,
    _auth: str = Depends(require_auth),
    cutoff_date: Optional[date] = None,
    project_id: Optional[int] = None,
):
    db = SessionLocal()
    try:
        return billing_service.unbilled_summary(
            request.state.user_id,
            db=db,
            cutoff_date=cutoff_date,
            project_id=project_id,
        )
    finally:
        db.close()


@router.post("/hourly", response_model=InvoiceRunResponse)
def invoice_hourly(
    payload: HourlyInvoiceRequest,
    request: Request,
    _auth: str = Depends(require_auth),
):
    invoice_request = InvoiceRequest(
        cutoff_date=payload.cutoff_date,
        target_amount=payload.target_amount,
        project_id=payload.project_id,
        invoice_date=payload.invoice_date,
        invoice_number=payload.invoice_number,
    )

    db = SessionLocal()
    try:
        run = billing_service.invoice_hours(request.state.user_id, invoice_request, db=db)
        db.commit()
        return run
    except ConcurrentInvoiceError as exc:
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


@router.post("/fixed", response_model=PhaseBudgetStatusResponse)
def invoice_fixed(
    payload: FixedInvoiceRequest,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        status = billing_service.invoice_fixed_phases(
            request.state.user_id,
            payload.project_id,
            invoice_date=payload.invoice_date,
            invoice_number=payload.invoice_number,
            mark_phases=payload.mark_phases,
            partial_amounts=payload.partial_amounts,
            db=db,
        )
        db.commit()
        return status
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


@router.get("/fixed/{project_id}", response_model=PhaseBudgetStatusResponse)
def get_phase_budget_status(
    project_id: int,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return billing_service.phase_budget_status(request.state.user_id, project_id, db=db)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    finally:
        db.close()
