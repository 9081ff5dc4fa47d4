from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from brikx.database import SessionLocal
from brikx.deps.auth import require_auth
from brikx.models.phase import Phase
from brikx.models.phase_invoice import PhaseInvoice
from brikx.models.project import Project
from brikx.models.time_entry import TimeEntry
from brikx.schemas.project import PhaseResponse, ProjectCreate, ProjectResponse, ProjectUpdate

router = APIRouter(prefix="/projects", tags=["Projects"])
phases_router = APIRouter(prefix="/phases", tags=["Projects"])


def _get_own_project(db, user_id: str, project_id: int) -> Project:
    row = (
        db.query(Project)
        .filter(Project.id == int(project_id), Project.user_id == str(user_id))
        .first()
    )
    if row is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return row


@router.post("", response_model=ProjectResponse)
def create_project(
    payload: ProjectCreate,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        row = Project(
            user_id=request.state.user_id,
            name=payload.name,
            client_name=payload.client_name,
            city=payload.city,
            billing_type=payload.billing_type,
            default_rate_cents=payload.default_rate_cents,
            phase_rates_cents=dict(payload.phase_rates_cents),
            phase_budgets=dict(payload.phase_budgets),
            invoiced_phases=[],
            archived=False,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
    finally:
        db.close()


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    request: Request,
    include_archived: bool = False,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        q = db.query(Project).filter(Project.user_id == request.state.user_id)
        if not include_archived:
            q = q.filter(Project.archived.is_(False))
        return q.order_by(Project.created_at.desc(), Project.id.desc()).all()
    finally:
        db.close()


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: int,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return _get_own_project(db, request.state.user_id, project_id)
    finally:
        db.close()


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    payload: ProjectUpdate,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        row = _get_own_project(db, request.state.user_id, project_id)
        for name, value in payload.model_dump(exclude_unset=True).items():
            if value is None and name not in {"client_name", "city", "default_rate_cents"}:
                continue
            setattr(row, name, value)
        db.commit()
        db.refresh(row)
        return row
    finally:
        db.close()


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: int,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        row = _get_own_project(db, request.state.user_id, project_id)

        invoiced = (
            db.query(TimeEntry)
            .filter(TimeEntry.project_id == row.id, TimeEntry.invoiced_at.isnot(None))
            .count()
        )
        if invoiced:
            raise HTTPException(status_code=409, detail="Project has invoiced time entries; archive it instead")

        db.query(TimeEntry).filter(TimeEntry.project_id == row.id).delete(synchronize_session=False)
        db.query(PhaseInvoice).filter(PhaseInvoice.project_id == row.id).delete(synchronize_session=False)
        db.delete(row)
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    finally:
        db.close()


@phases_router.get("", response_model=List[PhaseResponse])
def list_phases(_auth: str = Depends(require_auth)):
    db = SessionLocal()
    try:
        return db.query(Phase).order_by(Phase.sort_order.asc(), Phase.code.asc()).all()
    finally:
        db.close()
