from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from brikx.database import SessionLocal
from brikx.deps.auth import require_auth
from brikx.schemas.shopping import (
    CheckedItemToggle,
    FrequentItemResponse,
    ManualItemCreate,
    ManualItemResponse,
    ManualItemUpdate,
)
from brikx.services import shopping_list_service

router = APIRouter(prefix="/shopping_lists", tags=["Shopping Lists"])


@router.get("/frequent_items", response_model=List[FrequentItemResponse])
def list_frequent_items(
    request: Request,
    _auth: str = Depends(require_auth),
    limit: int = Query(default=10, ge=1, le=100),
):
    db = SessionLocal()
    try:
        return shopping_list_service.frequent_items(db, request.state.user_id, limit=limit)
    finally:
        db.close()


@router.patch("/manual_items/{item_id}", response_model=ManualItemResponse)
def update_manual_item(
    item_id: int,
    payload: ManualItemUpdate,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        row = shopping_list_service.set_manual_item_checked(
            db, request.state.user_id, item_id, payload.checked
        )
        db.commit()
        db.refresh(row)
        return row
    except LookupError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    finally:
        db.close()


@router.delete("/manual_items/{item_id}", status_code=204)
def delete_manual_item(
    item_id: int,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        shopping_list_service.remove_manual_item(db, request.state.user_id, item_id)
        db.commit()
    except LookupError as exc:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    finally:
        db.close()


@router.get("/{week_start}")
def get_shopping_list(
    week_start: date,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        view = shopping_list_service.shopping_list_view(request.state.user_id, week_start, db=db)
        db.commit()
        return view
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/{week_start}/checked")
def toggle_checked(
    week_start: date,
    payload: CheckedItemToggle,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        shopping_list = shopping_list_service.get_or_create_shopping_list(
            db, request.state.user_id, week_start
        )
        checked = shopping_list_service.toggle_checked_item(db, shopping_list, payload.item_key)
        db.commit()
        return {"item_key": payload.item_key, "checked": checked}
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/{week_start}/manual_items", response_model=ManualItemResponse)
def create_manual_item(
    week_start: date,
    payload: ManualItemCreate,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        shopping_list = shopping_list_service.get_or_create_shopping_list(
            db, request.state.user_id, week_start
        )
        row, _created = shopping_list_service.add_manual_item(
            db, request.state.user_id, shopping_list, payload.name, payload.category
        )
        db.commit()
        db.refresh(row)
        return row
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/{week_start}/clear_checked")
def clear_checked(
    week_start: date,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        shopping_list = shopping_list_service.get_or_create_shopping_list(
            db, request.state.user_id, week_start
        )
        result = shopping_list_service.clear_checked(db, shopping_list)
        db.commit()
        return result
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
