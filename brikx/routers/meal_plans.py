from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from brikx.database import SessionLocal
from brikx.deps.auth import require_auth
from brikx.models.meal_plan import MealPlan
from brikx.models.recipe import Recipe
from brikx.schemas.shopping import GenerateShoppingListRequest, MealPlanCreate, MealPlanResponse
from brikx.services import shopping_list_service

router = APIRouter(prefix="/meal_plans", tags=["Meal Planning"])


@router.post("", response_model=MealPlanResponse)
def create_meal_plan(
    payload: MealPlanCreate,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        if payload.recipe_id is not None:
            recipe = (
                db.query(Recipe)
                .filter(Recipe.id == int(payload.recipe_id), Recipe.user_id == request.state.user_id)
                .first()
            )
            if recipe is None:
                raise HTTPException(status_code=404, detail="Recipe not found")

        row = MealPlan(
            user_id=request.state.user_id,
            date=payload.date,
            meal_type=payload.meal_type,
            recipe_id=payload.recipe_id,
            servings=payload.servings,
            notes=payload.notes,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("", response_model=List[MealPlanResponse])
def list_meal_plans(
    request: Request,
    _auth: str = Depends(require_auth),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
):
    db = SessionLocal()
    try:
        q = db.query(MealPlan).filter(MealPlan.user_id == request.state.user_id)
        if date_from is not None:
            q = q.filter(MealPlan.date >= date_from)
        if date_to is not None:
            q = q.filter(MealPlan.date <= date_to)
        return q.order_by(MealPlan.date.asc(), MealPlan.id.asc()).all()
    finally:
        db.close()


@router.post("/shopping_list")
def generate_shopping_list(
    payload: GenerateShoppingListRequest,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return shopping_list_service.generate_shopping_list(
            request.state.user_id,
            payload.week_start,
            payload.week_end,
            db=db,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        db.close()
