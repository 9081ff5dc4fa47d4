from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from brikx.database import SessionLocal
from brikx.deps.auth import require_auth
from brikx.models.recipe import Recipe, RecipeIngredient
from brikx.schemas.shopping import IngredientResponse, RecipeCreate, RecipeResponse

router = APIRouter(prefix="/recipes", tags=["Meal Planning"])


def _to_response(recipe: Recipe, ingredients) -> RecipeResponse:
    return RecipeResponse(
        id=recipe.id,
        title=recipe.title,
        default_servings=recipe.default_servings,
        ingredients=[IngredientResponse.model_validate(i) for i in ingredients],
    )


def _ingredients(db, recipe_id: int):
    return (
        db.query(RecipeIngredient)
        .filter(RecipeIngredient.recipe_id == int(recipe_id))
        .order_by(RecipeIngredient.sort_order.asc(), RecipeIngredient.id.asc())
        .all()
    )


@router.post("", response_model=RecipeResponse)
def create_recipe(
    payload: RecipeCreate,
    request: Request,
    _auth: str = Depends(require_auth),
):
    db = SessionLocal()
    try:
        recipe = Recipe(
            user_id=request.state.user_id,
            title=payload.title.strip(),
            default_servings=payload.default_servings,
        )
        db.add(recipe)
        db.flush()

        for position, ing in enumerate(payload.ingredients):
            db.add(
                RecipeIngredient(
                    recipe_id=recipe.id,
                    name=ing.name.strip(),
                    quantity=ing.quantity,
                    unit=ing.unit,
                    category=ing.category,
                    is_optional=ing.is_optional,
                    sort_order=position,
                )
            )

        db.commit()
        db.refresh(recipe)
        return _to_response(recipe, _ingredients(db, recipe.id))
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("", response_model=List[RecipeResponse])
def list_recipes(request: Request, _auth: str = Depends(require_auth)):
    db = SessionLocal()
    try:
        recipes = (
            db.query(Recipe)
            .filter(Recipe.user_id == request.state.user_id)
            .order_by(Recipe.title.asc(), Recipe.id.asc())
            .all()
        )
        return [_to_response(r, _ingredients(db, r.id)) for r in recipes]
    finally:
        db.close()


@router.get("/{recipe_id}", response_model=RecipeResponse)
def get_recipe(recipe_id: int, request: Request, _auth: str = Depends(require_auth)):
    db = SessionLocal()
    try:
        recipe = (
            db.query(Recipe)
            .filter(Recipe.id == int(recipe_id), Recipe.user_id == request.state.user_id)
            .first()
        )
        if recipe is None:
            raise HTTPException(status_code=404, detail="Recipe not found")
        return _to_response(recipe, _ingredients(db, recipe.id))
    finally:
        db.close()
