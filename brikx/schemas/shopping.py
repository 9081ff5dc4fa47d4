import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

IngredientCategory = Literal["produce", "meat", "dairy", "pantry", "spices", "frozen", "other"]


class IngredientIn(BaseModel):
    name: str = Field(..., min_length=1)
    quantity: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = None
    category: IngredientCategory = "other"
    is_optional: bool = False


class RecipeCreate(BaseModel):
    title: str = Field(..., min_length=1)
    default_servings: int = Field(default=2, ge=1)
    ingredients: List[IngredientIn] = Field(default_factory=list)


class IngredientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    quantity: Optional[float]
    unit: Optional[str]
    category: str
    is_optional: bool
    sort_order: int


class RecipeResponse(BaseModel):
    id: int
    title: str
    default_servings: int
    ingredients: List[IngredientResponse]


class MealPlanCreate(BaseModel):
    date: dt.date
    meal_type: Literal["breakfast", "lunch", "dinner", "snack"] = "dinner"
    recipe_id: Optional[int] = None
    servings: int = Field(default=2, ge=1)
    notes: Optional[str] = None


class MealPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: dt.date
    meal_type: str
    recipe_id: Optional[int]
    servings: int
    notes: Optional[str]


class GenerateShoppingListRequest(BaseModel):
    week_start: dt.date
    week_end: dt.date


class CheckedItemToggle(BaseModel):
    item_key: str = Field(..., min_length=1)


class ManualItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    category: IngredientCategory = "other"


class ManualItemUpdate(BaseModel):
    checked: bool


class ManualItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    shopping_list_id: int
    name: str
    category: str
    checked: bool


class FrequentItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_name: str
    frequency: int
    last_used: dt.datetime
