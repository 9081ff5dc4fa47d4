from brikx.models.meal_plan import MealPlan
from brikx.models.phase import Phase
from brikx.models.phase_invoice import PhaseInvoice
from brikx.models.project import Project
from brikx.models.recipe import Recipe, RecipeIngredient
from brikx.models.shopping_list import (
    FrequentItem,
    ShoppingList,
    ShoppingListCheckedItem,
    ShoppingListManualItem,
)
from brikx.models.time_entry import TimeEntry

__all__ = [
    "FrequentItem",
    "MealPlan",
    "Phase",
    "PhaseInvoice",
    "Project",
    "Recipe",
    "RecipeIngredient",
    "ShoppingList",
    "ShoppingListCheckedItem",
    "ShoppingListManualItem",
    "TimeEntry",
]
