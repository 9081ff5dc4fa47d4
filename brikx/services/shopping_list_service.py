from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from brikx.database import utc_now
from brikx.models.meal_plan import MealPlan
from brikx.models.recipe import INGREDIENT_CATEGORIES, Recipe, RecipeIngredient
from brikx.models.shopping_list import (
    FrequentItem,
    ShoppingList,
    ShoppingListCheckedItem,
    ShoppingListManualItem,
)

logger = logging.getLogger(__name__)

DEFAULT_UNIT = "stuk"
WEEK_DAYS = 7

UNIT_ALIASES = {
    "gram": "g",
    "g": "g",
    "kilogram": "kg",
    "kg": "kg",
    "liter": "l",
    "l": "l",
    "ml": "ml",
    "milliliter": "ml",
    "eetlepel": "el",
    "el": "el",
    "theelepel": "tl",
    "tl": "tl",
    "stuks": "stuk",
    "stuk": "stuk",
    "st": "stuk",
}

# unit -> (base unit, factor)
BASE_UNITS = {
    "kg": ("g", 1000),
    "l": ("ml", 1000),
}


def normalize_unit(unit: Optional[str]) -> str:
    if not unit or not unit.strip():
        return DEFAULT_UNIT
    cleaned = unit.strip()
    return UNIT_ALIASES.get(cleaned.lower(), cleaned)


def convert_to_base_unit(quantity: float, unit: Optional[str]) -> Tuple[float, str]:
    normalized = normalize_unit(unit)
    if normalized in BASE_UNITS:
        base, factor = BASE_UNITS[normalized]
        return quantity * factor, base
    return quantity, normalized


def normalize_ingredient_name(name: str) -> str:
    return name.strip().lower()


def item_key(name: str, unit: str, category: str) -> str:
    return f"{name}-{unit}-{category}"


@dataclass
class ShoppingItem:
    name: str
    quantity: float
    unit: str
    category: str
    recipe_ids: List[int] = field(default_factory=list)
    recipe_titles: List[str] = field(default_factory=list)
    checked: bool = False
    manual_item_id: Optional[int] = None

    @property
    def key(self) -> str:
        return item_key(self.name, self.unit, self.category)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "category": self.category,
            "recipe_ids": list(self.recipe_ids),
            "recipe_titles": list(self.recipe_titles),
            "checked": self.checked,
            "manual_item_id": self.manual_item_id,
        }


def aggregate_ingredients(
    meal_plans: Iterable[Any],
    recipes: Mapping[int, Any],
    ingredients: Iterable[Any],
) -> List[ShoppingItem]:
    """Sum the ingredients of the planned recipes, scaled to the planned servings.

    Items are keyed by (normalized name, base unit, category); quantities in
    kg and l are folded into g and ml first so they combine.
    """
    by_recipe: Dict[int, List[Any]] = {}
    for ing in sorted(ingredients, key=lambda i: (i.recipe_id, i.sort_order or 0)):
        by_recipe.setdefault(ing.recipe_id, []).append(ing)

    aggregated: Dict[Tuple[str, str, str], ShoppingItem] = {}

    for plan in meal_plans:
        if plan.recipe_id is None:
            continue
        recipe = recipes.get(plan.recipe_id)
        if recipe is None:
            continue

        scale = (plan.servings or 0) / (recipe.default_servings or 1)

        for ing in by_recipe.get(plan.recipe_id, []):
            if ing.is_optional:
                continue

            quantity, unit = convert_to_base_unit((ing.quantity or 0) * scale, ing.unit)
            category = ing.category or "other"
            key = (normalize_ingredient_name(ing.name), unit, category)

            existing = aggregated.get(key)
            if existing is None:
                aggregated[key] = ShoppingItem(
                    name=ing.name.strip(),
                    quantity=quantity,
                    unit=unit,
                    category=category,
                    recipe_ids=[recipe.id],
                    recipe_titles=[recipe.title],
                )
                continue

            existing.quantity += quantity
            if recipe.id not in existing.recipe_ids:
                existing.recipe_ids.append(recipe.id)
                existing.recipe_titles.append(recipe.title)

    items = list(aggregated.values())
    for item in items:
        item.quantity = round(item.quantity, 2)
    return items


def group_by_category(items: Iterable[ShoppingItem]) -> Dict[str, List[ShoppingItem]]:
    grouped: Dict[str, List[ShoppingItem]] = {}
    for item in items:
        grouped.setdefault(item.category, []).append(item)

    ordered = {c: grouped[c] for c in INGREDIENT_CATEGORIES if c in grouped}
    for category, rows in grouped.items():
        if category not in ordered:
            ordered[category] = rows
    return ordered


def merge_shopping_list(
    generated: Iterable[ShoppingItem],
    manual_items: Iterable[Any],
    checked_keys: Iterable[str],
) -> Dict[str, Any]:
    checked: Set[str] = set(checked_keys)

    merged: List[ShoppingItem] = [
        ShoppingItem(
            name=g.name,
            quantity=g.quantity,
            unit=g.unit,
            category=g.category,
            recipe_ids=list(g.recipe_ids),
            recipe_titles=list(g.recipe_titles),
            checked=g.key in checked,
        )
        for g in generated
    ]
    for m in manual_items:
        item = ShoppingItem(
            name=m.name,
            quantity=0,
            unit="",
            category=m.category,
            manual_item_id=m.id,
        )
        item.checked = bool(m.checked) or item.key in checked
        merged.append(item)

    categories = []
    for category, rows in group_by_category(merged).items():
        active = [r for r in rows if not r.checked]
        if not active:
            continue
        categories.append({"category": category, "items": [r.to_dict() for r in active]})

    checked_count = sum(1 for r in merged if r.checked)
    return {
        "categories": categories,
        "active_count": len(merged) - checked_count,
        "checked_count": checked_count,
    }


def _week_end(week_start: date) -> date:
    return week_start + timedelta(days=WEEK_DAYS - 1)


def generate_items(db: Session, user_id: str, date_from: date, date_to: date) -> List[ShoppingItem]:
    if date_to < date_from:
        raise ValueError("date_to must be on or after date_from")

    plans = (
        db.query(MealPlan)
        .filter(
            MealPlan.user_id == str(user_id),
            MealPlan.date >= date_from,
            MealPlan.date <= date_to,
        )
        .order_by(MealPlan.date.asc(), MealPlan.id.asc())
        .all()
    )

    recipe_ids = sorted({p.recipe_id for p in plans if p.recipe_id is not None})
    if not recipe_ids:
        return []

    recipes = {
        r.id: r
        for r in db.query(Recipe)
        .filter(Recipe.id.in_(recipe_ids), Recipe.user_id == str(user_id))
        .all()
    }
    ingredients = (
        db.query(RecipeIngredient).filter(RecipeIngredient.recipe_id.in_(list(recipes.keys()))).all()
    )
    return aggregate_ingredients(plans, recipes, ingredients)


def generate_shopping_list(user_id: str, date_from: date, date_to: date, *, db: Session) -> Dict[str, Any]:
    items = generate_items(db, user_id, date_from, date_to)
    return {
        "items": [i.to_dict() for i in items],
        "grouped": {c: [i.to_dict() for i in rows] for c, rows in group_by_category(items).items()},
    }


def get_or_create_shopping_list(db: Session, user_id: str, week_start: date) -> ShoppingList:
    def _existing() -> Optional[ShoppingList]:
        return (
            db.query(ShoppingList)
            .filter(ShoppingList.user_id == str(user_id), ShoppingList.week_start == week_start)
            .first()
        )

    row = _existing()
    if row is not None:
        return row

    # Called before any other write of the request, so a rollback loses nothing.
    try:
        row = ShoppingList(user_id=str(user_id), week_start=week_start)
        db.add(row)
        db.flush()
    except IntegrityError:
        db.rollback()
        row = _existing()
        if row is None:
            raise
    return row


def _checked_keys(db: Session, shopping_list_id: int) -> List[str]:
    rows = (
        db.query(ShoppingListCheckedItem.item_key)
        .filter(ShoppingListCheckedItem.shopping_list_id == int(shopping_list_id))
        .all()
    )
    return [r.item_key for r in rows]


def _manual_items(db: Session, shopping_list_id: int) -> List[ShoppingListManualItem]:
    return (
        db.query(ShoppingListManualItem)
        .filter(ShoppingListManualItem.shopping_list_id == int(shopping_list_id))
        .order_by(ShoppingListManualItem.created_at.asc(), ShoppingListManualItem.id.asc())
        .all()
    )


def shopping_list_view(user_id: str, week_start: date, *, db: Session) -> Dict[str, Any]:
    shopping_list = get_or_create_shopping_list(db, user_id, week_start)
    generated = generate_items(db, user_id, week_start, _week_end(week_start))
    view = merge_shopping_list(
        generated,
        _manual_items(db, shopping_list.id),
        _checked_keys(db, shopping_list.id),
    )
    view.update(
        {
            "shopping_list_id": shopping_list.id,
            "week_start": week_start,
            "week_end": _week_end(week_start),
        }
    )
    return view


def toggle_checked_item(db: Session, shopping_list: ShoppingList, key: str) -> bool:
    """Flip one generated item in or out of the checked set; returns the new state."""
    row = (
        db.query(ShoppingListCheckedItem)
        .filter(
            ShoppingListCheckedItem.shopping_list_id == shopping_list.id,
            ShoppingListCheckedItem.item_key == key,
        )
        .first()
    )
    if row is not None:
        db.delete(row)
        db.flush()
        return False

    db.add(ShoppingListCheckedItem(shopping_list_id=shopping_list.id, item_key=key))
    db.flush()
    return True


def track_frequent_item(db: Session, user_id: str, name: str) -> FrequentItem:
    item_name = normalize_ingredient_name(name)
    row = (
        db.query(FrequentItem)
        .filter(FrequentItem.user_id == str(user_id), FrequentItem.item_name == item_name)
        .first()
    )
    if row is None:
        row = FrequentItem(user_id=str(user_id), item_name=item_name, frequency=1)
        db.add(row)
    else:
        row.frequency = int(row.frequency) + 1
        row.last_used = utc_now()
    db.flush()
    return row


def add_manual_item(
    db: Session,
    user_id: str,
    shopping_list: ShoppingList,
    name: str,
    category: str,
) -> Tuple[ShoppingListManualItem, bool]:
    cleaned = name.strip()
    if not cleaned:
        raise ValueError("name cannot be empty")
    if category not in INGREDIENT_CATEGORIES:
        raise ValueError(f"Unknown category: {category}")

    for existing in _manual_items(db, shopping_list.id):
        if not existing.checked and existing.name.lower() == cleaned.lower():
            return existing, False

    row = ShoppingListManualItem(
        shopping_list_id=shopping_list.id,
        name=cleaned,
        category=category,
        checked=False,
    )
    db.add(row)
    track_frequent_item(db, user_id, cleaned)
    db.flush()
    return row, True


def _get_manual_item(db: Session, user_id: str, item_id: int) -> ShoppingListManualItem:
    row = (
        db.query(ShoppingListManualItem)
        .join(ShoppingList, ShoppingList.id == ShoppingListManualItem.shopping_list_id)
        .filter(ShoppingListManualItem.id == int(item_id), ShoppingList.user_id == str(user_id))
        .first()
    )
    if row is None:
        raise LookupError("Manual item not found")
    return row


def set_manual_item_checked(db: Session, user_id: str, item_id: int, checked: bool) -> ShoppingListManualItem:
    row = _get_manual_item(db, user_id, item_id)
    row.checked = bool(checked)
    db.flush()
    return row


def remove_manual_item(db: Session, user_id: str, item_id: int) -> None:
    row = _get_manual_item(db, user_id, item_id)
    db.delete(row)
    db.flush()


def clear_checked(db: Session, shopping_list: ShoppingList) -> Dict[str, int]:
    removed_keys = (
        db.query(ShoppingListCheckedItem)
        .filter(ShoppingListCheckedItem.shopping_list_id == shopping_list.id)
        .delete(synchronize_session=False)
    )
    removed_manual = (
        db.query(ShoppingListManualItem)
        .filter(
            ShoppingListManualItem.shopping_list_id == shopping_list.id,
            ShoppingListManualItem.checked.is_(True),
        )
        .delete(synchronize_session=False)
    )
    db.flush()
    logger.info(
        "Cleared checked shopping items",
        extra={
            "shopping_list_id": shopping_list.id,
            "checked_keys": int(removed_keys),
            "manual_items": int(removed_manual),
        },
    )
    return {"checked_keys_removed": int(removed_keys), "manual_items_removed": int(removed_manual)}


def frequent_items(db: Session, user_id: str, limit: int = 10) -> List[FrequentItem]:
    return (
        db.query(FrequentItem)
        .filter(FrequentItem.user_id == str(user_id))
        .order_by(FrequentItem.frequency.desc(), FrequentItem.last_used.desc(), FrequentItem.id.asc())
        .limit(int(limit))
        .all()
    )
