from types import SimpleNamespace

from brikx.services.shopping_list_service import (
    aggregate_ingredients,
    convert_to_base_unit,
    group_by_category,
    merge_shopping_list,
    normalize_unit,
)


def _ingredient(recipe_id, name, quantity, unit, category, sort_order, is_optional=False):
    return SimpleNamespace(
        recipe_id=recipe_id,
        name=name,
        quantity=quantity,
        unit=unit,
        category=category,
        sort_order=sort_order,
        is_optional=is_optional,
    )


def _week():
    recipes = {
        1: SimpleNamespace(id=1, title="Stamppot", default_servings=2),
        2: SimpleNamespace(id=2, title="Gehaktballen", default_servings=4),
    }
    ingredients = [
        _ingredient(1, "Gehakt", 500, "gram", "meat", 0),
        _ingredient(1, "aardappelen", 1, "kg", "produce", 1),
        _ingredient(1, "ui", 2, None, "produce", 2),
        _ingredient(1, "peterselie", 1, "bos", "produce", 3, is_optional=True),
        _ingredient(2, "gehakt", 0.5, "kilogram", "meat", 0),
        _ingredient(2, "Aardappelen ", 200, "g", "produce", 1),
    ]
    plans = [
        SimpleNamespace(recipe_id=1, servings=4),
        SimpleNamespace(recipe_id=2, servings=2),
        SimpleNamespace(recipe_id=None, servings=2),
        SimpleNamespace(recipe_id=99, servings=2),
    ]
    return plans, recipes, ingredients


def test_units_are_normalized_and_folded_to_base_units():
    assert normalize_unit(" Eetlepel ") == "el"
    assert normalize_unit(None) == "stuk"
    assert normalize_unit("bos") == "bos"
    assert convert_to_base_unit(1.5, "kg") == (1500, "g")
    assert convert_to_base_unit(0.25, "liter") == (250, "ml")
    assert convert_to_base_unit(3, "tl") == (3, "tl")


def test_aggregation_scales_and_combines_across_recipes():
    plans, recipes, ingredients = _week()

    items = {i.key: i for i in aggregate_ingredients(plans, recipes, ingredients)}

    assert set(items) == {"Gehakt-g-meat", "aardappelen-g-produce", "ui-stuk-produce"}
    assert items["Gehakt-g-meat"].quantity == 1250
    assert items["Gehakt-g-meat"].recipe_titles == ["Stamppot", "Gehaktballen"]
    assert items["aardappelen-g-produce"].quantity == 2100
    assert items["ui-stuk-produce"].quantity == 4
    assert items["ui-stuk-produce"].recipe_ids == [1]


def test_optional_ingredients_are_left_out():
    plans, recipes, ingredients = _week()

    names = [i.name for i in aggregate_ingredients(plans, recipes, ingredients)]

    assert "peterselie" not in names


def test_quantities_are_rounded_to_two_decimals():
    recipes = {1: SimpleNamespace(id=1, title="Soep", default_servings=3)}
    ingredients = [_ingredient(1, "bouillon", 1, "l", "pantry", 0)]

    items = aggregate_ingredients([SimpleNamespace(recipe_id=1, servings=1)], recipes, ingredients)

    assert items[0].quantity == 333.33
    assert items[0].unit == "ml"


def test_categories_follow_shop_order():
    plans, recipes, ingredients = _week()

    grouped = group_by_category(aggregate_ingredients(plans, recipes, ingredients))

    assert list(grouped) == ["produce", "meat"]


def test_merge_hides_checked_items_and_appends_manual_items():
    plans, recipes, ingredients = _week()
    generated = aggregate_ingredients(plans, recipes, ingredients)
    manual = [
        SimpleNamespace(id=5, name="Koffie", category="pantry", checked=False),
        SimpleNamespace(id=6, name="Melk", category="dairy", checked=True),
    ]

    view = merge_shopping_list(generated, manual, checked_keys=["Gehakt-g-meat"])

    assert [c["category"] for c in view["categories"]] == ["produce", "pantry"]
    produce = view["categories"][0]["items"]
    assert [i["name"] for i in produce] == ["aardappelen", "ui"]
    pantry = view["categories"][1]["items"]
    assert pantry[0]["manual_item_id"] == 5
    assert pantry[0]["key"] == "Koffie--pantry"
    assert view["active_count"] == 3
    assert view["checked_count"] == 2


def test_merge_of_nothing_is_empty():
    view = merge_shopping_list([], [], [])

    assert view == {"categories": [], "active_count": 0, "checked_count": 0}


def test_unknown_categories_follow_shop_order_in_first_seen_order():
    recipes = {1: SimpleNamespace(id=1, title="Lunch", default_servings=1)}
    ingredients = [
        _ingredient(1, "stokbrood", 1, None, "bakery", 0),
        _ingredient(1, "ham", 100, "g", "meat", 1),
        _ingredient(1, "cola", 1, "l", "drinks", 2),
        _ingredient(1, "tomaat", 2, None, "produce", 3),
    ]

    items = aggregate_ingredients([SimpleNamespace(recipe_id=1, servings=1)], recipes, ingredients)

    assert list(group_by_category(items)) == ["produce", "meat", "bakery", "drinks"]


def test_missing_or_zero_default_servings_counts_as_one():
    recipes = {
        1: SimpleNamespace(id=1, title="Omelet", default_servings=0),
        2: SimpleNamespace(id=2, title="Pannenkoeken", default_servings=None),
    }
    ingredients = [
        _ingredient(1, "eieren", 2, None, "dairy", 0),
        _ingredient(2, "bloem", 250, "g", "pantry", 0),
    ]
    plans = [
        SimpleNamespace(recipe_id=1, servings=3),
        SimpleNamespace(recipe_id=2, servings=2),
    ]

    items = {i.key: i for i in aggregate_ingredients(plans, recipes, ingredients)}

    assert items["eieren-stuk-dairy"].quantity == 6
    assert items["bloem-g-pantry"].quantity == 500
