from fastapi.testclient import TestClient

from brikx.main import app

client = TestClient(app)

WEEK = "2024-03-04"


def _auth_headers(user_id: str = "architect") -> dict:
    resp = client.post("/auth/token", json={"user_id": user_id})
    assert resp.status_code == 200, f"token request failed: {resp.status_code} {resp.text}"
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def _plan_week(headers) -> int:
    recipe = client.post(
        "/recipes",
        headers=headers,
        json={
            "title": "Stamppot",
            "default_servings": 2,
            "ingredients": [
                {"name": "aardappelen", "quantity": 1, "unit": "kg", "category": "produce"},
                {"name": "rookworst", "quantity": 1, "unit": "stuk", "category": "meat"},
                {"name": "peterselie", "quantity": 1, "unit": "bos", "category": "produce", "is_optional": True},
            ],
        },
    )
    assert recipe.status_code == 200, recipe.text
    recipe_id = recipe.json()["id"]

    for day, servings in (("2024-03-04", 2), ("2024-03-07", 4), ("2024-03-12", 2)):
        plan = client.post(
            "/meal_plans",
            headers=headers,
            json={"date": day, "meal_type": "dinner", "recipe_id": recipe_id, "servings": servings},
        )
        assert plan.status_code == 200, plan.text
    return recipe_id


def _items(view) -> dict:
    return {i["key"]: i for c in view["categories"] for i in c["items"]}


def test_recipe_round_trip_keeps_ingredient_order():
    headers = _auth_headers()
    recipe_id = _plan_week(headers)

    resp = client.get(f"/recipes/{recipe_id}", headers=headers)
    assert resp.status_code == 200
    assert [i["name"] for i in resp.json()["ingredients"]] == ["aardappelen", "rookworst", "peterselie"]

    assert client.get(f"/recipes/{recipe_id}", headers=_auth_headers("someone-else")).status_code == 404


def test_generate_for_a_date_range():
    headers = _auth_headers()
    _plan_week(headers)

    resp = client.post(
        "/meal_plans/shopping_list",
        headers=headers,
        json={"week_start": "2024-03-04", "week_end": "2024-03-10"},
    )
    assert resp.status_code == 200, resp.text
    items = {i["key"]: i for i in resp.json()["items"]}
    assert items["aardappelen-g-produce"]["quantity"] == 3000
    assert items["rookworst-stuk-meat"]["quantity"] == 3
    assert list(resp.json()["grouped"]) == ["produce", "meat"]

    backwards = client.post(
        "/meal_plans/shopping_list",
        headers=headers,
        json={"week_start": "2024-03-10", "week_end": "2024-03-04"},
    )
    assert backwards.status_code == 400


def test_weekly_list_checks_items_and_clears_them():
    headers = _auth_headers()
    _plan_week(headers)

    view = client.get(f"/shopping_lists/{WEEK}", headers=headers).json()
    assert view["week_end"] == "2024-03-10"
    assert set(_items(view)) == {"aardappelen-g-produce", "rookworst-stuk-meat"}

    toggled = client.post(f"/shopping_lists/{WEEK}/checked", headers=headers, json={"item_key": "rookworst-stuk-meat"})
    assert toggled.json() == {"item_key": "rookworst-stuk-meat", "checked": True}

    view = client.get(f"/shopping_lists/{WEEK}", headers=headers).json()
    assert set(_items(view)) == {"aardappelen-g-produce"}
    assert view["checked_count"] == 1

    cleared = client.post(f"/shopping_lists/{WEEK}/clear_checked", headers=headers)
    assert cleared.json() == {"checked_keys_removed": 1, "manual_items_removed": 0}

    view = client.get(f"/shopping_lists/{WEEK}", headers=headers).json()
    assert "rookworst-stuk-meat" in _items(view)


def test_toggle_twice_unchecks():
    headers = _auth_headers()
    body = {"item_key": "melk-stuk-dairy"}

    assert client.post(f"/shopping_lists/{WEEK}/checked", headers=headers, json=body).json()["checked"] is True
    assert client.post(f"/shopping_lists/{WEEK}/checked", headers=headers, json=body).json()["checked"] is False


def test_manual_items_dedupe_and_track_frequency():
    headers = _auth_headers()

    first = client.post(f"/shopping_lists/{WEEK}/manual_items", headers=headers, json={"name": "Koffie", "category": "pantry"})
    assert first.status_code == 200, first.text
    again = client.post(f"/shopping_lists/{WEEK}/manual_items", headers=headers, json={"name": "koffie ", "category": "pantry"})
    assert again.json()["id"] == first.json()["id"]

    checked = client.patch(f"/shopping_lists/manual_items/{first.json()['id']}", headers=headers, json={"checked": True})
    assert checked.status_code == 200
    assert checked.json()["checked"] is True

    # Once the first one is checked off, a new one is a new item.
    third = client.post(f"/shopping_lists/{WEEK}/manual_items", headers=headers, json={"name": "Koffie", "category": "pantry"})
    assert third.json()["id"] != first.json()["id"]
    client.post(f"/shopping_lists/{WEEK}/manual_items", headers=headers, json={"name": "Melk", "category": "dairy"})

    frequent = client.get("/shopping_lists/frequent_items", headers=headers).json()
    assert [(f["item_name"], f["frequency"]) for f in frequent] == [("koffie", 2), ("melk", 1)]

    view = client.get(f"/shopping_lists/{WEEK}", headers=headers).json()
    assert view["active_count"] == 2
    assert view["checked_count"] == 1

    cleared = client.post(f"/shopping_lists/{WEEK}/clear_checked", headers=headers).json()
    assert cleared["manual_items_removed"] == 1


def test_remove_manual_item_and_other_users_cannot_touch_it():
    headers = _auth_headers()
    item = client.post(f"/shopping_lists/{WEEK}/manual_items", headers=headers, json={"name": "Brood"}).json()

    other = _auth_headers("someone-else")
    assert client.delete(f"/shopping_lists/manual_items/{item['id']}", headers=other).status_code == 404

    assert client.delete(f"/shopping_lists/manual_items/{item['id']}", headers=headers).status_code == 204
    assert client.delete(f"/shopping_lists/manual_items/{item['id']}", headers=headers).status_code == 404


def test_manual_item_rejects_blank_name():
    resp = client.post(f"/shopping_lists/{WEEK}/manual_items", headers=_auth_headers(), json={"name": "   "})
    assert resp.status_code == 400
