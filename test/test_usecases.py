import pytest

from conftest import seed_pulao
from jeevanam.application.usecases import DASHBOARD_KEY, RAW_MATERIALS_KEY, RECIPES_KEY
from jeevanam.domain.entities import Ingredient, RawMaterial
from jeevanam.domain.errors import BackendError, MissingCostsError, RetryAborted


@pytest.mark.anyio
async def test_cost_is_corrected_for_units(backend, kitchen):
    uc, _, history = kitchen
    await seed_pulao(backend)

    out = await uc.calculate_cost("Veg Pulao", 10)

    assert out["total_batch_cost"] == pytest.approx(1800.0)
    assert out["cost_per_portion"] == pytest.approx(180.0)
    assert out["total_batch_cost_display"] == "₹1800.00"
    oil, rice = out["breakdown"]
    assert oil["name"] == "Sunflower Oil"
    assert oil["total_cost"] == pytest.approx(600.0)
    assert oil["quantity_display"] == "3 L"
    assert rice["total_cost"] == pytest.approx(1200.0)
    assert out["profit"] is None

    [rec] = history.all()
    assert rec.recipe_name == "Veg Pulao"
    assert rec.cost == pytest.approx(1800.0)


@pytest.mark.anyio
async def test_cost_with_selling_price_adds_profit(backend, kitchen):
    uc, _, _ = kitchen
    await seed_pulao(backend)

    out = await uc.calculate_cost("Veg Pulao", 10, selling_price=240.0)

    assert out["profit"]["profit_per_portion"] == pytest.approx(60.0)
    assert out["profit"]["food_cost_percentage"] == pytest.approx(75.0)


@pytest.mark.anyio
async def test_missing_costs_block_the_remote_call(backend, kitchen):
    uc, _, history = kitchen
    await backend.add_raw_material("Water", "L", 0.0)
    await backend.add_recipe("Rasam", "Soup", 200.0, [Ingredient(1, 150.0, "ml")])

    with pytest.raises(MissingCostsError) as exc:
        await uc.calculate_cost("Rasam", 4)

    assert exc.value.names == ["Water"]
    assert backend.calls["calculate_cost"] == 0
    assert history.all() == []


@pytest.mark.anyio
async def test_unknown_recipe(backend, kitchen):
    uc, _, _ = kitchen
    await seed_pulao(backend)
    with pytest.raises(LookupError):
        await uc.calculate_cost("Masala Dosa", 2)


@pytest.mark.anyio
async def test_duplicate_name_is_case_insensitive(backend, kitchen):
    uc, _, _ = kitchen
    await uc.add_raw_material("Rice", "Kg", 60.0)

    with pytest.raises(ValueError, match="already exists"):
        await uc.add_raw_material("  rICE ", "Kg", 55.0)

    # renaming an item to its own name is fine
    await uc.edit_raw_material(1, "RICE", "Kg", 58.0)
    [rm] = await uc.list_raw_materials()
    assert (rm.name, rm.price_per_unit) == ("RICE", 58.0)


@pytest.mark.anyio
@pytest.mark.parametrize(
    "name,unit,price,message",
    [
        ("", "Kg", 1.0, "enter a raw material name"),
        ("Salt", "bucket", 1.0, "Invalid unit type"),
        ("Salt", "Kg", -1.0, "valid price"),
    ],
)
async def test_raw_material_form_checks(backend, kitchen, name, unit, price, message):
    uc, _, _ = kitchen
    with pytest.raises(ValueError, match=message):
        await uc.add_raw_material(name, unit, price)
    assert backend.calls["add_raw_material"] == 0


@pytest.mark.anyio
async def test_mutations_invalidate_cached_lists(backend, kitchen):
    uc, cache, _ = kitchen
    assert await uc.list_raw_materials() == []
    assert RAW_MATERIALS_KEY in cache

    await uc.add_raw_material("Salt", "Kg", 20.0)
    assert RAW_MATERIALS_KEY not in cache
    assert [rm.name for rm in await uc.list_raw_materials()] == ["Salt"]

    await uc.delete_raw_material(1)
    assert await uc.list_raw_materials() == []


@pytest.mark.anyio
async def test_add_recipe_drops_blank_ingredient_rows(backend, kitchen):
    uc, cache, _ = kitchen
    await seed_pulao(backend)
    await uc.list_recipes()
    assert RECIPES_KEY in cache

    await uc.add_recipe(
        "Jeera Rice",
        "Lunch",
        250.0,
        [Ingredient(2, 1.5, "Kg"), Ingredient(None, 5.0, "g"), Ingredient(1, 0.0, "ml")],
    )

    assert RECIPES_KEY not in cache
    recipe = await uc.list_recipes.by_name("Jeera Rice")
    assert recipe.ingredients == [Ingredient(2, 1.5, "Kg")]


@pytest.mark.anyio
async def test_add_recipe_needs_an_ingredient(kitchen):
    uc, _, _ = kitchen
    with pytest.raises(ValueError, match="at least one ingredient"):
        await uc.add_recipe("Plain", "Lunch", 100.0, [Ingredient(None, 4.0, "g"), Ingredient(1, 0.0, "g")])


@pytest.mark.anyio
async def test_recipe_listing_skips_broken_recipes(backend, kitchen, monkeypatch):
    uc, _, _ = kitchen
    await seed_pulao(backend)
    await backend.add_recipe("Curd Rice", "Lunch", 300.0, [Ingredient(2, 1.0, "Kg")])
    real = backend.calculate_production

    async def flaky_production(name, quantity):
        if name == "Curd Rice":
            raise BackendError("Recipe not found: Curd Rice")
        return await real(name, quantity)

    monkeypatch.setattr(backend, "calculate_production", flaky_production)

    recipes = await uc.list_recipes()
    assert [r.name for r in recipes] == ["Veg Pulao"]
    assert recipes[0].portion_weight == 350.0


@pytest.mark.anyio
async def test_production_rows_carry_names_and_display(backend, kitchen):
    uc, _, _ = kitchen
    await seed_pulao(backend)

    out = await uc.calculate_production("Veg Pulao", 4)
    assert out["total_portion_weight"] == 1400.0
    assert out["total_portion_weight_display"] == "1.4 Kg"
    assert [row["display"] for row in out["ingredients"]] == ["1.2 L", "8 Kg"]

    slip = await uc.store_issue_slip("Veg Pulao", 4)
    assert slip["production_quantity"] == 4
    assert [row["name"] for row in slip["ingredients"]] == ["Sunflower Oil", "Rice"]

    with pytest.raises(ValueError):
        await uc.calculate_production("Veg Pulao", 0)


@pytest.mark.anyio
async def test_writes_survive_a_service_restart(backend, kitchen, sleep):
    uc, _, _ = kitchen
    await uc.list_raw_materials()
    backend.stopped = True

    def restart_after_second_wait():
        if len(sleep.delays) == 2:
            backend.stopped = False

    sleep.then = restart_after_second_wait

    await uc.add_raw_material("Ghee", "Kg", 600.0)

    assert sleep.delays == [2.0, 4.0]
    assert backend.calls["add_raw_material"] == 3


@pytest.mark.anyio
async def test_closed_form_drops_pending_retry(backend, kitchen, sleep):
    uc, _, _ = kitchen
    await uc.list_raw_materials()
    backend.stopped = True
    open_forms = {"raw-material": True}

    def user_closes_form():
        open_forms["raw-material"] = False

    sleep.then = user_closes_form

    with pytest.raises(RetryAborted):
        await uc.add_raw_material("Ghee", "Kg", 600.0, is_alive=lambda: open_forms["raw-material"])
    assert backend.calls["add_raw_material"] == 1


@pytest.mark.anyio
async def test_dashboard_lists_todays_production(backend, kitchen):
    uc, _, _ = kitchen
    await seed_pulao(backend)
    await uc.calculate_cost("Veg Pulao", 10)

    out = await uc.dashboard()

    assert out["stats"]["total_recipes"] == 1
    assert out["stats"]["most_produced_item"] == "Veg Pulao"
    assert out["today"]["total_cost"] == pytest.approx(1800.0)
    assert out["today"]["top_ingredients"][0] == {"name": "Sunflower Oil", "quantity": 3000.0}


@pytest.mark.anyio
async def test_raw_material_id_zero_is_a_real_ingredient(backend, kitchen):
    uc, _, _ = kitchen
    await seed_pulao(backend)
    # ids are handed out by the service; zero is as valid as any other
    backend._raw[0] = RawMaterial(0, "Salt", "Kg", 20.0)

    await uc.add_recipe("Salted Pulao", "Lunch", 350.0, [Ingredient(0, 5.0, "g"), Ingredient(2, 2.0, "Kg")])

    recipe = await uc.list_recipes.by_name("Salted Pulao")
    assert [i.raw_material_id for i in recipe.ingredients] == [0, 2]

    out = await uc.calculate_cost("Salted Pulao", 10)
    salt, rice = out["breakdown"]
    assert salt["total_cost"] == pytest.approx(1.0)
    assert out["total_batch_cost"] == pytest.approx(1201.0)


@pytest.mark.anyio
async def test_dashboard_follows_writes(backend, kitchen):
    uc, cache, _ = kitchen
    await seed_pulao(backend)

    first = await uc.dashboard()
    assert first["stats"]["total_recipes"] == 1
    assert DASHBOARD_KEY in cache

    await uc.add_recipe("Curd Rice", "Lunch", 300.0, [Ingredient(2, 1.0, "Kg")])
    assert DASHBOARD_KEY not in cache
    await uc.calculate_cost("Curd Rice", 5)

    second = await uc.dashboard()
    assert second["stats"]["total_recipes"] == 2
    assert second["stats"]["most_produced_item"] == "Curd Rice"

    await uc.add_raw_material("Ghee", "Kg", 600.0)
    assert (await uc.dashboard())["stats"]["total_ingredients"] == 3
    await uc.delete_raw_material(3)
    assert (await uc.dashboard())["stats"]["total_ingredients"] == 2
