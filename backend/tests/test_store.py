from datetime import date
from types import SimpleNamespace

import pytest

from core import store
from core.errors import Conflict, DuplicateName, InvalidArgument, NotFound


async def _drawer(db, freezer_name="Garage", drawer_name="Schuif 1"):
    freezer = await store.create_freezer(db, freezer_name)
    return await store.create_drawer(db, freezer.freezer_id, drawer_name)


# --- Freezers -----------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_freezer_is_retrievable(db):
    freezer = await store.create_freezer(db, "  Garage ")
    assert freezer.freezer_id is not None
    assert freezer.name == "Garage"

    fetched = await store.get_freezer(db, freezer.freezer_id)
    assert fetched.name == "Garage"


@pytest.mark.asyncio
async def test_create_freezer_ids_are_unique(db):
    a = await store.create_freezer(db, "Garage")
    b = await store.create_freezer(db, "Keuken")
    assert a.freezer_id != b.freezer_id


@pytest.mark.asyncio
async def test_duplicate_freezer_name_is_rejected_and_store_unchanged(db):
    await store.create_freezer(db, "Garage")
    with pytest.raises(DuplicateName):
        await store.create_freezer(db, "Garage")

    freezers = await store.list_freezers(db)
    assert [f.name for f in freezers] == ["Garage"]


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   ", "x" * 51])
async def test_create_freezer_rejects_bad_names(db, name):
    with pytest.raises(InvalidArgument):
        await store.create_freezer(db, name)


@pytest.mark.asyncio
async def test_rename_freezer(db):
    freezer_id = (await store.create_freezer(db, "Garage")).freezer_id
    await store.create_freezer(db, "Keuken")

    renamed = await store.rename_freezer(db, freezer_id, "Kelder")
    assert renamed.name == "Kelder"

    with pytest.raises(DuplicateName):
        await store.rename_freezer(db, freezer_id, "Keuken")
    with pytest.raises(NotFound):
        await store.rename_freezer(db, 999, "Zolder")

    assert (await store.get_freezer(db, freezer_id)).name == "Kelder"


@pytest.mark.asyncio
async def test_get_and_delete_missing_freezer(db):
    with pytest.raises(NotFound):
        await store.get_freezer(db, 42)
    with pytest.raises(NotFound):
        await store.delete_freezer(db, 42)


# --- Drawers ------------------------------------------------------------------

@pytest.mark.asyncio
async def test_drawer_name_unique_per_freezer_only(db):
    garage_id = (await store.create_freezer(db, "Garage")).freezer_id
    keuken_id = (await store.create_freezer(db, "Keuken")).freezer_id

    await store.create_drawer(db, garage_id, "Schuif 1")
    # same name in another freezer is fine
    await store.create_drawer(db, keuken_id, "Schuif 1")

    with pytest.raises(DuplicateName):
        await store.create_drawer(db, garage_id, "Schuif 1")

    assert len(await store.list_drawers(db, freezer_id=garage_id)) == 1
    assert len(await store.list_drawers(db, name="Schuif 1")) == 2


@pytest.mark.asyncio
async def test_create_drawer_in_missing_freezer(db):
    with pytest.raises(NotFound):
        await store.create_drawer(db, 123, "Schuif 1")
    assert await store.list_drawers(db) == []


@pytest.mark.asyncio
async def test_list_drawers_rejects_drawer_id_with_other_options(db):
    drawer = await _drawer(db)
    with pytest.raises(InvalidArgument):
        await store.list_drawers(db, drawer_id=drawer.drawer_id, freezer_id=drawer.freezer_id)

    found = await store.list_drawers(db, drawer_id=drawer.drawer_id)
    assert [d.drawer_id for d in found] == [drawer.drawer_id]


@pytest.mark.asyncio
async def test_update_drawer_moves_and_renames(db):
    drawer_id = (await _drawer(db)).drawer_id
    keuken_id = (await store.create_freezer(db, "Keuken")).freezer_id
    await store.create_drawer(db, keuken_id, "Onderste")

    moved = await store.update_drawer(db, drawer_id, freezer_id=keuken_id)
    assert moved.freezer_id == keuken_id

    with pytest.raises(DuplicateName):
        await store.update_drawer(db, drawer_id, name="Onderste")
    with pytest.raises(NotFound):
        await store.update_drawer(db, drawer_id, freezer_id=999)
    with pytest.raises(NotFound):
        await store.update_drawer(db, 999, name="Bovenste")


# --- Products -----------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_product_defaults_to_six_months(db):
    product = await store.create_product(db, "Soep")
    assert product.expiration_months == 6


@pytest.mark.asyncio
@pytest.mark.parametrize("months", [0, -3])
async def test_create_product_rejects_non_positive_months(db, months):
    with pytest.raises(InvalidArgument):
        await store.create_product(db, "Broccoli", months)
    assert await store.list_products(db) == []


@pytest.mark.asyncio
async def test_duplicate_product_name(db):
    await store.create_product(db, "Broccoli", 12)
    with pytest.raises(DuplicateName):
        await store.create_product(db, "Broccoli", 3)

    products = await store.list_products(db)
    assert len(products) == 1
    assert products[0].expiration_months == 12


@pytest.mark.asyncio
async def test_list_products_by_expiration(db):
    await store.create_product(db, "Broccoli", 12)
    await store.create_product(db, "Gehakt", 3)
    await store.create_product(db, "Erwten", 12)

    names = [p.name for p in await store.list_products(db, expiration_months=12)]
    assert names == ["Broccoli", "Erwten"]


@pytest.mark.asyncio
async def test_update_product(db):
    product_id = (await store.create_product(db, "Broccoli", 12)).product_id
    await store.create_product(db, "Gehakt", 3)

    updated = await store.update_product(db, product_id, expiration_months=10)
    assert updated.expiration_months == 10

    with pytest.raises(DuplicateName):
        await store.update_product(db, product_id, name="Gehakt")
    with pytest.raises(InvalidArgument):
        await store.update_product(db, product_id, expiration_months=0)
    assert (await store.get_product(db, product_id)).name == "Broccoli"


# --- Storage entries ----------------------------------------------------------

@pytest.mark.asyncio
async def test_create_storage_entry_defaults(db):
    drawer = await _drawer(db)
    product = await store.create_product(db, "Broccoli", 12)

    entry = await store.create_storage_entry(
        db, product.product_id, drawer.drawer_id, 400, date_in=date(2023, 11, 8)
    )
    assert entry.available is True
    assert entry.date_out is None
    assert entry.weight_grams == 400.0
    assert entry.date_in == date(2023, 11, 8)

    assert (await store.get_storage_entry(db, entry.storage_id)).storage_id == entry.storage_id


@pytest.mark.asyncio
async def test_create_storage_entry_date_in_defaults_to_today(db):
    drawer = await _drawer(db)
    product = await store.create_product(db, "Broccoli", 12)

    entry = await store.create_storage_entry(db, product.product_id, drawer.drawer_id, 250)
    assert entry.date_in == date.today()


@pytest.mark.asyncio
async def test_create_storage_entry_missing_references(db):
    drawer_id = (await _drawer(db)).drawer_id
    product_id = (await store.create_product(db, "Broccoli", 12)).product_id

    with pytest.raises(NotFound, match="Product 999"):
        await store.create_storage_entry(db, 999, drawer_id, 400)
    with pytest.raises(NotFound, match="Drawer 999"):
        await store.create_storage_entry(db, product_id, 999, 400)


@pytest.mark.asyncio
@pytest.mark.parametrize("weight", [0, -10, float("nan")])
async def test_create_storage_entry_rejects_bad_weight(db, weight):
    drawer = await _drawer(db)
    product = await store.create_product(db, "Broccoli", 12)

    with pytest.raises(InvalidArgument):
        await store.create_storage_entry(db, product.product_id, drawer.drawer_id, weight)


@pytest.mark.asyncio
async def test_check_out_is_exactly_once(db):
    drawer = await _drawer(db)
    product = await store.create_product(db, "Broccoli", 12)
    entry = await store.create_storage_entry(
        db, product.product_id, drawer.drawer_id, 400, date_in=date(2023, 11, 8)
    )

    checked_out = await store.check_out(db, entry.storage_id, date(2024, 1, 1))
    assert checked_out.available is False
    assert checked_out.date_out == date(2024, 1, 1)

    with pytest.raises(NotFound):
        await store.check_out(db, entry.storage_id, date(2024, 1, 2))
    assert (await store.get_storage_entry(db, entry.storage_id)).date_out == date(2024, 1, 1)


@pytest.mark.asyncio
async def test_check_out_before_date_in_is_rejected(db):
    drawer = await _drawer(db)
    product = await store.create_product(db, "Broccoli", 12)
    entry = await store.create_storage_entry(
        db, product.product_id, drawer.drawer_id, 400, date_in=date(2023, 11, 8)
    )

    with pytest.raises(InvalidArgument):
        await store.check_out(db, entry.storage_id, date(2023, 11, 1))

    still_there = await store.get_storage_entry(db, entry.storage_id)
    assert still_there.available is True
    assert still_there.date_out is None


@pytest.mark.asyncio
async def test_check_out_missing_entry(db):
    with pytest.raises(NotFound):
        await store.check_out(db, 77, date(2024, 1, 1))


@pytest.mark.asyncio
async def test_check_out_lost_race_is_a_conflict(db, monkeypatch):
    drawer = await _drawer(db)
    product = await store.create_product(db, "Broccoli", 12)
    entry = await store.create_storage_entry(
        db, product.product_id, drawer.drawer_id, 400, date_in=date(2023, 11, 8)
    )
    await store.check_out(db, entry.storage_id, date(2024, 1, 1))

    # A second writer that read the entry before the first check-out committed.
    async def stale_read(_db, storage_id):
        return SimpleNamespace(storage_id=storage_id, available=True, date_in=date(2023, 11, 8))

    monkeypatch.setattr(store, "get_storage_entry", stale_read)
    with pytest.raises(Conflict):
        await store.check_out(db, entry.storage_id, date(2024, 1, 2))


@pytest.mark.asyncio
async def test_check_out_of_entry_deleted_meanwhile_is_not_found(db, monkeypatch):
    drawer = await _drawer(db)
    product = await store.create_product(db, "Broccoli", 12)
    storage_id = (
        await store.create_storage_entry(db, product.product_id, drawer.drawer_id, 400, date_in=date(2023, 11, 8))
    ).storage_id

    # Read before a concurrent delete removed the row.
    async def stale_read(_db, sid):
        return SimpleNamespace(storage_id=sid, available=True, date_in=date(2023, 11, 8))

    await store.delete_storage_entry(db, storage_id)
    monkeypatch.setattr(store, "get_storage_entry", stale_read)
    with pytest.raises(NotFound):
        await store.check_out(db, storage_id, date(2024, 1, 1))


@pytest.mark.asyncio
async def test_expiry_past_supported_dates_is_never_stored(db):
    drawer_id = (await _drawer(db)).drawer_id
    with pytest.raises(InvalidArgument):
        await store.create_product(db, "Zout", 120000)

    soep_id = (await store.create_product(db, "Soep", 6)).product_id
    with pytest.raises(InvalidArgument):
        await store.create_storage_entry(db, soep_id, drawer_id, 750, date_in=date(9999, 10, 1))

    await store.create_storage_entry(db, soep_id, drawer_id, 750, date_in=date(9900, 1, 1))
    with pytest.raises(InvalidArgument):
        await store.update_product(db, soep_id, expiration_months=1200)

    assert (await store.get_product(db, soep_id)).expiration_months == 6
    assert [p.name for p in await store.list_products(db)] == ["Soep"]


# --- Cascades -----------------------------------------------------------------

async def _stocked(db):
    garage = await store.create_freezer(db, "Garage")
    d1 = await store.create_drawer(db, garage.freezer_id, "Schuif 1")
    d2 = await store.create_drawer(db, garage.freezer_id, "Schuif 2")
    broccoli = await store.create_product(db, "Broccoli", 12)
    gehakt = await store.create_product(db, "Gehakt", 3)
    entries = [
        await store.create_storage_entry(db, broccoli.product_id, d1.drawer_id, 400, date(2023, 11, 8)),
        await store.create_storage_entry(db, gehakt.product_id, d1.drawer_id, 500, date(2023, 8, 10)),
        await store.create_storage_entry(db, broccoli.product_id, d2.drawer_id, 300, date(2023, 10, 1)),
    ]
    return garage, (d1, d2), (broccoli, gehakt), entries


@pytest.mark.asyncio
async def test_delete_drawer_cascades_to_storage(db):
    _, (d1, d2), _, entries = await _stocked(db)

    await store.delete_drawer(db, d1.drawer_id)

    with pytest.raises(NotFound):
        await store.get_storage_entry(db, entries[0].storage_id)
    with pytest.raises(NotFound):
        await store.get_storage_entry(db, entries[1].storage_id)
    assert (await store.get_storage_entry(db, entries[2].storage_id)).drawer_id == d2.drawer_id


@pytest.mark.asyncio
async def test_delete_freezer_cascades_to_drawers_and_storage(db):
    garage, _, _, entries = await _stocked(db)

    await store.delete_freezer(db, garage.freezer_id)

    assert await store.list_drawers(db) == []
    for entry in entries:
        with pytest.raises(NotFound):
            await store.get_storage_entry(db, entry.storage_id)


@pytest.mark.asyncio
async def test_delete_product_cascades_to_storage(db):
    _, _, (broccoli, gehakt), entries = await _stocked(db)

    await store.delete_product(db, broccoli.product_id)

    with pytest.raises(NotFound):
        await store.get_storage_entry(db, entries[0].storage_id)
    assert (await store.get_storage_entry(db, entries[1].storage_id)).product_id == gehakt.product_id


@pytest.mark.asyncio
async def test_delete_storage_entry(db):
    _, _, _, entries = await _stocked(db)

    await store.delete_storage_entry(db, entries[0].storage_id)
    with pytest.raises(NotFound):
        await store.delete_storage_entry(db, entries[0].storage_id)
