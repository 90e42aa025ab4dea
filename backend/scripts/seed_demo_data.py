"""
Seed a demo household: freezers, drawers, products and some stock.

Run locally:
  cd backend && python -m scripts.seed_demo_data

It uses the same DATABASE_* env vars as the backend (dotenv supported by core.config).
Rows that already exist (by name) are left alone, so it can be run repeatedly.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core import store
from core.errors import DuplicateName
from core.logging import configure_logging, get_logger
from db.database import async_session_maker, create_db_and_tables

logger = get_logger(__name__)


@dataclass(frozen=True)
class SeedFreezer:
    name: str
    drawers: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SeedProduct:
    name: str
    expiration_months: Optional[int] = None


@dataclass(frozen=True)
class SeedStock:
    freezer: str
    drawer: str
    product: str
    weight_grams: float
    date_in: date


SEED_FREEZERS: list[SeedFreezer] = [
    SeedFreezer(name="Garage", drawers=["Schuif 1", "Schuif 2", "Schuif 3"]),
    SeedFreezer(name="Keuken", drawers=["Schuif 1", "Schuif 2"]),
]

SEED_PRODUCTS: list[SeedProduct] = [
    SeedProduct(name="Broccoli", expiration_months=12),
    SeedProduct(name="Gehakt", expiration_months=3),
    SeedProduct(name="Kippenbouten", expiration_months=6),
    SeedProduct(name="Soep"),
    SeedProduct(name="Brood", expiration_months=2),
]

SEED_STOCK: list[SeedStock] = [
    SeedStock("Garage", "Schuif 1", "Broccoli", 400, date(2023, 11, 8)),
    SeedStock("Garage", "Schuif 1", "Gehakt", 500, date(2023, 8, 10)),
    SeedStock("Garage", "Schuif 2", "Kippenbouten", 1200, date(2023, 10, 2)),
    SeedStock("Keuken", "Schuif 1", "Soep", 750, date(2023, 9, 15)),
    SeedStock("Keuken", "Schuif 2", "Brood", 800, date(2023, 11, 20)),
]


async def seed(db: AsyncSession) -> dict:
    """Create the demo rows that are missing; returns counts of what was created."""
    created = {"freezers": 0, "drawers": 0, "products": 0, "storage": 0}

    freezers = {}
    for f in SEED_FREEZERS:
        try:
            freezer = await store.create_freezer(db, f.name)
            created["freezers"] += 1
        except DuplicateName:
            freezer = (await store.list_freezers(db, name=f.name))[0]
        freezers[f.name] = freezer.freezer_id

    drawers = {}
    for f in SEED_FREEZERS:
        for drawer_name in f.drawers:
            try:
                drawer = await store.create_drawer(db, freezers[f.name], drawer_name)
                created["drawers"] += 1
            except DuplicateName:
                drawer = (await store.list_drawers(db, freezer_id=freezers[f.name], name=drawer_name))[0]
            drawers[(f.name, drawer_name)] = drawer.drawer_id

    products = {}
    for p in SEED_PRODUCTS:
        try:
            product = await store.create_product(db, p.name, p.expiration_months)
            created["products"] += 1
        except DuplicateName:
            product = (await store.list_products(db, name=p.name))[0]
        products[p.name] = product.product_id

    # Stock is only seeded into an empty inventory, storage rows have no natural key.
    if created["products"] == len(SEED_PRODUCTS):
        for s in SEED_STOCK:
            await store.create_storage_entry(
                db,
                product_id=products[s.product],
                drawer_id=drawers[(s.freezer, s.drawer)],
                weight_grams=s.weight_grams,
                date_in=s.date_in,
            )
            created["storage"] += 1

    return created


async def main() -> None:
    configure_logging()
    await create_db_and_tables()
    async with async_session_maker() as db:
        created = await seed(db)
    logger.info("seed_done", **created)


if __name__ == "__main__":
    asyncio.run(main())
