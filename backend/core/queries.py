"""
Read side: storage listings joined across the entity graph, and the
per-product / per-drawer totals over current contents.

Each call runs a single SELECT, so the result is one consistent snapshot.
Freshness is derived on read for the ``today`` passed in.
"""

from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.errors import NotFound
from core.expiration import ExpirationData
from db.drawer import Drawer as DrawerModel
from db.freezer import Freezer as FreezerModel
from db.product import Product as ProductModel
from db.storage import StorageEntry as StorageEntryModel
from schemas.storage import DrawerAggregate, ProductAggregate, StorageEntryRead, StorageFilter


def _storage_view_stmt():
    return (
        select(
            StorageEntryModel.storage_id,
            StorageEntryModel.product_id,
            StorageEntryModel.drawer_id,
            StorageEntryModel.weight_grams,
            StorageEntryModel.date_in,
            StorageEntryModel.date_out,
            StorageEntryModel.available,
            ProductModel.name.label("product_name"),
            ProductModel.expiration_months.label("expiration_months"),
            DrawerModel.name.label("drawer_name"),
            FreezerModel.freezer_id.label("freezer_id"),
            FreezerModel.name.label("freezer_name"),
        )
        .join(ProductModel, StorageEntryModel.product_id == ProductModel.product_id)
        .join(DrawerModel, StorageEntryModel.drawer_id == DrawerModel.drawer_id)
        .join(FreezerModel, DrawerModel.freezer_id == FreezerModel.freezer_id)
    )


def _apply_filters(stmt, filters: StorageFilter):
    if filters.freezer_id is not None:
        stmt = stmt.where(DrawerModel.freezer_id == filters.freezer_id)
    if filters.drawer_id is not None:
        stmt = stmt.where(StorageEntryModel.drawer_id == filters.drawer_id)
    if filters.product_id is not None:
        stmt = stmt.where(StorageEntryModel.product_id == filters.product_id)
    if filters.available_only:
        stmt = stmt.where(StorageEntryModel.available.is_(True))
    return stmt


def _to_view(row, today: date, lookahead_days: int) -> StorageEntryRead:
    expiration = ExpirationData.compute(row.date_in, row.expiration_months, today, lookahead_days)
    return StorageEntryRead(
        storage_id=row.storage_id,
        product_id=row.product_id,
        product_name=row.product_name,
        drawer_id=row.drawer_id,
        drawer_name=row.drawer_name,
        freezer_id=row.freezer_id,
        freezer_name=row.freezer_name,
        weight_grams=float(row.weight_grams),
        date_in=row.date_in,
        date_out=row.date_out,
        available=bool(row.available),
        expires_on=expiration.expires_on,
        expires_in_days=expiration.expires_in_days,
        freshness_status=expiration.status,
    )


def _lookahead(lookahead_days: Optional[int]) -> int:
    return settings.expiring_soon_days if lookahead_days is None else lookahead_days


async def list_storage_entries(
    db: AsyncSession,
    filters: StorageFilter,
    today: date,
    lookahead_days: Optional[int] = None,
) -> List[StorageEntryRead]:
    """
    Storage entries matching ``filters``, oldest stock first.

    Ordered by date_in, then storage_id, so equal dates keep a stable order.
    """
    lookahead = _lookahead(lookahead_days)
    stmt = _apply_filters(_storage_view_stmt(), filters).order_by(
        StorageEntryModel.date_in.asc(),
        StorageEntryModel.storage_id.asc(),
    )
    res = await db.execute(stmt)

    out: List[StorageEntryRead] = []
    for row in res.all():
        view = _to_view(row, today, lookahead)
        if filters.freshness_status is not None and view.freshness_status != filters.freshness_status:
            continue
        out.append(view)
    return out


async def get_storage_entry_view(
    db: AsyncSession,
    storage_id: int,
    today: date,
    lookahead_days: Optional[int] = None,
) -> StorageEntryRead:
    res = await db.execute(_storage_view_stmt().where(StorageEntryModel.storage_id == storage_id))
    row = res.first()
    if row is None:
        raise NotFound(f"Storage entry {storage_id} not found")
    return _to_view(row, today, _lookahead(lookahead_days))


async def _current_entries(
    db: AsyncSession,
    filters: StorageFilter,
    today: date,
    lookahead_days: Optional[int],
) -> List[StorageEntryRead]:
    # Totals describe what is in the freezer now: never unavailable entries.
    current = filters.model_copy(update={"available_only": True})
    return await list_storage_entries(db, current, today, lookahead_days)


async def aggregate_by_product(
    db: AsyncSession,
    filters: StorageFilter,
    today: date,
    lookahead_days: Optional[int] = None,
) -> List[ProductAggregate]:
    """Entry count and total weight per product. Products without matches get no row."""
    totals: Dict[int, dict] = {}
    for entry in await _current_entries(db, filters, today, lookahead_days):
        row = totals.setdefault(
            entry.product_id,
            {
                "product_id": entry.product_id,
                "product_name": entry.product_name,
                "entry_count": 0,
                "total_weight_grams": 0.0,
            },
        )
        row["entry_count"] += 1
        row["total_weight_grams"] += entry.weight_grams

    rows = sorted(totals.values(), key=lambda r: (r["product_name"].lower(), r["product_id"]))
    return [ProductAggregate(**r) for r in rows]


async def aggregate_by_drawer(
    db: AsyncSession,
    filters: StorageFilter,
    today: date,
    lookahead_days: Optional[int] = None,
) -> List[DrawerAggregate]:
    totals: Dict[int, dict] = {}
    for entry in await _current_entries(db, filters, today, lookahead_days):
        row = totals.setdefault(
            entry.drawer_id,
            {
                "drawer_id": entry.drawer_id,
                "drawer_name": entry.drawer_name,
                "freezer_id": entry.freezer_id,
                "freezer_name": entry.freezer_name,
                "entry_count": 0,
                "total_weight_grams": 0.0,
            },
        )
        row["entry_count"] += 1
        row["total_weight_grams"] += entry.weight_grams

    rows = sorted(
        totals.values(),
        key=lambda r: (r["freezer_name"].lower(), r["drawer_name"].lower(), r["drawer_id"]),
    )
    return [DrawerAggregate(**r) for r in rows]
