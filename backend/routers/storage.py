from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core import queries, store
from core.expiration import FreshnessStatus
from db.database import get_async_session
from schemas.storage import (
    CheckOutRequest,
    DrawerAggregate,
    ProductAggregate,
    StorageEntryCreate,
    StorageEntryRead,
    StorageFilter,
)

router = APIRouter()


def get_today() -> date:
    """Reference date for freshness and default dates. The only clock read in the API."""
    return date.today()


def storage_filter(
    freezer_id: Optional[int] = Query(None, alias="freezerId"),
    drawer_id: Optional[int] = Query(None, alias="drawerId"),
    product_id: Optional[int] = Query(None, alias="productId"),
    available_only: bool = Query(True, alias="availableOnly"),
    freshness_status: Optional[FreshnessStatus] = Query(None, alias="status"),
) -> StorageFilter:
    return StorageFilter(
        freezer_id=freezer_id,
        drawer_id=drawer_id,
        product_id=product_id,
        available_only=available_only,
        freshness_status=freshness_status,
    )


@router.get("/", response_model=List[StorageEntryRead])
async def list_storage(
    filters: StorageFilter = Depends(storage_filter),
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_async_session),
):
    """
    List storage entries, oldest first.

    - freezerId / drawerId / productId narrow the result (combined with AND).
    - availableOnly (default true) hides checked-out entries.
    - status filters on the derived freshness: Fresh, ExpiringSoon or Expired.
    """
    return await queries.list_storage_entries(db, filters, today)


@router.get("/aggregate", response_model=List[ProductAggregate])
async def aggregate_storage_by_product(
    filters: StorageFilter = Depends(storage_filter),
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_async_session),
):
    """Per-product count and total weight of what is currently in storage."""
    return await queries.aggregate_by_product(db, filters, today)


@router.get("/aggregate/drawers", response_model=List[DrawerAggregate])
async def aggregate_storage_by_drawer(
    filters: StorageFilter = Depends(storage_filter),
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_async_session),
):
    return await queries.aggregate_by_drawer(db, filters, today)


@router.get("/{storage_id}", response_model=StorageEntryRead)
async def get_storage_entry(
    storage_id: int,
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_async_session),
):
    return await queries.get_storage_entry_view(db, storage_id, today)


@router.post("/", response_model=StorageEntryRead, status_code=status.HTTP_201_CREATED)
async def create_storage_entry(
    payload: StorageEntryCreate,
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_async_session),
):
    entry = await store.create_storage_entry(
        db,
        product_id=payload.product_id,
        drawer_id=payload.drawer_id,
        weight_grams=payload.weight_grams,
        date_in=payload.date_in or today,
    )
    return await queries.get_storage_entry_view(db, entry.storage_id, today)


@router.patch("/{storage_id}/checkout", response_model=StorageEntryRead)
async def check_out_storage_entry(
    storage_id: int,
    payload: Optional[CheckOutRequest] = None,
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Take an entry out of the freezer: sets date_out (default today) and marks it unavailable.

    Fails with 404 when the entry does not exist or was already checked out.
    """
    date_out = (payload.date_out if payload else None) or today
    await store.check_out(db, storage_id, date_out)
    return await queries.get_storage_entry_view(db, storage_id, today)


@router.delete("/{storage_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_storage_entry(storage_id: int, db: AsyncSession = Depends(get_async_session)):
    await store.delete_storage_entry(db, storage_id)
