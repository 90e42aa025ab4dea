from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from core import store
from db.database import get_async_session
from schemas.freezers import FreezerRead, FreezerCreate, FreezerUpdate

router = APIRouter()


@router.get("/", response_model=List[FreezerRead])
async def list_freezers(
    name: Optional[str] = None,
    db: AsyncSession = Depends(get_async_session),
):
    items = await store.list_freezers(db, name=name)
    return [FreezerRead(**f.to_schema) for f in items]


@router.get("/{freezer_id}", response_model=FreezerRead)
async def get_freezer(freezer_id: int, db: AsyncSession = Depends(get_async_session)):
    freezer = await store.get_freezer(db, freezer_id)
    return FreezerRead(**freezer.to_schema)


@router.post("/", response_model=FreezerRead, status_code=status.HTTP_201_CREATED)
async def create_freezer(payload: FreezerCreate, db: AsyncSession = Depends(get_async_session)):
    freezer = await store.create_freezer(db, payload.name)
    return FreezerRead(**freezer.to_schema)


@router.patch("/{freezer_id}", response_model=FreezerRead)
async def rename_freezer(
    freezer_id: int,
    payload: FreezerUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    freezer = await store.rename_freezer(db, freezer_id, payload.name)
    return FreezerRead(**freezer.to_schema)


@router.delete("/{freezer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_freezer(freezer_id: int, db: AsyncSession = Depends(get_async_session)):
    """Delete a freezer. Its drawers and their storage entries go with it."""
    await store.delete_freezer(db, freezer_id)
