from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from core import store
from db.database import get_async_session
from schemas.drawers import DrawerRead, DrawerCreate, DrawerUpdate

router = APIRouter()


@router.get("/", response_model=List[DrawerRead])
async def list_drawers(
    drawer_id: Optional[int] = Query(None, alias="drawerId"),
    freezer_id: Optional[int] = Query(None, alias="freezerId"),
    drawer_name: Optional[str] = Query(None, alias="drawerName"),
    db: AsyncSession = Depends(get_async_session),
):
    """
    List drawers.

    - drawerId selects one drawer and excludes the other parameters (400 otherwise).
    - freezerId and drawerName can be combined.
    """
    items = await store.list_drawers(db, drawer_id=drawer_id, freezer_id=freezer_id, name=drawer_name)
    return [DrawerRead(**d.to_schema) for d in items]


@router.get("/{drawer_id}", response_model=DrawerRead)
async def get_drawer(drawer_id: int, db: AsyncSession = Depends(get_async_session)):
    drawer = await store.get_drawer(db, drawer_id)
    return DrawerRead(**drawer.to_schema)


@router.post("/", response_model=DrawerRead, status_code=status.HTTP_201_CREATED)
async def create_drawer(payload: DrawerCreate, db: AsyncSession = Depends(get_async_session)):
    drawer = await store.create_drawer(db, payload.freezer_id, payload.name)
    return DrawerRead(**drawer.to_schema)


@router.patch("/{drawer_id}", response_model=DrawerRead)
async def update_drawer(
    drawer_id: int,
    payload: DrawerUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    data = payload.model_dump(exclude_unset=True)
    drawer = await store.update_drawer(
        db,
        drawer_id,
        name=data.get("name"),
        freezer_id=data.get("freezer_id"),
    )
    return DrawerRead(**drawer.to_schema)


@router.delete("/{drawer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_drawer(drawer_id: int, db: AsyncSession = Depends(get_async_session)):
    """Delete a drawer and every storage entry in it."""
    await store.delete_drawer(db, drawer_id)
