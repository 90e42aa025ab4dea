from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from core import store
from db.database import get_async_session
from schemas.products import ProductRead, ProductCreate, ProductUpdate

router = APIRouter()


@router.get("/", response_model=List[ProductRead])
async def list_products(
    name: Optional[str] = None,
    expiration_months: Optional[int] = Query(None, alias="expirationMonths"),
    db: AsyncSession = Depends(get_async_session),
):
    items = await store.list_products(db, name=name, expiration_months=expiration_months)
    return [ProductRead(**p.to_schema) for p in items]


@router.get("/{product_id}", response_model=ProductRead)
async def get_product(product_id: int, db: AsyncSession = Depends(get_async_session)):
    product = await store.get_product(db, product_id)
    return ProductRead(**product.to_schema)


@router.post("/", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreate, db: AsyncSession = Depends(get_async_session)):
    product = await store.create_product(db, payload.name, payload.expiration_months)
    return ProductRead(**product.to_schema)


@router.patch("/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: int,
    payload: ProductUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    data = payload.model_dump(exclude_unset=True)
    product = await store.update_product(
        db,
        product_id,
        name=data.get("name"),
        expiration_months=data.get("expiration_months"),
    )
    return ProductRead(**product.to_schema)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: int, db: AsyncSession = Depends(get_async_session)):
    """Delete a product. Storage entries of this product are deleted too."""
    await store.delete_product(db, product_id)
