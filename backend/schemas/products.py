from pydantic import BaseModel
from typing import Optional


class ProductRead(BaseModel):
    product_id: int
    name: str
    expiration_months: int


class ProductCreate(BaseModel):
    name: str
    expiration_months: Optional[int] = None  # falls back to DEFAULT_EXPIRATION_MONTHS


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    expiration_months: Optional[int] = None
