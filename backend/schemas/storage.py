from datetime import date
from typing import Optional

from pydantic import BaseModel

from core.expiration import FreshnessStatus


class StorageFilter(BaseModel):
    """Options recognised by the storage listing and the aggregates."""

    freezer_id: Optional[int] = None
    drawer_id: Optional[int] = None
    product_id: Optional[int] = None
    available_only: bool = True
    freshness_status: Optional[FreshnessStatus] = None


class StorageEntryCreate(BaseModel):
    product_id: int
    drawer_id: int
    weight_grams: float
    date_in: Optional[date] = None


class CheckOutRequest(BaseModel):
    date_out: Optional[date] = None


class StorageEntryRead(BaseModel):
    storage_id: int
    product_id: int
    product_name: str
    drawer_id: int
    drawer_name: str
    freezer_id: int
    freezer_name: str
    weight_grams: float
    date_in: date
    date_out: Optional[date] = None
    available: bool
    expires_on: date
    expires_in_days: int
    freshness_status: FreshnessStatus


class ProductAggregate(BaseModel):
    product_id: int
    product_name: str
    entry_count: int
    total_weight_grams: float


class DrawerAggregate(BaseModel):
    drawer_id: int
    drawer_name: str
    freezer_id: int
    freezer_name: str
    entry_count: int
    total_weight_grams: float
