"""
Entity store: every mutation of freezers, drawers, products and storage
entries goes through here.

Uniqueness and referential integrity are enforced by the database
constraints declared on the models; writes are attempted directly and
integrity violations are translated into the matching error kind. Check-out
is a conditional UPDATE so two concurrent check-outs cannot both succeed.
"""

import math
from datetime import date
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.errors import (
    Conflict,
    DuplicateName,
    InvalidArgument,
    InventoryError,
    NotFound,
    integrity_violation,
)
from core.expiration import MAX_EXPIRATION_MONTHS, expires_on, validate_check_out
from core.logging import get_logger
from db.drawer import Drawer as DrawerModel
from db.freezer import Freezer as FreezerModel
from db.product import Product as ProductModel
from db.storage import StorageEntry as StorageEntryModel

logger = get_logger(__name__)

NAME_MAX_LENGTH = 50


def _clean_name(name: Optional[str], label: str) -> str:
    name = (name or "").strip()
    if not name:
        raise InvalidArgument(f"{label} name is required")
    if len(name) > NAME_MAX_LENGTH:
        raise InvalidArgument(f"{label} name must be at most {NAME_MAX_LENGTH} characters")
    return name


def _check_expiration_months(expiration_months) -> int:
    if not isinstance(expiration_months, int) or isinstance(expiration_months, bool) or expiration_months <= 0:
        raise InvalidArgument(f"expiration_months must be a positive integer, got {expiration_months!r}")
    if expiration_months > MAX_EXPIRATION_MONTHS:
        raise InvalidArgument(f"expiration_months must be at most {MAX_EXPIRATION_MONTHS}, got {expiration_months}")
    return expiration_months


def _check_weight(weight_grams) -> float:
    try:
        weight = float(weight_grams)
    except (TypeError, ValueError):
        raise InvalidArgument(f"weight_grams must be a number, got {weight_grams!r}")
    if not math.isfinite(weight) or weight <= 0:
        raise InvalidArgument(f"weight_grams must be > 0, got {weight_grams!r}")
    return weight


def _translate(
    exc: IntegrityError,
    *,
    duplicate: Optional[str] = None,
    missing: Optional[str] = None,
    invalid: Optional[str] = None,
) -> InventoryError:
    violation = integrity_violation(exc)
    if violation == "unique" and duplicate:
        return DuplicateName(duplicate)
    if violation == "foreign_key" and missing:
        return NotFound(missing)
    if violation == "check" and invalid:
        return InvalidArgument(invalid)
    return Conflict(f"Write rejected by a database constraint: {getattr(exc, 'orig', exc)}")


async def _fetch_one(db: AsyncSession, model, column, value):
    # populate_existing: never hand back a stale identity-map copy
    res = await db.execute(
        select(model).where(column == value).execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


# --- Freezers -----------------------------------------------------------------

async def get_freezer(db: AsyncSession, freezer_id: int) -> FreezerModel:
    freezer = await _fetch_one(db, FreezerModel, FreezerModel.freezer_id, freezer_id)
    if freezer is None:
        raise NotFound(f"Freezer {freezer_id} not found")
    return freezer


async def list_freezers(db: AsyncSession, name: Optional[str] = None) -> List[FreezerModel]:
    stmt = select(FreezerModel)
    if name is not None:
        stmt = stmt.where(FreezerModel.name == name.strip())
    res = await db.execute(stmt.order_by(func.lower(FreezerModel.name).asc(), FreezerModel.freezer_id.asc()))
    return list(res.scalars().all())


async def create_freezer(db: AsyncSession, name: str) -> FreezerModel:
    name = _clean_name(name, "Freezer")
    freezer = FreezerModel(name=name)
    db.add(freezer)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise _translate(exc, duplicate=f"Freezer '{name}' already exists") from exc
    await db.refresh(freezer)
    logger.info("freezer_created", freezer_id=freezer.freezer_id, name=name)
    return freezer


async def rename_freezer(db: AsyncSession, freezer_id: int, name: str) -> FreezerModel:
    name = _clean_name(name, "Freezer")
    try:
        res = await db.execute(
            update(FreezerModel)
            .where(FreezerModel.freezer_id == freezer_id)
            .values(name=name)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            raise NotFound(f"Freezer {freezer_id} not found")
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise _translate(exc, duplicate=f"Freezer '{name}' already exists") from exc
    except NotFound:
        await db.rollback()
        raise
    logger.info("freezer_renamed", freezer_id=freezer_id, name=name)
    return await get_freezer(db, freezer_id)


async def delete_freezer(db: AsyncSession, freezer_id: int) -> None:
    """Delete a freezer together with its drawers and their storage entries."""
    await _delete_row(db, FreezerModel, FreezerModel.freezer_id, freezer_id, "Freezer")


# --- Drawers ------------------------------------------------------------------

async def get_drawer(db: AsyncSession, drawer_id: int) -> DrawerModel:
    drawer = await _fetch_one(db, DrawerModel, DrawerModel.drawer_id, drawer_id)
    if drawer is None:
        raise NotFound(f"Drawer {drawer_id} not found")
    return drawer


async def list_drawers(
    db: AsyncSession,
    drawer_id: Optional[int] = None,
    freezer_id: Optional[int] = None,
    name: Optional[str] = None,
) -> List[DrawerModel]:
    """
    List drawers.

    - drawer_id selects a single drawer and cannot be combined with other options.
    - freezer_id and name can be combined.
    """
    if drawer_id is not None and (freezer_id is not None or name is not None):
        raise InvalidArgument("When a drawer_id is given, no other parameters can be given")

    stmt = select(DrawerModel)
    if drawer_id is not None:
        stmt = stmt.where(DrawerModel.drawer_id == drawer_id)
    if freezer_id is not None:
        stmt = stmt.where(DrawerModel.freezer_id == freezer_id)
    if name is not None:
        stmt = stmt.where(DrawerModel.name == name.strip())
    res = await db.execute(
        stmt.order_by(DrawerModel.freezer_id.asc(), func.lower(DrawerModel.name).asc(), DrawerModel.drawer_id.asc())
    )
    return list(res.scalars().all())


async def create_drawer(db: AsyncSession, freezer_id: int, name: str) -> DrawerModel:
    name = _clean_name(name, "Drawer")
    drawer = DrawerModel(name=name, freezer_id=freezer_id)
    db.add(drawer)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise _translate(
            exc,
            duplicate=f"Drawer '{name}' already exists in freezer {freezer_id}",
            missing=f"Freezer {freezer_id} not found",
        ) from exc
    await db.refresh(drawer)
    logger.info("drawer_created", drawer_id=drawer.drawer_id, freezer_id=freezer_id, name=name)
    return drawer


async def update_drawer(
    db: AsyncSession,
    drawer_id: int,
    name: Optional[str] = None,
    freezer_id: Optional[int] = None,
) -> DrawerModel:
    """Rename a drawer and/or move it to another freezer."""
    values = {}
    if name is not None:
        values["name"] = _clean_name(name, "Drawer")
    if freezer_id is not None:
        values["freezer_id"] = freezer_id
    if not values:
        return await get_drawer(db, drawer_id)

    try:
        res = await db.execute(
            update(DrawerModel)
            .where(DrawerModel.drawer_id == drawer_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            raise NotFound(f"Drawer {drawer_id} not found")
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise _translate(
            exc,
            duplicate="This drawer name already exists within this freezer",
            missing=f"Freezer {freezer_id} not found",
        ) from exc
    except NotFound:
        await db.rollback()
        raise
    logger.info("drawer_updated", drawer_id=drawer_id, **values)
    return await get_drawer(db, drawer_id)


async def delete_drawer(db: AsyncSession, drawer_id: int) -> None:
    """Delete a drawer together with its storage entries."""
    await _delete_row(db, DrawerModel, DrawerModel.drawer_id, drawer_id, "Drawer")


# --- Products -----------------------------------------------------------------

async def get_product(db: AsyncSession, product_id: int) -> ProductModel:
    product = await _fetch_one(db, ProductModel, ProductModel.product_id, product_id)
    if product is None:
        raise NotFound(f"Product {product_id} not found")
    return product


async def list_products(
    db: AsyncSession,
    name: Optional[str] = None,
    expiration_months: Optional[int] = None,
) -> List[ProductModel]:
    stmt = select(ProductModel)
    if name is not None:
        stmt = stmt.where(ProductModel.name == name.strip())
    if expiration_months is not None:
        stmt = stmt.where(ProductModel.expiration_months == expiration_months)
    res = await db.execute(stmt.order_by(func.lower(ProductModel.name).asc(), ProductModel.product_id.asc()))
    return list(res.scalars().all())


async def create_product(db: AsyncSession, name: str, expiration_months: Optional[int] = None) -> ProductModel:
    name = _clean_name(name, "Product")
    if expiration_months is None:
        expiration_months = settings.default_expiration_months
    expiration_months = _check_expiration_months(expiration_months)

    product = ProductModel(name=name, expiration_months=expiration_months)
    db.add(product)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise _translate(
            exc,
            duplicate=f"Product '{name}' already exists",
            invalid="expiration_months must be > 0",
        ) from exc
    await db.refresh(product)
    logger.info(
        "product_created",
        product_id=product.product_id,
        name=name,
        expiration_months=expiration_months,
    )
    return product


async def update_product(
    db: AsyncSession,
    product_id: int,
    name: Optional[str] = None,
    expiration_months: Optional[int] = None,
) -> ProductModel:
    values = {}
    if name is not None:
        values["name"] = _clean_name(name, "Product")
    if expiration_months is not None:
        values["expiration_months"] = _check_expiration_months(expiration_months)
        # every stored entry of the product must still get a representable expiry date
        latest = (
            await db.execute(
                select(func.max(StorageEntryModel.date_in)).where(StorageEntryModel.product_id == product_id)
            )
        ).scalar_one_or_none()
        if latest is not None:
            expires_on(latest, values["expiration_months"])
    if not values:
        return await get_product(db, product_id)

    try:
        res = await db.execute(
            update(ProductModel)
            .where(ProductModel.product_id == product_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            raise NotFound(f"Product {product_id} not found")
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise _translate(
            exc,
            duplicate=f"Product '{values.get('name')}' already exists",
            invalid="expiration_months must be > 0",
        ) from exc
    except NotFound:
        await db.rollback()
        raise
    logger.info("product_updated", product_id=product_id, **values)
    return await get_product(db, product_id)


async def delete_product(db: AsyncSession, product_id: int) -> None:
    """Delete a product together with every storage entry referencing it."""
    await _delete_row(db, ProductModel, ProductModel.product_id, product_id, "Product")


# --- Storage entries ----------------------------------------------------------

async def get_storage_entry(db: AsyncSession, storage_id: int) -> StorageEntryModel:
    entry = await _fetch_one(db, StorageEntryModel, StorageEntryModel.storage_id, storage_id)
    if entry is None:
        raise NotFound(f"Storage entry {storage_id} not found")
    return entry


async def _missing_references(db: AsyncSession, product_id: int, drawer_id: int) -> str:
    missing = []
    if await _fetch_one(db, ProductModel, ProductModel.product_id, product_id) is None:
        missing.append(f"Product {product_id} not found")
    if await _fetch_one(db, DrawerModel, DrawerModel.drawer_id, drawer_id) is None:
        missing.append(f"Drawer {drawer_id} not found")
    # Both exist again by now: a concurrent delete/create raced us.
    return "; ".join(missing) or f"Product {product_id} or drawer {drawer_id} not found"


async def create_storage_entry(
    db: AsyncSession,
    product_id: int,
    drawer_id: int,
    weight_grams: float,
    date_in: Optional[date] = None,
) -> StorageEntryModel:
    """Stock in: a new, available entry. date_in defaults to today."""
    weight = _check_weight(weight_grams)
    date_in = date_in or date.today()
    product = await _fetch_one(db, ProductModel, ProductModel.product_id, product_id)
    if product is not None:
        expires_on(date_in, product.expiration_months)

    entry = StorageEntryModel(
        product_id=product_id,
        drawer_id=drawer_id,
        weight_grams=weight,
        date_in=date_in,
        date_out=None,
        available=True,
    )
    db.add(entry)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if integrity_violation(exc) == "foreign_key":
            raise NotFound(await _missing_references(db, product_id, drawer_id)) from exc
        raise _translate(exc, invalid="weight_grams must be > 0") from exc
    await db.refresh(entry)
    logger.info(
        "storage_entry_created",
        storage_id=entry.storage_id,
        product_id=product_id,
        drawer_id=drawer_id,
        weight_grams=weight,
        date_in=entry.date_in.isoformat(),
    )
    return entry


async def check_out(db: AsyncSession, storage_id: int, date_out: date) -> StorageEntryModel:
    """Mark an entry as taken out of the freezer on ``date_out``. Exactly once."""
    entry = await get_storage_entry(db, storage_id)
    validate_check_out(storage_id, entry.available, entry.date_in, date_out)

    try:
        res = await db.execute(
            update(StorageEntryModel)
            .where(StorageEntryModel.storage_id == storage_id)
            .where(StorageEntryModel.available.is_(True))
            .values(available=False, date_out=date_out)
            .execution_options(synchronize_session=False)
        )
    except IntegrityError as exc:
        await db.rollback()
        raise _translate(exc, invalid="date_out must not be earlier than date_in") from exc
    if res.rowcount != 1:
        await db.rollback()
        if await _fetch_one(db, StorageEntryModel, StorageEntryModel.storage_id, storage_id) is None:
            raise NotFound(f"Storage entry {storage_id} not found")
        raise Conflict(f"Storage entry {storage_id} was checked out concurrently")
    await db.commit()
    logger.info("storage_entry_checked_out", storage_id=storage_id, date_out=date_out.isoformat())
    return await get_storage_entry(db, storage_id)


async def delete_storage_entry(db: AsyncSession, storage_id: int) -> None:
    """Remove a storage entry entirely (corrections only; normal removal is check_out)."""
    await _delete_row(db, StorageEntryModel, StorageEntryModel.storage_id, storage_id, "Storage entry")


async def _delete_row(db: AsyncSession, model, column, value, label: str) -> None:
    # Dependent rows go with it through ON DELETE CASCADE.
    res = await db.execute(delete(model).where(column == value).execution_options(synchronize_session=False))
    if res.rowcount == 0:
        await db.rollback()
        raise NotFound(f"{label} {value} not found")
    await db.commit()
    logger.info(f"{label.lower().replace(' ', '_')}_deleted", id=value)
