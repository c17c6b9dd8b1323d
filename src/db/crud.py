# src/db/crud.py
from __future__ import annotations

import sqlite3
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from db import models
from db.database import connect
from utils.logger import get_logger

_logger = get_logger(__name__)

# columns a caller may write, per table; anything else is rejected
TABLE_COLUMNS: Dict[str, Sequence[str]] = {
    "profiles": ("id", "email", "full_name", "avatar_url", "role", "created_at"),
    "products": (
        "id",
        "name",
        "category",
        "stock_level",
        "unit",
        "location",
        "created_at",
    ),
    "shipments": (
        "id",
        "tracking_number",
        "origin",
        "destination",
        "status",
        "product_name",
        "eta",
        "origin_lat",
        "origin_lng",
        "dest_lat",
        "dest_lng",
        "created_at",
    ),
}

_ORDER_BY = {
    "profiles": "created_at, id",
    "products": "created_at, id",
    "shipments": "created_at, id",
}


class StoreError(Exception):
    """Raised when the store rejects a read or a write."""


def _check_table(table: str) -> Sequence[str]:
    try:
        return TABLE_COLUMNS[table]
    except KeyError:
        raise StoreError(f'relation "{table}" does not exist') from None


def _check_columns(table: str, names) -> None:
    allowed = _check_table(table)
    for name in names:
        if name not in allowed:
            raise StoreError(f'column "{name}" of relation "{table}" does not exist')


def _to_db(val: Any) -> Any:
    if isinstance(val, Enum):
        return val.value
    if isinstance(val, (datetime, date)):
        return val.isoformat()
    return val


# ---------------------------
# Generic table access
# ---------------------------


async def read_all(table: str) -> List[Dict[str, Any]]:
    """Every row of `table` as dicts, oldest first. No paging, no filtering."""
    _check_table(table)
    try:
        async with connect() as conn:
            cur = await conn.execute(f"SELECT * FROM {table} ORDER BY {_ORDER_BY[table]};")
            rows = await cur.fetchall()
            await cur.close()
    except sqlite3.Error as e:
        raise StoreError(str(e)) from e
    return [dict(row) for row in rows]


async def read_one(table: str, **filters) -> Optional[Dict[str, Any]]:
    """First row of `table` matching all equality `filters`, or None."""
    _check_columns(table, filters)
    if filters:
        where_clause = " AND ".join(f"{k} = ?" for k in filters)
    else:
        where_clause = "1 = 1"
    try:
        async with connect() as conn:
            cur = await conn.execute(
                f"SELECT * FROM {table} WHERE {where_clause} LIMIT 1;",
                tuple(_to_db(v) for v in filters.values()),
            )
            row = await cur.fetchone()
            await cur.close()
    except sqlite3.Error as e:
        raise StoreError(str(e)) from e
    return dict(row) if row else None


async def insert(table: str, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Insert all `records` in one transaction and return them as stored.
    Records without an id get a fresh UUID.
    """
    if not records:
        return []
    prepared = []
    for record in records:
        _check_columns(table, record)
        record = dict(record)
        record.setdefault("id", str(uuid.uuid4()))
        prepared.append(record)

    try:
        async with connect() as conn:
            for record in prepared:
                cols = ", ".join(record)
                marks = ", ".join("?" for _ in record)
                await conn.execute(
                    f"INSERT INTO {table} ({cols}) VALUES ({marks});",
                    tuple(_to_db(v) for v in record.values()),
                )
            await conn.commit()

            stored = []
            for record in prepared:
                cur = await conn.execute(
                    f"SELECT * FROM {table} WHERE id = ?;", (record["id"],)
                )
                stored.append(dict(await cur.fetchone()))
                await cur.close()
    except sqlite3.Error as e:
        raise StoreError(str(e)) from e

    _logger.debug(f"Inserted {len(stored)} row(s) into {table}")
    return stored


async def delete(table: str, id: str) -> int:
    """Delete the row with the given id. Returns the number of rows removed."""
    _check_table(table)
    try:
        async with connect() as conn:
            cur = await conn.execute(f"DELETE FROM {table} WHERE id = ?;", (id,))
            removed = cur.rowcount
            await cur.close()
            await conn.commit()
    except sqlite3.Error as e:
        raise StoreError(str(e)) from e
    _logger.debug(f"Deleted {removed} row(s) from {table} (id={id})")
    return removed


# ---------------------------
# Row conversion
# ---------------------------


def row_to_profile(row: Dict[str, Any]) -> models.Profile:
    return models.Profile(
        id=row["id"],
        email=row["email"],
        full_name=row["full_name"],
        avatar_url=row["avatar_url"],
        role=models.UserRole(row["role"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def row_to_product(row: Dict[str, Any]) -> models.Product:
    return models.Product(
        id=row["id"],
        name=row["name"],
        category=models.ProductCategory(row["category"]),
        stock_level=row["stock_level"],
        unit=row["unit"],
        location=row["location"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def row_to_shipment(row: Dict[str, Any]) -> models.Shipment:
    return models.Shipment(
        id=row["id"],
        tracking_number=row["tracking_number"],
        origin=row["origin"],
        destination=row["destination"],
        status=models.ShipmentStatus(row["status"]),
        product_name=row["product_name"],
        eta=date.fromisoformat(row["eta"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        origin_lat=row["origin_lat"],
        origin_lng=row["origin_lng"],
        dest_lat=row["dest_lat"],
        dest_lng=row["dest_lng"],
    )


# ---------------------------
# Profiles
# ---------------------------


async def get_profile(user_id: str) -> Optional[models.Profile]:
    """Return the profile bound to a user id, or None."""
    row = await read_one("profiles", id=user_id)
    return row_to_profile(row) if row else None


# ---------------------------
# Products
# ---------------------------


async def list_products() -> List[models.Product]:
    return [row_to_product(row) for row in await read_all("products")]


async def insert_product(record: Dict[str, Any]) -> models.Product:
    (row,) = await insert("products", [record])
    return row_to_product(row)


async def delete_product(product_id: str) -> int:
    return await delete("products", product_id)


# ---------------------------
# Shipments
# ---------------------------


async def list_shipments() -> List[models.Shipment]:
    return [row_to_shipment(row) for row in await read_all("shipments")]


async def insert_shipment(record: Dict[str, Any]) -> models.Shipment:
    (row,) = await insert("shipments", [record])
    return row_to_shipment(row)


async def delete_shipment(shipment_id: str) -> int:
    return await delete("shipments", shipment_id)
