"""
Mutation commands: every create/delete waits for the store to commit and then
refreshes the whole business snapshot. Nothing is applied optimistically.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Awaitable, Callable, Dict, Union

import db.crud as crud
from db.models import (
    Product,
    ProductCategory,
    ProductDraft,
    Shipment,
    ShipmentDraft,
    ShipmentStatus,
)
from utils.logger import get_logger
from utils.ports import resolve_port
from utils.state import BusinessSnapshot

_logger = get_logger(__name__)

Confirm = Callable[[], Awaitable[bool]]


class MutationError(Exception):
    """A create/delete did not happen; the message is meant for the user."""


class ValidationError(MutationError):
    pass


def _required(value: Any, label: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValidationError(f"{label} is required.")
    return text


def _coerce_enum(enum_cls, value: Any, label: str):
    if isinstance(value, enum_cls):
        return value
    text = str(value or "").strip()
    for member in enum_cls:
        if text.casefold() in (member.value.casefold(), member.name.casefold()):
            return member
    choices = ", ".join(m.value for m in enum_cls)
    raise ValidationError(f"{label} must be one of: {choices}.")


def _coerce_date(value: Union[date, str, None], label: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value or "").strip())
    except ValueError:
        raise ValidationError(f"{label} must be a date (YYYY-MM-DD).") from None


def build_product_record(draft: ProductDraft) -> Dict[str, Any]:
    """Validate a product draft and turn it into an insert payload."""
    try:
        stock_level = float(draft.stock_level)
    except (TypeError, ValueError):
        raise ValidationError("Stock level must be a number.") from None
    if not math.isfinite(stock_level):
        raise ValidationError("Stock level must be a finite number.")
    if stock_level < 0:
        raise ValidationError("Stock level cannot be negative.")

    return {
        "name": _required(draft.name, "Product name"),
        "category": _coerce_enum(ProductCategory, draft.category, "Category").value,
        "stock_level": stock_level,
        "unit": _required(draft.unit, "Unit"),
        "location": _required(draft.location, "Location"),
    }


def build_shipment_record(draft: ShipmentDraft) -> Dict[str, Any]:
    """
    Validate a shipment draft and turn it into an insert payload.
    Ports missing from the port table get None coordinates.
    """
    origin = _required(draft.origin, "Origin")
    destination = _required(draft.destination, "Destination")
    origin_lat, origin_lng = resolve_port(origin) or (None, None)
    dest_lat, dest_lng = resolve_port(destination) or (None, None)

    return {
        "tracking_number": _required(draft.tracking_number, "Tracking number"),
        "origin": origin,
        "destination": destination,
        "status": _coerce_enum(ShipmentStatus, draft.status, "Status").value,
        "product_name": _required(draft.product_name, "Product"),
        "eta": _coerce_date(draft.eta, "ETA").isoformat(),
        "origin_lat": origin_lat,
        "origin_lng": origin_lng,
        "dest_lat": dest_lat,
        "dest_lng": dest_lng,
    }


async def create_product(snapshot: BusinessSnapshot, draft: ProductDraft) -> Product:
    record = build_product_record(draft)
    try:
        product = await crud.insert_product(record)
    except crud.StoreError as e:
        _logger.error(f"Error adding product: {e}")
        raise MutationError(f"Error adding product: {e}") from e

    _logger.info(f"Product {product.name} ({product.id}) created")
    await snapshot.refresh()
    return product


async def create_shipment(
    snapshot: BusinessSnapshot, draft: ShipmentDraft
) -> Shipment:
    record = build_shipment_record(draft)
    try:
        shipment = await crud.insert_shipment(record)
    except crud.StoreError as e:
        _logger.error(f"Error creating shipment: {e}")
        raise MutationError(f"Error creating shipment: {e}") from e

    if not shipment.has_route:
        _logger.info(
            f"Shipment {shipment.tracking_number} has no known route "
            f"({shipment.origin} -> {shipment.destination})"
        )
    _logger.info(f"Shipment {shipment.tracking_number} ({shipment.id}) created")
    await snapshot.refresh()
    return shipment


async def _delete(
    snapshot: BusinessSnapshot,
    table: str,
    remove: Callable[[str], Awaitable[int]],
    record_id: str,
    confirm: Confirm,
) -> bool:
    if not await confirm():
        return False
    try:
        await remove(record_id)
    except crud.StoreError as e:
        _logger.error(f"Error deleting from {table}: {e}")
        raise MutationError(f"Error deleting: {e}") from e

    _logger.info(f"Deleted {record_id} from {table}")
    await snapshot.refresh()
    return True


async def delete_product(
    snapshot: BusinessSnapshot, product_id: str, confirm: Confirm
) -> bool:
    """
    Ask `confirm` first; a declined confirmation never reaches the store.
    Returns True when the delete went through.
    """
    return await _delete(
        snapshot, "products", crud.delete_product, product_id, confirm
    )


async def delete_shipment(
    snapshot: BusinessSnapshot, shipment_id: str, confirm: Confirm
) -> bool:
    return await _delete(
        snapshot, "shipments", crud.delete_shipment, shipment_id, confirm
    )
