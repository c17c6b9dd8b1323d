# provide dataclass models

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    ADMIN = "admin"
    LOGISTICS = "logistics"
    SALES = "sales"
    VIEWER = "viewer"


class ShipmentStatus(str, Enum):
    PENDING = "Pending"
    IN_TRANSIT = "In Transit"
    CUSTOMS = "Customs"
    DELIVERED = "Delivered"


class ProductCategory(str, Enum):
    POULTRY = "Poultry"
    PORK = "Pork"
    BEEF = "Beef"
    SEAFOOD = "Seafood"
    VEGETABLES = "Vegetables"
    FRIES = "Fries"


@dataclass(frozen=True)
class Session:
    access_token: str
    user_id: str
    email: str
    expires_at: datetime  # UTC

    @property
    def expired(self) -> bool:
        return datetime.now(timezone.utc) >= self.expires_at


@dataclass(frozen=True)
class Profile:
    id: str  # same as the user id
    email: str
    full_name: str
    avatar_url: Optional[str]
    role: UserRole
    created_at: datetime


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: ProductCategory
    stock_level: float
    unit: str
    location: str
    created_at: datetime


@dataclass(frozen=True)
class Shipment:
    id: str
    tracking_number: str
    origin: str
    destination: str
    status: ShipmentStatus
    product_name: str
    eta: date
    created_at: datetime
    origin_lat: Optional[float] = None
    origin_lng: Optional[float] = None
    dest_lat: Optional[float] = None
    dest_lng: Optional[float] = None

    @property
    def has_route(self) -> bool:
        return None not in (self.origin_lat, self.origin_lng, self.dest_lat, self.dest_lng)


@dataclass
class ProductDraft:
    """Form payload for a new product, nothing is stored until it is inserted."""

    name: str = ""
    category: ProductCategory = ProductCategory.POULTRY
    stock_level: float = 0
    unit: str = "kg"
    location: str = ""


@dataclass
class ShipmentDraft:
    tracking_number: str = ""
    origin: str = ""
    destination: str = ""
    status: ShipmentStatus = ShipmentStatus.PENDING
    product_name: str = ""
    eta: Optional[date] = None
