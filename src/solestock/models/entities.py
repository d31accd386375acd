"""Katalog, satış ve oturum veri modelleri."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SaleStatus(str, Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    RETURNED = "returned"


class AdjustmentType(str, Enum):
    ENTRY = "entry"
    WITHDRAWAL = "withdrawal"


@dataclass
class ProductVariation:
    variation_id: str
    product_id: str
    color: str
    size: str
    stock_quantity: int = 0
    user_id: Optional[str] = None


@dataclass
class Product:
    product_id: str
    name: str
    standard_cost: float = 0.0
    cost_box: float = 0.0
    cost_bag: float = 0.0
    cost_label: float = 0.0
    suggested_price: Optional[float] = None
    stock_quantity: int = 0
    min_stock_level: int = 0
    supplier_id: Optional[str] = None
    image_url: Optional[str] = None
    user_id: Optional[str] = None


@dataclass
class SupplierCatalogItem:
    model: str
    price: float


@dataclass
class Supplier:
    supplier_id: str
    name: str
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    catalog: list[SupplierCatalogItem] = field(default_factory=list)
    user_id: Optional[str] = None

    def __post_init__(self) -> None:
        # DynamoDB'den gelen katalog satırları dict olarak gelir
        self.catalog = [
            item if isinstance(item, SupplierCatalogItem) else SupplierCatalogItem(**item)
            for item in (self.catalog or [])
        ]


@dataclass
class Platform:
    platform_id: str
    name: str
    standard_fee_percent: float = 0.0
    color: str = "#64748B"
    user_id: Optional[str] = None


@dataclass
class CostSnapshot:
    """Satış anındaki birim maliyetler. Sonradan yeniden hesaplanmaz."""

    product_cost: float = 0.0
    box: float = 0.0
    bag: float = 0.0
    label: float = 0.0
    other: float = 0.0


@dataclass
class SaleInput:
    product_id: str
    platform_id: str
    costs: CostSnapshot
    value_gross: float
    value_received: float
    date_sale: Optional[str] = None
    status: SaleStatus = SaleStatus.PENDING
    variation_id: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None


@dataclass
class Sale:
    sale_id: str
    product_id: str
    platform_id: str
    cost_product_snapshot: float
    cost_box: float
    cost_bag: float
    cost_label: float
    cost_other: float
    value_gross: float
    value_received: float
    profit_final: float
    date_sale: str
    status: SaleStatus = SaleStatus.PENDING
    variation_id: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    user_id: Optional[str] = None

    def __post_init__(self) -> None:
        self.status = SaleStatus(self.status)

    @property
    def cost_snapshot(self) -> CostSnapshot:
        return CostSnapshot(
            product_cost=self.cost_product_snapshot,
            box=self.cost_box,
            bag=self.cost_bag,
            label=self.cost_label,
            other=self.cost_other,
        )


@dataclass
class ProductWithDetails:
    product: Product
    supplier_name: str
    variations: list[ProductVariation] = field(default_factory=list)


@dataclass
class SaleWithDetails:
    sale: Sale
    product_name: str
    platform_name: str
    platform_color: str


@dataclass
class AuthSession:
    user_id: str
    email: str
    access_token: str
    expires_at: float
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None

    def is_expired(self, now: Optional[float] = None) -> bool:
        return (now if now is not None else time.time()) >= self.expires_at


@dataclass
class DashboardStats:
    total_profit: float
    total_revenue: float
    total_expenses: float
    total_sales: int
    average_margin: float
    low_stock_count: int
