"""Dashboard hesapları: toplamlar, günlük seri, platform payı, en iyi ürünler.

Tüm fonksiyonlar gateway'den okunmuş listeler üzerinde çalışır, ağ çağrısı yapmaz.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from solestock.models.entities import DashboardStats, Product, SaleWithDetails
from solestock.models.formulas import is_low_stock, total_unit_cost


@dataclass
class DailyPoint:
    day: str
    received: float
    profit: float


@dataclass
class PlatformShare:
    name: str
    color: str
    count: int
    percent: float


@dataclass
class ProductRanking:
    name: str
    profit: float
    units: int


def _day_of(date_sale: str) -> str:
    try:
        return datetime.fromisoformat(date_sale).date().isoformat()
    except ValueError:
        return date_sale.split("T")[0]


def low_stock_products(products: list[Product]) -> list[Product]:
    return [p for p in products if is_low_stock(p)]


def compute_stats(sales: list[SaleWithDetails], products: list[Product]) -> DashboardStats:
    total_profit = sum(s.sale.profit_final for s in sales)
    total_revenue = sum(s.sale.value_received for s in sales)
    total_expenses = sum(total_unit_cost(s.sale.cost_snapshot) for s in sales)
    return DashboardStats(
        total_profit=round(total_profit, 2),
        total_revenue=round(total_revenue, 2),
        total_expenses=round(total_expenses, 2),
        total_sales=len(sales),
        # Ciro sıfırsa marj 0
        average_margin=(total_profit / total_revenue) if total_revenue else 0.0,
        low_stock_count=len(low_stock_products(products)),
    )


def daily_series(sales: list[SaleWithDetails], limit: int = 10) -> list[DailyPoint]:
    """Gün bazında tahsilat ve kâr, eskiden yeniye; son `limit` aktif gün."""
    grouped: dict[str, DailyPoint] = {}
    for s in sorted(sales, key=lambda s: s.sale.date_sale):
        day = _day_of(s.sale.date_sale)
        point = grouped.setdefault(day, DailyPoint(day, 0.0, 0.0))
        point.received = round(point.received + s.sale.value_received, 2)
        point.profit = round(point.profit + s.sale.profit_final, 2)
    return list(grouped.values())[-limit:]


def platform_breakdown(sales: list[SaleWithDetails]) -> list[PlatformShare]:
    counts: dict[str, PlatformShare] = {}
    for s in sales:
        share = counts.setdefault(s.platform_name, PlatformShare(s.platform_name, s.platform_color, 0, 0.0))
        share.count += 1
    total = len(sales)
    for share in counts.values():
        share.percent = (share.count / total) * 100 if total else 0.0
    return sorted(counts.values(), key=lambda p: p.count, reverse=True)


def top_products(sales: list[SaleWithDetails], limit: int = 3) -> list[ProductRanking]:
    ranking: dict[str, ProductRanking] = {}
    for s in sales:
        item = ranking.setdefault(s.product_name, ProductRanking(s.product_name, 0.0, 0))
        item.profit = round(item.profit + s.sale.profit_final, 2)
        item.units += 1
    return sorted(ranking.values(), key=lambda r: r.profit, reverse=True)[:limit]


def recent_sales(sales: list[SaleWithDetails], limit: int = 5) -> list[SaleWithDetails]:
    return sorted(sales, key=lambda s: s.sale.date_sale, reverse=True)[:limit]
