"""Dashboard hesapları unit testleri."""

import pytest

from solestock.models.entities import Product, Sale, SaleWithDetails
from solestock.services.dashboard import (
    compute_stats,
    daily_series,
    low_stock_products,
    platform_breakdown,
    recent_sales,
    top_products,
)


def _detailed(sale_id, date_sale, received, profit, product="Air Runner", platform="Shopee", color="#EA501F"):
    sale = Sale(
        sale_id=sale_id,
        product_id="p1",
        platform_id="pl1",
        cost_product_snapshot=10.0,
        cost_box=1.0,
        cost_bag=0.5,
        cost_label=0.2,
        cost_other=0.0,
        value_gross=received,
        value_received=received,
        profit_final=profit,
        date_sale=date_sale,
    )
    return SaleWithDetails(sale, product, platform, color)


@pytest.fixture
def sales():
    return [
        _detailed("s1", "2025-03-01T10:00:00+00:00", 50.0, 38.3),
        _detailed("s2", "2025-03-01T15:00:00+00:00", 60.0, 48.3, product="Bolt"),
        _detailed("s3", "2025-03-02T09:00:00+00:00", 40.0, 28.3, platform="TikTok Shop", color="#000000"),
    ]


class TestStats:
    def test_totals(self, sales):
        products = [Product("p1", "A", stock_quantity=1, min_stock_level=2), Product("p2", "B", stock_quantity=9)]
        stats = compute_stats(sales, products)
        assert stats.total_sales == 3
        assert stats.total_revenue == 150.0
        assert stats.total_profit == pytest.approx(114.9)
        assert stats.total_expenses == pytest.approx(35.1)
        assert stats.average_margin == pytest.approx(114.9 / 150.0)
        assert stats.low_stock_count == 1

    def test_empty(self):
        stats = compute_stats([], [])
        assert (stats.total_sales, stats.average_margin) == (0, 0.0)

    def test_low_stock_products(self):
        products = [Product("p1", "A", stock_quantity=2, min_stock_level=2), Product("p2", "B", stock_quantity=3)]
        assert [p.name for p in low_stock_products(products)] == ["A"]


class TestCharts:
    def test_daily_series_ascending(self, sales):
        points = daily_series(sales)
        assert [p.day for p in points] == ["2025-03-01", "2025-03-02"]
        assert points[0].received == 110.0
        assert points[0].profit == 86.6

    def test_daily_series_limit(self, sales):
        assert [p.day for p in daily_series(sales, limit=1)] == ["2025-03-02"]

    def test_platform_breakdown(self, sales):
        shares = platform_breakdown(sales)
        assert [(s.name, s.count) for s in shares] == [("Shopee", 2), ("TikTok Shop", 1)]
        assert shares[0].percent == pytest.approx(200 / 3)
        assert shares[1].color == "#000000"

    def test_top_products(self, sales):
        ranking = top_products(sales)
        assert [r.name for r in ranking] == ["Air Runner", "Bolt"]
        assert (ranking[0].profit, ranking[0].units) == (66.6, 2)

    def test_recent_sales_newest_first(self, sales):
        assert [s.sale.sale_id for s in recent_sales(sales, limit=2)] == ["s3", "s2"]
