"""Domain formülleri unit testleri."""

import pytest

from solestock.models.entities import (
    CostSnapshot,
    Platform,
    Product,
    ProductVariation,
    Sale,
    Supplier,
    SupplierCatalogItem,
)
from solestock.models.formulas import (
    UNKNOWN_COLOR,
    UNKNOWN_LABEL,
    UNKNOWN_SUPPLIER,
    compute_profit,
    decorate_product,
    decorate_sale,
    estimated_margin,
    estimated_profit,
    find_catalog_price,
    group_variations,
    is_low_stock,
    net_received,
    product_cost_snapshot,
    sale_margin,
    sale_profit,
    stock_warning,
    total_unit_cost,
)


def _sale(value_received: float, **costs) -> Sale:
    return Sale(
        sale_id="s1",
        product_id="p1",
        platform_id="pl1",
        cost_product_snapshot=costs.get("product_cost", 10.0),
        cost_box=costs.get("box", 1.0),
        cost_bag=costs.get("bag", 0.5),
        cost_label=costs.get("label", 0.2),
        cost_other=costs.get("other", 0.0),
        value_gross=value_received,
        value_received=value_received,
        profit_final=0.0,
        date_sale="2025-03-01T10:00:00+00:00",
    )


class TestProfit:
    """Kâr ve marj her zaman satıştaki snapshot'tan hesaplanır."""

    def test_total_unit_cost(self):
        costs = CostSnapshot(product_cost=10, box=1, bag=0.5, label=0.2, other=0.3)
        assert total_unit_cost(costs) == pytest.approx(12.0)

    def test_profit_example(self):
        assert compute_profit(50.0, CostSnapshot(10.0, 1.0, 0.5, 0.2, 0.0)) == 38.3

    def test_sale_profit_uses_snapshot(self):
        assert sale_profit(_sale(50.0)) == 38.3

    def test_margin(self):
        assert sale_margin(_sale(50.0)) == pytest.approx(38.3 / 50.0)

    def test_margin_zero_when_nothing_received(self):
        assert sale_margin(_sale(0.0)) == 0.0

    def test_negative_profit(self):
        assert sale_profit(_sale(5.0)) == -6.7


class TestProductEstimates:
    def _product(self, suggested):
        return Product("p1", "Air Runner", 10.0, 1.0, 0.5, 0.2, suggested_price=suggested)

    def test_estimated_profit(self):
        assert estimated_profit(self._product(50.0)) == 38.3
        assert estimated_margin(self._product(50.0)) == pytest.approx(0.766)

    def test_estimate_without_price(self):
        assert estimated_profit(self._product(None)) == -11.7
        assert estimated_margin(self._product(None)) == 0.0

    def test_cost_snapshot_from_product(self):
        snapshot = product_cost_snapshot(self._product(50.0), other=2.0)
        assert snapshot == CostSnapshot(10.0, 1.0, 0.5, 0.2, 2.0)


class TestSalesFormHelpers:
    """Satış formu yardımcıları: komisyon düşümü ve stok uyarıları."""

    def test_net_received_deducts_fee(self):
        assert net_received(100.0, 14.0) == 86.0

    def test_net_received_without_fee(self):
        assert net_received(100.0, None) == 100.0

    def test_low_stock_is_inclusive(self):
        assert is_low_stock(Product("p1", "A", stock_quantity=2, min_stock_level=2))
        assert not is_low_stock(Product("p1", "A", stock_quantity=3, min_stock_level=2))

    def test_stock_warning_out_of_stock(self):
        assert "yok" in stock_warning(Product("p1", "A", stock_quantity=0))

    def test_stock_warning_last_units(self):
        assert "son birimler" in stock_warning(Product("p1", "A", stock_quantity=1))

    def test_no_warning_with_stock(self):
        assert stock_warning(Product("p1", "A", stock_quantity=10)) is None

    def test_variation_warning_takes_precedence(self):
        product = Product("p1", "A", stock_quantity=10)
        variation = ProductVariation("v1", "p1", "Beyaz", "40", stock_quantity=0)
        assert "Beyaz/40" in stock_warning(product, variation)


class TestCatalogLookup:
    def test_matches_by_containment(self):
        supplier = Supplier("sup1", "Tedarikçi", catalog=[SupplierCatalogItem("runner", 95.0)])
        assert find_catalog_price(supplier, "Air Runner Pro") == 95.0

    def test_no_match(self):
        supplier = Supplier("sup1", "Tedarikçi", catalog=[{"model": "Jordan", "price": 120.0}])
        assert find_catalog_price(supplier, "Air Runner") is None

    def test_no_supplier(self):
        assert find_catalog_price(None, "Air Runner") is None


class TestDecoration:
    """Join dekorasyonu: eksik referanslar sabit etiketlerle doldurulur."""

    def test_product_with_supplier_and_variations(self):
        product = Product("p1", "A", supplier_id="sup1")
        variations = [ProductVariation("v1", "p1", "Siyah", "42"), ProductVariation("v2", "p2", "Beyaz", "40")]
        decorated = decorate_product(product, {"sup1": Supplier("sup1", "Atlas")}, group_variations(variations))
        assert decorated.supplier_name == "Atlas"
        assert [v.variation_id for v in decorated.variations] == ["v1"]

    def test_product_without_supplier(self):
        decorated = decorate_product(Product("p1", "A", supplier_id="missing"), {}, {})
        assert decorated.supplier_name == UNKNOWN_SUPPLIER
        assert decorated.variations == []

    def test_sale_with_missing_references(self):
        decorated = decorate_sale(_sale(50.0), {}, {})
        assert decorated.product_name == UNKNOWN_LABEL
        assert decorated.platform_name == UNKNOWN_LABEL
        assert decorated.platform_color == UNKNOWN_COLOR

    def test_sale_with_references(self):
        products = {"p1": Product("p1", "Air Runner")}
        platforms = {"pl1": Platform("pl1", "Shopee", 14.0, "#EA501F")}
        decorated = decorate_sale(_sale(50.0), products, platforms)
        assert (decorated.product_name, decorated.platform_name, decorated.platform_color) == (
            "Air Runner",
            "Shopee",
            "#EA501F",
        )
