"""Türetilmiş değer formülleri ve join dekorasyonları.

Tamamı saf fonksiyonlardır; dışarıya bağımlılık ya da hata durumu yoktur.
Kâr her zaman satıştaki maliyet snapshot'ından hesaplanır, ürünün güncel
maliyetinden değil.
"""

from __future__ import annotations

from typing import Optional

from solestock.models.entities import (
    CostSnapshot,
    Platform,
    Product,
    ProductVariation,
    ProductWithDetails,
    Sale,
    SaleWithDetails,
    Supplier,
)

UNKNOWN_SUPPLIER = "Tedarikçi yok"
UNKNOWN_LABEL = "Bilinmiyor"
UNKNOWN_COLOR = "#cccccc"

# Bu seviyenin altı "son birimler" uyarısı üretir
LAST_UNITS_THRESHOLD = 2


def _round_money(value: float) -> float:
    return round(value, 2)


def total_unit_cost(costs: CostSnapshot) -> float:
    return costs.product_cost + costs.box + costs.bag + costs.label + costs.other


def compute_profit(value_received: float, costs: CostSnapshot) -> float:
    return _round_money(value_received - total_unit_cost(costs))


def sale_profit(sale: Sale) -> float:
    return compute_profit(sale.value_received, sale.cost_snapshot)


def sale_margin(sale: Sale) -> float:
    """Kâr / net tahsilat. Tahsilat sıfırsa marj 0 kabul edilir."""
    if not sale.value_received:
        return 0.0
    return sale_profit(sale) / sale.value_received


def product_unit_cost(product: Product) -> float:
    return product.standard_cost + product.cost_box + product.cost_bag + product.cost_label


def estimated_profit(product: Product) -> float:
    return _round_money((product.suggested_price or 0.0) - product_unit_cost(product))


def estimated_margin(product: Product) -> float:
    if not product.suggested_price:
        return 0.0
    return estimated_profit(product) / product.suggested_price


def product_cost_snapshot(product: Product, other: float = 0.0) -> CostSnapshot:
    """Satış formunun varsayılan maliyetlerini üründen doldurur."""
    return CostSnapshot(
        product_cost=product.standard_cost,
        box=product.cost_box or 0.0,
        bag=product.cost_bag or 0.0,
        label=product.cost_label or 0.0,
        other=other,
    )


def net_received(value_gross: float, fee_percent: Optional[float]) -> float:
    """Platform komisyonu düşülmüş net tahsilat."""
    fee_amount = value_gross * ((fee_percent or 0.0) / 100.0)
    return _round_money(value_gross - fee_amount)


def is_low_stock(product: Product) -> bool:
    return product.stock_quantity <= product.min_stock_level


def stock_warning(product: Product, variation: Optional[ProductVariation] = None) -> Optional[str]:
    """Satış onayından önce gösterilecek stok uyarısı, yoksa None."""
    if variation is not None:
        label = f"{variation.color}/{variation.size}"
        if variation.stock_quantity <= 0:
            return f"Varyasyon {label} stokta yok."
        if variation.stock_quantity < LAST_UNITS_THRESHOLD:
            return f"Varyasyon {label} için stok az."
        return None

    if product.stock_quantity <= 0:
        return "Dikkat: Ürün için kayıtlı stok yok."
    if product.stock_quantity < LAST_UNITS_THRESHOLD:
        return "Dikkat: Stokta son birimler."
    return None


def find_catalog_price(supplier: Optional[Supplier], product_name: str) -> Optional[float]:
    """Tedarikçi kataloğunda ürün adıyla eşleşen modelin fiyatını bulur.

    Basit bulanık eşleşme: ürün adı model adını içeriyorsa ya da tersi.
    """
    if supplier is None:
        return None
    name = product_name.lower()
    for item in supplier.catalog:
        model = item.model.lower()
        if model and (model in name or name in model):
            return item.price
    return None


def decorate_product(
    product: Product,
    suppliers_by_id: dict[str, Supplier],
    variations_by_product: dict[str, list[ProductVariation]],
) -> ProductWithDetails:
    supplier = suppliers_by_id.get(product.supplier_id) if product.supplier_id else None
    return ProductWithDetails(
        product=product,
        supplier_name=supplier.name if supplier else UNKNOWN_SUPPLIER,
        variations=list(variations_by_product.get(product.product_id, [])),
    )


def decorate_sale(
    sale: Sale,
    products_by_id: dict[str, Product],
    platforms_by_id: dict[str, Platform],
) -> SaleWithDetails:
    product = products_by_id.get(sale.product_id)
    platform = platforms_by_id.get(sale.platform_id)
    return SaleWithDetails(
        sale=sale,
        product_name=product.name if product else UNKNOWN_LABEL,
        platform_name=platform.name if platform else UNKNOWN_LABEL,
        platform_color=platform.color if platform and platform.color else UNKNOWN_COLOR,
    )


def group_variations(variations: list[ProductVariation]) -> dict[str, list[ProductVariation]]:
    grouped: dict[str, list[ProductVariation]] = {}
    for variation in variations:
        grouped.setdefault(variation.product_id, []).append(variation)
    return grouped
