"""Kâr simülatörü - satış fiyatı, komisyon ve maliyetlerden birim kârı hesaplar."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_COST_BOX = 1.50
DEFAULT_COST_BAG = 0.50
DEFAULT_COST_LABEL = 0.20
DEFAULT_PLATFORM_FEE_PERCENT = 14.0


@dataclass
class ProfitSimulation:
    cost_product: float = 0.0
    cost_box: float = DEFAULT_COST_BOX
    cost_bag: float = DEFAULT_COST_BAG
    cost_label: float = DEFAULT_COST_LABEL
    cost_extra: float = 0.0
    sale_price: float = 0.0
    platform_fee_percent: float = DEFAULT_PLATFORM_FEE_PERCENT
    tax_percent: float = 0.0
    shipping_cost: float = 0.0


@dataclass
class SimulationResult:
    total_cost: float
    fee_amount: float
    tax_amount: float
    net_revenue: float
    profit: float
    margin_percent: float


def simulate(sim: ProfitSimulation) -> SimulationResult:
    """Net gelir = fiyat - komisyon - vergi - kargo; marj satış fiyatı üzerinden (%)."""
    fee_amount = sim.sale_price * sim.platform_fee_percent / 100
    tax_amount = sim.sale_price * sim.tax_percent / 100
    net_revenue = sim.sale_price - (fee_amount + tax_amount + sim.shipping_cost)
    total_cost = sim.cost_product + sim.cost_box + sim.cost_bag + sim.cost_label + sim.cost_extra
    profit = net_revenue - total_cost
    margin = (profit / sim.sale_price) * 100 if sim.sale_price > 0 else 0.0

    return SimulationResult(
        total_cost=round(total_cost, 2),
        fee_amount=round(fee_amount, 2),
        tax_amount=round(tax_amount, 2),
        net_revenue=round(net_revenue, 2),
        profit=round(profit, 2),
        margin_percent=round(margin, 2),
    )
