"""
SoleStock MCP Server

Asistan istemcilerine katalog, satış ve dashboard verisini MCP tool'ları
olarak sunar. Sunucu SOLESTOCK_EMAIL / SOLESTOCK_PASSWORD ile bir kez giriş
yapar ve bu oturumu her gateway çağrısına parametre olarak verir.

Kullanım:
    solestock-mcp
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from solestock.app import SoleStockApp, build_app
from solestock.config import configure_logging
from solestock.errors import OperationResult
from solestock.models.entities import AuthSession, SaleInput
from solestock.models.formulas import net_received, product_cost_snapshot
from solestock.services import dashboard
from solestock.services.profit_calculator import ProfitSimulation, simulate

logger = logging.getLogger(__name__)

app = Server("solestock")

# İlk tool çağrısında lazy init edilir
_context: Optional[SoleStockApp] = None


def _to_json(obj: Any) -> Any:
    """Dataclass, Enum ve iç içe yapıları JSON serializable yapar."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return _to_json(asdict(obj))
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {k: _to_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_json(i) for i in obj]
    return obj


def _result(data: Any) -> List[TextContent]:
    return [TextContent(type="text", text=json.dumps(_to_json(data), indent=2, ensure_ascii=False))]


def _from_operation(result: OperationResult) -> Dict:
    if not result.success:
        return {"success": False, "error": result.error_message}
    response = {"success": True, "data": result.data}
    if result.warnings:
        response["warnings"] = result.warnings
    return response


def get_context() -> SoleStockApp:
    global _context
    if _context is None:
        _context = build_app()
    return _context


def current_session(ctx: SoleStockApp) -> Optional[AuthSession]:
    """Aktif oturum; yoksa servis hesabıyla giriş yapar."""
    session = ctx.sessions.get_session()
    if session is not None:
        return session
    email, password = ctx.settings.service_email, ctx.settings.service_password
    if not email or not password:
        logger.warning("SOLESTOCK_EMAIL / SOLESTOCK_PASSWORD tanımlı değil")
        return None
    result = ctx.sessions.sign_in(email, password)
    if not result.success:
        logger.error("Servis hesabı girişi başarısız: %s", result.message)
        return None
    return result.session


@app.list_tools()
async def list_tools() -> List[Tool]:
    return [
        Tool(name="list_products", description="List products with supplier name and variations",
             inputSchema={"type": "object", "properties": {}}),
        Tool(name="list_low_stock", description="List products at or below their minimum stock level",
             inputSchema={"type": "object", "properties": {}}),
        Tool(name="list_sales", description="List most recent sales with product and platform names",
             inputSchema={"type": "object", "properties": {"limit": {"type": "integer"}}}),
        Tool(name="dashboard_stats", description="Totals, margin, top products and platform share",
             inputSchema={"type": "object", "properties": {}}),
        Tool(name="record_sale", description="Record a sale and decrement stock (variation and product)",
             inputSchema={"type": "object", "properties": {
                 "product_id": {"type": "string"}, "platform_id": {"type": "string"},
                 "value_gross": {"type": "number"}, "value_received": {"type": "number"},
                 "variation_id": {"type": "string"}, "cost_other": {"type": "number"}},
                 "required": ["product_id", "platform_id", "value_gross"]}),
        Tool(name="delete_sale", description="Delete a sale and restore its stock",
             inputSchema={"type": "object", "properties": {"sale_id": {"type": "string"}}, "required": ["sale_id"]}),
        Tool(name="reconcile_pending", description="Resume interrupted sale/stock operations",
             inputSchema={"type": "object", "properties": {}}),
        Tool(name="simulate_profit", description="Unit profit simulation from price, fees and costs",
             inputSchema={"type": "object", "properties": {
                 f.name: {"type": "number"} for f in fields(ProfitSimulation)}}),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: dict) -> List[TextContent]:
    handlers = {
        "list_products": lambda ctx, a: list_products(ctx),
        "list_low_stock": lambda ctx, a: list_low_stock(ctx),
        "list_sales": lambda ctx, a: list_sales(ctx, a.get("limit", 20)),
        "dashboard_stats": lambda ctx, a: dashboard_stats(ctx),
        "record_sale": lambda ctx, a: record_sale(ctx, a),
        "delete_sale": lambda ctx, a: delete_sale(ctx, a["sale_id"]),
        "reconcile_pending": lambda ctx, a: reconcile_pending(ctx),
        "simulate_profit": lambda ctx, a: simulate_profit(a),
    }
    handler = handlers.get(name)
    if not handler:
        raise ValueError(f"Unknown tool: {name}")
    return _result(handler(get_context(), arguments or {}))


# --- Implementation ---

def list_products(ctx: SoleStockApp) -> Dict:
    products = ctx.data.get_products_with_details(current_session(ctx))
    return {"success": True, "count": len(products), "data": products}


def list_low_stock(ctx: SoleStockApp) -> Dict:
    low = dashboard.low_stock_products(ctx.data.list_products(current_session(ctx)))
    low.sort(key=lambda p: p.stock_quantity)
    return {"success": True, "count": len(low), "data": low}


def list_sales(ctx: SoleStockApp, limit: int = 20) -> Dict:
    sales = ctx.data.get_sales_with_details(current_session(ctx))[:limit]
    return {"success": True, "count": len(sales), "data": sales}


def dashboard_stats(ctx: SoleStockApp) -> Dict:
    session = current_session(ctx)
    sales = ctx.data.get_sales_with_details(session)
    products = ctx.data.list_products(session)
    return {
        "success": True,
        "data": {
            "stats": dashboard.compute_stats(sales, products),
            "top_products": dashboard.top_products(sales),
            "platforms": dashboard.platform_breakdown(sales),
            "daily": dashboard.daily_series(sales),
        },
    }


def record_sale(ctx: SoleStockApp, args: dict) -> Dict:
    """Maliyetler üründen, net tahsilat (verilmemişse) platform komisyonundan doldurulur."""
    session = current_session(ctx)
    product = next((p for p in ctx.data.list_products(session) if p.product_id == args["product_id"]), None)
    if product is None:
        return {"success": False, "error": "Product not found"}
    platform = next((p for p in ctx.data.get_platforms(session) if p.platform_id == args["platform_id"]), None)
    if platform is None:
        return {"success": False, "error": "Platform not found"}

    variation = None
    if args.get("variation_id"):
        variation = next(
            (v for v in ctx.data.list_variations(session, product.product_id)
             if v.variation_id == args["variation_id"]),
            None,
        )
        if variation is None:
            return {"success": False, "error": "Variation not found"}

    value_gross = float(args["value_gross"])
    value_received = args.get("value_received")
    sale_input = SaleInput(
        product_id=product.product_id,
        platform_id=platform.platform_id,
        costs=product_cost_snapshot(product, other=float(args.get("cost_other", 0.0))),
        value_gross=value_gross,
        value_received=(
            float(value_received) if value_received is not None
            else net_received(value_gross, platform.standard_fee_percent)
        ),
        variation_id=variation.variation_id if variation else None,
        color=variation.color if variation else None,
        size=variation.size if variation else None,
    )
    return _from_operation(ctx.data.record_sale(session, sale_input))


def delete_sale(ctx: SoleStockApp, sale_id: str) -> Dict:
    return _from_operation(ctx.data.delete_sale(current_session(ctx), sale_id))


def reconcile_pending(ctx: SoleStockApp) -> Dict:
    return _from_operation(ctx.data.reconcile_pending(current_session(ctx)))


def simulate_profit(args: dict) -> Dict:
    known = {f.name for f in fields(ProfitSimulation)}
    sim = ProfitSimulation(**{k: float(v) for k, v in args.items() if k in known})
    return {"success": True, "data": simulate(sim)}


def main() -> None:
    ctx = get_context()
    configure_logging(ctx.settings.log_level)

    async def run():
        async with stdio_server() as (read, write):
            await app.run(read, write, app.create_initialization_options())

    asyncio.run(run())


if __name__ == "__main__":
    main()
