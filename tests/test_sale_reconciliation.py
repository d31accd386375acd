"""Satış kaydı / silme ile stok uzlaştırması entegrasyon testleri (bellek içi tablolarla)."""

from solestock.errors import NotFound, Unauthenticated, WriteFailed
from solestock.gateways.base import PRODUCTS_TABLE, SALE_JOURNAL_TABLE, SALES_TABLE, VARIATIONS_TABLE
from solestock.gateways.sale_journal import (
    STEP_PRODUCT_STOCK,
    STEP_VARIATION_STOCK,
    JournalEntry,
    JournalStatus,
    StepStatus,
)
from solestock.models.entities import SaleInput
from solestock.models.formulas import product_cost_snapshot

from fakes import stock_of


def _platform_id(gateway, session) -> str:
    return next(p for p in gateway.get_platforms(session) if p.name == "Shopee").platform_id


def _sale_input(gateway, session, product, value=50.0, variation=None) -> SaleInput:
    return SaleInput(
        product_id=product.product_id,
        platform_id=_platform_id(gateway, session),
        costs=product_cost_snapshot(product),
        value_gross=value,
        value_received=value,
        variation_id=variation.variation_id if variation else None,
        color=variation.color if variation else None,
        size=variation.size if variation else None,
    )


def _journal_entries(dynamodb) -> list[JournalEntry]:
    return [JournalEntry.from_item(i) for i in dynamodb.Table(SALE_JOURNAL_TABLE).items.values()]


def _product_stock(dynamodb, product) -> int:
    return stock_of(dynamodb.Table(PRODUCTS_TABLE), product_id=product.product_id)


def _variation_stock(dynamodb, variation) -> int:
    return stock_of(dynamodb.Table(VARIATIONS_TABLE), variation_id=variation.variation_id)


class TestRecordAndDelete:
    """Satış stoktan bir adet düşer, silme tam tersini yapar."""

    def test_example_scenario(self, gateway, dynamodb, session, product):
        result = gateway.record_sale(session, _sale_input(gateway, session, product, value=50.0))
        assert result.success
        assert result.warnings == []
        assert result.data.profit_final == 38.3
        assert _product_stock(dynamodb, product) == 4

        assert gateway.delete_sale(session, result.data.sale_id).success
        assert _product_stock(dynamodb, product) == 5
        assert gateway.list_sales(session) == []

    def test_round_trip_with_variation(self, gateway, dynamodb, session, product, variation_factory):
        variation = variation_factory(product, stock=3)
        sale = gateway.record_sale(session, _sale_input(gateway, session, product, variation=variation)).data
        assert (_variation_stock(dynamodb, variation), _product_stock(dynamodb, product)) == (2, 2)

        gateway.delete_sale(session, sale.sale_id)
        assert (_variation_stock(dynamodb, variation), _product_stock(dynamodb, product)) == (3, 3)

    def test_two_sales_on_last_unit(self, gateway, dynamodb, session, product, variation_factory):
        variation = variation_factory(product, stock=1)
        first = gateway.record_sale(session, _sale_input(gateway, session, product, variation=variation))
        second = gateway.record_sale(session, _sale_input(gateway, session, product, variation=variation))
        assert first.success and second.success
        assert _variation_stock(dynamodb, variation) == 0
        assert _product_stock(dynamodb, product) == 0

    def test_decrement_clamps_at_zero(self, gateway, dynamodb, session, product):
        gateway.register_stock_withdrawal(session, product.product_id, 5)
        assert gateway.record_sale(session, _sale_input(gateway, session, product)).success
        assert _product_stock(dynamodb, product) == 0

    def test_profit_uses_snapshot_not_live_cost(self, gateway, session, product):
        sale = gateway.record_sale(session, _sale_input(gateway, session, product)).data
        product.standard_cost = 30.0
        gateway.update_product(session, product)
        stored = gateway.list_sales(session)[0]
        assert stored.sale_id == sale.sale_id
        assert stored.profit_final == 38.3
        assert stored.cost_product_snapshot == 10.0

    def test_journal_completed(self, gateway, dynamodb, session, product):
        gateway.record_sale(session, _sale_input(gateway, session, product))
        entries = _journal_entries(dynamodb)
        assert [e.status for e in entries] == [JournalStatus.COMPLETED]
        assert all(s.status == StepStatus.DONE for s in entries[0].steps)

    def test_sales_listed_with_details(self, gateway, session, product):
        gateway.record_sale(session, _sale_input(gateway, session, product))
        detailed = gateway.get_sales_with_details(session)
        assert detailed[0].product_name == "Air Runner"
        assert detailed[0].platform_name == "Shopee"
        assert detailed[0].platform_color == "#EA501F"


class TestFailures:
    """Hatalar sonuç nesnesiyle döner; yarım kalan adımlar uyarı olarak raporlanır."""

    def test_no_session(self, gateway, dynamodb, session, product):
        sale_input = _sale_input(gateway, session, product)
        result = gateway.record_sale(None, sale_input)
        assert isinstance(result.error, Unauthenticated)
        assert dynamodb.Table(SALES_TABLE).items == {}
        assert _product_stock(dynamodb, product) == 5

    def test_sale_insert_rejected(self, gateway, dynamodb, session, product):
        dynamodb.Table(SALES_TABLE).fail_next("put_item", code="ValidationException")
        result = gateway.record_sale(session, _sale_input(gateway, session, product))
        assert isinstance(result.error, WriteFailed)
        assert "ValidationException" in result.error.reason
        assert _product_stock(dynamodb, product) == 5
        assert [e.status for e in _journal_entries(dynamodb)] == [JournalStatus.ABORTED]

    def test_journal_unavailable(self, gateway, dynamodb, session, product):
        dynamodb.Table(SALE_JOURNAL_TABLE).fail_next("put_item")
        result = gateway.record_sale(session, _sale_input(gateway, session, product))
        assert isinstance(result.error, WriteFailed)
        assert dynamodb.Table(SALES_TABLE).items == {}
        assert _product_stock(dynamodb, product) == 5

    def test_delete_unknown_sale(self, gateway, session):
        assert isinstance(gateway.delete_sale(session, "missing").error, NotFound)

    def test_delete_foreign_sale(self, gateway, session, other_session, product):
        sale = gateway.record_sale(session, _sale_input(gateway, session, product)).data
        assert isinstance(gateway.delete_sale(other_session, sale.sale_id).error, NotFound)

    def test_missing_variation_row_is_inconsistent(self, gateway, dynamodb, session, product, variation_factory):
        variation = variation_factory(product, stock=2)
        dynamodb.Table(VARIATIONS_TABLE).items.pop((variation.variation_id,))

        result = gateway.record_sale(session, _sale_input(gateway, session, product, variation=variation))
        assert result.success
        assert len(result.warnings) == 1
        assert STEP_VARIATION_STOCK in result.warnings[0]
        assert _product_stock(dynamodb, product) == 1

        entry = _journal_entries(dynamodb)[0]
        assert entry.status == JournalStatus.INCONSISTENT
        assert entry.step(STEP_VARIATION_STOCK).status == StepStatus.SKIPPED


class TestReconciliation:
    """Stok adımı yarım kalırsa uzlaştırma tam bir kez uygular."""

    def test_interrupted_variation_write_is_completed_once(
        self, gateway, dynamodb, session, product, variation_factory
    ):
        variation = variation_factory(product, stock=1)
        dynamodb.Table(VARIATIONS_TABLE).fail_next(
            "update_item", when=lambda kwargs: kwargs["Key"] == {"variation_id": variation.variation_id}
        )

        result = gateway.record_sale(session, _sale_input(gateway, session, product, variation=variation))
        assert result.success
        assert len(result.warnings) == 1
        assert _variation_stock(dynamodb, variation) == 1
        assert _product_stock(dynamodb, product) == 0

        entry = _journal_entries(dynamodb)[0]
        assert entry.status == JournalStatus.PENDING
        assert entry.step(STEP_VARIATION_STOCK).status == StepStatus.PLANNED
        assert entry.step(STEP_PRODUCT_STOCK).status == StepStatus.DONE

        report = gateway.reconcile_pending(session).data
        assert report.completed == [entry.journal_id]
        assert _variation_stock(dynamodb, variation) == 0
        assert _product_stock(dynamodb, product) == 0

        # İkinci çalıştırmada yapılacak iş kalmamalı
        assert gateway.reconcile_pending(session).data.total == 0
        assert _variation_stock(dynamodb, variation) == 0

    def test_interrupted_delete_is_finished(self, gateway, dynamodb, session, product):
        sale = gateway.record_sale(session, _sale_input(gateway, session, product)).data
        dynamodb.Table(SALES_TABLE).fail_next("delete_item")

        result = gateway.delete_sale(session, sale.sale_id)
        assert isinstance(result.error, WriteFailed)
        # Stok iade edildi, satır hâlâ duruyor
        assert _product_stock(dynamodb, product) == 5
        assert len(gateway.list_sales(session)) == 1

        report = gateway.reconcile_pending(session).data
        assert len(report.completed) == 1
        assert gateway.list_sales(session) == []
        assert _product_stock(dynamodb, product) == 5

    def test_reconcile_requires_session(self, gateway):
        assert isinstance(gateway.reconcile_pending(None).error, Unauthenticated)


class TestConcurrentStockWrites:
    """Eşzamanlı yazım aynı eski değerden iki kez düşülmesine yol açmaz."""

    def test_concurrent_sale_on_variation(self, gateway, dynamodb, session, product, variation_factory):
        variation = variation_factory(product, stock=2)
        table = dynamodb.Table(VARIATIONS_TABLE)

        def other_sale(t, kwargs):
            row = t.items[(variation.variation_id,)]
            row["stock_quantity"] = row["stock_quantity"] - 1
            row["stock_version"] = row.get("stock_version", 0) + 1

        table.before("update_item", other_sale)
        result = gateway.record_sale(session, _sale_input(gateway, session, product, variation=variation))

        assert result.success
        assert _variation_stock(dynamodb, variation) == 0
        step = _journal_entries(dynamodb)[0].step(STEP_VARIATION_STOCK)
        assert (step.planned_from, step.planned_to) == (1, 0)

    def test_conflicts_exhaust_attempts(self, gateway, dynamodb, session, product):
        table = dynamodb.Table(PRODUCTS_TABLE)

        def bump_version(t, kwargs):
            row = t.items[(product.product_id,)]
            row["stock_version"] = row.get("stock_version", 0) + 1

        table.before("update_item", bump_version, times=3)
        result = gateway.record_sale(session, _sale_input(gateway, session, product))

        assert result.success
        assert len(result.warnings) == 1
        assert _product_stock(dynamodb, product) == 5

        gateway.reconcile_pending(session)
        assert _product_stock(dynamodb, product) == 4
