"""RemoteDataGateway CRUD, platform ve stok giriş/çıkış unit testleri."""

from solestock.errors import NotFound, Unauthenticated, ValidationFailed, WriteFailed
from solestock.gateways.base import PLATFORMS_TABLE, PRODUCTS_TABLE, SUPPLIERS_TABLE, VARIATIONS_TABLE
from solestock.gateways.data_gateway import DEFAULT_PLATFORMS
from solestock.models.entities import (
    CostSnapshot,
    Platform,
    Product,
    ProductVariation,
    SaleInput,
    SaleStatus,
    Supplier,
    SupplierCatalogItem,
)

from fakes import stock_of


class TestSessionRequirement:
    """Oturum yoksa yazmalar Unauthenticated, okumalar boş liste döner."""

    def test_write_without_session(self, gateway):
        result = gateway.create_product(None, Product("", "Air Runner"))
        assert not result.success
        assert isinstance(result.error, Unauthenticated)

    def test_read_without_session(self, gateway, product):
        assert gateway.list_products(None) == []

    def test_read_degrades_on_store_error(self, gateway, dynamodb, session, product):
        dynamodb.Table(PRODUCTS_TABLE).fail_next("query")
        assert gateway.list_products(session) == []


class TestProducts:
    def test_create_assigns_id_and_owner(self, gateway, dynamodb, session, product):
        assert product.product_id
        row = dynamodb.Table(PRODUCTS_TABLE).row(product_id=product.product_id)
        assert row["user_id"] == "user-1"

    def test_list_sorted_by_name(self, gateway, session, product):
        gateway.create_product(session, Product("", "Zoom"))
        gateway.create_product(session, Product("", "Bolt"))
        assert [p.name for p in gateway.list_products(session)] == ["Air Runner", "Bolt", "Zoom"]

    def test_money_fields_come_back_as_float(self, gateway, session, product):
        listed = gateway.list_products(session)[0]
        assert listed.standard_cost == 10.0
        assert isinstance(listed.cost_box, float)

    def test_owner_isolation(self, gateway, session, other_session, product):
        assert gateway.list_products(other_session) == []
        result = gateway.delete_product(other_session, product.product_id)
        assert isinstance(result.error, NotFound)

    def test_update_fields(self, gateway, session, product):
        product.name = "Air Runner 2"
        product.min_stock_level = 4
        assert gateway.update_product(session, product).success
        listed = gateway.list_products(session)[0]
        assert (listed.name, listed.min_stock_level) == ("Air Runner 2", 4)

    def test_update_stock_bumps_version(self, gateway, dynamodb, session, product):
        product.stock_quantity = 9
        assert gateway.update_product(session, product).success
        row = dynamodb.Table(PRODUCTS_TABLE).row(product_id=product.product_id)
        assert row["stock_quantity"] == 9
        assert row["stock_version"] == 1

    def test_update_missing_product(self, gateway, session):
        result = gateway.update_product(session, Product("nope", "X"))
        assert isinstance(result.error, NotFound)

    def test_duplicate_id_is_write_failure(self, gateway, session, product):
        result = gateway.create_product(session, Product(product.product_id, "Kopya"))
        assert isinstance(result.error, WriteFailed)
        assert "ConditionalCheckFailed" in result.error.reason

    def test_delete_removes_variations(self, gateway, dynamodb, session, product, variation_factory):
        variation_factory(product)
        assert gateway.delete_product(session, product.product_id).success
        assert gateway.list_products(session) == []
        assert dynamodb.Table(VARIATIONS_TABLE).items == {}

    def test_pagination_reads_all_pages(self, gateway, dynamodb, session):
        for i in range(5):
            gateway.create_product(session, Product("", f"Model {i}"))
        dynamodb.Table(PRODUCTS_TABLE).page_size = 2
        assert len(gateway.list_products(session)) == 5


class TestVariations:
    """Varyasyon değişiklikleri ürün toplam stoğunu senkronize eder."""

    def test_create_syncs_product_stock(self, gateway, dynamodb, session, product, variation_factory):
        variation_factory(product, size="40", stock=2)
        variation_factory(product, size="41", stock=3)
        assert stock_of(dynamodb.Table(PRODUCTS_TABLE), product_id=product.product_id) == 5
        assert [v.size for v in gateway.list_variations(session, product.product_id)] == ["40", "41"]

    def test_update_variation_stock(self, gateway, dynamodb, session, product, variation_factory):
        variation = variation_factory(product, stock=2)
        variation.stock_quantity = 7
        assert gateway.update_variation(session, variation).success
        assert stock_of(dynamodb.Table(VARIATIONS_TABLE), variation_id=variation.variation_id) == 7
        assert stock_of(dynamodb.Table(PRODUCTS_TABLE), product_id=product.product_id) == 7

    def test_delete_variation_resyncs(self, gateway, dynamodb, session, product, variation_factory):
        keep = variation_factory(product, size="40", stock=2)
        drop = variation_factory(product, size="41", stock=3)
        assert gateway.delete_variation(session, drop.variation_id).success
        assert stock_of(dynamodb.Table(PRODUCTS_TABLE), product_id=product.product_id) == keep.stock_quantity

    def test_variation_for_unknown_product(self, gateway, session, variation_factory):
        result = gateway.create_variation(session, ProductVariation("", "missing", "Siyah", "42"))
        assert isinstance(result.error, NotFound)

    def test_find_stock_drift(self, gateway, dynamodb, session, product, variation_factory):
        variation_factory(product, stock=3)
        assert gateway.find_stock_drift(session) == []

        dynamodb.Table(PRODUCTS_TABLE).items[(product.product_id,)]["stock_quantity"] = 8
        drifts = gateway.find_stock_drift(session)
        assert len(drifts) == 1
        assert (drifts[0].product_stock, drifts[0].variation_total, drifts[0].difference) == (8, 3, 5)

        assert gateway.sync_product_stock(session, product.product_id).data == 3
        assert gateway.find_stock_drift(session) == []


class TestSuppliers:
    def test_catalog_round_trip(self, gateway, session):
        supplier = Supplier("", "Atlas", phone="555", catalog=[SupplierCatalogItem("Runner", 95.5)])
        assert gateway.create_supplier(session, supplier).success
        listed = gateway.list_suppliers(session)[0]
        assert listed.catalog[0].model == "Runner"
        assert listed.catalog[0].price == 95.5

    def test_update_and_delete(self, gateway, session):
        supplier = gateway.create_supplier(session, Supplier("", "Atlas")).data
        supplier.contact_name = "Ali"
        assert gateway.update_supplier(session, supplier).success
        assert gateway.list_suppliers(session)[0].contact_name == "Ali"
        assert gateway.delete_supplier(session, supplier.supplier_id).success
        assert gateway.list_suppliers(session) == []

    def test_update_foreign_supplier(self, gateway, dynamodb, session, other_session):
        supplier = gateway.create_supplier(session, Supplier("", "Atlas")).data
        result = gateway.update_supplier(other_session, supplier)
        assert isinstance(result.error, NotFound)
        assert dynamodb.Table(SUPPLIERS_TABLE).row(supplier_id=supplier.supplier_id)["user_id"] == "user-1"


class TestPlatforms:
    """İlk okumada varsayılan platformlar bir kez oluşturulur."""

    def test_seeds_defaults_once(self, gateway, dynamodb, session):
        first = gateway.get_platforms(session)
        assert len(first) == len(DEFAULT_PLATFORMS)
        assert [p.name for p in first] == sorted(name for name, _, _ in DEFAULT_PLATFORMS)

        second = gateway.get_platforms(session)
        assert [p.platform_id for p in second] == [p.platform_id for p in first]
        assert len(dynamodb.Table(PLATFORMS_TABLE).items) == len(DEFAULT_PLATFORMS)

    def test_seed_race_is_tolerated(self, gateway, dynamodb, session):
        table = dynamodb.Table(PLATFORMS_TABLE)

        def concurrent_seed(t, kwargs):
            # Başka bir istemci aynı isimli platformu önce yazmış
            t.seed({"user_id": "user-1", "name": "Shopee", "platform_id": "other", "standard_fee_percent": 14})

        table.before("put_item", concurrent_seed)
        platforms = gateway.get_platforms(session)
        assert len(platforms) == len(DEFAULT_PLATFORMS)
        assert next(p for p in platforms if p.name == "Shopee").platform_id == "other"

    def test_shopee_fee(self, gateway, session):
        shopee = next(p for p in gateway.get_platforms(session) if p.name == "Shopee")
        assert shopee.standard_fee_percent == 14.0
        assert shopee.color == "#EA501F"

    def test_create_duplicate_name(self, gateway, session):
        gateway.get_platforms(session)
        result = gateway.create_platform(session, Platform("", "Shopee", 12.0))
        assert isinstance(result.error, WriteFailed)

    def test_create_custom_platform(self, gateway, session):
        gateway.get_platforms(session)
        assert gateway.create_platform(session, Platform("", "Instagram", 0.0, "#E1306C")).success
        assert "Instagram" in [p.name for p in gateway.get_platforms(session)]

    def test_platforms_are_per_user(self, gateway, session, other_session):
        gateway.get_platforms(session)
        assert len(gateway.get_platforms(other_session)) == len(DEFAULT_PLATFORMS)


class TestStockAdjustments:
    """Envanter ekranındaki stok giriş / çıkış işlemleri."""

    def test_entry_adds_units_and_updates_cost(self, gateway, dynamodb, session, product):
        result = gateway.register_stock_entry(session, product.product_id, 3, unit_cost=12.5, supplier_id="sup1")
        assert result.data == 8
        row = dynamodb.Table(PRODUCTS_TABLE).row(product_id=product.product_id)
        assert row["standard_cost"] == 12.5
        assert row["supplier_id"] == "sup1"

    def test_withdrawal_clamps_at_zero(self, gateway, session, product):
        assert gateway.register_stock_withdrawal(session, product.product_id, 20).data == 0

    def test_non_positive_quantity(self, gateway, session, product):
        result = gateway.register_stock_entry(session, product.product_id, 0)
        assert isinstance(result.error, ValidationFailed)

    def test_entry_on_variation_syncs_product(self, gateway, dynamodb, session, product, variation_factory):
        variation = variation_factory(product, stock=1)
        result = gateway.register_stock_entry(session, product.product_id, 4, variation_id=variation.variation_id)
        assert result.data == 5
        assert stock_of(dynamodb.Table(VARIATIONS_TABLE), variation_id=variation.variation_id) == 5

    def test_entry_unknown_product(self, gateway, session):
        result = gateway.register_stock_entry(session, "missing", 1)
        assert isinstance(result.error, NotFound)

    def test_concurrent_write_is_retried(self, gateway, dynamodb, session, product):
        table = dynamodb.Table(PRODUCTS_TABLE)

        def concurrent_withdrawal(t, kwargs):
            row = t.items[(product.product_id,)]
            row["stock_quantity"] = row["stock_quantity"] - 1
            row["stock_version"] = row.get("stock_version", 0) + 1

        table.before("update_item", concurrent_withdrawal)
        result = gateway.register_stock_entry(session, product.product_id, 2)
        # 5 - 1 (eşzamanlı) + 2
        assert result.data == 6
        assert stock_of(table, product_id=product.product_id) == 6


class TestSaleStatus:
    def test_status_update_only(self, gateway, session, product):
        pl = gateway.get_platforms(session)[0]
        sale = gateway.record_sale(
            session, SaleInput(product.product_id, pl.platform_id, CostSnapshot(10.0), 50.0, 50.0)
        ).data
        assert gateway.update_sale_status(session, sale.sale_id, SaleStatus.SHIPPED).success
        stored = gateway.list_sales(session)[0]
        assert stored.status == SaleStatus.SHIPPED
        assert stored.profit_final == sale.profit_final

    def test_status_update_missing_sale(self, gateway, session):
        result = gateway.update_sale_status(session, "missing", SaleStatus.DELIVERED)
        assert isinstance(result.error, NotFound)
