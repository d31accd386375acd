"""RemoteDataGateway - katalog, tedarikçi, platform ve satış tabloları üzerinde CRUD.

Her çağrı açık bir `session` parametresi alır. Yazma işlemleri
OperationResult döndürür ve store hatalarını dışarı sızdırmaz; okuma
işlemleri hata durumunda boş liste döndürür (log'lanır).

Satış kaydı ve silme işlemleri SaleJournal üzerinden yürür: önce niyet
yazılır, sonra satış satırı ve stok adımları uygulanır. Yarım kalan işler
`reconcile_pending` ile tamamlanır.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional

from boto3.dynamodb.conditions import Attr, Key

from solestock.errors import (
    GatewayError,
    NotFound,
    OperationResult,
    ValidationFailed,
    WriteFailed,
)
from solestock.gateways.base import (
    PRODUCT_INDEX,
    STORE_ERRORS,
    BaseGateway,
    describe_error,
    entity_from_item,
    entity_to_item,
    is_conditional_failure,
    require_session,
)
from solestock.gateways.sale_journal import (
    STEP_SALE_DELETED,
    STEP_SALE_WRITTEN,
    JournalEntry,
    JournalStatus,
    SaleJournal,
    StepStatus,
)
from solestock.gateways.stock_reconciler import (
    DEFAULT_BACKOFF_BASE,
    ReconciliationReport,
    StockReconciler,
    adjust_stock,
)
from solestock.models.entities import (
    AuthSession,
    Platform,
    Product,
    ProductVariation,
    ProductWithDetails,
    Sale,
    SaleInput,
    SaleStatus,
    SaleWithDetails,
    Supplier,
    utc_now_iso,
)
from solestock.models.formulas import (
    compute_profit,
    decorate_product,
    decorate_sale,
    group_variations,
)

logger = logging.getLogger(__name__)

# (ad, komisyon %, renk) - yeni kullanıcılar için varsayılan satış kanalları
DEFAULT_PLATFORMS = (
    ("Shopee", 14.0, "#EA501F"),
    ("TikTok Shop", 10.0, "#000000"),
    ("Mercado Livre", 18.0, "#FFE600"),
    ("Venda Direta / WhatsApp", 0.0, "#25D366"),
)


@dataclass
class StockDrift:
    """Ürün stoğu ile varyasyon toplamı arasındaki fark."""

    product_id: str
    name: str
    product_stock: int
    variation_total: int

    @property
    def difference(self) -> int:
        return self.product_stock - self.variation_total


class RemoteDataGateway(BaseGateway):
    """DynamoDB tablolarına erişen veri gateway'i."""

    def __init__(
        self,
        region_name: str = "us-west-2",
        dynamodb_resource: Optional[Any] = None,
        stock_attempts: int = 3,
        backoff_base: float = DEFAULT_BACKOFF_BASE,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(region_name=region_name, dynamodb_resource=dynamodb_resource)
        self.stock_attempts = stock_attempts
        self.backoff_base = backoff_base
        self.sleep = sleep
        self.journal = SaleJournal(self.journal_table)
        self.reconciler = StockReconciler(
            self.journal,
            self.products_table,
            self.variations_table,
            self.sales_table,
            attempts=stock_attempts,
            backoff_base=backoff_base,
            sleep=sleep,
        )

    # ------------------------------------------------------------------ #
    # Ortak yardımcılar
    # ------------------------------------------------------------------ #

    def _read(self, what: str, session: Optional[AuthSession], fn: Callable[[str], list]) -> list:
        """Okuma sarmalayıcı: oturum yoksa ya da store hata verirse boş liste."""
        if session is None or not session.user_id:
            logger.warning("%s okunamadı: aktif oturum yok", what)
            return []
        try:
            return fn(session.user_id)
        except STORE_ERRORS as e:
            logger.error("%s okunamadı: %s", what, describe_error(e))
            return []

    def _mutate(self, what: str, session: Optional[AuthSession], fn: Callable[[str], OperationResult]) -> OperationResult:
        """Yazma sarmalayıcı: gateway hatalarını ve store hatalarını OperationResult'a çevirir."""
        try:
            user_id = require_session(session).user_id
            return fn(user_id)
        except GatewayError as e:
            logger.warning("%s başarısız: %s", what, e)
            return OperationResult.fail(e)
        except STORE_ERRORS as e:
            reason = describe_error(e)
            logger.error("%s başarısız: %s", what, reason)
            return OperationResult.fail(WriteFailed(reason))

    def _update_or_not_found(self, table: Any, key: dict, values: dict, user_id: str, label: str) -> None:
        try:
            self._update_owned(table, key, values, user_id)
        except STORE_ERRORS as e:
            if is_conditional_failure(e):
                raise NotFound(f"{label} bulunamadı") from e
            raise

    def _delete_or_not_found(self, table: Any, key: dict, user_id: str, label: str) -> None:
        try:
            self._delete_owned(table, key, user_id)
        except STORE_ERRORS as e:
            if is_conditional_failure(e):
                raise NotFound(f"{label} bulunamadı") from e
            raise

    def _set_stock(self, table: Any, key: dict, user_id: str, value: int) -> int:
        return adjust_stock(
            table,
            key,
            lambda _current: max(0, int(value)),
            user_id=user_id,
            attempts=self.stock_attempts,
            backoff_base=self.backoff_base,
            sleep=self.sleep,
        )

    def _add_stock(self, table: Any, key: dict, user_id: str, delta: int) -> int:
        return adjust_stock(
            table,
            key,
            lambda current: max(0, current + delta),
            user_id=user_id,
            attempts=self.stock_attempts,
            backoff_base=self.backoff_base,
            sleep=self.sleep,
        )

    # ------------------------------------------------------------------ #
    # Ürünler
    # ------------------------------------------------------------------ #

    def list_products(self, session: Optional[AuthSession]) -> list[Product]:
        def fetch(user_id: str) -> list[Product]:
            items = self._query_owned(self.products_table, user_id)
            return sorted((entity_from_item(Product, i) for i in items), key=lambda p: p.name)

        return self._read("Ürünler", session, fetch)

    def create_product(self, session: Optional[AuthSession], product: Product) -> OperationResult[Product]:
        def create(user_id: str) -> OperationResult[Product]:
            product.product_id = product.product_id or str(uuid.uuid4())
            product.user_id = user_id
            product.stock_quantity = max(0, int(product.stock_quantity))
            self._put_new(self.products_table, entity_to_item(product), "product_id")
            logger.info("Ürün oluşturuldu: %s (%s)", product.name, product.product_id)
            return OperationResult.ok(product)

        return self._mutate("Ürün oluşturma", session, create)

    def update_product(self, session: Optional[AuthSession], product: Product) -> OperationResult[Product]:
        """Ürün alanlarını günceller. Stok değiştiyse versiyonlu stok yazımı yapılır."""

        def update(user_id: str) -> OperationResult[Product]:
            key = {"product_id": product.product_id}
            current = self._get_owned(self.products_table, key, user_id)
            if current is None:
                raise NotFound("Ürün bulunamadı")

            values = asdict(product)
            for immutable in ("product_id", "user_id", "stock_quantity"):
                values.pop(immutable)
            self._update_or_not_found(self.products_table, key, values, user_id, "Ürün")

            if int(current.get("stock_quantity", 0)) != product.stock_quantity:
                product.stock_quantity = self._set_stock(self.products_table, key, user_id, product.stock_quantity)
            product.user_id = user_id
            return OperationResult.ok(product)

        return self._mutate("Ürün güncelleme", session, update)

    def delete_product(self, session: Optional[AuthSession], product_id: str) -> OperationResult[None]:
        """Ürünü ve ona bağlı varyasyonları siler."""

        def delete(user_id: str) -> OperationResult[None]:
            self._delete_or_not_found(self.products_table, {"product_id": product_id}, user_id, "Ürün")
            for variation in self._variations_of(product_id, user_id):
                self._delete_owned(self.variations_table, {"variation_id": variation.variation_id}, user_id)
            logger.info("Ürün silindi: %s", product_id)
            return OperationResult.ok()

        return self._mutate("Ürün silme", session, delete)

    # ------------------------------------------------------------------ #
    # Varyasyonlar
    # ------------------------------------------------------------------ #

    def _variations_of(self, product_id: str, user_id: str) -> list[ProductVariation]:
        items = self._query_all(self.variations_table, Key("product_id").eq(product_id), index_name=PRODUCT_INDEX)
        return [entity_from_item(ProductVariation, i) for i in items if i.get("user_id") == user_id]

    def list_variations(
        self, session: Optional[AuthSession], product_id: Optional[str] = None
    ) -> list[ProductVariation]:
        def fetch(user_id: str) -> list[ProductVariation]:
            if product_id:
                variations = self._variations_of(product_id, user_id)
            else:
                items = self._query_owned(self.variations_table, user_id)
                variations = [entity_from_item(ProductVariation, i) for i in items]
            return sorted(variations, key=lambda v: (v.color, v.size))

        return self._read("Varyasyonlar", session, fetch)

    def create_variation(
        self, session: Optional[AuthSession], variation: ProductVariation
    ) -> OperationResult[ProductVariation]:
        def create(user_id: str) -> OperationResult[ProductVariation]:
            if self._get_owned(self.products_table, {"product_id": variation.product_id}, user_id) is None:
                raise NotFound("Varyasyonun ürünü bulunamadı")
            variation.variation_id = variation.variation_id or str(uuid.uuid4())
            variation.user_id = user_id
            variation.stock_quantity = max(0, int(variation.stock_quantity))
            self._put_new(self.variations_table, entity_to_item(variation), "variation_id")
            self._sync_product_stock(variation.product_id, user_id)
            return OperationResult.ok(variation)

        return self._mutate("Varyasyon oluşturma", session, create)

    def update_variation(
        self, session: Optional[AuthSession], variation: ProductVariation
    ) -> OperationResult[ProductVariation]:
        def update(user_id: str) -> OperationResult[ProductVariation]:
            key = {"variation_id": variation.variation_id}
            current = self._get_owned(self.variations_table, key, user_id)
            if current is None:
                raise NotFound("Varyasyon bulunamadı")

            self._update_or_not_found(
                self.variations_table, key, {"color": variation.color, "size": variation.size}, user_id, "Varyasyon"
            )
            if int(current.get("stock_quantity", 0)) != variation.stock_quantity:
                variation.stock_quantity = self._set_stock(
                    self.variations_table, key, user_id, variation.stock_quantity
                )
            variation.product_id = current["product_id"]
            variation.user_id = user_id
            self._sync_product_stock(variation.product_id, user_id)
            return OperationResult.ok(variation)

        return self._mutate("Varyasyon güncelleme", session, update)

    def delete_variation(self, session: Optional[AuthSession], variation_id: str) -> OperationResult[None]:
        def delete(user_id: str) -> OperationResult[None]:
            key = {"variation_id": variation_id}
            current = self._get_owned(self.variations_table, key, user_id)
            if current is None:
                raise NotFound("Varyasyon bulunamadı")
            self._delete_or_not_found(self.variations_table, key, user_id, "Varyasyon")
            self._sync_product_stock(current["product_id"], user_id)
            return OperationResult.ok()

        return self._mutate("Varyasyon silme", session, delete)

    def _sync_product_stock(self, product_id: str, user_id: str) -> int:
        variations = self._variations_of(product_id, user_id)
        key = {"product_id": product_id}
        if not variations:
            item = self._get_owned(self.products_table, key, user_id)
            if item is None:
                raise NotFound("Ürün bulunamadı")
            return int(item.get("stock_quantity", 0))
        total = sum(v.stock_quantity for v in variations)
        return self._set_stock(self.products_table, key, user_id, total)

    def sync_product_stock(self, session: Optional[AuthSession], product_id: str) -> OperationResult[int]:
        """Varyasyonlu ürünün toplam stoğunu varyasyonların toplamına eşitler."""
        return self._mutate(
            "Stok senkronizasyonu",
            session,
            lambda user_id: OperationResult.ok(self._sync_product_stock(product_id, user_id)),
        )

    def find_stock_drift(self, session: Optional[AuthSession]) -> list[StockDrift]:
        def fetch(user_id: str) -> list[StockDrift]:
            products = [entity_from_item(Product, i) for i in self._query_owned(self.products_table, user_id)]
            grouped = group_variations(
                [entity_from_item(ProductVariation, i) for i in self._query_owned(self.variations_table, user_id)]
            )
            drifts = []
            for product in products:
                variations = grouped.get(product.product_id)
                if not variations:
                    continue
                total = sum(v.stock_quantity for v in variations)
                if total != product.stock_quantity:
                    drifts.append(StockDrift(product.product_id, product.name, product.stock_quantity, total))
            return drifts

        return self._read("Stok farkları", session, fetch)

    # ------------------------------------------------------------------ #
    # Tedarikçiler
    # ------------------------------------------------------------------ #

    def list_suppliers(self, session: Optional[AuthSession]) -> list[Supplier]:
        def fetch(user_id: str) -> list[Supplier]:
            items = self._query_owned(self.suppliers_table, user_id)
            return sorted((entity_from_item(Supplier, i) for i in items), key=lambda s: s.name)

        return self._read("Tedarikçiler", session, fetch)

    def create_supplier(self, session: Optional[AuthSession], supplier: Supplier) -> OperationResult[Supplier]:
        def create(user_id: str) -> OperationResult[Supplier]:
            supplier.supplier_id = supplier.supplier_id or str(uuid.uuid4())
            supplier.user_id = user_id
            self._put_new(self.suppliers_table, entity_to_item(supplier), "supplier_id")
            return OperationResult.ok(supplier)

        return self._mutate("Tedarikçi oluşturma", session, create)

    def update_supplier(self, session: Optional[AuthSession], supplier: Supplier) -> OperationResult[Supplier]:
        def update(user_id: str) -> OperationResult[Supplier]:
            values = asdict(supplier)
            values.pop("supplier_id")
            values.pop("user_id")
            self._update_or_not_found(
                self.suppliers_table, {"supplier_id": supplier.supplier_id}, values, user_id, "Tedarikçi"
            )
            supplier.user_id = user_id
            return OperationResult.ok(supplier)

        return self._mutate("Tedarikçi güncelleme", session, update)

    def delete_supplier(self, session: Optional[AuthSession], supplier_id: str) -> OperationResult[None]:
        def delete(user_id: str) -> OperationResult[None]:
            self._delete_or_not_found(self.suppliers_table, {"supplier_id": supplier_id}, user_id, "Tedarikçi")
            return OperationResult.ok()

        return self._mutate("Tedarikçi silme", session, delete)

    # ------------------------------------------------------------------ #
    # Platformlar
    # ------------------------------------------------------------------ #

    def _put_platform(self, platform: Platform) -> bool:
        """(user_id, name) anahtarıyla koşullu yazar. Aynı isim varsa False."""
        try:
            self.platforms_table.put_item(
                Item=entity_to_item(platform),
                ConditionExpression=Attr("name").not_exists(),
            )
            return True
        except STORE_ERRORS as e:
            if is_conditional_failure(e):
                return False
            raise

    def _seed_default_platforms(self, user_id: str) -> None:
        created = 0
        for name, fee, color in DEFAULT_PLATFORMS:
            platform = Platform(str(uuid.uuid4()), name, fee, color, user_id)
            # Paralel seed yarışında kaybeden taraf satırı atlar
            if self._put_platform(platform):
                created += 1
        logger.info("Varsayılan platformlar oluşturuldu: %d/%d", created, len(DEFAULT_PLATFORMS))

    def get_platforms(self, session: Optional[AuthSession]) -> list[Platform]:
        """Kullanıcının platformları; hiç yoksa varsayılanlar bir kez oluşturulur."""

        def fetch(user_id: str) -> list[Platform]:
            items = self._query_all(self.platforms_table, Key("user_id").eq(user_id))
            if not items:
                self._seed_default_platforms(user_id)
                items = self._query_all(self.platforms_table, Key("user_id").eq(user_id))
            return sorted((entity_from_item(Platform, i) for i in items), key=lambda p: p.name)

        return self._read("Platformlar", session, fetch)

    def create_platform(self, session: Optional[AuthSession], platform: Platform) -> OperationResult[Platform]:
        def create(user_id: str) -> OperationResult[Platform]:
            platform.platform_id = platform.platform_id or str(uuid.uuid4())
            platform.user_id = user_id
            if not self._put_platform(platform):
                raise WriteFailed(f"'{platform.name}' adında bir platform zaten var")
            return OperationResult.ok(platform)

        return self._mutate("Platform oluşturma", session, create)

    # ------------------------------------------------------------------ #
    # Satışlar
    # ------------------------------------------------------------------ #

    def list_sales(self, session: Optional[AuthSession]) -> list[Sale]:
        """Satışlar, en yeniden eskiye."""

        def fetch(user_id: str) -> list[Sale]:
            items = self._query_owned(self.sales_table, user_id)
            sales = [entity_from_item(Sale, i) for i in items]
            return sorted(sales, key=lambda s: s.date_sale, reverse=True)

        return self._read("Satışlar", session, fetch)

    @staticmethod
    def _build_sale(user_id: str, sale_input: SaleInput) -> Sale:
        costs = sale_input.costs
        return Sale(
            sale_id=str(uuid.uuid4()),
            product_id=sale_input.product_id,
            platform_id=sale_input.platform_id,
            cost_product_snapshot=costs.product_cost,
            cost_box=costs.box,
            cost_bag=costs.bag,
            cost_label=costs.label,
            cost_other=costs.other,
            value_gross=sale_input.value_gross,
            value_received=sale_input.value_received,
            # Kâr her zaman snapshot'tan hesaplanır, dışarıdan gelen değere güvenilmez
            profit_final=compute_profit(sale_input.value_received, costs),
            date_sale=sale_input.date_sale or utc_now_iso(),
            status=sale_input.status,
            variation_id=sale_input.variation_id,
            color=sale_input.color,
            size=sale_input.size,
            user_id=user_id,
        )

    @staticmethod
    def _journal_warnings(entry: JournalEntry) -> list[str]:
        warnings = []
        for step in entry.steps:
            if step.status in (StepStatus.PENDING, StepStatus.PLANNED):
                warnings.append(
                    f"{step.name} adımı tamamlanamadı ({step.note or 'bilinmeyen hata'}); "
                    f"uzlaştırma ile tamamlanacak (journal {entry.journal_id})"
                )
            elif step.status == StepStatus.SKIPPED:
                warnings.append(f"{step.name} adımı uygulanamadı: {step.note} (journal {entry.journal_id})")
        return warnings

    def record_sale(self, session: Optional[AuthSession], sale_input: SaleInput) -> OperationResult[Sale]:
        """Satışı kaydeder ve stoktan (varyasyon + ürün) birer adet düşer.

        Satış satırı yazıldıktan sonra stok adımı başarısız olursa satış geri
        alınmaz: sonuç başarılıdır, tamamlanamayan adımlar `warnings` içinde
        döner ve journal `pending` kalır.
        """

        def record(user_id: str) -> OperationResult[Sale]:
            sale = self._build_sale(user_id, sale_input)
            entry = JournalEntry.for_record(user_id, sale)
            try:
                self.journal.open(entry)
            except STORE_ERRORS as e:
                raise WriteFailed(f"Satış günlüğü yazılamadı: {describe_error(e)}") from e

            try:
                self._put_new(self.sales_table, entity_to_item(sale), "sale_id")
            except WriteFailed as e:
                entry.status = JournalStatus.ABORTED
                entry.detail = e.reason
                self.reconciler.persist(entry)
                raise

            entry.step(STEP_SALE_WRITTEN).status = StepStatus.DONE
            self.reconciler.run(entry)
            logger.info("Satış kaydedildi: %s (kâr %.2f)", sale.sale_id, sale.profit_final)
            return OperationResult.ok(sale, warnings=self._journal_warnings(entry))

        return self._mutate("Satış kaydı", session, record)

    def delete_sale(self, session: Optional[AuthSession], sale_id: str) -> OperationResult[None]:
        """Satışı siler ve düşülen stoğu (varyasyon + ürün) geri ekler."""

        def delete(user_id: str) -> OperationResult[None]:
            item = self._get_owned(self.sales_table, {"sale_id": sale_id}, user_id)
            if item is None:
                raise NotFound("Satış bulunamadı")
            sale = entity_from_item(Sale, item)

            entry = JournalEntry.for_delete(user_id, sale)
            try:
                self.journal.open(entry)
            except STORE_ERRORS as e:
                raise WriteFailed(f"Satış günlüğü yazılamadı: {describe_error(e)}") from e

            self.reconciler.run(entry)
            delete_step = entry.step(STEP_SALE_DELETED)
            if delete_step.status != StepStatus.DONE:
                raise WriteFailed(delete_step.note or "Satış silinemedi")
            logger.info("Satış silindi: %s", sale_id)
            return OperationResult.ok(warnings=self._journal_warnings(entry))

        return self._mutate("Satış silme", session, delete)

    def update_sale_status(
        self, session: Optional[AuthSession], sale_id: str, status: SaleStatus
    ) -> OperationResult[None]:
        """Sadece durum güncellenebilir; maliyet snapshot'ı değişmez."""

        def update(user_id: str) -> OperationResult[None]:
            self._update_or_not_found(
                self.sales_table, {"sale_id": sale_id}, {"status": SaleStatus(status)}, user_id, "Satış"
            )
            return OperationResult.ok()

        return self._mutate("Satış durumu güncelleme", session, update)

    def reconcile_pending(self, session: Optional[AuthSession]) -> OperationResult[ReconciliationReport]:
        """Yarım kalan satış/silme işlemlerini devam ettirir."""

        def reconcile(user_id: str) -> OperationResult[ReconciliationReport]:
            report = ReconciliationReport()
            for entry in self.journal.list_pending(user_id):
                report.add(self.reconciler.run(entry))
            logger.info(
                "Uzlaştırma: %d tamamlandı, %d bekliyor, %d tutarsız, %d iptal",
                len(report.completed), len(report.pending), len(report.inconsistent), len(report.aborted),
            )
            return OperationResult.ok(report)

        return self._mutate("Uzlaştırma", session, reconcile)

    # ------------------------------------------------------------------ #
    # Stok giriş / çıkış
    # ------------------------------------------------------------------ #

    def _adjust_product_stock(self, user_id: str, product_id: str, delta: int, variation_id: Optional[str]) -> int:
        if variation_id:
            variation = self._get_owned(self.variations_table, {"variation_id": variation_id}, user_id)
            if variation is None or variation.get("product_id") != product_id:
                raise NotFound("Varyasyon bulunamadı")
            self._add_stock(self.variations_table, {"variation_id": variation_id}, user_id, delta)
            return self._sync_product_stock(product_id, user_id)
        return self._add_stock(self.products_table, {"product_id": product_id}, user_id, delta)

    def register_stock_entry(
        self,
        session: Optional[AuthSession],
        product_id: str,
        quantity: int,
        unit_cost: Optional[float] = None,
        supplier_id: Optional[str] = None,
        variation_id: Optional[str] = None,
    ) -> OperationResult[int]:
        """Stok girişi. Birim maliyet ve tedarikçi verilirse ürüne de yazılır."""

        def entry(user_id: str) -> OperationResult[int]:
            if quantity <= 0:
                raise ValidationFailed("Miktar pozitif olmalı")
            if self._get_owned(self.products_table, {"product_id": product_id}, user_id) is None:
                raise NotFound("Ürün bulunamadı")

            values: dict[str, Any] = {}
            if unit_cost is not None:
                values["standard_cost"] = float(unit_cost)
            if supplier_id:
                values["supplier_id"] = supplier_id
            if values:
                self._update_or_not_found(self.products_table, {"product_id": product_id}, values, user_id, "Ürün")

            new_stock = self._adjust_product_stock(user_id, product_id, quantity, variation_id)
            logger.info("Stok girişi: %s +%d -> %d", product_id, quantity, new_stock)
            return OperationResult.ok(new_stock)

        return self._mutate("Stok girişi", session, entry)

    def register_stock_withdrawal(
        self,
        session: Optional[AuthSession],
        product_id: str,
        quantity: int,
        variation_id: Optional[str] = None,
    ) -> OperationResult[int]:
        """Stok çıkışı; stok sıfırın altına inmez."""

        def withdrawal(user_id: str) -> OperationResult[int]:
            if quantity <= 0:
                raise ValidationFailed("Miktar pozitif olmalı")
            new_stock = self._adjust_product_stock(user_id, product_id, -quantity, variation_id)
            logger.info("Stok çıkışı: %s -%d -> %d", product_id, quantity, new_stock)
            return OperationResult.ok(new_stock)

        return self._mutate("Stok çıkışı", session, withdrawal)

    # ------------------------------------------------------------------ #
    # Detaylı okuma modelleri
    # ------------------------------------------------------------------ #

    def get_products_with_details(self, session: Optional[AuthSession]) -> list[ProductWithDetails]:
        products = self.list_products(session)
        if not products:
            return []
        suppliers_by_id = {s.supplier_id: s for s in self.list_suppliers(session)}
        variations_by_product = group_variations(self.list_variations(session))
        return [decorate_product(p, suppliers_by_id, variations_by_product) for p in products]

    def get_sales_with_details(self, session: Optional[AuthSession]) -> list[SaleWithDetails]:
        sales = self.list_sales(session)
        if not sales:
            return []
        products_by_id = {p.product_id: p for p in self.list_products(session)}
        platforms_by_id = {p.platform_id: p for p in self.get_platforms(session)}
        return [decorate_sale(s, products_by_id, platforms_by_id) for s in sales]
