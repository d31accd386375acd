"""
SoleStock interaktif konsolu.

Gateway'leri doğrudan kullanır; oturum SessionGateway'de tutulur ve her
çağrıya parametre olarak verilir. Yazma hataları ham sebebiyle, okuma
hataları boş liste olarak gösterilir.

Kullanım:
    solestock
"""

from __future__ import annotations

import logging
import mimetypes
import shlex
import sys
from typing import Callable, Optional

from solestock.app import SoleStockApp, build_app
from solestock.config import configure_logging
from solestock.errors import OperationResult
from solestock.gateways.asset_gateway import ImageFile
from solestock.gateways.session_gateway import SessionEvent
from solestock.models.entities import (
    AuthSession,
    Product,
    ProductVariation,
    SaleInput,
    SaleStatus,
    Supplier,
    SupplierCatalogItem,
)
from solestock.models.formulas import (
    estimated_profit,
    find_catalog_price,
    net_received,
    product_cost_snapshot,
    sale_margin,
    stock_warning,
)
from solestock.services import dashboard
from solestock.services.profit_calculator import ProfitSimulation, simulate

logger = logging.getLogger(__name__)

HELP_TEXT = """
╔══════════════════════════════════════════════════════════╗
║  👟 SoleStock - Sneaker Mini ERP                         ║
╠══════════════════════════════════════════════════════════╣
║  giris <email> <sifre>         - Giriş yap               ║
║  kayit <email> <sifre>         - Kayıt ol                ║
║  oturumu-kapat                 - Çıkış yap               ║
║  dashboard                     - Özet ve grafikler       ║
║  satislar                      - Satış geçmişi           ║
║  satis <urun> <platform> <brut> [varyasyon] [diger]      ║
║  sil <satis_id>                - Satışı sil, stoğu iade  ║
║  durum <satis_id> <durum>      - Satış durumunu güncelle ║
║  stok                          - Envanter                ║
║  stok-giris <urun> <adet> [birim_maliyet] [tedarikci]    ║
║  stok-cikis <urun> <adet>      - Stok çıkışı             ║
║  urun-ekle <ad> <maliyet> [alan=deger ...]               ║
║  urun-duzenle <urun> alan=deger ...                      ║
║  urun-sil <urun>               - Ürün + varyasyonları    ║
║  gorsel <urun> <dosya>         - Ürün görseli yükle      ║
║  varyasyon-ekle <urun> <renk> <numara> [stok]            ║
║  varyasyon-duzenle <varyasyon> alan=deger ...            ║
║  varyasyon-sil <varyasyon>     - Varyasyon sil           ║
║  tedarikci-ekle <ad> [alan=deger ...]                    ║
║  tedarikci-duzenle <tedarikci> alan=deger ...            ║
║  tedarikci-sil <tedarikci>     - Tedarikçi sil           ║
║  katalog-ekle <tedarikci> <model> <fiyat>                ║
║  tedarikciler                  - Tedarikçi listesi       ║
║  platformlar                   - Satış kanalları         ║
║  hesap <maliyet> <fiyat> [komisyon%]  - Kâr simülatörü   ║
║  analiz                        - AI satış analizi        ║
║  uzlastir                      - Yarım kalan işlemler    ║
║  alanlar: ad maliyet kutu poset etiket fiyat stok min    ║
║  tedarikci | renk numara | yetkili telefon eposta adres ║
║  yardim / help                 - Bu menü                 ║
║  cikis / exit                  - Çıkış                   ║
╚══════════════════════════════════════════════════════════╝
"""


# Konsol alan adı -> (dataclass alanı, tip)
PRODUCT_FIELDS = {
    "ad": ("name", str),
    "maliyet": ("standard_cost", float),
    "kutu": ("cost_box", float),
    "poset": ("cost_bag", float),
    "etiket": ("cost_label", float),
    "fiyat": ("suggested_price", float),
    "stok": ("stock_quantity", int),
    "min": ("min_stock_level", int),
    "tedarikci": ("supplier_id", str),
}
VARIATION_FIELDS = {
    "renk": ("color", str),
    "numara": ("size", str),
    "stok": ("stock_quantity", int),
}
SUPPLIER_FIELDS = {
    "ad": ("name", str),
    "yetkili": ("contact_name", str),
    "telefon": ("phone", str),
    "eposta": ("email", str),
    "adres": ("address", str),
}


def _apply_fields(target: object, options: list[str], fields: dict) -> None:
    """`alan=deger` argümanlarını dataclass alanlarına yazar."""
    for option in options:
        name, sep, raw = option.partition("=")
        if not sep or name not in fields:
            raise ValueError(f"bilinmeyen alan '{option}'")
        attr, cast = fields[name]
        setattr(target, attr, cast(raw))


def _money(value: float) -> str:
    return f"{value:,.2f}"


def _failure(result: OperationResult) -> str:
    return f"❌ {result.error_message}"


def _with_warnings(message: str, result: OperationResult) -> str:
    lines = [message] + [f"⚠️  {w}" for w in result.warnings]
    return "\n".join(lines)


class Console:
    """Komut satırlarını gateway çağrılarına çevirir."""

    def __init__(self, app: SoleStockApp, input_fn: Callable[[str], str] = input):
        self.app = app
        self.input_fn = input_fn
        self.subscription = app.sessions.on_session_change(self._on_session_change, consumer="console")

    def _on_session_change(self, event: SessionEvent, session: Optional[AuthSession]) -> None:
        if event == SessionEvent.SIGNED_OUT:
            print("🔒 Oturum kapandı.")
        elif event == SessionEvent.SIGNED_IN and session is not None:
            print(f"🔓 Hoş geldin, {session.email}")

    @property
    def session(self) -> Optional[AuthSession]:
        return self.app.sessions.get_session()

    def close(self) -> None:
        self.subscription.unsubscribe()

    # ------------------------------------------------------------------ #

    def handle_command(self, line: str) -> Optional[str]:
        """Komutu çalıştırır, ekrana basılacak metni döndürür. Bilinmeyen komutta None."""
        try:
            parts = shlex.split(line)
        except ValueError:
            return "❌ Komut ayrıştırılamadı (tırnakları kontrol edin)."
        if not parts:
            return ""

        action, args = parts[0].lower(), parts[1:]
        commands: dict[str, Callable[[list[str]], str]] = {
            "giris": self.cmd_sign_in,
            "kayit": self.cmd_sign_up,
            "oturumu-kapat": self.cmd_sign_out,
            "dashboard": self.cmd_dashboard,
            "satislar": self.cmd_sales,
            "satis": self.cmd_new_sale,
            "sil": self.cmd_delete_sale,
            "durum": self.cmd_sale_status,
            "stok": self.cmd_inventory,
            "stok-giris": self.cmd_stock_entry,
            "stok-cikis": self.cmd_stock_withdrawal,
            "urun-ekle": self.cmd_add_product,
            "urun-duzenle": self.cmd_edit_product,
            "urun-sil": self.cmd_delete_product,
            "gorsel": self.cmd_upload_image,
            "varyasyon-ekle": self.cmd_add_variation,
            "varyasyon-duzenle": self.cmd_edit_variation,
            "varyasyon-sil": self.cmd_delete_variation,
            "tedarikci-ekle": self.cmd_add_supplier,
            "tedarikci-duzenle": self.cmd_edit_supplier,
            "tedarikci-sil": self.cmd_delete_supplier,
            "katalog-ekle": self.cmd_add_catalog_item,
            "tedarikciler": self.cmd_suppliers,
            "platformlar": self.cmd_platforms,
            "hesap": self.cmd_calculator,
            "analiz": self.cmd_insight,
            "uzlastir": self.cmd_reconcile,
        }
        command = commands.get(action)
        if command is None:
            return None
        try:
            return command(args)
        except (IndexError, ValueError) as e:
            return f"❌ Hatalı parametre: {e}. 'yardim' yazarak kullanımı görebilirsiniz."

    # --- Oturum ---

    def cmd_sign_in(self, args: list[str]) -> str:
        result = self.app.sessions.sign_in(args[0], args[1])
        return "✅ Giriş başarılı" if result.success else f"❌ {result.message}"

    def cmd_sign_up(self, args: list[str]) -> str:
        result = self.app.sessions.sign_up(args[0], args[1])
        if not result.success:
            return f"❌ {result.message}"
        return f"✅ {result.message}" if result.message else "✅ Kayıt tamamlandı"

    def cmd_sign_out(self, args: list[str]) -> str:
        result = self.app.sessions.sign_out()
        return f"👋 Çıkış yapıldı {result.message}".strip()

    # --- Dashboard & satışlar ---

    def cmd_dashboard(self, args: list[str]) -> str:
        session = self.session
        sales = self.app.data.get_sales_with_details(session)
        products = self.app.data.list_products(session)
        stats = dashboard.compute_stats(sales, products)

        lines = [
            "📊 Dashboard",
            f"  Net kâr      : {_money(stats.total_profit)}",
            f"  Ciro (net)   : {_money(stats.total_revenue)}",
            f"  Maliyetler   : {_money(stats.total_expenses)}",
            f"  Satış adedi  : {stats.total_sales}",
            f"  Ortalama marj: %{stats.average_margin * 100:.1f}",
            f"  Düşük stok   : {stats.low_stock_count}",
        ]
        daily = dashboard.daily_series(sales)
        if daily:
            lines.append("\n📈 Günlük (tahsilat / kâr)")
            lines.extend(f"  {p.day}: {_money(p.received)} / {_money(p.profit)}" for p in daily)
        platforms = dashboard.platform_breakdown(sales)
        if platforms:
            lines.append("\n🛒 Platform payı")
            lines.extend(f"  {p.name}: {p.count} satış (%{p.percent:.0f})" for p in platforms)
        top = dashboard.top_products(sales)
        if top:
            lines.append("\n🏆 En kârlı ürünler")
            lines.extend(f"  {r.name}: {_money(r.profit)} ({r.units} adet)" for r in top)
        low = dashboard.low_stock_products(products)
        if low:
            lines.append("\n⚠️  Stok uyarısı")
            lines.extend(f"  {p.name}: {p.stock_quantity} (min {p.min_stock_level})" for p in low)
        return "\n".join(lines)

    def cmd_sales(self, args: list[str]) -> str:
        sales = self.app.data.get_sales_with_details(self.session)
        if not sales:
            return "Henüz satış yok."
        lines = [f"🧾 Satışlar ({len(sales)})"]
        for s in sales:
            variant = f" {s.sale.color}/{s.sale.size}" if s.sale.variation_id else ""
            lines.append(
                f"  {s.sale.date_sale[:10]} {s.product_name}{variant} @ {s.platform_name} | "
                f"net {_money(s.sale.value_received)} kâr {_money(s.sale.profit_final)} "
                f"(%{sale_margin(s.sale) * 100:.0f}) [{s.sale.status.value}] id={s.sale.sale_id}"
            )
        return "\n".join(lines)

    def cmd_new_sale(self, args: list[str]) -> str:
        product_id, platform_id, value_gross = args[0], args[1], float(args[2])
        variation_id = args[3] if len(args) > 3 and args[3] != "-" else None
        cost_other = float(args[4]) if len(args) > 4 else 0.0

        session = self.session
        product = next((p for p in self.app.data.list_products(session) if p.product_id == product_id), None)
        platform = next((p for p in self.app.data.get_platforms(session) if p.platform_id == platform_id), None)
        if product is None or platform is None:
            return "❌ Ürün ya da platform bulunamadı."

        variation = None
        if variation_id:
            variation = next(
                (v for v in self.app.data.list_variations(session, product_id) if v.variation_id == variation_id),
                None,
            )
            if variation is None:
                return "❌ Varyasyon bulunamadı."

        warning = stock_warning(product, variation)
        if warning:
            answer = self.input_fn(f"⚠️  {warning} Yine de kaydedilsin mi? (e/h): ").strip().lower()
            if answer not in ("e", "evet", "y", "yes"):
                return "İptal edildi."

        sale_input = SaleInput(
            product_id=product_id,
            platform_id=platform_id,
            costs=product_cost_snapshot(product, other=cost_other),
            value_gross=value_gross,
            value_received=net_received(value_gross, platform.standard_fee_percent),
            status=SaleStatus.PENDING,
            variation_id=variation.variation_id if variation else None,
            color=variation.color if variation else None,
            size=variation.size if variation else None,
        )
        result = self.app.data.record_sale(session, sale_input)
        if not result.success:
            return _failure(result)
        return _with_warnings(
            f"✅ Satış kaydedildi: kâr {_money(result.data.profit_final)} (id={result.data.sale_id})", result
        )

    def cmd_delete_sale(self, args: list[str]) -> str:
        result = self.app.data.delete_sale(self.session, args[0])
        if not result.success:
            return _failure(result)
        return _with_warnings("🗑️  Satış silindi, stok iade edildi.", result)

    def cmd_sale_status(self, args: list[str]) -> str:
        result = self.app.data.update_sale_status(self.session, args[0], SaleStatus(args[1].lower()))
        return "✅ Durum güncellendi" if result.success else _failure(result)

    # --- Envanter ---

    def cmd_inventory(self, args: list[str]) -> str:
        products = self.app.data.get_products_with_details(self.session)
        if not products:
            return "Envanter boş."
        lines = [f"📦 Envanter ({len(products)})"]
        for item in products:
            p = item.product
            lines.append(
                f"  {p.name} [{item.supplier_name}] stok {p.stock_quantity} (min {p.min_stock_level}) "
                f"tahmini kâr {_money(estimated_profit(p))} id={p.product_id}"
            )
            lines.extend(f"      {v.color}/{v.size}: {v.stock_quantity} id={v.variation_id}" for v in item.variations)
        return "\n".join(lines)

    def cmd_stock_entry(self, args: list[str]) -> str:
        product_id, quantity = args[0], int(args[1])
        unit_cost = float(args[2]) if len(args) > 2 and args[2] != "-" else None
        supplier_id = args[3] if len(args) > 3 else None

        session = self.session
        if unit_cost is None and supplier_id:
            # Tedarikçi kataloğundan fiyat önerisi
            supplier = next((s for s in self.app.data.list_suppliers(session) if s.supplier_id == supplier_id), None)
            product = next((p for p in self.app.data.list_products(session) if p.product_id == product_id), None)
            if supplier and product:
                unit_cost = find_catalog_price(supplier, product.name)

        result = self.app.data.register_stock_entry(session, product_id, quantity, unit_cost, supplier_id)
        return f"✅ Yeni stok: {result.data}" if result.success else _failure(result)

    def cmd_stock_withdrawal(self, args: list[str]) -> str:
        result = self.app.data.register_stock_withdrawal(self.session, args[0], int(args[1]))
        return f"✅ Yeni stok: {result.data}" if result.success else _failure(result)

    # --- Katalog (ürün / varyasyon / tedarikçi) ---

    def _find_product(self, session: Optional[AuthSession], product_id: str) -> Optional[Product]:
        return next((p for p in self.app.data.list_products(session) if p.product_id == product_id), None)

    def _find_supplier(self, session: Optional[AuthSession], supplier_id: str) -> Optional[Supplier]:
        return next((s for s in self.app.data.list_suppliers(session) if s.supplier_id == supplier_id), None)

    def cmd_add_product(self, args: list[str]) -> str:
        product = Product(product_id="", name=args[0], standard_cost=float(args[1]))
        _apply_fields(product, args[2:], PRODUCT_FIELDS)
        result = self.app.data.create_product(self.session, product)
        if not result.success:
            return _failure(result)
        return f"✅ Ürün eklendi: {result.data.name} id={result.data.product_id}"

    def cmd_edit_product(self, args: list[str]) -> str:
        session = self.session
        product = self._find_product(session, args[0])
        if product is None:
            return "❌ Ürün bulunamadı."
        _apply_fields(product, args[1:], PRODUCT_FIELDS)
        result = self.app.data.update_product(session, product)
        return "✅ Ürün güncellendi" if result.success else _failure(result)

    def cmd_delete_product(self, args: list[str]) -> str:
        session = self.session
        product = self._find_product(session, args[0])
        result = self.app.data.delete_product(session, args[0])
        if not result.success:
            return _failure(result)
        if product is not None and product.image_url:
            self.app.assets.delete_product_image(product.image_url)
        return "🗑️  Ürün ve varyasyonları silindi."

    def cmd_upload_image(self, args: list[str]) -> str:
        product_id, path = args[0], args[1]
        session = self.session
        product = self._find_product(session, product_id)
        if product is None:
            return "❌ Ürün bulunamadı."
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            return f"❌ Dosya okunamadı: {e}"

        content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        upload = self.app.assets.upload_product_image(ImageFile(path, content_type, data), product_id)
        if not upload.success:
            return _failure(upload)

        previous = product.image_url
        product.image_url = upload.data
        result = self.app.data.update_product(session, product)
        if not result.success:
            return _failure(result)
        if previous:
            self.app.assets.delete_product_image(previous)
        return f"🖼️  Görsel yüklendi: {upload.data}"

    def cmd_add_variation(self, args: list[str]) -> str:
        variation = ProductVariation(
            variation_id="",
            product_id=args[0],
            color=args[1],
            size=args[2],
            stock_quantity=int(args[3]) if len(args) > 3 else 0,
        )
        result = self.app.data.create_variation(self.session, variation)
        if not result.success:
            return _failure(result)
        return f"✅ Varyasyon eklendi: {variation.color}/{variation.size} id={result.data.variation_id}"

    def cmd_edit_variation(self, args: list[str]) -> str:
        session = self.session
        variation = next(
            (v for v in self.app.data.list_variations(session) if v.variation_id == args[0]),
            None,
        )
        if variation is None:
            return "❌ Varyasyon bulunamadı."
        _apply_fields(variation, args[1:], VARIATION_FIELDS)
        result = self.app.data.update_variation(session, variation)
        return "✅ Varyasyon güncellendi" if result.success else _failure(result)

    def cmd_delete_variation(self, args: list[str]) -> str:
        result = self.app.data.delete_variation(self.session, args[0])
        return "🗑️  Varyasyon silindi." if result.success else _failure(result)

    def cmd_add_supplier(self, args: list[str]) -> str:
        supplier = Supplier(supplier_id="", name=args[0])
        _apply_fields(supplier, args[1:], SUPPLIER_FIELDS)
        result = self.app.data.create_supplier(self.session, supplier)
        if not result.success:
            return _failure(result)
        return f"✅ Tedarikçi eklendi: {supplier.name} id={result.data.supplier_id}"

    def cmd_edit_supplier(self, args: list[str]) -> str:
        session = self.session
        supplier = self._find_supplier(session, args[0])
        if supplier is None:
            return "❌ Tedarikçi bulunamadı."
        _apply_fields(supplier, args[1:], SUPPLIER_FIELDS)
        result = self.app.data.update_supplier(session, supplier)
        return "✅ Tedarikçi güncellendi" if result.success else _failure(result)

    def cmd_delete_supplier(self, args: list[str]) -> str:
        result = self.app.data.delete_supplier(self.session, args[0])
        return "🗑️  Tedarikçi silindi." if result.success else _failure(result)

    def cmd_add_catalog_item(self, args: list[str]) -> str:
        session = self.session
        supplier = self._find_supplier(session, args[0])
        if supplier is None:
            return "❌ Tedarikçi bulunamadı."
        supplier.catalog.append(SupplierCatalogItem(model=args[1], price=float(args[2])))
        result = self.app.data.update_supplier(session, supplier)
        return f"✅ Katalog: {len(supplier.catalog)} model" if result.success else _failure(result)

    def cmd_suppliers(self, args: list[str]) -> str:
        suppliers = self.app.data.list_suppliers(self.session)
        if not suppliers:
            return "Tedarikçi yok."
        lines = [f"🚚 Tedarikçiler ({len(suppliers)})"]
        for s in suppliers:
            lines.append(f"  {s.name} {s.phone or ''} id={s.supplier_id}".rstrip())
            lines.extend(f"      {c.model}: {_money(c.price)}" for c in s.catalog)
        return "\n".join(lines)

    def cmd_platforms(self, args: list[str]) -> str:
        platforms = self.app.data.get_platforms(self.session)
        if not platforms:
            return "Platform yok."
        return "\n".join(
            [f"🛒 Platformlar ({len(platforms)})"]
            + [f"  {p.name} %{p.standard_fee_percent:g} id={p.platform_id}" for p in platforms]
        )

    # --- Araçlar ---

    def cmd_calculator(self, args: list[str]) -> str:
        sim = ProfitSimulation(cost_product=float(args[0]), sale_price=float(args[1]))
        if len(args) > 2:
            sim.platform_fee_percent = float(args[2])
        r = simulate(sim)
        return (
            f"🧮 Maliyet {_money(r.total_cost)} | Net gelir {_money(r.net_revenue)} | "
            f"Kâr {_money(r.profit)} | Marj %{r.margin_percent:.1f}"
        )

    def cmd_insight(self, args: list[str]) -> str:
        sales = self.app.data.get_sales_with_details(self.session)
        return "🤖 " + self.app.insights.summarize(sales)

    def cmd_reconcile(self, args: list[str]) -> str:
        result = self.app.data.reconcile_pending(self.session)
        if not result.success:
            return _failure(result)
        report = result.data
        return (
            f"🔁 Uzlaştırma: {len(report.completed)} tamamlandı, {len(report.pending)} bekliyor, "
            f"{len(report.inconsistent)} tutarsız, {len(report.aborted)} iptal"
        )


def main() -> None:
    app = build_app()
    configure_logging(app.settings.log_level)

    print("👟 SoleStock - Sneaker Mini ERP")
    print("=" * 58)
    console = Console(app)
    print(HELP_TEXT)

    try:
        while True:
            try:
                user_input = input("\n> ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\n👋 Görüşürüz!")
                break

            if not user_input:
                continue
            if user_input.lower() in ("cikis", "çıkış", "exit", "quit", "q"):
                print("👋 Görüşürüz!")
                break
            if user_input.lower() in ("yardim", "yardım", "help", "h"):
                print(HELP_TEXT)
                continue

            output = console.handle_command(user_input)
            print(output if output is not None else "❓ Bilinmeyen komut. 'yardim' yazın.")
    finally:
        console.close()


if __name__ == "__main__":
    sys.exit(main())
