"""Versiyonlu stok yazımı ve journal adımlarının yürütülmesi.

Stok satırları `stock_version` sayacı taşır. Her yazım bu sayaca koşullu
yapılır (compare-and-set); koşul tutmazsa değer yeniden okunup tekrar denenir.
Son yazan journal `last_stock_journal` kolonunda tutulur, böylece yarım kalan
bir adım devam ettirilirken yazımın yapılıp yapılmadığı anlaşılabilir.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from solestock.errors import NotFound
from solestock.gateways.base import (
    STORE_ERRORS,
    describe_error,
    is_conditional_failure,
    set_expression,
)
from solestock.gateways.sale_journal import (
    STEP_PRODUCT_STOCK,
    STEP_SALE_DELETED,
    STEP_SALE_WRITTEN,
    STEP_VARIATION_STOCK,
    JournalEntry,
    JournalStatus,
    JournalStep,
    SaleJournal,
    StepStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 3
DEFAULT_BACKOFF_BASE = 0.1


def stock_state(item: dict) -> tuple[int, int]:
    """Satırdan (stok, versiyon) çiftini okur; eski satırlarda versiyon 0 sayılır."""
    return int(item.get("stock_quantity", 0)), int(item.get("stock_version", 0))


def write_stock_version(
    table: Any,
    key: dict,
    version: int,
    new_value: int,
    journal_id: Optional[str] = None,
) -> None:
    """Stoğu `version` hâlâ geçerliyse yazar, aksi halde ClientError raise eder."""
    values: dict[str, Any] = {"stock_quantity": new_value, "stock_version": version + 1}
    if journal_id:
        values["last_stock_journal"] = journal_id
    expression, names, attr_values = set_expression(values)

    condition = Attr("stock_version").eq(version)
    if version == 0:
        condition = Attr("stock_version").not_exists() | condition

    table.update_item(
        Key=key,
        UpdateExpression=expression,
        ExpressionAttributeNames=names,
        ExpressionAttributeValues=attr_values,
        ConditionExpression=condition,
    )


def adjust_stock(
    table: Any,
    key: dict,
    compute: Callable[[int], int],
    *,
    user_id: Optional[str] = None,
    journal_id: Optional[str] = None,
    before_write: Optional[Callable[[int, int, int], None]] = None,
    attempts: int = DEFAULT_ATTEMPTS,
    backoff_base: float = DEFAULT_BACKOFF_BASE,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Oku-hesapla-koşullu yaz döngüsü. Yazılan yeni stok değerini döndürür.

    Args:
        compute: Mevcut stoktan yeni stoğu hesaplar.
        before_write: Yazımdan hemen önce (versiyon, mevcut, hedef) ile çağrılır;
            journal planını kaydetmek için kullanılır.

    Raises:
        NotFound: Satır yoksa ya da başka kullanıcıya aitse.
        ClientError: Deneme hakları bittiğinde ya da başka bir store hatasında.
    """
    for attempt in range(attempts):
        item = table.get_item(Key=key).get("Item")
        if not item or (user_id and item.get("user_id") != user_id):
            raise NotFound(f"Stok satırı bulunamadı: {key}")

        current, version = stock_state(item)
        target = compute(current)
        if before_write:
            before_write(version, current, target)

        try:
            write_stock_version(table, key, version, target, journal_id=journal_id)
            return target
        except ClientError as e:
            if not is_conditional_failure(e) or attempt >= attempts - 1:
                raise
            logger.warning("Eşzamanlı stok yazımı (%s), tekrar deneniyor (%d/%d)", key, attempt + 1, attempts)
            sleep(backoff_base * (2 ** attempt))

    raise RuntimeError("unreachable")


@dataclass
class ReconciliationReport:
    completed: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)
    inconsistent: list[str] = field(default_factory=list)
    aborted: list[str] = field(default_factory=list)

    def add(self, entry: JournalEntry) -> None:
        {
            JournalStatus.COMPLETED: self.completed,
            JournalStatus.PENDING: self.pending,
            JournalStatus.INCONSISTENT: self.inconsistent,
            JournalStatus.ABORTED: self.aborted,
        }[entry.status].append(entry.journal_id)

    @property
    def total(self) -> int:
        return len(self.completed) + len(self.pending) + len(self.inconsistent) + len(self.aborted)


class StockReconciler:
    """Journal kaydındaki bitmemiş adımları sırayla uygular."""

    def __init__(
        self,
        journal: SaleJournal,
        products_table: Any,
        variations_table: Any,
        sales_table: Any,
        attempts: int = DEFAULT_ATTEMPTS,
        backoff_base: float = DEFAULT_BACKOFF_BASE,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.journal = journal
        self.products_table = products_table
        self.variations_table = variations_table
        self.sales_table = sales_table
        self.attempts = attempts
        self.backoff_base = backoff_base
        self.sleep = sleep

    def run(self, entry: JournalEntry) -> JournalEntry:
        """Adımları uygular; geçici hatalı adımlar pending kalır, sonrakiler yine denenir."""
        for step in entry.steps:
            if step.status not in (StepStatus.PENDING, StepStatus.PLANNED):
                continue
            try:
                self._run_step(entry, step)
            except NotFound as e:
                step.status = StepStatus.SKIPPED
                step.note = str(e)
                logger.warning("Journal %s adım %s atlandı: %s", entry.journal_id, step.name, e)
            except STORE_ERRORS as e:
                step.note = describe_error(e)
                logger.error("Journal %s adım %s başarısız: %s", entry.journal_id, step.name, step.note)

            if entry.status == JournalStatus.ABORTED:
                break

        entry.refresh_status()
        if entry.status == JournalStatus.INCONSISTENT:
            entry.detail = "; ".join(
                f"{s.name}: {s.note}" for s in entry.steps if s.status == StepStatus.SKIPPED
            )
        self.persist(entry)
        logger.info("Journal %s durumu: %s", entry.journal_id, entry.status.value)
        return entry

    def _run_step(self, entry: JournalEntry, step: JournalStep) -> None:
        if step.name == STEP_SALE_WRITTEN:
            self._confirm_sale_written(entry, step)
        elif step.name == STEP_VARIATION_STOCK:
            self._apply_stock(entry, step, self.variations_table, {"variation_id": entry.variation_id})
        elif step.name == STEP_PRODUCT_STOCK:
            self._apply_stock(entry, step, self.products_table, {"product_id": entry.product_id})
        elif step.name == STEP_SALE_DELETED:
            self._delete_sale_row(entry, step)
        else:
            raise ValueError(f"Bilinmeyen journal adımı: {step.name}")

    def _confirm_sale_written(self, entry: JournalEntry, step: JournalStep) -> None:
        # Sadece yarım kalmış kayıtlarda çalışır: satış satırı yoksa hiç stok değişmemiştir
        item = self.sales_table.get_item(Key={"sale_id": entry.sale_id}).get("Item")
        if item:
            step.status = StepStatus.DONE
            return
        entry.status = JournalStatus.ABORTED
        entry.detail = "Satış kaydı yazılmamış; stok değiştirilmedi."
        logger.warning("Journal %s iptal edildi: satış %s yok", entry.journal_id, entry.sale_id)

    def _apply_stock(self, entry: JournalEntry, step: JournalStep, table: Any, key: dict) -> None:
        if step.status == StepStatus.PLANNED:
            item = table.get_item(Key=key).get("Item")
            if not item:
                raise NotFound(f"Stok satırı bulunamadı: {key}")
            _, version = stock_state(item)
            if item.get("last_stock_journal") == entry.journal_id:
                step.status = StepStatus.DONE
                self.persist(entry)
                return
            if version != step.planned_version:
                raise NotFound(
                    f"Stok yazımının sonucu bilinmiyor (versiyon {step.planned_version} -> {version}); "
                    f"elle kontrol edin: {key}"
                )
            # Versiyon değişmemiş: yazım hiç yapılmamış, canlı değerden yeniden planla

        def plan(version: int, current: int, target: int) -> None:
            step.planned_version = version
            step.planned_from = current
            step.planned_to = target
            step.status = StepStatus.PLANNED
            self.journal.save(entry)

        try:
            adjust_stock(
                table,
                key,
                lambda current: max(0, current + entry.delta),
                user_id=entry.user_id,
                journal_id=entry.journal_id,
                before_write=plan,
                attempts=self.attempts,
                backoff_base=self.backoff_base,
                sleep=self.sleep,
            )
        except ClientError as e:
            # Koşul tutmadıysa yazım kesin yapılmadı; plan geçersiz
            if is_conditional_failure(e):
                step.status = StepStatus.PENDING
            raise
        step.status = StepStatus.DONE
        step.note = ""
        self.persist(entry)

    def _delete_sale_row(self, entry: JournalEntry, step: JournalStep) -> None:
        try:
            self.sales_table.delete_item(
                Key={"sale_id": entry.sale_id},
                ConditionExpression=Attr("user_id").eq(entry.user_id),
            )
        except ClientError as e:
            # Satır zaten silinmişse adım tamamlanmış sayılır
            if not is_conditional_failure(e):
                raise
        step.status = StepStatus.DONE
        step.note = ""

    def persist(self, entry: JournalEntry) -> None:
        try:
            self.journal.save(entry)
        except STORE_ERRORS as e:
            logger.error("Journal %s kaydedilemedi: %s", entry.journal_id, describe_error(e))
