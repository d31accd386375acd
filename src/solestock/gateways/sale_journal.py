"""Satış journal'ı - çok adımlı satış/silme işlemlerinin niyet kaydı.

Her satış kaydı ve silme işlemi önce bir JournalEntry olarak yazılır; ardından
adımlar uygulanır ve her adım tamamlandıkça işaretlenir. Yarım kalan kayıtlar
sonradan StockReconciler ile devam ettirilir ya da tutarsız olarak raporlanır.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from boto3.dynamodb.conditions import Attr, Key

from solestock.gateways.base import PENDING_INDEX, from_dynamo, to_dynamo
from solestock.models.entities import Sale, utc_now_iso

logger = logging.getLogger(__name__)

STEP_SALE_WRITTEN = "sale_written"
STEP_VARIATION_STOCK = "variation_stock"
STEP_PRODUCT_STOCK = "product_stock"
STEP_SALE_DELETED = "sale_deleted"

# Tamamlanan / iptal edilen kayıtlar bu süreden sonra DynamoDB TTL ile silinir
JOURNAL_RETENTION_SECONDS = 30 * 24 * 3600
TTL_ATTRIBUTE = "expires_at"


class JournalOperation(str, Enum):
    RECORD_SALE = "record_sale"
    DELETE_SALE = "delete_sale"


class JournalStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    ABORTED = "aborted"
    INCONSISTENT = "inconsistent"


class StepStatus(str, Enum):
    PENDING = "pending"
    PLANNED = "planned"
    DONE = "done"
    SKIPPED = "skipped"


@dataclass
class JournalStep:
    name: str
    status: StepStatus = StepStatus.PENDING
    # Stok adımları için yazmadan önce kaydedilen plan
    planned_version: Optional[int] = None
    planned_from: Optional[int] = None
    planned_to: Optional[int] = None
    note: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status.value,
            "planned_version": self.planned_version,
            "planned_from": self.planned_from,
            "planned_to": self.planned_to,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "JournalStep":
        return cls(
            name=data["name"],
            status=StepStatus(data.get("status", StepStatus.PENDING.value)),
            planned_version=data.get("planned_version"),
            planned_from=data.get("planned_from"),
            planned_to=data.get("planned_to"),
            note=data.get("note", ""),
        )


@dataclass
class JournalEntry:
    journal_id: str
    user_id: str
    operation: JournalOperation
    sale_id: str
    product_id: str
    delta: int
    steps: list[JournalStep]
    variation_id: Optional[str] = None
    status: JournalStatus = JournalStatus.PENDING
    detail: str = ""
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def for_record(cls, user_id: str, sale: Sale) -> "JournalEntry":
        steps = [JournalStep(STEP_SALE_WRITTEN)]
        if sale.variation_id:
            steps.append(JournalStep(STEP_VARIATION_STOCK))
        steps.append(JournalStep(STEP_PRODUCT_STOCK))
        return cls(
            journal_id=str(uuid.uuid4()),
            user_id=user_id,
            operation=JournalOperation.RECORD_SALE,
            sale_id=sale.sale_id,
            product_id=sale.product_id,
            variation_id=sale.variation_id,
            delta=-1,
            steps=steps,
        )

    @classmethod
    def for_delete(cls, user_id: str, sale: Sale) -> "JournalEntry":
        steps = []
        if sale.variation_id:
            steps.append(JournalStep(STEP_VARIATION_STOCK))
        steps.append(JournalStep(STEP_PRODUCT_STOCK))
        steps.append(JournalStep(STEP_SALE_DELETED))
        return cls(
            journal_id=str(uuid.uuid4()),
            user_id=user_id,
            operation=JournalOperation.DELETE_SALE,
            sale_id=sale.sale_id,
            product_id=sale.product_id,
            variation_id=sale.variation_id,
            delta=1,
            steps=steps,
        )

    def step(self, name: str) -> Optional[JournalStep]:
        for s in self.steps:
            if s.name == name:
                return s
        return None

    def unfinished_steps(self) -> list[JournalStep]:
        return [s for s in self.steps if s.status in (StepStatus.PENDING, StepStatus.PLANNED)]

    def refresh_status(self) -> JournalStatus:
        """Adım durumlarından journal durumunu türetir (aborted korunur)."""
        if self.status == JournalStatus.ABORTED:
            return self.status
        if self.unfinished_steps():
            self.status = JournalStatus.PENDING
        elif any(s.status == StepStatus.SKIPPED for s in self.steps):
            self.status = JournalStatus.INCONSISTENT
        else:
            self.status = JournalStatus.COMPLETED
        return self.status

    def to_item(self, now: Optional[float] = None) -> dict:
        item = {
            "journal_id": self.journal_id,
            "user_id": self.user_id,
            "operation": self.operation.value,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "variation_id": self.variation_id,
            "delta": self.delta,
            # Adımlar tek kolon halinde JSON olarak saklanır
            "steps": json.dumps([s.to_dict() for s in self.steps]),
            "status": self.status.value,
            "detail": self.detail,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if self.status == JournalStatus.PENDING:
            item["pending_user_id"] = self.user_id
        elif self.status in (JournalStatus.COMPLETED, JournalStatus.ABORTED):
            # Tutarsız kayıtlar elle incelenene kadar saklanır
            item[TTL_ATTRIBUTE] = int(now if now is not None else time.time()) + JOURNAL_RETENTION_SECONDS
        return to_dynamo(item)

    @classmethod
    def from_item(cls, item: dict) -> "JournalEntry":
        data = from_dynamo(item)
        return cls(
            journal_id=data["journal_id"],
            user_id=data["user_id"],
            operation=JournalOperation(data["operation"]),
            sale_id=data["sale_id"],
            product_id=data["product_id"],
            delta=int(data["delta"]),
            steps=[JournalStep.from_dict(s) for s in json.loads(data.get("steps", "[]"))],
            variation_id=data.get("variation_id"),
            status=JournalStatus(data.get("status", JournalStatus.PENDING.value)),
            detail=data.get("detail", ""),
            created_at=data.get("created_at", utc_now_iso()),
            updated_at=data.get("updated_at", utc_now_iso()),
        )


class SaleJournal:
    """JournalEntry kayıtlarını SaleJournal tablosunda saklar."""

    def __init__(self, table: Any):
        self.table = table

    def open(self, entry: JournalEntry) -> None:
        """Niyet kaydını yazar. Hata durumunda ClientError raise eder."""
        self.table.put_item(Item=entry.to_item(), ConditionExpression=Attr("journal_id").not_exists())
        logger.info("Journal açıldı: %s %s (satış %s)", entry.operation.value, entry.journal_id, entry.sale_id)

    def save(self, entry: JournalEntry) -> None:
        entry.updated_at = utc_now_iso()
        self.table.put_item(Item=entry.to_item())

    def get(self, journal_id: str) -> Optional[JournalEntry]:
        item = self.table.get_item(Key={"journal_id": journal_id}).get("Item")
        return JournalEntry.from_item(item) if item else None

    def list_pending(self, user_id: str) -> list[JournalEntry]:
        """Bekleyen kayıtlar, eskiden yeniye. Sadece seyrek PendingIndex okunur."""
        resp_items: list[dict] = []
        kwargs: dict[str, Any] = {
            "IndexName": PENDING_INDEX,
            "KeyConditionExpression": Key("pending_user_id").eq(user_id),
        }
        while True:
            resp = self.table.query(**kwargs)
            resp_items.extend(resp.get("Items", []))
            if not resp.get("LastEvaluatedKey"):
                break
            kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]

        entries = [JournalEntry.from_item(i) for i in resp_items]
        # GSI eventually consistent; durum yine de kontrol edilir
        pending = [e for e in entries if e.status == JournalStatus.PENDING]
        pending.sort(key=lambda e: e.created_at)
        return pending
