"""Tüm DynamoDB gateway'leri için temel sınıf ve dönüşüm yardımcıları."""

from __future__ import annotations

import logging
from dataclasses import asdict, fields
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Type, TypeVar

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from solestock.errors import Unauthenticated, WriteFailed
from solestock.models.entities import AuthSession

logger = logging.getLogger(__name__)

E = TypeVar("E")

PRODUCTS_TABLE = "Products"
VARIATIONS_TABLE = "ProductVariations"
SUPPLIERS_TABLE = "Suppliers"
PLATFORMS_TABLE = "Platforms"
SALES_TABLE = "Sales"
SALE_JOURNAL_TABLE = "SaleJournal"

USER_INDEX = "UserIndex"
PRODUCT_INDEX = "ProductIndex"
# Seyrek index: sadece bekleyen journal kayıtları `pending_user_id` taşır
PENDING_INDEX = "PendingIndex"

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"

# Sadece bu tip hatalar gateway sınırında yakalanır
STORE_ERRORS = (ClientError, BotoCoreError)


def to_dynamo(obj: Any) -> Any:
    """float -> Decimal, Enum -> value, None alanları atılır (DynamoDB float kabul etmez)."""
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {k: to_dynamo(v) for k, v in obj.items() if v is not None}
    if isinstance(obj, list):
        return [to_dynamo(i) for i in obj]
    return obj


def from_dynamo(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return int(obj) if obj == int(obj) else float(obj)
    if isinstance(obj, dict):
        return {k: from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [from_dynamo(i) for i in obj]
    return obj


def entity_to_item(entity: Any) -> dict:
    return to_dynamo(asdict(entity))


def entity_from_item(cls: Type[E], item: dict) -> E:
    """Tablo satırını dataclass'a çevirir, bilinmeyen kolonları yok sayar."""
    names = {f.name for f in fields(cls)}
    data = from_dynamo(item)
    kwargs = {k: v for k, v in data.items() if k in names}
    # Tam sayı olarak saklanan para alanları float'a dönsün
    for f in fields(cls):
        if f.name in kwargs and f.type in ("float", "Optional[float]") and isinstance(kwargs[f.name], int):
            kwargs[f.name] = float(kwargs[f.name])
    return cls(**kwargs)


def set_expression(values: dict) -> tuple[str, dict, dict]:
    """`SET #f0 = :v0, ...` ifadesi üretir; rezerve kelimeler (name, size, status) için isim yer tutucuları kullanır."""
    parts = []
    names = {}
    attr_values = {}
    for i, (field_name, value) in enumerate(values.items()):
        parts.append(f"#f{i} = :v{i}")
        names[f"#f{i}"] = field_name
        attr_values[f":v{i}"] = to_dynamo(value)
    return "SET " + ", ".join(parts), names, attr_values


def is_conditional_failure(error: Exception) -> bool:
    return (
        isinstance(error, ClientError)
        and error.response.get("Error", {}).get("Code") == CONDITIONAL_CHECK_FAILED
    )


def describe_error(error: Exception) -> str:
    if isinstance(error, ClientError):
        err = error.response.get("Error", {})
        return f"{err.get('Code', 'ClientError')}: {err.get('Message', str(error))}"
    return str(error)


def require_session(session: Optional[AuthSession]) -> AuthSession:
    if session is None or not session.user_id:
        raise Unauthenticated()
    return session


class BaseGateway:
    """DynamoDB tabanlı gateway temel sınıfı - dependency injection destekli."""

    def __init__(self, region_name: str = "us-west-2", dynamodb_resource: Optional[Any] = None):
        self.region_name = region_name
        self.dynamodb = dynamodb_resource or boto3.resource("dynamodb", region_name=region_name)

        # Tablo referansları
        self.products_table = self.dynamodb.Table(PRODUCTS_TABLE)
        self.variations_table = self.dynamodb.Table(VARIATIONS_TABLE)
        self.suppliers_table = self.dynamodb.Table(SUPPLIERS_TABLE)
        self.platforms_table = self.dynamodb.Table(PLATFORMS_TABLE)
        self.sales_table = self.dynamodb.Table(SALES_TABLE)
        self.journal_table = self.dynamodb.Table(SALE_JOURNAL_TABLE)

    def _query_all(self, table: Any, key_condition: Any, index_name: Optional[str] = None) -> list[dict]:
        """Sayfalı query; LastEvaluatedKey bitene kadar okur."""
        kwargs: dict[str, Any] = {"KeyConditionExpression": key_condition}
        if index_name:
            kwargs["IndexName"] = index_name
        items: list[dict] = []
        while True:
            resp = table.query(**kwargs)
            items.extend(resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def _query_owned(self, table: Any, user_id: str) -> list[dict]:
        return self._query_all(table, Key("user_id").eq(user_id), index_name=USER_INDEX)

    def _get_owned(self, table: Any, key: dict, user_id: str) -> Optional[dict]:
        """Kaydı okur; başka kullanıcıya aitse yokmuş gibi davranır."""
        item = table.get_item(Key=key).get("Item")
        if not item or item.get("user_id") != user_id:
            return None
        return item

    def _put_new(self, table: Any, item: dict, key_attr: str) -> None:
        try:
            table.put_item(Item=item, ConditionExpression=Attr(key_attr).not_exists())
        except STORE_ERRORS as e:
            raise WriteFailed(describe_error(e)) from e

    def _update_owned(self, table: Any, key: dict, values: dict, user_id: str) -> None:
        """Sahiplik koşuluyla alan günceller. Koşul tutmazsa ClientError raise eder."""
        expression, names, attr_values = set_expression(values)
        table.update_item(
            Key=key,
            UpdateExpression=expression,
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=attr_values,
            ConditionExpression=Attr("user_id").eq(user_id),
        )

    def _delete_owned(self, table: Any, key: dict, user_id: str) -> None:
        table.delete_item(Key=key, ConditionExpression=Attr("user_id").eq(user_id))
