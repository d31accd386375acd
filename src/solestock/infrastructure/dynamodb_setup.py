"""DynamoDB tablo oluşturma / silme.

6 tablo: Products, ProductVariations, Suppliers, Platforms, Sales, SaleJournal.
Her satır `user_id` taşır; sahibe göre okuma UserIndex GSI'ı ile yapılır
(Platforms'ta user_id zaten partition key). SaleJournal'da sadece bekleyen
kayıtlar PendingIndex ile okunur, biten kayıtlar TTL ile silinir.

Kullanım:
    python -m solestock.infrastructure.dynamodb_setup            # oluştur
    python -m solestock.infrastructure.dynamodb_setup --delete   # sil
"""

from __future__ import annotations

import sys
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from solestock.config import BOTO_CONFIG, Settings
from solestock.gateways.base import (
    PENDING_INDEX,
    PLATFORMS_TABLE,
    PRODUCT_INDEX,
    PRODUCTS_TABLE,
    SALE_JOURNAL_TABLE,
    SALES_TABLE,
    SUPPLIERS_TABLE,
    USER_INDEX,
    VARIATIONS_TABLE,
)
from solestock.gateways.sale_journal import TTL_ATTRIBUTE


def _user_index(range_key: Optional[str] = None) -> dict:
    key_schema = [{"AttributeName": "user_id", "KeyType": "HASH"}]
    if range_key:
        key_schema.append({"AttributeName": range_key, "KeyType": "RANGE"})
    return {"IndexName": USER_INDEX, "KeySchema": key_schema, "Projection": {"ProjectionType": "ALL"}}


TABLE_DEFINITIONS = [
    {
        "TableName": PRODUCTS_TABLE,
        "KeySchema": [{"AttributeName": "product_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "product_id", "AttributeType": "S"},
            {"AttributeName": "user_id", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [_user_index()],
        "BillingMode": "PAY_PER_REQUEST",
    },
    {
        "TableName": VARIATIONS_TABLE,
        "KeySchema": [{"AttributeName": "variation_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "variation_id", "AttributeType": "S"},
            {"AttributeName": "user_id", "AttributeType": "S"},
            {"AttributeName": "product_id", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [
            _user_index(),
            {
                "IndexName": PRODUCT_INDEX,
                "KeySchema": [{"AttributeName": "product_id", "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
        "BillingMode": "PAY_PER_REQUEST",
    },
    {
        "TableName": SUPPLIERS_TABLE,
        "KeySchema": [{"AttributeName": "supplier_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "supplier_id", "AttributeType": "S"},
            {"AttributeName": "user_id", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [_user_index()],
        "BillingMode": "PAY_PER_REQUEST",
    },
    {
        # (user_id, name) anahtarı aynı isimli platformun iki kez oluşmasını engeller
        "TableName": PLATFORMS_TABLE,
        "KeySchema": [
            {"AttributeName": "user_id", "KeyType": "HASH"},
            {"AttributeName": "name", "KeyType": "RANGE"},
        ],
        "AttributeDefinitions": [
            {"AttributeName": "user_id", "AttributeType": "S"},
            {"AttributeName": "name", "AttributeType": "S"},
        ],
        "BillingMode": "PAY_PER_REQUEST",
    },
    {
        "TableName": SALES_TABLE,
        "KeySchema": [{"AttributeName": "sale_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "sale_id", "AttributeType": "S"},
            {"AttributeName": "user_id", "AttributeType": "S"},
            {"AttributeName": "date_sale", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [_user_index("date_sale")],
        "BillingMode": "PAY_PER_REQUEST",
    },
    {
        "TableName": SALE_JOURNAL_TABLE,
        "KeySchema": [{"AttributeName": "journal_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "journal_id", "AttributeType": "S"},
            {"AttributeName": "pending_user_id", "AttributeType": "S"},
            {"AttributeName": "created_at", "AttributeType": "S"},
        ],
        # Sadece bekleyen kayıtlar indexlenir (seyrek GSI)
        "GlobalSecondaryIndexes": [
            {
                "IndexName": PENDING_INDEX,
                "KeySchema": [
                    {"AttributeName": "pending_user_id", "KeyType": "HASH"},
                    {"AttributeName": "created_at", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
        "BillingMode": "PAY_PER_REQUEST",
    },
]

# Tablo -> TTL kolonu
TTL_ATTRIBUTES = {SALE_JOURNAL_TABLE: TTL_ATTRIBUTE}


def key_attributes(table_name: str) -> list[str]:
    """Tablonun birincil anahtar kolonları (HASH, varsa RANGE)."""
    for table_def in TABLE_DEFINITIONS:
        if table_def["TableName"] == table_name:
            return [k["AttributeName"] for k in table_def["KeySchema"]]
    raise KeyError(table_name)


def create_tables(region: Optional[str] = None, dynamodb_client: Optional[Any] = None) -> list[str]:
    """Eksik tabloları oluşturur, oluşturulanların adlarını döndürür."""
    settings = Settings.from_env()
    dynamodb = dynamodb_client or boto3.client(
        "dynamodb", region_name=region or settings.region_name, verify=settings.ssl_verify, config=BOTO_CONFIG
    )

    created = []
    for table_def in TABLE_DEFINITIONS:
        table_name = table_def["TableName"]
        try:
            dynamodb.describe_table(TableName=table_name)
            print(f"  ⏭️  {table_name} zaten mevcut, atlanıyor")
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceNotFoundException":
                raise
            print(f"  🔨 {table_name} oluşturuluyor...")
            dynamodb.create_table(**table_def)
            # Tablonun aktif olmasını bekle
            dynamodb.get_waiter("table_exists").wait(TableName=table_name)
            print(f"  ✓  {table_name} oluşturuldu")
            ttl_attribute = TTL_ATTRIBUTES.get(table_name)
            if ttl_attribute:
                dynamodb.update_time_to_live(
                    TableName=table_name,
                    TimeToLiveSpecification={"Enabled": True, "AttributeName": ttl_attribute},
                )
                print(f"  ⏳ {table_name} TTL: {ttl_attribute}")
            created.append(table_name)
    return created


def delete_tables(region: Optional[str] = None, dynamodb_client: Optional[Any] = None) -> None:
    """Tüm tabloları siler (dikkatli kullan)."""
    settings = Settings.from_env()
    dynamodb = dynamodb_client or boto3.client(
        "dynamodb", region_name=region or settings.region_name, verify=settings.ssl_verify, config=BOTO_CONFIG
    )
    for table_def in TABLE_DEFINITIONS:
        table_name = table_def["TableName"]
        try:
            dynamodb.delete_table(TableName=table_name)
            print(f"  🗑️  {table_name} silindi")
        except ClientError:
            print(f"  ⏭️  {table_name} bulunamadı, atlanıyor")


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "--delete":
        print("🗑️  Tablolar siliniyor...")
        delete_tables()
    else:
        print("🏗️  DynamoDB tabloları oluşturuluyor...\n")
        create_tables()
