"""Ürün görselleri için S3 bucket oluşturma.

Bucket yapısı:
  solestock-product-images-{account_id}/
  └── products/   (herkese açık okunur)

Kullanım:
    python -m solestock.infrastructure.s3_setup            # oluştur
    python -m solestock.infrastructure.s3_setup --delete   # sil
"""

from __future__ import annotations

import json
import sys
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from solestock.config import BOTO_CONFIG, Settings
from solestock.gateways.asset_gateway import BUCKET_NAME_TEMPLATE, KEY_PREFIX


def get_bucket_name(region: str, sts_client: Optional[Any] = None) -> str:
    """Ayarlarda bucket yoksa account ID ile unique bucket adı oluşturur."""
    settings = Settings.from_env()
    if settings.images_bucket:
        return settings.images_bucket
    sts = sts_client or boto3.client("sts", region_name=region, verify=settings.ssl_verify)
    account_id = sts.get_caller_identity()["Account"]
    return BUCKET_NAME_TEMPLATE.format(account_id=account_id)


def public_read_policy(bucket_name: str) -> dict:
    """Sadece `products/` altını herkese okunur yapan bucket policy."""
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Sid": "PublicReadProductImages",
                "Effect": "Allow",
                "Principal": "*",
                "Action": "s3:GetObject",
                "Resource": f"arn:aws:s3:::{bucket_name}/{KEY_PREFIX}*",
            }
        ],
    }


def create_bucket(
    region: Optional[str] = None, s3_client: Optional[Any] = None, sts_client: Optional[Any] = None
) -> str:
    """Bucket'ı oluşturur ve `products/` için public-read policy uygular."""
    settings = Settings.from_env()
    region = region or settings.region_name
    s3 = s3_client or boto3.client("s3", region_name=region, verify=settings.ssl_verify, config=BOTO_CONFIG)
    bucket_name = get_bucket_name(region, sts_client)

    try:
        if region == "us-east-1":
            s3.create_bucket(Bucket=bucket_name)
        else:
            s3.create_bucket(
                Bucket=bucket_name,
                CreateBucketConfiguration={"LocationConstraint": region},
            )
        print(f"  ✓ Bucket oluşturuldu: {bucket_name}")
    except ClientError as e:
        if e.response["Error"]["Code"] in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
            print(f"  ⏭️  Bucket zaten mevcut: {bucket_name}")
        else:
            raise

    # Bucket policy'nin public olabilmesi için policy engelini kaldır
    s3.put_public_access_block(
        Bucket=bucket_name,
        PublicAccessBlockConfiguration={
            "BlockPublicAcls": True,
            "IgnorePublicAcls": True,
            "BlockPublicPolicy": False,
            "RestrictPublicBuckets": False,
        },
    )
    s3.put_bucket_policy(Bucket=bucket_name, Policy=json.dumps(public_read_policy(bucket_name)))
    print(f"  ✓ {KEY_PREFIX}* herkese açık okunur")
    return bucket_name


def delete_bucket(region: Optional[str] = None, sts_client: Optional[Any] = None) -> None:
    """Bucket ve içeriğini siler (dikkatli kullan)."""
    settings = Settings.from_env()
    region = region or settings.region_name
    s3 = boto3.resource("s3", region_name=region, verify=settings.ssl_verify)
    bucket_name = get_bucket_name(region, sts_client)
    try:
        bucket = s3.Bucket(bucket_name)
        bucket.objects.all().delete()
        bucket.delete()
        print(f"  🗑️  {bucket_name} silindi")
    except ClientError:
        print(f"  ⏭️  {bucket_name} bulunamadı")


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "--delete":
        print("🗑️  S3 bucket siliniyor...")
        delete_bucket()
    else:
        print("🏗️  S3 bucket oluşturuluyor...\n")
        create_bucket()
