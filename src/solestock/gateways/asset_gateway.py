"""AssetGateway - ürün görsellerinin S3'e yüklenmesi ve silinmesi."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional
from urllib.parse import urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from solestock.errors import OperationResult, ValidationFailed, WriteFailed
from solestock.gateways.base import describe_error

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024
KEY_PREFIX = "products/"
CACHE_CONTROL = "max-age=3600"
BUCKET_NAME_TEMPLATE = "solestock-product-images-{account_id}"

_KEY_PATTERN = re.compile(r"products/[^?]+")


@dataclass
class ImageFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        if "." in self.filename:
            return self.filename.rsplit(".", 1)[-1].lower()
        return self.content_type.split("/", 1)[-1].lower()


class AssetGateway:
    """S3 bucket'ında `products/` altında görsel saklar."""

    def __init__(
        self,
        bucket_name: Optional[str] = None,
        region_name: str = "us-west-2",
        public_base_url: Optional[str] = None,
        s3_client: Optional[Any] = None,
        sts_client: Optional[Any] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.region_name = region_name
        self.s3 = s3_client or boto3.client("s3", region_name=region_name)
        self._sts = sts_client
        self._bucket_name = bucket_name
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self.clock = clock

    @property
    def bucket_name(self) -> str:
        """Bucket adı; verilmemişse hesap id'sinden türetilir."""
        if self._bucket_name is None:
            sts = self._sts or boto3.client("sts", region_name=self.region_name)
            account_id = sts.get_caller_identity()["Account"]
            self._bucket_name = BUCKET_NAME_TEMPLATE.format(account_id=account_id)
        return self._bucket_name

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return f"https://{self.bucket_name}.s3.{self.region_name}.amazonaws.com/{key}"

    @staticmethod
    def validate(image: ImageFile) -> None:
        """Ağ çağrısından önce yerel kontrol."""
        if not (image.content_type or "").startswith("image/"):
            raise ValidationFailed(f"Sadece resim dosyaları yüklenebilir ({image.content_type})")
        if image.size > MAX_IMAGE_BYTES:
            raise ValidationFailed(
                f"Dosya çok büyük: {image.size / (1024 * 1024):.1f} MB (en fazla 5 MB)"
            )

    def upload_product_image(self, image: ImageFile, product_id: str) -> OperationResult[str]:
        try:
            self.validate(image)
        except ValidationFailed as e:
            logger.warning("Görsel reddedildi (%s): %s", image.filename, e)
            return OperationResult.fail(e)

        key = f"{KEY_PREFIX}{product_id}-{int(self.clock() * 1000)}.{image.extension}"
        try:
            self.s3.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=image.data,
                ContentType=image.content_type,
                CacheControl=CACHE_CONTROL,
            )
        except (ClientError, BotoCoreError) as e:
            reason = describe_error(e)
            logger.error("Görsel yüklenemedi (%s): %s", key, reason)
            return OperationResult.fail(WriteFailed(reason))

        url = self.public_url(key)
        logger.info("Görsel yüklendi: %s", url)
        return OperationResult.ok(url)

    def owned_key(self, url: str) -> Optional[str]:
        """URL bu bucket'ın (ya da public_base_url'in) altındaysa S3 key'ini döndürür."""
        if self.public_base_url and url.startswith(self.public_base_url + "/"):
            path = url[len(self.public_base_url) + 1:]
        else:
            parsed = urlparse(url)
            if parsed.netloc != f"{self.bucket_name}.s3.{self.region_name}.amazonaws.com":
                return None
            path = parsed.path.lstrip("/")
        match = _KEY_PATTERN.fullmatch(path.split("?", 1)[0])
        return match.group(0) if match else None

    def delete_product_image(self, url: Optional[str]) -> None:
        """Bu bucket'a ait bir ürün görseli ise siler; hatalar sadece log'lanır."""
        if not url:
            return
        try:
            # bucket_name STS çağrısı yapabilir
            key = self.owned_key(url)
            if key is None:
                logger.warning("Görsel bu bucket'a ait değil, silinmedi: %s", url)
                return
            self.s3.delete_object(Bucket=self.bucket_name, Key=key)
            logger.info("Görsel silindi: %s", key)
        except (ClientError, BotoCoreError) as e:
            logger.error("Görsel silinemedi (%s): %s", url, describe_error(e))
