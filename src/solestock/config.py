"""Merkezi ayar ve .env yükleyici. Tüm giriş noktaları bunu kullansın."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import boto3
import urllib3
from botocore.config import Config
from dotenv import load_dotenv

# Proje kökündeki .env dosyasını bul ve yükle
_env_path = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(_env_path, override=False)

DEFAULT_REGION = "us-west-2"
DEFAULT_INSIGHT_MODEL_ID = "us.amazon.nova-lite-v1:0"
BOTO_CONFIG = Config(retries={"max_attempts": 3})
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


@dataclass
class Settings:
    region_name: str = DEFAULT_REGION
    cognito_client_id: str = ""
    cognito_client_secret: Optional[str] = None
    images_bucket: Optional[str] = None
    images_public_base_url: Optional[str] = None
    insight_model_id: str = DEFAULT_INSIGHT_MODEL_ID
    ssl_verify: bool = True
    log_level: str = "INFO"
    service_email: Optional[str] = None
    service_password: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Ortam değişkenlerinden ayarları okur."""
        return cls(
            region_name=os.environ.get("AWS_DEFAULT_REGION", DEFAULT_REGION),
            cognito_client_id=os.environ.get("COGNITO_APP_CLIENT_ID", ""),
            cognito_client_secret=os.environ.get("COGNITO_APP_CLIENT_SECRET") or None,
            images_bucket=os.environ.get("PRODUCT_IMAGES_BUCKET") or None,
            images_public_base_url=os.environ.get("PRODUCT_IMAGES_PUBLIC_BASE_URL") or None,
            # Boş string bilinçli olarak AI özetini kapatır
            insight_model_id=os.environ.get("INSIGHT_MODEL_ID", DEFAULT_INSIGHT_MODEL_ID),
            ssl_verify=_env_flag("SOLESTOCK_SSL_VERIFY", True),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            service_email=os.environ.get("SOLESTOCK_EMAIL") or None,
            service_password=os.environ.get("SOLESTOCK_PASSWORD") or None,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    # boto log'larını biraz kısalım
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def build_aws_clients(settings: Settings) -> dict[str, Any]:
    """Gateway'lerin kullandığı boto3 istemcilerini oluşturur."""
    if not settings.ssl_verify:
        # SSL workaround (kurumsal proxy/self-signed cert)
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    kwargs = {"region_name": settings.region_name, "verify": settings.ssl_verify, "config": BOTO_CONFIG}
    return {
        "dynamodb": boto3.resource("dynamodb", **kwargs),
        "s3": boto3.client("s3", **kwargs),
        "cognito": boto3.client("cognito-idp", **kwargs),
        "bedrock_runtime": boto3.client("bedrock-runtime", **kwargs),
        "sts": boto3.client("sts", **kwargs),
    }
