"""Uygulama bileşenlerinin tek yerden kurulması (console ve MCP server ortak kullanır)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from solestock.config import Settings, build_aws_clients
from solestock.gateways.asset_gateway import AssetGateway
from solestock.gateways.data_gateway import RemoteDataGateway
from solestock.gateways.insight_helper import InsightHelper
from solestock.gateways.session_gateway import SessionGateway

logger = logging.getLogger(__name__)


@dataclass
class SoleStockApp:
    settings: Settings
    data: RemoteDataGateway
    sessions: SessionGateway
    assets: AssetGateway
    insights: InsightHelper


def build_app(settings: Optional[Settings] = None, clients: Optional[dict[str, Any]] = None) -> SoleStockApp:
    """Ayarlardan gateway'leri kurar. `clients` verilirse boto3 istemcileri yerine kullanılır."""
    settings = settings or Settings.from_env()
    clients = clients if clients is not None else build_aws_clients(settings)

    app = SoleStockApp(
        settings=settings,
        data=RemoteDataGateway(region_name=settings.region_name, dynamodb_resource=clients["dynamodb"]),
        sessions=SessionGateway(
            client_id=settings.cognito_client_id,
            client_secret=settings.cognito_client_secret,
            region_name=settings.region_name,
            cognito_client=clients["cognito"],
        ),
        assets=AssetGateway(
            bucket_name=settings.images_bucket,
            region_name=settings.region_name,
            public_base_url=settings.images_public_base_url,
            s3_client=clients["s3"],
            sts_client=clients.get("sts"),
        ),
        insights=InsightHelper(
            model_id=settings.insight_model_id or None,
            region_name=settings.region_name,
            bedrock_client=clients["bedrock_runtime"],
        ),
    )
    logger.info("solestock hazır (region=%s)", settings.region_name)
    return app
