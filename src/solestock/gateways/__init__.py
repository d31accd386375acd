from solestock.gateways.asset_gateway import AssetGateway, ImageFile
from solestock.gateways.data_gateway import RemoteDataGateway
from solestock.gateways.insight_helper import InsightHelper
from solestock.gateways.session_gateway import SessionGateway

__all__ = [
    "AssetGateway",
    "ImageFile",
    "InsightHelper",
    "RemoteDataGateway",
    "SessionGateway",
]
