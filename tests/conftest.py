"""Ortak pytest fixture'ları - AWS'ye hiç gidilmez."""

import time
from unittest.mock import MagicMock

import pytest

from fakes import FakeDynamoResource
from solestock.app import build_app
from solestock.config import Settings
from solestock.gateways.data_gateway import RemoteDataGateway
from solestock.models.entities import AuthSession, Product, ProductVariation


@pytest.fixture
def dynamodb():
    return FakeDynamoResource()


@pytest.fixture
def gateway(dynamodb):
    return RemoteDataGateway(dynamodb_resource=dynamodb, sleep=lambda _seconds: None)


@pytest.fixture
def session():
    return AuthSession(
        user_id="user-1",
        email="ayse@example.com",
        access_token="token-1",
        expires_at=time.time() + 3600,
    )


@pytest.fixture
def other_session():
    return AuthSession(
        user_id="user-2",
        email="mehmet@example.com",
        access_token="token-2",
        expires_at=time.time() + 3600,
    )


@pytest.fixture
def product(gateway, session):
    """Örnek ürün: maliyet 10, kutu 1, poşet 0.5, etiket 0.2, stok 5."""
    result = gateway.create_product(
        session,
        Product(
            product_id="",
            name="Air Runner",
            standard_cost=10.0,
            cost_box=1.0,
            cost_bag=0.5,
            cost_label=0.2,
            suggested_price=50.0,
            stock_quantity=5,
            min_stock_level=2,
        ),
    )
    assert result.success, result.error_message
    return result.data


@pytest.fixture
def variation_factory(gateway, session):
    def create(product, color="Siyah", size="42", stock=1):
        result = gateway.create_variation(
            session,
            ProductVariation(variation_id="", product_id=product.product_id, color=color, size=size, stock_quantity=stock),
        )
        assert result.success, result.error_message
        return result.data

    return create


@pytest.fixture
def cognito():
    client = MagicMock()
    client.initiate_auth.return_value = {
        "AuthenticationResult": {"AccessToken": "access-1", "RefreshToken": "refresh-1", "ExpiresIn": 3600}
    }
    client.get_user.return_value = {
        "Username": "ayse",
        "UserAttributes": [{"Name": "sub", "Value": "user-1"}, {"Name": "email", "Value": "ayse@example.com"}],
    }
    return client


@pytest.fixture
def solestock_app(dynamodb, cognito):
    """Sahte istemcilerle kurulmuş uygulama (console / MCP testleri için)."""
    settings = Settings(
        cognito_client_id="client-1",
        images_bucket="bucket-test",
        service_email="ayse@example.com",
        service_password="Sifre1234",
    )
    clients = {
        "dynamodb": dynamodb,
        "s3": MagicMock(),
        "cognito": cognito,
        "bedrock_runtime": MagicMock(),
        "sts": MagicMock(),
    }
    return build_app(settings, clients)
