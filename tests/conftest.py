import pytest
from fastapi.testclient import TestClient

from khqr.api import app
from khqr.config import settings
from khqr.models import Currency, KHQRConfig, MerchantType


@pytest.fixture
def individual_config() -> KHQRConfig:
    return KHQRConfig(
        merchant_type=MerchantType.INDIVIDUAL,
        bakong_account_id="john_smith@devb",
        merchant_name="John Smith",
        currency=Currency.USD,
        amount="1.00",
        is_static=True,
    )


@pytest.fixture
def merchant_config() -> KHQRConfig:
    return KHQRConfig(
        merchant_type=MerchantType.MERCHANT,
        bakong_account_id="dev_merchant@devb",
        merchant_name="Dev Store",
        merchant_id="M123",
        acquiring_bank="ABA",
        currency=Currency.KHR,
        amount="1000",
    )


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def api_headers() -> dict[str, str]:
    return {"X-API-Key": settings.api_key}
