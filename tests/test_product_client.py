from decimal import Decimal

import pytest
import requests
from fastapi.testclient import TestClient

from marketplace.product_service.main import app as product_app
from marketplace.services.product_client import ProductClient

BASE_URL = "http://product-service.test"


@pytest.fixture
def product_api():
    return TestClient(product_app)


def test_find_product(product_api, monkeypatch):
    monkeypatch.setattr(
        "marketplace.services.product_client.requests.get",
        lambda url, timeout: product_api.get(url.replace(BASE_URL, "")),
    )

    product = ProductClient(base_url=BASE_URL).find_product(1)
    assert product.seller_id == 10
    assert product.find_pack(12).price == Decimal("75")
    assert product.find_pack(99) is None


def test_missing_product_is_none(product_api, monkeypatch):
    monkeypatch.setattr(
        "marketplace.services.product_client.requests.get",
        lambda url, timeout: product_api.get(url.replace(BASE_URL, "")),
    )
    assert ProductClient(base_url=BASE_URL).find_product(404) is None


def test_transport_errors_are_retried(product_api, monkeypatch):
    calls = []

    def flaky_get(url, timeout):
        calls.append(url)
        if len(calls) < 3:
            raise requests.ConnectionError("connection refused")
        return product_api.get(url.replace(BASE_URL, ""))

    monkeypatch.setattr("marketplace.services.product_client.requests.get", flaky_get)

    product = ProductClient(base_url=BASE_URL).find_product(3)
    assert product.id == 3
    assert len(calls) == 3


def test_retries_give_up(monkeypatch):
    def down(url, timeout):
        raise requests.Timeout("timed out")

    monkeypatch.setattr("marketplace.services.product_client.requests.get", down)

    with pytest.raises(requests.Timeout):
        ProductClient(base_url=BASE_URL).find_product(1)
