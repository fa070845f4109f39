# marketplace/services/product_client.py
from typing import Protocol

import requests

from marketplace.domain.schemas import ProductInfo
from marketplace.utils.retry import http_retry
from marketplace.utils.settings import PRODUCT_SERVICE_URL, PRODUCT_SERVICE_TIMEOUT
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class PriceCatalog(Protocol):
    """Katalog produktow tylko do odczytu; jedyne zrodlo ceny i sprzedawcy."""

    def find_product(self, product_id: int) -> ProductInfo | None:
        ...


class ProductClient:
    def __init__(self, base_url: str | None = None, timeout: int | None = None):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout or PRODUCT_SERVICE_TIMEOUT

    @http_retry()
    def find_product(self, product_id: int) -> ProductInfo | None:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return ProductInfo.model_validate(resp.json())
