# marketplace/api/deps.py
from marketplace.services.product_client import PriceCatalog, ProductClient


def get_catalog() -> PriceCatalog:
    """Katalog produktow; w testach podmieniany przez dependency_overrides."""
    return ProductClient()
