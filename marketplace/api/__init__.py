# marketplace/api/__init__.py
from marketplace.api.deps import get_catalog

__all__ = ["get_catalog"]
