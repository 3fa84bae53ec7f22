"""Product master data and the in-memory catalog."""

from fulfillment_modules.catalog.models import Product, ProductCatalog

__all__ = ["Product", "ProductCatalog"]
