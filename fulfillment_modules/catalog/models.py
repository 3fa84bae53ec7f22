"""
Catalog Domain Models (``fulfillment_modules.catalog.models``).

Responsibility
--------------
The product master data the fee and weight engines price from, and the
in-memory ``ProductCatalog`` the host hands to the lifecycles.

Invariants
----------
- Physical attributes and fee overrides are ``Decimal`` and never negative.
- An unset fee override is ``None``; an explicit ``0`` is a real override.
- ``packing_type`` is kept raw; the fee engine resolves it to a tier.

Failure Modes
-------------
- Constructing a ``Product`` with a negative or non-numeric value raises
  ``ValueError``.
- ``ProductCatalog.require`` raises ``UnknownProductError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from fulfillment_kernel.domain.values import ZERO, optional_decimal, to_decimal
from fulfillment_kernel.exceptions import DuplicateEntityError, UnknownProductError
from fulfillment_kernel.logging_config import get_logger

logger = get_logger("modules.catalog.models")

_DIMENSIONS = ("weight_kg", "length_cm", "breadth_cm", "height_cm")
_OVERRIDES = ("item_packing_fee", "transportation_fee", "warehousing_rate_per_kg")

# Host record keys, tried in order, per field.
_RECORD_KEYS: Mapping[str, tuple[str, ...]] = {
    "id": ("id", "_id", "productId", "product_id"),
    "merchant_id": ("merchantId", "merchant_id"),
    "name": ("productName", "name"),
    "weight_kg": ("weightKg", "weight_kg", "weight"),
    "length_cm": ("lengthCm", "length_cm", "length"),
    "breadth_cm": ("breadthCm", "breadth_cm", "breadth"),
    "height_cm": ("heightCm", "height_cm", "height"),
    "packing_type": ("packingType", "packing_type"),
    "item_packing_fee": ("itemPackingFee", "item_packing_fee"),
    "transportation_fee": ("transportationFee", "transportation_fee"),
    "warehousing_rate_per_kg": ("warehousingRatePerKg", "warehousing_rate_per_kg"),
}


def _lookup(record: Mapping[str, Any], field: str) -> Any:
    for key in _RECORD_KEYS[field]:
        if key in record:
            value = record[key]
            if isinstance(value, str) and not value.strip():
                return None
            return value
    return None


@dataclass(frozen=True)
class Product:
    """
    A merchant's product as seen by the warehouse.

    Contract: immutable value object.  Numeric fields accept anything
    ``to_decimal`` accepts and are normalised to ``Decimal`` on
    construction.
    """

    id: str
    merchant_id: str
    name: str = ""
    weight_kg: Decimal = ZERO
    length_cm: Decimal = ZERO
    breadth_cm: Decimal = ZERO
    height_cm: Decimal = ZERO
    packing_type: str = "normal"
    item_packing_fee: Decimal | None = None
    transportation_fee: Decimal | None = None
    warehousing_rate_per_kg: Decimal | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Product id is required")
        for name in _DIMENSIONS:
            value = to_decimal(getattr(self, name), name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
            object.__setattr__(self, name, value)
        for name in _OVERRIDES:
            value = optional_decimal(getattr(self, name), name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
            object.__setattr__(self, name, value)
        if self.packing_type is None:
            object.__setattr__(self, "packing_type", "normal")

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Product:
        """
        Build a product from a host record (camelCase keys).

        Empty strings are treated as unset, so ``itemPackingFee: ""`` means
        "no override" rather than a zero fee.
        """
        values = {field: _lookup(record, field) for field in _RECORD_KEYS}
        product_id = values.pop("id")
        if product_id is None:
            raise ValueError("Product record has no id")
        merchant_id = values.pop("merchant_id")
        name = values.pop("name")
        packing_type = values.pop("packing_type")
        return cls(
            id=str(product_id),
            merchant_id=str(merchant_id or ""),
            name=str(name or ""),
            packing_type=str(packing_type) if packing_type is not None else "normal",
            **values,
        )


class ProductCatalog:
    """
    In-memory product lookup supplied by the host.

    Instances are callable, so a catalog can be passed anywhere a
    ``ProductLookup`` (``Callable[[str], Product | None]``) is expected.
    """

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._products: dict[str, Product] = {}
        for product in products:
            self.add(product)

    def add(self, product: Product, replace: bool = False) -> Product:
        if product.id in self._products:
            if not replace:
                raise DuplicateEntityError("product", product.id)
            logger.info(
                "catalog_product_replaced",
                extra={"product_id": product.id, "merchant_id": product.merchant_id},
            )
        self._products[product.id] = product
        return product

    def get(self, product_id: str) -> Product | None:
        return self._products.get(product_id)

    def require(self, product_id: str) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise UnknownProductError(product_id)
        return product

    def for_merchant(self, merchant_id: str) -> list[Product]:
        return [p for p in self._products.values() if p.merchant_id == merchant_id]

    def __call__(self, product_id: str) -> Product | None:
        return self.get(product_id)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._products

    def __iter__(self) -> Iterator[Product]:
        return iter(self._products.values())

    def __len__(self) -> int:
        return len(self._products)
