"""
Typed Exception Hierarchy for the Fulfillment Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every failure a host application may need to surface to an operator
("not enough stock for SKU-1", "order already dispatched") has its own
class, a machine-readable ``code`` and structured attributes.  Hosts catch
by type and render by data -- never by parsing message strings.

Example - WRONG way to handle errors:
    result = lifecycle.dispatch(order_id)
    if "Insufficient" in result.reason:  # FRAGILE - message might change
        ...

Example - RIGHT way (what this module enables):
    for err in result.errors:
        if isinstance(err, InsufficientStockError):
            toast(f"Only {err.available} left of {err.product_id}")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from FulfillmentKernelError:

    FulfillmentKernelError (base)
    |
    +-- InventoryError
    |   +-- InsufficientStockError
    |   +-- InvalidQuantityError
    |   +-- InventoryRecordNotFoundError
    |
    +-- LifecycleError
    |   +-- InvalidStateTransitionError
    |   +-- OrderNotFoundError
    |   +-- InboundRequestNotFoundError
    |   +-- DuplicateEntityError
    |   +-- ItemsImmutableError
    |
    +-- ValidationError
    |   +-- InvalidFieldValueError
    |   +-- EmptyItemsError
    |
    +-- CatalogError
    |   +-- UnknownProductError
    |
    +-- BillingError
    |   +-- InvalidAmountError
    |
    +-- ConfigError
        +-- FeeScheduleValidationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Inventory       | INSUFFICIENT_STOCK          | Decrement would take stock below zero
                | INVALID_QUANTITY            | Negative, fractional or non-int quantity
                | INVENTORY_RECORD_NOT_FOUND  | InventoryLedger.require() miss
----------------|-----------------------------|-----------------------------------------
Lifecycle       | INVALID_STATE_TRANSITION    | Action not allowed from current status
                | ORDER_NOT_FOUND             | Order ID not held by the lifecycle
                | INBOUND_REQUEST_NOT_FOUND   | Request ID not held by the lifecycle
                | DUPLICATE_ENTITY            | Create with an ID that already exists
                | ITEMS_IMMUTABLE             | Item edit on a dispatched order
----------------|-----------------------------|-----------------------------------------
Validation      | INVALID_FIELD_VALUE         | Enum / numeric field out of range
                | EMPTY_ITEMS                 | Order or request without lines
----------------|-----------------------------|-----------------------------------------
Catalog         | UNKNOWN_PRODUCT             | ProductCatalog.require() miss
----------------|-----------------------------|-----------------------------------------
Billing         | INVALID_AMOUNT              | Non-positive received payment
----------------|-----------------------------|-----------------------------------------
Config          | FEE_SCHEDULE_INVALID        | Fee schedule YAML failed validation

===============================================================================
PROPAGATION
===============================================================================

Exceptions are raised inside the kernel and converted to result values
(``LedgerResult`` / ``TransitionResult``) at the public boundary of the
ledger and the lifecycle coordinators.  Fee and weight engines never
raise for missing products -- they contribute zero.
"""


class FulfillmentKernelError(Exception):
    """
    Base exception for all fulfillment kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "FULFILLMENT_KERNEL_ERROR"


# Inventory-related exceptions


class InventoryError(FulfillmentKernelError):
    """Base exception for inventory ledger errors."""

    code: str = "INVENTORY_ERROR"


class InsufficientStockError(InventoryError):
    """A decrement would take a (product, merchant) quantity below zero."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_id: str,
        merchant_id: str,
        requested: int,
        available: int,
    ):
        self.product_id = product_id
        self.merchant_id = merchant_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id} (merchant {merchant_id}): "
            f"requested {requested}, available {available}"
        )


class InvalidQuantityError(InventoryError):
    """Quantity is negative, fractional, or not an integer."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, value: object, field: str = "quantity"):
        self.value = value
        self.field = field
        super().__init__(
            f"Invalid {field}: {value!r} (must be a non-negative integer)"
        )


class InventoryRecordNotFoundError(InventoryError):
    """No inventory record exists for the (product, merchant) key."""

    code: str = "INVENTORY_RECORD_NOT_FOUND"

    def __init__(self, product_id: str, merchant_id: str):
        self.product_id = product_id
        self.merchant_id = merchant_id
        super().__init__(
            f"No inventory record for product {product_id} (merchant {merchant_id})"
        )


# Lifecycle-related exceptions


class LifecycleError(FulfillmentKernelError):
    """Base exception for order / inbound lifecycle errors."""

    code: str = "LIFECYCLE_ERROR"


class InvalidStateTransitionError(LifecycleError):
    """The requested action is not permitted from the entity's current status."""

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(
        self,
        entity_id: str,
        from_status: str,
        to_status: str | None = None,
        action: str | None = None,
    ):
        self.entity_id = entity_id
        self.from_status = from_status
        self.to_status = to_status
        self.action = action
        target = to_status or action or "?"
        super().__init__(
            f"Cannot move {entity_id} from '{from_status}' to '{target}'"
        )


class OrderNotFoundError(LifecycleError):
    """Order with given ID was not found."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class InboundRequestNotFoundError(LifecycleError):
    """Inbound/outbound request with given ID was not found."""

    code: str = "INBOUND_REQUEST_NOT_FOUND"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Inbound request not found: {request_id}")


class DuplicateEntityError(LifecycleError):
    """An entity with the given ID already exists."""

    code: str = "DUPLICATE_ENTITY"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} already exists: {entity_id}")


class ItemsImmutableError(LifecycleError):
    """Order items cannot change once the order has been dispatched."""

    code: str = "ITEMS_IMMUTABLE"

    def __init__(self, order_id: str, status: str):
        self.order_id = order_id
        self.status = status
        super().__init__(
            f"Items of order {order_id} are immutable in status '{status}'"
        )


# Validation exceptions


class ValidationError(FulfillmentKernelError):
    """Base exception for input validation errors."""

    code: str = "VALIDATION_ERROR"


class InvalidFieldValueError(ValidationError):
    """A field value is outside its permitted domain."""

    code: str = "INVALID_FIELD_VALUE"

    def __init__(self, field: str, value: object, reason: str = ""):
        self.field = field
        self.value = value
        self.reason = reason
        message = f"Invalid value for {field}: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class EmptyItemsError(ValidationError):
    """An order or request was submitted without any item lines."""

    code: str = "EMPTY_ITEMS"

    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        super().__init__(f"{entity_type} must contain at least one item")


# Catalog exceptions


class CatalogError(FulfillmentKernelError):
    """Base exception for product catalog errors."""

    code: str = "CATALOG_ERROR"


class UnknownProductError(CatalogError):
    """Product with given ID is not in the catalog."""

    code: str = "UNKNOWN_PRODUCT"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Unknown product: {product_id}")


# Billing exceptions


class BillingError(FulfillmentKernelError):
    """Base exception for fee journal errors."""

    code: str = "BILLING_ERROR"


class InvalidAmountError(BillingError):
    """Monetary amount is not acceptable for the operation."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: object, reason: str = "must be positive"):
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount!r}: {reason}")


# Configuration exceptions


class ConfigError(FulfillmentKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class FeeScheduleValidationError(ConfigError):
    """A fee schedule definition failed validation."""

    code: str = "FEE_SCHEDULE_INVALID"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(
            "Fee schedule validation failed: " + "; ".join(self.errors)
        )
