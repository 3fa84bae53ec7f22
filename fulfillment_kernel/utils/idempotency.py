"""
Idempotency key generation utilities.

Idempotency keys ensure that the same transition always produces the same
fee transaction, even when the host retries a call after a timeout.
"""


def generate_idempotency_key(
    producer: str,
    transaction_type: str,
    entity_id: str,
) -> str:
    """
    Generate an idempotency key for a fee transaction.

    Format: producer:transaction_type:entity_id

    Example:
        >>> generate_idempotency_key("orders", "dispatch_fee", "ord-1")
        'orders:dispatch_fee:ord-1'
    """
    return f"{producer}:{transaction_type}:{entity_id}"


def parse_idempotency_key(key: str) -> tuple[str, str, str]:
    """
    Parse an idempotency key into its components.

    Raises:
        ValueError: If key format is invalid.
    """
    parts = key.split(":", 2)
    if len(parts) != 3 or not all(parts):
        raise ValueError(f"Invalid idempotency key format: {key}")
    return parts[0], parts[1], parts[2]
