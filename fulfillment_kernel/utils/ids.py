"""
Entity identifier generation.

Orders, returns, requests and fee transactions carry prefixed opaque ids
(``ord-``, ``ret-``, ``inb-``, ``txn-``).  Coordinators take an
``IdFactory`` so tests can supply deterministic ids.
"""

from collections.abc import Callable
from itertools import count
from uuid import uuid4

IdFactory = Callable[[str], str]


def generate_entity_id(prefix: str) -> str:
    """Random id such as ``ord-3f9c2a7b1e04``."""
    return f"{prefix}-{uuid4().hex[:12]}"


def sequential_id_factory(start: int = 1) -> IdFactory:
    """
    Deterministic factory yielding ``ord-1``, ``txn-2``, ...

    One counter is shared across prefixes.
    """
    counter = count(start)

    def factory(prefix: str) -> str:
        return f"{prefix}-{next(counter)}"

    return factory
