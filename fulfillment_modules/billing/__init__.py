"""Fee journal and merchant statements."""

from fulfillment_modules.billing.journal import FeeJournal, build_statement
from fulfillment_modules.billing.models import (
    FeeTransaction,
    MerchantStatement,
    TransactionType,
)

__all__ = [
    "FeeJournal",
    "FeeTransaction",
    "MerchantStatement",
    "TransactionType",
    "build_statement",
]
