"""
Fulfillment Kernel

Deterministic business rules for a warehouse-fulfillment system:
- Typed exceptions with machine-readable codes
- Structured JSON logging
- Injectable clock
- Explicit workflow transition tables
"""

__version__ = "0.1.0"
