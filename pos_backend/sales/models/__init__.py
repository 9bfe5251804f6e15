# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS

Purpose:
- Central export surface for ledger models.
"""

from .discount import Discount
from .transaction import Transaction
from .transaction_item import TransactionItem

__all__ = [
    "Transaction",
    "TransactionItem",
    "Discount",
]
