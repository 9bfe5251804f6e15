from .transaction import (
    DiscountPresetSerializer,
    SettlementInputSerializer,
    SettlementResultSerializer,
    TransactionItemSerializer,
    TransactionSerializer,
)

__all__ = [
    "TransactionSerializer",
    "TransactionItemSerializer",
    "SettlementInputSerializer",
    "SettlementResultSerializer",
    "DiscountPresetSerializer",
]
