from .checkout import CheckoutView
from .transactions import DiscountViewSet, TransactionViewSet

__all__ = [
    "CheckoutView",
    "TransactionViewSet",
    "DiscountViewSet",
]
